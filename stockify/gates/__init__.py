"""Quality gates: the pass/fail screen run before any layer is scored."""

from stockify.gates.quality import check_quality_gates, gate_summary, profitability_checks

__all__ = [
    "check_quality_gates",
    "gate_summary",
    "profitability_checks",
]
