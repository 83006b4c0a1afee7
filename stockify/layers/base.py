"""
Shared building blocks for the five scoring layers.

Every sub-component starts from a base value, collects additive bonuses
and penalties keyed to thresholds on the stock's fields, and is clamped
to [0, 100]. Each adjustment that matters is recorded with a
human-readable explanation.
"""

from collections.abc import Mapping, Sequence

from stockify.core.numeric import clamp
from stockify.core.types import LayerScore, Signal


class ComponentBuilder:
    """
    Accumulates one sub-component score.

    Example:
        builder = ComponentBuilder("earningsPower", base=50, weight=0.30)
        builder.add(10, "consistentROCE", "Stable ROCE over 3 years")
        builder.add(-5)
        component = builder.build()
    """

    def __init__(self, name: str, base: float, weight: float) -> None:
        self.name = name
        self.weight = weight
        self.score = float(base)
        self._details: list[Signal] = []

    def add(self, points: float, tag: str | None = None, text: str | None = None) -> None:
        """
        Apply a bonus (positive) or penalty (negative).

        Args:
            points: Points to add to the running score
            tag: Signal name recorded in details (optional)
            text: Explanation recorded in details (optional)
        """
        self.score += points
        if tag is not None:
            self.note(tag, text or "")

    def note(self, tag: str, text: str) -> None:
        """Record an explanation without changing the score."""
        self._details.append((tag, text))

    def build(self, label: str | None = None) -> LayerScore:
        """Clamp and freeze the component."""
        return LayerScore(
            name=self.name,
            score=clamp(self.score),
            weight=self.weight,
            details=tuple(self._details),
            label=label,
        )


def weighted_sum(
    components: Sequence[LayerScore],
    weights: Mapping[str, float],
) -> float:
    """
    Fixed-weight sum of sub-component scores.

    Args:
        components: Sub-components, each named after a key in weights
        weights: Component name -> weight (sums to 1.0)

    Returns:
        Weighted score
    """
    by_name = {c.name: c for c in components}
    return sum(by_name[name].score * weight for name, weight in weights.items())


def collect_details(components: Sequence[LayerScore]) -> tuple[Signal, ...]:
    """Flatten sub-component explanations, prefixing the component name."""
    return tuple(
        (f"{c.name}.{tag}", text) for c in components for tag, text in c.details
    )
