#!/usr/bin/env python3
"""
Weekly Stockify analysis script.

Usage:
    python scripts/run_weekly.py --csv data/stocks.csv
    python scripts/run_weekly.py --csv data/stocks.csv --date 2024-01-15
    python scripts/run_weekly.py --csv data/stocks.csv --no-ai
    python scripts/run_weekly.py --csv data/stocks.csv --analyze SUNPHARMA
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from stockify.core.exceptions import StockifyError
from stockify.pipeline.weekly import WeeklyPipeline


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_date(date_str: str | None) -> datetime | None:
    """Parse date string to a run timestamp."""
    if date_str is None:
        return None

    try:
        return datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        print(f"Error: Invalid date format '{date_str}'. Use YYYY-MM-DD.")
        sys.exit(1)


async def main_async(
    csv_path: Path,
    run_at: datetime | None,
    use_qualitative: bool,
    dry_run: bool,
    output: Path | None,
) -> int:
    """Async main function."""
    with WeeklyPipeline(use_qualitative=use_qualitative) as pipeline:
        try:
            result = await pipeline.run(csv_path, run_at=run_at, persist=not dry_run)
        except StockifyError as e:
            logging.error(f"Pipeline failed: {e}")
            return 1

    rec = result.recommendation
    allocation = rec.allocation

    print("\n" + "=" * 60)
    print("STOCKIFY WEEKLY RECOMMENDATION")
    print("=" * 60)
    print(f"Week:       {rec.week_id}")
    print(f"Market:     {rec.market_condition.value}")
    print(f"Analyzed:   {rec.summary['totalAnalyzed']}")
    print(f"Passed:     {rec.summary['passedGates']}")
    print(f"Positions:  {len(allocation.stocks)}")
    print(f"Equity:     {allocation.total_weight:.1f}%")
    print(f"Cash:       {allocation.cash_allocation:.1f}%")
    if result.dropped_rows:
        print(f"Dropped:    {result.dropped_rows} invalid rows")
    print("-" * 60)
    print("Top Picks:")
    for pick in rec.top_picks[:10]:
        ai = f" ai={pick.ai_score:.0f}" if pick.ai_score is not None else ""
        print(
            f"  {pick.code:<12} {pick.weight:5.1f}%  score={pick.composite_score:.0f}"
            f"{ai}  {pick.recommendation.value}"
        )
    print("-" * 60)
    print("Sectors:")
    for sector in allocation.sector_allocation:
        print(f"  {sector.sector:<28} {sector.weight:5.1f}%")

    if not rec.validation.valid:
        print("-" * 60)
        print("⚠️  ALLOCATION CHECK ISSUES")
        for issue in rec.validation.issues:
            print(f"    {issue}")

    diff = result.diff
    if diff.has_changes:
        print("-" * 60)
        print("Changes vs previous week:")
        if diff.market_condition_change:
            change = diff.market_condition_change
            print(f"  Market: {change['from']} → {change['to']}")
        print(f"  New:     {len(diff.new)}")
        print(f"  Removed: {len(diff.removed)}")
        for c in diff.weight_changes[:5]:
            print(f"  {c.code:<12} {c.previous_weight:5.1f}% → {c.current_weight:5.1f}%")
    print("=" * 60 + "\n")

    if output is not None:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(
                {"recommendation": rec.to_dict(), "diff": diff.to_dict(), "stats": result.stats},
                f,
                indent=2,
                ensure_ascii=False,
            )
        print(f"Wrote {output}")

    return 0


def print_analysis(csv_path: Path, query: str) -> int:
    """Print the deep analysis of one stock."""
    with WeeklyPipeline(use_qualitative=False) as pipeline:
        try:
            analysis = pipeline.analyze(csv_path, query)
        except StockifyError as e:
            logging.error(f"Analysis failed: {e}")
            return 1

    if analysis is None:
        print(f"Stock not found: {query}")
        return 1

    stock = analysis.stock
    checklist = analysis.checklist

    print("\n" + "=" * 60)
    print(f"{stock.name} ({stock.code}) - {analysis.sector_group}")
    print("=" * 60)
    print(f"Sentiment:  {analysis.sentiment.value}")
    print(f"Verdict:    {checklist.verdict.value}")
    print(f"Checks:     {checklist.passed}/{len(checklist.checks)} passed")
    print("-" * 60)
    for signal in analysis.quarterly_signals + analysis.technical_signals:
        mark = "+" if signal.type.value == "positive" else "-"
        print(f"  {mark} {signal.text}")
    print("-" * 60)
    for check in checklist.checks:
        mark = "✓" if check.passed else "✗"
        print(f"  {mark} [{check.importance.value:<9}] {check.name:<30} {check.value}")
    print("=" * 60 + "\n")
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run the Stockify weekly analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_weekly.py --csv data/stocks.csv
    python scripts/run_weekly.py --csv data/stocks.csv --date 2024-01-15
    python scripts/run_weekly.py --csv data/stocks.csv --no-ai --dry-run

Recommendation labels (composite AND safety must clear the tier):
    STRONG BUY, BUY, ACCUMULATE, HOLD, WATCH
        """,
    )

    parser.add_argument(
        "--csv",
        "-c",
        type=Path,
        required=True,
        help="CSV snapshot of the stock universe",
    )

    parser.add_argument(
        "--date",
        "-d",
        type=str,
        default=None,
        help="Run date (YYYY-MM-DD format, default: now)",
    )

    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Skip qualitative enrichment of top picks",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not save the recommendation",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Also write the recommendation and diff as JSON",
    )

    parser.add_argument(
        "--analyze",
        "-a",
        metavar="CODE",
        default=None,
        help="Print the deep analysis of one stock (NSE/BSE code or name) and exit",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.analyze:
        return print_analysis(args.csv, args.analyze)

    run_at = parse_date(args.date)

    return asyncio.run(
        main_async(args.csv, run_at, not args.no_ai, args.dry_run, args.output)
    )


if __name__ == "__main__":
    sys.exit(main())
