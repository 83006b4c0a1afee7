"""Week identifiers for recommendation history."""

from datetime import date, datetime


def get_week_id(run_date: date | datetime) -> str:
    """
    ISO week of the run date as YYYY-Www.

    Uses the ISO year, so late-December dates can belong to week 01 of the
    next year and early-January dates to the last week of the previous one.

    Args:
        run_date: Run date or timestamp

    Returns:
        Week id, e.g. "2024-W03"
    """
    iso = run_date.isocalendar()
    return f"{iso[0]}-W{iso[1]:02d}"


def recommendation_id(week_id: str) -> str:
    """Recommendation id for a week."""
    return f"rec_{week_id}"
