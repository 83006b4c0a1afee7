"""
CSV snapshot loader.

Reads the weekly fundamentals/technicals export with pandas and turns each
row into a StockRecord. Every known numeric column is coerced to a number
with unparseable or missing values defaulted to 0; string columns are
trimmed and default to "".
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from stockify.core.exceptions import DataLoadError
from stockify.core.types import NUMERIC_COLUMNS, STRING_COLUMNS, StockRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataValidation:
    """Rows kept after validation plus the issues found on dropped rows."""

    valid: tuple[StockRecord, ...] = ()
    issues: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def dropped(self) -> int:
        return len(self.issues)


def read_snapshot(path: Path | str) -> pd.DataFrame:
    """
    Read the CSV snapshot into a cleaned DataFrame.

    Args:
        path: CSV file path

    Returns:
        DataFrame with numeric columns as floats and strings trimmed

    Raises:
        DataLoadError: If the file is missing, empty or unreadable
    """
    path = Path(path)
    if not path.exists():
        raise DataLoadError(f"Stock data file not found: {path}", path=str(path))

    string_columns = list(STRING_COLUMNS.values())
    try:
        df = pd.read_csv(
            path,
            dtype={col: str for col in string_columns},
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Failed to parse {path}: {e}", path=str(path)) from e

    df.columns = [str(c).strip() for c in df.columns]

    for column in string_columns:
        if column in df.columns:
            df[column] = df[column].fillna("").astype(str).str.strip()

    for column in NUMERIC_COLUMNS.values():
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0.0)

    missing = [c for c in NUMERIC_COLUMNS.values() if c not in df.columns]
    if missing:
        logger.debug(f"{len(missing)} known columns absent from snapshot, defaulting to 0")

    return df


def load_stock_data(path: Path | str) -> list[StockRecord]:
    """
    Load the CSV snapshot as StockRecords (input order preserved).

    Args:
        path: CSV file path

    Returns:
        List of StockRecords

    Raises:
        DataLoadError: If the file cannot be read
    """
    df = read_snapshot(path)
    stocks = [StockRecord.from_mapping(row) for row in df.to_dict(orient="records")]
    logger.info(f"Loaded {len(stocks)} stocks from {path}")
    return stocks


def validate_stock_data(stocks: Sequence[StockRecord]) -> DataValidation:
    """
    Drop rows that cannot be scored.

    A row is dropped when it has no name, a non-positive price, or neither
    an NSE nor a BSE code.

    Args:
        stocks: Loaded StockRecords

    Returns:
        DataValidation with kept rows and per-row issues
    """
    valid: list[StockRecord] = []
    issues: list[dict[str, Any]] = []

    for stock in stocks:
        problems = []
        if not stock.name:
            problems.append("Missing name")
        if stock.current_price <= 0:
            problems.append("Invalid price")
        if not stock.nse_code and not stock.bse_code:
            problems.append("Missing stock code")

        if problems:
            issues.append({"stock": stock.name or "Unknown", "issues": problems})
        else:
            valid.append(stock)

    if issues:
        logger.warning(f"Dropped {len(issues)} invalid rows out of {len(stocks)}")

    return DataValidation(valid=tuple(valid), issues=tuple(issues))


def get_data_summary(stocks: Sequence[StockRecord]) -> dict[str, Any]:
    """
    Overview of a loaded universe.

    Args:
        stocks: StockRecords

    Returns:
        Dict with counts, industries and price / market-cap ranges
    """
    industries = {s.industry for s in stocks}
    groups = {s.industry_group for s in stocks}
    prices = [s.current_price for s in stocks if s.current_price > 0]
    caps = [s.market_cap for s in stocks if s.market_cap > 0]

    return {
        "totalStocks": len(stocks),
        "uniqueIndustries": len(industries),
        "uniqueIndustryGroups": len(groups),
        "priceRange": {"min": min(prices, default=0.0), "max": max(prices, default=0.0)},
        "marketCapRange": {"min": min(caps, default=0.0), "max": max(caps, default=0.0)},
        "industries": sorted(industries),
    }
