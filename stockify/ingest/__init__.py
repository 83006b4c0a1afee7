"""Data ingestion: CSV snapshot loader and qualitative scoring client."""

from stockify.ingest.loader import (
    DataValidation,
    get_data_summary,
    load_stock_data,
    validate_stock_data,
)
from stockify.ingest.qualitative import GroqQualitativeScorer, QualitativeScorer

__all__ = [
    "DataValidation",
    "GroqQualitativeScorer",
    "QualitativeScorer",
    "get_data_summary",
    "load_stock_data",
    "validate_stock_data",
]
