"""Sector lookup tables for Stockify."""

from stockify.sectors.config import (
    DEFAULT_SECTOR_CONFIG,
    SectorConfig,
    SectorProfile,
)

__all__ = [
    "DEFAULT_SECTOR_CONFIG",
    "SectorConfig",
    "SectorProfile",
]
