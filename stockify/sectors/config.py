"""
Sector configuration for Stockify.

Pure lookup: industry -> ROCE threshold, debt threshold, cyclicality tier,
sector group and macro flags. A single SectorConfig instance is injected
into every scorer so cross-layer sector semantics stay consistent.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping

from stockify.core.config import load_yaml
from stockify.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Cyclicality = Literal["high", "medium", "low"]

DEFAULT_ROCE_THRESHOLD = 15.0
DEFAULT_DEBT_THRESHOLD = 1.5
DEFAULT_SECTOR_GROUP = "Other"
FINANCIAL_MARKERS = ("NBFC", "Financial", "Stockbroking")

ROCE_THRESHOLDS: dict[str, float] = {
    "Non Banking Financial Company (NBFC)": 8,
    "Financial Institution": 8,
    "Stockbroking & Allied": 10,
    "Investment Company": 6,
    "Other Financial Services": 10,
    "Power Generation": 10,
    "LPG/CNG/PNG/LNG Supplier": 12,
    "Civil Construction": 12,
    "Residential, Commercial Projects": 12,
    "Construction Vehicles": 15,
    "Heavy Electrical Equipment": 15,
    "Other Electrical Equipment": 18,
    "Computers - Software & Consulting": 20,
    "IT Enabled Services": 18,
    "Software Products": 20,
    "Pharmaceuticals": 15,
    "Auto Components & Equipments": 15,
    "Diversified FMCG": 25,
    "Personal Care": 30,
}

DEBT_THRESHOLDS: dict[str, float] = {
    "Non Banking Financial Company (NBFC)": 6.0,  # Higher leverage is normal
    "Financial Institution": 5.0,
    "Stockbroking & Allied": 3.0,
    "Civil Construction": 2.0,
    "Residential, Commercial Projects": 2.0,
    "Power Generation": 3.0,
}

CYCLICALITY: dict[str, tuple[str, ...]] = {
    "high": (
        "Construction Vehicles",
        "Civil Construction",
        "Residential, Commercial Projects",
        "Iron & Steel Products",
        "Industrial Minerals",
        "Ferro & Silica Manganese",
        "Auto Components & Equipments",
        "Passenger Cars & Utility Vehicles",
    ),
    "medium": (
        "Stockbroking & Allied",
        "Other Electrical Equipment",
        "Heavy Electrical Equipment",
        "Compressors, Pumps & Diesel Engines",
        "Industrial Products",
    ),
    "low": (
        "Pharmaceuticals",
        "Diversified FMCG",
        "Personal Care",
        "IT Enabled Services",
        "Computers - Software & Consulting",
        "Software Products",
        "Hospital",
        "Media & Entertainment",
        "LPG/CNG/PNG/LNG Supplier",
    ),
}

RATE_SENSITIVE: tuple[str, ...] = (
    "Non Banking Financial Company (NBFC)",
    "Residential, Commercial Projects",
    "Auto Components & Equipments",
    "Passenger Cars & Utility Vehicles",
)

CURRENCY_BENEFICIARIES: tuple[str, ...] = (
    "IT Enabled Services",
    "Computers - Software & Consulting",
    "Software Products",
    "Pharmaceuticals",
    "Business Process Outsourcing (BPO)/ Knowledge Process Outsourcing (KPO)",
)

COMMODITY_EXPOSED: tuple[str, ...] = (
    "Industrial Minerals",
    "Iron & Steel Products",
    "Ferro & Silica Manganese",
    "Petrochemicals",
    "Specialty Chemicals",
)

SECTOR_GROUPS: dict[str, tuple[str, ...]] = {
    "Financials": (
        "Non Banking Financial Company (NBFC)",
        "Financial Institution",
        "Stockbroking & Allied",
        "Investment Company",
        "Other Financial Services",
        "Depositories, Clearing Houses and Other Intermediaries",
        "Exchange and Data Platform",
    ),
    "Technology": (
        "IT Enabled Services",
        "Computers - Software & Consulting",
        "Software Products",
        "Computers Hardware & Equipments",
        "E-Learning",
    ),
    "Healthcare": (
        "Pharmaceuticals",
        "Hospital",
        "Healthcare Service Provider",
    ),
    "Industrial": (
        "Heavy Electrical Equipment",
        "Other Electrical Equipment",
        "Industrial Products",
        "Compressors, Pumps & Diesel Engines",
        "Plastic Products - Industrial",
        "Packaging",
        "Rubber",
    ),
    "Infrastructure": (
        "Civil Construction",
        "Residential, Commercial Projects",
        "Construction Vehicles",
        "Telecom - Infrastructure",
        "Power Generation",
    ),
    "Consumer": (
        "Diversified FMCG",
        "Personal Care",
        "Media & Entertainment",
        "Internet & Catalogue Retail",
        "Edible Oil",
    ),
    "Auto": (
        "Auto Components & Equipments",
        "Passenger Cars & Utility Vehicles",
    ),
    "Materials": (
        "Industrial Minerals",
        "Iron & Steel Products",
        "Ferro & Silica Manganese",
        "Petrochemicals",
        "Specialty Chemicals",
    ),
}


@dataclass(frozen=True)
class SectorProfile:
    """Everything the scorers need to know about one industry."""

    industry: str
    roce_threshold: float
    debt_threshold: float
    cyclicality: Cyclicality
    sector_group: str
    rate_sensitive: bool
    currency_beneficiary: bool
    commodity_exposed: bool
    financial: bool


@dataclass(frozen=True)
class SectorConfig:
    """
    Read-only sector lookup tables.

    Unknown industries fall back to ROCE 15, debt 1.5, medium cyclicality
    and the "Other" sector group. Build alternate maps with from_mapping()
    or from_yaml() for testing or regional universes.
    """

    roce_thresholds: Mapping[str, float] = field(default_factory=lambda: dict(ROCE_THRESHOLDS))
    debt_thresholds: Mapping[str, float] = field(default_factory=lambda: dict(DEBT_THRESHOLDS))
    cyclicality_tiers: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(CYCLICALITY)
    )
    rate_sensitive: frozenset[str] = frozenset(RATE_SENSITIVE)
    currency_beneficiaries: frozenset[str] = frozenset(CURRENCY_BENEFICIARIES)
    commodity_exposed: frozenset[str] = frozenset(COMMODITY_EXPOSED)
    sector_groups: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(SECTOR_GROUPS)
    )
    default_roce_threshold: float = DEFAULT_ROCE_THRESHOLD
    default_debt_threshold: float = DEFAULT_DEBT_THRESHOLD

    def roce_threshold(self, industry: str) -> float:
        """Sector-specific minimum ROCE (%)."""
        return float(self.roce_thresholds.get(industry) or self.default_roce_threshold)

    def debt_threshold(self, industry: str) -> float:
        """Sector-specific maximum debt-to-equity."""
        return float(self.debt_thresholds.get(industry) or self.default_debt_threshold)

    def cyclicality(self, industry: str) -> Cyclicality:
        """Cyclicality tier; medium when the industry is unlisted."""
        if industry in self.cyclicality_tiers.get("high", ()):
            return "high"
        if industry in self.cyclicality_tiers.get("low", ()):
            return "low"
        return "medium"

    def sector_group(self, industry: str) -> str:
        """Coarse sector group used for diversification caps."""
        for group, industries in self.sector_groups.items():
            if industry in industries:
                return group
        return DEFAULT_SECTOR_GROUP

    def is_rate_sensitive(self, industry: str) -> bool:
        return industry in self.rate_sensitive

    def is_currency_beneficiary(self, industry: str) -> bool:
        return industry in self.currency_beneficiaries

    def is_commodity_exposed(self, industry: str) -> bool:
        return industry in self.commodity_exposed

    @staticmethod
    def is_financial(industry: str) -> bool:
        """Financials are exempt from the debt sanity check."""
        return any(marker in industry for marker in FINANCIAL_MARKERS)

    def profile(self, industry: str) -> SectorProfile:
        """All lookups for one industry at once."""
        return SectorProfile(
            industry=industry,
            roce_threshold=self.roce_threshold(industry),
            debt_threshold=self.debt_threshold(industry),
            cyclicality=self.cyclicality(industry),
            sector_group=self.sector_group(industry),
            rate_sensitive=self.is_rate_sensitive(industry),
            currency_beneficiary=self.is_currency_beneficiary(industry),
            commodity_exposed=self.is_commodity_exposed(industry),
            financial=self.is_financial(industry),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SectorConfig":
        """
        Build a config from a parsed mapping (the sectors.yaml layout).

        Sections that are absent keep their built-in values.

        Args:
            data: Mapping with optional keys roce_thresholds, debt_thresholds,
                cyclicality, macro_sensitivity, sector_groups, defaults

        Returns:
            SectorConfig

        Raises:
            ConfigurationError: If a section has the wrong shape
        """
        try:
            roce = dict(data.get("roce_thresholds") or ROCE_THRESHOLDS)
            debt = dict(data.get("debt_thresholds") or DEBT_THRESHOLDS)
            cyclicality = {
                tier: tuple(industries)
                for tier, industries in (data.get("cyclicality") or CYCLICALITY).items()
            }
            macro = data.get("macro_sensitivity") or {}
            groups = {
                group: tuple(industries)
                for group, industries in (data.get("sector_groups") or SECTOR_GROUPS).items()
            }
            defaults = data.get("defaults") or {}

            unknown_tiers = set(cyclicality) - {"high", "medium", "low"}
            if unknown_tiers:
                raise ConfigurationError(
                    f"Unknown cyclicality tiers: {sorted(unknown_tiers)}",
                    config_key="cyclicality",
                )

            return cls(
                roce_thresholds={k: float(v) for k, v in roce.items()},
                debt_thresholds={k: float(v) for k, v in debt.items()},
                cyclicality_tiers=cyclicality,
                rate_sensitive=frozenset(macro.get("interest_rate_sensitive", RATE_SENSITIVE)),
                currency_beneficiaries=frozenset(
                    macro.get("currency_beneficiaries", CURRENCY_BENEFICIARIES)
                ),
                commodity_exposed=frozenset(macro.get("commodity_exposed", COMMODITY_EXPOSED)),
                sector_groups=groups,
                default_roce_threshold=float(defaults.get("roce_threshold", DEFAULT_ROCE_THRESHOLD)),
                default_debt_threshold=float(defaults.get("debt_threshold", DEFAULT_DEBT_THRESHOLD)),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid sector configuration: {e}") from e

    @classmethod
    def from_yaml(cls, path: Path) -> "SectorConfig":
        """Load sector tables from a YAML file."""
        config = cls.from_mapping(load_yaml(path))
        logger.info(
            f"Loaded sector config from {path}: "
            f"{len(config.roce_thresholds)} ROCE thresholds, "
            f"{len(config.sector_groups)} sector groups"
        )
        return config


DEFAULT_SECTOR_CONFIG = SectorConfig()
