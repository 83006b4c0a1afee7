"""Tests for sector lookup tables."""

from pathlib import Path

import pytest

from stockify.core.exceptions import ConfigurationError
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

SECTORS_YAML = Path(__file__).resolve().parents[2] / "config" / "sectors.yaml"


class TestSectorLookups:
    """Tests for the built-in tables."""

    def test_known_industry(self):
        profile = DEFAULT_SECTOR_CONFIG.profile("Computers - Software & Consulting")

        assert profile.roce_threshold == 20
        assert profile.cyclicality == "low"
        assert profile.sector_group == "Technology"
        assert profile.currency_beneficiary
        assert not profile.rate_sensitive
        assert not profile.financial

    def test_unknown_industry_defaults(self):
        profile = DEFAULT_SECTOR_CONFIG.profile("Underwater Basket Weaving")

        assert profile.roce_threshold == 15.0
        assert profile.debt_threshold == 1.5
        assert profile.cyclicality == "medium"
        assert profile.sector_group == "Other"

    def test_financial_debt_threshold(self):
        assert DEFAULT_SECTOR_CONFIG.debt_threshold("Non Banking Financial Company (NBFC)") == 6.0
        assert DEFAULT_SECTOR_CONFIG.is_financial("Non Banking Financial Company (NBFC)")
        assert DEFAULT_SECTOR_CONFIG.is_rate_sensitive("Non Banking Financial Company (NBFC)")

    def test_lookups_are_pure(self):
        first = DEFAULT_SECTOR_CONFIG.profile("Pharmaceuticals")
        second = DEFAULT_SECTOR_CONFIG.profile("Pharmaceuticals")

        assert first == second


class TestSectorConfigLoading:
    """Tests for building configs from mappings and YAML."""

    def test_partial_mapping_keeps_builtins(self):
        config = SectorConfig.from_mapping({"defaults": {"roce_threshold": 12}})

        assert config.roce_threshold("Unknown") == 12.0
        assert config.roce_threshold("Personal Care") == 30.0
        assert config.sector_group("Pharmaceuticals") == "Healthcare"

    def test_unknown_cyclicality_tier_rejected(self):
        with pytest.raises(ConfigurationError):
            SectorConfig.from_mapping({"cyclicality": {"extreme": ["Rockets"]}})

    def test_malformed_section_rejected(self):
        with pytest.raises(ConfigurationError):
            SectorConfig.from_mapping({"roce_thresholds": {"Pharmaceuticals": "high"}})

    def test_shipped_yaml_matches_builtins(self):
        config = SectorConfig.from_yaml(SECTORS_YAML)

        assert dict(config.roce_thresholds) == dict(DEFAULT_SECTOR_CONFIG.roce_thresholds)
        assert dict(config.sector_groups) == dict(DEFAULT_SECTOR_CONFIG.sector_groups)
        assert config.rate_sensitive == DEFAULT_SECTOR_CONFIG.rate_sensitive

    def test_yaml_override(self, tmp_path):
        path = tmp_path / "sectors.yaml"
        path.write_text(
            "roce_thresholds:\n"
            "  Pharmaceuticals: 18\n"
            "sector_groups:\n"
            "  Pharma:\n"
            "    - Pharmaceuticals\n"
        )

        config = SectorConfig.from_yaml(path)

        assert config.roce_threshold("Pharmaceuticals") == 18.0
        assert config.sector_group("Pharmaceuticals") == "Pharma"
        assert config.sector_group("Software Products") == "Other"

    def test_missing_yaml_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            SectorConfig.from_yaml(tmp_path / "missing.yaml")
