"""
test_config.py - Unit tests for lending terms and YAML settings

Tests:
- LendingTerms validation and with_changes()
- load_settings(): full file, partial file, missing file, bad values
- LendingPool.from_settings()
"""

import pytest
from datetime import datetime, timedelta

from peerlend import (
    DEFAULT_TERMS, LendingTerms, PoolSettings, Ledger, LendingPool,
    load_settings, parse_terms,
)


class TestLendingTerms:
    """Term validation."""

    def test_valid_terms(self):
        terms = LendingTerms(500, 5_000, timedelta(days=30))
        assert terms.max_principal == 500
        assert terms.interest_rate_x1000 == 5_000

    def test_rate_must_fit_16_bits(self):
        LendingTerms(500, 65_535, timedelta(days=1))
        with pytest.raises(ValueError, match="16 bits"):
            LendingTerms(500, 65_536, timedelta(days=1))

    def test_negative_values(self):
        with pytest.raises(ValueError):
            LendingTerms(-1, 50, timedelta(days=1))
        with pytest.raises(ValueError):
            LendingTerms(1, 50, timedelta(days=-1))

    def test_payback_period_type(self):
        with pytest.raises(ValueError, match="timedelta"):
            LendingTerms(1, 50, 30)

    def test_with_changes_validates(self):
        terms = DEFAULT_TERMS.with_changes(max_principal=42)
        assert terms.max_principal == 42
        assert DEFAULT_TERMS.max_principal != 42
        with pytest.raises(ValueError):
            DEFAULT_TERMS.with_changes(interest_rate_x1000=70_000)


class TestLoadSettings:
    """YAML loading with defaults."""

    def test_full_file(self, tmp_path):
        path = tmp_path / "pool.yml"
        path.write_text(
            "pool:\n"
            "  name: community\n"
            "  owner: treasury\n"
            "  wallet: vault\n"
            "terms:\n"
            "  max_principal: 2500\n"
            "  interest_rate_x1000: 1500\n"
            "  payback_period_days: 14\n"
            "logging:\n"
            "  level: debug\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.name == "community"
        assert settings.owner == "treasury"
        assert settings.wallet == "vault"
        assert settings.terms == LendingTerms(2_500, 1_500, timedelta(days=14))
        assert settings.log_level == "DEBUG"

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "pool.yml"
        path.write_text("terms:\n  max_principal: 10\n", encoding="utf-8")

        settings = load_settings(path)

        assert settings.owner == PoolSettings().owner
        assert settings.terms.max_principal == 10
        assert settings.terms.interest_rate_x1000 == DEFAULT_TERMS.interest_rate_x1000
        assert settings.terms.payback_period == DEFAULT_TERMS.payback_period

    def test_missing_file(self, tmp_path, caplog):
        settings = load_settings(tmp_path / "absent.yml")
        assert settings == PoolSettings()
        assert "not found" in caplog.text

    def test_no_path(self):
        assert load_settings() == PoolSettings()

    def test_unparseable_value_falls_back(self, caplog):
        terms = parse_terms({"max_principal": "lots", "payback_period_days": "soon"})
        assert terms.max_principal == DEFAULT_TERMS.max_principal
        assert terms.payback_period == DEFAULT_TERMS.payback_period
        assert "Invalid" in caplog.text

    def test_infinite_values_fall_back(self, tmp_path, caplog):
        path = tmp_path / "pool.yml"
        path.write_text(
            "terms:\n"
            "  max_principal: .inf\n"
            "  payback_period_days: .inf\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.terms.max_principal == DEFAULT_TERMS.max_principal
        assert settings.terms.payback_period == DEFAULT_TERMS.payback_period
        assert "Invalid" in caplog.text

    def test_invalid_term_raises(self):
        with pytest.raises(ValueError):
            parse_terms({"interest_rate_x1000": 100_000})


class TestPoolFromSettings:
    """Settings wire into a pool."""

    def test_from_settings(self):
        settings = PoolSettings(
            name="community", owner="treasury", wallet="vault",
            terms=LendingTerms(250, 100, timedelta(days=7)),
        )
        ledger = Ledger("test", datetime(2025, 1, 1))

        pool = LendingPool.from_settings(ledger, settings)

        assert pool.owner == "treasury"
        assert pool.wallet == "vault"
        assert pool.name == "community"
        assert pool.terms.max_principal == 250
        assert ledger.is_registered("vault")
        assert ledger.is_registered("treasury")
