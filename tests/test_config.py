"""Tests for environment-driven engine configuration."""

from decimal import Decimal

from ledger_engine.config import EngineConfig


class TestEngineConfig:

    def test_defaults(self, monkeypatch):
        for name in (
            "ENVIRONMENT",
            "LEDGER_RETRY_ATTEMPTS",
            "LEDGER_RETRY_BACKOFF_SECONDS",
            "LEDGER_BATCH_WORKERS",
            "LEDGER_PERCENTAGE_WARNING_THRESHOLD",
        ):
            monkeypatch.delenv(name, raising=False)

        config = EngineConfig.from_env()

        assert config == EngineConfig()

    def test_values_read_from_environment(self, monkeypatch):
        """Every setting can be overridden per deployment."""
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("LEDGER_RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("LEDGER_RETRY_BACKOFF_SECONDS", "0.2")
        monkeypatch.setenv("LEDGER_BATCH_WORKERS", "8")
        monkeypatch.setenv("LEDGER_PERCENTAGE_WARNING_THRESHOLD", "15")

        config = EngineConfig.from_env()

        assert config.environment == "prod"
        assert config.retry_attempts == 5
        assert config.retry_backoff_seconds == 0.2
        assert config.batch_workers == 8
        assert config.percentage_warning_threshold == Decimal("15")
