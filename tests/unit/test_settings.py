"""Unit tests for application settings."""

import pytest

from indexsync.config.settings import Settings


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "postgresql+asyncpg://u:p@localhost/db",
        "rpc_url": "http://localhost:8545",
        "environment": "test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults_in_seconds(self):
        settings = make_settings()

        assert settings.receipt_timeout == 240.0
        assert settings.receipt_poll_interval == 0.5
        assert settings.indexing_timeout == 180.0
        assert settings.indexing_poll_interval == 0.5

    def test_interval_longer_than_timeout_rejected(self):
        with pytest.raises(ValueError):
            make_settings(receipt_timeout_ms=100, receipt_poll_interval_ms=200)

        with pytest.raises(ValueError):
            make_settings(indexing_timeout_ms=100, indexing_poll_interval_ms=200)

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            make_settings(receipt_timeout_ms=0)

    def test_database_url_must_be_postgres(self):
        with pytest.raises(ValueError):
            make_settings(database_url="mysql://u:p@localhost/db")

    def test_rpc_url_scheme_checked(self):
        with pytest.raises(ValueError):
            make_settings(rpc_url="localhost:8545")

    def test_debug_forbidden_in_production(self):
        with pytest.raises(ValueError):
            make_settings(environment="production", debug=True)

    def test_registry_addresses_parsed(self):
        settings = make_settings(
            registry_addresses=(
                "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0, , bad,"
                "0x0000000000000000000000000000000000000001"
            )
        )

        assert settings.get_registry_addresses() == [
            "0x742d35cc6634c0532925a3b844bc9e7595f0beb0",
            "0x0000000000000000000000000000000000000001",
        ]
