"""Tests for configuration loading."""

import pytest

from ledgerkit.config import ConfigError, LedgerConfig, load_config


def test_defaults_when_environment_is_empty():
    config = load_config({})

    assert config == LedgerConfig()
    assert config.page_size == 20
    assert config.pagination_mode == "client"
    assert config.database_path is None


def test_values_read_from_environment():
    config = load_config(
        {
            "LEDGERKIT_DB_PATH": "/tmp/ledger.db",
            "LEDGERKIT_PAGE_SIZE": "50",
            "LEDGERKIT_PAGINATION_MODE": " Server ",
            "LEDGERKIT_POLL_INTERVAL": "0.5",
            "LEDGERKIT_BULK_CONCURRENCY": "2",
            "LEDGERKIT_WRITE_BACK_CONCURRENCY": "3",
        }
    )

    assert config.database_path == "/tmp/ledger.db"
    assert config.page_size == 50
    assert config.pagination_mode == "server"
    assert config.poll_interval_seconds == 0.5
    assert config.bulk_concurrency == 2
    assert config.write_back_concurrency == 3


def test_blank_values_fall_back_to_defaults():
    config = load_config({"LEDGERKIT_PAGE_SIZE": " ", "LEDGERKIT_PAGINATION_MODE": ""})

    assert config.page_size == 20
    assert config.pagination_mode == "client"


@pytest.mark.parametrize(
    "environ,message",
    [
        ({"LEDGERKIT_PAGE_SIZE": "ten"}, "must be an integer"),
        ({"LEDGERKIT_PAGE_SIZE": "0"}, "page_size"),
        ({"LEDGERKIT_PAGINATION_MODE": "infinite"}, "pagination_mode"),
        ({"LEDGERKIT_POLL_INTERVAL": "soon"}, "must be a number"),
        ({"LEDGERKIT_POLL_INTERVAL": "-1"}, "poll_interval_seconds"),
        ({"LEDGERKIT_BULK_CONCURRENCY": "0"}, "bulk_concurrency"),
        ({"LEDGERKIT_WRITE_BACK_CONCURRENCY": "0"}, "write_back_concurrency"),
    ],
)
def test_invalid_values(environ, message):
    with pytest.raises(ConfigError, match=message):
        load_config(environ)


def test_with_overrides_ignores_none():
    config = LedgerConfig(page_size=5)

    updated = config.with_overrides(page_size=None, database_path="ledger.db")

    assert updated.page_size == 5
    assert updated.database_path == "ledger.db"
    assert config.database_path is None


def test_with_overrides_validates():
    with pytest.raises(ConfigError):
        LedgerConfig().with_overrides(pagination_mode="both")


def test_write_back_concurrency_independent_of_bulk_concurrency():
    config = load_config({"LEDGERKIT_BULK_CONCURRENCY": "16"})

    assert config.bulk_concurrency == 16
    assert config.write_back_concurrency == 4
