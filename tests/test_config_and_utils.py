import asyncio
import json
import logging

import pytest

from vesting_claims.config import ExplorerSettings, PLACEHOLDER_API_KEY
from vesting_claims.exceptions import ConfigurationError
from vesting_claims.services.receipt_fetcher import ReceiptFetcher, classify_error
from vesting_claims.utils.addresses import address_key, checksum, is_valid_address, same_address
from vesting_claims.utils.amounts import format_token_amount, parse_amount, total
from vesting_claims.utils.logger import bind_run_context, get_logger, setup_logging


def test_settings_from_env_prefers_etherscan_key():
    settings = ExplorerSettings.from_env({
        "ETHERSCAN_API_KEY": "primary",
        "POLYGONSCAN_API_KEY": "fallback",
        "EXPLORER_CHAIN_ID": "1",
        "EXPLORER_START_BLOCK": "500",
        "EXPLORER_REQUEST_INTERVAL_SECONDS": "0.5",
    })
    assert settings.api_key == "primary"
    assert settings.chain_id == "1"
    assert settings.start_block == 500
    assert settings.request_interval_seconds == 0.5
    assert settings.require_api_key() == "primary"


def test_settings_fall_back_to_polygonscan_key():
    settings = ExplorerSettings.from_env({"POLYGONSCAN_API_KEY": "fallback"})
    assert settings.api_key == "fallback"
    assert settings.api_url == "https://api.etherscan.io/v2/api"


@pytest.mark.parametrize("env", [{}, {"ETHERSCAN_API_KEY": PLACEHOLDER_API_KEY}])
def test_missing_or_placeholder_key_is_rejected(env):
    settings = ExplorerSettings.from_env(env)
    assert not settings.has_usable_api_key
    with pytest.raises(ConfigurationError):
        settings.require_api_key()


def test_invalid_numeric_setting():
    with pytest.raises(ConfigurationError):
        ExplorerSettings.from_env({"EXPLORER_START_BLOCK": "genesis"})


def test_address_helpers(addresses):
    upper = to_upper(addresses.alice)
    assert address_key("  " + upper + " ") == addresses.alice
    assert same_address(upper, addresses.alice)
    assert not same_address(None, addresses.alice)
    assert is_valid_address(upper)
    assert not is_valid_address("0x1234")
    assert not is_valid_address(None)
    assert checksum(addresses.alice).lower() == addresses.alice
    with pytest.raises(ValueError):
        checksum("nope")


def to_upper(address: str) -> str:
    return "0x" + address[2:].upper()


def test_parse_amount():
    assert parse_amount("1000") == 1000
    assert parse_amount(" 0x10 ") == 16
    assert parse_amount(7) == 7
    for bad in ("", "1e18", 1.0, True, None, "-1", -1):
        with pytest.raises(ValueError):
            parse_amount(bad)


def test_format_token_amount():
    assert format_token_amount(0) == "0"
    assert format_token_amount(10**18) == "1"
    assert format_token_amount(1_500_000_000_000_000_000) == "1.5"
    assert format_token_amount(1) == "0.000000000000000001"


@pytest.mark.parametrize("message, code", [
    ("Explorer API error: Max calls per sec rate limit reached (5/sec)", "rate_limited"),
    ("Explorer returned HTTP 429 for eth_getTransactionReceipt", "rate_limited"),
    ("Explorer API error: Invalid API Key", "auth_error"),
    ("Explorer request timed out (txlist)", "fetch_error"),
])
def test_classify_error(message, code):
    assert classify_error(message) == code


def test_json_log_file_carries_fields_and_run_context(tmp_path):
    log_file = tmp_path / "logs" / "run.jsonl"
    setup_logging(log_level="INFO", log_file=str(log_file), enable_console=False)
    bind_run_context(command="check-claims")
    try:
        get_logger("services.test").info("Claim found", amount=10**30, tx_hash="0xaa", skipped=None)
        get_logger("services.test").debug("not emitted")
    finally:
        bind_run_context(command=None)
        logging.shutdown()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["logger"] == "vesting_claims.services.test"
    assert entry["message"] == "Claim found"
    assert entry["command"] == "check-claims"
    assert entry["amount"] == 10**30
    assert "skipped" not in entry


def test_receipt_fetcher_flags_rate_limited_failures(explorer_factory, receipt_factory):
    explorer = explorer_factory(receipts={"0x02": receipt_factory("0x02", [])}, failing={"0x01"})
    fetcher = ReceiptFetcher(explorer)

    failed = asyncio.run(fetcher.fetch("0x01"))
    ok = asyncio.run(fetcher.fetch("0x02"))

    assert not failed.success
    assert failed.rate_limited
    assert ok.success and not ok.rate_limited
    assert ok.receipt.transaction_hash == "0x02"
    assert (fetcher.failures, fetcher.throttled) == (1, 1)


def test_total_keeps_big_ints_exact():
    assert total([]) == 0
    assert total([10**30, 1]) == 10**30 + 1
