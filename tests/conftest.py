"""Pytest fixtures and factories.

Explorer traffic is served by FakeExplorer, which implements the same
BlockExplorer interface as the Etherscan client and records every call so
tests can assert on fetch order and filtering.
"""
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root on sys.path so 'vesting_claims' resolves without an editable install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from vesting_claims.config import PUSH_PAYMENT_SIGNATURE, ExplorerSettings  # noqa: E402
from vesting_claims.exceptions import ApiOperationalError  # noqa: E402
from vesting_claims.integrations.base import BlockExplorer  # noqa: E402
from vesting_claims.models.schemas import CandidateTransaction, TransactionReceipt  # noqa: E402
from vesting_claims.services.log_decoder import TRANSFER_EVENT_TOPIC  # noqa: E402

ROUTER = "0x2559c4e77131313bbbecfa99af51cdb4b7e9cb8a"
TOKEN = "0x" + "7e" * 20
OTHER_TOKEN = "0x" + "0f" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
VAULT = "0x" + "d4" * 20
STRANGER = "0x" + "e5" * 20


def address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


def uint_data(value: int) -> str:
    return "0x" + format(value, "064x")


class FakeExplorer(BlockExplorer):
    def __init__(self, transactions=None, receipts=None, failing=(), list_error=None):
        self.transactions = [CandidateTransaction.model_validate(t) for t in (transactions or [])]
        self.receipts = dict(receipts or {})
        self.failing = set(failing)
        self.list_error = list_error
        self.list_calls: list[tuple[str, int]] = []
        self.receipt_calls: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def list_transactions(self, address, start_block=0):
        self.list_calls.append((address, start_block))
        if self.list_error is not None:
            raise self.list_error
        return list(self.transactions)

    async def get_transaction_receipt(self, tx_hash):
        self.receipt_calls.append(tx_hash)
        if tx_hash in self.failing:
            raise ApiOperationalError("Explorer API error: Max calls per sec rate limit reached (5/sec)")
        raw = self.receipts.get(tx_hash)
        return None if raw is None else TransactionReceipt.model_validate(raw)


@pytest.fixture()
def addresses():
    return SimpleNamespace(
        router=ROUTER,
        token=TOKEN,
        other_token=OTHER_TOKEN,
        alice=ALICE,
        bob=BOB,
        carol=CAROL,
        vault=VAULT,
        stranger=STRANGER,
    )


@pytest.fixture()
def settings():
    return ExplorerSettings(api_key="test-key", request_interval_seconds=0.0, start_block=0)


# ---------- Data factory helpers ----------

@pytest.fixture()
def tx_factory():
    def _create(tx_hash: str, sender: str, block: int, *, is_error: str = "0", timestamp: int | None = None):
        return {
            "hash": tx_hash,
            "from": sender,
            "to": ROUTER,
            "blockNumber": str(block),
            "timeStamp": str(timestamp if timestamp is not None else 1_700_000_000 + block),
            "isError": is_error,
            "input": "0x",
        }
    return _create


@pytest.fixture()
def transfer_log_factory():
    def _create(*, to: str, value: int, token: str = TOKEN, source: str = ROUTER):
        return {
            "address": token,
            "topics": [TRANSFER_EVENT_TOPIC, address_topic(source), address_topic(to)],
            "data": uint_data(value),
            "logIndex": "0x0",
        }
    return _create


@pytest.fixture()
def receipt_factory():
    def _create(tx_hash: str, logs: list[dict]):
        return {"transactionHash": tx_hash, "status": "0x1", "logs": logs}
    return _create


@pytest.fixture()
def explorer_factory():
    def _create(**kwargs):
        return FakeExplorer(**kwargs)
    return _create


@pytest.fixture()
def push_payment_call():
    def _create(recipient: str, amount, *, start="1700000000", cliff="2592000", end="1731536000", token=TOKEN):
        return {
            "functionSignature": PUSH_PAYMENT_SIGNATURE,
            "inputValues": [recipient, token, str(amount), start, cliff, end],
        }
    return _create


@pytest.fixture()
def report_factory():
    def _create(groups: list[list[dict]], *, project_name: str | None = "Acme_S2", router=ROUTER, token=TOKEN):
        report: dict = {"transactions": {"readable": groups}}
        if project_name is not None:
            report["projectName"] = project_name
        report["queries"] = {"addresses": {"paymentRouter": router, "issuanceToken": token}}
        report["inputs"] = {"projectConfig": {"SAFE": "0x" + "5a" * 20}}
        return report
    return _create
