import pytest

from vesting_claims.models.schemas import LogEntry
from vesting_claims.services.log_decoder import (
    TRANSFER_EVENT_TOPIC,
    decode_transfer_log,
    decode_uint,
    is_claim_transfer,
    topic_to_address,
)


def test_decode_transfer_log(transfer_log_factory, addresses):
    log = LogEntry.model_validate(transfer_log_factory(to=addresses.alice, value=500, source=addresses.vault))
    event = decode_transfer_log(log)
    assert event is not None
    assert event.to_address == addresses.alice
    assert event.from_address == addresses.vault
    assert event.token == addresses.token
    assert event.value == 500


def test_non_transfer_and_short_topic_logs_are_ignored(addresses):
    approval = LogEntry(address=addresses.token, topics=["0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"] * 3, data="0x01")
    assert decode_transfer_log(approval) is None
    short = LogEntry(address=addresses.token, topics=[TRANSFER_EVENT_TOPIC], data="0x01")
    assert decode_transfer_log(short) is None


def test_topic_decoding_is_case_insensitive():
    topic = "0x" + "0" * 24 + "ABCDEF" * 6 + "ABCD"
    assert topic_to_address(topic) == "0x" + ("abcdef" * 6 + "abcd")
    with pytest.raises(ValueError):
        topic_to_address("0x1234")


def test_decode_uint_handles_empty_and_large_values():
    assert decode_uint("0x") == 0
    assert decode_uint("") == 0
    big = 2**200 + 1
    assert decode_uint("0x" + format(big, "064x")) == big
    with pytest.raises(ValueError):
        decode_uint("0xzz")


def test_claim_predicate(transfer_log_factory, addresses):
    event = decode_transfer_log(LogEntry.model_validate(
        transfer_log_factory(to=addresses.alice.upper().replace("0X", "0x"), value=10)
    ))
    assert is_claim_transfer(event, sender=addresses.alice, token=addresses.token.upper().replace("0X", "0x"))
    assert not is_claim_transfer(event, sender=addresses.bob, token=addresses.token)
    assert not is_claim_transfer(event, sender=addresses.alice, token=addresses.other_token)
    # token=None accepts any token
    assert is_claim_transfer(event, sender=addresses.alice)

    zero = decode_transfer_log(LogEntry.model_validate(transfer_log_factory(to=addresses.alice, value=0)))
    assert not is_claim_transfer(zero, sender=addresses.alice, token=addresses.token)
