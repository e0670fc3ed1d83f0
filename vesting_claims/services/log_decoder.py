"""ERC-20 Transfer log decoding and the claim-transfer predicate."""
from __future__ import annotations

from typing import Final

from vesting_claims.models.records import TransferEvent
from vesting_claims.models.schemas import LogEntry
from vesting_claims.utils.addresses import address_key, same_address

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC: Final[str] = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def topic_to_address(topic: str) -> str:
    """Right-most 20 bytes of a 32-byte topic as a lowercase 0x address."""
    body = topic[2:] if topic[:2].lower() == "0x" else topic
    if len(body) != 64:
        raise ValueError(f"topic must be 32 bytes of hex, got {topic!r}")
    int(body, 16)  # reject non-hex
    return "0x" + body[-40:].lower()


def decode_uint(data: str) -> int:
    body = data[2:] if data[:2].lower() == "0x" else data
    if not body:
        return 0
    return int(body, 16)


def decode_transfer_log(log: LogEntry) -> TransferEvent | None:
    """Decode a Transfer log; None when the log is some other event.

    Raises ValueError when the log claims to be a Transfer but its topics or
    data are not valid hex.
    """
    if len(log.topics) < 3 or log.topics[0].lower() != TRANSFER_EVENT_TOPIC:
        return None
    return TransferEvent(
        token=address_key(log.address),
        from_address=topic_to_address(log.topics[1]),
        to_address=topic_to_address(log.topics[2]),
        value=decode_uint(log.data),
    )


def is_claim_transfer(event: TransferEvent, *, sender: str, token: str | None = None) -> bool:
    """Tokens moved into the account that sent the transaction.

    ``from`` is not matched; payouts come either from the router or from a
    vault it controls. ``token=None`` accepts any token.
    """
    if event.value <= 0:
        return False
    if token is not None and not same_address(event.token, token):
        return False
    return same_address(event.to_address, sender)


__all__ = ["TRANSFER_EVENT_TOPIC", "topic_to_address", "decode_uint", "decode_transfer_log", "is_claim_transfer"]
