"""
Address processing utilities for EVM account identifiers.
Handles validation, lowercase lookup keys and EIP-55 display form.
"""
from eth_utils import is_hex_address, to_checksum_address

def address_key(address: str) -> str:
    """
    Lowercase form used for map keys and case-insensitive comparisons.

    Example:
        address_key("0xAbC...") -> "0xabc..."
    """
    return address.strip().lower()

def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return address_key(a) == address_key(b)

def is_valid_address(value: object) -> bool:
    """True for any 20-byte hex address, regardless of checksum casing."""
    return isinstance(value, str) and is_hex_address(value.strip())

def checksum(address: str) -> str:
    """
    EIP-55 checksummed form for display and output files.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if not is_valid_address(address):
        raise ValueError(f"Not a valid address: {address!r}")
    return to_checksum_address(address.strip().lower())

__all__ = ["address_key", "same_address", "is_valid_address", "checksum"]
