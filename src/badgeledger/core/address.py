"""
Player address handling.

Players are identified by 20-byte Ethereum-style addresses. The wire format
is case-insensitive (lowercase, uppercase or EIP-55 mixed case, with or
without the 0x prefix); storage keys are always lowercase with a 0x prefix.

Address Format:
- Wire:     0xAaAa...1111 or aaaa...1111
- Storage:  0xaaaa...1111
- Checksum: EIP-55 mixed case, used for display and signer identities
"""

from __future__ import annotations

from eth_utils import is_checksum_address, to_checksum_address

ZERO_ADDRESS = "0x" + "0" * 40
_HEX_CHARS = frozenset("0123456789abcdef")


def _strip_prefix(address: str) -> str:
    if address[:2] in ("0x", "0X"):
        return address[2:]
    return address


def validate_address(address: str, require_checksum: bool = False) -> tuple[bool, str]:
    """
    Validate address format and optionally its EIP-55 checksum.

    Args:
        address: Address to validate
        require_checksum: If True, reject addresses without a valid checksum

    Returns:
        Tuple of (is_valid, error_message or normalized_address)
    """
    if not isinstance(address, str) or not address:
        return False, "Address is required"

    hex_part = _strip_prefix(address.strip())
    if len(hex_part) != 40:
        return False, "Address must be 40 hex characters"

    if not set(hex_part.lower()) <= _HEX_CHARS:
        return False, "Address contains invalid hex characters"

    mixed_case = hex_part != hex_part.lower() and hex_part != hex_part.upper()
    if require_checksum or mixed_case:
        candidate = "0x" + hex_part
        if not is_checksum_address(candidate):
            expected = to_checksum_address("0x" + hex_part.lower())
            return False, f"Invalid checksum. Did you mean {expected}?"

    return True, "0x" + hex_part.lower()


def normalize_address(address: str) -> str:
    """
    Normalize an address to its lowercase storage key.

    Raises:
        ValueError: If address is invalid
    """
    is_valid, result = validate_address(address)
    if not is_valid:
        raise ValueError(result)
    return result


def checksum_address(address: str) -> str:
    """Return the EIP-55 checksummed form of a valid address."""
    return to_checksum_address(normalize_address(address))


def address_to_bytes(address: str) -> bytes:
    """Return the 20-byte canonical binary form of an address."""
    return bytes.fromhex(normalize_address(address)[2:])


def is_zero_address(address: str) -> bool:
    return normalize_address(address) == ZERO_ADDRESS


def truncate_address(address: str) -> str:
    """Shorten an address for log output."""
    if not address or len(address) < 10:
        return "UNKNOWN"
    return f"{address[:6]}...{address[-4:]}"
