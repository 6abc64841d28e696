"""Utility helpers for secp256k1 key management and recoverable signatures."""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

SIGNATURE_LENGTH = 65
_CURVE_ORDER = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)
_VALID_V = (27, 28)


def _normalize_private_hex(private_hex: str) -> str:
    value = private_hex.strip()
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    if len(value) != 64:
        raise ValueError("Private key hex must be 32 bytes.")
    return "0x" + value.lower()


def load_account(private_hex: str) -> LocalAccount:
    return Account.from_key(_normalize_private_hex(private_hex))


def generate_keypair_hex() -> tuple[str, str]:
    """Return a fresh (private key hex, checksummed address) pair."""
    account = Account.create()
    return account.key.hex().removeprefix("0x"), account.address


def address_from_private_key(private_hex: str) -> str:
    return load_account(private_hex).address


def _validate_signature_range(r: int, s: int) -> None:
    """
    Ensure signature components fall within the curve order.

    Raises:
        ValueError: If either component is out of range.
    """
    if not (1 <= r < _CURVE_ORDER):
        raise ValueError("Signature r component out of range.")
    if not (1 <= s < _CURVE_ORDER):
        raise ValueError("Signature s component out of range.")


def is_canonical_signature(r: int, s: int) -> bool:
    """
    Check whether signature components are in range and have low-S form.
    """
    try:
        _validate_signature_range(r, s)
    except ValueError:
        return False
    return s <= _CURVE_ORDER // 2


def split_signature(signature: bytes) -> tuple[int, int, int]:
    """
    Split a 65-byte ``r || s || v`` signature into its components.

    Raises:
        ValueError: If the length, recovery id or components are invalid.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise ValueError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)} bytes"
        )
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v not in _VALID_V:
        raise ValueError(f"Signature recovery id must be 27 or 28, got {v}")
    if not is_canonical_signature(r, s):
        raise ValueError("Signature is not in canonical low-S form.")
    return r, s, v


def sign_personal_message(private_hex: str, message_hash: bytes) -> bytes:
    """
    Sign a 32-byte payload with the EIP-191 personal-message prefix.

    Returns:
        65-byte ``r || s || v`` signature with v in {27, 28}
    """
    signed = Account.sign_message(
        encode_defunct(primitive=message_hash),
        private_key=_normalize_private_hex(private_hex),
    )
    return bytes(signed.signature)


def recover_signer(signing_hash: bytes, signature: bytes) -> str:
    """
    Recover the checksummed address that produced ``signature`` over
    ``signing_hash`` (the already-prefixed digest).

    Raises:
        ValueError: If the signature is malformed or recovery fails.
    """
    split_signature(signature)
    try:
        return Account._recover_hash(signing_hash, signature=bytes(signature))
    except (BadSignature, KeyValidationError) as exc:
        raise ValueError(f"Signature recovery failed: {exc}") from exc
