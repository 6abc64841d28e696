"""
Achievement attestation digests - EIP-191 personal-message signing.

Both the issuing server and the ledger compute these digests independently
from public inputs alone, so every byte of the layout is fixed:

    message_hash = keccak256(address(20 bytes) || uint256(achievement_id))
    signing_hash = keccak256("\\x19Ethereum Signed Message:\\n32" || message_hash)

The first stage matches Solidity's ``keccak256(abi.encodePacked(address,
uint256))``. The second stage is the EIP-191 domain-separation prefix; it
stops an attestation signature from doubling as a signature over a raw
transaction or any other protocol message that shares the key.
"""

from typing import Union

from Crypto.Hash import keccak

from badgeledger.core.address import address_to_bytes


# EIP-191 version 0x45 ("E") personal-message prefix
ETH_SIGNED_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"

UINT256_MAX = 2**256 - 1


def keccak256(data: bytes) -> bytes:
    """Compute keccak256 hash (same as Ethereum)."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def encode_uint256(value: int) -> bytes:
    """Encode an integer as a 32-byte big-endian word."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"uint256 value must be an int, got {type(value).__name__}")
    if not 0 <= value <= UINT256_MAX:
        raise ValueError(f"uint256 value out of range: {value}")
    return value.to_bytes(32, "big")


def achievement_message_hash(player: str, achievement_id: int) -> bytes:
    """
    Hash a (player, achievement) pair into the 32-byte attestation payload.

    Args:
        player: Player address in any accepted wire format
        achievement_id: Achievement identifier

    Returns:
        keccak256 of the packed address and uint256 id
    """
    return keccak256(address_to_bytes(player) + encode_uint256(achievement_id))


def hash_personal_message(message: Union[str, bytes]) -> bytes:
    """
    Hash a personal message with the EIP-191 prefix.

    The message is prefixed with "\\x19Ethereum Signed Message:\\n<length>".

    Args:
        message: Message to hash (string or bytes)

    Returns:
        32-byte keccak256 hash ready for signing
    """
    if isinstance(message, str):
        message = message.encode("utf-8")

    prefixed = ETH_SIGNED_MESSAGE_PREFIX + str(len(message)).encode("utf-8") + message
    return keccak256(prefixed)


def achievement_signing_hash(player: str, achievement_id: int) -> bytes:
    """Return the domain-separated digest that the signer actually signs."""
    return hash_personal_message(achievement_message_hash(player, achievement_id))


def signature_digest(signature: bytes) -> bytes:
    """Digest under which the ledger records a consumed signature."""
    return keccak256(bytes(signature))
