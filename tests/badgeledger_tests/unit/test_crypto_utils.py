"""
Unit tests for key handling and recoverable signatures.
"""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct

from badgeledger.core.crypto_utils import (
    SIGNATURE_LENGTH,
    address_from_private_key,
    generate_keypair_hex,
    is_canonical_signature,
    load_account,
    recover_signer,
    sign_personal_message,
    split_signature,
)
from badgeledger.core.typed_signing import hash_personal_message, keccak256

CURVE_ORDER = int("FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16)


def _high_s_variant(signature: bytes) -> bytes:
    r, s, v = split_signature(signature)
    flipped_v = 55 - v  # 27 <-> 28
    return r.to_bytes(32, "big") + (CURVE_ORDER - s).to_bytes(32, "big") + bytes([flipped_v])


class TestKeys:
    def test_generate_keypair(self):
        private_key, address = generate_keypair_hex()
        assert len(private_key) == 64
        assert not private_key.startswith("0x")
        assert address_from_private_key(private_key) == address

    def test_prefixed_key_accepted(self):
        private_key, address = generate_keypair_hex()
        assert load_account("0x" + private_key).address == address

    @pytest.mark.parametrize("value", ["", "abc", "0x" + "11" * 31])
    def test_bad_key_length(self, value):
        with pytest.raises(ValueError):
            load_account(value)


class TestSignAndRecover:
    def test_round_trip(self, signer_key):
        private_key, address = signer_key
        payload = keccak256(b"payload")
        signature = sign_personal_message(private_key, payload)

        assert len(signature) == SIGNATURE_LENGTH
        assert signature[64] in (27, 28)
        assert recover_signer(hash_personal_message(payload), signature) == address

    def test_matches_eth_account_recover(self, signer_key):
        private_key, address = signer_key
        payload = keccak256(b"other payload")
        signature = sign_personal_message(private_key, payload)
        assert Account.recover_message(encode_defunct(primitive=payload), signature=signature) == address

    def test_wrong_digest_recovers_other_address(self, signer_key):
        private_key, address = signer_key
        signature = sign_personal_message(private_key, keccak256(b"a"))
        assert recover_signer(hash_personal_message(keccak256(b"b")), signature) != address


class TestSplitSignature:
    def test_components(self, signer_key):
        private_key, _ = signer_key
        signature = sign_personal_message(private_key, keccak256(b"x"))
        r, s, v = split_signature(signature)
        assert r == int.from_bytes(signature[:32], "big")
        assert is_canonical_signature(r, s)
        assert v == signature[64]

    @pytest.mark.parametrize("length", [0, 64, 66])
    def test_wrong_length(self, length):
        with pytest.raises(ValueError):
            split_signature(b"\x01" * length)

    @pytest.mark.parametrize("v", [0, 1, 29])
    def test_bad_recovery_id(self, signer_key, v):
        private_key, _ = signer_key
        signature = sign_personal_message(private_key, keccak256(b"x"))
        with pytest.raises(ValueError):
            split_signature(signature[:64] + bytes([v]))

    def test_zero_r_rejected(self):
        with pytest.raises(ValueError):
            split_signature(b"\x00" * 32 + b"\x01" * 32 + bytes([27]))

    def test_high_s_rejected(self, signer_key):
        private_key, _ = signer_key
        signature = sign_personal_message(private_key, keccak256(b"x"))
        with pytest.raises(ValueError):
            split_signature(_high_s_variant(signature))
