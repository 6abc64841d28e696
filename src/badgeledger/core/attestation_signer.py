"""
Attestation signer.

Turns an earned achievement into a portable credential: a 65-byte
recoverable secp256k1 signature over the domain-separated digest of the
(player, achievement) pair. Signing has no side effects. Calling it twice for
the same pair yields two independently valid credentials; the ledger's
replay guards, not the signer, enforce "exactly once".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from badgeledger.core import metrics
from badgeledger.core.achievements import is_known_achievement
from badgeledger.core.address import normalize_address, truncate_address
from badgeledger.core.attestation_store import AttestationStore
from badgeledger.core.crypto_utils import address_from_private_key, sign_personal_message
from badgeledger.core.exceptions import AuthorizationError
from badgeledger.core.typed_signing import achievement_message_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """A signed claim that ``player`` earned ``achievement_id``."""

    player: str
    achievement_id: int
    signature: bytes

    @property
    def signature_hex(self) -> str:
        return "0x" + self.signature.hex()

    def to_dict(self) -> Dict[str, Any]:
        """Wire form handed to the credential holder."""
        return {"signature": self.signature_hex}


class AttestationSigner:
    """Holds the issuing key and signs credentials for earned achievements."""

    def __init__(self, store: AttestationStore, private_key_hex: str):
        self.store = store
        self._private_key_hex = private_key_hex
        self.address = address_from_private_key(private_key_hex)

    def sign(self, player: str, achievement_id: int) -> Credential:
        """
        Sign a credential for an earned achievement.

        Args:
            player: Player address (any accepted wire format)
            achievement_id: Achievement identifier

        Returns:
            Credential carrying the 65-byte signature

        Raises:
            AuthorizationError: If the id is outside the catalog or the store
                has no record of the achievement
        """
        address = normalize_address(player)

        if not is_known_achievement(achievement_id) or not self.store.is_earned(address, achievement_id):
            metrics.record_credential_denied()
            logger.warning(
                "Credential denied: achievement not earned",
                extra={
                    "event": "signer.denied",
                    "player": truncate_address(address),
                    "achievement_id": achievement_id,
                },
            )
            raise AuthorizationError(
                "achievement not earned",
                details={"player": address, "achievement_id": achievement_id},
            )

        message_hash = achievement_message_hash(address, achievement_id)
        signature = sign_personal_message(self._private_key_hex, message_hash)

        metrics.record_credential_issued(achievement_id)
        logger.info(
            "Credential issued",
            extra={
                "event": "signer.issued",
                "player": truncate_address(address),
                "achievement_id": achievement_id,
                "signer": self.address,
            },
        )
        return Credential(player=address, achievement_id=int(achievement_id), signature=signature)
