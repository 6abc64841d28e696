"""
Achievement badge ledger contract.

Redeems signed achievement credentials into permanent on-ledger badges.
Each (player, achievement) pair moves from unredeemed to redeemed exactly
once, and each accepted signature is consumed so the same bytes can never be
presented again.

Verification recomputes the signed digest from the caller's own identity,
so a credential issued to one player is worthless to anyone else: the
recovered signer will not match.

Security features:
- Duplicate pair check before any signature work
- Consumed-signature set keyed by keccak256(signature)
- Canonical (low-S, v in {27, 28}) signatures only
- All mutating calls serialized on one execution lock
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Union

from badgeledger.core import metrics
from badgeledger.core.address import normalize_address, truncate_address
from badgeledger.core.crypto_utils import recover_signer
from badgeledger.core.exceptions import (
    DuplicateRedemptionError,
    InvalidSignatureError,
    MalformedSignatureError,
    RedemptionError,
    SignatureReplayError,
)
from badgeledger.core.typed_signing import (
    achievement_signing_hash,
    keccak256,
    signature_digest,
)

from .signer_governance import SignerGovernance

logger = logging.getLogger(__name__)

# Event signature
BADGE_REDEEMED_EVENT = keccak256(b"BadgeRedeemed(address,uint256)")

SignatureInput = Union[bytes, bytearray, str]


@dataclass
class BadgeEvent:
    """Represents a BadgeRedeemed event."""

    event_type: str  # "BadgeRedeemed"
    player: str
    achievement_id: int
    signature_digest: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "player": self.player,
            "achievement_id": self.achievement_id,
            "signature_digest": self.signature_digest,
            "timestamp": self.timestamp,
        }


def decode_signature(signature: SignatureInput) -> bytes:
    """
    Accept raw bytes or a hex string (with or without 0x).

    Raises:
        MalformedSignatureError: If a string is not valid hex
    """
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, str):
        value = signature.strip()
        if value[:2] in ("0x", "0X"):
            value = value[2:]
        try:
            return bytes.fromhex(value)
        except ValueError as exc:
            raise MalformedSignatureError(
                "Signature is not valid hex", reason="malformed signature"
            ) from exc
    raise MalformedSignatureError(
        f"Unsupported signature type: {type(signature).__name__}",
        reason="malformed signature",
    )


@dataclass
class AchievementBadges:
    """
    Ledger-side verifier and registry of redeemed achievements.

    State:
        redeemed: player -> set of redeemed achievement ids
        used_signatures: keccak256 digests (hex) of every accepted signature

    The signer and owner live in the governance object; rotation and
    redemption share its lock, so a redemption always verifies against one
    consistent signer.
    """

    governance: SignerGovernance
    name: str = "Achievement Badges"
    address: str = ""

    redeemed: Dict[str, Set[int]] = field(default_factory=dict)
    used_signatures: Set[str] = field(default_factory=set)

    events: List[BadgeEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Initialize contract address."""
        if not self.address:
            addr_input = f"{self.name}{self.governance.owner}{time.time()}".encode()
            self.address = "0x" + keccak256(addr_input)[-20:].hex()

    @classmethod
    def deploy(cls, owner: str, signer: Optional[str] = None, **kwargs: Any) -> "AchievementBadges":
        """Create a ledger whose signer defaults to the deploying owner."""
        governance = SignerGovernance(owner=owner, authorized_signer=signer or "")
        return cls(governance=governance, **kwargs)

    # ==================== View Functions ====================

    @property
    def owner(self) -> str:
        return self.governance.owner

    @property
    def authorized_signer(self) -> str:
        return self.governance.authorized_signer

    def has_badge(self, player: str, achievement_id: int) -> bool:
        """
        Check whether a player already redeemed an achievement.

        Args:
            player: Player address
            achievement_id: Achievement identifier

        Returns:
            True if the pair is redeemed
        """
        return int(achievement_id) in self.redeemed.get(self._normalize(player), set())

    def badges_of(self, player: str) -> List[int]:
        return sorted(self.redeemed.get(self._normalize(player), set()))

    def is_signature_used(self, signature: SignatureInput) -> bool:
        """Check whether these exact signature bytes were already accepted."""
        return signature_digest(decode_signature(signature)).hex() in self.used_signatures

    def total_redeemed(self) -> int:
        return sum(len(ids) for ids in self.redeemed.values())

    # ==================== Mutating Functions ====================

    def redeem(self, caller: str, achievement_id: int, signature: SignatureInput) -> bool:
        """
        Redeem a credential into a badge for the caller.

        Args:
            caller: Identity submitting the call (the claimed player)
            achievement_id: Achievement identifier
            signature: 65-byte credential signature (bytes or hex)

        Returns:
            True if successful

        Raises:
            DuplicateRedemptionError: Pair already redeemed
            SignatureReplayError: Signature bytes already consumed
            InvalidSignatureError: Malformed signature or signer mismatch
        """
        player = self._normalize(caller)

        with self.governance.lock:
            try:
                digest = self._verify(player, achievement_id, signature)
            except RedemptionError as exc:
                metrics.record_redemption(type(exc).__name__)
                logger.warning(
                    "Redemption rejected: %s",
                    exc.reason,
                    extra={
                        "event": "ledger.redeem_rejected",
                        "player": truncate_address(player),
                        "achievement_id": achievement_id,
                        "reason": exc.reason,
                    },
                )
                raise

            self.redeemed.setdefault(player, set()).add(int(achievement_id))
            self.used_signatures.add(digest)
            self.events.append(
                BadgeEvent(
                    event_type="BadgeRedeemed",
                    player=player,
                    achievement_id=int(achievement_id),
                    signature_digest=digest,
                )
            )

        metrics.record_redemption("redeemed")
        logger.info(
            "Badge redeemed",
            extra={
                "event": "ledger.redeemed",
                "player": truncate_address(player),
                "achievement_id": achievement_id,
                "signature_digest": digest[:16],
            },
        )
        return True

    def rotate_signer(self, caller: str, new_signer: str) -> bool:
        """Owner-only signer replacement; see SignerGovernance.rotate_signer."""
        return self.governance.rotate_signer(caller, new_signer)

    # ==================== Internal Functions ====================

    def _verify(self, player: str, achievement_id: int, signature: SignatureInput) -> str:
        """Run every check in order and return the signature digest to consume."""
        try:
            signing_hash = achievement_signing_hash(player, achievement_id)
        except (TypeError, ValueError) as exc:
            # No signature can cover an id that is not a uint256
            raise InvalidSignatureError(
                f"Invalid achievement id: {exc}",
                reason="invalid achievement id",
                details={"achievement_id": repr(achievement_id)},
            ) from exc

        if self.has_badge(player, achievement_id):
            raise DuplicateRedemptionError(
                "Already redeemed",
                reason="already redeemed",
                details={"player": player, "achievement_id": achievement_id},
            )

        sig_bytes = decode_signature(signature)
        digest = signature_digest(sig_bytes).hex()
        if digest in self.used_signatures:
            raise SignatureReplayError("Signature already used", reason="signature already used")

        try:
            recovered = recover_signer(signing_hash, sig_bytes)
        except ValueError as exc:
            raise MalformedSignatureError(
                f"Malformed signature: {exc}", reason="malformed signature"
            ) from exc

        if self._normalize(recovered) != self._normalize(self.authorized_signer):
            raise InvalidSignatureError(
                "Invalid signature",
                reason="invalid signature",
                details={"recovered": recovered},
            )

        return digest

    @staticmethod
    def _normalize(address: str) -> str:
        return normalize_address(address)

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize ledger state to dictionary."""
        return {
            "name": self.name,
            "address": self.address,
            "governance": self.governance.to_dict(),
            "redeemed": {player: sorted(ids) for player, ids in self.redeemed.items()},
            "used_signatures": sorted(self.used_signatures),
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AchievementBadges":
        """Deserialize ledger state from dictionary."""
        ledger = cls(
            governance=SignerGovernance.from_dict(data["governance"]),
            name=data.get("name", "Achievement Badges"),
            address=data.get("address", ""),
        )
        ledger.redeemed = {
            player: {int(i) for i in ids} for player, ids in data.get("redeemed", {}).items()
        }
        ledger.used_signatures = set(data.get("used_signatures", []))
        ledger.events = [BadgeEvent(**event) for event in data.get("events", [])]
        return ledger
