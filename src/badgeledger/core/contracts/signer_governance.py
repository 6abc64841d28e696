"""
Signer governance for the achievement ledger.

Holds exactly one immutable owner identity and one current authorized
signer identity. Only the owner may replace the signer. Rotation does not
carry over: credentials signed by a rotated-out key fail verification from
then on and must be reissued.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from badgeledger.core import metrics
from badgeledger.core.address import (
    checksum_address,
    is_zero_address,
    normalize_address,
    truncate_address,
)
from badgeledger.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


@dataclass
class SignerEvent:
    """Represents a SignerUpdated event."""

    event_type: str  # "SignerUpdated"
    previous_signer: str
    new_signer: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "previous_signer": self.previous_signer,
            "new_signer": self.new_signer,
            "timestamp": self.timestamp,
        }


@dataclass
class SignerGovernance:
    """
    Owner-gated holder of the authorized signer identity.

    The owner is fixed at construction. The signer defaults to the owner,
    the way the ledger contract's constructor initializes it.
    """

    owner: str
    authorized_signer: str = ""
    events: List[SignerEvent] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate and checksum identities."""
        if is_zero_address(self.owner):
            raise ValueError("Governance: owner is zero address")
        object.__setattr__(self, "owner", checksum_address(self.owner))
        signer = self.authorized_signer or self.owner
        if is_zero_address(signer):
            raise ValueError("Governance: signer is zero address")
        self.authorized_signer = checksum_address(signer)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "owner" and "owner" in self.__dict__:
            raise AttributeError("Governance: owner is immutable")
        super().__setattr__(name, value)

    def is_owner(self, caller: str) -> bool:
        try:
            return normalize_address(caller) == normalize_address(self.owner)
        except ValueError:
            return False

    def rotate_signer(self, caller: str, new_signer: str) -> bool:
        """
        Replace the authorized signer (owner only).

        Args:
            caller: Identity invoking the rotation
            new_signer: Address of the new authorized signer

        Returns:
            True if successful

        Raises:
            AuthorizationError: If caller is not the owner (nothing changes)
            ValueError: If new_signer is malformed or the zero address
        """
        with self.lock:
            if not self.is_owner(caller):
                metrics.record_signer_rotation("unauthorized")
                logger.warning(
                    "Signer rotation rejected: caller is not owner",
                    extra={
                        "event": "governance.rotation_rejected",
                        "caller": truncate_address(str(caller)),
                    },
                )
                raise AuthorizationError(
                    "Not owner", details={"caller": caller}
                )

            if is_zero_address(new_signer):
                raise ValueError("Governance: new signer is zero address")

            previous = self.authorized_signer
            self.authorized_signer = checksum_address(new_signer)
            self.events.append(
                SignerEvent(
                    event_type="SignerUpdated",
                    previous_signer=previous,
                    new_signer=self.authorized_signer,
                )
            )

        metrics.record_signer_rotation("rotated")
        logger.info(
            "Authorized signer rotated",
            extra={
                "event": "governance.signer_rotated",
                "previous_signer": previous,
                "new_signer": self.authorized_signer,
            },
        )
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "authorized_signer": self.authorized_signer,
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignerGovernance":
        governance = cls(
            owner=data["owner"],
            authorized_signer=data.get("authorized_signer", ""),
        )
        governance.events = [SignerEvent(**event) for event in data.get("events", [])]
        return governance
