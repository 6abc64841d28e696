"""
Tournament manager contract.

Runs one tournament at a time. Any player may enter the current tournament
once by paying at least the entry fee; every fee paid goes into that
tournament's prize pool. The owner closes the current tournament, which
opens the next one.

Amounts are integers in wei.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set

from badgeledger.core import metrics
from badgeledger.core.address import (
    checksum_address,
    is_zero_address,
    normalize_address,
    truncate_address,
)
from badgeledger.core.exceptions import (
    AuthorizationError,
    DuplicateEntryError,
    InsufficientEntryFeeError,
    TournamentError,
)
from badgeledger.core.typed_signing import keccak256

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_FEE = 10**15  # 0.001 ether
TOURNAMENT_DURATION = 24 * 60 * 60


@dataclass
class Tournament:
    """State of one tournament."""

    tournament_id: int
    start_time: float
    end_time: float
    total_prize_pool: int = 0
    participant_count: int = 0
    finalized: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total_prize_pool": self.total_prize_pool,
            "participant_count": self.participant_count,
            "finalized": self.finalized,
        }


@dataclass
class TournamentEvent:
    """Represents a TournamentEntered or TournamentFinalized event."""

    event_type: str  # "TournamentEntered" or "TournamentFinalized"
    tournament_id: int
    player: Optional[str] = None
    amount: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "tournament_id": self.tournament_id,
            "player": self.player,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


@dataclass
class TournamentManager:
    """
    Entry-fee tournaments with one entry per player per tournament.

    State:
        tournaments: tournament id -> Tournament
        entrants: tournament id -> set of entered player addresses (lowercase)
    """

    owner: str
    name: str = "Tournament Manager"
    address: str = ""
    entry_fee: int = DEFAULT_ENTRY_FEE
    duration: float = TOURNAMENT_DURATION

    current_tournament_id: int = 0
    tournaments: Dict[int, Tournament] = field(default_factory=dict)
    entrants: Dict[int, Set[str]] = field(default_factory=dict)

    events: List[TournamentEvent] = field(default_factory=list)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate owner, derive the contract address and open tournament 1."""
        if is_zero_address(self.owner):
            raise ValueError("TournamentManager: owner is zero address")
        self.owner = checksum_address(self.owner)
        if self.entry_fee < 0:
            raise ValueError("TournamentManager: entry fee cannot be negative")

        if not self.address:
            addr_input = f"{self.name}{self.owner}{time.time()}".encode()
            self.address = "0x" + keccak256(addr_input)[-20:].hex()

        if not self.tournaments:
            self._open_tournament(1)

    # ==================== View Functions ====================

    def get_current_tournament(self) -> Tournament:
        """Snapshot of the tournament currently accepting entries."""
        with self.lock:
            return replace(self.tournaments[self.current_tournament_id])

    def get_tournament(self, tournament_id: int) -> Optional[Tournament]:
        with self.lock:
            tournament = self.tournaments.get(int(tournament_id))
            return replace(tournament) if tournament else None

    def has_entered(self, tournament_id: int, player: str) -> bool:
        return normalize_address(player) in self.entrants.get(int(tournament_id), set())

    # ==================== Entry ====================

    def enter_tournament(self, caller: str, value: int) -> bool:
        """
        Enter the current tournament, paying ``value`` wei.

        Args:
            caller: Entering player
            value: Amount paid; all of it goes into the prize pool

        Returns:
            True if successful

        Raises:
            InsufficientEntryFeeError: value below the entry fee
            DuplicateEntryError: caller already entered this tournament
        """
        player = normalize_address(caller)

        with self.lock:
            tournament_id = self.current_tournament_id
            try:
                if isinstance(value, bool) or not isinstance(value, int) or value < self.entry_fee:
                    raise InsufficientEntryFeeError(
                        "Insufficient entry fee",
                        reason="insufficient entry fee",
                        details={"value": value, "entry_fee": self.entry_fee},
                    )
                if player in self.entrants.setdefault(tournament_id, set()):
                    raise DuplicateEntryError(
                        "Already entered",
                        reason="already entered",
                        details={"tournament_id": tournament_id},
                    )
            except TournamentError as exc:
                metrics.record_tournament_entry(type(exc).__name__)
                logger.warning(
                    "Tournament entry rejected: %s",
                    exc.reason,
                    extra={
                        "event": "tournament.entry_rejected",
                        "player": truncate_address(player),
                        "tournament_id": tournament_id,
                        "reason": exc.reason,
                    },
                )
                raise

            tournament = self.tournaments[tournament_id]
            self.entrants[tournament_id].add(player)
            tournament.participant_count += 1
            tournament.total_prize_pool += value
            self.events.append(
                TournamentEvent(
                    event_type="TournamentEntered",
                    tournament_id=tournament_id,
                    player=checksum_address(player),
                    amount=value,
                )
            )

        metrics.record_tournament_entry("entered")
        logger.info(
            "Tournament entered",
            extra={
                "event": "tournament.entered",
                "player": truncate_address(player),
                "tournament_id": tournament_id,
                "prize_pool": tournament.total_prize_pool,
            },
        )
        return True

    # ==================== Owner Functions ====================

    def finalize_tournament(self, caller: str) -> Tournament:
        """
        Close the current tournament and open the next one (owner only).

        Returns:
            Snapshot of the finalized tournament

        Raises:
            AuthorizationError: If caller is not the owner (nothing changes)
        """
        with self.lock:
            if normalize_address(caller) != normalize_address(self.owner):
                raise AuthorizationError("Not owner", details={"caller": caller})

            tournament = self.tournaments[self.current_tournament_id]
            tournament.finalized = True
            tournament.end_time = min(tournament.end_time, time.time())
            self.events.append(
                TournamentEvent(
                    event_type="TournamentFinalized",
                    tournament_id=tournament.tournament_id,
                    amount=tournament.total_prize_pool,
                )
            )
            self._open_tournament(tournament.tournament_id + 1)
            finalized = replace(tournament)

        logger.info(
            "Tournament finalized",
            extra={
                "event": "tournament.finalized",
                "tournament_id": finalized.tournament_id,
                "prize_pool": finalized.total_prize_pool,
                "participants": finalized.participant_count,
            },
        )
        return finalized

    # ==================== Internal Functions ====================

    def _open_tournament(self, tournament_id: int) -> None:
        now = time.time()
        self.tournaments[tournament_id] = Tournament(
            tournament_id=tournament_id,
            start_time=now,
            end_time=now + self.duration,
        )
        self.entrants[tournament_id] = set()
        self.current_tournament_id = tournament_id

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize contract state to dictionary."""
        return {
            "name": self.name,
            "address": self.address,
            "owner": self.owner,
            "entry_fee": self.entry_fee,
            "duration": self.duration,
            "current_tournament_id": self.current_tournament_id,
            "tournaments": [t.to_dict() for t in self.tournaments.values()],
            "entrants": {str(tid): sorted(players) for tid, players in self.entrants.items()},
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentManager":
        """Deserialize contract state from dictionary."""
        tournaments = {t["tournament_id"]: Tournament(**t) for t in data.get("tournaments", [])}
        return cls(
            owner=data["owner"],
            name=data.get("name", "Tournament Manager"),
            address=data.get("address", ""),
            entry_fee=data.get("entry_fee", DEFAULT_ENTRY_FEE),
            duration=data.get("duration", TOURNAMENT_DURATION),
            current_tournament_id=data.get("current_tournament_id", 0),
            tournaments=tournaments,
            entrants={int(tid): set(players) for tid, players in data.get("entrants", {}).items()},
            events=[TournamentEvent(**event) for event in data.get("events", [])],
        )
