"""
Attestation Store - durable record of earned achievements

Provides SQLite-backed storage of which (player, achievement) pairs have been
earned. The store is the only source consulted before a credential is
signed.

Redemption is ledger state, not local state. The issuance path never marks
a record as redeemed; the ledger's consumed-signature set is the final
authority for one-time use. ``mark_redeemed`` mirrors ledger state into the
local record after the fact (``badgeledger ledger sync``).

Security considerations:
- Parameterized statements only
- Composite PRIMARY KEY makes insertion idempotent (INSERT OR IGNORE)
- Only catalog achievement ids are ever stored
- The redeemed flag is monotonic: no statement ever resets it
"""

import logging
import sqlite3
import threading
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from badgeledger.core.achievements import is_known_achievement
from badgeledger.core.address import normalize_address, truncate_address
from badgeledger.core.exceptions import StorageError

logger = logging.getLogger(__name__)


@dataclass
class AchievementRecord:
    """One earned achievement for one player."""

    player: str
    achievement_id: int
    earned_at: float
    redeemed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def open_database(db_path: str) -> sqlite3.Connection:
    """Open a connection the store and the player registry can share."""
    db = sqlite3.connect(
        db_path,
        check_same_thread=False,
        isolation_level="DEFERRED",
        timeout=10.0,
    )
    db.row_factory = sqlite3.Row
    return db


class AttestationStore:
    """
    SQLite-based store of earned achievements.

    Schema:
        achievements (player_address, achievement_id, earned_at, redeemed)
        - Composite PRIMARY KEY (player_address, achievement_id) guarantees at
          most one record per pair

    Thread Safety:
        All operations are protected by a reentrant lock. Concurrent
        ``record_earned`` calls for the same key converge on a single row.
        A :class:`~badgeledger.core.player_registry.PlayerRegistry` built on
        ``store.db`` and ``store.lock`` shares both, so a game and the
        achievements it earned commit together.
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        connection: Optional[sqlite3.Connection] = None,
        lock: Optional[threading.RLock] = None,
    ):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file. Created if it doesn't exist.
            connection: Existing connection to use instead of opening db_path
            lock: Lock guarding ``connection``

        Raises:
            StorageError: If the database cannot be opened
        """
        self.db_path = db_path
        self.lock = lock or threading.RLock()
        self._owns_connection = connection is None

        try:
            self.db = connection if connection is not None else open_database(db_path)
            self._init_schema()
        except sqlite3.Error as e:
            logger.error(
                "Failed to initialize attestation store",
                extra={"event": "attestation_store.init_failed", "db_path": db_path, "error": str(e)},
            )
            raise StorageError(f"Cannot open attestation store: {e}") from e

        logger.info(
            "Attestation store initialized",
            extra={"event": "attestation_store.initialized", "db_path": db_path},
        )

    def _init_schema(self) -> None:
        with self.lock:
            self.db.execute("""
                CREATE TABLE IF NOT EXISTS achievements (
                    player_address TEXT NOT NULL,
                    achievement_id INTEGER NOT NULL,
                    earned_at REAL NOT NULL,
                    redeemed INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (player_address, achievement_id)
                )
            """)
            self.db.commit()

    def record_earned(self, player: str, achievement_id: int, commit: bool = True) -> bool:
        """
        Record that a player earned an achievement.

        Idempotent: if the pair is already recorded nothing changes and no
        error is raised.

        Args:
            player: Player address (any accepted wire format)
            achievement_id: Catalog achievement identifier
            commit: Commit immediately. Pass False to join a transaction the
                caller already holds open on the shared connection; the
                caller then commits or rolls back.

        Returns:
            True if a new record was inserted, False if it already existed

        Raises:
            ValueError: If the address is malformed or the id is not in the catalog
            StorageError: If the write fails
        """
        address = normalize_address(player)
        if not is_known_achievement(achievement_id):
            raise ValueError(f"Unknown achievement id: {achievement_id!r}")

        with self.lock:
            try:
                cursor = self.db.execute(
                    """INSERT OR IGNORE INTO achievements
                       (player_address, achievement_id, earned_at, redeemed)
                       VALUES (?, ?, ?, 0)""",
                    (address, int(achievement_id), time.time()),
                )
                if commit:
                    self.db.commit()
            except sqlite3.Error as e:
                if commit:
                    self.db.rollback()
                logger.error(
                    "Failed to record achievement",
                    extra={
                        "event": "attestation_store.record_failed",
                        "player": truncate_address(address),
                        "achievement_id": achievement_id,
                        "error": str(e),
                    },
                )
                raise StorageError(f"Failed to record achievement: {e}") from e

        inserted = cursor.rowcount == 1
        if inserted:
            logger.info(
                "Achievement earned",
                extra={
                    "event": "attestation_store.earned",
                    "player": truncate_address(address),
                    "achievement_id": achievement_id,
                },
            )
        return inserted

    def is_earned(self, player: str, achievement_id: int) -> bool:
        """Return whether a record exists for the pair, redeemed or not."""
        address = normalize_address(player)
        if not is_known_achievement(achievement_id):
            return False
        with self.lock:
            try:
                row = self.db.execute(
                    """SELECT 1 FROM achievements
                       WHERE player_address = ? AND achievement_id = ?""",
                    (address, int(achievement_id)),
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read achievement: {e}") from e
        return row is not None

    def get_achievements(self, player: str) -> List[AchievementRecord]:
        """Return every achievement recorded for a player, by id."""
        address = normalize_address(player)
        with self.lock:
            try:
                rows = self.db.execute(
                    """SELECT player_address, achievement_id, earned_at, redeemed
                       FROM achievements
                       WHERE player_address = ?
                       ORDER BY achievement_id""",
                    (address,),
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read achievements: {e}") from e

        return [self._row_to_record(row) for row in rows]

    def get_unredeemed(self) -> List[AchievementRecord]:
        """Every earned record not yet mirrored as redeemed."""
        with self.lock:
            try:
                rows = self.db.execute(
                    """SELECT player_address, achievement_id, earned_at, redeemed
                       FROM achievements
                       WHERE redeemed = 0
                       ORDER BY player_address, achievement_id"""
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read achievements: {e}") from e

        return [self._row_to_record(row) for row in rows]

    def mark_redeemed(self, player: str, achievement_id: int) -> bool:
        """
        Mirror a ledger redemption into the local record.

        Monotonic and idempotent. Only an earned record can be marked.

        Returns:
            True if the record exists and is now marked redeemed
        """
        address = normalize_address(player)
        if not is_known_achievement(achievement_id):
            return False
        with self.lock:
            try:
                self.db.execute(
                    """UPDATE achievements SET redeemed = 1
                       WHERE player_address = ? AND achievement_id = ?""",
                    (address, int(achievement_id)),
                )
                self.db.commit()
            except sqlite3.Error as e:
                self.db.rollback()
                raise StorageError(f"Failed to mark achievement redeemed: {e}") from e
        return self.is_earned(address, achievement_id)

    def close(self) -> None:
        if self._owns_connection:
            with self.lock:
                self.db.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> AchievementRecord:
        return AchievementRecord(
            player=row["player_address"],
            achievement_id=row["achievement_id"],
            earned_at=row["earned_at"],
            redeemed=bool(row["redeemed"]),
        )
