"""
Player Registry - cumulative player totals, game history and leaderboard

Counting a game and reading back the resulting totals happen inside one
locked SQLite transaction, so game-count based achievements are evaluated on
exactly the value this game produced, never on a value another concurrent
submission raced in between.
"""

import logging
import sqlite3
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from badgeledger.core.achievements import GameResult, PlayerStats
from badgeledger.core.address import normalize_address, truncate_address
from badgeledger.core.attestation_store import open_database
from badgeledger.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# Largest value a SQLite INTEGER column holds
SQLITE_INTEGER_MAX = 2**63 - 1


class PlayerRegistry:
    """
    SQLite-based player statistics.

    Schema:
        players (address PK, total_games, best_score, total_lines_cleared, created_at)
        games (id PK, player_address, tournament_id, score, lines_cleared,
               duration, is_tournament, created_at)
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        connection: Optional[sqlite3.Connection] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self.db_path = db_path
        self.lock = lock or threading.RLock()
        self._owns_connection = connection is None

        try:
            self.db = connection if connection is not None else open_database(db_path)
            self._init_schema()
        except sqlite3.Error as e:
            logger.error(
                "Failed to initialize player registry",
                extra={"event": "player_registry.init_failed", "db_path": db_path, "error": str(e)},
            )
            raise StorageError(f"Cannot open player registry: {e}") from e

    def _init_schema(self) -> None:
        with self.lock:
            self.db.execute("""
                CREATE TABLE IF NOT EXISTS players (
                    address TEXT PRIMARY KEY,
                    total_games INTEGER NOT NULL DEFAULT 0,
                    best_score INTEGER NOT NULL DEFAULT 0,
                    total_lines_cleared INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
            """)
            self.db.execute("""
                CREATE TABLE IF NOT EXISTS games (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_address TEXT NOT NULL REFERENCES players(address),
                    tournament_id INTEGER,
                    score INTEGER NOT NULL,
                    lines_cleared INTEGER NOT NULL DEFAULT 0,
                    duration INTEGER,
                    is_tournament INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
            """)
            self.db.execute(
                "CREATE INDEX IF NOT EXISTS idx_players_best_score ON players(best_score DESC)"
            )
            self.db.execute(
                "CREATE INDEX IF NOT EXISTS idx_games_player ON games(player_address)"
            )
            self.db.commit()

    def record_game(
        self,
        result: GameResult,
        on_counted: Optional[Callable[[PlayerStats], None]] = None,
    ) -> Tuple[int, PlayerStats]:
        """
        Count a finished game and return the post-increment totals.

        Args:
            result: The submitted game
            on_counted: Called with the post-increment totals before the
                transaction commits. Writes it makes on the same connection
                commit with the game; if it raises, the game is rolled back.

        Returns:
            Tuple of (game id, player stats after this game)

        Raises:
            StorageError: If the transaction fails (nothing is applied)
        """
        now = time.time()
        with self.lock:
            try:
                self.db.execute(
                    """INSERT INTO players
                       (address, total_games, best_score, total_lines_cleared, created_at)
                       VALUES (?, 1, ?, ?, ?)
                       ON CONFLICT(address) DO UPDATE SET
                           total_games = total_games + 1,
                           best_score = MAX(best_score, excluded.best_score),
                           total_lines_cleared = total_lines_cleared + excluded.total_lines_cleared""",
                    (result.player, result.score, result.lines_cleared, now),
                )
                cursor = self.db.execute(
                    """INSERT INTO games
                       (player_address, tournament_id, score, lines_cleared,
                        duration, is_tournament, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        result.player,
                        result.tournament_id,
                        result.score,
                        result.lines_cleared,
                        result.duration,
                        int(result.is_tournament),
                        now,
                    ),
                )
                game_id = cursor.lastrowid
                row = self.db.execute(
                    "SELECT * FROM players WHERE address = ?", (result.player,)
                ).fetchone()
                stats = self._row_to_stats(row)
                if on_counted is not None:
                    on_counted(stats)
                self.db.commit()
            except sqlite3.Error as e:
                self.db.rollback()
                logger.error(
                    "Failed to record game",
                    extra={
                        "event": "player_registry.record_failed",
                        "player": truncate_address(result.player),
                        "error": str(e),
                    },
                )
                raise StorageError(f"Failed to record game: {e}") from e
            except Exception:
                self.db.rollback()
                raise

        logger.info(
            "Game recorded",
            extra={
                "event": "player_registry.game_recorded",
                "player": truncate_address(result.player),
                "game_id": game_id,
                "score": result.score,
                "total_games": stats.total_games,
            },
        )
        return game_id, stats

    def get_player(self, player: str) -> Optional[PlayerStats]:
        address = normalize_address(player)
        with self.lock:
            try:
                row = self.db.execute(
                    "SELECT * FROM players WHERE address = ?", (address,)
                ).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read player: {e}") from e
        return self._row_to_stats(row) if row else None

    def get_leaderboard(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Top players by best score."""
        with self.lock:
            try:
                rows = self.db.execute(
                    """SELECT address, best_score, total_games FROM players
                       ORDER BY best_score DESC, address ASC
                       LIMIT ?""",
                    (int(limit),),
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read leaderboard: {e}") from e

        return [
            {
                "player_address": row["address"],
                "best_score": row["best_score"],
                "games_played": row["total_games"],
            }
            for row in rows
        ]

    def get_games(self, player: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent games for a player."""
        address = normalize_address(player)
        with self.lock:
            try:
                rows = self.db.execute(
                    """SELECT id, score, lines_cleared, duration, is_tournament,
                              tournament_id, created_at
                       FROM games WHERE player_address = ?
                       ORDER BY id DESC LIMIT ?""",
                    (address, int(limit)),
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read games: {e}") from e
        return [dict(row) | {"is_tournament": bool(row["is_tournament"])} for row in rows]

    def close(self) -> None:
        if self._owns_connection:
            with self.lock:
                self.db.close()

    @staticmethod
    def _row_to_stats(row: sqlite3.Row) -> PlayerStats:
        return PlayerStats(
            address=row["address"],
            total_games=row["total_games"],
            best_score=row["best_score"],
            total_lines_cleared=row["total_lines_cleared"],
            created_at=row["created_at"],
        )
