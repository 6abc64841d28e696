"""
Achievement catalog and eligibility rules.

The catalog is a fixed, small enumerated set. Evaluation is a pure function
of a player's post-update totals and the game that was just submitted;
persisting whatever it returns is the caller's job.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import Any, Dict, List, Optional

from badgeledger.core.address import normalize_address

CENTURY_SCORE = 100
HOT_STREAK_LINES = 10
CHAMPION_GAMES = 10


class Achievement(IntEnum):
    """Achievement identifiers as they appear on the ledger."""

    FIRST_GAME = 1
    HOT_STREAK = 2
    CENTURY = 3
    CHAMPION = 4

    @property
    def title(self) -> str:
        return ACHIEVEMENT_TITLES[self]


ACHIEVEMENT_TITLES = {
    Achievement.FIRST_GAME: "First Block",
    Achievement.HOT_STREAK: "Hot Streak",
    Achievement.CENTURY: "Century",
    Achievement.CHAMPION: "Champion",
}

ACHIEVEMENT_IDS = frozenset(int(a) for a in Achievement)


def is_known_achievement(achievement_id: int) -> bool:
    return not isinstance(achievement_id, bool) and achievement_id in ACHIEVEMENT_IDS


@dataclass
class PlayerStats:
    """Cumulative totals for one player, as read back after an update."""

    address: str
    total_games: int = 0
    best_score: int = 0
    total_lines_cleared: int = 0
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GameResult:
    """A finished game as submitted by the client."""

    player: str
    score: int
    lines_cleared: int
    duration: Optional[int] = None
    is_tournament: bool = False
    tournament_id: Optional[int] = None

    def __post_init__(self) -> None:
        self.player = normalize_address(self.player)
        if self.score < 0:
            raise ValueError("score cannot be negative")
        if self.lines_cleared < 0:
            raise ValueError("lines_cleared cannot be negative")


def evaluate_achievements(stats: PlayerStats, score: int, lines_cleared: int) -> List[int]:
    """
    Return the achievement ids qualified by this evaluation.

    Every rule is checked independently and all matches are returned, in
    catalog evaluation order. Ids already earned earlier are returned again
    when they still qualify; storage treats re-earning as a no-op.

    Args:
        stats: Player totals after this game was counted
        score: Score of the game just submitted
        lines_cleared: Lines cleared in the game just submitted

    Returns:
        List of achievement ids
    """
    earned: List[int] = []

    if stats.total_games == 1:
        earned.append(Achievement.FIRST_GAME.value)

    if score >= CENTURY_SCORE:
        earned.append(Achievement.CENTURY.value)

    if lines_cleared >= HOT_STREAK_LINES:
        earned.append(Achievement.HOT_STREAK.value)

    if stats.total_games >= CHAMPION_GAMES:
        earned.append(Achievement.CHAMPION.value)

    return earned
