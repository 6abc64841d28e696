"""
Achievement service.

Ties game ingestion, eligibility evaluation, the attestation store and the
signer together behind the operations the HTTP API and CLI expose.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from badgeledger.core import metrics
from badgeledger.core.achievements import GameResult, PlayerStats, evaluate_achievements
from badgeledger.core.address import normalize_address, truncate_address
from badgeledger.core.attestation_signer import AttestationSigner, Credential
from badgeledger.core.attestation_store import AttestationStore
from badgeledger.core.config import Settings
from badgeledger.core.player_registry import PlayerRegistry

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """Result of ingesting one finished game."""

    game_id: int
    stats: PlayerStats
    qualified: List[int] = field(default_factory=list)
    newly_earned: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "player": self.stats.to_dict(),
            "achievements": list(self.qualified),
            "newAchievements": list(self.newly_earned),
        }


class AchievementService:
    """Game ingestion and credential issuance over one pair of stores."""

    def __init__(
        self,
        registry: PlayerRegistry,
        store: AttestationStore,
        signer: AttestationSigner,
        leaderboard_limit: int = 50,
    ):
        if registry.db is not store.db:
            raise ValueError("registry and store must share one SQLite connection")
        self.registry = registry
        self.store = store
        self.signer = signer
        self.leaderboard_limit = leaderboard_limit

    @classmethod
    def from_settings(cls, settings: Settings) -> "AchievementService":
        """Open one connection on the configured database file for both stores."""
        store = AttestationStore(settings.database_path)
        registry = PlayerRegistry(settings.database_path, connection=store.db, lock=store.lock)
        signer = AttestationSigner(store, settings.signer_private_key)
        return cls(registry, store, signer, leaderboard_limit=settings.leaderboard_limit)

    def submit_game(self, result: GameResult) -> SubmissionOutcome:
        """
        Count a game, evaluate it and persist every qualifying achievement.

        Counting the game and recording what it earned is one transaction:
        evaluation runs on the totals that transaction produced, and a failed
        achievement write rolls the game back so a retry sees the same totals.
        Re-qualifying for an achievement already earned is a no-op in the
        store.

        Raises:
            StorageError: If the transaction fails (nothing is applied)
        """
        qualified: List[int] = []
        newly_earned: List[int] = []

        def persist_earned(stats: PlayerStats) -> None:
            qualified.extend(evaluate_achievements(stats, result.score, result.lines_cleared))
            for achievement_id in qualified:
                if self.store.record_earned(result.player, achievement_id, commit=False):
                    newly_earned.append(achievement_id)

        game_id, stats = self.registry.record_game(result, on_counted=persist_earned)

        metrics.record_game_submitted()
        for achievement_id in newly_earned:
            metrics.record_achievement_earned(achievement_id)

        logger.info(
            "Game processed",
            extra={
                "event": "service.game_processed",
                "player": truncate_address(result.player),
                "game_id": game_id,
                "qualified": qualified,
                "newly_earned": newly_earned,
            },
        )
        return SubmissionOutcome(
            game_id=game_id, stats=stats, qualified=qualified, newly_earned=newly_earned
        )

    def issue_credential(self, player: str, achievement_id: int) -> Credential:
        """Sign a credential; raises AuthorizationError if not earned."""
        return self.signer.sign(player, achievement_id)

    def get_player_profile(self, player: str) -> Optional[Dict[str, Any]]:
        """Player stats plus earned achievements, or None if never seen."""
        address = normalize_address(player)
        stats = self.registry.get_player(address)
        if stats is None:
            return None
        profile = stats.to_dict()
        profile["achievements"] = [record.to_dict() for record in self.store.get_achievements(address)]
        return profile

    def get_player_games(self, player: str, limit: int = 20) -> List[Dict[str, Any]]:
        return self.registry.get_games(player, limit)

    def leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.registry.get_leaderboard(limit or self.leaderboard_limit)

    def close(self) -> None:
        self.registry.close()
        self.store.close()
