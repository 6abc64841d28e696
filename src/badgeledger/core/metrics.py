"""
Issuance and redemption instrumentation.

Prometheus counters with helper functions that are safe to call from the
signing and redemption paths.
"""

from __future__ import annotations

from prometheus_client import Counter

games_submitted_counter = Counter(
    "badgeledger_games_submitted_total", "Total games recorded"
)

achievements_earned_counter = Counter(
    "badgeledger_achievements_earned_total",
    "Achievements newly recorded as earned",
    ["achievement_id"],
)

credentials_issued_counter = Counter(
    "badgeledger_credentials_issued_total",
    "Credentials signed for earned achievements",
    ["achievement_id"],
)

credentials_denied_counter = Counter(
    "badgeledger_credentials_denied_total",
    "Credential requests rejected because the achievement was not earned",
)

redemptions_counter = Counter(
    "badgeledger_redemptions_total",
    "Ledger redemption attempts by outcome",
    ["outcome"],
)

signer_rotations_counter = Counter(
    "badgeledger_signer_rotations_total",
    "Authorized signer rotations by outcome",
    ["outcome"],
)

tournament_entries_counter = Counter(
    "badgeledger_tournament_entries_total",
    "Tournament entry attempts by outcome",
    ["outcome"],
)


def record_game_submitted() -> None:
    games_submitted_counter.inc()


def record_achievement_earned(achievement_id: int) -> None:
    achievements_earned_counter.labels(achievement_id=str(achievement_id)).inc()


def record_credential_issued(achievement_id: int) -> None:
    credentials_issued_counter.labels(achievement_id=str(achievement_id)).inc()


def record_credential_denied() -> None:
    credentials_denied_counter.inc()


def record_redemption(outcome: str) -> None:
    """Outcome is "redeemed" or the exception class name of the revert."""
    redemptions_counter.labels(outcome=outcome).inc()


def record_signer_rotation(outcome: str) -> None:
    signer_rotations_counter.labels(outcome=outcome).inc()


def record_tournament_entry(outcome: str) -> None:
    """Outcome is "entered" or the exception class name of the revert."""
    tournament_entries_counter.labels(outcome=outcome).inc()
