"""
Ledger contracts for achievement badges.

This module provides:
- AchievementBadges: credential verification and one-time redemption
- SignerGovernance: owner-gated authorized signer rotation
- TournamentManager: entry-fee tournaments with one entry per player
"""

from .achievement_badges import AchievementBadges, BadgeEvent, decode_signature
from .signer_governance import SignerEvent, SignerGovernance
from .tournament_manager import Tournament, TournamentEvent, TournamentManager

__all__ = [
    "AchievementBadges",
    "BadgeEvent",
    "SignerEvent",
    "SignerGovernance",
    "Tournament",
    "TournamentEvent",
    "TournamentManager",
    "decode_signature",
]
