"""
badgeledger - Verifiable Achievement Credentials

Issues signed achievement credentials for game milestones and redeems each
one exactly once on a badge ledger.

Main Components:
- Eligibility: achievement catalog and rules evaluated per submitted game
- Attestation: durable earned records and the credential signer
- Ledger: one-time redemption and owner-gated signer rotation
- API / CLI: Flask service and operator tooling
"""

__version__ = "0.1.0"

__all__ = []
