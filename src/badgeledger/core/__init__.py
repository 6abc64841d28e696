"""
badgeledger Core Module

Eligibility rules, attestation storage and signing, ledger contracts,
configuration, logging and the HTTP API.
"""

__all__ = []
