"""Command line interface for badgeledger."""
