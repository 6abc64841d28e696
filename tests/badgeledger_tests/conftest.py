"""
Shared fixtures for badgeledger tests.
"""

import logging

import pytest

from badgeledger.core.achievement_service import AchievementService
from badgeledger.core.attestation_signer import AttestationSigner
from badgeledger.core.attestation_store import AttestationStore
from badgeledger.core.contracts import AchievementBadges
from badgeledger.core.player_registry import PlayerRegistry


@pytest.fixture
def store():
    s = AttestationStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def registry(store):
    r = PlayerRegistry(connection=store.db, lock=store.lock)
    yield r
    r.close()


@pytest.fixture
def signer(store, signer_key):
    private_key, _ = signer_key
    return AttestationSigner(store, private_key)


@pytest.fixture
def ledger(owner_key, signer_key):
    _, owner = owner_key
    _, signer_address = signer_key
    return AchievementBadges.deploy(owner=owner, signer=signer_address)


@pytest.fixture
def service(registry, store, signer):
    return AchievementService(registry, store, signer)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI runs attach handlers to captured streams; drop them afterwards."""
    yield
    package_logger = logging.getLogger("badgeledger")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
