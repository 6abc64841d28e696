"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"

sys.path.insert(0, str(src_path))

import pytest

from badgeledger.core.crypto_utils import generate_keypair_hex


@pytest.fixture
def keypair():
    """Factory returning fresh (private key hex, checksummed address) pairs."""
    return generate_keypair_hex


@pytest.fixture
def signer_key():
    return generate_keypair_hex()


@pytest.fixture
def owner_key():
    return generate_keypair_hex()


@pytest.fixture
def player_key():
    return generate_keypair_hex()
