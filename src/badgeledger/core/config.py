"""
badgeledger Configuration

Supports testnet and mainnet with separate requirements.

SECURITY NOTICE:
- The signer private key MUST be provided via environment variable on mainnet
- Never commit keys to version control
- Use different keys for testnet vs mainnet
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional

from badgeledger.core.crypto_utils import address_from_private_key, generate_keypair_hex
from badgeledger.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "BADGELEDGER_"


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


def _env(environ: Mapping[str, str], name: str, default: str = "") -> str:
    return environ.get(ENV_PREFIX + name, default).strip()


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(environ, name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be an integer, got {raw!r}",
            details={"env_var": ENV_PREFIX + name},
        ) from e


def _get_required_secret(
    environ: Mapping[str, str],
    name: str,
    network: NetworkType,
    generator: Optional[Callable[[], str]] = None,
) -> str:
    """Get a required secret from environment, with mainnet enforcement.

    On mainnet, missing secrets raise ConfigurationError.
    On testnet, missing secrets are generated with a warning.
    """
    value = _env(environ, name)
    if value:
        return value

    env_var = ENV_PREFIX + name
    if network is NetworkType.MAINNET:
        raise ConfigurationError(
            f"CRITICAL: {env_var} environment variable required for mainnet. "
            "Generate a key with: badgeledger keys generate",
            details={"env_var": env_var},
        )

    generated = generator() if generator else generate_keypair_hex()[0]
    logger.warning(
        "Security: %s not set, using generated value for testnet. "
        "Set this environment variable for production.",
        env_var,
        extra={"event": "config.secret_generated", "env_var": env_var},
    )
    return generated


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read once from ``BADGELEDGER_*`` variables."""

    network: NetworkType = NetworkType.TESTNET
    signer_private_key: str = ""
    owner_address: str = ""
    database_path: str = "badgeledger.db"
    ledger_state_path: str = "ledger_state.json"
    api_host: str = "127.0.0.1"
    api_port: int = 3001
    log_level: str = "INFO"
    log_file: str = ""
    max_json_bytes: int = 64 * 1024
    leaderboard_limit: int = 50

    def __repr__(self) -> str:
        return (
            f"Settings(network={self.network.value!r}, signer={self.signer_address!r}, "
            f"database_path={self.database_path!r}, api={self.api_host}:{self.api_port})"
        )

    @property
    def signer_address(self) -> str:
        return address_from_private_key(self.signer_private_key) if self.signer_private_key else ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ConfigurationError: On an unknown network, a malformed value, or
                a missing signer key on mainnet
        """
        environ = os.environ if environ is None else environ

        network_raw = _env(environ, "NETWORK", "testnet").lower()
        try:
            network = NetworkType(network_raw)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown network {network_raw!r}; expected testnet or mainnet"
            ) from e

        signer_key = _get_required_secret(environ, "SIGNER_PRIVATE_KEY", network)
        try:
            address_from_private_key(signer_key)
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_PREFIX}SIGNER_PRIVATE_KEY is not a valid private key: {e}"
            ) from e

        settings = cls(
            network=network,
            signer_private_key=signer_key,
            owner_address=_env(environ, "OWNER_ADDRESS"),
            database_path=_env(environ, "DATABASE_PATH", cls.database_path),
            ledger_state_path=_env(environ, "LEDGER_STATE_PATH", cls.ledger_state_path),
            api_host=_env(environ, "API_HOST", cls.api_host),
            api_port=_get_int(environ, "API_PORT", cls.api_port),
            log_level=_env(environ, "LOG_LEVEL", cls.log_level).upper(),
            log_file=_env(environ, "LOG_FILE"),
            max_json_bytes=_get_int(environ, "API_MAX_JSON_BYTES", cls.max_json_bytes),
            leaderboard_limit=_get_int(environ, "LEADERBOARD_LIMIT", cls.leaderboard_limit),
        )

        if settings.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Unknown log level {settings.log_level!r}")
        if settings.leaderboard_limit <= 0:
            raise ConfigurationError("Leaderboard limit must be positive")
        return settings
