"""Runtime configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
GIGLEDGER_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class GigLedgerConfig(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export GIGLEDGER_LOG_LEVEL=DEBUG
        export GIGLEDGER_LEDGER_PATH=/data/chain.db
        export GIGLEDGER_ACCOUNT=0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed

    Or via .env file::

        GIGLEDGER_SETTLEMENT_TIMEOUT_SECONDS=60
        GIGLEDGER_AUTO_MINE=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GIGLEDGER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Ledger transport
    ledger_path: Path = Path(".gigledger/chain.db")
    auto_mine: bool = True

    # Signing identity; empty means no wallet connected
    account: str = ""

    # Settlement
    settlement_timeout_seconds: float = 30.0
    settlement_poll_interval_seconds: float = 0.25

    # Read-model
    not_found_retries: int = 1
    reputation_per_completed: int = 10


# Module-level singleton; import as `from gigledger.config import config`
config = GigLedgerConfig()
