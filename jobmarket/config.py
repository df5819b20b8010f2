"""
Runtime configuration.

Values come from environment variables (optionally loaded from .env via
env.load_env), falling back to defaults suited for local SQLite use.
"""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path("data/jobmarket.db")

# Share of a client's outstanding unpaid job total they may deposit.
DEFAULT_DEPOSIT_CAP_PERCENT = 25


@dataclass
class Settings:
    """Settings shared by the database layer and the workflows."""

    db_path: Path = DEFAULT_DB_PATH
    deposit_cap_percent: int = DEFAULT_DEPOSIT_CAP_PERCENT
    max_retries: int = 3
    retry_base_delay: float = 0.05
    busy_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from JOBMARKET_* environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            db_path=Path(os.getenv("JOBMARKET_DB", str(DEFAULT_DB_PATH))),
            deposit_cap_percent=int(
                os.getenv("JOBMARKET_DEPOSIT_CAP_PERCENT", DEFAULT_DEPOSIT_CAP_PERCENT)
            ),
            max_retries=int(os.getenv("JOBMARKET_MAX_RETRIES", 3)),
            retry_base_delay=float(os.getenv("JOBMARKET_RETRY_BASE_DELAY", 0.05)),
            busy_timeout=float(os.getenv("JOBMARKET_BUSY_TIMEOUT", 30.0)),
        )
