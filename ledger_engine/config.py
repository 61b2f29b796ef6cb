"""
Engine configuration, read from the environment.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineConfig:
    environment: str = "dev"
    retry_attempts: int = 3
    retry_backoff_seconds: float = 0.05
    batch_workers: int = 4
    percentage_warning_threshold: Decimal = Decimal("20")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            retry_attempts=int(os.environ.get("LEDGER_RETRY_ATTEMPTS", 3)),
            retry_backoff_seconds=float(os.environ.get("LEDGER_RETRY_BACKOFF_SECONDS", 0.05)),
            batch_workers=int(os.environ.get("LEDGER_BATCH_WORKERS", 4)),
            percentage_warning_threshold=Decimal(
                os.environ.get("LEDGER_PERCENTAGE_WARNING_THRESHOLD", "20")
            ),
        )
