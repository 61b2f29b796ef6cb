"""
Ledger Movement Factory

Builds balanced double-entry movements and commits them through the store.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable

from .calculators.money import quantize_money
from .config import EngineConfig
from .errors import InvalidMovement, InvalidMovementAmount
from .models import Account, Movement, MovementKind
from .retry import with_retry
from .store import LedgerStore


class LedgerMovementFactory:
    """Creates and commits movements.

    A zero commission is never recorded: callers skip it before reaching the
    factory, and the factory rejects any amount <= 0.

    Commits are retried on transient store errors; the store applies a batch
    all-or-nothing, so a retried batch is never half-applied.
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime] = datetime.now,
        config: EngineConfig | None = None,
    ):
        self.store = store
        self.clock = clock
        self.config = config or EngineConfig()

    def create_movement(
        self,
        source: Account,
        destination: Account,
        amount: Decimal,
        label: str,
        kind: MovementKind = MovementKind.TRANSFER,
    ) -> Movement:
        if amount <= 0:
            raise InvalidMovementAmount(f"Movement amount must be positive, got: {amount} ({label})")
        if source.account_id == destination.account_id:
            raise InvalidMovement(f"Source and destination are the same account {source.number} ({label})")

        return Movement(
            source_account_id=source.account_id,
            destination_account_id=destination.account_id,
            amount=quantize_money(amount),
            label=label,
            timestamp=self.clock(),
            kind=kind,
        )

    def commit(self, movement: Movement) -> Movement:
        return self.commit_all([movement])[0]

    def commit_all(self, movements: list[Movement]) -> list[Movement]:
        """Commit several movements as one all-or-nothing unit."""
        return with_retry(
            lambda: self.store.apply_movements(movements),
            f"commit of {len(movements)} movement(s)",
            attempts=self.config.retry_attempts,
            backoff_seconds=self.config.retry_backoff_seconds,
        )

    def transfer(
        self,
        source: Account,
        destination: Account,
        amount: Decimal,
        label: str,
        kind: MovementKind = MovementKind.TRANSFER,
    ) -> Movement:
        return self.commit(self.create_movement(source, destination, amount, label, kind))
