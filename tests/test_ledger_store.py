"""
Tests for the in-memory ledger store: atomic movement commit, balance
conservation, record uniqueness and concurrent balance updates.
"""

import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from ledger_engine.errors import AccountConflict, DuplicateCalculation, EntityNotFound, InvalidMovement
from ledger_engine.models import AccountType, CalculationStatus, CommissionCalculationRecord, Movement
from ledger_engine.store import InMemoryLedgerStore, LedgerStore

from conftest import COLLECTOR_ID, NOW, deposit


def movement(source, destination, amount, label="test"):
    return Movement(
        source_account_id=source.account_id,
        destination_account_id=destination.account_id,
        amount=Decimal(amount),
        label=label,
        timestamp=NOW,
    )


class FailingStore(InMemoryLedgerStore):
    """Fails the nth balance write, to exercise rollback."""

    def __init__(self, fail_on_write: int):
        super().__init__()
        self.fail_on_write = fail_on_write
        self.writes = 0

    def _write_balance(self, account_id, balance):
        self.writes += 1
        if self.writes == self.fail_on_write:
            raise RuntimeError("disk full")
        super()._write_balance(account_id, balance)


class TestMovementCommit:

    @pytest.fixture
    def accounts(self, store):
        return [
            store.insert_account(AccountType.CLIENT, 100, "CLI-000100"),
            store.insert_account(AccountType.PASSAGE_COMMISSION, 1, "CPCC-000001"),
            store.insert_account(AccountType.PASSAGE_TAX, 1, "CPT-000001"),
        ]

    def test_movement_debits_source_and_credits_destination(self, store, accounts):
        client, passage, _ = accounts
        store.apply_movements([movement(client, passage, "1500.00")])

        assert store.get_account(client.account_id).balance == Decimal("-1500.00")
        assert store.get_account(passage.account_id).balance == Decimal("1500.00")

    def test_total_balance_is_conserved(self, store, accounts):
        client, passage, tax = accounts
        before = store.total_balance()

        store.apply_movements([
            movement(client, passage, "1500.00"),
            movement(client, tax, "288.75"),
            movement(passage, tax, "10.00"),
        ])

        assert store.total_balance() == before

    def test_committed_movements_get_ids_and_are_listed(self, store, accounts):
        client, passage, _ = accounts
        committed = store.apply_movements([movement(client, passage, "10")])

        assert committed[0].movement_id is not None
        assert store.account_movements(client.account_id) == committed
        assert store.all_movements() == committed

    def test_empty_batch_is_a_no_op(self, store):
        assert store.apply_movements([]) == []

    def test_unknown_account_rejected_before_any_write(self, store, accounts):
        client, passage, _ = accounts
        ghost = Movement(client.account_id, 9999, Decimal("10"), "ghost", NOW)

        with pytest.raises(InvalidMovement, match="Unknown account"):
            store.apply_movements([movement(client, passage, "10"), ghost])

        assert store.get_account(client.account_id).balance == Decimal("0")
        assert store.all_movements() == []

    def test_same_source_and_destination_rejected(self, store, accounts):
        client = accounts[0]
        with pytest.raises(InvalidMovement):
            store.apply_movements([movement(client, client, "10")])


class TestAtomicRollback:
    """A failure in the middle of a batch leaves no trace."""

    def test_failed_write_restores_every_balance(self):
        # Write 3 is the debit of the second movement
        store = FailingStore(fail_on_write=3)
        client = store.insert_account(AccountType.CLIENT, 100, "CLI-000100")
        passage = store.insert_account(AccountType.PASSAGE_COMMISSION, 1, "CPCC-000001")
        tax = store.insert_account(AccountType.PASSAGE_TAX, 1, "CPT-000001")

        with pytest.raises(RuntimeError, match="disk full"):
            store.apply_movements([movement(client, passage, "1500"), movement(client, tax, "288.75")])

        for account in (client, passage, tax):
            assert store.get_account(account.account_id).balance == Decimal("0")
        assert store.all_movements() == []

    def test_store_usable_after_rollback(self):
        store = FailingStore(fail_on_write=1)
        client = store.insert_account(AccountType.CLIENT, 100, "CLI-000100")
        passage = store.insert_account(AccountType.PASSAGE_COMMISSION, 1, "CPCC-000001")

        with pytest.raises(RuntimeError):
            store.apply_movements([movement(client, passage, "5")])
        store.apply_movements([movement(client, passage, "5")])

        assert store.get_account(passage.account_id).balance == Decimal("5")


class TestConcurrentBalances:

    def test_parallel_transfers_do_not_lose_updates(self, store):
        source = store.insert_account(AccountType.WAITING, 1, "CA-000001")
        destinations = [
            store.insert_account(AccountType.CLIENT, client_id, f"CLI-{client_id:06d}")
            for client_id in (100, 101, 102, 103)
        ]

        def worker(destination):
            for _ in range(50):
                store.apply_movements([movement(source, destination, "1.00")])

        threads = [threading.Thread(target=worker, args=(d,)) for d in destinations]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_account(source.account_id).balance == Decimal("-200.00")
        assert store.total_balance() == Decimal("0")
        assert len(store.all_movements()) == 200


class TestRecords:

    def _record(self, start=date(2025, 1, 1), end=date(2025, 1, 31)):
        return CommissionCalculationRecord(
            collector_id=COLLECTOR_ID, agency_id=1, period_start=start, period_end=end, created_at=NOW
        )

    def test_one_live_record_per_collector_and_period(self, store):
        store.insert_calculation(self._record())

        with pytest.raises(DuplicateCalculation):
            store.insert_calculation(self._record())

    def test_cancelled_record_frees_the_period(self, store):
        first = store.insert_calculation(self._record())
        first.status = CalculationStatus.CANCELLED
        store.update_calculation(first)

        second = store.insert_calculation(self._record())

        assert second.calculation_id != first.calculation_id
        assert store.find_calculation(COLLECTOR_ID, date(2025, 1, 1), date(2025, 1, 31)) is second

    def test_different_period_is_independent(self, store):
        store.insert_calculation(self._record())
        store.insert_calculation(self._record(start=date(2025, 1, 1), end=date(2025, 1, 15)))

        assert len(store.calculations_for_collector(COLLECTOR_ID)) == 2

    def test_history_is_newest_first(self, store):
        older = self._record()
        newer = self._record(start=date(2025, 2, 1), end=date(2025, 2, 28))
        newer.created_at = datetime(2025, 3, 1)
        store.insert_calculation(older)
        store.insert_calculation(newer)

        assert store.calculations_for_collector(COLLECTOR_ID)[0] is newer

    def test_duplicate_account_is_a_conflict(self, store):
        store.insert_account(AccountType.CLIENT, 100, "CLI-000100")

        with pytest.raises(AccountConflict):
            store.insert_account(AccountType.CLIENT, 100, "CLI-000100")

    def test_lookups_of_unknown_entities_raise(self, store):
        with pytest.raises(EntityNotFound):
            store.get_collector(999)
        with pytest.raises(EntityNotFound):
            store.get_calculation(999)

    def test_collected_amount_is_inclusive_of_period_bounds(self, store):
        deposit(store, 100, "1000", on=date(2025, 1, 1))
        deposit(store, 100, "2000", on=date(2025, 1, 31))
        deposit(store, 100, "4000", on=date(2025, 2, 1))

        assert store.collected_amount(100, date(2025, 1, 1), date(2025, 1, 31)) == Decimal("3000")


class TestStoreContract:

    def test_interface_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            LedgerStore()

    def test_partial_implementation_is_rejected(self):
        class LookupOnlyStore(LedgerStore):
            def get_collector(self, collector_id):
                return None

        with pytest.raises(TypeError):
            LookupOnlyStore()
