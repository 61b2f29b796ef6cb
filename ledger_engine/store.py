"""
Data-access boundary.

LedgerStore is the contract the engine consumes: entity lookups, record
persistence, account get/insert and atomic movement commit. The engine never
navigates an object graph; every lookup goes through this interface.

InMemoryLedgerStore is the reference implementation used by the API layer
and the test suite. Balances are running totals mutated under per-account
locks; a movement batch is applied all-or-nothing.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from contextlib import ExitStack
from dataclasses import replace
from datetime import date
from decimal import Decimal

from .errors import AccountConflict, DuplicateCalculation, EntityNotFound, InvalidMovement
from .models import (
    Account,
    AccountType,
    Agency,
    CalculationStatus,
    Client,
    Collector,
    CommissionCalculationRecord,
    CommissionParameter,
    Deposit,
    Movement,
    ParameterScope,
    RemunerationRecord,
    RemunerationRubric,
)


class LedgerStore(ABC):
    """Interface of the persistence collaborator."""

    # Reference data

    @abstractmethod
    def get_collector(self, collector_id: int) -> Collector:
        raise NotImplementedError

    @abstractmethod
    def get_client(self, client_id: int) -> Client:
        raise NotImplementedError

    @abstractmethod
    def clients_for_collector(self, collector_id: int) -> list[Client]:
        raise NotImplementedError

    @abstractmethod
    def collected_amount(self, client_id: int, start: date, end: date) -> Decimal:
        raise NotImplementedError

    # Commission parameters and rubrics

    @abstractmethod
    def find_parameter(self, scope: ParameterScope, owner_id: int, on_date: date) -> CommissionParameter | None:
        raise NotImplementedError

    @abstractmethod
    def get_parameter(self, parameter_id: int) -> CommissionParameter:
        raise NotImplementedError

    @abstractmethod
    def save_parameter(self, parameter: CommissionParameter) -> CommissionParameter:
        raise NotImplementedError

    @abstractmethod
    def rubrics_for_collector(self, collector_id: int) -> list[RemunerationRubric]:
        raise NotImplementedError

    @abstractmethod
    def save_rubric(self, rubric: RemunerationRubric) -> RemunerationRubric:
        raise NotImplementedError

    # Calculation and remuneration records

    @abstractmethod
    def find_calculation(self, collector_id: int, start: date, end: date) -> CommissionCalculationRecord | None:
        raise NotImplementedError

    @abstractmethod
    def insert_calculation(self, record: CommissionCalculationRecord) -> CommissionCalculationRecord:
        raise NotImplementedError

    @abstractmethod
    def update_calculation(self, record: CommissionCalculationRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_calculation(self, calculation_id: int) -> CommissionCalculationRecord:
        raise NotImplementedError

    @abstractmethod
    def calculations_for_collector(self, collector_id: int) -> list[CommissionCalculationRecord]:
        raise NotImplementedError

    @abstractmethod
    def save_remuneration(self, record: RemunerationRecord) -> RemunerationRecord:
        raise NotImplementedError

    @abstractmethod
    def remunerations_for_collector(self, collector_id: int) -> list[RemunerationRecord]:
        raise NotImplementedError

    # Accounts and movements

    @abstractmethod
    def find_account(self, account_type: AccountType, owner_id: int) -> Account | None:
        raise NotImplementedError

    @abstractmethod
    def insert_account(self, account_type: AccountType, owner_id: int, number: str) -> Account:
        raise NotImplementedError

    @abstractmethod
    def get_account(self, account_id: int) -> Account:
        raise NotImplementedError

    @abstractmethod
    def apply_movements(self, movements: list[Movement]) -> list[Movement]:
        raise NotImplementedError

    @abstractmethod
    def account_movements(self, account_id: int) -> list[Movement]:
        raise NotImplementedError


class InMemoryLedgerStore(LedgerStore):
    """Thread-safe in-memory store.

    Usage:
        store = InMemoryLedgerStore()
        store.add_agency(Agency(1, "Douala"))
        store.add_collector(Collector(10, 1, "Paul"))
        store.add_client(Client(100, 10, "Awa"))
        store.record_deposit(Deposit(100, Decimal("50000"), date(2025, 1, 5)))
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._agencies: dict[int, Agency] = {}
        self._collectors: dict[int, Collector] = {}
        self._clients: dict[int, Client] = {}
        self._deposits: list[Deposit] = []
        self._parameters: dict[int, CommissionParameter] = {}
        self._rubrics: dict[int, RemunerationRubric] = {}
        self._calculations: dict[int, CommissionCalculationRecord] = {}
        self._remunerations: dict[int, RemunerationRecord] = {}
        self._accounts: dict[int, Account] = {}
        self._accounts_by_owner: dict[tuple[AccountType, int], int] = {}
        self._account_locks: dict[int, threading.Lock] = {}
        self._movements: list[Movement] = []

    def _next_id(self) -> int:
        return next(self._ids)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def add_agency(self, agency: Agency) -> None:
        with self._lock:
            self._agencies[agency.agency_id] = agency

    def add_collector(self, collector: Collector) -> None:
        with self._lock:
            self._collectors[collector.collector_id] = collector

    def add_client(self, client: Client) -> None:
        with self._lock:
            self._clients[client.client_id] = client

    def record_deposit(self, deposit: Deposit) -> None:
        with self._lock:
            self._deposits.append(deposit)

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def get_collector(self, collector_id: int) -> Collector:
        with self._lock:
            if collector_id not in self._collectors:
                raise EntityNotFound(f"Collector not found: {collector_id}")
            return self._collectors[collector_id]

    def get_client(self, client_id: int) -> Client:
        with self._lock:
            if client_id not in self._clients:
                raise EntityNotFound(f"Client not found: {client_id}")
            return self._clients[client_id]

    def clients_for_collector(self, collector_id: int) -> list[Client]:
        with self._lock:
            clients = [c for c in self._clients.values() if c.collector_id == collector_id]
        return sorted(clients, key=lambda c: c.client_id)

    def collected_amount(self, client_id: int, start: date, end: date) -> Decimal:
        with self._lock:
            return sum(
                (d.amount for d in self._deposits
                 if d.client_id == client_id and start <= d.collected_on <= end),
                Decimal("0"),
            )

    # ------------------------------------------------------------------
    # Parameters and rubrics
    # ------------------------------------------------------------------

    def find_parameter(self, scope: ParameterScope, owner_id: int, on_date: date) -> CommissionParameter | None:
        with self._lock:
            candidates = [
                p for p in self._parameters.values()
                if p.scope == scope and p.owner_id == owner_id and p.is_valid_on(on_date)
            ]
        if not candidates:
            return None
        # Most recently defined parameter wins within one scope
        return max(candidates, key=lambda p: p.parameter_id)

    def get_parameter(self, parameter_id: int) -> CommissionParameter:
        with self._lock:
            if parameter_id not in self._parameters:
                raise EntityNotFound(f"Commission parameter not found: {parameter_id}")
            return self._parameters[parameter_id]

    def save_parameter(self, parameter: CommissionParameter) -> CommissionParameter:
        with self._lock:
            if parameter.parameter_id is None:
                parameter.parameter_id = self._next_id()
            self._parameters[parameter.parameter_id] = parameter
            return parameter

    def rubrics_for_collector(self, collector_id: int) -> list[RemunerationRubric]:
        with self._lock:
            return [r for r in self._rubrics.values() if r.applies_to(collector_id)]

    def save_rubric(self, rubric: RemunerationRubric) -> RemunerationRubric:
        with self._lock:
            if rubric.rubric_id is None:
                rubric.rubric_id = self._next_id()
            self._rubrics[rubric.rubric_id] = rubric
            return rubric

    # ------------------------------------------------------------------
    # Calculation and remuneration records
    # ------------------------------------------------------------------

    def find_calculation(self, collector_id: int, start: date, end: date) -> CommissionCalculationRecord | None:
        with self._lock:
            for record in self._calculations.values():
                if (record.collector_id == collector_id
                        and record.period_start == start
                        and record.period_end == end
                        and record.status != CalculationStatus.CANCELLED):
                    return record
        return None

    def insert_calculation(self, record: CommissionCalculationRecord) -> CommissionCalculationRecord:
        """Insert, enforcing one non-cancelled record per (collector, exact period)."""
        with self._lock:
            existing = self.find_calculation(record.collector_id, record.period_start, record.period_end)
            if existing is not None:
                raise DuplicateCalculation(
                    f"Calculation already exists for collector {record.collector_id} "
                    f"on period {existing.period_description} (id {existing.calculation_id})"
                )
            record.calculation_id = self._next_id()
            self._calculations[record.calculation_id] = record
            return record

    def update_calculation(self, record: CommissionCalculationRecord) -> None:
        with self._lock:
            if record.calculation_id not in self._calculations:
                raise EntityNotFound(f"Calculation not found: {record.calculation_id}")
            self._calculations[record.calculation_id] = record

    def get_calculation(self, calculation_id: int) -> CommissionCalculationRecord:
        with self._lock:
            if calculation_id not in self._calculations:
                raise EntityNotFound(f"Calculation not found: {calculation_id}")
            return self._calculations[calculation_id]

    def calculations_for_collector(self, collector_id: int) -> list[CommissionCalculationRecord]:
        with self._lock:
            records = [r for r in self._calculations.values() if r.collector_id == collector_id]
        return sorted(records, key=lambda r: (r.created_at, r.calculation_id), reverse=True)

    def save_remuneration(self, record: RemunerationRecord) -> RemunerationRecord:
        with self._lock:
            if record.remuneration_id is None:
                record.remuneration_id = self._next_id()
            self._remunerations[record.remuneration_id] = record
            return record

    def remunerations_for_collector(self, collector_id: int) -> list[RemunerationRecord]:
        with self._lock:
            records = [r for r in self._remunerations.values() if r.collector_id == collector_id]
        return sorted(records, key=lambda r: (r.created_at, r.remuneration_id), reverse=True)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def find_account(self, account_type: AccountType, owner_id: int) -> Account | None:
        with self._lock:
            account_id = self._accounts_by_owner.get((account_type, owner_id))
            if account_id is None:
                return None
            return replace(self._accounts[account_id])

    def insert_account(self, account_type: AccountType, owner_id: int, number: str) -> Account:
        """Create a zero-balance account. (type, owner) is unique."""
        with self._lock:
            key = (account_type, owner_id)
            if key in self._accounts_by_owner:
                raise AccountConflict(f"{account_type.value} account already exists for owner {owner_id}")
            account = Account(
                account_id=self._next_id(),
                number=number,
                account_type=account_type,
                owner_id=owner_id,
            )
            self._accounts[account.account_id] = account
            self._accounts_by_owner[key] = account.account_id
            self._account_locks[account.account_id] = threading.Lock()
            return replace(account)

    def get_account(self, account_id: int) -> Account:
        with self._lock:
            if account_id not in self._accounts:
                raise EntityNotFound(f"Account not found: {account_id}")
            return replace(self._accounts[account_id])

    def total_balance(self) -> Decimal:
        with self._lock:
            return sum((a.balance for a in self._accounts.values()), Decimal("0"))

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def apply_movements(self, movements: list[Movement]) -> list[Movement]:
        """
        Commit a batch of movements all-or-nothing.

        Each movement debits its source and credits its destination by the
        same amount. Locks are taken on every touched account in id order;
        if any balance write fails, every balance touched by the batch is
        restored and no movement is appended.
        """
        if not movements:
            return []

        with self._lock:
            for movement in movements:
                for account_id in (movement.source_account_id, movement.destination_account_id):
                    if account_id not in self._accounts:
                        raise InvalidMovement(f"Unknown account {account_id} in movement '{movement.label}'")
                if movement.source_account_id == movement.destination_account_id:
                    raise InvalidMovement(
                        f"Movement '{movement.label}' uses account {movement.source_account_id} "
                        f"as both source and destination"
                    )
            touched = sorted({
                account_id
                for m in movements
                for account_id in (m.source_account_id, m.destination_account_id)
            })
            locks = [self._account_locks[account_id] for account_id in touched]

        with ExitStack() as stack:
            for lock in locks:
                stack.enter_context(lock)

            snapshot = {account_id: self._accounts[account_id].balance for account_id in touched}
            try:
                for movement in movements:
                    source = self._accounts[movement.source_account_id]
                    destination = self._accounts[movement.destination_account_id]
                    self._write_balance(source.account_id, source.balance - movement.amount)
                    self._write_balance(destination.account_id, destination.balance + movement.amount)
            except Exception:
                for account_id, balance in snapshot.items():
                    self._accounts[account_id].balance = balance
                raise

            with self._lock:
                committed = []
                for movement in movements:
                    stored = replace(movement, movement_id=self._next_id())
                    self._movements.append(stored)
                    committed.append(stored)
        return committed

    def _write_balance(self, account_id: int, balance: Decimal) -> None:
        self._accounts[account_id].balance = balance

    def account_movements(self, account_id: int) -> list[Movement]:
        with self._lock:
            return [
                m for m in self._movements
                if account_id in (m.source_account_id, m.destination_account_id)
            ]

    def all_movements(self) -> list[Movement]:
        with self._lock:
            return list(self._movements)
