"""Shared fixtures: a seeded in-memory ledger and a processor with a fixed clock."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from ledger_engine import InMemoryLedgerStore, LedgerProcessor
from ledger_engine.config import EngineConfig
from ledger_engine.models import (
    AccountType,
    Agency,
    Client,
    Collector,
    CommissionParameter,
    CommissionTier,
    CommissionType,
    Deposit,
    ParameterScope,
    RemunerationRubric,
)

NOW = datetime(2025, 2, 1, 9, 0, 0)

AGENCY_ID = 1
COLLECTOR_ID = 10
OTHER_COLLECTOR_ID = 20

JANUARY_START = date(2025, 1, 1)
JANUARY_END = date(2025, 1, 31)


def money(value) -> Decimal:
    return Decimal(str(value))


def tiers(*rows) -> list[CommissionTier]:
    """tiers((0, 100000, 5), (100001, None, 3)) -> list of CommissionTier."""
    return [
        CommissionTier(money(lo), money(hi) if hi is not None else None, money(rate))
        for lo, hi, rate in rows
    ]


def fixed_rubric(name: str, amount, collector_id: int = COLLECTOR_ID, **kwargs) -> RemunerationRubric:
    return RemunerationRubric(
        name=name,
        type=CommissionType.FIXED,
        effective_date=date(2025, 1, 1),
        value=money(amount),
        collector_ids={collector_id},
        **kwargs,
    )


def seed(store):
    """Agency 1 with collectors 10 and 20; clients 100-102 belong to collector 10."""
    store.add_agency(Agency(AGENCY_ID, "Douala Centre"))
    store.add_collector(Collector(COLLECTOR_ID, AGENCY_ID, "Paul Mbarga"))
    store.add_collector(Collector(OTHER_COLLECTOR_ID, AGENCY_ID, "Ines Fotso"))
    store.add_client(Client(100, COLLECTOR_ID, "Awa"))
    store.add_client(Client(101, COLLECTOR_ID, "Bello"))
    store.add_client(Client(102, COLLECTOR_ID, "Chantal"))
    store.add_client(Client(200, OTHER_COLLECTOR_ID, "Daniel"))
    return store


@pytest.fixture
def store():
    return seed(InMemoryLedgerStore())


@pytest.fixture
def config():
    return EngineConfig(retry_backoff_seconds=0)


@pytest.fixture
def processor(store, config):
    return LedgerProcessor(store, config=config, clock=lambda: NOW)


def deposit(store, client_id: int, amount, on: date = date(2025, 1, 15)) -> None:
    """Record savings collected from a client on a given day."""
    store.record_deposit(Deposit(client_id, money(amount), on))


def fund(processor, client_id: int, amount) -> None:
    """Move value into a client account so the closed ledger stays balanced."""
    waiting = processor.accounts.get_or_create(AGENCY_ID, AccountType.WAITING)
    client_account = processor.accounts.client_account(client_id)
    processor.movements.transfer(waiting, client_account, money(amount), "Savings deposit")


def percentage_parameter(scope: ParameterScope, owner_id: int, rate) -> CommissionParameter:
    return CommissionParameter(scope=scope, owner_id=owner_id, type=CommissionType.PERCENTAGE, value=money(rate))


def balance(processor, account_type: AccountType, owner_id: int) -> Decimal:
    account = processor.store.find_account(account_type, owner_id)
    return account.balance if account is not None else Decimal("0")
