"""
Domain Models for the Commission & Remuneration Ledger Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal

from .errors import InvalidCommissionParameter


def _decimal(value) -> Decimal:
    return Decimal(str(value))


def _optional_decimal(value) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _optional_date(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


# =============================================================================
# ENUMS
# =============================================================================


class CommissionType(str, enum.Enum):
    """How a commission (or a rubric's Vi) is computed."""

    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"
    TIER = "TIER"


class ParameterScope(str, enum.Enum):
    """Owner level of a commission parameter. CLIENT has highest priority."""

    CLIENT = "CLIENT"
    COLLECTOR = "COLLECTOR"
    AGENCY = "AGENCY"


class OwnerKind(str, enum.Enum):
    CLIENT = "CLIENT"
    COLLECTOR = "COLLECTOR"
    AGENCY = "AGENCY"


class AccountType(str, enum.Enum):
    """Account classification. Each type belongs to exactly one owner kind."""

    CLIENT = "CLIENT"
    COLLECTOR_SERVICE = "COLLECTOR_SERVICE"
    COLLECTOR_SALARY = "COLLECTOR_SALARY"
    PASSAGE_COMMISSION = "PASSAGE_COMMISSION"
    PASSAGE_TAX = "PASSAGE_TAX"
    CHARGE = "CHARGE"
    PRODUCT = "PRODUCT"
    TAX = "TAX"
    WAITING = "WAITING"
    LIAISON = "LIAISON"

    @property
    def owner_kind(self) -> OwnerKind:
        return ACCOUNT_OWNER_KINDS[self]

    @property
    def number_prefix(self) -> str:
        return ACCOUNT_NUMBER_PREFIXES[self]


ACCOUNT_OWNER_KINDS: dict[AccountType, OwnerKind] = {
    AccountType.CLIENT: OwnerKind.CLIENT,
    AccountType.COLLECTOR_SERVICE: OwnerKind.COLLECTOR,
    AccountType.COLLECTOR_SALARY: OwnerKind.COLLECTOR,
    AccountType.PASSAGE_COMMISSION: OwnerKind.AGENCY,
    AccountType.PASSAGE_TAX: OwnerKind.AGENCY,
    AccountType.CHARGE: OwnerKind.AGENCY,
    AccountType.PRODUCT: OwnerKind.AGENCY,
    AccountType.TAX: OwnerKind.AGENCY,
    AccountType.WAITING: OwnerKind.AGENCY,
    AccountType.LIAISON: OwnerKind.AGENCY,
}

ACCOUNT_NUMBER_PREFIXES: dict[AccountType, str] = {
    AccountType.CLIENT: "CLI",
    AccountType.COLLECTOR_SERVICE: "CSV",
    AccountType.COLLECTOR_SALARY: "CSC",
    AccountType.PASSAGE_COMMISSION: "CPCC",
    AccountType.PASSAGE_TAX: "CPT",
    AccountType.CHARGE: "CCC",
    AccountType.PRODUCT: "CPC",
    AccountType.TAX: "CT",
    AccountType.WAITING: "CA",
    AccountType.LIAISON: "CL",
}


class MovementKind(str, enum.Enum):
    """What a movement moves: the direction tag carried on every ledger entry."""

    COMMISSION = "COMMISSION"
    TAX = "TAX"
    REMUNERATION = "REMUNERATION"
    CHARGE = "CHARGE"
    SURPLUS = "SURPLUS"
    TRANSFER = "TRANSFER"


class CalculationStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    CALCULATED = "CALCULATED"
    CANCELLED = "CANCELLED"


# =============================================================================
# REFERENCE ENTITIES (owned by the data-access boundary)
# =============================================================================


@dataclass(frozen=True)
class Agency:
    agency_id: int
    name: str


@dataclass(frozen=True)
class Collector:
    collector_id: int
    agency_id: int
    name: str


@dataclass(frozen=True)
class Client:
    client_id: int
    collector_id: int
    name: str


@dataclass(frozen=True)
class Deposit:
    """A single savings amount gathered from a client by its collector."""

    client_id: int
    amount: Decimal
    collected_on: date


# =============================================================================
# COMMISSION CONFIGURATION
# =============================================================================


@dataclass
class CommissionTier:
    """A single interval of a TIER parameter. max_amount None = no upper bound."""

    min_amount: Decimal
    max_amount: Decimal | None
    rate: Decimal

    def contains(self, amount: Decimal) -> bool:
        """Bounds are whole currency units: the tier covers [min, max + 1)."""
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount < self.max_amount + 1

    @classmethod
    def from_dict(cls, data: dict) -> "CommissionTier":
        return cls(
            min_amount=_decimal(data["min_amount"]),
            max_amount=_optional_decimal(data.get("max_amount")),
            rate=_decimal(data["rate"]),
        )


@dataclass
class CommissionParameter:
    """Commission rule attached to exactly one client, collector or agency."""

    scope: ParameterScope
    owner_id: int
    type: CommissionType
    value: Decimal | None = None
    tiers: list[CommissionTier] = field(default_factory=list)
    valid_from: date | None = None
    valid_to: date | None = None
    active: bool = True
    parameter_id: int | None = None

    def is_valid_on(self, on_date: date) -> bool:
        if not self.active:
            return False
        if self.valid_from is not None and on_date < self.valid_from:
            return False
        if self.valid_to is not None and on_date > self.valid_to:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict) -> "CommissionParameter":
        """
        Parse an API payload.

        The owner is given by exactly one of client_id / collector_id / agency_id.
        """
        owners = [
            (scope, data.get(key))
            for scope, key in (
                (ParameterScope.CLIENT, "client_id"),
                (ParameterScope.COLLECTOR, "collector_id"),
                (ParameterScope.AGENCY, "agency_id"),
            )
            if data.get(key) is not None
        ]
        if len(owners) != 1:
            raise InvalidCommissionParameter(
                f"Exactly one of client_id, collector_id, agency_id must be set, got {len(owners)}"
            )
        scope, owner_id = owners[0]

        return cls(
            scope=scope,
            owner_id=int(owner_id),
            type=CommissionType(data["type"]),
            value=_optional_decimal(data.get("value")),
            tiers=[CommissionTier.from_dict(t) for t in data.get("tiers", [])],
            valid_from=_optional_date(data.get("valid_from")),
            valid_to=_optional_date(data.get("valid_to")),
            active=data.get("active", True),
        )


@dataclass
class RemunerationRubric:
    """One compensation rule producing Vi from S, applied in priority order."""

    name: str
    type: CommissionType
    effective_date: date
    value: Decimal | None = None
    tiers: list[CommissionTier] = field(default_factory=list)
    validity_days: int | None = None
    collector_ids: set[int] = field(default_factory=set)
    active: bool = True
    priority: int = 0
    rubric_id: int | None = None

    @property
    def expires_on(self) -> date | None:
        if self.validity_days is None:
            return None
        return self.effective_date + timedelta(days=self.validity_days)

    def is_active_on(self, on_date: date) -> bool:
        if not self.active or on_date < self.effective_date:
            return False
        expiry = self.expires_on
        return expiry is None or on_date <= expiry

    def applies_to(self, collector_id: int) -> bool:
        return collector_id in self.collector_ids

    @classmethod
    def from_dict(cls, data: dict) -> "RemunerationRubric":
        return cls(
            name=data["name"],
            type=CommissionType(data["type"]),
            effective_date=_optional_date(data["effective_date"]),
            value=_optional_decimal(data.get("value")),
            tiers=[CommissionTier.from_dict(t) for t in data.get("tiers", [])],
            validity_days=data.get("validity_days"),
            collector_ids=set(data.get("collector_ids", [])),
            active=data.get("active", True),
            priority=data.get("priority", 0),
        )


# =============================================================================
# LEDGER
# =============================================================================


@dataclass
class Account:
    """A numbered ledger account. The type tag replaces a subtype hierarchy."""

    account_id: int
    number: str
    account_type: AccountType
    owner_id: int
    balance: Decimal = Decimal("0")

    @property
    def owner_kind(self) -> OwnerKind:
        return self.account_type.owner_kind


@dataclass(frozen=True)
class Movement:
    """Immutable transfer of value between two accounts."""

    source_account_id: int
    destination_account_id: int
    amount: Decimal
    label: str
    timestamp: datetime
    kind: MovementKind = MovementKind.TRANSFER
    movement_id: int | None = None


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class ClientCommission:
    """Per-client detail of one period calculation."""

    client_id: int
    client_name: str
    collected_amount: Decimal
    commission: Decimal
    tax: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    parameter_scope: ParameterScope
    parameter_type: CommissionType


@dataclass
class ClientFailure:
    client_id: int
    error: str


@dataclass
class CommissionCalculationRecord:
    """One row per (collector, period start, period end): the idempotence guard."""

    collector_id: int
    agency_id: int
    period_start: date
    period_end: date
    created_at: datetime
    status: CalculationStatus = CalculationStatus.IN_PROGRESS
    total_commission: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    client_count: int = 0
    partially_failed: bool = False
    details: list[ClientCommission] = field(default_factory=list)
    performed_by: str | None = None
    remunerated: bool = False
    remunerated_at: datetime | None = None
    remuneration_id: int | None = None
    calculation_id: int | None = None

    @property
    def period_description(self) -> str:
        return f"{self.period_start} → {self.period_end}"

    @property
    def can_be_remunerated(self) -> bool:
        return self.status == CalculationStatus.CALCULATED and not self.remunerated

    def mark_remunerated(self, remuneration_id: int, when: datetime) -> None:
        self.remunerated = True
        self.remuneration_id = remuneration_id
        self.remunerated_at = when


@dataclass
class RemunerationRecord:
    """Audit trail of one remuneration run."""

    collector_id: int
    agency_id: int
    initial_s: Decimal
    total_vi: Decimal
    surplus: Decimal
    tax: Decimal
    movements: list[Movement]
    created_at: datetime
    period_start: date | None = None
    period_end: date | None = None
    calculation_id: int | None = None
    performed_by: str | None = None
    remuneration_id: int | None = None

    def overlaps(self, start: date, end: date) -> bool:
        if self.period_start is None or self.period_end is None:
            return False
        return self.period_start <= end and start <= self.period_end


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class CommissionResult:
    """Outcome of processing one collector's period."""

    collector_id: int
    agency_id: int
    period_start: date
    period_end: date
    total_commission: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    client_commissions: list[ClientCommission] = field(default_factory=list)
    failures: list[ClientFailure] = field(default_factory=list)
    skipped_client_ids: list[int] = field(default_factory=list)
    movements: list[Movement] = field(default_factory=list)
    calculation_id: int | None = None

    @property
    def partially_failed(self) -> bool:
        return bool(self.failures)


@dataclass
class RubricPayment:
    """How one rubric's Vi was covered."""

    rubric_id: int | None
    rubric_name: str
    vi: Decimal
    from_pool: Decimal = Decimal("0")
    from_charge: Decimal = Decimal("0")


@dataclass
class RemunerationResult:
    """Outcome of the Vi vs S distribution for one collector."""

    collector_id: int
    agency_id: int
    initial_s: Decimal
    total_vi: Decimal = Decimal("0")
    surplus: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    payments: list[RubricPayment] = field(default_factory=list)
    movements: list[Movement] = field(default_factory=list)
    remuneration_id: int | None = None
    calculation_id: int | None = None

    @property
    def deficit(self) -> Decimal:
        return sum((p.from_charge for p in self.payments), Decimal("0"))


@dataclass
class CommissionSimulation:
    client_id: int
    collected_amount: Decimal
    commission: Decimal
    tax: Decimal
    parameter_scope: ParameterScope
    parameter_type: CommissionType

    @property
    def total_deduction(self) -> Decimal:
        return self.commission + self.tax
