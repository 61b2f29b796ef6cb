"""
Remuneration Processor

Distributes a collector's commission pool S across its remuneration rubrics
(the "Vi vs S" algorithm), sends any leftover to the institution as EMF
surplus, and routes the VAT on S from the passage-tax account.

For each rubric, in priority order, Vi is computed on the initial S:
    Vi <= remaining S  -> pay Vi from the passage-commission account
    Vi >  remaining S  -> pay the remaining S from the passage-commission
                          account, the shortfall from the charge account,
                          and stop: no later rubric is paid
Remaining S > 0 at the end -> passage-commission -> product account (surplus)
Tax = S * 19.25%           -> passage-tax -> tax account
"""

import logging
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from .accounts import ChartOfAccountsGateway
from .calculators.commission import CommissionCalculator
from .calculators.money import ZERO, quantize_money
from .calculators.rubric import RubricCalculator
from .errors import AlreadyRemunerated, InvalidRemunerationInput
from .models import (
    Collector,
    CommissionCalculationRecord,
    Movement,
    MovementKind,
    RemunerationRecord,
    RemunerationResult,
    RemunerationRubric,
    RubricPayment,
)
from .movements import LedgerMovementFactory
from .store import LedgerStore

logger = logging.getLogger(__name__)


class RemunerationProcessor:
    """Runs the remuneration of one collector as a single all-or-nothing unit.

    Usage:
        processor = RemunerationProcessor(store, accounts, movements)
        result = processor.process_remuneration(collector_id, Decimal("50000"))
    """

    def __init__(
        self,
        store: LedgerStore,
        accounts: ChartOfAccountsGateway,
        movements: LedgerMovementFactory,
        calculator: CommissionCalculator | None = None,
        rubric_calculator: RubricCalculator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.accounts = accounts
        self.movements = movements
        self.calculator = calculator or CommissionCalculator()
        self.rubric_calculator = rubric_calculator or RubricCalculator(self.calculator)
        self.clock = clock
        self._guard = threading.Lock()
        self._collector_locks: dict[int, threading.Lock] = {}

    def process_remuneration(
        self,
        collector_id: int,
        s: Decimal,
        on_date: date | None = None,
        calculation_id: int | None = None,
        performed_by: str | None = None,
    ) -> RemunerationResult:
        """
        Remunerate collector_id from pool s.

        The calculation record marked as remunerated is calculation_id when
        given, otherwise the latest un-remunerated calculation of the
        collector whose S equals s, if there is one.
        """
        if s is None or s < 0:
            raise InvalidRemunerationInput(f"S must be zero or positive, got: {s}")
        s = quantize_money(s)
        collector = self.store.get_collector(collector_id)
        on_date = on_date or self.clock().date()

        with self._collector_lock(collector_id):
            record = self._calculation_to_mark(collector_id, s, calculation_id)
            return self._remunerate(collector, s, on_date, record, performed_by)

    def remunerate_calculation(
        self,
        calculation_id: int,
        on_date: date | None = None,
        performed_by: str | None = None,
    ) -> RemunerationResult:
        """Remunerate a recorded period calculation, using its S and its period."""
        record = self.store.get_calculation(calculation_id)
        return self.process_remuneration(
            record.collector_id,
            record.total_commission,
            on_date=on_date,
            calculation_id=calculation_id,
            performed_by=performed_by,
        )

    def history(self, collector_id: int) -> list[RemunerationRecord]:
        return self.store.remunerations_for_collector(collector_id)

    def _collector_lock(self, collector_id: int) -> threading.Lock:
        with self._guard:
            return self._collector_locks.setdefault(collector_id, threading.Lock())

    def _calculation_to_mark(
        self, collector_id: int, s: Decimal, calculation_id: int | None
    ) -> CommissionCalculationRecord | None:
        """Called with the collector lock held, so the overlap check and the save cannot interleave."""
        if calculation_id is None:
            for record in self.store.calculations_for_collector(collector_id):
                if record.can_be_remunerated and record.total_commission == s:
                    return record
            return None

        record = self.store.get_calculation(calculation_id)
        if record.collector_id != collector_id:
            raise InvalidRemunerationInput(
                f"Calculation {calculation_id} belongs to collector {record.collector_id}, not {collector_id}"
            )
        if record.remunerated:
            raise AlreadyRemunerated(f"Calculation {calculation_id} has already been remunerated")
        if not record.can_be_remunerated:
            raise InvalidRemunerationInput(
                f"Calculation {calculation_id} is {record.status.value} and cannot be remunerated"
            )
        for previous in self.store.remunerations_for_collector(collector_id):
            if previous.overlaps(record.period_start, record.period_end):
                raise AlreadyRemunerated(
                    f"Collector {collector_id} already remunerated on "
                    f"{previous.period_start} → {previous.period_end} (remuneration {previous.remuneration_id})"
                )
        return record

    def _remunerate(
        self,
        collector: Collector,
        s: Decimal,
        on_date: date,
        record: CommissionCalculationRecord | None,
        performed_by: str | None,
    ) -> RemunerationResult:
        logger.info(f"Remuneration of collector {collector.collector_id} - initial S: {s}")
        result = RemunerationResult(
            collector_id=collector.collector_id,
            agency_id=collector.agency_id,
            initial_s=s,
        )

        rubrics = self.rubric_calculator.active_rubrics(
            self.store.rubrics_for_collector(collector.collector_id),
            collector.collector_id,
            on_date,
        )
        logger.info(f"{len(rubrics)} active rubrics for collector {collector.collector_id}")

        pending = self._distribute(collector, s, on_date, rubrics, result)
        pending.extend(self._tax_movement(collector, s, result))

        result.movements = self.movements.commit_all(pending)

        remuneration = self.store.save_remuneration(
            RemunerationRecord(
                collector_id=collector.collector_id,
                agency_id=collector.agency_id,
                initial_s=s,
                total_vi=result.total_vi,
                surplus=result.surplus,
                tax=result.tax,
                movements=result.movements,
                created_at=self.clock(),
                period_start=record.period_start if record else None,
                period_end=record.period_end if record else None,
                calculation_id=record.calculation_id if record else None,
                performed_by=performed_by,
            )
        )
        result.remuneration_id = remuneration.remuneration_id

        if record is not None:
            record.mark_remunerated(remuneration.remuneration_id, remuneration.created_at)
            self.store.update_calculation(record)
            result.calculation_id = record.calculation_id

        logger.info(
            f"Remuneration done for collector {collector.collector_id} - total Vi: {result.total_vi}, "
            f"EMF surplus: {result.surplus}, tax: {result.tax}"
        )
        return result

    def _distribute(
        self,
        collector: Collector,
        s: Decimal,
        on_date: date,
        rubrics: list[RemunerationRubric],
        result: RemunerationResult,
    ) -> list[Movement]:
        pending: list[Movement] = []
        remaining = s
        passage = self.accounts.passage_commission_account(collector.agency_id)
        salary = self.accounts.salary_account(collector.collector_id)

        for rubric in rubrics:
            vi = self.rubric_calculator.compute_vi(rubric, s, on_date)
            logger.debug(f"Rubric '{rubric.name}' - Vi: {vi}, remaining S: {remaining}")
            if vi <= 0:
                continue

            payment = RubricPayment(rubric_id=rubric.rubric_id, rubric_name=rubric.name, vi=vi)
            result.payments.append(payment)
            result.total_vi += vi

            if vi <= remaining:
                pending.append(self.movements.create_movement(
                    passage, salary, vi, f"Remuneration - {rubric.name} (Vi <= S)",
                    MovementKind.REMUNERATION,
                ))
                payment.from_pool = vi
                remaining -= vi
                continue

            if remaining > 0:
                pending.append(self.movements.create_movement(
                    passage, salary, remaining, f"Remuneration - {rubric.name} (passage-commission share)",
                    MovementKind.REMUNERATION,
                ))
                payment.from_pool = remaining
            shortfall = vi - remaining
            charge = self.accounts.charge_account(collector.agency_id)
            pending.append(self.movements.create_movement(
                charge, salary, shortfall, f"Remuneration - {rubric.name} (charge complement)",
                MovementKind.CHARGE,
            ))
            payment.from_charge = shortfall
            remaining = ZERO
            logger.info(f"Pool exhausted at rubric '{rubric.name}': deficit {shortfall} charged")
            break

        if remaining > 0:
            product = self.accounts.product_account(collector.agency_id)
            pending.append(self.movements.create_movement(
                passage, product, remaining, "EMF remuneration - commission surplus",
                MovementKind.SURPLUS,
            ))
        result.surplus = remaining
        return pending

    def _tax_movement(self, collector: Collector, s: Decimal, result: RemunerationResult) -> list[Movement]:
        """VAT on the initial S, independent of how S was distributed."""
        result.tax = self.calculator.compute_tax(s)
        if result.tax <= 0:
            return []
        return [self.movements.create_movement(
            self.accounts.passage_tax_account(collector.agency_id),
            self.accounts.tax_account(collector.agency_id),
            result.tax,
            "VAT on collector commission (19.25%)",
            MovementKind.TAX,
        )]
