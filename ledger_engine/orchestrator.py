"""
Commission Orchestrator

Runs one collector's period: per-client commission and tax, client-side
ledger movements, and the aggregate commission pool S.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from .accounts import ChartOfAccountsGateway
from .calculators.commission import CommissionCalculator
from .calculators.money import ZERO, quantize_money
from .errors import AlreadyRemunerated, DuplicateCalculation, InvalidPeriod, LedgerEngineError
from .models import (
    Account,
    CalculationStatus,
    Client,
    ClientCommission,
    ClientFailure,
    Collector,
    CommissionCalculationRecord,
    CommissionResult,
    CommissionSimulation,
    Movement,
    MovementKind,
)
from .movements import LedgerMovementFactory
from .parameters import ParameterHierarchyResolver
from .store import LedgerStore

logger = logging.getLogger(__name__)


class CommissionOrchestrator:
    """
    Processes a collector's clients for one period.

    Pipeline per invocation:
    1. Idempotence guard (one non-cancelled calculation per collector + exact period)
    2. For each client with a positive collected amount:
       resolve parameter -> commission -> tax -> commit client movements
    3. Aggregate S (commissions only, tax excluded)
    4. Persist the calculation record, not yet remunerated

    A failing client is logged and skipped; the batch carries on and the
    result reports it as a failure.
    """

    def __init__(
        self,
        store: LedgerStore,
        accounts: ChartOfAccountsGateway,
        movements: LedgerMovementFactory,
        resolver: ParameterHierarchyResolver | None = None,
        calculator: CommissionCalculator | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.accounts = accounts
        self.movements = movements
        self.resolver = resolver or ParameterHierarchyResolver(store)
        self.calculator = calculator or CommissionCalculator()
        self.clock = clock

    def process_period(
        self,
        collector_id: int,
        period_start: date,
        period_end: date,
        force: bool = False,
        performed_by: str | None = None,
    ) -> CommissionResult:
        if period_start > period_end:
            raise InvalidPeriod(f"Period start {period_start} is after period end {period_end}")

        collector = self.store.get_collector(collector_id)
        logger.info(f"Commission calculation for collector {collector_id}: {period_start} → {period_end}")

        record = self._reserve(collector, period_start, period_end, force, performed_by)
        result = CommissionResult(
            collector_id=collector.collector_id,
            agency_id=collector.agency_id,
            period_start=period_start,
            period_end=period_end,
        )
        try:
            self._process_clients(collector, result)
        except Exception:
            if not result.movements:
                record.status = CalculationStatus.CANCELLED
                self.store.update_calculation(record)
                logger.error(f"Calculation {record.calculation_id} for collector {collector_id} aborted")
                raise
            # Committed client movements stay in the ledger, so the record keeps the period reserved
            self._close(record, result, aborted=True)
            logger.error(
                f"Calculation {record.calculation_id} for collector {collector_id} aborted after "
                f"{len(result.client_commissions)} clients; kept as partially failed"
            )
            raise

        self._close(record, result)
        logger.info(
            f"Collector {collector_id} period done - {record.client_count} clients, "
            f"S: {result.total_commission}, tax: {result.total_tax}, failures: {len(result.failures)}"
        )
        return result

    def cancel_calculation(self, calculation_id: int) -> CommissionCalculationRecord:
        record = self.store.get_calculation(calculation_id)
        if record.remunerated:
            raise AlreadyRemunerated(f"Calculation {calculation_id} has already been remunerated")
        record.status = CalculationStatus.CANCELLED
        self.store.update_calculation(record)
        logger.info(f"Calculation {calculation_id} cancelled")
        return record

    def simulate_commission(self, client_id: int, amount: Decimal, on_date: date) -> CommissionSimulation:
        """Commission and tax for amount, without movements or records."""
        client = self.store.get_client(client_id)
        parameter = self.resolver.resolve(client, on_date)
        commission = self.calculator.commission_for(parameter, amount) if amount > 0 else ZERO
        return CommissionSimulation(
            client_id=client_id,
            collected_amount=amount,
            commission=commission,
            tax=self.calculator.compute_tax(commission),
            parameter_scope=parameter.scope,
            parameter_type=parameter.type,
        )

    def _reserve(
        self,
        collector: Collector,
        period_start: date,
        period_end: date,
        force: bool,
        performed_by: str | None,
    ) -> CommissionCalculationRecord:
        existing = self.store.find_calculation(collector.collector_id, period_start, period_end)
        if existing is not None:
            if not force:
                logger.warning(
                    f"Duplicate calculation refused for collector {collector.collector_id} "
                    f"on {existing.period_description}"
                )
                raise DuplicateCalculation(
                    f"Calculation already done for collector {collector.collector_id} "
                    f"on {existing.period_description} (id {existing.calculation_id})"
                )
            if existing.remunerated:
                raise AlreadyRemunerated(
                    f"Calculation {existing.calculation_id} was already remunerated and cannot be forced"
                )
            existing.status = CalculationStatus.CANCELLED
            self.store.update_calculation(existing)
            logger.warning(f"Forced recalculation: calculation {existing.calculation_id} cancelled")

        return self.store.insert_calculation(
            CommissionCalculationRecord(
                collector_id=collector.collector_id,
                agency_id=collector.agency_id,
                period_start=period_start,
                period_end=period_end,
                created_at=self.clock(),
                performed_by=performed_by,
            )
        )

    def _process_clients(self, collector: Collector, result: CommissionResult) -> None:
        """Fill result client by client; whatever a client raises stays with that client."""
        passage_commission = self.accounts.passage_commission_account(collector.agency_id)
        passage_tax = self.accounts.passage_tax_account(collector.agency_id)

        for client in self.store.clients_for_collector(collector.collector_id):
            try:
                processed = self._process_client(
                    client, result.period_start, result.period_end, passage_commission, passage_tax
                )
            except LedgerEngineError as e:
                logger.error(f"Commission failed for client {client.client_id}: {e}")
                result.failures.append(ClientFailure(client_id=client.client_id, error=str(e)))
                continue
            except Exception as e:
                logger.error(f"Unexpected error for client {client.client_id}: {e}", exc_info=True)
                result.failures.append(ClientFailure(client_id=client.client_id, error=str(e)))
                continue

            if processed is None:
                result.skipped_client_ids.append(client.client_id)
                continue

            detail, committed = processed
            result.client_commissions.append(detail)
            result.movements.extend(committed)

    def _close(self, record: CommissionCalculationRecord, result: CommissionResult, aborted: bool = False) -> None:
        result.total_commission = quantize_money(
            sum((d.commission for d in result.client_commissions), ZERO)
        )
        result.total_tax = quantize_money(
            sum((d.tax for d in result.client_commissions), ZERO)
        )
        record.status = CalculationStatus.CALCULATED
        record.total_commission = result.total_commission
        record.total_tax = result.total_tax
        record.client_count = len(result.client_commissions)
        record.partially_failed = aborted or result.partially_failed
        record.details = result.client_commissions
        self.store.update_calculation(record)
        result.calculation_id = record.calculation_id

    def _process_client(
        self,
        client: Client,
        period_start: date,
        period_end: date,
        passage_commission: Account,
        passage_tax: Account,
    ) -> tuple[ClientCommission, list[Movement]] | None:
        """One client's unit of work: both movements commit together or not at all."""
        collected = self.store.collected_amount(client.client_id, period_start, period_end)
        if collected <= 0:
            logger.debug(f"No savings for client {client.client_id}, skipped")
            return None

        parameter = self.resolver.resolve(client, period_end)
        commission = self.calculator.commission_for(parameter, collected)
        if commission <= 0:
            logger.debug(f"Zero commission for client {client.client_id}, skipped")
            return None
        tax = self.calculator.compute_tax(commission)

        client_account = self.accounts.client_account(client.client_id)
        pending = [
            self.movements.create_movement(
                client_account, passage_commission, commission,
                f"Collection commission - client {client.name}",
                MovementKind.COMMISSION,
            )
        ]
        if tax > 0:
            pending.append(
                self.movements.create_movement(
                    client_account, passage_tax, tax,
                    f"VAT on commission (19.25%) - client {client.name}",
                    MovementKind.TAX,
                )
            )
        committed = self.movements.commit_all(pending)

        detail = ClientCommission(
            client_id=client.client_id,
            client_name=client.name,
            collected_amount=collected,
            commission=commission,
            tax=tax,
            previous_balance=client_account.balance,
            new_balance=self.calculator.compute_net_balance(client_account.balance, commission, tax),
            parameter_scope=parameter.scope,
            parameter_type=parameter.type,
        )
        logger.debug(f"Client {client.client_id}: commission {commission}, tax {tax}")
        return detail, committed
