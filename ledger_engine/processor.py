"""
Ledger Processor - Main Entry Point

Wires the commission and remuneration components around one store and
exposes the operations callers use (schedulers, admin triggers, API).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict

from .accounts import ChartOfAccountsGateway
from .batch import BatchReport, CommissionBatchRunner
from .calculators import CommissionCalculator, RubricCalculator, TierResolver
from .config import EngineConfig
from .models import (
    CommissionParameter,
    CommissionResult,
    CommissionSimulation,
    RemunerationResult,
    RemunerationRubric,
)
from .movements import LedgerMovementFactory
from .orchestrator import CommissionOrchestrator
from .output import OutputBuilder
from .parameters import ParameterHierarchyResolver, ParameterRegistry
from .remuneration import RemunerationProcessor
from .store import LedgerStore
from .validators import ParameterValidator


class LedgerProcessor:
    """
    Facade over the engine.

    Control flow of a full cycle:
    1. process_period: idempotence guard -> per-client commission/tax
       movements -> calculation record holding S
    2. remunerate_calculation: Vi vs S distribution -> surplus -> tax
    """

    def __init__(
        self,
        store: LedgerStore,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.config = config or EngineConfig.from_env()
        self.clock = clock

        tier_resolver = TierResolver()
        self.calculator = CommissionCalculator(tier_resolver)
        self.accounts = ChartOfAccountsGateway(store, self.config)
        self.movements = LedgerMovementFactory(store, clock, self.config)
        self.registry = ParameterRegistry(
            store,
            ParameterValidator(tier_resolver, self.config.percentage_warning_threshold),
        )
        self.orchestrator = CommissionOrchestrator(
            store,
            self.accounts,
            self.movements,
            resolver=ParameterHierarchyResolver(store),
            calculator=self.calculator,
            clock=clock,
        )
        self.remuneration = RemunerationProcessor(
            store,
            self.accounts,
            self.movements,
            calculator=self.calculator,
            rubric_calculator=RubricCalculator(self.calculator),
            clock=clock,
        )
        self.batch_runner = CommissionBatchRunner(
            self.orchestrator, self.remuneration, max_workers=self.config.batch_workers
        )
        self.output_builder = OutputBuilder()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def process_period(
        self,
        collector_id: int,
        period_start: date,
        period_end: date,
        force: bool = False,
        performed_by: str | None = None,
    ) -> CommissionResult:
        return self.orchestrator.process_period(
            collector_id, period_start, period_end, force=force, performed_by=performed_by
        )

    def process_remuneration(
        self,
        collector_id: int,
        s: Decimal,
        on_date: date | None = None,
        calculation_id: int | None = None,
        performed_by: str | None = None,
    ) -> RemunerationResult:
        return self.remuneration.process_remuneration(
            collector_id, s, on_date=on_date, calculation_id=calculation_id, performed_by=performed_by
        )

    def remunerate_calculation(
        self,
        calculation_id: int,
        on_date: date | None = None,
        performed_by: str | None = None,
    ) -> RemunerationResult:
        return self.remuneration.remunerate_calculation(
            calculation_id, on_date=on_date, performed_by=performed_by
        )

    def simulate_commission(self, client_id: int, amount: Decimal, on_date: date | None = None) -> CommissionSimulation:
        return self.orchestrator.simulate_commission(client_id, amount, on_date or self.clock().date())

    def cancel_calculation(self, calculation_id: int):
        return self.orchestrator.cancel_calculation(calculation_id)

    def define_parameter(self, parameter: CommissionParameter) -> CommissionParameter:
        return self.registry.define_parameter(parameter)

    def define_rubric(self, rubric: RemunerationRubric) -> RemunerationRubric:
        return self.registry.define_rubric(rubric)

    def run_batch(
        self,
        collector_ids: list[int],
        period_start: date,
        period_end: date,
        force: bool = False,
        remunerate: bool = False,
        performed_by: str | None = None,
    ) -> BatchReport:
        return self.batch_runner.run(
            collector_ids, period_start, period_end,
            force=force, remunerate=remunerate, performed_by=performed_by,
        )

    # ------------------------------------------------------------------
    # Dictionary convenience methods for API usage
    # ------------------------------------------------------------------

    def process_period_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self.process_period(
            int(data["collector_id"]),
            date.fromisoformat(data["period_start"]),
            date.fromisoformat(data["period_end"]),
            force=data.get("force", False),
            performed_by=data.get("performed_by"),
        )
        return self.output_builder.build_commission(result)

    def process_remuneration_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        on_date = data.get("on_date")
        result = self.process_remuneration(
            int(data["collector_id"]),
            Decimal(str(data["s"])),
            on_date=date.fromisoformat(on_date) if on_date else None,
            calculation_id=data.get("calculation_id"),
            performed_by=data.get("performed_by"),
        )
        return self.output_builder.build_remuneration(result)

    def remunerate_calculation_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        on_date = data.get("on_date")
        result = self.remunerate_calculation(
            int(data["calculation_id"]),
            on_date=date.fromisoformat(on_date) if on_date else None,
            performed_by=data.get("performed_by"),
        )
        return self.output_builder.build_remuneration(result)

    def simulate_commission_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        on_date = data.get("on_date")
        simulation = self.simulate_commission(
            int(data["client_id"]),
            Decimal(str(data["amount"])),
            on_date=date.fromisoformat(on_date) if on_date else None,
        )
        return self.output_builder.build_simulation(simulation)

    def define_parameter_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        parameter = self.define_parameter(CommissionParameter.from_dict(data))
        return {
            "parameter_id": parameter.parameter_id,
            "scope": parameter.scope.value,
            "owner_id": parameter.owner_id,
            "type": parameter.type.value,
        }

    def define_rubric_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        rubric = self.define_rubric(RemunerationRubric.from_dict(data))
        return {
            "rubric_id": rubric.rubric_id,
            "name": rubric.name,
            "type": rubric.type.value,
            "priority": rubric.priority,
            "collector_ids": sorted(rubric.collector_ids),
            "expires_on": rubric.expires_on.isoformat() if rubric.expires_on else None,
        }

    def run_batch_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        report = self.run_batch(
            [int(c) for c in data["collector_ids"]],
            date.fromisoformat(data["period_start"]),
            date.fromisoformat(data["period_end"]),
            force=data.get("force", False),
            remunerate=data.get("remunerate", False),
            performed_by=data.get("performed_by"),
        )
        return self.output_builder.build_batch(report)
