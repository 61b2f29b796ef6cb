"""
Multi-collector batch runner.

Collectors are independent units of work: each one is processed on its own
worker thread, and a failing collector never affects the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date

from .errors import LedgerEngineError
from .models import CommissionResult, RemunerationResult
from .orchestrator import CommissionOrchestrator
from .remuneration import RemunerationProcessor

logger = logging.getLogger(__name__)


@dataclass
class CollectorOutcome:
    collector_id: int
    commission: CommissionResult | None = None
    remuneration: RemunerationResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BatchReport:
    period_start: date
    period_end: date
    outcomes: list[CollectorOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[CollectorOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def partially_failed(self) -> list[CollectorOutcome]:
        return [o for o in self.outcomes if o.commission is not None and o.commission.partially_failed]


class CommissionBatchRunner:
    """Runs process_period (and optionally remuneration) for many collectors."""

    def __init__(
        self,
        orchestrator: CommissionOrchestrator,
        remuneration: RemunerationProcessor,
        max_workers: int = 4,
    ):
        self.orchestrator = orchestrator
        self.remuneration = remuneration
        self.max_workers = max_workers

    def run(
        self,
        collector_ids: list[int],
        period_start: date,
        period_end: date,
        force: bool = False,
        remunerate: bool = False,
        performed_by: str | None = None,
    ) -> BatchReport:
        report = BatchReport(period_start=period_start, period_end=period_end)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(
                    self._run_collector, collector_id, period_start, period_end,
                    force, remunerate, performed_by,
                )
                for collector_id in collector_ids
            ]
            report.outcomes = [f.result() for f in futures]

        logger.info(
            f"Batch {period_start} → {period_end}: {len(report.outcomes)} collectors, "
            f"{len(report.failed)} failed, {len(report.partially_failed)} partial"
        )
        return report

    def _run_collector(
        self,
        collector_id: int,
        period_start: date,
        period_end: date,
        force: bool,
        remunerate: bool,
        performed_by: str | None,
    ) -> CollectorOutcome:
        outcome = CollectorOutcome(collector_id=collector_id)
        try:
            outcome.commission = self.orchestrator.process_period(
                collector_id, period_start, period_end, force=force, performed_by=performed_by
            )
            if remunerate:
                outcome.remuneration = self.remuneration.remunerate_calculation(
                    outcome.commission.calculation_id, performed_by=performed_by
                )
        except LedgerEngineError as e:
            logger.error(f"Collector {collector_id} failed: {e}")
            outcome.error = str(e)
        except Exception as e:
            logger.error(f"Collector {collector_id} failed unexpectedly: {e}", exc_info=True)
            outcome.error = str(e)
        return outcome
