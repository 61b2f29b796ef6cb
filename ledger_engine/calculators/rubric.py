"""
Rubric Calculator

Evaluates remuneration rubrics against a collector's commission pool S.
"""

from datetime import date
from decimal import Decimal

from ..models import RemunerationRubric
from .commission import CommissionCalculator
from .money import ZERO


class RubricCalculator:
    """Computes Vi for a rubric and selects the rubrics active for a collector."""

    def __init__(self, commission_calculator: CommissionCalculator | None = None):
        self.commission_calculator = commission_calculator or CommissionCalculator()

    def compute_vi(self, rubric: RemunerationRubric, s: Decimal, on_date: date) -> Decimal:
        """Vi is always computed on the initial pool S. Inactive rubrics yield zero."""
        if not rubric.is_active_on(on_date):
            return ZERO
        return self.commission_calculator.compute_commission(
            rubric.type, s, rubric.value, rubric.tiers
        )

    def active_rubrics(
        self,
        rubrics: list[RemunerationRubric],
        collector_id: int,
        on_date: date,
    ) -> list[RemunerationRubric]:
        """Rubrics applying to collector_id on on_date, in payment order."""
        selected = [
            r for r in rubrics
            if r.applies_to(collector_id) and r.is_active_on(on_date)
        ]
        return sorted(
            selected,
            key=lambda r: (r.priority, r.effective_date, r.rubric_id if r.rubric_id is not None else 0),
        )
