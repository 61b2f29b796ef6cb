"""
Output Builder

Turns engine results into JSON-ready dictionaries for the API layer.
"""

from decimal import Decimal

from .batch import BatchReport
from .models import (
    ClientCommission,
    CommissionResult,
    CommissionSimulation,
    Movement,
    RemunerationResult,
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def _fmt(value) -> str:
    """Format an amount for descriptions."""
    return f"{value:,.2f}"


class OutputBuilder:
    """Builds API responses from engine results."""

    def build_commission(self, result: CommissionResult) -> dict:
        s = to_money(result.total_commission)
        tax = to_money(result.total_tax)
        return {
            "collector_id": result.collector_id,
            "agency_id": result.agency_id,
            "period": {
                "start": result.period_start.isoformat(),
                "end": result.period_end.isoformat(),
            },
            "calculation_id": result.calculation_id,
            "status": "partially_failed" if result.partially_failed else "success",
            "calculations": {
                "total_commission": {
                    "value": s,
                    "description": f"S = sum of {len(result.client_commissions)} client commissions = {_fmt(s)} (tax excluded)",
                },
                "total_tax": {
                    "value": tax,
                    "description": f"19.25% VAT withheld per client commission = {_fmt(tax)}",
                },
            },
            "clients": [self._client(c) for c in result.client_commissions],
            "skipped_client_ids": result.skipped_client_ids,
            "failures": [{"client_id": f.client_id, "error": f.error} for f in result.failures],
            "movements": [self._movement(m) for m in result.movements],
        }

    def build_remuneration(self, result: RemunerationResult) -> dict:
        s = to_money(result.initial_s)
        total_vi = to_money(result.total_vi)
        surplus = to_money(result.surplus)
        tax = to_money(result.tax)
        deficit = to_money(result.deficit)
        return {
            "collector_id": result.collector_id,
            "agency_id": result.agency_id,
            "remuneration_id": result.remuneration_id,
            "calculation_id": result.calculation_id,
            "calculations": {
                "initial_s": {
                    "value": s,
                    "description": "Commission pool of the collector before distribution",
                },
                "total_vi": {
                    "value": total_vi,
                    "description": f"Sum of {len(result.payments)} rubric amounts paid, each computed on S ({_fmt(s)})",
                },
                "deficit_charged": {
                    "value": deficit,
                    "description": f"Shortfall covered by the charge account: {_fmt(deficit)}" if deficit else "Pool covered every rubric paid",
                },
                "emf_surplus": {
                    "value": surplus,
                    "description": f"Pool left after rubrics, credited to the product account: {_fmt(surplus)}",
                },
                "tax": {
                    "value": tax,
                    "description": f"19.25% × {_fmt(s)} = {_fmt(tax)}",
                },
            },
            "payments": [
                {
                    "rubric_id": p.rubric_id,
                    "rubric_name": p.rubric_name,
                    "vi": to_money(p.vi),
                    "from_pool": to_money(p.from_pool),
                    "from_charge": to_money(p.from_charge),
                }
                for p in result.payments
            ],
            "movements": [self._movement(m) for m in result.movements],
        }

    def build_simulation(self, simulation: CommissionSimulation) -> dict:
        return {
            "client_id": simulation.client_id,
            "collected_amount": to_money(simulation.collected_amount),
            "commission": to_money(simulation.commission),
            "tax": to_money(simulation.tax),
            "total_deduction": to_money(simulation.total_deduction),
            "parameter_scope": simulation.parameter_scope.value,
            "parameter_type": simulation.parameter_type.value,
        }

    def build_batch(self, report: BatchReport) -> dict:
        return {
            "period": {
                "start": report.period_start.isoformat(),
                "end": report.period_end.isoformat(),
            },
            "collectors": [
                {
                    "collector_id": o.collector_id,
                    "status": "failed" if o.error else "success",
                    "error": o.error,
                    "total_commission": to_money(o.commission.total_commission) if o.commission else None,
                    "remuneration_id": o.remuneration.remuneration_id if o.remuneration else None,
                }
                for o in report.outcomes
            ],
        }

    def _client(self, detail: ClientCommission) -> dict:
        return {
            "client_id": detail.client_id,
            "client_name": detail.client_name,
            "collected_amount": to_money(detail.collected_amount),
            "commission": to_money(detail.commission),
            "tax": to_money(detail.tax),
            "previous_balance": to_money(detail.previous_balance),
            "new_balance": to_money(detail.new_balance),
            "parameter_scope": detail.parameter_scope.value,
            "parameter_type": detail.parameter_type.value,
        }

    def _movement(self, movement: Movement) -> dict:
        return {
            "movement_id": movement.movement_id,
            "source_account_id": movement.source_account_id,
            "destination_account_id": movement.destination_account_id,
            "amount": to_money(movement.amount),
            "label": movement.label,
            "kind": movement.kind.value,
            "timestamp": movement.timestamp.isoformat(),
        }
