"""
Commission Calculator

Pure commission math for FIXED, PERCENTAGE and TIER parameters, plus the
tax withheld on a commission. Every result is rounded half-up to 2 places.
"""

import logging
from decimal import Decimal

from ..models import CommissionParameter, CommissionTier, CommissionType
from .money import ZERO, apply_rate, quantize_money
from .tiers import TierResolver

logger = logging.getLogger(__name__)


class CommissionCalculator:
    """Maps (total collected amount, commission rule) to a commission amount."""

    TAX_RATE = Decimal("0.1925")

    def __init__(self, tier_resolver: TierResolver | None = None):
        self.tier_resolver = tier_resolver or TierResolver()
        self._variants = {
            CommissionType.FIXED: self._fixed,
            CommissionType.PERCENTAGE: self._percentage,
            CommissionType.TIER: self._tier,
        }

    def compute_commission(
        self,
        commission_type: CommissionType,
        total_amount: Decimal,
        value: Decimal | None = None,
        tiers: list[CommissionTier] | None = None,
    ) -> Decimal:
        """
        Compute the commission on total_amount.

        FIXED: the configured amount, whatever total_amount is.
        PERCENTAGE: total_amount * value / 100.
        TIER: the matched tier's rate applied to the whole total_amount
              (not marginal bracket taxation).
        """
        return self._variants[commission_type](total_amount, value, tiers or [])

    def commission_for(self, parameter: CommissionParameter, total_amount: Decimal) -> Decimal:
        return self.compute_commission(
            parameter.type, total_amount, parameter.value, parameter.tiers
        )

    def compute_tax(self, commission: Decimal) -> Decimal:
        """VAT withheld on a commission (19.25%)."""
        return quantize_money(commission * self.TAX_RATE)

    def compute_net_balance(self, current_balance: Decimal, commission: Decimal, tax: Decimal) -> Decimal:
        return quantize_money(current_balance - commission - tax)

    def _fixed(self, total_amount: Decimal, value: Decimal | None, tiers) -> Decimal:
        amount = value if value is not None else ZERO
        if amount < 0:
            logger.warning(f"Negative FIXED commission value {amount} treated as zero")
            return ZERO
        return quantize_money(amount)

    def _percentage(self, total_amount: Decimal, value: Decimal | None, tiers) -> Decimal:
        rate = value if value is not None else ZERO
        if not (Decimal("0") <= rate <= Decimal("100")):
            logger.warning(f"PERCENTAGE rate {rate} outside [0, 100], commission clamped to zero")
            return ZERO
        return apply_rate(total_amount, rate)

    def _tier(self, total_amount: Decimal, value, tiers: list[CommissionTier]) -> Decimal:
        tier = self.tier_resolver.resolve(tiers, total_amount)
        return apply_rate(total_amount, tier.rate)
