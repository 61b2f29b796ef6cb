"""
Tier Resolver

Finds the commission tier matching an amount and validates tier sets.
Validation runs once, when a parameter is written; lookups trust the set.
"""

from decimal import Decimal

from ..errors import InvalidTierConfiguration, NoApplicableTier
from ..models import CommissionTier


class TierResolver:
    """Ordered interval lookup over a contiguous tier set."""

    MIN_RATE = Decimal("0")
    MAX_RATE = Decimal("100")

    def validate(self, tiers: list[CommissionTier]) -> None:
        """
        Raise InvalidTierConfiguration unless the set is well formed.

        Rules:
        - at least one tier
        - each tier: min >= 0, max >= min (or unbounded), rate in [0, 100]
        - only the last tier may be unbounded
        - sorted ascending by min, and strictly contiguous:
          tiers[i-1].max + 1 == tiers[i].min
        """
        if not tiers:
            raise InvalidTierConfiguration("At least one tier is required")

        for i, tier in enumerate(tiers):
            if tier.min_amount < 0:
                raise InvalidTierConfiguration(
                    f"Tier {i} min_amount cannot be negative, got: {tier.min_amount}"
                )
            if tier.max_amount is not None and tier.max_amount < tier.min_amount:
                raise InvalidTierConfiguration(
                    f"Tier {i} max_amount ({tier.max_amount}) is below min_amount ({tier.min_amount})"
                )
            if not (self.MIN_RATE <= tier.rate <= self.MAX_RATE):
                raise InvalidTierConfiguration(
                    f"Tier {i} rate must be between 0 and 100, got: {tier.rate}"
                )

        for i in range(1, len(tiers)):
            previous, current = tiers[i - 1], tiers[i]
            if previous.max_amount is None:
                raise InvalidTierConfiguration(
                    f"Tier {i - 1} is unbounded but is followed by tier {i}"
                )
            if current.min_amount <= previous.min_amount:
                raise InvalidTierConfiguration(
                    f"Tiers must be sorted ascending by min_amount: tier {i} starts at "
                    f"{current.min_amount}, tier {i - 1} at {previous.min_amount}"
                )
            expected_min = previous.max_amount + 1
            if current.min_amount < expected_min:
                raise InvalidTierConfiguration(
                    f"Tier {i} [{current.min_amount}, ...] overlaps tier {i - 1} "
                    f"[{previous.min_amount}, {previous.max_amount}]"
                )
            if current.min_amount > expected_min:
                raise InvalidTierConfiguration(
                    f"Gap between tier {i - 1} (max {previous.max_amount}) "
                    f"and tier {i} (min {current.min_amount})"
                )

    def resolve(self, tiers: list[CommissionTier], amount: Decimal) -> CommissionTier:
        """Return the single tier containing amount."""
        if amount < 0:
            raise NoApplicableTier(f"Amount cannot be negative, got: {amount}")

        for tier in tiers:
            if tier.contains(amount):
                return tier

        raise NoApplicableTier(f"No tier covers amount {amount}")
