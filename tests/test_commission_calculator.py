"""
Unit Tests for Commission Calculator

Tests verify FIXED, PERCENTAGE and TIER commissions, the VAT withheld on a
commission, and half-up rounding at every step.
"""

import pytest
from decimal import Decimal
from ledger_engine.calculators.commission import CommissionCalculator
from ledger_engine.calculators.money import apply_rate, quantize_money
from ledger_engine.errors import NoApplicableTier
from ledger_engine.models import CommissionParameter, CommissionType, ParameterScope

from conftest import tiers


class TestFixedCommission:
    """FIXED returns the configured amount whatever was collected."""

    @pytest.fixture
    def calculator(self):
        return CommissionCalculator()

    def test_fixed_ignores_collected_amount(self, calculator):
        small = calculator.compute_commission(CommissionType.FIXED, Decimal("1000"), Decimal("2500"))
        large = calculator.compute_commission(CommissionType.FIXED, Decimal("900000"), Decimal("2500"))

        assert small == Decimal("2500.00")
        assert large == Decimal("2500.00")

    def test_negative_fixed_value_yields_zero(self, calculator):
        """Out-of-range values are clamped rather than producing a negative commission."""
        result = calculator.compute_commission(CommissionType.FIXED, Decimal("1000"), Decimal("-50"))
        assert result == Decimal("0")

    def test_missing_fixed_value_yields_zero(self, calculator):
        assert calculator.compute_commission(CommissionType.FIXED, Decimal("1000")) == Decimal("0.00")


class TestPercentageCommission:
    """PERCENTAGE is total * value / 100."""

    @pytest.fixture
    def calculator(self):
        return CommissionCalculator()

    def test_percentage_of_total(self, calculator):
        result = calculator.compute_commission(CommissionType.PERCENTAGE, Decimal("50000"), Decimal("3"))
        assert result == Decimal("1500.00")

    def test_percentage_rounds_half_up(self, calculator):
        """333.33 * 1.5% = 4.99995 -> 5.00"""
        result = calculator.compute_commission(CommissionType.PERCENTAGE, Decimal("333.33"), Decimal("1.5"))
        assert result == Decimal("5.00")

    @pytest.mark.parametrize("rate", ["-1", "100.01"])
    def test_rate_outside_range_yields_zero(self, calculator, rate):
        result = calculator.compute_commission(CommissionType.PERCENTAGE, Decimal("50000"), Decimal(rate))
        assert result == Decimal("0")


class TestTierCommission:
    """TIER applies the matched tier's rate to the whole amount."""

    @pytest.fixture
    def calculator(self):
        return CommissionCalculator()

    @pytest.fixture
    def standard_tiers(self):
        return tiers((0, 100000, 5), (100001, 500000, 4), (500001, None, 3))

    def test_whole_amount_uses_matched_tier_rate(self, calculator, standard_tiers):
        """450,000 falls in the 4% tier: 450000 * 0.04, not a marginal blend."""
        result = calculator.compute_commission(CommissionType.TIER, Decimal("450000"), tiers=standard_tiers)
        assert result == Decimal("18000.00")

    def test_first_tier(self, calculator, standard_tiers):
        result = calculator.compute_commission(CommissionType.TIER, Decimal("80000"), tiers=standard_tiers)
        assert result == Decimal("4000.00")

    def test_unbounded_top_tier(self, calculator, standard_tiers):
        result = calculator.compute_commission(CommissionType.TIER, Decimal("1000000"), tiers=standard_tiers)
        assert result == Decimal("30000.00")

    def test_no_matching_tier_raises(self, calculator):
        with pytest.raises(NoApplicableTier):
            calculator.compute_commission(CommissionType.TIER, Decimal("5000"), tiers=tiers((0, 1000, 5)))

    def test_commission_for_parameter(self, calculator, standard_tiers):
        parameter = CommissionParameter(
            scope=ParameterScope.AGENCY, owner_id=1, type=CommissionType.TIER, tiers=standard_tiers
        )
        assert calculator.commission_for(parameter, Decimal("200000")) == Decimal("8000.00")


class TestTaxAndBalance:
    """VAT on commission is 19.25%, rounded half-up."""

    @pytest.fixture
    def calculator(self):
        return CommissionCalculator()

    def test_tax_on_commission(self, calculator):
        assert calculator.compute_tax(Decimal("18000")) == Decimal("3465.00")

    def test_tax_rounding(self, calculator):
        """2.00 * 0.1925 = 0.385 -> 0.39"""
        assert calculator.compute_tax(Decimal("2.00")) == Decimal("0.39")

    def test_zero_commission_has_zero_tax(self, calculator):
        assert calculator.compute_tax(Decimal("0")) == Decimal("0.00")

    def test_net_balance(self, calculator):
        result = calculator.compute_net_balance(Decimal("50000"), Decimal("1500"), Decimal("288.75"))
        assert result == Decimal("48211.25")


class TestMoneyHelpers:

    def test_quantize_half_up(self):
        assert quantize_money(Decimal("0.005")) == Decimal("0.01")
        assert quantize_money(Decimal("0.004")) == Decimal("0.00")

    def test_apply_rate(self):
        assert apply_rate(Decimal("100000"), Decimal("2.5")) == Decimal("2500.00")
