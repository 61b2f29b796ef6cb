"""
Write-time validation for commission parameters and remuneration rubrics.

Validation collects every error and non-blocking warning in a
ValidationResult; raise_if_invalid() raises the matching engine exception.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from .calculators.tiers import TierResolver
from .errors import InvalidCommissionParameter, InvalidTierConfiguration
from .models import CommissionParameter, CommissionType, RemunerationRubric


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    tier_error: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_if_invalid(self, error_class=InvalidCommissionParameter) -> None:
        if self.is_valid:
            return
        if self.tier_error:
            error_class = InvalidTierConfiguration
        raise error_class("Validation failed: " + "; ".join(self.errors))


class ParameterValidator:
    """Validates commission parameters according to business rules."""

    HIGH_FIXED_AMOUNT = Decimal("1000000")

    def __init__(
        self,
        tier_resolver: TierResolver | None = None,
        percentage_warning_threshold: Decimal = Decimal("20"),
    ):
        self.tier_resolver = tier_resolver or TierResolver()
        self.percentage_warning_threshold = percentage_warning_threshold

    def validate(self, parameter: CommissionParameter) -> ValidationResult:
        result = ValidationResult()
        self._validate_rule(parameter.type, parameter.value, parameter.tiers, result)
        if parameter.valid_from and parameter.valid_to and parameter.valid_from > parameter.valid_to:
            result.errors.append(
                f"valid_from ({parameter.valid_from}) must not be after valid_to ({parameter.valid_to})"
            )
        return result

    def validate_rubric(self, rubric: RemunerationRubric) -> ValidationResult:
        result = ValidationResult()
        if not rubric.name:
            result.errors.append("Rubric name is required")
        if rubric.validity_days is not None and rubric.validity_days < 0:
            result.errors.append(f"validity_days cannot be negative, got: {rubric.validity_days}")
        self._validate_rule(rubric.type, rubric.value, rubric.tiers, result)
        return result

    def _validate_rule(self, commission_type, value, tiers, result: ValidationResult) -> None:
        if commission_type == CommissionType.FIXED:
            self._validate_fixed(value, result)
        elif commission_type == CommissionType.PERCENTAGE:
            self._validate_percentage(value, result)
        elif commission_type == CommissionType.TIER:
            self._validate_tiers(tiers, result)

    def _validate_fixed(self, value: Decimal | None, result: ValidationResult) -> None:
        if value is None:
            result.errors.append("value is required for FIXED")
            return
        if value < 0:
            result.errors.append(f"FIXED value cannot be negative, got: {value}")
        elif value > self.HIGH_FIXED_AMOUNT:
            result.warnings.append(f"Very high fixed amount: {value}")

    def _validate_percentage(self, value: Decimal | None, result: ValidationResult) -> None:
        if value is None:
            result.errors.append("value is required for PERCENTAGE")
            return
        if not (0 <= value <= 100):
            result.errors.append(f"PERCENTAGE value must be between 0 and 100, got: {value}")
        elif value > self.percentage_warning_threshold:
            result.warnings.append(f"High percentage: {value}%")

    def _validate_tiers(self, tiers, result: ValidationResult) -> None:
        try:
            self.tier_resolver.validate(tiers)
        except InvalidTierConfiguration as e:
            result.errors.append(str(e))
            result.tier_error = True

