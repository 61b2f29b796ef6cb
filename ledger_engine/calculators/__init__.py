"""
Calculators Package

Provides the pure computation components: tier lookup, commission and tax
math, and rubric evaluation.
"""

from .commission import CommissionCalculator
from .money import quantize_money
from .rubric import RubricCalculator
from .tiers import TierResolver

__all__ = [
    "TierResolver",
    "CommissionCalculator",
    "RubricCalculator",
    "quantize_money",
]
