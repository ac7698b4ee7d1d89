"""
Surplus Layer

Version: surplus_v1
"""

from .calculate import (
    SurplusResult,
    PriceOracle,
    calculate_surplus,
    surplus_percentage,
)

__all__ = [
    "SurplusResult",
    "PriceOracle",
    "calculate_surplus",
    "surplus_percentage",
]

__version__ = "surplus_v1"
