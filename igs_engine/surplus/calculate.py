"""
Surplus Calculator

surplus = solution_value - benchmark_value, read from the first expected
output the Solution also promises. Amounts are base-unit integer strings
and are compared as integers, never as floats.

Multi-asset netting is not attempted by default. A PriceOracle can be
supplied to value both baskets in a common unit instead.

The function is pure: identical inputs give identical results whichever
solver produced them.

Version: surplus_v1
"""

from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from igs_engine.schema.models import AssetAmount, Intent, Solution


PERCENTAGE_PLACES = Decimal("0.000001")
PERCENTAGE_PRECISION = 200
BASKET_ASSET_ID = "basket"


class SurplusResult(BaseModel):
    asset_id: Optional[str] = None
    benchmark_value: str = "0"
    solution_value: str = "0"
    surplus: str = "0"
    surplus_percentage: float = 0.0
    warnings: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class PriceOracle(Protocol):
    """Values a base-unit amount of an asset in a common unit."""

    def value(self, asset_id: str, amount: int) -> Optional[Decimal]:
        ...


def surplus_percentage(surplus, benchmark) -> float:
    """surplus / benchmark * 100, 0 when the benchmark is 0."""
    if benchmark == 0:
        return 0.0
    # Room for u256 integer digits plus the quantized fraction
    with localcontext() as ctx:
        ctx.prec = PERCENTAGE_PRECISION
        pct = Decimal(surplus) * 100 / Decimal(benchmark)
        return float(pct.quantize(PERCENTAGE_PLACES, rounding=ROUND_HALF_EVEN))


def _zero_result(warning: str) -> SurplusResult:
    return SurplusResult(warnings=[warning])


def _basket_value(oracle: PriceOracle, amounts: List[AssetAmount]) -> Optional[Decimal]:
    total = Decimal(0)
    for entry in amounts:
        value = oracle.value(entry.asset_id, int(entry.amount))
        if value is None:
            return None
        total += value
    return total


def _calculate_with_oracle(
    expected: List[AssetAmount],
    solution: Solution,
    oracle: PriceOracle,
) -> Optional[SurplusResult]:
    benchmark = _basket_value(oracle, expected)
    promised = _basket_value(oracle, solution.promised_outputs)
    if benchmark is None or promised is None:
        return None
    surplus = promised - benchmark
    return SurplusResult(
        asset_id=BASKET_ASSET_ID,
        benchmark_value=str(benchmark),
        solution_value=str(promised),
        surplus=str(surplus),
        surplus_percentage=surplus_percentage(surplus, benchmark),
    )


def calculate_surplus(
    intent: Intent,
    solution: Solution,
    oracle: Optional[PriceOracle] = None,
) -> SurplusResult:
    """
    Surplus a Solution delivers over the Intent's benchmark.

    Args:
        intent: Validated Intent carrying expected_outcome
        solution: Validated Solution
        oracle: Optional basket valuation; without it only the first
            matching asset is compared

    Returns:
        SurplusResult; a zero result plus a warning when there is no
        benchmark or no matching output
    """
    outcome = intent.operation.expected_outcome
    if outcome is None or not outcome.expected_outputs:
        return _zero_result("No benchmark: intent declares no expected outputs")

    warnings: List[str] = []
    if oracle is not None:
        result = _calculate_with_oracle(outcome.expected_outputs, solution, oracle)
        if result is not None:
            return result
        warnings.append("Price oracle could not value every asset; using first matching asset")

    for expected in outcome.expected_outputs:
        promised = solution.promised_amount(expected.asset_id)
        if promised is None:
            continue
        benchmark = int(expected.amount)
        surplus = promised - benchmark
        if len(outcome.expected_outputs) > 1:
            warnings.append("Multiple expected outputs: surplus uses the first matching asset only")
        return SurplusResult(
            asset_id=expected.asset_id,
            benchmark_value=str(benchmark),
            solution_value=str(promised),
            surplus=str(surplus),
            surplus_percentage=surplus_percentage(surplus, benchmark),
            warnings=warnings,
        )

    return _zero_result("No promised output matches an expected output asset")
