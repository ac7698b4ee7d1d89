"""
Surplus Calculator Tests

First-matching-asset surplus, zero-benchmark and missing-data edge cases,
and the optional price oracle.

Version: surplus_v1
"""

from decimal import Decimal

from igs_engine.schema.models import Intent
from igs_engine.surplus import calculate_surplus, surplus_percentage

from builders import BENCHMARK_OUTPUT, SUI, USDC, make_intent, make_intent_payload, make_solution, without


class StaticOracle:
    """Fixed price per base unit."""

    def __init__(self, prices):
        self.prices = prices

    def value(self, asset_id, amount):
        price = self.prices.get(asset_id)
        return None if price is None else Decimal(amount) * price


# ============================================================
# SINGLE ASSET
# ============================================================

class TestSurplus:

    def test_positive_surplus(self):
        result = calculate_surplus(make_intent(), make_solution(promised="305000000"))
        assert result.asset_id == USDC
        assert result.benchmark_value == BENCHMARK_OUTPUT
        assert result.solution_value == "305000000"
        assert result.surplus == "5000000"
        assert result.surplus_percentage == 1.666667
        assert result.warnings == []

    def test_negative_surplus(self):
        result = calculate_surplus(make_intent(), make_solution(promised="290000000"))
        assert result.surplus == "-10000000"
        assert result.surplus_percentage == -3.333333

    def test_zero_exactly_when_equal(self):
        equal = calculate_surplus(make_intent(), make_solution(promised=BENCHMARK_OUTPUT))
        above = calculate_surplus(make_intent(), make_solution(promised="300000001"))
        assert equal.surplus_percentage == 0
        assert equal.surplus == "0"
        assert above.surplus_percentage != 0

    def test_big_integer_amounts(self):
        benchmark = "100000000000000000000000000000"
        intent = make_intent(
            operation={"expected_outcome": {"expected_outputs": [{"asset_id": USDC, "amount": benchmark}]}},
        )
        result = calculate_surplus(intent, make_solution(promised=str(int(benchmark) + 1)))
        assert result.surplus == "1"

    def test_order_independent_of_solver(self):
        a = calculate_surplus(make_intent(), make_solution(solution_id="x", promised="301000000"))
        b = calculate_surplus(make_intent(), make_solution(solution_id="y", promised="301000000"))
        assert a == b


# ============================================================
# EDGE CASES
# ============================================================

class TestSurplusEdgeCases:

    def test_zero_benchmark(self):
        intent = make_intent(
            operation={"expected_outcome": {"expected_outputs": [{"asset_id": USDC, "amount": "0"}]}},
        )
        result = calculate_surplus(intent, make_solution(promised="5"))
        assert result.surplus == "5"
        assert result.surplus_percentage == 0

    def test_no_expected_outcome(self):
        intent = Intent.model_validate(without(make_intent_payload(), "operation.expected_outcome"))
        result = calculate_surplus(intent, make_solution())
        assert result.surplus == "0"
        assert result.surplus_percentage == 0
        assert result.asset_id is None
        assert len(result.warnings) == 1

    def test_no_matching_output(self):
        solution = make_solution(promised_outputs=[{"asset_id": SUI, "amount": "1"}])
        result = calculate_surplus(make_intent(), solution)
        assert result.surplus == "0"
        assert "No promised output matches" in result.warnings[0]

    def test_multiple_expected_outputs_use_first_match(self):
        intent = make_intent(operation={"expected_outcome": {"expected_outputs": [
            {"asset_id": SUI, "amount": "10"},
            {"asset_id": USDC, "amount": BENCHMARK_OUTPUT},
        ]}})
        result = calculate_surplus(intent, make_solution(promised="303000000"))
        assert result.asset_id == USDC
        assert result.surplus_percentage == 1.0
        assert any("first matching asset" in w for w in result.warnings)

    def test_percentage_helper(self):
        assert surplus_percentage(0, 0) == 0.0
        assert surplus_percentage(1, 3) == 33.333333

    def test_huge_surplus_over_tiny_benchmark(self):
        intent = make_intent(
            operation={"expected_outcome": {"expected_outputs": [{"asset_id": USDC, "amount": "1"}]}},
            constraints={"min_outputs": [{"asset_id": USDC, "amount": "1"}]},
        )
        promised = "1" + "0" * 24
        result = calculate_surplus(intent, make_solution(promised=promised))
        assert result.surplus == str(10 ** 24 - 1)
        assert result.surplus_percentage == float((10 ** 24 - 1) * 100)

    def test_percentage_at_u256_scale(self):
        assert surplus_percentage(10 ** 77, 1) == float(10 ** 79)


# ============================================================
# PRICE ORACLE
# ============================================================

class TestPriceOracle:

    def test_basket_valuation(self):
        intent = make_intent(operation={"expected_outcome": {"expected_outputs": [
            {"asset_id": USDC, "amount": "100"},
            {"asset_id": SUI, "amount": "10"},
        ]}})
        solution = make_solution(promised_outputs=[
            {"asset_id": USDC, "amount": "100"},
            {"asset_id": SUI, "amount": "12"},
        ])
        oracle = StaticOracle({USDC: Decimal("1"), SUI: Decimal("5")})
        result = calculate_surplus(intent, solution, oracle)
        assert result.asset_id == "basket"
        assert Decimal(result.benchmark_value) == 150
        assert Decimal(result.solution_value) == 160
        assert result.surplus_percentage == 6.666667

    def test_unpriced_asset_falls_back(self):
        oracle = StaticOracle({})
        result = calculate_surplus(make_intent(), make_solution(promised="303000000"), oracle)
        assert result.asset_id == USDC
        assert result.surplus_percentage == 1.0
        assert any("Price oracle" in w for w in result.warnings)
