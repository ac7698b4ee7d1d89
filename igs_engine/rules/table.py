"""
Business Rule Table

Cross-field and temporal rules that pure structural schema cannot express.
Each rule has a stable id, a fixed severity, the field it reports against,
and a pure check over the typed Intent. A check returns the messages it
raises; an empty list means the rule passed.

Only EXPIRED_DEADLINE and MISSING_LIMIT_PRICE are error severity. Every
other rule is a warning that erodes the compliance score without
invalidating the Intent.

Version: business_rules_v1
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List

from igs_engine.config import EngineSettings
from igs_engine.schema.models import (
    AmountExact,
    Intent,
    INTENT_TYPE_MODES,
    OperationMode,
    Severity,
)


SOLVER_WINDOW_MIN_MS = 1_000
SOLVER_WINDOW_MAX_MS = 60_000
SOLVER_WINDOW_COMPLEX_MIN_MS = 2_000
DECISION_TIMEOUT_MAX_MS = 600_000
WEIGHT_SUM_TARGET = 100
WEIGHT_SUM_TOLERANCE = 0.01
SLIPPAGE_WARNING_BPS = 1_000
BENCHMARK_CONFIDENCE_MIN = 0.7
LIMIT_MARKET_DIVERGENCE_MAX = Decimal("0.5")


@dataclass(frozen=True)
class RuleContext:
    intent: Intent
    now_ms: int
    settings: EngineSettings


@dataclass(frozen=True)
class BusinessRule:
    rule_id: str
    severity: Severity
    field_path: str
    check: Callable[[RuleContext], List[str]]


def is_complex_operation(intent: Intent) -> bool:
    """
    Multi-asset, limit or multi-hop operations need more solver time.
    """
    operation = intent.operation
    if len(operation.inputs) > 1 or len(operation.outputs) > 1:
        return True
    if operation.mode == OperationMode.LIMIT_ORDER:
        return True
    routing = intent.constraints.routing
    return bool(routing and routing.max_hops and routing.max_hops > 2)


# ============================================================
# RULE CHECKS
# ============================================================

def _expired_deadline(ctx: RuleContext) -> List[str]:
    if ctx.intent.timing.absolute_deadline <= ctx.now_ms:
        return ["Intent deadline has already passed"]
    return []


def _deadline_mismatch(ctx: RuleContext) -> List[str]:
    if ctx.intent.constraints.deadline != ctx.intent.timing.absolute_deadline:
        return ["Constraint deadline and timing deadline should match"]
    return []


def _window_too_short(ctx: RuleContext) -> List[str]:
    if ctx.intent.timing.solver_window_ms < SOLVER_WINDOW_MIN_MS:
        return ["Solver window < 1s may be too short"]
    return []


def _window_too_long(ctx: RuleContext) -> List[str]:
    if ctx.intent.timing.solver_window_ms > SOLVER_WINDOW_MAX_MS:
        return ["Solver window > 60s may be too long"]
    return []


def _window_short_for_complex(ctx: RuleContext) -> List[str]:
    if ctx.intent.timing.solver_window_ms < SOLVER_WINDOW_COMPLEX_MIN_MS and is_complex_operation(ctx.intent):
        return ["Solver window < 2s may be too short for complex operations"]
    return []


def _decision_timeout_too_long(ctx: RuleContext) -> List[str]:
    if ctx.intent.timing.user_decision_timeout_ms > DECISION_TIMEOUT_MAX_MS:
        return ["User decision timeout > 10 minutes may be too long"]
    return []


def _type_mode_mismatch(ctx: RuleContext) -> List[str]:
    expected = INTENT_TYPE_MODES[ctx.intent.intent_type]
    if ctx.intent.operation.mode != expected:
        return [
            f"Intent type {ctx.intent.intent_type.value} expects mode {expected.value}, "
            f"got {ctx.intent.operation.mode.value}"
        ]
    return []


def _weight_sum(ctx: RuleContext) -> List[str]:
    total = ctx.intent.preferences.ranking_weights.total
    if abs(total - WEIGHT_SUM_TARGET) > WEIGHT_SUM_TOLERANCE:
        return [f"Ranking weights sum to {total:g}, should sum to 100"]
    return []


def _missing_limit_price(ctx: RuleContext) -> List[str]:
    if ctx.intent.is_limit and ctx.intent.constraints.limit_price is None:
        return ["Limit price is required for limit orders"]
    return []


def _slippage_too_high(ctx: RuleContext) -> List[str]:
    if ctx.intent.constraints.max_slippage_bps > SLIPPAGE_WARNING_BPS:
        return ["Slippage > 10% is unusually high"]
    return []


def _gas_limit_too_high(ctx: RuleContext) -> List[str]:
    max_gas = ctx.intent.constraints.max_gas_cost
    if max_gas is not None and int(max_gas.amount) > ctx.settings.native_unit:
        return ["Gas limit > 1 native token is unusually high"]
    return []


def _low_benchmark_confidence(ctx: RuleContext) -> List[str]:
    outcome = ctx.intent.operation.expected_outcome
    benchmark = outcome.benchmark if outcome else None
    if benchmark and benchmark.confidence is not None and benchmark.confidence < BENCHMARK_CONFIDENCE_MIN:
        return ["Low benchmark confidence may affect surplus calculation accuracy"]
    return []


def _limit_market_divergence(ctx: RuleContext) -> List[str]:
    limit_price = ctx.intent.constraints.limit_price
    outcome = ctx.intent.operation.expected_outcome
    market_price = outcome.market_price if outcome else None
    if limit_price is None or market_price is None:
        return []
    market = Decimal(market_price.price)
    if market == 0:
        return []
    divergence = abs(Decimal(limit_price.price) - market) / market
    if divergence > LIMIT_MARKET_DIVERGENCE_MAX:
        return ["Limit price differs > 50% from market price"]
    return []


def _amount_mode_mismatch(ctx: RuleContext) -> List[str]:
    operation = ctx.intent.operation
    messages: List[str] = []
    if operation.mode == OperationMode.EXACT_INPUT:
        for index, flow in enumerate(operation.inputs):
            if not isinstance(flow.amount, AmountExact):
                messages.append(f"Input {index}: exact_input mode typically uses exact amounts")
    elif operation.mode == OperationMode.EXACT_OUTPUT:
        for index, flow in enumerate(operation.outputs):
            if not isinstance(flow.amount, AmountExact):
                messages.append(f"Output {index}: exact_output mode typically uses exact amounts")
    return messages


# ============================================================
# THE TABLE
# ============================================================

BUSINESS_RULES: List[BusinessRule] = [
    BusinessRule("EXPIRED_DEADLINE", Severity.ERROR, "timing.absolute_deadline", _expired_deadline),
    BusinessRule("DEADLINE_MISMATCH", Severity.WARNING, "constraints.deadline", _deadline_mismatch),
    BusinessRule("SOLVER_WINDOW_TOO_SHORT", Severity.WARNING, "timing.solver_window_ms", _window_too_short),
    BusinessRule("SOLVER_WINDOW_TOO_LONG", Severity.WARNING, "timing.solver_window_ms", _window_too_long),
    BusinessRule("SOLVER_WINDOW_SHORT_FOR_COMPLEX", Severity.WARNING, "timing.solver_window_ms", _window_short_for_complex),
    BusinessRule("DECISION_TIMEOUT_TOO_LONG", Severity.WARNING, "timing.user_decision_timeout_ms", _decision_timeout_too_long),
    BusinessRule("TYPE_MODE_MISMATCH", Severity.WARNING, "operation.mode", _type_mode_mismatch),
    BusinessRule("WEIGHT_SUM_INVALID", Severity.WARNING, "preferences.ranking_weights", _weight_sum),
    BusinessRule("MISSING_LIMIT_PRICE", Severity.ERROR, "constraints.limit_price", _missing_limit_price),
    BusinessRule("SLIPPAGE_TOO_HIGH", Severity.WARNING, "constraints.max_slippage_bps", _slippage_too_high),
    BusinessRule("GAS_LIMIT_TOO_HIGH", Severity.WARNING, "constraints.max_gas_cost.amount", _gas_limit_too_high),
    BusinessRule("LOW_BENCHMARK_CONFIDENCE", Severity.WARNING, "operation.expected_outcome.benchmark.confidence", _low_benchmark_confidence),
    BusinessRule("LIMIT_MARKET_DIVERGENCE", Severity.WARNING, "constraints.limit_price.price", _limit_market_divergence),
    BusinessRule("AMOUNT_MODE_MISMATCH", Severity.WARNING, "operation", _amount_mode_mismatch),
]

RULES_BY_ID = {rule.rule_id: rule for rule in BUSINESS_RULES}
