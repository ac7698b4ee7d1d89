"""
Solution Compliance Checker

Checks one Solution against the hard constraints of a validated Intent and
scores how well it honors them.

Each failed check produces a distinct issue code. Issues are grouped for
scoring; a group costs its penalty once, however many of its checks fail:

    constraint  -30  min outputs, slippage, limit price, routing, max gas cost
    output      -25  expected outputs missing from the promise
    identity    -25  solution answers a different intent
    timing      -20  submitted at or after the absolute deadline
    gas         -15  gas estimate unreasonable

A late Solution is rejected outright whatever its score.

Version: compliance_v1
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from igs_engine.config import DEFAULT_SETTINGS, EngineSettings
from igs_engine.schema.models import (
    AssetFlow,
    Intent,
    PriceComparison,
    Severity,
    Solution,
    ValidationError,
    ValidationResult,
    amount_upper_bound,
)


# ============================================================
# ISSUE CODES
# ============================================================

MIN_OUTPUT_NOT_MET = "MIN_OUTPUT_NOT_MET"
SLIPPAGE_EXCEEDED = "SLIPPAGE_EXCEEDED"
LIMIT_PRICE_VIOLATED = "LIMIT_PRICE_VIOLATED"
ROUTING_HOPS_EXCEEDED = "ROUTING_HOPS_EXCEEDED"
PROTOCOL_BLACKLISTED = "PROTOCOL_BLACKLISTED"
PROTOCOL_NOT_WHITELISTED = "PROTOCOL_NOT_WHITELISTED"
GAS_LIMIT_EXCEEDED = "GAS_LIMIT_EXCEEDED"
MISSING_EXPECTED_OUTPUT = "MISSING_EXPECTED_OUTPUT"
INTENT_ID_MISMATCH = "INTENT_ID_MISMATCH"
LATE_SUBMISSION = "LATE_SUBMISSION"
GAS_UNREASONABLE = "GAS_UNREASONABLE"

CONSTRAINT_GROUP = "constraint"
OUTPUT_GROUP = "output"
IDENTITY_GROUP = "identity"
TIMING_GROUP = "timing"
GAS_GROUP = "gas"

ISSUE_GROUPS = {
    MIN_OUTPUT_NOT_MET: CONSTRAINT_GROUP,
    SLIPPAGE_EXCEEDED: CONSTRAINT_GROUP,
    LIMIT_PRICE_VIOLATED: CONSTRAINT_GROUP,
    ROUTING_HOPS_EXCEEDED: CONSTRAINT_GROUP,
    PROTOCOL_BLACKLISTED: CONSTRAINT_GROUP,
    PROTOCOL_NOT_WHITELISTED: CONSTRAINT_GROUP,
    GAS_LIMIT_EXCEEDED: CONSTRAINT_GROUP,
    MISSING_EXPECTED_OUTPUT: OUTPUT_GROUP,
    INTENT_ID_MISMATCH: IDENTITY_GROUP,
    LATE_SUBMISSION: TIMING_GROUP,
    GAS_UNREASONABLE: GAS_GROUP,
}

GROUP_PENALTIES = {
    CONSTRAINT_GROUP: 30,
    OUTPUT_GROUP: 25,
    IDENTITY_GROUP: 25,
    TIMING_GROUP: 20,
    GAS_GROUP: 15,
}

# Issues that keep a Solution out of ranking regardless of score
HARD_REJECTION_CODES = frozenset([LATE_SUBMISSION])

TRANSPARENCY_BONUS = 5
SLIPPAGE_HEADROOM_BONUS = 5


@dataclass(frozen=True)
class ComplianceIssue:
    code: str
    field_path: str
    message: str

    @property
    def group(self) -> str:
        return ISSUE_GROUPS[self.code]

    def to_error(self) -> ValidationError:
        return ValidationError(
            code=self.code,
            field_path=self.field_path,
            message=self.message,
            severity=Severity.ERROR,
        )


# ============================================================
# INDIVIDUAL CHECKS
# ============================================================

def check_intent_id(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    if solution.intent_id != intent.intent_id:
        return [ComplianceIssue(
            INTENT_ID_MISMATCH,
            "intent_id",
            f"Solution targets intent {solution.intent_id}, expected {intent.intent_id}",
        )]
    return []


def check_min_outputs(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    """Every min_outputs entry needs a promise of at least that many base units."""
    issues = []
    for index, minimum in enumerate(intent.constraints.min_outputs):
        promised = solution.promised_amount(minimum.asset_id)
        if promised is None:
            issues.append(ComplianceIssue(
                MIN_OUTPUT_NOT_MET,
                f"promised_outputs.{minimum.asset_id}",
                f"Minimum output {index} ({minimum.asset_id}) has no matching promised output",
            ))
        elif promised < int(minimum.amount):
            issues.append(ComplianceIssue(
                MIN_OUTPUT_NOT_MET,
                f"promised_outputs.{minimum.asset_id}",
                f"Output {minimum.asset_id} below minimum: {promised} < {minimum.amount}",
            ))
    return issues


def check_slippage(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    ceiling = intent.constraints.max_slippage_bps
    if solution.estimated_slippage_bps > ceiling:
        return [ComplianceIssue(
            SLIPPAGE_EXCEEDED,
            "estimated_slippage_bps",
            f"Slippage {solution.estimated_slippage_bps} bps exceeds maximum {ceiling} bps",
        )]
    return []


def check_expected_outputs(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    """Presence only; amount adequacy belongs to the min-output check."""
    outcome = intent.operation.expected_outcome
    if outcome is None:
        return []
    issues = []
    for expected in outcome.expected_outputs:
        if solution.promised_amount(expected.asset_id) is None:
            issues.append(ComplianceIssue(
                MISSING_EXPECTED_OUTPUT,
                "promised_outputs",
                f"Expected output {expected.asset_id} is not promised",
            ))
    return issues


def check_timing(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    deadline = intent.timing.absolute_deadline
    if solution.submitted_at >= deadline:
        return [ComplianceIssue(
            LATE_SUBMISSION,
            "submitted_at",
            f"Solution submitted at {solution.submitted_at}, deadline was {deadline}",
        )]
    return []


def check_gas(solution: Solution, settings: EngineSettings = DEFAULT_SETTINGS) -> List[ComplianceIssue]:
    gas = Decimal(solution.estimated_gas)
    if gas < 0 or gas >= settings.gas_sanity_ceiling:
        return [ComplianceIssue(
            GAS_UNREASONABLE,
            "estimated_gas",
            f"Gas estimate {solution.estimated_gas} is outside [0, {settings.gas_sanity_ceiling})",
        )]
    return []


def check_max_gas_cost(
    intent: Intent,
    solution: Solution,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> List[ComplianceIssue]:
    """estimated_gas is in native tokens; max_gas_cost is in base units."""
    max_gas = intent.constraints.max_gas_cost
    if max_gas is None:
        return []
    gas_base_units = Decimal(solution.estimated_gas) * settings.native_unit
    if gas_base_units > int(max_gas.amount):
        return [ComplianceIssue(
            GAS_LIMIT_EXCEEDED,
            "estimated_gas",
            f"Gas estimate {solution.estimated_gas} exceeds max gas cost {max_gas.amount} base units",
        )]
    return []


def check_routing(intent: Intent, solution: Solution) -> List[ComplianceIssue]:
    routing = intent.constraints.routing
    if routing is None:
        return []

    issues = []
    strategy = solution.strategy_summary
    if routing.max_hops is not None and strategy.total_hops > routing.max_hops:
        issues.append(ComplianceIssue(
            ROUTING_HOPS_EXCEEDED,
            "strategy_summary.total_hops",
            f"Route uses {strategy.total_hops} hops, maximum is {routing.max_hops}",
        ))

    blacklist = set(routing.blacklist_protocols)
    whitelist = set(routing.whitelist_protocols)
    for protocol in strategy.protocols_used:
        if protocol in blacklist:
            issues.append(ComplianceIssue(
                PROTOCOL_BLACKLISTED,
                "strategy_summary.protocols_used",
                f"Protocol {protocol} is blacklisted",
            ))
        elif whitelist and protocol not in whitelist:
            issues.append(ComplianceIssue(
                PROTOCOL_NOT_WHITELISTED,
                "strategy_summary.protocols_used",
                f"Protocol {protocol} is not whitelisted",
            ))
    return issues


def _scaled(amount: int, flow: AssetFlow, use_decimals: bool) -> Decimal:
    if use_decimals:
        return Decimal(amount).scaleb(-flow.asset_info.decimals)
    return Decimal(amount)


def check_limit_price(intent: Intent, solution: Solution) -> Tuple[List[ComplianceIssue], List[str]]:
    """
    Compare the executed price against the limit price.

    The price is quoted in `price_asset` per unit of the other side of the
    first input/output pair. Amounts are scaled by asset decimals when both
    sides declare them. Returns (issues, warnings); a price that cannot be
    derived is skipped with a warning.
    """
    limit = intent.constraints.limit_price
    if limit is None:
        return [], []

    input_flow = intent.operation.inputs[0]
    output_flow = intent.operation.outputs[0]
    input_amount = amount_upper_bound(input_flow.amount)
    output_amount = solution.promised_amount(output_flow.asset_id)
    if input_amount is None or output_amount is None or input_amount == 0 or output_amount == 0:
        return [], ["Limit price could not be verified: input or output amount unknown"]

    use_decimals = input_flow.asset_info is not None and output_flow.asset_info is not None
    sold = _scaled(input_amount, input_flow, use_decimals)
    bought = _scaled(output_amount, output_flow, use_decimals)

    if limit.price_asset == output_flow.asset_id:
        executed = bought / sold
    elif limit.price_asset == input_flow.asset_id:
        executed = sold / bought
    else:
        return [], [f"Limit price could not be verified: price asset {limit.price_asset} is not traded"]

    try:
        limit_value = Decimal(limit.price)
    except InvalidOperation:
        return [], [f"Limit price could not be verified: invalid price {limit.price}"]

    if limit.comparison == PriceComparison.GTE:
        violated = executed < limit_value
    else:
        violated = executed > limit_value

    if violated:
        return [ComplianceIssue(
            LIMIT_PRICE_VIOLATED,
            "promised_outputs",
            f"Executed price {executed:.6g} violates limit {limit.comparison.value} {limit.price}",
        )], []
    return [], []


# ============================================================
# SCORING
# ============================================================

def calculate_solution_compliance_score(
    intent: Intent,
    solution: Solution,
    issues: List[ComplianceIssue],
) -> float:
    """100 minus one penalty per failed group, plus practice bonuses, clamped."""
    score = 100
    for group in sorted({issue.group for issue in issues}):
        score -= GROUP_PENALTIES[group]

    if solution.strategy_summary.protocols_used:
        score += TRANSPARENCY_BONUS
    if solution.estimated_slippage_bps <= intent.constraints.max_slippage_bps:
        score += SLIPPAGE_HEADROOM_BONUS

    return float(max(0, min(100, score)))


def collect_issues(
    intent: Intent,
    solution: Solution,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[List[ComplianceIssue], List[str]]:
    """Run every check, returning (issues, warnings)."""
    limit_issues, warnings = check_limit_price(intent, solution)
    issues = (
        check_intent_id(intent, solution)
        + check_min_outputs(intent, solution)
        + check_slippage(intent, solution)
        + limit_issues
        + check_routing(intent, solution)
        + check_max_gas_cost(intent, solution, settings)
        + check_expected_outputs(intent, solution)
        + check_timing(intent, solution)
        + check_gas(solution, settings)
    )
    return issues, warnings


def check_compliance(
    intent: Intent,
    solution: Solution,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> ValidationResult:
    """
    Check a Solution against a validated Intent.

    Args:
        intent: Structurally valid Intent
        solution: Structurally valid Solution
        settings: Gas ceiling and native token decimals

    Returns:
        ValidationResult: valid only when no check failed
    """
    issues, warnings = collect_issues(intent, solution, settings)
    return ValidationResult(
        valid=not issues,
        compliance_score=calculate_solution_compliance_score(intent, solution, issues),
        errors=[issue.to_error() for issue in issues],
        warnings=warnings,
    )


def is_hard_rejection(result: ValidationResult) -> bool:
    """True when a failed check excludes the Solution whatever its score."""
    return any(code in HARD_REJECTION_CODES for code in result.error_codes)
