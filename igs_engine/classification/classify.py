"""
Intent Classifier

Rule-based derivation of category, priority, complexity and risk labels
from a valid Intent, plus feature extraction.

Rules (NOT ML). An ML-backed classifier can be plugged in by implementing
the IntentClassifier protocol; the rest of the pipeline only sees the
Classification it returns.

Version: classifier_v1
"""

from typing import List, Optional, Protocol, Set

from igs_engine.schema.models import (
    AssetFlow,
    AssetType,
    Intent,
    INTENT_TYPE_MODES,
    OptimizationGoal,
    RankingWeights,
    Urgency,
)
from igs_engine.shared.clock import current_time_ms

from .models import (
    Classification,
    ClassificationMetadata,
    ComplexityLevel,
    DetectedPriority,
    IntentFeatures,
    PrimaryCategory,
    RiskLevel,
    RISK_ORDER,
)


CLASSIFIER_VERSION = "classifier_v1"

# Priority must lead the runner-up by at least this many weight points
PRIORITY_DOMINANCE_MARGIN = 10

ELEVATED_SLIPPAGE_BPS = 100
HIGH_SLIPPAGE_BPS = 500

FEATURES_USED = [
    "intent_type",
    "operation.mode",
    "operation.inputs",
    "operation.outputs",
    "constraints.routing",
    "constraints.max_slippage_bps",
    "preferences.ranking_weights",
    "preferences.execution.urgency",
    "preferences.execution.auto_execute",
    "preferences.privacy.anonymous_execution",
]

_DEFAULT_WEIGHTS = RankingWeights()


class IntentClassifier(Protocol):
    """Anything that turns an Intent into a Classification."""

    def classify(self, intent: Intent) -> Classification:
        ...


# ============================================================
# CATEGORY
# ============================================================

def _asset_ids(flows: List[AssetFlow]) -> Set[str]:
    return {flow.asset_id for flow in flows}


def derive_category(intent: Intent) -> PrimaryCategory:
    """
    limit.* -> limit_order; multi-hop over several protocols -> complex_defi;
    an asset flowing both in and out against another asset -> arbitrage;
    otherwise swap. Type/mode disagreement or a one-asset round trip is
    ambiguous -> other.
    """
    if intent.is_limit:
        return PrimaryCategory.LIMIT_ORDER

    if INTENT_TYPE_MODES[intent.intent_type] != intent.operation.mode:
        return PrimaryCategory.OTHER

    routing = intent.constraints.routing
    if routing is not None:
        hops_allowed = routing.max_hops or 1
        protocols = set(routing.whitelist_protocols) | set(routing.blacklist_protocols)
        if hops_allowed > 1 and len(protocols) > 1:
            return PrimaryCategory.COMPLEX_DEFI

    inputs = _asset_ids(intent.operation.inputs)
    outputs = _asset_ids(intent.operation.outputs)
    if inputs & outputs:
        if len(inputs | outputs) >= 2:
            return PrimaryCategory.ARBITRAGE
        return PrimaryCategory.OTHER

    return PrimaryCategory.SWAP


# ============================================================
# PRIORITY / COMPLEXITY / RISK
# ============================================================

def derive_priority(weights: RankingWeights) -> DetectedPriority:
    """Argmax of the surplus/gas/speed weights unless the lead is under 10 points."""
    candidates = sorted(
        [
            (weights.surplus_weight, DetectedPriority.OUTPUT),
            (weights.gas_cost_weight, DetectedPriority.COST),
            (weights.execution_speed_weight, DetectedPriority.SPEED),
        ],
        key=lambda item: item[0],
        reverse=True,
    )
    (top_weight, top_priority), (runner_up, _) = candidates[0], candidates[1]
    if top_weight - runner_up < PRIORITY_DOMINANCE_MARGIN:
        return DetectedPriority.BALANCED
    return top_priority


def _constraint_count(intent: Intent) -> int:
    constraints = intent.constraints
    present = [
        bool(constraints.min_outputs),
        bool(constraints.max_inputs),
        constraints.max_gas_cost is not None,
        constraints.routing is not None,
        constraints.limit_price is not None,
    ]
    return sum(present)


def derive_complexity(intent: Intent) -> ComplexityLevel:
    """
    0-1 constraints and <=2 assets -> simple; <=2 routing constraints or
    <=4 hops -> moderate; else complex.
    """
    asset_count = len(intent.operation.inputs) + len(intent.operation.outputs)
    if _constraint_count(intent) <= 1 and asset_count <= 2:
        return ComplexityLevel.SIMPLE

    routing = intent.constraints.routing
    routing_constraints = 0
    hops = 1
    if routing is not None:
        routing_constraints = (
            (1 if routing.max_hops else 0)
            + len(routing.whitelist_protocols)
            + len(routing.blacklist_protocols)
        )
        hops = routing.max_hops or 1

    if routing_constraints <= 2 or hops <= 4:
        return ComplexityLevel.MODERATE
    return ComplexityLevel.COMPLEX


def derive_risk(intent: Intent) -> RiskLevel:
    slippage = intent.constraints.max_slippage_bps
    if slippage > HIGH_SLIPPAGE_BPS:
        level = 2
    elif slippage > ELEVATED_SLIPPAGE_BPS:
        level = 1
    else:
        level = 0

    execution = intent.preferences.execution
    if execution.urgency == Urgency.HIGH and execution.auto_execute:
        level += 1
    if intent.preferences.privacy.anonymous_execution:
        level = max(level, 1)

    return RISK_ORDER[min(level, len(RISK_ORDER) - 1)]


def derive_confidence(intent: Intent) -> float:
    """Share of optional signal fields that are present and non-default."""
    outcome = intent.operation.expected_outcome
    signals = [
        intent.description is not None,
        outcome is not None,
        bool(outcome and outcome.benchmark and outcome.benchmark.confidence is not None),
        bool(outcome and outcome.market_price),
        intent.constraints.routing is not None,
        intent.constraints.max_gas_cost is not None,
        intent.preferences.ranking_weights != _DEFAULT_WEIGHTS,
        intent.preferences.optimization_goal != OptimizationGoal.BALANCED,
        intent.metadata.original_input is not None,
        bool(intent.metadata.tags),
    ]
    return round(sum(signals) / len(signals), 4)


class RuleBasedClassifier:
    """Default classifier strategy."""

    version = CLASSIFIER_VERSION

    def classify(self, intent: Intent) -> Classification:
        return Classification(
            primary_category=derive_category(intent),
            detected_priority=derive_priority(intent.preferences.ranking_weights),
            complexity_level=derive_complexity(intent),
            risk_level=derive_risk(intent),
            confidence=derive_confidence(intent),
            metadata=ClassificationMetadata(
                method="rule_based",
                model_version=self.version,
                features_used=list(FEATURES_USED),
            ),
        )


DEFAULT_CLASSIFIER = RuleBasedClassifier()


def classify(intent: Intent, classifier: Optional[IntentClassifier] = None) -> Classification:
    """Classify an Intent with the given strategy (rule-based by default)."""
    return (classifier or DEFAULT_CLASSIFIER).classify(intent)


# ============================================================
# FEATURES
# ============================================================

def _asset_type(flow: AssetFlow) -> str:
    if flow.asset_info is not None and flow.asset_info.asset_type is not None:
        return flow.asset_info.asset_type.value
    if flow.asset_id == "native":
        return AssetType.NATIVE.value
    return AssetType.VOLATILE.value


def extract_features(intent: Intent, now_ms: Optional[int] = None) -> IntentFeatures:
    """Flatten an Intent into the classifier feature vector."""
    now = current_time_ms() if now_ms is None else now_ms
    constraints = intent.constraints
    routing = constraints.routing
    weights = intent.preferences.ranking_weights
    execution = intent.preferences.execution
    outcome = intent.operation.expected_outcome
    benchmark = outcome.benchmark if outcome else None
    costs = outcome.expected_costs if outcome else None
    original_input = intent.metadata.original_input
    client = intent.metadata.client

    return IntentFeatures(
        solver_window_ms=intent.timing.solver_window_ms,
        user_decision_timeout_ms=intent.timing.user_decision_timeout_ms,
        time_to_deadline_ms=max(0, intent.timing.absolute_deadline - now),
        max_slippage_bps=constraints.max_slippage_bps,
        max_gas_cost=int(constraints.max_gas_cost.amount) if constraints.max_gas_cost else None,
        max_hops=routing.max_hops if routing else None,
        has_whitelist=bool(routing and routing.whitelist_protocols),
        has_blacklist=bool(routing and routing.blacklist_protocols),
        has_limit_price=constraints.limit_price is not None,
        optimization_goal=intent.preferences.optimization_goal.value,
        surplus_weight=weights.surplus_weight,
        gas_cost_weight=weights.gas_cost_weight,
        execution_speed_weight=weights.execution_speed_weight,
        reputation_weight=weights.reputation_weight,
        auto_execute=execution.auto_execute,
        require_simulation=execution.require_simulation,
        input_count=len(intent.operation.inputs),
        output_count=len(intent.operation.outputs),
        input_asset_types=[_asset_type(f) for f in intent.operation.inputs],
        output_asset_types=[_asset_type(f) for f in intent.operation.outputs],
        benchmark_source=benchmark.source.value if benchmark and benchmark.source else "none",
        benchmark_confidence=benchmark.confidence if benchmark and benchmark.confidence is not None else 0.0,
        expected_slippage_bps=float(costs.slippage_estimate) if costs and costs.slippage_estimate else None,
        has_nlp_input=original_input is not None,
        nlp_confidence=original_input.confidence if original_input else None,
        client_platform=client.platform if client else "unknown",
        tag_count=len(intent.metadata.tags),
    )
