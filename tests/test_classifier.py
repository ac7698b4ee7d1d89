"""
Intent Classifier Tests

Category, priority, complexity, risk and confidence derivation, the
pluggable classifier interface and feature extraction.

Version: classifier_v1
"""

import pytest

from igs_engine.classification import (
    Classification,
    ClassificationMetadata,
    ComplexityLevel,
    DetectedPriority,
    PrimaryCategory,
    RiskLevel,
    classify,
    escalate_risk,
    extract_features,
)
from igs_engine.classification.models import NUMERIC_FEATURES
from igs_engine.schema.models import Intent

from builders import DEADLINE, NOW, SUI, USDC, make_intent, make_intent_payload, make_limit_intent


def weights(surplus, gas, speed, reputation):
    return {"preferences": {"ranking_weights": {
        "surplus_weight": surplus,
        "gas_cost_weight": gas,
        "execution_speed_weight": speed,
        "reputation_weight": reputation,
    }}}


def output_flow(asset_id, symbol, decimals):
    return {
        "asset_id": asset_id,
        "asset_info": {"symbol": symbol, "decimals": decimals},
        "amount": {"type": "range", "min": "1", "max": "10"},
    }


# ============================================================
# BASELINE
# ============================================================

class TestBaseline:

    def test_baseline_labels(self):
        result = classify(make_intent())
        assert result.primary_category == PrimaryCategory.SWAP
        assert result.detected_priority == DetectedPriority.OUTPUT
        assert result.complexity_level == ComplexityLevel.SIMPLE
        assert result.risk_level == RiskLevel.LOW

    def test_metadata(self):
        result = classify(make_intent())
        assert result.metadata.method == "rule_based"
        assert result.metadata.model_version == "classifier_v1"
        assert "preferences.ranking_weights" in result.metadata.features_used

    def test_confidence_is_completeness_ratio(self):
        # description, expected_outcome, benchmark confidence, optimization goal
        assert classify(make_intent()).confidence == 0.4

    def test_more_signals_raise_confidence(self):
        intent = make_intent(
            metadata={"tags": ["dca"], "original_input": {"text": "swap", "language": "en", "confidence": 0.8}},
        )
        assert classify(intent).confidence == 0.6


# ============================================================
# CATEGORY
# ============================================================

class TestCategory:

    def test_limit_order(self):
        assert classify(make_limit_intent()).primary_category == PrimaryCategory.LIMIT_ORDER

    def test_type_mode_mismatch_is_other(self):
        intent = make_intent(intent_type="swap.exact_output")
        assert classify(intent).primary_category == PrimaryCategory.OTHER

    def test_multi_hop_multi_protocol_is_complex_defi(self):
        intent = make_intent(constraints={"routing": {"max_hops": 3, "whitelist_protocols": ["cetus", "turbos"]}})
        assert classify(intent).primary_category == PrimaryCategory.COMPLEX_DEFI

    def test_single_hop_stays_swap(self):
        intent = make_intent(constraints={"routing": {"max_hops": 1, "whitelist_protocols": ["cetus", "turbos"]}})
        assert classify(intent).primary_category == PrimaryCategory.SWAP

    def test_round_trip_pair_is_arbitrage(self):
        payload = make_intent_payload()
        payload["operation"]["outputs"].append(output_flow(SUI, "SUI", 9))
        assert classify(Intent.model_validate(payload)).primary_category == PrimaryCategory.ARBITRAGE

    def test_same_asset_only_is_other(self):
        payload = make_intent_payload()
        payload["operation"]["outputs"] = [output_flow(SUI, "SUI", 9)]
        assert classify(Intent.model_validate(payload)).primary_category == PrimaryCategory.OTHER


# ============================================================
# PRIORITY / COMPLEXITY / RISK
# ============================================================

class TestPriority:

    @pytest.mark.parametrize("w,expected", [
        ((60, 20, 10, 10), DetectedPriority.OUTPUT),
        ((10, 70, 10, 10), DetectedPriority.COST),
        ((10, 10, 70, 10), DetectedPriority.SPEED),
        ((40, 35, 15, 10), DetectedPriority.BALANCED),
        ((25, 25, 25, 25), DetectedPriority.BALANCED),
    ])
    def test_priority(self, w, expected):
        assert classify(make_intent(**weights(*w))).detected_priority == expected


class TestComplexity:

    def test_two_constraints_is_moderate(self):
        intent = make_intent(constraints={"max_gas_cost": {"asset_id": SUI, "amount": "10000000"}})
        assert classify(intent).complexity_level == ComplexityLevel.MODERATE

    def test_many_routing_constraints_and_hops_is_complex(self):
        intent = make_intent(constraints={"routing": {
            "max_hops": 6,
            "whitelist_protocols": ["cetus", "turbos", "aftermath"],
        }})
        assert classify(intent).complexity_level == ComplexityLevel.COMPLEX

    def test_many_routing_constraints_few_hops_is_moderate(self):
        intent = make_intent(constraints={"routing": {
            "max_hops": 3,
            "whitelist_protocols": ["cetus", "turbos", "aftermath"],
        }})
        assert classify(intent).complexity_level == ComplexityLevel.MODERATE


class TestRisk:

    @pytest.mark.parametrize("slippage,expected", [
        (50, RiskLevel.LOW),
        (100, RiskLevel.LOW),
        (200, RiskLevel.MEDIUM),
        (600, RiskLevel.HIGH),
    ])
    def test_slippage_tiers(self, slippage, expected):
        intent = make_intent(constraints={"max_slippage_bps": slippage})
        assert classify(intent).risk_level == expected

    def test_high_urgency_auto_execute_escalates(self):
        intent = make_intent(preferences={"execution": {"urgency": "high", "auto_execute": True}})
        assert classify(intent).risk_level == RiskLevel.MEDIUM

    def test_high_urgency_without_auto_execute(self):
        intent = make_intent(preferences={"execution": {"urgency": "high"}})
        assert classify(intent).risk_level == RiskLevel.LOW

    def test_escalation_saturates(self):
        intent = make_intent(
            constraints={"max_slippage_bps": 600},
            preferences={"execution": {"urgency": "high", "auto_execute": True}},
        )
        assert classify(intent).risk_level == RiskLevel.HIGH

    def test_anonymous_execution(self):
        intent = make_intent(preferences={"privacy": {"anonymous_execution": True}})
        assert classify(intent).risk_level == RiskLevel.MEDIUM

    def test_escalate_risk_helper(self):
        assert escalate_risk(RiskLevel.LOW) == RiskLevel.MEDIUM
        assert escalate_risk(RiskLevel.HIGH) == RiskLevel.HIGH
        assert escalate_risk(RiskLevel.LOW, steps=2) == RiskLevel.HIGH


# ============================================================
# PLUGGABLE STRATEGY
# ============================================================

class FixedClassifier:
    """Stand-in for a model-backed classifier."""

    def classify(self, intent):
        return Classification(
            primary_category=PrimaryCategory.ARBITRAGE,
            detected_priority=DetectedPriority.SPEED,
            complexity_level=ComplexityLevel.COMPLEX,
            risk_level=RiskLevel.HIGH,
            confidence=0.99,
            metadata=ClassificationMetadata(method="ml_model", model_version="fixed"),
        )


class TestPluggableClassifier:

    def test_custom_strategy_is_used(self):
        result = classify(make_intent(), classifier=FixedClassifier())
        assert result.primary_category == PrimaryCategory.ARBITRAGE
        assert result.metadata.method == "ml_model"

    def test_classification_is_deterministic(self):
        intent = make_intent()
        assert classify(intent) == classify(intent)


# ============================================================
# FEATURES
# ============================================================

class TestFeatures:

    def test_feature_values(self):
        features = extract_features(make_intent(), now_ms=NOW)
        assert features.time_to_deadline_ms == DEADLINE - NOW
        assert features.max_slippage_bps == 100
        assert features.input_asset_types == ["native"]
        assert features.output_asset_types == ["stable"]
        assert features.benchmark_source == "dex_aggregator"
        assert features.client_platform == "web"
        assert features.has_limit_price is False

    def test_time_to_deadline_never_negative(self):
        assert extract_features(make_intent(), now_ms=DEADLINE + 5).time_to_deadline_ms == 0

    def test_vector_shape(self):
        vector = extract_features(make_intent(), now_ms=NOW).to_vector()
        assert len(vector) == len(NUMERIC_FEATURES)
        assert all(isinstance(v, float) for v in vector)

    def test_unknown_asset_type_defaults_to_volatile(self):
        payload = make_intent_payload()
        del payload["operation"]["outputs"][0]["asset_info"]
        features = extract_features(Intent.model_validate(payload), now_ms=NOW)
        assert features.output_asset_types == ["volatile"]
        assert USDC not in features.output_asset_types
