"""
Business-Rule Validator Tests

Every rule of the table in isolation, accumulation, the Intent compliance
score and the combined validate_intent flow.

Version: business_rules_v1
"""

import pytest

from igs_engine.config import EngineSettings
from igs_engine.rules import (
    BUSINESS_RULES,
    RULES_BY_ID,
    calculate_intent_compliance_score,
    evaluate_rules,
    is_complex_operation,
    validate_intent,
    validate_rules,
)
from igs_engine.schema.models import Intent, Severity

from builders import (
    DEADLINE,
    NOW,
    SUI,
    USDC,
    make_intent,
    make_intent_payload,
    make_limit_intent_payload,
    without,
)


def fired(intent, now_ms=NOW, settings=None):
    kwargs = {"now_ms": now_ms}
    if settings is not None:
        kwargs["settings"] = settings
    return {outcome.rule_id for outcome in evaluate_rules(intent, **kwargs)}


def intent_from(payload):
    return Intent.model_validate(payload)


# ============================================================
# TABLE
# ============================================================

class TestRuleTable:

    def test_rule_ids_unique(self):
        ids = [rule.rule_id for rule in BUSINESS_RULES]
        assert len(ids) == len(set(ids)) == len(RULES_BY_ID)

    def test_only_two_error_rules(self):
        errors = {rule.rule_id for rule in BUSINESS_RULES if rule.severity == Severity.ERROR}
        assert errors == {"EXPIRED_DEADLINE", "MISSING_LIMIT_PRICE"}

    def test_baseline_raises_nothing(self):
        assert evaluate_rules(make_intent(), now_ms=NOW) == []


# ============================================================
# EACH RULE IN ISOLATION
# ============================================================

class TestTimingRules:

    def test_expired_deadline(self):
        assert fired(make_intent(), now_ms=DEADLINE) == {"EXPIRED_DEADLINE"}

    def test_deadline_one_ms_ahead_is_fine(self):
        assert fired(make_intent(), now_ms=DEADLINE - 1) == set()

    def test_deadline_mismatch(self):
        intent = make_intent(constraints={"deadline": DEADLINE + 1})
        assert fired(intent) == {"DEADLINE_MISMATCH"}

    def test_solver_window_too_short(self):
        intent = make_intent(timing={"solver_window_ms": 500})
        assert fired(intent) == {"SOLVER_WINDOW_TOO_SHORT"}

    def test_solver_window_too_long(self):
        intent = make_intent(timing={"solver_window_ms": 70_000})
        assert fired(intent) == {"SOLVER_WINDOW_TOO_LONG"}

    def test_solver_window_short_for_complex(self):
        intent = make_intent(
            timing={"solver_window_ms": 1_500},
            constraints={"routing": {"max_hops": 3}},
        )
        assert fired(intent) == {"SOLVER_WINDOW_SHORT_FOR_COMPLEX"}

    def test_short_window_on_simple_operation_is_fine(self):
        intent = make_intent(timing={"solver_window_ms": 1_500})
        assert fired(intent) == set()

    def test_decision_timeout_too_long(self):
        intent = make_intent(timing={"user_decision_timeout_ms": 700_000})
        assert fired(intent) == {"DECISION_TIMEOUT_TOO_LONG"}


class TestOperationRules:

    def test_type_mode_mismatch(self):
        intent = make_intent(intent_type="swap.exact_output")
        assert fired(intent) == {"TYPE_MODE_MISMATCH"}

    def test_weight_sum_invalid_reports_sum(self):
        intent = make_intent(preferences={"ranking_weights": {"surplus_weight": 50}})
        outcomes = evaluate_rules(intent, now_ms=NOW)
        assert [o.rule_id for o in outcomes] == ["WEIGHT_SUM_INVALID"]
        assert "90" in outcomes[0].message

    def test_weight_sum_tolerance(self):
        intent = make_intent(preferences={"ranking_weights": {"surplus_weight": 60.005}})
        assert fired(intent) == set()

    def test_missing_limit_price(self):
        intent = intent_from(without(make_limit_intent_payload(), "constraints.limit_price"))
        assert fired(intent) == {"MISSING_LIMIT_PRICE"}

    def test_limit_with_price_is_fine(self):
        assert fired(intent_from(make_limit_intent_payload())) == set()

    def test_amount_mode_mismatch(self):
        payload = make_intent_payload()
        payload["operation"]["inputs"][0]["amount"] = {"type": "all"}
        assert fired(intent_from(payload)) == {"AMOUNT_MODE_MISMATCH"}


class TestConstraintRules:

    def test_slippage_too_high(self):
        intent = make_intent(constraints={"max_slippage_bps": 1_500})
        assert fired(intent) == {"SLIPPAGE_TOO_HIGH"}

    def test_gas_limit_too_high(self):
        intent = make_intent(constraints={"max_gas_cost": {"asset_id": SUI, "amount": "2000000000"}})
        assert fired(intent) == {"GAS_LIMIT_TOO_HIGH"}

    def test_gas_limit_follows_native_decimals(self):
        intent = make_intent(constraints={"max_gas_cost": {"asset_id": SUI, "amount": "2000000000"}})
        assert fired(intent, settings=EngineSettings(native_token_decimals=18)) == set()

    def test_low_benchmark_confidence(self):
        intent = make_intent(operation={"expected_outcome": {"benchmark": {"confidence": 0.5}}})
        assert fired(intent) == {"LOW_BENCHMARK_CONFIDENCE"}

    def test_limit_market_divergence(self):
        payload = make_limit_intent_payload(
            operation={"expected_outcome": {"market_price": {"price": "900", "price_asset": USDC}}},
        )
        assert fired(intent_from(payload)) == {"LIMIT_MARKET_DIVERGENCE"}

    def test_limit_near_market_is_fine(self):
        payload = make_limit_intent_payload(
            operation={"expected_outcome": {"market_price": {"price": "300", "price_asset": USDC}}},
        )
        assert fired(intent_from(payload)) == set()


# ============================================================
# ACCUMULATION AND SCORE
# ============================================================

class TestAccumulation:

    def test_all_rules_accumulate(self):
        intent = make_intent(
            timing={"solver_window_ms": 500, "user_decision_timeout_ms": 700_000},
            constraints={"max_slippage_bps": 1_500},
        )
        assert fired(intent, now_ms=DEADLINE) == {
            "EXPIRED_DEADLINE",
            "SOLVER_WINDOW_TOO_SHORT",
            "DECISION_TIMEOUT_TOO_LONG",
            "SLIPPAGE_TOO_HIGH",
        }

    def test_order_does_not_matter(self):
        intent = make_intent(
            timing={"solver_window_ms": 500},
            constraints={"max_slippage_bps": 1_500},
        )
        forward = evaluate_rules(intent, now_ms=NOW, rules=BUSINESS_RULES)
        backward = evaluate_rules(intent, now_ms=NOW, rules=list(reversed(BUSINESS_RULES)))
        assert {o.rule_id for o in forward} == {o.rule_id for o in backward}

    def test_validate_rules_splits_by_severity(self):
        intent = make_intent(constraints={"max_slippage_bps": 1_500})
        errors, warnings = validate_rules(intent, now_ms=DEADLINE)
        assert [e.code for e in errors] == ["EXPIRED_DEADLINE"]
        assert errors[0].field_path == "timing.absolute_deadline"
        assert warnings == ["Slippage > 10% is unusually high"]

    def test_is_complex_operation(self):
        assert not is_complex_operation(make_intent())
        assert is_complex_operation(intent_from(make_limit_intent_payload()))


class TestComplianceScore:

    def test_penalties(self):
        assert calculate_intent_compliance_score(None, 1, 0, 0) == 65
        assert calculate_intent_compliance_score(None, 0, 1, 1) == 65
        assert calculate_intent_compliance_score(None, 3, 0, 0) == 0

    def test_bonuses(self):
        intent = make_intent(
            metadata={"original_input": {"text": "swap 1 sui", "language": "en", "confidence": 0.95}},
            preferences={"execution": {"require_simulation": True}},
        )
        # 100 - 15 + 5 + 5 + 3
        assert calculate_intent_compliance_score(intent, 0, 0, 1) == 98

    def test_clamped_to_100(self):
        assert calculate_intent_compliance_score(make_intent(), 0, 0, 0) == 100


# ============================================================
# COMBINED VALIDATION
# ============================================================

class TestValidateIntent:

    def test_valid_intent(self):
        result, intent = validate_intent(make_intent_payload(), now_ms=NOW)
        assert result.valid
        assert result.compliance_score == 100
        assert intent.intent_id == "intent-001"

    def test_warning_keeps_intent_valid(self):
        result, _ = validate_intent(make_intent_payload(constraints={"max_slippage_bps": 1_500}), now_ms=NOW)
        assert result.valid
        # 100 - 15 + 5 (benchmark confidence)
        assert result.compliance_score == 90
        assert len(result.warnings) == 1

    def test_missing_limit_price_invalidates(self):
        payload = without(make_limit_intent_payload(), "constraints.limit_price")
        result, intent = validate_intent(payload, now_ms=NOW)
        assert not result.valid
        assert result.error_codes == ["MISSING_LIMIT_PRICE"]
        assert intent is not None

    def test_structural_failure_skips_rules(self):
        result, intent = validate_intent(make_intent_payload(user_address="nope"), now_ms=DEADLINE)
        assert intent is None
        assert result.error_codes == ["INVALID_PATTERN"]
        assert result.compliance_score == 65

    @pytest.mark.parametrize("now_ms,expected", [(NOW, True), (DEADLINE, False)])
    def test_deadline_boundary(self, now_ms, expected):
        result, _ = validate_intent(make_intent_payload(), now_ms=now_ms)
        assert result.valid is expected
