"""
Business-Rule Validator

Runs every rule in the business rule table against a structurally valid
Intent and folds the outcome, together with the structural result, into one
ValidationResult and compliance score.

All rules run and accumulate; the order of the table does not affect the
outcome.

Version: business_rules_v1
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from igs_engine.config import DEFAULT_SETTINGS, EngineSettings
from igs_engine.schema.models import Intent, Severity, ValidationError, ValidationResult
from igs_engine.schema.validate import INTENT_VALIDATOR, STRUCTURAL_ERROR_PENALTY, SchemaValidator
from igs_engine.shared.clock import current_time_ms

from .table import BUSINESS_RULES, BusinessRule, RuleContext


# Compliance score weights
RULE_ERROR_PENALTY = 20
WARNING_PENALTY = 15
HIGH_CONFIDENCE_THRESHOLD = 0.9
ORIGINAL_INPUT_BONUS = 5
BENCHMARK_BONUS = 5
SIMULATION_BONUS = 3


@dataclass(frozen=True)
class RuleOutcome:
    """One message raised by one business rule."""
    rule_id: str
    severity: Severity
    field_path: str
    message: str


def evaluate_rules(
    intent: Intent,
    now_ms: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    rules: Optional[List[BusinessRule]] = None,
) -> List[RuleOutcome]:
    """Run every rule and return each raised message with its rule id."""
    ctx = RuleContext(
        intent=intent,
        now_ms=current_time_ms() if now_ms is None else now_ms,
        settings=settings,
    )
    outcomes: List[RuleOutcome] = []
    for rule in BUSINESS_RULES if rules is None else rules:
        for message in rule.check(ctx):
            outcomes.append(RuleOutcome(rule.rule_id, rule.severity, rule.field_path, message))
    return outcomes


def validate_rules(
    intent: Intent,
    now_ms: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[List[ValidationError], List[str]]:
    """
    Apply the business rules to a structurally valid Intent.

    Returns:
        (errors, warnings): error-severity findings as ValidationErrors,
        warning-severity findings as plain messages
    """
    errors: List[ValidationError] = []
    warnings: List[str] = []
    for outcome in evaluate_rules(intent, now_ms=now_ms, settings=settings):
        if outcome.severity == Severity.ERROR:
            errors.append(ValidationError(
                code=outcome.rule_id,
                field_path=outcome.field_path,
                message=outcome.message,
                severity=Severity.ERROR,
            ))
        else:
            warnings.append(outcome.message)
    return errors, warnings


def calculate_intent_compliance_score(
    intent: Optional[Intent],
    structural_errors: int,
    rule_errors: int,
    warnings: int,
) -> float:
    """
    Intent compliance score, bounded to [0, 100].

    Errors cost far more than warnings so that a single hard violation
    dominates. Confidence bonuses need a parsed Intent to read from.
    """
    score = 100
    score -= structural_errors * STRUCTURAL_ERROR_PENALTY
    score -= rule_errors * RULE_ERROR_PENALTY
    score -= warnings * WARNING_PENALTY

    if intent is not None:
        original_input = intent.metadata.original_input
        if original_input and original_input.confidence > HIGH_CONFIDENCE_THRESHOLD:
            score += ORIGINAL_INPUT_BONUS

        outcome = intent.operation.expected_outcome
        benchmark = outcome.benchmark if outcome else None
        if benchmark and benchmark.confidence is not None and benchmark.confidence > HIGH_CONFIDENCE_THRESHOLD:
            score += BENCHMARK_BONUS

        if intent.preferences.execution.require_simulation:
            score += SIMULATION_BONUS

    return float(max(0, min(100, score)))


def validate_intent(
    payload,
    now_ms: Optional[int] = None,
    validator: SchemaValidator = INTENT_VALIDATOR,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[ValidationResult, Optional[Intent]]:
    """
    Full Intent validation: structure first, then business rules.

    Business rules only run on a structurally valid Intent. The parsed
    Intent is returned whenever the structure is valid, even if a business
    rule error makes the result invalid.
    """
    structural, intent = validator.validate(payload)
    if intent is None:
        return ValidationResult(
            valid=False,
            compliance_score=calculate_intent_compliance_score(None, len(structural.errors), 0, 0),
            errors=structural.errors,
            warnings=[],
        ), None

    errors, warnings = validate_rules(intent, now_ms=now_ms, settings=settings)
    score = calculate_intent_compliance_score(intent, 0, len(errors), len(warnings))
    return ValidationResult(
        valid=not any(e.severity == Severity.ERROR for e in errors),
        compliance_score=score,
        errors=errors,
        warnings=warnings,
    ), intent
