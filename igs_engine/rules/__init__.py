"""
Business-Rule Layer

Cross-field and temporal rules over a structurally valid Intent, and the
Intent compliance score.

Version: business_rules_v1
"""

from .table import BUSINESS_RULES, RULES_BY_ID, BusinessRule, RuleContext, is_complex_operation
from .validate import (
    RuleOutcome,
    evaluate_rules,
    validate_rules,
    validate_intent,
    calculate_intent_compliance_score,
)

__all__ = [
    "BUSINESS_RULES",
    "RULES_BY_ID",
    "BusinessRule",
    "RuleContext",
    "RuleOutcome",
    "is_complex_operation",
    "evaluate_rules",
    "validate_rules",
    "validate_intent",
    "calculate_intent_compliance_score",
]

__version__ = "business_rules_v1"
