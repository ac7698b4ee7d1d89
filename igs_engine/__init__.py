"""
IGS Ranking Engine

Validates Intents against the Intenus General Standard, classifies them,
checks solver Solutions for compliance, computes surplus and ranks the
Solutions deterministically.

    from igs_engine import evaluate_intent
    report = evaluate_intent(intent_json, [solution_json, ...], reputations)
"""

from igs_engine.schema import (
    Intent,
    Solution,
    ValidationResult,
    PayloadParseError,
    parse_payload,
    validate_structure,
    validate_solution_structure,
)
from igs_engine.rules import validate_rules, validate_intent
from igs_engine.classification import classify, extract_features
from igs_engine.compliance import check_compliance
from igs_engine.surplus import calculate_surplus
from igs_engine.ranking import rank, rank_with_ledger, verify_ranking
from igs_engine.pipeline import evaluate_intent, evaluate_batch
from igs_engine.config import EngineSettings, get_settings

__all__ = [
    "Intent",
    "Solution",
    "ValidationResult",
    "PayloadParseError",
    "parse_payload",
    "validate_structure",
    "validate_solution_structure",
    "validate_rules",
    "validate_intent",
    "classify",
    "extract_features",
    "check_compliance",
    "calculate_surplus",
    "rank",
    "rank_with_ledger",
    "verify_ranking",
    "evaluate_intent",
    "evaluate_batch",
    "EngineSettings",
    "get_settings",
]

__version__ = "1.0.0"
