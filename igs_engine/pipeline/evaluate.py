"""
Evaluation Pipeline

Runs one Intent through every layer:

    schema -> business rules -> classification
           -> per-Solution schema / compliance / surplus   (fan-out)
           -> pre-ranking -> ranking                       (fan-in)

Each Solution is assessed independently against the read-only Intent, so
the fan-out may run on a thread pool. Only the ranking sort needs the full
set. Intents in a batch are independent of each other: one that fails to
parse produces a failed report and never aborts the rest.

Version: pipeline_v1
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Mapping, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from igs_engine.classification.classify import IntentClassifier, classify, extract_features
from igs_engine.classification.models import Classification
from igs_engine.config import DEFAULT_SETTINGS, EngineSettings
from igs_engine.ranking.models import FailureReason, RankingResult, RejectionEntry
from igs_engine.ranking.rank import (
    SolutionAssessment,
    assess_solution,
    duplicate_solution_ids,
    rank_assessments,
    rejection_sort_key,
    reputation_for,
)
from igs_engine.rules.validate import validate_intent
from igs_engine.schema.models import Intent, Severity, ValidationError
from igs_engine.schema.validate import (
    INTENT_VALIDATOR,
    SOLUTION_VALIDATOR,
    PayloadParseError,
    SchemaValidator,
    parse_payload,
)
from igs_engine.shared.clock import current_time_ms
from igs_engine.surplus.calculate import PriceOracle

from .models import (
    EvaluationError,
    EvaluationReport,
    EvaluationRequest,
    EvaluationStatus,
    PreRankingResult,
    ProcessingStats,
    SolutionFeatures,
    SolutionFeatureVector,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def fan_out(func: Callable[[T], R], items: List[T], max_workers: int = 1) -> List[R]:
    """Apply func to every item, in order, optionally on a thread pool."""
    if max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(func, items))


# ============================================================
# PER-SOLUTION STEP
# ============================================================

def _placeholder_id(index: int) -> str:
    return f"unparsed-{index}"


def assess_payload(
    intent: Intent,
    index: int,
    payload: Any,
    settings: EngineSettings = DEFAULT_SETTINGS,
    oracle: Optional[PriceOracle] = None,
    validator: SchemaValidator = SOLUTION_VALIDATOR,
) -> Union[SolutionAssessment, RejectionEntry]:
    """
    Structural check, compliance and surplus for one Solution payload.

    A payload that does not parse or fails the Solution schema becomes a
    schema_invalid rejection instead of an assessment.
    """
    try:
        document = parse_payload(payload)
    except PayloadParseError as e:
        return RejectionEntry(
            solution_id=_placeholder_id(index),
            failure_reason=FailureReason.SCHEMA_INVALID,
            errors=[ValidationError(
                code=e.error_code.value,
                field_path="root",
                message=e.message,
                severity=Severity.ERROR,
            )],
        )

    structural, solution = validator.validate(document)
    if solution is None:
        solution_id = document.get("solution_id")
        solver_address = document.get("solver_address")
        return RejectionEntry(
            solution_id=solution_id if isinstance(solution_id, str) and solution_id else _placeholder_id(index),
            solver_address=solver_address if isinstance(solver_address, str) else None,
            failure_reason=FailureReason.SCHEMA_INVALID,
            errors=structural.errors,
        )

    return assess_solution(intent, solution, settings, oracle)


# ============================================================
# PRE-RANKING
# ============================================================

def solution_features(
    assessment: SolutionAssessment,
    reputations: Optional[Mapping[str, float]],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SolutionFeatures:
    solution = assessment.solution
    gas = Decimal(solution.estimated_gas)
    fees = Decimal(solution.protocol_fees) if solution.protocol_fees else Decimal(0)
    reputation = float(reputation_for(solution.solver_address, reputations, settings))
    return SolutionFeatures(
        surplus=float(Decimal(assessment.surplus.surplus)),
        surplus_percentage=assessment.surplus.surplus_percentage,
        gas_cost=float(gas),
        protocol_fees=float(fees),
        total_cost=float(gas + fees),
        total_hops=solution.strategy_summary.total_hops,
        protocols_count=len(set(solution.strategy_summary.protocols_used)),
        solver_reputation_score=reputation,
    )


def build_pre_ranking(
    intent: Intent,
    classification: Classification,
    assessments: List[SolutionAssessment],
    rejections: List[RejectionEntry],
    reputations: Optional[Mapping[str, float]] = None,
    now_ms: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> PreRankingResult:
    """
    Summarize the fan-out before ranking.

    `rejections` holds every Solution excluded so far, schema and
    compliance alike.
    """
    now = current_time_ms() if now_ms is None else now_ms
    duplicates = duplicate_solution_ids(assessments)
    passed = sorted(
        (a for a in assessments if a.passed and a.solution.solution_id not in duplicates),
        key=lambda a: a.solution.solution_id,
    )
    return PreRankingResult(
        intent_id=intent.intent_id,
        intent_classification=classification,
        intent_features=extract_features(intent, now),
        passed_solution_ids=[a.solution.solution_id for a in passed],
        failed_solution_ids=rejections,
        feature_vectors=[
            SolutionFeatureVector(
                solution_id=a.solution.solution_id,
                features=solution_features(a, reputations, settings),
            )
            for a in passed
        ],
        stats=ProcessingStats(
            total_submitted=len(assessments) + sum(
                1 for r in rejections if r.failure_reason == FailureReason.SCHEMA_INVALID
            ),
            passed=len(passed),
            failed=len(rejections),
            processed_at=now,
        ),
    )


# ============================================================
# EVALUATION
# ============================================================

def _failed_report(error: PayloadParseError) -> EvaluationReport:
    return EvaluationReport(
        status=EvaluationStatus.FAILED,
        error=EvaluationError(code=error.error_code.value, message=error.message),
    )


def evaluate_intent(
    intent_payload: Any,
    solution_payloads: Iterable[Any] = (),
    reputations: Optional[Mapping[str, float]] = None,
    now_ms: Optional[int] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    classifier: Optional[IntentClassifier] = None,
    oracle: Optional[PriceOracle] = None,
    intent_validator: SchemaValidator = INTENT_VALIDATOR,
    solution_validator: SchemaValidator = SOLUTION_VALIDATOR,
) -> EvaluationReport:
    """
    Evaluate one Intent and its final set of Solutions.

    Args:
        intent_payload: IGS Intent as dict, JSON string or bytes
        solution_payloads: IGS Solutions in the same forms
        reputations: solver_address -> reputation in [0, 100]
        now_ms: Clock for deadline rules (now when omitted)
        ranked_at: Ranking timestamp (defaults to now_ms)
        settings: Engine settings snapshot
        classifier: Intent classifier strategy (rule-based by default)
        oracle: Optional basket price oracle for surplus

    Returns:
        EvaluationReport. Never raises for bad input.
    """
    now = current_time_ms() if now_ms is None else now_ms
    ranked_at = now if ranked_at is None else ranked_at

    try:
        document = parse_payload(intent_payload)
    except PayloadParseError as e:
        logger.error(f"Intent payload rejected: {e}")
        return _failed_report(e)

    validation, intent = validate_intent(document, now_ms=now, validator=intent_validator, settings=settings)
    if not validation.valid:
        raw_id = document.get("intent_id")
        intent_id = intent.intent_id if intent is not None else (raw_id if isinstance(raw_id, str) else None)
        logger.warning(f"Intent {intent_id} invalid: {', '.join(validation.error_codes)}")
        return EvaluationReport(
            intent_id=intent_id,
            status=EvaluationStatus.INVALID,
            intent_validation=validation,
        )

    classification = classify(intent, classifier)

    payloads = list(solution_payloads)
    outcomes = fan_out(
        lambda item: assess_payload(intent, item[0], item[1], settings, oracle, solution_validator),
        list(enumerate(payloads)),
        settings.max_workers,
    )
    assessments = [o for o in outcomes if isinstance(o, SolutionAssessment)]
    schema_rejections = [o for o in outcomes if isinstance(o, RejectionEntry)]

    ranking, compliance_rejections = rank_assessments(
        intent,
        assessments,
        reputations=reputations,
        classification=classification,
        ranked_at=ranked_at,
        settings=settings,
    )
    rejections = sorted(schema_rejections + compliance_rejections, key=rejection_sort_key)
    ranking = _with_schema_rejections(ranking, len(schema_rejections))

    pre_ranking = build_pre_ranking(
        intent, classification, assessments, rejections, reputations, now, settings
    )

    for rejection in rejections:
        codes = ", ".join(e.code for e in rejection.errors)
        logger.warning(
            f"Solution {rejection.solution_id} for intent {intent.intent_id} rejected "
            f"({rejection.failure_reason.value}): {codes}"
        )
    winner = ranking.best_solution.solution_id if ranking.best_solution else None
    logger.info(
        f"Intent {intent.intent_id} ranked: {ranking.metadata.passed_solutions} passed, "
        f"{ranking.metadata.rejected_solutions} rejected, best={winner}"
    )

    return EvaluationReport(
        intent_id=intent.intent_id,
        status=EvaluationStatus.RANKED,
        intent_validation=validation,
        classification=classification,
        pre_ranking=pre_ranking,
        ranking=ranking,
        rejections=rejections,
    )


def _with_schema_rejections(ranking: RankingResult, schema_rejected: int) -> RankingResult:
    """Count structurally invalid Solutions in the ranking totals."""
    if not schema_rejected:
        return ranking
    metadata = ranking.metadata.model_copy(update={
        "total_solutions": ranking.metadata.total_solutions + schema_rejected,
        "rejected_solutions": ranking.metadata.rejected_solutions + schema_rejected,
    })
    return ranking.model_copy(update={"metadata": metadata})


def evaluate_request(
    request: EvaluationRequest,
    now_ms: Optional[int] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    classifier: Optional[IntentClassifier] = None,
    oracle: Optional[PriceOracle] = None,
) -> EvaluationReport:
    return evaluate_intent(
        request.intent,
        request.solutions,
        reputations=request.reputations,
        now_ms=now_ms,
        ranked_at=ranked_at,
        settings=settings,
        classifier=classifier,
        oracle=oracle,
    )


def evaluate_batch(
    batch: Iterable[Union[EvaluationRequest, Mapping[str, Any]]],
    now_ms: Optional[int] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    classifier: Optional[IntentClassifier] = None,
    oracle: Optional[PriceOracle] = None,
) -> List[EvaluationReport]:
    """
    Evaluate many Intents independently, one report per request, in order.

    A single clock reading is shared by the whole batch when now_ms is
    omitted.
    """
    now = current_time_ms() if now_ms is None else now_ms

    def _evaluate(item) -> EvaluationReport:
        if not isinstance(item, EvaluationRequest):
            try:
                item = EvaluationRequest.model_validate(item)
            except PydanticValidationError as e:
                logger.error(f"Batch entry rejected: {e.error_count()} request errors")
                return EvaluationReport(
                    status=EvaluationStatus.FAILED,
                    error=EvaluationError(code="INVALID_REQUEST", message=str(e)),
                )
        try:
            return evaluate_request(item, now, ranked_at, settings, classifier, oracle)
        except Exception as e:
            logger.exception(f"Batch entry evaluation failed: {e}")
            return EvaluationReport(
                status=EvaluationStatus.FAILED,
                error=EvaluationError(code="EVALUATION_ERROR", message=str(e)),
            )

    reports = fan_out(_evaluate, list(batch), settings.max_workers)
    ranked = sum(1 for r in reports if r.status == EvaluationStatus.RANKED)
    logger.info(f"Batch evaluated: {len(reports)} intents, {ranked} ranked")
    return reports
