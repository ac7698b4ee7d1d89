"""
Ranker

Scores and orders the Solutions submitted for one Intent.

1. Partition into passed (compliance valid) and rejected. Rejected
   Solutions never receive a score. A solution_id submitted more than
   once is rejected in every copy, so ids are unique among the ranked.
2. Four sub-scores in [0, 100] per passed Solution.
3. Weighted total using the Intent's own ranking weights.
4. Sort by score desc, surplus_score desc, submitted_at asc, solution_id asc.
5. Ranks 1..N; best_solution is always rank 1.
6. Reasoning per Solution.
7. expires_at = ranked_at + user_decision_timeout_ms.

Ranking is a pure function of (Intent, Solutions, reputations, ranked_at).
Any party holding the same inputs can recompute ranking_hash and verify
the winner.

Version: ranking_v1
"""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Mapping, Optional, Set, Tuple

from igs_engine.classification.classify import classify
from igs_engine.classification.models import Classification
from igs_engine.compliance.check import check_compliance, is_hard_rejection
from igs_engine.config import DEFAULT_SETTINGS, EngineSettings
from igs_engine.schema.models import (
    ExecutionMode,
    Intent,
    RankingWeights,
    Severity,
    Solution,
    ValidationError,
    ValidationResult,
)
from igs_engine.shared.clock import current_time_ms
from igs_engine.shared.hashing import canonicalize_and_hash, verify_hash
from igs_engine.surplus.calculate import PriceOracle, SurplusResult, calculate_surplus

from .explain import build_reasoning
from .models import (
    FailureReason,
    RankedSolution,
    RankingMetadata,
    RankingResult,
    RejectionEntry,
    ScoreBreakdown,
)


SCORE_PLACES = 4
SURPLUS_SCORE_MULTIPLIER = Decimal(10)
HOP_PENALTY = Decimal(10)

DUPLICATE_SOLUTION_ID = "DUPLICATE_SOLUTION_ID"


@dataclass(frozen=True)
class SolutionAssessment:
    """Per-Solution compliance and surplus, computed independently of siblings."""
    solution: Solution
    compliance: ValidationResult
    surplus: SurplusResult

    @property
    def passed(self) -> bool:
        return self.compliance.valid


def assess_solution(
    intent: Intent,
    solution: Solution,
    settings: EngineSettings = DEFAULT_SETTINGS,
    oracle: Optional[PriceOracle] = None,
) -> SolutionAssessment:
    """Compliance check and surplus for one Solution."""
    return SolutionAssessment(
        solution=solution,
        compliance=check_compliance(intent, solution, settings),
        surplus=calculate_surplus(intent, solution, oracle),
    )


# ============================================================
# SCORING
# ============================================================

def _clamp(value: Decimal, low: Decimal = Decimal(0), high: Decimal = Decimal(100)) -> Decimal:
    return max(low, min(high, value))


def compute_breakdown(
    solution: Solution,
    surplus: SurplusResult,
    weights: RankingWeights,
    reputation: Decimal,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> ScoreBreakdown:
    """
    Sub-scores and their weighted contributions.

    surplus_score = clamp(surplus_percentage * 10)   10% saturates
    cost_score    = clamp(100 - estimated_gas * k)
    speed_score   = clamp(100 - total_hops * 10)
    reputation    = clamp(registry value)

    Registry reputation is not passed through as-is: values outside
    [0, 100] are clamped like every other sub-score.
    """
    surplus_score = _clamp(Decimal(str(surplus.surplus_percentage)) * SURPLUS_SCORE_MULTIPLIER)
    cost_score = _clamp(100 - Decimal(solution.estimated_gas) * settings.cost_score_gas_factor)
    speed_score = _clamp(100 - solution.strategy_summary.total_hops * HOP_PENALTY)
    reputation_score = _clamp(reputation)

    def contribution(sub_score: Decimal, weight: float) -> float:
        return float(sub_score * Decimal(str(weight)) / 100)

    return ScoreBreakdown(
        surplus_score=float(surplus_score),
        cost_score=float(cost_score),
        speed_score=float(speed_score),
        reputation_score=float(reputation_score),
        surplus_contribution=contribution(surplus_score, weights.surplus_weight),
        cost_contribution=contribution(cost_score, weights.gas_cost_weight),
        speed_contribution=contribution(speed_score, weights.execution_speed_weight),
        reputation_contribution=contribution(reputation_score, weights.reputation_weight),
    )


def total_score(breakdown: ScoreBreakdown) -> float:
    """Sum of weighted contributions, clamped to [0, 100]."""
    total = sum(value for _, value in breakdown.contributions())
    return round(max(0.0, min(100.0, total)), SCORE_PLACES)


def sort_key(entry: RankedSolution) -> Tuple[float, float, int, str]:
    """Total order: score desc, surplus_score desc, submitted_at asc, solution_id asc."""
    return (
        -entry.score,
        -entry.score_breakdown.surplus_score,
        entry.submitted_at,
        entry.solution_id,
    )


def reputation_for(
    solver_address: str,
    reputations: Optional[Mapping[str, float]],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Decimal:
    """Registry reputation, or the default when absent or not a finite number."""
    if reputations and solver_address in reputations:
        value = Decimal(str(reputations[solver_address]))
        if value.is_finite():
            return value
    return settings.default_solver_reputation


def duplicate_solution_ids(assessments: List[SolutionAssessment]) -> Set[str]:
    """solution_ids submitted more than once for the same Intent."""
    counts = Counter(a.solution.solution_id for a in assessments)
    return {solution_id for solution_id, count in counts.items() if count > 1}


def _duplicate_rejection(assessment: SolutionAssessment) -> RejectionEntry:
    solution = assessment.solution
    return RejectionEntry(
        solution_id=solution.solution_id,
        solver_address=solution.solver_address,
        failure_reason=FailureReason.DUPLICATE_SOLUTION_ID,
        errors=[ValidationError(
            code=DUPLICATE_SOLUTION_ID,
            field_path="solution_id",
            message=f"Solution id {solution.solution_id} was submitted more than once",
            severity=Severity.ERROR,
        )],
    )


def rejection_sort_key(entry: RejectionEntry) -> Tuple[str, str]:
    """Ledger order: solution_id, then the full entry for shared ids."""
    return entry.solution_id, entry.model_dump_json()


def _rejection(assessment: SolutionAssessment) -> RejectionEntry:
    reason = (
        FailureReason.LATE_SUBMISSION
        if is_hard_rejection(assessment.compliance)
        else FailureReason.COMPLIANCE_FAILED
    )
    return RejectionEntry(
        solution_id=assessment.solution.solution_id,
        solver_address=assessment.solution.solver_address,
        failure_reason=reason,
        errors=assessment.compliance.errors,
    )


def _digest_payload(intent_id: str, ranked: List[RankedSolution], strategy_version: str) -> dict:
    return {
        "intent_id": intent_id,
        "strategy_version": strategy_version,
        "ranked": [
            {"rank": entry.rank, "solution_id": entry.solution_id, "score": entry.score}
            for entry in ranked
        ],
    }


def compute_ranking_hash(intent_id: str, ranked: List[RankedSolution], strategy_version: str) -> str:
    """Canonical SHA-256 over the ordered ids and scores."""
    return canonicalize_and_hash(_digest_payload(intent_id, ranked, strategy_version))


def verify_ranking(result: RankingResult) -> bool:
    """
    Recompute ranking_hash from a published result.

    False when ranks, ids or scores were altered after ranking, or when
    best_solution is not the rank 1 entry.
    """
    if result.ranked_solutions:
        if result.best_solution is None or result.best_solution != result.ranked_solutions[0]:
            return False
        if [e.rank for e in result.ranked_solutions] != list(range(1, len(result.ranked_solutions) + 1)):
            return False
    elif result.best_solution is not None:
        return False
    payload = _digest_payload(result.intent_id, result.ranked_solutions, result.metadata.strategy_version)
    return verify_hash(payload, result.ranking_hash)


def display_count_for(intent: Intent, ranked_count: int) -> int:
    execution = intent.preferences.execution
    cap = 1 if execution.mode == ExecutionMode.BEST_SOLUTION else execution.show_top_n
    return min(cap, ranked_count)


# ============================================================
# RANKING
# ============================================================

def rank_assessments(
    intent: Intent,
    assessments: List[SolutionAssessment],
    reputations: Optional[Mapping[str, float]] = None,
    classification: Optional[Classification] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Tuple[RankingResult, List[RejectionEntry]]:
    """
    Fan-in step: order already-assessed Solutions.

    Args:
        intent: Validated Intent
        assessments: One SolutionAssessment per submitted Solution
        reputations: solver_address -> reputation in [0, 100]
        classification: Intent classification (computed when omitted)
        ranked_at: Ranking timestamp in epoch ms (now when omitted)
        settings: Scoring constants

    Returns:
        (RankingResult, rejection ledger)
    """
    ranked_at = current_time_ms() if ranked_at is None else ranked_at
    classification = classification or classify(intent)
    expires_at = ranked_at + intent.timing.user_decision_timeout_ms
    weights = intent.preferences.ranking_weights

    scored: List[RankedSolution] = []
    rejections: List[RejectionEntry] = []
    duplicates = duplicate_solution_ids(assessments)
    for assessment in assessments:
        if assessment.solution.solution_id in duplicates:
            rejections.append(_duplicate_rejection(assessment))
            continue
        if not assessment.passed:
            rejections.append(_rejection(assessment))
            continue

        solution = assessment.solution
        breakdown = compute_breakdown(
            solution,
            assessment.surplus,
            weights,
            reputation_for(solution.solver_address, reputations, settings),
            settings,
        )
        scored.append(RankedSolution(
            rank=1,
            solution_id=solution.solution_id,
            solver_address=solution.solver_address,
            submitted_at=solution.submitted_at,
            score=total_score(breakdown),
            score_breakdown=breakdown,
            reasoning=build_reasoning(
                intent,
                solution,
                assessment.surplus,
                breakdown,
                classification,
                assessment.compliance.compliance_score,
                settings,
            ),
            surplus=assessment.surplus,
            compliance_score=assessment.compliance.compliance_score,
            warnings=assessment.compliance.warnings + assessment.surplus.warnings,
            expires_at=expires_at,
        ))

    ranked = [
        entry.model_copy(update={"rank": position})
        for position, entry in enumerate(sorted(scored, key=sort_key), start=1)
    ]
    rejections.sort(key=rejection_sort_key)

    average = round(sum(e.score for e in ranked) / len(ranked), SCORE_PLACES) if ranked else 0.0
    category = classification.primary_category.value
    metadata = RankingMetadata(
        total_solutions=len(assessments),
        passed_solutions=len(ranked),
        rejected_solutions=len(rejections),
        average_score=average,
        strategy=f"{category}_weighted",
        strategy_version=settings.strategy_version,
        intent_category=category,
        display_count=display_count_for(intent, len(ranked)),
    )

    result = RankingResult(
        intent_id=intent.intent_id,
        ranked_solutions=ranked,
        best_solution=ranked[0] if ranked else None,
        metadata=metadata,
        ranking_hash=compute_ranking_hash(intent.intent_id, ranked, settings.strategy_version),
        ranked_at=ranked_at,
        expires_at=expires_at,
    )
    return result, rejections


def rank_with_ledger(
    intent: Intent,
    solutions: List[Solution],
    reputations: Optional[Mapping[str, float]] = None,
    classification: Optional[Classification] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    oracle: Optional[PriceOracle] = None,
) -> Tuple[RankingResult, List[RejectionEntry]]:
    """Assess and rank typed Solutions, returning the rejection ledger too."""
    assessments = [assess_solution(intent, s, settings, oracle) for s in solutions]
    return rank_assessments(intent, assessments, reputations, classification, ranked_at, settings)


def rank(
    intent: Intent,
    solutions: List[Solution],
    reputations: Optional[Mapping[str, float]] = None,
    classification: Optional[Classification] = None,
    ranked_at: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    oracle: Optional[PriceOracle] = None,
) -> RankingResult:
    """Rank typed Solutions for an Intent. An empty ranking is a valid result."""
    result, _ = rank_with_ledger(intent, solutions, reputations, classification, ranked_at, settings, oracle)
    return result
