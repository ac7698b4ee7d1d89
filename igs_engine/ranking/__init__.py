"""
Solution Ranking Layer

Scores compliant Solutions with the Intent's own weights, orders them
deterministically and explains each position.

This module does NOT:
- Trust solver-claimed surplus or compliance figures
- Let a solver influence the weighting
- Resolve ties by submission order alone

Version: ranking_v1
"""

from .models import (
    FailureReason,
    RankedSolution,
    RankingMetadata,
    RankingResult,
    Reasoning,
    RejectionEntry,
    ScoreBreakdown,
    ScoreFactor,
)
from .rank import (
    SolutionAssessment,
    assess_solution,
    compute_breakdown,
    compute_ranking_hash,
    duplicate_solution_ids,
    rank,
    rank_assessments,
    rank_with_ledger,
    rejection_sort_key,
    reputation_for,
    sort_key,
    total_score,
    verify_ranking,
)
from .explain import build_reasoning, assess_risk

__all__ = [
    # Models
    "FailureReason",
    "RankedSolution",
    "RankingMetadata",
    "RankingResult",
    "Reasoning",
    "RejectionEntry",
    "ScoreBreakdown",
    "ScoreFactor",
    # Functions
    "SolutionAssessment",
    "assess_solution",
    "compute_breakdown",
    "compute_ranking_hash",
    "duplicate_solution_ids",
    "rank",
    "rank_assessments",
    "rank_with_ledger",
    "rejection_sort_key",
    "reputation_for",
    "sort_key",
    "total_score",
    "verify_ranking",
    "build_reasoning",
    "assess_risk",
]

__version__ = "ranking_v1"
