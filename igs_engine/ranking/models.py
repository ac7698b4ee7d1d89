"""
Ranking Models

Pydantic models for scored Solutions, the ranking output and the
rejection ledger.

Version: ranking_v1
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from igs_engine.classification.models import RiskLevel
from igs_engine.schema.models import ValidationError
from igs_engine.surplus.calculate import SurplusResult


class ScoreFactor(str, Enum):
    SURPLUS = "surplus"
    GAS_COST = "gas_cost"
    EXECUTION_SPEED = "execution_speed"
    REPUTATION = "reputation"


class FailureReason(str, Enum):
    SCHEMA_INVALID = "schema_invalid"
    COMPLIANCE_FAILED = "compliance_failed"
    LATE_SUBMISSION = "late_submission"
    DUPLICATE_SOLUTION_ID = "duplicate_solution_id"


class ScoreBreakdown(BaseModel):
    """Normalized sub-scores, each in [0, 100], and their weighted contributions."""
    surplus_score: float = Field(ge=0, le=100)
    cost_score: float = Field(ge=0, le=100)
    speed_score: float = Field(ge=0, le=100)
    reputation_score: float = Field(ge=0, le=100)
    surplus_contribution: float = 0.0
    cost_contribution: float = 0.0
    speed_contribution: float = 0.0
    reputation_contribution: float = 0.0

    class Config:
        extra = "forbid"

    def contributions(self) -> List[tuple]:
        """(factor, weighted contribution) in fixed factor order."""
        return [
            (ScoreFactor.SURPLUS, self.surplus_contribution),
            (ScoreFactor.GAS_COST, self.cost_contribution),
            (ScoreFactor.EXECUTION_SPEED, self.speed_contribution),
            (ScoreFactor.REPUTATION, self.reputation_contribution),
        ]


class Reasoning(BaseModel):
    primary_reason: str
    secondary_reasons: List[str] = Field(default_factory=list)
    risk_assessment: RiskLevel
    confidence_level: float = Field(ge=0, le=1)

    class Config:
        extra = "forbid"


class RankedSolution(BaseModel):
    rank: int = Field(ge=1)
    solution_id: str
    solver_address: str
    submitted_at: int
    score: float = Field(ge=0, le=100)
    score_breakdown: ScoreBreakdown
    reasoning: Reasoning
    surplus: SurplusResult
    compliance_score: float = Field(ge=0, le=100)
    warnings: List[str] = Field(default_factory=list)
    expires_at: int

    class Config:
        extra = "forbid"


class RankingMetadata(BaseModel):
    total_solutions: int = 0
    passed_solutions: int = 0
    rejected_solutions: int = 0
    average_score: float = 0.0
    strategy: str
    strategy_version: str
    intent_category: str
    display_count: int = 0

    class Config:
        extra = "forbid"


class RankingResult(BaseModel):
    """
    Ordered ranking of every Solution that passed compliance.

    best_solution is always rank 1 whatever the display cap, and is None
    when nothing passed.
    """
    intent_id: str
    ranked_solutions: List[RankedSolution] = Field(default_factory=list)
    best_solution: Optional[RankedSolution] = None
    metadata: RankingMetadata
    ranking_hash: str
    ranked_at: int
    expires_at: int

    class Config:
        extra = "forbid"

    def display_solutions(self) -> List[RankedSolution]:
        """The slice a user interface shows."""
        return self.ranked_solutions[:self.metadata.display_count]


class RejectionEntry(BaseModel):
    """Why one Solution was excluded before scoring."""
    solution_id: str
    solver_address: Optional[str] = None
    failure_reason: FailureReason
    errors: List[ValidationError] = Field(default_factory=list)

    class Config:
        extra = "forbid"
