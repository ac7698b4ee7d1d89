"""
Pipeline Models

Pre-ranking summary, evaluation request and the per-Intent evaluation
report.

Version: pipeline_v1
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, FiniteFloat

from igs_engine.classification.models import Classification, IntentFeatures
from igs_engine.ranking.models import RankingResult, RejectionEntry
from igs_engine.schema.models import ValidationResult


class EvaluationStatus(str, Enum):
    RANKED = "ranked"
    INVALID = "invalid"
    FAILED = "failed"


class SolutionFeatures(BaseModel):
    surplus: float
    surplus_percentage: float
    gas_cost: float
    protocol_fees: float
    total_cost: float
    total_hops: int
    protocols_count: int
    solver_reputation_score: float

    class Config:
        extra = "forbid"


class SolutionFeatureVector(BaseModel):
    solution_id: str
    features: SolutionFeatures

    class Config:
        extra = "forbid"


class ProcessingStats(BaseModel):
    total_submitted: int = 0
    passed: int = 0
    failed: int = 0
    processed_at: int

    class Config:
        extra = "forbid"


class PreRankingResult(BaseModel):
    """Everything known about an Intent's Solutions before they are ordered."""
    intent_id: str
    intent_classification: Classification
    intent_features: IntentFeatures
    passed_solution_ids: List[str] = Field(default_factory=list)
    failed_solution_ids: List[RejectionEntry] = Field(default_factory=list)
    feature_vectors: List[SolutionFeatureVector] = Field(default_factory=list)
    stats: ProcessingStats

    class Config:
        extra = "forbid"


class EvaluationError(BaseModel):
    code: str
    message: str

    class Config:
        extra = "forbid"


class EvaluationRequest(BaseModel):
    """One Intent with the final set of Solutions submitted for it."""
    intent: Any
    solutions: List[Any] = Field(default_factory=list)
    reputations: Dict[str, FiniteFloat] = Field(default_factory=dict)


class EvaluationReport(BaseModel):
    """
    Output of one full Intent evaluation.

    status:
        ranked  - Intent valid, ranking produced (possibly empty)
        invalid - Intent failed structural or business validation
        failed  - payload could not be parsed at all
    """
    intent_id: Optional[str] = None
    status: EvaluationStatus
    intent_validation: Optional[ValidationResult] = None
    classification: Optional[Classification] = None
    pre_ranking: Optional[PreRankingResult] = None
    ranking: Optional[RankingResult] = None
    rejections: List[RejectionEntry] = Field(default_factory=list)
    error: Optional[EvaluationError] = None

    class Config:
        extra = "forbid"
