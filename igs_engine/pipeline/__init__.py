"""
Evaluation Pipeline

Version: pipeline_v1
"""

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
from .evaluate import (
    assess_payload,
    build_pre_ranking,
    evaluate_batch,
    evaluate_intent,
    evaluate_request,
    fan_out,
)

__all__ = [
    # Models
    "EvaluationError",
    "EvaluationReport",
    "EvaluationRequest",
    "EvaluationStatus",
    "PreRankingResult",
    "ProcessingStats",
    "SolutionFeatures",
    "SolutionFeatureVector",
    # Functions
    "assess_payload",
    "build_pre_ranking",
    "evaluate_batch",
    "evaluate_intent",
    "evaluate_request",
    "fan_out",
]

__version__ = "pipeline_v1"
