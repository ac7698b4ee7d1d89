"""
Intent Classification Layer

Version: classifier_v1
"""

from .models import (
    Classification,
    ClassificationMetadata,
    ComplexityLevel,
    DetectedPriority,
    IntentFeatures,
    PrimaryCategory,
    RiskLevel,
    escalate_risk,
)
from .classify import (
    IntentClassifier,
    RuleBasedClassifier,
    DEFAULT_CLASSIFIER,
    classify,
    extract_features,
)

__all__ = [
    "Classification",
    "ClassificationMetadata",
    "ComplexityLevel",
    "DetectedPriority",
    "IntentFeatures",
    "PrimaryCategory",
    "RiskLevel",
    "escalate_risk",
    "IntentClassifier",
    "RuleBasedClassifier",
    "DEFAULT_CLASSIFIER",
    "classify",
    "extract_features",
]

__version__ = "classifier_v1"
