"""
Classification Models

Pydantic models for Intent classification labels and the feature vector
derived from an Intent.

Version: classifier_v1
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class PrimaryCategory(str, Enum):
    SWAP = "swap"
    LIMIT_ORDER = "limit_order"
    COMPLEX_DEFI = "complex_defi"
    ARBITRAGE = "arbitrage"
    OTHER = "other"


class DetectedPriority(str, Enum):
    SPEED = "speed"
    COST = "cost"
    OUTPUT = "output"
    BALANCED = "balanced"


class ComplexityLevel(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH]


def escalate_risk(level: RiskLevel, steps: int = 1) -> RiskLevel:
    """Raise a risk level by `steps`, saturating at HIGH."""
    index = min(RISK_ORDER.index(level) + steps, len(RISK_ORDER) - 1)
    return RISK_ORDER[index]


class ClassificationMetadata(BaseModel):
    method: str = Field(
        default="rule_based",
        description="rule_based, ml_model or hybrid"
    )
    model_version: Optional[str] = None
    features_used: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class Classification(BaseModel):
    """
    Category / priority / complexity / risk labels for one Intent.

    Derived purely from the Intent and recomputed on every evaluation.
    """
    primary_category: PrimaryCategory
    detected_priority: DetectedPriority
    complexity_level: ComplexityLevel
    risk_level: RiskLevel
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: ClassificationMetadata = Field(default_factory=ClassificationMetadata)

    class Config:
        extra = "forbid"


class IntentFeatures(BaseModel):
    """
    Feature vector extracted from an Intent.

    Mirrors what classifier training datasets store; USD valuations are not
    derived here because the engine has no price source of its own.
    """
    # Timing
    solver_window_ms: int
    user_decision_timeout_ms: int
    time_to_deadline_ms: int
    # Constraints
    max_slippage_bps: int
    max_gas_cost: Optional[int] = None
    max_hops: Optional[int] = None
    has_whitelist: bool
    has_blacklist: bool
    has_limit_price: bool
    # Preferences
    optimization_goal: str
    surplus_weight: float
    gas_cost_weight: float
    execution_speed_weight: float
    reputation_weight: float
    auto_execute: bool
    require_simulation: bool
    # Operation
    input_count: int
    output_count: int
    input_asset_types: List[str]
    output_asset_types: List[str]
    # Benchmark
    benchmark_source: str
    benchmark_confidence: float
    expected_slippage_bps: Optional[float] = None
    # Metadata
    has_nlp_input: bool
    nlp_confidence: Optional[float] = None
    client_platform: str
    tag_count: int

    class Config:
        extra = "forbid"

    def to_vector(self) -> List[float]:
        """Numeric features in NUMERIC_FEATURES order; missing values are 0."""
        values = []
        for name in NUMERIC_FEATURES:
            value = getattr(self, name)
            values.append(float(value) if value is not None else 0.0)
        return values


NUMERIC_FEATURES = [
    "solver_window_ms",
    "user_decision_timeout_ms",
    "time_to_deadline_ms",
    "max_slippage_bps",
    "max_gas_cost",
    "max_hops",
    "has_whitelist",
    "has_blacklist",
    "has_limit_price",
    "surplus_weight",
    "gas_cost_weight",
    "execution_speed_weight",
    "reputation_weight",
    "auto_execute",
    "require_simulation",
    "input_count",
    "output_count",
    "benchmark_confidence",
    "expected_slippage_bps",
    "has_nlp_input",
    "nlp_confidence",
    "tag_count",
]
