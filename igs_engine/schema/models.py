"""
IGS Document Models

Pydantic models for the Intenus General Standard (IGS) v1.0.0 Intent and
Solution documents, plus the validation result types shared by every layer.

Intents are immutable once submitted, so all document models are frozen.

Version: igs_schema_v1
"""

from enum import Enum
from typing import Annotated, List, Optional, Literal, Union
from pydantic import BaseModel, Field, model_validator
from pydantic_core import PydanticCustomError


IGS_VERSION = "1.0.0"

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{1,64}$"
ASSET_ID_PATTERN = r"^(0x[a-fA-F0-9]{1,64}::[a-zA-Z0-9_]+::[a-zA-Z0-9_]+|native)$"
# u256 base units fit in 78 digits
UINT_PATTERN = r"^[0-9]{1,78}$"
DECIMAL_PATTERN = r"^[0-9]{1,78}(\.[0-9]{1,78})?$"


# ============================================================
# ENUMS
# ============================================================

class IntentType(str, Enum):
    SWAP_EXACT_INPUT = "swap.exact_input"
    SWAP_EXACT_OUTPUT = "swap.exact_output"
    LIMIT_SELL = "limit.sell"
    LIMIT_BUY = "limit.buy"


class OperationMode(str, Enum):
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"
    LIMIT_ORDER = "limit_order"


class AssetType(str, Enum):
    NATIVE = "native"
    STABLE = "stable"
    VOLATILE = "volatile"


class BenchmarkSource(str, Enum):
    DEX_AGGREGATOR = "dex_aggregator"
    ORACLE = "oracle"
    MANUAL = "manual"
    CALCULATED = "calculated"


class PriceComparison(str, Enum):
    GTE = "gte"
    LTE = "lte"


class OptimizationGoal(str, Enum):
    MAXIMIZE_OUTPUT = "maximize_output"
    MINIMIZE_GAS = "minimize_gas"
    FASTEST_EXECUTION = "fastest_execution"
    BALANCED = "balanced"


class ExecutionMode(str, Enum):
    BEST_SOLUTION = "best_solution"
    TOP_N_WITH_BEST_INCENTIVE = "top_n_with_best_incentive"


class Urgency(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


# Operation mode each intent type is expected to declare
INTENT_TYPE_MODES = {
    IntentType.SWAP_EXACT_INPUT: OperationMode.EXACT_INPUT,
    IntentType.SWAP_EXACT_OUTPUT: OperationMode.EXACT_OUTPUT,
    IntentType.LIMIT_SELL: OperationMode.LIMIT_ORDER,
    IntentType.LIMIT_BUY: OperationMode.LIMIT_ORDER,
}


class _Document(BaseModel):
    """Base for IGS documents: unknown fields rejected, instances immutable."""

    class Config:
        extra = "forbid"
        frozen = True


# ============================================================
# AMOUNT SPECIFICATION (tagged variant)
# ============================================================

class AmountExact(_Document):
    type: Literal["exact"]
    value: str = Field(pattern=UINT_PATTERN)


class AmountRange(_Document):
    type: Literal["range"]
    min: str = Field(pattern=UINT_PATTERN)
    max: str = Field(pattern=UINT_PATTERN)

    @model_validator(mode="after")
    def _check_bounds(self):
        if int(self.min) > int(self.max):
            raise PydanticCustomError(
                "range_bounds",
                "Range min {min} exceeds max {max}",
                {"min": self.min, "max": self.max},
            )
        return self


class AmountAll(_Document):
    type: Literal["all"]


Amount = Annotated[
    Union[AmountExact, AmountRange, AmountAll],
    Field(discriminator="type"),
]


def amount_upper_bound(amount: "AmountExact | AmountRange | AmountAll") -> Optional[int]:
    """
    Largest base-unit quantity an amount specification allows.

    Returns None for "all available", which has no declared bound.
    """
    if isinstance(amount, AmountExact):
        return int(amount.value)
    if isinstance(amount, AmountRange):
        return int(amount.max)
    if isinstance(amount, AmountAll):
        return None
    raise TypeError(f"Unknown amount specification: {type(amount).__name__}")


# ============================================================
# OPERATION
# ============================================================

class AssetInfo(_Document):
    symbol: str = Field(min_length=1, max_length=20, pattern=r"^[A-Z0-9]+$")
    decimals: int = Field(ge=0, le=18)
    name: Optional[str] = Field(default=None, max_length=100)
    asset_type: Optional[AssetType] = None


class AssetFlow(_Document):
    asset_id: str = Field(pattern=ASSET_ID_PATTERN)
    asset_info: Optional[AssetInfo] = None
    amount: Amount


class AssetAmount(_Document):
    """An asset id paired with a base-unit integer amount."""
    asset_id: str = Field(min_length=1)
    amount: str = Field(pattern=UINT_PATTERN)


class ExpectedCosts(_Document):
    gas_estimate: Optional[str] = Field(default=None, pattern=DECIMAL_PATTERN)
    protocol_fees: Optional[str] = Field(default=None, pattern=DECIMAL_PATTERN)
    slippage_estimate: Optional[str] = Field(default=None, pattern=DECIMAL_PATTERN)


class Benchmark(_Document):
    source: Optional[BenchmarkSource] = None
    timestamp: Optional[int] = Field(default=None, ge=0)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)


class MarketPrice(_Document):
    price: str = Field(pattern=DECIMAL_PATTERN)
    price_asset: str = Field(min_length=1)


class ExpectedOutcome(_Document):
    expected_outputs: List[AssetAmount] = Field(min_length=1)
    expected_costs: Optional[ExpectedCosts] = None
    benchmark: Optional[Benchmark] = None
    market_price: Optional[MarketPrice] = None


class Operation(_Document):
    mode: OperationMode
    inputs: List[AssetFlow] = Field(min_length=1, max_length=10)
    outputs: List[AssetFlow] = Field(min_length=1, max_length=10)
    expected_outcome: Optional[ExpectedOutcome] = None


# ============================================================
# CONSTRAINTS
# ============================================================

class Routing(_Document):
    max_hops: Optional[int] = Field(default=None, ge=1, le=10)
    blacklist_protocols: List[str] = Field(default_factory=list)
    whitelist_protocols: List[str] = Field(default_factory=list)


class LimitPrice(_Document):
    price: str = Field(pattern=DECIMAL_PATTERN)
    comparison: PriceComparison
    price_asset: str = Field(min_length=1)


class Constraints(_Document):
    deadline: int = Field(ge=0)
    max_slippage_bps: int = Field(ge=0, le=10000)
    min_outputs: List[AssetAmount] = Field(default_factory=list, max_length=10)
    max_inputs: List[AssetAmount] = Field(default_factory=list, max_length=10)
    max_gas_cost: Optional[AssetAmount] = None
    routing: Optional[Routing] = None
    limit_price: Optional[LimitPrice] = None


# ============================================================
# PREFERENCES
# ============================================================

class RankingWeights(_Document):
    surplus_weight: float = Field(default=60, ge=0, le=100)
    gas_cost_weight: float = Field(default=20, ge=0, le=100)
    execution_speed_weight: float = Field(default=10, ge=0, le=100)
    reputation_weight: float = Field(default=10, ge=0, le=100)

    @property
    def total(self) -> float:
        return (
            self.surplus_weight
            + self.gas_cost_weight
            + self.execution_speed_weight
            + self.reputation_weight
        )


class ExecutionPreferences(_Document):
    mode: ExecutionMode = ExecutionMode.BEST_SOLUTION
    show_top_n: int = Field(default=3, ge=1, le=10)
    auto_execute: bool = False
    require_simulation: bool = False
    urgency: Urgency = Urgency.NORMAL


class PrivacyPreferences(_Document):
    encrypt_intent: bool = False
    anonymous_execution: bool = False


class Preferences(_Document):
    optimization_goal: OptimizationGoal = OptimizationGoal.BALANCED
    ranking_weights: RankingWeights = Field(default_factory=RankingWeights)
    execution: ExecutionPreferences = Field(default_factory=ExecutionPreferences)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


# ============================================================
# TIMING & METADATA
# ============================================================

class Timing(_Document):
    solver_window_ms: int = Field(ge=0)
    user_decision_timeout_ms: int = Field(ge=0)
    absolute_deadline: int = Field(ge=0)


class OriginalInput(_Document):
    text: str = Field(max_length=1000)
    language: str = Field(pattern=r"^[a-z]{2}$")
    confidence: float = Field(ge=0, le=1)


class ClientInfo(_Document):
    name: str
    version: str
    platform: str


class Metadata(_Document):
    original_input: Optional[OriginalInput] = None
    client: Optional[ClientInfo] = None
    warnings: List[str] = Field(default_factory=list)
    clarifications: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


# ============================================================
# INTENT
# ============================================================

class Intent(_Document):
    """
    A user's declarative trade request.

    Cross-field relationships (deadline consistency, type/mode coherence,
    limit price presence) are NOT enforced here; they belong to the
    business-rule layer so they can be reported with their own codes.
    """
    igs_version: Literal["1.0.0"]
    intent_id: str = Field(min_length=1)
    user_address: str = Field(pattern=ADDRESS_PATTERN)
    created_at: int = Field(ge=0)
    intent_type: IntentType
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    operation: Operation
    constraints: Constraints
    preferences: Preferences = Field(default_factory=Preferences)
    timing: Timing
    metadata: Metadata = Field(default_factory=Metadata)

    @property
    def is_limit(self) -> bool:
        return self.intent_type.value.startswith("limit")


# ============================================================
# SOLUTION
# ============================================================

class StrategySummary(_Document):
    protocols_used: List[str] = Field(default_factory=list)
    total_hops: int = Field(default=0, ge=0)
    execution_path: str = ""
    unique_techniques: Optional[str] = None
    p2p_matches: int = Field(default=0, ge=0)


class ClaimedSurplus(_Document):
    """Surplus figures a solver may attach to its submission. Never trusted."""
    benchmark_value_usd: Optional[str] = None
    solution_value_usd: Optional[str] = None
    surplus_usd: Optional[str] = None
    surplus_percentage: Optional[str] = None


class Solution(_Document):
    """A solver's proposed transaction for exactly one Intent."""
    solution_id: str = Field(min_length=1)
    intent_id: str = Field(min_length=1)
    solver_address: str = Field(pattern=ADDRESS_PATTERN)
    submitted_at: int = Field(ge=0)
    tx_bytes: str = Field(min_length=1)
    tx_hash: str = Field(min_length=1)
    promised_outputs: List[AssetAmount] = Field(min_length=1, max_length=10)
    estimated_gas: str = Field(pattern=DECIMAL_PATTERN)
    estimated_slippage_bps: int = Field(ge=0, le=10000)
    protocol_fees: Optional[str] = Field(default=None, pattern=DECIMAL_PATTERN)
    strategy_summary: StrategySummary = Field(default_factory=StrategySummary)
    # Solver-claimed values, recomputed by the engine
    surplus_calculation: Optional[ClaimedSurplus] = None
    compliance_score: Optional[float] = None

    def promised_amount(self, asset_id: str) -> Optional[int]:
        """Base-unit amount promised for an asset, or None if not promised."""
        for output in self.promised_outputs:
            if output.asset_id == asset_id:
                return int(output.amount)
        return None


# ============================================================
# VALIDATION RESULTS
# ============================================================

class ValidationError(BaseModel):
    """One structural, business-rule or compliance finding."""
    code: str
    field_path: str
    message: str
    severity: Severity = Severity.ERROR

    class Config:
        extra = "forbid"


class ValidationResult(BaseModel):
    """
    Outcome of validating an Intent or checking a Solution.

    Errors reduce validity; warnings only reduce the compliance score.
    """
    valid: bool
    compliance_score: float = Field(ge=0, le=100)
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @property
    def error_codes(self) -> List[str]:
        return [e.code for e in self.errors]
