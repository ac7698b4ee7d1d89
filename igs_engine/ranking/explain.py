"""
Ranking Explainability

Builds the human-readable reasoning attached to each ranked Solution.

The ranker decides. This module explains. It never changes a score.

Version: ranking_v1
"""

from decimal import Decimal
from typing import List

from igs_engine.classification.models import Classification, RiskLevel, escalate_risk
from igs_engine.config import DEFAULT_SETTINGS, EngineSettings
from igs_engine.schema.models import Intent, Solution
from igs_engine.surplus.calculate import SurplusResult

from .models import Reasoning, ScoreBreakdown, ScoreFactor


# Secondary reasons must reach this share of the dominant contribution
SECONDARY_REASON_SHARE = 0.85


def describe_factor(factor: ScoreFactor, solution: Solution, surplus: SurplusResult, breakdown: ScoreBreakdown) -> str:
    if factor == ScoreFactor.SURPLUS:
        return f"Surplus of {surplus.surplus_percentage:.4g}% over benchmark"
    if factor == ScoreFactor.GAS_COST:
        return f"Low gas cost ({solution.estimated_gas} native)"
    if factor == ScoreFactor.EXECUTION_SPEED:
        return f"Fast execution ({solution.strategy_summary.total_hops} hops)"
    return f"Solver reputation {breakdown.reputation_score:g}"


def assess_risk(
    intent: Intent,
    solution: Solution,
    base_risk: RiskLevel,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> RiskLevel:
    """
    Classifier risk, escalated one level when the Solution's own slippage
    uses more than the configured share of the Intent's ceiling.
    """
    ceiling = Decimal(intent.constraints.max_slippage_bps)
    if Decimal(solution.estimated_slippage_bps) > ceiling * settings.slippage_escalation_ratio:
        return escalate_risk(base_risk)
    return base_risk


def build_reasoning(
    intent: Intent,
    solution: Solution,
    surplus: SurplusResult,
    breakdown: ScoreBreakdown,
    classification: Classification,
    compliance_score: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Reasoning:
    """
    Primary reason is the largest weighted contribution; the fixed factor
    order breaks ties. Any other positive contribution within 15% of it is
    a secondary reason.
    """
    contributions = breakdown.contributions()
    dominant_factor, dominant_value = contributions[0]
    for factor, value in contributions[1:]:
        if value > dominant_value:
            dominant_factor, dominant_value = factor, value

    secondary: List[str] = []
    for factor, value in contributions:
        if factor == dominant_factor or value <= 0:
            continue
        if value >= dominant_value * SECONDARY_REASON_SHARE:
            secondary.append(describe_factor(factor, solution, surplus, breakdown))

    confidence = classification.confidence * compliance_score / 100
    return Reasoning(
        primary_reason=describe_factor(dominant_factor, solution, surplus, breakdown),
        secondary_reasons=secondary,
        risk_assessment=assess_risk(intent, solution, classification.risk_level, settings),
        confidence_level=round(max(0.0, min(1.0, confidence)), 4),
    )
