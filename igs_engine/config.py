"""
Engine configuration.

Values come from environment variables and are captured into an immutable
EngineSettings snapshot. Layers receive the snapshot as an argument; nothing
reads the environment during an evaluation.
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(str(raw).strip())
    except ArithmeticError:
        return Decimal(default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


@dataclass(frozen=True)
class EngineSettings:
    # Gas estimates at or above this (native units) are unreasonable
    gas_sanity_ceiling: Decimal = Decimal("1000")
    # k in cost_score = 100 - estimated_gas * k
    cost_score_gas_factor: Decimal = Decimal("10")
    native_token_decimals: int = 9
    default_solver_reputation: Decimal = Decimal("50")
    # Share of max_slippage_bps above which a solution escalates risk
    slippage_escalation_ratio: Decimal = Decimal("0.8")
    max_workers: int = 1
    strategy_version: str = "ranking_v1"
    admin_api_key: Optional[str] = None

    @property
    def native_unit(self) -> int:
        """Base units in one native token."""
        return 10 ** self.native_token_decimals

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            gas_sanity_ceiling=_env_decimal("GAS_SANITY_CEILING", "1000"),
            cost_score_gas_factor=_env_decimal("COST_SCORE_GAS_FACTOR", "10"),
            native_token_decimals=_env_int("NATIVE_TOKEN_DECIMALS", 9),
            default_solver_reputation=_env_decimal("DEFAULT_SOLVER_REPUTATION", "50"),
            slippage_escalation_ratio=_env_decimal("SLIPPAGE_ESCALATION_RATIO", "0.8"),
            max_workers=max(1, _env_int("ENGINE_MAX_WORKERS", 1)),
            strategy_version=os.getenv("RANKING_STRATEGY_VERSION", "ranking_v1"),
            admin_api_key=os.getenv("ADMIN_API_KEY") or None,
        )


DEFAULT_SETTINGS = EngineSettings()


def get_settings() -> EngineSettings:
    """Fresh snapshot of the environment-driven settings."""
    return EngineSettings.from_env()
