"""
Payload builders shared by the engine tests.

The baseline Intent swaps 1 SUI for ~300 USDC and is fully valid at NOW
with no business-rule warnings. Tests override only what they exercise.
"""

import copy
from typing import Any, Dict

from igs_engine.schema.models import Intent, Solution


NOW = 1_700_000_000_000
DEADLINE = NOW + 60_000

USER = "0x" + "a" * 64
SOLVER_A = "0x" + "b" * 64
SOLVER_B = "0x" + "c" * 64
SOLVER_C = "0x" + "d" * 64

SUI = "native"
USDC = "0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN"

BENCHMARK_OUTPUT = "300000000"
MIN_OUTPUT = "290000000"


def merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursive dict merge; lists and scalars in overrides replace."""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def without(payload: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Copy of payload with the dotted path removed."""
    result = copy.deepcopy(payload)
    node = result
    parts = path.split(".")
    for part in parts[:-1]:
        node = node[int(part)] if isinstance(node, list) else node[part]
    del node[parts[-1]]
    return result


def make_intent_payload(**overrides) -> Dict[str, Any]:
    base = {
        "igs_version": "1.0.0",
        "intent_id": "intent-001",
        "user_address": USER,
        "created_at": NOW - 1_000,
        "intent_type": "swap.exact_input",
        "description": "Swap 1 SUI for USDC",
        "operation": {
            "mode": "exact_input",
            "inputs": [{
                "asset_id": SUI,
                "asset_info": {"symbol": "SUI", "decimals": 9, "asset_type": "native"},
                "amount": {"type": "exact", "value": "1000000000"},
            }],
            "outputs": [{
                "asset_id": USDC,
                "asset_info": {"symbol": "USDC", "decimals": 6, "asset_type": "stable"},
                "amount": {"type": "range", "min": MIN_OUTPUT, "max": BENCHMARK_OUTPUT},
            }],
            "expected_outcome": {
                "expected_outputs": [{"asset_id": USDC, "amount": BENCHMARK_OUTPUT}],
                "benchmark": {"source": "dex_aggregator", "timestamp": NOW - 1_000, "confidence": 0.95},
            },
        },
        "constraints": {
            "deadline": DEADLINE,
            "max_slippage_bps": 100,
            "min_outputs": [{"asset_id": USDC, "amount": MIN_OUTPUT}],
        },
        "preferences": {
            "optimization_goal": "maximize_output",
            "ranking_weights": {
                "surplus_weight": 60,
                "gas_cost_weight": 20,
                "execution_speed_weight": 10,
                "reputation_weight": 10,
            },
            "execution": {"mode": "best_solution", "show_top_n": 3},
        },
        "timing": {
            "solver_window_ms": 5_000,
            "user_decision_timeout_ms": 30_000,
            "absolute_deadline": DEADLINE,
        },
        "metadata": {
            "client": {"name": "igs-test", "version": "1.0.0", "platform": "web"},
        },
    }
    return merge(base, overrides)


def make_limit_intent_payload(**overrides) -> Dict[str, Any]:
    """limit.sell of 1 SUI for at least 290 USDC."""
    base = make_intent_payload(
        intent_type="limit.sell",
        operation={"mode": "limit_order"},
        constraints={
            "min_outputs": [],
            "limit_price": {"price": "290", "comparison": "gte", "price_asset": USDC},
        },
    )
    return merge(base, overrides)


def make_solution_payload(
    solution_id: str = "sol-a",
    solver_address: str = SOLVER_A,
    promised: str = BENCHMARK_OUTPUT,
    estimated_gas: str = "0.005",
    slippage_bps: int = 50,
    total_hops: int = 1,
    protocols=("cetus",),
    submitted_at: int = NOW + 1_000,
    **overrides,
) -> Dict[str, Any]:
    base = {
        "solution_id": solution_id,
        "intent_id": "intent-001",
        "solver_address": solver_address,
        "submitted_at": submitted_at,
        "tx_bytes": "AAECAwQ=",
        "tx_hash": "0x" + "e" * 64,
        "promised_outputs": [{"asset_id": USDC, "amount": promised}],
        "estimated_gas": estimated_gas,
        "estimated_slippage_bps": slippage_bps,
        "strategy_summary": {
            "protocols_used": list(protocols),
            "total_hops": total_hops,
            "execution_path": " -> ".join(["SUI"] + list(protocols) + ["USDC"]),
        },
    }
    return merge(base, overrides)


def make_intent(**overrides) -> Intent:
    return Intent.model_validate(make_intent_payload(**overrides))


def make_limit_intent(**overrides) -> Intent:
    return Intent.model_validate(make_limit_intent_payload(**overrides))


def make_solution(**kwargs) -> Solution:
    return Solution.model_validate(make_solution_payload(**kwargs))
