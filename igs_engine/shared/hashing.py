"""
Canonical hashing for ranking outputs.

Any party holding the same Intent, Solutions and reputations must be able
to recompute a ranking and compare digests, so serialization has to be
byte-stable across runs and platforms.
"""

import hashlib
import json
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

HASH_PREFIX = "sha256:"

# Wall-clock fields that differ between otherwise identical evaluations
VOLATILE_FIELDS = frozenset([
    "ranked_at",
    "expires_at",
    "processed_at",
])


def _to_plain(value: Any, exclude_volatile: bool) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, dict):
        return {
            str(k): _to_plain(v, exclude_volatile)
            for k, v in value.items()
            if not (exclude_volatile and k in VOLATILE_FIELDS)
        }
    if isinstance(value, (list, tuple)):
        return [_to_plain(v, exclude_volatile) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        # 1.50 and 1.5 are the same amount
        return str(value.normalize())
    if isinstance(value, float):
        return round(value, 10)
    return value


def canonicalize(obj: Any, exclude_volatile: bool = True) -> str:
    """
    Canonical JSON text: sorted keys, no whitespace, ASCII only.

    Accepts pydantic models, enums and Decimals anywhere in the tree.
    """
    return json.dumps(
        _to_plain(obj, exclude_volatile),
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=True,
    )


def canonicalize_and_hash(obj: Any, exclude_volatile: bool = True) -> str:
    """Returns: "sha256:<64-char-hex>" """
    digest = hashlib.sha256(canonicalize(obj, exclude_volatile).encode('utf-8')).hexdigest()
    return f"{HASH_PREFIX}{digest}"


def verify_hash(obj: Any, expected_hash: str, exclude_volatile: bool = True) -> bool:
    return canonicalize_and_hash(obj, exclude_volatile) == expected_hash
