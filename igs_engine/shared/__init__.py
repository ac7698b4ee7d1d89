"""IGS Engine Shared Utilities"""

from .hashing import (
    canonicalize,
    canonicalize_and_hash,
    verify_hash,
)
from .clock import current_time_ms

__all__ = [
    "canonicalize",
    "canonicalize_and_hash",
    "verify_hash",
    "current_time_ms",
]
