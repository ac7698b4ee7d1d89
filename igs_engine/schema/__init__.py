"""
IGS Schema Layer

Structural validation of Intent and Solution documents against the
Intenus General Standard v1.0.0.

Version: igs_schema_v1
"""

from .models import (
    Intent,
    Solution,
    ValidationError,
    ValidationResult,
    Severity,
)
from .validate import (
    SchemaValidator,
    PayloadParseError,
    EngineErrorCode,
    parse_payload,
    parse_intent,
    parse_solution,
    validate_structure,
    validate_solution_structure,
)

__all__ = [
    "Intent",
    "Solution",
    "ValidationError",
    "ValidationResult",
    "Severity",
    "SchemaValidator",
    "PayloadParseError",
    "EngineErrorCode",
    "parse_payload",
    "parse_intent",
    "parse_solution",
    "validate_structure",
    "validate_solution_structure",
]

__version__ = "igs_schema_v1"
