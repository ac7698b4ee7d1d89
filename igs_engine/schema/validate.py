"""
Schema Validator (structural layer)

Walks an Intent or Solution payload against the versioned IGS schema and
turns every structural failure into one ValidationError with a stable code
and a dotted field path.

This layer never inspects cross-field relationships or time. Those belong
to the business-rule layer.

The validator is a plain value: construct one, pass it wherever it is
needed. Pydantic compiles each model's validator once per class, which is
the only cache involved and is immutable.

Version: igs_schema_v1
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .models import (
    IGS_VERSION,
    Intent,
    Solution,
    Severity,
    ValidationError,
    ValidationResult,
)


# ============================================================
# ERROR CODES
# ============================================================

class EngineErrorCode(Enum):
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    NOT_AN_OBJECT = "NOT_AN_OBJECT"


class PayloadParseError(Exception):
    """Raised when a payload cannot be read as a JSON document at all."""

    def __init__(self, error_code: EngineErrorCode, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code.value}: {message}")


# Pydantic error type -> stable IGS error code
ERROR_CODE_MAP = {
    "missing": "MISSING_REQUIRED_FIELD",
    "union_tag_not_found": "MISSING_REQUIRED_FIELD",
    "literal_error": "INVALID_CONSTANT_VALUE",
    "enum": "INVALID_ENUM_VALUE",
    "union_tag_invalid": "INVALID_ENUM_VALUE",
    "string_pattern_mismatch": "INVALID_PATTERN",
    "greater_than": "VALUE_OUT_OF_RANGE",
    "greater_than_equal": "VALUE_OUT_OF_RANGE",
    "less_than": "VALUE_OUT_OF_RANGE",
    "less_than_equal": "VALUE_OUT_OF_RANGE",
    "range_bounds": "VALUE_OUT_OF_RANGE",
    "string_too_short": "STRING_TOO_SHORT",
    "string_too_long": "STRING_TOO_LONG",
    "too_short": "ARRAY_TOO_SHORT",
    "too_long": "ARRAY_TOO_LONG",
    "extra_forbidden": "ADDITIONAL_PROPERTIES_NOT_ALLOWED",
}

DEFAULT_ERROR_CODE = "SCHEMA_VALIDATION_ERROR"

# Discriminator values pydantic inserts into error locations
_AMOUNT_TAGS = {"exact", "range", "all"}

# Deduction per error-severity structural failure
STRUCTURAL_ERROR_PENALTY = 35


def map_error_type(error_type: str) -> str:
    """Map a pydantic error type to a stable IGS error code."""
    if error_type in ERROR_CODE_MAP:
        return ERROR_CODE_MAP[error_type]
    if error_type.endswith("_type") or error_type.endswith("_parsing"):
        return "INVALID_TYPE"
    return DEFAULT_ERROR_CODE


def field_path(loc: Tuple[Union[str, int], ...]) -> str:
    """
    Render a pydantic error location as a dotted path.

    Discriminator tags of the amount variant are dropped so that
    ('operation', 'inputs', 0, 'amount', 'exact', 'value') reads as
    'operation.inputs.0.amount.value'.
    """
    parts: List[str] = []
    previous: Optional[Union[str, int]] = None
    for segment in loc:
        if previous == "amount" and segment in _AMOUNT_TAGS:
            previous = segment
            continue
        parts.append(str(segment))
        previous = segment
    return ".".join(parts) if parts else "root"


def _format_message(error: Dict[str, Any]) -> str:
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}
    if error_type == "missing":
        return f"Missing required field: {field_path(error.get('loc', ()))}"
    if error_type == "literal_error":
        return f"Invalid value. Must be: {ctx.get('expected', IGS_VERSION)}"
    if error_type == "enum":
        return f"Invalid value. Must be one of: {ctx.get('expected', '')}"
    if error_type == "string_pattern_mismatch":
        return f"Invalid format. Must match {ctx.get('pattern', '')}"
    return error.get("msg", f"Validation error: {error_type}")


def errors_from_pydantic(exc: PydanticValidationError) -> List[ValidationError]:
    """Convert a pydantic ValidationError into IGS ValidationErrors."""
    return [
        ValidationError(
            code=map_error_type(err["type"]),
            field_path=field_path(tuple(err.get("loc", ()))),
            message=_format_message(err),
            severity=Severity.ERROR,
        )
        for err in exc.errors()
    ]


# ============================================================
# PAYLOAD DECODING
# ============================================================

def parse_payload(raw: Union[str, bytes, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Decode an opaque payload into a JSON object.

    Raises PayloadParseError when the payload is not a JSON object. This is
    the only hard failure the engine produces for bad input.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadParseError(EngineErrorCode.JSON_PARSE_ERROR, f"Payload is not UTF-8: {e}")
    if not isinstance(raw, str):
        raise PayloadParseError(
            EngineErrorCode.NOT_AN_OBJECT,
            f"Unsupported payload type: {type(raw).__name__}",
        )
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PayloadParseError(EngineErrorCode.JSON_PARSE_ERROR, f"Failed to parse JSON: {e}")
    if not isinstance(document, dict):
        raise PayloadParseError(
            EngineErrorCode.NOT_AN_OBJECT,
            f"Expected a JSON object, got {type(document).__name__}",
        )
    return document


# ============================================================
# VALIDATOR
# ============================================================

@dataclass(frozen=True)
class SchemaValidator:
    """
    Stateless structural validator for one IGS document type.

    Usage:
        validator = SchemaValidator(Intent)
        result, intent = validator.validate(payload)
    """
    model: Type[BaseModel]
    version: str = IGS_VERSION

    def validate(self, payload: Any) -> Tuple[ValidationResult, Optional[BaseModel]]:
        """
        Validate a payload, returning the result and the parsed document.

        The parsed document is None whenever the payload is structurally
        invalid.
        """
        try:
            document = self.model.model_validate(payload)
        except PydanticValidationError as exc:
            errors = errors_from_pydantic(exc)
            score = max(0, 100 - STRUCTURAL_ERROR_PENALTY * len(errors))
            return ValidationResult(valid=False, compliance_score=score, errors=errors), None

        return ValidationResult(valid=True, compliance_score=100), document


INTENT_VALIDATOR = SchemaValidator(Intent)
SOLUTION_VALIDATOR = SchemaValidator(Solution)


def validate_structure(
    payload: Any,
    validator: SchemaValidator = INTENT_VALIDATOR,
) -> ValidationResult:
    """
    Structural validation of an Intent payload (or any IGS document when a
    different validator is passed).

    valid = no error-severity entries.
    """
    result, _ = validator.validate(payload)
    return result


def validate_solution_structure(
    payload: Any,
    validator: SchemaValidator = SOLUTION_VALIDATOR,
) -> ValidationResult:
    """Structural validation of a Solution payload."""
    result, _ = validator.validate(payload)
    return result


def parse_intent(payload: Any, validator: SchemaValidator = INTENT_VALIDATOR) -> Tuple[ValidationResult, Optional[Intent]]:
    """Validate and return the typed Intent (None when invalid)."""
    return validator.validate(payload)


def parse_solution(payload: Any, validator: SchemaValidator = SOLUTION_VALIDATOR) -> Tuple[ValidationResult, Optional[Solution]]:
    """Validate and return the typed Solution (None when invalid)."""
    return validator.validate(payload)
