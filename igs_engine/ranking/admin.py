"""
Ranking Engine API Endpoints

FastAPI router exposing validation, classification and full evaluation.

Endpoints:
- GET  /api/v1/ranking/health - Module health check
- POST /api/v1/ranking/intents/validate - Validate an IGS Intent
- POST /api/v1/ranking/intents/classify - Classify a valid Intent
- POST /api/v1/ranking/evaluate - Evaluate an Intent and its Solutions

Security: health is public. Other endpoints require X-Admin-API-Key only
when ADMIN_API_KEY is set.

An invalid Intent is a 200 carrying its validation result. Only a body that
is not a JSON object is an HTTP error (400, JSON_PARSE_ERROR).

Version: ranking_v1
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from igs_engine.classification.classify import classify, extract_features
from igs_engine.classification.models import Classification, IntentFeatures
from igs_engine.config import get_settings
from igs_engine.pipeline.evaluate import evaluate_request
from igs_engine.pipeline.models import EvaluationReport, EvaluationRequest
from igs_engine.rules.validate import validate_intent
from igs_engine.schema.models import IGS_VERSION, ValidationResult
from igs_engine.schema.validate import PayloadParseError, parse_payload


router = APIRouter(
    prefix="/api/v1/ranking",
    tags=["ranking"],
)


# Response models

class ClassifyResponse(BaseModel):
    """Classification of a valid Intent, or its validation failure."""
    success: bool = True
    intent_validation: ValidationResult
    classification: Optional[Classification] = None
    features: Optional[IntentFeatures] = None


# Admin key verification (optional)
def verify_admin_key(x_admin_api_key: str = Header(None, alias="X-Admin-API-Key")) -> str:
    """Verify admin API key from header."""
    expected_key = get_settings().admin_api_key

    if not expected_key:
        return "dev_mode"

    if not x_admin_api_key:
        raise HTTPException(status_code=401, detail="Missing X-Admin-API-Key header")

    if x_admin_api_key != expected_key:
        raise HTTPException(status_code=401, detail="Invalid admin API key")

    return x_admin_api_key


async def read_document(request: Request) -> Dict[str, Any]:
    """Request body as a JSON object, or 400 JSON_PARSE_ERROR."""
    body = await request.body()
    try:
        return parse_payload(body)
    except PayloadParseError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "JSON_PARSE_ERROR", "reason": e.error_code.value, "message": e.message},
        )


# Endpoints

@router.get("/health")
async def ranking_health():
    """
    Health check for the ranking engine.

    Does not require authentication.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "module": "igs_ranking_engine",
        "version": settings.strategy_version,
        "igs_version": IGS_VERSION,
        "max_workers": settings.max_workers,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/intents/validate", response_model=ValidationResult)
async def validate_intent_endpoint(
    now_ms: Optional[int] = None,
    document: Dict[str, Any] = Depends(read_document),
    _key: str = Depends(verify_admin_key),
):
    """Structural and business-rule validation of one Intent."""
    result, _ = validate_intent(document, now_ms=now_ms, settings=get_settings())
    return result


@router.post("/intents/classify", response_model=ClassifyResponse)
async def classify_intent_endpoint(
    now_ms: Optional[int] = None,
    document: Dict[str, Any] = Depends(read_document),
    _key: str = Depends(verify_admin_key),
):
    """
    Classify an Intent.

    The Intent is validated first; an invalid Intent is returned with
    success=false and no classification.
    """
    result, intent = validate_intent(document, now_ms=now_ms, settings=get_settings())
    if not result.valid:
        return ClassifyResponse(success=False, intent_validation=result)
    return ClassifyResponse(
        intent_validation=result,
        classification=classify(intent),
        features=extract_features(intent, now_ms),
    )


@router.post("/evaluate", response_model=EvaluationReport)
async def evaluate_endpoint(
    now_ms: Optional[int] = None,
    ranked_at: Optional[int] = None,
    document: Dict[str, Any] = Depends(read_document),
    _key: str = Depends(verify_admin_key),
):
    """
    Evaluate one Intent with its Solutions.

    Body: {"intent": {...}, "solutions": [...], "reputations": {...}}
    """
    try:
        evaluation = EvaluationRequest.model_validate(document)
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"code": "INVALID_REQUEST", "errors": [err["msg"] for err in e.errors()]},
        )
    return evaluate_request(evaluation, now_ms=now_ms, ranked_at=ranked_at, settings=get_settings())
