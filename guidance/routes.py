"""
Guidance API Routes

Exposes the guidance engine via REST API.
Endpoints: POST /guidance, POST /guidance/readiness, GET /guidance/health

The engine itself never reads the clock. Requests that omit as_of are
evaluated against the current time, stamped here.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .logic.engine import GuidanceEngine, ENGINE_VERSION
from .logic.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/guidance", tags=["guidance"])


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class GuidanceRequest(BaseModel):
    """Request body for the guidance endpoint."""
    snapshot: Dict[str, Any] = Field(
        ...,
        description="Applicant snapshot; only user_id is required",
        examples=[{
            "user_id": "user_123",
            "academic": {"overall_gpa": 3.4, "science_gpa": 3.2},
            "saved_program_ids": ["42"],
            "clinical_profile": {"primary_unit_type": "micu", "years_experience": 1.5},
        }],
    )
    max_steps: Optional[int] = Field(
        default=None,
        ge=1,
        description="Override the maximum number of next best steps",
    )


class ReadinessRequest(BaseModel):
    """Request body for the readiness endpoint."""
    snapshot: Dict[str, Any] = Field(..., description="Applicant snapshot; only user_id is required")


def _engine(max_steps: Optional[int] = None) -> GuidanceEngine:
    engine = GuidanceEngine()
    if max_steps is not None:
        engine = GuidanceEngine(
            config=engine.config.model_copy(update={"max_next_best_steps": max_steps}),
            catalog=engine.catalog,
        )
    return engine


def _with_reference_time(snapshot: Dict[str, Any]) -> Dict[str, Any]:
    if snapshot.get("as_of") is not None:
        return snapshot
    return {**snapshot, "as_of": datetime.now(timezone.utc)}


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("", summary="Compute guidance state")
@router.post("/", summary="Compute guidance state", include_in_schema=False)
def compute_guidance(request: GuidanceRequest):
    """
    Compute the applicant's guidance state.

    **Request Body:**
    - `snapshot`: Everything known about the applicant
    - `max_steps`: Optional cap on next best steps (default from config)

    **Response:**
    - Application stage, support mode and risk signals
    - Ranked next best steps
    - Readiness score with category breakdown
    """
    try:
        state = _engine(request.max_steps).compute(_with_reference_time(request.snapshot))
        return state.model_dump(mode="json")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid snapshot: {str(e)}")
    except Exception as e:
        logger.exception("Guidance computation failed")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/readiness", summary="Compute readiness score")
def compute_readiness(request: ReadinessRequest):
    """Readiness score and category breakdown only."""
    try:
        readiness = _engine().score_readiness(_with_reference_time(request.snapshot))
        return readiness.model_dump(mode="json")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid snapshot: {str(e)}")
    except Exception as e:
        logger.exception("Readiness computation failed")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.get("/health", summary="Guidance engine health check")
def health_check():
    """Check if guidance engine is operational."""
    return {"status": "ok", "engine": "guidance", "version": ENGINE_VERSION}
