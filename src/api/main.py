"""
Protocol Matching API

FastAPI server exposing the protocol matching engine.
"""
import logging
from typing import Optional, List, Dict, Any
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.protocol_matching.config import MatchingWeights
from src.protocol_matching.engine import MatchingEngine
from src.protocol_matching.errors import ConfigurationError, InvalidRequest, RepositoryError
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.request import MatchingRequest
from src.protocol_matching.models.results import (
    EligibilityAssessment,
    MatchingResult,
    MatchScoreBreakdown,
)
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Engine is created lazily on first request
_engine: Optional[MatchingEngine] = None


def get_engine() -> MatchingEngine:
    """Get or create the matching engine from settings."""
    global _engine
    if _engine is None:
        from src.protocol_matching.factory import create_matching_engine
        try:
            _engine = create_matching_engine()
        except ValueError as e:
            logger.error(f"Matching engine unavailable: {e}")
            raise HTTPException(status_code=503, detail=str(e))
    return _engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Protocol Matching API starting up...")
    yield
    logger.info("Protocol Matching API shutting down...")


app = FastAPI(
    title="Protocol Matching API",
    description="Treatment protocol matching and eligibility scoring",
    version=API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Error Mapping
# ============================================================================

@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    logger.error(f"Repository failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ============================================================================
# Request/Response Models
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str


class ProtocolEvaluationRequest(BaseModel):
    patient: PatientProfile
    protocol: Optional[TreatmentProtocol] = Field(None, description="Inline protocol")
    protocol_id: Optional[str] = Field(None, description="Protocol id to fetch from the repository")
    weights: Optional[MatchingWeights] = Field(None, description="Per-call weight override")


class ScoreResponse(BaseModel):
    protocol_id: str
    match_score: float
    breakdown: Optional[MatchScoreBreakdown] = None


async def _evaluate(engine: MatchingEngine, body: ProtocolEvaluationRequest) -> MatchingResult:
    if body.protocol is not None:
        return engine.evaluate_protocol(body.patient, body.protocol, body.weights)
    if body.protocol_id:
        result = await engine.evaluate_protocol_by_id(body.patient, body.protocol_id, body.weights)
        if result is None:
            raise HTTPException(status_code=404, detail=f"Protocol not found: {body.protocol_id}")
        return result
    raise InvalidRequest("Either protocol or protocol_id is required")


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=API_VERSION)


@app.post("/api/v1/matching/protocols", response_model=List[MatchingResult])
async def find_matching_protocols(request: MatchingRequest, engine: MatchingEngine = Depends(get_engine)):
    """
    Rank treatment protocols for a patient.

    Returns an empty list when no protocol matches; repository failures
    return 503.
    """
    return await engine.find_matching_protocols(request)


@app.post("/api/v1/matching/evaluate", response_model=MatchingResult)
async def evaluate_protocol(body: ProtocolEvaluationRequest, engine: MatchingEngine = Depends(get_engine)):
    """Full evaluation of one protocol for a patient."""
    return await _evaluate(engine, body)


@app.post("/api/v1/matching/eligibility", response_model=EligibilityAssessment)
async def assess_eligibility(body: ProtocolEvaluationRequest, engine: MatchingEngine = Depends(get_engine)):
    """Eligibility verdict for one protocol, independent of the score."""
    if body.protocol is not None:
        return engine.assess_eligibility(body.patient, body.protocol)
    return (await _evaluate(engine, body)).eligibility


@app.post("/api/v1/matching/score", response_model=ScoreResponse)
async def calculate_match_score(body: ProtocolEvaluationRequest, engine: MatchingEngine = Depends(get_engine)):
    """Weighted match score for one protocol."""
    if body.protocol is not None:
        score = engine.calculate_match_score(body.patient, body.protocol, body.weights)
        return ScoreResponse(protocol_id=body.protocol.id, match_score=score)
    result = await _evaluate(engine, body)
    return ScoreResponse(protocol_id=result.protocol.id, match_score=result.match_score, breakdown=result.breakdown)


@app.post("/api/v1/matching/cache/clear")
async def clear_cache(engine: MatchingEngine = Depends(get_engine)):
    """Drop cached protocol lists."""
    engine.clear_cache()
    return {"status": "cleared"}


@app.get("/api/v1/matching/cache/stats")
async def cache_stats(engine: MatchingEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Protocol cache statistics."""
    return engine.cache.get_stats()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("src.api.main:app", host="0.0.0.0", port=8000, reload=True)
