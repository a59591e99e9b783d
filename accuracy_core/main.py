"""
FastAPI application for accuracy-core
Exposes the calibration pipeline and offline forecast evaluation over HTTP
"""

from contextlib import asynccontextmanager
from typing import Dict, List
import logging
import os

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from accuracy_core import __version__
from accuracy_core.core.calibration_metrics import evaluate_predictions
from accuracy_core.errors import ValidationError
from accuracy_core.schemas import (
    CalibratedPrediction,
    CalibrationReport,
    PipelineInput,
    PipelineResult,
)
from accuracy_core.services.llm_format import format_for_llm
from accuracy_core.services.pipeline import run_accuracy_pipeline
from accuracy_core.services.pipeline_config import (
    SPORT_ID_AMERICAN_FOOTBALL,
    SPORT_ID_BASKETBALL,
    SPORT_ID_SOCCER,
    PipelineConfig,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def configure_logging() -> None:
    """Root logging for the served app; a no-op if handlers already exist."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def cors_origins() -> List[str]:
    """Allowed origins from the comma-separated CORS_ORIGINS variable."""
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def build_configs() -> Dict[str, PipelineConfig]:
    """One config per supported sport, with ACCURACY_* overrides applied."""
    return {
        sport_id: PipelineConfig.from_env(PipelineConfig.for_sport(sport_id))
        for sport_id in (SPORT_ID_SOCCER, SPORT_ID_BASKETBALL, SPORT_ID_AMERICAN_FOOTBALL)
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    configure_logging()
    load_dotenv()
    app.state.configs = build_configs()
    logger.info(
        "Starting accuracy-core %s (%s)",
        __version__, app.state.configs[SPORT_ID_SOCCER],
    )

    yield

    logger.info("Shutting down accuracy-core")


def create_app() -> FastAPI:
    """Build the app; CORS_ORIGINS is read here rather than per request."""
    application = FastAPI(
        title="accuracy-core",
        description="Calibrated match forecasts from bookmaker odds and team statistics",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


def _config_for(request: Request, sport) -> PipelineConfig:
    configs = getattr(request.app.state, "configs", None)
    if configs is None:
        configs = request.app.state.configs = build_configs()
    return configs[PipelineConfig.for_sport(sport).sport_id]


def _run(request: Request, payload: PipelineInput) -> PipelineResult:
    try:
        return run_accuracy_pipeline(payload, _config_for(request, payload.sport))
    except ValidationError as exc:
        logger.info("Rejected %s: %s", payload.match_id, exc)
        raise HTTPException(status_code=422, detail=str(exc))


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "app": "accuracy-core", "version": __version__}


@router.post("/api/accuracy/analyze", response_model=PipelineResult)
def analyze_match(payload: PipelineInput, request: Request):
    """Run the calibration pipeline for one match."""
    return _run(request, payload)


@router.post("/api/accuracy/llm-context", response_class=PlainTextResponse)
def llm_context(payload: PipelineInput, request: Request):
    """Run the pipeline and return the prompt-ready text block."""
    result = _run(request, payload)
    return format_for_llm(
        result,
        payload.home_team or "Home",
        payload.away_team or "Away",
    )


@router.post("/api/calibration/evaluate", response_model=CalibrationReport)
def evaluate_calibration(predictions: List[CalibratedPrediction]):
    """Score a batch of resolved historical predictions."""
    try:
        report = evaluate_predictions(predictions)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    logger.info(
        "Calibration evaluated: n=%d brier=%.4f log_loss=%.4f",
        report.count, report.brier_score, report.log_loss,
    )
    return report


app = create_app()
