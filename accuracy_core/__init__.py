"""accuracy-core: calibrated match forecasts from bookmaker odds and team data.

Public API::

    from accuracy_core import run_accuracy_pipeline, format_for_llm

    result = run_accuracy_pipeline(payload)
    print(result.output.probabilities, result.output.suppress_edge)
    print(format_for_llm(result, "Arsenal", "Chelsea"))
"""

from accuracy_core.core.calibration_metrics import (
    calculate_brier_score,
    calculate_log_loss,
    evaluate_predictions,
)
from accuracy_core.core.odds_math import (
    calculate_market_probabilities,
    quick_market_probabilities,
)
from accuracy_core.core.quality_flags import extract_data_quality_flags
from accuracy_core.core.volatility import calculate_odds_volatility_raw
from accuracy_core.errors import AccuracyCoreError, DegradedDataWarning, ValidationError
from accuracy_core.interpretation.quality import QualityPolicy, interpret_data_quality
from accuracy_core.interpretation.volatility import interpret_volatility
from accuracy_core.schemas import PipelineInput, PipelineResult
from accuracy_core.services.llm_format import format_for_llm
from accuracy_core.services.pipeline import run_accuracy_pipeline
from accuracy_core.services.pipeline_config import PipelineConfig

__version__ = "1.0.0"

__all__ = [
    "AccuracyCoreError",
    "DegradedDataWarning",
    "PipelineConfig",
    "PipelineInput",
    "PipelineResult",
    "QualityPolicy",
    "ValidationError",
    "calculate_brier_score",
    "calculate_log_loss",
    "calculate_market_probabilities",
    "calculate_odds_volatility_raw",
    "evaluate_predictions",
    "extract_data_quality_flags",
    "format_for_llm",
    "interpret_data_quality",
    "interpret_volatility",
    "quick_market_probabilities",
    "run_accuracy_pipeline",
]
