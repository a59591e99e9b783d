"""
Accuracy pipeline orchestrator: measurement → judgment → calibrated result.

``run_accuracy_pipeline`` is the only entry point the HTTP layer, the CLI
and external callers need.  It runs ten strictly ordered steps:

1.  Market probabilities (raw, no-vig, margin) from the bookmaker quotes.
2.  Raw volatility statistics, interpreted against the configured threshold.
3.  Raw data-quality flags, interpreted into a level, score and issues.
4.  Market-independent statistical estimate (``team_strength``).
5.  Calibration: ``w = clamp(score / 100, min_model_weight, max_model_weight)``
    and ``calibrated = (1 − w) · market + w · model``.
6.  Edge per outcome (calibrated − market); primary edge = max ``|edge|``.
7.  Favored side = argmax calibrated probability.
8.  Confidence from data quality, volatility and edge quality.
9.  Guardrail: ``suppress_edge`` whenever data quality is LOW or volatility
    is HIGH (and, by default, when volatility could not be measured).
10. Assemble ``details`` (audit) and ``output`` (decision-ready).

Ties in steps 6 and 7 resolve in the fixed order home, away, draw.

The function is synchronous and referentially transparent: nothing is read
from the environment or the clock, so identical input always serialises to
byte-identical JSON.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from accuracy_core.core.odds_math import calculate_market_probabilities, filter_valid_quotes
from accuracy_core.core.quality_flags import extract_data_quality_flags, form_length
from accuracy_core.core.volatility import calculate_odds_volatility_raw
from accuracy_core.errors import DegradedDataWarning, ValidationError
from accuracy_core.interpretation.quality import interpret_data_quality
from accuracy_core.interpretation.volatility import INSUFFICIENT_DATA, interpret_volatility
from accuracy_core.schemas import (
    EdgeSummary,
    OutcomeValues,
    PipelineDetails,
    PipelineInput,
    PipelineOutput,
    PipelineResult,
)
from accuracy_core.services.pipeline_config import PipelineConfig
from accuracy_core.services.team_strength import estimate_team_strength

logger = logging.getLogger(__name__)

LEVELS = ("LOW", "MEDIUM", "HIGH")


# ---------------------------------------------------------------------------
# Decision helpers
# ---------------------------------------------------------------------------


def model_weight(quality_score: int, config: PipelineConfig) -> float:
    """Share of the statistical model in the calibrated blend."""
    return min(max(quality_score / 100.0, config.min_model_weight), config.max_model_weight)


def blend_probabilities(
    market: OutcomeValues,
    model: OutcomeValues,
    weight: float,
) -> OutcomeValues:
    """``(1 − w) · market + w · model``, renormalised to sum to exactly 1."""
    blended = {
        name: (1.0 - weight) * value + weight * model.get(name)
        for name, value in market.items()
    }
    total = math.fsum(blended.values())
    return OutcomeValues(
        home=blended["home"] / total,
        away=blended["away"] / total,
        draw=blended["draw"] / total if "draw" in blended else None,
    )


def compute_edges(calibrated: OutcomeValues, market: OutcomeValues) -> OutcomeValues:
    edges = {name: value - market.get(name) for name, value in calibrated.items()}
    return OutcomeValues(home=edges["home"], away=edges["away"], draw=edges.get("draw"))


def classify_edge(value: float, config: PipelineConfig) -> str:
    """Band an edge by magnitude: NONE / LOW / MEDIUM / HIGH."""
    magnitude = abs(value)
    if magnitude < config.edge_low:
        return "NONE"
    if magnitude < config.edge_medium:
        return "LOW"
    if magnitude < config.edge_high:
        return "MEDIUM"
    return "HIGH"


def primary_edge(edges: OutcomeValues, config: PipelineConfig) -> EdgeSummary:
    # max() keeps the first of equal keys, so ties resolve home, away, draw.
    outcome, value = max(edges.items(), key=lambda pair: abs(pair[1]))
    return EdgeSummary(outcome=outcome, value=value, quality=classify_edge(value, config))


def favored_outcome(probabilities: OutcomeValues) -> str:
    outcome, _ = max(probabilities.items(), key=lambda pair: pair[1])
    return outcome


def determine_confidence(
    quality_level: str,
    volatility_level: str,
    edge_quality: str,
    config: Optional[PipelineConfig] = None,
) -> str:
    """Combine the three judgments into a single confidence label.

    Rules, applied to the data-quality level as a starting point (step
    counts are the ``*_downgrade`` fields of :class:`PipelineConfig`):

    * MEDIUM volatility costs one step; HIGH or INSUFFICIENT_DATA costs two.
    * A HIGH edge costs one step: the model disagrees sharply with the
      market, which is more often a data problem than a real mispricing.
    * The result never drops below LOW and never rises above the data
      quality, so LOW data quality can at most give LOW confidence.

    Examples::

        HIGH quality, LOW volatility, LOW edge     → HIGH
        HIGH quality, MEDIUM volatility, HIGH edge → LOW
        MEDIUM quality, LOW volatility, NONE edge  → MEDIUM
    """
    config = config or PipelineConfig()
    volatility_downgrade = {
        "LOW": 0,
        "MEDIUM": config.medium_volatility_downgrade,
        "HIGH": config.high_volatility_downgrade,
        INSUFFICIENT_DATA: config.insufficient_volatility_downgrade,
    }
    index = LEVELS.index(quality_level)
    index -= volatility_downgrade[volatility_level]
    if edge_quality == "HIGH":
        index -= config.high_edge_downgrade
    return LEVELS[max(index, 0)]


def suppression_reasons(
    quality_level: str,
    volatility_level: str,
    config: PipelineConfig,
) -> List[str]:
    """Why the edge must not be surfaced; empty when it may be."""
    reasons = []
    if quality_level == "LOW":
        reasons.append("data quality is LOW")
    if volatility_level == "HIGH":
        reasons.append("market volatility is HIGH")
    elif volatility_level == INSUFFICIENT_DATA and config.suppress_on_insufficient_volatility:
        reasons.append("market volatility could not be measured")
    return reasons


def should_suppress_edge(
    quality_level: str,
    volatility_level: str,
    config: Optional[PipelineConfig] = None,
) -> bool:
    """The guardrail: True whenever data quality is LOW or volatility HIGH."""
    return bool(suppression_reasons(quality_level, volatility_level, config or PipelineConfig()))


# ---------------------------------------------------------------------------
# Degraded-data warnings
# ---------------------------------------------------------------------------


def _collect_warnings(data: PipelineInput, exclusions: List[str]) -> List[DegradedDataWarning]:
    warnings = [DegradedDataWarning("excluded_quote", message) for message in exclusions]

    for side, stats, form in (
        ("home", data.home_stats, data.home_form),
        ("away", data.away_stats, data.away_form),
    ):
        label = side.capitalize()
        if stats is None:
            warnings.append(DegradedDataWarning(
                f"missing_{side}_stats",
                f"{label} team season statistics missing; neutral values used",
            ))
        if form_length(form) == 0:
            warnings.append(DegradedDataWarning(
                f"missing_{side}_form",
                f"{label} team recent form missing; neutral values used",
            ))

    if data.h2h is None:
        warnings.append(DegradedDataWarning(
            "missing_h2h", "Head-to-head history missing; neutral values used",
        ))
    return warnings


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def _coerce_input(data: Union[PipelineInput, Mapping[str, Any]]) -> PipelineInput:
    if isinstance(data, PipelineInput):
        return data
    try:
        return PipelineInput.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid pipeline input: {exc}") from exc


def run_accuracy_pipeline(
    data: Union[PipelineInput, Mapping[str, Any]],
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Produce a calibrated forecast, edge and guardrail for one match.

    Args:
        data: A :class:`~accuracy_core.schemas.PipelineInput` or a mapping
            with its (camelCase or snake_case) fields.
        config: Policy constants.  Defaults to
            ``PipelineConfig.for_sport(data.sport)``.

    Returns:
        :class:`~accuracy_core.schemas.PipelineResult`.

    Raises:
        ValidationError: When the input is malformed, the odds list is
            empty, or every quote has invalid odds.
    """
    data = _coerce_input(data)
    config = config or PipelineConfig.for_sport(data.sport)

    # 1. Market baseline
    market = calculate_market_probabilities(data.odds, aggregation=config.aggregation)
    _, exclusions = filter_valid_quotes(data.odds)
    no_vig = market.implied_probabilities_no_vig

    # 2. Volatility
    raw_volatility = calculate_odds_volatility_raw(data.odds)
    volatility = interpret_volatility(raw_volatility, config.volatility_threshold)

    # 3. Data quality
    raw_flags = extract_data_quality_flags(
        data.home_stats,
        data.away_stats,
        data.home_form,
        data.away_form,
        data.h2h,
        market.bookmaker_count,
        min_played=config.min_played,
        min_form_length=config.min_form_length,
        min_bookmakers=config.min_bookmakers,
    )
    quality = interpret_data_quality(raw_flags, config.quality_policy)

    # 4. Statistical model
    strength = estimate_team_strength(data, config, has_draw=no_vig.has_draw)

    # 5. Calibration
    weight = model_weight(quality.score, config)
    calibrated = blend_probabilities(no_vig, strength.probabilities, weight)

    # 6-7. Edge and favored side
    edges = compute_edges(calibrated, no_vig)
    edge = primary_edge(edges, config)
    favored = favored_outcome(calibrated)

    # 8. Confidence
    confidence = determine_confidence(quality.level, volatility.level, edge.quality, config)

    # 9. Guardrail
    reasons = suppression_reasons(quality.level, volatility.level, config)
    suppress = bool(reasons)

    warnings = _collect_warnings(data, exclusions)
    if volatility.level == INSUFFICIENT_DATA:
        warnings.append(DegradedDataWarning(
            "insufficient_volatility_data",
            f"Market dispersion needs at least 2 bookmakers (got {market.bookmaker_count})",
        ))
    if suppress:
        warnings.append(DegradedDataWarning(
            "edge_suppressed", "Edge suppressed: " + "; ".join(reasons),
        ))

    for warning in warnings:
        logger.warning("[%s] %s", data.match_id, warning.message)

    # 10. Assemble
    details = PipelineDetails(
        market_probabilities=market,
        raw_volatility=raw_volatility,
        volatility_assessment=volatility,
        raw_quality_flags=raw_flags,
        quality_assessment=quality,
        team_strength=strength,
        model_probabilities=strength.probabilities,
        model_weight=weight,
        edges=edges,
        log_predictions=data.config.log_predictions,
    )
    output = PipelineOutput(
        probabilities=calibrated,
        edge=edge,
        favored=favored,
        confidence=confidence,
        data_quality=quality.level,
        volatility=volatility.level,
        suppress_edge=suppress,
        warnings=[w.message for w in warnings],
    )

    logger.debug(
        "[%s] %s: favored=%s edge=%s %+.4f (%s) quality=%s/%d volatility=%s "
        "confidence=%s suppress=%s model_weight=%.2f",
        data.match_id, config.sport_id, favored, edge.outcome, edge.value, edge.quality,
        quality.level, quality.score, volatility.level, confidence, suppress, weight,
    )
    return PipelineResult(match_id=data.match_id, details=details, output=output)
