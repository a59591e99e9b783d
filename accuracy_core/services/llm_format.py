"""Plain-text rendering of a pipeline result for prompt injection.

Formatting only: every number printed here was computed by the pipeline.
The block is deterministic (fixed section order, fixed precision) so the
same result always yields the same text.
"""

from __future__ import annotations

from typing import List

from accuracy_core.schemas import OutcomeValues, PipelineResult


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _signed_pct(value: float) -> str:
    return f"{value * 100:+.1f}%"


def _outcome_label(outcome: str, home_team: str, away_team: str) -> str:
    return {"home": home_team, "away": away_team, "draw": "Draw"}[outcome]


def _probability_lines(
    values: OutcomeValues,
    home_team: str,
    away_team: str,
    fmt=_pct,
) -> List[str]:
    return [
        f"- {_outcome_label(name, home_team, away_team)}: {fmt(value)}"
        for name, value in values.items()
    ]


def format_for_llm(result: PipelineResult, home_team: str, away_team: str) -> str:
    """Render ``result`` as a labelled text block.

    Sections: market view, calibrated probabilities, edge, assessment, and
    (when present) warnings.  When the edge is suppressed the block says so
    explicitly and instructs the reader not to present it as a
    recommendation.
    """
    details = result.details
    output = result.output
    market = details.market_probabilities

    lines = [
        f"=== MATCH ANALYSIS: {home_team} vs {away_team} ===",
        "",
        f"MARKET (no-vig, {market.bookmaker_count} bookmaker(s), "
        f"margin {_pct(market.market_margin)}):",
        *_probability_lines(market.implied_probabilities_no_vig, home_team, away_team),
        "",
        f"CALIBRATED PROBABILITIES (model weight {_pct(details.model_weight)}):",
        *_probability_lines(output.probabilities, home_team, away_team),
        "",
        f"FAVORED: {_outcome_label(output.favored, home_team, away_team)}",
    ]

    edge_label = _outcome_label(output.edge.outcome, home_team, away_team)
    if output.suppress_edge:
        lines.append(
            f"EDGE: SUPPRESSED (largest gap {edge_label} {_signed_pct(output.edge.value)} "
            "is not reliable; do not present it as a value bet)"
        )
    else:
        lines.append(
            f"EDGE: {edge_label} {_signed_pct(output.edge.value)} ({output.edge.quality})"
        )

    lines += [
        "",
        "ASSESSMENT:",
        f"- Confidence: {output.confidence}",
        f"- Data quality: {output.data_quality} ({details.quality_assessment.score}/100)",
        f"- Market volatility: {output.volatility} "
        f"(avg CV {details.volatility_assessment.avg_cv:.3f})",
    ]

    issues = details.quality_assessment.issues
    if issues:
        lines += ["", "DATA ISSUES:", *(f"- {issue}" for issue in issues)]
    if output.warnings:
        lines += ["", "WARNINGS:", *(f"- {warning}" for warning in output.warnings)]

    return "\n".join(lines)
