"""Market-volatility interpretation: raw dispersion → qualitative level.

Bands on ``avg_cv`` relative to a configurable threshold ``t``:

    avg_cv <  t/2        → LOW
    t/2 <= avg_cv < t    → MEDIUM
    avg_cv >= t          → HIGH

Dispersion cannot be measured from fewer than two bookmakers, so that case
returns the explicit ``INSUFFICIENT_DATA`` sentinel instead of a
reassuring ``LOW``.
"""

from __future__ import annotations

from typing import Final

from accuracy_core.schemas import RawVolatilityStats, VolatilityAssessment

DEFAULT_VOLATILITY_THRESHOLD: Final[float] = 0.30

INSUFFICIENT_DATA: Final[str] = "INSUFFICIENT_DATA"

#: Minimum bookmakers for a dispersion estimate.
MIN_BOOKMAKERS_FOR_DISPERSION: Final[int] = 2


def classify_cv(avg_cv: float, threshold: float) -> str:
    if avg_cv >= threshold:
        return "HIGH"
    if avg_cv >= threshold / 2.0:
        return "MEDIUM"
    return "LOW"


def interpret_volatility(
    raw: RawVolatilityStats,
    threshold: float = DEFAULT_VOLATILITY_THRESHOLD,
) -> VolatilityAssessment:
    """Label cross-bookmaker disagreement.

    Args:
        raw: Output of :func:`~accuracy_core.core.volatility.calculate_odds_volatility_raw`.
        threshold: ``avg_cv`` at and above which volatility is HIGH.

    Raises:
        ValueError: If ``threshold`` is not positive.
    """
    if threshold <= 0.0:
        raise ValueError(f"Volatility threshold must be positive, got {threshold!r}.")

    if raw.bookmaker_count < MIN_BOOKMAKERS_FOR_DISPERSION:
        level = INSUFFICIENT_DATA
    else:
        level = classify_cv(raw.avg_cv, threshold)

    return VolatilityAssessment(
        level=level,
        avg_cv=raw.avg_cv,
        threshold=threshold,
        bookmaker_count=raw.bookmaker_count,
    )
