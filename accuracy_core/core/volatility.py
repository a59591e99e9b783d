"""Cross-bookmaker dispersion statistics.

Measures how much bookmakers disagree about a match, and nothing else:
no thresholds, no levels.  Interpretation lives in
``accuracy_core.interpretation.volatility``.

For each outcome the sample standard deviation (``ddof=1``) of the quoted
decimal prices is computed; ``avg_cv`` is the mean coefficient of variation
(std / mean) over the outcomes present.  With fewer than two usable quotes
dispersion is undefined and every statistic is reported as ``0.0`` rather
than ``NaN``; the bookmaker count tells the reader why.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

from accuracy_core.core.odds_math import filter_valid_quotes, market_has_draw
from accuracy_core.schemas import BookmakerQuote, RawVolatilityStats


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation, ``0.0`` for fewer than two values.

    Values are sorted first so the result does not depend on quote order.
    """
    if len(values) < 2:
        return 0.0
    arr = np.sort(np.asarray(values, dtype=float))
    # Identical prices: exact zero, not float residue from the mean.
    if arr[0] == arr[-1]:
        return 0.0
    return float(np.std(arr, ddof=1))


def coefficient_of_variation(values: Sequence[float]) -> float:
    """``std / mean``; ``0.0`` when the mean is not positive or n < 2."""
    if len(values) < 2:
        return 0.0
    mean = math.fsum(values) / len(values)
    if mean <= 0.0:
        return 0.0
    return sample_std(values) / mean


def calculate_odds_volatility_raw(quotes: Iterable[BookmakerQuote]) -> RawVolatilityStats:
    """Raw dispersion statistics for a set of bookmaker quotes.

    Invalid quotes are skipped using the same rules as the odds normaliser,
    so ``bookmaker_count`` always matches the market baseline.

    Args:
        quotes: Bookmaker quotes in any order.

    Returns:
        :class:`~accuracy_core.schemas.RawVolatilityStats`.  ``draw_std_dev``
        is ``None`` for two-way markets.
    """
    valid, _ = filter_valid_quotes(quotes)
    has_draw = market_has_draw(valid)

    series = {
        "home": [q.home_odds for q in valid],
        "away": [q.away_odds for q in valid],
    }
    if has_draw:
        series["draw"] = [q.draw_odds for q in valid]

    cvs = [coefficient_of_variation(values) for values in series.values()]
    avg_cv = math.fsum(cvs) / len(cvs) if len(valid) >= 2 else 0.0

    return RawVolatilityStats(
        bookmaker_count=len(valid),
        home_std_dev=sample_std(series["home"]),
        away_std_dev=sample_std(series["away"]),
        draw_std_dev=sample_std(series["draw"]) if has_draw else None,
        avg_cv=avg_cv,
    )
