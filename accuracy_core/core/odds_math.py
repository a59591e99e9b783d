"""Bookmaker odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Problems with individual quotes are returned as warning strings so the
orchestration layer decides how to log and surface them.

The three pillars exposed are:

1. **Conversion** — decimal odds → implied probability.
2. **Aggregation** — one implied probability per outcome across bookmakers.
3. **Vig removal** — proportional de-margining to a distribution summing to 1.

Design decisions
----------------
* All prices are **decimal** (European) odds.  A price must be finite and
  strictly greater than 1.0; anything else is a data error and the whole
  quote is excluded rather than failing the request.
* Aggregation is the arithmetic mean of implied probabilities by default,
  with the median available for outlier-heavy books.  Both are computed in
  an order-independent way (``math.fsum`` / sorting) so the same quotes in
  any order give bit-identical output.
* Proportional normalisation (raw / Σraw) is used for vig removal.  It is
  exact for the N-outcome case, needs no solver, and keeps ``draw`` handling
  identical to the two-way case.
* A market is three-way only when at least one usable quote prices the
  draw.  Quotes that omit the draw in a three-way market cannot be
  normalised against the same outcome set and are excluded with a warning.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final, Iterable, Sequence

import numpy as np

from accuracy_core.errors import ValidationError
from accuracy_core.schemas import BookmakerQuote, MarketProbabilities, OutcomeValues

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Smallest usable decimal price (exclusive).  Odds of 1.0 imply certainty
#: and leave no payout; anything at or below is a parsing error upstream.
MIN_DECIMAL_ODDS: Final[float] = 1.0

#: Supported aggregation methods for combining bookmaker quotes.
AGGREGATION_METHODS: Final[tuple[str, ...]] = ("mean", "median")

DEFAULT_AGGREGATION: Final[str] = "mean"


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def is_valid_decimal_odds(odds: float | None) -> bool:
    """Return True when ``odds`` is a finite decimal price above 1.0."""
    if odds is None:
        return False
    try:
        value = float(odds)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > MIN_DECIMAL_ODDS


def decimal_to_implied(decimal_odds: float) -> float:
    """Raw implied probability from decimal odds (vig-inclusive).

    Args:
        decimal_odds: Decimal (European) price, e.g. ``1.85``.

    Returns:
        ``1 / decimal_odds`` in ``(0, 1)``.

    Raises:
        ValueError: If the price is not finite or not above 1.0.

    Examples::

        decimal_to_implied(2.00) → 0.5000
        decimal_to_implied(1.85) → 0.5405
    """
    if not is_valid_decimal_odds(decimal_odds):
        raise ValueError(
            f"Invalid decimal odds {decimal_odds!r}: must be finite and > 1.0."
        )
    return 1.0 / float(decimal_odds)


# ---------------------------------------------------------------------------
# Quote filtering
# ---------------------------------------------------------------------------


def _quote_is_usable(quote: BookmakerQuote) -> bool:
    if not (is_valid_decimal_odds(quote.home_odds) and is_valid_decimal_odds(quote.away_odds)):
        return False
    return quote.draw_odds is None or is_valid_decimal_odds(quote.draw_odds)


def _describe(quote: BookmakerQuote) -> str:
    prices = f"home={quote.home_odds!r}, away={quote.away_odds!r}"
    if quote.draw_odds is not None:
        prices += f", draw={quote.draw_odds!r}"
    return prices


def filter_valid_quotes(
    quotes: Iterable[BookmakerQuote],
) -> tuple[list[BookmakerQuote], list[str]]:
    """Split quotes into usable ones and human-readable exclusion warnings.

    A quote is excluded when any of its supplied prices is not a valid
    decimal price, or when it omits the draw in a market where other usable
    quotes price it.

    Returns:
        ``(valid_quotes, warnings)``.  Input order is preserved.
    """
    candidates: list[BookmakerQuote] = []
    warnings: list[str] = []

    for quote in quotes:
        if _quote_is_usable(quote):
            candidates.append(quote)
        else:
            warnings.append(
                f"Excluded {quote.bookmaker}: invalid decimal odds ({_describe(quote)})"
            )

    three_way = any(q.has_draw for q in candidates)
    if not three_way:
        return candidates, warnings

    valid: list[BookmakerQuote] = []
    for quote in candidates:
        if quote.has_draw:
            valid.append(quote)
        else:
            warnings.append(
                f"Excluded {quote.bookmaker}: no draw price in a three-way market"
            )
    return valid, warnings


def market_has_draw(quotes: Sequence[BookmakerQuote]) -> bool:
    """True when the (already filtered) quotes describe a three-way market."""
    return bool(quotes) and all(q.has_draw for q in quotes)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(values: Sequence[float], method: str = DEFAULT_AGGREGATION) -> float:
    """Combine one value per bookmaker into a single figure.

    Args:
        values: Non-empty sequence of floats.
        method: ``"mean"`` (default) or ``"median"``.

    Returns:
        The aggregate.  Independent of the order of ``values``.

    Raises:
        ValueError: For an empty sequence or an unknown method.
    """
    if not values:
        raise ValueError("Cannot aggregate an empty sequence of values.")
    if method == "mean":
        return math.fsum(values) / len(values)
    if method == "median":
        return float(np.median(np.sort(np.asarray(values, dtype=float))))
    raise ValueError(
        f"Unknown aggregation method {method!r}; expected one of {AGGREGATION_METHODS}."
    )


def best_odds(quotes: Sequence[BookmakerQuote]) -> OutcomeValues:
    """Highest available price per outcome across the supplied quotes.

    Raises:
        ValueError: If ``quotes`` is empty.
    """
    if not quotes:
        raise ValueError("best_odds requires at least one quote.")
    draw = max(q.draw_odds for q in quotes) if market_has_draw(quotes) else None
    return OutcomeValues(
        home=max(q.home_odds for q in quotes),
        away=max(q.away_odds for q in quotes),
        draw=draw,
    )


# ---------------------------------------------------------------------------
# Vig removal
# ---------------------------------------------------------------------------


def remove_vig_proportional(raw: OutcomeValues) -> OutcomeValues:
    """Rescale raw implied probabilities so that they sum to exactly 1.

    ``p_i = ω_i / Σ ω_j`` where ``ω_i`` is the raw implied probability.
    A degenerate zero total falls back to a uniform distribution.
    """
    outcomes = raw.items()
    total = math.fsum(v for _, v in outcomes)
    if total <= 0.0:
        share = 1.0 / len(outcomes)
        normalised = {name: share for name, _ in outcomes}
    else:
        normalised = {name: value / total for name, value in outcomes}
    return OutcomeValues(
        home=normalised["home"],
        away=normalised["away"],
        draw=normalised.get("draw"),
    )


def calculate_market_probabilities(
    quotes: Iterable[BookmakerQuote],
    *,
    aggregation: str = DEFAULT_AGGREGATION,
) -> MarketProbabilities:
    """Raw and no-vig implied probabilities plus the market margin.

    For each outcome the implied probability ``1 / odds`` is computed per
    quote and aggregated across quotes.  The raw figures sum to
    ``1 + margin``; the no-vig figures are the raw ones rescaled to sum
    to 1.  Two-way markets leave every ``draw`` field as ``None``.

    Args:
        quotes: Bookmaker quotes in any order.  At least one must be usable;
            three or more give a more robust aggregate.
        aggregation: ``"mean"`` or ``"median"``.

    Returns:
        :class:`~accuracy_core.schemas.MarketProbabilities`.  Excluded
        bookmakers are listed in ``excluded_bookmakers``.

    Raises:
        ValidationError: If no quotes are supplied or none are usable.
        ValueError: For an unknown aggregation method.
    """
    if aggregation not in AGGREGATION_METHODS:
        raise ValueError(
            f"Unknown aggregation method {aggregation!r}; expected one of {AGGREGATION_METHODS}."
        )

    quotes = list(quotes)
    if not quotes:
        raise ValidationError(
            "Cannot compute market probabilities: the odds list is empty."
        )

    valid, _ = filter_valid_quotes(quotes)
    if not valid:
        raise ValidationError(
            "Cannot compute market probabilities: all "
            f"{len(quotes)} bookmaker quote(s) have invalid decimal odds."
        )

    valid_ids = {id(q) for q in valid}
    excluded = [q.bookmaker for q in quotes if id(q) not in valid_ids]

    has_draw = market_has_draw(valid)
    raw = OutcomeValues(
        home=aggregate([1.0 / q.home_odds for q in valid], aggregation),
        away=aggregate([1.0 / q.away_odds for q in valid], aggregation),
        draw=aggregate([1.0 / q.draw_odds for q in valid], aggregation) if has_draw else None,
    )
    margin = math.fsum(v for _, v in raw.items()) - 1.0

    return MarketProbabilities(
        implied_probabilities_raw=raw,
        implied_probabilities_no_vig=remove_vig_proportional(raw),
        market_margin=margin,
        bookmaker_count=len(valid),
        aggregation=aggregation,
        best_odds=best_odds(valid),
        excluded_bookmakers=excluded,
    )


def quick_market_probabilities(
    home_odds: float,
    away_odds: float,
    draw_odds: float | None = None,
) -> MarketProbabilities:
    """Market probabilities for a single set of prices.

    Convenience wrapper for ad-hoc checks::

        quick_market_probabilities(2.10, 3.50, 3.20).market_margin → 0.0744
    """
    quote = BookmakerQuote(
        bookmaker="single",
        home_odds=home_odds,
        away_odds=away_odds,
        draw_odds=draw_odds,
    )
    return calculate_market_probabilities([quote])
