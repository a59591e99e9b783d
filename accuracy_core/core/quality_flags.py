"""Raw data-quality signals.

Pure measurement: each function reports *what is there* (counts) and
*what is missing* (booleans).  It assigns no score and no label, and knows
nothing about the penalties applied in
``accuracy_core.interpretation.quality``.  Changing how harshly a thin
sample is punished therefore never touches this module.
"""

from __future__ import annotations

from typing import Final, Optional

from accuracy_core.schemas import HeadToHead, RawDataQualityFlags, TeamStats

#: Games played below which a season aggregate is too thin to trust.
DEFAULT_MIN_PLAYED: Final[int] = 5

#: Recent results needed for a meaningful form string ("WWDWW").
DEFAULT_MIN_FORM_LENGTH: Final[int] = 5

#: Quotes needed before cross-bookmaker aggregation is considered robust.
DEFAULT_MIN_BOOKMAKERS: Final[int] = 3

FORM_RESULTS: Final[frozenset[str]] = frozenset("WDL")


def form_length(form: Optional[str]) -> int:
    """Number of recognised results (W/D/L) in a form string."""
    if not form:
        return 0
    return sum(1 for ch in form.upper() if ch in FORM_RESULTS)


def extract_data_quality_flags(
    home_stats: Optional[TeamStats],
    away_stats: Optional[TeamStats],
    home_form: Optional[str],
    away_form: Optional[str],
    h2h: Optional[HeadToHead],
    odds_count: int,
    *,
    min_played: int = DEFAULT_MIN_PLAYED,
    min_form_length: int = DEFAULT_MIN_FORM_LENGTH,
    min_bookmakers: int = DEFAULT_MIN_BOOKMAKERS,
) -> RawDataQualityFlags:
    """Measure the completeness of one match's inputs.

    Args:
        home_stats / away_stats: Season aggregates, ``None`` when unavailable.
        home_form / away_form: Result strings, ``None`` when unavailable.
        h2h: Head-to-head summary, ``None`` when unavailable.
        odds_count: Number of usable bookmaker quotes.
        min_played: Sample-size minimum per team.
        min_form_length: Minimum number of recent results per team.
        min_bookmakers: Quotes needed for a robust market aggregate.

    Returns:
        :class:`~accuracy_core.schemas.RawDataQualityFlags`.  A missing
        stats block raises both ``missing_*_stats`` and
        ``insufficient_*_sample``.
    """
    home_played = home_stats.played if home_stats is not None else 0
    away_played = away_stats.played if away_stats is not None else 0
    home_form_len = form_length(home_form)
    away_form_len = form_length(away_form)
    h2h_total = h2h.total if h2h is not None else 0

    return RawDataQualityFlags(
        home_played=home_played,
        away_played=away_played,
        home_form_length=home_form_len,
        away_form_length=away_form_len,
        h2h_total=h2h_total,
        bookmaker_count=odds_count,
        missing_home_stats=home_stats is None,
        missing_away_stats=away_stats is None,
        insufficient_home_sample=home_played < min_played,
        insufficient_away_sample=away_played < min_played,
        short_home_form=home_form_len < min_form_length,
        short_away_form=away_form_len < min_form_length,
        no_head_to_head=h2h_total == 0,
        single_source_odds=odds_count < 2,
        few_bookmakers=odds_count < min_bookmakers,
    )
