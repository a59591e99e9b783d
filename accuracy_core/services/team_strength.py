"""Statistical team-strength estimator (market-independent).

Turns season aggregates, recent form and head-to-head history into an
outcome distribution without looking at any bookmaker price.  The
orchestrator blends this estimate with the market's no-vig probabilities.

Model
-----
A latent strength differential ``s`` (home minus away) is the weighted sum
of five components:

    win_rate   home win rate − away win rate
    goals      tanh((home GD/game − away GD/game) / goal_scale)
    form       recency-weighted form score difference (W=1, D=0.5, L=0)
    h2h        (home H2H wins − away H2H wins) / H2H total
    home       constant home advantage

Every component lies in [-1, 1]; a missing input contributes 0 so thin data
pulls the estimate towards a neutral match rather than failing.

``s`` is mapped to probabilities with an ordered-probit link (a normal CDF
with spread ``σ``)::

    P(home) = 1 − Φ((c − s) / σ)
    P(away) = Φ((−c − s) / σ)
    P(draw) = 1 − P(home) − P(away)

The cut-point ``c = σ · Φ⁻¹((1 + d) / 2)`` is chosen so that two evenly
matched teams (``s = 0``) draw with probability ``d``, the pooled draw
rate.  Two-outcome sports use ``P(home) = Φ(s / σ)``.

Run tests with::

    pytest tests/test_team_strength.py -v
"""

from __future__ import annotations

import math
from typing import Dict, Final, Optional

from scipy.stats import norm

from accuracy_core.core.quality_flags import FORM_RESULTS
from accuracy_core.schemas import (
    HeadToHead,
    OutcomeValues,
    PipelineInput,
    TeamStats,
    TeamStrengthEstimate,
)
from accuracy_core.services.pipeline_config import PipelineConfig

#: Points per form result.
FORM_POINTS: Final[Dict[str, float]] = {"W": 1.0, "D": 0.5, "L": 0.0}

#: Bounds on the pooled draw rate; keeps the probit cut-point finite.
MIN_DRAW_RATE: Final[float] = 0.05
MAX_DRAW_RATE: Final[float] = 0.60


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def form_score(form: Optional[str], window: int = 10) -> Optional[float]:
    """Recency-weighted points per game from a result string.

    The rightmost character is the most recent result.  Only the last
    ``window`` recognised results count; the i-th oldest of ``n`` carries
    weight ``i`` so the latest match weighs ``n`` times the oldest.

    Returns:
        A value in [0, 1], or ``None`` when the string holds no W/D/L.

    Examples::

        form_score("WWWWW") → 1.0
        form_score("LLLLW") → 0.333  (5 / 15)
    """
    if not form:
        return None
    results = [ch for ch in form.upper() if ch in FORM_RESULTS][-window:]
    if not results:
        return None
    weights = range(1, len(results) + 1)
    total = math.fsum(w * FORM_POINTS[r] for w, r in zip(weights, results))
    return total / math.fsum(weights)


def _win_rate(stats: Optional[TeamStats]) -> Optional[float]:
    if stats is None or stats.played == 0:
        return None
    return min(max(stats.wins / stats.played, 0.0), 1.0)


def _goal_diff_per_game(stats: Optional[TeamStats]) -> Optional[float]:
    if stats is None or stats.played == 0:
        return None
    if stats.scored is None or stats.conceded is None:
        return None
    return (stats.scored - stats.conceded) / stats.played


def _differential(home: Optional[float], away: Optional[float]) -> float:
    """``home − away``, or 0.0 when either side is unknown."""
    if home is None or away is None:
        return 0.0
    return home - away


def _h2h_balance(h2h: Optional[HeadToHead]) -> float:
    if h2h is None or h2h.total == 0:
        return 0.0
    return min(max((h2h.home_wins - h2h.away_wins) / h2h.total, -1.0), 1.0)


def strength_components(data: PipelineInput, config: PipelineConfig) -> Dict[str, float]:
    """Unweighted component values, each in [-1, 1]."""
    goals = _differential(
        _goal_diff_per_game(data.home_stats), _goal_diff_per_game(data.away_stats)
    )
    return {
        "win_rate": _differential(_win_rate(data.home_stats), _win_rate(data.away_stats)),
        "goals": math.tanh(goals / config.goal_scale),
        "form": _differential(
            form_score(data.home_form, config.form_window),
            form_score(data.away_form, config.form_window),
        ),
        "h2h": _h2h_balance(data.h2h),
        "home_advantage": config.home_advantage,
    }


def combine_strength(components: Dict[str, float], config: PipelineConfig) -> float:
    """Weighted sum of components into the latent differential ``s``."""
    weights = {
        "win_rate": config.win_rate_weight,
        "goals": config.goal_weight,
        "form": config.form_weight,
        "h2h": config.h2h_weight,
        "home_advantage": 1.0,
    }
    return math.fsum(weights[name] * value for name, value in components.items())


def pooled_draw_rate(data: PipelineInput, config: PipelineConfig) -> float:
    """Draw rate from both teams' seasons and the H2H, shrunk towards the prior.

    ``d = (d0·k + draws) / (k + games)`` where ``d0`` is the baseline rate and
    ``k`` the number of pseudo-games given to it.  With no data ``d = d0``.
    """
    draws = 0.0
    games = 0.0
    for stats in (data.home_stats, data.away_stats):
        if stats is not None and stats.played > 0:
            draws += stats.draws
            games += stats.played
    if data.h2h is not None and data.h2h.total > 0:
        draws += data.h2h.draws
        games += data.h2h.total

    prior = config.draw_prior_games
    if prior + games <= 0:
        rate = config.baseline_draw_rate
    else:
        rate = (config.baseline_draw_rate * prior + draws) / (prior + games)
    return min(max(rate, MIN_DRAW_RATE), MAX_DRAW_RATE)


# ---------------------------------------------------------------------------
# Probability link
# ---------------------------------------------------------------------------


def probit_probabilities(
    strength: float,
    sigma: float,
    draw_rate: Optional[float] = None,
) -> OutcomeValues:
    """Map a strength differential to an outcome distribution.

    Args:
        strength: Latent home-minus-away differential ``s``.
        sigma: Spread of the latent differential.
        draw_rate: Draw probability at ``s = 0``; ``None`` for two-way sports.

    Returns:
        Non-negative probabilities summing to 1.
    """
    if draw_rate is None:
        home = float(norm.cdf(strength / sigma))
        away = float(norm.cdf(-strength / sigma))
        total = home + away
        return OutcomeValues(home=home / total, away=away / total)

    cut = sigma * float(norm.ppf((1.0 + draw_rate) / 2.0))
    home = float(norm.sf((cut - strength) / sigma))
    away = float(norm.cdf((-cut - strength) / sigma))
    draw = max(1.0 - home - away, 0.0)
    total = math.fsum((home, away, draw))
    return OutcomeValues(home=home / total, away=away / total, draw=draw / total)


def estimate_team_strength(
    data: PipelineInput,
    config: PipelineConfig,
    *,
    has_draw: bool,
) -> TeamStrengthEstimate:
    """Market-independent outcome probabilities for one match.

    Args:
        data: Pipeline input; only stats, form and H2H are read.
        config: Estimator weights, home advantage, σ and draw prior.
        has_draw: Whether the market prices a draw.

    Returns:
        :class:`~accuracy_core.schemas.TeamStrengthEstimate` with the
        per-component values kept for audit.
    """
    components = strength_components(data, config)
    strength = combine_strength(components, config)
    draw_rate = pooled_draw_rate(data, config) if has_draw else None

    return TeamStrengthEstimate(
        probabilities=probit_probabilities(strength, config.strength_sd, draw_rate),
        strength=strength,
        components=components,
        draw_rate=draw_rate,
    )
