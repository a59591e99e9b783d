"""Pipeline configuration — every threshold and weight in one place.

This module is the **registry** for policy constants.  Nowhere else in the
codebase should blend weights, edge bands or estimator weights be
hard-coded; the orchestrator receives a :class:`PipelineConfig` explicitly
and reads nothing from module state or the environment on its own.

Architecture
------------
:class:`PipelineConfig` is a frozen dataclass.  Named constructors
(:meth:`PipelineConfig.soccer`, :meth:`PipelineConfig.basketball`,
:meth:`PipelineConfig.american_football`) return pre-populated instances;
:meth:`PipelineConfig.for_sport` picks one from a free-text sport name.

Typical usage::

    from accuracy_core.services.pipeline_config import PipelineConfig

    cfg = PipelineConfig.soccer()
    result = run_accuracy_pipeline(data, cfg)

    # Override a single constant for an A/B run:
    from dataclasses import replace
    strict_cfg = replace(cfg, volatility_threshold=0.15)

    # Deployment overrides from ACCURACY_* environment variables:
    cfg = PipelineConfig.from_env()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Final, Optional

from accuracy_core.core.odds_math import AGGREGATION_METHODS, DEFAULT_AGGREGATION
from accuracy_core.core.quality_flags import (
    DEFAULT_MIN_BOOKMAKERS,
    DEFAULT_MIN_FORM_LENGTH,
    DEFAULT_MIN_PLAYED,
)
from accuracy_core.interpretation.quality import QualityPolicy
from accuracy_core.interpretation.volatility import DEFAULT_VOLATILITY_THRESHOLD

SPORT_ID_SOCCER: Final[str] = "soccer"
SPORT_ID_BASKETBALL: Final[str] = "basketball"
SPORT_ID_AMERICAN_FOOTBALL: Final[str] = "american_football"

_SPORT_ALIASES: Final[dict[str, str]] = {
    "soccer": SPORT_ID_SOCCER,
    "football": SPORT_ID_SOCCER,
    "basketball": SPORT_ID_BASKETBALL,
    "nba": SPORT_ID_BASKETBALL,
    "ncaab": SPORT_ID_BASKETBALL,
    "american_football": SPORT_ID_AMERICAN_FOOTBALL,
    "american football": SPORT_ID_AMERICAN_FOOTBALL,
    "nfl": SPORT_ID_AMERICAN_FOOTBALL,
    "ncaaf": SPORT_ID_AMERICAN_FOOTBALL,
}


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable policy bundle for one pipeline run.

    All fields carry soccer defaults.  Override via :func:`dataclasses.replace`.

    Attributes:
        sport_id: Identifier used in logs.

        --- Market ---
        aggregation: ``"mean"`` or ``"median"`` across bookmaker quotes.
        volatility_threshold: ``avg_cv`` at which market volatility is HIGH.

        --- Raw extraction minimums ---
        min_played: Games per team below which the season sample is thin.
        min_form_length: Recent results needed per team.
        min_bookmakers: Quotes needed for a robust aggregate.

        --- Interpretation ---
        quality_policy: Flag penalties and score bands.

        --- Calibration blend ---
        min_model_weight / max_model_weight: Bounds on the statistical
            model's share; the weight is ``clamp(quality_score / 100, min, max)``.

        --- Edge bands (absolute probability) ---
        edge_low / edge_medium / edge_high: ``|edge|`` below ``edge_low`` is
            NONE, below ``edge_medium`` LOW, below ``edge_high`` MEDIUM,
            otherwise HIGH.

        --- Statistical estimator ---
        win_rate_weight, goal_weight, form_weight, h2h_weight: Weights of
            the component differentials in the strength score.
        goal_scale: Per-game goal-difference differential mapped through
            ``tanh(x / goal_scale)``.
        home_advantage: Constant added to the home side's strength.
        strength_sd: Spread of the latent strength used by the probit link.
        baseline_draw_rate: Prior draw probability for three-way markets.
        draw_prior_games: Pseudo-games of weight given to the prior when
            pooling with observed draw rates.
        form_window: Most recent results considered in form strings.

        --- Confidence ---
        medium_volatility_downgrade, high_volatility_downgrade,
        insufficient_volatility_downgrade: Confidence steps lost, starting
            from the data-quality level, for each market volatility level.
        high_edge_downgrade: Extra step lost when the edge is HIGH.

        --- Guardrail ---
        suppress_on_insufficient_volatility: Also suppress the edge when
            dispersion could not be measured (fewer than two bookmakers).
    """

    sport_id: str = SPORT_ID_SOCCER

    # Market
    aggregation: str = DEFAULT_AGGREGATION
    volatility_threshold: float = DEFAULT_VOLATILITY_THRESHOLD

    # Raw extraction minimums
    min_played: int = DEFAULT_MIN_PLAYED
    min_form_length: int = DEFAULT_MIN_FORM_LENGTH
    min_bookmakers: int = DEFAULT_MIN_BOOKMAKERS

    # Interpretation
    quality_policy: QualityPolicy = field(default_factory=QualityPolicy)

    # Calibration blend
    min_model_weight: float = 0.10
    max_model_weight: float = 0.40

    # Edge bands
    edge_low: float = 0.02
    edge_medium: float = 0.05
    edge_high: float = 0.10

    # Statistical estimator
    win_rate_weight: float = 0.30
    goal_weight: float = 0.25
    form_weight: float = 0.20
    h2h_weight: float = 0.10
    goal_scale: float = 2.0
    home_advantage: float = 0.08
    strength_sd: float = 0.50
    baseline_draw_rate: float = 0.26
    draw_prior_games: float = 20.0
    form_window: int = 10

    # Confidence
    medium_volatility_downgrade: int = 1
    high_volatility_downgrade: int = 2
    insufficient_volatility_downgrade: int = 2
    high_edge_downgrade: int = 1

    # Guardrail
    suppress_on_insufficient_volatility: bool = True

    def __post_init__(self) -> None:
        if self.aggregation not in AGGREGATION_METHODS:
            raise ValueError(
                f"aggregation must be one of {AGGREGATION_METHODS}, got {self.aggregation!r}."
            )
        if self.volatility_threshold <= 0.0:
            raise ValueError("volatility_threshold must be positive.")
        if not (0.0 <= self.min_model_weight <= self.max_model_weight <= 1.0):
            raise ValueError(
                "Model weight bounds must satisfy 0 <= min <= max <= 1 "
                f"(got min={self.min_model_weight}, max={self.max_model_weight})."
            )
        if not (0.0 < self.edge_low < self.edge_medium < self.edge_high):
            raise ValueError("Edge bands must be positive and strictly increasing.")
        if self.strength_sd <= 0.0 or self.goal_scale <= 0.0:
            raise ValueError("strength_sd and goal_scale must be positive.")
        if not (0.0 < self.baseline_draw_rate < 1.0):
            raise ValueError("baseline_draw_rate must be in (0, 1).")
        if self.draw_prior_games < 0.0:
            raise ValueError("draw_prior_games must be non-negative.")
        if self.form_window < 1:
            raise ValueError("form_window must be at least 1.")
        if min(
            self.medium_volatility_downgrade,
            self.high_volatility_downgrade,
            self.insufficient_volatility_downgrade,
            self.high_edge_downgrade,
        ) < 0:
            raise ValueError("Confidence downgrades must be non-negative.")

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def soccer(cls) -> PipelineConfig:
        """Three-way association football defaults.

        Home advantage and the draw prior reflect long-run top-flight
        European league averages (home win ≈ 45%, draw ≈ 26%).
        """
        return cls()

    @classmethod
    def basketball(cls) -> PipelineConfig:
        """Two-way basketball defaults.

        Points-per-game differentials are an order of magnitude larger than
        goals, so the tanh scale widens accordingly.  The draw prior is
        unused for two-way markets.
        """
        return cls(
            sport_id=SPORT_ID_BASKETBALL,
            goal_scale=10.0,
            home_advantage=0.10,
            strength_sd=0.55,
            baseline_draw_rate=0.01,
        )

    @classmethod
    def american_football(cls) -> PipelineConfig:
        """Two-way American football defaults (point differentials ≈ ±7)."""
        return cls(
            sport_id=SPORT_ID_AMERICAN_FOOTBALL,
            goal_scale=7.0,
            home_advantage=0.06,
            strength_sd=0.55,
            baseline_draw_rate=0.01,
            min_played=3,
        )

    @classmethod
    def for_sport(cls, sport: Optional[str]) -> PipelineConfig:
        """Named configuration for a free-text sport name; soccer if unknown."""
        key = _SPORT_ALIASES.get((sport or "").strip().lower(), SPORT_ID_SOCCER)
        if key == SPORT_ID_BASKETBALL:
            return cls.basketball()
        if key == SPORT_ID_AMERICAN_FOOTBALL:
            return cls.american_football()
        return cls.soccer()

    @classmethod
    def from_env(cls, base: Optional[PipelineConfig] = None) -> PipelineConfig:
        """Apply ``ACCURACY_*`` environment overrides on top of ``base``.

        Recognised variables: ``ACCURACY_AGGREGATION``,
        ``ACCURACY_VOLATILITY_THRESHOLD``, ``ACCURACY_MIN_MODEL_WEIGHT``,
        ``ACCURACY_MAX_MODEL_WEIGHT``, ``ACCURACY_HOME_ADVANTAGE``,
        ``ACCURACY_MIN_PLAYED``.  Unset variables keep the base value.
        """
        cfg = base or cls.soccer()
        overrides: dict = {}

        aggregation = os.getenv("ACCURACY_AGGREGATION")
        if aggregation:
            overrides["aggregation"] = aggregation.strip().lower()
        for env_name, attr in (
            ("ACCURACY_VOLATILITY_THRESHOLD", "volatility_threshold"),
            ("ACCURACY_MIN_MODEL_WEIGHT", "min_model_weight"),
            ("ACCURACY_MAX_MODEL_WEIGHT", "max_model_weight"),
            ("ACCURACY_HOME_ADVANTAGE", "home_advantage"),
        ):
            value = os.getenv(env_name)
            if value:
                overrides[attr] = float(value)
        min_played = os.getenv("ACCURACY_MIN_PLAYED")
        if min_played:
            overrides["min_played"] = int(min_played)

        return replace(cfg, **overrides) if overrides else cfg

    def neutral_site(self) -> PipelineConfig:
        """Copy of this config with home advantage zeroed out."""
        return replace(self, home_advantage=0.0)

    def __repr__(self) -> str:
        return (
            f"PipelineConfig(sport_id={self.sport_id!r}, "
            f"aggregation={self.aggregation!r}, "
            f"vol_threshold={self.volatility_threshold}, "
            f"model_weight=[{self.min_model_weight}, {self.max_model_weight}])"
        )
