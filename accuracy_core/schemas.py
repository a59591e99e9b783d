"""
Pydantic data model for the accuracy pipeline.

Python code uses snake_case attribute names; JSON uses the camelCase field
paths that downstream consumers depend on (``output.suppressEdge``,
``details.marketProbabilities.impliedProbabilitiesNoVig`` …).  Every model
is frozen so a result can be shared between callers without copying.

Serialise with ``model_dump(by_alias=True)`` / ``model_dump_json(by_alias=True)``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Outcome = Literal["home", "away", "draw"]
Level = Literal["LOW", "MEDIUM", "HIGH"]
VolatilityLevel = Literal["LOW", "MEDIUM", "HIGH", "INSUFFICIENT_DATA"]
EdgeQuality = Literal["NONE", "LOW", "MEDIUM", "HIGH"]
Aggregation = Literal["mean", "median"]


class CamelModel(BaseModel):
    """Frozen base model with camelCase JSON aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class BookmakerQuote(CamelModel):
    """
    One bookmaker's decimal prices for a match.

    Prices are not range-checked here: a quote with odds <= 1.0 is dropped
    by the odds normaliser with a warning instead of failing the request.
    """

    bookmaker: str = Field(..., min_length=1)
    home_odds: float
    away_odds: float
    draw_odds: Optional[float] = None

    @property
    def has_draw(self) -> bool:
        return self.draw_odds is not None


class TeamStats(CamelModel):
    """Season aggregates for one team."""

    played: int = Field(0, ge=0)
    wins: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)
    losses: int = Field(0, ge=0)
    scored: Optional[float] = Field(None, ge=0)
    conceded: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_record(self) -> "TeamStats":
        results = self.wins + self.draws + self.losses
        if results > self.played:
            raise ValueError(
                f"wins + draws + losses ({results}) exceeds games played ({self.played})"
            )
        return self


class HeadToHead(CamelModel):
    """Historical results between the two teams, from the home side's view."""

    total: int = Field(0, ge=0)
    home_wins: int = Field(0, ge=0)
    away_wins: int = Field(0, ge=0)
    draws: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_record(self) -> "HeadToHead":
        results = self.home_wins + self.away_wins + self.draws
        if results > self.total:
            raise ValueError(
                f"home_wins + away_wins + draws ({results}) exceeds total meetings ({self.total})"
            )
        return self


class RequestFlags(CamelModel):
    """Per-request switches supplied by the caller."""

    log_predictions: bool = Field(
        False, description="Caller intends to persist this prediction for offline evaluation"
    )


class PipelineInput(CamelModel):
    """Everything the pipeline needs for a single match."""

    match_id: str = Field(..., min_length=1)
    sport: Optional[str] = None
    league: Optional[str] = None
    home_team: Optional[str] = None
    away_team: Optional[str] = None
    kickoff: Optional[datetime] = None

    home_stats: Optional[TeamStats] = None
    away_stats: Optional[TeamStats] = None
    home_form: Optional[str] = Field(None, description='Result string, e.g. "WWDWW"')
    away_form: Optional[str] = None
    h2h: Optional[HeadToHead] = None

    odds: List[BookmakerQuote] = Field(default_factory=list)
    config: RequestFlags = Field(default_factory=RequestFlags)

    @field_validator("home_form", "away_form")
    @classmethod
    def normalise_form(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return "".join(v.split()).upper()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "matchId": "epl-2024-arsenal-chelsea",
                "sport": "soccer",
                "league": "Premier League",
                "homeTeam": "Arsenal",
                "awayTeam": "Chelsea",
                "homeStats": {"played": 15, "wins": 10, "draws": 3, "losses": 2,
                              "scored": 28, "conceded": 12},
                "awayStats": {"played": 15, "wins": 8, "draws": 4, "losses": 3,
                              "scored": 22, "conceded": 15},
                "homeForm": "WWDWW",
                "awayForm": "WLDWL",
                "h2h": {"total": 10, "homeWins": 4, "awayWins": 3, "draws": 3},
                "odds": [
                    {"bookmaker": "Bet365", "homeOdds": 1.85, "awayOdds": 4.20, "drawOdds": 3.60},
                    {"bookmaker": "Unibet", "homeOdds": 1.90, "awayOdds": 4.00, "drawOdds": 3.50},
                ],
                "config": {"logPredictions": False},
            }
        }
    )


# ---------------------------------------------------------------------------
# Measurement (Data-1)
# ---------------------------------------------------------------------------

class OutcomeValues(CamelModel):
    """A value per match outcome.  ``draw`` is ``None`` for two-way sports."""

    home: float
    away: float
    draw: Optional[float] = None

    @property
    def has_draw(self) -> bool:
        return self.draw is not None

    def items(self) -> List[tuple]:
        """``(outcome, value)`` pairs in the fixed order home, away, draw."""
        pairs = [("home", self.home), ("away", self.away)]
        if self.draw is not None:
            pairs.append(("draw", self.draw))
        return pairs

    def get(self, outcome: str) -> Optional[float]:
        return {"home": self.home, "away": self.away, "draw": self.draw}[outcome]

    def total(self) -> float:
        return sum(v for _, v in self.items())


class MarketProbabilities(CamelModel):
    implied_probabilities_raw: OutcomeValues
    implied_probabilities_no_vig: OutcomeValues
    market_margin: float
    bookmaker_count: int
    aggregation: Aggregation = "mean"
    best_odds: OutcomeValues
    excluded_bookmakers: List[str] = Field(default_factory=list)


class RawVolatilityStats(CamelModel):
    bookmaker_count: int
    home_std_dev: float
    away_std_dev: float
    draw_std_dev: Optional[float] = None
    avg_cv: float = Field(..., alias="avgCV")


class RawDataQualityFlags(CamelModel):
    """Raw measurement signals.  No scoring, no labels."""

    home_played: int = 0
    away_played: int = 0
    home_form_length: int = 0
    away_form_length: int = 0
    h2h_total: int = 0
    bookmaker_count: int = 0

    missing_home_stats: bool = False
    missing_away_stats: bool = False
    insufficient_home_sample: bool = False
    insufficient_away_sample: bool = False
    short_home_form: bool = False
    short_away_form: bool = False
    no_head_to_head: bool = False
    single_source_odds: bool = False
    few_bookmakers: bool = False


# ---------------------------------------------------------------------------
# Interpretation (Data-2.5)
# ---------------------------------------------------------------------------

class QualityAssessment(CamelModel):
    level: Level
    score: int = Field(..., ge=0, le=100)
    issues: List[str] = Field(default_factory=list)
    flags_raised: List[str] = Field(default_factory=list)


class VolatilityAssessment(CamelModel):
    level: VolatilityLevel
    avg_cv: float = Field(..., alias="avgCV")
    threshold: float
    bookmaker_count: int


# ---------------------------------------------------------------------------
# Orchestration (Data-0)
# ---------------------------------------------------------------------------

class TeamStrengthEstimate(CamelModel):
    """Market-independent statistical estimate, kept for audit."""

    probabilities: OutcomeValues
    strength: float
    components: Dict[str, float] = Field(default_factory=dict)
    draw_rate: Optional[float] = None


class EdgeSummary(CamelModel):
    outcome: Outcome
    value: float
    quality: EdgeQuality


class PipelineDetails(CamelModel):
    market_probabilities: MarketProbabilities
    raw_volatility: RawVolatilityStats
    volatility_assessment: VolatilityAssessment
    raw_quality_flags: RawDataQualityFlags
    quality_assessment: QualityAssessment
    team_strength: TeamStrengthEstimate
    model_probabilities: OutcomeValues
    model_weight: float
    edges: OutcomeValues
    log_predictions: bool = False


class PipelineOutput(CamelModel):
    probabilities: OutcomeValues
    edge: EdgeSummary
    favored: Outcome
    confidence: Level
    data_quality: Level
    volatility: VolatilityLevel
    suppress_edge: bool
    warnings: List[str] = Field(default_factory=list)


class PipelineResult(CamelModel):
    match_id: str
    details: PipelineDetails
    output: PipelineOutput


# ---------------------------------------------------------------------------
# Offline evaluation
# ---------------------------------------------------------------------------

class CalibratedPrediction(CamelModel):
    """A resolved forecast: predicted probability and realised 0/1 outcome."""

    predicted: float = Field(..., ge=0.0, le=1.0)
    actual: Literal[0, 1]


class CalibrationBucket(CamelModel):
    lower: float
    upper: float
    count: int
    mean_predicted: float
    observed_rate: float
    error: float


class CalibrationReport(CamelModel):
    count: int
    brier_score: float
    log_loss: float
    base_rate: float
    brier_skill_score: Optional[float] = None
    overconfidence: float
    mean_calibration_error: Optional[float] = None
    buckets: List[CalibrationBucket] = Field(default_factory=list)
