"""Data-quality interpretation: raw flags → level, score and issues.

A deterministic rule table.  Every flag raised by
:func:`~accuracy_core.core.quality_flags.extract_data_quality_flags`
subtracts a fixed penalty from a perfect score of 100 (floored at 0), and
the level is read off score bands.  Because every penalty is positive, each
additional flag strictly lowers the score until the floor and the level can
only move HIGH → MEDIUM → LOW, never back up.

Issues are reported in a stable order: home team, away team, head-to-head,
then market.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Mapping

from accuracy_core.schemas import QualityAssessment, RawDataQualityFlags

PERFECT_SCORE: Final[int] = 100

#: Default penalty per raised flag.  Missing stats blocks cost more than a
#: thin sample because the estimator falls back to neutral values.
DEFAULT_PENALTIES: Final[Mapping[str, int]] = MappingProxyType({
    "missing_home_stats": 25,
    "insufficient_home_sample": 15,
    "short_home_form": 15,
    "missing_away_stats": 25,
    "insufficient_away_sample": 15,
    "short_away_form": 15,
    "no_head_to_head": 15,
    "single_source_odds": 15,
    "few_bookmakers": 10,
})

#: Canonical flag order (home, away, head-to-head, market) with the issue
#: text reported for each.  Templates format against the raw flag counts.
_ISSUE_TEMPLATES: Final[tuple[tuple[str, str], ...]] = (
    ("missing_home_stats", "Home team season statistics unavailable"),
    ("insufficient_home_sample", "Home team sample too small ({home_played} games played)"),
    ("short_home_form", "Home team recent form incomplete ({home_form_length} results)"),
    ("missing_away_stats", "Away team season statistics unavailable"),
    ("insufficient_away_sample", "Away team sample too small ({away_played} games played)"),
    ("short_away_form", "Away team recent form incomplete ({away_form_length} results)"),
    ("no_head_to_head", "No head-to-head history"),
    ("single_source_odds", "Odds from a single bookmaker only"),
    ("few_bookmakers", "Only {bookmaker_count} bookmaker(s) quoted"),
)

FLAG_ORDER: Final[tuple[str, ...]] = tuple(name for name, _ in _ISSUE_TEMPLATES)


@dataclass(frozen=True)
class QualityPolicy:
    """Penalties and level bands applied to raw quality flags.

    Attributes:
        penalties: Points subtracted per raised flag.  Flags without an entry
            use ``default_penalty``.
        default_penalty: Penalty for flags missing from ``penalties``.
        high_min_score: Lowest score still labelled HIGH.
        medium_min_score: Lowest score still labelled MEDIUM.
    """

    penalties: Mapping[str, int] = field(default_factory=lambda: DEFAULT_PENALTIES)
    default_penalty: int = 15
    high_min_score: int = 85
    medium_min_score: int = 55

    def __post_init__(self) -> None:
        # read-only copy of the caller's mapping
        object.__setattr__(self, "penalties", MappingProxyType(dict(self.penalties)))
        if self.default_penalty <= 0 or any(p <= 0 for p in self.penalties.values()):
            raise ValueError("Quality penalties must be positive.")
        if not (0 <= self.medium_min_score <= self.high_min_score <= PERFECT_SCORE):
            raise ValueError(
                "Quality bands must satisfy 0 <= medium_min_score <= high_min_score <= 100 "
                f"(got medium={self.medium_min_score}, high={self.high_min_score})."
            )

    def __hash__(self) -> int:
        return hash((
            tuple(sorted(self.penalties.items())),
            self.default_penalty,
            self.high_min_score,
            self.medium_min_score,
        ))

    def penalty_for(self, flag: str) -> int:
        return self.penalties.get(flag, self.default_penalty)

    def level_for(self, score: int) -> str:
        if score >= self.high_min_score:
            return "HIGH"
        if score >= self.medium_min_score:
            return "MEDIUM"
        return "LOW"


DEFAULT_QUALITY_POLICY: Final[QualityPolicy] = QualityPolicy()


def raised_flags(flags: RawDataQualityFlags) -> list[str]:
    """Names of the raised flags in canonical order."""
    return [name for name in FLAG_ORDER if getattr(flags, name)]


def interpret_data_quality(
    flags: RawDataQualityFlags,
    policy: QualityPolicy | None = None,
) -> QualityAssessment:
    """Score and label a set of raw data-quality flags.

    Args:
        flags: Output of the raw extractor.
        policy: Penalty table and bands; defaults to :data:`DEFAULT_QUALITY_POLICY`.

    Returns:
        :class:`~accuracy_core.schemas.QualityAssessment`.  No flags gives
        ``level="HIGH"`` and ``score=100``.

    Examples::

        interpret_data_quality(RawDataQualityFlags(...no flags...))
            → level=HIGH, score=100, issues=[]
        single bookmaker (single_source_odds + few_bookmakers)
            → level=MEDIUM, score=75
    """
    policy = policy or DEFAULT_QUALITY_POLICY
    raised = raised_flags(flags)
    counts = flags.model_dump()

    score = PERFECT_SCORE - sum(policy.penalty_for(name) for name in raised)
    score = max(score, 0)

    templates = dict(_ISSUE_TEMPLATES)
    issues = [templates[name].format(**counts) for name in raised]

    return QualityAssessment(
        level=policy.level_for(score),
        score=score,
        issues=issues,
        flags_raised=raised,
    )
