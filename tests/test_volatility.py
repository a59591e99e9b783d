"""
Tests for accuracy_core/core/volatility.py and
accuracy_core/interpretation/volatility.py

Run with: pytest tests/test_volatility.py -v
"""

import math

import pytest

from accuracy_core.core.volatility import (
    calculate_odds_volatility_raw,
    coefficient_of_variation,
    sample_std,
)
from accuracy_core.interpretation.volatility import (
    INSUFFICIENT_DATA,
    classify_cv,
    interpret_volatility,
)
from accuracy_core.schemas import BookmakerQuote, RawVolatilityStats


def _q(bookmaker, home, away, draw=None):
    return BookmakerQuote(bookmaker=bookmaker, home_odds=home, away_odds=away, draw_odds=draw)


def _raw(avg_cv, count=3):
    return RawVolatilityStats(
        bookmaker_count=count, home_std_dev=0.0, away_std_dev=0.0, avg_cv=avg_cv,
    )


# ---------------------------------------------------------------------------
# Statistics helpers
# ---------------------------------------------------------------------------

class TestSampleStd:

    def test_uses_n_minus_one(self):
        assert sample_std([1.8, 2.0]) == pytest.approx(math.sqrt(0.02))

    def test_single_value_is_zero(self):
        assert sample_std([2.5]) == 0.0

    def test_empty_is_zero(self):
        assert sample_std([]) == 0.0

    def test_identical_values_exact_zero(self):
        assert sample_std([1.87] * 7) == 0.0

    def test_cv_zero_mean_guarded(self):
        assert coefficient_of_variation([0.0, 0.0, 0.0]) == 0.0

    def test_cv(self):
        assert coefficient_of_variation([1.8, 2.0]) == pytest.approx(math.sqrt(0.02) / 1.9)


# ---------------------------------------------------------------------------
# Raw dispersion
# ---------------------------------------------------------------------------

class TestRawVolatility:

    @pytest.mark.parametrize("n", [1, 2, 3, 10, 50])
    def test_identical_quotes_have_zero_dispersion(self, n):
        quotes = [_q(f"Book{i}", 2.10, 3.50, 3.20) for i in range(n)]
        raw = calculate_odds_volatility_raw(quotes)
        assert raw.bookmaker_count == n
        assert raw.home_std_dev == 0.0
        assert raw.away_std_dev == 0.0
        assert raw.draw_std_dev == 0.0
        assert raw.avg_cv == 0.0

    def test_single_bookmaker_is_zero_not_nan(self):
        raw = calculate_odds_volatility_raw([_q("Solo", 1.85, 4.20, 3.60)])
        assert raw.bookmaker_count == 1
        assert raw.home_std_dev == 0.0
        assert not math.isnan(raw.avg_cv)

    def test_reference_match_is_calm(self, three_way_quotes):
        raw = calculate_odds_volatility_raw(three_way_quotes)
        assert raw.bookmaker_count == 3
        assert raw.home_std_dev == pytest.approx(0.02517, abs=1e-4)
        assert raw.away_std_dev == pytest.approx(0.1, abs=1e-9)
        assert raw.draw_std_dev == pytest.approx(0.05, abs=1e-9)
        assert raw.avg_cv == pytest.approx(0.0173, abs=5e-4)

    def test_two_way_has_no_draw_std(self):
        raw = calculate_odds_volatility_raw([_q("A", 1.8, 2.1), _q("B", 2.0, 1.9)])
        assert raw.draw_std_dev is None
        expected = (
            coefficient_of_variation([1.8, 2.0]) + coefficient_of_variation([2.1, 1.9])
        ) / 2
        assert raw.avg_cv == pytest.approx(expected)

    def test_invalid_quotes_skipped(self, three_way_quotes):
        raw = calculate_odds_volatility_raw(three_way_quotes + [_q("Bad", 1.0, 4.0, 3.5)])
        assert raw.bookmaker_count == 3

    def test_order_independent(self, three_way_quotes):
        forward = calculate_odds_volatility_raw(three_way_quotes)
        backward = calculate_odds_volatility_raw(list(reversed(three_way_quotes)))
        assert forward == backward

    def test_serialises_avg_cv_alias(self, three_way_quotes):
        dumped = calculate_odds_volatility_raw(three_way_quotes).model_dump(by_alias=True)
        assert "avgCV" in dumped
        assert "homeStdDev" in dumped


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

class TestInterpretVolatility:

    @pytest.mark.parametrize("avg_cv, expected", [
        (0.0, "LOW"),
        (0.149, "LOW"),
        (0.15, "MEDIUM"),
        (0.299, "MEDIUM"),
        (0.30, "HIGH"),
        (0.75, "HIGH"),
    ])
    def test_bands_at_default_threshold(self, avg_cv, expected):
        assert interpret_volatility(_raw(avg_cv)).level == expected

    def test_custom_threshold(self):
        assessment = interpret_volatility(_raw(0.12), threshold=0.10)
        assert assessment.level == "HIGH"
        assert assessment.threshold == 0.10

    @pytest.mark.parametrize("count", [0, 1])
    def test_fewer_than_two_bookmakers_is_insufficient(self, count):
        assessment = interpret_volatility(_raw(0.0, count=count))
        assert assessment.level == INSUFFICIENT_DATA
        assert assessment.level != "LOW"

    @pytest.mark.parametrize("threshold", [0.0, -0.1])
    def test_non_positive_threshold_raises(self, threshold):
        with pytest.raises(ValueError):
            interpret_volatility(_raw(0.1), threshold=threshold)

    def test_classify_cv_direct(self):
        assert classify_cv(0.05, 0.2) == "LOW"
        assert classify_cv(0.1, 0.2) == "MEDIUM"

    def test_end_to_end_disagreeing_books_high(self):
        raw = calculate_odds_volatility_raw([
            _q("Sharp", 1.5, 6.0, 3.0),
            _q("Stale", 4.0, 1.8, 3.0),
        ])
        assert interpret_volatility(raw).level == "HIGH"
