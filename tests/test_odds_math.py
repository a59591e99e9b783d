"""
Tests for accuracy_core/core/odds_math.py

Run with: pytest tests/test_odds_math.py -v
"""

import math

import pytest

from accuracy_core.core.odds_math import (
    aggregate,
    best_odds,
    calculate_market_probabilities,
    decimal_to_implied,
    filter_valid_quotes,
    is_valid_decimal_odds,
    market_has_draw,
    quick_market_probabilities,
    remove_vig_proportional,
)
from accuracy_core.errors import ValidationError
from accuracy_core.schemas import BookmakerQuote, OutcomeValues


def _q(bookmaker, home, away, draw=None):
    return BookmakerQuote(bookmaker=bookmaker, home_odds=home, away_odds=away, draw_odds=draw)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class TestConversion:

    def test_even_money(self):
        assert decimal_to_implied(2.0) == pytest.approx(0.5)

    def test_favourite(self):
        assert decimal_to_implied(1.25) == pytest.approx(0.8)

    @pytest.mark.parametrize("odds", [1.0, 0.5, 0.0, -2.0, float("nan"), float("inf")])
    def test_invalid_odds_raise(self, odds):
        with pytest.raises(ValueError):
            decimal_to_implied(odds)

    @pytest.mark.parametrize("odds, expected", [
        (1.01, True),
        (3.5, True),
        (1.0, False),
        (None, False),
        (float("nan"), False),
    ])
    def test_is_valid_decimal_odds(self, odds, expected):
        assert is_valid_decimal_odds(odds) is expected


# ---------------------------------------------------------------------------
# Quote filtering
# ---------------------------------------------------------------------------

class TestFilterValidQuotes:

    def test_all_valid_kept_in_order(self, three_way_quotes):
        valid, warnings = filter_valid_quotes(three_way_quotes)
        assert [q.bookmaker for q in valid] == ["Bet365", "Unibet", "WilliamHill"]
        assert warnings == []

    def test_odds_at_or_below_one_excluded_with_warning(self):
        quotes = [_q("Good", 1.9, 4.0, 3.5), _q("Broken", 1.0, 4.0, 3.5)]
        valid, warnings = filter_valid_quotes(quotes)
        assert [q.bookmaker for q in valid] == ["Good"]
        assert len(warnings) == 1
        assert "Broken" in warnings[0]
        assert "invalid decimal odds" in warnings[0]

    def test_drawless_quote_dropped_from_three_way_market(self):
        quotes = [_q("ThreeWay", 1.9, 4.0, 3.5), _q("TwoWay", 1.5, 2.6)]
        valid, warnings = filter_valid_quotes(quotes)
        assert [q.bookmaker for q in valid] == ["ThreeWay"]
        assert "no draw price" in warnings[0]

    def test_two_way_market_keeps_all(self):
        quotes = [_q("A", 1.5, 2.6), _q("B", 1.55, 2.5)]
        valid, warnings = filter_valid_quotes(quotes)
        assert len(valid) == 2
        assert warnings == []
        assert market_has_draw(valid) is False


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

class TestAggregate:

    def test_mean(self):
        assert aggregate([0.5, 0.6, 0.7]) == pytest.approx(0.6)

    def test_median_resists_outlier(self):
        assert aggregate([0.50, 0.52, 0.90], "median") == pytest.approx(0.52)

    def test_order_independent(self):
        values = [0.1, 0.2, 0.3, 0.4, 0.7]
        assert aggregate(values) == aggregate(list(reversed(values)))

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            aggregate([])

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError, match="Unknown aggregation"):
            aggregate([0.5], "mode")


# ---------------------------------------------------------------------------
# Vig removal
# ---------------------------------------------------------------------------

def test_remove_vig_sums_to_one():
    raw = OutcomeValues(home=0.55, away=0.30, draw=0.25)
    no_vig = remove_vig_proportional(raw)
    assert no_vig.total() == pytest.approx(1.0, abs=1e-12)
    assert no_vig.home == pytest.approx(0.5)


def test_remove_vig_degenerate_total_is_uniform():
    no_vig = remove_vig_proportional(OutcomeValues(home=0.0, away=0.0))
    assert no_vig.home == pytest.approx(0.5)
    assert no_vig.draw is None


# ---------------------------------------------------------------------------
# Market probabilities
# ---------------------------------------------------------------------------

class TestMarketProbabilities:

    def test_reference_match(self, three_way_quotes):
        market = calculate_market_probabilities(three_way_quotes)
        no_vig = market.implied_probabilities_no_vig

        assert market.bookmaker_count == 3
        assert market.market_margin == pytest.approx(0.0596, abs=1e-3)
        assert no_vig.home == pytest.approx(0.504, abs=0.003)
        assert no_vig.away == pytest.approx(0.230, abs=0.003)
        assert no_vig.draw == pytest.approx(0.266, abs=0.003)

    def test_raw_sums_to_one_plus_margin(self, three_way_quotes):
        market = calculate_market_probabilities(three_way_quotes)
        raw_total = market.implied_probabilities_raw.total()
        assert raw_total == pytest.approx(1.0 + market.market_margin)

    @pytest.mark.parametrize("quotes", [
        [_q("A", 2.10, 3.50, 3.20)],
        [_q("A", 1.01, 30.0, 15.0), _q("B", 1.02, 25.0, 12.0)],
        [_q("A", 1.5, 2.6), _q("B", 1.45, 2.75), _q("C", 1.52, 2.55)],
        [_q("A", 5.5, 1.6, 4.0), _q("B", 6.0, 1.55, 4.2), _q("C", 5.8, 1.58, 3.9),
         _q("D", 5.0, 1.65, 4.1)],
    ])
    def test_no_vig_is_a_distribution(self, quotes):
        market = calculate_market_probabilities(quotes)
        values = [v for _, v in market.implied_probabilities_no_vig.items()]
        assert all(0.0 < v < 1.0 for v in values)
        assert math.fsum(values) == pytest.approx(1.0, abs=1e-6)
        assert market.market_margin >= 0.0

    def test_fair_book_has_zero_margin(self):
        market = calculate_market_probabilities([_q("Fair", 2.0, 2.0)])
        assert market.market_margin == pytest.approx(0.0, abs=1e-12)

    def test_two_way_draw_is_none(self):
        market = calculate_market_probabilities([_q("A", 1.5, 2.6), _q("B", 1.55, 2.5)])
        assert market.implied_probabilities_raw.draw is None
        assert market.implied_probabilities_no_vig.draw is None
        assert market.best_odds.draw is None
        assert market.implied_probabilities_no_vig.total() == pytest.approx(1.0)

    def test_quote_order_does_not_matter(self, three_way_quotes):
        forward = calculate_market_probabilities(three_way_quotes)
        backward = calculate_market_probabilities(list(reversed(three_way_quotes)))
        assert forward.implied_probabilities_no_vig == backward.implied_probabilities_no_vig
        assert forward.market_margin == backward.market_margin

    def test_invalid_quote_excluded_not_fatal(self, three_way_quotes):
        quotes = three_way_quotes + [_q("Typo", 0.85, 4.1, 3.55)]
        market = calculate_market_probabilities(quotes)
        assert market.bookmaker_count == 3
        assert market.excluded_bookmakers == ["Typo"]

    def test_median_aggregation(self, three_way_quotes):
        market = calculate_market_probabilities(three_way_quotes, aggregation="median")
        assert market.aggregation == "median"
        assert market.implied_probabilities_raw.home == pytest.approx(1 / 1.87)

    def test_best_odds(self, three_way_quotes):
        best = best_odds(three_way_quotes)
        assert (best.home, best.away, best.draw) == (1.90, 4.20, 3.60)

    def test_empty_list_raises_validation_error(self):
        with pytest.raises(ValidationError, match="empty"):
            calculate_market_probabilities([])

    def test_all_invalid_raises_validation_error(self):
        with pytest.raises(ValidationError):
            calculate_market_probabilities([_q("A", 1.0, 0.9, 1.0), _q("B", -1.0, 2.0, 3.0)])

    def test_validation_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            calculate_market_probabilities([])

    def test_unknown_aggregation_raises(self, three_way_quotes):
        with pytest.raises(ValueError):
            calculate_market_probabilities(three_way_quotes, aggregation="trimmed")


def test_quick_market_probabilities():
    market = quick_market_probabilities(2.10, 3.50, 3.20)
    assert market.bookmaker_count == 1
    assert market.market_margin == pytest.approx(0.0744, abs=1e-4)
    assert market.implied_probabilities_no_vig.total() == pytest.approx(1.0)
    assert market.implied_probabilities_no_vig.home > market.implied_probabilities_no_vig.away
