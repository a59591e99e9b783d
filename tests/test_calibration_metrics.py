"""
Tests for accuracy_core/core/calibration_metrics.py

Run with: pytest tests/test_calibration_metrics.py -v
"""

import math
import random

import pytest

from accuracy_core.core.calibration_metrics import (
    calculate_brier_score,
    calculate_log_loss,
    calibration_buckets,
    evaluate_predictions,
    is_well_calibrated,
)
from accuracy_core.errors import ValidationError
from accuracy_core.schemas import CalibratedPrediction


PERFECT = [(1.0, 1), (0.0, 0), (1.0, 1), (0.0, 0)]


# ---------------------------------------------------------------------------
# Brier score
# ---------------------------------------------------------------------------

class TestBrierScore:

    def test_perfect_predictor_is_zero(self):
        assert calculate_brier_score(PERFECT) == 0.0

    def test_coin_flip(self):
        assert calculate_brier_score([(0.5, 1), (0.5, 0)]) == pytest.approx(0.25)

    def test_worst_case_is_one(self):
        assert calculate_brier_score([(1.0, 0), (0.0, 1)]) == pytest.approx(1.0)

    def test_known_value(self):
        # (0.8-1)^2 = 0.04, (0.3-0)^2 = 0.09
        assert calculate_brier_score([(0.8, 1), (0.3, 0)]) == pytest.approx(0.065)

    def test_accepts_models_dicts_and_pairs(self):
        mixed = [
            CalibratedPrediction(predicted=0.8, actual=1),
            {"predicted": 0.3, "actual": 0},
            (0.6, 1),
        ]
        assert calculate_brier_score(mixed) == pytest.approx((0.04 + 0.09 + 0.16) / 3)

    def test_order_independent(self):
        rng = random.Random(7)
        preds = [(rng.random(), rng.randint(0, 1)) for _ in range(200)]
        shuffled = preds[:]
        rng.shuffle(shuffled)
        assert calculate_brier_score(preds) == calculate_brier_score(shuffled)


# ---------------------------------------------------------------------------
# Log loss
# ---------------------------------------------------------------------------

class TestLogLoss:

    def test_perfect_predictor_is_zero(self):
        assert calculate_log_loss(PERFECT) == pytest.approx(0.0, abs=1e-12)

    def test_coin_flip_is_ln2(self):
        assert calculate_log_loss([(0.5, 1), (0.5, 0)]) == pytest.approx(math.log(2))

    @pytest.mark.parametrize("pred", [(0.0, 1), (1.0, 0)])
    def test_confident_miss_is_finite(self, pred):
        loss = calculate_log_loss([pred])
        assert math.isfinite(loss)
        assert loss == pytest.approx(-math.log(1e-15), rel=1e-3)

    def test_order_independent(self):
        rng = random.Random(11)
        preds = [(rng.random(), rng.randint(0, 1)) for _ in range(200)]
        assert calculate_log_loss(preds) == pytest.approx(
            calculate_log_loss(list(reversed(preds))), rel=1e-12
        )

    @pytest.mark.parametrize("eps", [0.0, 0.5, -1e-3])
    def test_invalid_eps(self, eps):
        with pytest.raises(ValueError):
            calculate_log_loss([(0.5, 1)], eps=eps)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("fn", [calculate_brier_score, calculate_log_loss, evaluate_predictions])
def test_empty_collection_rejected(fn):
    with pytest.raises(ValidationError):
        fn([])


@pytest.mark.parametrize("bad", [
    [(1.2, 1)],
    [(-0.1, 0)],
    [(float("nan"), 1)],
    [(0.5, 2)],
])
def test_out_of_range_rejected(bad):
    with pytest.raises(ValidationError):
        calculate_brier_score(bad)


# ---------------------------------------------------------------------------
# Reliability table and report
# ---------------------------------------------------------------------------

class TestEvaluation:

    def test_buckets_skip_empty_bins(self):
        buckets = calibration_buckets([(0.05, 0), (0.15, 0), (0.95, 1), (1.0, 1)], n_bins=10)
        assert [b.count for b in buckets] == [1, 1, 2]
        assert buckets[-1].lower == pytest.approx(0.9)
        assert buckets[-1].observed_rate == 1.0

    def test_bucket_error(self):
        buckets = calibration_buckets([(0.7, 1), (0.7, 0), (0.7, 1), (0.7, 1)], n_bins=10)
        assert len(buckets) == 1
        assert buckets[0].mean_predicted == pytest.approx(0.7)
        assert buckets[0].observed_rate == pytest.approx(0.75)
        assert buckets[0].error == pytest.approx(0.05)

    @pytest.mark.parametrize("predicted, n_bins, lower", [
        (0.57, 100, 0.57),   # 0.57 * 100 == 56.99999999999999
        (0.29, 100, 0.29),
        (0.3, 10, 0.3),
        (0.6, 5, 0.6),
        (0.569, 100, 0.56),
    ])
    def test_value_on_bin_edge_lands_in_upper_bin(self, predicted, n_bins, lower):
        buckets = calibration_buckets([(predicted, 1)], n_bins=n_bins)
        assert len(buckets) == 1
        assert buckets[0].lower == pytest.approx(lower)

    def test_invalid_bins(self):
        with pytest.raises(ValueError):
            calibration_buckets([(0.5, 1)], n_bins=0)

    def test_report(self):
        preds = [(0.8, 1), (0.7, 1), (0.6, 0), (0.2, 0)]
        report = evaluate_predictions(preds)
        assert report.count == 4
        assert report.base_rate == pytest.approx(0.5)
        assert report.brier_score == pytest.approx(calculate_brier_score(preds))
        assert report.log_loss == pytest.approx(calculate_log_loss(preds))
        assert report.overconfidence == pytest.approx(0.075)
        # reference Brier for always predicting 0.5 is 0.25
        assert report.brier_skill_score == pytest.approx(1 - report.brier_score / 0.25)

    def test_skill_undefined_when_outcomes_identical(self):
        report = evaluate_predictions([(0.9, 1), (0.8, 1)])
        assert report.brier_skill_score is None

    def test_well_calibrated(self):
        preds = [(0.7, 1)] * 7 + [(0.7, 0)] * 3
        report = evaluate_predictions(preds)
        assert report.mean_calibration_error == pytest.approx(0.0, abs=1e-9)
        assert is_well_calibrated(report) is True

    def test_overconfident_forecaster_flagged(self):
        preds = [(0.9, 1)] * 5 + [(0.9, 0)] * 5
        report = evaluate_predictions(preds)
        assert report.overconfidence == pytest.approx(0.4)
        assert is_well_calibrated(report) is False
