"""Forecast calibration metrics — evaluation only.

These functions score *historical, resolved* forecasts.  They are consumed
by offline evaluation jobs and the ``/api/calibration/evaluate`` endpoint
and are never called on the live per-request path.

All functions are pure, stateless and order-independent: per-sample losses
are summed with ``math.fsum`` so any permutation of the same predictions
returns the identical float.

Accepted prediction shapes (mixable in one collection):

* :class:`~accuracy_core.schemas.CalibratedPrediction`
* mappings with ``"predicted"`` and ``"actual"`` keys
* ``(predicted, actual)`` pairs

Run tests with::

    pytest tests/test_calibration_metrics.py -v
"""

from __future__ import annotations

import math
from typing import Any, Final, Iterable, List, Optional

import numpy as np

from accuracy_core.errors import ValidationError
from accuracy_core.schemas import CalibrationBucket, CalibrationReport

#: Log-loss clamp: predictions are held inside [ε, 1 − ε] so a confident
#: miss costs ≈ 34.5 nats instead of infinity.
DEFAULT_EPSILON: Final[float] = 1e-15

DEFAULT_N_BINS: Final[int] = 10

#: Slack added before flooring so a probability on a bin edge (0.57 with
#: 100 bins) is not pushed into the bin below by float rounding.
BIN_EDGE_TOLERANCE: Final[float] = 1e-9

#: Mean absolute bucket error below which a forecaster is "well calibrated".
WELL_CALIBRATED_ERROR: Final[float] = 0.07


# ---------------------------------------------------------------------------
# Input handling
# ---------------------------------------------------------------------------


def _unpack(item: Any) -> tuple[float, float]:
    if hasattr(item, "predicted") and hasattr(item, "actual"):
        return item.predicted, item.actual
    if isinstance(item, dict):
        return item["predicted"], item["actual"]
    predicted, actual = item
    return predicted, actual


def _as_arrays(predictions: Iterable[Any]) -> tuple[np.ndarray, np.ndarray]:
    """Validate and convert predictions into parallel float arrays.

    Raises:
        ValidationError: For an empty collection, a predicted value outside
            [0, 1] (or non-finite), or an actual value other than 0/1.
    """
    pairs = [_unpack(item) for item in predictions]
    if not pairs:
        raise ValidationError("At least one resolved prediction is required.")

    predicted = np.asarray([float(p) for p, _ in pairs], dtype=float)
    actual = np.asarray([float(a) for _, a in pairs], dtype=float)

    if not np.all(np.isfinite(predicted)) or np.any((predicted < 0.0) | (predicted > 1.0)):
        raise ValidationError("Predicted probabilities must be finite and within [0, 1].")
    if np.any((actual != 0.0) & (actual != 1.0)):
        raise ValidationError("Actual outcomes must be 0 or 1.")
    return predicted, actual


def _mean(values: np.ndarray) -> float:
    return math.fsum(values.tolist()) / len(values)


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


def calculate_brier_score(predictions: Iterable[Any]) -> float:
    """Mean squared error between predicted probability and binary outcome.

    ``BS = mean((p − y)²)`` in ``[0, 1]``; 0 is a perfect forecaster and
    a constant 0.5 forecast scores 0.25.
    """
    predicted, actual = _as_arrays(predictions)
    return _mean((predicted - actual) ** 2)


def calculate_log_loss(
    predictions: Iterable[Any],
    eps: float = DEFAULT_EPSILON,
) -> float:
    """Mean negative log-likelihood of the realised outcomes.

    ``LL = mean(−[y·ln(p) + (1 − y)·ln(1 − p)])`` with ``p`` clamped to
    ``[eps, 1 − eps]``, so the result is always finite.
    """
    if not (0.0 < eps < 0.5):
        raise ValueError(f"eps must be in (0, 0.5), got {eps!r}.")
    predicted, actual = _as_arrays(predictions)
    p = np.clip(predicted, eps, 1.0 - eps)
    losses = -(actual * np.log(p) + (1.0 - actual) * np.log1p(-p))
    return _mean(losses)


# ---------------------------------------------------------------------------
# Reliability table
# ---------------------------------------------------------------------------


def calibration_buckets(
    predictions: Iterable[Any],
    n_bins: int = DEFAULT_N_BINS,
) -> List[CalibrationBucket]:
    """Predicted probability vs. observed frequency per equal-width bin.

    Bins are ``[i/n, (i+1)/n)`` with the last bin closed at 1.0.  Empty bins
    are omitted.  A probability within :data:`BIN_EDGE_TOLERANCE` below an
    edge counts as on the edge.
    """
    if n_bins < 1:
        raise ValueError(f"n_bins must be >= 1, got {n_bins!r}.")
    predicted, actual = _as_arrays(predictions)
    index = np.floor(predicted * n_bins + BIN_EDGE_TOLERANCE).astype(int)
    index = np.minimum(index, n_bins - 1)

    buckets: List[CalibrationBucket] = []
    for i in range(n_bins):
        mask = index == i
        count = int(mask.sum())
        if count == 0:
            continue
        mean_pred = _mean(predicted[mask])
        observed = _mean(actual[mask])
        buckets.append(CalibrationBucket(
            lower=i / n_bins,
            upper=(i + 1) / n_bins,
            count=count,
            mean_predicted=round(mean_pred, 6),
            observed_rate=round(observed, 6),
            error=round(abs(mean_pred - observed), 6),
        ))
    return buckets


def evaluate_predictions(
    predictions: Iterable[Any],
    n_bins: int = DEFAULT_N_BINS,
    eps: float = DEFAULT_EPSILON,
) -> CalibrationReport:
    """Full calibration summary for a set of resolved predictions.

    ``brier_skill_score`` compares against always forecasting the base rate
    (``1 − BS / BS_ref``) and is ``None`` when every outcome is identical.
    ``overconfidence`` is mean(predicted) − mean(actual): positive means the
    forecaster is too bullish.
    """
    items = list(predictions)
    predicted, actual = _as_arrays(items)

    brier = calculate_brier_score(items)
    base_rate = _mean(actual)
    reference = base_rate * (1.0 - base_rate)
    skill: Optional[float] = 1.0 - brier / reference if reference > 0.0 else None

    buckets = calibration_buckets(items, n_bins)
    mean_error = (
        math.fsum(b.error * b.count for b in buckets) / len(items) if buckets else None
    )

    return CalibrationReport(
        count=len(items),
        brier_score=brier,
        log_loss=calculate_log_loss(items, eps),
        base_rate=base_rate,
        brier_skill_score=skill,
        overconfidence=_mean(predicted) - base_rate,
        mean_calibration_error=mean_error,
        buckets=buckets,
    )


def is_well_calibrated(report: CalibrationReport) -> Optional[bool]:
    """True when the count-weighted bucket error is below the 7% tolerance."""
    if report.mean_calibration_error is None:
        return None
    return report.mean_calibration_error < WELL_CALIBRATED_ERROR
