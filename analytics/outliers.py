"""
Robust outlier scoring.

The modified z-score uses the median and the median absolute deviation
(MAD) instead of mean and standard deviation:

    z = 0.6745 * (x - median) / MAD

The median is the element at index ``n // 2`` of the ascending sort; even
counts are not averaged.

When more than half of the values are identical the MAD is 0 and the
formula above is undefined.  In that case the score falls back to the
mean absolute deviation about the median (Iglewicz & Hoaglin):

    z = (x - median) / (1.253314 * MeanAD)

and is 0 only when every value equals the median.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from analytics.constants import OUTLIER_THRESHOLD
from dto.insights import OutlierResult
from dto.metric import NormalizedMetric, NumericField
from utils.rounding import round_half_up

_MAD_SCALE = 0.6745
_MEAN_AD_SCALE = 1.253314

# Fewer present values than this are never scored.
MIN_SAMPLE_SIZE = 3


def _index_median(values: np.ndarray) -> float:
    ordered = np.sort(values)
    return float(ordered[ordered.size // 2])


def calculate_mad(values: Sequence[float]) -> Tuple[float, float]:
    """Return ``(median, mad)``; ``(0, 0)`` for an empty sequence."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0, 0.0
    median = _index_median(arr)
    mad = _index_median(np.abs(arr - median))
    return median, mad


def calculate_modified_z_score(value: float, median: float, mad: float) -> float:
    if mad == 0:
        return 0.0
    return _MAD_SCALE * (value - median) / mad


def calculate_z_score(value: float, mean: float, std_dev: float) -> float:
    """Classic (non-robust) z-score; 0 when the deviation is 0."""
    if std_dev == 0:
        return 0.0
    return (value - mean) / std_dev


def robust_z_scores(values: Sequence[float]) -> List[float]:
    """Modified z-score for every value, with the MeanAD fallback."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return []
    median, mad = calculate_mad(arr)
    if mad != 0:
        return [calculate_modified_z_score(v, median, mad) for v in arr.tolist()]

    mean_ad = float(np.mean(np.abs(arr - median)))
    if mean_ad == 0:
        return [0.0] * arr.size
    return ((arr - median) / (_MEAN_AD_SCALE * mean_ad)).tolist()


def detect_outliers(
    metrics: Sequence[NormalizedMetric],
    field: NumericField,
    threshold: float = OUTLIER_THRESHOLD,
) -> List[OutlierResult]:
    """
    Flag records whose *field* has ``|z| >= threshold``.

    Records without the field are ignored.  Results carry the z-score
    rounded to 2 decimals and are ordered by ``|z|`` descending.
    """
    present = [(m, m.value_of(field)) for m in metrics]
    present = [(m, v) for m, v in present if v is not None]
    if len(present) < MIN_SAMPLE_SIZE:
        return []

    scores = robust_z_scores([v for _, v in present])
    outliers = [
        OutlierResult(metric=m, z_score=round_half_up(z))
        for (m, _), z in zip(present, scores)
        if abs(z) >= threshold
    ]
    return sorted(outliers, key=lambda o: abs(o.z_score), reverse=True)
