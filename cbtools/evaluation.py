"""Evaluation helpers: confusion matrices, ROC/PR curves, AUC, Fmax and Smin."""

from __future__ import annotations

import math
import random
import struct
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from itertools import groupby
from typing import BinaryIO

__all__ = [
    "Point",
    "ConfusionMatrix",
    "CVFolds",
    "ordered_trapz",
    "fmax",
    "sdmin",
    "quantile",
    "cms_with_thresholds",
    "roc_with_thresholds",
    "roc",
    "auc_with_thresholds",
    "auc_score",
    "prc_with_thresholds",
    "prc",
    "rmc_with_thresholds",
    "rmc",
    "fmax_with_thresholds",
    "fmax_score",
    "sdmin_score",
]

_UINT32 = struct.Struct("<I")


def _ratio(numerator: float, denominator: float) -> float:
    """Divide with IEEE semantics: x/0 gives +-inf, 0/0 gives nan."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


@dataclass(frozen=True, order=True)
class Point:
    """A 2D point; points order by x, then by y."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, scale: float) -> Point:
        return Point(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    def __truediv__(self, scale: float) -> Point:
        if scale == 0:
            raise ZeroDivisionError("Division by zero.")
        return Point(self.x / scale, self.y / scale)


@dataclass(frozen=True)
class ConfusionMatrix:
    """A (possibly weighted) binary confusion matrix."""

    tp: float = 0.0
    fp: float = 0.0
    tn: float = 0.0
    fn: float = 0.0

    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp)

    def recall(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    def sensitivity(self) -> float:
        return self.recall()

    def specificity(self) -> float:
        return _ratio(self.tn, self.tn + self.fp)

    def tpr(self) -> float:
        return self.recall()

    def fpr(self) -> float:
        return _ratio(self.fp, self.tn + self.fp)

    def ru(self) -> float:
        """Remaining uncertainty."""
        return self.fn

    def mi(self) -> float:
        """Misinformation."""
        return self.fp

    def nru(self) -> float:
        """Normalized remaining uncertainty."""
        return _ratio(self.fn, self.tp + self.fn + self.fp)

    def nmi(self) -> float:
        """Normalized misinformation."""
        return _ratio(self.fp, self.tp + self.fp + self.fn)

    def __add__(self, other: ConfusionMatrix) -> ConfusionMatrix:
        return ConfusionMatrix(
            self.tp + other.tp,
            self.fp + other.fp,
            self.tn + other.tn,
            self.fn + other.fn,
        )

    def __str__(self) -> str:
        return (
            "--------\n"
            f"TP: {self.tp:8.4g}\tFP: {self.fp:.4g}\n"
            f"FN: {self.fn:8.4g}\tTN: {self.tn:.4g}"
        )


class CVFolds:
    """Random assignment of data points to cross-validation folds."""

    def __init__(self, n: int = 0, v: int = 0, seed: int = 0) -> None:
        self._n = 0
        self._v = 0
        self._fid: list[int] = []
        if n or v:
            self.update(n, v, seed)

    def update(self, n: int, v: int, seed: int = 0) -> None:
        """Reassign `n` data points to `v` folds; seed 0 means an unseeded shuffle."""
        if n < 0:
            raise ValueError("The number of data points must be non-negative.")
        if n > 0 and v <= 0:
            raise ValueError("The number of folds must be positive.")
        fid = [i % v for i in range(n)]
        rng = random.Random(seed) if seed else random.Random()
        rng.shuffle(fid)
        self._n, self._v, self._fid = n, v, fid

    @property
    def fold_ids(self) -> list[int]:
        """The fold each data point belongs to when used for testing."""
        return list(self._fid)

    def training_fold(self, index: int) -> list[int]:
        return [i for i, fold in enumerate(self._fid) if fold != index]

    def test_fold(self, index: int) -> list[int]:
        return [i for i, fold in enumerate(self._fid) if fold == index]

    def number_of_folds(self) -> int:
        return self._v

    def number_of_data_points(self) -> int:
        return self._n

    def serialize(self, stream: BinaryIO) -> None:
        """Write n, v and every fold id as little-endian uint32 values."""
        stream.write(_UINT32.pack(self._n))
        stream.write(_UINT32.pack(self._v))
        for fold in self._fid:
            stream.write(_UINT32.pack(fold))

    def deserialize(self, stream: BinaryIO) -> None:
        """Read what serialize() wrote, replacing the current state."""
        n = _read_uint32(stream)
        v = _read_uint32(stream)
        fid = [_read_uint32(stream) for _ in range(n)]
        self._n, self._v, self._fid = n, v, fid


def _read_uint32(stream: BinaryIO) -> int:
    raw = stream.read(_UINT32.size)
    if len(raw) != _UINT32.size:
        raise ValueError("Unexpected end of stream.")
    return _UINT32.unpack(raw)[0]


def ordered_trapz(points: Iterable[Point]) -> float:
    """Trapezoidal area under points sorted by x (then y), duplicates removed."""
    unique = [key for key, _ in groupby(sorted(points))]
    if len(unique) < 2:
        return 0.0
    area = sum(
        (cur.y + prev.y) * (cur.x - prev.x) for prev, cur in zip(unique, unique[1:])
    )
    return 0.5 * area


def fmax(points: Iterable[Point], beta: float = 1.0) -> float:
    """Maximum F-beta measure over (recall, precision) points."""
    if beta <= 0:
        raise ValueError("Beta must be positive.")
    beta2 = beta * beta
    best = 0.0
    for pt in points:
        score = _ratio(pt.x * pt.y, beta2 * pt.y + pt.x)
        best = max(best, score)
    return (1.0 + beta2) * best


def sdmin(points: Iterable[Point]) -> float:
    """Minimum semantic distance over (ru, mi) points."""
    smallest = sys.float_info.max
    for pt in points:
        smallest = min(smallest, pt.x * pt.x + pt.y * pt.y)
    return math.sqrt(smallest)


def quantile(data: Sequence[float], q: float, is_sorted: bool = False) -> float:
    """The q-quantile of data, interpolating linearly between order statistics."""
    if not 0.0 <= q <= 1.0:
        raise ValueError("Quantile must be within [0, 1].")
    values = list(data) if is_sorted else sorted(data)
    if not values:
        raise ValueError("Cannot take the quantile of empty data.")
    position = q * (len(values) - 1)
    lower = math.floor(position)
    upper = min(lower + 1, len(values) - 1)
    fraction = position - lower
    return values[lower] + (values[upper] - values[lower]) * fraction


def cms_with_thresholds(
    predictions: Sequence[float],
    labels: Sequence[bool],
    taus: Iterable[float],
    weights: Sequence[float] | None = None,
) -> list[ConfusionMatrix]:
    """Confusion matrices at each distinct threshold, in ascending order.

    A prediction counts as positive when it is at least the threshold.
    """
    if len(predictions) != len(labels):
        raise ValueError("Inconsistent number of predictions and labels.")
    if weights is None:
        weights = [1.0] * len(predictions)
    elif len(weights) != len(predictions):
        raise ValueError("Inconsistent number of predictions and weights.")

    positives = sum(w for w, t in zip(weights, labels) if t)
    negatives = sum(w for w, t in zip(weights, labels) if not t)
    ranked = sorted(zip(predictions, labels, weights), key=lambda item: item[0])

    tp, fp = positives, negatives
    cms = []
    index = 0
    for tau in sorted(set(taus)):
        while index < len(ranked) and ranked[index][0] < tau:
            _, label, weight = ranked[index]
            if label:
                tp -= weight
            else:
                fp -= weight
            index += 1
        cms.append(ConfusionMatrix(tp, fp, negatives - fp, positives - tp))
    return cms


def roc_with_thresholds(
    predictions: Sequence[float], labels: Sequence[bool], taus: Iterable[float]
) -> list[Point]:
    """(fpr, tpr) points, one per distinct threshold."""
    return [
        Point(cm.fpr(), cm.tpr())
        for cm in cms_with_thresholds(predictions, labels, taus)
    ]


def roc(predictions: Sequence[float], labels: Sequence[bool]) -> list[Point]:
    """ROC curve using every distinct prediction as a threshold."""
    return roc_with_thresholds(predictions, labels, set(predictions))


def auc_with_thresholds(
    predictions: Sequence[float], labels: Sequence[bool], taus: Iterable[float]
) -> float:
    return ordered_trapz(roc_with_thresholds(predictions, labels, taus))


def auc_score(predictions: Sequence[float], labels: Sequence[bool]) -> float:
    """Area under the ROC curve."""
    return auc_with_thresholds(predictions, labels, set(predictions))


def prc_with_thresholds(
    predictions: Sequence[float], labels: Sequence[bool], taus: Iterable[float]
) -> list[Point]:
    """(recall, precision) points with recall in ascending order."""
    curve = [
        Point(cm.recall(), cm.precision())
        for cm in cms_with_thresholds(predictions, labels, taus)
    ]
    curve.reverse()
    return curve


def prc(predictions: Sequence[float], labels: Sequence[bool]) -> list[Point]:
    return prc_with_thresholds(predictions, labels, set(predictions))


def rmc_with_thresholds(
    predictions: Sequence[float],
    labels: Sequence[bool],
    ia: Sequence[float],
    taus: Iterable[float],
) -> list[Point]:
    """Normalized (ru, mi) points weighted by information accretion."""
    return [
        Point(cm.nru(), cm.nmi())
        for cm in cms_with_thresholds(predictions, labels, taus, ia)
    ]


def rmc(
    predictions: Sequence[float], labels: Sequence[bool], ia: Sequence[float]
) -> list[Point]:
    return rmc_with_thresholds(predictions, labels, ia, set(predictions))


def fmax_with_thresholds(
    predictions: Sequence[float], labels: Sequence[bool], taus: Iterable[float]
) -> float:
    return fmax(prc_with_thresholds(predictions, labels, taus))


def fmax_score(predictions: Sequence[float], labels: Sequence[bool]) -> float:
    """Maximum F1 measure."""
    return fmax(prc(predictions, labels))


def sdmin_score(
    predictions: Sequence[float], labels: Sequence[bool], ia: Sequence[float]
) -> float:
    """Minimum normalized semantic distance."""
    return sdmin(rmc(predictions, labels, ia))