"""Macro- and micro-averaged evaluation over prediction/ground-truth matrices."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

import numpy as np

from cbtools.evaluation import (
    ConfusionMatrix,
    Point,
    auc_score,
    cms_with_thresholds,
    fmax,
    fmax_score,
    ordered_trapz,
    quantile,
    sdmin,
    sdmin_score,
)

__all__ = [
    "EvalCentric",
    "EvalMetric",
    "macro_average",
    "micro_average_curve",
    "micro_average",
]

_NUM_QUANTILES = 101


class EvalCentric(Enum):
    """Whether rows are instances (proteins) or labels (terms) are averaged."""

    INS = 0
    LAB = 1


class EvalMetric(Enum):
    FMAX = 0
    PRC = 1
    SDMIN = 2
    RMC = 3
    AUC = 4
    ROC = 5


def _oriented(
    predictions, truth, centric: EvalCentric, metric: EvalMetric, weights
) -> tuple[np.ndarray, np.ndarray, list[float]]:
    """Arrange matrices so that each row is one averaged object."""
    p = np.asarray(predictions, dtype=float)
    t = np.asarray(truth) > 0
    if p.ndim != 2 or t.ndim != 2:
        raise ValueError("Predictions and ground truth must be matrices.")
    if centric is EvalCentric.LAB:
        if metric in (EvalMetric.SDMIN, EvalMetric.RMC):
            raise ValueError("Cannot choose this metric for label-centric view.")
        p, t = p.T, t.T
    if weights is None:
        weights = [1.0] * p.shape[1]
    weights = [float(w) for w in weights]
    if p.shape != t.shape or p.shape[1] != len(weights):
        raise ValueError("dimension mismatch.")
    return p, t, weights


def macro_average(
    predictions,
    truth,
    centric: EvalCentric,
    metric: EvalMetric,
    weights: Sequence[float] | None = None,
) -> float:
    """Average a per-object metric (FMAX, SDMIN or AUC) over rows or columns.

    Other metrics contribute nothing and yield 0.
    """
    p, t, weights = _oriented(predictions, truth, centric, metric, weights)
    count = p.shape[0]
    total = 0.0
    for row_p, row_t in zip(p.tolist(), t.tolist()):
        if metric is EvalMetric.FMAX:
            total += fmax_score(row_p, row_t)
        elif metric is EvalMetric.SDMIN:
            total += sdmin_score(row_p, row_t, weights)
        elif metric is EvalMetric.AUC:
            total += auc_score(row_p, row_t)
    if count == 0:
        return math.nan
    return total / count


def _thresholds(predictions: np.ndarray) -> set[float]:
    """Percentiles of the positive scores, plus 0 and 1."""
    scores = sorted(s for s in predictions.ravel().tolist() if s > 0)
    taus = {0.0, 1.0}
    if scores:
        for q in np.linspace(0.0, 1.0, _NUM_QUANTILES).tolist():
            taus.add(quantile(scores, q, True))
    return taus


def micro_average_curve(
    predictions,
    truth,
    centric: EvalCentric,
    metric: EvalMetric,
    weights: Sequence[float] | None = None,
) -> list[Point]:
    """Curve (PRC, RMC or ROC) from confusion matrices pooled over all objects."""
    p, t, weights = _oriented(predictions, truth, centric, metric, weights)
    taus = _thresholds(np.asarray(predictions, dtype=float))
    pooled = [ConfusionMatrix()] * len(taus)
    for row_p, row_t in zip(p.tolist(), t.tolist()):
        cms = cms_with_thresholds(row_p, row_t, taus, weights)
        pooled = [acc + cm for acc, cm in zip(pooled, cms)]

    if metric is EvalMetric.PRC:
        return [Point(cm.recall(), cm.precision()) for cm in reversed(pooled)]
    if metric is EvalMetric.RMC:
        return [Point(cm.nru(), cm.nmi()) for cm in pooled]
    if metric is EvalMetric.ROC:
        return [Point(cm.fpr(), cm.tpr()) for cm in pooled]
    return []


def micro_average(
    predictions,
    truth,
    centric: EvalCentric,
    metric: EvalMetric,
    weights: Sequence[float] | None = None,
) -> float:
    """Micro-averaged FMAX, AUC or SDMIN."""
    if metric is EvalMetric.FMAX:
        return fmax(micro_average_curve(predictions, truth, centric, EvalMetric.PRC))
    if metric is EvalMetric.AUC:
        return ordered_trapz(
            micro_average_curve(predictions, truth, centric, EvalMetric.ROC)
        )
    if metric is EvalMetric.SDMIN:
        return sdmin(
            micro_average_curve(predictions, truth, centric, EvalMetric.RMC, weights)
        )
    raise ValueError("Error metric.")