"""Hypothesis tests: Fisher's exact test and Student's t-tests."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

import numpy as np
from scipy import stats

__all__ = [
    "Tail",
    "fisher_test",
    "t_test",
    "two_sample_t_test_eqv",
    "two_sample_t_test_noeqv",
    "ttest",
    "ttest2",
]


class Tail(Enum):
    """Which tail of the distribution a test integrates."""

    BOTH = 0
    LEFT = 1
    RIGHT = 2


def fisher_test(a: int, b: int, c: int, d: int, tail: Tail = Tail.BOTH) -> float:
    """P-value of Fisher's exact test on the 2x2 table [[a, b], [c, d]].

    The hypergeometric variable is the count in cell (1, 1), with row total
    a + b and column total a + c.
    """
    if min(a, b, c, d) < 0:
        raise ValueError("Contingency table entries must be non-negative.")
    total = a + b + c + d
    successes = a + b
    drawn = a + c
    kmin = max(successes + drawn - total, 0)
    kmax = min(successes, drawn)
    dist = stats.hypergeom(total, successes, drawn)

    if tail is Tail.LEFT:
        ks = range(kmin, a + 1)
        return float(sum(dist.pmf(k) for k in ks))
    if tail is Tail.RIGHT:
        ks = range(a, kmax + 1)
        return float(sum(dist.pmf(k) for k in ks))
    cutoff = dist.pmf(a)
    probabilities = (dist.pmf(k) for k in range(kmin, kmax + 1))
    return float(sum(p for p in probabilities if p <= cutoff))


def _tail_pvalue(t_stat: float, degrees: float, tail: Tail) -> float:
    if not degrees > 0:
        raise ValueError("Degrees of freedom must be positive.")
    dist = stats.t(degrees)
    if tail is Tail.BOTH:
        return float(2.0 * dist.sf(abs(t_stat)))
    if tail is Tail.LEFT:
        return float(dist.cdf(t_stat))
    return float(dist.sf(t_stat))


def t_test(mean: float, sd: float, n: int, tail: Tail = Tail.BOTH) -> float:
    """One-sample Student t-test of a zero mean, from summary statistics."""
    scale = sd / math.sqrt(n)
    if scale == 0:
        t_stat = math.nan if mean == 0 else math.copysign(math.inf, mean)
    else:
        t_stat = mean / scale
    return _tail_pvalue(t_stat, n - 1, tail)


def two_sample_t_test_eqv(
    sm1: float,
    sd1: float,
    sn1: int,
    sm2: float,
    sd2: float,
    sn2: int,
    tail: Tail = Tail.BOTH,
) -> float:
    """Two-sample t-test assuming equal variances."""
    if sn1 <= 1 and sn2 <= 1:
        raise ValueError("Too few samples for both sets.")
    if sn1 <= 1:
        return t_test(sm1 - sm2, sd2, sn2, tail)
    if sn2 <= 1:
        return t_test(sm1 - sm2, sd1, sn1, tail)
    degrees = sn1 + sn2 - 2
    pooled = math.sqrt(((sn1 - 1) * sd1 * sd1 + (sn2 - 1) * sd2 * sd2) / degrees)
    t_stat = (sm1 - sm2) / (pooled * math.sqrt(1.0 / sn1 + 1.0 / sn2))
    return _tail_pvalue(t_stat, degrees, tail)


def two_sample_t_test_noeqv(
    sm1: float,
    sd1: float,
    sn1: int,
    sm2: float,
    sd2: float,
    sn2: int,
    tail: Tail = Tail.BOTH,
) -> float:
    """Two-sample (Welch) t-test without assuming equal variances."""
    if sn1 <= 1 and sn2 <= 1:
        raise ValueError("Too few samples for both sets.")
    if sn1 <= 1:
        return t_test(sm1 - sm2, sd2, sn2, tail)
    if sn2 <= 1:
        return t_test(sm1 - sm2, sd1, sn1, tail)
    v1 = sd1 * sd1 / sn1
    v2 = sd2 * sd2 / sn2
    degrees = (v1 + v2) ** 2 / (v1 * v1 / (sn1 - 1) + v2 * v2 / (sn2 - 1))
    t_stat = (sm1 - sm2) / math.sqrt(v1 + v2)
    return _tail_pvalue(t_stat, degrees, tail)


def _summary(sample: Sequence[float]) -> tuple[float, float, int]:
    values = np.asarray(sample, dtype=float).ravel()
    if values.size == 0:
        raise ValueError("Sample must not be empty.")
    sd = float(np.std(values, ddof=1)) if values.size > 1 else 0.0
    return float(np.mean(values)), sd, int(values.size)


def ttest(x: Sequence[float]) -> float:
    """Two-sided one-sample t-test that the mean of x is zero."""
    mean, sd, n = _summary(x)
    return t_test(mean, sd, n)


def ttest2(x: Sequence[float], y: Sequence[float]) -> float:
    """Two-sided Welch t-test that x and y have equal means."""
    m1, s1, n1 = _summary(x)
    m2, s2, n2 = _summary(y)
    return two_sample_t_test_noeqv(m1, s1, n1, m2, s2, n2)