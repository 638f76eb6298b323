"""Writing function predictions in CAFA format."""

from __future__ import annotations

from collections.abc import Sequence
from os import PathLike

import numpy as np

__all__ = ["cafa_save"]

_NUM_DIGITS = 6


def cafa_save(
    filename: str | PathLike,
    predictions,
    sequences: Sequence[str],
    terms: Sequence[str],
    max_terms: int = 1500,
) -> None:
    """Write predictions as "<sequence>\\t<term>\\t<score>" lines, no header or footer.

    For each sequence, terms are listed by descending score, at most
    max_terms of them, stopping at the first score that rounds to zero.
    NaN scores count as zero. Scores must lie in [0, 1].
    """
    pred = np.asarray(predictions, dtype=float)
    if pred.ndim != 2:
        raise ValueError("Predictions must be a matrix.")
    known = pred[~np.isnan(pred)]
    if known.size and (known.min() < 0 or known.max() > 1):
        raise ValueError("Predictions fall out of the range [0, 1].")
    if len(sequences) != pred.shape[0]:
        raise ValueError("Inconsistent number of sequences.")
    if len(terms) != pred.shape[1]:
        raise ValueError("Inconsistent number of terms.")

    scale = 10.0**_NUM_DIGITS
    limit = min(max_terms, len(terms))
    with open(filename, "w", encoding="utf-8") as out:
        for sequence, row in zip(sequences, pred):
            row = np.nan_to_num(row, nan=0.0)
            order = np.argsort(-row, kind="stable")
            rounded = np.floor(row * scale + 0.5) / scale
            for j in order[:limit]:
                score = rounded[j]
                if score <= 0:
                    break
                out.write(f"{sequence}\t{terms[j]}\t{score:.{_NUM_DIGITS}f}\n")