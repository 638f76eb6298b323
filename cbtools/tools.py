"""Small command-line tools: Fisher's exact test, quantiles and AUC."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from cbtools.distribution import Tail, fisher_test
from cbtools.evaluation import auc_score, quantile
from cbtools.tailstat import load_items

__all__ = ["fisher_main", "quantile_main", "auc_main"]


def _args(argv: Sequence[str] | None) -> list[str]:
    return sys.argv[1:] if argv is None else list(argv)


def _fail(message: str) -> int:
    print(message, file=sys.stderr)
    return 1


def fisher_main(argv: Sequence[str] | None = None) -> int:
    """Print the Fisher exact test p-value of a b c d; tail 0 both, <0 left, >0 right."""
    args = _args(argv)
    if len(args) < 5:
        return _fail("usage: fisher A B C D TAIL")
    try:
        a, b, c, d, choice = (int(value) for value in args[:5])
    except ValueError:
        return _fail("[ERROR] arguments must be integers.")
    if choice == 0:
        tail = Tail.BOTH
    elif choice < 0:
        tail = Tail.LEFT
    else:
        tail = Tail.RIGHT
    try:
        pvalue = fisher_test(a, b, c, d, tail)
    except ValueError as err:
        return _fail(f"[ERROR] {err}")
    print(f"P-value: {pvalue:g}")
    return 0


def quantile_main(argv: Sequence[str] | None = None) -> int:
    """Print the q-quantile of the numbers in a file."""
    args = _args(argv)
    if len(args) < 2:
        return _fail("usage: quantile FILE Q")
    try:
        data = [float(item) for item in load_items(args[0])]
        value = quantile(data, float(args[1]))
    except (OSError, ValueError) as err:
        return _fail(f"[ERROR] {err}")
    print(f"{value:g}")
    return 0


def _parse_label(item: str) -> bool:
    if item == "1":
        return True
    if item == "0":
        return False
    raise ValueError(f"Invalid label: [{item}].")


def auc_main(argv: Sequence[str] | None = None) -> int:
    """Print the AUC of predictions in one file against 0/1 labels in another."""
    args = _args(argv)
    if len(args) != 2:
        return _fail("incorrect number of arguments.")
    try:
        predictions = [float(item) for item in load_items(args[0])]
        labels = [_parse_label(item) for item in load_items(args[1])]
        value = auc_score(predictions, labels)
    except (OSError, ValueError) as err:
        return _fail(f"[ERROR] {err}")
    print(f"AUC: {value:g}")
    return 0