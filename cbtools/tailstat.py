"""Tail statistics of combined variant and gene scores, cases against controls."""

from __future__ import annotations

import math
import random
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import TextIO

from cbtools.distribution import Tail, fisher_test
from cbtools.evaluation import auc_score, quantile

__all__ = [
    "USAGE",
    "MISSING_LOG_SCORE",
    "BOOTSTRAP_REPEATS",
    "TailStatError",
    "Statistic",
    "Options",
    "parse_arguments",
    "load_items",
    "load_scores",
    "combine_scores",
    "run",
    "main",
]

USAGE = """\
NAME
    tail-stat - tail statistics (case vs. control)
SYNOPSIS
    tail-stat -c <CASE FILE> -t <CONTROL FILE> -v <VARIANT FILE> -g <GENE FILE> [OPTION]...

DESCRIPTION
    Computes a statistic on the right tail of combined variant x gene scores,
    where the tail is taken from the control scores.

MANDATORY ARGUMENTS
    -c <CASE FILE>      case variants, one <Entrez ID>_<mutation> per item
    -t <CONTROL FILE>   control variants, same format as the case file
    -v <VARIANT FILE>   variant scores: <Entrez ID>_<mutation> <score>
    -g <GENE FILE>      gene scores: <Entrez ID> <score>

OPTIONAL ARGUMENTS
    -vcutoff <[0, 1]>           deleterious cutoff for variant scores (default 0)
    -vmild <FILE>               mild variants, whose scores are set to zero
    -excl <FILE>                genes to exclude
    -enforce <FILE>             genes whose score is forced to one (zero if log)
    -stat <pvalue|auc|dor|lr>   the statistic (default pvalue)
    -q <(0, 1)>                 quantile that determines the tail (default 0.95)
    -log <y|n>                  scores are log probabilities (default n)
    -outfmt <0|1|2>             0: statistic, 1: contingency table, 2: scores
    -bootstrap <y|n>            bootstrap variants; forces -outfmt 0 (default n)
"""

MISSING_LOG_SCORE = -999999.0
BOOTSTRAP_REPEATS = 100
_MIN_CUTOFF = 1e-16


class TailStatError(Exception):
    """A bad command line or input; show_usage asks for the usage text."""

    def __init__(self, message: str, show_usage: bool = False) -> None:
        super().__init__(message)
        self.show_usage = show_usage


class Statistic(Enum):
    PVALUE = "pvalue"
    AUC = "auc"
    DOR = "dor"
    LR = "lr"


@dataclass
class Options:
    case_file: str
    control_file: str
    variant_file: str
    gene_file: str
    exclude_file: str = ""
    seed_file: str = ""
    mild_file: str = ""
    log: bool = False
    statistic: Statistic = Statistic.PVALUE
    vcutoff: float = 0.0
    q: float = 0.95
    outfmt: int = 0
    bootstrap: bool = False


_FILE_OPTIONS = {
    "-c": ("case_file", "Case SNP file does not exist."),
    "-t": ("control_file", "Control SNP file does not exist."),
    "-v": ("variant_file", "Variant score file does not exist."),
    "-g": ("gene_file", "Gene score file does not exist."),
    "-vmild": ("mild_file", "Mild mutation file does not exist."),
    "-excl": ("exclude_file", "Gene score file does not exist."),
    "-enforce": ("seed_file", "Gene score file does not exist."),
}

_VALUE_OPTIONS = {"-vcutoff", "-stat", "-q", "-log", "-outfmt", "-bootstrap"}

_REQUIRED = (
    ("case_file", "No case SNP file specified."),
    ("control_file", "No control SNP file specified."),
    ("variant_file", "No variant score file specified."),
    ("gene_file", "No gene score file specified."),
)


def _to_float(value: str, flag: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise TailStatError(f"Invalid number for [{flag}]: [{value}].", True) from None


def _yes_no(value: str, flag: str) -> bool:
    if value in ("Y", "y"):
        return True
    if value in ("N", "n"):
        return False
    raise TailStatError(f"Unknown choice of [{flag}]: [{value}].")


def parse_arguments(argv: Sequence[str]) -> Options:
    """Build Options from command-line arguments (without the program name)."""
    args = list(argv)
    if len(args) < 8:
        raise TailStatError("Too few arguments.", show_usage=True)
    settings: dict[str, object] = {}
    items = iter(args)
    for flag in items:
        if flag not in _FILE_OPTIONS and flag not in _VALUE_OPTIONS:
            raise TailStatError("Unknown option.", show_usage=True)
        try:
            value = next(items)
        except StopIteration:
            raise TailStatError(f"Missing value for [{flag}].", True) from None

        if flag in _FILE_OPTIONS:
            name, message = _FILE_OPTIONS[flag]
            if not Path(value).is_file():
                raise TailStatError(message)
            settings[name] = value
        elif flag == "-vcutoff":
            cutoff = _to_float(value, flag)
            if not 0.0 <= cutoff <= 1.0:
                raise TailStatError(
                    "Probability cutoff must be within in the interval [0, 1]."
                )
            settings["vcutoff"] = cutoff
        elif flag == "-stat":
            try:
                settings["statistic"] = Statistic(value)
            except ValueError:
                raise TailStatError("Unknown choice of statistic.", True) from None
        elif flag == "-q":
            q = _to_float(value, flag)
            if not 0.0 < q < 1.0:
                raise TailStatError("-q must be in the interval (0, 1).", True)
            settings["q"] = q
        elif flag == "-log":
            settings["log"] = _yes_no(value, flag)
        elif flag == "-outfmt":
            try:
                choice = int(value)
            except ValueError:
                choice = -1
            if choice not in (0, 1, 2):
                raise TailStatError("-outfmt must be 0, 1 or 2.", True)
            settings["outfmt"] = choice
        else:
            settings["bootstrap"] = _yes_no(value, flag)

    for name, message in _REQUIRED:
        if not settings.get(name):
            raise TailStatError(message, show_usage=True)
    options = Options(**settings)
    if options.bootstrap:
        options.outfmt = 0
    return options


def load_items(path: str | PathLike) -> list[str]:
    """All whitespace-separated items of a file."""
    return Path(path).read_text(encoding="utf-8").split()


def _parse_score(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def load_scores(path: str | PathLike) -> dict[str, float]:
    """Read "<key> <score>" lines; a missing or unreadable score counts as 0."""
    scores: dict[str, float] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            fields = line.split()
            if not fields:
                continue
            scores[fields[0]] = _parse_score(fields[1]) if len(fields) > 1 else 0.0
    return scores


def combine_scores(
    mutations: Iterable[str],
    variant_scores: Mapping[str, float],
    gene_scores: Mapping[str, float],
    excluded_genes: Iterable[str] = (),
    is_log: bool = False,
) -> dict[str, float]:
    """Variant score times gene score (a sum if log) for each mutation.

    The gene is the part of the mutation before the first underscore;
    mutations of excluded genes are left out, and mutations lacking either
    score get 0 (or MISSING_LOG_SCORE if log).
    """
    excluded = set(excluded_genes)
    combined: dict[str, float] = {}
    for mutation in mutations:
        gene = mutation.split("_", 1)[0]
        if gene in excluded:
            continue
        if mutation in variant_scores and gene in gene_scores:
            if is_log:
                combined[mutation] = variant_scores[mutation] + gene_scores[gene]
            else:
                combined[mutation] = variant_scores[mutation] * gene_scores[gene]
        else:
            combined[mutation] = MISSING_LOG_SCORE if is_log else 0.0
    return combined


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _fmt(value: float) -> str:
    return f"{value:g}"


def _variant_scores(options: Options) -> dict[str, float]:
    scores = load_scores(options.variant_file)
    if options.mild_file:
        for mutation in load_items(options.mild_file):
            if mutation in scores:
                scores[mutation] = 0.0
    if options.vcutoff > 0:
        scores = {
            key: (0.0 if value < options.vcutoff else value)
            for key, value in scores.items()
        }
    return scores


def _gene_scores(options: Options) -> dict[str, float]:
    scores = load_scores(options.gene_file)
    if options.seed_file:
        enforced = 0.0 if options.log else 1.0
        for gene in load_items(options.seed_file):
            if gene in scores:
                scores[gene] = enforced
    return scores


def _confusion(
    case_scores: Mapping[str, float], control_scores: Mapping[str, float], cutoff: float
) -> tuple[int, int, int, int]:
    fp = sum(1 for s in control_scores.values() if s >= cutoff)
    tn = len(control_scores) - fp
    tp = sum(1 for s in case_scores.values() if s >= cutoff)
    fn = len(case_scores) - tp
    return tp, tn, fp, fn


def _report(
    options: Options,
    case_scores: Mapping[str, float],
    control_scores: Mapping[str, float],
    out: TextIO,
) -> None:
    if not control_scores:
        raise TailStatError("No control scores to determine the tail.")
    cutoff = quantile(list(control_scores.values()), options.q)
    if not options.log:
        cutoff = max(_MIN_CUTOFF, cutoff)

    statistic = options.statistic
    if statistic is Statistic.PVALUE:
        a = sum(1 for s in control_scores.values() if s < cutoff)
        b = sum(1 for s in case_scores.values() if s < cutoff)
        c = len(control_scores) - a
        d = len(case_scores) - b
        if options.outfmt == 2:
            for mutation, score in case_scores.items():
                out.write(f"{mutation}\t{_fmt(score)}\tc\n")
            for mutation, score in control_scores.items():
                out.write(f"{mutation}\t{_fmt(score)}\tt\n")
            return
        out.write(f"{_fmt(fisher_test(a, c, b, d, Tail.RIGHT))}\n")
        if options.outfmt == 1:
            out.write(f"        |     <q |    >=q with q = {_fmt(cutoff)}\n")
            out.write("-------------------------\n")
            out.write(f"control | {a:6d} | {c:6d}\n")
            out.write(f"case    | {b:6d} | {d:6d}\n")
    elif statistic is Statistic.AUC:
        tail = [(s, False) for s in control_scores.values() if s >= cutoff]
        tail += [(s, True) for s in case_scores.values() if s >= cutoff]
        predictions = [s for s, _ in tail]
        labels = [label for _, label in tail]
        out.write(f"{_fmt(auc_score(predictions, labels))}\n")
    elif statistic is Statistic.LR:
        tp, tn, fp, fn = _confusion(case_scores, control_scores, cutoff)
        value = _ratio(_ratio(tp, tp + fn), _ratio(fp, fp + tn))
        out.write(f"{_fmt(value)}\n")
    else:
        tp, tn, fp, fn = _confusion(case_scores, control_scores, cutoff)
        out.write(f"{_fmt(_ratio(tp * tn, fp * fn))}\n")


def run(
    options: Options,
    out: TextIO | None = None,
    rng: random.Random | None = None,
) -> None:
    """Compute and write the statistic, once or for each bootstrap sample."""
    out = sys.stdout if out is None else out
    rng = random.Random() if rng is None else rng

    cases = load_items(options.case_file)
    controls = load_items(options.control_file)
    is_case = {mutation: True for mutation in cases}
    is_case.update((mutation, False) for mutation in controls)
    pool = cases + controls

    variant_scores = _variant_scores(options)
    gene_scores = _gene_scores(options)
    excluded = set(load_items(options.exclude_file)) if options.exclude_file else set()

    repeats = BOOTSTRAP_REPEATS if options.bootstrap else 1
    for _ in range(repeats):
        if options.bootstrap:
            drawn = [rng.choice(pool) for _ in pool]
            case_ids = [m for m in drawn if is_case[m]]
            control_ids = [m for m in drawn if not is_case[m]]
        else:
            case_ids, control_ids = cases, controls
        case_scores = combine_scores(
            case_ids, variant_scores, gene_scores, excluded, options.log
        )
        control_scores = combine_scores(
            control_ids, variant_scores, gene_scores, excluded, options.log
        )
        _report(options, case_scores, control_scores, out)


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point; returns the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        run(parse_arguments(args))
    except TailStatError as err:
        if err.show_usage:
            sys.stderr.write(USAGE)
        print(f"[ERROR] {err}", file=sys.stderr)
        return 1
    except OSError as err:
        print(f"[ERROR] {err}", file=sys.stderr)
        return 1
    return 0