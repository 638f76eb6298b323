import io
import math
import random

import pytest

from cbtools.distribution import Tail, fisher_test
from cbtools.tailstat import (
    BOOTSTRAP_REPEATS,
    Options,
    Statistic,
    TailStatError,
    combine_scores,
    load_items,
    load_scores,
    main,
    parse_arguments,
    run,
)


@pytest.fixture
def dataset(tmp_path):
    def write(name, text):
        path = tmp_path / name
        path.write_text(text)
        return str(path)

    return {
        "write": write,
        "case": write("case.txt", "10_c1\n10_c2\n"),
        "control": write("control.txt", "20_t1\n20_t2\n20_t3\n20_t4\n"),
        "variants": write(
            "variants.txt",
            "10_c1 0.9\n10_c2 0.8\n20_t1 0.1\n20_t2 0.2\n20_t3 0.3\n20_t4 0.4\n",
        ),
        "genes": write("genes.txt", "10 1.0\n20 1.0\n"),
    }


def _options(data, **overrides):
    return Options(
        case_file=data["case"],
        control_file=data["control"],
        variant_file=data["variants"],
        gene_file=data["genes"],
        **overrides,
    )


def _base_args(data):
    return ["-c", data["case"], "-t", data["control"], "-v", data["variants"],
            "-g", data["genes"]]


def _run(options, rng=None):
    out = io.StringIO()
    run(options, out, rng)
    return out.getvalue()


def _scores_by_tag(text):
    result = {}
    for line in text.splitlines():
        mutation, score, tag = line.split("\t")
        result[mutation] = (float(score), tag)
    return result


def test_load_items_splits_on_whitespace(tmp_path):
    path = tmp_path / "items.txt"
    path.write_text("a_1  b_2\n\nc_3\n")
    assert load_items(path) == ["a_1", "b_2", "c_3"]


def test_load_scores_reads_pairs_and_skips_blank_lines(tmp_path):
    path = tmp_path / "scores.txt"
    path.write_text("1_a 0.5\n\n2_b\t0.25\n")
    assert load_scores(path) == {"1_a": 0.5, "2_b": 0.25}


def test_load_scores_missing_score_is_zero(tmp_path):
    path = tmp_path / "scores.txt"
    path.write_text("1_a\n")
    assert load_scores(path) == {"1_a": 0.0}


def test_combine_scores_product_and_exclusion():
    variants = {"1_a": 0.5, "2_b": 0.7}
    genes = {"1": 1.0}
    combined = combine_scores(["1_a", "2_b", "3_c"], variants, genes, {"3"}, False)
    assert combined == {"1_a": 0.5, "2_b": 0.0}


def test_combine_scores_log_uses_sum_and_missing_marker():
    variants = {"1_a": 0.5}
    genes = {"1": 0.0}
    combined = combine_scores(["1_a", "2_b"], variants, genes, set(), True)
    assert combined == {"1_a": 0.5, "2_b": -999999}


def test_combine_scores_mutation_without_underscore_is_its_own_gene():
    combined = combine_scores(["7"], {"7": 0.5}, {"7": 1.0}, set(), False)
    assert combined == {"7": 0.5}


def test_parse_too_few_arguments():
    with pytest.raises(TailStatError) as info:
        parse_arguments(["-c", "x"])
    assert info.value.show_usage


def test_parse_defaults(dataset):
    options = parse_arguments(_base_args(dataset))
    assert options.statistic is Statistic.PVALUE
    assert options.q == 0.95
    assert options.outfmt == 0
    assert options.log is False
    assert options.case_file == dataset["case"]


def test_parse_missing_file(dataset, tmp_path):
    args = _base_args(dataset)
    args[1] = str(tmp_path / "nope.txt")
    with pytest.raises(TailStatError, match="Case SNP file does not exist"):
        parse_arguments(args)


def test_parse_optional_values(dataset):
    args = _base_args(dataset) + ["-stat", "dor", "-log", "Y", "-q", "0.5",
                                  "-vcutoff", "0.25", "-outfmt", "2"]
    options = parse_arguments(args)
    assert options.statistic is Statistic.DOR
    assert options.log is True
    assert options.q == 0.5
    assert options.vcutoff == 0.25
    assert options.outfmt == 2


@pytest.mark.parametrize(
    "extra",
    [
        ["-q", "1"],
        ["-q", "0"],
        ["-vcutoff", "2"],
        ["-outfmt", "3"],
        ["-stat", "foo"],
        ["-log", "maybe"],
        ["-bootstrap", "x"],
        ["-unknown", "1"],
        ["-q"],
    ],
)
def test_parse_rejects_bad_values(dataset, extra):
    with pytest.raises(TailStatError):
        parse_arguments(_base_args(dataset) + extra)


def test_parse_bootstrap_forces_outfmt_zero(dataset):
    options = parse_arguments(_base_args(dataset) + ["-outfmt", "2", "-bootstrap", "y"])
    assert options.bootstrap is True
    assert options.outfmt == 0


def test_parse_requires_gene_file(dataset):
    args = ["-c", dataset["case"], "-t", dataset["control"], "-v", dataset["variants"],
            "-vcutoff", "0.1"]
    with pytest.raises(TailStatError, match="No gene score file specified"):
        parse_arguments(args)


def test_pvalue_table_is_consistent(dataset):
    lines = _run(_options(dataset, outfmt=1)).splitlines()
    assert len(lines) == 5
    a, c = (int(v) for v in lines[3].split("|")[1:])
    b, d = (int(v) for v in lines[4].split("|")[1:])
    assert a + c == 4
    assert b + d == 2
    assert float(lines[0]) == pytest.approx(fisher_test(a, c, b, d, Tail.RIGHT), rel=1e-5)


def test_pvalue_plain_matches_table_first_line(dataset):
    plain = _run(_options(dataset)).splitlines()
    table = _run(_options(dataset, outfmt=1)).splitlines()
    assert plain == table[:1]


def test_scores_output_lists_every_variant(dataset):
    scores = _scores_by_tag(_run(_options(dataset, outfmt=2)))
    assert scores["10_c1"] == (0.9, "c")
    assert scores["20_t4"] == (0.4, "t")
    assert {tag for _, tag in scores.values()} == {"c", "t"}
    assert len(scores) == 6


def test_auc_perfect_separation(dataset):
    assert float(_run(_options(dataset, statistic=Statistic.AUC))) == 1.0


def test_likelihood_ratio(dataset):
    assert float(_run(_options(dataset, statistic=Statistic.LR))) == pytest.approx(4.0)


def test_diagnostic_odds_ratio_without_false_negatives(dataset):
    assert float(_run(_options(dataset, statistic=Statistic.DOR))) == math.inf


def test_mild_mutations_score_zero(dataset):
    mild = dataset["write"]("mild.txt", "10_c1\n")
    scores = _scores_by_tag(_run(_options(dataset, outfmt=2, mild_file=mild)))
    assert scores["10_c1"] == (0.0, "c")
    assert scores["10_c2"] == (0.8, "c")


def test_vcutoff_zeroes_low_scores(dataset):
    scores = _scores_by_tag(_run(_options(dataset, outfmt=2, vcutoff=0.5)))
    assert all(score == 0.0 for score, tag in scores.values() if tag == "t")
    assert scores["10_c1"][0] == 0.9


def test_enforced_genes_score_one(dataset):
    genes = dataset["write"]("genes_half.txt", "10 0.5\n20 1.0\n")
    seeds = dataset["write"]("seeds.txt", "10\n")
    options = _options(dataset, outfmt=2, seed_file=seeds)
    options.gene_file = genes
    scores = _scores_by_tag(_run(options))
    assert scores["10_c1"][0] == 0.9
    assert scores["10_c2"][0] == 0.8


def test_excluded_genes_are_left_out(dataset):
    excl = dataset["write"]("excl.txt", "10\n")
    scores = _scores_by_tag(_run(_options(dataset, outfmt=2, exclude_file=excl)))
    assert set(scores) == {"20_t1", "20_t2", "20_t3", "20_t4"}


def test_no_controls_left_is_an_error(dataset):
    excl = dataset["write"]("excl.txt", "20\n")
    with pytest.raises(TailStatError):
        _run(_options(dataset, exclude_file=excl))


def test_bootstrap_prints_one_pvalue_per_repeat(dataset):
    text = _run(_options(dataset, bootstrap=True), rng=random.Random(7))
    values = [float(line) for line in text.splitlines()]
    assert len(values) == BOOTSTRAP_REPEATS
    assert all(0.0 <= v <= 1.0 + 1e-9 for v in values)


def test_main_too_few_arguments(capsys):
    assert main(["-c"]) == 1
    assert "SYNOPSIS" in capsys.readouterr().err


def test_main_success(dataset, capsys):
    assert main(_base_args(dataset)) == 0
    value = float(capsys.readouterr().out)
    assert 0.0 <= value <= 1.0 + 1e-9