import pytest

from cbtools.distribution import Tail, fisher_test
from cbtools.evaluation import quantile
from cbtools.tools import auc_main, fisher_main, quantile_main


@pytest.mark.parametrize(
    "flag, tail",
    [("0", Tail.BOTH), ("-1", Tail.LEFT), ("1", Tail.RIGHT), ("5", Tail.RIGHT)],
)
def test_fisher_main_prints_pvalue(capsys, flag, tail):
    assert fisher_main(["3", "1", "1", "3", flag]) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("P-value: ")
    value = float(out.split(": ")[1])
    assert value == pytest.approx(fisher_test(3, 1, 1, 3, tail), rel=1e-5)


def test_fisher_main_too_few_arguments():
    assert fisher_main(["1", "2"]) == 1


def test_fisher_main_rejects_non_integers():
    assert fisher_main(["1", "x", "2", "3", "0"]) == 1


def test_quantile_main_median(tmp_path, capsys):
    path = tmp_path / "data.txt"
    path.write_text("5\n1\n3\n2\n4\n")
    assert quantile_main([str(path), "0.5"]) == 0
    assert float(capsys.readouterr().out) == 3.0


def test_quantile_main_matches_library(tmp_path, capsys):
    data = [0.3, 1.7, 2.2, 9.1]
    path = tmp_path / "data.txt"
    path.write_text(" ".join(str(v) for v in data))
    assert quantile_main([str(path), "0.3"]) == 0
    assert float(capsys.readouterr().out) == pytest.approx(quantile(data, 0.3), rel=1e-5)


def test_quantile_main_bad_quantile(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("1 2 3")
    assert quantile_main([str(path), "2"]) == 1


def test_auc_main_perfect_separation(tmp_path, capsys):
    pred = tmp_path / "pred.txt"
    labels = tmp_path / "labels.txt"
    pred.write_text("0.1\n0.2\n0.8\n0.9\n")
    labels.write_text("0\n0\n1\n1\n")
    assert auc_main([str(pred), str(labels)]) == 0
    assert capsys.readouterr().out.strip() == "AUC: 1"


def test_auc_main_wrong_argument_count(capsys):
    assert auc_main(["only-one"]) == 1
    assert "incorrect number of arguments." in capsys.readouterr().err


def test_auc_main_bad_label(tmp_path):
    pred = tmp_path / "pred.txt"
    labels = tmp_path / "labels.txt"
    pred.write_text("0.1 0.2")
    labels.write_text("0 yes")
    assert auc_main([str(pred), str(labels)]) == 1


def test_auc_main_length_mismatch(tmp_path):
    pred = tmp_path / "pred.txt"
    labels = tmp_path / "labels.txt"
    pred.write_text("0.1 0.2 0.3")
    labels.write_text("0 1")
    assert auc_main([str(pred), str(labels)]) == 1