import numpy as np
import pytest

from cbtools.transfers import (
    Purelin,
    Sigmoid,
    Tanh,
    Tansig,
    TransferId,
    make_transfer,
)

XS = np.linspace(-3.0, 3.0, 13).reshape(-1, 1)


def test_sigmoid_at_zero_is_half():
    assert Sigmoid().transfer([[0.0]])[0, 0] == pytest.approx(0.5)


def test_sigmoid_range_and_symmetry():
    s = Sigmoid().transfer(XS)
    assert np.all((s > 0) & (s < 1))
    np.testing.assert_allclose(s + Sigmoid().transfer(-XS), 1.0)


def test_tansig_matches_tanh():
    np.testing.assert_allclose(Tansig().transfer(XS), Tanh().transfer(XS), atol=1e-12)
    np.testing.assert_allclose(
        Tansig().dtransfer(XS), Tanh().dtransfer(XS), atol=1e-12
    )


@pytest.mark.parametrize("fcn", [Sigmoid(), Tanh(), Tansig()])
def test_derivative_matches_finite_difference(fcn):
    h = 1e-6
    numeric = (fcn.transfer(XS + h) - fcn.transfer(XS - h)) / (2 * h)
    np.testing.assert_allclose(fcn.dtransfer(XS), numeric, rtol=1e-5, atol=1e-8)


def test_tanh_derivative_at_zero():
    assert Tanh().dtransfer([[0.0]])[0, 0] == pytest.approx(1.0)


def test_purelin_is_identity():
    x = np.array([[1.5, -2.0], [0.0, 3.0]])
    np.testing.assert_array_equal(Purelin().transfer(x), x)


def test_purelin_derivative_is_column_of_ones():
    x = np.array([[1.5, -2.0], [0.0, 3.0], [4.0, 5.0]])
    d = Purelin().dtransfer(x)
    assert d.shape == (3, 1)
    assert np.all(d == 1.0)


def test_one_dimensional_input_becomes_column():
    assert Sigmoid().transfer([0.0, 1.0, 2.0]).shape == (3, 1)


@pytest.mark.parametrize(
    "tid, cls, name",
    [
        (TransferId.SIGMOID, Sigmoid, "sigmoid"),
        (TransferId.TANH, Tanh, "tanh"),
        (TransferId.TANSIG, Tansig, "tansig"),
        (TransferId.PURELIN, Purelin, "purelin"),
        (3, Purelin, "purelin"),
    ],
)
def test_make_transfer_registry(tid, cls, name):
    fcn = make_transfer(tid)
    assert isinstance(fcn, cls)
    assert fcn.name == name


def test_unknown_id_falls_back_to_sigmoid():
    fcn = make_transfer(42)
    assert isinstance(fcn, Sigmoid)
    assert fcn.name == "sigmoid"
    assert fcn.transfer([[0.0]])[0, 0] == pytest.approx(0.5)