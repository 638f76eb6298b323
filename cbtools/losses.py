"""Loss functions for neural network training and their registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import IntEnum

import numpy as np

__all__ = [
    "EPS",
    "LossFunction",
    "MSE",
    "MAE",
    "CrossEntropy",
    "MSECon",
    "SD",
    "MSEConReg",
    "LossId",
    "make_loss",
]

EPS = float(np.finfo(float).eps)


def _matrix(value) -> np.ndarray:
    array = np.asarray(value, dtype=float)
    if array.ndim == 1:
        array = array.reshape(-1, 1)
    return array


def _ancestor_matrix(a) -> np.ndarray:
    matrix = np.atleast_2d(np.asarray(a, dtype=float))
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("Ancestor matrix must be square.")
    return matrix


class LossFunction(ABC):
    """A loss on predictions f and truth y; each column is one example."""

    name = "undefined"

    @abstractmethod
    def loss(self, f, y) -> float:
        """The loss value."""

    @abstractmethod
    def dloss_df(self, f, y) -> np.ndarray:
        """Gradient of the loss with respect to f, transposed."""

    @abstractmethod
    def consistent_output(self, f) -> np.ndarray:
        """Transform f into a consistent output."""


class MSE(LossFunction):
    """Mean squared error averaged over neurons and examples."""

    name = "mean squared error"

    def loss(self, f, y) -> float:
        f, y = _matrix(f), _matrix(y)
        return float(0.5 * np.sum(np.square(f - y)) / f.size)

    def dloss_df(self, f, y) -> np.ndarray:
        f, y = _matrix(f), _matrix(y)
        return (f - y).T / f.shape[0]

    def consistent_output(self, f) -> np.ndarray:
        return _matrix(f)


class MAE(LossFunction):
    """Mean absolute error."""

    name = "mean absolute error"

    def loss(self, f, y) -> float:
        f, y = _matrix(f), _matrix(y)
        return float(np.sum(np.abs(f - y)) / f.size)

    def dloss_df(self, f, y) -> np.ndarray:
        f, y = _matrix(f), _matrix(y)
        return np.sign(f - y).T / f.shape[0]

    def consistent_output(self, f) -> np.ndarray:
        return _matrix(f)


class CrossEntropy(LossFunction):
    """Cross-entropy error."""

    name = "cross entropy"

    def loss(self, f, y) -> float:
        y = _matrix(y)
        return float(
            np.sum(
                y * np.log(np.clip(y, EPS, 1.0))
                + (1.0 - y) * np.log(np.clip(1.0 - y, EPS, 1.0))
            )
        )

    def dloss_df(self, f, y) -> np.ndarray:
        cf = np.clip(_matrix(f), 0.0, 1.0)
        cy = np.clip(_matrix(y), 0.0, 1.0)
        return (-cy / (cf + EPS) + (1.0 - cy) / (1.0 - cf + EPS)).T

    def consistent_output(self, f) -> np.ndarray:
        return _matrix(f)


class MSECon(LossFunction):
    """Mean squared error on the consistent output A f / m."""

    name = "consistent mean squared error"

    def __init__(self, a) -> None:
        self.a = _ancestor_matrix(a)

    def loss(self, f, y) -> float:
        f, y = _matrix(f), _matrix(y)
        return float(0.5 * np.sum(np.square(self.consistent_output(f) - y)) / f.size)

    def dloss_df(self, f, y) -> np.ndarray:
        f, y = _matrix(f), _matrix(y)
        m = f.shape[0]
        return ((self.consistent_output(f) - y).T / m) @ self.a / m

    def consistent_output(self, f) -> np.ndarray:
        f = _matrix(f)
        return (self.a @ f) / f.shape[0]


class SD(LossFunction):
    """Semantic distance loss."""

    name = "semantic distance"

    def __init__(self, a) -> None:
        self.a = _ancestor_matrix(a)

    def loss(self, f, y) -> float:
        f, y = _matrix(f), _matrix(y)
        m, n = f.shape
        diff = (self.a @ f) / m - y
        pos = np.where(diff > 0, diff, 0.0).sum(axis=0)
        neg = np.where(diff > 0, 0.0, diff).sum(axis=0)
        return float(np.sum(np.sqrt(pos * pos + neg * neg)) / n)

    def dloss_df(self, f, y) -> np.ndarray:
        f, y = _matrix(f), _matrix(y)
        m, n = f.shape
        g = (self.a @ f) / m
        above = g > y
        below = g < y
        pos = np.where(above, g - y, 0.0).sum(axis=0)
        neg = np.where(above, 0.0, y - g).sum(axis=0)
        partial = np.zeros((m, n))
        partial = np.where(above, pos[np.newaxis, :], partial)
        partial = np.where(below, neg[np.newaxis, :], partial)
        d = float(np.sum(np.sqrt(pos * pos + neg * neg))) / n
        with np.errstate(divide="ignore", invalid="ignore"):
            return partial.T @ self.a / m / d

    def consistent_output(self, f) -> np.ndarray:
        return self.a @ _matrix(f)


class MSEConReg(LossFunction):
    """Consistent mean squared error for regression."""

    name = "consistent mean squared error for regression"

    def __init__(self, a) -> None:
        self.a = _ancestor_matrix(a)
        self.ata = self.a.T @ self.a

    def loss(self, f, y) -> float:
        f, y = _matrix(f), _matrix(y)
        return float(0.5 * np.sum(np.square(self.consistent_output(f - y))) / f.size)

    def dloss_df(self, f, y) -> np.ndarray:
        f, y = _matrix(f), _matrix(y)
        return (f - y).T @ self.ata / f.shape[0]

    def consistent_output(self, f) -> np.ndarray:
        return self.a @ _matrix(f)


class LossId(IntEnum):
    """Registered loss function identifiers."""

    MSE = 0
    MAE = 1
    CROSSENTROPY = 2
    SD = 3
    MSECON = 4
    MSECONREG = 5


def make_loss(loss_id, params: Sequence | None = None) -> LossFunction:
    """Build the registered loss; unknown ids fall back to MSE.

    Consistent losses take the ancestor matrix as params[0]; without it a
    1x1 zero placeholder is used.
    """
    try:
        loss_id = LossId(loss_id)
    except ValueError:
        loss_id = LossId.MSE
    ancestor = params[0] if params else np.zeros((1, 1))
    if loss_id is LossId.MAE:
        return MAE()
    if loss_id is LossId.CROSSENTROPY:
        return CrossEntropy()
    if loss_id is LossId.MSECON:
        return MSECon(ancestor)
    if loss_id is LossId.MSECONREG:
        return MSEConReg(ancestor)
    if loss_id is LossId.SD:
        return SD(ancestor)
    return MSE()