"""Transfer (activation) functions for neural network layers and their registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum

import numpy as np

__all__ = [
    "TransferFunction",
    "Sigmoid",
    "Tanh",
    "Tansig",
    "Purelin",
    "TransferId",
    "make_transfer",
]


def _matrix(value) -> np.ndarray:
    array = np.asarray(value, dtype=float)
    if array.ndim == 1:
        array = array.reshape(-1, 1)
    return array


class TransferFunction(ABC):
    """An element-wise activation with its derivative."""

    name = "undefined"

    @abstractmethod
    def transfer(self, x) -> np.ndarray:
        """Apply the activation."""

    @abstractmethod
    def dtransfer(self, x) -> np.ndarray:
        """Derivative of the activation at x."""


class Sigmoid(TransferFunction):
    """Logistic sigmoid, 1 / (1 + exp(-x))."""

    name = "sigmoid"

    def transfer(self, x) -> np.ndarray:
        return 1.0 / (1.0 + np.exp(-_matrix(x)))

    def dtransfer(self, x) -> np.ndarray:
        s = self.transfer(x)
        return s * (1.0 - s)


class Tanh(TransferFunction):
    """Hyperbolic tangent."""

    name = "tanh"

    def transfer(self, x) -> np.ndarray:
        return np.tanh(_matrix(x))

    def dtransfer(self, x) -> np.ndarray:
        return 1.0 / np.square(np.cosh(_matrix(x)))


class Tansig(TransferFunction):
    """Tansig, 2 / (1 + exp(-2x)) - 1, numerically equal to tanh."""

    name = "tansig"

    def transfer(self, x) -> np.ndarray:
        return 2.0 / (1.0 + np.exp(-2.0 * _matrix(x))) - 1.0

    def dtransfer(self, x) -> np.ndarray:
        s = 1.0 / (1.0 + np.exp(-2.0 * _matrix(x)))
        return (s * (1.0 - s)) * 4.0


class Purelin(TransferFunction):
    """Identity activation."""

    name = "purelin"

    def __init__(self) -> None:
        self.k = 1.0

    def transfer(self, x) -> np.ndarray:
        return _matrix(x)

    def dtransfer(self, x) -> np.ndarray:
        """A column of ones, one per row of x."""
        return np.ones((_matrix(x).shape[0], 1))


class TransferId(IntEnum):
    """Registered transfer function identifiers."""

    SIGMOID = 0
    TANH = 1
    TANSIG = 2
    PURELIN = 3


_REGISTRY = {
    TransferId.SIGMOID: Sigmoid,
    TransferId.TANH: Tanh,
    TransferId.TANSIG: Tansig,
    TransferId.PURELIN: Purelin,
}


def make_transfer(transfer_id) -> TransferFunction:
    """Build the registered transfer function; unknown ids fall back to sigmoid."""
    try:
        key = TransferId(transfer_id)
    except ValueError:
        key = TransferId.SIGMOID
    return _REGISTRY[key]()