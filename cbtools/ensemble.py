"""A bagging ensemble of classification models."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

import numpy as np

__all__ = ["Model", "Ensemble"]

_log = logging.getLogger(__name__)


class Model(Protocol):
    """What an ensemble member must provide."""

    def train(self, x: np.ndarray, y: np.ndarray) -> None: ...

    def predict(self, x: np.ndarray) -> np.ndarray: ...


M = TypeVar("M", bound=Model)


def _as_matrix(value) -> np.ndarray:
    array = np.asarray(value, dtype=float)
    if array.ndim == 1:
        array = array.reshape(-1, 1)
    if array.ndim != 2:
        raise ValueError("Expected a matrix.")
    return array


class Ensemble(Generic[M]):
    """Bagging ensemble: each member trains on a bootstrap sample."""

    def __init__(
        self,
        model_factory: Callable[[], M],
        n: int = 0,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.model_factory = model_factory
        self.rng = rng if rng is not None else np.random.default_rng()
        self.models: list[M] = []
        self.sampled_examples: list[np.ndarray] = []
        self.sampled_targets: list[np.ndarray] = []
        self.num_examples = 0
        self.num_features = 0
        self.num_targets = 0
        self.resize(n)

    def __len__(self) -> int:
        return len(self.models)

    def resize(self, n: int) -> None:
        """Grow with fresh models or truncate to n members."""
        if n < 0:
            raise ValueError("Ensemble size must be non-negative.")
        empty = np.zeros(0, dtype=int)
        while len(self.models) < n:
            self.models.append(self.model_factory())
            self.sampled_examples.append(empty)
            self.sampled_targets.append(empty)
        del self.models[n:]
        del self.sampled_examples[n:]
        del self.sampled_targets[n:]

    def train(self, x, y) -> None:
        """Train every member."""
        self.train_oob(x, y, False)

    def train_oob(self, x, y, oob: bool) -> np.ndarray | None:
        """Train every member; with oob, return out-of-bag predictions.

        Entries never left out of any bag stay zero.
        """
        x, y = _as_matrix(x), _as_matrix(y)
        self.num_examples, self.num_features = x.shape
        self.num_targets = y.shape[1]
        if x.shape[0] != y.shape[0]:
            raise ValueError("Inconsistent number of examples.")

        k = len(self.models)
        for i, model in enumerate(self.models):
            self.train_setup_i(i, x, y)
            examples = self.sampled_examples[i]
            targets = self.sampled_targets[i]
            model.train(x[examples], y[np.ix_(examples, targets)])
            _log.info("finished training model %d/%d", i + 1, k)

        if not oob:
            return None
        oob_pred = np.zeros(y.shape)
        counts = np.zeros(y.shape)
        universe = np.arange(self.num_examples)
        for model, examples, targets in zip(
            self.models, self.sampled_examples, self.sampled_targets
        ):
            not_bagged = np.setdiff1d(universe, examples)
            if not_bagged.size == 0:
                continue
            cells = np.ix_(not_bagged, targets)
            oob_pred[cells] += _as_matrix(model.predict(x[not_bagged]))
            counts[cells] += 1.0
        predicted = counts > np.finfo(float).eps
        oob_pred[predicted] /= counts[predicted]
        return oob_pred

    def predict(self, x) -> np.ndarray:
        """Average member predictions per target."""
        x = _as_matrix(x)
        if x.shape[1] != self.num_features:
            raise ValueError("Inconsistent number of features.")
        y = np.zeros((x.shape[0], self.num_targets))
        counts = np.zeros(self.num_targets)
        k = len(self.models)
        for i, (model, targets) in enumerate(zip(self.models, self.sampled_targets)):
            y[:, targets] += _as_matrix(model.predict(x))
            counts[targets] += 1
            _log.info("predicted on model %d/%d", i + 1, k)
        with np.errstate(divide="ignore", invalid="ignore"):
            return y / counts

    def train_setup_i(self, i: int, x, y) -> None:
        """Draw a bootstrap sample of examples and keep all targets for member i."""
        n = np.shape(x)[0]
        p = np.shape(y)[1]
        self.sampled_examples[i] = self.rng.integers(0, n, size=n)
        self.sampled_targets[i] = np.arange(p)