"""Evaluation metrics, hypothesis tests, loss and transfer functions, bagging ensembles, CAFA output and tail statistics."""

__version__ = "0.1.0"