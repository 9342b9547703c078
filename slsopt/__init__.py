"""Preferential Bayesian optimization with Gaussian-process preference models."""

__version__ = "0.1.0"