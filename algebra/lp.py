"""
Lp metrics and norms on one-dimensional numpy arrays.

    ||x||_p = (sum_i |x_i| ** p) ** (1 / p),    p >= 1

For ``p = 2`` this is the Euclidean norm, ``p = 1`` gives the city block
(Manhattan) norm and ``p = inf`` the maximum norm. Only ``p = 2`` has a
scalar product, so apart from that case these algebras offer distances but no
gradient: they can drive the ball trees and density based clustering, but not
the mean updates of the fuzzy c-means family.
"""

import math

import numpy as np

from .contracts import Metric, Norm


def _check_finite(p: float) -> None:
    if math.isinf(p):
        raise ValueError("The maximum norm has no finite power p.")


def _check_p(p: float) -> float:
    p = float(p)
    if not p >= 1.0:
        raise ValueError(f"p must be at least 1, otherwise the result is not a norm. Specified p: {p}")
    return p


class ArrayLpNorm(Norm):
    """
    The Lp norm of ``numpy.ndarray`` elements.

    Parameters
    ----------
    p : float
        Exponent of the norm, at least 1. ``math.inf`` gives the maximum norm.
    """

    def __init__(self, p: float):
        self.p = _check_p(p)

    def length(self, x: np.ndarray) -> float:
        return float(np.linalg.norm(x, ord=self.p))

    def length_p(self, x: np.ndarray) -> float:
        """``length(x) ** p`` without taking the root, for finite p."""
        _check_finite(self.p)
        return float(np.sum(np.abs(x) ** self.p))

    def __repr__(self):
        return f"ArrayLpNorm(p={self.p})"


class ArrayLpMetric(Metric):
    """
    The metric induced by the Lp norm, ``distance(x, y) = ||x - y||_p``.

    Parameters
    ----------
    p : float
        Exponent of the norm, at least 1. ``math.inf`` gives the Chebyshev
        distance.
    """

    def __init__(self, p: float):
        self.p = _check_p(p)

    def distance(self, x: np.ndarray, y: np.ndarray) -> float:
        return float(np.linalg.norm(x - y, ord=self.p))

    def distance_p(self, x: np.ndarray, y: np.ndarray) -> float:
        """``distance(x, y) ** p`` without taking the root, for finite p."""
        _check_finite(self.p)
        return float(np.sum(np.abs(x - y) ** self.p))

    def __repr__(self):
        return f"ArrayLpMetric(p={self.p})"


class ArrayCityBlockNorm(ArrayLpNorm):
    """Sum of the absolute coordinates."""

    def __init__(self):
        super().__init__(1.0)

    def length(self, x: np.ndarray) -> float:
        return float(np.sum(np.abs(x)))

    def __repr__(self):
        return "ArrayCityBlockNorm()"


class ArrayCityBlockMetric(ArrayLpMetric):
    """Manhattan distance, the sum of the absolute coordinate differences."""

    def __init__(self):
        super().__init__(1.0)

    def distance(self, x: np.ndarray, y: np.ndarray) -> float:
        return float(np.sum(np.abs(x - y)))

    def __repr__(self):
        return "ArrayCityBlockMetric()"
