"""
The real Euclidean space R^d over one-dimensional numpy arrays.
"""

import math

import numpy as np

from .contracts import EuclideanVectorSpace


class ArrayEuclideanSpace(EuclideanVectorSpace):
    """
    Euclidean algebra on ``numpy.ndarray`` elements of shape ``(dimension,)``.

    Parameters
    ----------
    dimension : int
        Number of coordinates of every element.
    """

    def __init__(self, dimension: int):
        if dimension < 1:
            raise ValueError(f"The dimension must be at least 1. Specified dimension: {dimension}")
        self._dimension = int(dimension)

    @property
    def dimension(self) -> int:
        return self._dimension

    def get_new_add_neutral_element(self) -> np.ndarray:
        return np.zeros(self._dimension, dtype=float)

    def reset_to_add_neutral_element(self, x: np.ndarray) -> None:
        x.fill(0.0)

    def copy(self, x: np.ndarray, y: np.ndarray) -> None:
        x[:] = y

    def copy_new(self, x: np.ndarray) -> np.ndarray:
        return np.array(x, dtype=float, copy=True)

    def inv(self, x: np.ndarray) -> None:
        np.negative(x, out=x)

    def add(self, x: np.ndarray, y: np.ndarray) -> None:
        x += y

    def sub(self, x: np.ndarray, y: np.ndarray) -> None:
        x -= y

    def mul(self, x: np.ndarray, a: float) -> None:
        x *= a

    def distance(self, x: np.ndarray, y: np.ndarray) -> float:
        return math.sqrt(self.distance_sq(x, y))

    def distance_sq(self, x: np.ndarray, y: np.ndarray) -> float:
        diff = x - y
        return float(np.dot(diff, diff))

    def scalar_product(self, x: np.ndarray, y: np.ndarray) -> float:
        return float(np.dot(x, y))

    def length_sq(self, x: np.ndarray) -> float:
        return float(np.dot(x, x))

    def __repr__(self):
        return f"ArrayEuclideanSpace(dimension={self._dimension})"
