"""
Algebraic Contracts for Generic Clustering.

The clustering algorithms never touch the representation of a data element.
Everything they need (building a weighted sum of elements, measuring how far
apart two elements are) goes through the small capability classes below, so
the same algorithm runs on plain arrays, on lists of arrays or on any other
type for which these operations are provided.

In-place operations mutate their first operand and return nothing. The
``*_new`` variants leave their operands untouched and return a fresh element;
their default implementations are derived from the in-place ones.

All prototype based algorithms assume that the metric is differentiable in its
second argument with respect to the squared distance, with gradient
``2 (y - x)``. Only then is the weighted mean the optimal prototype position.
Nothing checks this.

References
----------
[1] Bezdek, J.C., Hathaway, R.J., "Convergence of alternating optimization",
    2003, Neural, Parallel & Scientific Computations, 11(4), pp. 351-368.
"""

import math
from abc import ABC, abstractmethod
from typing import Any


class VectorSpace(ABC):
    """
    A real vector space over an opaque element type.

    Subclasses implement the in-place operations and the additive identity.
    """

    @abstractmethod
    def get_new_add_neutral_element(self) -> Any:
        """Returns a new element equal to the additive identity."""

    @abstractmethod
    def reset_to_add_neutral_element(self, x) -> None:
        """Overwrites ``x`` with the additive identity."""

    @abstractmethod
    def copy(self, x, y) -> None:
        """Copies the value of ``y`` into ``x``."""

    @abstractmethod
    def inv(self, x) -> None:
        """Replaces ``x`` by its additive inverse."""

    @abstractmethod
    def add(self, x, y) -> None:
        """``x += y``"""

    @abstractmethod
    def sub(self, x, y) -> None:
        """``x -= y``"""

    @abstractmethod
    def mul(self, x, a: float) -> None:
        """``x *= a``"""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Number of real dimensions of the space."""

    @property
    def infinite_dimensionality(self) -> bool:
        return False

    def copy_new(self, x):
        y = self.get_new_add_neutral_element()
        self.copy(y, x)
        return y

    def inv_new(self, x):
        y = self.copy_new(x)
        self.inv(y)
        return y

    def add_new(self, x, y):
        z = self.copy_new(x)
        self.add(z, y)
        return z

    def sub_new(self, x, y):
        z = self.copy_new(x)
        self.sub(z, y)
        return z

    def mul_new(self, x, a: float):
        z = self.copy_new(x)
        self.mul(z, a)
        return z


class Metric(ABC):
    """
    A distance function. ``distance_sq(x, y)`` must equal ``distance(x, y) ** 2``.
    """

    @abstractmethod
    def distance(self, x, y) -> float:
        pass

    def distance_sq(self, x, y) -> float:
        d = self.distance(x, y)
        return d * d


class Norm(ABC):
    """The length of an element."""

    @abstractmethod
    def length(self, x) -> float:
        pass

    def length_sq(self, x) -> float:
        n = self.length(x)
        return n * n


class ScalarProduct(Norm):
    """
    A scalar product and the norm it induces.

    When defined on the same space as a metric it must satisfy
    ``distance_sq(x, y) == scalar_product(x - y, x - y)``.
    """

    @abstractmethod
    def scalar_product(self, x, y) -> float:
        pass

    def length(self, x) -> float:
        return math.sqrt(self.length_sq(x))

    def length_sq(self, x) -> float:
        return self.scalar_product(x, x)


class EuclideanVectorSpace(VectorSpace, Metric, ScalarProduct):
    """A vector space with a scalar product and the metric induced by it."""
