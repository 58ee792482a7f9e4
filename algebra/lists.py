"""
List Lifting of Algebras.

Given an algebra over elements of type ``T``, the classes below provide the
matching algebra over Python lists of exactly ``length`` such elements.
Element-producing operations are applied position by position. Scalar results
(distance, length, scalar product) are the sum over positions of the base
results, and squared variants are the square of that sum.

This lets composite objects (e.g. a sequence of feature vectors describing
one entity) be clustered by the unchanged algorithms. Lists of a different
length are not supported: element-producing operations raise ``IndexError``
on lists shorter than ``length``, and distances and scalar products raise
``IndexError`` when their two arguments differ in length.
"""

from typing import Iterator, List, Tuple

from .contracts import EuclideanVectorSpace, Metric, Norm, ScalarProduct, VectorSpace


def _entry_pairs(xs: List, ys: List) -> Iterator[Tuple]:
    if len(xs) != len(ys):
        raise IndexError(f"Lists of different length: {len(xs)} and {len(ys)}")
    return zip(xs, ys)


class ListVectorSpace(VectorSpace):
    """
    Vector space over lists of ``length`` elements of ``base``.

    Parameters
    ----------
    base : VectorSpace
        Algebra of the list entries. Its elements must be mutable.
    length : int
        Number of entries every list holds.
    """

    def __init__(self, base: VectorSpace, length: int):
        if length < 1:
            raise ValueError(f"The list length must be at least 1. Specified length: {length}")
        self.base = base
        self.list_length = int(length)

    @property
    def dimension(self) -> int:
        return self.base.dimension * self.list_length

    @property
    def infinite_dimensionality(self) -> bool:
        return self.base.infinite_dimensionality

    def get_new_add_neutral_element(self) -> List:
        return [self.base.get_new_add_neutral_element() for _ in range(self.list_length)]

    def reset_to_add_neutral_element(self, x: List) -> None:
        for i in range(self.list_length):
            self.base.reset_to_add_neutral_element(x[i])

    def copy(self, x: List, y: List) -> None:
        for i in range(self.list_length):
            self.base.copy(x[i], y[i])

    def copy_new(self, x: List) -> List:
        return [self.base.copy_new(x[i]) for i in range(self.list_length)]

    def inv(self, x: List) -> None:
        for i in range(self.list_length):
            self.base.inv(x[i])

    def add(self, x: List, y: List) -> None:
        for i in range(self.list_length):
            self.base.add(x[i], y[i])

    def sub(self, x: List, y: List) -> None:
        for i in range(self.list_length):
            self.base.sub(x[i], y[i])

    def mul(self, x: List, a: float) -> None:
        for i in range(self.list_length):
            self.base.mul(x[i], a)


class ListMetric(Metric):
    """Sum of the base distances of corresponding entries."""

    def __init__(self, base: Metric):
        self.base = base

    def distance(self, xs: List, ys: List) -> float:
        return sum(self.base.distance(x, y) for x, y in _entry_pairs(xs, ys))

    def distance_sq(self, xs: List, ys: List) -> float:
        d = self.distance(xs, ys)
        return d * d


class ListNorm(Norm):
    """Sum of the base lengths of all entries."""

    def __init__(self, base: Norm):
        self.base = base

    def length(self, xs: List) -> float:
        return sum(self.base.length(x) for x in xs)

    def length_sq(self, xs: List) -> float:
        n = self.length(xs)
        return n * n


class ListScalarProduct(ListNorm, ScalarProduct):
    """Sum of the base scalar products of corresponding entries."""

    def __init__(self, base: ScalarProduct):
        super().__init__(base)

    def scalar_product(self, xs: List, ys: List) -> float:
        return sum(self.base.scalar_product(x, y) for x, y in _entry_pairs(xs, ys))


class ListEuclideanSpace(ListVectorSpace, ListMetric, ListScalarProduct, EuclideanVectorSpace):
    """
    All four lifted capabilities over one Euclidean base space.

    Parameters
    ----------
    base : EuclideanVectorSpace
        Algebra of the list entries.
    length : int
        Number of entries every list holds.
    """

    def __init__(self, base: EuclideanVectorSpace, length: int):
        ListVectorSpace.__init__(self, base, length)
