"""
Prototypes: the movable representatives optimized by the clustering algorithms.

A ``Centroid`` is a point in the algebra's space with an activation flag and a
cluster index. Algorithms never delete prototypes during a run; reducing the
number of clusters deactivates them instead, so prototype indices stay valid
for every ID-indexed result array.
"""

import math
from typing import Any, List

from algebra.contracts import Metric, VectorSpace


class Centroid:
    """
    A prototype given by its position only.

    Parameters
    ----------
    vs : VectorSpace
        Algebra of the position.
    position : Any
        Initial position. It is copied.
    record_way : bool, default=False
        Keep a copy of every position the centroid moves through.
    """

    def __init__(self, vs: VectorSpace, position: Any, record_way: bool = False):
        self.vs = vs
        self.position = vs.copy_new(position)
        self.initial_position = vs.copy_new(position)
        self.activated = True
        self.cluster_index = -1
        self.record_way = record_way
        self.way: List[Any] = [vs.copy_new(position)] if record_way else []

    def move_to(self, new_position: Any) -> None:
        """Copies ``new_position`` into the current position."""
        self.vs.copy(self.position, new_position)
        if self.record_way:
            self.way.append(self.vs.copy_new(self.position))

    def move_by(self, direction: Any) -> None:
        self.vs.add(self.position, direction)
        if self.record_way:
            self.way.append(self.vs.copy_new(self.position))

    def reset_to_initial_position(self) -> None:
        self.vs.copy(self.position, self.initial_position)
        if self.record_way:
            self.way = [self.vs.copy_new(self.position)]

    def initialize_with_position(self, position: Any) -> None:
        """Sets both the initial and the current position and forgets the way."""
        self.vs.copy(self.initial_position, position)
        self.vs.copy(self.position, position)
        self.way = [self.vs.copy_new(position)] if self.record_way else []

    def clone(self) -> "Centroid":
        other = Centroid(self.vs, self.initial_position, record_way=self.record_way)
        self._copy_state_to(other)
        return other

    def _copy_state_to(self, other: "Centroid") -> None:
        other.vs.copy(other.position, self.position)
        other.activated = self.activated
        other.cluster_index = self.cluster_index
        other.way = [self.vs.copy_new(p) for p in self.way]

    def __repr__(self):
        state = "active" if self.activated else "inactive"
        return f"{type(self).__name__}(index={self.cluster_index}, {state}, position={self.position!r})"


class SphericalNormalDistributionPrototype(Centroid):
    """
    An isotropic Gaussian component: a centroid with a scalar variance.

    Parameters
    ----------
    vs : VectorSpace
        Algebra of the mean. Its ``dimension`` enters the density normalization.
    metric : Metric
        Distance used in the density.
    position : Any
        Initial mean.
    variance : float, default=1.0
        Initial variance, must be positive.
    """

    def __init__(self, vs: VectorSpace, metric: Metric, position: Any, variance: float = 1.0, record_way: bool = False):
        super().__init__(vs, position, record_way=record_way)
        self.metric = metric
        self._variance = 1.0
        self.variance = variance
        self.initial_variance = self._variance

    @property
    def variance(self) -> float:
        return self._variance

    @variance.setter
    def variance(self, value: float) -> None:
        if not value > 0.0:
            raise ValueError(f"The variance must be larger than 0. Specified variance: {value}")
        self._variance = float(value)

    def density(self, x: Any) -> float:
        """Value of the spherical normal density at ``x``."""
        dist_sq = self.metric.distance_sq(self.position, x)
        norm = (2.0 * math.pi * self._variance) ** (-0.5 * self.vs.dimension)
        return math.exp(-0.5 * dist_sq / self._variance) * norm

    def reset_to_initial_position(self) -> None:
        super().reset_to_initial_position()
        self._variance = self.initial_variance

    def clone(self) -> "SphericalNormalDistributionPrototype":
        other = SphericalNormalDistributionPrototype(
            self.vs, self.metric, self.initial_position, variance=self.initial_variance, record_way=self.record_way
        )
        self._copy_state_to(other)
        other._variance = self._variance
        return other
