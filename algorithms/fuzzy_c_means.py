"""
Fuzzy c-Means (FCM) and Fuzzy c-Means with Noise Cluster.

Standard FCM minimizes

    J = sum_j sum_i u_ij^m d_ij

with d_ij the squared distance between data object j and prototype i and m
the fuzzifier, subject to sum_i u_ij = 1. The alternating optimization
update of the memberships is

    u_ij = d_ij^(1/(1-m)) / sum_k d_kj^(1/(1-m))

and prototypes move to the u^m-weighted mean of the data. If a prototype
coincides with a data object, the Karush-Kuhn-Tucker conditions put the full
membership of that object onto the coincident prototype(s), split uniformly.

The noise variant adds a virtual cluster at a constant distance to every
object which absorbs the membership of outliers [2].

References
----------
[1] Bezdek, J.C., Ehrlich, R., Full, W., "FCM: The fuzzy c-means clustering
    algorithm", 1984, Computers & Geosciences, 10(2-3), pp. 191-203.
[2] Dave, R.N., "Characterization and detection of noise in clustering",
    1991, Pattern Recognition Letters, 12(11), pp. 657-664.
"""

from typing import Any, Optional

import numpy as np

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataSet

from .base import (
    DEFAULT_NOISE_DISTANCE,
    FuzzyPrototypeClusteringAlgorithm,
    NoiseClusteringMixin,
)

DEFAULT_FUZZIFIER = 2.0


class FuzzyCMeans(FuzzyPrototypeClusteringAlgorithm):
    """
    Fuzzy c-Means over an arbitrary algebra.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    fuzzifier : float, default=2.0
        The weighting exponent m. Must be > 1.
    **params
        Iteration parameters of ``PrototypeClusteringAlgorithm``.
    """

    algorithm_name = "Fuzzy c-Means Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            fuzzifier: float = DEFAULT_FUZZIFIER,
            **params
    ):
        super().__init__(data_set, vs, metric, **params)
        self.fuzzifier = fuzzifier

    @classmethod
    def from_algorithm(cls, other, use_only_active_prototypes: bool = False, **params):
        if "fuzzifier" not in params and hasattr(other, "fuzzifier"):
            params["fuzzifier"] = other.fuzzifier
        return super().from_algorithm(other, use_only_active_prototypes, **params)

    @property
    def fuzzifier(self) -> float:
        return self._fuzzifier

    @fuzzifier.setter
    def fuzzifier(self, value: float) -> None:
        if not value > 1.0:
            raise ValueError(f"The fuzzifier must be larger than 1. Specified fuzzifier: {value}")
        self._fuzzifier = float(value)

    def _fcm_memberships(self, dist_sq: np.ndarray, indices: np.ndarray, noise_dist_sq: Optional[float] = None):
        """
        The FCM kernel on precomputed squared distances of the active prototypes.

        Returns the membership vector over all prototypes and the noise
        membership (0 when ``noise_dist_sq`` is None).
        """
        u = np.zeros(self.cluster_count)
        if len(indices) == 0:
            return u, (0.0 if noise_dist_sq is None else 1.0)
        zero = dist_sq <= 0.0
        if zero.any():
            u[indices[zero]] = 1.0 / np.count_nonzero(zero)
            return u, 0.0

        exponent = 1.0 / (1.0 - self._fuzzifier)
        with np.errstate(over="ignore"):
            kernel = dist_sq ** exponent
        # underflowing distances count as coincident
        infinite = np.isinf(kernel)
        if infinite.any():
            u[indices[infinite]] = 1.0 / np.count_nonzero(infinite)
            return u, 0.0
        total = kernel.sum()
        noise_kernel = 0.0
        if noise_dist_sq is not None:
            noise_kernel = noise_dist_sq ** exponent
            total += noise_kernel
        u[indices] = kernel / total
        return u, noise_kernel / total

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        indices = self._active_indices()
        return self._fcm_memberships(self._distances_sq(x, indices), indices)[0]

    def _prototype_weights(self, u: np.ndarray) -> np.ndarray:
        return u ** self._fuzzifier

    def _objective_of(self, x: Any, context: Any) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        u = self._fcm_memberships(dist_sq, indices)[0]
        return float(np.dot(u[indices] ** self._fuzzifier, dist_sq))


class FuzzyCMeansNoise(NoiseClusteringMixin, FuzzyCMeans):
    """
    Fuzzy c-Means with an additional noise cluster.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    fuzzifier : float, default=2.0
        The weighting exponent m. Must be > 1.
    noise_distance : float, default=0.1*sqrt(max float)
        Distance of the noise cluster to every object. Must be > 0.
    degrading_noise_distance : float, optional
        Starting noise distance of every ``apply`` call. Defaults to
        ``noise_distance`` (no decay).
    noise_degradation_factor : float, default=0.0
        Speed of the exponential decay.
    """

    algorithm_name = "Fuzzy c-Means Clustering Algorithm with Noise Cluster"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            fuzzifier: float = DEFAULT_FUZZIFIER,
            noise_distance: float = DEFAULT_NOISE_DISTANCE,
            degrading_noise_distance: Optional[float] = None,
            noise_degradation_factor: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, fuzzifier=fuzzifier, **params)
        self._init_noise(noise_distance, degrading_noise_distance, noise_degradation_factor)

    def _memberships_with_noise(self, x: Any, noise_distance: float):
        indices = self._active_indices()
        return self._fcm_memberships(self._distances_sq(x, indices), indices, noise_distance * noise_distance)

    def _objective_of(self, x: Any, noise_distance: float) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        noise_dist_sq = noise_distance * noise_distance
        u, noise_u = self._fcm_memberships(dist_sq, indices, noise_dist_sq)
        return float(np.dot(u[indices] ** self._fuzzifier, dist_sq) + noise_u ** self._fuzzifier * noise_dist_sq)
