"""
Fuzzy c-Means with Polynomial Fuzzifier Function.

The power u^m of standard FCM is replaced by the polynomial

    h(u) = (1 - beta) / (1 + beta) * u^2 + 2 beta / (1 + beta) * u,

which, unlike u^m, yields memberships of exactly 0 for prototypes that are
far away compared to the closest ones. For each data object the prototypes
are sorted by distance; the largest prefix of ``c_hat`` prototypes that
satisfies the KKT condition receives positive membership

    u_i = ((1 + (c_hat - 1) beta) / (d_i * S) - beta) / (1 - beta),
    S = sum over included prototypes of 1 / d_k,

all remaining prototypes get 0. ``beta = 0`` recovers FCM with m = 2;
``beta = 1`` assigns the object to its nearest prototype(s) only.

References
----------
[1] Klawonn, F., Hoeppner, F., "What is fuzzy about fuzzy clustering?
    Understanding and improving the concept of the fuzzifier", 2003,
    Advances in Intelligent Data Analysis V, LNCS 2810, pp. 254-264.
[2] Winkler, R., Klawonn, F., Kruse, R., "Fuzzy clustering with polynomial
    fuzzifier function in connection with M-estimators", 2011, Applied and
    Computational Mathematics, 10(1), pp. 146-163.
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

DEFAULT_BETA = 0.5


class PolynomialFCM(FuzzyPrototypeClusteringAlgorithm):
    """
    Polynomial fuzzifier FCM.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    beta : float, default=0.5
        Shape of the fuzzifier polynomial, in [0, 1].
    """

    algorithm_name = "Polynomial Fuzzifier Function FCM Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            beta: float = DEFAULT_BETA,
            **params
    ):
        super().__init__(data_set, vs, metric, **params)
        self.beta = beta

    @property
    def beta(self) -> float:
        return self._beta

    @beta.setter
    def beta(self, value: float) -> None:
        if value < 0.0 or value > 1.0:
            raise ValueError(f"Beta must be in [0, 1]. Specified beta: {value}")
        self._beta = float(value)

    def _polynomial_memberships(self, dist_sq: np.ndarray, indices: np.ndarray, noise_dist_sq: Optional[float] = None):
        """
        Polynomial fuzzifier kernel. The noise cluster, if any, takes part in
        the sorting like a prototype at distance ``noise_dist_sq``.

        Returns ``(u, noise_membership)``.
        """
        u = np.zeros(self.cluster_count)
        if len(indices) == 0:
            return u, (0.0 if noise_dist_sq is None else 1.0)
        zero = dist_sq <= 0.0
        if zero.any():
            u[indices[zero]] = 1.0 / np.count_nonzero(zero)
            return u, 0.0

        # position len(indices) stands for the noise cluster
        candidates = dist_sq if noise_dist_sq is None else np.append(dist_sq, noise_dist_sq)
        order = np.argsort(candidates, kind="stable")
        test = 1.0 / self._beta - 1.0 if self._beta > 0.0 else np.inf

        inverse_sum = 0.0
        distance_sum = 0.0
        c_hat = 0
        for k in order:
            d = float(candidates[k])
            inverse_sum += 1.0 / d
            if c_hat > 0 and d * inverse_sum - (c_hat + 1) > test:
                break
            c_hat += 1
            distance_sum = inverse_sum
        included = order[:c_hat]

        values = np.zeros(len(candidates))
        if c_hat == 1 or self._beta >= 1.0:
            values[included] = 1.0 / c_hat
        else:
            numerator = 1.0 + (c_hat - 1.0) * self._beta
            values[included] = (numerator / (candidates[included] * distance_sum) - self._beta) / (1.0 - self._beta)

        u[indices] = values[:len(indices)]
        noise_u = values[len(indices)] if noise_dist_sq is not None else 0.0
        return u, noise_u

    def _h(self, u):
        beta = self._beta
        return ((1.0 - beta) / (1.0 + beta) * u + 2.0 * beta / (1.0 + beta)) * u

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        indices = self._active_indices()
        return self._polynomial_memberships(self._distances_sq(x, indices), indices)[0]

    def _prototype_weights(self, u: np.ndarray) -> np.ndarray:
        return self._h(u)

    def _objective_of(self, x: Any, context: Any) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        u = self._polynomial_memberships(dist_sq, indices)[0]
        return float(np.dot(self._h(u[indices]), dist_sq))


class PolynomialFCMNoise(NoiseClusteringMixin, PolynomialFCM):
    """
    Polynomial fuzzifier FCM with a noise cluster.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    beta : float, default=0.5
        Shape of the fuzzifier polynomial, in [0, 1].
    noise_distance : float, default=0.1*sqrt(max float)
        Distance of the noise cluster. Must be > 0.
    degrading_noise_distance : float, optional
        Starting noise distance of every ``apply`` call.
    noise_degradation_factor : float, default=0.0
        Speed of the exponential decay of the noise distance.
    """

    algorithm_name = "Polynomial Fuzzifier Function FCM Clustering Algorithm with Noise Cluster"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            beta: float = DEFAULT_BETA,
            noise_distance: float = DEFAULT_NOISE_DISTANCE,
            degrading_noise_distance: Optional[float] = None,
            noise_degradation_factor: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, beta=beta, **params)
        self._init_noise(noise_distance, degrading_noise_distance, noise_degradation_factor)

    def _memberships_with_noise(self, x: Any, noise_distance: float):
        indices = self._active_indices()
        return self._polynomial_memberships(self._distances_sq(x, indices), indices, noise_distance * noise_distance)

    def _objective_of(self, x: Any, noise_distance: float) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        noise_dist_sq = noise_distance * noise_distance
        u, noise_u = self._polynomial_memberships(dist_sq, indices, noise_dist_sq)
        return float(np.dot(self._h(u[indices]), dist_sq) + self._h(noise_u) * noise_dist_sq)
