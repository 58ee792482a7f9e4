"""
Rewarding Crisp Memberships Fuzzy c-Means.

FCM with m = 2 assigns every object a positive membership to every prototype.
This variant rewards crisp memberships by subtracting a fraction of the
smallest squared distance of an object from all of its squared distances,

    d'_ij = d_ij - a * min_k d_kj,    u_ij = (1 / d'_ij) / sum_k (1 / d'_kj),

with the distance multiplier constant ``a`` in [0, 1]. The objective gets the
corresponding reward term

    J = sum_j sum_i u_ij^2 d_ij - a * min_k d_kj * (u_ij - 1/2)^2.

References
----------
[1] Hoeppner, F., Klawonn, F., "Improved fuzzy partitions for fuzzy
    regression models", 2003, International Journal of Approximate
    Reasoning, 32(2-3), pp. 85-102.
[2] Winkler, R., Klawonn, F., Kruse, R., "Problems of fuzzy c-means
    clustering and similar algorithms with high dimensional data sets",
    2012, Challenges at the Interface of Data Analysis, Computer Science,
    and Optimization, pp. 79-87.
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

DEFAULT_DISTANCE_MULTIPLIER = 0.5


class RewardingCrispFCM(FuzzyPrototypeClusteringAlgorithm):
    """
    Fuzzy c-Means with rewarded crisp memberships.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    distance_multiplier_constant : float, default=0.5
        Fraction of the smallest squared distance that is subtracted, in [0, 1].
    use_half_sum_optimization : bool, default=False
        Include the derivative of the reward term in the prototype update:
        the nearest prototype of every object loses the weight
        ``a * sum_i (u_ij - 1/2)^2``.
    """

    algorithm_name = "Rewarding Crisp Memberships Fuzzy c-Means Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            distance_multiplier_constant: float = DEFAULT_DISTANCE_MULTIPLIER,
            use_half_sum_optimization: bool = False,
            **params
    ):
        super().__init__(data_set, vs, metric, **params)
        self.distance_multiplier_constant = distance_multiplier_constant
        self.use_half_sum_optimization = use_half_sum_optimization

    @property
    def distance_multiplier_constant(self) -> float:
        return self._distance_multiplier_constant

    @distance_multiplier_constant.setter
    def distance_multiplier_constant(self, value: float) -> None:
        if value < 0.0 or value > 1.0:
            raise ValueError(f"The distance multiplier constant must be in [0, 1]. Specified value: {value}")
        self._distance_multiplier_constant = float(value)

    def _shifted_kernel(self, shifted: np.ndarray, indices: np.ndarray, noise_shifted: Optional[float] = None):
        """
        Inverse shifted distance kernel. Prototypes whose shifted distance is
        not positive (or whose inverse overflows) share the full membership.

        Returns ``(u, noise_membership)``.
        """
        u = np.zeros(self.cluster_count)
        if len(indices) == 0:
            return u, (0.0 if noise_shifted is None else 1.0)

        zero = shifted <= 0.0
        if not zero.any():
            with np.errstate(divide="ignore", over="ignore"):
                inverse = 1.0 / shifted
            zero = np.isinf(inverse)
        if zero.any():
            u[indices[zero]] = 1.0 / np.count_nonzero(zero)
            return u, 0.0

        total = inverse.sum()
        noise_inverse = 0.0
        if noise_shifted is not None:
            if noise_shifted <= 0.0:
                return u, 1.0
            noise_inverse = 1.0 / noise_shifted
            if np.isinf(noise_inverse):
                return u, 1.0
            total += noise_inverse
        u[indices] = inverse / total
        return u, noise_inverse / total

    def _reward_offset(self, dist_sq: np.ndarray) -> float:
        return self._distance_multiplier_constant * dist_sq.min() if len(dist_sq) else 0.0

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        return self._shifted_kernel(dist_sq - self._reward_offset(dist_sq), indices)[0]

    def _prototype_weights(self, u: np.ndarray) -> np.ndarray:
        weights = u * u
        if self.use_half_sum_optimization:
            indices = self._active_indices()
            if len(indices):
                nearest = indices[np.argmax(u[indices])]
                weights[nearest] -= self._distance_multiplier_constant * np.sum((u[indices] - 0.5) ** 2)
        return weights

    def _objective_of(self, x: Any, context: Any) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        if len(dist_sq) == 0 or dist_sq.min() <= 0.0:
            return 0.0
        offset = self._reward_offset(dist_sq)
        u = self._shifted_kernel(dist_sq - offset, indices)[0][indices]
        return float(np.sum(u * u * dist_sq - offset * (u - 0.5) ** 2))


class RewardingCrispFCMNoise(NoiseClusteringMixin, RewardingCrispFCM):
    """
    Rewarding crisp memberships FCM with a noise cluster.

    The subtracted minimum is capped at the squared noise distance, so the
    shifted noise distance stays non-negative. The half sum optimization is
    not used by this variant.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    distance_multiplier_constant : float, default=0.5
        Fraction of the smallest squared distance that is subtracted, in [0, 1].
    noise_distance : float, default=0.1*sqrt(max float)
        Distance of the noise cluster. Must be > 0.
    degrading_noise_distance : float, optional
        Starting noise distance of every ``apply`` call.
    noise_degradation_factor : float, default=0.0
        Speed of the exponential decay of the noise distance.
    """

    algorithm_name = "Rewarding Crisp Memberships Fuzzy c-Means Clustering Algorithm with Noise Cluster"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            distance_multiplier_constant: float = DEFAULT_DISTANCE_MULTIPLIER,
            noise_distance: float = DEFAULT_NOISE_DISTANCE,
            degrading_noise_distance: Optional[float] = None,
            noise_degradation_factor: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, distance_multiplier_constant=distance_multiplier_constant, **params)
        self._init_noise(noise_distance, degrading_noise_distance, noise_degradation_factor)

    def _noise_offset(self, dist_sq: np.ndarray, noise_dist_sq: float) -> float:
        smallest = min(dist_sq.min(), noise_dist_sq) if len(dist_sq) else noise_dist_sq
        return self._distance_multiplier_constant * smallest

    def _memberships_with_noise(self, x: Any, noise_distance: float):
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        noise_dist_sq = noise_distance * noise_distance
        offset = self._noise_offset(dist_sq, noise_dist_sq)
        return self._shifted_kernel(dist_sq - offset, indices, noise_dist_sq - offset)

    def _prototype_weights(self, u: np.ndarray) -> np.ndarray:
        return u * u

    def _objective_of(self, x: Any, noise_distance: float) -> float:
        indices = self._active_indices()
        dist_sq = self._distances_sq(x, indices)
        noise_dist_sq = noise_distance * noise_distance
        offset = self._noise_offset(dist_sq, noise_dist_sq)
        u, noise_u = self._shifted_kernel(dist_sq - offset, indices, noise_dist_sq - offset)
        u = u[indices]
        return float(np.sum(u * u * (dist_sq - offset)) + noise_u * noise_u * (noise_dist_sq - offset))
