"""
Distance Adapted Fuzzy c-Means.

In high-dimensional data all distances concentrate around their mean, which
drives FCM towards equal memberships everywhere. This variant shifts the
squared distances of every prototype by a dynamic offset computed from the
distribution of its distances to the whole data set:

    offset_i = max(0, mean_j d(x_j, p_i) - k * std_j d(x_j, p_i))^2
    d'_ij = max(0, d(x_j, p_i)^2 - offset_i)

and applies the FCM kernel to d'. Objects whose shifted distance drops to 0
share their membership among those prototypes only.

Optionally prototypes that come closer than ``merging_distance`` to another
active prototype are merged (deactivated) after each iteration, and
prototypes whose total membership stays below ``min_membership_value_sum``
are deactivated at the end of ``apply``.

References
----------
[1] Winkler, R., Klawonn, F., Kruse, R., "Fuzzy c-means in high dimensional
    spaces", 2011, International Journal of Fuzzy System Applications, 1(1),
    pp. 1-16.
[2] Aggarwal, C.C., Hinneburg, A., Keim, D.A., "On the surprising behavior of
    distance metrics in high dimensional space", 2001, ICDT, LNCS 1973,
    pp. 420-434.
"""

from typing import Any, Optional

import numpy as np

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataSet
from structures.ball_tree import BallTree
from utils.logging_utils import log_info

from .base import DEFAULT_NOISE_DISTANCE, NoiseClusteringMixin
from .fuzzy_c_means import DEFAULT_FUZZIFIER, FuzzyCMeans

DEFAULT_DISTANCE_CORRECTION = 3.0
BALL_TREE_MERGE_THRESHOLD = 100


class DistAdaptedFCM(FuzzyCMeans):
    """
    Fuzzy c-Means with dynamically corrected distances.

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
    distance_correction : float, default=3.0
        The factor k of the standard deviation in the offset. Must be >= 0.
    merge_prototypes : bool, default=False
        Deactivate prototypes that come too close to another one.
    merging_distance : float, default=0.0
        Distance below which two active prototypes are merged.
    remove_empty_prototypes : bool, default=False
        Deactivate weak prototypes after ``apply``.
    min_membership_value_sum : float, default=0.0
        Membership sum below which a prototype counts as empty.
    """

    algorithm_name = "Distance Adapted Fuzzy c-Means Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            fuzzifier: float = DEFAULT_FUZZIFIER,
            distance_correction: float = DEFAULT_DISTANCE_CORRECTION,
            merge_prototypes: bool = False,
            merging_distance: float = 0.0,
            remove_empty_prototypes: bool = False,
            min_membership_value_sum: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, fuzzifier=fuzzifier, **params)
        self.distance_correction = distance_correction
        self.merge_prototypes = merge_prototypes
        self.merging_distance = merging_distance
        self.remove_empty_prototypes = remove_empty_prototypes
        self.min_membership_value_sum = min_membership_value_sum

    @property
    def distance_correction(self) -> float:
        return self._distance_correction

    @distance_correction.setter
    def distance_correction(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"The distance correction parameter must not be negative. Specified value: {value}")
        self._distance_correction = float(value)

    @property
    def merging_distance(self) -> float:
        return self._merging_distance

    @merging_distance.setter
    def merging_distance(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"The merging distance must not be negative. Specified merging distance: {value}")
        self._merging_distance = float(value)

    @property
    def min_membership_value_sum(self) -> float:
        return self._min_membership_value_sum

    @min_membership_value_sum.setter
    def min_membership_value_sum(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"The minimal membership value sum must not be negative. Specified value: {value}")
        self._min_membership_value_sum = float(value)

    # ------------------------------------------------------------------
    # Distance correction
    # ------------------------------------------------------------------
    def distance_corrections(self) -> np.ndarray:
        """
        Squared offsets of all prototypes for their current positions
        (0 for inactive prototypes).
        """
        corrections = np.zeros(self.cluster_count)
        for i in self._active_indices():
            position = self.prototypes[i].position
            distances = np.array([self.metric.distance(obj.x, position) for obj in self.data_set])
            spread = distances.std(ddof=1) if len(distances) > 1 else 0.0
            offset = max(distances.mean() - self._distance_correction * spread, 0.0)
            corrections[i] = offset * offset
        return corrections

    def _corrected_distances_sq(self, x: Any, indices: np.ndarray, corrections: np.ndarray) -> np.ndarray:
        return np.maximum(self._distances_sq(x, indices) - corrections[indices], 0.0)

    def _membership_context(self, t: Optional[int] = None) -> Any:
        return self.distance_corrections()

    def _memberships(self, x: Any, corrections: np.ndarray) -> np.ndarray:
        indices = self._active_indices()
        return self._fcm_memberships(self._corrected_distances_sq(x, indices, corrections), indices)[0]

    def _objective_of(self, x: Any, corrections: np.ndarray) -> float:
        indices = self._active_indices()
        dist_sq = self._corrected_distances_sq(x, indices, corrections)
        u = self._fcm_memberships(dist_sq, indices)[0]
        return float(np.dot(u[indices] ** self._fuzzifier, dist_sq))

    # ------------------------------------------------------------------
    # Prototype merging and removal
    # ------------------------------------------------------------------
    def _after_prototype_update(self) -> bool:
        if not self.merge_prototypes:
            return False
        return self.merge_close_prototypes() > 0

    def merge_close_prototypes(self) -> int:
        """
        Walks the active prototypes in index order and deactivates every other
        active prototype closer than ``merging_distance`` to the current one.

        Returns
        -------
        int
            Number of deactivated prototypes.
        """
        indices = self._active_indices()
        merged = 0
        if len(indices) < BALL_TREE_MERGE_THRESHOLD:
            limit = self._merging_distance * self._merging_distance
            for a, i in enumerate(indices):
                if not self.prototypes[i].activated:
                    continue
                for j in indices[a + 1:]:
                    other = self.prototypes[j]
                    if other.activated and self.metric.distance_sq(self.prototypes[i].position, other.position) < limit:
                        other.activated = False
                        merged += 1
        else:
            positions = IndexedDataSet(self.prototypes[i].position for i in indices)
            positions.seal()
            tree = BallTree(positions, self.metric)
            tree.build()
            for i in indices:
                if not self.prototypes[i].activated:
                    continue
                for close in tree.sphere_query(self.prototypes[i].position, self._merging_distance):
                    other = self.prototypes[indices[close.id]]
                    if other is not self.prototypes[i] and other.activated:
                        other.activated = False
                        merged += 1

        if merged:
            log_info("prototypes merged", algorithm=self.algorithm_name, merged=merged,
                     active=self.active_cluster_count)
        return merged

    def remove_weak_prototypes(self) -> int:
        """Deactivates active prototypes whose membership sum is below ``min_membership_value_sum``."""
        sums = self.fuzzy_assignment_sums()
        removed = 0
        for i in self._active_indices():
            if sums[i] < self._min_membership_value_sum:
                self.prototypes[i].activated = False
                removed += 1
        if removed:
            log_info("prototypes removed", algorithm=self.algorithm_name, removed=removed,
                     active=self.active_cluster_count)
        return removed

    def _after_apply(self) -> None:
        if self.remove_empty_prototypes:
            self.remove_weak_prototypes()


class DistAdaptedFCMNoise(NoiseClusteringMixin, DistAdaptedFCM):
    """
    Distance adapted Fuzzy c-Means with a noise cluster.

    Takes the parameters of ``DistAdaptedFCM`` plus ``noise_distance``,
    ``degrading_noise_distance`` and ``noise_degradation_factor``. The noise
    distance is compared with the corrected distances.
    """

    algorithm_name = "Distance Adapted Fuzzy c-Means Clustering Algorithm with Noise Cluster"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            noise_distance: float = DEFAULT_NOISE_DISTANCE,
            degrading_noise_distance: Optional[float] = None,
            noise_degradation_factor: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, **params)
        self._init_noise(noise_distance, degrading_noise_distance, noise_degradation_factor)

    def _membership_context(self, t: Optional[int] = None) -> Any:
        return self.distance_corrections(), self.noise_distance_at(t)

    def _memberships_with_noise(self, x: Any, context: Any):
        corrections, noise_distance = context
        indices = self._active_indices()
        dist_sq = self._corrected_distances_sq(x, indices, corrections)
        return self._fcm_memberships(dist_sq, indices, noise_distance * noise_distance)

    def _objective_of(self, x: Any, context: Any) -> float:
        corrections, noise_distance = context
        indices = self._active_indices()
        dist_sq = self._corrected_distances_sq(x, indices, corrections)
        noise_dist_sq = noise_distance * noise_distance
        u, noise_u = self._fcm_memberships(dist_sq, indices, noise_dist_sq)
        return float(np.dot(u[indices] ** self._fuzzifier, dist_sq) + noise_u ** self._fuzzifier * noise_dist_sq)
