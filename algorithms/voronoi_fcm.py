"""
Voronoi Partition Fuzzy c-Means.

FCM variant that gives an object membership only to the prototypes whose
Voronoi cell borders are not shadowed by a closer prototype. Prototypes are
visited in ascending order of their distance to the object; with
``r_i = p_i - x`` a prototype s is excluded if an already included prototype
i satisfies

    <r_i, r_s> > <r_i, r_i>,

i.e. s lies behind the perpendicular bisector plane of x and p_i as seen from
x. The FCM kernel is then evaluated on the included prototypes only, all
others receive a membership of exactly 0. Requires an algebra with a scalar
product.

References
----------
[1] Winkler, R., Klawonn, F., Kruse, R., "Fuzzy clustering with polynomial
    fuzzifier function in connection with M-estimators", 2011, Applied and
    Computational Mathematics, 10(1), pp. 146-163.
[2] Winkler, R., Klawonn, F., Kruse, R., "Problems of fuzzy c-means
    clustering and similar algorithms with high dimensional data sets",
    2012, Challenges at the Interface of Data Analysis, Computer Science,
    and Optimization, pp. 79-87.
"""

from typing import Any, List, Optional

import numpy as np

from algebra.contracts import Metric, ScalarProduct, VectorSpace
from data.dataset import IndexedDataSet

from .base import DEFAULT_NOISE_DISTANCE, NoiseClusteringMixin
from .fuzzy_c_means import DEFAULT_FUZZIFIER, FuzzyCMeans


class VoronoiPartitionFCM(FuzzyCMeans):
    """
    Fuzzy c-Means restricted to the Voronoi neighbourhood of each object.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure for prototype movement, defaults to ``vs``.
    scalar_product : ScalarProduct, optional
        Scalar product used for the distances and the exclusion test,
        defaults to ``vs``.
    fuzzifier : float, default=2.0
        The weighting exponent m. Must be > 1.
    """

    algorithm_name = "Voronoi Partition Fuzzy c-Means Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            scalar_product: Optional[ScalarProduct] = None,
            fuzzifier: float = DEFAULT_FUZZIFIER,
            **params
    ):
        if scalar_product is None:
            if not isinstance(vs, ScalarProduct):
                raise ValueError("A scalar product is required when the vector space does not provide one.")
            scalar_product = vs
        super().__init__(data_set, vs, metric, fuzzifier=fuzzifier, **params)
        self.scalar_product = scalar_product

    @classmethod
    def from_algorithm(cls, other, use_only_active_prototypes: bool = False, **params):
        if "scalar_product" not in params and isinstance(getattr(other, "scalar_product", None), ScalarProduct):
            params["scalar_product"] = other.scalar_product
        return super().from_algorithm(other, use_only_active_prototypes, **params)

    def _voronoi_neighbours(self, x: Any, indices: np.ndarray):
        """
        Returns the squared distances of the active prototypes and a boolean
        mask of the prototypes that survive the exclusion test.
        """
        relative: List[Any] = []
        dist_sq = np.empty(len(indices))
        for a, i in enumerate(indices):
            r = self.vs.sub_new(self.prototypes[i].position, x)
            relative.append(r)
            dist_sq[a] = self.scalar_product.length_sq(r)

        included = np.zeros(len(indices), dtype=bool)
        if (dist_sq <= 0.0).any():
            return dist_sq, included

        kept: List[int] = []
        for s in np.argsort(dist_sq, kind="stable"):
            if all(self.scalar_product.scalar_product(relative[k], relative[s]) <= dist_sq[k] for k in kept):
                kept.append(s)
                included[s] = True
        return dist_sq, included

    def _voronoi_memberships(self, x: Any, noise_dist_sq: Optional[float] = None):
        indices = self._active_indices()
        dist_sq, included = self._voronoi_neighbours(x, indices)
        if not included.any():
            # coincident prototypes are handled by the kernel
            return self._fcm_memberships(dist_sq, indices, noise_dist_sq), dist_sq, indices
        return self._fcm_memberships(dist_sq[included], indices[included], noise_dist_sq), dist_sq, indices

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        return self._voronoi_memberships(x)[0][0]

    def _objective_of(self, x: Any, context: Any) -> float:
        (u, _), dist_sq, indices = self._voronoi_memberships(x)
        return float(np.dot(u[indices] ** self._fuzzifier, dist_sq))


class VoronoiPartitionFCMNoise(NoiseClusteringMixin, VoronoiPartitionFCM):
    """
    Voronoi partition FCM with a noise cluster.

    The noise cluster is never excluded; it joins the kernel after the
    Voronoi pruning.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure for prototype movement, defaults to ``vs``.
    scalar_product : ScalarProduct, optional
        Scalar product, defaults to ``vs``.
    noise_distance : float, default=0.1*sqrt(max float)
        Distance of the noise cluster. Must be > 0.
    degrading_noise_distance : float, optional
        Starting noise distance of every ``apply`` call.
    noise_degradation_factor : float, default=0.0
        Speed of the exponential decay of the noise distance.
    """

    algorithm_name = "Voronoi Partition Fuzzy c-Means Clustering Algorithm with Noise Cluster"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            scalar_product: Optional[ScalarProduct] = None,
            noise_distance: float = DEFAULT_NOISE_DISTANCE,
            degrading_noise_distance: Optional[float] = None,
            noise_degradation_factor: float = 0.0,
            **params
    ):
        super().__init__(data_set, vs, metric, scalar_product=scalar_product, **params)
        self._init_noise(noise_distance, degrading_noise_distance, noise_degradation_factor)

    def _memberships_with_noise(self, x: Any, noise_distance: float):
        return self._voronoi_memberships(x, noise_distance * noise_distance)[0]

    def _objective_of(self, x: Any, noise_distance: float) -> float:
        noise_dist_sq = noise_distance * noise_distance
        (u, noise_u), dist_sq, indices = self._voronoi_memberships(x, noise_dist_sq)
        m = self._fuzzifier
        return float(np.dot(u[indices] ** m, dist_sq) + noise_u ** m * noise_dist_sq)
