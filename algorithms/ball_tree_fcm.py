"""
Ball Tree accelerated Fuzzy c-Means.

Instead of evaluating the membership of every data object in every
iteration, the data is organized in a centered ball tree and the tree is
traversed top-down. At each node the membership values any object inside
the node's ball could take are bounded per prototype by an interval
[u_min, u_max], using the distances d_k of the prototypes to the ball center
and the ball radius r:

    u_min(i) = 1 / (1 + sum_{k != i} ((d_k - r) / (d_i + r))^(2/(1-m)))
    u_max(i) = 1 / (1 + sum_{k != i} ((d_k + r) / (d_i - r))^(2/(1-m)))

with u_min = 0 if another prototype lies inside the ball and u_max = 1 if
prototype i does. A prototype whose interval is shorter than
``maximal_interval_length`` takes the whole subtree as ``size`` copies of the
center of gravity weighted with the membership of the center. All other
prototypes take the node's own objects exactly and continue into the
children. A length of 0 reproduces standard FCM.

References
----------
[1] Hoeppner, F., "Speeding up fuzzy c-means: using a hierarchical data
    organisation to control the precision of membership calculation", 2002,
    Fuzzy Sets and Systems, 128(3), pp. 365-376.
[2] Moore, A.W., "The anchors hierarchy: Using the triangle inequality to
    survive high dimensional data", 2000, UAI, pp. 397-405.
"""

from typing import Any, List, Optional

import numpy as np

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataSet
from structures.ball_tree import CenteredBallTree, CenteredBallTreeNode

from .fuzzy_c_means import DEFAULT_FUZZIFIER, FuzzyCMeans

DEFAULT_MAXIMAL_INTERVAL_LENGTH = 0.1


class BallTreeFuzzyCMeans(FuzzyCMeans):
    """
    Fuzzy c-Means iterating over a centered ball tree.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster. The tree is built at construction.
    vs : VectorSpace
        Algebra of the data elements.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    fuzzifier : float, default=2.0
        The weighting exponent m. Must be > 1.
    maximal_interval_length : float, default=0.1
        Largest membership interval length for which a subtree is
        approximated by its center of gravity, in [0, 1].
    """

    algorithm_name = "Ball Tree Fuzzy c-Means Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            fuzzifier: float = DEFAULT_FUZZIFIER,
            maximal_interval_length: float = DEFAULT_MAXIMAL_INTERVAL_LENGTH,
            **params
    ):
        super().__init__(data_set, vs, metric, fuzzifier=fuzzifier, **params)
        self.maximal_interval_length = maximal_interval_length
        self.tree = CenteredBallTree(data_set, vs, self.metric)
        self.tree.build()

    @property
    def maximal_interval_length(self) -> float:
        return self._maximal_interval_length

    @maximal_interval_length.setter
    def maximal_interval_length(self, value: float) -> None:
        if value < 0.0 or value > 1.0:
            raise ValueError(f"The maximal membership interval length must be in [0, 1]. Specified value: {value}")
        self._maximal_interval_length = float(value)

    def membership_intervals(self, distances: np.ndarray, radius: float):
        """
        Bounds of the membership values of all points within ``radius`` of a
        center that has the (non-squared) ``distances`` to the prototypes.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            Lower and upper bounds per prototype.
        """
        exponent = 2.0 / (1.0 - self._fuzzifier)
        c = len(distances)
        inside = distances <= radius
        lower = np.zeros(c)
        upper = np.ones(c)
        for i in range(c):
            others = np.arange(c) != i
            with np.errstate(divide="ignore", over="ignore"):
                if not inside[others].any():
                    ratios = ((distances[others] - radius) / (distances[i] + radius)) ** exponent
                    lower[i] = 1.0 / (1.0 + np.sum(ratios))
                if not inside[i]:
                    ratios = ((distances[others] + radius) / (distances[i] - radius)) ** exponent
                    upper[i] = 1.0 / (1.0 + np.sum(ratios))
        return lower, upper

    def _add_weighted(self, positions: List[Any], weight_sums: np.ndarray, x: Any,
                      indices: np.ndarray, weights: np.ndarray) -> None:
        tmp = self.vs.get_new_add_neutral_element()
        for i, w in zip(indices, weights):
            if w <= 0.0:
                continue
            self.vs.copy(tmp, x)
            self.vs.mul(tmp, w)
            self.vs.add(positions[i], tmp)
            weight_sums[i] += w

    def _accumulate_node(self, node: CenteredBallTreeNode, pending: np.ndarray,
                         positions: List[Any], weight_sums: np.ndarray) -> np.ndarray:
        """
        Adds the contribution of ``node`` for the prototypes in ``pending``
        to the accumulators.

        Returns
        -------
        np.ndarray
            The prototypes that still need the children of ``node``.
        """
        m = self._fuzzifier
        active = self._active_indices()

        if not node.is_leaf:
            # 1. Resolve prototypes whose membership varies little within the ball
            distances = np.array([self.metric.distance(node.center, self.prototypes[i].position) for i in active])
            center_u = self._fcm_memberships(distances * distances, active)[0]
            lower, upper = self.membership_intervals(distances, node.radius)
            slot = np.searchsorted(active, pending)
            resolved = upper[slot] - lower[slot] <= self._maximal_interval_length
            done = pending[resolved]
            self._add_weighted(positions, weight_sums, node.center, done, node.size * center_u[done] ** m)
            pending = pending[~resolved]
            if len(pending) == 0:
                return pending

        # 2. The node's own objects, exactly
        own_u = self._fcm_memberships(self._distances_sq(node.obj.x, active), active)[0]
        count = 1 + len(node.equivalents)
        self._add_weighted(positions, weight_sums, node.obj.x, pending, count * own_u[pending] ** m)
        return pending

    def _iterate(self, t: int) -> bool:
        positions = self._new_scratch_positions()
        weight_sums = np.zeros(self.cluster_count)

        root = self.tree.root
        if root is not None:
            stack = [(root, self._active_indices())]
            while stack:
                node, pending = stack.pop()
                pending = self._accumulate_node(node, pending, positions, weight_sums)
                if len(pending):
                    stack.extend((child, pending) for child in node.children())

        max_movement = self._update_prototypes(positions, weight_sums)
        self._iteration_complete(max_movement)
        return self._has_converged(max_movement)
