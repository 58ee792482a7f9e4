"""
Hard c-Means (Lloyd's Algorithm).

Every data object is assigned to its nearest active prototype and every
prototype moves to the mean of its assigned objects. Iteration stops once an
iteration leaves all assignments unchanged (or the prototype movement drops
below epsilon).

References
----------
[1] MacQueen, J., "Some methods for classification and analysis of multivariate
    observations", 1967, Proc. 5th Berkeley Symp. Math. Stat. Prob., pp. 281-297.
[2] Lloyd, S.P., "Least squares quantization in PCM", 1982, IEEE Transactions
    on Information Theory, 28(2), pp. 129-137.
"""

from typing import Any

import numpy as np

from data.dataset import IndexedDataObject

from .base import UNASSIGNED_INDEX, PrototypeClusteringAlgorithm


class HardCMeans(PrototypeClusteringAlgorithm):
    """
    Hard c-Means over an arbitrary algebra.

    Takes the iteration parameters of ``PrototypeClusteringAlgorithm``.
    Crisp assignments are available right after initialization, are updated
    at the start of every iteration and once more when ``apply`` returns, so
    they always refer to the current prototype positions.
    """

    algorithm_name = "Hard c-Means Clustering Algorithm"

    def __init__(self, data_set, vs, metric=None, **params):
        super().__init__(data_set, vs, metric, **params)
        self._assignments = np.full(self.data_count, UNASSIGNED_INDEX, dtype=int)

    def _on_initialize(self) -> None:
        self._assignments = np.full(self.data_count, UNASSIGNED_INDEX, dtype=int)
        self._assign()

    def _nearest(self, x: Any):
        """Index and squared distance of the nearest active prototype, the first one on ties."""
        best_index = UNASSIGNED_INDEX
        best_dist_sq = np.inf
        for i in self._active_indices():
            dist_sq = self.metric.distance_sq(x, self.prototypes[i].position)
            if dist_sq < best_dist_sq:
                best_index, best_dist_sq = int(i), dist_sq
        return best_index, best_dist_sq

    def _assign(self) -> int:
        """Reassigns all objects and returns the number of changed assignments."""
        changed = 0
        for obj in self.data_set:
            index = self._nearest(obj.x)[0]
            if index != self._assignments[obj.id]:
                self._assignments[obj.id] = index
                changed += 1
        return changed

    def _iterate(self, t: int) -> bool:
        changed = self._assign()

        new_positions = self._new_scratch_positions()
        counts = np.zeros(self.cluster_count)
        for obj in self.data_set:
            i = self._assignments[obj.id]
            if i != UNASSIGNED_INDEX:
                self.vs.add(new_positions[i], obj.x)
                counts[i] += 1.0

        max_movement = self._update_prototypes(new_positions, counts)
        self._iteration_complete(max_movement)
        if self.iteration_count < self._min_iterations:
            return False
        return (t > 0 and changed == 0) or self._has_converged(max_movement)

    def _can_converge(self) -> bool:
        # stops once an iteration leaves all assignments unchanged
        return True

    def _after_apply(self) -> None:
        self._assign()

    def objective_function_value(self) -> float:
        """Sum of the squared distances of all objects to their nearest prototype."""
        self._check_initialized()
        total = 0.0
        for obj in self.data_set:
            index, dist_sq = self._nearest(obj.x)
            if index != UNASSIGNED_INDEX:
                total += dist_sq
        return total

    def crisp_cluster_assignment_of(self, obj: IndexedDataObject) -> int:
        self._check_initialized()
        return int(self._assignments[obj.id])

    def all_crisp_cluster_assignments(self) -> np.ndarray:
        """Cluster index per object in ID order, ``-1`` for objects without an active prototype."""
        self._check_initialized()
        return self._assignments.copy()
