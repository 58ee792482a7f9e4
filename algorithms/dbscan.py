"""
Density Based Spatial Clustering of Applications with Noise (DBSCAN).

A data object is a core object if at least ``core_count`` objects (itself
included) lie closer than ``core_distance`` to it. Clusters are the maximal
sets of objects reachable from a core object through chains of core objects;
objects reachable from no core object are noise. The number of clusters is
not given in advance and there are no prototypes, so DBSCAN only needs a
metric on the data, never a vector space.

Neighbourhoods are found through sphere queries on a ball tree that is built
on the first ``apply`` unless one is supplied.

References
----------
[1] Ester, M., Kriegel, H.-P., Sander, J., Xu, X., "A density-based algorithm
    for discovering clusters in large spatial databases with noise", 1996,
    Proc. 2nd Int. Conf. on Knowledge Discovery and Data Mining, pp. 226-231.
"""

from typing import List, Optional

import numpy as np

from algebra.contracts import Metric
from data.dataset import IndexedDataObject, IndexedDataSet
from structures.ball_tree import BallTree
from utils.exceptions import AlgorithmNotInitializedError, DataSetNotSealedError
from utils.logging_utils import log_debug, log_info

from .base import UNASSIGNED_INDEX

NOISE_INDEX = -1
DEFAULT_CORE_DISTANCE = 1.0
DEFAULT_CORE_COUNT = 4

# label of objects not visited yet during apply
_UNVISITED = -2


class DBScan:
    """
    DBSCAN over an arbitrary metric.

    Parameters
    ----------
    data_set : IndexedDataSet
        The data to cluster. Must be sealed.
    metric : Metric
        Distance between data objects.
    core_distance : float, default=1.0
        Radius of the neighbourhood of an object. Must be > 0.
    core_count : int, default=4
        Minimal neighbourhood size of a core object. Must be >= 1.
    tree : BallTree, optional
        Built ball tree over ``data_set`` answering the neighbourhood queries.
    """

    algorithm_name = "DBSCAN"

    def __init__(
            self,
            data_set: IndexedDataSet,
            metric: Metric,
            core_distance: float = DEFAULT_CORE_DISTANCE,
            core_count: int = DEFAULT_CORE_COUNT,
            tree: Optional[BallTree] = None
    ):
        if not data_set.is_sealed:
            raise DataSetNotSealedError()
        if tree is not None and tree.data_set is not data_set:
            raise ValueError("The ball tree must index the clustered data set.")

        self.data_set = data_set
        self.metric = metric
        self.core_distance = core_distance
        self.core_count = core_count
        self.tree = tree

        self._labels = np.full(len(data_set), _UNVISITED, dtype=int)
        self._cluster_count = 0
        self.applied = False

    @property
    def core_distance(self) -> float:
        return self._core_distance

    @core_distance.setter
    def core_distance(self, value: float) -> None:
        if not value > 0.0:
            raise ValueError(f"The core distance must be larger than 0. Specified core distance: {value}")
        self._core_distance = float(value)

    @property
    def core_count(self) -> int:
        return self._core_count

    @core_count.setter
    def core_count(self, value: int) -> None:
        if value < 1:
            raise ValueError(f"The core count must be at least 1. Specified core count: {value}")
        self._core_count = int(value)

    def _neighbourhood(self, obj: IndexedDataObject) -> List[IndexedDataObject]:
        return self.tree.sphere_query(obj.x, self._core_distance)

    def apply(self) -> None:
        """Clusters the whole data set, discarding the result of earlier calls."""
        if self.tree is None:
            self.tree = BallTree(self.data_set, self.metric)
        if not self.tree.is_built:
            self.tree.build()

        labels = np.full(len(self.data_set), _UNVISITED, dtype=int)
        cluster_count = 0

        for obj in self.data_set:
            if labels[obj.id] != _UNVISITED:
                continue
            neighbours = self._neighbourhood(obj)
            if len(neighbours) < self._core_count:
                labels[obj.id] = NOISE_INDEX
                continue

            cluster = cluster_count
            cluster_count += 1
            frontier = []
            for other in neighbours:
                if labels[other.id] == _UNVISITED and other.id != obj.id:
                    frontier.append(other)
                labels[other.id] = cluster

            while frontier:
                current = frontier.pop()
                reachable = self._neighbourhood(current)
                if len(reachable) < self._core_count:
                    continue
                for other in reachable:
                    if labels[other.id] == _UNVISITED:
                        frontier.append(other)
                        labels[other.id] = cluster
                    elif labels[other.id] == NOISE_INDEX:
                        labels[other.id] = cluster

            log_debug("cluster expanded", algorithm=self.algorithm_name, cluster=cluster,
                      size=int(np.count_nonzero(labels == cluster)))

        self._labels = labels
        self._cluster_count = cluster_count
        self.applied = True
        log_info(
            "apply finished",
            algorithm=self.algorithm_name,
            clusters=cluster_count,
            noise=int(np.count_nonzero(labels == NOISE_INDEX)),
        )

    def _check_applied(self) -> None:
        if not self.applied:
            raise AlgorithmNotInitializedError("DBSCAN has not been applied yet.")

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    @property
    def cluster_count(self) -> int:
        self._check_applied()
        return self._cluster_count

    @property
    def active_cluster_count(self) -> int:
        return self.cluster_count

    @property
    def inactive_cluster_count(self) -> int:
        return 0

    @property
    def data_count(self) -> int:
        return len(self.data_set)

    def crisp_cluster_assignment_of(self, obj: IndexedDataObject) -> int:
        """Cluster index of ``obj``, ``-1`` for noise."""
        self._check_applied()
        label = int(self._labels[obj.id])
        return label if label >= 0 else UNASSIGNED_INDEX

    def all_crisp_cluster_assignments(self) -> np.ndarray:
        """Cluster index per object in ID order, ``-1`` for noise."""
        self._check_applied()
        labels = self._labels.copy()
        labels[labels < 0] = UNASSIGNED_INDEX
        return labels

    def is_crisp_noise_assigned(self, obj: IndexedDataObject) -> bool:
        self._check_applied()
        return bool(self._labels[obj.id] < 0)

    def crisp_noise_assignments(self) -> np.ndarray:
        """Boolean noise mask in ID order."""
        self._check_applied()
        return self._labels < 0

    def __repr__(self):
        return (f"DBScan(data={self.data_count}, core_distance={self._core_distance}, "
                f"core_count={self._core_count})")
