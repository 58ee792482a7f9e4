"""
Ball trees for sphere and k-nearest-neighbour queries.

A ball tree is a binary tree in which every node bounds all data objects of
its subtree by a ball around a representative point. Queries prune every
subtree whose ball cannot intersect the query region.

``BallTree`` uses the node's own data object as representative and is built
by successive insertion: a new object walks down from the root towards the
nearer child until a free child slot is found, widening the radius of every
node it passes. ``CenteredBallTree`` uses the center of gravity of the
subtree as representative, giving tighter balls; it is built top-down by
splitting the objects of a node between the first two distinct objects.

References
----------
[1] Omohundro, S.M., "Five balltree construction algorithms", 1989,
    Technical Report TR-89-063, International Computer Science Institute.
[2] Moore, A.W., "The anchors hierarchy: Using the triangle inequality to
    survive high dimensional data", 2000, UAI, pp. 397-405.
"""

import heapq
import itertools
import math
from typing import Any, List, Optional

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataObject, IndexedDataSet

from .tree import BinaryTree, TreeNode


class BallTree(BinaryTree):
    """
    Ball tree with the node objects as representatives.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to index.
    metric : Metric
        Distance measure used for building and querying.
    """

    def __init__(self, data_set: IndexedDataSet, metric: Metric):
        super().__init__(data_set)
        self.metric = metric

    def _build_nodes(self) -> None:
        objects = iter(self.data_set)
        root = self._create_node(next(objects))
        for obj in objects:
            self._insert(root, obj)

    def _insert(self, root: TreeNode, obj: IndexedDataObject) -> None:
        node = root
        while True:
            distance = self.metric.distance(node.obj.x, obj.x)
            if distance <= 0.0:
                self._add_equivalent(node, obj)
                return
            node.radius = max(node.radius, distance)
            if node.left is None:
                node.left = self._create_node(obj, node)
                return
            if node.right is None:
                node.right = self._create_node(obj, node)
                return
            left_distance = self.metric.distance(node.left.obj.x, obj.x)
            right_distance = self.metric.distance(node.right.obj.x, obj.x)
            node = node.left if left_distance <= right_distance else node.right

    def representative(self, node: TreeNode) -> Any:
        """The point the ball of ``node`` is centered at."""
        return node.obj.x

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def sphere_query(self, center: Any, radius: float) -> List[IndexedDataObject]:
        """
        All data objects with a distance smaller than ``radius`` to ``center``.

        Parameters
        ----------
        center : Any
            Query point.
        radius : float
            Query radius.

        Returns
        -------
        List[IndexedDataObject]
            Matching objects in no particular order.
        """
        self._check_built()
        result: List[IndexedDataObject] = []
        if self._root is None:
            return result

        stack = [self._root]
        while stack:
            node = stack.pop()
            distance = self.metric.distance(self.representative(node), center)
            if distance > radius + node.radius:
                continue
            if distance + node.radius < radius:
                result.extend(node.subtree_elements())
                continue
            if self.metric.distance(node.obj.x, center) < radius:
                result.extend(node.own_elements())
            stack.extend(node.children())
        return result

    def knn_query(self, center: Any, k: int) -> List[IndexedDataObject]:
        """
        The ``k`` data objects closest to ``center``, nearest first.

        Fewer objects are returned if the tree holds less than ``k``.
        """
        if k < 1:
            raise ValueError(f"k must be at least 1. Specified k: {k}")
        self._check_built()
        if self._root is None:
            return []

        # max-heap of the best k candidates as (-distance, tiebreak, object)
        best = []
        tiebreak = itertools.count()

        def worst() -> float:
            return -best[0][0] if len(best) == k else math.inf

        stack = [(self.metric.distance(self.representative(self._root), center), self._root)]
        while stack:
            distance, node = stack.pop()
            if distance - node.radius >= worst():
                continue
            obj_distance = self.metric.distance(node.obj.x, center)
            for obj in node.own_elements():
                if obj_distance < worst():
                    entry = (-obj_distance, next(tiebreak), obj)
                    if len(best) < k:
                        heapq.heappush(best, entry)
                    else:
                        heapq.heapreplace(best, entry)

            children = [(self.metric.distance(self.representative(child), center), child)
                        for child in node.children()]
            # nearer child on top of the stack
            children.sort(key=lambda item: item[0], reverse=True)
            stack.extend(children)

        return [obj for _, _, obj in sorted(best, key=lambda entry: (-entry[0], entry[1]))]


class CenteredBallTreeNode(TreeNode):
    """Ball tree node that also knows the center of gravity of its subtree."""

    def __init__(self, tree: "CenteredBallTree", obj: IndexedDataObject, parent: Optional[TreeNode] = None):
        super().__init__(tree, obj, parent)
        self.center = None


class CenteredBallTree(BallTree):
    """
    Ball tree whose balls are centered at the subtree's center of gravity.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to index.
    vs : VectorSpace
        Algebra used to compute the centers of gravity.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    """

    def __init__(self, data_set: IndexedDataSet, vs: VectorSpace, metric: Optional[Metric] = None):
        if metric is None:
            if not isinstance(vs, Metric):
                raise ValueError("A metric is required when the vector space does not provide one.")
            metric = vs
        super().__init__(data_set, metric)
        self.vs = vs

    def _create_node(self, obj: IndexedDataObject, parent: Optional[TreeNode] = None) -> CenteredBallTreeNode:
        node = CenteredBallTreeNode(self, obj, parent)
        self._register(node)
        return node

    def representative(self, node: CenteredBallTreeNode) -> Any:
        return node.center

    def _build_nodes(self) -> None:
        objects = list(self.data_set)
        pending = [(self._create_node(objects[0]), objects[1:])]
        while pending:
            node, others = pending.pop()
            left_objects, right_objects = self._split(node, others)
            if left_objects:
                node.left = self._create_node(left_objects[0], node)
                pending.append((node.left, left_objects[1:]))
            if right_objects:
                node.right = self._create_node(right_objects[0], node)
                pending.append((node.right, right_objects[1:]))

    def _split(self, node: CenteredBallTreeNode, others: List[IndexedDataObject]):
        """
        Computes center and radius of ``node`` from its object and ``others``
        and distributes ``others`` onto the two children. The first object of
        each returned list becomes the child's node object.
        """
        # 1. Center of gravity, collecting equivalents
        center = self.vs.copy_new(node.obj.x)
        left: List[IndexedDataObject] = []
        right: List[IndexedDataObject] = []
        for obj in others:
            self.vs.add(center, obj.x)
            if self.metric.distance(node.obj.x, obj.x) <= 0.0:
                self._add_equivalent(node, obj)
            elif not left:
                left.append(obj)
            elif not right:
                if self.metric.distance(left[0].x, obj.x) <= 0.0:
                    left.append(obj)
                else:
                    right.append(obj)
            else:
                left_distance = self.metric.distance(left[0].x, obj.x)
                right_distance = self.metric.distance(right[0].x, obj.x)
                (left if left_distance <= right_distance else right).append(obj)
        self.vs.mul(center, 1.0 / (1 + len(others)))
        node.center = center

        # 2. Radius around the center
        radius_sq = self.metric.distance_sq(center, node.obj.x)
        for obj in others:
            radius_sq = max(radius_sq, self.metric.distance_sq(center, obj.x))
        node.radius = math.sqrt(radius_sq)

        return left, right
