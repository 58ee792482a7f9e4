"""
Binary tree bookkeeping shared by the spatial index structures.

Every node holds one data object (plus objects equal to it, the
"equivalents"), links to its parent and up to two children and knows the
number of data objects in its subtree, its depth below the root and its
height above the deepest leaf of its subtree. Nodes are numbered in the
order they are created, the root being node 0.
"""

from typing import Dict, List, Optional

import numpy as np

from data.dataset import IndexedDataObject, IndexedDataSet
from utils.exceptions import DataSetNotSealedError, DataStructureNotBuiltError


class TreeNode:
    """A node of a binary tree over data objects."""

    def __init__(self, tree: "BinaryTree", obj: IndexedDataObject, parent: Optional["TreeNode"] = None):
        self.tree = tree
        self.obj = obj
        self.parent = parent
        self.equivalents: List[IndexedDataObject] = []
        self.left: Optional["TreeNode"] = None
        self.right: Optional["TreeNode"] = None
        self.radius = 0.0
        self.size = 1
        self.depth = 0 if parent is None else parent.depth + 1
        self.height = 0
        self.node_id = -1

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def children(self) -> List["TreeNode"]:
        return [child for child in (self.left, self.right) if child is not None]

    def own_elements(self) -> List[IndexedDataObject]:
        """The node's object followed by its equivalents."""
        return [self.obj] + self.equivalents

    def subtree_elements(self) -> List[IndexedDataObject]:
        """All data objects stored in the subtree of this node."""
        elements = []
        stack = [self]
        while stack:
            node = stack.pop()
            elements.extend(node.own_elements())
            stack.extend(node.children())
        return elements

    def __repr__(self):
        return (f"{type(self).__name__}(id={self.node_id}, obj={self.obj.id}, size={self.size}, "
                f"depth={self.depth}, height={self.height}, radius={self.radius:.4g})")


class BinaryTree:
    """
    Base class of trees over the objects of a sealed data set.

    Subclasses implement ``_build_nodes`` which creates the nodes through
    ``_create_node`` and links them. Sizes and heights are derived afterwards.
    """

    def __init__(self, data_set: IndexedDataSet):
        if not data_set.is_sealed:
            raise DataSetNotSealedError()
        self.data_set = data_set
        self.nodes: List[TreeNode] = []
        self._root: Optional[TreeNode] = None
        self._node_of_obj: Dict[int, TreeNode] = {}
        self._built = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def build(self) -> None:
        """Builds the tree over all objects of the data set."""
        self.clear_build()
        if len(self.data_set) > 0:
            self._build_nodes()
            self._update_sizes_and_heights()
        self._built = True

    def _build_nodes(self) -> None:
        raise NotImplementedError

    def _create_node(self, obj: IndexedDataObject, parent: Optional[TreeNode] = None) -> TreeNode:
        node = TreeNode(self, obj, parent)
        self._register(node)
        return node

    def _register(self, node: TreeNode) -> None:
        self._attach(node.obj, node)
        node.node_id = len(self.nodes)
        self.nodes.append(node)
        if node.parent is None:
            self._root = node

    def _attach(self, obj: IndexedDataObject, node: TreeNode) -> None:
        if obj.id in self._node_of_obj:
            raise ValueError(f"Data object {obj.id} is already contained in the tree.")
        self._node_of_obj[obj.id] = node

    def _add_equivalent(self, node: TreeNode, obj: IndexedDataObject) -> None:
        self._attach(obj, node)
        node.equivalents.append(obj)

    def _update_sizes_and_heights(self) -> None:
        # children are always created after their parents
        for node in reversed(self.nodes):
            children = node.children()
            node.size = 1 + len(node.equivalents) + sum(child.size for child in children)
            node.height = 1 + max(child.height for child in children) if children else 0

    def clear_build(self) -> None:
        self.nodes = []
        self._root = None
        self._node_of_obj = {}
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    def _check_built(self) -> None:
        if not self._built:
            raise DataStructureNotBuiltError()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def root(self) -> Optional[TreeNode]:
        self._check_built()
        return self._root

    @property
    def size(self) -> int:
        self._check_built()
        return 0 if self._root is None else self._root.size

    @property
    def height(self) -> int:
        self._check_built()
        return 0 if self._root is None else self._root.height

    def node_of_obj(self, obj: IndexedDataObject) -> Optional[TreeNode]:
        """The node that stores ``obj`` (as object or equivalent), None if absent."""
        self._check_built()
        if obj.data_set is not self.data_set:
            return None
        return self._node_of_obj.get(obj.id)

    def contains(self, obj: IndexedDataObject) -> bool:
        return self.node_of_obj(obj) is not None

    def __contains__(self, obj) -> bool:
        return isinstance(obj, IndexedDataObject) and self.contains(obj)

    def subtree_size_of(self, obj: IndexedDataObject) -> int:
        """Size of the subtree of the node storing ``obj``, -1 if not contained."""
        node = self.node_of_obj(obj)
        return -1 if node is None else node.size

    def number_of_inner_nodes(self) -> int:
        self._check_built()
        return sum(1 for node in self.nodes if not node.is_leaf)

    def number_of_leaf_nodes(self) -> int:
        self._check_built()
        return sum(1 for node in self.nodes if node.is_leaf)

    def leaf_depth_distribution(self) -> np.ndarray:
        """Number of leaves per depth, indexed by depth ``0..height``."""
        self._check_built()
        distribution = np.zeros(self.height + 1, dtype=int)
        for node in self.nodes:
            if node.is_leaf:
                distribution[node.depth] += 1
        return distribution

    def nodes_of_level(self, level: int) -> List[TreeNode]:
        self._check_built()
        return [node for node in self.nodes if node.depth == level]

    def subtree_elements_of_level(self, level: int) -> List[List[IndexedDataObject]]:
        """For each node of depth ``level``, the objects of its subtree."""
        return [node.subtree_elements() for node in self.nodes_of_level(level)]

    def radius_list(self) -> List[float]:
        """Radii of all nodes in node id order."""
        self._check_built()
        return [node.radius for node in self.nodes]

    def __len__(self) -> int:
        return self.size

    def __repr__(self):
        if not self._built:
            return f"{type(self).__name__}(not built)"
        return f"{type(self).__name__}(size={self.size}, nodes={len(self.nodes)}, height={self.height})"
