"""
Spatial index structures over indexed data sets.

Modules
-------
- tree: Binary tree bookkeeping and structural introspection.
- ball_tree: Ball tree and centered ball tree with sphere and k-NN queries.
"""

from .tree import BinaryTree, TreeNode
from .ball_tree import BallTree, CenteredBallTree, CenteredBallTreeNode
