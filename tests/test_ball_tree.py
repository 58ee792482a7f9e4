import numpy as np
import pytest

from algebra.euclidean import ArrayEuclideanSpace
from data.dataset import IndexedDataSet
from structures.ball_tree import BallTree, CenteredBallTree
from utils.exceptions import DataSetNotSealedError, DataStructureNotBuiltError


def random_data_set(n=200, dim=2, seed=0):
    rng = np.random.default_rng(seed)
    return IndexedDataSet.from_array(rng.uniform(-5.0, 5.0, size=(n, dim)))


def build_trees(data_set, vs):
    plain = BallTree(data_set, vs)
    centered = CenteredBallTree(data_set, vs)
    plain.build()
    centered.build()
    return plain, centered


def brute_force_sphere(data_set, vs, center, radius):
    return {obj.id for obj in data_set if vs.distance(obj.x, center) < radius}


@pytest.mark.parametrize("radius", [0.5, 1.5, 4.0, 20.0])
def test_sphere_query_matches_linear_scan(radius):
    # Arrange
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set()
    trees = build_trees(data_set, vs)
    rng = np.random.default_rng(1)
    queries = rng.uniform(-6.0, 6.0, size=(10, 2))

    for tree in trees:
        for center in queries:
            # Act
            found = [obj.id for obj in tree.sphere_query(center, radius)]

            # Assert
            assert len(found) == len(set(found))
            assert set(found) == brute_force_sphere(data_set, vs, center, radius)


@pytest.mark.parametrize("k", [1, 3, 10])
def test_knn_query_matches_sorting(k):
    # Arrange
    vs = ArrayEuclideanSpace(3)
    data_set = random_data_set(n=150, dim=3, seed=2)
    trees = build_trees(data_set, vs)
    rng = np.random.default_rng(3)
    queries = rng.uniform(-5.0, 5.0, size=(8, 3))

    for tree in trees:
        for center in queries:
            # Act
            found = tree.knn_query(center, k)

            # Assert
            distances = [vs.distance(obj.x, center) for obj in found]
            expected = sorted(vs.distance(obj.x, center) for obj in data_set)[:k]
            assert len(found) == k
            assert distances == sorted(distances)
            np.testing.assert_allclose(distances, expected)


def test_knn_query_returns_everything_for_large_k():
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=12)
    tree, _ = build_trees(data_set, vs)

    found = tree.knn_query(np.zeros(2), 50)

    assert {obj.id for obj in found} == set(range(12))


def test_knn_query_rejects_k_below_one():
    vs = ArrayEuclideanSpace(2)
    tree, _ = build_trees(random_data_set(n=5), vs)

    with pytest.raises(ValueError):
        tree.knn_query(np.zeros(2), 0)


def test_duplicates_become_equivalents():
    # Arrange
    vs = ArrayEuclideanSpace(2)
    points = [[0.0, 0.0], [1.0, 1.0], [0.0, 0.0], [1.0, 1.0], [3.0, 0.0]]
    data_set = IndexedDataSet.from_array(np.array(points))

    for tree in build_trees(data_set, vs):
        # Act
        node = tree.node_of_obj(data_set[2])

        # Assert
        assert node is tree.node_of_obj(data_set[0])
        assert tree.size == 5
        assert sum(1 + len(n.equivalents) for n in tree.nodes) == 5
        assert {obj.id for obj in tree.sphere_query(np.array([1.0, 1.0]), 0.1)} == {1, 3}


def test_structure_introspection_is_consistent():
    # Arrange
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=64, seed=5)

    for tree in build_trees(data_set, vs):
        # Act
        leaves = tree.number_of_leaf_nodes()
        inner = tree.number_of_inner_nodes()
        distribution = tree.leaf_depth_distribution()

        # Assert
        assert leaves + inner == len(tree.nodes)
        assert distribution.sum() == leaves
        assert len(distribution) == tree.height + 1
        assert tree.root.depth == 0
        assert tree.nodes_of_level(0) == [tree.root]
        assert len(tree.radius_list()) == len(tree.nodes)
        for level in range(tree.height + 1):
            assert sum(len(e) for e in tree.subtree_elements_of_level(level)) <= tree.size
        for node in tree.nodes:
            assert node.size == len(node.subtree_elements())
            assert all(child.depth == node.depth + 1 for child in node.children())


def test_subtree_elements_of_first_level_partition_the_rest():
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=40, seed=8)

    for tree in build_trees(data_set, vs):
        below_root = tree.subtree_elements_of_level(1)

        ids = [obj.id for elements in below_root for obj in elements]
        assert len(ids) == len(set(ids))
        assert len(ids) == tree.size - 1 - len(tree.root.equivalents)


def test_every_ball_covers_its_subtree():
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=80, seed=9)

    for tree in build_trees(data_set, vs):
        for node in tree.nodes:
            center = tree.representative(node)
            for obj in node.subtree_elements():
                assert vs.distance(center, obj.x) <= node.radius + 1e-9


def test_centered_tree_centers_are_means():
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=30, seed=4)
    _, tree = build_trees(data_set, vs)

    for node in tree.nodes:
        elements = np.array([obj.x for obj in node.subtree_elements()])
        np.testing.assert_allclose(node.center, elements.mean(axis=0))


def test_contains_and_subtree_size():
    vs = ArrayEuclideanSpace(2)
    data_set = random_data_set(n=20)
    other = random_data_set(n=3)
    tree, _ = build_trees(data_set, vs)

    assert tree.contains(data_set[7])
    assert not tree.contains(other[0])
    assert tree.subtree_size_of(data_set[0]) == 20
    assert tree.subtree_size_of(other[1]) == -1


def test_queries_require_build():
    vs = ArrayEuclideanSpace(2)
    tree = BallTree(random_data_set(n=10), vs)

    assert not tree.is_built
    with pytest.raises(DataStructureNotBuiltError):
        tree.sphere_query(np.zeros(2), 1.0)
    with pytest.raises(DataStructureNotBuiltError):
        tree.height


def test_clear_build_resets_the_tree():
    vs = ArrayEuclideanSpace(2)
    tree, _ = build_trees(random_data_set(n=10), vs)

    tree.clear_build()

    assert not tree.is_built
    with pytest.raises(DataStructureNotBuiltError):
        tree.knn_query(np.zeros(2), 1)


def test_tree_refuses_unsealed_data():
    vs = ArrayEuclideanSpace(2)
    data_set = IndexedDataSet.from_array(np.zeros((3, 2)), seal=False)

    with pytest.raises(DataSetNotSealedError):
        BallTree(data_set, vs)


def test_empty_tree_answers_queries():
    vs = ArrayEuclideanSpace(2)
    data_set = IndexedDataSet()
    data_set.seal()
    tree = CenteredBallTree(data_set, vs)

    tree.build()

    assert tree.size == 0
    assert tree.sphere_query(np.zeros(2), 1.0) == []
    assert tree.knn_query(np.zeros(2), 3) == []
