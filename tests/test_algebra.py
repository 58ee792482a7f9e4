import numpy as np
import pytest

from algebra.contracts import EuclideanVectorSpace, Metric, ScalarProduct
from algebra.euclidean import ArrayEuclideanSpace
from algebra.lists import ListEuclideanSpace, ListMetric, ListVectorSpace


def test_array_space_operations_mutate_first_operand():
    # Arrange
    vs = ArrayEuclideanSpace(3)
    x = np.array([1.0, 2.0, 3.0])
    y = np.array([0.5, 0.5, 0.5])

    # Act
    vs.add(x, y)
    vs.mul(x, 2.0)
    vs.sub(x, y)

    # Assert
    np.testing.assert_allclose(x, [2.5, 4.5, 6.5])
    np.testing.assert_allclose(y, [0.5, 0.5, 0.5])


def test_array_space_new_elements_are_independent():
    # Arrange
    vs = ArrayEuclideanSpace(2)
    x = np.array([1.0, -1.0])

    # Act
    copy = vs.copy_new(x)
    inverse = vs.inv_new(x)
    total = vs.add_new(x, inverse)
    copy[0] = 99.0

    # Assert
    np.testing.assert_allclose(x, [1.0, -1.0])
    np.testing.assert_allclose(inverse, [-1.0, 1.0])
    np.testing.assert_allclose(total, vs.get_new_add_neutral_element())


def test_array_space_copy_and_reset():
    vs = ArrayEuclideanSpace(2)
    x = vs.get_new_add_neutral_element()

    vs.copy(x, np.array([3.0, 4.0]))
    assert vs.length(x) == pytest.approx(5.0)

    vs.reset_to_add_neutral_element(x)
    np.testing.assert_allclose(x, [0.0, 0.0])


def test_array_space_metric_and_scalar_product():
    vs = ArrayEuclideanSpace(2)
    x = np.array([1.0, 1.0])
    y = np.array([4.0, 5.0])

    assert vs.distance(x, y) == pytest.approx(5.0)
    assert vs.distance_sq(x, y) == pytest.approx(25.0)
    assert vs.scalar_product(x, y) == pytest.approx(9.0)
    assert vs.length_sq(y) == pytest.approx(41.0)
    assert vs.dimension == 2
    assert not vs.infinite_dimensionality


def test_array_space_is_euclidean():
    vs = ArrayEuclideanSpace(2)

    assert isinstance(vs, EuclideanVectorSpace)
    assert isinstance(vs, Metric)
    assert isinstance(vs, ScalarProduct)


def test_array_space_rejects_empty_dimension():
    with pytest.raises(ValueError):
        ArrayEuclideanSpace(0)


def test_list_space_applies_operations_per_entry():
    # Arrange
    base = ArrayEuclideanSpace(2)
    lvs = ListVectorSpace(base, 2)
    xs = [np.array([1.0, 0.0]), np.array([0.0, 1.0])]
    ys = [np.array([1.0, 1.0]), np.array([2.0, 2.0])]

    # Act
    lvs.add(xs, ys)
    lvs.mul(xs, 0.5)

    # Assert
    np.testing.assert_allclose(xs[0], [1.0, 0.5])
    np.testing.assert_allclose(xs[1], [1.0, 1.5])
    assert lvs.dimension == 4


def test_list_space_neutral_element_has_list_length():
    lvs = ListVectorSpace(ArrayEuclideanSpace(3), 4)

    zero = lvs.get_new_add_neutral_element()

    assert len(zero) == 4
    assert all(np.all(z == 0.0) for z in zero)


def test_list_metric_sums_entry_distances():
    # Arrange
    metric = ListMetric(ArrayEuclideanSpace(2))
    xs = [np.array([0.0, 0.0]), np.array([1.0, 1.0])]
    ys = [np.array([3.0, 4.0]), np.array([1.0, 2.0])]

    # Act
    distance = metric.distance(xs, ys)
    distance_sq = metric.distance_sq(xs, ys)

    # Assert
    assert distance == pytest.approx(6.0)
    assert distance_sq == pytest.approx(36.0)


def test_list_euclidean_space_combines_all_capabilities():
    # Arrange
    les = ListEuclideanSpace(ArrayEuclideanSpace(2), 2)
    xs = [np.array([3.0, 4.0]), np.array([0.0, 2.0])]
    ys = [np.array([1.0, 0.0]), np.array([1.0, 1.0])]

    # Act
    length = les.length(xs)
    scalar_product = les.scalar_product(xs, ys)
    difference = les.sub_new(xs, ys)

    # Assert
    assert length == pytest.approx(7.0)
    assert les.length_sq(xs) == pytest.approx(49.0)
    assert scalar_product == pytest.approx(5.0)
    np.testing.assert_allclose(difference[0], [2.0, 4.0])
    assert les.dimension == 4
    assert isinstance(les, EuclideanVectorSpace)


def test_list_space_rejects_non_positive_length():
    with pytest.raises(ValueError):
        ListVectorSpace(ArrayEuclideanSpace(2), 0)


@pytest.mark.parametrize("n", [1, 2, 5])
def test_list_lifting_matches_entry_wise_computation(n):
    # Arrange
    base = ArrayEuclideanSpace(3)
    les = ListEuclideanSpace(base, n)
    rng = np.random.default_rng(n)
    xs = [rng.normal(size=3) for _ in range(n)]
    ys = [rng.normal(size=3) for _ in range(n)]

    # Act
    distance = les.distance(xs, ys)
    total = les.add_new(xs, ys)
    scaled = les.mul_new(xs, -2.5)

    # Assert
    expected = sum(base.distance(x, y) for x, y in zip(xs, ys))
    assert distance == pytest.approx(expected)
    assert les.distance_sq(xs, ys) == pytest.approx(expected * expected)
    assert les.scalar_product(xs, ys) == pytest.approx(sum(float(x @ y) for x, y in zip(xs, ys)))
    assert les.length(ys) == pytest.approx(sum(np.linalg.norm(y) for y in ys))
    for i in range(n):
        np.testing.assert_allclose(total[i], xs[i] + ys[i])
        np.testing.assert_allclose(scaled[i], -2.5 * xs[i])


def test_list_metric_refuses_lists_of_different_length():
    metric = ListMetric(ArrayEuclideanSpace(2))
    les = ListEuclideanSpace(ArrayEuclideanSpace(2), 2)
    xs = [np.zeros(2), np.ones(2)]
    ys = [np.zeros(2)]

    with pytest.raises(IndexError):
        metric.distance(xs, ys)
    with pytest.raises(IndexError):
        les.scalar_product(ys, xs)
    with pytest.raises(IndexError):
        les.add(xs, ys)
