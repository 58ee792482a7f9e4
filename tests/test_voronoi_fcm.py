import numpy as np
import pytest
from sklearn.metrics import adjusted_rand_score

from algebra.lists import ListMetric, ListVectorSpace
from algorithms.fuzzy_c_means import FuzzyCMeans
from algorithms.voronoi_fcm import VoronoiPartitionFCM, VoronoiPartitionFCMNoise
from data.dataset import IndexedDataSet


def voronoi_at_origin(vs, data_set_of, prototypes, **params):
    algorithm = VoronoiPartitionFCM(data_set_of([[0.0, 0.0]]), vs, **params)
    algorithm.initialize_with_positions([np.asarray(p, dtype=float) for p in prototypes])
    return algorithm


def test_shadowed_prototype_gets_no_membership(vs, data_set_of):
    # Arrange
    # (3, 0) lies behind the bisector of the origin and (1, 0)
    voronoi = voronoi_at_origin(vs, data_set_of, [[1.0, 0.0], [3.0, 0.0], [0.0, 2.0]])

    # Act
    u = voronoi.memberships_of_element(np.zeros(2))

    # Assert
    # plain FCM on the squared distances 1 and 4 of the two neighbours
    np.testing.assert_allclose(u, [0.8, 0.0, 0.2])


def test_unshadowed_prototypes_match_fcm(vs, data_set_of):
    prototypes = [[1.0, 0.0], [-2.0, 0.0], [0.0, 1.5]]
    voronoi = voronoi_at_origin(vs, data_set_of, prototypes)
    fcm = FuzzyCMeans(data_set_of([[0.0, 0.0]]), vs)
    fcm.initialize_with_positions([np.asarray(p) for p in prototypes])

    np.testing.assert_allclose(voronoi.memberships_of_element(np.zeros(2)),
                               fcm.memberships_of_element(np.zeros(2)))


def test_coincident_prototype_takes_everything(vs, data_set_of):
    voronoi = voronoi_at_origin(vs, data_set_of, [[0.0, 0.0], [1.0, 0.0]])

    u = voronoi.memberships_of_element(np.zeros(2))

    np.testing.assert_allclose(u, [1.0, 0.0])


def test_voronoi_fcm_finds_the_blobs(vs, blobs, blob_starts):
    data_set, _, y, centers = blobs
    voronoi = VoronoiPartitionFCM(data_set, vs, epsilon=1e-6)
    voronoi.initialize_with_positions(blob_starts)

    voronoi.apply(100)

    u = voronoi.all_fuzzy_cluster_assignments()
    np.testing.assert_allclose(u.sum(axis=1), 1.0)
    assert adjusted_rand_score(y, voronoi.all_crisp_cluster_assignments()) == pytest.approx(1.0)
    for center in centers:
        assert min(np.linalg.norm(p - center) for p in voronoi.prototype_positions()) < 0.3


def test_scalar_product_is_required(vs):
    data_set = IndexedDataSet([[np.zeros(2)], [np.ones(2)]])
    data_set.seal()

    with pytest.raises(ValueError):
        VoronoiPartitionFCM(data_set, ListVectorSpace(vs, 1), metric=ListMetric(vs))


def test_from_algorithm_keeps_scalar_product(vs, blobs, blob_starts):
    data_set, _, _, _ = blobs
    fcm = FuzzyCMeans(data_set, vs)
    fcm.initialize_with_positions(blob_starts)
    fcm.apply(2)

    voronoi = VoronoiPartitionFCM.from_algorithm(fcm)

    assert voronoi.scalar_product is vs
    np.testing.assert_allclose(voronoi.prototype_positions(), fcm.prototype_positions())


def test_noise_variant_marks_outliers(vs, blobs, blob_starts):
    # Arrange
    _, X, _, _ = blobs
    noisy = IndexedDataSet.from_array(np.vstack([X, [[20.0, 20.0]]]))
    voronoi = VoronoiPartitionFCMNoise(noisy, vs, noise_distance=2.0)
    voronoi.initialize_with_positions(blob_starts)

    # Act
    voronoi.apply(20)

    # Assert
    outlier = noisy[len(noisy) - 1]
    totals = voronoi.all_fuzzy_cluster_assignments().sum(axis=1) + voronoi.fuzzy_noise_assignments()
    assert voronoi.fuzzy_noise_assignment_of(outlier) > 0.99
    np.testing.assert_allclose(totals, 1.0)
