import numpy as np
import pytest
from sklearn.metrics import adjusted_rand_score

from algorithms.fuzzy_c_means import FuzzyCMeans
from algorithms.rewarding_crisp_fcm import RewardingCrispFCM, RewardingCrispFCMNoise
from data.dataset import IndexedDataSet


def memberships_at_origin(vs, data_set_of, prototypes, **params):
    algorithm = RewardingCrispFCM(data_set_of([[0.0, 0.0]]), vs, **params)
    algorithm.initialize_with_positions([np.asarray(p, dtype=float) for p in prototypes])
    return algorithm.memberships_of_element(np.zeros(2))


def test_zero_multiplier_matches_fcm(vs, blobs):
    # Arrange
    data_set, X, _, _ = blobs
    starts = [X[10], X[20], X[30]]
    rewarding = RewardingCrispFCM(data_set, vs, distance_multiplier_constant=0.0)
    fcm = FuzzyCMeans(data_set, vs, fuzzifier=2.0)
    rewarding.initialize_with_positions(starts)
    fcm.initialize_with_positions(starts)

    # Act
    rewarding.apply(4)
    fcm.apply(4)

    # Assert
    np.testing.assert_allclose(rewarding.prototype_positions(), fcm.prototype_positions())
    assert rewarding.objective_function_value() == pytest.approx(fcm.objective_function_value())


def test_reward_makes_memberships_crisper(vs, data_set_of):
    # squared distances 1 and 4, shifted by 0.5 to 0.5 and 3.5
    u = memberships_at_origin(vs, data_set_of, [[1.0, 0.0], [0.0, 2.0]], distance_multiplier_constant=0.5)

    np.testing.assert_allclose(u, [0.875, 0.125])


def test_full_multiplier_is_crisp(vs, data_set_of):
    u = memberships_at_origin(vs, data_set_of, [[1.0, 0.0], [0.0, 2.0], [3.0, 3.0]],
                              distance_multiplier_constant=1.0)

    np.testing.assert_allclose(u, [1.0, 0.0, 0.0])


def test_equally_near_prototypes_share_with_full_multiplier(vs, data_set_of):
    u = memberships_at_origin(vs, data_set_of, [[1.0, 0.0], [0.0, 1.0], [3.0, 3.0]],
                              distance_multiplier_constant=1.0)

    np.testing.assert_allclose(u, [0.5, 0.5, 0.0])


def test_coincident_prototypes_split_the_membership(vs, data_set_of):
    u = memberships_at_origin(vs, data_set_of, [[0.0, 0.0], [0.0, 0.0], [2.0, 0.0]])

    np.testing.assert_allclose(u, [0.5, 0.5, 0.0])


@pytest.mark.parametrize("half_sum", [False, True])
def test_rewarding_fcm_finds_the_blobs(vs, blobs, blob_starts, half_sum):
    data_set, _, y, _ = blobs
    rewarding = RewardingCrispFCM(data_set, vs, use_half_sum_optimization=half_sum, epsilon=1e-6)
    rewarding.initialize_with_positions(blob_starts)

    rewarding.apply(100)

    u = rewarding.all_fuzzy_cluster_assignments()
    np.testing.assert_allclose(u.sum(axis=1), 1.0)
    assert adjusted_rand_score(y, rewarding.all_crisp_cluster_assignments()) == pytest.approx(1.0)


@pytest.mark.parametrize("value", [-0.1, 1.1])
def test_multiplier_outside_unit_interval_is_rejected(vs, blobs, value):
    data_set, _, _, _ = blobs

    with pytest.raises(ValueError):
        RewardingCrispFCM(data_set, vs, distance_multiplier_constant=value)


def test_noise_variant_sends_outliers_to_noise(vs, blobs, blob_starts):
    # Arrange
    _, X, _, _ = blobs
    noisy = IndexedDataSet.from_array(np.vstack([X, [[-25.0, -25.0]]]))
    rewarding = RewardingCrispFCMNoise(noisy, vs, noise_distance=2.0)
    rewarding.initialize_with_positions(blob_starts)

    # Act
    rewarding.apply(20)

    # Assert
    outlier = noisy[len(noisy) - 1]
    totals = rewarding.all_fuzzy_cluster_assignments().sum(axis=1) + rewarding.fuzzy_noise_assignments()
    assert rewarding.fuzzy_noise_assignment_of(outlier) == pytest.approx(1.0)
    assert rewarding.all_crisp_cluster_assignments()[outlier.id] == -1
    np.testing.assert_allclose(totals, 1.0)
