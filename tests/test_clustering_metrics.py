import math

import numpy as np
import pytest

from utils.clustering_metrics import (
    cluster_f1_measure,
    compute_clustering_metrics,
    f_measure_score,
    non_fuzzyness_index,
    partition_coefficient,
    partition_entropy,
    purity_score,
    xie_beni_index,
)


def test_purity_of_mixed_clusters():
    y_true = np.array([0, 0, 0, 1, 1, 1])
    y_pred = np.array([0, 0, 1, 1, 1, 1])

    assert purity_score(y_true, y_pred) == pytest.approx(5.0 / 6.0)


def test_f_measure_is_one_for_relabelled_partition():
    y_true = np.array([0, 0, 1, 1, 2, 2])
    y_pred = np.array([2, 2, 0, 0, 1, 1])

    assert f_measure_score(y_true, y_pred) == pytest.approx(1.0)


def test_metrics_skip_unassigned_objects(blobs):
    # Arrange
    _, X, y, _ = blobs
    y_pred = y.copy()
    y_pred[:15] = -1

    # Act
    metrics = compute_clustering_metrics(X, y, y_pred)

    # Assert
    assert metrics["ari"] == pytest.approx(1.0)
    assert metrics["purity"] == pytest.approx(1.0)
    assert metrics["assigned"] == pytest.approx(0.9)
    assert metrics["davies_bouldin"] > 0.0


def test_metrics_without_any_cluster_are_nan(blobs):
    _, X, y, _ = blobs

    metrics = compute_clustering_metrics(X, y, np.full(len(y), -1))

    assert math.isnan(metrics["ari"])
    assert metrics["assigned"] == 0.0


def test_single_cluster_has_no_davies_bouldin(blobs):
    _, X, y, _ = blobs

    metrics = compute_clustering_metrics(X, y, np.zeros(len(y), dtype=int))

    assert math.isnan(metrics["davies_bouldin"])


def test_cluster_f1_matches_clusters_one_to_one():
    # Arrange
    y_true = np.array([0, 0, 1, 1])
    memberships = np.array([
        [0.0, 1.0],
        [0.0, 1.0],
        [1.0, 0.0],
        [1.0, 0.0],
    ])

    # Act
    f1 = cluster_f1_measure(y_true, memberships)

    # Assert
    assert f1 == pytest.approx(1.0)


def test_cluster_f1_from_crisp_labels_counts_unassigned_as_misses():
    y_true = np.array([0, 0, 1, 1])
    labels = np.array([0, -1, 1, 1])

    f1 = cluster_f1_measure(y_true, labels)

    # class 0: tp 1, cluster mass 1, class size 2
    assert f1 == pytest.approx((2.0 / 3.0 + 1.0) / 2.0)


def test_partition_indices_of_crisp_and_uniform_partitions():
    crisp = np.eye(3)
    uniform = np.full((4, 4), 0.25)

    assert partition_coefficient(crisp) == pytest.approx(1.0)
    assert partition_coefficient(uniform) == pytest.approx(0.25)
    assert partition_entropy(crisp) == pytest.approx(0.0)
    assert partition_entropy(uniform) == pytest.approx(1.0)
    assert non_fuzzyness_index(crisp) == pytest.approx(1.0)
    assert non_fuzzyness_index(uniform) == pytest.approx(0.0)


def test_noise_counts_as_an_extra_cluster():
    u = np.array([[0.5], [0.5]])
    noise = np.array([0.5, 0.5])

    assert partition_coefficient(u, noise) == pytest.approx(0.5)
    assert partition_entropy(u, noise) == pytest.approx(1.0)
    assert non_fuzzyness_index(u, noise) == pytest.approx(0.0)


def test_xie_beni_index(vs):
    data = [np.array([1.0, 0.0])]
    prototypes = [np.zeros(2), np.array([2.0, 0.0])]
    u = np.array([[0.5, 0.5]])

    assert xie_beni_index(data, prototypes, u, vs) == pytest.approx(0.5 / 4.0)


def test_xie_beni_of_coincident_prototypes_is_infinite(vs):
    data = [np.array([1.0, 0.0])]
    prototypes = [np.zeros(2), np.zeros(2)]

    assert xie_beni_index(data, prototypes, np.array([[0.5, 0.5]]), vs) == math.inf
