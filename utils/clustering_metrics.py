"""
Clustering validation indices.

External indices compare a clustering with known class labels (purity,
F-measure, ARI, a fuzzy F1 with one-to-one matching of clusters and
classes). Internal indices judge a fuzzy partition on its own (partition
coefficient, partition entropy, non-fuzzyness, Xie-Beni).

Crisp labels use ``-1`` for objects without a cluster (noise); such objects
are left out of the crisp external indices.

References
----------
[1] Bezdek, J.C., "Pattern Recognition with Fuzzy Objective Function
    Algorithms", 1981, Plenum Press, New York.
[2] Xie, X.L., Beni, G., "A validity measure for fuzzy clustering", 1991,
    IEEE Transactions on Pattern Analysis and Machine Intelligence, 13(8),
    pp. 841-847.
[3] Roubens, M., "Pattern classification problems and fuzzy sets", 1978,
    Fuzzy Sets and Systems, 1(4), pp. 239-253.
"""

from typing import Any, Dict, Optional, Sequence

import numpy as np
from scipy.optimize import linear_sum_assignment
from sklearn.metrics import adjusted_rand_score, davies_bouldin_score
from sklearn.metrics.cluster import contingency_matrix

from algebra.contracts import Metric


def purity_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Fraction of objects that belong to the majority class of their cluster.

    Purity = (1 / N) * sum_k max_j n_kj

    Parameters
    ----------
    y_true : np.ndarray
        True class labels.
    y_pred : np.ndarray
        Crisp cluster labels.

    Returns
    -------
    float
        Purity in [0, 1].
    """
    # rows = classes, columns = clusters
    cm = contingency_matrix(y_true, y_pred)
    return float(np.sum(np.max(cm, axis=0)) / np.sum(cm))


def f_measure_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Class-size weighted F-measure of the best matching cluster per class.

    F = sum_i (n_i / N) * max_j F(i, j)

    Parameters
    ----------
    y_true : np.ndarray
        True class labels.
    y_pred : np.ndarray
        Crisp cluster labels.

    Returns
    -------
    float
        F-measure in [0, 1].
    """
    cm = contingency_matrix(y_true, y_pred).astype(float)
    class_sizes = cm.sum(axis=1, keepdims=True)
    cluster_sizes = cm.sum(axis=0, keepdims=True)

    with np.errstate(divide="ignore", invalid="ignore"):
        f = np.nan_to_num(2.0 * cm / (class_sizes + cluster_sizes))
    return float(np.sum(class_sizes[:, 0] / cm.sum() * f.max(axis=1)))


def compute_clustering_metrics(
        X: np.ndarray,
        y_true: np.ndarray,
        y_pred: np.ndarray
) -> Dict[str, float]:
    """
    ARI, purity, Davies-Bouldin index and F-measure of a crisp clustering.

    Objects labelled ``-1`` are excluded. The Davies-Bouldin index is NaN
    when fewer than two clusters remain.

    Parameters
    ----------
    X : np.ndarray
        Feature matrix (for the Davies-Bouldin index).
    y_true : np.ndarray
        True class labels.
    y_pred : np.ndarray
        Crisp cluster labels.

    Returns
    -------
    Dict[str, float]
        Keys 'ari', 'purity', 'davies_bouldin', 'f_measure' and 'assigned'
        (the fraction of objects with a cluster).
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    assigned = y_pred != -1
    if not assigned.any():
        return {"ari": np.nan, "purity": np.nan, "davies_bouldin": np.nan, "f_measure": np.nan, "assigned": 0.0}

    X, y_true, y_pred = np.asarray(X)[assigned], y_true[assigned], y_pred[assigned]
    n_labels = len(np.unique(y_pred))
    dbi = davies_bouldin_score(X, y_pred) if 1 < n_labels < len(y_pred) else np.nan

    return {
        "ari": adjusted_rand_score(y_true, y_pred),
        "purity": purity_score(y_true, y_pred),
        "davies_bouldin": dbi,
        "f_measure": f_measure_score(y_true, y_pred),
        "assigned": float(assigned.mean()),
    }


def _as_membership_matrix(memberships: np.ndarray) -> np.ndarray:
    memberships = np.asarray(memberships)
    if memberships.ndim == 2:
        return memberships.astype(float)
    # crisp labels, -1 rows stay empty
    labels = memberships.astype(int)
    u = np.zeros((len(labels), max(labels.max() + 1, 1)))
    rows = np.flatnonzero(labels >= 0)
    u[rows, labels[rows]] = 1.0
    return u


def cluster_f1_measure(y_true: np.ndarray, memberships: np.ndarray) -> float:
    """
    Mean F1 score over the classes after matching clusters and classes one to
    one with the Hungarian method.

    Parameters
    ----------
    y_true : np.ndarray
        True class labels.
    memberships : np.ndarray
        Membership matrix (n_data, n_clusters) or crisp labels with ``-1``
        for unassigned objects.

    Returns
    -------
    float
        Mean F1 in [0, 1]; classes without a matched cluster count 0.
    """
    u = _as_membership_matrix(memberships)
    classes, y = np.unique(np.asarray(y_true), return_inverse=True)
    class_indicator = np.zeros((len(y), len(classes)))
    class_indicator[np.arange(len(y)), y] = 1.0

    # true positives per (cluster, class)
    tp = u.T @ class_indicator
    cluster_mass = u.sum(axis=0)[:, np.newaxis]
    class_size = class_indicator.sum(axis=0)[np.newaxis, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        f1 = np.nan_to_num(2.0 * tp / (cluster_mass + class_size))

    rows, cols = linear_sum_assignment(f1, maximize=True)
    return float(f1[rows, cols].sum() / len(classes))


def partition_coefficient(memberships: np.ndarray, noise: Optional[np.ndarray] = None) -> float:
    """
    Bezdek's partition coefficient, the mean of the squared memberships per
    object. 1 for a crisp partition, 1/c for uniform memberships.
    """
    u = np.asarray(memberships, dtype=float)
    total = np.sum(u * u)
    if noise is not None:
        total += np.sum(np.asarray(noise, dtype=float) ** 2)
    return float(total / u.shape[0])


def partition_entropy(memberships: np.ndarray, noise: Optional[np.ndarray] = None) -> float:
    """
    Normalized partition entropy in [0, 1] (base 2). The noise cluster, if
    given, counts as an additional cluster.
    """
    u = np.asarray(memberships, dtype=float)
    if noise is not None:
        u = np.column_stack([u, np.asarray(noise, dtype=float)])
    if u.shape[1] < 2:
        return 0.0
    positive = u[u > 0.0]
    entropy = -np.sum(positive * np.log2(positive)) / u.shape[0]
    return float(entropy / np.log2(u.shape[1]))


def non_fuzzyness_index(memberships: np.ndarray, noise: Optional[np.ndarray] = None) -> float:
    """Roubens' non-fuzzyness index, the partition coefficient rescaled to [0, 1]."""
    c = np.asarray(memberships).shape[1] + (0 if noise is None else 1)
    if c < 2:
        return 1.0
    return float(1.0 - c / (c - 1.0) * (1.0 - partition_coefficient(memberships, noise)))


def xie_beni_index(
        data: Sequence[Any],
        prototypes: Sequence[Any],
        memberships: np.ndarray,
        metric: Metric,
        fuzzifier: float = 2.0
) -> float:
    """
    Xie-Beni index: compactness over separation. Smaller is better.

    XB = sum_j sum_i u_ij^m d(x_j, p_i)^2 / (n * min_{i != k} d(p_i, p_k)^2)

    Parameters
    ----------
    data : sequence
        Data elements in ID order.
    prototypes : sequence
        Prototype positions in cluster index order.
    memberships : np.ndarray
        Membership matrix (n_data, n_clusters).
    metric : Metric
        Distance measure.
    fuzzifier : float, default=2.0
        Exponent of the memberships.

    Returns
    -------
    float
        The index, ``inf`` if two prototypes coincide or fewer than two are given.
    """
    u = np.asarray(memberships, dtype=float)
    compactness = 0.0
    for j, x in enumerate(data):
        for i, p in enumerate(prototypes):
            if u[j, i] > 0.0:
                compactness += u[j, i] ** fuzzifier * metric.distance_sq(x, p)

    separation = np.inf
    for i in range(len(prototypes)):
        for k in range(i + 1, len(prototypes)):
            separation = min(separation, metric.distance_sq(prototypes[i], prototypes[k]))
    if not separation > 0.0 or np.isinf(separation):
        return np.inf
    return float(compactness / (len(u) * separation))
