"""
Expectation Maximization for Spherical Gaussian Mixture Models.

Every cluster is an isotropic normal distribution N(mu_i, sigma_i^2 I) with a
prior probability pi_i. One iteration consists of

    E-step:  p_ij = pi_i N(x_j | mu_i, sigma_i^2) / sum_k pi_k N(x_j | mu_k, sigma_k^2)
    M-step:  pi_i = mean_j p_ij
             mu_i = sum_j p_ij x_j / sum_j p_ij
             sigma_i^2 = sum_j p_ij ||x_j - mu_i||^2 / (dim * sum_j p_ij)

and stops when no mean moved more than epsilon. The conditional
probabilities p_ij serve as membership values. The module also keeps a thin
wrapper around scikit-learn's ``GaussianMixture`` with spherical covariances
as a reference implementation for experiments.

References
----------
[1] Dempster, A.P., Laird, N.M., Rubin, D.B., "Maximum likelihood from
    incomplete data via the EM algorithm", 1977, Journal of the Royal
    Statistical Society B, 39(1), pp. 1-38.
[2] Bilmes, J.A., "A gentle tutorial of the EM algorithm and its application
    to parameter estimation for Gaussian mixture and hidden Markov models",
    1998, Technical Report TR-97-021, ICSI Berkeley.
"""

import math
import time
from typing import Any, Dict, Optional

import numpy as np
from scipy.special import logsumexp
from sklearn.mixture import GaussianMixture

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataSet

from .base import FuzzyPrototypeClusteringAlgorithm
from .prototypes import Centroid, SphericalNormalDistributionPrototype

EM_DEFAULT_VARIANCE = 0.1
VARIANCE_FLOOR = np.finfo(float).eps


class ExpectationMaximizationSGMM(FuzzyPrototypeClusteringAlgorithm):
    """
    EM clustering with spherical Gaussian components.

    Parameters
    ----------
    data_set : IndexedDataSet
        Sealed data set to cluster.
    vs : VectorSpace
        Algebra of the data elements; its ``dimension`` enters the densities.
    metric : Metric, optional
        Distance measure, defaults to ``vs``.
    variance_bounded : bool, default=False
        Clamp the variances into ``[variance_lower_bound, variance_upper_bound]``
        after every M-step.
    variance_lower_bound : float, default=0.0
    variance_upper_bound : float, default=inf
    """

    algorithm_name = "Expectation Maximization for Spherical Gaussian Mixture Models"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            variance_bounded: bool = False,
            variance_lower_bound: float = 0.0,
            variance_upper_bound: float = math.inf,
            **params
    ):
        super().__init__(data_set, vs, metric, **params)
        self.variance_bounded = variance_bounded
        self._variance_lower_bound = 0.0
        self._variance_upper_bound = math.inf
        self.variance_lower_bound = variance_lower_bound
        self.variance_upper_bound = variance_upper_bound
        self._cluster_probabilities = np.zeros(0)
        self._conditional_probabilities = np.zeros((self.data_count, 0))

    @property
    def variance_lower_bound(self) -> float:
        return self._variance_lower_bound

    @variance_lower_bound.setter
    def variance_lower_bound(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"The variance lower bound must not be negative. Specified value: {value}")
        self._variance_lower_bound = float(value)

    @property
    def variance_upper_bound(self) -> float:
        return self._variance_upper_bound

    @variance_upper_bound.setter
    def variance_upper_bound(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"The variance upper bound must not be negative. Specified value: {value}")
        self._variance_upper_bound = float(value)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    def _new_prototype(self, position: Any) -> SphericalNormalDistributionPrototype:
        return SphericalNormalDistributionPrototype(self.vs, self.metric, position, variance=EM_DEFAULT_VARIANCE)

    def _adopt_prototype(self, prototype: Centroid) -> SphericalNormalDistributionPrototype:
        if isinstance(prototype, SphericalNormalDistributionPrototype):
            return prototype.clone()
        return self._new_prototype(prototype.position)

    def _on_initialize(self) -> None:
        self._cluster_probabilities = np.full(self.cluster_count, 1.0 / self.cluster_count)
        self._conditional_probabilities = self._posteriors()

    # ------------------------------------------------------------------
    # E-step
    # ------------------------------------------------------------------
    def _log_joint(self, x: Any) -> np.ndarray:
        """ln(pi_i) + ln N(x | mu_i, sigma_i^2) per prototype, -inf for inactive ones."""
        log_joint = np.full(self.cluster_count, -np.inf)
        dim = self.vs.dimension
        for i in self._active_indices():
            prototype = self.prototypes[i]
            if self._cluster_probabilities[i] <= 0.0:
                continue
            dist_sq = self.metric.distance_sq(x, prototype.position)
            log_joint[i] = (math.log(self._cluster_probabilities[i])
                            - 0.5 * dim * math.log(2.0 * math.pi * prototype.variance)
                            - 0.5 * dist_sq / prototype.variance)
        return log_joint

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        log_joint = self._log_joint(x)
        if np.all(np.isneginf(log_joint)):
            return np.zeros(self.cluster_count)
        return np.exp(log_joint - logsumexp(log_joint))

    def _posteriors(self) -> np.ndarray:
        p = np.zeros((self.data_count, self.cluster_count))
        for obj in self.data_set:
            p[obj.id] = self._memberships(obj.x, None)
        return p

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------
    def _iterate(self, t: int) -> bool:
        # 1. E-step
        p = self._posteriors()
        self._conditional_probabilities = p
        weight_sums = p.sum(axis=0)
        self._cluster_probabilities = weight_sums / self.data_count

        # 2. Means
        new_positions = self._new_scratch_positions()
        tmp = self.vs.get_new_add_neutral_element()
        for obj in self.data_set:
            for i in np.flatnonzero(p[obj.id]):
                self.vs.copy(tmp, obj.x)
                self.vs.mul(tmp, p[obj.id, i])
                self.vs.add(new_positions[i], tmp)
        max_movement = self._update_prototypes(new_positions, weight_sums)

        # 3. Variances around the new means
        dim = self.vs.dimension
        for i in self._active_indices():
            if weight_sums[i] <= 0.0:
                continue
            prototype = self.prototypes[i]
            spread = sum(p[obj.id, i] * self.metric.distance_sq(obj.x, prototype.position) for obj in self.data_set)
            variance = spread / (weight_sums[i] * dim)
            if self.variance_bounded:
                variance = min(max(variance, self._variance_lower_bound), self._variance_upper_bound)
            prototype.variance = max(variance, VARIANCE_FLOOR)

        self._iteration_complete(max_movement)
        return self._has_converged(max_movement)

    def objective_function_value(self) -> float:
        """
        Expected complete-data log-likelihood under the stored conditional
        probabilities.
        """
        self._check_initialized()
        total = 0.0
        for obj in self.data_set:
            log_joint = self._log_joint(obj.x)
            p = self._conditional_probabilities[obj.id]
            mask = p > 0.0
            total += float(np.dot(p[mask], log_joint[mask]))
        return total

    def log_likelihood(self) -> float:
        """Log-likelihood of the data under the current mixture."""
        self._check_initialized()
        return float(sum(logsumexp(self._log_joint(obj.x)) for obj in self.data_set))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def cluster_probabilities(self) -> np.ndarray:
        return self._cluster_probabilities.copy()

    def conditional_probabilities(self) -> np.ndarray:
        """Conditional probabilities of the last E-step, shape (n_data, n_clusters)."""
        return self._conditional_probabilities.copy()

    def all_fuzzy_cluster_assignments(self) -> np.ndarray:
        self._check_initialized()
        return self.conditional_probabilities()

    def fuzzy_assignments_of(self, obj) -> np.ndarray:
        self._check_initialized()
        return self._conditional_probabilities[obj.id].copy()


def run_reference_gmm_once(
        X: np.ndarray,
        n_components: int,
        dataset_name: str,
        random_state: int = 42
) -> Dict[str, Any]:
    """
    Runs scikit-learn's spherical Gaussian mixture once for comparison.

    Parameters
    ----------
    X : np.ndarray
        The input feature matrix.
    n_components : int
        The number of mixture components.
    dataset_name : str
        Name of the data set, copied into the result.
    random_state : int, default=42
        Seed of the k-means initialization.

    Returns
    -------
    dict
        Metadata, runtime, BIC, average log-likelihood and labels.
    """
    if np.isnan(X).any():
        X = np.nan_to_num(X)

    start = time.perf_counter()
    gmm = GaussianMixture(n_components=n_components, covariance_type="spherical", random_state=random_state)
    gmm.fit(X)
    labels = gmm.predict(X)
    runtime = time.perf_counter() - start

    return {
        "dataset": dataset_name,
        "algorithm": "GaussianMixture",
        "n_components": n_components,
        "runtime_sec": runtime,
        "bic": gmm.bic(X),
        "avg_log_likelihood": gmm.score(X),
        "labels": labels,
    }
