"""
Alternating Optimization Engine.

Shared skeleton of all prototype based clustering algorithms in this package.
An algorithm is bound to a sealed data set and an algebra at construction,
receives its prototypes through ``initialize_with_positions`` or
``initialize_with_prototypes`` and is then iterated with ``apply``. Each
iteration computes membership values of all data objects to all active
prototypes (E-step), moves every prototype to the weighted mean of the data
(M-step) and checks convergence on the largest squared prototype movement.

The concrete algorithms only supply the membership kernel, the weights used
in the M-step and the objective function. Iteration counting, the convergence
trace, learning-factor damping, objective monitoring and the membership
queries live here.

References
----------
[1] Bezdek, J.C., "Pattern Recognition with Fuzzy Objective Function
    Algorithms", 1981, Plenum Press, New York.
[2] Hoeppner, F., Klawonn, F., Kruse, R., Runkler, T., "Fuzzy Cluster
    Analysis", 1999, John Wiley & Sons, Chichester.
"""

import itertools
import math
import sys
from typing import Any, Iterable, List, Optional

import numpy as np
from tqdm import tqdm

from algebra.contracts import Metric, VectorSpace
from data.dataset import IndexedDataObject, IndexedDataSet
from utils.exceptions import AlgorithmNotInitializedError, DataSetNotSealedError
from utils.logging_utils import log_debug, log_info

from .prototypes import Centroid

UNASSIGNED_INDEX = -1
DEFAULT_NOISE_DISTANCE = 0.1 * math.sqrt(sys.float_info.max)


class PrototypeClusteringAlgorithm:
    """
    Base class of the alternating optimization clustering algorithms.

    Parameters
    ----------
    data_set : IndexedDataSet
        The data to cluster. Must be sealed.
    vs : VectorSpace
        Algebra used to build prototype positions from data elements.
    metric : Metric, optional
        Distance between data elements and prototypes. Defaults to ``vs``
        when ``vs`` is itself a metric.
    learning_factor : float, default=1.0
        Damping of the prototype update. The new position is
        ``old + learning_factor * (raw_new - old)``; values within 0.01 of 1
        apply the raw update.
    epsilon : float, default=0.0
        Convergence threshold. Iteration stops once no prototype moved more
        than ``epsilon`` (compared on squared distances).
    min_iterations : int, default=0
        Number of iterations (counted since initialization) before the
        convergence threshold is honoured.
    monitor_objective_function_values : bool, default=True
        Record the objective function value after every iteration.
    show_progress : bool, default=False
        Display a tqdm progress bar over the iterations of ``apply``.
    """

    algorithm_name = "Prototype Clustering Algorithm"

    def __init__(
            self,
            data_set: IndexedDataSet,
            vs: VectorSpace,
            metric: Optional[Metric] = None,
            learning_factor: float = 1.0,
            epsilon: float = 0.0,
            min_iterations: int = 0,
            monitor_objective_function_values: bool = True,
            show_progress: bool = False
    ):
        if not data_set.is_sealed:
            raise DataSetNotSealedError()
        if metric is None:
            if not isinstance(vs, Metric):
                raise ValueError("A metric is required when the vector space does not provide one.")
            metric = vs

        self.data_set = data_set
        self.vs = vs
        self.metric = metric

        self.learning_factor = learning_factor
        self.epsilon = epsilon
        self.min_iterations = min_iterations
        self.monitor_objective_function_values = monitor_objective_function_values
        self.show_progress = show_progress

        self.prototypes: List[Centroid] = []
        self.initialized = False
        self.iteration_count = 0
        self.convergence_history: List[float] = []
        self.objective_function_values: List[float] = []

    @classmethod
    def from_algorithm(
            cls,
            other: "PrototypeClusteringAlgorithm",
            use_only_active_prototypes: bool = False,
            **params
    ):
        """
        Creates an algorithm on the data and algebra of ``other``, initialized
        with copies of its prototypes.

        Useful for multi-stage pipelines where a fast approximate algorithm
        provides the starting point of an exact one. Iteration parameters are
        taken over from ``other`` unless given in ``params``.
        """
        for name in ("learning_factor", "epsilon", "min_iterations", "monitor_objective_function_values"):
            params.setdefault(name, getattr(other, name))
        algorithm = cls(other.data_set, other.vs, other.metric, **params)

        source = other.active_prototypes() if use_only_active_prototypes else other.prototypes
        algorithm.initialize_with_prototypes([algorithm._adopt_prototype(p) for p in source])
        return algorithm

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    @property
    def learning_factor(self) -> float:
        return self._learning_factor

    @learning_factor.setter
    def learning_factor(self, value: float) -> None:
        if not value > 0.0:
            raise ValueError(f"The learning factor must be larger than 0. Specified learning factor: {value}")
        self._learning_factor = float(value)

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: float) -> None:
        if value < 0.0:
            raise ValueError(f"Epsilon must not be negative. Specified epsilon: {value}")
        self._epsilon = float(value)

    @property
    def min_iterations(self) -> int:
        return self._min_iterations

    @min_iterations.setter
    def min_iterations(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"The minimal number of iterations must not be negative. Specified value: {value}")
        self._min_iterations = int(value)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------
    def _new_prototype(self, position: Any) -> Centroid:
        return Centroid(self.vs, position)

    def _adopt_prototype(self, prototype: Centroid) -> Centroid:
        """Converts a prototype of another algorithm into one usable here."""
        return prototype.clone()

    def initialize_with_positions(self, positions: Iterable[Any]) -> None:
        """Creates one new prototype per position."""
        self.initialize_with_prototypes([self._new_prototype(p) for p in positions])

    def initialize_with_prototypes(self, prototypes: Iterable[Centroid]) -> None:
        """
        Takes the given prototypes (not copies) and renumbers their cluster
        indices ``0..c-1``. Resets the iteration counter and the traces.
        """
        prototypes = list(prototypes)
        if not prototypes:
            raise ValueError("At least one prototype is required.")
        for i, prototype in enumerate(prototypes):
            prototype.cluster_index = i

        self.prototypes = prototypes
        self.iteration_count = 0
        self.convergence_history = []
        self.objective_function_values = []
        self.initialized = True
        self._on_initialize()

    def initialize_randomly(self, cluster_count: int, random_state: Optional[int] = None) -> None:
        """
        Initializes ``cluster_count`` prototypes on distinct data objects
        chosen uniformly at random (MacQueen's second method).
        """
        if cluster_count < 1 or cluster_count > self.data_count:
            raise ValueError(f"Cannot choose {cluster_count} prototypes from {self.data_count} data objects.")
        rng = np.random.default_rng(random_state)
        chosen = rng.choice(self.data_count, size=cluster_count, replace=False)
        self.initialize_with_positions(self.data_set[int(j)].x for j in chosen)

    def _on_initialize(self) -> None:
        """Hook for algorithms that size scratch state by the prototype count."""

    def _check_initialized(self) -> None:
        if not self.initialized:
            raise AlgorithmNotInitializedError()

    # ------------------------------------------------------------------
    # Iteration control
    # ------------------------------------------------------------------
    def apply(self, steps: Optional[int] = None) -> None:
        """
        Runs at most ``steps`` iterations, fewer if the algorithm converges.

        Parameters
        ----------
        steps : int, optional
            Iteration budget. ``None`` iterates until convergence and requires
            an algorithm that can converge (see ``_can_converge``).

        Raises
        ------
        ValueError
            If ``steps`` is negative, or ``None`` while the convergence
            threshold is 0.
        """
        self._check_initialized()
        if steps is not None and steps < 0:
            raise ValueError(f"The number of steps must not be negative. Specified steps: {steps}")
        if steps is None and not self._can_converge():
            raise ValueError("An unbounded apply needs a positive epsilon. Specify a number of steps or set epsilon.")

        iterations = itertools.count() if steps is None else range(steps)
        start_count = self.iteration_count
        converged = False

        self._before_apply()
        for t in tqdm(iterations, total=steps, desc=self.algorithm_name, disable=not self.show_progress):
            if self._iterate(t):
                converged = True
                break
        self._after_apply()

        log_info(
            "apply finished",
            algorithm=self.algorithm_name,
            iterations=self.iteration_count - start_count,
            converged=converged,
        )

    def _before_apply(self) -> None:
        pass

    def _after_apply(self) -> None:
        pass

    def _iterate(self, t: int) -> bool:
        """Performs iteration ``t`` of the current ``apply`` call; returns True on convergence."""
        raise NotImplementedError

    def _iteration_complete(self, max_movement: float) -> None:
        self.iteration_count += 1
        self.convergence_history.append(math.sqrt(max_movement))
        if self.monitor_objective_function_values:
            self.objective_function_values.append(self.objective_function_value())
        log_debug(
            "iteration complete",
            algorithm=self.algorithm_name,
            iteration=self.iteration_count,
            movement=math.sqrt(max_movement),
        )

    def _can_converge(self) -> bool:
        """Whether ``_iterate`` can ever report convergence; movements are never below 0."""
        return self._epsilon > 0.0

    def _has_converged(self, max_movement: float) -> bool:
        return self.iteration_count >= self._min_iterations and max_movement < self._epsilon * self._epsilon

    def _update_prototypes(self, new_positions: List[Any], weight_sums: np.ndarray) -> float:
        """
        Normalizes the accumulated positions, applies the learning factor and
        moves the active prototypes. Prototypes without any weight stay put.

        Returns
        -------
        float
            The largest squared movement of a prototype.
        """
        max_movement = 0.0
        damped = abs(self._learning_factor - 1.0) > 0.01
        for i in self._active_indices():
            prototype = self.prototypes[i]
            if weight_sums[i] <= 0.0:
                log_debug("prototype received no weight", algorithm=self.algorithm_name, cluster=int(i))
                continue
            new_position = new_positions[i]
            self.vs.mul(new_position, 1.0 / weight_sums[i])
            if damped:
                self.vs.sub(new_position, prototype.position)
                self.vs.mul(new_position, self._learning_factor)
                self.vs.add(new_position, prototype.position)
            movement = self.metric.distance_sq(prototype.position, new_position)
            if movement > max_movement:
                max_movement = movement
            prototype.move_to(new_position)
        return max_movement

    def _new_scratch_positions(self) -> List[Any]:
        return [self.vs.get_new_add_neutral_element() for _ in range(self.cluster_count)]

    # ------------------------------------------------------------------
    # Objective function
    # ------------------------------------------------------------------
    def objective_function_value(self) -> float:
        """Objective value for the current prototype positions, recomputed from scratch."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Prototype access
    # ------------------------------------------------------------------
    @property
    def cluster_count(self) -> int:
        return len(self.prototypes)

    @property
    def active_cluster_count(self) -> int:
        return sum(1 for p in self.prototypes if p.activated)

    @property
    def inactive_cluster_count(self) -> int:
        return self.cluster_count - self.active_cluster_count

    @property
    def data_count(self) -> int:
        return len(self.data_set)

    def active_prototypes(self) -> List[Centroid]:
        return [p for p in self.prototypes if p.activated]

    def prototype_positions(self) -> List[Any]:
        """Copies of all prototype positions in cluster index order."""
        return [self.vs.copy_new(p.position) for p in self.prototypes]

    def _active_indices(self) -> np.ndarray:
        return np.array([i for i, p in enumerate(self.prototypes) if p.activated], dtype=int)

    def __repr__(self):
        return (f"{type(self).__name__}(data={self.data_count}, clusters={self.cluster_count}, "
                f"iterations={self.iteration_count})")


class FuzzyPrototypeClusteringAlgorithm(PrototypeClusteringAlgorithm):
    """
    Alternating optimization with fuzzy membership values.

    Subclasses provide ``_memberships`` (the E-step kernel for one element),
    ``_prototype_weights`` (the M-step weights derived from the memberships)
    and ``_objective_of`` (contribution of one element to the objective).
    ``_membership_context`` computes whatever the kernel needs that does not
    depend on the single element, once per iteration or query.
    """

    algorithm_name = "Fuzzy Prototype Clustering Algorithm"

    def _membership_context(self, t: Optional[int] = None) -> Any:
        """
        Per-iteration state of the kernel. ``t`` is the iteration index within
        the running ``apply`` call, ``None`` for queries after ``apply``.
        """
        return None

    def _distances_sq(self, x: Any, indices: np.ndarray) -> np.ndarray:
        """Squared distances from ``x`` to the prototypes listed in ``indices``."""
        return np.array([self.metric.distance_sq(x, self.prototypes[i].position) for i in indices], dtype=float)

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        raise NotImplementedError

    def _prototype_weights(self, u: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def _objective_of(self, x: Any, context: Any) -> float:
        raise NotImplementedError

    def _iterate(self, t: int) -> bool:
        context = self._membership_context(t)
        new_positions = self._new_scratch_positions()
        weight_sums = np.zeros(self.cluster_count)
        tmp = self.vs.get_new_add_neutral_element()

        for obj in self.data_set:
            weights = self._prototype_weights(self._memberships(obj.x, context))
            for i in np.flatnonzero(weights):
                self.vs.copy(tmp, obj.x)
                self.vs.mul(tmp, weights[i])
                self.vs.add(new_positions[i], tmp)
                weight_sums[i] += weights[i]

        max_movement = self._update_prototypes(new_positions, weight_sums)
        structure_changed = self._after_prototype_update()
        self._iteration_complete(max_movement)
        return not structure_changed and self._has_converged(max_movement)

    def _after_prototype_update(self) -> bool:
        """Hook run after the M-step; returns True if the set of active prototypes changed."""
        return False

    def objective_function_value(self) -> float:
        self._check_initialized()
        context = self._membership_context()
        return float(sum(self._objective_of(obj.x, context) for obj in self.data_set))

    # ------------------------------------------------------------------
    # Membership queries
    # ------------------------------------------------------------------
    def memberships_of_element(self, x: Any) -> np.ndarray:
        """Membership values of an arbitrary element to all prototypes (0 for inactive ones)."""
        self._check_initialized()
        return self._memberships(x, self._membership_context())

    def fuzzy_assignments_of(self, obj: IndexedDataObject) -> np.ndarray:
        return self.memberships_of_element(obj.x)

    def all_fuzzy_cluster_assignments(self) -> np.ndarray:
        """Membership matrix of shape (n_data, n_clusters), rows in ID order."""
        self._check_initialized()
        context = self._membership_context()
        u = np.zeros((self.data_count, self.cluster_count))
        for obj in self.data_set:
            u[obj.id] = self._memberships(obj.x, context)
        return u

    def fuzzy_assignment_sums(self) -> np.ndarray:
        """Sum of the membership values of each cluster."""
        return self.all_fuzzy_cluster_assignments().sum(axis=0)

    def all_crisp_cluster_assignments(self) -> np.ndarray:
        """Index of the largest membership per object, ``-1`` if an object has none."""
        u = self.all_fuzzy_cluster_assignments()
        labels = np.argmax(u, axis=1)
        labels[u.max(axis=1) <= 0.0] = UNASSIGNED_INDEX
        return labels


class NoiseClusteringMixin:
    """
    Noise cluster support for fuzzy algorithms.

    The noise cluster is a virtual prototype at the constant distance
    ``noise_distance`` from every data object. While an ``apply`` call runs,
    the noise distance may start at ``degrading_noise_distance`` and decay
    towards ``noise_distance``:

        noise(t) = noise_distance
                   + (degrading_noise_distance - noise_distance) * exp(-noise_degradation_factor * t)

    Queries and the objective function always use ``noise_distance``.

    References
    ----------
    [1] Dave, R.N., "Characterization and detection of noise in clustering",
        1991, Pattern Recognition Letters, 12(11), pp. 657-664.
    """

    def _init_noise(self, noise_distance: float, degrading_noise_distance: Optional[float],
                    noise_degradation_factor: float) -> None:
        self._noise_distance = DEFAULT_NOISE_DISTANCE
        self._degrading_noise_distance = DEFAULT_NOISE_DISTANCE
        self.noise_distance = noise_distance
        self.degrading_noise_distance = noise_distance if degrading_noise_distance is None else degrading_noise_distance
        self.noise_degradation_factor = noise_degradation_factor

    @property
    def noise_distance(self) -> float:
        return self._noise_distance

    @noise_distance.setter
    def noise_distance(self, value: float) -> None:
        if not value > 0.0:
            raise ValueError(f"The noise distance must be larger than 0. Specified noise distance: {value}")
        self._noise_distance = float(value)
        if self._degrading_noise_distance < self._noise_distance:
            self._degrading_noise_distance = self._noise_distance

    @property
    def degrading_noise_distance(self) -> float:
        return self._degrading_noise_distance

    @degrading_noise_distance.setter
    def degrading_noise_distance(self, value: float) -> None:
        self._degrading_noise_distance = max(float(value), self._noise_distance)

    @property
    def noise_degradation_factor(self) -> float:
        return self._noise_degradation_factor

    @noise_degradation_factor.setter
    def noise_degradation_factor(self, value: float) -> None:
        self._noise_degradation_factor = max(float(value), 0.0)

    def noise_distance_at(self, t: Optional[int]) -> float:
        if t is None:
            return self._noise_distance
        span = self._degrading_noise_distance - self._noise_distance
        return self._noise_distance + span * math.exp(-self._noise_degradation_factor * t)

    def _membership_context(self, t: Optional[int] = None) -> Any:
        return self.noise_distance_at(t)

    def _memberships(self, x: Any, context: Any) -> np.ndarray:
        return self._memberships_with_noise(x, context)[0]

    def _memberships_with_noise(self, x: Any, context: Any):
        """Returns ``(u, noise_membership)`` for one element."""
        raise NotImplementedError

    def fuzzy_noise_assignment_of(self, obj: IndexedDataObject) -> float:
        self._check_initialized()
        return self._memberships_with_noise(obj.x, self._membership_context())[1]

    def fuzzy_noise_assignments(self) -> np.ndarray:
        """Noise membership of every data object in ID order."""
        self._check_initialized()
        context = self._membership_context()
        noise = np.zeros(self.data_count)
        for obj in self.data_set:
            noise[obj.id] = self._memberships_with_noise(obj.x, context)[1]
        return noise

    def all_crisp_cluster_assignments(self) -> np.ndarray:
        """Like the fuzzy arg-max, but objects whose noise membership dominates get ``-1``."""
        u = self.all_fuzzy_cluster_assignments()
        noise = self.fuzzy_noise_assignments()
        labels = np.argmax(u, axis=1)
        labels[(u.max(axis=1) <= 0.0) | (noise > u.max(axis=1))] = UNASSIGNED_INDEX
        return labels
