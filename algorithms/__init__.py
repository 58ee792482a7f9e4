"""
Clustering Algorithms Package.

Prototype based alternating optimization clustering over arbitrary algebras.
All algorithms share the engine in ``base`` and differ in their membership
kernel, the M-step weights and the objective function. DBSCAN stands apart:
it has no prototypes and needs only a metric.

Modules
-------
- base: Iteration control, initialization and membership queries.
- prototypes: Centroids and spherical normal distribution prototypes.
- fuzzy_c_means: Fuzzy c-Means (with and without noise cluster).
- polynomial_fcm: FCM with polynomial fuzzifier function.
- dist_adapted_fcm: Distance adapted FCM with prototype merging and removal.
- rewarding_crisp_fcm: FCM rewarding crisp memberships.
- voronoi_fcm: FCM restricted to Voronoi neighbours.
- ball_tree_fcm: FCM accelerated by a centered ball tree.
- kmeans: Hard c-Means (Lloyd's Algorithm).
- gmm_clustering: Expectation Maximization for spherical Gaussian mixtures.
- dbscan: Density based clustering with noise over any metric.
"""

from .base import (
    DEFAULT_NOISE_DISTANCE,
    UNASSIGNED_INDEX,
    FuzzyPrototypeClusteringAlgorithm,
    NoiseClusteringMixin,
    PrototypeClusteringAlgorithm,
)
from .prototypes import Centroid, SphericalNormalDistributionPrototype
from .fuzzy_c_means import FuzzyCMeans, FuzzyCMeansNoise
from .polynomial_fcm import PolynomialFCM, PolynomialFCMNoise
from .dist_adapted_fcm import DistAdaptedFCM, DistAdaptedFCMNoise
from .rewarding_crisp_fcm import RewardingCrispFCM, RewardingCrispFCMNoise
from .voronoi_fcm import VoronoiPartitionFCM, VoronoiPartitionFCMNoise
from .ball_tree_fcm import BallTreeFuzzyCMeans
from .kmeans import HardCMeans
from .gmm_clustering import ExpectationMaximizationSGMM, run_reference_gmm_once
from .dbscan import NOISE_INDEX, DBScan
