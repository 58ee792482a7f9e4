"""
Algebra package.

Capability contracts (vector space, metric, norm, scalar product) through
which every clustering algorithm manipulates data elements, a concrete
Euclidean space over numpy arrays, Lp metrics and norms on the same arrays,
and the lifting of an algebra to fixed-length lists of elements.
"""

from .contracts import (
    VectorSpace,
    Metric,
    Norm,
    ScalarProduct,
    EuclideanVectorSpace
)
from .euclidean import ArrayEuclideanSpace
from .lp import ArrayLpNorm, ArrayLpMetric, ArrayCityBlockNorm, ArrayCityBlockMetric
from .lists import (
    ListVectorSpace,
    ListMetric,
    ListNorm,
    ListScalarProduct,
    ListEuclideanSpace
)
