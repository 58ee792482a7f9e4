import numpy as np
import pytest
from loguru import logger
from sklearn.datasets import make_blobs

from algebra.euclidean import ArrayEuclideanSpace
from data.dataset import IndexedDataSet


@pytest.fixture(autouse=True)
def silence_logger():
    """Keep Loguru output out of the test report."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def vs():
    return ArrayEuclideanSpace(2)


@pytest.fixture
def blobs():
    """Three well separated 2-D blobs: ``(data_set, X, y, centers)``."""
    centers = np.array([[0.0, 0.0], [6.0, 0.0], [0.0, 6.0]])
    X, y = make_blobs(n_samples=150, centers=centers, cluster_std=0.4, random_state=7)
    return IndexedDataSet.from_array(X), X, y, centers


@pytest.fixture
def blob_starts(blobs):
    """One data point from every blob, a good and deterministic initialization."""
    _, X, y, _ = blobs
    return [X[np.flatnonzero(y == k)[0]].copy() for k in range(3)]


@pytest.fixture
def data_set_of():
    """Builds a sealed data set from a list of points."""
    def build(points):
        return IndexedDataSet.from_array(np.asarray(points, dtype=float))
    return build


@pytest.fixture
def unit_square_blobs():
    """300 points in three tight blobs inside the unit square: ``(data_set, X, y, centers)``."""
    centers = np.array([[0.2, 0.2], [0.8, 0.2], [0.5, 0.8]])
    X, y = make_blobs(n_samples=[100, 100, 100], centers=centers, cluster_std=0.03, random_state=11)
    return IndexedDataSet.from_array(X), X, y, centers
