import numpy as np
import pandas as pd
import pytest

from data.dataset import IndexedDataObject, IndexedDataSet
from data.parser import data_set_from_frame
from utils.exceptions import ChangeNotAllowedError


def test_ids_follow_insertion_order():
    # Arrange
    data_set = IndexedDataSet()

    # Act
    objects = [data_set.add(np.array([float(i)])) for i in range(4)]

    # Assert
    assert [obj.id for obj in objects] == [0, 1, 2, 3]
    assert all(data_set.get(obj.id) is obj for obj in objects)
    assert len(data_set) == 4


def test_sealed_set_refuses_changes():
    data_set = IndexedDataSet([1.0, 2.0])
    data_set.seal()

    assert data_set.is_sealed
    with pytest.raises(ChangeNotAllowedError):
        data_set.add(3.0)
    with pytest.raises(ChangeNotAllowedError):
        data_set.register_change()
    assert len(data_set) == 2


def test_attached_object_cannot_join_another_set():
    first = IndexedDataSet()
    obj = first.add("a")
    second = IndexedDataSet()

    with pytest.raises(ValueError):
        second.add(obj)


def test_unattached_object_is_adopted():
    obj = IndexedDataObject("payload")
    data_set = IndexedDataSet()

    added = data_set.add(obj)

    assert added is obj
    assert obj.data_set is data_set
    assert data_set.contains(obj)
    assert obj in data_set


def test_contains_checks_membership_by_identity():
    data_set = IndexedDataSet(["a", "b"])
    other = IndexedDataSet(["a", "b"])

    assert data_set.contains(data_set[1])
    assert not data_set.contains(other[1])
    assert "a" not in data_set


def test_from_array_copies_rows_and_seals():
    # Arrange
    X = np.arange(6, dtype=float).reshape(3, 2)

    # Act
    data_set = IndexedDataSet.from_array(X)
    X[0, 0] = 100.0

    # Assert
    assert data_set.is_sealed
    np.testing.assert_allclose(data_set[0].x, [0.0, 1.0])
    np.testing.assert_allclose(data_set.elements()[2], [4.0, 5.0])


def test_from_array_accepts_frames():
    frame = pd.DataFrame({"a": [1.0, 2.0], "b": [3.0, 4.0]})

    data_set = IndexedDataSet.from_array(frame, seal=False)

    assert not data_set.is_sealed
    np.testing.assert_allclose(data_set[1].x, [2.0, 4.0])


def test_from_array_rejects_one_dimensional_input():
    with pytest.raises(ValueError):
        IndexedDataSet.from_array(np.arange(3.0))


def test_data_set_from_frame_scales_and_encodes():
    # Arrange
    frame = pd.DataFrame({
        "size": [1.0, 3.0, np.nan, 5.0],
        "color": ["red", "blue", "red", "?"],
        "class": ["x", "y", "x", "y"],
    })

    # Act
    data_set, y, info = data_set_from_frame(frame, class_column="class")

    # Assert
    X = np.array(data_set.elements())
    assert data_set.is_sealed
    assert X.shape == (4, 3)
    assert X[:, 0].min() == pytest.approx(0.0)
    assert X[:, 0].max() == pytest.approx(1.0)
    assert list(y) == [0, 1, 0, 1]
    assert info["categorical_cols"] == ["color"]
