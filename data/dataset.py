"""
Indexed Data Sets.

An ``IndexedDataSet`` is an ordered collection of ``IndexedDataObject``
wrappers. Each wrapper receives the position at which it was inserted as its
ID, so IDs form the dense range ``0..n-1`` and every per-object result of a
clustering algorithm (membership vectors, crisp labels) can be stored in a
plain array indexed by ID.

A data set starts mutable and is frozen once by ``seal``. Algorithms and
trees only accept sealed data sets since they keep ID-indexed state that an
insertion would invalidate.
"""

from typing import Any, Iterable, Iterator, List, Optional, Union

import numpy as np
import pandas as pd

from utils.exceptions import ChangeNotAllowedError


class IndexedDataObject:
    """
    One data element together with its ID inside the owning data set.

    Parameters
    ----------
    element : Any
        The payload. Algorithms access it through their algebra only.
    """

    __slots__ = ("element", "_id", "_data_set")

    def __init__(self, element: Any):
        self.element = element
        self._id = -1
        self._data_set = None

    @property
    def x(self) -> Any:
        """Short alias of ``element``."""
        return self.element

    @property
    def id(self) -> int:
        return self._id

    @property
    def data_set(self) -> Optional["IndexedDataSet"]:
        return self._data_set

    def __repr__(self):
        return f"IndexedDataObject(id={self._id}, element={self.element!r})"


class IndexedDataSet:
    """
    Ordered, ID-stable collection of data objects with a one-way seal.

    Parameters
    ----------
    elements : Iterable, optional
        Raw elements (or unattached ``IndexedDataObject`` instances) added
        in order. The set is left unsealed.
    """

    def __init__(self, elements: Optional[Iterable[Any]] = None):
        self._objects: List[IndexedDataObject] = []
        self._sealed = False
        if elements is not None:
            self.add_all(elements)

    @classmethod
    def from_array(cls, X: Union[np.ndarray, pd.DataFrame], seal: bool = True) -> "IndexedDataSet":
        """
        Builds a data set whose elements are the rows of ``X`` as float arrays.

        Parameters
        ----------
        X : np.ndarray or pd.DataFrame
            Input data of shape (n_samples, n_features).
        seal : bool, default=True
            Whether to seal the returned set.
        """
        if isinstance(X, pd.DataFrame):
            X = X.to_numpy()
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got shape {X.shape}.")

        data_set = cls(np.array(row, copy=True) for row in X)
        if seal:
            data_set.seal()
        return data_set

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def register_change(self) -> None:
        """Raises ``ChangeNotAllowedError`` once the set is sealed."""
        if self._sealed:
            raise ChangeNotAllowedError()

    def add(self, element: Any) -> IndexedDataObject:
        """
        Appends an element and returns its wrapper.

        ``element`` may be a raw payload or an ``IndexedDataObject`` that
        does not belong to any data set yet.
        """
        self.register_change()
        if isinstance(element, IndexedDataObject):
            if element.data_set is not None:
                raise ValueError(f"The data object {element.id} already belongs to a data set.")
            obj = element
        else:
            obj = IndexedDataObject(element)

        obj._id = len(self._objects)
        obj._data_set = self
        self._objects.append(obj)
        return obj

    def add_all(self, elements: Iterable[Any]) -> None:
        for element in elements:
            self.add(element)

    def seal(self) -> None:
        self._sealed = True

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get(self, index: int) -> IndexedDataObject:
        return self._objects[index]

    def __getitem__(self, index: int) -> IndexedDataObject:
        return self._objects[index]

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[IndexedDataObject]:
        return iter(self._objects)

    def contains(self, obj: IndexedDataObject) -> bool:
        return obj.data_set is self and 0 <= obj.id < len(self._objects) and self._objects[obj.id] is obj

    def __contains__(self, obj) -> bool:
        return isinstance(obj, IndexedDataObject) and self.contains(obj)

    def elements(self) -> List[Any]:
        """The raw payloads in ID order."""
        return [obj.element for obj in self._objects]

    def __repr__(self):
        state = "sealed" if self._sealed else "open"
        return f"IndexedDataSet(size={len(self._objects)}, {state})"
