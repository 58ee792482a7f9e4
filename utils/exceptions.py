"""
Exceptions raised by the clustering engine and its data structures.

Numerical corner cases (zero distances, empty clusters, infinite kernel
values) are part of the algorithms' semantics and never raise. The errors
below signal misuse: reading state that does not exist yet, or mutating
data that has been frozen.
"""


class AlgorithmNotInitializedError(RuntimeError):
    """Raised when an algorithm is applied or queried before its prototypes exist."""

    def __init__(self, message: str = "Prototypes not initialized."):
        super().__init__(message)


class DataSetNotSealedError(RuntimeError):
    """Raised when an algorithm or a tree receives a data set that is still mutable."""

    def __init__(self, message: str = "The data set is not sealed."):
        super().__init__(message)


class ChangeNotAllowedError(RuntimeError):
    """Raised when a sealed data set is modified."""

    def __init__(self, message: str = "The data set is sealed and cannot be changed."):
        super().__init__(message)


class DataStructureNotBuiltError(RuntimeError):
    """Raised when a tree is queried before it has been built."""

    def __init__(self, message: str = "Data structure is not built."):
        super().__init__(message)
