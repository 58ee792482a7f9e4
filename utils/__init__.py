"""
Utilities package initialization.

Exposes the error taxonomy, the logging helpers and the validation indices
to the top-level utils package for cleaner imports throughout the project.
"""

from .exceptions import (
    AlgorithmNotInitializedError,
    ChangeNotAllowedError,
    DataSetNotSealedError,
    DataStructureNotBuiltError,
)

from .logging_utils import (
    configure_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)

from .clustering_metrics import (
    cluster_f1_measure,
    compute_clustering_metrics,
    f_measure_score,
    non_fuzzyness_index,
    partition_coefficient,
    partition_entropy,
    purity_score,
    xie_beni_index,
)
