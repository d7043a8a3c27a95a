"""
FDR control and reporting for NuXL crosslink PSMs
"""

from .cascade import NuXLFDR, ThresholdResult
from .errors import (
    ConfigurationError,
    DataInconsistencyError,
    NuXLFDRError,
    PersistenceError,
)
from .filtering import normalize_thresholds
from .populations import split_populations
from .protein_report import annotate_top_hit_modifications, partition_accessions
from .qvalue import QValueConfig, QValueEstimator

__all__ = [
    "NuXLFDR",
    "ThresholdResult",
    "ConfigurationError",
    "DataInconsistencyError",
    "NuXLFDRError",
    "PersistenceError",
    "normalize_thresholds",
    "split_populations",
    "annotate_top_hit_modifications",
    "partition_accessions",
    "QValueConfig",
    "QValueEstimator",
]
