"""
Exception types raised by the FDR cascade and its report writers.
"""

from typing import List, Optional


class NuXLFDRError(Exception):
    """Base class for all errors raised by pynuxl.fdr"""


class ConfigurationError(NuXLFDRError):
    """The q-value estimator or the threshold set is misconfigured."""


class PersistenceError(NuXLFDRError):
    """
    An identification or report file could not be read or written.

    When several outputs of a cascade fail, ``errors`` holds every
    underlying failure in threshold order.
    """

    def __init__(self, message: str, errors: Optional[List[Exception]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors else []


class DataInconsistencyError(NuXLFDRError):
    """
    A hit references a protein accession that is not part of the protein
    collection (or an accession is duplicated within one target/decoy class).

    Recorded and logged; processing continues with the remaining hits.
    """

    def __init__(self, message: str, accession: Optional[str] = None):
        super().__init__(message)
        self.accession = accession
