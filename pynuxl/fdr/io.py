"""
Reading and writing identification files and tab-separated reports.
"""

import csv
import logging
import os
from typing import Iterable, List, Sequence, Tuple

from pyopenms import IdXMLFile, PeptideIdentification, ProteinIdentification

from .errors import PersistenceError

logger = logging.getLogger(__name__)


def _check_output_dir(path: str) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        raise PersistenceError(f"Output directory does not exist: {directory}")


def load_identifications(path: str) -> Tuple[List[ProteinIdentification], List[PeptideIdentification]]:
    """
    Load protein and peptide identifications from an idXML file.

    Args:
        path: idXML file

    Returns:
        Tuple of (protein identifications, peptide identifications)

    Raises:
        PersistenceError: the file is missing or cannot be parsed
    """
    file_path = os.fspath(path)
    if not os.path.exists(file_path):
        raise PersistenceError(f"idXML file not found: {file_path}")

    protein_ids = []
    peptide_ids = []
    try:
        IdXMLFile().load(file_path, protein_ids, peptide_ids)
    except RuntimeError as e:
        raise PersistenceError(f"Cannot read idXML file {file_path}: {e}") from e

    logger.info(
        f"Loaded {len(peptide_ids)} peptide and {len(protein_ids)} protein identifications from {file_path}"
    )
    return protein_ids, peptide_ids


def store_identifications(
    path: str,
    protein_ids: List[ProteinIdentification],
    peptide_ids: List[PeptideIdentification],
) -> None:
    """Write identifications to an idXML file; raises PersistenceError on failure"""
    file_path = os.fspath(path)
    _check_output_dir(file_path)
    try:
        IdXMLFile().store(file_path, protein_ids, peptide_ids)
    except RuntimeError as e:
        raise PersistenceError(f"Cannot write idXML file {file_path}: {e}") from e
    logger.info(f"Results saved to: {file_path}")


def store_tsv(path: str, header: Sequence[str], rows: Iterable[Sequence]) -> None:
    """Write a tab-separated table with a header line"""
    file_path = os.fspath(path)
    _check_output_dir(file_path)
    try:
        with open(file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, delimiter="\t", lineterminator="\n")
            writer.writerow(header)
            writer.writerows(rows)
    except OSError as e:
        raise PersistenceError(f"Cannot write report {file_path}: {e}") from e
    logger.info(f"Report saved to: {file_path}")
