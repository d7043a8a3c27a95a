"""
Split NuXL identifications into the linear peptide and the crosslink population.
"""

import logging
from typing import List, Tuple

from pyopenms import PeptideIdentification

from .constants import XL_FLAG
from .filtering import copy_with_hits, get_meta

logger = logging.getLogger(__name__)


def is_crosslink(hit, xl_meta_key: str = XL_FLAG) -> bool:
    """Hits without the flag are treated as unmodified peptides"""
    return int(get_meta(hit, xl_meta_key, 0)) != 0


def split_populations(
    peptide_ids: List[PeptideIdentification], xl_meta_key: str = XL_FLAG
) -> Tuple[List[PeptideIdentification], List[PeptideIdentification]]:
    """
    Separate identifications by hit type.

    For every identification the first (best ranked) unmodified hit goes to
    the peptide population and the first crosslink hit goes to the crosslink
    population, each in a copy of the identification holding only that hit.
    Identifications without a qualifying hit are absent from the respective
    population. The input is not modified.

    Args:
        peptide_ids: Identifications with hits in rank order
        xl_meta_key: Meta value flagging crosslink hits

    Returns:
        Tuple of (peptide population, crosslink population)
    """
    peptide_population = []
    crosslink_population = []

    for pep_id in peptide_ids:
        best_peptide = None
        best_xl = None
        for hit in pep_id.getHits():
            if is_crosslink(hit, xl_meta_key):
                if best_xl is None:
                    best_xl = hit
            elif best_peptide is None:
                best_peptide = hit
            if best_peptide is not None and best_xl is not None:
                break

        if best_peptide is not None:
            peptide_population.append(copy_with_hits(pep_id, [best_peptide]))
        if best_xl is not None:
            crosslink_population.append(copy_with_hits(pep_id, [best_xl]))

    logger.info(
        f"Split {len(peptide_ids)} identifications into {len(peptide_population)} "
        f"peptide and {len(crosslink_population)} crosslink PSMs"
    )
    return peptide_population, crosslink_population
