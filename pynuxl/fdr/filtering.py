"""
Copy-based filters over pyopenms identification containers.

Every function here returns new containers and leaves its input untouched,
so one q-value annotated population can be filtered repeatedly.
"""

import logging
from typing import Any, Dict, Iterable, List

import numpy as np
from pyopenms import PeptideHit, PeptideIdentification, ProteinIdentification

from .constants import (
    DISABLED_THRESHOLD,
    NO_FILTER_THRESHOLD,
    TARGET_DECOY,
    TARGET_PREFIX,
    THRESHOLD_DIGITS,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def to_str(value: Any) -> str:
    """Convert a pyopenms string (bytes on older releases) to str"""
    if value is None:
        return ""
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def get_meta(obj, key: str, default: Any = None) -> Any:
    """Read a meta value from any pyopenms MetaInfoInterface, with default"""
    if not obj.metaValueExists(key):
        return default
    value = obj.getMetaValue(key)
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return default if value is None else value


def is_target(obj) -> bool:
    """
    Whether a peptide or protein hit is labelled as target.

    "target+decoy" (shared between both databases) counts as target;
    everything else, including a missing label, counts as decoy.
    """
    return to_str(get_meta(obj, TARGET_DECOY, "")).startswith(TARGET_PREFIX)


def copy_with_hits(
    pep_id: PeptideIdentification, hits: List[PeptideHit]
) -> PeptideIdentification:
    """Copy an identification and replace its hit list"""
    new_pep_id = PeptideIdentification(pep_id)
    new_pep_id.setHits(hits)
    return new_pep_id


def remove_decoy_hits(
    peptide_ids: List[PeptideIdentification],
) -> List[PeptideIdentification]:
    """
    Drop decoy hits. Identifications left without hits are dropped as well.
    """
    result = []
    for pep_id in peptide_ids:
        hits = [hit for hit in pep_id.getHits() if is_target(hit)]
        if hits:
            result.append(copy_with_hits(pep_id, hits))
    logger.debug(
        f"Decoy removal kept {len(result)} of {len(peptide_ids)} identifications"
    )
    return result


def passes_threshold(score: float, threshold: float, higher_better: bool) -> bool:
    return score >= threshold if higher_better else score <= threshold


def filter_hits_by_score(
    peptide_ids: List[PeptideIdentification], threshold: float
) -> List[PeptideIdentification]:
    """
    Keep hits whose score passes ``threshold``.

    The direction follows each identification's higher-score-better flag;
    after q-value estimation that means ``score <= threshold``.

    Args:
        peptide_ids: Identifications to filter
        threshold: Score cutoff (inclusive)

    Returns:
        New identifications holding only passing hits; identifications
        without passing hits are left out
    """
    result = []
    for pep_id in peptide_ids:
        higher_better = pep_id.isHigherScoreBetter()
        hits = [
            hit
            for hit in pep_id.getHits()
            if passes_threshold(hit.getScore(), threshold, higher_better)
        ]
        if hits:
            result.append(copy_with_hits(pep_id, hits))
    return result


def count_hits(peptide_ids: List[PeptideIdentification]) -> int:
    return sum(len(pep_id.getHits()) for pep_id in peptide_ids)


def referenced_accessions(peptide_ids: List[PeptideIdentification]) -> Dict[str, int]:
    """
    Map each protein accession referenced by a hit to the order of its
    first reference.
    """
    order = {}
    for pep_id in peptide_ids:
        for hit in pep_id.getHits():
            for evidence in hit.getPeptideEvidences():
                accession = to_str(evidence.getProteinAccession())
                if accession not in order:
                    order[accession] = len(order)
    return order


def restrict_to_referenced_proteins(
    protein_ids: List[ProteinIdentification],
    peptide_ids: List[PeptideIdentification],
) -> List[ProteinIdentification]:
    """
    Copy ``protein_ids`` keeping only protein hits referenced by at least one
    hit in ``peptide_ids``, ordered by first reference.

    An accession carried by both a target and a decoy protein hit resolves to
    the target; the decoy is dropped.
    """
    order = referenced_accessions(peptide_ids)
    result = []
    for prot_id in protein_ids:
        hits = [hit for hit in prot_id.getHits() if to_str(hit.getAccession()) in order]
        target_accessions = {to_str(hit.getAccession()) for hit in hits if is_target(hit)}
        kept = [
            hit
            for hit in hits
            if is_target(hit) or to_str(hit.getAccession()) not in target_accessions
        ]
        # stable: duplicate accessions keep their relative order
        kept.sort(key=lambda hit: order[to_str(hit.getAccession())])
        new_prot_id = ProteinIdentification(prot_id)
        new_prot_id.setHits(kept)
        result.append(new_prot_id)
    return result


def normalize_thresholds(thresholds: Iterable[float]) -> List[float]:
    """
    Turn a q-value threshold set into the order the cascade processes it.

    A threshold of 0.0 means "filtering disabled" and is replaced by 1.0
    (accept everything) before sorting. The result is sorted descending,
    loosest first, with duplicates removed so that every threshold-keyed
    output path is written once.

    Args:
        thresholds: q-value cutoffs in [0, 1]

    Returns:
        Normalized thresholds, largest first

    Raises:
        ConfigurationError: a threshold is NaN or outside [0, 1]
    """
    values = np.asarray(list(thresholds), dtype=float)
    if values.size == 0:
        return []
    invalid = np.isnan(values) | (values < 0.0) | (values > 1.0)
    if invalid.any():
        raise ConfigurationError(
            f"Q-value thresholds must lie in [0, 1], got {values[invalid].tolist()}"
        )
    values = np.where(values == DISABLED_THRESHOLD, NO_FILTER_THRESHOLD, values)
    return [float(v) for v in np.unique(values)[::-1]]


def filters_anything(threshold: float) -> bool:
    """Only thresholds strictly inside (0, 1) remove hits"""
    return 0.0 < threshold < 1.0


def format_threshold(threshold: float) -> str:
    return f"{threshold:.{THRESHOLD_DIGITS}f}"
