"""
Protein-level crosslink report.

Maps surviving crosslink PSMs back onto their proteins, marks the crosslink
site of each protein's top-scoring PSM and renders one report row per
protein.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pyopenms import PeptideHit, PeptideIdentification, ProteinHit, ProteinIdentification

from .constants import (
    BEST_LOCALIZATION_POSITION,
    NA,
    NA_MASS,
    PROTEIN_REPORT_COLUMNS,
    PROTEIN_XL_MASS,
    PROTEIN_XL_NA,
    PROTEIN_XL_PEPTIDE,
    PROTEIN_XL_POSITION,
    PROTEIN_XL_SITE,
    SITE_CONTEXT_WIDTH,
    TARGET_DECOY,
)
from .errors import DataInconsistencyError
from .filtering import get_meta, is_target, to_str
from .io import store_tsv

logger = logging.getLogger(__name__)


def partition_accessions(
    protein_id: ProteinIdentification, strict: bool = False
) -> Tuple[Dict[str, int], Dict[str, int]]:
    """
    Index the protein hits of one identification run by accession.

    Args:
        protein_id: Protein identification run
        strict: Raise on an accession seen twice within the same class
            instead of keeping the last one

    Returns:
        Tuple of (acc2protein_targets, acc2protein_decoys), each mapping an
        accession to the position of its hit in ``protein_id.getHits()``

    Raises:
        DataInconsistencyError: duplicate accession and ``strict`` is set
    """
    acc2protein_targets = {}
    acc2protein_decoys = {}
    for index, protein in enumerate(protein_id.getHits()):
        accession = to_str(protein.getAccession())
        mapping = acc2protein_targets if is_target(protein) else acc2protein_decoys
        if accession in mapping:
            message = f"Duplicate protein accession {accession} (hits {mapping[accession]} and {index})"
            if strict:
                raise DataInconsistencyError(message, accession)
            logger.warning(f"{message}; keeping the last one")
        mapping[accession] = index
    return acc2protein_targets, acc2protein_decoys


@dataclass
class _TopHit:
    hit: PeptideHit
    score: float
    start: int


@dataclass
class _ProteinSummary:
    run: int
    index: int
    csms: int = 0
    peptides: Dict[str, None] = field(default_factory=dict)
    top: Optional[_TopHit] = None


@dataclass
class ProteinReport:
    """Result of annotate_top_hit_modifications"""

    protein_ids: List[ProteinIdentification]
    rows: List[List[str]]
    issues: List[DataInconsistencyError] = field(default_factory=list)

    def store(self, path: str) -> None:
        store_tsv(path, PROTEIN_REPORT_COLUMNS, self.rows)


def _is_better(score: float, best: float, higher_better: bool) -> bool:
    return score > best if higher_better else score < best


def _site(hit: PeptideHit, start: int, sequence: str):
    """
    Locate the crosslinked residue on the protein.

    Returns (0-based protein position, residue, context) or None when the
    PSM carries no localization.
    """
    loc = int(get_meta(hit, BEST_LOCALIZATION_POSITION, -1))
    if loc < 0 or start < 0:
        return None
    position = start + loc
    if position >= len(sequence):
        return position, "", ""
    residue = sequence[position]
    left = sequence[max(0, position - SITE_CONTEXT_WIDTH):position]
    right = sequence[position + 1:position + 1 + SITE_CONTEXT_WIDTH]
    return position, residue, left + residue.lower() + right


def annotate_top_hit_modifications(
    protein_ids: List[ProteinIdentification],
    peptide_ids: List[PeptideIdentification],
    report_decoys: bool = False,
) -> ProteinReport:
    """
    Annotate each protein with the crosslink site of its top-scoring PSM.

    Every hit in ``peptide_ids`` is mapped to its proteins through its
    peptide evidences. Per protein, the best scoring hit (respecting the
    identification's score direction; the first one wins on ties) becomes
    the top hit. Its site is the evidence start plus the hit's
    NuXL:best_localization_position; nucleotide label and mass come from
    NuXL:NA and NuXL:NA_MASS_z0. Proteins are annotated on copies, the input
    is not modified.

    Hits referencing an unknown accession are logged and recorded as
    DataInconsistencyError in the report; they do not abort the report.

    Args:
        protein_ids: Protein identifications (typically already restricted
            to referenced proteins)
        peptide_ids: Surviving, decoy-free PSMs
        report_decoys: Include decoy proteins in the report rows

    Returns:
        ProteinReport with annotated protein copies, rows in order of first
        reference and any recorded inconsistencies
    """
    runs = [prot_id.getHits() for prot_id in protein_ids]
    targets = {}
    decoys = {}
    for run, prot_id in enumerate(protein_ids):
        run_targets, run_decoys = partition_accessions(prot_id)
        for accession, index in run_targets.items():
            targets[accession] = (run, index)
        for accession, index in run_decoys.items():
            decoys[accession] = (run, index)

    summaries = {}
    issues = []
    for pep_id in peptide_ids:
        higher_better = pep_id.isHigherScoreBetter()
        for hit in pep_id.getHits():
            sequence = hit.getSequence().toString()
            for evidence in hit.getPeptideEvidences():
                accession = to_str(evidence.getProteinAccession())
                location = targets.get(accession) or decoys.get(accession)
                if location is None:
                    issue = DataInconsistencyError(
                        f"Peptide {sequence} references unknown protein {accession}",
                        accession,
                    )
                    logger.warning(str(issue))
                    issues.append(issue)
                    continue

                summary = summaries.get(accession)
                if summary is None:
                    summary = _ProteinSummary(run=location[0], index=location[1])
                    summaries[accession] = summary
                summary.csms += 1
                summary.peptides[sequence] = None

                score = hit.getScore()
                if summary.top is None or _is_better(score, summary.top.score, higher_better):
                    summary.top = _TopHit(hit=hit, score=score, start=evidence.getStart())

    rows = []
    for accession, summary in summaries.items():
        protein = runs[summary.run][summary.index]
        protein_sequence = to_str(protein.getSequence())
        top = summary.top
        na = to_str(get_meta(top.hit, NA, ""))
        na_mass = get_meta(top.hit, NA_MASS, "")
        top_peptide = top.hit.getSequence().toString()

        site = _site(top.hit, top.start, protein_sequence)
        if site is not None:
            position, residue, context = site
            annotated = ProteinHit(protein)
            annotated.setMetaValue(PROTEIN_XL_POSITION, position + 1)
            annotated.setMetaValue(PROTEIN_XL_SITE, residue)
            annotated.setMetaValue(PROTEIN_XL_NA, na)
            if na_mass != "":
                annotated.setMetaValue(PROTEIN_XL_MASS, float(na_mass))
            annotated.setMetaValue(PROTEIN_XL_PEPTIDE, top_peptide)
            runs[summary.run][summary.index] = annotated
        else:
            position, residue, context = None, "", ""

        if not report_decoys and not is_target(protein):
            continue

        rows.append(
            [
                accession,
                to_str(protein.getDescription()),
                to_str(get_meta(protein, TARGET_DECOY, "")),
                str(len(protein_sequence)),
                str(summary.csms),
                str(len(summary.peptides)),
                top_peptide,
                str(top.score),
                na,
                str(na_mass),
                "" if position is None else str(position + 1),
                residue,
                context,
            ]
        )

    annotated_ids = []
    for prot_id, hits in zip(protein_ids, runs):
        new_prot_id = ProteinIdentification(prot_id)
        new_prot_id.setHits(hits)
        annotated_ids.append(new_prot_id)

    logger.info(
        f"Protein report: {len(rows)} proteins, {len(issues)} unresolved accessions"
    )
    return ProteinReport(protein_ids=annotated_ids, rows=rows, issues=issues)
