"""
PSM-level crosslink report: one row per identified spectrum.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from pyopenms import PeptideIdentification

from .constants import (
    BEST_LOCALIZATION,
    BEST_LOCALIZATION_SCORE,
    LOCALIZATION_SCORES,
    NA,
    NA_MASS,
    PROTON_MASS,
    PSM_REPORT_COLUMNS,
    PSM_REPORT_ERROR_COLUMNS,
)
from .filtering import get_meta, to_str
from .io import store_tsv

logger = logging.getLogger(__name__)

# Charge states for which theoretical [M+zH]z+ values are reported
REPORTED_CHARGES = np.arange(1, 5)


@dataclass
class PSMReportRow:
    rt: float
    original_mz: float
    accessions: str
    peptide: str
    na: str
    charge: int
    score: float
    rank: int
    best_localization_score: float
    localization_scores: str
    best_localization: str
    peptide_weight: float
    na_weight: float
    xl_weight: float
    abs_prec_error: float
    rel_prec_error: float
    charged_masses: List[float]
    meta_values: List[str] = field(default_factory=list)

    def to_list(self) -> List[str]:
        values = [
            str(self.rt),
            str(self.original_mz),
            self.accessions,
            self.na,
            self.peptide,
            str(self.charge),
            str(self.score),
            str(self.rank),
            str(self.best_localization_score),
            self.localization_scores,
            self.best_localization,
            str(self.peptide_weight),
            str(self.na_weight),
            str(self.xl_weight),
        ]
        values.extend(self.meta_values)
        values.extend([str(self.abs_prec_error), str(self.rel_prec_error)])
        values.extend(str(m) for m in self.charged_masses)
        return values


def header(meta_values_to_export: Sequence[str] = ()) -> List[str]:
    return PSM_REPORT_COLUMNS + list(meta_values_to_export) + PSM_REPORT_ERROR_COLUMNS


def build_psm_rows(
    peptide_ids: List[PeptideIdentification],
    meta_values_to_export: Sequence[str] = (),
) -> List[PSMReportRow]:
    """
    Build report rows from the top hit of each identification.

    Precursor errors compare the theoretical m/z of peptide plus nucleotide
    adduct at the hit's charge with the measured precursor m/z.

    Args:
        peptide_ids: Identifications to report (empty ones are skipped)
        meta_values_to_export: Additional hit meta values to add as columns

    Returns:
        List of PSMReportRow in input order
    """
    rows = []
    for pep_id in peptide_ids:
        hits = pep_id.getHits()
        if not hits:
            continue
        hit = hits[0]

        peptide_weight = hit.getSequence().getMonoWeight()
        na_weight = float(get_meta(hit, NA_MASS, 0.0))
        xl_weight = peptide_weight + na_weight
        charge = hit.getCharge()
        original_mz = pep_id.getMZ()

        if charge > 0:
            theo_mz = (xl_weight + charge * PROTON_MASS) / charge
            abs_prec_error = theo_mz - original_mz
            rel_prec_error = abs_prec_error / theo_mz * 1e6
        else:
            abs_prec_error = 0.0
            rel_prec_error = 0.0

        charged_masses = (xl_weight + REPORTED_CHARGES * PROTON_MASS) / REPORTED_CHARGES

        accessions = ",".join(
            to_str(evidence.getProteinAccession()) for evidence in hit.getPeptideEvidences()
        )

        rows.append(
            PSMReportRow(
                rt=pep_id.getRT(),
                original_mz=original_mz,
                accessions=accessions,
                peptide=hit.getSequence().toString(),
                na=to_str(get_meta(hit, NA, "")),
                charge=charge,
                score=hit.getScore(),
                rank=hit.getRank(),
                best_localization_score=float(get_meta(hit, BEST_LOCALIZATION_SCORE, 0.0)),
                localization_scores=to_str(get_meta(hit, LOCALIZATION_SCORES, "")),
                best_localization=to_str(get_meta(hit, BEST_LOCALIZATION, "")),
                peptide_weight=peptide_weight,
                na_weight=na_weight,
                xl_weight=xl_weight,
                abs_prec_error=abs_prec_error,
                rel_prec_error=rel_prec_error,
                charged_masses=charged_masses.tolist(),
                meta_values=[to_str(get_meta(hit, key, "")) for key in meta_values_to_export],
            )
        )
    return rows


def write_psm_report(
    path: str,
    rows: List[PSMReportRow],
    meta_values_to_export: Sequence[str] = (),
) -> None:
    store_tsv(path, header(meta_values_to_export), (row.to_list() for row in rows))
    logger.debug(f"Wrote {len(rows)} PSM rows")
