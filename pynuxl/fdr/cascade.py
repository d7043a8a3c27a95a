"""
FDR control for NuXL search results.

Q-values are computed separately for linear peptide PSMs and crosslink PSMs.
Decoys take part in the estimation and are removed afterwards. The peptide
population is filtered once; the crosslink population is filtered once per
q-value threshold, loosest first, and every threshold gets its own PSM-level
idXML and protein-level report.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from pyopenms import PeptideIdentification, ProteinIdentification

from .constants import (
    PEPTIDE_SUFFIX,
    PROTEIN_REPORT_INFIX,
    PROTEIN_REPORT_SUFFIX,
    PSM_REPORT_SUFFIX,
    XL_SUFFIX,
)
from .errors import DataInconsistencyError, PersistenceError
from .filtering import (
    copy_with_hits,
    count_hits,
    filter_hits_by_score,
    filters_anything,
    format_threshold,
    normalize_thresholds,
    remove_decoy_hits,
    restrict_to_referenced_proteins,
)
from .io import store_identifications
from .populations import split_populations
from .protein_report import annotate_top_hit_modifications
from .psm_report import build_psm_rows, write_psm_report
from .qvalue import QValueConfig, QValueEstimator

logger = logging.getLogger(__name__)


def peptide_output_path(prefix: str, threshold: float) -> str:
    return f"{prefix}{format_threshold(threshold)}{PEPTIDE_SUFFIX}"


def xl_output_path(prefix: str, threshold: float) -> str:
    return f"{prefix}{format_threshold(threshold)}{XL_SUFFIX}"


def protein_report_path(prefix: str, threshold: float) -> str:
    return f"{prefix}{PROTEIN_REPORT_INFIX}{format_threshold(threshold)}{PROTEIN_REPORT_SUFFIX}"


def psm_report_path(prefix: str, threshold: float) -> str:
    return f"{prefix}{format_threshold(threshold)}{PSM_REPORT_SUFFIX}"


@dataclass
class ThresholdResult:
    """What one filter step kept and where it was written."""

    threshold: float
    idxml_path: str
    num_psms: int
    num_proteins: int
    peptide_ids: List[PeptideIdentification] = field(default_factory=list, repr=False)
    # annotated with the crosslink site of each protein's top hit for XL results
    protein_ids: List[ProteinIdentification] = field(default_factory=list, repr=False)
    report_path: Optional[str] = None
    psm_report_path: Optional[str] = None
    issues: List[DataInconsistencyError] = field(default_factory=list, repr=False)


class NuXLFDR:
    """
    Population-wise q-value estimation and threshold cascade.

    Args:
        report_top_hits: Hits per spectrum reported downstream; two or more
            make the estimator consider all ranked hits
        estimator: Object with an ``apply(peptide_ids)`` method annotating
            q-values in place (defaults to QValueEstimator)
        report_decoys: Keep decoy proteins in the protein reports
        psm_report: Also write a PSM-level report per crosslink threshold
        meta_values_to_export: Extra hit meta values for the PSM report
    """

    def __init__(
        self,
        report_top_hits: int = 1,
        estimator=None,
        report_decoys: bool = False,
        psm_report: bool = False,
        meta_values_to_export: Sequence[str] = (),
    ):
        self.report_top_hits = report_top_hits
        self.estimator_config = QValueConfig.for_top_hits(report_top_hits)
        self.estimator = estimator if estimator is not None else QValueEstimator(self.estimator_config)
        self.report_decoys = report_decoys
        self.psm_report = psm_report
        self.meta_values_to_export = list(meta_values_to_export)

    def compute_q_values(self, peptide_ids: List[PeptideIdentification]) -> None:
        """Annotate q-values on ``peptide_ids`` in place, decoys included"""
        self.estimator.apply(peptide_ids)

    def _annotated_targets(
        self, population: List[PeptideIdentification]
    ) -> List[PeptideIdentification]:
        # the estimator works in place, the caller's population stays untouched
        working = [copy_with_hits(pep_id, pep_id.getHits()) for pep_id in population]
        self.compute_q_values(working)
        targets = remove_decoy_hits(working)
        logger.info(
            f"{count_hits(targets)} target PSMs of {count_hits(working)} after q-value estimation"
        )
        return targets

    def _filtered_peptides(
        self, peptide_population: List[PeptideIdentification], qvalue_threshold: float
    ) -> List[PeptideIdentification]:
        peptides = self._annotated_targets(peptide_population)
        if filters_anything(qvalue_threshold):
            peptides = filter_hits_by_score(peptides, qvalue_threshold)
        return peptides

    def _write_peptides(
        self,
        protein_ids: List[ProteinIdentification],
        peptides: List[PeptideIdentification],
        qvalue_threshold: float,
        out_prefix: str,
    ) -> ThresholdResult:
        proteins = restrict_to_referenced_proteins(protein_ids, peptides)
        path = peptide_output_path(out_prefix, qvalue_threshold)
        store_identifications(path, proteins, peptides)

        num_proteins = sum(len(prot_id.getHits()) for prot_id in proteins)
        logger.info(
            f"Peptide PSMs at FDR {qvalue_threshold}: {count_hits(peptides)} PSMs, {num_proteins} proteins"
        )
        return ThresholdResult(
            threshold=qvalue_threshold,
            idxml_path=path,
            num_psms=count_hits(peptides),
            num_proteins=num_proteins,
            peptide_ids=peptides,
            protein_ids=proteins,
        )

    def filter_peptide_population(
        self,
        protein_ids: List[ProteinIdentification],
        peptide_population: List[PeptideIdentification],
        qvalue_threshold: float,
        out_prefix: str,
    ) -> ThresholdResult:
        """
        Estimate q-values for linear peptide PSMs, drop decoys, filter and store.

        The threshold is only applied when it lies strictly inside (0, 1).
        Output goes to ``<prefix><threshold>_peptides.idXML``; an empty result
        still produces a valid file.

        Raises:
            ConfigurationError: the estimator is misconfigured
            PersistenceError: the output cannot be written
        """
        peptides = self._filtered_peptides(peptide_population, qvalue_threshold)
        return self._write_peptides(protein_ids, peptides, qvalue_threshold, out_prefix)

    def _write_threshold(
        self,
        protein_ids: List[ProteinIdentification],
        crosslinks: List[PeptideIdentification],
        threshold: float,
        out_prefix: str,
    ) -> ThresholdResult:
        logger.info(f"Writing XL results at xl-FDR: {threshold}")
        # always start from the full decoy-free population
        if filters_anything(threshold):
            kept = filter_hits_by_score(crosslinks, threshold)
        else:
            kept = list(crosslinks)

        proteins = restrict_to_referenced_proteins(protein_ids, kept)
        idxml_path = xl_output_path(out_prefix, threshold)
        store_identifications(idxml_path, proteins, kept)

        report = annotate_top_hit_modifications(proteins, kept, report_decoys=self.report_decoys)
        report_path = protein_report_path(out_prefix, threshold)
        report.store(report_path)

        psm_path = None
        if self.psm_report:
            psm_path = psm_report_path(out_prefix, threshold)
            write_psm_report(psm_path, build_psm_rows(kept, self.meta_values_to_export), self.meta_values_to_export)

        return ThresholdResult(
            threshold=threshold,
            idxml_path=idxml_path,
            num_psms=count_hits(kept),
            num_proteins=sum(len(prot_id.getHits()) for prot_id in proteins),
            peptide_ids=kept,
            protein_ids=report.protein_ids,
            report_path=report_path,
            psm_report_path=psm_path,
            issues=report.issues,
        )

    def _write_cascade(
        self,
        protein_ids: List[ProteinIdentification],
        crosslinks: List[PeptideIdentification],
        ordered: List[float],
        out_prefix: str,
        fail_fast: bool,
        threads: int,
    ) -> List[ThresholdResult]:
        results = []
        errors = []
        if threads > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=threads) as executor:
                futures = [
                    executor.submit(self._write_threshold, protein_ids, crosslinks, t, out_prefix)
                    for t in ordered
                ]
                for future in futures:
                    try:
                        results.append(future.result())
                    except PersistenceError as e:
                        logger.error(str(e))
                        errors.append(e)
                        if fail_fast:
                            executor.shutdown(wait=True, cancel_futures=True)
                            break
        else:
            for t in ordered:
                try:
                    results.append(self._write_threshold(protein_ids, crosslinks, t, out_prefix))
                except PersistenceError as e:
                    logger.error(str(e))
                    errors.append(e)
                    if fail_fast:
                        break

        if errors:
            raise PersistenceError(
                f"{len(errors)} of {len(ordered)} crosslink outputs could not be written: {errors[0]}",
                errors=errors,
            )
        return results

    def filter_crosslink_population_cascade(
        self,
        protein_ids: List[ProteinIdentification],
        crosslink_population: List[PeptideIdentification],
        thresholds: Sequence[float],
        out_prefix: str,
        fail_fast: bool = False,
        threads: int = 1,
    ) -> List[ThresholdResult]:
        """
        Filter crosslink PSMs at each q-value threshold and write the results.

        Q-values are estimated once and decoys removed once. Thresholds are
        normalized (0.0 becomes 1.0, i.e. no filtering) and processed from
        the largest to the smallest; each one filters the same decoy-free
        population. Per threshold ``t`` this writes
        ``<prefix><t>_XLs.idXML`` and ``<prefix>_proteins<t>_XLs.tsv``.

        Args:
            protein_ids: Protein identifications of the search
            crosslink_population: Crosslink PSMs, decoys included
            thresholds: q-value cutoffs; 0.0 disables filtering
            out_prefix: Output path prefix
            fail_fast: Stop at the first write failure instead of trying the
                remaining thresholds
            threads: Worker threads for the per-threshold outputs

        Returns:
            One ThresholdResult per normalized threshold, largest first

        Raises:
            ConfigurationError: the estimator or a threshold is invalid
            PersistenceError: one or more outputs could not be written; all
                failures are listed in ``errors``
        """
        ordered = normalize_thresholds(thresholds)
        crosslinks = self._annotated_targets(crosslink_population)
        return self._write_cascade(protein_ids, crosslinks, ordered, out_prefix, fail_fast, threads)

    def run(
        self,
        protein_ids: List[ProteinIdentification],
        peptide_ids: List[PeptideIdentification],
        peptide_qvalue_threshold: float,
        xl_qvalue_thresholds: Sequence[float],
        out_prefix: str,
        fail_fast: bool = False,
        threads: int = 1,
    ) -> Tuple[ThresholdResult, List[ThresholdResult]]:
        """
        Split identifications into peptide and crosslink PSMs and run both
        filters.

        Thresholds are validated and q-values estimated for both populations
        before the first file is written, so a ConfigurationError leaves no
        output behind.

        Returns:
            Tuple of (peptide result, crosslink results)
        """
        peptide_population, crosslink_population = split_populations(peptide_ids)
        ordered = normalize_thresholds(xl_qvalue_thresholds)
        peptides = self._filtered_peptides(peptide_population, peptide_qvalue_threshold)
        crosslinks = self._annotated_targets(crosslink_population)

        peptide_result = self._write_peptides(
            protein_ids, peptides, peptide_qvalue_threshold, out_prefix
        )
        xl_results = self._write_cascade(
            protein_ids, crosslinks, ordered, out_prefix, fail_fast, threads
        )
        return peptide_result, xl_results
