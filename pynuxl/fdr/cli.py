#!/usr/bin/env python3
"""
Command line interface for the NuXL FDR cascade
"""

import click
import os
import sys
import logging
import time

from .cascade import NuXLFDR
from .constants import DEFAULT_CONFIG
from .io import load_identifications

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "-in",
    "--input-id",
    "input_id",
    required=True,
    type=click.Path(exists=True),
    help="Input identification file (idXML) with NuXL search results"
)
@click.option(
    "-out",
    "--output-prefix",
    "output_prefix",
    required=True,
    type=click.Path(),
    help="Prefix for all output files (idXML and tsv)"
)
@click.option(
    "--report-top-hits",
    type=int,
    default=DEFAULT_CONFIG["report_top_hits"],
    help="Number of hits per spectrum reported downstream (default: 1)"
)
@click.option(
    "--peptide-fdr",
    type=float,
    default=DEFAULT_CONFIG["peptide_fdr"],
    help="PSM-level q-value threshold for linear peptides, 0 disables filtering (default: 0.01)"
)
@click.option(
    "--xl-fdr",
    type=float,
    multiple=True,
    default=DEFAULT_CONFIG["xl_fdr"],
    help="PSM-level q-value thresholds for crosslinks, 0 disables filtering (default: 0.01 0.05 0.1 0)"
)
@click.option(
    "--report-decoys",
    is_flag=True,
    default=DEFAULT_CONFIG["report_decoys"],
    help="Keep decoy proteins in the protein reports"
)
@click.option(
    "--psm-report",
    is_flag=True,
    default=DEFAULT_CONFIG["psm_report"],
    help="Also write a PSM-level tsv report per crosslink threshold"
)
@click.option(
    "--meta-values",
    multiple=True,
    default=DEFAULT_CONFIG["meta_values"],
    help="Additional hit meta values exported as PSM report columns"
)
@click.option(
    "--threads",
    type=int,
    default=DEFAULT_CONFIG["num_threads"],
    help="Number of threads for writing per-threshold results (default: 1)"
)
@click.option(
    "--fail-fast",
    is_flag=True,
    default=DEFAULT_CONFIG["fail_fast"],
    help="Stop at the first output that cannot be written"
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode"
)
@click.option(
    "--log-file",
    type=str,
    default=None,
    help="Log file path (only used in debug mode, default: {output_prefix}_debug.log)"
)
def nuxl_fdr(
    input_id,
    output_prefix,
    report_top_hits,
    peptide_fdr,
    xl_fdr,
    report_decoys,
    psm_report,
    meta_values,
    threads,
    fail_fast,
    debug,
    log_file,
):
    """
    PSM-level FDR filtering of NuXL crosslink search results.

    Computes q-values separately for linear peptide and crosslink PSMs,
    removes decoys and writes filtered identifications plus protein reports
    for every crosslink q-value threshold.
    """
    try:
        setup_logging(debug, log_file, output_prefix)

        start_time = time.time()
        protein_ids, peptide_ids = load_identifications(input_id)
        if not peptide_ids:
            logger.warning("No peptide identifications found in input file")

        tool = NuXLFDR(
            report_top_hits=report_top_hits,
            report_decoys=report_decoys,
            psm_report=psm_report,
            meta_values_to_export=meta_values,
        )
        peptide_result, xl_results = tool.run(
            protein_ids,
            peptide_ids,
            peptide_fdr,
            list(xl_fdr),
            output_prefix,
            fail_fast=fail_fast,
            threads=threads,
        )

        elapsed = time.time() - start_time
        print("\nProcessing Complete:")
        print(f"  Total identifications: {len(peptide_ids)}")
        print(f"  Peptide PSMs at FDR {peptide_result.threshold}: {peptide_result.num_psms}")
        for result in xl_results:
            print(
                f"  XL PSMs at FDR {result.threshold}: {result.num_psms} "
                f"({result.num_proteins} proteins)"
            )
        print(f"  Time elapsed: {elapsed:.2f} seconds")
        sys.exit(0)

    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {str(e)}", err=True)
        if debug:
            logger.exception(f"Error: {str(e)}")
        sys.exit(1)


def setup_logging(debug, log_file, output_prefix):
    """Setup logging configuration"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Only configure file handler in debug mode
    if debug:
        log_file_path = log_file or f"{output_prefix}_debug.log"
        log_dir = os.path.dirname(os.path.abspath(log_file_path))
        if os.path.isdir(log_dir):
            file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    # Set third-party library log levels
    logging.getLogger("numpy").setLevel(logging.WARNING)
    logging.getLogger("pyopenms").setLevel(logging.WARNING)


def main():
    """Entry point for the nuxl-fdr CLI."""
    nuxl_fdr()


if __name__ == "__main__":
    main()
