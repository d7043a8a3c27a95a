"""
Constants and default configurations for the NuXL FDR cascade
"""

from pyopenms import Constants

# Meta value keys written by the NuXL search engine
XL_FLAG = "NuXL:isXL"
NA = "NuXL:NA"
NA_MASS = "NuXL:NA_MASS_z0"
BEST_LOCALIZATION = "NuXL:best_localization"
BEST_LOCALIZATION_SCORE = "NuXL:best_localization_score"
BEST_LOCALIZATION_POSITION = "NuXL:best_localization_position"
LOCALIZATION_SCORES = "NuXL:localization_scores"
TARGET_DECOY = "target_decoy"

# Meta value keys attached to annotated protein hits
PROTEIN_XL_POSITION = "NuXL:xl_position"
PROTEIN_XL_SITE = "NuXL:xl_site"
PROTEIN_XL_NA = "NuXL:xl_NA"
PROTEIN_XL_MASS = "NuXL:xl_mass"
PROTEIN_XL_PEPTIDE = "NuXL:xl_peptide"

# Target/decoy labels
TARGET_PREFIX = "target"

# Threshold rendering in output paths
THRESHOLD_DIGITS = 4

# Disabled filtering (0.0) is treated as 100% FDR
DISABLED_THRESHOLD = 0.0
NO_FILTER_THRESHOLD = 1.0

# Residues shown on each side of a crosslink site in the protein report
SITE_CONTEXT_WIDTH = 5

# Output file suffixes
PEPTIDE_SUFFIX = "_peptides.idXML"
XL_SUFFIX = "_XLs.idXML"
PROTEIN_REPORT_INFIX = "_proteins"
PROTEIN_REPORT_SUFFIX = "_XLs.tsv"
PSM_REPORT_SUFFIX = "_XLs.psms.tsv"

# Physical constants - derived from PyOpenMS
PROTON_MASS = Constants.PROTON_MASS_U

PROTEIN_REPORT_COLUMNS = [
    "accession",
    "description",
    "target_decoy",
    "protein_length",
    "CSMs",
    "unique_peptides",
    "top_peptide",
    "top_score",
    "NA",
    "NA_mass",
    "position",
    "residue",
    "context",
]

PSM_REPORT_COLUMNS = [
    "#RT",
    "original m/z",
    "proteins",
    "RNA",
    "peptide",
    "charge",
    "score",
    "rank",
    "best localization score",
    "localization scores",
    "best localization(s)",
    "peptide weight",
    "RNA weight",
    "cross-link weight",
]

PSM_REPORT_ERROR_COLUMNS = [
    "abs prec. error Da",
    "rel. prec. error ppm",
    "M+H",
    "M+2H",
    "M+3H",
    "M+4H",
]

# Default configuration
DEFAULT_CONFIG = {
    # Estimator settings
    "report_top_hits": 1,
    # Filter settings
    "peptide_fdr": 0.01,
    "xl_fdr": [0.01, 0.05, 0.1, 0.0],
    # Report settings
    "report_decoys": False,
    "psm_report": False,
    "meta_values": [],
    # Performance settings
    "num_threads": 1,
    "fail_fast": False,
}
