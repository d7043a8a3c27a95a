"""
Q-value estimation for PSM populations.

The estimator itself is OpenMS' target/decoy FalseDiscoveryRate. This module
only owns its configuration: an immutable QValueConfig is built once and
applied to a fresh FalseDiscoveryRate instance on every call, so that the
peptide and crosslink populations never share estimator state.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from pyopenms import FalseDiscoveryRate, PeptideIdentification

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QValueConfig:
    """
    Parameters passed to FalseDiscoveryRate.

    Attributes:
        add_decoy_proteins: Keep decoys in protein-level FDR bookkeeping
        add_decoy_peptides: Keep decoy hits in the annotated result
        use_all_hits: Use every ranked hit instead of only the best one
    """

    add_decoy_proteins: bool = True
    add_decoy_peptides: bool = True
    use_all_hits: bool = False

    def __post_init__(self):
        for name in ("add_decoy_proteins", "add_decoy_peptides", "use_all_hits"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(
                    f"Estimator option '{name}' must be a boolean, got {getattr(self, name)!r}"
                )
        # decoys are stripped by the cascade after q-values are assigned
        if not self.add_decoy_proteins or not self.add_decoy_peptides:
            raise ConfigurationError(
                "Decoy proteins and peptides must be kept during q-value estimation"
            )

    @classmethod
    def for_top_hits(cls, report_top_hits: int) -> "QValueConfig":
        """
        Build the configuration used when ``report_top_hits`` hits per
        spectrum are reported downstream.
        """
        if report_top_hits < 1:
            raise ConfigurationError(
                f"report_top_hits must be at least 1, got {report_top_hits}"
            )
        return cls(use_all_hits=report_top_hits >= 2)

    def to_params(self) -> Dict[str, str]:
        return {
            "add_decoy_proteins": _flag(self.add_decoy_proteins),
            "add_decoy_peptides": _flag(self.add_decoy_peptides),
            "use_all_hits": _flag(self.use_all_hits),
        }


def _flag(value: bool) -> str:
    return "true" if value else "false"


class QValueEstimator:
    """Target/decoy q-value estimator backed by pyopenms.FalseDiscoveryRate"""

    def __init__(self, config: QValueConfig):
        if not isinstance(config, QValueConfig):
            raise ConfigurationError(f"Expected a QValueConfig, got {type(config).__name__}")
        self.config = config

    def _configured_fdr(self) -> FalseDiscoveryRate:
        fdr = FalseDiscoveryRate()
        params = fdr.getParameters()
        for key, value in self.config.to_params().items():
            if not params.exists(key):
                raise ConfigurationError(f"FalseDiscoveryRate has no parameter '{key}'")
            params.setValue(key, value)
        fdr.setParameters(params)
        return fdr

    def apply(self, peptide_ids: List[PeptideIdentification]) -> None:
        """
        Annotate every hit in ``peptide_ids`` with its q-value (in place).

        Afterwards each identification carries score type "q-value" with
        lower scores being better.

        Raises:
            ConfigurationError: the estimator rejected its parameters or the
                input (e.g. hits without a target_decoy annotation)
        """
        fdr = self._configured_fdr()
        if not peptide_ids:
            logger.debug("No identifications, skipping q-value estimation")
            return
        logger.debug(f"Estimating q-values for {len(peptide_ids)} identifications")
        try:
            fdr.apply(peptide_ids)
        except RuntimeError as e:
            raise ConfigurationError(f"Q-value estimation failed: {e}") from e
