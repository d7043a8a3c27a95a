"""
Shared builders for in-memory NuXL identifications.
"""

import pytest
from pyopenms import (
    AASequence,
    PeptideEvidence,
    PeptideHit,
    PeptideIdentification,
    ProteinHit,
    ProteinIdentification,
)

RUN_ID = "NuXL_run"


def build_hit(
    sequence,
    score,
    rank=1,
    decoy=False,
    is_xl=False,
    accessions=("P1",),
    start=0,
    charge=2,
    localization=None,
    na="",
    na_mass=None,
):
    hit = PeptideHit()
    hit.setSequence(AASequence.fromString(sequence))
    hit.setScore(score)
    hit.setRank(rank)
    hit.setCharge(charge)
    hit.setMetaValue("target_decoy", "decoy" if decoy else "target")
    hit.setMetaValue("NuXL:isXL", 1 if is_xl else 0)
    if na:
        hit.setMetaValue("NuXL:NA", na)
    if na_mass is not None:
        hit.setMetaValue("NuXL:NA_MASS_z0", na_mass)
    if localization is not None:
        hit.setMetaValue("NuXL:best_localization_position", localization)

    evidences = []
    for accession in accessions:
        evidence = PeptideEvidence()
        evidence.setProteinAccession(accession)
        evidence.setStart(start)
        evidence.setEnd(start + len(sequence) - 1)
        evidences.append(evidence)
    hit.setPeptideEvidences(evidences)
    return hit


def build_pep_id(ref, hits, rt=100.0, mz=500.0, higher_better=True):
    pep_id = PeptideIdentification()
    pep_id.setIdentifier(RUN_ID)
    pep_id.setRT(rt)
    pep_id.setMZ(mz)
    pep_id.setScoreType("NuXL:score")
    pep_id.setHigherScoreBetter(higher_better)
    pep_id.setMetaValue("spectrum_reference", ref)
    pep_id.setHits(hits)
    return pep_id


def build_protein_ids(proteins):
    """proteins: iterable of (accession, sequence, label)"""
    prot_id = ProteinIdentification()
    prot_id.setIdentifier(RUN_ID)
    prot_id.setSearchEngine("NuXL")
    hits = []
    for accession, sequence, label in proteins:
        hit = ProteinHit()
        hit.setAccession(accession)
        hit.setSequence(sequence)
        hit.setMetaValue("target_decoy", label)
        hits.append(hit)
    prot_id.setHits(hits)
    return [prot_id]


class StubEstimator:
    """
    Deterministic q-value assignment keyed by spectrum reference.

    Mimics FalseDiscoveryRate: scores become q-values, lower is better.
    """

    def __init__(self, qvalues):
        self.qvalues = qvalues
        self.calls = []

    def apply(self, peptide_ids):
        self.calls.append(len(peptide_ids))
        for pep_id in peptide_ids:
            ref = pep_id.getMetaValue("spectrum_reference")
            if isinstance(ref, bytes):
                ref = ref.decode("utf-8")
            hits = pep_id.getHits()
            for hit in hits:
                hit.setScore(self.qvalues[ref])
            pep_id.setHits(hits)
            pep_id.setScoreType("q-value")
            pep_id.setHigherScoreBetter(False)


@pytest.fixture
def make_hit():
    return build_hit


@pytest.fixture
def make_pep_id():
    return build_pep_id


@pytest.fixture
def make_proteins():
    return build_protein_ids


@pytest.fixture
def stub_estimator():
    return StubEstimator


@pytest.fixture
def scenario():
    """
    Ten spectra: six linear target peptides and four crosslinks
    (two target, two decoy), with stub q-values.
    """
    proteins = build_protein_ids(
        [
            ("P1", "MKPEPTIDEKAAGGSSLLR", "target"),
            ("P2", "MRSAMPLERKVVYYTTR", "target"),
            ("P3", "MUNUSEDPROTEINK", "target"),
            ("DECOY_P1", "RLLSSGGAAKEDITPEPKM", "decoy"),
        ]
    )
    pep_ids = []
    qvalues = {}
    for i in range(6):
        ref = f"scan={i + 1}"
        pep_ids.append(
            build_pep_id(ref, [build_hit("PEPTIDEK", 50.0 - i, accessions=("P1",), start=2)], rt=10.0 * i)
        )
        qvalues[ref] = 0.001 * (i + 1)

    xl_spec = [
        ("scan=7", "SAMPLER", False, ("P2",), 2, 0.005),
        ("scan=8", "PEPTIDEK", False, ("P1",), 2, 0.03),
        ("scan=9", "KDEPTIDE", True, ("DECOY_P1",), 9, 0.2),
        ("scan=10", "ELPMAS", True, ("DECOY_P1",), 3, 0.4),
    ]
    for ref, seq, decoy, accs, start, q in xl_spec:
        pep_ids.append(
            build_pep_id(
                ref,
                [
                    build_hit(
                        seq,
                        30.0,
                        decoy=decoy,
                        is_xl=True,
                        accessions=accs,
                        start=start,
                        localization=1,
                        na="U",
                        na_mass=324.035867,
                    )
                ],
            )
        )
        qvalues[ref] = q

    return proteins, pep_ids, qvalues
