"""
Test the copy-based identification filters and threshold handling
"""

import pytest

from pynuxl.fdr.errors import ConfigurationError
from pynuxl.fdr.filtering import (
    filter_hits_by_score,
    filters_anything,
    format_threshold,
    is_target,
    normalize_thresholds,
    referenced_accessions,
    remove_decoy_hits,
    restrict_to_referenced_proteins,
)


class TestNormalizeThresholds:
    def test_disabled_threshold_becomes_one_and_sorts_descending(self):
        assert normalize_thresholds([0.01, 0.05, 0.0]) == [1.0, 0.05, 0.01]

    def test_duplicates_collapse(self):
        assert normalize_thresholds([0.0, 1.0, 0.01, 0.01]) == [1.0, 0.01]

    def test_empty(self):
        assert normalize_thresholds([]) == []

    @pytest.mark.parametrize("bad", [-0.1, 1.5, float("nan")])
    def test_out_of_range(self, bad):
        with pytest.raises(ConfigurationError):
            normalize_thresholds([0.01, bad])

    def test_filters_anything(self):
        assert filters_anything(0.05)
        assert not filters_anything(1.0)
        assert not filters_anything(0.0)

    def test_format(self):
        assert format_threshold(0.01) == "0.0100"
        assert format_threshold(1.0) == "1.0000"
        assert format_threshold(0.0) == "0.0000"


class TestDecoyRemoval:
    def test_target_labels(self, make_hit):
        hit = make_hit("PEPTIDEK", 1.0)
        assert is_target(hit)
        hit.setMetaValue("target_decoy", "target+decoy")
        assert is_target(hit)
        hit.setMetaValue("target_decoy", "decoy")
        assert not is_target(hit)

    def test_removes_decoys_and_empty_identifications(self, make_hit, make_pep_id):
        mixed = make_pep_id(
            "scan=1",
            [make_hit("PEPTIDEK", 5.0), make_hit("KEDITPEP", 4.0, rank=2, decoy=True)],
        )
        decoy_only = make_pep_id("scan=2", [make_hit("KEDITPEP", 3.0, decoy=True)])

        result = remove_decoy_hits([mixed, decoy_only])

        assert len(result) == 1
        assert [h.getSequence().toString() for h in result[0].getHits()] == ["PEPTIDEK"]
        # input untouched
        assert len(mixed.getHits()) == 2


class TestScoreFilter:
    def test_lower_is_better(self, make_hit, make_pep_id):
        pep_ids = [
            make_pep_id(f"scan={i}", [make_hit("PEPTIDEK", q)], higher_better=False)
            for i, q in enumerate([0.001, 0.01, 0.02])
        ]

        result = filter_hits_by_score(pep_ids, 0.01)

        assert [p.getHits()[0].getScore() for p in result] == [0.001, 0.01]
        assert len(pep_ids) == 3

    def test_higher_is_better(self, make_hit, make_pep_id):
        pep_ids = [
            make_pep_id(f"scan={i}", [make_hit("PEPTIDEK", s)], higher_better=True)
            for i, s in enumerate([5.0, 10.0, 20.0])
        ]

        result = filter_hits_by_score(pep_ids, 10.0)

        assert [p.getHits()[0].getScore() for p in result] == [10.0, 20.0]


class TestProteinRestriction:
    def test_keeps_referenced_in_first_reference_order(self, make_hit, make_pep_id, make_proteins):
        proteins = make_proteins(
            [
                ("P1", "MKPEPTIDEK", "target"),
                ("P2", "MRSAMPLER", "target"),
                ("P3", "MUNUSEDK", "target"),
            ]
        )
        pep_ids = [
            make_pep_id("scan=1", [make_hit("SAMPLER", 5.0, accessions=("P2",))]),
            make_pep_id("scan=2", [make_hit("PEPTIDEK", 4.0, accessions=("P1", "P2"))]),
        ]

        assert referenced_accessions(pep_ids) == {"P2": 0, "P1": 1}

        restricted = restrict_to_referenced_proteins(proteins, pep_ids)

        assert [h.getAccession() for h in restricted[0].getHits()] == ["P2", "P1"]
        assert len(proteins[0].getHits()) == 3

    def test_target_wins_over_decoy_with_same_accession(self, make_hit, make_pep_id, make_proteins):
        proteins = make_proteins(
            [
                ("P1", "MKPEPTIDEK", "decoy"),
                ("P1", "MKPEPTIDEK", "target"),
                ("P2", "MRSAMPLER", "decoy"),
            ]
        )
        pep_ids = [make_pep_id("scan=1", [make_hit("PEPTIDEK", 4.0, accessions=("P1", "P2"))])]

        restricted = restrict_to_referenced_proteins(proteins, pep_ids)

        hits = restricted[0].getHits()
        assert [h.getAccession() for h in hits] == ["P1", "P2"]
        assert [h.getMetaValue("target_decoy") for h in hits] == ["target", "decoy"]

    def test_nothing_referenced(self, make_proteins):
        proteins = make_proteins([("P1", "MKPEPTIDEK", "target")])

        restricted = restrict_to_referenced_proteins(proteins, [])

        assert len(restricted) == 1
        assert restricted[0].getHits() == []
