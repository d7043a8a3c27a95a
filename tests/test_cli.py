"""
Test the nuxl-fdr command line interface
"""

import os

import pytest
from click.testing import CliRunner
from pyopenms import IdXMLFile

from pynuxl.fdr.cli import nuxl_fdr


@pytest.fixture
def idxml_file(scenario, make_hit, make_pep_id, tmp_path):
    proteins, pep_ids, _ = scenario
    pep_ids.append(
        make_pep_id("scan=11", [make_hit("KEDITPEP", 10.0, decoy=True, accessions=("DECOY_P1",), start=9)])
    )
    path = tmp_path / "search.idXML"
    IdXMLFile().store(str(path), proteins, pep_ids)
    return path


class TestCli:
    def test_writes_all_outputs(self, idxml_file, tmp_path):
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        prefix = str(out_dir / "result")

        result = CliRunner().invoke(
            nuxl_fdr,
            [
                "-in", str(idxml_file),
                "-out", prefix,
                "--peptide-fdr", "0.01",
                "--xl-fdr", "0.01",
                "--xl-fdr", "0.05",
                "--xl-fdr", "0.0",
                "--psm-report",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Processing Complete" in result.output
        expected = [
            "result0.0100_peptides.idXML",
            "result1.0000_XLs.idXML",
            "result0.0500_XLs.idXML",
            "result0.0100_XLs.idXML",
            "result_proteins1.0000_XLs.tsv",
            "result_proteins0.0500_XLs.tsv",
            "result_proteins0.0100_XLs.tsv",
            "result1.0000_XLs.psms.tsv",
        ]
        for name in expected:
            assert os.path.exists(out_dir / name), name

    def test_invalid_threshold(self, idxml_file, tmp_path):
        result = CliRunner().invoke(
            nuxl_fdr,
            ["-in", str(idxml_file), "-out", str(tmp_path / "result"), "--xl-fdr", "1.5"],
        )

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unwritable_prefix(self, idxml_file, tmp_path):
        result = CliRunner().invoke(
            nuxl_fdr,
            ["-in", str(idxml_file), "-out", str(tmp_path / "missing" / "result")],
        )

        assert result.exit_code == 1
        assert "Error:" in result.output
