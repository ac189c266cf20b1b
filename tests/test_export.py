"""
Tests for delimited export and report files.
"""

import csv
import io
import json

from bioevidence.export import records_to_rows, to_delimited, write_dataset
from bioevidence.quality import summarize_normalization
from bioevidence.schemas import Compound, Literature, NormalizedDataset, Target


class TestToDelimited:
    def test_header_is_union_in_first_seen_order(self):
        text = to_delimited([{"a": 1, "b": 2}, {"c": 3, "a": 4}])
        lines = text.splitlines()

        assert lines[0] == "a,b,c"
        assert lines[1] == "1,2,"
        assert lines[2] == "4,,3"

    def test_values_needing_quotes_are_quoted(self):
        text = to_delimited([{"title": 'Say "hi", then\nleave', "n": None}])
        rows = list(csv.DictReader(io.StringIO(text)))

        assert rows[0]["title"] == 'Say "hi", then\nleave'
        assert rows[0]["n"] == ""

    def test_tab_delimiter(self):
        assert to_delimited([{"a": "x,y"}], delimiter="\t") == "a\nx,y\n"

    def test_no_rows(self):
        assert to_delimited([]) == ""


class TestRecordsToRows:
    def test_lists_are_joined_and_meta_dropped(self):
        record = Literature(
            key="PMID:1", pmid="1", source="pubmed", sources=["pubmed", "europepmc"], meta={"x": 1}
        )
        [row] = records_to_rows([record])

        assert row["sources"] == "pubmed;europepmc"
        assert "meta" not in row
        assert "provenance" not in row

    def test_compound_row_includes_skeleton(self):
        [row] = records_to_rows(
            [Compound(compound_id="a", inchikey="BSYNRYMUTXBXSQ-UHFFFAOYSA-N")]
        )
        assert row["inchikey14"] == "BSYNRYMUTXBXSQ"


class TestWriteDataset:
    def test_writes_tables_and_reports(self, tmp_path):
        dataset = NormalizedDataset(
            compounds=[Compound(compound_id="a", inchikey="BSYNRYMUTXBXSQ-UHFFFAOYSA-N")],
            targets=[Target(target_id="P00533", uniprot="P00533")],
        )
        report = summarize_normalization(dataset)

        written = write_dataset(dataset, tmp_path / "out", report)

        assert set(written) == {
            "compounds",
            "targets",
            "assays",
            "literature",
            "quality_report_json",
            "quality_report_md",
        }
        assert written["compounds"].read_text().startswith("kind,")
        assert written["assays"].read_text() == ""
        assert json.loads(written["quality_report_json"].read_text())["counts"]["targets"] == 1
        assert "## Metrics" in written["quality_report_md"].read_text()

    def test_without_report(self, tmp_path):
        written = write_dataset(NormalizedDataset(), tmp_path)
        assert "quality_report_json" not in written
        assert (tmp_path / "literature.csv").exists()
