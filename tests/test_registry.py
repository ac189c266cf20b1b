"""
Tests for the canonical dispatch table.
"""

import pytest

from bioevidence.normalizers.registry import (
    canonical_from_results,
    register,
    registered_pairs,
    to_canonical,
)
from bioevidence.schemas import (
    Assay,
    Publication,
    ToolCall,
    ToolResult,
    Trial,
    parse_records,
)


class TestDispatch:
    def test_known_pairs_are_registered(self):
        pairs = registered_pairs()
        for pair in [
            ("pubchem", "properties_by_name"),
            ("chembl", "search_targets"),
            ("chembl", "get_activities"),
            ("uniprot", "search"),
            ("entrez", "esearch"),
            ("europepmc", "search"),
            ("openalex", "works"),
            ("europepmc", "search_publications"),
            ("ctgov", "search_trials"),
            ("uniprot", "search_proteins"),
        ]:
            assert pair in pairs

    def test_unknown_pair_yields_nothing(self):
        assert to_canonical("blast", "top_hits", {"rows": [{"id": 1}]}) == []

    def test_duplicate_registration_is_rejected(self):
        with pytest.raises(ValueError):
            register("ctgov", "search_trials")(lambda payload, args: [])

    def test_provenance_is_stamped(self):
        args = {"query": "KRAS G12C"}
        records = to_canonical(
            "europepmc",
            "search_publications",
            {"results": [{"pmid": "1", "title": "A"}]},
            args,
        )

        assert len(records) == 1
        assert isinstance(records[0], Publication)
        assert records[0].provenance.server == "europepmc"
        assert records[0].provenance.tool == "search_publications"
        assert records[0].provenance.args == args

    def test_activity_adapter_uses_target_lookup_arg(self):
        payload = {"activities": [{"assay_chembl_id": "A1", "target_chembl_id": "CHEMBL203"}]}
        records = to_canonical(
            "chembl", "get_activities", payload, {"target_lookup": {"CHEMBL203": "P00533"}}
        )

        assert isinstance(records[0], Assay)
        assert records[0].target_id == "P00533"

    def test_bare_list_payload(self):
        records = to_canonical("ctgov", "search_trials", [{"NCTId": ["NCT00000001"]}])
        assert isinstance(records[0], Trial)


class TestCanonicalFromResults:
    def test_failed_results_are_skipped(self):
        ok = ToolResult(
            call=ToolCall(server="ctgov", tool="search_trials", args={}),
            ok=True,
            data={"rows": [{"NCTId": ["NCT00000001"]}, {"NCTId": ["NCT00000002"]}]},
        )
        failed = ToolResult(
            call=ToolCall(server="europepmc", tool="search_publications", args={}),
            ok=False,
            error="boom",
        )

        records = canonical_from_results([ok, failed])
        assert [r.nct_id for r in records] == ["NCT00000001", "NCT00000002"]


class TestTaggedRecords:
    def test_parse_records_dispatches_on_kind(self):
        records = parse_records(
            [
                {"kind": "Compound", "compound_id": "X", "inchikey": "BSYNRYMUTXBXSQ-UHFFFAOYSA-N"},
                {"kind": "Trial", "nct_id": "NCT00000001"},
                {"kind": "Literature", "key": "PMID:1", "source": "pubmed"},
            ]
        )

        assert [r.kind for r in records] == ["Compound", "Trial", "Literature"]
        assert records[0].inchikey14 == "BSYNRYMUTXBXSQ"

    def test_inchikey14_follows_copies(self):
        compound = parse_records([{"kind": "Compound", "compound_id": "2244"}])[0]
        assert compound.inchikey14 == ""

        updated = compound.model_copy(update={"inchikey": "BSYNRYMUTXBXSQ-UHFFFAOYSA-N"})
        assert updated.inchikey14 == "BSYNRYMUTXBXSQ"
