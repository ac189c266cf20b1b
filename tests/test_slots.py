"""
Tests for slot filling and query planning.
"""

from bioevidence.openqa.planner import build_ctgov_expr, build_europepmc_query, plan_from_query
from bioevidence.openqa.slots import expand_drug_aliases, fill_slots
from bioevidence.schemas import Slots, ToolMeta

TOOLS = [
    ToolMeta(server="europepmc", name="search_publications", description="Europe PMC literature search"),
    ToolMeta(server="ctgov", name="search_trials", description="ClinicalTrials.gov study search"),
    ToolMeta(server="uniprot", name="search_proteins", description="UniProtKB protein search"),
]


class TestFillSlots:
    def test_drug_gene_variant_disease(self):
        slots = fill_slots("Does sotorasib benefit KRAS G12C NSCLC patients?")

        assert slots.genes == ["KRAS"]
        assert slots.variants == ["G12C"]
        assert slots.diseases == ["non-small cell lung cancer"]
        assert slots.drugs == ["sotorasib", "lumakras", "amg 510", "amg510"]
        assert slots.organism == "human"

    def test_brand_name_expands_to_generic(self):
        slots = fill_slots("MGMT methylation cutoff for TMZ benefit in GBM")

        assert "temozolomide" in slots.drugs
        assert slots.genes == ["MGMT"]
        assert slots.diseases == ["glioblastoma"]

    def test_phases_and_nct_ids(self):
        slots = fill_slots("phase III and Phase 2 trials like nct01234567 for EGFR")

        assert slots.phases == [3, 2]
        assert slots.nct_ids == ["NCT01234567"]
        assert slots.genes == ["EGFR"]

    def test_lowercase_words_are_not_genes(self):
        assert fill_slots("what genes drive glioma in mice").genes == []

    def test_variant_notations(self):
        slots = fill_slots("BRAF p.Val600Glu, rs113488022 and c.1799T>A")

        assert "p.Val600Glu" in slots.variants
        assert "rs113488022" in slots.variants
        assert "c.1799T>A" in slots.variants
        assert slots.genes == ["BRAF"]

    def test_organism(self):
        assert fill_slots("TP53 in mouse models").organism == "mouse"
        assert fill_slots("zebrafish fin regeneration").organism == "zebrafish"

    def test_expand_drug_aliases_keeps_order(self):
        assert expand_drug_aliases(["tmz", "temozolomide"]) == ["tmz", "temozolomide", "temodar"]


class TestQueryBuilders:
    def test_europepmc_query_with_outcome(self):
        slots = Slots(genes=["MGMT"], diseases=["glioblastoma"], drugs=["temozolomide"])
        query = build_europepmc_query(slots, "overall survival benefit by methylation cutoff")

        assert query.startswith('(MGMT) AND ("glioblastoma") AND ("temozolomide" OR "temodar" OR "tmz")')
        assert '"hazard ratio"' in query
        assert '"promoter methylation"' in query
        assert "meta-analysis" in query

    def test_europepmc_query_falls_back_to_raw(self):
        assert build_europepmc_query(Slots(), "  anything at all ") == "anything at all"

    def test_ctgov_expr(self):
        slots = Slots(diseases=["glioblastoma"], drugs=["temozolomide"])
        expr = build_ctgov_expr(slots, "")

        assert expr == (
            '(AREA[ConditionSearch] ("glioblastoma")) AND '
            '(AREA[InterventionName] ("temozolomide" OR "temodar" OR "tmz")) AND '
            '("clinical trial" OR randomized OR phase)'
        )

    def test_ctgov_expr_without_disease_or_drug(self):
        assert build_ctgov_expr(Slots(genes=["KRAS"]), "q").startswith("(KRAS) AND")
        assert build_ctgov_expr(Slots(), "glioma").startswith("(glioma) AND")


class TestPlanFromQuery:
    def test_routes_by_intent(self):
        plan = plan_from_query("Overall survival in KRAS G12C trials with sotorasib", TOOLS)
        by_server = {c.server: c for c in plan.calls}

        assert set(by_server) == {"europepmc", "ctgov", "uniprot"}
        assert by_server["uniprot"].args == {"terms": ["KRAS"], "organism": "Homo sapiens"}
        assert "AREA[InterventionName]" in by_server["ctgov"].args["expr"]
        assert by_server["europepmc"].args["size"] == 25

    def test_year_bounds_reach_literature_call(self):
        plan = plan_from_query("survival evidence", TOOLS, year_from="2015", year_to="2020")
        [call] = [c for c in plan.calls if c.server == "europepmc"]

        assert call.args["year_from"] == "2015"
        assert call.args["year_to"] == "2020"

    def test_mouse_organism_mapped(self):
        plan = plan_from_query("TP53 protein in mouse", TOOLS)
        [call] = [c for c in plan.calls if c.server == "uniprot"]
        assert call.args["organism"] == "Mus musculus"

    def test_fallback_to_first_three_tools(self):
        tools = [ToolMeta(server=f"s{n}", name="t", description="misc") for n in range(5)]
        plan = plan_from_query("hello there", tools)

        assert [c.server for c in plan.calls] == ["s0", "s1", "s2"]
        assert all(c.args == {"query": "hello there"} for c in plan.calls)
