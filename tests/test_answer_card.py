"""
Tests for gene mining and answer-card assembly.
"""

from bioevidence.openqa.answer_card import build_answer_card
from bioevidence.openqa.genes import count_gene_mentions, mine_genes
from bioevidence.schemas import (
    Drug,
    Gene,
    Pathway,
    Protein,
    Provenance,
    Publication,
    Slots,
    ToolRun,
    Trial,
)

EPMC = Provenance(server="europepmc", tool="search_publications")

MOCK_PUBLICATIONS = [
    Publication(
        id="1",
        pmid="1",
        title="IDH1 mutation and MGMT promoter methylation in GBM",
        abstract=(
            "IDH1 mutation predicts response. MGMT promoter methylation was frequent. "
            "PTEN deletion was rare. The DNA repair gene MGMT is silenced."
        ),
        year=2020,
        provenance=EPMC,
    ),
    Publication(
        id="2",
        doi="10.1/x",
        title="A randomized trial of temozolomide",
        abstract="Patients with IDH1 variant tumors lived longer. TMZ expression was not measured.",
        year=2018,
        provenance=EPMC,
    ),
]


class TestGeneMining:
    def test_counts_only_bio_context_sentences(self):
        counts = count_gene_mentions(MOCK_PUBLICATIONS)

        assert counts["MGMT"] == 3
        assert counts["IDH1"] == 3
        assert counts["PTEN"] == 1
        assert "GBM" not in counts
        assert "TMZ" not in counts

    def test_mine_requires_two_mentions_and_merges_slots(self):
        records, merged = mine_genes(MOCK_PUBLICATIONS, Slots(genes=["EGFR"]))

        assert merged[0] == "EGFR"
        assert set(merged[1:]) == {"MGMT", "IDH1"}
        assert records[0].id == "SYMBOL:EGFR"
        assert records[0].provenance.tool == "gene_mention_miner"

    def test_exclude_set(self):
        _, merged = mine_genes(MOCK_PUBLICATIONS, Slots(), exclude={"IDH1"})
        assert merged == ["MGMT"]


class TestBuildAnswerCard:
    def test_card_sections(self):
        trials = [
            Trial(id="NCT00000002", nct_id="NCT00000002", status="COMPLETED", title="Old trial"),
            Trial(id="NCT00000001", nct_id="NCT00000001", status="RECRUITING", phase="PHASE3", title="New trial"),
        ]
        records = [
            *MOCK_PUBLICATIONS,
            *trials,
            Pathway(id="R-HSA-1", label="DNA Repair"),
            Protein(id="UniProt:P16455", label="MGMT", accession="P16455"),
            Drug(id="temozolomide", label="temozolomide"),
        ]
        tools_run = [
            ToolRun(server="europepmc", tool="search_publications", ok=True, ms=10.0),
            ToolRun(server="ctgov", tool="search_trials", ok=False, ms=5.0),
        ]

        card = build_answer_card("MGMT in GBM", Slots(diseases=["glioblastoma"]), records, tools_run)

        assert [t.nct_id for t in card.entities.trials] == ["NCT00000001", "NCT00000002"]
        assert card.entities.publications[0].title.startswith("A randomized trial")
        assert {g.symbol for g in card.entities.genes} == {"MGMT", "IDH1"}
        assert card.slots.genes[0] in {"MGMT", "IDH1"}

        texts = [h.text for h in card.highlights]
        assert texts[1] == "Trial: NCT00000001"
        assert texts[2] == "Pathway: DNA Repair"
        assert texts[3].startswith("Top publication: A randomized trial")

        assert [e.id for e in card.evidence] == ["DOI:10.1/x", "PMID:1"]
        assert card.evidence[0].server == "europepmc"
        assert card.notes == ["1 of 2 tool calls failed."]

    def test_publications_are_annotated(self):
        pub = Publication(id="3", title="Trial", abstract="HR 0.7 for death.")

        card = build_answer_card("q", Slots(), [pub])

        assert card.entities.publications[0].meta["extracted"]["hr"][0]["value"] == 0.7

    def test_existing_genes_are_kept_unique(self):
        records = [
            Gene(id="SYMBOL:MGMT", symbol="MGMT", label="MGMT"),
            *MOCK_PUBLICATIONS,
        ]

        card = build_answer_card("q", Slots(), records)

        assert [g.symbol for g in card.entities.genes].count("MGMT") == 1
        assert card.entities.genes[0].id == "SYMBOL:MGMT"
        assert card.highlights[0].text == "Top gene: MGMT"

    def test_caps(self):
        pubs = [Publication(id=str(n), title=f"Study {n}") for n in range(40)]
        trials = [Trial(nct_id=f"NCT{n:08d}") for n in range(40)]

        card = build_answer_card("q", Slots(), [*pubs, *trials])

        assert len(card.entities.publications) == 20
        assert len(card.entities.trials) == 16
        assert len(card.evidence) == 20

    def test_empty(self):
        card = build_answer_card("q", Slots(), [])

        assert card.highlights == []
        assert card.notes == ["No publications found."]
