"""
Tests for entity merge and deduplication.
"""

from unittest.mock import AsyncMock

from bioevidence.augment import CrossReferenceAugmenter
from bioevidence.merge import (
    EntityResolver,
    build_target_lookup,
    dedup_literature,
    group_compounds_by_skeleton,
    group_targets_by_accession,
)
from bioevidence.schemas import Compound, Literature, RawSourceBundle, Target
from bioevidence.sources.chembl import ChEMBLClient
from bioevidence.sources.pubchem import PubChemClient

MOCK_BUNDLE = RawSourceBundle(
    pubchem_props=[
        {"InChIKey": "BSYNRYMUTXBXSQ-UHFFFAOYSA-N", "CID": 2244, "MolecularWeight": 180.16, "TPSA": 63.6}
    ],
    chembl_targets=[
        {"target_chembl_id": "CHEMBL203", "organism": "Homo sapiens"},
    ],
    chembl_activities=[
        {"assay_chembl_id": "A1", "target_chembl_id": "CHEMBL203", "pchembl_value": 8.6},
        {"assay_chembl_id": "A2", "target_chembl_id": "CHEMBL9999", "pchembl_value": 6.1},
    ],
    uniprot_results=[{"primaryAccession": "P04637", "organism": {"scientificName": "Homo sapiens"}}],
    pubmed_esearch={"esearchresult": {"count": 1, "idlist": ["111"]}},
    europepmc_results=[{"pmid": "111", "title": "EGFR inhibitors", "doi": "10.1/x", "pubYear": "2020"}],
    openalex_works=[{"id": "W1", "doi": "https://doi.org/10.2/y", "title": "Other"}],
)


class TestDedupLiterature:
    def test_later_fields_win(self):
        records = [
            Literature(key="PMID:1", pmid="1", title="Old Title", source="pubmed"),
            Literature(key="PMID:1", pmid="1", title="New Title", doi="10.1/x", source="europepmc"),
        ]

        [merged] = dedup_literature(records)

        assert merged.key == "PMID:1"
        assert merged.title == "New Title"
        assert merged.doi == "10.1/x"
        assert merged.sources == ["pubmed", "europepmc"]

    def test_none_does_not_erase_earlier_value(self):
        records = [
            Literature(key="PMID:1", pmid="1", journal="Nature", source="europepmc"),
            Literature(key="PMID:1", pmid="1", title="T", source="pubmed"),
        ]

        [merged] = dedup_literature(records)

        assert merged.journal == "Nature"
        assert merged.title == "T"

    def test_output_size(self):
        records = [
            Literature(key=key, source="pubmed")
            for key in ["PMID:1", "PMID:1", "PMID:1", "DOI:a", "DOI:a", "PMID:2"]
        ]
        # N=6, M=5 duplicates over 2 distinct keys -> 6 - (5 - 2) = 3
        assert [r.key for r in dedup_literature(records)] == ["PMID:1", "DOI:a", "PMID:2"]


class TestGrouping:
    def test_compounds_grouped_by_skeleton(self):
        compounds = [
            Compound(compound_id="a", inchikey="BSYNRYMUTXBXSQ-UHFFFAOYSA-N", source="pubchem"),
            Compound(compound_id="b", inchikey="BSYNRYMUTXBXSQ-UHFFFAOYSA-M", smiles="CC", source="chembl"),
            Compound(compound_id="c", source="pubchem"),
        ]

        grouped = group_compounds_by_skeleton(compounds)

        assert [c.compound_id for c in grouped] == ["a", "c"]
        assert grouped[0].smiles == "CC"
        assert grouped[0].meta["sources"] == ["pubchem", "chembl"]
        assert grouped[0].meta["merged_count"] == 2

    def test_targets_grouped_by_accession(self):
        targets = [
            Target(target_id="P00533", uniprot="P00533", chembl_target_id="CHEMBL203", source="chembl"),
            Target(target_id="P00533", uniprot="P00533", symbol="EGFR", source="uniprot"),
        ]

        [merged] = group_targets_by_accession(targets)

        assert merged.chembl_target_id == "CHEMBL203"
        assert merged.symbol == "EGFR"

    def test_build_target_lookup(self):
        targets = [
            Target(uniprot="P00533", chembl_target_id="CHEMBL203"),
            Target(chembl_target_id="CHEMBL2"),
        ]
        assert build_target_lookup(targets) == {"CHEMBL203": "P00533"}


class TestEntityResolver:
    async def test_normalize_without_augmentation(self):
        dataset = await EntityResolver().normalize(MOCK_BUNDLE)

        assert len(dataset.compounds) == 1
        assert [t.source for t in dataset.targets] == ["chembl", "uniprot"]
        assert [a.target_id for a in dataset.assays] == [None, None]
        assert {lit.key for lit in dataset.literature} == {"PMID:111", "DOI:10.2/y"}

        merged = next(lit for lit in dataset.literature if lit.key == "PMID:111")
        assert merged.sources == ["pubmed", "europepmc"]
        assert merged.title == "EGFR inhibitors"

    async def test_augmentation_only_adds_links(self, settings):
        chembl = AsyncMock(spec=ChEMBLClient)
        chembl.get_target.return_value = {"target_components": [{"accession": "P00533"}]}
        augmenter = CrossReferenceAugmenter(
            settings, pubchem=AsyncMock(spec=PubChemClient), chembl=chembl
        )

        before = await EntityResolver().normalize(MOCK_BUNDLE)
        after = await EntityResolver(augmenter).normalize(MOCK_BUNDLE)

        linked_before = sum(1 for a in before.assays if a.target_id)
        linked_after = sum(1 for a in after.assays if a.target_id)
        assert linked_after >= linked_before
        assert [a.target_id for a in after.assays] == ["P00533", None]
        assert after.targets[0].target_id == "P00533"
