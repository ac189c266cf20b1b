"""
Entity merge and deduplication.

The merge pass:
1. normalizes PubChem, ChEMBL target and UniProt payloads
2. concatenates targets (ChEMBL first, UniProt second)
3. runs cross-reference augmentation when an augmenter is configured
4. builds the ``chembl_target_id -> uniprot`` lookup
5. normalizes activities against the lookup
6. normalizes literature from all sources and deduplicates it by key

Compounds and targets are not collapsed by the default pass. The opt-in
``group_*`` helpers do that explicitly.
"""

import logging
from typing import TypeVar

from bioevidence.augment import CrossReferenceAugmenter
from bioevidence.normalizers.chembl import ChEMBLNormalizer
from bioevidence.normalizers.literature import LiteratureNormalizer
from bioevidence.normalizers.pubchem import PubChemNormalizer
from bioevidence.normalizers.uniprot import UniProtNormalizer
from bioevidence.schemas import (
    CanonicalRecord,
    Compound,
    Literature,
    NormalizedDataset,
    RawSourceBundle,
    Target,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=CanonicalRecord)

# Never copied between records by a field merge
_MERGE_EXCLUDE = {"kind", "meta", "provenance", "sources", "inchikey14"}


def build_target_lookup(targets: list[Target]) -> dict[str, str]:
    """Map ChEMBL target id to UniProt accession for targets that have both."""
    lookup: dict[str, str] = {}
    for target in targets:
        if target.chembl_target_id and target.uniprot:
            lookup[target.chembl_target_id] = target.uniprot
    return lookup


def dedup_literature(records: list[Literature]) -> list[Literature]:
    """
    Collapse records sharing a ``key``.

    A later record's non-None fields overwrite the earlier ones; fields the
    later record leaves as None keep their earlier value. ``sources`` keeps
    every contributing source in first-seen order.
    """
    merged: dict[str, Literature] = {}
    for record in records:
        previous = merged.get(record.key)
        if previous is None:
            sources = record.sources or [record.source]
            merged[record.key] = record.model_copy(update={"sources": list(sources)})
            continue

        update = record.model_dump(exclude_none=True, exclude=_MERGE_EXCLUDE)
        sources = list(previous.sources)
        for source in record.sources or [record.source]:
            if source not in sources:
                sources.append(source)
        update["sources"] = sources
        update["meta"] = {**previous.meta, **record.meta}
        merged[record.key] = previous.model_copy(update=update)

    return list(merged.values())


def _union(records: list[R]) -> R:
    """First non-empty value per field wins; sources and members go to meta."""
    base = records[0]
    update: dict = {}
    for record in records[1:]:
        for field, value in record.model_dump(exclude=_MERGE_EXCLUDE).items():
            if value in (None, "") or getattr(base, field) not in (None, ""):
                continue
            update.setdefault(field, value)

    sources: list[str] = []
    for record in records:
        source = getattr(record, "source", None)
        if source and source not in sources:
            sources.append(source)

    meta = {**base.meta, "sources": sources, "merged_count": len(records)}
    return base.model_copy(update={**update, "meta": meta})


def _group(records: list[R], key_of) -> list[R]:
    """Union records sharing a non-empty key, keeping first-seen order."""
    groups: dict[str, list[R]] = {}
    order: list[str | R] = []
    for record in records:
        key = key_of(record)
        if not key:
            order.append(record)
            continue
        if key not in groups:
            groups[key] = []
            order.append(key)
        groups[key].append(record)

    return [_union(groups[item]) if isinstance(item, str) else item for item in order]


def group_compounds_by_skeleton(compounds: list[Compound]) -> list[Compound]:
    """
    Collapse compounds sharing an ``inchikey14`` into one record.

    Compounds without a skeleton key are kept as they are. Not part of the
    default merge pass: ``compounds_duplicates`` is defined on the
    ungrouped list.
    """
    return _group(compounds, lambda c: c.inchikey14)


def group_targets_by_accession(targets: list[Target]) -> list[Target]:
    """Collapse targets sharing a UniProt accession; others are kept as-is."""
    return _group(targets, lambda t: t.uniprot)


class EntityResolver:
    """
    Runs the merge pass over a bundle of raw source payloads.

    Usage:
        async with CrossReferenceAugmenter(settings) as augmenter:
            resolver = EntityResolver(augmenter)
            dataset = await resolver.normalize(bundle)
    """

    def __init__(self, augmenter: CrossReferenceAugmenter | None = None):
        self.augmenter = augmenter
        self.pubchem = PubChemNormalizer()
        self.chembl = ChEMBLNormalizer()
        self.uniprot = UniProtNormalizer()
        self.literature = LiteratureNormalizer()

    async def normalize(self, bundle: RawSourceBundle) -> NormalizedDataset:
        compounds = self.pubchem.normalize_properties(
            bundle.pubchem_props, bundle.pubchem_name_hint
        )
        targets = [
            *self.chembl.normalize_targets(bundle.chembl_targets),
            *self.uniprot.normalize_search(bundle.uniprot_results),
        ]

        if self.augmenter is not None:
            compounds = await self.augmenter.enrich_compound_identities(compounds)
            targets = await self.augmenter.augment_targets_with_uniprot(targets)

        lookup = build_target_lookup(targets)
        assays = self.chembl.normalize_activities(bundle.chembl_activities, lookup)

        literature = dedup_literature(
            [
                *self.literature.from_pubmed_esearch(bundle.pubmed_esearch),
                *self.literature.from_europepmc(bundle.europepmc_results),
                *self.literature.from_openalex(bundle.openalex_works),
            ]
        )

        logger.info(
            f"Normalized {len(compounds)} compounds, {len(targets)} targets, "
            f"{len(assays)} assays, {len(literature)} literature records"
        )
        return NormalizedDataset(
            compounds=compounds, targets=targets, assays=assays, literature=literature
        )
