"""
Answer-card assembly: rank, cap and summarize canonical records for one
question.
"""

import logging

from bioevidence.openqa.genes import mine_genes
from bioevidence.openqa.ranking import DISPLAY_CAPS, cap, rank_publications, rank_trials
from bioevidence.openqa.slots import DISEASE_TOKENS
from bioevidence.openqa.text_metrics import annotate_publications
from bioevidence.schemas import (
    AnswerCard,
    AnswerEntities,
    CanonicalRecord,
    Disease,
    Drug,
    EvidenceItem,
    Gene,
    Highlight,
    Pathway,
    Protein,
    Publication,
    Slots,
    ToolRun,
    Trial,
    Variant,
)

logger = logging.getLogger(__name__)

MAX_EVIDENCE = 30


def _of_kind(records: list[CanonicalRecord], cls):
    return [r for r in records if isinstance(r, cls)]


def _publication_id(pub: Publication) -> str | None:
    if pub.pmid:
        return f"PMID:{pub.pmid}"
    if pub.doi:
        return f"DOI:{pub.doi}"
    return pub.id


def build_answer_card(
    query: str,
    slots: Slots,
    records: list[CanonicalRecord],
    tools_run: list[ToolRun] | None = None,
) -> AnswerCard:
    """
    Build the answer card.

    Publications and trials are ranked before capping. Genes are the
    existing Gene records plus symbols mined from the top publications,
    unique by symbol.
    """
    tools_run = tools_run or []

    publications = _of_kind(records, Publication)
    annotate_publications([p for p in publications if "extracted" not in p.meta])
    publications = cap("publications", rank_publications(publications, slots))
    trials = cap("trials", rank_trials(_of_kind(records, Trial), slots))

    proteins = cap("proteins", _of_kind(records, Protein))
    pathways = cap("pathways", _of_kind(records, Pathway))
    variants = cap("variants", _of_kind(records, Variant))
    diseases = cap("diseases", _of_kind(records, Disease))
    drugs = cap("drugs", _of_kind(records, Drug))

    exclude = set(DISEASE_TOKENS)
    exclude.update(d.upper() for d in slots.drugs)
    exclude.update((d.label or d.id or "").upper() for d in drugs)
    mined, merged_symbols = mine_genes(publications, slots, exclude)

    genes_by_symbol: dict[str, Gene] = {}
    for gene in [*_of_kind(records, Gene), *mined]:
        key = gene.symbol or gene.id or ""
        genes_by_symbol.setdefault(key, gene)
    genes = cap("genes", list(genes_by_symbol.values()))

    highlights = []
    if genes:
        highlights.append(Highlight(text=f"Top gene: {genes[0].symbol or genes[0].label or genes[0].id}"))
    if trials:
        highlights.append(
            Highlight(text=f"Trial: {trials[0].nct_id or trials[0].label}", record_id=trials[0].nct_id)
        )
    if pathways:
        highlights.append(Highlight(text=f"Pathway: {pathways[0].label}", record_id=pathways[0].id))
    if publications:
        top = publications[0]
        highlights.append(
            Highlight(text=f"Top publication: {top.title or top.label}", record_id=_publication_id(top))
        )

    evidence = [
        EvidenceItem(
            record_kind="Publication",
            label=p.title or p.label,
            id=_publication_id(p),
            server=p.provenance.server if p.provenance else "",
            tool=p.provenance.tool if p.provenance else "",
        )
        for p in publications[:MAX_EVIDENCE]
    ]

    notes = []
    failed = [t for t in tools_run if not t.ok]
    if failed:
        notes.append(f"{len(failed)} of {len(tools_run)} tool calls failed.")
    if not publications:
        notes.append("No publications found.")

    return AnswerCard(
        query=query,
        slots=slots.model_copy(update={"genes": merged_symbols[: DISPLAY_CAPS["genes"]]}),
        entities=AnswerEntities(
            genes=genes,
            proteins=proteins,
            pathways=pathways,
            variants=variants,
            diseases=diseases,
            drugs=drugs,
            trials=trials,
            publications=publications,
        ),
        highlights=highlights,
        evidence=evidence,
        tools_run=tools_run,
        notes=notes,
    )
