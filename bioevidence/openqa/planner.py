"""
Heuristic query planner.

Routes a question to the discovered tools by intent (genes, proteins,
pathways, trials, literature). Literature and trial calls carry fielded
queries built from the slots. When no intent matches, the first three tools
are called with the raw question.
"""

import logging
import re
from typing import Callable

from bioevidence.openqa.slots import expand_drug_aliases, fill_slots
from bioevidence.schemas import QueryPlan, Slots, ToolCall, ToolMeta

logger = logging.getLogger(__name__)

ORGANISM_NAMES = {
    "human": "Homo sapiens",
    "mouse": "Mus musculus",
    "rat": "Rattus norvegicus",
    "zebrafish": "Danio rerio",
}

OUTCOME_INTENT = re.compile(
    r"\b(benefit|efficacy|survival|outcomes?|hazard\s*ratio|hr|overall\s*survival|os|progression|"
    r"pfs|response\s*rate|orr)\b",
    re.IGNORECASE,
)
QUANT_INTENT = re.compile(
    r"\b(methylation|promoter|cut[-\s]?off|threshold|pyrosequencing|bisulfite|copy\s*number|"
    r"expression|overexpression)\b",
    re.IGNORECASE,
)

GENE_INTENT = re.compile(r"\b(gene|variant|snv|mutation)s?\b")
PROTEIN_INTENT = re.compile(r"\b(protein|uniprot|isoform|domain)s?\b")
PATHWAY_INTENT = re.compile(r"\b(pathway|reactome|kegg)s?\b")
TRIAL_INTENT = re.compile(r"\b(clinical trials?|trials?|nct\d+|phase\s*(?:iv|i{1,3}|[1-4]))\b")
DRUG_INTENT = re.compile(r"\b(drug|target|inhibitor|agonist|antagonist|binder|compound)s?\b")
PAPER_INTENT = re.compile(
    r"benefit|survival|hazard\s*ratio|\bhr\b|overall\s*survival|\bos\b|progression|\bpfs\b|"
    r"cut[-\s]?off|threshold|meta[-\s]?analysis|randomi[sz]ed|cohort|case[-\s]?control|"
    r"publication|paper|literature|evidence"
)

GENE_TOOLS = re.compile(r"ensembl|ncbi|gene")
PROTEIN_TOOLS = re.compile(r"uniprot|protein")
PATHWAY_TOOLS = re.compile(r"reactome|kegg|pathway")
TRIAL_TOOLS = re.compile(r"clinicaltrials|ctgov|trials")
LITERATURE_TOOLS = re.compile(r"europmc|europepmc|pubmed|paper|publication|literature")


def _or_group(terms: list[str], quote: bool = False) -> str:
    terms = [t for t in terms if t]
    if not terms:
        return ""
    if quote:
        terms = [f'"{t}"' for t in terms]
    return "(" + " OR ".join(terms) + ")"


def build_europepmc_query(slots: Slots, raw_query: str) -> str:
    """
    Compact Europe PMC query from slots, with outcome and study-type
    filters when the question asks about outcomes. Falls back to the raw
    question when no clause applies.
    """
    parts = [
        _or_group(list(dict.fromkeys(slots.genes))[:3]),
        _or_group(list(dict.fromkeys(slots.diseases))[:3], quote=True),
        _or_group(expand_drug_aliases(slots.drugs[:3]), quote=True),
        _or_group(slots.nct_ids[:3]),
    ]

    mentions_outcome = bool(OUTCOME_INTENT.search(raw_query or ""))
    if mentions_outcome:
        parts.append(
            '("overall survival" OR OS OR "progression-free survival" OR PFS OR '
            '"hazard ratio" OR HR OR "response rate" OR ORR)'
        )
    if QUANT_INTENT.search(raw_query or ""):
        parts.append('(methylation OR "promoter methylation" OR cutoff OR threshold OR expression)')
    if mentions_outcome:
        parts.append(
            '("clinical trial" OR randomized OR randomised OR meta-analysis OR cohort OR "case-control")'
        )

    return " AND ".join(p for p in parts if p) or (raw_query or "").strip()


def build_ctgov_expr(slots: Slots, raw_query: str) -> str:
    """Fielded ClinicalTrials.gov expression nudged toward interventional trials."""
    parts = []
    if slots.diseases:
        parts.append(f"(AREA[ConditionSearch] {_or_group(slots.diseases, quote=True)})")
    if slots.drugs:
        parts.append(f"(AREA[InterventionName] {_or_group(expand_drug_aliases(slots.drugs), quote=True)})")
    if slots.nct_ids:
        parts.append(_or_group(slots.nct_ids))
    if not parts:
        parts.append(_or_group(slots.genes) or f"({(raw_query or '').strip()})")
    parts.append('("clinical trial" OR randomized OR phase)')
    return " AND ".join(parts)


def plan_from_query(
    query: str,
    tools: list[ToolMeta],
    slots: Slots | None = None,
    *,
    year_from: str | None = None,
    year_to: str | None = None,
) -> QueryPlan:
    """Build a tool-call plan for a question over the discovered tools."""
    slots = slots or fill_slots(query)
    lower = (query or "").lower()

    want_gene = bool(slots.genes or slots.variants) or bool(GENE_INTENT.search(lower))
    want_protein = bool(PROTEIN_INTENT.search(lower))
    want_pathway = bool(PATHWAY_INTENT.search(lower))
    want_trials = bool(slots.nct_ids or slots.phases) or bool(TRIAL_INTENT.search(lower))
    want_drugs = bool(slots.drugs) or bool(DRUG_INTENT.search(lower))
    want_papers = bool(PAPER_INTENT.search(lower))

    calls: list[ToolCall] = []

    def consider(wanted: bool, match: re.Pattern, build_args: Callable[[], dict] | None = None):
        if not wanted:
            return
        for tool in tools:
            haystack = f"{tool.server}:{tool.name}:{tool.description}".lower()
            if match.search(haystack) and not any(
                c.server == tool.server and c.tool == tool.name for c in calls
            ):
                calls.append(
                    ToolCall(server=tool.server, tool=tool.name, args=build_args() if build_args else {})
                )

    organism = ORGANISM_NAMES.get(slots.organism or "human", slots.organism)

    consider(want_gene, GENE_TOOLS, lambda: {"terms": slots.genes or [query], "organism": organism})
    consider(
        want_protein or want_drugs or want_gene,
        PROTEIN_TOOLS,
        lambda: {"terms": slots.genes or [query], "organism": organism},
    )
    consider(want_pathway, PATHWAY_TOOLS, lambda: {"query": query})
    consider(
        want_trials,
        TRIAL_TOOLS,
        lambda: {"expr": build_ctgov_expr(slots, query), "page_size": 50},
    )
    consider(
        want_papers,
        LITERATURE_TOOLS,
        lambda: {
            "query": build_europepmc_query(slots, query),
            "size": 25,
            "year_from": year_from,
            "year_to": year_to,
        },
    )

    if calls:
        return QueryPlan(rationale="heuristic intent routing", calls=calls)

    logger.info("No tool matched the question intent; falling back to the first three tools")
    return QueryPlan(
        rationale="fallback: first three tools",
        calls=[ToolCall(server=t.server, tool=t.name, args={"query": query}) for t in tools[:3]],
    )
