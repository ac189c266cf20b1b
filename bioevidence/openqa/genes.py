"""
Gene mention mining over publication titles and abstracts.

Only sentences with biological context (gene, promoter, mutation, pathway...)
are scanned. A gene-like token must appear at least twice across those
sentences to be kept.
"""

import re
from collections import Counter

from bioevidence.schemas import Gene, Provenance, Publication, Slots

GENE_TOKEN = re.compile(r"\b[A-Z][A-Z0-9]{2,6}\b")
BIO_CONTEXT = re.compile(
    r"\b(gene|genes|protein|promoter|methyl\w*|expression|overexpression|silencing|knockdown|"
    r"mutation|mutations|mutant|variant|variants|amplification|deletion|pathway|receptor|kinase)\b",
    re.IGNORECASE,
)
SENTENCE_SPLIT = re.compile(r"(?<=[.?!;])\s+")

BLOCKLIST = frozenset(
    {
        "AND", "THE", "FOR", "WITH", "WHAT", "PERCENT", "BENEFIT", "FROM", "ARE", "DOES",
        "GBM", "NSCLC", "CRC", "AML", "CML", "ALL", "DLBCL", "DNA", "RNA", "EGFP", "GFP", "PCR",
        "TMZ", "TCGA", "PFS", "ORR", "DFS", "EFS", "DOR", "DCR", "TTF", "WHO", "MRI", "CNS",
        "CSF", "USA", "FDA",
    }
)

MIN_MENTIONS = 2
MAX_MINED = 20

MINER_PROVENANCE = Provenance(server="derived", tool="gene_mention_miner")


def _sentences(text: str | None) -> list[str]:
    return [s for s in SENTENCE_SPLIT.split(text or "") if s]


def count_gene_mentions(
    publications: list[Publication], exclude: set[str] | frozenset[str] = frozenset()
) -> Counter:
    counts: Counter = Counter()
    for pub in publications:
        for sentence in [*_sentences(pub.title or pub.label), *_sentences(pub.abstract)]:
            if not BIO_CONTEXT.search(sentence):
                continue
            for token in GENE_TOKEN.findall(sentence):
                if token in BLOCKLIST or token in exclude:
                    continue
                counts[token] += 1
    return counts


def mine_genes(
    publications: list[Publication],
    slots: Slots,
    exclude: set[str] | frozenset[str] = frozenset(),
) -> tuple[list[Gene], list[str]]:
    """
    Mine gene symbols and merge them with the slot genes.

    Returns ``(gene_records, merged_symbols)``. Slot genes come first, then
    up to 20 mined symbols by descending mention count.
    """
    counts = count_gene_mentions(publications, exclude)
    # Counter.most_common keeps first-seen order among equal counts
    mined = [sym for sym, n in counts.most_common() if n >= MIN_MENTIONS][:MAX_MINED]
    merged = list(dict.fromkeys([*slots.genes, *mined]))

    organism = slots.organism or "human"
    records = [
        Gene(
            id=f"SYMBOL:{symbol}",
            label=symbol,
            symbol=symbol,
            organism=organism,
            xref={"HGNC": symbol},
            provenance=MINER_PROVENANCE,
            meta={"mentions": counts.get(symbol, 0)},
        )
        for symbol in merged
    ]
    return records, merged
