"""
Slot filling: pull genes, variants, diseases, drugs, trial phases, NCT ids
and the organism out of a free-text question.

Pure pattern matching over the query text. Gene-like tokens must be written
in capitals (KRAS, TP53, MGMT) so ordinary words are never mistaken for genes.
"""

import re

from bioevidence.schemas import Slots

DISEASE_SYNONYMS = {
    "nsclc": "non-small cell lung cancer",
    "non small cell lung cancer": "non-small cell lung cancer",
    "non-small-cell lung cancer": "non-small cell lung cancer",
    "non-small cell lung cancer": "non-small cell lung cancer",
    "glioblastoma": "glioblastoma",
    "gbm": "glioblastoma",
    "aml": "acute myeloid leukemia",
    "cml": "chronic myeloid leukemia",
    "crc": "colorectal cancer",
    "colorectal cancer": "colorectal cancer",
    "melanoma": "melanoma",
}

DRUG_HINTS = [
    "temozolomide", "temodar", "tmz",
    "sotorasib", "adagrasib",
    "osimertinib", "gefitinib", "erlotinib",
    "dabrafenib", "trametinib", "vemurafenib",
    "imatinib", "ponatinib",
]

# Brand <-> generic aliases
DRUG_ALIASES: dict[str, list[str]] = {
    "temozolomide": ["temodar", "tmz"],
    "temodar": ["temozolomide", "tmz"],
    "tmz": ["temozolomide", "temodar"],
    "sotorasib": ["lumakras", "amg 510", "amg510"],
    "adagrasib": ["krazati", "mrtx849", "mrtx-849"],
}

# Disease abbreviations that look like gene symbols
DISEASE_TOKENS = frozenset(
    {"GBM", "NSCLC", "SCLC", "CRC", "AML", "CML", "ALL", "DLBCL", "MM", "MELANOMA"}
)

# Uppercase words and clinical acronyms that are never genes
STOPWORDS = frozenset(
    {
        "AND", "OR", "OF", "IN", "FOR", "WITH", "TO", "THE", "A", "AN", "ON", "BY", "AT", "VS",
        "ABOUT", "SHOW", "LIST", "FIND", "TRIAL", "TRIALS",
        "WHAT", "PERCENT", "BENEFIT", "FROM", "IS", "ARE", "DO", "DOES",
        "WHO", "WHICH", "WHERE", "WHEN", "WHY", "HOW", "PATIENT", "PATIENTS",
        "HR", "OS", "RR", "CI", "TMZ", "TCGA", "PFS", "ORR", "DFS", "EFS", "DOR", "DCR", "TTF",
        "DNA", "RNA", "PCR", "NCT", "III",
    }
)

GENE_TOKEN = re.compile(r"^[A-Z][A-Z0-9]{2,6}$")
TOKEN_SPLIT = re.compile(r"[^A-Za-z0-9\-.+]+")

VARIANT_PATTERNS = [
    re.compile(r"\bp\.[A-Z][a-z]{2}\d+[A-Z][a-z]{2}\b", re.IGNORECASE),  # p.Gly12Cys
    re.compile(r"\bp\.[A-Z]\d+[A-Z]\b", re.IGNORECASE),  # p.G12C
    re.compile(r"\b[A-Z]\d{1,4}[A-Z]\b"),  # G12C, V600E
    re.compile(r"\brs\d+\b", re.IGNORECASE),
    re.compile(r"\bc\.\d+[ACGT]?>[ACGT]?", re.IGNORECASE),  # c.34G>T
]

PHASE_RE = re.compile(r"\bphase\s*(iv|i{1,3}|[1-4])\b", re.IGNORECASE)
NCT_RE = re.compile(r"\bNCT\d{8}\b", re.IGNORECASE)
ROMAN_PHASES = {"i": 1, "ii": 2, "iii": 3, "iv": 4}


def expand_drug_aliases(drugs: list[str]) -> list[str]:
    """Add known brand/generic aliases, preserving order and uniqueness."""
    out: dict[str, None] = {}
    for drug in drugs:
        out[drug] = None
        for alias in DRUG_ALIASES.get(drug.lower(), []):
            out[alias] = None
    return list(out)


def drug_tokens(drugs: list[str]) -> set[str]:
    """Uppercased drug names and every known alias."""
    tokens = {d.upper() for d in drugs}
    for name, aliases in DRUG_ALIASES.items():
        tokens.add(name.upper())
        tokens.update(a.upper() for a in aliases)
    return tokens


def _organism(query: str) -> str:
    if re.search(r"\b(mouse|mice|murine)\b", query, re.IGNORECASE):
        return "mouse"
    if re.search(r"\brats?\b", query, re.IGNORECASE):
        return "rat"
    if re.search(r"\bzebrafish\b", query, re.IGNORECASE):
        return "zebrafish"
    return "human"


def fill_slots(query: str) -> Slots:
    """Extract structured slots from a question."""
    text = (query or "").strip()
    lower = text.lower()

    drugs = expand_drug_aliases([d for d in DRUG_HINTS if re.search(rf"\b{re.escape(d)}\b", lower)])

    variants: dict[str, None] = {}
    for pattern in VARIANT_PATTERNS:
        for match in pattern.finditer(text):
            variants[match.group(0)] = None

    not_genes = drug_tokens(drugs) | DISEASE_TOKENS | STOPWORDS | {v.upper() for v in variants}

    genes: dict[str, None] = {}
    for token in TOKEN_SPLIT.split(text):
        if not token or any(ch.islower() for ch in token):
            continue
        symbol = re.sub(r"[^A-Za-z0-9]", "", token).upper()
        if GENE_TOKEN.match(symbol) and symbol not in not_genes:
            genes[symbol] = None

    diseases: dict[str, None] = {}
    for synonym, name in DISEASE_SYNONYMS.items():
        if re.search(rf"\b{re.escape(synonym)}\b", lower):
            diseases[name] = None

    phases: list[int] = []
    for match in PHASE_RE.finditer(text):
        raw = match.group(1).lower()
        number = ROMAN_PHASES.get(raw) or int(raw)
        if number not in phases:
            phases.append(number)

    nct_ids = list(dict.fromkeys(m.group(0).upper() for m in NCT_RE.finditer(text)))

    return Slots(
        genes=list(genes),
        variants=list(variants),
        diseases=list(diseases),
        drugs=drugs,
        phases=phases,
        nct_ids=nct_ids,
        organism=_organism(text),
    )
