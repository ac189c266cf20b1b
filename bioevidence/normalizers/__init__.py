"""
Per-source normalizers.

Pure mappings from raw source payloads to canonical records: no I/O, and
malformed rows are skipped rather than raising.
"""

from bioevidence.normalizers.answer import AnswerNormalizer
from bioevidence.normalizers.chembl import ChEMBLNormalizer
from bioevidence.normalizers.literature import LiteratureNormalizer
from bioevidence.normalizers.pubchem import PubChemNormalizer
from bioevidence.normalizers.registry import canonical_from_results, to_canonical
from bioevidence.normalizers.uniprot import UniProtNormalizer

__all__ = [
    "AnswerNormalizer",
    "ChEMBLNormalizer",
    "LiteratureNormalizer",
    "PubChemNormalizer",
    "UniProtNormalizer",
    "canonical_from_results",
    "to_canonical",
]
