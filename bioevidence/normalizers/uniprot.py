"""
UniProt search normalizer.

UniProt is authoritative for ``target_id``: every hit becomes a Target keyed
by its primary accession.
"""

import logging
from typing import Any

from bioevidence.identity import first, to_int, to_str
from bioevidence.schemas import Target

logger = logging.getLogger(__name__)


class UniProtNormalizer:
    """
    Normalizes UniProtKB search hits to Target records.

    Usage:
        normalizer = UniProtNormalizer()
        targets = normalizer.normalize_search(response["results"])
    """

    def normalize_entry(self, raw: Any) -> Target | None:
        """Normalize one UniProtKB hit; None for non-mapping rows."""
        if not isinstance(raw, dict):
            return None

        accession = to_str(raw.get("primaryAccession"))
        organism = raw.get("organism")
        if not isinstance(organism, dict):
            organism = {}

        return Target(
            target_id=accession or "target",
            uniprot=accession,
            symbol=self._gene_symbol(raw),
            pref_name=self._protein_name(raw),
            organism_name=to_str(organism.get("scientificName")),
            organism_taxid=to_int(organism.get("taxonId")),
            source="uniprot",
        )

    def normalize_search(self, raw_list: list[Any] | None) -> list[Target]:
        """Normalize a list of UniProtKB hits."""
        return [t for t in (self.normalize_entry(r) for r in raw_list or []) if t is not None]

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _protein_name(self, raw: dict) -> str | None:
        desc = raw.get("proteinDescription")
        rec_name = desc.get("recommendedName") if isinstance(desc, dict) else None
        full_name = rec_name.get("fullName") if isinstance(rec_name, dict) else None
        if isinstance(full_name, dict):
            return to_str(full_name.get("value"))
        return None

    def _gene_symbol(self, raw: dict) -> str | None:
        gene = first(raw.get("genes") or [])
        if not isinstance(gene, dict):
            return None
        gene_name = gene.get("geneName") or {}
        return to_str(gene_name.get("value")) if isinstance(gene_name, dict) else None
