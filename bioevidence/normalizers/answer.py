"""
Answer-card normalizers: Europe PMC rows -> Publication, ClinicalTrials.gov
study-field rows -> Trial, UniProt hits -> Protein.
"""

import logging
from typing import Any

from bioevidence.identity import first, to_int, to_str
from bioevidence.schemas import Protein, Publication, Trial

logger = logging.getLogger(__name__)


class AnswerNormalizer:
    """Maps tool payload rows onto the answer-card record kinds."""

    # =========================================================================
    # Publications
    # =========================================================================

    def publication_from_europepmc(self, raw: Any) -> Publication | None:
        if not isinstance(raw, dict):
            return None

        pmid = to_str(raw.get("pmid") or raw.get("PMID"))
        doi = to_str(raw.get("doi") or raw.get("DOI"))
        title = to_str(raw.get("title") or raw.get("Title"))
        first_date = raw.get("firstPublicationDate")
        date = first_date if isinstance(first_date, str) and first_date else None

        year = to_int(raw.get("pubYear") or raw.get("pubyear"))
        if year is None and date:
            year = to_int(date[:4])

        xref = {}
        if pmid:
            xref["PMID"] = pmid
        if doi:
            xref["DOI"] = doi

        return Publication(
            id=pmid or doi or to_str(raw.get("id")) or title,
            label=title,
            pmid=pmid,
            doi=doi,
            title=title,
            year=year,
            journal=to_str(raw.get("journalTitle") or raw.get("journal") or raw.get("Journal")),
            abstract=to_str(
                raw.get("abstractText") or raw.get("abstract") or raw.get("AbstractText")
            ),
            date=date,
            xref=xref,
        )

    def publications_from_europepmc(self, rows: list[Any] | None) -> list[Publication]:
        return [p for p in (self.publication_from_europepmc(r) for r in rows or []) if p is not None]

    # =========================================================================
    # Trials
    # =========================================================================

    def trial_from_ctgov(self, raw: Any) -> Trial | None:
        """
        Map a study-fields row. Most fields arrive as lists; scalars are
        accepted too. Multiple phases are joined with "/", conditions
        with "; ".
        """
        if not isinstance(raw, dict):
            return None

        nct_id = to_str(self._scalar(raw, "NCTId"))
        title = to_str(self._scalar(raw, "BriefTitle"))
        phases = self._values(raw, "Phase")
        conditions = self._values(raw, "Condition")

        return Trial(
            id=nct_id,
            label=title or nct_id,
            nct_id=nct_id,
            title=title,
            status=to_str(self._scalar(raw, "OverallStatus")),
            phase="/".join(phases) or None,
            condition="; ".join(conditions) or None,
            interventions=self._values(raw, "InterventionName"),
            xref={"NCT": nct_id} if nct_id else {},
        )

    def trials_from_ctgov(self, rows: list[Any] | None) -> list[Trial]:
        return [t for t in (self.trial_from_ctgov(r) for r in rows or []) if t is not None]

    # =========================================================================
    # Proteins
    # =========================================================================

    def protein_from_uniprot(self, raw: Any) -> Protein | None:
        if not isinstance(raw, dict):
            return None
        accession = to_str(raw.get("primaryAccession"))
        if not accession:
            return None

        gene = first(raw.get("genes") or [])
        gene_name = gene.get("geneName") if isinstance(gene, dict) else None
        symbol = to_str(gene_name.get("value")) if isinstance(gene_name, dict) else None

        desc = raw.get("proteinDescription")
        rec_name = desc.get("recommendedName") if isinstance(desc, dict) else None
        full_name = rec_name.get("fullName") if isinstance(rec_name, dict) else None
        label = to_str(full_name.get("value")) if isinstance(full_name, dict) else None

        return Protein(
            id=f"UniProt:{accession}",
            label=label or symbol or accession,
            accession=accession,
            gene_symbol=symbol,
            xref={"UniProt": accession},
        )

    def proteins_from_uniprot(self, rows: list[Any] | None) -> list[Protein]:
        return [p for p in (self.protein_from_uniprot(r) for r in rows or []) if p is not None]

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _scalar(self, raw: dict, key: str) -> Any:
        value = raw.get(key)
        if isinstance(value, list):
            return first(value)
        return value

    def _values(self, raw: dict, key: str) -> list[str]:
        value = raw.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [str(v) for v in value if v]
