"""
Literature normalizer for PubMed ESearch, Europe PMC and OpenAlex payloads.

Every record gets a best-effort dedup ``key``:
``PMID:<id>`` -> ``DOI:<doi>`` -> source-specific id -> source tag.
"""

import logging
import re
from typing import Any

from bioevidence.identity import to_int, to_str
from bioevidence.schemas import Literature

logger = logging.getLogger(__name__)

DOI_URL_PREFIX = re.compile(r"^https?://(dx\.)?doi\.org/", re.IGNORECASE)


def literature_key(
    pmid: str | None, doi: str | None, source_id: str | None, source: str
) -> str:
    if pmid:
        return f"PMID:{pmid}"
    if doi:
        return f"DOI:{doi}"
    return source_id or source


class LiteratureNormalizer:
    """
    Normalizes literature search payloads to Literature records.

    Each ``from_*`` method accepts either the raw response body or the
    already-unwrapped result list.
    """

    # =========================================================================
    # PubMed
    # =========================================================================

    def from_pubmed_esearch(self, payload: Any) -> list[Literature]:
        """One record per PMID in an ESearch id list."""
        if not isinstance(payload, dict):
            return []
        result = payload.get("esearchresult", payload)
        if not isinstance(result, dict):
            return []

        ids = result.get("idlist") or result.get("idList") or result.get("ids") or []
        records = []
        for pmid in ids:
            pmid = to_str(pmid)
            if not pmid:
                continue
            records.append(
                Literature(key=f"PMID:{pmid}", pmid=pmid, source="pubmed", sources=["pubmed"])
            )
        return records

    # =========================================================================
    # Europe PMC
    # =========================================================================

    def from_europepmc_row(self, raw: Any) -> Literature | None:
        if not isinstance(raw, dict):
            return None
        pmid = to_str(raw.get("pmid"))
        doi = to_str(raw.get("doi"))
        return Literature(
            key=literature_key(pmid, doi, to_str(raw.get("id")), "epmc"),
            pmid=pmid,
            doi=doi,
            title=to_str(raw.get("title")),
            year=to_int(raw.get("pubYear")),
            journal=to_str(raw.get("journalTitle")),
            source="europepmc",
            sources=["europepmc"],
        )

    def from_europepmc(self, payload: Any) -> list[Literature]:
        """Records from ``resultList.result`` (or a bare result list)."""
        if isinstance(payload, dict):
            result_list = payload.get("resultList")
            payload = result_list.get("result") if isinstance(result_list, dict) else None
        if not isinstance(payload, list):
            return []
        return [r for r in (self.from_europepmc_row(raw) for raw in payload) if r is not None]

    # =========================================================================
    # OpenAlex
    # =========================================================================

    def from_openalex_row(self, raw: Any) -> Literature | None:
        if not isinstance(raw, dict):
            return None
        doi = self._strip_doi(raw.get("doi"))
        return Literature(
            key=literature_key(None, doi, to_str(raw.get("id")), "openalex"),
            doi=doi,
            title=to_str(raw.get("title") or raw.get("display_name")),
            year=to_int(raw.get("publication_year")),
            journal=self._openalex_venue(raw),
            source="openalex",
            sources=["openalex"],
        )

    def from_openalex(self, payload: Any) -> list[Literature]:
        """Records from ``results`` (or ``data``, or a bare list)."""
        if isinstance(payload, dict):
            payload = payload.get("results") or payload.get("data") or []
        if not isinstance(payload, list):
            return []
        return [r for r in (self.from_openalex_row(raw) for raw in payload) if r is not None]

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _strip_doi(self, value: Any) -> str | None:
        text = to_str(value)
        if not text:
            return None
        return DOI_URL_PREFIX.sub("", text) or None

    def _openalex_venue(self, raw: dict) -> str | None:
        location = raw.get("primary_location") or {}
        venue = location.get("source") if isinstance(location, dict) else None
        if isinstance(venue, dict):
            return to_str(venue.get("display_name"))
        return None
