"""
Literature source clients: NCBI Entrez (PubMed), Europe PMC and OpenAlex.

Each client returns the source's raw payload shape, which is what
LiteratureNormalizer consumes.
"""

import logging

from bioevidence.sources.base import SourceClient

logger = logging.getLogger(__name__)


def boolean_from_keywords(keywords: list[str], organisms: list[str]) -> str:
    """
    Compact boolean literature query: (kw1 OR kw2) AND (org1 OR org2).

    Falls back to the first six keywords joined by spaces when both groups
    are empty.
    """

    def or_group(terms: list[str]) -> str:
        quoted = ['"' + t + '"' for t in terms if t]
        return "(" + " OR ".join(quoted) + ")" if quoted else ""

    parts = [or_group(keywords), or_group(organisms)]
    return " AND ".join(part for part in parts if part) or " ".join(keywords[:6])


class EntrezClient(SourceClient):
    """Async client for NCBI E-utilities ESearch over PubMed."""

    connector = "entrez"

    def _default_base_url(self) -> str:
        return self.settings.entrez_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.entrez_rate_limit_rpm

    async def esearch(self, term: str, *, retmax: int = 50) -> dict:
        """
        Run an ESearch and return ``{"esearchresult": {"count", "idlist"}}``.
        """
        params = {"db": "pubmed", "term": term, "retmode": "json", "retmax": retmax}
        data = await self.get(
            "/esearch.fcgi", params, cache_ttl=self.settings.cache_ttl_search
        )
        result = {}
        if isinstance(data, dict):
            result = data.get("esearchresult") or {}
        ids = [str(x) for x in result.get("idlist") or []]
        try:
            count = int(result.get("count", len(ids)))
        except (TypeError, ValueError):
            count = len(ids)
        return {"esearchresult": {"count": count, "idlist": ids}}


class EuropePMCClient(SourceClient):
    """Async client for the Europe PMC search endpoint."""

    connector = "europepmc"
    MAX_PAGE_SIZE = 100

    def _default_base_url(self) -> str:
        return self.settings.europepmc_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.europepmc_rate_limit_rpm

    async def search(
        self,
        query: str,
        *,
        page_size: int = 25,
        year_from: str | None = None,
        year_to: str | None = None,
        result_type: str = "core",
    ) -> list[dict]:
        """Return raw ``resultList.result`` rows for a query."""
        filters = []
        if year_from:
            filters.append(f"FIRST_PDATE:[{year_from}-01-01 TO *]")
        if year_to:
            filters.append(f"FIRST_PDATE:[* TO {year_to}-12-31]")
        q = " AND ".join(part for part in [query, *filters] if part)

        params = {
            "query": q,
            "format": "json",
            "resultType": result_type,
            "pageSize": max(1, min(page_size, self.MAX_PAGE_SIZE)),
        }
        data = await self.get("/search", params, cache_ttl=self.settings.cache_ttl_search)
        result_list = data.get("resultList") if isinstance(data, dict) else None
        rows = result_list.get("result") if isinstance(result_list, dict) else None
        return list(rows) if isinstance(rows, list) else []


class OpenAlexClient(SourceClient):
    """Async client for OpenAlex works search."""

    connector = "openalex"
    MAX_PER_PAGE = 100

    def _default_base_url(self) -> str:
        return self.settings.openalex_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.openalex_rate_limit_rpm

    async def works(self, search: str, *, per_page: int = 50) -> list[dict]:
        """Return raw ``results`` rows for a works search."""
        params = {"search": search, "per-page": max(1, min(per_page, self.MAX_PER_PAGE))}
        data = await self.get("/works", params, cache_ttl=self.settings.cache_ttl_search)
        if not isinstance(data, dict):
            return []
        return list(data.get("results") or data.get("data") or [])
