"""
UniProt REST client (UniProtKB search).
"""

import logging

from bioevidence.sources.base import SourceClient

logger = logging.getLogger(__name__)


def build_uniprot_query(
    terms: str | list[str],
    *,
    organism: str | None = None,
    reviewed: bool = True,
) -> str:
    """
    Build a compact boolean UniProt query.

    A list of terms becomes an OR group (multi-word terms are quoted);
    reviewed and organism clauses are ANDed on.
    """
    if isinstance(terms, (list, tuple)):
        tokens = [f'"{t}"' if " " in t else t for t in terms if t]
        base = f"({' OR '.join(tokens)})" if tokens else ""
    else:
        base = str(terms or "").strip()

    clauses = [base] if base else []
    if reviewed:
        clauses.append("reviewed:true")
    if organism:
        clauses.append(f'organism_name:"{organism}"')
    return " AND ".join(clauses) if clauses else "reviewed:true"


class UniProtClient(SourceClient):
    """
    Async client for UniProtKB search.

    Example:
        async with UniProtClient() as uniprot:
            hits = await uniprot.search(["EGFR", "ERBB2"], organism="Homo sapiens")
    """

    connector = "uniprot"

    def _default_base_url(self) -> str:
        return self.settings.uniprot_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.uniprot_rate_limit_rpm

    async def search(
        self,
        terms: str | list[str],
        *,
        limit: int = 25,
        organism: str | None = None,
        reviewed: bool = True,
    ) -> list[dict]:
        """Return raw UniProtKB search hits (``results`` array)."""
        params = {
            "query": build_uniprot_query(terms, organism=organism, reviewed=reviewed),
            "size": limit,
            "format": "json",
        }
        data = await self.get(
            "/uniprotkb/search", params, cache_ttl=self.settings.cache_ttl_search
        )
        return list(data.get("results") or []) if isinstance(data, dict) else []
