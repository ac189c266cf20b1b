"""
ChEMBL REST client.

Returns raw target and activity rows; ChEMBLNormalizer maps them to
canonical Target and Assay records.
"""

import logging
from urllib.parse import quote

from bioevidence.sources.base import SourceClient

logger = logging.getLogger(__name__)


class ChEMBLClient(SourceClient):
    """
    Async client for the ChEMBL data API.

    Example:
        async with ChEMBLClient() as chembl:
            targets = await chembl.search_targets("EGFR", organism="Homo sapiens")
            detail = await chembl.get_target("CHEMBL203")
            acts = await chembl.get_activities("CHEMBL203", limit=50)
    """

    connector = "chembl"

    def _default_base_url(self) -> str:
        return self.settings.chembl_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.chembl_rate_limit_rpm

    async def search_targets(
        self,
        query: str | None,
        *,
        limit: int = 25,
        organism: str | None = None,
        name_contains: str | None = None,
    ) -> list[dict]:
        """Search targets by synonym, optionally scoped by organism and name."""
        params: dict = {"format": "json", "limit": limit}
        if organism:
            params["organism__icontains"] = organism
        if query:
            params["target_synonym__icontains"] = query
        if name_contains:
            params["pref_name__icontains"] = name_contains

        data = await self.get(
            "/target.json", params, cache_ttl=self.settings.cache_ttl_search
        )
        return list(data.get("targets") or []) if isinstance(data, dict) else []

    async def get_target(self, target_chembl_id: str) -> dict:
        """Fetch full target detail including target_components."""
        data = await self.get(f"/target/{quote(target_chembl_id, safe='')}.json")
        return data if isinstance(data, dict) else {}

    async def get_activities(
        self,
        target_chembl_id: str,
        *,
        limit: int = 50,
        pchembl_only: bool = True,
    ) -> list[dict]:
        """Fetch activity rows for a target; pchembl_only filters server-side."""
        params: dict = {
            "format": "json",
            "limit": limit,
            "target_chembl_id": target_chembl_id,
        }
        if pchembl_only:
            params["pchembl_value__isnull"] = "false"

        data = await self.get(
            "/activity.json", params, cache_ttl=self.settings.cache_ttl_search
        )
        return list(data.get("activities") or []) if isinstance(data, dict) else []
