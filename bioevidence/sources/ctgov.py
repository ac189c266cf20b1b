"""
ClinicalTrials.gov client.

The v2 API nests study fields under ``protocolSection``; studies are
flattened here into the flat study-fields row shape
(``NCTId``, ``BriefTitle``, ``OverallStatus``, ``Phase``, ``Condition``,
``InterventionName``) that the trial normalizer reads.
"""

import logging

from bioevidence.sources.base import SourceClient

logger = logging.getLogger(__name__)


def flatten_study(study: dict) -> dict:
    """Flatten one v2 study into a study-fields row."""
    protocol = study.get("protocolSection") or {}
    ident = protocol.get("identificationModule") or {}
    status = protocol.get("statusModule") or {}
    design = protocol.get("designModule") or {}
    conditions = protocol.get("conditionsModule") or {}
    arms = protocol.get("armsInterventionsModule") or {}

    return {
        "NCTId": [ident["nctId"]] if ident.get("nctId") else [],
        "BriefTitle": [ident["briefTitle"]] if ident.get("briefTitle") else [],
        "OverallStatus": [status["overallStatus"]] if status.get("overallStatus") else [],
        "Phase": list(design.get("phases") or []),
        "Condition": list(conditions.get("conditions") or []),
        "InterventionName": [
            i["name"] for i in arms.get("interventions") or [] if i.get("name")
        ],
    }


class ClinicalTrialsClient(SourceClient):
    """Async client for the ClinicalTrials.gov v2 studies endpoint."""

    connector = "ctgov"

    def _default_base_url(self) -> str:
        return self.settings.ctgov_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.ctgov_rate_limit_rpm

    async def search_trials(
        self,
        expr: str,
        *,
        status: list[str] | None = None,
        page_size: int = 50,
    ) -> list[dict]:
        """Return flattened study-fields rows for a search expression."""
        params: dict = {
            "query.term": expr,
            "pageSize": max(1, min(page_size, 1000)),
            "format": "json",
        }
        if status:
            params["filter.overallStatus"] = ",".join(status)

        data = await self.get("/studies", params, cache_ttl=self.settings.cache_ttl_search)
        if not isinstance(data, dict):
            return []
        return [flatten_study(s) for s in data.get("studies") or [] if isinstance(s, dict)]
