"""
Tool servers for the open-question pipeline.

A tool server advertises named tools and executes them with a dict of
arguments. The built-in servers wrap the source clients:

- ``europepmc.search_publications``
- ``ctgov.search_trials``
- ``uniprot.search_proteins``

Every tool accepts a plain ``query`` argument as a fallback.
"""

import logging
from typing import Any, Protocol

from bioevidence.schemas import ToolMeta
from bioevidence.settings import PipelineSettings, get_settings
from bioevidence.sources.base import SourceClient
from bioevidence.sources.ctgov import ClinicalTrialsClient
from bioevidence.sources.literature import EuropePMCClient
from bioevidence.sources.uniprot import UniProtClient

logger = logging.getLogger(__name__)


class ToolServer(Protocol):
    async def list_tools(self) -> list[dict[str, str]]: ...

    async def call_tool(self, name: str, args: dict[str, Any]) -> Any: ...


def _bounded_int(value: Any, default: int, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return max(low, min(number, high))


def _journal_title(row: dict) -> str:
    info = row.get("journalInfo")
    journal = info.get("journal") if isinstance(info, dict) else None
    title = journal.get("title") if isinstance(journal, dict) else None
    return title or row.get("journalTitle") or ""


class _SourceToolServer:
    """Shared plumbing: one source client, a fixed tool table."""

    server = ""
    tools: dict[str, str] = {}

    def __init__(self, client: SourceClient):
        self.client = client

    async def list_tools(self) -> list[dict[str, str]]:
        return [{"name": name, "description": desc} for name, desc in self.tools.items()]

    async def call_tool(self, name: str, args: dict[str, Any]) -> Any:
        if name not in self.tools:
            raise ValueError(f"{self.server}: unknown tool '{name}'")
        return await getattr(self, name)(args or {})

    async def close(self) -> None:
        await self.client.close()


class EuropePMCTools(_SourceToolServer):
    server = "europepmc"
    tools = {
        "search_publications": (
            "Europe PMC search over biomedical literature; returns title, abstract and ids."
        ),
    }

    async def search_publications(self, args: dict[str, Any]) -> dict:
        rows = await self.client.search(
            str(args.get("query") or ""),
            page_size=_bounded_int(args.get("size"), 25, 1, 100),
            year_from=args.get("year_from"),
            year_to=args.get("year_to"),
        )
        results = [
            {
                "id": r.get("id") or r.get("pmid") or r.get("pmcid") or r.get("doi"),
                "pmid": r.get("pmid"),
                "pmcid": r.get("pmcid"),
                "doi": r.get("doi"),
                "title": r.get("title") or "",
                "journal": _journal_title(r),
                "pubYear": r.get("pubYear"),
                "firstPublicationDate": r.get("firstPublicationDate"),
                "authorString": r.get("authorString") or "",
                "abstractText": r.get("abstractText") or "",
            }
            for r in rows
            if isinstance(r, dict)
        ]
        return {"count": len(results), "results": results}


class ClinicalTrialsTools(_SourceToolServer):
    server = "ctgov"
    tools = {
        "search_trials": "ClinicalTrials.gov study search; returns status, phase and interventions.",
    }

    async def search_trials(self, args: dict[str, Any]) -> dict:
        rows = await self.client.search_trials(
            str(args.get("expr") or args.get("query") or ""),
            status=args.get("status") or None,
            page_size=_bounded_int(args.get("page_size"), 50, 1, 1000),
        )
        return {"count": len(rows), "rows": rows}


class UniProtTools(_SourceToolServer):
    server = "uniprot"
    tools = {
        "search_proteins": "UniProtKB protein search (reviewed entries, organism aware).",
    }

    async def search_proteins(self, args: dict[str, Any]) -> dict:
        terms = args.get("terms") or args.get("query") or ""
        results = await self.client.search(
            terms,
            limit=_bounded_int(args.get("size"), 25, 1, 100),
            organism=args.get("organism"),
        )
        return {"count": len(results), "results": results}


def build_tool_servers(settings: PipelineSettings | None = None) -> dict[str, _SourceToolServer]:
    """Default tool servers keyed by server name."""
    settings = settings or get_settings()
    return {
        "europepmc": EuropePMCTools(EuropePMCClient(settings)),
        "ctgov": ClinicalTrialsTools(ClinicalTrialsClient(settings)),
        "uniprot": UniProtTools(UniProtClient(settings)),
    }


async def discover_tools(servers: dict[str, ToolServer]) -> list[ToolMeta]:
    """List every tool of every server."""
    tools = []
    for server, client in servers.items():
        for tool in await client.list_tools():
            tools.append(
                ToolMeta(server=server, name=tool["name"], description=tool.get("description", ""))
            )
    return tools
