"""
Tests for the built-in tool servers and the open-question pipeline.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from bioevidence.openqa.pipeline import answer_open_question
from bioevidence.openqa.tools import (
    ClinicalTrialsTools,
    EuropePMCTools,
    UniProtTools,
    build_tool_servers,
    discover_tools,
)
from bioevidence.sources.ctgov import ClinicalTrialsClient
from bioevidence.sources.literature import EuropePMCClient
from bioevidence.sources.uniprot import UniProtClient

MOCK_EPMC_ROWS = [
    {
        "id": "31000001",
        "pmid": "31000001",
        "doi": "10.1/a",
        "title": "Randomized trial of sotorasib in KRAS G12C NSCLC",
        "journalInfo": {"journal": {"title": "Lancet"}},
        "pubYear": "2023",
        "abstractText": "Median progression-free survival was 5.6 months (HR 0.66 (95% CI 0.51-0.86)).",
    },
    {
        "id": "PPR1",
        "title": "KRAS mutation review",
        "journalTitle": "bioRxiv",
        "firstPublicationDate": "2021-01-01",
    },
]

MOCK_CTGOV_ROWS = [
    {
        "NCTId": ["NCT04303780"],
        "BriefTitle": ["Sotorasib vs docetaxel in KRAS G12C NSCLC"],
        "OverallStatus": ["ACTIVE_NOT_RECRUITING"],
        "Phase": ["PHASE3"],
        "Condition": ["NSCLC"],
        "InterventionName": ["Sotorasib", "Docetaxel"],
    }
]


@pytest.fixture
def epmc_client():
    client = AsyncMock(spec=EuropePMCClient)
    client.search.return_value = MOCK_EPMC_ROWS
    return client


@pytest.fixture
def ctgov_client():
    client = AsyncMock(spec=ClinicalTrialsClient)
    client.search_trials.return_value = MOCK_CTGOV_ROWS
    return client


@pytest.fixture
def uniprot_client():
    client = AsyncMock(spec=UniProtClient)
    client.search.return_value = [
        {"primaryAccession": "P01116", "genes": [{"geneName": {"value": "KRAS"}}]}
    ]
    return client


@pytest.fixture
def servers(epmc_client, ctgov_client, uniprot_client):
    return {
        "europepmc": EuropePMCTools(epmc_client),
        "ctgov": ClinicalTrialsTools(ctgov_client),
        "uniprot": UniProtTools(uniprot_client),
    }


class TestToolServers:
    async def test_discover_tools(self, servers):
        tools = await discover_tools(servers)
        assert [(t.server, t.name) for t in tools] == [
            ("europepmc", "search_publications"),
            ("ctgov", "search_trials"),
            ("uniprot", "search_proteins"),
        ]

    async def test_unknown_tool(self, servers):
        with pytest.raises(ValueError):
            await servers["ctgov"].call_tool("delete_everything", {})

    async def test_europepmc_rows_are_flattened(self, servers, epmc_client):
        data = await servers["europepmc"].call_tool(
            "search_publications", {"query": "KRAS", "size": 500, "year_from": "2020"}
        )

        assert data["count"] == 2
        assert data["results"][0]["journal"] == "Lancet"
        assert data["results"][1]["journal"] == "bioRxiv"
        epmc_client.search.assert_awaited_once_with(
            "KRAS", page_size=100, year_from="2020", year_to=None
        )

    async def test_europepmc_rows_with_odd_shapes(self, servers, epmc_client):
        epmc_client.search.return_value = [
            {"id": "1", "journalInfo": "Lancet", "journalTitle": "Lancet"},
            {"id": "2", "journalInfo": {"journal": "Nature"}},
            "junk",
        ]

        data = await servers["europepmc"].call_tool("search_publications", {"query": "KRAS", "size": float("inf")})

        assert [r["journal"] for r in data["results"]] == ["Lancet", ""]
        assert epmc_client.search.await_args.kwargs["page_size"] == 25

    async def test_trials_accept_query_fallback(self, servers, ctgov_client):
        data = await servers["ctgov"].call_tool("search_trials", {"query": "KRAS"})

        assert data["count"] == 1
        ctgov_client.search_trials.assert_awaited_once_with("KRAS", status=None, page_size=50)

    async def test_proteins(self, servers, uniprot_client):
        await servers["uniprot"].call_tool(
            "search_proteins", {"terms": ["KRAS"], "organism": "Homo sapiens"}
        )
        uniprot_client.search.assert_awaited_once_with(["KRAS"], limit=25, organism="Homo sapiens")

    def test_build_tool_servers(self, settings):
        servers = build_tool_servers(settings)
        assert set(servers) == {"europepmc", "ctgov", "uniprot"}


class TestAnswerOpenQuestion:
    async def test_end_to_end(self, settings, servers):
        answer = await answer_open_question(
            "Overall survival with sotorasib in KRAS G12C NSCLC trials", servers, settings=settings
        )

        assert answer.hits == 3
        assert answer.failures == []
        assert answer.summary == "Collected 3 tool results; 0 failed."

        kinds = {r.kind for r in answer.records}
        assert kinds == {"Publication", "Trial", "Protein"}

        card = answer.answer_card
        assert card.entities.publications[0].pmid == "31000001"
        assert card.entities.publications[0].meta["extracted"]["hr"][0]["value"] == 0.66
        assert card.entities.trials[0].nct_id == "NCT04303780"
        assert card.slots.genes[0] == "KRAS"
        assert card.notes == []

    async def test_failures_are_reported(self, settings, servers, ctgov_client):
        ctgov_client.search_trials.side_effect = RuntimeError("ctgov down")

        answer = await answer_open_question(
            "KRAS G12C clinical trials survival", servers, settings=settings
        )

        assert answer.summary.endswith("1 failed.")
        assert answer.failures[0].server == "ctgov"
        assert answer.failures[0].error == "ctgov down"
        assert "1 of 3 tool calls failed." in answer.answer_card.notes

    async def test_timeout_uses_override(self, settings, servers, uniprot_client):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1.0)
            return []

        uniprot_client.search.side_effect = slow

        answer = await answer_open_question(
            "KRAS protein survival", servers, settings=settings, timeout=0.05
        )

        [failure] = answer.failures
        assert failure.error == "Tool timeout: uniprot.search_proteins after 0.05s"
