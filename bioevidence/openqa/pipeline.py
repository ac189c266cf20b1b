"""
Open-question pipeline: discover tools, plan, run, normalize and summarize.
"""

import logging

from pydantic import BaseModel, Field

from bioevidence.normalizers.registry import canonical_from_results
from bioevidence.openqa.answer_card import build_answer_card
from bioevidence.openqa.planner import plan_from_query
from bioevidence.openqa.runner import run_plan, tools_run_summary
from bioevidence.openqa.slots import fill_slots
from bioevidence.openqa.text_metrics import annotate_publications
from bioevidence.openqa.tools import ToolServer, discover_tools
from bioevidence.schemas import AnswerCard, AnyRecord, QueryPlan, ToolResult
from bioevidence.settings import PipelineSettings, get_settings

logger = logging.getLogger(__name__)


class ToolFailure(BaseModel):
    server: str
    tool: str
    error: str | None = None


class OpenAnswer(BaseModel):
    """Everything produced for one question, answer card included."""

    query: str
    plan: QueryPlan
    results: list[ToolResult] = Field(default_factory=list)
    records: list[AnyRecord] = Field(default_factory=list)
    hits: int = 0
    failures: list[ToolFailure] = Field(default_factory=list)
    summary: str = ""
    answer_card: AnswerCard


async def answer_open_question(
    query: str,
    servers: dict[str, ToolServer],
    *,
    settings: PipelineSettings | None = None,
    concurrency: int | None = None,
    timeout: float | None = None,
    year_from: str | None = None,
    year_to: str | None = None,
) -> OpenAnswer:
    settings = settings or get_settings()

    tools = await discover_tools(servers)
    slots = fill_slots(query)
    plan = plan_from_query(query, tools, slots, year_from=year_from, year_to=year_to)
    logger.info(f"Planned {len(plan.calls)} tool calls ({plan.rationale})")

    results = await run_plan(
        plan,
        servers,
        concurrency=concurrency or settings.tool_concurrency,
        timeout=timeout or settings.tool_timeout_seconds,
    )

    records = annotate_publications(canonical_from_results(results))
    ok = [r for r in results if r.ok]
    failed = [r for r in results if not r.ok]

    return OpenAnswer(
        query=query,
        plan=plan,
        results=results,
        records=records,
        hits=len(ok),
        failures=[ToolFailure(server=r.call.server, tool=r.call.tool, error=r.error) for r in failed],
        summary=f"Collected {len(ok)} tool results; {len(failed)} failed.",
        answer_card=build_answer_card(query, slots, records, tools_run_summary(results)),
    )
