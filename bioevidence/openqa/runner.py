"""
Bounded-concurrency execution of a query plan.
"""

import asyncio
import logging
import time
from typing import Any

from bioevidence.exceptions import ToolTimeoutError
from bioevidence.openqa.tools import ToolServer
from bioevidence.schemas import QueryPlan, ToolCall, ToolResult, ToolRun

logger = logging.getLogger(__name__)


async def run_plan(
    plan: QueryPlan,
    clients: dict[str, ToolServer],
    *,
    concurrency: int = 4,
    timeout: float = 20.0,
) -> list[ToolResult]:
    """
    Execute every call in ``plan`` against its server.

    At most ``concurrency`` calls are in flight. Each call gets ``timeout``
    seconds. A failing call becomes a ``ToolResult`` with ``ok=False`` and
    does not affect its siblings. Results are returned in plan order.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run_one(call: ToolCall) -> ToolResult:
        async with semaphore:
            started = time.perf_counter()

            def elapsed() -> float:
                return round((time.perf_counter() - started) * 1000, 2)

            client = clients.get(call.server)
            if client is None:
                return ToolResult(
                    call=call, ok=False, error=f"Unknown server: {call.server}", elapsed_ms=elapsed()
                )

            try:
                data: Any = await asyncio.wait_for(
                    client.call_tool(call.tool, call.args), timeout=timeout
                )
            except asyncio.TimeoutError:
                error = str(ToolTimeoutError(call.server, call.tool, timeout))
                logger.warning(error)
                return ToolResult(call=call, ok=False, error=error, elapsed_ms=elapsed())
            except Exception as e:
                logger.warning(f"Tool call {call.server}.{call.tool} failed: {e}")
                return ToolResult(call=call, ok=False, error=str(e), elapsed_ms=elapsed())

            return ToolResult(call=call, ok=True, data=data, elapsed_ms=elapsed())

    return list(await asyncio.gather(*(run_one(call) for call in plan.calls)))


def tools_run_summary(results: list[ToolResult]) -> list[ToolRun]:
    return [
        ToolRun(server=r.call.server, tool=r.call.tool, ok=r.ok, ms=r.elapsed_ms) for r in results
    ]
