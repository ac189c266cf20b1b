"""
Open-question answering over biomedical tool servers.
"""

from bioevidence.openqa.answer_card import build_answer_card
from bioevidence.openqa.pipeline import OpenAnswer, answer_open_question
from bioevidence.openqa.planner import build_ctgov_expr, build_europepmc_query, plan_from_query
from bioevidence.openqa.runner import run_plan
from bioevidence.openqa.slots import fill_slots
from bioevidence.openqa.tools import build_tool_servers, discover_tools

__all__ = [
    "OpenAnswer",
    "answer_open_question",
    "build_answer_card",
    "build_ctgov_expr",
    "build_europepmc_query",
    "build_tool_servers",
    "discover_tools",
    "fill_slots",
    "plan_from_query",
    "run_plan",
]
