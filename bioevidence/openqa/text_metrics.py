"""
Numeric evidence mined from publication titles and abstracts: percentage
cutoffs, hazard ratios and median OS/PFS.

Patterns are strict about context (a percentage only counts as a cutoff when
it sits next to cutoff/threshold/methylation wording) to keep precision up.
"""

import re
from typing import TypedDict

from bioevidence.schemas import CanonicalRecord, Publication


class Cutoff(TypedDict):
    value: float
    units: str
    context: str


class HazardRatio(TypedDict, total=False):
    endpoint: str
    value: float
    ci: str


class Median(TypedDict):
    endpoint: str
    value: float
    units: str


class ExtractedMetrics(TypedDict):
    cutoffs: list[Cutoff]
    hr: list[HazardRatio]
    medians: list[Median]


_CI = r"(?:95%\s*CI|CI\s*95%)"
_TIME_UNITS = r"(months?|mo|m|weeks?|wks?|w|days?|d)"

CUTOFF_PCT_RE = re.compile(
    r"(\d{1,3}(?:\.\d+)?)\s?%\s*(?:cut[-\s]?off|threshold|methyl(?:ation)?(?:\s+cut[-\s]?off)?)",
    re.IGNORECASE,
)
HR_RE = re.compile(
    rf"\b(?:hazard\s*ratio|HR)\s*(?:=|:)?\s*(\d+(?:\.\d+)?)(?:\s*\(\s*{_CI}\s*([^)]*)\))?",
    re.IGNORECASE,
)
MEDIAN_OS_RE = re.compile(
    rf"\b(?:median\s+)?overall\s+survival[^0-9]{{0,20}}(\d+(?:\.\d+)?)\s*{_TIME_UNITS}\b",
    re.IGNORECASE,
)
MEDIAN_PFS_RE = re.compile(
    rf"\b(?:median\s+)?progression[-\s]?free\s+survival[^0-9]{{0,20}}(\d+(?:\.\d+)?)\s*{_TIME_UNITS}\b",
    re.IGNORECASE,
)
OR_RE = re.compile(
    rf"\b(?:(?i:odds\s*ratio)|OR)\s*(?:=|:)?\s*(\d+(?:\.\d+)?)(?:\s*\(\s*{_CI}\s*[^)]*\))?"
)
RR_RE = re.compile(
    rf"\b(?:(?i:risk\s*ratio|relative\s*risk)|RR)\s*(?:=|:)?\s*(\d+(?:\.\d+)?)(?:\s*\(\s*{_CI}\s*[^)]*\))?"
)


def _time_unit(unit: str) -> str:
    unit = unit.lower()
    if unit.startswith("w"):
        return "weeks"
    if unit.startswith("d"):
        return "days"
    return "months"


def extract_metrics(text: str | None) -> ExtractedMetrics:
    """Extract cutoffs, hazard ratios and medians from free text."""
    text = text or ""

    cutoffs: list[Cutoff] = [
        {"value": float(m.group(1)), "units": "%", "context": "cutoff/threshold"}
        for m in CUTOFF_PCT_RE.finditer(text)
    ]

    hr: list[HazardRatio] = []
    for m in HR_RE.finditer(text):
        entry: HazardRatio = {"endpoint": "OS_or_PFS", "value": float(m.group(1))}
        ci = (m.group(2) or "").strip(" ,:;")
        if ci:
            entry["ci"] = ci
        hr.append(entry)

    medians: list[Median] = []
    for endpoint, pattern in (("OS", MEDIAN_OS_RE), ("PFS", MEDIAN_PFS_RE)):
        for m in pattern.finditer(text):
            medians.append(
                {"endpoint": endpoint, "value": float(m.group(1)), "units": _time_unit(m.group(2))}
            )

    # Odds/risk ratios stand in as generic effect sizes when no HR is reported
    if not hr:
        for pattern in (OR_RE, RR_RE):
            hr.extend(
                {"endpoint": "unknown", "value": float(m.group(1))} for m in pattern.finditer(text)
            )

    return {"cutoffs": cutoffs, "hr": hr, "medians": medians}


def annotate_publications(records: list[CanonicalRecord]) -> list[CanonicalRecord]:
    """Attach ``meta["extracted"]`` to every Publication; other kinds pass through."""
    for record in records:
        if isinstance(record, Publication):
            text = " ".join(part for part in (record.title, record.abstract) if part)
            record.meta["extracted"] = extract_metrics(text)
    return records
