"""
Identity and key utilities.

Canonical compound and target keys:
- InChIKey -> 14-letter skeleton (connectivity) key
- ChEMBL target payload -> (UniProt accession, organism)

Everything here is pure and total: bad input yields an empty value, never
an exception.
"""

import math
import re
from typing import Any, Iterable

INCHIKEY_RE = re.compile(r"^([A-Z]{14})-[A-Z]{8,10}-[A-Z]$")
SKELETON_RE = re.compile(r"^[A-Z]{14}$")

ACCESSION_FIELDS = ("accession", "uniprot_accession", "component_accession")


def inchikey14(ik: Any) -> str:
    """
    Return the 14-letter connectivity block of an InChIKey.

    A bare 14-letter block is returned unchanged so the function is
    idempotent on its own output. Anything else returns "".
    """
    if not isinstance(ik, str):
        return ""
    value = ik.strip()
    match = INCHIKEY_RE.match(value)
    if match:
        return match.group(1)
    if SKELETON_RE.match(value):
        return value
    return ""


def component_accession(target: Any) -> tuple[str | None, str | None]:
    """
    Extract ``(accession, organism)`` from a ChEMBL target payload.

    Only the first entry of ``target_components`` (or ``components``) is
    inspected. The organism comes from the target, falling back to the
    component.
    """
    if not isinstance(target, dict):
        return None, None

    components = target.get("target_components") or target.get("components") or []
    component = first(components) if isinstance(components, list) else None
    if not isinstance(component, dict):
        component = {}

    accession = None
    for field in ACCESSION_FIELDS:
        if component.get(field):
            accession = str(component[field])
            break

    organism = target.get("organism") or component.get("organism")
    return accession, organism


def to_float(value: Any) -> float | None:
    """Coerce to a finite float; None for blanks, junk and NaN/inf."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def to_int(value: Any) -> int | None:
    """Coerce to int via ``to_float``; "2019" and 2019.0 both give 2019."""
    number = to_float(value)
    return int(number) if number is not None else None


def to_str(value: Any) -> str | None:
    """Stringify scalars; None and blank strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def first(seq: Iterable | None, default: Any = None) -> Any:
    """First element of an iterable, or ``default``."""
    if seq is None:
        return default
    for item in seq:
        return item
    return default
