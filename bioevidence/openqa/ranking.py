"""
Evidence ranking for the answer card.

Publications are scored on study design, mined numeric evidence, recency and
overlap with the query slots. Trials are scored on recruitment status, phase
and slot overlap. Lists are sorted first and truncated to their display cap
afterwards.
"""

import logging
import re

from bioevidence.identity import to_int
from bioevidence.schemas import Publication, Slots, Trial

logger = logging.getLogger(__name__)

DISPLAY_CAPS = {
    "publications": 20,
    "trials": 16,
    "proteins": 12,
    "pathways": 16,
    "variants": 16,
    "diseases": 12,
    "drugs": 12,
    "genes": 12,
}

TRIAL_LANGUAGE = re.compile(r"\b(randomi[sz]ed|clinical trial|phase\s*(?:iv|i{1,3}|[1-4]))\b")
META_ANALYSIS = re.compile(r"\bmeta[-\s]?analysis\b|\bsystematic review\b")
REVIEW = re.compile(r"\breview\b")
PROTOCOL = re.compile(r"\bprotocol\b")
PREPRINT = re.compile(r"\b(biorxiv|medrxiv|preprint)\b")
PHASE_NUMBER = re.compile(r"phase[\s_]*(iv|i{1,3}|[1-4])(?![a-z])")

ROMAN = {"i": 1, "ii": 2, "iii": 3, "iv": 4}


def _hits(terms: list[str], text: str) -> bool:
    return any(term and term.lower() in text for term in terms)


def publication_year(pub: Publication) -> int | None:
    if pub.year is not None:
        return pub.year
    year = to_int(pub.meta.get("year"))
    if year is None and pub.date:
        year = to_int(pub.date[:4])
    return year


# =============================================================================
# Publications
# =============================================================================


def score_publication(pub: Publication, slots: Slots | None = None) -> float:
    """Evidence score for one publication."""
    title = (pub.title or pub.label or "").lower()
    text = " ".join([title, (pub.abstract or "").lower(), (pub.journal or "").lower()])

    score = 0.0
    if TRIAL_LANGUAGE.search(text):
        score += 6
    if META_ANALYSIS.search(text):
        score += 5
    if REVIEW.search(text) and not PROTOCOL.search(text):
        score -= 2
    if PREPRINT.search(text):
        score -= 1

    extracted = pub.meta.get("extracted") or {}
    if extracted.get("hr"):
        score += 3
    if extracted.get("medians"):
        score += 3
    if extracted.get("cutoffs"):
        score += 1

    year = publication_year(pub)
    if year is not None:
        score += min(3.0, max(0.0, (year - 2010) / 5))

    if slots is not None:
        for terms in (slots.genes, slots.drugs, slots.diseases):
            if _hits(terms, text):
                score += 0.5
        if _hits(slots.variants, text):
            score += 0.25

    return score


def rank_publications(
    publications: list[Publication], slots: Slots | None = None
) -> list[Publication]:
    """
    Order by score desc, then year desc (missing years last), then title
    case-insensitively.
    """

    def key(pub: Publication):
        year = publication_year(pub)
        return (
            -score_publication(pub, slots),
            year is None,
            -(year or 0),
            (pub.title or pub.label or "").lower(),
        )

    return sorted(publications, key=key)


# =============================================================================
# Trials
# =============================================================================


def _status_bump(status: str | None) -> int:
    value = (status or "").lower().replace("_", " ").strip()
    if value in ("recruiting", "not yet recruiting"):
        return 4
    if value.startswith("active"):
        return 3
    if value == "completed":
        return 2
    return 0


def trial_phase(phase: str | None) -> int:
    """Highest phase number named in a phase string, 0 when none."""
    numbers = []
    for match in PHASE_NUMBER.finditer((phase or "").lower()):
        raw = match.group(1)
        numbers.append(ROMAN.get(raw) or int(raw))
    return max(numbers, default=0)


def score_trial(trial: Trial, slots: Slots | None = None) -> float:
    """Relevance score for one trial."""
    score = float(_status_bump(trial.status) + trial_phase(trial.phase))

    if slots is not None:
        text = " ".join(
            [trial.title or trial.label or "", trial.condition or "", *trial.interventions]
        ).lower()
        for terms in (slots.genes, slots.drugs, slots.diseases):
            if _hits(terms, text):
                score += 1

    return score


def rank_trials(trials: list[Trial], slots: Slots | None = None) -> list[Trial]:
    """Order by score desc, then NCT id ascending."""
    return sorted(trials, key=lambda t: (-score_trial(t, slots), t.nct_id or ""))


def cap(kind: str, records: list) -> list:
    """Truncate an already-ordered list to its display cap."""
    limit = DISPLAY_CAPS.get(kind)
    return records[:limit] if limit is not None else records
