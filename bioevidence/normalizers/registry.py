"""
Canonical dispatch table.

Maps a ``(server, tool)`` pair to the adapter that turns that tool's payload
into canonical records. Unknown pairs produce no records.
"""

import logging
from typing import Any, Callable

from bioevidence.normalizers.answer import AnswerNormalizer
from bioevidence.normalizers.chembl import ChEMBLNormalizer
from bioevidence.normalizers.literature import LiteratureNormalizer
from bioevidence.normalizers.pubchem import PubChemNormalizer
from bioevidence.normalizers.uniprot import UniProtNormalizer
from bioevidence.schemas import CanonicalRecord, Provenance, ToolResult

logger = logging.getLogger(__name__)

Adapter = Callable[[Any, dict], list[CanonicalRecord]]

_ADAPTERS: dict[tuple[str, str], Adapter] = {}

_pubchem = PubChemNormalizer()
_chembl = ChEMBLNormalizer()
_uniprot = UniProtNormalizer()
_literature = LiteratureNormalizer()
_answer = AnswerNormalizer()


def register(server: str, tool: str) -> Callable[[Adapter], Adapter]:
    """Decorator registering an adapter for one ``(server, tool)`` pair."""

    def decorator(fn: Adapter) -> Adapter:
        if (server, tool) in _ADAPTERS:
            raise ValueError(f"Adapter already registered for {server}.{tool}")
        _ADAPTERS[(server, tool)] = fn
        return fn

    return decorator


def registered_pairs() -> list[tuple[str, str]]:
    return sorted(_ADAPTERS)


def _rows(payload: Any, *keys: str) -> list:
    """First list found under ``keys``; a bare list is returned as-is."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
    return []


# =============================================================================
# Research-run sources
# =============================================================================


@register("pubchem", "properties_by_name")
def _pubchem_properties(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _pubchem.normalize_properties(_rows(payload, "Properties"), args.get("name"))


@register("chembl", "search_targets")
def _chembl_targets(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _chembl.normalize_targets(_rows(payload, "targets"))


@register("chembl", "get_activities")
def _chembl_activities(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _chembl.normalize_activities(_rows(payload, "activities"), args.get("target_lookup"))


@register("uniprot", "search")
def _uniprot_targets(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _uniprot.normalize_search(_rows(payload, "results"))


@register("entrez", "esearch")
def _entrez(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _literature.from_pubmed_esearch(payload)


@register("europepmc", "search")
def _europepmc_literature(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _literature.from_europepmc(payload)


@register("openalex", "works")
def _openalex(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _literature.from_openalex(payload)


# =============================================================================
# Open-question tools
# =============================================================================


@register("europepmc", "search_publications")
def _europepmc_publications(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _answer.publications_from_europepmc(
        _rows(payload, "results", "hits", "rows", "publications")
    )


@register("ctgov", "search_trials")
def _ctgov_trials(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _answer.trials_from_ctgov(_rows(payload, "rows", "studies", "StudyFields"))


@register("uniprot", "search_proteins")
def _uniprot_proteins(payload: Any, args: dict) -> list[CanonicalRecord]:
    return _answer.proteins_from_uniprot(_rows(payload, "results"))


# =============================================================================
# Dispatch
# =============================================================================


def to_canonical(
    server: str, tool: str, payload: Any, args: dict | None = None
) -> list[CanonicalRecord]:
    """
    Convert one tool payload to canonical records stamped with provenance.

    Returns [] for pairs with no registered adapter.
    """
    adapter = _ADAPTERS.get((server, tool))
    if adapter is None:
        logger.debug(f"No canonical adapter for {server}.{tool}")
        return []

    args = dict(args or {})
    provenance = Provenance(server=server, tool=tool, args=args)
    return [r.model_copy(update={"provenance": provenance}) for r in adapter(payload, args)]


def canonical_from_results(results: list[ToolResult]) -> list[CanonicalRecord]:
    """Flatten successful tool results into canonical records."""
    records: list[CanonicalRecord] = []
    for result in results:
        if not result.ok:
            continue
        records.extend(
            to_canonical(result.call.server, result.call.tool, result.data, result.call.args)
        )
    return records
