"""
Research-run orchestration.

A run validates its specification, fetches each requested source in turn
with a short pause between calls, gates targets by organism, runs the merge
pass and summarizes quality. Source failures are logged, counted and
recorded in the provenance log; only a rejected specification is fatal.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bioevidence.augment import CrossReferenceAugmenter
from bioevidence.exceptions import ConnectorError, SpecValidationError
from bioevidence.merge import EntityResolver
from bioevidence.quality import summarize_normalization
from bioevidence.schemas import NormalizedDataset, QualityReport, RawSourceBundle
from bioevidence.settings import PipelineSettings, get_settings
from bioevidence.sources.chembl import ChEMBLClient
from bioevidence.sources.literature import (
    EntrezClient,
    EuropePMCClient,
    OpenAlexClient,
    boolean_from_keywords,
)
from bioevidence.sources.pubchem import PubChemClient
from bioevidence.sources.uniprot import UniProtClient

logger = logging.getLogger(__name__)

SourceName = Literal["pubchem", "chembl", "uniprot", "entrez", "europepmc", "openalex"]
ALL_SOURCES: list[SourceName] = ["pubchem", "chembl", "uniprot", "entrez", "europepmc", "openalex"]
DEFAULT_ORGANISM = "Homo sapiens"


# =============================================================================
# Run specification
# =============================================================================


class CompoundQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    inchikey: str | None = None
    smiles: str | None = None


class TargetQuery(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str | None = None
    symbol: str | None = None


class RunOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pchembl_only: bool = True
    max_per_source: int = Field(default=50, gt=0, le=100)
    organism_contains: str | None = None
    name_contains: str | None = None
    date_from: str | None = None
    date_to: str | None = None


class ResearchRunSpec(BaseModel):
    """What to fetch in a research run."""

    model_config = ConfigDict(extra="forbid")

    compounds: list[CompoundQuery] = Field(default_factory=list)
    targets: list[TargetQuery] = Field(default_factory=list)
    organisms: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    sources: list[SourceName] = Field(default_factory=lambda: list(ALL_SOURCES))
    options: RunOptions = Field(default_factory=RunOptions)


def validate_run_spec(raw: Any) -> ResearchRunSpec:
    """Parse a raw specification; raises SpecValidationError with details."""
    if isinstance(raw, ResearchRunSpec):
        return raw
    try:
        return ResearchRunSpec.model_validate(raw)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False)
        summary = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in errors
        )
        raise SpecValidationError(f"Invalid research run specification: {summary}", errors) from e


# =============================================================================
# Run result
# =============================================================================


class ProvenanceEntry(BaseModel):
    source: str
    params: dict[str, Any] = Field(default_factory=dict)
    n: int = 0
    total: int | None = None
    error: str | None = None


class ResearchRunResult(BaseModel):
    ok: bool = True
    run_id: str
    term: str
    normalized: NormalizedDataset
    metrics: QualityReport
    provenance: list[ProvenanceEntry] = Field(default_factory=list)
    failures: int = 0
    spec_echo: dict[str, Any] = Field(default_factory=dict)


def make_run_id() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return f"{stamp}-{uuid.uuid4().hex[:6]}"


def _first_term(spec: ResearchRunSpec) -> str:
    if spec.keywords:
        return " ".join(spec.keywords)
    for target in spec.targets:
        if target.query:
            return target.query
    for target in spec.targets:
        if target.symbol:
            return target.symbol
    for compound in spec.compounds:
        if compound.name:
            return compound.name
    return ""


def _organism_matches(organism: str, value: Any) -> bool:
    return not organism or organism.lower() in str(value or "").lower()


def _uniprot_organism(row: dict) -> str | None:
    org = row.get("organism")
    if isinstance(org, dict):
        return org.get("scientificName") or org.get("commonName")
    return org if isinstance(org, str) else None


# =============================================================================
# Orchestrator
# =============================================================================


class ResearchOrchestrator:
    """
    Runs a research specification end to end.

    Example:
        async with ResearchOrchestrator(settings) as orchestrator:
            result = await orchestrator.run({"keywords": ["EGFR"], "sources": ["chembl"]})
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        pubchem: PubChemClient | None = None,
        chembl: ChEMBLClient | None = None,
        uniprot: UniProtClient | None = None,
        entrez: EntrezClient | None = None,
        europepmc: EuropePMCClient | None = None,
        openalex: OpenAlexClient | None = None,
        augment: bool = True,
    ):
        self.settings = settings or get_settings()
        given = {
            "pubchem": pubchem,
            "chembl": chembl,
            "uniprot": uniprot,
            "entrez": entrez,
            "europepmc": europepmc,
            "openalex": openalex,
        }
        self.pubchem = pubchem or PubChemClient(self.settings)
        self.chembl = chembl or ChEMBLClient(self.settings)
        self.uniprot = uniprot or UniProtClient(self.settings)
        self.entrez = entrez or EntrezClient(self.settings)
        self.europepmc = europepmc or EuropePMCClient(self.settings)
        self.openalex = openalex or OpenAlexClient(self.settings)
        self._owned = [getattr(self, name) for name, client in given.items() if client is None]

        self.augmenter = (
            CrossReferenceAugmenter(self.settings, pubchem=self.pubchem, chembl=self.chembl)
            if augment
            else None
        )

    async def _pause(self) -> None:
        if self.settings.source_delay_seconds > 0:
            await asyncio.sleep(self.settings.source_delay_seconds)

    async def run(self, raw_spec: Any) -> ResearchRunResult:
        """
        Execute a run.

        Raises:
            SpecValidationError: The specification was rejected
        """
        spec = validate_run_spec(raw_spec)
        opts = spec.options
        organism = opts.organism_contains or DEFAULT_ORGANISM
        limit = opts.max_per_source
        term = _first_term(spec)

        bundle = RawSourceBundle()
        prov: list[ProvenanceEntry] = []
        failures = 0

        def failed(source: str, params: dict, error: ConnectorError) -> None:
            nonlocal failures
            failures += 1
            logger.warning(f"{source} failed: {error}")
            prov.append(ProvenanceEntry(source=source, params=params, error=str(error)))

        # ---- PubChem properties ----
        if "pubchem" in spec.sources:
            names = list(dict.fromkeys(c.name for c in spec.compounds if c.name))[:limit]
            for name in names:
                try:
                    bundle.pubchem_props.extend(await self.pubchem.properties_by_name(name))
                except ConnectorError as e:
                    failed("pubchem.compound.props", {"name": name}, e)
                await self._pause()
            prov.append(
                ProvenanceEntry(
                    source="pubchem.compound.props",
                    params={"names": names},
                    n=len(bundle.pubchem_props),
                )
            )

        # ---- ChEMBL targets and activities ----
        if "chembl" in spec.sources:
            queries: list[str] = []
            for target in spec.targets:
                for q in (target.query, target.symbol):
                    if q and q not in queries:
                        queries.append(q)
            if not queries and term:
                queries.append(term)

            for q in queries:
                params = {
                    "q": q,
                    "organism__icontains": organism,
                    "pref_name__icontains": opts.name_contains,
                }
                try:
                    rows = await self.chembl.search_targets(
                        q,
                        limit=min(25, limit),
                        organism=organism,
                        name_contains=opts.name_contains,
                    )
                except ConnectorError as e:
                    failed("chembl.target.search", params, e)
                else:
                    bundle.chembl_targets.extend(rows)
                    prov.append(ProvenanceEntry(source="chembl.target.search", params=params, n=len(rows)))
                await self._pause()

            ids = list(
                dict.fromkeys(
                    str(t["target_chembl_id"])
                    for t in bundle.chembl_targets
                    if isinstance(t, dict) and t.get("target_chembl_id")
                )
            )
            for chembl_id in ids[: min(self.settings.max_activity_targets, limit)]:
                try:
                    bundle.chembl_activities.extend(
                        await self.chembl.get_activities(
                            chembl_id, limit=min(50, limit), pchembl_only=opts.pchembl_only
                        )
                    )
                except ConnectorError as e:
                    failed("chembl.activities", {"target_chembl_id": chembl_id}, e)
                await self._pause()
            prov.append(
                ProvenanceEntry(
                    source="chembl.activities",
                    params={"targets": len(ids)},
                    n=len(bundle.chembl_activities),
                )
            )

        # ---- UniProt ----
        if "uniprot" in spec.sources:
            tokens = list(
                dict.fromkeys(
                    [*spec.keywords, *(t.query or t.symbol for t in spec.targets if t.query or t.symbol)]
                )
            )[:12]
            params = {"tokens": tokens, "organism": organism}
            try:
                bundle.uniprot_results = await self.uniprot.search(
                    tokens or "protein", limit=min(25, limit), organism=organism, reviewed=True
                )
            except ConnectorError as e:
                failed("uniprot.search", params, e)
            else:
                prov.append(
                    ProvenanceEntry(source="uniprot.search", params=params, n=len(bundle.uniprot_results))
                )

        # ---- Literature ----
        lit_query = boolean_from_keywords(spec.keywords, spec.organisms or [organism])
        lit_limit = min(50, limit)

        if "entrez" in spec.sources:
            try:
                esearch = await self.entrez.esearch(lit_query, retmax=lit_limit)
            except ConnectorError as e:
                failed("entrez.esearch", {"q": lit_query}, e)
            else:
                bundle.pubmed_esearch = esearch
                result = esearch["esearchresult"]
                prov.append(
                    ProvenanceEntry(
                        source="entrez.esearch",
                        params={"q": lit_query},
                        n=len(result["idlist"]),
                        total=result["count"],
                    )
                )
            await self._pause()

        if "europepmc" in spec.sources:
            try:
                bundle.europepmc_results = await self.europepmc.search(
                    lit_query,
                    page_size=lit_limit,
                    year_from=(opts.date_from or "")[:4] or None,
                    year_to=(opts.date_to or "")[:4] or None,
                )
            except ConnectorError as e:
                failed("europepmc.search", {"q": lit_query}, e)
            else:
                prov.append(
                    ProvenanceEntry(
                        source="europepmc.search", params={"q": lit_query}, n=len(bundle.europepmc_results)
                    )
                )
            await self._pause()

        if "openalex" in spec.sources:
            try:
                bundle.openalex_works = await self.openalex.works(lit_query, per_page=lit_limit)
            except ConnectorError as e:
                failed("openalex.works", {"q": lit_query}, e)
            else:
                prov.append(
                    ProvenanceEntry(
                        source="openalex.works", params={"q": lit_query}, n=len(bundle.openalex_works)
                    )
                )

        # ---- Organism gating ----
        bundle.chembl_targets = [
            t
            for t in bundle.chembl_targets
            if isinstance(t, dict) and _organism_matches(organism, t.get("organism"))
        ]
        bundle.uniprot_results = [
            r
            for r in bundle.uniprot_results
            if isinstance(r, dict)
            and _organism_matches(organism, _uniprot_organism(r))
        ]

        # ---- Normalize and summarize ----
        normalized = await EntityResolver(self.augmenter).normalize(bundle)
        metrics = summarize_normalization(normalized)

        run_id = make_run_id()
        logger.info(f"Research run {run_id} finished with {failures} source failures")
        return ResearchRunResult(
            run_id=run_id,
            term=term,
            normalized=normalized,
            metrics=metrics,
            provenance=prov,
            failures=failures,
            spec_echo=spec.model_dump(),
        )

    async def close(self) -> None:
        for client in self._owned:
            await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
