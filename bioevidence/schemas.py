"""
Canonical record schemas.

One tagged record type covers both entry points: the source-driven research
run (Compound, Target, Assay, Literature) and the open-question answer card
(Gene, Protein, Pathway, Variant, Disease, Drug, Trial, Publication).
Every record carries a ``kind`` discriminator, optional structured
``provenance`` and a free ``meta`` bag.

Records are frozen. Enrichment produces copies via ``model_copy(update=...)``;
the only in-place change allowed is adding derived annotations to ``meta``.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field

from bioevidence import identity


# =============================================================================
# Base
# =============================================================================


class Provenance(BaseModel):
    """Which server/tool call produced a record."""

    model_config = ConfigDict(frozen=True)

    server: str
    tool: str
    args: dict[str, Any] = Field(default_factory=dict)


class CanonicalRecord(BaseModel):
    """Fields shared by every canonical record."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    provenance: Provenance | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Research-run kinds
# =============================================================================


class Compound(CanonicalRecord):
    """
    A small molecule.

    ``compound_id`` resolves InChIKey -> CID -> name hint -> "compound".
    ``inchikey14`` is always derived from ``inchikey`` and is empty when the
    InChIKey is missing or malformed.
    """

    kind: Literal["Compound"] = "Compound"
    compound_id: str
    inchikey: str = ""
    cid: str | None = None
    chembl_molecule_id: str | None = None
    name: str | None = None
    smiles: str | None = None
    formula: str | None = None
    mw: float | None = None
    xlogp: float | None = None
    tpsa: float | None = None
    source: str | None = None

    @computed_field
    @property
    def inchikey14(self) -> str:
        return identity.inchikey14(self.inchikey)


class Target(CanonicalRecord):
    """A protein target; ``target_id`` resolves UniProt -> ChEMBL id -> "target"."""

    kind: Literal["Target"] = "Target"
    target_id: str = "target"
    uniprot: str | None = None
    chembl_target_id: str | None = None
    symbol: str | None = None
    pref_name: str | None = None
    organism_name: str | None = None
    organism_taxid: int | None = None
    source: str | None = None


class Assay(CanonicalRecord):
    """
    A bioactivity measurement.

    ``target_id`` is set only when the ChEMBL target id was mapped to a
    UniProt accession.
    """

    kind: Literal["Assay"] = "Assay"
    assay_id: str = ""
    source: str = "chembl"
    target_id: str | None = None
    chembl_target_id: str | None = None
    standard_type: str | None = None
    standard_value: str | float | None = None
    standard_units: str | None = None
    pchembl_value: str | float | None = None
    molecule_chembl_id: str | None = None


class Literature(CanonicalRecord):
    """A literature reference keyed by ``PMID:`` / ``DOI:`` / source id."""

    kind: Literal["Literature"] = "Literature"
    key: str
    pmid: str | None = None
    doi: str | None = None
    title: str | None = None
    year: int | None = None
    journal: str | None = None
    source: str
    sources: list[str] = Field(default_factory=list)


# =============================================================================
# Answer-card kinds
# =============================================================================


class AnswerRecord(CanonicalRecord):
    id: str | None = None
    label: str | None = None
    xref: dict[str, Any] = Field(default_factory=dict)
    date: str | None = None


class Gene(AnswerRecord):
    kind: Literal["Gene"] = "Gene"
    symbol: str | None = None
    organism: str | None = None


class Protein(AnswerRecord):
    kind: Literal["Protein"] = "Protein"
    accession: str | None = None
    gene_symbol: str | None = None


class Pathway(AnswerRecord):
    kind: Literal["Pathway"] = "Pathway"
    pathway_id: str | None = None


class Variant(AnswerRecord):
    kind: Literal["Variant"] = "Variant"
    hgvs: str | None = None
    gene_symbol: str | None = None


class Disease(AnswerRecord):
    kind: Literal["Disease"] = "Disease"
    disease_name: str | None = None


class Drug(AnswerRecord):
    kind: Literal["Drug"] = "Drug"
    synonyms: list[str] = Field(default_factory=list)


class Trial(AnswerRecord):
    kind: Literal["Trial"] = "Trial"
    nct_id: str | None = None
    title: str | None = None
    status: str | None = None
    phase: str | None = None
    condition: str | None = None
    interventions: list[str] = Field(default_factory=list)


class Publication(AnswerRecord):
    kind: Literal["Publication"] = "Publication"
    pmid: str | None = None
    doi: str | None = None
    title: str | None = None
    year: int | None = None
    journal: str | None = None
    abstract: str | None = None


AnyRecord = Annotated[
    Union[
        Compound,
        Target,
        Assay,
        Literature,
        Gene,
        Protein,
        Pathway,
        Variant,
        Disease,
        Drug,
        Trial,
        Publication,
    ],
    Field(discriminator="kind"),
]

RECORDS_ADAPTER = TypeAdapter(list[AnyRecord])


def parse_records(raw: list[dict]) -> list[CanonicalRecord]:
    """Validate a list of dicts into canonical records, dispatching on ``kind``."""
    return RECORDS_ADAPTER.validate_python(raw)


# =============================================================================
# Datasets and reports
# =============================================================================


class NormalizedDataset(BaseModel):
    """Output of the merge pass."""

    compounds: list[Compound] = Field(default_factory=list)
    targets: list[Target] = Field(default_factory=list)
    assays: list[Assay] = Field(default_factory=list)
    literature: list[Literature] = Field(default_factory=list)


class QualityReport(BaseModel):
    counts: dict[str, int] = Field(default_factory=dict)
    metrics: dict[str, float] = Field(default_factory=dict)
    notes: list[str] = Field(default_factory=list)


class RawSourceBundle(BaseModel):
    """Raw per-source payloads handed to the merge pass."""

    pubchem_props: list[Any] = Field(default_factory=list)
    pubchem_name_hint: str | None = None
    chembl_targets: list[Any] = Field(default_factory=list)
    chembl_activities: list[Any] = Field(default_factory=list)
    uniprot_results: list[Any] = Field(default_factory=list)
    pubmed_esearch: dict[str, Any] | None = None
    europepmc_results: list[Any] = Field(default_factory=list)
    openalex_works: list[Any] = Field(default_factory=list)


# =============================================================================
# Open-question pipeline
# =============================================================================


class Slots(BaseModel):
    """Structured hints extracted from a free-text question."""

    model_config = ConfigDict(frozen=True)

    genes: list[str] = Field(default_factory=list)
    variants: list[str] = Field(default_factory=list)
    diseases: list[str] = Field(default_factory=list)
    drugs: list[str] = Field(default_factory=list)
    phases: list[int] = Field(default_factory=list)
    nct_ids: list[str] = Field(default_factory=list)
    organism: str | None = None


class ToolMeta(BaseModel):
    """One tool advertised by a server."""

    server: str
    name: str
    description: str = ""


class ToolCall(BaseModel):
    server: str
    tool: str
    args: dict[str, Any] = Field(default_factory=dict)


class QueryPlan(BaseModel):
    rationale: str = ""
    calls: list[ToolCall] = Field(default_factory=list)


class ToolResult(BaseModel):
    """Outcome of one tool call; failures carry ``error`` instead of ``data``."""

    call: ToolCall
    ok: bool
    data: Any = None
    error: str | None = None
    elapsed_ms: float = 0.0


class ToolRun(BaseModel):
    server: str
    tool: str
    ok: bool
    ms: float


class Highlight(BaseModel):
    text: str
    record_id: str | None = None


class EvidenceItem(BaseModel):
    record_kind: str
    label: str | None = None
    id: str | None = None
    server: str = ""
    tool: str = ""


class AnswerEntities(BaseModel):
    genes: list[Gene] = Field(default_factory=list)
    proteins: list[Protein] = Field(default_factory=list)
    pathways: list[Pathway] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    diseases: list[Disease] = Field(default_factory=list)
    drugs: list[Drug] = Field(default_factory=list)
    trials: list[Trial] = Field(default_factory=list)
    publications: list[Publication] = Field(default_factory=list)


class AnswerCard(BaseModel):
    query: str
    slots: Slots
    entities: AnswerEntities = Field(default_factory=AnswerEntities)
    highlights: list[Highlight] = Field(default_factory=list)
    evidence: list[EvidenceItem] = Field(default_factory=list)
    tools_run: list[ToolRun] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
