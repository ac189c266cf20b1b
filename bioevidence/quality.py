"""
Quality and coverage summary over a normalized dataset.

Coverage metrics are percentages in [0, 100]; an empty collection gives 0.
``literature_unique_ratio`` is a ratio in [0, 1], 0.0 when empty.
"""

import logging
from typing import Any

from bioevidence.identity import to_float
from bioevidence.schemas import NormalizedDataset, QualityReport

logger = logging.getLogger(__name__)

# Advisory thresholds
MIN_INCHIKEY_COV = 80.0
MIN_UNIPROT_COV = 40.0
MIN_TARGET_LINKED = 40.0
MIN_PCHEMBL_COV = 30.0
MIN_LITERATURE_UNIQUE = 0.8


def _pct(num: int, den: int) -> float:
    return round(100.0 * num / den, 2) if den else 0.0


def summarize_normalization(dataset: NormalizedDataset) -> QualityReport:
    """Compute counts, coverage metrics and advisory notes for a dataset."""
    compounds = dataset.compounds
    targets = dataset.targets
    assays = dataset.assays
    literature = dataset.literature

    inchikeys = [c.inchikey for c in compounds if c.inchikey]
    with_props = sum(1 for c in compounds if c.mw is not None and c.tpsa is not None)

    with_pchembl = sum(1 for a in assays if a.pchembl_value not in (None, ""))
    numeric = sum(1 for a in assays if to_float(a.standard_value) is not None)
    linked = sum(1 for a in assays if a.target_id)

    unique_keys = len({lit.key for lit in literature})

    metrics = {
        "compounds_inchikey_cov": _pct(len(inchikeys), len(compounds)),
        "compounds_props_cov": _pct(with_props, len(compounds)),
        "compounds_duplicates": float(len(inchikeys) - len(set(inchikeys))),
        "targets_uniprot_cov": _pct(sum(1 for t in targets if t.uniprot), len(targets)),
        "targets_chembl_cov": _pct(sum(1 for t in targets if t.chembl_target_id), len(targets)),
        "assays_pchembl_cov": _pct(with_pchembl, len(assays)),
        "assays_standard_numeric": _pct(numeric, len(assays)),
        "assays_target_linked": _pct(linked, len(assays)),
        "literature_unique_ratio": round(unique_keys / len(literature), 4) if literature else 0.0,
        "literature_pmid_cov": _pct(sum(1 for lit in literature if lit.pmid), len(literature)),
        "literature_doi_cov": _pct(sum(1 for lit in literature if lit.doi), len(literature)),
    }

    report = QualityReport(
        counts={
            "compounds": len(compounds),
            "targets": len(targets),
            "assays": len(assays),
            "literature": len(literature),
        },
        metrics=metrics,
        notes=_notes(metrics),
    )
    logger.debug(f"Quality summary: {report.counts} with {len(report.notes)} notes")
    return report


def _notes(metrics: dict[str, float]) -> list[str]:
    notes = []
    if metrics["compounds_inchikey_cov"] < MIN_INCHIKEY_COV:
        notes.append(
            f"Low InChIKey coverage ({metrics['compounds_inchikey_cov']}% < {MIN_INCHIKEY_COV:g}%); "
            "compound identity may be ambiguous."
        )
    if metrics["targets_uniprot_cov"] < MIN_UNIPROT_COV:
        notes.append(
            f"Low UniProt coverage on targets ({metrics['targets_uniprot_cov']}% < "
            f"{MIN_UNIPROT_COV:g}%)."
        )
    if metrics["assays_target_linked"] < MIN_TARGET_LINKED:
        notes.append(
            f"Few assays linked to normalized targets ({metrics['assays_target_linked']}% < "
            f"{MIN_TARGET_LINKED:g}%)."
        )
    if metrics["assays_pchembl_cov"] < MIN_PCHEMBL_COV:
        notes.append(
            f"Low pChEMBL coverage ({metrics['assays_pchembl_cov']}% < {MIN_PCHEMBL_COV:g}%); "
            "potency comparisons are limited."
        )
    if metrics["literature_unique_ratio"] < MIN_LITERATURE_UNIQUE:
        notes.append(
            f"Literature unique ratio {metrics['literature_unique_ratio']} is below "
            f"{MIN_LITERATURE_UNIQUE:g}."
        )
    return notes


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_quality_report(
    report: QualityReport,
    *,
    title: str = "Normalization quality report",
    context: dict[str, Any] | None = None,
) -> str:
    """Render a report as Markdown with Counts, Metrics and Notes sections."""
    lines = [f"# {title}", ""]
    for key, value in (context or {}).items():
        lines.append(f"- **{key}**: {value}")
    if context:
        lines.append("")

    lines.append("## Counts")
    lines.extend(f"- {name}: {count}" for name, count in report.counts.items())
    lines.append("")

    lines.append("## Metrics")
    lines.extend(f"- {name}: {_format_value(value)}" for name, value in report.metrics.items())
    lines.append("")

    lines.append("## Notes")
    if report.notes:
        lines.extend(f"- {note}" for note in report.notes)
    else:
        lines.append("- (none)")
    lines.append("")

    return "\n".join(lines)
