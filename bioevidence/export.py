"""
Tabular export of a normalized dataset.

Each collection becomes a delimited table whose header is the union of row
keys in first-seen order. Missing keys render as empty cells.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Iterable

from bioevidence.quality import render_quality_report
from bioevidence.schemas import CanonicalRecord, NormalizedDataset, QualityReport

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ";"
_EXPORT_EXCLUDE = {"meta", "provenance"}


def records_to_rows(records: Iterable[CanonicalRecord]) -> list[dict[str, Any]]:
    """Flatten records to plain rows; list values are joined with ``;``."""
    rows = []
    for record in records:
        row = record.model_dump(exclude=_EXPORT_EXCLUDE)
        for key, value in row.items():
            if isinstance(value, list):
                row[key] = LIST_SEPARATOR.join(str(v) for v in value)
        rows.append(row)
    return rows


def to_delimited(rows: list[dict[str, Any]], delimiter: str = ",") -> str:
    """
    Serialize rows to delimited text.

    Values containing the delimiter, a quote or a newline are quoted.
    Returns "" when there are no rows.
    """
    header: dict[str, None] = {}
    for row in rows:
        for key in row:
            header.setdefault(key, None)
    if not header:
        return ""

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(header),
        restval="",
        delimiter=delimiter,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow({k: "" if v is None else v for k, v in row.items()})
    return buffer.getvalue()


def write_dataset(
    dataset: NormalizedDataset,
    out_dir: str | Path,
    report: QualityReport | None = None,
    *,
    delimiter: str = ",",
) -> dict[str, Path]:
    """
    Write compounds/targets/assays/literature tables, plus the quality report
    as JSON and Markdown when one is given. Returns the written paths by name.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}

    tables = {
        "compounds": dataset.compounds,
        "targets": dataset.targets,
        "assays": dataset.assays,
        "literature": dataset.literature,
    }
    for name, records in tables.items():
        path = out / f"{name}.csv"
        path.write_text(to_delimited(records_to_rows(records), delimiter), encoding="utf-8")
        written[name] = path

    if report is not None:
        json_path = out / "quality_report.json"
        json_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        written["quality_report_json"] = json_path

        md_path = out / "quality_report.md"
        md_path.write_text(render_quality_report(report), encoding="utf-8")
        written["quality_report_md"] = md_path

    logger.info(f"Wrote {len(written)} files to {out}")
    return written
