"""
ChEMBL normalizer.

Transforms raw ChEMBL target search rows and activity rows into canonical
Target and Assay records. Kept separate from HTTP fetching so saved payloads
can be normalized and tested without the network.
"""

import logging
from typing import Any

from bioevidence.identity import component_accession, to_float, to_int, to_str
from bioevidence.schemas import Assay, Target

logger = logging.getLogger(__name__)


class ChEMBLNormalizer:
    """
    Normalizes raw ChEMBL API rows.

    Usage:
        normalizer = ChEMBLNormalizer()
        targets = normalizer.normalize_targets(raw_targets)
        lookup = {"CHEMBL203": "P00533"}
        assays = normalizer.normalize_activities(raw_activities, lookup)
    """

    # =========================================================================
    # Target Normalization
    # =========================================================================

    def normalize_target(self, raw: Any) -> Target | None:
        """
        Normalize one target row.

        ``target_id`` prefers the component UniProt accession, then the
        ChEMBL target id, then the literal "target".
        """
        if not isinstance(raw, dict):
            return None

        accession, organism = component_accession(raw)
        chembl_id = to_str(raw.get("target_chembl_id"))

        return Target(
            target_id=accession or chembl_id or "target",
            uniprot=accession,
            chembl_target_id=chembl_id,
            pref_name=to_str(raw.get("pref_name")),
            organism_name=to_str(organism),
            organism_taxid=to_int(raw.get("tax_id")),
            source="chembl",
        )

    def normalize_targets(self, raw_list: list[Any] | None) -> list[Target]:
        """Normalize a list of target rows."""
        return [t for t in (self.normalize_target(r) for r in raw_list or []) if t is not None]

    # =========================================================================
    # Activity Normalization
    # =========================================================================

    def normalize_activity(
        self, raw: Any, target_lookup: dict[str, str] | None = None
    ) -> Assay | None:
        """
        Normalize one activity row.

        ``target_id`` is filled only when the row's ``target_chembl_id`` is a
        key of ``target_lookup``; otherwise it stays None.
        """
        if not isinstance(raw, dict):
            return None

        chembl_target_id = to_str(raw.get("target_chembl_id"))
        target_id = None
        if chembl_target_id and target_lookup:
            target_id = target_lookup.get(chembl_target_id)

        return Assay(
            assay_id=str(raw.get("assay_chembl_id") or raw.get("activity_id") or ""),
            source="chembl",
            target_id=target_id,
            chembl_target_id=chembl_target_id,
            standard_type=to_str(raw.get("standard_type")),
            standard_value=self._measurement(raw.get("standard_value")),
            standard_units=to_str(raw.get("standard_units")),
            pchembl_value=self._measurement(raw.get("pchembl_value")),
            molecule_chembl_id=to_str(raw.get("molecule_chembl_id")),
        )

    def normalize_activities(
        self,
        raw_list: list[Any] | None,
        target_lookup: dict[str, str] | None = None,
    ) -> list[Assay]:
        """Normalize a list of activity rows against an optional target lookup."""
        assays = []
        for raw in raw_list or []:
            assay = self.normalize_activity(raw, target_lookup)
            if assay is not None:
                assays.append(assay)
        return assays

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _measurement(self, value: Any) -> str | float | None:
        """Keep numbers and strings as delivered; drop blanks and other types."""
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, (int, float)):
            return to_float(value)
        if isinstance(value, str):
            return value.strip() or None
        return None
