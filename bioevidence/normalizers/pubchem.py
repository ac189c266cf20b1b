"""
PubChem property-table normalizer.

Maps PUG REST ``PropertyTable.Properties`` rows to canonical Compounds.
"""

import logging
from typing import Any

from bioevidence.identity import to_float, to_str
from bioevidence.schemas import Compound

logger = logging.getLogger(__name__)


class PubChemNormalizer:
    """
    Normalizes PubChem property rows to Compound records.

    Usage:
        normalizer = PubChemNormalizer()
        rows = [{"CID": 2244, "InChIKey": "BSYNRYMUTXBXSQ-UHFFFAOYSA-N", ...}]
        compounds = normalizer.normalize_properties(rows, name_hint="aspirin")
    """

    # Accepted spellings per field, first match wins
    FIELD_ALIASES = {
        "inchikey": ("InChIKey", "inchikey", "InchiKey"),
        "smiles": ("CanonicalSMILES", "SMILES", "canonical_smiles"),
        "formula": ("MolecularFormula", "Formula", "molecular_formula"),
        "mw": ("MolecularWeight", "molecular_weight"),
        "xlogp": ("XLogP", "xlogp"),
        "tpsa": ("TPSA", "tpsa"),
        "cid": ("CID", "cid"),
    }

    def _field(self, raw: dict, name: str) -> Any:
        for key in self.FIELD_ALIASES[name]:
            value = raw.get(key)
            if value is not None and value != "":
                return value
        return None

    def normalize_property_row(self, raw: Any, name_hint: str | None = None) -> Compound | None:
        """
        Normalize one property row.

        Args:
            raw: A PropertyTable row
            name_hint: Name the compound was searched by, if any

        Returns:
            Compound, or None when the row is not a mapping
        """
        if not isinstance(raw, dict):
            return None

        inchikey = to_str(self._field(raw, "inchikey")) or ""
        cid = to_str(self._field(raw, "cid"))
        name = to_str(name_hint)

        return Compound(
            compound_id=inchikey or cid or name or "compound",
            inchikey=inchikey,
            cid=cid,
            name=name,
            smiles=to_str(self._field(raw, "smiles")),
            formula=to_str(self._field(raw, "formula")),
            mw=to_float(self._field(raw, "mw")),
            xlogp=to_float(self._field(raw, "xlogp")),
            tpsa=to_float(self._field(raw, "tpsa")),
            source="pubchem",
        )

    def normalize_properties(
        self, raw_list: list[Any] | None, name_hint: str | None = None
    ) -> list[Compound]:
        """Normalize a list of property rows, skipping non-mapping rows."""
        compounds = []
        for raw in raw_list or []:
            compound = self.normalize_property_row(raw, name_hint)
            if compound is None:
                logger.debug(f"Skipping malformed PubChem row: {type(raw).__name__}")
                continue
            compounds.append(compound)
        return compounds
