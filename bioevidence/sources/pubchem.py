"""
PubChem PUG REST client.

Provides property-table lookups by name or CID and the identity lookup used
by cross-reference augmentation.
"""

import logging
from urllib.parse import quote

from bioevidence.exceptions import NotFoundError, ValidationError
from bioevidence.identity import first
from bioevidence.sources.base import SourceClient

logger = logging.getLogger(__name__)


class PubChemClient(SourceClient):
    """
    Async client for PubChem PUG REST.

    Example:
        async with PubChemClient() as pubchem:
            rows = await pubchem.properties_by_name("aspirin")
            ident = await pubchem.resolve_identity(cid="2244")
    """

    connector = "pubchem"

    PROPERTY_FIELDS = [
        "MolecularFormula",
        "MolecularWeight",
        "XLogP",
        "TPSA",
        "HBondDonorCount",
        "HBondAcceptorCount",
        "RotatableBondCount",
        "InChIKey",
        "CanonicalSMILES",
    ]
    IDENTITY_FIELDS = ["InChIKey", "CanonicalSMILES"]

    def _default_base_url(self) -> str:
        return self.settings.pubchem_base_url

    def _rate_limit_rpm(self) -> int:
        return self.settings.pubchem_rate_limit_rpm

    async def _property_rows(self, namespace: str, identifier: str, fields: list[str]) -> list[dict]:
        endpoint = (
            f"/compound/{namespace}/{quote(str(identifier), safe='')}"
            f"/property/{','.join(fields)}/JSON"
        )
        data = await self.get(endpoint, cache_ttl=self.settings.cache_ttl_compound)
        table = data.get("PropertyTable") if isinstance(data, dict) else None
        rows = table.get("Properties") if isinstance(table, dict) else None
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise ValidationError(
                f"Unexpected PropertyTable shape from {endpoint}",
                connector=self.connector,
                field="PropertyTable",
            )
        return rows

    async def properties_by_name(self, name: str) -> list[dict]:
        """Property-table rows for a compound name; empty when unknown."""
        try:
            return await self._property_rows("name", name, self.PROPERTY_FIELDS)
        except NotFoundError:
            return []

    async def properties_by_cid(self, cid: str | int) -> list[dict]:
        """Property-table rows for a CID; empty when unknown."""
        try:
            return await self._property_rows("cid", str(cid), self.PROPERTY_FIELDS)
        except NotFoundError:
            return []

    async def resolve_identity(
        self,
        *,
        cid: str | None = None,
        inchikey: str | None = None,
        smiles: str | None = None,
        name: str | None = None,
    ) -> dict | None:
        """
        Resolve an identifier to its standard InChIKey and canonical SMILES.

        The first identifier given wins, in the order inchikey, cid, smiles,
        name. Returns ``{"inchikey", "cid", "smiles"}`` or None when PubChem
        has no match. Transport failures propagate as ConnectorError.
        """
        if inchikey:
            namespace, identifier = "inchikey", inchikey
        elif cid:
            namespace, identifier = "cid", cid
        elif smiles:
            namespace, identifier = "smiles", smiles
        elif name:
            namespace, identifier = "name", name
        else:
            return None

        try:
            row = first(await self._property_rows(namespace, identifier, self.IDENTITY_FIELDS))
        except NotFoundError:
            return None
        if not row or not row.get("InChIKey"):
            return None

        resolved_cid = cid or (str(row["CID"]) if row.get("CID") else None)
        return {
            "inchikey": row["InChIKey"],
            "cid": resolved_cid,
            "smiles": row.get("CanonicalSMILES") or row.get("SMILES"),
        }
