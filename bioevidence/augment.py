"""
Cross-reference augmentation.

Best-effort network enrichment run between normalization and merge:
- compounds with a CID but no InChIKey are resolved through PubChem
- ChEMBL targets without a UniProt accession are resolved through the
  ChEMBL target detail endpoint (bounded by ``max_augmentation_lookups``)

Failures never propagate. A ConnectorError from a lookup is logged and the
affected record is returned unchanged. Each lookup still gets the source
client's bounded retry with exponential backoff.
"""

import logging

from bioevidence.exceptions import ConnectorError
from bioevidence.identity import component_accession
from bioevidence.schemas import Compound, Target
from bioevidence.settings import PipelineSettings, get_settings
from bioevidence.sources.chembl import ChEMBLClient
from bioevidence.sources.pubchem import PubChemClient

logger = logging.getLogger(__name__)


class CrossReferenceAugmenter:
    """
    Fills missing compound identities and target accessions.

    Example:
        async with CrossReferenceAugmenter(settings) as augmenter:
            compounds = await augmenter.enrich_compound_identities(compounds)
            targets = await augmenter.augment_targets_with_uniprot(targets)
    """

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        *,
        pubchem: PubChemClient | None = None,
        chembl: ChEMBLClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.pubchem = pubchem or PubChemClient(self.settings)
        self.chembl = chembl or ChEMBLClient(self.settings)
        self._owned = [
            client
            for client, given in ((self.pubchem, pubchem), (self.chembl, chembl))
            if given is None
        ]

    # =========================================================================
    # Compounds
    # =========================================================================

    async def enrich_compound_identities(self, compounds: list[Compound]) -> list[Compound]:
        """
        Resolve CID-only compounds to InChIKey and SMILES.

        Existing values are never overwritten. ``compound_id`` is upgraded to
        the InChIKey when it had fallen back to the CID, the name or the
        "compound" placeholder.
        """
        resolved: dict[str, dict | None] = {}
        out = []

        for compound in compounds:
            if compound.inchikey or not compound.cid:
                out.append(compound)
                continue

            if compound.cid not in resolved:
                try:
                    resolved[compound.cid] = await self.pubchem.resolve_identity(cid=compound.cid)
                except ConnectorError as e:
                    logger.warning(f"Identity lookup failed for CID {compound.cid}: {e}")
                    resolved[compound.cid] = None

            ident = resolved[compound.cid]
            if not ident:
                out.append(compound)
                continue

            update: dict = {}
            if ident.get("inchikey"):
                update["inchikey"] = ident["inchikey"]
                if compound.compound_id in (compound.cid, compound.name, "compound"):
                    update["compound_id"] = ident["inchikey"]
            if ident.get("smiles") and not compound.smiles:
                update["smiles"] = ident["smiles"]

            out.append(compound.model_copy(update=update) if update else compound)

        return out

    # =========================================================================
    # Targets
    # =========================================================================

    async def augment_targets_with_uniprot(self, targets: list[Target]) -> list[Target]:
        """
        Attach UniProt accessions to ChEMBL targets that lack one.

        At most ``max_augmentation_lookups`` distinct ChEMBL ids are looked
        up, in first-seen order; the rest are left unaugmented.
        """
        missing: list[str] = []
        for target in targets:
            chembl_id = target.chembl_target_id
            if chembl_id and not target.uniprot and chembl_id not in missing:
                missing.append(chembl_id)

        if not missing:
            return list(targets)

        cap = self.settings.max_augmentation_lookups
        lookups = missing[:cap]
        if len(missing) > cap:
            logger.info(
                f"Augmentation capped at {cap} targets; {len(missing) - cap} left unresolved"
            )

        accessions: dict[str, str] = {}
        for chembl_id in lookups:
            try:
                detail = await self.chembl.get_target(chembl_id)
            except ConnectorError as e:
                logger.warning(f"Target detail lookup failed for {chembl_id}: {e}")
                continue
            accession, _ = component_accession(detail)
            if accession:
                accessions[chembl_id] = accession

        out = []
        for target in targets:
            accession = accessions.get(target.chembl_target_id or "")
            if not accession or target.uniprot:
                out.append(target)
                continue
            update = {"uniprot": accession}
            if target.target_id in (target.chembl_target_id, "target"):
                update["target_id"] = accession
            out.append(target.model_copy(update=update))

        logger.debug(f"Resolved {len(accessions)}/{len(lookups)} ChEMBL targets to UniProt")
        return out

    # =========================================================================
    # Cleanup
    # =========================================================================

    async def close(self) -> None:
        for client in self._owned:
            await client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
