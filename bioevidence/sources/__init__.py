"""
Source clients for public biomedical databases.

Clients:
- ChEMBLClient: target search, target detail, activities
- PubChemClient: property tables, identity resolution
- UniProtClient: UniProtKB search
- EntrezClient / EuropePMCClient / OpenAlexClient: literature
- ClinicalTrialsClient: trial search

All clients share retries with exponential backoff, 429 handling, a
per-client rate limiter and the response cache.
"""

from bioevidence.sources.base import SourceClient
from bioevidence.sources.chembl import ChEMBLClient
from bioevidence.sources.ctgov import ClinicalTrialsClient
from bioevidence.sources.literature import EntrezClient, EuropePMCClient, OpenAlexClient
from bioevidence.sources.pubchem import PubChemClient
from bioevidence.sources.uniprot import UniProtClient

__all__ = [
    "SourceClient",
    "ChEMBLClient",
    "ClinicalTrialsClient",
    "EntrezClient",
    "EuropePMCClient",
    "OpenAlexClient",
    "PubChemClient",
    "UniProtClient",
]
