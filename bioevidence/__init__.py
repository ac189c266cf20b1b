"""
bioevidence: multi-source biomedical evidence normalization.

Fans a research question out to PubChem, ChEMBL, UniProt, PubMed,
Europe PMC, OpenAlex and ClinicalTrials.gov, and merges the results into
one canonical, deduplicated dataset.
"""

__version__ = "0.1.0"
