"""
Settings for the evidence pipeline.

Environment variables (prefix ``BIOEVIDENCE_``):
- CHEMBL_BASE_URL / PUBCHEM_BASE_URL / UNIPROT_BASE_URL: Source API base URLs
- ENTREZ_BASE_URL / EUROPEPMC_BASE_URL / OPENALEX_BASE_URL / CTGOV_BASE_URL

- HTTP_TIMEOUT: Default request timeout (seconds)
- MAX_RETRIES: Max retry attempts per request
- CACHE_BACKEND: "redis" or "memory"
- REDIS_URL: Redis connection URL (for caching)

- SOURCE_DELAY_SECONDS: Pause between sequential source calls in a research run
- TOOL_CONCURRENCY / TOOL_TIMEOUT_SECONDS: Open-question runner limits
- MAX_AUGMENTATION_LOOKUPS: Cap on distinct ChEMBL target detail lookups
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Settings for source clients, augmentation and the tool runner."""

    model_config = SettingsConfigDict(
        env_prefix="BIOEVIDENCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # API Base URLs
    # ==========================================================================

    chembl_base_url: str = Field(
        default="https://www.ebi.ac.uk/chembl/api/data",
        description="ChEMBL REST API base URL",
    )
    pubchem_base_url: str = Field(
        default="https://pubchem.ncbi.nlm.nih.gov/rest/pug",
        description="PubChem PUG REST API base URL",
    )
    uniprot_base_url: str = Field(
        default="https://rest.uniprot.org",
        description="UniProt REST API base URL",
    )
    entrez_base_url: str = Field(
        default="https://eutils.ncbi.nlm.nih.gov/entrez/eutils",
        description="NCBI E-utilities base URL",
    )
    europepmc_base_url: str = Field(
        default="https://www.ebi.ac.uk/europepmc/webservices/rest",
        description="Europe PMC REST API base URL",
    )
    openalex_base_url: str = Field(
        default="https://api.openalex.org",
        description="OpenAlex API base URL",
    )
    ctgov_base_url: str = Field(
        default="https://clinicaltrials.gov/api/v2",
        description="ClinicalTrials.gov API base URL",
    )

    # ==========================================================================
    # HTTP Client Settings
    # ==========================================================================

    http_timeout: int = Field(
        default=30,
        description="Default request timeout in seconds",
        ge=1,
        le=300,
    )
    max_retries: int = Field(
        default=3,
        description="Maximum number of retry attempts",
        ge=0,
        le=10,
    )
    retry_backoff_base: float = Field(
        default=1.0,
        description="Base delay for exponential backoff (seconds)",
        ge=0.0,
        le=10.0,
    )
    retry_backoff_max: float = Field(
        default=60.0,
        description="Maximum backoff delay (seconds)",
        ge=0.0,
        le=300.0,
    )
    user_agent: str = Field(
        default="bioevidence/0.1 (research pipeline)",
        description="User-Agent header sent to every source",
    )

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================

    chembl_rate_limit_rpm: int = Field(default=300)
    pubchem_rate_limit_rpm: int = Field(default=300, description="5 req/sec")
    uniprot_rate_limit_rpm: int = Field(default=600)
    entrez_rate_limit_rpm: int = Field(default=180, description="3 req/sec without API key")
    europepmc_rate_limit_rpm: int = Field(default=600)
    openalex_rate_limit_rpm: int = Field(default=600)
    ctgov_rate_limit_rpm: int = Field(default=300)

    # ==========================================================================
    # Caching
    # ==========================================================================

    cache_backend: str = Field(
        default="redis",
        description="Cache backend: 'redis' or 'memory'",
        pattern="^(redis|memory)$",
    )
    cache_ttl: int = Field(
        default=3600,
        description="Default cache TTL in seconds (1 hour)",
        ge=1,
        le=86400,
    )
    cache_ttl_compound: int = Field(
        default=86400,
        description="Cache TTL for compound identity data (24 hours - stable data)",
    )
    cache_ttl_search: int = Field(
        default=1800,
        description="Cache TTL for search results (30 min - may change)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for the response cache",
    )

    # ==========================================================================
    # Orchestration
    # ==========================================================================

    source_delay_seconds: float = Field(
        default=0.05,
        description="Pause between sequential source calls (throttling)",
        ge=0.0,
    )
    max_per_source: int = Field(
        default=50,
        description="Default result limit per source",
        ge=1,
        le=100,
    )
    max_activity_targets: int = Field(
        default=10,
        description="Number of ChEMBL targets whose activities are fetched",
        ge=1,
    )
    max_augmentation_lookups: int = Field(
        default=25,
        description="Distinct ChEMBL target detail lookups per augmentation pass",
        ge=0,
    )
    tool_concurrency: int = Field(
        default=4,
        description="Maximum in-flight tool calls in the open-question runner",
        ge=1,
        le=64,
    )
    tool_timeout_seconds: float = Field(
        default=20.0,
        description="Per-call timeout in the open-question runner",
        gt=0,
    )

    # ==========================================================================
    # Logging
    # ==========================================================================

    log_requests: bool = Field(
        default=True,
        description="Log all outgoing source requests",
    )
    log_cache_hits: bool = Field(
        default=False,
        description="Log cache hits (verbose)",
    )


@lru_cache
def get_settings() -> PipelineSettings:
    """Return settings loaded from the environment (cached)."""
    return PipelineSettings()
