"""
Centralized configuration using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Nested sections use a double underscore, e.g. CLEANER__ENABLE=true or
PLANTNET__API_KEY=secret. Use get_settings() to access the singleton instance.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings


class ClassifyConfig(BaseModel):
    """Suggestion filtering options."""

    threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description='Classification probability below which suggestions are ignored',
    )
    suggestions: int = Field(
        default=1, ge=0, description='Maximum number of suggestions returned'
    )

    class Config:
        frozen = True


class RecordCleanerConfig(BaseModel):
    """Record Cleaner verification service."""

    enable: bool = Field(default=False, description='Annotate suggestions with Record Cleaner')
    url: str = Field(
        default='https://record-cleaner.brc.ac.uk',
        description='Url of Record Cleaner service (no trailing slash)',
    )
    username: str = ''
    password: str = ''

    class Config:
        frozen = True

    @model_validator(mode='after')
    def check_password(self):
        if self.enable and not self.password:
            raise ValueError('A password is needed to use Record Cleaner checks.')
        return self


class WarehouseConfig(BaseModel):
    """Connection to the species warehouse used for taxonomy lookups."""

    base_url: str = Field(default='http://localhost/warehouse/', description='Warehouse root url')
    website_id: int = Field(default=0, description='Website ID used to obtain read auth')
    password: str = Field(default='', description='Website password used to obtain read auth')

    class Config:
        frozen = True


class GenericClassifierConfig(BaseModel):
    """Generic classifier accepting url-encoded posts and bearer tokens."""

    base_url: str = 'http://localhost:8000'
    path: str = Field(default='classify', description='Path of classify service below base_url')
    username: str = ''
    password: str = ''
    classifier_id: str = Field(default='', description='ID of classifier in the media classifier term list')
    raw: bool = Field(default=False, description='Include the upstream response in output')

    class Config:
        frozen = True


class RegionalClassifierConfig(BaseModel):
    """Regional observation classifier, full path is {base}/{version}/{service}/{token}."""

    base_url: str = 'https://multi-source.identify.biodiversityanalysis.eu'
    version: str = 'v2'
    service: str = 'observation/identify/token'
    token: str = Field(default='', description='Token giving results tuned to a region')
    auth_mode: Literal['basic', 'oauth2'] = 'basic'
    token_url: str = Field(default='', description='OAuth2 token endpoint when auth_mode is oauth2')
    username: str = ''
    password: str = ''
    classifier_id: str = ''
    raw: bool = False

    class Config:
        frozen = True


class PlantClassifierConfig(BaseModel):
    """Plant identification service, full path is {base}/{version}/{service}/{project}."""

    base_url: str = 'https://my-api.plantnet.org'
    version: str = 'v2'
    service: str = 'identify'
    project: str = Field(default='all', description='Specific floras, e.g. "weurope", or "all"')
    api_key: str = ''
    classifier_id: str = ''
    raw: bool = False

    class Config:
        frozen = True


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    Example: CLASSIFY__THRESHOLD=0.7 DEFAULT_CLASSIFIER=plantnet uvicorn species_proxy.main:app
    """

    # ==========================================================================
    # Routing
    # ==========================================================================
    classifiers: list[str] = Field(
        default=['generic', 'nia', 'plantnet'],
        description='Enabled classifiers, the first is the default',
    )

    default_classifier: str | None = Field(
        default=None, description='Classifier used for unknown routes (first listed if unset)'
    )

    strict_routing: bool = Field(
        default=False, description='Reject unknown classifier names instead of falling back'
    )

    # ==========================================================================
    # Pipeline
    # ==========================================================================
    classify: ClassifyConfig = Field(default_factory=ClassifyConfig)
    cleaner: RecordCleanerConfig = Field(default_factory=RecordCleanerConfig)
    warehouse: WarehouseConfig = Field(default_factory=WarehouseConfig)

    # ==========================================================================
    # Classifier backends
    # ==========================================================================
    generic: GenericClassifierConfig = Field(default_factory=GenericClassifierConfig)
    nia: RegionalClassifierConfig = Field(default_factory=RegionalClassifierConfig)
    plantnet: PlantClassifierConfig = Field(default_factory=PlantClassifierConfig)

    # ==========================================================================
    # Images
    # ==========================================================================
    interim_image_folder: str = Field(
        default='/tmp/interim_images', description='Folder holding uploaded and downloaded images'
    )

    # ==========================================================================
    # Timeouts (seconds)
    # ==========================================================================
    upstream_timeout: float = Field(default=30.0, description='Classifier call timeout')
    taxonomy_timeout: float = Field(default=10.0, description='Warehouse lookup timeout')
    cleaner_timeout: float = Field(default=10.0, description='Record Cleaner call timeout')
    image_head_timeout: float = Field(default=10.0, description='Image content-type probe timeout')
    image_download_timeout: float = Field(default=50.0, description='Image download timeout')

    # ==========================================================================
    # Performance Configuration
    # ==========================================================================
    max_body_size_mb: int = Field(default=10, description='Maximum inbound body size in MB')

    slow_request_threshold_ms: int = Field(
        default=2000, description='Log requests slower than this threshold'
    )

    log_level: str = Field(default='INFO', description='Root logging level')

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_title: str = Field(
        default='Species Classification Proxy', description='API title for OpenAPI docs'
    )

    api_description: str = Field(
        default='Unified front for image classifiers with taxonomy and Record Cleaner enrichment',
        description='API description for OpenAPI docs',
    )

    api_version: str = Field(default='1.0.0', description='API version')

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_body_size_bytes(self) -> int:
        """Maximum inbound body size in bytes."""
        return self.max_body_size_mb * 1024 * 1024

    class Config:
        env_prefix = ''  # No prefix for env vars
        env_nested_delimiter = '__'
        case_sensitive = False
        extra = 'ignore'


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Settings: Application settings
    """
    return Settings()
