"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Custom HubSpot property names are opaque strings injected into the entity
    adapters. An optional attribute left as an empty string disables the
    corresponding field: it is never downloaded or uploaded.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HubSpot transport
    HUBSPOT_ACCESS_TOKEN: str = ""
    HUBSPOT_BASE_URL: str = "https://api.hubapi.com"
    HUBSPOT_BATCH_SIZE: int = 100
    HUBSPOT_TIMEOUT: float = 30.0
    HUBSPOT_DRY_RUN: bool = False

    # Deal pipeline and stages
    HUBSPOT_PIPELINE_MPAC: str = "Pipeline"
    HUBSPOT_DEALSTAGE_EVAL: str = "Eval"
    HUBSPOT_DEALSTAGE_CLOSED_WON: str = "ClosedWon"
    HUBSPOT_DEALSTAGE_CLOSED_LOST: str = "ClosedLost"

    # Deal custom properties
    HUBSPOT_DEAL_ADDON_LICENSE_ID_ATTR: str = "addonlicenseid"
    HUBSPOT_DEAL_TRANSACTION_ID_ATTR: str = "transactionid"
    HUBSPOT_DEAL_DEPLOYMENT_ATTR: str = ""  # Optional
    HUBSPOT_DEAL_APP_ATTR: str = ""  # Optional

    # Contact custom properties
    HUBSPOT_CONTACT_CONTACT_TYPE_ATTR: str = "contact_type"
    HUBSPOT_CONTACT_REGION_ATTR: str = "region"
    HUBSPOT_CONTACT_RELATED_PRODUCTS_ATTR: str = "related_products"
    HUBSPOT_CONTACT_LICENSE_TIER_ATTR: str = "license_tier"
    HUBSPOT_CONTACT_DEPLOYMENT_ATTR: str = "deployment"
    HUBSPOT_CONTACT_PRODUCTS_ATTR: str = "products"
    HUBSPOT_CONTACT_LAST_MPAC_EVENT_ATTR: str = "last_mpac_event"


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
