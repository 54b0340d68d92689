# src/retail_api/config/settings.py
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEPLOYMENT_MODES = ["local-dev", "aws-mock", "aws-prod"]


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from retail_api.config.settings import get_settings
        settings = get_settings()
        container = settings.blob_container_name
    """

    # Application Settings
    app_name: str = Field(
        default="retail-api",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        validation_alias=AliasChoices("aws_region", "AWS_DEFAULT_REGION"),
    )

    aws_access_key_id: Optional[str] = Field(default=None)

    aws_secret_access_key: Optional[SecretStr] = Field(default=None)

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        description="Endpoint override, e.g. a moto server in aws-mock mode"
    )

    # Table Configuration
    customers_table_name: str = Field(
        default="Customers",
        description="Table holding customer entities"
    )

    products_table_name: str = Field(
        default="Products",
        description="Table holding product entities"
    )

    # Blob Configuration
    blob_container_name: str = Field(
        default="productimages",
        description="Container (S3 bucket) for product images"
    )

    # Queue Configuration
    queue_name: str = Field(
        default="orderprocessing",
        description="Queue for order processing messages"
    )

    # File Share Configuration
    file_share_name: str = Field(
        default="contracts",
        description="File share for contracts"
    )

    file_share_dir: Optional[str] = Field(
        default=None,
        description="Mount point of the file share (defaults to <storage_dir>/<file_share_name>)"
    )

    # Storage Configuration
    storage_dir: str = Field(
        default="storage",
        description="Local storage directory"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("deployment_mode", mode="before")
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator("deployment_mode")
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in DEPLOYMENT_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {DEPLOYMENT_MODES}")
        return v

    @property
    def is_aws(self) -> bool:
        return self.deployment_mode in ["aws-mock", "aws-prod"]

    @property
    def share_root(self) -> Path:
        """Directory backing the file share."""
        if self.file_share_dir:
            return Path(self.file_share_dir)
        return Path(self.storage_dir) / self.file_share_name

    @property
    def secret_values(self) -> list[str]:
        """Values that must never appear in error messages or logs."""
        secrets = []
        if self.aws_secret_access_key:
            secrets.append(self.aws_secret_access_key.get_secret_value())
        if self.aws_access_key_id:
            secrets.append(self.aws_access_key_id)
        return secrets

    def boto3_client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.client`` built from these settings."""
        client_kwargs: Dict[str, Any] = {"region_name": self.aws_region}
        if self.aws_access_key_id:
            client_kwargs["aws_access_key_id"] = self.aws_access_key_id
        if self.aws_secret_access_key:
            client_kwargs["aws_secret_access_key"] = self.aws_secret_access_key.get_secret_value()
        if self.aws_endpoint_url:
            client_kwargs["endpoint_url"] = self.aws_endpoint_url
        return client_kwargs

    def get_environment_dict(self) -> dict:
        """Get non-secret configuration as a dictionary, e.g. for ``show-config``."""
        return {
            "DEPLOYMENT_MODE": self.deployment_mode,
            "AWS_DEFAULT_REGION": self.aws_region,
            "AWS_ENDPOINT_URL": self.aws_endpoint_url or "",
            "CUSTOMERS_TABLE_NAME": self.customers_table_name,
            "PRODUCTS_TABLE_NAME": self.products_table_name,
            "BLOB_CONTAINER_NAME": self.blob_container_name,
            "QUEUE_NAME": self.queue_name,
            "FILE_SHARE_NAME": self.file_share_name,
            "FILE_SHARE_DIR": str(self.share_root),
            "STORAGE_DIR": self.storage_dir,
            "LOG_LEVEL": self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=(".env", ".env.local-dev", ".env.aws-mock", ".env.aws-prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
