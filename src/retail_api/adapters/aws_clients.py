"""AWS client construction from application settings."""
import logging
from typing import Any

import boto3

from retail_api.config.settings import Settings

logger = logging.getLogger(__name__)


def get_client(settings: Settings, service_name: str) -> Any:
    """Create a boto3 client configured from ``settings``."""
    logger.debug(f"Creating {service_name} client (region={settings.aws_region}, endpoint={settings.aws_endpoint_url})")
    return boto3.client(service_name, **settings.boto3_client_kwargs())


def get_resource(settings: Settings, service_name: str) -> Any:
    """Create a boto3 service resource configured from ``settings``."""
    logger.debug(f"Creating {service_name} resource (region={settings.aws_region}, endpoint={settings.aws_endpoint_url})")
    return boto3.resource(service_name, **settings.boto3_client_kwargs())


def error_code(error: Exception) -> str:
    """Return the AWS error code of a botocore ``ClientError`` ('' otherwise)."""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))
