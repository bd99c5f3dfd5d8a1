"""SSM Parameter Store access for campreserv secrets.

Secrets live under `/campreserv/{environment}/...`; values are decrypted and
cached in-process for the life of the Lambda container.
"""

import os
from functools import lru_cache
from typing import ClassVar

import boto3
from botocore.exceptions import ClientError

from campreserv.utils.logging import get_logger

logger = get_logger(__name__)

PARAMETER_ROOT = "/campreserv"


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails."""


def parameter_path(name: str, environment: str | None = None) -> str:
    """Build the full parameter name, e.g. `/campreserv/dev/stripe/secret_key`."""
    env = environment or os.environ.get("ENVIRONMENT", "dev")
    return f"{PARAMETER_ROOT}/{env}/{name.lstrip('/')}"


class SSMService:
    """Cached reads of SecureString parameters.

    Usage:
        ssm = get_ssm_service()
        key = ssm.get_parameter(parameter_path("stripe/secret_key"))
    """

    _cache: ClassVar[dict[str, str]] = {}

    def __init__(self) -> None:
        self._client = boto3.client("ssm")

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve and decrypt a parameter.

        Raises:
            SSMServiceError: If the parameter is missing or unreadable
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        try:
            logger.info("Fetching SSM parameter: %s", name)
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter: {name}. "
                    "Check IAM permissions for ssm:GetParameter."
                ) from e
            raise SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}") from e

        value = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance."""
    return SSMService()
