"""
Release version lookup.
"""

import logging

import requests

from . import config
from .errors import HealthCheckError

logger = logging.getLogger(__name__)


def fetch_latest_version(
    url: str = config.VERSION_CHECK_URL,
    timeout: int = config.HTTP_TIMEOUT_SECONDS,
) -> str:
    """
    Get the latest released version.

    Args:
        url: Version check endpoint returning {"version": "..."}
        timeout: Request timeout in seconds

    Returns:
        The latest version string
    """
    try:
        response = requests.get(url, params={"source": "cli"}, timeout=timeout)
        response.raise_for_status()
        version = response.json().get("version")
    except requests.exceptions.RequestException as e:
        logger.warning(f"Version check failed: {e}")
        raise HealthCheckError(f"Failed to get the latest version: {e}")
    except ValueError as e:
        raise HealthCheckError(f"Version check returned invalid JSON: {e}")

    if not version:
        raise HealthCheckError(f"Version check at {url} did not return a version")
    return version
