"""Clients for the systems the health checks talk to."""

from .kubernetes import KubernetesAPI
from .public_api import PublicAPIClient

__all__ = [
    "KubernetesAPI",
    "PublicAPIClient",
]
