"""
Control plane public API client

Queries the control plane's HTTP/JSON public API for its version, the
self-check results of its subsystems and the pods its metrics backend
is tracking.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests

from .. import config
from ..errors import HealthCheckError
from ..health.models import ReportedPod, SelfCheckResponse

logger = logging.getLogger(__name__)


class PublicAPIClient:
    """
    Public API client.

    Every endpoint is a POST of a JSON request body to
    <api_addr>/api/v1/<Method>.
    """

    def __init__(
        self,
        api_addr: str = config.PUBLIC_API_ADDR,
        timeout: int = config.HTTP_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_addr: Public API base URL
            timeout: Request timeout in seconds
            session: requests session to reuse
        """
        self.api_addr = api_addr.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def version(self) -> str:
        """Control plane release version."""
        data = self._post("Version")
        return data.get("releaseVersion", "")

    def self_check(self) -> SelfCheckResponse:
        return SelfCheckResponse.from_dict(self._post("SelfCheck"))

    def list_pods(self) -> List[ReportedPod]:
        data = self._post("ListPods")
        return [ReportedPod.from_dict(p) for p in data.get("pods", [])]

    def _post(self, method: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = urljoin(self.api_addr + "/", config.PUBLIC_API_PREFIX.lstrip("/") + method)

        try:
            response = self.session.post(url, json=body or {}, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Public API connection failed: {e}")
            raise HealthCheckError(f"Cannot connect to the control plane API at {self.api_addr}")
        except requests.exceptions.Timeout:
            raise HealthCheckError(f"Control plane API {method} timeout after {self.timeout}s")
        except requests.exceptions.HTTPError as e:
            raise HealthCheckError(f"Control plane API {method} failed: {e}")
        except ValueError as e:
            raise HealthCheckError(f"Control plane API {method} returned invalid JSON: {e}")
