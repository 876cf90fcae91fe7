"""
Built-in checks for a service mesh deployment.

ClusterChecks holds the state the checks share (clients, fetched
versions) and produces them as an ordered list of Checkers.
"""

import logging
from typing import Callable, List, Optional

from ..errors import HealthCheckError
from .models import Checker, HealthCheckOptions, ReportedPod, SelfCheckResponse
from .validators import (
    validate_control_plane_pods,
    validate_data_plane_pod_reporting,
    validate_data_plane_pods,
    validate_data_plane_proxy_versions,
    validate_kube_version,
    validate_version,
)

logger = logging.getLogger(__name__)

KUBERNETES_API_CATEGORY = "kubernetes-api"
KUBERNETES_VERSION_CATEGORY = "kubernetes-version"
CONTROL_PLANE_EXISTENCE_CATEGORY = "linkerd-existence"
CONTROL_PLANE_API_CATEGORY = "linkerd-api"
VERSION_CATEGORY = "linkerd-version"
DATA_PLANE_CATEGORY = "linkerd-data-plane"


class ClusterChecks:
    """
    Ordered checks for the Kubernetes API, the control plane and the
    data plane.

    Clients are created by the checks themselves so that a failure to
    build one is reported like any other check failure.

    Example:
        checks = ClusterChecks(HealthCheckOptions(check_data_plane=True))
        hc = HealthChecker(checks.checkers())
    """

    def __init__(
        self,
        options: Optional[HealthCheckOptions] = None,
        kube_factory: Optional[Callable] = None,
        api_factory: Optional[Callable] = None,
        version_fetcher: Optional[Callable[[str], str]] = None,
    ):
        """
        Initialize the checks.

        Args:
            options: Which checks to run and where
            kube_factory: Builds the Kubernetes client from a kubeconfig path
            api_factory: Builds the public API client from an address
            version_fetcher: Returns the latest version for a URL
        """
        self.options = options or HealthCheckOptions()
        self._kube_factory = kube_factory
        self._api_factory = api_factory
        self._version_fetcher = version_fetcher

        self.kube_api = None
        self.api_client = None
        self.control_plane_version: Optional[str] = None
        self.latest_version: Optional[str] = None

    @property
    def kube_factory(self) -> Callable:
        """Lazy-load the Kubernetes client class."""
        if self._kube_factory is None:
            from ..clients.kubernetes import KubernetesAPI
            self._kube_factory = KubernetesAPI
        return self._kube_factory

    @property
    def api_factory(self) -> Callable:
        """Lazy-load the public API client class."""
        if self._api_factory is None:
            from ..clients.public_api import PublicAPIClient
            self._api_factory = PublicAPIClient
        return self._api_factory

    @property
    def version_fetcher(self) -> Callable[[str], str]:
        if self._version_fetcher is None:
            from ..version import fetch_latest_version
            self._version_fetcher = fetch_latest_version
        return self._version_fetcher

    def checkers(self) -> List[Checker]:
        opts = self.options
        checkers = [
            Checker(
                category=KUBERNETES_API_CATEGORY,
                description="can initialize the client",
                fatal=True,
                check=self.init_kube_client,
            ),
            Checker(
                category=KUBERNETES_API_CATEGORY,
                description="can query the Kubernetes API",
                fatal=True,
                check=lambda: self.kube_api.check_api_access(),
            ),
        ]

        if opts.should_check_kube_version:
            checkers.append(Checker(
                category=KUBERNETES_VERSION_CATEGORY,
                description="is running the minimum Kubernetes API version",
                check=lambda: validate_kube_version(self.kube_api.get_version()),
            ))

        checkers.extend([
            Checker(
                category=CONTROL_PLANE_EXISTENCE_CATEGORY,
                description="control plane namespace exists",
                fatal=True,
                check=lambda: self.check_namespace(opts.control_plane_namespace),
            ),
            Checker(
                category=CONTROL_PLANE_EXISTENCE_CATEGORY,
                description="control plane pods are ready",
                fatal=True,
                retry=opts.should_retry,
                check=lambda: validate_control_plane_pods(
                    self.kube_api.get_pods(opts.control_plane_namespace)
                ),
            ),
            Checker(
                category=CONTROL_PLANE_API_CATEGORY,
                description="can initialize the client",
                fatal=True,
                check=self.init_api_client,
            ),
            Checker(
                category=CONTROL_PLANE_API_CATEGORY,
                description="can query the control plane API",
                fatal=True,
                retry=opts.should_retry,
                check=self.query_control_plane_version,
            ),
            Checker(
                category=CONTROL_PLANE_API_CATEGORY,
                description="control plane self-check",
                check_rpc=self.self_check,
            ),
        ])

        if opts.should_check_version:
            checkers.append(Checker(
                category=VERSION_CATEGORY,
                description="can determine the latest version",
                check=self.fetch_latest_version,
            ))
            if opts.cli_version:
                checkers.append(Checker(
                    category=VERSION_CATEGORY,
                    description="cli is up-to-date",
                    check=lambda: validate_version(
                        opts.cli_version, self.require_latest_version(), "cli"
                    ),
                ))
            checkers.append(Checker(
                category=VERSION_CATEGORY,
                description="control plane is up-to-date",
                check=lambda: validate_version(
                    self.control_plane_version, self.require_latest_version(),
                    "control plane",
                ),
            ))

        if opts.check_data_plane:
            checkers.extend(self.data_plane_checkers())

        return checkers

    def data_plane_checkers(self) -> List[Checker]:
        opts = self.options
        namespace = opts.data_plane_namespace
        checkers = []

        if namespace:
            checkers.append(Checker(
                category=DATA_PLANE_CATEGORY,
                description="data plane namespace exists",
                fatal=True,
                check=lambda: self.check_namespace(namespace),
            ))

        checkers.extend([
            Checker(
                category=DATA_PLANE_CATEGORY,
                description="data plane proxies are ready",
                retry=opts.should_retry,
                check=lambda: validate_data_plane_pods(
                    self.kube_api.get_injected_pods(namespace), namespace
                ),
            ),
            Checker(
                category=DATA_PLANE_CATEGORY,
                description="data plane proxy metrics are present in Prometheus",
                retry=opts.should_retry,
                check=lambda: validate_data_plane_pod_reporting(
                    self.kube_api.get_injected_pods(namespace),
                    self.reported_pods(),
                ),
            ),
        ])

        if opts.should_check_version:
            checkers.append(Checker(
                category=DATA_PLANE_CATEGORY,
                description="data plane is up-to-date",
                check=lambda: validate_data_plane_proxy_versions(
                    self.reported_pods(), self.require_latest_version()
                ),
            ))

        return checkers

    # ============ Check bodies ============

    def init_kube_client(self) -> None:
        self.kube_api = self.kube_factory(self.options.kubeconfig_path)

    def init_api_client(self) -> None:
        self.api_client = self.api_factory(self.options.api_addr)

    def check_namespace(self, namespace: str) -> None:
        if not self.kube_api.namespace_exists(namespace):
            raise HealthCheckError(f'The "{namespace}" namespace does not exist')

    def query_control_plane_version(self) -> None:
        self.control_plane_version = self.api_client.version()
        logger.debug(f"Control plane version: {self.control_plane_version}")

    def self_check(self) -> SelfCheckResponse:
        return self.api_client.self_check()

    def fetch_latest_version(self) -> None:
        self.latest_version = self.version_fetcher(self.options.version_check_url)
        logger.debug(f"Latest version: {self.latest_version}")

    def require_latest_version(self) -> str:
        if not self.latest_version:
            raise HealthCheckError("Unable to determine the latest version")
        return self.latest_version

    def reported_pods(self) -> List[ReportedPod]:
        """Pods the control plane reports, limited to the data plane namespace."""
        pods = self.api_client.list_pods()
        namespace = self.options.data_plane_namespace
        if not namespace:
            return pods
        prefix = f"{namespace}/"
        return [pod for pod in pods if pod.name.startswith(prefix)]
