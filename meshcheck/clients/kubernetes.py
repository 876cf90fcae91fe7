"""
meshcheck - Kubernetes API client

Thin wrapper over the official kubernetes client returning pod snapshots.
"""

import logging
from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .. import config as settings
from ..errors import HealthCheckError
from ..health.models import Pod

logger = logging.getLogger(__name__)


class KubernetesAPI:
    """Kubernetes operations used by the health checks."""

    def __init__(self, kubeconfig_path: Optional[str] = None):
        """
        Load client configuration and build the API clients.

        Args:
            kubeconfig_path: Explicit kubeconfig; otherwise in-cluster
                config is tried before the default kubeconfig

        Raises:
            HealthCheckError: If no config source could be loaded
        """
        self.config_source = self._load_config(kubeconfig_path)
        logger.debug(f"Using Kubernetes config from {self.config_source}")

        self.core_v1 = client.CoreV1Api()
        self.version_api = client.VersionApi()

    @staticmethod
    def _load_config(kubeconfig_path: Optional[str]) -> str:
        """Load the first working config source and return its name."""
        if kubeconfig_path:
            sources = [(
                f"kubeconfig {kubeconfig_path}",
                lambda: config.load_kube_config(config_file=kubeconfig_path),
            )]
        else:
            sources = [
                ("in-cluster service account", lambda: config.load_incluster_config()),
                ("default kubeconfig", lambda: config.load_kube_config()),
            ]

        failures = []
        for source, load in sources:
            try:
                load()
                return source
            except Exception as e:
                logger.debug(f"Kubernetes config from {source} unavailable: {e}")
                failures.append(f"{source}: {e}")

        raise HealthCheckError(f"Failed to load Kubernetes config ({'; '.join(failures)})")

    def check_api_access(self) -> None:
        """Make a cheap authenticated call."""
        try:
            self.core_v1.list_namespace(limit=1)
        except ApiException as e:
            raise HealthCheckError(f"Kubernetes API error: {e.reason}")

    def get_version(self) -> str:
        """Server git version, e.g. "v1.10.3"."""
        try:
            return self.version_api.get_code().git_version
        except ApiException as e:
            raise HealthCheckError(f"Kubernetes API error: {e.reason}")

    def namespace_exists(self, namespace: str) -> bool:
        try:
            self.core_v1.read_namespace(name=namespace)
            return True
        except ApiException as e:
            if e.status == 404:
                return False
            raise HealthCheckError(f"Kubernetes API error: {e.reason}")

    def get_pods(self, namespace: str = "") -> List[Pod]:
        """
        List pods as snapshots.

        Args:
            namespace: Kubernetes namespace, "" for all namespaces
        """
        return [Pod.from_k8s(pod) for pod in self._list_pods(namespace)]

    def get_injected_pods(self, namespace: str = "") -> List[Pod]:
        """Pods whose spec carries a proxy container."""
        return [
            Pod.from_k8s(pod) for pod in self._list_pods(namespace)
            if _has_proxy(pod)
        ]

    def _list_pods(self, namespace: str):
        try:
            if namespace:
                pods = self.core_v1.list_namespaced_pod(namespace=namespace)
            else:
                pods = self.core_v1.list_pod_for_all_namespaces()
        except ApiException as e:
            raise HealthCheckError(f"Kubernetes API error: {e.reason}")

        logger.debug(f"Listed {len(pods.items)} pods in namespace '{namespace or 'all'}'")
        return pods.items


def _has_proxy(pod) -> bool:
    if not pod.spec or not pod.spec.containers:
        return False
    return any(c.name == settings.PROXY_CONTAINER_NAME for c in pod.spec.containers)
