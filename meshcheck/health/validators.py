"""
Pod and version validators.

Pure functions used as the body of individual checks. Each raises
HealthCheckError describing the first problem found.
"""

import re
from typing import Iterable, List, Sequence, Tuple

from .. import config
from ..errors import HealthCheckError
from .models import Pod, ReportedPod


def validate_control_plane_pods(
    pods: Sequence[Pod],
    components: Sequence[str] = config.CONTROL_PLANE_COMPONENTS,
) -> None:
    """
    Check every control plane component has a running pod and every
    container is ready.

    Args:
        pods: Pods in the control plane namespace
        components: Expected component names, matched against Pod.component
    """
    running = {pod.component for pod in pods if pod.is_running}

    for component in components:
        if component not in running:
            raise HealthCheckError(f'No running pods for "{component}"')

    for pod in pods:
        for container in pod.container_statuses:
            if not container.ready:
                raise HealthCheckError(
                    f'The "{pod.component}" pod\'s "{container.name}" container is not ready'
                )


def validate_data_plane_pods(pods: Sequence[Pod], namespace: str) -> None:
    """
    Check every data plane pod is running with a ready proxy container.

    Args:
        pods: Injected pods
        namespace: Namespace the pods were listed from ("" for all)
    """
    proxy = config.PROXY_CONTAINER_NAME

    if not pods:
        where = f'the "{namespace}" namespace' if namespace else "any namespace"
        raise HealthCheckError(f'No "{proxy}" containers found in {where}')

    for pod in pods:
        ns = pod.namespace or namespace

        if not pod.is_running:
            raise HealthCheckError(
                f'The "{pod.name}" pod in the "{ns}" namespace is not running'
            )

        container = pod.container(proxy)
        if container is None or not container.ready:
            raise HealthCheckError(
                f'The "{proxy}" container in the "{pod.name}" pod in the "{ns}" namespace is not ready'
            )


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


def validate_data_plane_pod_reporting(
    k8s_pods: Sequence[Pod],
    reported_pods: Sequence[ReportedPod],
) -> None:
    """
    Compare the pods Kubernetes knows about with the pods the metrics
    backend reports.

    Args:
        k8s_pods: Data plane pods from Kubernetes
        reported_pods: Pods from the control plane's ListPods call
    """
    k8s_ids = _unique(pod.identifier for pod in k8s_pods)
    reported_ids = _unique(pod.name for pod in reported_pods if pod.added)

    k8s_set = set(k8s_ids)
    reported_set = set(reported_ids)

    message = ""
    for pod_id in k8s_ids:
        if pod_id not in reported_set:
            message += f"Data plane metrics not found for {pod_id}. "
    for pod_id in reported_ids:
        if pod_id not in k8s_set:
            message += f"Found data plane metrics for {pod_id}, but not found in Kubernetes."

    if message:
        raise HealthCheckError(message)


def validate_version(actual: str, expected: str, component: str) -> None:
    if actual != expected:
        raise HealthCheckError(
            f"{component} is running version {actual} but the latest version is {expected}"
        )


def validate_data_plane_proxy_versions(
    reported_pods: Sequence[ReportedPod],
    latest_version: str,
) -> None:
    """Check every reported proxy runs the latest version."""
    for pod in reported_pods:
        if pod.added:
            validate_version(pod.proxy_version, latest_version, pod.name)


_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?")


def parse_kube_version(git_version: str) -> Tuple[int, int, int]:
    """Parse "v1.10.3-eks-2d3c1" style versions."""
    match = _VERSION_RE.match(git_version.strip())
    if not match:
        raise HealthCheckError(f"Unable to parse Kubernetes version [{git_version}]")
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def _format_version(version: Tuple[int, int, int]) -> str:
    return ".".join(str(v) for v in version)


def validate_kube_version(
    git_version: str,
    minimum: Tuple[int, int, int] = config.MINIMUM_KUBERNETES_VERSION,
) -> None:
    actual = parse_kube_version(git_version)
    if actual < tuple(minimum):
        raise HealthCheckError(
            f"Kubernetes is on version [{_format_version(actual)}], "
            f"but version [{_format_version(minimum)}] or more recent is required"
        )
