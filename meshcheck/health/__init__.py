"""
Health Check Module

Runs an ordered list of checks against a Kubernetes cluster and a
service mesh control plane, streaming each result to an observer.
"""

from ..errors import HealthCheckError
from .models import (
    Checker, CheckResult, CheckStatus, ContainerStatus, HealthCheckOptions,
    Pod, PodPhase, ReportedPod, SelfCheckResponse, SubsystemResult,
)
from .checker import HealthChecker
from .checks import ClusterChecks
from .validators import (
    validate_control_plane_pods,
    validate_data_plane_pod_reporting,
    validate_data_plane_pods,
)

__all__ = [
    "HealthCheckError",
    "Checker",
    "CheckResult",
    "CheckStatus",
    "ContainerStatus",
    "HealthCheckOptions",
    "Pod",
    "PodPhase",
    "ReportedPod",
    "SelfCheckResponse",
    "SubsystemResult",
    "HealthChecker",
    "ClusterChecks",
    "validate_control_plane_pods",
    "validate_data_plane_pod_reporting",
    "validate_data_plane_pods",
]
