"""
Health Check Data Models

Defines check descriptors, check results and the read-only pod views
the validators work on.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .. import config


class CheckStatus(Enum):
    """Status of a remote subsystem check."""
    OK = "OK"
    FAIL = "FAIL"


class PodPhase:
    """Kubernetes pod phases."""
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


@dataclass
class SubsystemResult:
    """One result reported by the control plane self-check."""
    subsystem_name: str
    check_description: str
    status: CheckStatus
    friendly_message_to_user: str = ""

    @property
    def ok(self) -> bool:
        return self.status == CheckStatus.OK

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubsystemResult":
        return cls(
            subsystem_name=data.get("subsystemName", ""),
            check_description=data.get("checkDescription", ""),
            status=CheckStatus(data.get("status", CheckStatus.FAIL.value)),
            friendly_message_to_user=data.get("friendlyMessageToUser", ""),
        )


@dataclass
class SelfCheckResponse:
    """Response of the control plane self-check call."""
    results: List[SubsystemResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelfCheckResponse":
        return cls(
            results=[SubsystemResult.from_dict(r) for r in data.get("results", [])]
        )


@dataclass
class Checker:
    """
    Description of a single check.

    Attributes:
        category: Group label, shared by related checks
        description: Human readable label for this check
        fatal: Stop the run if this check fails
        retry: Re-run a failing check until it passes
        check: Local check, raises on failure
        check_rpc: Remote self-check, expands into one result per subsystem
    """
    category: str
    description: str
    fatal: bool = False
    retry: bool = False
    check: Optional[Callable[[], None]] = None
    check_rpc: Optional[Callable[[], SelfCheckResponse]] = None


@dataclass
class CheckResult:
    """
    Outcome of one executed check, handed to the observer.

    Attributes:
        category: Checker category, with "[subsystem]" appended for RPC results
        description: Checker or subsystem description
        err: The failure, None on success
        retry: True if the check failed and will run again
    """
    category: str
    description: str
    err: Optional[Exception] = None
    retry: bool = False

    @property
    def success(self) -> bool:
        return self.err is None


# ============ Pod Snapshots ============

@dataclass
class ContainerStatus:
    """Container readiness"""
    name: str
    ready: bool = False


@dataclass
class Pod:
    """Read-only view of a Kubernetes pod"""
    name: str
    namespace: str = ""
    phase: str = PodPhase.UNKNOWN
    container_statuses: List[ContainerStatus] = field(default_factory=list)

    @property
    def component(self) -> str:
        """Leading hyphen-delimited token of the pod name."""
        return self.name.split("-", 1)[0]

    @property
    def is_running(self) -> bool:
        return self.phase == PodPhase.RUNNING

    @property
    def identifier(self) -> str:
        return f"{self.namespace}/{self.name}"

    def container(self, name: str) -> Optional[ContainerStatus]:
        for status in self.container_statuses:
            if status.name == name:
                return status
        return None

    @classmethod
    def from_k8s(cls, pod: Any) -> "Pod":
        """Build from a kubernetes client V1Pod."""
        statuses = []
        if pod.status and pod.status.container_statuses:
            for cs in pod.status.container_statuses:
                statuses.append(ContainerStatus(name=cs.name, ready=bool(cs.ready)))

        return cls(
            name=pod.metadata.name,
            namespace=pod.metadata.namespace or "",
            phase=(pod.status.phase if pod.status else None) or PodPhase.UNKNOWN,
            container_statuses=statuses,
        )


@dataclass
class ReportedPod:
    """Pod as reported by the control plane's metrics backend"""
    name: str  # namespace/name
    added: bool = False
    proxy_version: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportedPod":
        return cls(
            name=data.get("name", ""),
            added=bool(data.get("added", False)),
            proxy_version=data.get("proxyVersion", ""),
        )


# ============ Options ============

@dataclass
class HealthCheckOptions:
    """
    Options for the built-in check list.

    Attributes:
        control_plane_namespace: Namespace the control plane runs in
        data_plane_namespace: Namespace to check proxies in, "" for all
        check_data_plane: Whether to run the data plane checks
        kubeconfig_path: Explicit kubeconfig, None for in-cluster/default
        api_addr: Control plane public API address
        version_check_url: Endpoint reporting the latest release
        should_retry: Wait for rollout-style checks to pass
        should_check_kube_version: Check the minimum Kubernetes version
        should_check_version: Check cli/control plane/proxy versions
        cli_version: Mesh CLI version to compare against the latest release, "" to skip
        retry_window: Seconds between retries
    """
    control_plane_namespace: str = config.CONTROL_PLANE_NAMESPACE
    data_plane_namespace: str = ""
    check_data_plane: bool = False
    kubeconfig_path: Optional[str] = None
    api_addr: str = config.PUBLIC_API_ADDR
    version_check_url: str = config.VERSION_CHECK_URL
    should_retry: bool = False
    should_check_kube_version: bool = True
    should_check_version: bool = True
    cli_version: str = config.CLI_VERSION
    retry_window: float = config.RETRY_WINDOW_SECONDS
