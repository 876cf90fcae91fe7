"""
Tests for meshcheck/health/validators.py
"""

import pytest

from meshcheck.health import (
    ContainerStatus, HealthCheckError, Pod, PodPhase, ReportedPod,
    validate_control_plane_pods,
    validate_data_plane_pod_reporting,
    validate_data_plane_pods,
)
from meshcheck.health.validators import (
    parse_kube_version,
    validate_data_plane_proxy_versions,
    validate_kube_version,
    validate_version,
)


def control_plane_pod(name, phase, ready):
    return Pod(
        name=name,
        namespace="linkerd",
        phase=phase,
        container_statuses=[ContainerStatus(name=name.split("-")[0], ready=ready)],
    )


def data_plane_pod(name, phase, ready):
    return Pod(
        name=name,
        namespace="emojivoto",
        phase=phase,
        container_statuses=[ContainerStatus(name="linkerd-proxy", ready=ready)],
    )


def error_message(func, *args):
    with pytest.raises(HealthCheckError) as excinfo:
        func(*args)
    return str(excinfo.value)


class TestValidateControlPlanePods:
    """Test validate_control_plane_pods()."""

    def test_error_if_not_all_pods_are_running(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True),
            control_plane_pod("grafana-5b7d796646-hh46d", PodPhase.RUNNING, True),
            control_plane_pod("prometheus-74d6879cd6-bbdk6", PodPhase.FAILED, False),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_control_plane_pods, pods) == \
            'No running pods for "prometheus"'

    def test_error_if_component_missing(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True),
            control_plane_pod("prometheus-74d6879cd6-bbdk6", PodPhase.RUNNING, True),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_control_plane_pods, pods) == \
            'No running pods for "grafana"'

    def test_error_if_not_all_containers_are_ready(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True),
            control_plane_pod("grafana-5b7d796646-hh46d", PodPhase.RUNNING, False),
            control_plane_pod("prometheus-74d6879cd6-bbdk6", PodPhase.RUNNING, True),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_control_plane_pods, pods) == \
            'The "grafana" pod\'s "grafana" container is not ready'

    def test_missing_component_reported_before_readiness(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, False),
            control_plane_pod("grafana-5b7d796646-hh46d", PodPhase.RUNNING, True),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_control_plane_pods, pods) == \
            'No running pods for "prometheus"'

    def test_sidecar_container_not_ready(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True),
            control_plane_pod("grafana-5b7d796646-hh46d", PodPhase.RUNNING, True),
            control_plane_pod("prometheus-74d6879cd6-bbdk6", PodPhase.RUNNING, True),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]
        pods[0].container_statuses.append(ContainerStatus(name="linkerd-proxy", ready=False))

        assert error_message(validate_control_plane_pods, pods) == \
            'The "controller" pod\'s "linkerd-proxy" container is not ready'

    def test_nil_if_all_pods_running_and_ready(self):
        pods = [
            control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True),
            control_plane_pod("grafana-5b7d796646-hh46d", PodPhase.RUNNING, True),
            control_plane_pod("prometheus-74d6879cd6-bbdk6", PodPhase.RUNNING, True),
            control_plane_pod("web-98c9ddbcd-7b5lh", PodPhase.RUNNING, True),
        ]

        assert validate_control_plane_pods(pods) is None

    def test_custom_components(self):
        pods = [control_plane_pod("destination-6f78cbd47-bc557", PodPhase.RUNNING, True)]

        assert validate_control_plane_pods(pods, components=["destination"]) is None
        assert error_message(validate_control_plane_pods, pods, ["identity"]) == \
            'No running pods for "identity"'

    def test_idempotent(self):
        pods = [control_plane_pod("controller-6f78cbd47-bc557", PodPhase.RUNNING, True)]

        first = error_message(validate_control_plane_pods, pods)
        second = error_message(validate_control_plane_pods, pods)

        assert first == second == 'No running pods for "grafana"'


class TestValidateDataPlanePods:
    """Test validate_data_plane_pods()."""

    def test_error_if_no_injected_pods(self):
        assert error_message(validate_data_plane_pods, [], "emojivoto") == \
            'No "linkerd-proxy" containers found in the "emojivoto" namespace'

    def test_error_if_no_injected_pods_in_any_namespace(self):
        assert error_message(validate_data_plane_pods, [], "") == \
            'No "linkerd-proxy" containers found in any namespace'

    def test_error_if_not_all_pods_are_running(self):
        pods = [
            data_plane_pod("emoji-d9c7866bb-7v74n", PodPhase.RUNNING, True),
            data_plane_pod("vote-bot-644b8cb6b4-g8nlr", PodPhase.RUNNING, True),
            data_plane_pod("voting-65b9fffd77-rlwsd", PodPhase.FAILED, False),
            data_plane_pod("web-6cfbccc48-5g8px", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_data_plane_pods, pods, "emojivoto") == \
            'The "voting-65b9fffd77-rlwsd" pod in the "emojivoto" namespace is not running'

    def test_error_if_proxy_container_not_ready(self):
        pods = [
            data_plane_pod("emoji-d9c7866bb-7v74n", PodPhase.RUNNING, True),
            data_plane_pod("vote-bot-644b8cb6b4-g8nlr", PodPhase.RUNNING, False),
            data_plane_pod("voting-65b9fffd77-rlwsd", PodPhase.RUNNING, True),
            data_plane_pod("web-6cfbccc48-5g8px", PodPhase.RUNNING, True),
        ]

        assert error_message(validate_data_plane_pods, pods, "emojivoto") == \
            'The "linkerd-proxy" container in the "vote-bot-644b8cb6b4-g8nlr" pod ' \
            'in the "emojivoto" namespace is not ready'

    def test_error_if_proxy_container_missing(self):
        pods = [Pod(name="web-6cfbccc48-5g8px", namespace="emojivoto", phase=PodPhase.RUNNING)]

        assert error_message(validate_data_plane_pods, pods, "emojivoto") == \
            'The "linkerd-proxy" container in the "web-6cfbccc48-5g8px" pod ' \
            'in the "emojivoto" namespace is not ready'

    def test_first_violation_wins(self):
        pods = [
            data_plane_pod("emoji-d9c7866bb-7v74n", PodPhase.RUNNING, False),
            data_plane_pod("voting-65b9fffd77-rlwsd", PodPhase.PENDING, False),
        ]

        assert "emoji-d9c7866bb-7v74n" in error_message(validate_data_plane_pods, pods, "emojivoto")

    def test_uses_pod_namespace_when_listing_all_namespaces(self):
        pods = [data_plane_pod("voting-65b9fffd77-rlwsd", PodPhase.PENDING, True)]

        assert error_message(validate_data_plane_pods, pods, "") == \
            'The "voting-65b9fffd77-rlwsd" pod in the "emojivoto" namespace is not running'

    def test_nil_if_all_pods_running_and_ready(self):
        pods = [
            data_plane_pod("emoji-d9c7866bb-7v74n", PodPhase.RUNNING, True),
            data_plane_pod("vote-bot-644b8cb6b4-g8nlr", PodPhase.RUNNING, True),
            data_plane_pod("voting-65b9fffd77-rlwsd", PodPhase.RUNNING, True),
            data_plane_pod("web-6cfbccc48-5g8px", PodPhase.RUNNING, True),
        ]

        assert validate_data_plane_pods(pods, "emojivoto") is None


class TestValidateDataPlanePodReporting:
    """Test validate_data_plane_pod_reporting()."""

    def test_success_if_no_pods_present(self):
        assert validate_data_plane_pod_reporting([], []) is None

    def test_success_if_pods_match(self):
        k8s_pods = [Pod(name="test1", namespace="ns1"), Pod(name="test2", namespace="ns2")]
        reported = [ReportedPod("ns1/test1", added=True), ReportedPod("ns2/test2", added=True)]

        assert validate_data_plane_pod_reporting(k8s_pods, reported) is None

    def test_error_if_pods_found_in_k8s_but_not_reported(self):
        k8s_pods = [Pod(name="test1", namespace="ns1"), Pod(name="test2", namespace="ns2")]
        reported = [ReportedPod("ns1/test1", added=True)]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, reported) == \
            "Data plane metrics not found for ns2/test2. "

    def test_error_if_pods_reported_but_not_in_k8s(self):
        k8s_pods = [Pod(name="test1", namespace="ns1")]
        reported = [ReportedPod("ns1/test1", added=True), ReportedPod("ns2/test2", added=True)]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, reported) == \
            "Found data plane metrics for ns2/test2, but not found in Kubernetes."

    def test_error_if_pods_completely_different(self):
        k8s_pods = [Pod(name="test1", namespace="ns1")]
        reported = [ReportedPod("ns2/test2", added=True)]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, reported) == \
            "Data plane metrics not found for ns1/test1. " \
            "Found data plane metrics for ns2/test2, but not found in Kubernetes."

    def test_pods_not_added_are_ignored(self):
        k8s_pods = [Pod(name="test1", namespace="ns1")]
        reported = [ReportedPod("ns1/test1", added=False)]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, reported) == \
            "Data plane metrics not found for ns1/test1. "

    def test_entries_follow_input_order(self):
        k8s_pods = [Pod(name="b", namespace="ns"), Pod(name="a", namespace="ns")]
        reported = [ReportedPod("ns/d", added=True), ReportedPod("ns/c", added=True)]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, reported) == (
            "Data plane metrics not found for ns/b. "
            "Data plane metrics not found for ns/a. "
            "Found data plane metrics for ns/d, but not found in Kubernetes."
            "Found data plane metrics for ns/c, but not found in Kubernetes."
        )

    def test_duplicate_identifiers_reported_once(self):
        k8s_pods = [Pod(name="a", namespace="ns"), Pod(name="a", namespace="ns")]

        assert error_message(validate_data_plane_pod_reporting, k8s_pods, []) == \
            "Data plane metrics not found for ns/a. "


class TestVersionValidators:
    """Test version validation helpers."""

    def test_validate_version_matches(self):
        assert validate_version("v18.7.1", "v18.7.1", "cli") is None

    def test_validate_version_outdated(self):
        assert error_message(validate_version, "v18.7.0", "v18.7.1", "cli") == \
            "cli is running version v18.7.0 but the latest version is v18.7.1"

    def test_proxy_versions(self):
        reported = [
            ReportedPod("ns/a", added=True, proxy_version="v18.7.1"),
            ReportedPod("ns/b", added=False, proxy_version="v18.6.0"),
            ReportedPod("ns/c", added=True, proxy_version="v18.7.0"),
        ]

        assert error_message(validate_data_plane_proxy_versions, reported, "v18.7.1") == \
            "ns/c is running version v18.7.0 but the latest version is v18.7.1"

    @pytest.mark.parametrize("git_version,expected", [
        ("v1.10.3", (1, 10, 3)),
        ("v1.11.5-eks-6bad6d", (1, 11, 5)),
        ("1.9", (1, 9, 0)),
    ])
    def test_parse_kube_version(self, git_version, expected):
        assert parse_kube_version(git_version) == expected

    def test_parse_kube_version_invalid(self):
        assert error_message(parse_kube_version, "latest") == \
            "Unable to parse Kubernetes version [latest]"

    def test_kube_version_too_old(self):
        assert error_message(validate_kube_version, "v1.8.4") == \
            "Kubernetes is on version [1.8.4], but version [1.9.0] or more recent is required"

    def test_kube_version_recent_enough(self):
        assert validate_kube_version("v1.9.0") is None
        assert validate_kube_version("v1.12.1") is None
