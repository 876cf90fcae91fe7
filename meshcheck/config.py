"""
meshcheck Configuration

Centralized configuration for the health checker.
"""

import os

# =============================================================================
# Control Plane Configuration
# =============================================================================

CONTROL_PLANE_NAMESPACE = os.environ.get("LINKERD_NAMESPACE", "linkerd")

# Components derived from the leading token of each control plane pod name
CONTROL_PLANE_COMPONENTS = ("controller", "grafana", "prometheus", "web")

PROXY_CONTAINER_NAME = "linkerd-proxy"


# =============================================================================
# API Configuration
# =============================================================================

PUBLIC_API_ADDR = os.environ.get("LINKERD_API_ADDR", "http://localhost:8085")
PUBLIC_API_PREFIX = "/api/v1/"

VERSION_CHECK_URL = os.environ.get(
    "LINKERD_VERSION_CHECK_URL", "https://versioncheck.linkerd.io/version.json"
)

# Installed mesh CLI version; "cli is up-to-date" is skipped when empty
CLI_VERSION = os.environ.get("LINKERD_CLI_VERSION", "")

HTTP_TIMEOUT_SECONDS = int(os.environ.get("HEALTHCHECK_HTTP_TIMEOUT", "30"))


# =============================================================================
# Check Behaviour
# =============================================================================

# Seconds to wait between attempts of a retrying check
RETRY_WINDOW_SECONDS = float(os.environ.get("HEALTHCHECK_RETRY_WINDOW", "5"))

MINIMUM_KUBERNETES_VERSION = (1, 9, 0)


if __name__ == "__main__":
    print("meshcheck Configuration")
    print("=" * 50)
    print(f"Control plane namespace: {CONTROL_PLANE_NAMESPACE}")
    print(f"Public API: {PUBLIC_API_ADDR}")
    print(f"Version check: {VERSION_CHECK_URL}")
    print(f"Retry window: {RETRY_WINDOW_SECONDS}s")
