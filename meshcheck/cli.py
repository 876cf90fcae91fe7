"""
meshcheck - CLI Interface

Command-line interface for running the health checks.
"""

import logging

import click
from rich.console import Console
from rich.markup import escape

from . import __version__, config
from .health import CheckResult, HealthChecker, HealthCheckOptions


console = Console()

OK_MARK = "[green]√[/green]"
FAIL_MARK = "[red]×[/red]"
RETRY_MARK = "[yellow]…[/yellow]"


class ResultPrinter:
    """Observer printing each result under its category header."""

    def __init__(self, out: Console):
        self.out = out
        self.last_category = None

    def __call__(self, result: CheckResult) -> None:
        category = result.category.split("[", 1)[0]
        if category != self.last_category:
            if self.last_category is not None:
                self.out.print()
            self.out.print(f"[bold]{category}[/bold]")
            self.out.print("-" * len(category))
            self.last_category = category

        label = result.description
        if result.category != category:
            label = f"{result.category[len(category):]} {label}"
        label = escape(label)
        err = escape(str(result.err))

        if result.retry:
            self.out.print(f"{RETRY_MARK} {label} -- retrying: {err}")
        elif result.err is not None:
            self.out.print(f"{FAIL_MARK} {label}")
            self.out.print(f"    [red]{err}[/red]")
        else:
            self.out.print(f"{OK_MARK} {label}")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """meshcheck - service mesh health checks for Kubernetes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--namespace", "-n", default=config.CONTROL_PLANE_NAMESPACE,
              help="Control plane namespace")
@click.option("--proxy", is_flag=True, help="Also check the data plane proxies")
@click.option("--data-plane-namespace", default="",
              help="Namespace to check proxies in (default: all namespaces)")
@click.option("--kubeconfig", default=None, help="Path to a kubeconfig file")
@click.option("--api-addr", default=config.PUBLIC_API_ADDR, help="Control plane API address")
@click.option("--wait/--no-wait", default=False, help="Retry checks that are expected to settle")
@click.option("--retry-window", type=click.FloatRange(min=0), default=config.RETRY_WINDOW_SECONDS,
              help="Seconds between retries")
@click.option("--cli-version", default=config.CLI_VERSION,
              help="Installed mesh CLI version to compare against the latest release")
@click.option("--skip-version-check", is_flag=True, help="Do not compare versions")
def check(
    namespace: str,
    proxy: bool,
    data_plane_namespace: str,
    kubeconfig: str,
    api_addr: str,
    wait: bool,
    retry_window: float,
    cli_version: str,
    skip_version_check: bool,
):
    """Check the health of the control plane and, optionally, the data plane."""
    options = HealthCheckOptions(
        control_plane_namespace=namespace,
        data_plane_namespace=data_plane_namespace,
        check_data_plane=proxy,
        kubeconfig_path=kubeconfig,
        api_addr=api_addr,
        should_retry=wait,
        should_check_version=not skip_version_check,
        cli_version=cli_version,
        retry_window=retry_window,
    )

    hc = HealthChecker.for_options(options)
    success = hc.run_checks(ResultPrinter(console))

    console.print()
    if success:
        console.print(f"Status check results are {OK_MARK}")
    else:
        console.print(f"Status check results are {FAIL_MARK}")
        raise SystemExit(1)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
