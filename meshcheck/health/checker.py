"""
Health Checker - ordered check runner

Runs a list of checks in order, streaming every result to an observer
and computing a single pass/fail verdict.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

from .. import config
from ..errors import HealthCheckError
from .checks import ClusterChecks
from .models import Checker, CheckResult, HealthCheckOptions

logger = logging.getLogger(__name__)

Observer = Callable[[CheckResult], None]


class HealthChecker:
    """
    Sequential health check runner.

    Checks run one at a time in the order given. A failing check with
    retry set is re-run every retry_window seconds until it passes. A
    terminal failure of a fatal check stops the run.

    Example:
        hc = HealthChecker([
            Checker("kubernetes-api", "can query the Kubernetes API",
                    fatal=True, check=kube.check_api_access),
        ])

        ok = hc.run_checks(lambda result: print(result.description, result.err))
    """

    def __init__(
        self,
        checkers: Optional[Iterable[Checker]] = None,
        retry_window: float = config.RETRY_WINDOW_SECONDS,
    ):
        """
        Initialize the runner.

        Args:
            checkers: Checks to run, in order
            retry_window: Seconds to sleep between attempts of a retrying check

        Raises:
            ValueError: If retry_window is negative
        """
        if retry_window < 0:
            raise ValueError(f"retry_window must be non-negative, got {retry_window}")
        self.checkers: List[Checker] = list(checkers or [])
        self.retry_window = retry_window

    @classmethod
    def for_options(cls, options: HealthCheckOptions, **factories) -> "HealthChecker":
        """Build a runner for the built-in check list."""
        checks = ClusterChecks(options, **factories)
        return cls(checks.checkers(), retry_window=options.retry_window)

    def add_checker(self, checker: Checker) -> None:
        self.checkers.append(checker)

    def add_checkers(self, checkers: Iterable[Checker]) -> None:
        self.checkers.extend(checkers)

    def run_checks(self, observer: Observer) -> bool:
        """
        Run every check, notifying observer of each result.

        Args:
            observer: Called synchronously once per result

        Returns:
            True if every executed check passed
        """
        success = True

        for checker in self.checkers:
            logger.debug(f"Running check {checker.category}: {checker.description}")

            if checker.check_rpc is not None:
                if not self._run_check_rpc(checker, observer):
                    success = False
                continue

            if not self._run_check(checker, observer):
                success = False
                if checker.fatal:
                    logger.warning(
                        f"Fatal check failed, skipping remaining checks: "
                        f"{checker.category}: {checker.description}"
                    )
                    break

        logger.info(f"Health checks finished, success={success}")
        return success

    def _run_check(self, checker: Checker, observer: Observer) -> bool:
        """Run a local check, retrying until it passes if requested."""
        while True:
            err = None
            if checker.check is not None:
                try:
                    checker.check()
                except Exception as e:
                    err = e

            if err is not None and checker.retry:
                logger.info(
                    f"Check {checker.category}: {checker.description} failed, "
                    f"retrying in {self.retry_window}s: {err}"
                )
                observer(CheckResult(
                    category=checker.category,
                    description=checker.description,
                    err=err,
                    retry=True,
                ))
                time.sleep(self.retry_window)
                continue

            observer(CheckResult(
                category=checker.category,
                description=checker.description,
                err=err,
            ))
            return err is None

    def _run_check_rpc(self, checker: Checker, observer: Observer) -> bool:
        """Run a remote self-check and report one result per subsystem."""
        try:
            response = checker.check_rpc()
        except Exception as e:
            observer(CheckResult(
                category=checker.category,
                description=checker.description,
                err=e,
            ))
            return False

        observer(CheckResult(
            category=checker.category,
            description=checker.description,
        ))

        success = True
        for result in response.results:
            err = None
            if not result.ok:
                err = HealthCheckError(result.friendly_message_to_user)
                success = False

            observer(CheckResult(
                category=f"{checker.category}[{result.subsystem_name}]",
                description=result.check_description,
                err=err,
            ))

        return success
