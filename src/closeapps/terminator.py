"""Termination engine for closeapps."""

import logging
import signal
import sys
import time
from collections.abc import Callable, Collection, Iterable, Sequence
from typing import TextIO, TypeVar

from closeapps.bridge import AppBridge
from closeapps.config import Settings
from closeapps.models import RunConfig, RunResult, TerminationMode

logger = logging.getLogger(__name__)

T = TypeVar("T")


def filter_targets(names: Iterable[str], exclusions: Collection[str]) -> tuple[str, ...]:
    """
    Drop excluded and empty names.

    Discovery order is kept and duplicates are not removed.
    """
    return tuple(name for name in names if name and name not in exclusions)


class Reporter:
    """Writes human-readable progress lines."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def line(self, text: str = "") -> None:
        """Write a single line."""
        # Resolve stdout lazily so capture in tests sees the output
        print(text, file=self._stream if self._stream is not None else sys.stdout)

    def _names(self, names: Sequence[str]) -> None:
        for name in names:
            self.line(f"  - {name}")

    def nothing_to_do(self) -> None:
        self.line("No GUI apps found to quit (after exclusions).")

    def targets(self, names: Sequence[str]) -> None:
        self.line(f"Apps targeted ({len(names)}):")
        self._names(names)

    def dry_run(self) -> None:
        self.line("--- Dry-run mode: no quitting/killing will be performed.")

    def quit_requested(self, name: str) -> None:
        self.line(f'Requesting quit -> "{name}"...')

    def all_quit(self) -> None:
        self.line("All requested apps quit successfully (or restarted automatically).")

    def still_running(self, names: Sequence[str]) -> None:
        self.line("Apps still running after polite quit:")
        self._names(names)

    def rerun_hint(self) -> None:
        self.line("Run again with --force (or -f) to force-kill remaining apps.")

    def force_started(self) -> None:
        self.line("Force-killing remaining apps...")

    def forcing(self, name: str) -> None:
        self.line(f"  force -> {name}")

    def force_finished(self) -> None:
        self.line("Force-kill attempts finished.")

    def attempt_failed(self, name: str, operation: str) -> None:
        self.line(f"  {operation} failed for {name}; skipped")

    def done(self) -> None:
        self.line("Done.")

    def immediate_started(self, shell_app: str) -> None:
        self.line(f"Immediate mode: sending SIGKILL to targeted apps (excluding {shell_app})...")

    def sigkill(self, name: str) -> None:
        self.line(f"  SIGKILL -> {name}")

    def immediate_finished(self, shell_app: str) -> None:
        self.line(f"Done (immediate kill + {shell_app} quit).")


class Terminator:
    """
    Discovers, filters and terminates foreground GUI apps.

    Runs strictly sequentially. Every bridge call except enumeration is
    best-effort: an exception from one target is logged, reported and treated as
    "no effect", and the run moves on to the next target.
    """

    def __init__(
        self,
        bridge: AppBridge,
        settings: Settings | None = None,
        reporter: Reporter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the Terminator.

        Args:
            bridge: OS capabilities used to list, quit and signal apps.
            settings: Exclusions and delays. Defaults to built-in settings.
            reporter: Where progress goes. Defaults to stdout.
            sleep: Blocking sleep used for the settling delays.
        """
        self._bridge = bridge
        self._settings = settings if settings is not None else Settings()
        self._reporter = reporter if reporter is not None else Reporter()
        self._sleep = sleep

    def run(self, config: RunConfig) -> RunResult:
        """
        Execute one run.

        Raises:
            EnumerationError: If the running apps cannot be listed.
        """
        mode = config.mode
        discovered = self._bridge.list_foreground_apps()
        targets = filter_targets(discovered, self._settings.exclusions(config.exclude_browsers))
        logger.debug("discovered %d apps, %d targeted", len(discovered), len(targets))

        if not targets:
            self._reporter.nothing_to_do()
            return RunResult(mode=mode, targets=targets)

        self._reporter.targets(targets)

        if mode is TerminationMode.PREVIEW:
            self._reporter.dry_run()
            return RunResult(mode=mode, targets=targets)

        if mode is TerminationMode.IMMEDIATE:
            killed = self._terminate_immediately(targets)
            return RunResult(mode=mode, targets=targets, escalated=killed)

        survivors = self._quit_gracefully(targets)
        escalated: tuple[str, ...] = ()
        if not survivors:
            self._reporter.all_quit()
        else:
            self._reporter.still_running(survivors)
            if mode is TerminationMode.GRACEFUL_THEN_FORCED:
                escalated = self._escalate(survivors)
            else:
                self._reporter.rerun_hint()

        self._reporter.done()
        return RunResult(mode=mode, targets=targets, survivors=survivors, escalated=escalated)

    def _attempt(
        self, name: str, operation: str, default: T, func: Callable[..., T], *args
    ) -> T:
        """Call a bridge operation for one target, reporting and swallowing any failure."""
        try:
            return func(*args)
        except Exception:
            logger.debug("%s for %s failed", operation, name, exc_info=True)
            self._reporter.attempt_failed(name, operation)
            return default

    def _is_running(self, name: str) -> bool:
        return self._attempt(name, "running check", False, self._bridge.is_running, name)

    def _request_quit(self, name: str) -> None:
        self._reporter.quit_requested(name)
        self._attempt(name, "quit request", False, self._bridge.request_quit, name)

    def _signal(self, name: str, sig: signal.Signals) -> None:
        self._attempt(name, sig.name, False, self._bridge.signal_by_name, name, sig)

    def _hard_kill(self, name: str) -> None:
        """SIGKILL every pid resolved for the name, or kill by name if none resolve."""
        pids = self._attempt(name, "pid lookup", [], self._bridge.resolve_pids, name)
        if pids:
            self._attempt(name, "SIGKILL", False, self._bridge.kill_pids, pids, signal.SIGKILL)
        else:
            self._signal(name, signal.SIGKILL)

    def _quit_gracefully(self, targets: Sequence[str]) -> tuple[str, ...]:
        """Ask every target to quit, wait, and return those still running."""
        for name in targets:
            self._request_quit(name)
            # Spacing keeps System Events from being flooded
            self._sleep(self._settings.quit_delay)

        self._sleep(self._settings.settle_delay)
        return tuple(name for name in targets if self._is_running(name))

    def _escalate(self, survivors: Sequence[str]) -> tuple[str, ...]:
        """SIGTERM each survivor, then SIGKILL the ones that outlive it."""
        self._reporter.force_started()
        escalated: list[str] = []
        for name in survivors:
            self._reporter.forcing(name)
            self._signal(name, signal.SIGTERM)
            self._sleep(self._settings.escalate_delay)
            if self._is_running(name):
                escalated.append(name)
                self._hard_kill(name)
        self._reporter.force_finished()
        return tuple(escalated)

    def _terminate_immediately(self, targets: Sequence[str]) -> tuple[str, ...]:
        """SIGKILL every target except the shell app, which is asked to quit."""
        shell_app = self._settings.shell_app
        self._reporter.immediate_started(shell_app)

        killed: list[str] = []
        for name in targets:
            if name == shell_app:
                continue
            self._reporter.sigkill(name)
            self._hard_kill(name)
            killed.append(name)

        for name in targets:
            if name == shell_app:
                self._request_quit(name)

        self._reporter.immediate_finished(shell_app)
        return tuple(killed)
