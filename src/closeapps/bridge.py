"""Operating-system bridge for closeapps.

Enumeration and graceful quit go through AppleScript (``osascript``) and
System Events; pid lookup and signals go through psutil, with ``killall``
for name-based signals.
"""

import logging
import os
import signal
import subprocess
import sys
from collections.abc import Sequence
from typing import Protocol

import psutil

from closeapps.config import DEFAULT_OSASCRIPT_TIMEOUT

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORM = "darwin"

FOREGROUND_APPS_SCRIPT = (
    'tell application "System Events" to get name of '
    "(application processes whose background only is false)"
)


class CloseAppsError(Exception):
    """Base class for fatal closeapps errors."""


class PlatformUnsupportedError(CloseAppsError):
    """Raised when not running on macOS."""


class EnumerationError(CloseAppsError):
    """Raised when the running GUI apps cannot be listed."""


class AppBridge(Protocol):
    """Capabilities the termination engine needs from the OS."""

    def list_foreground_apps(self) -> list[str]: ...

    def request_quit(self, name: str) -> bool: ...

    def is_running(self, name: str) -> bool: ...

    def resolve_pids(self, name: str) -> list[int]: ...

    def kill_pids(self, pids: Sequence[int], sig: signal.Signals) -> bool: ...

    def signal_by_name(self, name: str, sig: signal.Signals) -> bool: ...


def ensure_supported_platform(platform: str | None = None) -> None:
    """Raise PlatformUnsupportedError unless running on macOS."""
    if platform is None:
        platform = sys.platform
    if platform != SUPPORTED_PLATFORM:
        raise PlatformUnsupportedError("This script is for macOS only.")


def applescript_quote(value: str) -> str:
    """Quote a string as an AppleScript string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_app_list(raw: str) -> list[str]:
    """Split the comma-separated System Events reply into trimmed names."""
    return [name.strip() for name in raw.split(",") if name.strip()]


class MacOSBridge:
    """
    AppBridge implementation for macOS.

    Every mutating call is best-effort: failures are logged and reported
    as False, never raised. Only list_foreground_apps raises.
    """

    def __init__(self, osascript_timeout: float = DEFAULT_OSASCRIPT_TIMEOUT) -> None:
        """
        Initialize the MacOSBridge.

        Args:
            osascript_timeout: Seconds to wait for each osascript call.
        """
        self._timeout = osascript_timeout

    def _osascript(self, script: str) -> subprocess.CompletedProcess[str]:
        """Run a one-line AppleScript and return the completed process."""
        return subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=self._timeout,
            check=False,
        )

    def list_foreground_apps(self) -> list[str]:
        """Return the names of running non-background apps in system order."""
        try:
            result = self._osascript(FOREGROUND_APPS_SCRIPT)
        except (OSError, subprocess.SubprocessError) as e:
            raise EnumerationError(f"Could not list running apps: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or "").strip() or f"osascript exited {result.returncode}"
            raise EnumerationError(f"Could not list running apps: {detail}")

        return parse_app_list(result.stdout or "")

    def request_quit(self, name: str) -> bool:
        """Ask an app to quit through AppleScript."""
        script = f"tell application {applescript_quote(name)} to quit"
        try:
            result = self._osascript(script)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("quit request for %s failed: %s", name, e)
            return False
        if result.returncode != 0:
            logger.debug("quit request for %s failed: %s", name, (result.stderr or "").strip())
            return False
        return True

    def is_running(self, name: str) -> bool:
        """Check whether System Events still lists the app."""
        script = (
            'tell application "System Events" to '
            f"(exists application process {applescript_quote(name)})"
        )
        try:
            result = self._osascript(script)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("running check for %s failed: %s", name, e)
            return False
        return result.returncode == 0 and (result.stdout or "").strip() == "true"

    def resolve_pids(self, name: str) -> list[int]:
        """
        Find pids whose command line contains the app name.

        Matches like ``pgrep -f``: a substring match against the full
        command line, falling back to the process name. Our own pid is
        never returned. Handles NoSuchProcess and AccessDenied per process.
        """
        own_pid = os.getpid()
        pids: list[int] = []

        for proc in psutil.process_iter(attrs=["pid", "name", "cmdline"]):
            try:
                info = proc.info
                pid = info.get("pid")
                if pid is None or pid == own_pid:
                    continue

                # cmdline is None when access is denied
                cmdline = info.get("cmdline") or []
                command_line = " ".join(cmdline) if cmdline else (info.get("name") or "")
                if name in command_line:
                    pids.append(pid)

            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        return pids

    def kill_pids(self, pids: Sequence[int], sig: signal.Signals) -> bool:
        """Send a signal to every pid. Returns True only if all were signalled."""
        ok = True
        for pid in pids:
            try:
                psutil.Process(pid).send_signal(sig)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, OSError) as e:
                logger.debug("%s to pid %d failed: %s", sig.name, pid, e)
                ok = False
        return ok

    def signal_by_name(self, name: str, sig: signal.Signals) -> bool:
        """Signal every process with this exact name using killall."""
        try:
            result = subprocess.run(
                ["killall", f"-{sig.name.removeprefix('SIG')}", name],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("killall %s %s failed: %s", sig.name, name, e)
            return False
        if result.returncode != 0:
            logger.debug("killall %s %s failed: %s", sig.name, name, (result.stderr or "").strip())
            return False
        return True

