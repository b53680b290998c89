"""Static settings for closeapps, with environment overrides."""

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Terminals, multiplexers and remote shells, so the shell running us stays alive
BASE_EXCLUDES: frozenset[str] = frozenset(
    {
        "Terminal",
        "iTerm2",
        "iTerm",
        "Hyper",
        "Alacritty",
        "kitty",
        "WezTerm",
        "tmux",
        "Screen",
        "ssh",
    }
)

BROWSER_EXCLUDES: frozenset[str] = frozenset(
    {
        "Safari",
        "Safari Technology Preview",
        "Google Chrome",
        "Google Chrome Canary",
        "Firefox",
        "Brave Browser",
        "Microsoft Edge",
        "Chromium",
        "Opera",
        "Vivaldi",
        "Tor Browser",
    }
)

# Always asked to quit, never signalled
SHELL_APP = "Finder"

DEFAULT_QUIT_DELAY = 0.4
DEFAULT_SETTLE_DELAY = 0.8
DEFAULT_ESCALATE_DELAY = 0.3
DEFAULT_OSASCRIPT_TIMEOUT = 10.0


def env_float(env: Mapping[str, str], name: str, default: float) -> float:
    """Read a non-negative float from the environment, falling back to default."""
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s must be a number; using %s", name, default)
        return default
    if not math.isfinite(value):
        logger.warning("%s must be a finite number; using %s", name, default)
        return default
    if value < 0:
        logger.warning("%s must not be negative; using %s", name, default)
        return default
    return value


def env_names(env: Mapping[str, str], name: str) -> frozenset[str]:
    """Read a comma-separated list of app names from the environment."""
    raw = env.get(name, "")
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(slots=True, frozen=True)
class Settings:
    """Exclusions and timing used by a run."""

    base_excludes: frozenset[str] = BASE_EXCLUDES
    browser_excludes: frozenset[str] = BROWSER_EXCLUDES
    extra_excludes: frozenset[str] = field(default_factory=frozenset)
    shell_app: str = SHELL_APP
    quit_delay: float = DEFAULT_QUIT_DELAY  # Between quit requests
    settle_delay: float = DEFAULT_SETTLE_DELAY  # After all quit requests
    escalate_delay: float = DEFAULT_ESCALATE_DELAY  # Between SIGTERM and re-poll
    osascript_timeout: float = DEFAULT_OSASCRIPT_TIMEOUT

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env: Mapping to read from. Defaults to os.environ.
        """
        if env is None:
            env = os.environ
        return cls(
            extra_excludes=env_names(env, "CLOSEAPPS_EXTRA_EXCLUDE"),
            quit_delay=env_float(env, "CLOSEAPPS_QUIT_DELAY", DEFAULT_QUIT_DELAY),
            settle_delay=env_float(env, "CLOSEAPPS_SETTLE_DELAY", DEFAULT_SETTLE_DELAY),
            escalate_delay=env_float(env, "CLOSEAPPS_ESCALATE_DELAY", DEFAULT_ESCALATE_DELAY),
        )

    def exclusions(self, exclude_browsers: bool = False) -> frozenset[str]:
        """Return the exclusion set for a run."""
        names = self.base_excludes | self.extra_excludes
        if exclude_browsers:
            names |= self.browser_excludes
        return names
