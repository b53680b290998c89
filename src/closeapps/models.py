"""Data models for closeapps."""

from dataclasses import dataclass
from enum import Enum


class TerminationMode(Enum):
    """How targeted apps get terminated."""

    PREVIEW = "preview"
    GRACEFUL = "graceful"
    GRACEFUL_THEN_FORCED = "graceful-then-forced"
    IMMEDIATE = "immediate"


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Immutable run configuration built from the command line."""

    dry_run: bool = False
    force: bool = False
    immediate: bool = False
    exclude_browsers: bool = False

    def __post_init__(self) -> None:
        # Immediate always reports like a forced run
        if self.immediate and not self.force:
            object.__setattr__(self, "force", True)

    @property
    def mode(self) -> TerminationMode:
        """Reduce the flags to a single termination mode."""
        if self.dry_run:
            return TerminationMode.PREVIEW
        if self.immediate:
            return TerminationMode.IMMEDIATE
        if self.force:
            return TerminationMode.GRACEFUL_THEN_FORCED
        return TerminationMode.GRACEFUL


@dataclass(slots=True, frozen=True)
class RunResult:
    """Outcome of a single run."""

    mode: TerminationMode
    targets: tuple[str, ...]
    survivors: tuple[str, ...] = ()  # still running after the polite quit
    escalated: tuple[str, ...] = ()  # survivors that needed SIGKILL
