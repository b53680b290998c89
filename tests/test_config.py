"""Tests for closeapps settings."""

import pytest

from closeapps.config import (
    BASE_EXCLUDES,
    BROWSER_EXCLUDES,
    DEFAULT_ESCALATE_DELAY,
    DEFAULT_QUIT_DELAY,
    DEFAULT_SETTLE_DELAY,
    Settings,
)


class TestExclusions:
    """Tests for Settings.exclusions."""

    def test_base_excludes_terminals(self):
        """Test terminals and remote shells are always excluded."""
        exclusions = Settings().exclusions()

        for name in ("Terminal", "iTerm2", "kitty", "tmux", "ssh"):
            assert name in exclusions
        assert "Safari" not in exclusions

    def test_browsers_added_on_request(self):
        """Test browsers are only excluded when asked."""
        exclusions = Settings().exclusions(exclude_browsers=True)

        assert exclusions == BASE_EXCLUDES | BROWSER_EXCLUDES
        assert "Google Chrome" in exclusions
        assert "Tor Browser" in exclusions

    def test_extra_excludes(self):
        """Test extra names join the exclusion set."""
        settings = Settings(extra_excludes=frozenset({"Slack"}))

        assert "Slack" in settings.exclusions()
        assert "Slack" in settings.exclusions(exclude_browsers=True)

    def test_defaults_are_shared_not_mutated(self):
        """Test building exclusions leaves the module constants alone."""
        before = set(BASE_EXCLUDES)
        Settings(extra_excludes=frozenset({"Slack"})).exclusions(exclude_browsers=True)

        assert set(BASE_EXCLUDES) == before


class TestFromEnv:
    """Tests for Settings.from_env."""

    def test_empty_env_uses_defaults(self):
        """Test an empty environment gives the built-in settings."""
        settings = Settings.from_env({})

        assert settings == Settings()
        assert settings.shell_app == "Finder"

    def test_extra_exclude_list(self):
        """Test CLOSEAPPS_EXTRA_EXCLUDE is split on commas and trimmed."""
        settings = Settings.from_env({"CLOSEAPPS_EXTRA_EXCLUDE": " Slack, Zoom ,,"})

        assert settings.extra_excludes == frozenset({"Slack", "Zoom"})

    def test_delay_overrides(self):
        """Test delays can be overridden."""
        settings = Settings.from_env(
            {
                "CLOSEAPPS_QUIT_DELAY": "0",
                "CLOSEAPPS_SETTLE_DELAY": "2.5",
                "CLOSEAPPS_ESCALATE_DELAY": "1",
            }
        )

        assert settings.quit_delay == 0.0
        assert settings.settle_delay == 2.5
        assert settings.escalate_delay == 1.0

    def test_invalid_delays_fall_back(self, caplog):
        """Test bad delay values are logged and ignored."""
        settings = Settings.from_env(
            {"CLOSEAPPS_QUIT_DELAY": "soon", "CLOSEAPPS_SETTLE_DELAY": "-1"}
        )

        assert settings.quit_delay == DEFAULT_QUIT_DELAY
        assert settings.settle_delay == DEFAULT_SETTLE_DELAY
        assert "CLOSEAPPS_QUIT_DELAY must be a number" in caplog.text
        assert "CLOSEAPPS_SETTLE_DELAY must not be negative" in caplog.text

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "Infinity"])
    def test_non_finite_delays_fall_back(self, raw, caplog):
        """Test NaN and infinite delays are logged and ignored."""
        settings = Settings.from_env(
            {
                "CLOSEAPPS_QUIT_DELAY": raw,
                "CLOSEAPPS_SETTLE_DELAY": raw,
                "CLOSEAPPS_ESCALATE_DELAY": raw,
            }
        )

        assert settings.quit_delay == DEFAULT_QUIT_DELAY
        assert settings.settle_delay == DEFAULT_SETTLE_DELAY
        assert settings.escalate_delay == DEFAULT_ESCALATE_DELAY
        assert "CLOSEAPPS_QUIT_DELAY must be a finite number" in caplog.text
