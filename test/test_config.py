#!/usr/bin/env python3
"""
Tests for option validation and environment overrides.
"""

import pytest
import tempfile

from parbar.core.config import WaitBarOptions, options_from_env, ENV_TRANSPORT, ENV_COUNTER_DIR, ENV_ERASE
from parbar.core.errors import InvalidOptionError


class TestWaitBarOptions:
    """Tests for construction-time validation."""

    def test_defaults(self):
        """Test that defaults follow the documented values."""
        options = WaitBarOptions(total_tasks=10)

        assert options.wait_message == ""
        assert options.final_message == ""
        assert options.marker == "*"
        assert options.bar_length == 20
        assert options.display_remaining_time is True
        assert options.display_date is True
        assert options.overwrite is True
        assert options.transport == "auto"

    @pytest.mark.parametrize("total", [0, -3])
    def test_rejects_non_positive_total(self, total):
        """Test that zero or negative task counts fail fast."""
        with pytest.raises(InvalidOptionError, match="total_tasks"):
            WaitBarOptions(total_tasks=total)

    @pytest.mark.parametrize("total", [2.5, "10", True, None])
    def test_rejects_non_integer_total(self, total):
        """Test that floats, strings and booleans are not task counts."""
        with pytest.raises(InvalidOptionError, match="total_tasks"):
            WaitBarOptions(total_tasks=total)

    @pytest.mark.parametrize("marker", ["", "==", 7, "\n"])
    def test_rejects_malformed_marker(self, marker):
        """Test that the marker must be one printable character."""
        with pytest.raises(InvalidOptionError, match="marker"):
            WaitBarOptions(total_tasks=3, marker=marker)

    def test_rejects_negative_bar_length(self):
        """Test that bar length cannot be negative."""
        with pytest.raises(InvalidOptionError, match="bar_length"):
            WaitBarOptions(total_tasks=3, bar_length=-1)

    def test_zero_bar_length_allowed(self):
        """Test that an empty bar is a valid choice."""
        assert WaitBarOptions(total_tasks=3, bar_length=0).bar_length == 0

    def test_rejects_non_boolean_flags(self):
        """Test that display flags must be real booleans."""
        with pytest.raises(InvalidOptionError, match="overwrite"):
            WaitBarOptions(total_tasks=3, overwrite="yes")

    def test_rejects_unknown_transport(self):
        """Test that only known transports are accepted."""
        with pytest.raises(InvalidOptionError, match="transport"):
            WaitBarOptions(total_tasks=3, transport="carrier-pigeon")

    def test_rejects_missing_counter_dir(self, tmp_path):
        """Test that the counter directory must exist."""
        with pytest.raises(InvalidOptionError, match="counter_dir"):
            WaitBarOptions(total_tasks=3, counter_dir=str(tmp_path / "missing"))

    def test_is_a_value_error(self):
        """Test that validation errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            WaitBarOptions(total_tasks=0)


class TestOptionsFromEnv:
    """Tests for environment overrides."""

    def test_environment_fills_unset_options(self, tmp_path):
        """Test that unset options are read from the environment."""
        env = {ENV_TRANSPORT: "file", ENV_COUNTER_DIR: str(tmp_path), ENV_ERASE: "ANSI"}

        options = options_from_env(4, environ=env)

        assert options.transport == "file"
        assert options.counter_dir == str(tmp_path)
        assert options.erase == "ansi"

    def test_explicit_options_win(self, tmp_path):
        """Test that explicit arguments override the environment."""
        env = {ENV_TRANSPORT: "file"}

        options = options_from_env(4, transport="thread", environ=env)

        assert options.transport == "thread"

    def test_defaults_without_environment(self):
        """Test fallbacks when nothing is configured."""
        options = options_from_env(4, environ={})

        assert options.transport == "auto"
        assert options.erase == "auto"
        assert options.counter_dir == tempfile.gettempdir()

    def test_invalid_environment_value(self):
        """Test that a bad environment value is reported like a bad argument."""
        with pytest.raises(InvalidOptionError, match="transport"):
            options_from_env(4, environ={ENV_TRANSPORT: "smoke-signals"})

    def test_passes_other_fields(self):
        """Test that remaining keyword options reach WaitBarOptions."""
        options = options_from_env(4, environ={}, marker="=", bar_length=10)

        assert options.marker == "="
        assert options.bar_length == 10


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
