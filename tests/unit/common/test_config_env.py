"""Tests for typed environment variable parsing helpers."""

import os
from unittest.mock import patch

import pytest

from common.config.env import get_env_bool, get_env_int, get_env_str


def test_get_env_str():
    """Test string parsing."""
    with patch.dict(os.environ, {"FOO": "bar"}):
        assert get_env_str("FOO") == "bar"
        assert get_env_str("BAR", default="baz") == "baz"
        assert get_env_str("FOO", required=True) == "bar"

    with pytest.raises(KeyError):
        get_env_str("MISSING_EXAMPLES_VAR", required=True)


def test_get_env_int():
    """Test integer parsing and lower bound."""
    with patch.dict(os.environ, {"FOO": "123"}):
        assert get_env_int("FOO") == 123
        assert get_env_int("BAR", default=456) == 456

    with patch.dict(os.environ, {"FOO": "not_an_int"}):
        with pytest.raises(ValueError):
            get_env_int("FOO")

    with patch.dict(os.environ, {"FOO": "-1"}):
        with pytest.raises(ValueError, match=">= 0"):
            get_env_int("FOO", minimum=0)


def test_get_env_bool():
    """Test boolean parsing."""
    for val in ["true", "1", "yes", "on", "TRUE", " Yes "]:
        with patch.dict(os.environ, {"FOO": val}):
            assert get_env_bool("FOO") is True

    for val in ["false", "0", "no", "off", "", "FALSE"]:
        with patch.dict(os.environ, {"FOO": val}):
            assert get_env_bool("FOO") is False

    assert get_env_bool("MISSING_EXAMPLES_VAR", default=True) is True

    with patch.dict(os.environ, {"FOO": "maybe"}):
        with pytest.raises(ValueError):
            get_env_bool("FOO")
