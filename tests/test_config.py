"""Tests for cookiekeep.config module."""

import os

import pytest
from cookiekeep.config import CookieStoreConfig


class TestCookieStoreConfig:
    """Tests for CookieStoreConfig."""

    def test_defaults(self, monkeypatch):
        """Test defaults without environment overrides."""
        for name in (
            "COOKIEKEEP_DIR",
            "COOKIEKEEP_PREFS_NAME",
            "COOKIEKEEP_MAX_PENDING",
            "COOKIEKEEP_SWEEP_ON_LOAD",
        ):
            monkeypatch.delenv(name, raising=False)
        config = CookieStoreConfig()
        assert config.directory == os.path.expanduser("~/.cookiekeep")
        assert config.prefs_name == "CookiePrefsFile"
        assert config.max_pending == 0
        assert config.sweep_on_load is False

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test values are read from the environment at creation time."""
        monkeypatch.setenv("COOKIEKEEP_DIR", str(tmp_path))
        monkeypatch.setenv("COOKIEKEEP_PREFS_NAME", "Jar")
        monkeypatch.setenv("COOKIEKEEP_MAX_PENDING", "50")
        monkeypatch.setenv("COOKIEKEEP_SWEEP_ON_LOAD", "yes")
        config = CookieStoreConfig()
        assert config.directory == str(tmp_path)
        assert config.prefs_name == "Jar"
        assert config.max_pending == 50
        assert config.sweep_on_load is True

    @pytest.mark.parametrize("raw", ["0", "false", "off", ""])
    def test_sweep_flag_false_values(self, monkeypatch, raw):
        """Test non-truthy flag values disable sweeping."""
        monkeypatch.setenv("COOKIEKEEP_SWEEP_ON_LOAD", raw)
        assert CookieStoreConfig().sweep_on_load is False

    def test_negative_max_pending_rejected(self):
        """Test max_pending must not be negative."""
        with pytest.raises(ValueError, match="max_pending"):
            CookieStoreConfig(max_pending=-1)

    def test_empty_prefs_name_rejected(self):
        """Test the namespace needs a name."""
        with pytest.raises(ValueError, match="prefs_name"):
            CookieStoreConfig(prefs_name="")
