"""Tests for cookiekeep.utils module."""

import time

import pytest
from cookiekeep.utils import host_of, now_millis, parse_url


class TestParseUrl:
    """Tests for parse_url function."""

    def test_parse_https_url(self):
        """Test parsing HTTPS URL."""
        parsed, host, path = parse_url("https://example.com/path")
        assert host == "example.com"
        assert path == "/path"
        assert parsed.scheme == "https"

    def test_parse_url_empty_path(self):
        """Test parsing URL with empty path defaults to /."""
        _, _, path = parse_url("https://example.com")
        assert path == "/"

    def test_parse_url_invalid_scheme_raises(self):
        """Test invalid scheme raises ValueError."""
        with pytest.raises(ValueError, match="Only http and https"):
            parse_url("ftp://example.com")

    def test_parse_url_no_scheme_raises(self):
        """Test URL without scheme raises."""
        with pytest.raises(ValueError):
            parse_url("example.com/path")


class TestHostOf:
    """Tests for host_of function."""

    def test_strips_port_and_path(self):
        """Test host excludes port, path and query."""
        assert host_of("https://api.example.com:8443/v1?x=1") == "api.example.com"

    def test_lowercases_host(self):
        """Test host is normalized to lower case."""
        assert host_of("https://Example.COM/") == "example.com"

    def test_missing_host_raises(self):
        """Test URL without host raises ValueError."""
        with pytest.raises(ValueError, match="no host"):
            host_of("http:///path")


class TestNowMillis:
    """Tests for now_millis function."""

    def test_matches_wall_clock(self):
        """Test now_millis tracks time.time in milliseconds."""
        before = int(time.time() * 1000)
        value = now_millis()
        after = int(time.time() * 1000)
        assert before - 1 <= value <= after + 1
