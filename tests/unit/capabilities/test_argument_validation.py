"""Tests for host command argument validation"""

import pytest

from hostops.core.capabilities import ValidationError
from hostops.core.capabilities.runner_base.validation import (
    validate_hostname,
    validate_number_range,
    validate_path,
    validate_ref,
    validate_token,
)


class TestValidatePath:
    """Test validate_path"""

    @pytest.mark.parametrize("path", [
        ".",
        "src",
        "/etc/hostname",
        "docs/guide.md",
        "dir with spaces/file.txt",
        "a..b/file",
    ])
    def test_accepts_safe_paths(self, path):
        assert validate_path(path) == path

    def test_empty_means_current_directory(self):
        assert validate_path("") == "."

    @pytest.mark.parametrize("path", [
        "../secret",
        "a/../../b",
        "..",
        "a\\..\\b",
        "~/notes",
        "~root",
    ])
    def test_rejects_escaping_paths(self, path):
        with pytest.raises(ValidationError):
            validate_path(path)

    @pytest.mark.parametrize("path", [
        "file; rm -rf /",
        "a|b",
        "a && b",
        "$(whoami)",
        "`id`",
        "out > file",
        "in < file",
        "line\nbreak",
        "nul\x00byte",
    ])
    def test_rejects_metacharacters(self, path):
        with pytest.raises(ValidationError):
            validate_path(path)

    def test_rejects_option_like_path(self):
        with pytest.raises(ValidationError):
            validate_path("--help")

    def test_rejects_overlong_path(self):
        with pytest.raises(ValidationError):
            validate_path("a" * 254)

    def test_error_names_parameter(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_path("../x", "target")
        assert "target" in str(exc_info.value)


class TestValidateHostname:
    """Test validate_hostname"""

    @pytest.mark.parametrize("host", [
        "localhost",
        "example.com",
        "db-01.internal.example.org",
        "example.com.",
        "8.8.8.8",
        "::1",
        "2001:db8::1",
    ])
    def test_accepts_valid_hosts(self, host):
        assert validate_hostname(host) == host

    @pytest.mark.parametrize("host", [
        "",
        "invalid..host",
        "-leading.example.com",
        "trailing-.example.com",
        "under_score.example.com",
        "host;id",
        "a" * 64 + ".com",
    ])
    def test_rejects_invalid_hosts(self, host):
        with pytest.raises(ValidationError) as exc_info:
            validate_hostname(host)
        assert "Invalid host format" in str(exc_info.value)


class TestValidateToken:
    """Test validate_token"""

    def test_plain_token_passes(self):
        assert validate_token("-la") == "-la"

    def test_metacharacter_named_in_error(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_token("a;b", "argument 0")
        assert "argument 0" in str(exc_info.value)
        assert "';'" in str(exc_info.value)


class TestValidateRef:
    """Test validate_ref"""

    @pytest.mark.parametrize("ref", ["origin", "main", "feature/login-form", "release-1.2"])
    def test_accepts_refs(self, ref):
        assert validate_ref(ref, "branch") == ref

    @pytest.mark.parametrize("ref", ["-f", "a..b", "name with space", "x;y", ""])
    def test_rejects_refs(self, ref):
        with pytest.raises(ValidationError):
            validate_ref(ref, "branch")


def test_number_range():
    assert validate_number_range(5, "count", 1, 10) == 5
    assert validate_number_range(5, "count") == 5
    with pytest.raises(ValidationError):
        validate_number_range(0, "count", 1, 10)
    with pytest.raises(ValidationError):
        validate_number_range(11, "count", 1, 10)
