"""Tests for remote URL inspection."""

import pytest

from auto_mr.vcs import Platform, UnsupportedPlatformError, detect_platform
from auto_mr.vcs.platform import (
    extract_path_components,
    host_matches,
    is_https_url,
    is_ssh_url,
    remote_host,
)


class TestPlatform:
    """Tests for Platform enum."""

    def test_domains(self) -> None:
        """Test platform domains."""
        assert Platform.GITLAB.domain == "gitlab.com"
        assert Platform.GITHUB.domain == "github.com"

    def test_display_names(self) -> None:
        """Test platform display names."""
        assert Platform.GITLAB.display_name == "GitLab"
        assert Platform.GITHUB.display_name == "GitHub"


class TestURLShape:
    """Tests for URL shape helpers."""

    @pytest.mark.parametrize(
        ("url", "https", "ssh"),
        [
            ("https://github.com/owner/repo.git", True, False),
            ("HTTPS://gitlab.com/group/project", True, False),
            ("git@github.com:owner/repo.git", False, True),
            ("ssh://git@gitlab.com/group/project.git", False, True),
            ("http://example.com/repo.git", False, False),
            ("file:///tmp/repo.git", False, False),
            ("/tmp/repo.git", False, False),
        ],
    )
    def test_shape(self, url: str, https: bool, ssh: bool) -> None:
        """Test HTTPS and SSH detection."""
        assert is_https_url(url) is https
        assert is_ssh_url(url) is ssh

    @pytest.mark.parametrize(
        ("url", "host"),
        [
            ("https://GitHub.com/owner/repo.git", "github.com"),
            ("https://user@gitlab.example.com:8443/group/project", "gitlab.example.com"),
            ("git@github.com:owner/repo.git", "github.com"),
            ("ssh://git@gitlab.com:2222/group/project.git", "gitlab.com"),
            ("/tmp/repo.git", None),
        ],
    )
    def test_remote_host(self, url: str, host: str | None) -> None:
        """Test host extraction."""
        assert remote_host(url) == host

    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("github.com", True),
            ("api.github.com", True),
            ("notgithub.com", False),
            ("github.com.evil.example", False),
            (None, False),
            ("", False),
        ],
    )
    def test_host_matches(self, host: str | None, expected: bool) -> None:
        """Test domain matching accepts only the domain and its subdomains."""
        assert host_matches(host, "github.com") is expected


class TestDetectPlatform:
    """Tests for detect_platform."""

    @pytest.mark.parametrize(
        ("url", "platform"),
        [
            ("https://gitlab.com/group/project.git", Platform.GITLAB),
            ("git@gitlab.com:group/project.git", Platform.GITLAB),
            ("https://github.com/owner/repo.git", Platform.GITHUB),
            ("ssh://git@github.com/owner/repo.git", Platform.GITHUB),
        ],
    )
    def test_supported(self, url: str, platform: Platform) -> None:
        """Test GitLab and GitHub remotes are detected."""
        assert detect_platform(url) is platform

    @pytest.mark.parametrize(
        "url",
        [
            "https://bitbucket.org/owner/repo.git",
            "https://github.com.evil.example/owner/repo.git",
            "/srv/git/repo.git",
        ],
    )
    def test_unsupported(self, url: str) -> None:
        """Test other hosts raise UnsupportedPlatformError."""
        with pytest.raises(UnsupportedPlatformError, match="not hosted on GitLab or GitHub"):
            detect_platform(url)


class TestExtractPathComponents:
    """Tests for extract_path_components."""

    @pytest.mark.parametrize(
        ("url", "count", "expected"),
        [
            ("git@github.com:owner/repo", 2, "owner/repo"),
            ("git@gitlab.com:group/subgroup/project", 2, "group/subgroup/project"),
            ("https://github.com/owner/repo", 2, "owner/repo"),
            ("https://gitlab.com/group/subgroup/project", 2, "subgroup/project"),
            ("repo", 2, ""),
        ],
    )
    def test_extract(self, url: str, count: int, expected: str) -> None:
        """Test trailing path components are extracted."""
        assert extract_path_components(url, count) == expected
