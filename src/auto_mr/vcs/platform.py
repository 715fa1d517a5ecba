"""Remote URL inspection and hosting platform detection.

Handles three remote URL shapes:

- HTTPS: ``https://github.com/owner/repo``
- SCP-like SSH: ``git@github.com:owner/repo``
- SSH protocol: ``ssh://git@github.com/owner/repo``
"""

import re
from enum import Enum
from urllib.parse import urlsplit

from auto_mr.vcs.exceptions import UnsupportedPlatformError

_SCP_LIKE_RE = re.compile(r"^(?P<user>[^@/:]+)@(?P<host>[^:/]+):(?P<path>.*)$")


class Platform(str, Enum):
    """Supported code hosting platforms."""

    GITLAB = "gitlab"
    GITHUB = "github"

    @property
    def domain(self) -> str:
        """Get the public domain of the platform.

        Returns:
            Domain name
        """
        return {
            Platform.GITLAB: "gitlab.com",
            Platform.GITHUB: "github.com",
        }[self]

    @property
    def display_name(self) -> str:
        """Get human-readable display name.

        Returns:
            Display name for the platform
        """
        return {
            Platform.GITLAB: "GitLab",
            Platform.GITHUB: "GitHub",
        }[self]


def is_https_url(url: str) -> bool:
    """Check if a remote URL uses HTTPS."""
    return url.lower().startswith("https://")


def is_ssh_url(url: str) -> bool:
    """Check if a remote URL uses SSH (``ssh://`` or ``user@host:path``)."""
    if url.lower().startswith("ssh://"):
        return True
    return "://" not in url and _SCP_LIKE_RE.match(url) is not None


def remote_host(url: str) -> str | None:
    """Extract the host name from a remote URL.

    Args:
        url: Remote URL in any supported shape

    Returns:
        Lower-cased host name, or None if the URL has no recognizable host
    """
    if "://" in url:
        host = urlsplit(url).hostname
        return host.lower() if host else None

    match = _SCP_LIKE_RE.match(url)
    if match:
        return match.group("host").lower()
    return None


def host_matches(host: str | None, domain: str) -> bool:
    """Check if a host is the domain itself or one of its subdomains."""
    if not host:
        return False
    return host == domain or host.endswith(f".{domain}")


def detect_platform(url: str) -> Platform:
    """Determine the hosting platform of a remote URL.

    Args:
        url: Remote URL

    Returns:
        Detected platform

    Raises:
        UnsupportedPlatformError: If the URL is hosted on neither GitLab nor GitHub
    """
    host = remote_host(url)
    for platform in Platform:
        if host_matches(host, platform.domain):
            return platform

    msg = "repository is not hosted on GitLab or GitHub"
    raise UnsupportedPlatformError(msg)


def extract_path_components(url: str, component_count: int) -> str:
    """Extract the last path components of a remote URL.

    The ``.git`` suffix should be removed by the caller.

    Examples:
        ``git@github.com:owner/repo``, 2 -> ``owner/repo``
        ``https://gitlab.com/group/subgroup/project``, 2 -> ``subgroup/project``

    Args:
        url: Remote URL without ``.git`` suffix
        component_count: Number of trailing path components to keep

    Returns:
        Joined path components, or an empty string if there are not enough
    """
    if "://" not in url:
        match = _SCP_LIKE_RE.match(url)
        if match:
            return match.group("path")

    parts = url.split("/")
    if len(parts) >= component_count:
        return "/".join(parts[-component_count:])
    return ""
