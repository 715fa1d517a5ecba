"""Credential redaction for log lines, error messages and command output.

Patterns are compiled once at import time and only read afterwards, so every
function here is safe for unsynchronized concurrent use.
"""

import re
from pathlib import PurePosixPath
from typing import Any

from auto_mr.security.token import MASK_REDACTED

GITLAB_TOKEN_MARKER = "[gitlab-token-redacted]"
GITHUB_TOKEN_MARKER = "[github-token-redacted]"
AUTH_HEADER_MARKER = "Authorization: [redacted]"
GENERIC_TOKEN_MARKER = "[token-redacted]"

# Real GitLab tokens are 20+ chars, shorter ones are caught as well
_GITLAB_TOKEN_RE = re.compile(r"glpat-[a-zA-Z0-9_-]{6,}")
# Real GitHub tokens are 36+ chars, shorter ones are caught as well
_GITHUB_TOKEN_RE = re.compile(r"gh[ops]_[a-zA-Z0-9]{20,}")
_AUTH_HEADER_RE = re.compile(
    r"authorization:\s*(?:bearer|basic)\s+[a-zA-Z0-9+/=_-]{10,}",
    re.IGNORECASE,
)
_GENERIC_TOKEN_RE = re.compile(r"\b[A-Za-z0-9+/=]{40,200}\b", re.ASCII)

PLATFORM_TOKEN_PREFIXES = ("glpat-", "ghp_", "gho_", "ghs_")

SENSITIVE_KEYS = (
    "token",
    "password",
    "secret",
    "api_key",
    "apikey",
    "auth",
    "credential",
    "authorization",
)

SSH_DIR_SEGMENT = "/.ssh/"


class SanitizedError(Exception):
    """Error whose message has already been passed through :func:`sanitize_string`.

    Use ``isinstance(err, SanitizedError)`` to check that an error is safe to
    display without inspecting its text.
    """


def sanitize_string(text: str) -> str:
    """Redact credential-shaped substrings from text.

    Replacements are applied in order: GitLab tokens, GitHub tokens,
    ``Authorization`` headers and finally generic long base64-like tokens.
    The generic pass is skipped when any platform token prefix is still
    present after the first three passes, to avoid mangling text around a
    platform token the earlier patterns did not fully match.

    Args:
        text: Text that may contain credentials

    Returns:
        Text with credentials replaced by redaction markers
    """
    text = _GITLAB_TOKEN_RE.sub(GITLAB_TOKEN_MARKER, text)
    text = _GITHUB_TOKEN_RE.sub(GITHUB_TOKEN_MARKER, text)
    text = _AUTH_HEADER_RE.sub(AUTH_HEADER_MARKER, text)

    if any(prefix in text for prefix in PLATFORM_TOKEN_PREFIXES):
        return text
    return _GENERIC_TOKEN_RE.sub(GENERIC_TOKEN_MARKER, text)


def sanitize_error(err: BaseException | None) -> SanitizedError | None:
    """Build a sanitized copy of an error.

    The original exception chain is not carried over, since chained causes
    can hold the raw text.

    Args:
        err: Error to sanitize

    Returns:
        A :class:`SanitizedError` with a redacted message, or None if err is None
    """
    if err is None:
        return None
    if isinstance(err, SanitizedError):
        return err
    return SanitizedError(sanitize_string(str(err)))


def is_sensitive_key(key: str) -> bool:
    """Check whether a key name suggests it holds a secret."""
    lowered = key.lower()
    return any(sensitive in lowered for sensitive in SENSITIVE_KEYS)


def sanitize_map(values: dict[str, Any] | None) -> dict[str, Any] | None:
    """Redact values whose keys look sensitive.

    Values under sensitive keys (token, password, secret, api_key, apikey,
    auth, credential, authorization; case-insensitive substring match) are
    replaced with ``[redacted]`` whatever their type. Other string values go
    through :func:`sanitize_string`; everything else is kept as is.

    Args:
        values: Mapping to sanitize

    Returns:
        New sanitized mapping, or None if values is None
    """
    if values is None:
        return None

    result: dict[str, Any] = {}
    for key, value in values.items():
        if is_sensitive_key(key):
            result[key] = MASK_REDACTED
        elif isinstance(value, str):
            result[key] = sanitize_string(value)
        else:
            result[key] = value
    return result


def mask_ssh_key_path(path: str) -> str:
    """Shorten an SSH key path for logging.

    Examples:
        /Users/john/.ssh/id_ed25519 -> ~/.ssh/id_ed25519
        /tmp/keys/deploy -> deploy

    Args:
        path: Key file path

    Returns:
        ``~/.ssh/<file>`` when the path is under an ``.ssh`` directory,
        otherwise just the file name
    """
    if not path:
        return ""

    if SSH_DIR_SEGMENT in path:
        tail = path.split(SSH_DIR_SEGMENT)[-1]
        return f"~/.ssh/{PurePosixPath(tail).name}"

    return PurePosixPath(path).name
