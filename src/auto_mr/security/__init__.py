"""Credential wrapping and redaction utilities."""

from auto_mr.security.logging import SanitizingFilter, debug_auth, debug_ssh_key
from auto_mr.security.sanitize import (
    AUTH_HEADER_MARKER,
    GENERIC_TOKEN_MARKER,
    GITHUB_TOKEN_MARKER,
    GITLAB_TOKEN_MARKER,
    SanitizedError,
    mask_ssh_key_path,
    sanitize_error,
    sanitize_map,
    sanitize_string,
)
from auto_mr.security.token import MASK_EMPTY, MASK_REDACTED, SecretToken, render, wrap

__all__ = [
    "AUTH_HEADER_MARKER",
    "GENERIC_TOKEN_MARKER",
    "GITHUB_TOKEN_MARKER",
    "GITLAB_TOKEN_MARKER",
    "MASK_EMPTY",
    "MASK_REDACTED",
    "SanitizedError",
    "SanitizingFilter",
    "SecretToken",
    "debug_auth",
    "debug_ssh_key",
    "mask_ssh_key_path",
    "render",
    "sanitize_error",
    "sanitize_map",
    "sanitize_string",
    "wrap",
]
