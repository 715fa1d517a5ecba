"""Logging helpers that keep credentials out of log output."""

import logging

from auto_mr.security.sanitize import mask_ssh_key_path, sanitize_map, sanitize_string


class SanitizingFilter(logging.Filter):
    """Logging filter that redacts credentials from every record.

    The record message is rendered with its arguments, passed through
    :func:`sanitize_string` and stored back with the arguments cleared.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_string(record.getMessage())
        record.args = None
        return True


def debug_auth(logger: logging.Logger | None, auth_type: str, details: dict[str, str]) -> None:
    """Log authentication details with sensitive values redacted.

    Args:
        logger: Destination logger (nothing is logged if None)
        auth_type: Human readable authentication kind, e.g. "GitLab"
        details: Details to log; values under sensitive keys are redacted
    """
    if logger is None:
        return

    sanitized = sanitize_map(dict(details))
    logger.debug(sanitize_string(f"Using {auth_type} authentication: {sanitized}"))


def debug_ssh_key(logger: logging.Logger | None, key_file: str, success: bool) -> None:
    """Log SSH key usage with a masked path."""
    if logger is None:
        return

    masked = mask_ssh_key_path(key_file)
    if success:
        logger.debug("SSH authentication configured with key: %s", masked)
    else:
        logger.debug("Trying SSH key: %s", masked)
