"""Secret token wrapper that never renders its value in plain text."""

from pydantic import SecretStr

# Tokens shorter than this are fully redacted when rendered
MIN_TOKEN_LENGTH_FOR_PARTIAL_MASK = 8
MASK_SHOW_CHARS = 4

MASK_EMPTY = "[empty]"
MASK_REDACTED = "[redacted]"


class SecretToken(SecretStr):
    """Credential wrapper whose ``str()``/``repr()`` never expose the raw value.

    Rendering rules:

    - empty value: ``[empty]``
    - shorter than 8 characters: ``[redacted]``
    - otherwise: ``[token:****<last 4 characters>]``

    The raw value is only reachable through :meth:`get_secret_value`. Its result
    is meant for authentication material and must never be logged or put into
    an exception message.

    Example:
        >>> token = SecretToken("glpat-secret123456")
        >>> str(token)
        '[token:****3456]'
    """

    def _display(self) -> str:
        value = self.get_secret_value()
        if not value:
            return MASK_EMPTY
        if len(value) < MIN_TOKEN_LENGTH_FOR_PARTIAL_MASK:
            return MASK_REDACTED
        return f"[token:****{value[-MASK_SHOW_CHARS:]}]"

    @property
    def is_empty(self) -> bool:
        """Check if the wrapped token is empty.

        Returns:
            True if no token value is held
        """
        return not self.get_secret_value()


def wrap(raw: str) -> SecretToken:
    """Wrap a raw credential string."""
    return SecretToken(raw)


def render(token: SecretToken) -> str:
    """Return the masked representation of a token."""
    return str(token)
