"""Credential resolution for git remotes.

The resolver turns a remote URL plus environment and filesystem state into one
immutable :data:`AuthDecision`:

- HTTPS to gitlab.com with ``GITLAB_TOKEN`` set: ``BasicCredential("oauth2", token)``
- HTTPS to github.com with ``GITHUB_TOKEN`` set: ``BasicCredential("x-access-token", token)``
- SSH: agent identity first, then ``~/.ssh/id_ed25519``, ``id_rsa``, ``id_ecdsa``
- anything else: ``NoAuth``

Every diagnostic emitted here goes through the sanitizer.
"""

import base64
import logging
import os
import shlex
import stat
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import Literal, Protocol

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from pydantic import BaseModel, ConfigDict

from auto_mr.security.logging import debug_auth, debug_ssh_key
from auto_mr.security.sanitize import mask_ssh_key_path, sanitize_string
from auto_mr.security.token import SecretToken
from auto_mr.vcs.exceptions import NoSSHIdentityError
from auto_mr.vcs.platform import Platform, host_matches, is_https_url, is_ssh_url, remote_host

logger = logging.getLogger(__name__)

GITLAB_TOKEN_ENV = "GITLAB_TOKEN"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GITLAB_PRINCIPAL = "oauth2"
GITHUB_PRINCIPAL = "x-access-token"

SSH_AUTH_SOCK_ENV = "SSH_AUTH_SOCK"
SSH_KEY_FILES = ("id_ed25519", "id_rsa", "id_ecdsa")
KNOWN_HOSTS_FILE = "known_hosts"

_TOKEN_SOURCES: dict[Platform, tuple[str, str]] = {
    Platform.GITLAB: (GITLAB_TOKEN_ENV, GITLAB_PRINCIPAL),
    Platform.GITHUB: (GITHUB_TOKEN_ENV, GITHUB_PRINCIPAL),
}


class NoAuth(BaseModel):
    """No credential; git runs unauthenticated."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class BasicCredential(BaseModel):
    """Username/token pair sent over HTTPS."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["basic"] = "basic"
    principal: str
    secret: SecretToken


class SSHAgentSource(BaseModel):
    """Identity served by a running SSH agent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["agent"] = "agent"
    socket_path: Path


class SSHKeyFileSource(BaseModel):
    """Identity read from a private key file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["key_file"] = "key_file"
    path: Path


class HostKeyVerifier(BaseModel):
    """Known hosts file used to verify the server identity."""

    model_config = ConfigDict(frozen=True)

    known_hosts_path: Path
    entries: int


class SSHIdentity(BaseModel):
    """SSH identity with an optional host key verifier."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ssh"] = "ssh"
    source: SSHAgentSource | SSHKeyFileSource
    host_key_verifier: HostKeyVerifier | None = None


AuthDecision = NoAuth | BasicCredential | SSHIdentity


class FileSystem(Protocol):
    """Filesystem access needed for credential resolution."""

    def home_dir(self) -> Path: ...

    def exists(self, path: Path) -> bool: ...

    def is_socket(self, path: Path) -> bool: ...

    def read_bytes(self, path: Path) -> bytes: ...


class LocalFileSystem:
    """Filesystem backed by the real disk."""

    def home_dir(self) -> Path:
        return Path.home()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_socket(self, path: Path) -> bool:
        try:
            return stat.S_ISSOCK(path.stat().st_mode)
        except OSError:
            return False

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()


def load_private_key(data: bytes) -> None:
    """Parse an unencrypted private key.

    Raises:
        ValueError: If the key is malformed or passphrase protected
    """
    try:
        if b"BEGIN OPENSSH PRIVATE KEY" in data:
            serialization.load_ssh_private_key(data, password=None)
        else:
            serialization.load_pem_private_key(data, password=None)
    except (TypeError, UnsupportedAlgorithm) as e:
        raise ValueError(str(e)) from e


def parse_known_hosts(data: bytes) -> int:
    """Count usable entries in a known_hosts file.

    Args:
        data: Raw file content

    Returns:
        Number of host key entries

    Raises:
        ValueError: If the content is not text
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = "known_hosts is not valid UTF-8"
        raise ValueError(msg) from e

    entries = 0
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        # "@marker hosts keytype key" or "hosts keytype key"
        minimum = 4 if fields[0].startswith("@") else 3
        if len(fields) >= minimum:
            entries += 1
    return entries


class CredentialResolver:
    """Resolves the authentication strategy for a remote URL.

    Environment and filesystem are injected so resolution is a pure function of
    ``(url, environ, filesystem)`` in tests.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        filesystem: FileSystem | None = None,
        key_loader: Callable[[bytes], None] = load_private_key,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            environ: Environment variables (default: ``os.environ``)
            filesystem: Filesystem access (default: local disk)
            key_loader: Parses private key bytes, raising ValueError on failure
            log: Diagnostic logger (default: module logger)
        """
        self.environ = os.environ if environ is None else environ
        self.filesystem = filesystem or LocalFileSystem()
        self.key_loader = key_loader
        self.log = log or logger

    def resolve(self, remote_url: str) -> AuthDecision:
        """Pick the authentication strategy for a remote URL.

        Args:
            remote_url: URL of the remote

        Returns:
            The authentication decision

        Raises:
            NoSSHIdentityError: If the remote uses SSH and no identity is available
        """
        self._debug(f"Determining authentication method for URL: {remote_url}")

        if is_https_url(remote_url):
            return self._resolve_https(remote_url)

        if is_ssh_url(remote_url):
            return self._resolve_ssh()

        self._debug("No authentication required")
        return NoAuth()

    def _resolve_https(self, remote_url: str) -> AuthDecision:
        host = remote_host(remote_url)
        for platform, (env_name, principal) in _TOKEN_SOURCES.items():
            if not host_matches(host, platform.domain):
                continue

            token = self.environ.get(env_name, "")
            if token:
                debug_auth(self.log, platform.display_name, {"method": "token", "url": remote_url})
                return BasicCredential(principal=principal, secret=SecretToken(token))

            self._debug(f"{env_name} not found")
            break

        # Public remotes accept unauthenticated access; others reject the push
        return NoAuth()

    def _resolve_ssh(self) -> SSHIdentity:
        home = self.filesystem.home_dir()
        verifier = self._host_key_verifier(home / ".ssh" / KNOWN_HOSTS_FILE)

        for candidate in self._ssh_candidates(home):
            source = candidate()
            if source is not None:
                return SSHIdentity(source=source, host_key_verifier=verifier)

        msg = "no SSH identity available: no SSH agent and no usable key in ~/.ssh"
        raise NoSSHIdentityError(msg)

    def _ssh_candidates(
        self, home: Path
    ) -> Iterator[Callable[[], SSHAgentSource | SSHKeyFileSource | None]]:
        # Agent first: it transparently handles passphrase-protected keys
        yield self._agent_source
        for name in SSH_KEY_FILES:
            key_path = home / ".ssh" / name
            yield lambda key_path=key_path: self._key_file_source(key_path)

    def _agent_source(self) -> SSHAgentSource | None:
        self._debug("Trying SSH agent authentication")
        socket_path = self.environ.get(SSH_AUTH_SOCK_ENV, "")
        if not socket_path:
            self._debug(f"SSH agent not available: {SSH_AUTH_SOCK_ENV} not set")
            return None

        path = Path(socket_path)
        if not self.filesystem.is_socket(path):
            self._debug(f"SSH agent not available: {path} is not a socket")
            return None

        self._debug("SSH agent authentication configured successfully")
        return SSHAgentSource(socket_path=path)

    def _key_file_source(self, key_path: Path) -> SSHKeyFileSource | None:
        if not self.filesystem.exists(key_path):
            return None

        debug_ssh_key(self.log, str(key_path), success=False)
        try:
            self.key_loader(self.filesystem.read_bytes(key_path))
        except (OSError, ValueError) as e:
            self._debug(f"Failed to load SSH key: {e}")
            return None

        debug_ssh_key(self.log, str(key_path), success=True)
        return SSHKeyFileSource(path=key_path)

    def _host_key_verifier(self, known_hosts: Path) -> HostKeyVerifier | None:
        if not self.filesystem.exists(known_hosts):
            return None

        try:
            entries = parse_known_hosts(self.filesystem.read_bytes(known_hosts))
        except (OSError, ValueError) as e:
            self._debug(f"Ignoring unreadable known_hosts file: {e}")
            return None

        if entries == 0:
            return None
        return HostKeyVerifier(known_hosts_path=known_hosts, entries=entries)

    def _debug(self, message: str) -> None:
        self.log.debug(sanitize_string(message))


def describe(decision: AuthDecision) -> str:
    """Describe an authentication decision without exposing secrets.

    Args:
        decision: Authentication decision

    Returns:
        Short description such as ``token (oauth2, [token:****abcd])``
    """
    if isinstance(decision, BasicCredential):
        return f"token ({decision.principal}, {decision.secret})"
    if isinstance(decision, SSHIdentity):
        if isinstance(decision.source, SSHAgentSource):
            origin = "agent"
        else:
            origin = f"key {mask_ssh_key_path(str(decision.source.path))}"
        verified = "verified host keys" if decision.host_key_verifier else "unverified host keys"
        return f"ssh ({origin}, {verified})"
    return "none"


def git_environment(decision: AuthDecision) -> dict[str, str]:
    """Build the environment that hands an auth decision to the git CLI.

    Credentials are passed through environment variables only, never argv.

    Args:
        decision: Authentication decision

    Returns:
        Environment variables to add for git commands
    """
    env: dict[str, str] = {}

    if isinstance(decision, BasicCredential):
        pair = f"{decision.principal}:{decision.secret.get_secret_value()}"
        header = base64.b64encode(pair.encode()).decode()
        env.update({
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {header}",
        })
    elif isinstance(decision, SSHIdentity):
        command = ["ssh", "-o", "BatchMode=yes"]
        if isinstance(decision.source, SSHKeyFileSource):
            command += ["-i", str(decision.source.path), "-o", "IdentitiesOnly=yes"]
        else:
            env[SSH_AUTH_SOCK_ENV] = str(decision.source.socket_path)
        if decision.host_key_verifier is not None:
            command += [
                "-o",
                f"UserKnownHostsFile={decision.host_key_verifier.known_hosts_path}",
                "-o",
                "StrictHostKeyChecking=yes",
            ]
        else:
            command += ["-o", "StrictHostKeyChecking=accept-new"]
        env["GIT_SSH_COMMAND"] = shlex.join(command)

    return env
