"""Authenticated, bounded git operations.

This module provides credential resolution for git remotes, deadline-bounded
execution of git commands, and the repository handle used by the workflow.
"""

from auto_mr.vcs.auth import (
    AuthDecision,
    BasicCredential,
    CredentialResolver,
    HostKeyVerifier,
    LocalFileSystem,
    NoAuth,
    SSHAgentSource,
    SSHIdentity,
    SSHKeyFileSource,
)
from auto_mr.vcs.exceptions import (
    AuthenticationSetupError,
    BranchNotFoundError,
    DetachedHeadError,
    GitCommandError,
    GitTimeoutError,
    MainBranchNotFoundError,
    NoSSHIdentityError,
    NotARepositoryError,
    RemoteNotFoundError,
    StructuralError,
    UnsupportedPlatformError,
    VCSError,
    VCSOperationError,
)
from auto_mr.vcs.executor import LOCAL_GIT_TIMEOUT, NETWORK_GIT_TIMEOUT, BoundedExecutor, CommandOutput
from auto_mr.vcs.platform import Platform, detect_platform
from auto_mr.vcs.repository import CommitInfo, GitRepository, find_git_root

__all__ = [
    "LOCAL_GIT_TIMEOUT",
    "NETWORK_GIT_TIMEOUT",
    "AuthDecision",
    "AuthenticationSetupError",
    "BasicCredential",
    "BoundedExecutor",
    "BranchNotFoundError",
    "CommandOutput",
    "CommitInfo",
    "CredentialResolver",
    "DetachedHeadError",
    "GitCommandError",
    "GitRepository",
    "GitTimeoutError",
    "HostKeyVerifier",
    "LocalFileSystem",
    "MainBranchNotFoundError",
    "NoAuth",
    "NoSSHIdentityError",
    "NotARepositoryError",
    "Platform",
    "RemoteNotFoundError",
    "SSHAgentSource",
    "SSHIdentity",
    "SSHKeyFileSource",
    "StructuralError",
    "UnsupportedPlatformError",
    "VCSError",
    "VCSOperationError",
    "detect_platform",
    "find_git_root",
]
