"""Git repository handle with authenticated, bounded operations.

Read-only queries (branches, commit messages, remote URLs) go through
GitPython's pure-Python object database without spawning git. Mutating
operations (push, switch, pull, fetch, delete) run the git CLI through
:class:`BoundedExecutor` so they honour deadlines and return sanitized errors.

Not safe for concurrent mutating use: the working tree is a single shared
resource.
"""

import heapq
import itertools
import logging
from pathlib import Path

import git
from git.refs.symbolic import SymbolicReference
from pydantic import BaseModel

from auto_mr.security.sanitize import sanitize_string
from auto_mr.vcs.auth import AuthDecision, CredentialResolver, describe, git_environment
from auto_mr.vcs.exceptions import (
    AuthenticationSetupError,
    BranchNotFoundError,
    DetachedHeadError,
    MainBranchNotFoundError,
    NotARepositoryError,
    RemoteNotFoundError,
    StructuralError,
    VCSOperationError,
)
from auto_mr.vcs.executor import LOCAL_GIT_TIMEOUT, NETWORK_GIT_TIMEOUT, BoundedExecutor
from auto_mr.vcs.platform import Platform, detect_platform

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"
FALLBACK_MAIN_BRANCHES = ("main", "master")
UP_TO_DATE_MARKER = "Everything up-to-date"


class CommitInfo(BaseModel):
    """Commit metadata read from the object database."""

    sha: str
    summary: str
    message: str
    author: str


def find_git_root(start: str | Path) -> Path:
    """Find the repository root enclosing a path.

    Walks up from ``start`` until a directory containing ``.git`` (a directory,
    or a file for worktrees) is found.

    Args:
        start: Any path inside the repository

    Returns:
        Absolute path to the repository root

    Raises:
        NotARepositoryError: If no repository is found up to the filesystem root
    """
    current = Path(start).resolve()
    for candidate in (current, *current.parents):
        if (candidate / ".git").exists():
            return candidate

    msg = f"Not a git repository (or any parent up to mount point): {start}"
    raise NotARepositoryError(msg)


class GitRepository:
    """Single-owner handle bound to one working tree.

    Authentication is resolved once at construction from the remote URL and
    kept for the lifetime of the handle.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        remote_name: str = DEFAULT_REMOTE,
        resolver: CredentialResolver | None = None,
        executor: BoundedExecutor | None = None,
        log: logging.Logger | None = None,
        local_timeout: float = LOCAL_GIT_TIMEOUT,
        network_timeout: float = NETWORK_GIT_TIMEOUT,
    ) -> None:
        """Open the repository enclosing ``path`` and resolve authentication.

        Args:
            path: Any path inside the repository (default: current directory)
            remote_name: Remote used for push, pull, fetch and auth resolution
            resolver: Credential resolver (default: environment and home directory)
            executor: Command executor (default: new BoundedExecutor)
            log: Diagnostic logger (default: module logger)
            local_timeout: Timeout for local operations, in seconds
            network_timeout: Timeout for network operations, in seconds

        Raises:
            NotARepositoryError: If path is not inside a git repository
            AuthenticationSetupError: If authentication cannot be set up
        """
        self.log = log or logger
        self.root = find_git_root(path or Path.cwd())

        try:
            self.repo = git.Repo(self.root, odbt=git.GitDB)
        except git.InvalidGitRepositoryError as e:
            msg = f"Not a git repository: {self.root}"
            raise NotARepositoryError(msg) from e
        except git.GitError as e:
            msg = f"Git error: {sanitize_string(str(e))}"
            raise VCSOperationError(msg) from None

        self.remote_name = remote_name
        self.executor = executor or BoundedExecutor()
        self.local_timeout = local_timeout
        self.network_timeout = network_timeout

        self.log.debug("Opening git repository at %s", self.root)
        try:
            url = self.get_remote_url(remote_name)
        except StructuralError as e:
            msg = f"failed to setup authentication: {e}"
            raise AuthenticationSetupError(msg) from e

        self._auth: AuthDecision = (resolver or CredentialResolver(log=self.log)).resolve(url)
        self.log.debug("Authentication: %s", describe(self._auth))
        self._auth_env = git_environment(self._auth)

    @property
    def auth(self) -> AuthDecision:
        """Authentication decision resolved at construction."""
        return self._auth

    def get_current_branch(self) -> str:
        """Get the name of the current branch.

        Returns:
            Current branch name

        Raises:
            DetachedHeadError: If HEAD is not pointing to a branch
        """
        if self.repo.head.is_detached:
            msg = "HEAD is not pointing to a branch"
            raise DetachedHeadError(msg)
        return self.repo.active_branch.name

    def get_main_branch(self) -> str:
        """Determine the main branch of the repository.

        Uses the remote's default branch pointer (``refs/remotes/<remote>/HEAD``)
        and falls back to a local ``main`` then ``master`` branch.

        Returns:
            Main branch name

        Raises:
            MainBranchNotFoundError: If no main branch can be determined
        """
        self.log.debug("Determining main branch")
        prefix = f"refs/remotes/{self.remote_name}/"
        remote_head = SymbolicReference(self.repo, f"{prefix}HEAD")
        try:
            target = remote_head.reference.path
        except (TypeError, ValueError):
            target = None

        if target and target.startswith(prefix):
            main_branch = target[len(prefix):]
            self.log.debug("Main branch found: %s", main_branch)
            return main_branch

        for candidate in FALLBACK_MAIN_BRANCHES:
            if self.branch_exists(candidate):
                self.log.debug("Main branch found (fallback): %s", candidate)
                return candidate

        msg = "could not determine main branch"
        raise MainBranchNotFoundError(msg)

    def branch_exists(self, branch: str) -> bool:
        """Check if a local branch exists."""
        return any(head.name == branch for head in self.repo.heads)

    def get_remote_url(self, remote_name: str = DEFAULT_REMOTE) -> str:
        """Get the first URL configured for a remote.

        Args:
            remote_name: Remote name

        Returns:
            Remote URL

        Raises:
            RemoteNotFoundError: If the remote does not exist or has no URLs
        """
        section = f'remote "{remote_name}"'
        with self.repo.config_reader("repository") as reader:
            if not reader.has_section(section):
                msg = f"no such remote: {remote_name}"
                raise RemoteNotFoundError(msg)
            urls = reader.get_values(section, "url") if reader.has_option(section, "url") else []

        if not urls:
            msg = f"no URLs found for remote {remote_name}"
            raise RemoteNotFoundError(msg)
        return str(urls[0])

    def detect_platform(self) -> Platform:
        """Detect the hosting platform from the remote URL.

        Raises:
            UnsupportedPlatformError: If the remote is on neither GitLab nor GitHub
        """
        return detect_platform(self.get_remote_url(self.remote_name))

    def get_latest_commit_message(self) -> str:
        """Get the full message of the HEAD commit.

        Raises:
            StructuralError: If the repository has no commits
        """
        try:
            message = self.repo.head.commit.message
        except ValueError as e:
            msg = f"failed to read HEAD commit: {e}"
            raise StructuralError(msg) from e
        return message if isinstance(message, str) else message.decode(errors="replace")

    def get_commits_since_branch(self, base_branch: str) -> list[CommitInfo]:
        """List commits reachable from HEAD until the tip of a base branch.

        Commits are walked newest first by committer date; the walk stops
        when the base branch tip is reached.

        Args:
            base_branch: Base branch name, e.g. "main"

        Returns:
            Commits on the current branch since the base branch tip

        Raises:
            BranchNotFoundError: If the base branch does not exist
            StructuralError: If HEAD has no commit
        """
        if not self.branch_exists(base_branch):
            msg = f"Branch '{base_branch}' does not exist in repository"
            raise BranchNotFoundError(msg)

        stop_sha = self.repo.heads[base_branch].commit.hexsha
        try:
            head = self.repo.head.commit
        except ValueError as e:
            msg = f"failed to read HEAD commit: {e}"
            raise StructuralError(msg) from e

        commits: list[CommitInfo] = []
        seen = {head.hexsha}
        order = itertools.count()
        # Ties on committer date keep discovery order
        pending = [(-head.committed_date, next(order), head)]
        while pending:
            _, _, commit = heapq.heappop(pending)
            if commit.hexsha == stop_sha:
                break
            commits.append(_commit_info(commit))
            for parent in commit.parents:
                if parent.hexsha not in seen:
                    seen.add(parent.hexsha)
                    heapq.heappush(pending, (-parent.committed_date, next(order), parent))
        return commits

    def has_staged_changes(self) -> bool:
        """Check if the index differs from HEAD."""
        try:
            return bool(self.repo.index.diff("HEAD"))
        except (git.BadName, ValueError):
            # No HEAD commit yet: anything in the index is staged
            return bool(self.repo.index.entries)

    async def push(self, branch: str, *, deadline: float | None = None) -> None:
        """Push a branch to the remote with the resolved credentials.

        An already up-to-date remote branch is not an error.

        Raises:
            GitTimeoutError: If the push exceeds the network timeout
            GitCommandError: If git rejects the push
        """
        self.log.debug("Pushing branch: %s", branch)
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        result = await self.executor.run(
            "push",
            ["git", "push", self.remote_name, refspec],
            self.root,
            self.network_timeout,
            deadline=deadline,
            env=self._auth_env,
        )
        if UP_TO_DATE_MARKER in result.output:
            self.log.debug("Branch already up to date: %s", branch)
        else:
            self.log.debug("Branch pushed successfully: %s", branch)

    async def switch_branch(self, branch: str, *, deadline: float | None = None) -> None:
        """Switch to a branch with ``git switch``.

        Fails on local changes that would conflict; untracked files are kept.
        """
        self.log.debug("Switching to branch using git switch: %s", branch)
        await self.executor.run(
            "switch",
            ["git", "switch", branch],
            self.root,
            self.local_timeout,
            deadline=deadline,
        )
        self.log.debug("Branch switched successfully: %s", branch)

    async def pull(self, *, deadline: float | None = None) -> None:
        """Fetch and merge the upstream of the current branch with ``git pull``."""
        self.log.debug("Pulling changes using git pull")
        await self.executor.run(
            "pull",
            ["git", "pull"],
            self.root,
            self.network_timeout,
            deadline=deadline,
            env=self._auth_env,
        )
        self.log.debug("Pull completed successfully")

    async def fetch_and_prune(self, *, deadline: float | None = None) -> None:
        """Fetch from the remote and prune deleted remote branches."""
        self.log.debug("Fetching and pruning using git fetch --prune")
        await self.executor.run(
            "fetch and prune",
            ["git", "fetch", "--prune", self.remote_name],
            self.root,
            self.network_timeout,
            deadline=deadline,
            env=self._auth_env,
        )
        self.log.debug("Fetch and prune completed successfully")

    async def delete_branch(self, branch: str, *, deadline: float | None = None) -> None:
        """Force-delete a local branch with ``git branch -D``."""
        self.log.debug("Deleting branch using git branch -D: %s", branch)
        await self.executor.run(
            "delete branch",
            ["git", "branch", "-D", branch],
            self.root,
            self.local_timeout,
            deadline=deadline,
        )
        self.log.debug("Branch deleted successfully: %s", branch)


def _commit_info(commit: git.Commit) -> CommitInfo:
    message = commit.message if isinstance(commit.message, str) else commit.message.decode(errors="replace")
    summary = commit.summary if isinstance(commit.summary, str) else commit.summary.decode(errors="replace")
    return CommitInfo(
        sha=commit.hexsha,
        summary=summary,
        message=message,
        author=commit.author.name or "",
    )
