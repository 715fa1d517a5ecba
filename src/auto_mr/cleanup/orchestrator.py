"""Post-merge cleanup orchestration."""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from auto_mr.security.sanitize import sanitize_string
from auto_mr.vcs.exceptions import VCSError

logger = logging.getLogger(__name__)


class Criticality(str, Enum):
    """How a step failure affects the rest of the sequence."""

    CRITICAL = "critical"
    BEST_EFFORT = "best-effort"


class CleanupStep(str, Enum):
    """Cleanup steps, in execution order."""

    SWITCH_BRANCH = "switch_branch"
    PULL_LATEST = "pull_latest"
    FETCH_AND_PRUNE = "fetch_and_prune"
    DELETE_BRANCH = "delete_branch"

    @property
    def criticality(self) -> Criticality:
        """Get the failure policy of the step.

        Returns:
            CRITICAL for switch and pull, BEST_EFFORT for fetch and delete
        """
        if self in (CleanupStep.SWITCH_BRANCH, CleanupStep.PULL_LATEST):
            return Criticality.CRITICAL
        return Criticality.BEST_EFFORT

    @property
    def display_name(self) -> str:
        """Get human-readable display name.

        Returns:
            Display name for the step
        """
        return {
            CleanupStep.SWITCH_BRANCH: "Switch to main branch",
            CleanupStep.PULL_LATEST: "Pull latest changes",
            CleanupStep.FETCH_AND_PRUNE: "Fetch and prune",
            CleanupStep.DELETE_BRANCH: "Delete feature branch",
        }[self]


class StepOutcome(BaseModel):
    """Outcome of one cleanup step.

    A step that never ran has ``attempted=False`` and no error.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    step: CleanupStep
    attempted: bool = False
    completed: bool = False
    error: VCSError | None = None
    hint: str | None = None

    @property
    def error_message(self) -> str | None:
        """Get the sanitized error message with the manual recovery hint.

        Returns:
            Error message, or None if the step did not fail
        """
        if self.error is None:
            return None
        message = sanitize_string(str(self.error))
        if self.hint:
            return f"{message}\n\n{self.hint}"
        return message


class CleanupReport(BaseModel):
    """Per-step record of a cleanup run."""

    model_config = ConfigDict(frozen=True)

    main_branch: str
    branch_name: str
    outcomes: tuple[StepOutcome, ...]

    def outcome(self, step: CleanupStep) -> StepOutcome:
        """Get the outcome of a step."""
        for outcome in self.outcomes:
            if outcome.step == step:
                return outcome
        return StepOutcome(step=step)

    @property
    def success(self) -> bool:
        """Check if both critical steps completed.

        Returns:
            True if switch and pull completed
        """
        return all(self.outcome(step).completed for step in CleanupStep if step.criticality == Criticality.CRITICAL)

    @property
    def partial_success(self) -> bool:
        """Check if at least one step completed.

        Returns:
            True if any step completed
        """
        return any(o.completed for o in self.outcomes)

    @property
    def first_error(self) -> VCSError | None:
        """Get the earliest error in step order.

        Returns:
            First error encountered, or None if no step failed
        """
        for outcome in self.outcomes:
            if outcome.error is not None:
                return outcome.error
        return None

    @property
    def has_warnings(self) -> bool:
        """Check if a best-effort step failed.

        Returns:
            True if fetch/prune or branch deletion failed
        """
        return any(
            o.error is not None for o in self.outcomes if o.step.criticality == Criticality.BEST_EFFORT
        )


class CleanupTarget(Protocol):
    """Repository operations used by the cleanup sequence."""

    async def switch_branch(self, branch: str, *, deadline: float | None = None) -> None: ...

    async def pull(self, *, deadline: float | None = None) -> None: ...

    async def fetch_and_prune(self, *, deadline: float | None = None) -> None: ...

    async def delete_branch(self, branch: str, *, deadline: float | None = None) -> None: ...


Action = Callable[[], Awaitable[None]]


class CleanupOrchestrator:
    """Runs the post-merge cleanup sequence.

    Steps run in a fixed order: switch to the main branch, pull, fetch with
    prune, delete the feature branch. A failing critical step stops the
    sequence and later steps are reported as not attempted. A failing
    best-effort step is recorded and the sequence continues.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        """Initialize the cleanup orchestrator.

        Args:
            log: Diagnostic logger (default: module logger)
        """
        self.log = log or logger

    async def run(
        self,
        repository: CleanupTarget,
        main_branch: str,
        feature_branch: str,
        *,
        deadline: float | None = None,
    ) -> CleanupReport:
        """Run the cleanup sequence and report each step.

        Args:
            repository: Repository to clean up
            main_branch: Branch to switch back to
            feature_branch: Merged branch to delete
            deadline: Optional absolute deadline (``time.monotonic()`` clock)

        Returns:
            CleanupReport with one outcome per step
        """
        plan = self._plan(repository, main_branch, feature_branch, deadline)
        outcomes: dict[CleanupStep, StepOutcome] = {}

        for step, action, hint in plan:
            try:
                await action()
            except VCSError as e:
                outcomes[step] = StepOutcome(step=step, attempted=True, error=e, hint=hint)
                if step.criticality == Criticality.CRITICAL:
                    self.log.error("%s failed: %s", step.display_name, sanitize_string(str(e)))
                    break
                self.log.warning(
                    "%s failed, continuing with cleanup: %s", step.display_name, sanitize_string(str(e))
                )
                continue

            outcomes[step] = StepOutcome(step=step, attempted=True, completed=True)

        return CleanupReport(
            main_branch=main_branch,
            branch_name=feature_branch,
            outcomes=tuple(outcomes.get(step, StepOutcome(step=step)) for step in CleanupStep),
        )

    @staticmethod
    def _plan(
        repository: CleanupTarget,
        main_branch: str,
        feature_branch: str,
        deadline: float | None,
    ) -> list[tuple[CleanupStep, Action, str]]:
        return [
            (
                CleanupStep.SWITCH_BRANCH,
                lambda: repository.switch_branch(main_branch, deadline=deadline),
                "If you have local changes that conflict, please handle them manually:\n"
                "  - Commit your changes, or\n"
                "  - Stash your changes with: git stash\n"
                f"  - Then run: git switch {main_branch}",
            ),
            (
                CleanupStep.PULL_LATEST,
                lambda: repository.pull(deadline=deadline),
                "Please resolve any conflicts manually and run: git pull",
            ),
            (
                CleanupStep.FETCH_AND_PRUNE,
                lambda: repository.fetch_and_prune(deadline=deadline),
                "You can manually run: git fetch --prune",
            ),
            (
                CleanupStep.DELETE_BRANCH,
                lambda: repository.delete_branch(feature_branch, deadline=deadline),
                f"You can manually delete it with: git branch -D {feature_branch}",
            ),
        ]
