"""Post-merge branch cleanup."""

from auto_mr.cleanup.orchestrator import (
    CleanupOrchestrator,
    CleanupReport,
    CleanupStep,
    Criticality,
    StepOutcome,
)

__all__ = [
    "CleanupOrchestrator",
    "CleanupReport",
    "CleanupStep",
    "Criticality",
    "StepOutcome",
]
