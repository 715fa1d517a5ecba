"""Command-line interface for auto-mr."""

import asyncio
import logging
import sys
import time

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from auto_mr import __version__
from auto_mr.cleanup.orchestrator import CleanupOrchestrator, CleanupReport
from auto_mr.config import AutoMRConfig, ConfigurationError
from auto_mr.security.logging import SanitizingFilter
from auto_mr.security.sanitize import sanitize_string
from auto_mr.timeutil import format_duration
from auto_mr.vcs.auth import describe
from auto_mr.vcs.exceptions import GitTimeoutError, UnsupportedPlatformError
from auto_mr.vcs.repository import GitRepository

app = typer.Typer(
    name="auto-mr",
    help="Automated merge request workflow for GitLab and GitHub",
    add_completion=False,
)
console = Console()

# Help text constants
VERBOSE_OUTPUT_HELP = "Verbose output"
ENV_FILE_HELP = "Path to custom environment file (default: .env.automr or .env)"
PATH_HELP = "Path inside the git repository (default: current directory)"


def setup_logging(verbose: bool) -> None:
    """Setup logging configuration.

    Every record passes through a sanitizing filter before it is rendered.

    Args:
        verbose: If True, enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=console, rich_tracebacks=True)
    handler.addFilter(SanitizingFilter())
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
    )

    # GitPython logs every command it runs at debug level
    if not verbose:
        logging.getLogger("git").setLevel(logging.WARNING)


def open_repository(config: AutoMRConfig, path: str | None) -> GitRepository:
    """Open the repository with configured remote and timeouts.

    Args:
        config: Configuration object
        path: Path inside the repository

    Returns:
        Repository handle
    """
    return GitRepository(
        path,
        remote_name=config.remote_name,
        local_timeout=config.local_git_timeout,
        network_timeout=config.network_git_timeout,
    )


def report_error(e: Exception, verbose: bool) -> None:
    """Print an error without leaking credentials."""
    if isinstance(e, ConfigurationError):
        console.print(f"[red]Configuration error: {sanitize_string(str(e))}[/red]")
    elif isinstance(e, GitTimeoutError):
        console.print(f"[red]Timed out: {sanitize_string(str(e))}[/red]")
        console.print("[yellow]The remote looked unresponsive; try again later.[/yellow]")
    else:
        console.print(f"[red]Error: {sanitize_string(str(e))}[/red]")
    if verbose:
        console.print_exception()


def display_cleanup_report(report: CleanupReport) -> None:
    """Print one status line per cleanup step.

    Args:
        report: Cleanup report to display
    """
    table = Table(title=f"Cleanup ({report.branch_name} -> {report.main_branch})", show_header=False)
    table.add_column("Status", no_wrap=True)
    table.add_column("Step")
    table.add_column("Details")

    for outcome in report.outcomes:
        if outcome.error is not None:
            table.add_row("[red]✗[/red]", outcome.step.display_name, outcome.error_message or "")
        elif outcome.completed:
            table.add_row("[green]✓[/green]", outcome.step.display_name, "")
        else:
            table.add_row("[dim]-[/dim]", outcome.step.display_name, "[dim]not attempted[/dim]")

    console.print(table)


@app.command()
def version() -> None:
    """Print version and exit."""
    console.print(__version__)


@app.command()
def info(
    path: str | None = typer.Option(None, "--path", help=PATH_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Show repository, branch and authentication details."""
    setup_logging(verbose)

    try:
        config = AutoMRConfig(env_file=env_file)
        repo = open_repository(config, path)

        console.print(f"Repository:     {repo.root}")
        console.print(f"Current branch: {repo.get_current_branch()}")
        console.print(f"Main branch:    {repo.get_main_branch()}")
        try:
            platform_name = repo.detect_platform().display_name
        except UnsupportedPlatformError:
            platform_name = "unsupported"
        console.print(f"Platform:       {platform_name}")
        console.print(f"Authentication: {describe(repo.auth)}")
        console.print(f"Git timeouts:   local {format_duration(config.local_git_timeout)}, "
                      f"network {format_duration(config.network_git_timeout)}")

    except Exception as e:
        report_error(e, verbose)
        sys.exit(1)


@app.command()
def push(
    path: str | None = typer.Option(None, "--path", help=PATH_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Push the current branch to the remote."""
    setup_logging(verbose)

    try:
        config = AutoMRConfig(env_file=env_file)
        repo = open_repository(config, path)
        branch = repo.get_current_branch()

        console.print(f"[blue]Pushing branch: {branch}[/blue]")
        asyncio.run(repo.push(branch))
        console.print("[green]✓ Branch pushed successfully[/green]")

    except Exception as e:
        report_error(e, verbose)
        sys.exit(1)


@app.command()
def cleanup(
    main: str | None = typer.Option(None, "--main", help="Main branch (default: detected)"),
    branch: str | None = typer.Option(None, "--branch", help="Feature branch to delete (default: current)"),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=1.0,
        help="Overall deadline for the cleanup in seconds (at least 1)",
    ),
    path: str | None = typer.Option(None, "--path", help=PATH_HELP),
    env_file: str | None = typer.Option(None, "--env-file", help=ENV_FILE_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=VERBOSE_OUTPUT_HELP),
) -> None:
    """Switch to the main branch, update it and delete the merged branch."""
    setup_logging(verbose)

    try:
        config = AutoMRConfig(env_file=env_file)
        repo = open_repository(config, path)
        feature_branch = branch or repo.get_current_branch()
        main_branch = main or repo.get_main_branch()

        if feature_branch == main_branch:
            console.print("[red]You are on the main branch. Please checkout a feature branch.[/red]")
            sys.exit(1)

        deadline = time.monotonic() + timeout if timeout is not None else None
        console.print(f"[blue]Switching to main branch: {main_branch}[/blue]")
        report = asyncio.run(CleanupOrchestrator().run(repo, main_branch, feature_branch, deadline=deadline))

    except Exception as e:
        report_error(e, verbose)
        sys.exit(1)

    display_cleanup_report(report)

    if not report.success:
        first_error = report.first_error
        if isinstance(first_error, GitTimeoutError):
            console.print("[red]Cleanup failed: the remote looked unresponsive[/red]")
        else:
            console.print("[red]Cleanup failed and needs manual intervention[/red]")
        sys.exit(1)

    if report.has_warnings:
        console.print("[yellow]Cleanup completed with warnings (see above)[/yellow]")
    else:
        console.print("[green]✓ Cleanup completed successfully[/green]")


def main() -> None:
    """Entry point for the auto-mr script."""
    app()
