#!/usr/bin/env python3
"""
Commit Tracker CLI - git post-commit history recorder

This CLI tool records the current commit into JSON history files with:
- Commit metadata (author, branch, message, date, web URL)
- Diff size against the first parent
- Test count, failures and statement coverage from the project's test suite
- A global history file plus one file per branch, sorted by commit date

Usage:
    python track_commit.py [OPTIONS]

Examples:
    python track_commit.py                           # Record HEAD of the current repo
    python track_commit.py --repo-path /path/to/repo # Record HEAD of another repo
    python track_commit.py --dry-run                 # Show the record without writing it
    python track_commit.py --history --branch main   # Show the history of a branch
    python track_commit.py --install-hook            # Run on every commit
"""

import logging
import sys
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from config.settings import settings
from services.commit_tracker.exceptions import CommitTrackerError
from services.commit_tracker.hooks import install_post_commit_hook
from services.commit_tracker.main import CommitTrackerService
from shared.models import CommitRecord

logger = logging.getLogger(__name__)

# Initialize Rich consoles; diagnostics go to stderr
console = Console()
error_console = Console(stderr=True)

CONCLUSION_STYLES = {
    "success": "green",
    "failure": "red",
    "neutral": "yellow",
}


def configure_logging(verbose: bool = False, quiet: bool = False):
    level = getattr(logging, settings.monitoring.log_level)
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = max(level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format=settings.monitoring.log_format,
        stream=sys.stderr,
    )


class CommitTrackerCLI:
    """Console rendering for the commit tracker."""

    def __init__(self):
        self.console = console
        self.error_console = error_console

    def display_commit_details(self, record: CommitRecord):
        """Display a commit record in a rich table."""
        table = Table(title="Commit Details", show_header=True, header_style="bold magenta")

        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("Hash", record.sha)
        table.add_row("Author", record.author or "N/A")
        table.add_row("Branch", record.branch)
        table.add_row("Date", record.commit.date)
        table.add_row("URL", record.commit.url or "N/A")

        table.add_row("Additions", f"[green]+{record.stats.additions}[/green]")
        table.add_row("Deletions", f"[red]-{record.stats.deletions}[/red]")
        table.add_row("Total Changes", str(record.stats.total))

        table.add_row("Tests", f"{record.test_count} ({record.failed_tests} failed)")
        table.add_row("Coverage", f"{record.coverage}%")
        style = CONCLUSION_STYLES.get(record.conclusion, "white")
        table.add_row("Conclusion", f"[{style}]{record.conclusion}[/{style}]")

        message = record.commit.message
        if len(message) > 100:
            message = message[:100] + "..."
        table.add_row("Message", message or "N/A")

        self.console.print(table)

    def display_success_message(self, record: CommitRecord, dry_run: bool = False):
        """Display success message with commit information."""
        first_line = record.commit.message.splitlines()[0] if record.commit.message else "No message"
        if len(first_line) > 50:
            first_line = first_line[:50] + "..."

        success_text = Text()
        success_text.append("✅ ", style="bold green")
        if dry_run:
            success_text.append("Commit record built (dry run, nothing written)\n\n", style="bold white")
        else:
            success_text.append("Commit recorded successfully!\n\n", style="bold white")
        success_text.append("Hash: ", style="cyan")
        success_text.append(f"{record.sha[:8]}\n", style="bold white")
        success_text.append("Branch: ", style="cyan")
        success_text.append(f"{record.branch}\n", style="white")
        success_text.append("Message: ", style="cyan")
        success_text.append(first_line, style="white")

        panel = Panel(success_text, title="Success", border_style="green")
        self.console.print(panel)

    def display_history(self, entries: List[Dict[str, Any]], title: str):
        """Display history entries, oldest first."""
        if not entries:
            self.console.print(Panel("No commits recorded yet.", title=title))
            return

        table = Table(title=title, show_header=True, header_style="bold magenta")
        table.add_column("Date", style="yellow", no_wrap=True)
        table.add_column("Hash", style="cyan", no_wrap=True)
        table.add_column("Author", style="green")
        table.add_column("Branch", style="blue")
        table.add_column("+/-", justify="right")
        table.add_column("Tests", justify="right")
        table.add_column("Coverage", justify="right")
        table.add_column("Message", style="white")

        for entry in entries:
            commit = entry.get("commit") or {}
            stats = entry.get("stats") or {}
            conclusion = entry.get("conclusion", "neutral")
            style = CONCLUSION_STYLES.get(conclusion, "white")
            message = (commit.get("message") or "").splitlines()
            summary = message[0] if message else ""
            if len(summary) > 50:
                summary = summary[:50] + "..."
            table.add_row(
                str(commit.get("date", "N/A")),
                str(entry.get("sha", ""))[:8],
                str(entry.get("author", "")),
                str(entry.get("branch", "")),
                f"[green]+{stats.get('additions', 0)}[/green] [red]-{stats.get('deletions', 0)}[/red]",
                f"[{style}]{entry.get('test_count', 0)}/{entry.get('failed_tests', 0)}[/{style}]",
                f"{entry.get('coverage', 0)}%",
                summary,
            )

        self.console.print(table)

    def display_error_message(self, error: str, suggestion: str = ""):
        """Display error message with helpful suggestions."""
        error_text = Text()
        error_text.append("❌ ", style="bold red")
        error_text.append("Error occurred\n\n", style="bold white")
        error_text.append("Error: ", style="red")
        error_text.append(f"{error}\n", style="white")

        if suggestion:
            error_text.append("Suggestion: ", style="yellow")
            error_text.append(f"{suggestion}", style="white")

        panel = Panel(error_text, title="Error", border_style="red")
        self.error_console.print(panel)


# CLI instance
cli = CommitTrackerCLI()


@click.command()
@click.option(
    '--repo-path',
    default='.',
    help='Path to Git repository (default: current directory)',
    type=click.Path(exists=True, file_okay=False, dir_okay=True)
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Build and show the record without writing history files'
)
@click.option(
    '--skip-tests',
    is_flag=True,
    help='Do not run the test suite'
)
@click.option(
    '--history',
    'show_history',
    is_flag=True,
    help='Show recorded history instead of recording'
)
@click.option(
    '--branch',
    help='Branch history to show with --history (default: global history)'
)
@click.option(
    '--limit',
    default=20,
    help='Number of history entries to show',
    type=click.IntRange(1, 10000)
)
@click.option(
    '--install-hook',
    is_flag=True,
    help='Install the git post-commit hook'
)
@click.option(
    '--force',
    is_flag=True,
    help='Replace an existing post-commit hook'
)
@click.option(
    '--quiet',
    '-q',
    is_flag=True,
    help='Only print errors'
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose output'
)
@click.version_option(version=settings.version)
def track_commit(
    repo_path: str,
    dry_run: bool,
    skip_tests: bool,
    show_history: bool,
    branch: Optional[str],
    limit: int,
    install_hook: bool,
    force: bool,
    quiet: bool,
    verbose: bool
):
    """Record the current commit into the commit history files."""
    configure_logging(verbose, quiet)

    try:
        if install_hook:
            path = install_post_commit_hook(repo_path, settings.hook.command, force=force)
            service = CommitTrackerService(repo_path)
            service.store.ensure_main()
            if not quiet:
                cli.console.print(f"[green]✅ Installed post-commit hook:[/green] {path}")
            return

        service = CommitTrackerService(repo_path)

        if show_history:
            entries = service.history(branch, limit)
            title = f"Commit History ({branch})" if branch else "Commit History"
            cli.display_history(entries, title)
            return

        record = service.track_commit(dry_run=dry_run, run_tests=not skip_tests)

        if dry_run:
            cli.display_success_message(record, dry_run=True)
            cli.display_commit_details(record)
        elif not quiet:
            cli.display_success_message(record)
            if verbose:
                cli.display_commit_details(record)

    except CommitTrackerError as e:
        cli.display_error_message(str(e), "Check the repository state and the logs for more details")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        cli.display_error_message(str(e), "Check the logs for more details")
        sys.exit(1)


if __name__ == "__main__":
    track_commit()
