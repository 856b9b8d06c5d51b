"""
Rich console utilities for dual-mode CLI output.

Provides terminal output for humans and structured JSON for AI agents.
All output functions automatically adapt based on the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json/quiet)
- Context managers: spinner(), create_progress_bar()
- Output functions: success(), error(), warning(), info()
- Display functions: print_visibility_table(), print_banner(), print_final_summary()

Human Mode (--format text):
    - Rich spinners, progress bars, colored tables
    - Scores as percentages with two decimals

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Quiet Mode (--quiet):
    - Tab-separated values
    - No decorations

Examples:
    >>> from ai_visibility_checker.utils.console import output_mode, spinner, success
    >>> output_mode.format = "text"
    >>> with spinner("Loading..."):
    ...     config = load_config()
    >>> success("Config loaded successfully")

    >>> output_mode.format = "json"
    >>> success("Config loaded")  # Buffers to JSON
    >>> output_mode.flush_json()   # Outputs JSON to stdout
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
)
from rich.table import Table


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        quiet: If True, suppress non-essential output
        _json_buffer: Internal buffer for JSON output in agent mode

    Examples:
        >>> mode = OutputMode()
        >>> mode.is_human()
        True
        >>> mode.format = "json"
        >>> mode.is_agent()
        True
    """

    def __init__(self, format_type: str = "text", quiet: bool = False):
        """
        Initialize output mode.

        Raises:
            ValueError: If format_type is not "text" or "json"
        """
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self.quiet = quiet
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """
        Add key-value pair to JSON buffer.

        Used in agent mode to accumulate structured data
        before final output via flush_json().
        """
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


def format_score(score: float) -> str:
    """
    Render a score in [0, 1] as a percentage with two decimals.

    Example:
        >>> format_score(0.41333)
        '41.33%'
    """
    return f"{score * 100:.2f}%"


@contextmanager
def spinner(message: str):
    """
    Context manager for showing a spinner during operations.

    Displays a Rich spinner with message in human mode.
    Silent in agent/quiet modes.
    """
    if output_mode.is_human() and not output_mode.quiet:
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def create_progress_bar() -> Progress | NoOpProgress:
    """
    Create a progress bar for tracking prompts.

    Returns a Rich Progress instance in human mode, a no-op progress bar in
    agent/quiet modes.

    Examples:
        >>> progress = create_progress_bar()
        >>> with progress:
        ...     task = progress.add_task("Checking prompts...", total=3)
        ...     progress.advance(task)
    """
    if output_mode.is_human() and not output_mode.quiet:
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        )
    return NoOpProgress()


class NoOpProgress:
    """
    No-op progress bar for agent and quiet modes.

    Provides the same interface as Rich Progress but does nothing.
    """

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass

    def add_task(self, _description: str, total: int | None = None) -> int:
        return 0

    def advance(self, _task_id: int, _advance: float = 1.0) -> None:
        pass


def success(message: str) -> None:
    """
    Print a success message.

    Human mode: Green checkmark with message
    Agent mode: Buffer to JSON
    Quiet mode: Silent
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """
    Print an error message.

    Human mode: Red X with message to stderr (also in quiet mode)
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """
    Print a warning message.

    Human mode: Yellow warning symbol with message
    Agent mode: Buffer to JSON
    """
    if output_mode.is_human():
        if not output_mode.quiet:
            console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message (human mode only)."""
    if output_mode.is_human() and not output_mode.quiet:
        console.print(f"[blue]ℹ[/blue] {message}")


def print_visibility_table(
    visibility: dict[str, dict],
    domains: list[str],
    averages: dict[str, float],
) -> None:
    """
    Print per-prompt visibility scores with an average row.

    Human mode: Rich table, one column per domain, failed prompts in red
    Agent mode: Buffer the visibility mapping and averages as JSON
    Quiet mode: One tab-separated line per prompt (prompt, then scores)

    Args:
        visibility: VisibilityReport.to_dict() output
        domains: Domains in display order (primary domain first)
        averages: Mean score per domain over successful prompts
    """
    if output_mode.is_agent():
        output_mode.add_json("visibility", visibility)
        output_mode.add_json("average_scores", averages)
        return

    if output_mode.quiet:
        for prompt, result in visibility.items():
            if "error" in result:
                print(f"{prompt}\tERROR\t{result['error']}")
                continue
            scores = "\t".join(
                format_score(result["scores"].get(domain, 0.0)) for domain in domains
            )
            print(f"{prompt}\t{scores}")
        return

    table = Table(title="Visibility Scores", box=box.ROUNDED)
    table.add_column("Prompt", style="cyan", no_wrap=False)
    for index, domain in enumerate(domains):
        table.add_column(
            domain, justify="right", style="bold green" if index == 0 else "green"
        )

    for prompt, result in visibility.items():
        if "error" in result:
            table.add_row(
                prompt,
                f"[red]{result['error']}[/red]",
                *["" for _ in domains[1:]],
            )
            continue
        table.add_row(
            prompt,
            *[format_score(result["scores"].get(domain, 0.0)) for domain in domains],
        )

    table.add_section()
    table.add_row(
        "[bold]Average[/bold]",
        *[
            format_score(averages[domain]) if domain in averages else "-"
            for domain in domains
        ],
    )

    console.print(table)


def print_mentions(visibility: dict[str, dict]) -> None:
    """
    Print the extracted analysis for each successful prompt.

    Shows the first-mention order, every company group with its aliases,
    and the leadership statements attributed to each company.

    Human mode only; agents already receive the full analysis in the
    visibility mapping.
    """
    if not output_mode.is_human() or output_mode.quiet:
        return

    for prompt, result in visibility.items():
        analysis = result.get("analysis")
        if not analysis:
            continue
        order = " > ".join(analysis.get("mentionOrder", [])) or "-"
        console.print(f"[bold]{escape(prompt)}[/bold]: {escape(order)}")

        for group in analysis.get("companyAliases", []):
            aliases = escape(", ".join(group.get("aliases", [])) or "-")
            name = escape(group.get("mainName", ""))
            console.print(f"  [cyan]{name}[/cyan] [dim]({aliases})[/dim]")

        for statement in analysis.get("leadershipStatements", []):
            console.print(
                f"  [green]★[/green] {escape(statement.get('company', ''))}: "
                f"[italic]{escape(statement.get('statement', ''))}[/italic]"
            )


def print_banner(version: str) -> None:
    """
    Print a startup banner with version in human mode.

    Silent in agent/quiet modes.
    """
    if not output_mode.is_human() or output_mode.quiet:
        return

    banner = f"""
[bold cyan]╔{"═" * 39}╗
║   AI Visibility Checker v{version:<12} ║
║   Brand visibility in AI answers      ║
╚{"═" * 39}╝[/bold cyan]
"""

    console.print(banner)


def print_final_summary(
    successful: int, total: int, output_file: str | None = None
) -> None:
    """
    Print final summary with run statistics.

    Human mode: Rich panel with colored border (green if all succeeded)
    Agent mode: Flush all buffered JSON including these final stats
    Quiet mode: Tab-separated values

    Args:
        successful: Number of prompts scored without error
        total: Number of prompts attempted
        output_file: Path the envelope was written to, if any
    """
    if output_mode.is_agent():
        output_mode.add_json("successful_prompts", successful)
        output_mode.add_json("total_prompts", total)
        if output_file:
            output_mode.add_json("output_file", output_file)
        output_mode.flush_json()
        return

    if output_mode.quiet:
        print(f"{successful}\t{total}\t{output_file or ''}")
        return

    success_rate = (successful / total * 100) if total > 0 else 0.0

    summary_text = (
        f"[bold]Prompts:[/bold] {successful}/{total} successful ({success_rate:.1f}%)"
    )
    if output_file:
        summary_text += f"\n[bold]Results File:[/bold] {output_file}"

    if successful == total:
        border_style = "green"
        title = "[bold green]✓ Check Completed Successfully[/bold green]"
    elif successful > 0:
        border_style = "yellow"
        title = "[bold yellow]⚠ Check Completed with Partial Failures[/bold yellow]"
    else:
        border_style = "red"
        title = "[bold red]✗ Check Failed[/bold red]"

    panel = Panel(
        summary_text,
        title=title,
        border_style=border_style,
        box=box.ROUNDED,
    )

    console.print(panel)
