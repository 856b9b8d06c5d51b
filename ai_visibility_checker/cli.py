"""
CLI entrypoint for AI Visibility Checker.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, tables, progress bars, colored text
- Agent-friendly output: Structured JSON for AI automation
- Quiet mode: Tab-separated minimal output for shell scripts

Commands:
    check: Score domain visibility for a list of prompts
    validate: Validate configuration without calling the model
    demo: Run the full pipeline against canned answers (no API key)

Exit codes:
    0: Success - all prompts scored
    1: Configuration or request error (invalid YAML, missing API key,
       missing domain or prompts)
    2: Results file could not be written
    3: Partial failure (some prompts failed, but the check completed)
    4: Complete failure (no prompt succeeded)

Examples:
    # From a config file
    ai-visibility-checker check --config visibility.config.yaml

    # Inline, as in the web form: comma-separated competitors, one prompt per flag
    ai-visibility-checker check --domain oxylabs.io \\
        --competitors "brightdata.com, smartproxy.com" \\
        --prompt "best residential proxy provider"

    # Agent-friendly JSON output, envelope saved to a file
    ai-visibility-checker check --config visibility.config.yaml \\
        --format json --output results.json

Security:
    - API keys are loaded from environment variables only
    - Errors may contain file paths but never API keys
"""

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.traceback import install as install_rich_traceback

from ai_visibility_checker.config.loader import build_runtime_config, load_config
from ai_visibility_checker.config.schema import RuntimeConfig
from ai_visibility_checker.exceptions import (
    APIKeyMissingError,
    ConfigFileNotFoundError,
    ConfigurationError,
    ConfigValidationError,
)
from ai_visibility_checker.llm_runner.runner import (
    PromptResult,
    average_scores,
    check_visibility,
    run_from_config,
)
from ai_visibility_checker.utils.console import (
    create_progress_bar,
    error,
    info,
    output_mode,
    print_banner,
    print_final_summary,
    print_mentions,
    print_visibility_table,
    spinner,
    success,
    warning,
)
from ai_visibility_checker.utils.logging import setup_logging

# Install Rich tracebacks for better error messages
install_rich_traceback(show_locals=False)

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0  # All prompts scored
EXIT_CONFIG_ERROR = 1  # Config or request validation failed
EXIT_OUTPUT_ERROR = 2  # Results file could not be written
EXIT_PARTIAL_FAILURE = 3  # Some prompts failed
EXIT_COMPLETE_FAILURE = 4  # All prompts failed

# Create Typer app
app = typer.Typer(
    name="ai-visibility-checker",
    help="Score how visible your domain is in AI-generated answers",
    add_completion=False,
)


@app.command()
def check(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    domain: str = typer.Option(
        None,
        "--domain",
        "-d",
        help="Primary domain to score (used when --config is not given)",
    ),
    competitors: str = typer.Option(
        None,
        "--competitors",
        help="Comma-separated competitor domains",
    ),
    prompts: list[str] = typer.Option(
        None,
        "--prompt",
        "-p",
        help="Prompt to evaluate (repeat for several prompts)",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the result envelope as JSON to this file",
        dir_okay=False,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output (tab-separated values)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
):
    """
    Score domain visibility in AI answers for each prompt.

    This command will:
    1. Load your configuration (or build it from --domain/--prompt flags)
    2. Ask the model each prompt
    3. Extract the companies mentioned in every answer
    4. Score your domain and each competitor per answer

    Exit codes:
      0: All prompts scored
      1: Configuration error
      2: Results file could not be written
      3: Partial failure (some prompts failed)
      4: Complete failure (all prompts failed)

    Examples:
      ai-visibility-checker check --config visibility.config.yaml
      ai-visibility-checker check -d oxylabs.io --competitors brightdata.com \\
          -p "best residential proxy provider"
    """
    output_mode.format = format
    output_mode.quiet = quiet

    # Suppress JSON logs in human mode (unless verbose=True)
    setup_logging(verbose=verbose, quiet_logs=output_mode.is_human())

    print_banner(_read_version())

    try:
        with spinner("Loading configuration..."):
            runtime_config = _load_runtime_config(config, domain, competitors, prompts)

        success(
            f"Loaded {len(runtime_config.prompts)} prompts, "
            f"{len(runtime_config.domains)} domains"
        )

    except ConfigFileNotFoundError as e:
        error(f"Configuration file not found: {e}")
        _flush_error_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except APIKeyMissingError as e:
        error(f"API key missing: {e}")
        _flush_error_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except ConfigurationError as e:
        error(f"Configuration validation failed: {e}")
        _flush_error_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)

    progress = create_progress_bar()
    with progress:
        task = progress.add_task("Checking prompts...", total=len(runtime_config.prompts))

        def on_prompt_done(prompt: str, result: PromptResult) -> None:
            progress.advance(task)

        envelope = asyncio.run(run_from_config(runtime_config, on_prompt_done))

    raise typer.Exit(
        _report_envelope(envelope, runtime_config.domains, output, verbose=verbose)
    )


@app.command()
def validate(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: 'text' or 'json'",
    ),
):
    """
    Validate configuration file without calling the model.

    Checks:
    - YAML syntax is valid
    - Domain and at least one prompt are present
    - Scoring overrides pass validation rules
    - System prompts can be loaded
    - API key environment variable is set

    Exit codes:
      0: Configuration is valid
      1: Configuration is invalid

    Examples:
      ai-visibility-checker validate --config visibility.config.yaml
      ai-visibility-checker validate --config visibility.config.yaml --format json
    """
    output_mode.format = format

    try:
        with spinner("Validating configuration..."):
            runtime_config = load_config(config)
    except ConfigFileNotFoundError as e:
        _validation_failed(f"Configuration file not found: {e}", "file_not_found")
    except APIKeyMissingError as e:
        _validation_failed(f"API key missing: {e}", "api_key_missing")
    except ConfigValidationError as e:
        _validation_failed(f"Validation failed: {e}", "validation_error")

    success("Configuration is valid")
    info(f"Model: {runtime_config.model.provider}/{runtime_config.model.model_name}")
    info(f"Domain: {runtime_config.domain}")
    info(f"Competitors: {len(runtime_config.competitors)}")
    info(f"Prompts: {len(runtime_config.prompts)}")

    if output_mode.is_agent():
        output_mode.add_json("valid", True)
        output_mode.add_json("domain", runtime_config.domain)
        output_mode.add_json("competitors_count", len(runtime_config.competitors))
        output_mode.add_json("prompts_count", len(runtime_config.prompts))
        output_mode.flush_json()

    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def demo(
    mode: str = typer.Option(
        "human",
        "--mode",
        "-m",
        help="Output mode: 'human' (Rich), 'agent' (JSON), or 'quiet' (tab-separated)",
    ),
):
    """
    Run the scoring pipeline on canned answers.

    No API key or configuration file needed: both model calls are answered by
    a mock client. Shows entity extraction, alias normalization and the
    per-domain scores for two sample prompts.

    Examples:
      ai-visibility-checker demo
      ai-visibility-checker demo --mode agent
    """
    from rich.panel import Panel

    from ai_visibility_checker.llm_runner.mock_client import MockLLMClient
    from ai_visibility_checker.utils.console import console

    output_mode.format = "json" if mode == "agent" else "text"
    output_mode.quiet = mode == "quiet"

    setup_logging(verbose=False, quiet_logs=True)

    if output_mode.is_human() and not output_mode.quiet:
        console.print()
        console.print(
            Panel.fit(
                "[bold cyan]AI Visibility Checker - Demo[/bold cyan]\n\n"
                "Scores oxylabs.io against two competitors on two sample prompts.\n"
                "Answers come from a mock model - no API key needed!",
                border_style="cyan",
            )
        )
        console.print()

    demo_domain = "oxylabs.io"
    demo_competitors = ["brightdata.com", "smartproxy.com"]
    demo_prompts = [
        "best residential proxy provider",
        "proxy service for large scale web scraping",
    ]

    residential_answer = (
        "Bright Data is widely seen as the market leader for residential proxies, "
        "with the largest residential IP pool.\n"
        "Oxylabs is a premier alternative with advanced rotating proxy options "
        "and reliable geolocation targeting.\n"
        "Smartproxy offers affordable proxies for smaller data collection projects."
    )
    scraping_answer = (
        "For web scraping at scale, Oxylabs is the top choice thanks to its "
        "scraper APIs and datacenter proxy network.\n"
        "Bright Data (formerly Luminati Networks) is a comprehensive platform "
        "for data extraction.\n"
        "Smartproxy is a reliable budget option."
    )

    answer_client = MockLLMClient(
        responses={
            demo_prompts[0]: residential_answer,
            demo_prompts[1]: scraping_answer,
        },
        model_name="demo-answer-model",
    )
    extraction_client = MockLLMClient(
        responses={
            "largest residential IP pool": json.dumps(
                {
                    "companyAliases": [
                        {"mainName": "Bright Data", "aliases": ["Bright Data Ltd."]},
                        {"mainName": "Oxylabs", "aliases": ["oxylabs.io"]},
                        {"mainName": "Smartproxy", "aliases": ["smartproxy.com"]},
                    ],
                    "mentionOrder": ["Bright Data", "Oxylabs", "Smartproxy"],
                    "leadershipStatements": [
                        {
                            "company": "Bright Data",
                            "statement": "market leader for residential proxies",
                        }
                    ],
                }
            ),
            "scraper APIs": "```json\n"
            + json.dumps(
                {
                    "companyAliases": [
                        {"mainName": "Oxylabs", "aliases": []},
                        {"mainName": "Smartproxy", "aliases": ["smartproxy.com"]},
                    ],
                    "mentionOrder": ["Oxylabs", "Bright Data", "Smartproxy"],
                    "leadershipStatements": [
                        {"company": "Oxylabs", "statement": "the top choice"}
                    ],
                }
            )
            + "\n```",
        },
        model_name="demo-extraction-model",
    )

    envelope = asyncio.run(
        check_visibility(
            domain=demo_domain,
            competitors=demo_competitors,
            prompts=demo_prompts,
            answer_client=answer_client,
            extraction_client=extraction_client,
        )
    )

    exit_code = _report_envelope(
        envelope, [demo_domain, *demo_competitors], output=None, verbose=True
    )

    if output_mode.is_human() and not output_mode.quiet:
        console.print()
        console.print("[bold]Next steps:[/bold]")
        console.print("  1. Export your API key: export GEMINI_API_KEY=...")
        console.print("  2. Write a visibility.config.yaml (see examples/)")
        console.print("  3. Run: ai-visibility-checker check --config visibility.config.yaml")

    raise typer.Exit(exit_code)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    AI Visibility Checker - Score your domain's visibility in AI answers.

    Asks a generative model your buyer prompts, extracts the companies each
    answer mentions, and scores your domain against competitors.

    Use 'ai-visibility-checker COMMAND --help' for detailed command documentation.
    """
    from ai_visibility_checker.utils.console import console

    if version:
        console.print(
            f"[bold cyan]ai-visibility-checker[/bold cyan] version {_read_version()}"
        )
        console.print("Python CLI for scoring brand visibility in AI answers")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Quick start:")
        console.print("  ai-visibility-checker check --config visibility.config.yaml")
        console.print()
        console.print("Commands:")
        console.print("  check     Score domain visibility for your prompts")
        console.print("  validate  Validate configuration without calling the model")
        console.print("  demo      Run the pipeline on canned answers (no API key needed)")


def _load_runtime_config(
    config: Path | None,
    domain: str | None,
    competitors: str | None,
    prompts: list[str] | None,
) -> RuntimeConfig:
    """Load from --config, or build from inline flags when no file is given."""
    if config is not None:
        if domain or competitors or prompts:
            warning("--config given; ignoring --domain/--competitors/--prompt")
        return load_config(config)

    if not domain or not prompts:
        raise ConfigValidationError(
            "Missing required parameters: pass --config, or --domain and at least "
            "one --prompt"
        )

    return build_runtime_config(domain=domain, competitors=competitors, prompts=prompts)


def _report_envelope(
    envelope: dict,
    domains: list[str],
    output: Path | None,
    verbose: bool = False,
) -> int:
    """Display the envelope, optionally write it to a file, and pick the exit code."""
    if not envelope["success"]:
        error(envelope["error"])
        _flush_error_json()
        return EXIT_CONFIG_ERROR

    visibility = envelope["visibility"]
    total = len(visibility)
    successful = sum(1 for result in visibility.values() if "error" not in result)

    print_visibility_table(visibility, domains, average_scores(visibility))
    if verbose:
        print_mentions(visibility)

    output_file = None
    if output is not None:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            with output.open("w", encoding="utf-8") as f:
                json.dump(envelope, f, indent=2, ensure_ascii=False)
            output_file = str(output)
        except OSError as e:
            logger.error(f"Failed to write results file {output}: {e}")
            error(f"Failed to write results file: {e}")
            _flush_error_json()
            return EXIT_OUTPUT_ERROR

    print_final_summary(successful=successful, total=total, output_file=output_file)

    if successful == 0:
        return EXIT_COMPLETE_FAILURE
    if successful < total:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


def _validation_failed(message: str, error_type: str) -> None:
    error(message)

    if output_mode.is_agent():
        output_mode.add_json("valid", False)
        output_mode.add_json("error_type", error_type)
        output_mode.flush_json()

    raise typer.Exit(EXIT_CONFIG_ERROR)


def _flush_error_json() -> None:
    if output_mode.is_agent():
        output_mode.flush_json()


def _read_version() -> str:
    """
    Read version from package metadata (pyproject.toml).

    Returns:
        Version string (e.g., "0.1.0")
    """
    try:
        from importlib.metadata import version

        return version("ai-visibility-checker")
    except Exception:
        # Fallback if package metadata is not available
        return "0.1.0"


if __name__ == "__main__":
    app()
