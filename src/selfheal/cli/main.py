"""
SelfHeal CLI
Main entry point for the command-line interface

Usage:
    selfheal heal error.json            # Run the pipeline for a captured error
    selfheal heal error.json --json     # Print the full result as JSON
    selfheal prompts                    # List prompt templates
    selfheal version                    # Show version information
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from selfheal import __version__
from selfheal.llm.prompts import get_prompt_manager
from selfheal.self_healing.config import SelfHealConfig
from selfheal.self_healing.engine import SelfHealEngine
from selfheal.self_healing.models import ErrorInfo, SelfHealResult
from selfheal.shared.domain.exceptions import SelfHealError
from selfheal.shared.infrastructure.config_source import SettingsConfigSource
from selfheal.shared.infrastructure.logging import configure_logging, get_logger

app = typer.Typer(
    name="selfheal",
    help="SelfHeal - automated remediation for captured runtime errors",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
logger = get_logger(__name__)


def load_error_info(error_file: Path) -> ErrorInfo:
    """Read a camelCase ErrorInfo JSON document."""
    try:
        data = json.loads(error_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SelfHealError(f"Cannot read error file '{error_file}': {e}") from e

    if not isinstance(data, dict):
        raise SelfHealError(f"Error file '{error_file}' must contain a JSON object")
    if data.get("context") is None:
        data.pop("context", None)

    try:
        return ErrorInfo.from_json(data)
    except (TypeError, ValueError) as e:
        raise SelfHealError(f"Invalid error file '{error_file}': {e}") from e


async def run_heal(engine: SelfHealEngine, error: ErrorInfo) -> SelfHealResult:
    try:
        return await engine.heal(error)
    finally:
        await engine.aclose()


def display_result(result: SelfHealResult) -> None:
    """Print a summary table and the pull request body."""
    classification = result.classification
    analysis = classification.runtime_error_analysis

    table = Table(title="Self-heal result", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Issue", result.issue_id)
    table.add_row("Status", "[green]success[/green]" if result.success else "[red]failed[/red]")
    table.add_row("Category", f"{classification.primary_category} / {classification.sub_category}")
    table.add_row("Rule", analysis.rule.value if analysis else "-")
    if result.validation:
        table.add_row("Verdict", result.validation.validation_result.value)
        table.add_row("Recommendation", result.validation.recommendation.value)
    table.add_row("Confidence", f"{result.metadata.confidence}%")
    table.add_row("Automated", str(result.metadata.automated))
    table.add_row("Auto-apply eligible", str(result.metadata.auto_apply_eligible))
    table.add_row("Trace", result.metadata.trace_id)
    console.print(table)

    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
    if result.commit_message:
        console.print(Panel(Text(result.commit_message), title="Commit message", border_style="cyan"))
    if result.pull_request_body:
        console.print(Panel(Text(result.pull_request_body), title="Pull request", border_style="cyan"))


@app.command()
def heal(
    error_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="ErrorInfo JSON file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Self-heal YAML config file"),
    mock: Optional[bool] = typer.Option(None, "--mock/--no-mock", help="Use the deterministic mock model"),
    llm_assist: bool = typer.Option(False, "--llm-assist", help="Let the model refine unmatched errors"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Run the self-healing pipeline for a captured error"""
    try:
        error = load_error_info(error_file)
        heal_config = SelfHealConfig.from_yaml(config) if config else SelfHealConfig.from_source(SettingsConfigSource())

        overrides = {}
        if mock is not None:
            overrides["use_mock_llm"] = mock
        if llm_assist:
            overrides["llm_assist"] = True
        if overrides:
            heal_config = heal_config.model_copy(update=overrides)

        engine = SelfHealEngine(heal_config)
    except SelfHealError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=2)

    result = asyncio.run(run_heal(engine, error))

    if as_json:
        typer.echo(json.dumps(result.to_json(), indent=2))
    else:
        display_result(result)

    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def prompts():
    """List available prompt templates"""
    manager = get_prompt_manager()

    table = Table(title="Prompt templates", box=box.SIMPLE)
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")

    for name in manager.available():
        table.add_row(name, str(len(manager.load(name))))

    console.print(table)


@app.command()
def version():
    """Show SelfHeal version information"""
    console.print(Panel.fit(
        "[bold cyan]SelfHeal Core[/bold cyan]\n"
        f"[dim]Version:[/dim] {__version__}\n",
        title="About SelfHeal",
        border_style="cyan"
    ))


def main():
    """Main entry point"""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
