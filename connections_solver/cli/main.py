"""
CLI interface for Connections Solver.

Provides command-line access to puzzle solving and cost estimates.
"""

import asyncio
import base64
import json
import logging
import mimetypes
import os
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from connections_solver.config.loader import SolverConfig, load_solver_config
from connections_solver.config.logging_config import setup_logging
from connections_solver.core.catalog import load_pricing_catalog
from connections_solver.core.errors import SolverError
from connections_solver.core.normalizer import SolutionResult
from connections_solver.core.pricing import CostBreakdown, calculate_cost
from connections_solver.core.token_counter import UsageRecord
from connections_solver.sdk.openai_client import ConnectionsSolver

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

API_KEY_ENV = "OPENAI_API_KEY"


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Connections Solver CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Connections Solver - Use --help to see available commands")


def image_to_data_uri(image: str) -> str:
    """Turn an image path into a base64 data URI; URLs pass through."""
    if image.startswith(("http://", "https://", "data:")):
        return image

    path = Path(image)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {image}")

    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


@app.command()
def solve(
    image: str = typer.Argument(..., help="Puzzle image path or URL"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Vision model id"),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Replace the default prompt"),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", "-k", help=f"API key (defaults to ${API_KEY_ENV})"
    ),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML settings file"),
    prices: Optional[str] = typer.Option(None, "--prices", help="Pricing JSON path or URL"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result object"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Solve a Connections puzzle from an image."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    try:
        config = load_solver_config(config_path) if config_path else SolverConfig()

        key = api_key or os.environ.get(API_KEY_ENV)
        if not key:
            raise ValueError(f"No API key given; pass --api-key or set {API_KEY_ENV}")

        solver = ConnectionsSolver(base_url=config.base_url, timeout=config.timeout)
        solver.load_model_prices(prices or config.pricing_source)

        result = asyncio.run(solver.solve(
            api_key=key,
            image_data=image_to_data_uri(image),
            model=model or config.model,
            prompt=prompt or config.prompt,
        ))
    except (SolverError, ValueError, OSError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
    else:
        _display_solution(result)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def cost(
    model: str = typer.Argument(..., help="Model id"),
    prompt_tokens: int = typer.Option(..., "--prompt-tokens", min=0, help="Input tokens"),
    completion_tokens: int = typer.Option(..., "--completion-tokens", min=0, help="Output tokens"),
    prices: Optional[str] = typer.Option(None, "--prices", help="Pricing JSON path or URL"),
):
    """Estimate the cost of a completion."""
    setup_logging(logging.ERROR)

    catalog = load_pricing_catalog(prices) if prices else None
    breakdown = calculate_cost(
        model,
        UsageRecord(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
        catalog,
    )

    console.print(f"\n[bold]Model:[/bold] {model}")
    console.print(f"[bold]Pricing:[/bold] {breakdown.price_source.value}")
    _display_cost(breakdown)
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float) -> str:
    """Format a cost to 4 decimal places."""
    return f"${amount:,.4f}"


def _display_cost(cost: CostBreakdown):
    """Display token and cost lines for one completion."""
    console.print(
        f"Tokens: {cost.prompt_tokens:,} input + "
        f"{cost.completion_tokens:,} output = {cost.total_tokens:,} total"
    )
    console.print(
        f"Cost: {_format_currency(cost.input_cost)} input + "
        f"{_format_currency(cost.output_cost)} output = "
        f"[bold]{_format_currency(cost.total_cost)} total[/bold]"
    )
    if cost.elapsed_seconds:
        console.print(f"Time: {cost.elapsed_seconds:.2f} seconds")


def _display_solution(result: SolutionResult):
    """Display the solution groups, or the text answer, and its cost."""
    console.print("\n[bold]Connections Solution[/bold]")
    console.print("-" * 40)

    if result.groups is not None:
        table = Table(show_lines=True)
        table.add_column("#", justify="right")
        table.add_column("Theme", style="bold")
        table.add_column("Words")
        table.add_column("Explanation", style="dim")
        for index, group in enumerate(result.groups, start=1):
            table.add_row(str(index), group.theme, ", ".join(group.words), group.explanation or "")
        console.print(table)
    else:
        console.print(result.text_response, markup=False)

    console.print(f"\n[dim]Model: {result.model} (finish reason: {result.finish_reason})[/]")
    if result.cost is not None:
        _display_cost(result.cost)


if __name__ == "__main__":
    app()
