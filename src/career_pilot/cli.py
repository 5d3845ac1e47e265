"""Developer CLI using typer + rich."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from career_pilot.clients.llm_client import LLMClient
from career_pilot.config import load_config
from career_pilot.errors import BackendError, ConfigurationError, ParseError
from career_pilot.logging.usage_store import UsageStore
from career_pilot.models.profile import Profile
from career_pilot.pipeline.recommender import CareerRecommender, dump_careers
from career_pilot.ui.components import CareerCard, career_card

app = typer.Typer(
    name="career-pilot",
    help="CareerPilot AI developer tools",
    no_args_is_help=True,
)
console = Console()


def _render_card(card: CareerCard) -> Panel:
    lines = [f"[bold]{card.match_label}[/bold]" + (f"  [dim]{card.category}[/dim]" if card.category else "")]
    if card.reason:
        lines.append(card.reason)
    if card.has_skill_data:
        tags = [f"[green]✓ {s}[/green]" for s in card.have_tags]
        tags += [f"[yellow]+ {s}[/yellow]" for s in card.need_tags]
        lines.append(" ".join(tags))
    else:
        lines.append("[dim]No skill data provided.[/dim]")
    for i, step in enumerate(card.roadmap, 1):
        lines.append(f"  {i}. [bold]{step.title}[/bold]: {step.focus}")
    return Panel("\n".join(lines), title=card.title, border_style="cyan")


@app.command()
def recommend(
    profile_file: Path = typer.Argument(help="Profile YAML/JSON (name, education, skills, interests, workStyle, goal)"),
    json_out: Path = typer.Option(None, "--json-out", "-o", help="Write the careers JSON to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Generate career recommendations for a profile file."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    if not profile_file.exists():
        console.print(f"[red]Profile file not found: {profile_file}[/red]")
        raise typer.Exit(1)

    try:
        profile = Profile.model_validate(yaml.safe_load(profile_file.read_text(encoding="utf-8")) or {})
    except (yaml.YAMLError, ValidationError) as e:
        console.print(f"[red]Invalid profile: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    config = load_config()
    llm = LLMClient(timeout=config.llm.timeout)
    recommender = CareerRecommender(
        llm,
        model=config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        career_count=config.llm.career_count,
    )

    try:
        with console.status("Generating career roadmap..."):
            careers = asyncio.run(recommender.generate(profile))
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    except ParseError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        if verbose:
            console.print(Panel(escape(e.raw_text), title="Raw response", border_style="red"))
        raise typer.Exit(1)
    except BackendError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]{len(careers)} personalised career paths[/bold]\n")
    for i, career in enumerate(careers):
        console.print(_render_card(career_card(career, i)))

    summary = llm.get_token_summary()
    console.print(f"[dim]Tokens: {summary['input']} in / {summary['output']} out[/dim]")

    if json_out:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(dump_careers(careers), encoding="utf-8")
        console.print(f"[green]Saved: {json_out}[/green]")


@app.command()
def usage(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of recent generations to show"),
) -> None:
    """Show this month's generation stats and recent attempts."""
    config = load_config()
    store = UsageStore(config.usage.resolved_db_path)
    stats = store.get_monthly_stats()

    avg = stats["avg_elapsed_seconds"]
    console.print(Panel(
        f"Runs: {stats['total_runs']} | Success: {stats['success_rate']:.0f}%\n"
        f"Tokens: {stats['total_input_tokens']} in / {stats['total_output_tokens']} out\n"
        f"Cost: ${stats['total_cost_usd']:.4f}"
        + (f" | Avg time: {avg}s" if avg is not None else ""),
        title=f"Usage {stats['month']}",
    ))
    if stats["errors_by_kind"]:
        failures = ", ".join(f"{kind} x{count}" for kind, count in stats["errors_by_kind"].items())
        console.print(f"[red]Failures: {escape(failures)}[/red]")

    logs = store.get_logs(limit=limit)
    if not logs:
        console.print("[yellow]No generations recorded yet.[/yellow]")
        return

    table = Table("Time", "User", "Model", "Careers", "Seconds", "Result")
    for log in logs:
        result = "[green]ok[/green]" if log.success else f"[red]{log.error_kind}[/red]"
        table.add_row(
            log.timestamp.strftime("%Y-%m-%d %H:%M"),
            log.user_id,
            log.model,
            str(log.career_count),
            f"{log.elapsed_seconds:.1f}",
            result,
        )
    console.print(table)


if __name__ == "__main__":
    app()
