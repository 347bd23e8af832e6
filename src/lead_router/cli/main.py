"""Main CLI entry point for the lead-router command."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config import settings
from ..errors import SchemaValidationError
from ..routing import LeadRouter, QuietHours, RoutingContext, evaluate_conditions, route_lead, score_agent
from ..schemas import RoutingConfig, RoutingInput, validate_model

console = Console()


def load_json(path: str) -> Any:
    """Read a JSON document from disk."""
    try:
        return json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{path} is not valid JSON: {e}")


def load_context(path: str) -> RoutingContext:
    data = load_json(path)
    if isinstance(data, dict) and not data.get("tenantTimezone"):
        data["tenantTimezone"] = settings.default_timezone
    return RoutingContext.from_dict(data)


def print_json(data: Any):
    click.echo(json.dumps(data, indent=2, default=str))


def fail_validation(error: SchemaValidationError):
    """Report a schema failure and exit with status 2."""
    console.print(f"[red]Validation failed:[/red] {error}")
    for item in error.errors:
        location = ".".join(str(part) for part in item.get("loc", [])) or error.model
        console.print(f"  [yellow]{location}[/yellow]: {item.get('msg')}")
    sys.exit(2)


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


@click.group()
@click.version_option(version=__version__, prog_name="lead-router")
@click.option("--verbose", "-v", is_flag=True, help="Log routing decisions at debug level")
def cli(verbose: bool):
    """Lead Router - rule evaluation and agent assignment for inbound leads.

    \b
    Quick Start:
      lead-router evaluate conditions.json context.json   # Check a rule's conditions
      lead-router score input.json                        # Score every agent
      lead-router route input.json                        # Pick agents for a lead
      lead-router assign rules.json roster.json context.json --lead-id L1 --tenant-id T1
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("conditions_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("context_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
def evaluate(conditions_path: str, context_path: str, as_json: bool):
    """Evaluate a rule's conditions against a lead context."""
    try:
        context = load_context(context_path)
        result = evaluate_conditions(load_json(conditions_path), context)
    except SchemaValidationError as e:
        fail_validation(e)

    if as_json:
        print_json(result.to_dict())
        return

    if not result.checks:
        console.print("[dim]No conditions configured - rule always matches[/dim]")

    table = Table(title="Condition Checks")
    table.add_column("Clause", style="cyan")
    table.add_column("Passed")
    table.add_column("Detail")
    for check in result.checks:
        table.add_row(check.key.value, _yes_no(check.passed), check.detail or "")
    if result.checks:
        console.print(table)

    status = "[green]MATCHED[/green]" if result.matched else "[red]NOT MATCHED[/red]"
    console.print(f"Rule {status}")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
def score(input_path: str, as_json: bool):
    """Score every agent of a routing input."""
    try:
        payload = validate_model(RoutingInput, load_json(input_path))
        config = payload.config or RoutingConfig()
        scores = [(agent, score_agent(agent, config)) for agent in payload.agents]
    except SchemaValidationError as e:
        fail_validation(e)

    if as_json:
        print_json([
            {"userId": agent.user_id, "eligible": result is not None, "score": result.to_dict() if result else None}
            for agent, result in scores
        ])
        return

    table = Table(title=f"Agent Scores - lead {payload.lead_id}")
    table.add_column("Agent", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Reasons")
    for agent, result in scores:
        if result is None:
            table.add_row(agent.full_name, "[red]ineligible[/red]", "Consent or 10DLC not ready")
        else:
            table.add_row(
                result.full_name,
                f"{result.score:.4f}",
                ", ".join(reason.description for reason in result.reasons),
            )
    console.print(table)


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
def route(input_path: str, as_json: bool):
    """Select the agents that should receive a lead."""
    try:
        result = route_lead(load_json(input_path))
    except SchemaValidationError as e:
        fail_validation(e)

    if as_json:
        print_json(result.to_dict())
        return

    lines = []
    for agent in result.selected_agents:
        lines.append(f"[cyan]{agent.full_name}[/cyan] ({agent.user_id}) - {agent.score:.4f}")
    if not lines:
        lines.append("[dim](no eligible agents)[/dim]")

    if result.used_fallback:
        lines.append("")
        lines.append(f"[yellow]Fallback used[/yellow] - team: {result.fallback_team_id or 'none'}")
    if result.quiet_hours:
        lines.append("[magenta]Quiet hours in effect[/magenta]")

    console.print(Panel.fit("\n".join(lines), title=f"Lead {result.lead_id}"))


@cli.command()
@click.argument("rules_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("roster_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("context_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--lead-id", required=True, help="Lead being routed")
@click.option("--tenant-id", required=True, help="Brokerage the lead belongs to")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
              help="RoutingConfig JSON with custom weights")
@click.option("--quiet-hours/--no-quiet-hours", default=None,
              help="Override the tenant quiet-hours check")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable output")
def assign(
    rules_path: str,
    roster_path: str,
    context_path: str,
    lead_id: str,
    tenant_id: str,
    config_path: Optional[str],
    quiet_hours: Optional[bool],
    as_json: bool,
):
    """Route a lead through a rule list and roster.

    \b
    Examples:
      lead-router assign rules.json roster.json context.json --lead-id L1 --tenant-id T1
      lead-router assign rules.json roster.json context.json --lead-id L1 --tenant-id T1 --json
    """
    try:
        context = load_context(context_path)
        router = LeadRouter(
            rules=load_json(rules_path),
            candidates=load_json(roster_path),
            config=load_json(config_path) if config_path else None,
            quiet_hours=QuietHours(
                start_hour=settings.quiet_hours_start,
                end_hour=settings.quiet_hours_end,
                timezone=context.tenant_timezone,
            ),
        )
        result = router.assign(lead_id, tenant_id, context, quiet_hours=quiet_hours)
    except SchemaValidationError as e:
        fail_validation(e)

    if as_json:
        print_json(result.to_dict())
        return

    header = (
        f"Rule: [cyan]{result.rule_name or '(none)'}[/cyan]\n"
        f"Assigned agent: [green]{result.assigned_agent_id or '-'}[/green]\n"
        f"Fallback: {_yes_no(result.used_fallback)}"
        + (f" -> {result.fallback_team_id}" if result.fallback_team_id else "")
        + f"\nQuiet hours: {_yes_no(result.quiet_hours)}\n"
        f"Reasons: {', '.join(code.value for code in result.reason_codes)}"
    )
    console.print(Panel.fit(header, title=f"Lead {result.lead_id}"))

    if result.candidates:
        table = Table(title="Candidates")
        table.add_column("Agent", style="cyan")
        table.add_column("Status")
        table.add_column("Score", justify="right")
        table.add_column("Capacity", justify="right")
        table.add_column("Reasons")
        for candidate in result.candidates:
            table.add_row(
                candidate.full_name,
                candidate.status.value,
                f"{candidate.score:.4f}" if candidate.score is not None else "-",
                f"{candidate.capacity_remaining:g}",
                "; ".join(candidate.reasons),
            )
        console.print(table)

    for timer in result.sla_timers:
        console.print(f"[dim]SLA {timer.type.value} due {timer.due_at.isoformat()}[/dim]")


if __name__ == "__main__":
    cli()
