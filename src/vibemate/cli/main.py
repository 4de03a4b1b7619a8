"""
vibemate CLI - Main entry point.

Provides commands for:
- serve: Start the admin API server
- rules: Show the configured routing rules
- route: Preview where a request would be routed
- check: Validate a rules file offline
- version: Show version information
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from vibemate.providers import ProviderRegistry
from vibemate.router.models import ApiGroup, RoutingRule

app = typer.Typer(
    name="vibemate",
    help="Routing rules - decide which provider serves each API request",
    add_completion=True,
)
console = Console()


def _snapshot() -> tuple[list[RoutingRule], ProviderRegistry]:
    """Load the configured rules and providers, running bootstrap like the server does."""
    from vibemate.server.config import get_settings
    from vibemate.server.context import AppContext

    async def load() -> tuple[list[RoutingRule], ProviderRegistry]:
        context = await AppContext.from_settings(get_settings())
        try:
            return context.store.list_rules(), context.registry
        finally:
            await context.close()

    return asyncio.run(load())


def _rules_table(rules: list[RoutingRule], title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Group", style="cyan")
    table.add_column("Type")
    table.add_column("Priority", justify="right")
    table.add_column("Pattern", style="bold")
    table.add_column("Provider")
    table.add_column("Rewrite", style="dim")
    table.add_column("Enabled")
    table.add_column("ID", style="dim")

    for rule in rules:
        pattern = rule.match_pattern
        if rule.is_locked:
            pattern += " [yellow](locked)[/yellow]"
        table.add_row(
            rule.api_group.value,
            rule.rule_type.value,
            str(rule.priority),
            pattern,
            rule.provider_id,
            rule.model_rewrite or "-",
            "[green]yes[/green]" if rule.enabled else "[red]no[/red]",
            rule.id[:8],
        )
    return table


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Bind host"),
    port: int = typer.Option(12345, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable hot reload"),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Log level"),
) -> None:
    """Start the vibemate admin server."""
    import logging
    import os

    import uvicorn

    # Set environment variables for settings
    os.environ["VIBEMATE_HOST"] = host
    os.environ["VIBEMATE_PORT"] = str(port)
    os.environ["VIBEMATE_LOG_LEVEL"] = log_level

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    console.print(f"[bold green]Starting vibemate server on {host}:{port}[/bold green]")
    console.print(f"[dim]Log level: {log_level}[/dim]")
    console.print(f"[dim]Reload: {reload}[/dim]")
    console.print()

    uvicorn.run(
        "vibemate.server.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.lower(),
    )


@app.command()
def rules(
    api_group: ApiGroup = typer.Option(None, "--group", "-g", help="Only this API group"),
) -> None:
    """Show the configured routing rules."""
    items, providers = _snapshot()
    if api_group is not None:
        items = [r for r in items if r.api_group == api_group]

    if not items:
        console.print("[yellow]No routing rules configured[/yellow]")
        if not providers:
            console.print("[dim]Register a provider to provision the default rules.[/dim]")
        return

    console.print(_rules_table(items, f"Routing rules ({len(items)})"))


@app.command()
def route(
    path: str = typer.Argument(..., help="Request path, e.g. /api/openai/v1/chat/completions"),
    model: str = typer.Option(None, "--model", "-m", help="Model named in the request"),
    api_group: ApiGroup = typer.Option(
        None, "--group", "-g", help="API group (derived from the path if omitted)"
    ),
) -> None:
    """Preview where a request would be routed."""
    from vibemate.router.resolver import group_for_path, resolve

    items, providers = _snapshot()
    group = api_group or group_for_path(path)
    resolution = resolve(items, providers, group, path, model)

    if resolution is None:
        console.print("[red]No providers configured[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Group:[/bold] {group.value}")
    console.print(
        f"[bold]Provider:[/bold] {resolution.provider.name} [dim]({resolution.provider.id})[/dim]"
    )
    if resolution.rule is not None:
        console.print(
            f"[bold]Rule:[/bold] {resolution.rule.match_pattern} "
            f"[dim]({resolution.rule.rule_type.value}, priority {resolution.rule.priority})[/dim]"
        )
    else:
        console.print("[bold]Rule:[/bold] [dim]none matched, default provider[/dim]")
    if model:
        suffix = " [yellow](rewritten)[/yellow]" if resolution.model_rewritten else ""
        console.print(f"[bold]Model:[/bold] {resolution.final_model}{suffix}")


@app.command()
def check(
    rules_file: Path = typer.Argument(..., help="Rules YAML file to validate"),
    providers_file: Path = typer.Option(
        None, "--providers", "-p", help="Providers YAML file to check references against"
    ),
) -> None:
    """Validate a rules file without starting anything."""
    import yaml

    from vibemate.providers import load_providers
    from vibemate.router.config import ConfigValidationError, check_rule_set, load_rules_file

    try:
        loaded = load_rules_file(rules_file)
    except (yaml.YAMLError, ConfigValidationError) as e:
        console.print(f"[red]Invalid rules file:[/red] {e}")
        raise typer.Exit(1)

    provider_ids = None
    if providers_file is not None:
        provider_ids = {p.id for p in load_providers(providers_file)}

    problems = check_rule_set(loaded, provider_ids)
    console.print(f"[dim]{len(loaded)} rule(s) in {rules_file}[/dim]")
    if not problems:
        console.print("[green]Rule set is consistent[/green]")
        return

    for problem in problems:
        console.print(f"[yellow]-[/yellow] {problem}")
    raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from vibemate import __version__

    console.print(f"vibemate version {__version__}")


if __name__ == "__main__":
    app()
