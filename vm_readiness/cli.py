"""
CLI entry point for vm-readiness.
"""

import logging
from functools import wraps
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from vm_readiness.assess.checks import CheckRegistry
from vm_readiness.assess.pipeline import parse_group_by, parse_mode, run_assessment
from vm_readiness.config import CONFIG_FILENAME, AssessmentConfig
from vm_readiness.exceptions import (
    InvalidConfigError,
    ProfileNotFoundError,
    VmReadinessError,
    format_error_for_cli,
)
from vm_readiness.loaders import load_inventory
from vm_readiness.models.profile import ProfileFamily
from vm_readiness.report import print_summary, write_json_report
from vm_readiness.util.hashing import sha256_file

app = typer.Typer(
    name="vm-readiness",
    help="Migration readiness assessment for virtualized workloads",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except VmReadinessError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            console.print("\n[yellow]This may be a bug. Please report it with the command")
            console.print("you ran and the inventory file (redacted if needed).[/yellow]")
            logger.debug("Unexpected error", exc_info=True)
            raise typer.Exit(1)

    return wrapper


def _load_config(config_path: str | None) -> AssessmentConfig:
    if config_path is None:
        return AssessmentConfig(Path.cwd() / CONFIG_FILENAME)
    config = AssessmentConfig(Path(config_path))
    if not config.exists:
        raise InvalidConfigError(f"Config file not found: {config.config_file}")
    return config


@app.command()
@handle_errors
def init(
    directory: str = typer.Argument(".", help="Directory to write vm-readiness.yaml into"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration"),
):
    """Write a default vm-readiness.yaml configuration."""
    target = Path(directory) / CONFIG_FILENAME
    if target.exists() and not force:
        console.print(f"[yellow]⚠ {target} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)

    AssessmentConfig.initialize(Path(directory))
    console.print(f"[green]✓ Wrote configuration to {target}[/green]")

    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"  # Tune thresholds and overrides in {target}")
    console.print("  vm-readiness assess <inventory.yaml> --mode openshift")


@app.command()
@handle_errors
def assess(
    inventory: str = typer.Argument(..., help="Normalized inventory (YAML or JSON)"),
    mode: str = typer.Option(
        None, "--mode", "-m", help="Target mode (openshift|vpc); defaults to the config"
    ),
    config: str = typer.Option(None, "--config", "-c", help="Path to vm-readiness.yaml"),
    output: str = typer.Option(None, "--output", "-o", help="Write the JSON report to this file"),
    top: int = typer.Option(5, "--top", help="Remediation items to show"),
    group_by: str = typer.Option(
        None, "--group-by", "-g", help="Also plan network waves (port-group|cluster)"
    ),
):
    """Assess an inventory for migration readiness."""
    settings = _load_config(config)
    target_mode = parse_mode(mode) if mode else settings.mode
    network_group_by = parse_group_by(group_by) if group_by else None

    inventory_path = Path(inventory)
    records = load_inventory(inventory_path)

    console.print(
        f"[bold blue]Assessing {len(records.vms)} VM(s) for {target_mode.label}...[/bold blue]"
    )
    report = run_assessment(
        records,
        target_mode,
        thresholds=settings.thresholds,
        catalog=settings.catalog(),
        overrides=settings.overrides,
        group_by=network_group_by,
    )

    print_summary(report, console, top=top)

    if output:
        write_json_report(report, Path(output), sha256_file(inventory_path))
        console.print(f"[green]✓ Report written to {output}[/green]")


@app.command()
@handle_errors
def checks(
    mode: str = typer.Option("openshift", "--mode", "-m", help="Target mode (openshift|vpc)"),
):
    """List the pre-flight checks that run for a target mode."""
    target_mode = parse_mode(mode)
    definitions = CheckRegistry.default().for_mode(target_mode)

    table = Table(
        show_header=True, header_style="bold cyan", title=f"Checks: {target_mode.label}"
    )
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Severity")
    for definition in definitions:
        color = {"blocker": "red", "warning": "yellow"}.get(definition.severity.value, "dim")
        table.add_row(
            definition.id,
            definition.name,
            definition.category.value,
            f"[{color}]{definition.severity.value}[/{color}]",
        )
    console.print(table)
    console.print(f"\n{len(definitions)} check(s)")


@app.command()
@handle_errors
def profiles(
    family: str = typer.Option(
        None,
        "--family",
        "-f",
        help="Only list one family (balanced|compute|memory|burstable|custom)",
    ),
    show: str = typer.Option(None, "--show", help="Show a single profile by name"),
    config: str = typer.Option(None, "--config", "-c", help="Path to vm-readiness.yaml"),
):
    """List the instance profile catalog."""
    catalog = _load_config(config).catalog()

    if show:
        profile = catalog.find(show)
        if profile is None:
            raise ProfileNotFoundError(show, [p.name for p in catalog.all_profiles()])
        for key, value in profile.to_dict().items():
            console.print(f"[bold]{key}:[/bold] {value}")
        return

    if family:
        try:
            selected = list(catalog.profiles(ProfileFamily(family.lower())))
        except ValueError:
            console.print(f"[red]Error:[/red] Unknown profile family: {family}")
            raise typer.Exit(1)
    else:
        selected = catalog.all_profiles()

    table = Table(show_header=True, header_style="bold cyan", title="Instance Profiles")
    table.add_column("Profile")
    table.add_column("Family", style="dim")
    table.add_column("vCPUs", justify="right")
    table.add_column("Memory (GiB)", justify="right")
    table.add_column("Monthly", justify="right")
    for profile in selected:
        table.add_row(
            profile.name,
            profile.family.value,
            str(profile.vcpus),
            f"{profile.memory_gib:g}",
            f"{profile.monthly_rate:,.2f}" if profile.monthly_rate else "-",
        )
    console.print(table)
    console.print(f"\n{len(selected)} profile(s)")


if __name__ == "__main__":
    app()
