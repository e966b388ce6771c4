"""
Report output: JSON document and console summary.
"""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from vm_readiness import __version__
from vm_readiness.assess.pipeline import AssessmentReport
from vm_readiness.assess.types import ComplexityBucket, Severity
from vm_readiness.util.files import write_json

logger = logging.getLogger(__name__)

BUCKET_COLORS = {
    ComplexityBucket.SIMPLE: "green",
    ComplexityBucket.MODERATE: "cyan",
    ComplexityBucket.COMPLEX: "yellow",
    ComplexityBucket.BLOCKER: "red",
}


def readiness_color(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def report_document(report: AssessmentReport, inventory_sha256: str | None = None) -> dict:
    """
    Wrap the report with tool and input metadata.

    No timestamps are added, so identical inputs produce identical documents.
    """
    document: dict[str, Any] = {"tool": "vm-readiness", "version": __version__}
    if inventory_sha256:
        document["inventory_sha256"] = inventory_sha256
    document.update(report.to_dict())
    return document


def write_json_report(
    report: AssessmentReport, path: Path, inventory_sha256: str | None = None
) -> None:
    write_json(path, report_document(report, inventory_sha256))
    logger.info(f"Wrote assessment report to {path}")


def print_summary(report: AssessmentReport, console: Console | None = None, top: int = 5) -> None:
    """
    Print readiness, complexity buckets, waves and top remediation items.

    Args:
        report: Assessment result
        console: Rich console (a new one by default)
        top: Number of remediation items to list
    """
    console = console or Console()
    summary = report.summary

    color = readiness_color(report.readiness_score)
    console.print(f"\n[bold]Migration Readiness ({report.mode.label})[/bold]")
    console.print(
        f"Readiness score: [{color}]{report.readiness_score}/100[/{color}]  "
        f"({summary.get('candidate_vms', 0)} candidate VMs, "
        f"{summary.get('excluded_vms', 0)} excluded)\n"
    )

    table = Table(show_header=True, header_style="bold cyan", title="Complexity")
    table.add_column("Bucket", style="dim")
    table.add_column("Range")
    table.add_column("VMs", justify="right")
    distribution = summary.get("complexity_distribution", {})
    for bucket in ComplexityBucket:
        bucket_color = BUCKET_COLORS[bucket]
        table.add_row(
            f"[{bucket_color}]{bucket.value}[/{bucket_color}]",
            bucket.range_label,
            str(distribution.get(bucket.value, 0)),
        )
    console.print(table)

    if report.waves:
        waves = Table(show_header=True, header_style="bold cyan", title="Migration Waves")
        waves.add_column("Wave")
        waves.add_column("VMs", justify="right")
        waves.add_column("vCPUs", justify="right")
        waves.add_column("Memory (GiB)", justify="right")
        waves.add_column("Storage (GiB)", justify="right")
        for wave in report.waves:
            name = f"[red]{wave.name}[/red]" if wave.has_blockers else wave.name
            waves.add_row(
                name,
                str(wave.vm_count),
                str(wave.vcpus),
                str(wave.memory_gib),
                str(wave.storage_gib),
            )
        console.print(waves)
    else:
        console.print("[dim]No candidate VMs to plan waves for.[/dim]")

    if report.network_waves:
        title = f"Network Waves (by {report.network_group_by})"
        network = Table(show_header=True, header_style="bold cyan", title=title)
        network.add_column("#", justify="right", style="dim")
        network.add_column("Group")
        network.add_column("VMs", justify="right")
        network.add_column("Avg complexity", justify="right")
        network.add_column("Details", style="dim")
        for wave in report.network_waves:
            name = f"[red]{wave.name}[/red]" if wave.has_blockers else wave.name
            network.add_row(
                str(wave.ordinal),
                name,
                str(wave.vm_count),
                f"{wave.avg_complexity:g}",
                wave.description,
            )
        console.print(network)

    if report.remediation:
        console.print("\n[bold]Top remediation items[/bold]")
        for item in report.remediation[:top]:
            marker = "[red]✗[/red]" if item.severity is Severity.BLOCKER else "[yellow]![/yellow]"
            console.print(f"  {marker} {item.name}: {item.affected_count} VM(s)")
            console.print(f"    [dim]{item.remediation}[/dim]")
        if len(report.remediation) > top:
            console.print(f"  [dim]... and {len(report.remediation) - top} more[/dim]")
    else:
        console.print("\n[green]✓ No blockers or warnings found.[/green]")
    console.print()
