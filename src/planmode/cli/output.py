"""Rich output formatting helpers for the planmode CLI.

Results go to stdout through ``console``; errors and log records go to
stderr through ``err_console`` so that piped output stays clean.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from planmode.core.doctor import DoctorResult, Severity
from planmode.core.installer import InstallReport
from planmode.core.lockfile import Lockfile
from planmode.core.manifest import PackageType
from planmode.core.package_check import PackageCheckResult
from planmode.registry import PackageMetadata, PackageSummary

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
}

_TYPE_STYLES: dict[PackageType, str] = {
    PackageType.PLAN: "cyan",
    PackageType.RULE: "magenta",
    PackageType.PROMPT: "green",
}

console = Console()
err_console = Console(stderr=True)


def severity_style(severity: Severity) -> str:
    """Return the Rich style string for a diagnostic severity."""
    return _SEVERITY_STYLES.get(severity, "white")


def type_style(pkg_type: PackageType | None) -> str:
    return _TYPE_STYLES.get(pkg_type, "white") if pkg_type else "white"


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_install_report(report: InstallReport) -> None:
    """Print what an install run did.

    Args:
        report: The report returned by ``Installer.install``.
    """
    for pkg in report.installed:
        console.print(
            f"[green]✓[/green] Installed [bold]{pkg.name}[/bold]@{pkg.version} "
            f"[dim]→ {pkg.installed_to}[/dim]"
        )
    for name in report.skipped:
        console.print(f"[dim]{name} already installed[/dim]")
    for conflict in report.warnings:
        console.print(f"[yellow]![/yellow] {conflict.message}")


def print_package_list(lockfile: Lockfile) -> None:
    """Print a table of installed packages."""
    if not len(lockfile):
        console.print("[dim]No packages installed.[/dim]")
        return

    table = Table(title="Installed Packages", show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Type", justify="center")
    table.add_column("Version", justify="right")
    table.add_column("Location", style="dim")

    for name, entry in lockfile.items():
        table.add_row(
            name,
            Text(entry.type.value, style=type_style(entry.type)),
            entry.version,
            entry.installed_to,
        )
    console.print(table)


def print_package_info(metadata: PackageMetadata) -> None:
    """Print the registry record of a package in a panel."""
    lines = [
        f"[bold]{metadata.name}[/bold]@{metadata.latest_version}",
    ]
    if metadata.description:
        lines.append(metadata.description)
    lines.append("")
    if metadata.type:
        lines.append(f"Type:       {metadata.type.value}")
    if metadata.author:
        lines.append(f"Author:     {metadata.author}")
    if metadata.license:
        lines.append(f"License:    {metadata.license}")
    if metadata.category:
        lines.append(f"Category:   {metadata.category}")
    if metadata.repository:
        lines.append(f"Repository: {metadata.repository}")
    if metadata.tags:
        lines.append(f"Tags:       {', '.join(metadata.tags)}")
    if metadata.versions:
        lines.append(f"Versions:   {', '.join(metadata.versions)}")
    lines.append(f"Downloads:  {metadata.downloads}")

    for kind in ("rules", "plans"):
        deps = metadata.dependencies.get(kind) or []
        if deps:
            lines.append(f"Depends on ({kind}): {', '.join(deps)}")

    if metadata.variables:
        lines.append("")
        lines.append("[bold]Variables[/bold]")
        for var_name, definition in metadata.variables.items():
            flags = " (required)" if definition.required else ""
            default = (
                f" [dim]default: {definition.default}[/dim]"
                if definition.default is not None
                else ""
            )
            lines.append(
                f"  {var_name}: {definition.type.value}{flags}{default}"
                + (f" -- {definition.description}" if definition.description else "")
            )

    console.print(Panel("\n".join(lines), title="Package Info", border_style="cyan"))


def print_search_results(results: list[PackageSummary]) -> None:
    """Print search hits as a table, most downloaded first."""
    if not results:
        console.print("[dim]No packages found.[/dim]")
        return

    table = Table(title="Search Results", show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Type", justify="center")
    table.add_column("Version", justify="right")
    table.add_column("Description")
    table.add_column("Downloads", justify="right", style="dim")

    for pkg in results:
        table.add_row(pkg.name, pkg.type, pkg.version, pkg.description, str(pkg.downloads))
    console.print(table)


def print_doctor_result(result: DoctorResult) -> None:
    """Print each diagnostic with its fix hint, then a summary line."""
    for issue in result.issues:
        label = Text(issue.severity.value.upper(), style=severity_style(issue.severity))
        console.print(label, issue.message)
        if issue.fix:
            console.print(f"  [dim]{issue.fix}[/dim]")

    summary = (
        f"{result.packages_checked} package(s) checked, "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    if result.healthy:
        console.print(Panel(f"[bold green]Healthy[/bold green]\n{summary}", border_style="green"))
    else:
        console.print(Panel(f"[bold red]Problems found[/bold red]\n{summary}", border_style="red"))


def print_package_check(result: PackageCheckResult) -> None:
    """Print one line per check, then pass or fail."""
    for check in result.checks:
        if check.passed:
            console.print(f"[green]✓[/green] {check.name}")
            continue
        mark = "✗" if check.severity is Severity.ERROR else "!"
        style = severity_style(check.severity)
        console.print(f"[{style}]{mark}[/{style}] {check.name}")
        if check.message:
            console.print(f"  [dim]{check.message}[/dim]")

    if result.passed:
        console.print("[bold green]Package is ready to publish[/bold green]")
    else:
        console.print("[bold red]Package has errors[/bold red]")
