"""Rich console output utilities for the projgen CLI."""

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from schemas.registry import RegistryEntry
from schemas.template import TemplateMetadata

console = Console()
error_console = Console(stderr=True)


def setup_logging(level: str = "WARNING", fmt: str = "%(message)s") -> None:
    """Route library logging through rich on stderr."""
    handler = RichHandler(console=error_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter(fmt))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root_logger.handlers = [handler]

    # Reduce noise from common libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_json(data: Any) -> None:
    """Print formatted JSON."""
    console.print_json(json.dumps(data, indent=2, default=str))


def print_key_value(key: str, value: Any, key_style: str = "bold") -> None:
    """Print a key-value pair."""
    console.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def print_templates(templates: list[TemplateMetadata], title: str = "Templates") -> None:
    """Print template metadata as a table."""
    if not templates:
        print_info("No templates found.")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Version")
    table.add_column("Author")
    table.add_column("Description")

    for template in templates:
        desc = template.description
        if len(desc) > 50:
            desc = desc[:50] + "..."
        table.add_row(template.name, template.project_type, template.version, template.author, desc)

    console.print(table)


def print_metadata(metadata: TemplateMetadata) -> None:
    """Print a template's metadata and variables."""
    body = (
        f"{metadata.description or '[dim]No description[/dim]'}\n\n"
        f"[dim]Type:[/dim] {metadata.project_type}  "
        f"[dim]Version:[/dim] {metadata.version}  "
        f"[dim]Author:[/dim] {metadata.author or '-'}"
    )
    if metadata.tags:
        body += f"\n[dim]Tags:[/dim] {', '.join(metadata.tags)}"
    if metadata.dependencies:
        body += f"\n[dim]Dependencies:[/dim] {', '.join(metadata.dependencies)}"
    console.print(Panel(body, title=f"[cyan]{metadata.name}[/cyan]", border_style="blue"))

    if not metadata.variables:
        return

    table = Table(title="Variables", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Required")
    table.add_column("Default")
    table.add_column("Description")

    for variable in metadata.variables:
        var_type = variable.var_type.value
        if variable.options:
            var_type += f" ({' | '.join(variable.options)})"
        table.add_row(
            variable.name,
            var_type,
            "yes" if variable.required else "no",
            variable.effective_default or "-",
            variable.description,
        )

    console.print(table)


def print_registries(entries: list[RegistryEntry]) -> None:
    """Print configured registry entries."""
    if not entries:
        print_info("No registries configured.")
        return

    table = Table(title="Registries", show_header=True, header_style="bold")
    table.add_column("Priority", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Location")
    table.add_column("Enabled")

    for entry in sorted(entries, key=lambda e: e.priority):
        source = entry.source
        if source.type == "local":
            location = str(source.path)
        elif source.type == "git":
            location = source.url + (f"@{source.branch}" if source.branch else "")
            if source.subfolder:
                location += f"#{source.subfolder}"
        elif source.type == "http":
            location = source.url
        else:
            location = f"{source.package}@{source.version}"

        table.add_row(
            str(entry.priority),
            entry.name,
            entry.source_type,
            location,
            "[green]yes[/green]" if entry.enabled else "[dim]no[/dim]",
        )

    console.print(table)
