"""Cache CLI commands.

Inspect and clear cached template resolutions.
"""

import shutil
from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

console = Console()

cache_app = typer.Typer(
    name="cache",
    help="Inspect and clear cached template resolutions.",
)


@cache_app.command("show")
def show() -> None:
    """Show cached template resolutions.

    Example:
        projgen cache show
    """
    from cli.projgen.cli import get_manager

    manager = get_manager()
    entries = manager.cache.entries()

    if not entries:
        console.print("[yellow]Cache is empty[/yellow]")
        return

    table = Table(title=f"Cache ({manager.config.cache_dir})")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Registry")
    table.add_column("Cached at")
    table.add_column("Status")
    table.add_column("Path", overflow="fold")

    for key, entry in sorted(entries.items()):
        status = "[dim]expired[/dim]" if manager.cache.is_expired(entry) else "[green]valid[/green]"
        cached_at = datetime.fromtimestamp(entry.cached_at).isoformat(timespec="seconds")
        table.add_row(key, entry.registry_name or "-", cached_at, status, str(entry.resolved_path))

    console.print(table)


@cache_app.command("clear")
def clear(
    purge: bool = typer.Option(
        False,
        "--purge",
        "-p",
        help="Also delete downloaded checkouts and archives",
    ),
) -> None:
    """Forget all cached resolutions.

    Examples:
        projgen cache clear
        projgen cache clear --purge
    """
    from cli.projgen.cli import get_manager

    manager = get_manager()
    count = len(manager.cache)
    manager.clear_cache()

    if purge:
        for kind in ("git", "http", "npm"):
            kind_dir = manager.config.cache_dir / kind
            if kind_dir.exists():
                shutil.rmtree(kind_dir)
        console.print(f"[green]Cleared {count} cached resolution(s) and purged downloads[/green]")
    else:
        console.print(f"[green]Cleared {count} cached resolution(s)[/green]")
