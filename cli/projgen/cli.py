"""projgen CLI.

Command-line interface over the template registry: list templates, resolve
one to a directory, inspect registries, cache and configuration.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer

from cli.projgen.output import (
    console,
    print_error,
    print_info,
    print_json,
    print_key_value,
    print_metadata,
    print_registries,
    print_success,
    print_templates,
    print_warning,
    setup_logging,
)
from registry.config import CONFIG_FILE_NAMES, DEFAULT_CONFIG_TOML, Config, reload_config
from registry.errors import RegistryError
from registry.manager import TemplateManager

app = typer.Typer(
    name="projgen",
    help="Project generator - resolve project templates from local, git, http and npm sources",
    no_args_is_help=True,
)

# Config sub-app
config_app = typer.Typer(
    name="config",
    help="Manage configuration settings.",
)
app.add_typer(config_app, name="config")

from cli.commands.cache import cache_app

app.add_typer(cache_app, name="cache")

_state: dict[str, Any] = {"config_path": None, "config": None, "manager": None}


def get_config() -> Config:
    """Load the configuration selected on the command line (once per run)."""
    if _state["config"] is None:
        try:
            _state["config"] = reload_config(_state["config_path"])
        except RegistryError as e:
            print_error(str(e))
            raise typer.Exit(1)
    return _state["config"]


def get_manager() -> TemplateManager:
    """Get the template manager for this run."""
    if _state["manager"] is None:
        _state["manager"] = TemplateManager(get_config().registry)
    return _state["manager"]


@app.callback()
def main_callback(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to templates.toml or templates.json",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show registry activity (info level logging)",
    ),
) -> None:
    """Resolve project templates from configured registries."""
    _state.update(config_path=config_path, config=None, manager=None)

    config = None
    try:
        config = _state["config"] = reload_config(config_path)
    except RegistryError:
        # Reported by the first command that needs the configuration
        pass

    config_level = config.logging.level if config else "WARNING"
    setup_logging("INFO" if verbose else config_level)


@app.command("list")
def list_templates(
    project_type: Optional[str] = typer.Option(
        None,
        "--type",
        "-t",
        help="Filter by project type (e.g. vue, react, java)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """List templates from all enabled registries.

    Examples:
        projgen list
        projgen list --type vue
    """
    manager = get_manager()
    templates = asyncio.run(manager.list_templates(project_type))

    if as_json:
        print_json([t.model_dump(mode="json", by_alias=True) for t in templates])
        return

    title = f"Templates ({project_type})" if project_type else "Templates"
    print_templates(templates, title=title)


@app.command()
def resolve(
    project_type: str = typer.Argument(..., help="Project type, e.g. vue"),
    name: str = typer.Argument(..., help="Template name"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON"),
) -> None:
    """Resolve a template to a local directory.

    Example:
        projgen resolve vue basic
    """
    manager = get_manager()

    try:
        resolved = asyncio.run(manager.resolve(project_type, name))
    except RegistryError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if as_json:
        print_json({
            "resolved_path": str(resolved.resolved_path),
            "registry": resolved.registry_name,
            "from_cache": resolved.from_cache,
            "metadata": resolved.metadata.model_dump(mode="json", by_alias=True),
        })
        return

    print_success(f"Resolved {project_type}:{name}")
    print_key_value("Path", resolved.resolved_path)
    print_key_value("Registry", resolved.registry_name or "-")
    if resolved.from_cache:
        print_info("Served from cache")


@app.command()
def info(
    project_type: str = typer.Argument(..., help="Project type, e.g. vue"),
    name: str = typer.Argument(..., help="Template name"),
) -> None:
    """Show a template's metadata and variables.

    Example:
        projgen info java spring-boot
    """
    manager = get_manager()

    try:
        metadata = asyncio.run(manager.get_template_info(project_type, name))
    except RegistryError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_metadata(metadata)


@app.command()
def registries() -> None:
    """Show configured registries in priority order."""
    config = get_config()
    if config.source_path:
        print_info(f"Config file: {config.source_path}")
    else:
        print_warning("No config file found (using defaults)")
    print_registries(list(config.registry.registries))


@config_app.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    config = get_config()
    print_key_value("Config file", config.source_path or "(defaults)")
    print_key_value("Log level", config.logging.level)
    print_key_value("Cache dir", config.registry.cache_dir)
    print_key_value("Cache TTL", f"{config.registry.cache_ttl}s")
    print_registries(list(config.registry.registries))


@config_app.command("init")
def config_init(
    path: Path = typer.Option(
        Path(CONFIG_FILE_NAMES[0]),
        "--path",
        "-p",
        help="Where to write the config file",
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing file"),
) -> None:
    """Create a default templates.toml."""
    if path.exists() and not force:
        print_error(f"Config file already exists: {path}. Use --force to overwrite.")
        raise typer.Exit(1)

    path.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
    print_success(f"Created config file: {path}")


@app.command()
def version() -> None:
    """Show projgen version."""
    from cli.projgen import __version__

    console.print(f"projgen v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
