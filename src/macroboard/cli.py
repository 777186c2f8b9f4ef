"""Command-line interface for MacroBoard.

This module provides commands for inspecting a compiled template catalog
and for loading tables to see which templates they unlock.
"""

import asyncio
from pathlib import Path
from typing import Optional

import click
import duckdb

from macroboard import __version__
from macroboard.application.services import (
    SUPPORTED_EXTENSIONS,
    TableLifecycleService,
    TemplateCatalogService,
    generate_unique_table_name,
    register_table_handlers,
    sanitize_table_name,
)
from macroboard.core.bindings import RoleBindingTable
from macroboard.core.catalog import load_catalog
from macroboard.core.config import Settings, get_settings
from macroboard.core.events import EventRegistry, TableEvent
from macroboard.core.logging import LoggingContext, configure_logging, get_logger
from macroboard.core.macros import MacroActivationManager
from macroboard.domain.entities.catalog import TemplateCatalog
from macroboard.domain.exceptions import CatalogError
from macroboard.infrastructure.engine import DuckDBConnection

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="MacroBoard")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides MACROBOARD_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """MacroBoard - SQL templates that unlock as you load tables."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.obj = settings


def _load_catalog(settings: Settings, catalog_path: Optional[str]) -> TemplateCatalog:
    path = catalog_path or settings.catalog_path
    if not path:
        raise click.UsageError("No catalog given: pass --catalog or set MACROBOARD_CATALOG_PATH")
    try:
        return load_catalog(path)
    except CatalogError as e:
        raise click.ClickException(str(e)) from e


def _parse_bindings(values: tuple[str, ...], catalog: TemplateCatalog) -> list[tuple[str, str]]:
    parsed = []
    for value in values:
        role, sep, table = value.partition("=")
        role, table = role.strip(), table.strip()
        if not sep or not role or not table:
            raise click.BadParameter(f"expected ROLE=TABLE, got {value!r}", param_hint="--bind")
        if not catalog.has_role(role):
            raise click.BadParameter(f"unknown role {role!r}", param_hint="--bind")
        parsed.append((role, table))
    return parsed


def _check_file_types(files: tuple[str, ...]) -> None:
    for file in files:
        if Path(file).suffix.lower() not in SUPPORTED_EXTENSIONS:
            expected = ", ".join(SUPPORTED_EXTENSIONS)
            raise click.BadParameter(
                f"unsupported file type {Path(file).name!r} (expected {expected})",
                param_hint="FILES",
            )


@cli.command()
@click.option("--catalog", "catalog_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def roles(settings: Settings, catalog_path: Optional[str]) -> None:
    """List catalog table roles and how many templates need each."""
    catalog = _load_catalog(settings, catalog_path)
    view = TemplateCatalogService(catalog)

    for usage in view.roles_with_usage_counts(()):
        columns = ", ".join(usage.expected_columns) or "-"
        click.echo(f"{usage.name:<16} {usage.template_count:>3} template(s)  [{columns}]")
        if usage.description:
            click.echo(f"    {usage.description}")


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--catalog", "catalog_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--bind", "bind_values", multiple=True, help="Bind a role explicitly (ROLE=TABLE)")
@click.option("--search", "query", default=None, help="Only show templates matching this text")
@click.option("--all", "include_unsatisfied", is_flag=True, help="Include templates that are not runnable")
@click.pass_obj
def templates(
    settings: Settings,
    files: tuple[str, ...],
    catalog_path: Optional[str],
    bind_values: tuple[str, ...],
    query: Optional[str],
    include_unsatisfied: bool,
) -> None:
    """Load FILES as tables and show the templates they unlock."""
    catalog = _load_catalog(settings, catalog_path)
    explicit = _parse_bindings(bind_values, catalog)
    _check_file_types(files)

    with LoggingContext(command="templates"):
        try:
            asyncio.run(_show_templates(settings, catalog, files, explicit, query, include_unsatisfied))
        except duckdb.Error as e:
            raise click.ClickException(f"Query engine error: {e}") from e


async def _show_templates(
    settings: Settings,
    catalog: TemplateCatalog,
    files: tuple[str, ...],
    explicit: list[tuple[str, str]],
    query: Optional[str],
    include_unsatisfied: bool,
) -> None:
    connection = DuckDBConnection.from_settings(settings)
    bindings = RoleBindingTable(catalog)
    manager = MacroActivationManager(connection, bindings)
    registry = EventRegistry()
    register_table_handlers(registry, TableLifecycleService(bindings, settings))

    try:
        existing = set(await connection.list_tables())
        for file in files:
            base = sanitize_table_name(Path(file).name, settings.table_fallback_name)
            table = generate_unique_table_name(base, existing)
            existing.add(table)
            await connection.load_file(file, table)
            await registry.trigger(TableEvent.ON_TABLE_LOADED, {"table": table})

        for role, table in explicit:
            bindings.bind(role, table)

        await manager.wait_until_idle()

        for role, table in bindings.all_bindings().items():
            click.echo(f"{role} -> {table}")

        view = TemplateCatalogService(catalog)
        bound = bindings.bound_roles()
        summary = view.availability_summary(bound)
        click.echo(f"{summary.available}/{summary.total} templates available ({summary.percentage}%)")

        for entry in view.search(query, bound, include_unsatisfied):
            if not entry.available:
                status = "needs " + ", ".join(entry.missing_dependencies)
            elif manager.is_active(entry.id):
                status = "ready"
            else:
                status = "registration failed"
            click.echo(f"\n{entry.title} [{entry.category or 'other'}] ({status})")
            click.echo(f"  {entry.sql}")
    finally:
        await manager.dispose()
        connection.close()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
