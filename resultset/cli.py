#!/usr/bin/env python3
"""
resultset CLI - compile and run query specifications from YAML files

Usage:
    resultset --help
    resultset compile artists.yaml --dialect postgres
    resultset compile artists.yaml --schema music.yaml --count
    resultset run artists.yaml --database sqlite:///music.db --schema music.yaml
    resultset dialects
    resultset config show

A spec file mirrors the arguments of ResultSet.search():

    source: artist
    where:
      albums.year: {gte: 1990}
    join: albums
    order_by: name desc
    rows: 10
"""

import json
import os
import sys
from typing import Any, Dict, Optional

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from resultset import __version__
from resultset.adapters import AdapterError, adapter_from_url
from resultset.core import config, configure_logging
from resultset.domain.query.compiler import PARAMSTYLES, QueryCompiler
from resultset.domain.query.resultset import ResultSet
from resultset.domain.schema import Schema, load_schema
from resultset.errors import ResultSetError, invalid_attribute

# =============================================================================
# CONFIGURATION
# =============================================================================

console = Console()

SEARCH_KEYS = (
    "columns", "add_columns", "join", "order_by", "group_by", "having",
    "rows", "offset", "page", "distinct",
)


def load_query_file(path: str) -> Dict[str, Any]:
    """Read a YAML query spec file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict) or not data.get("source"):
        raise invalid_attribute("source", data, "query files need a top-level 'source'")
    unknown = set(data) - set(SEARCH_KEYS) - {"source", "alias", "where"}
    if unknown:
        raise invalid_attribute(sorted(unknown)[0], data, f"unknown key in {path}")
    return data


def build_resultset(
    data: Dict[str, Any],
    schema: Optional[Schema] = None,
    dialect: Optional[str] = None,
    paramstyle: Optional[str] = None,
    adapter=None,
) -> ResultSet:
    """Turn a loaded query file into a ResultSet."""
    rs = ResultSet(
        data["source"],
        schema=schema,
        adapter=adapter,
        dialect=dialect,
        paramstyle=paramstyle,
        alias=data.get("alias"),
    )
    attrs = {key: data[key] for key in SEARCH_KEYS if key in data}
    return rs.search(data.get("where"), **attrs)


def handle_error(error: Exception):
    """Print a ResultSetError/AdapterError with rich formatting and exit."""
    if isinstance(error, ResultSetError):
        error.log("debug")
        err = error.to_dict()["error"]
        console.print(f"\n[bold red]Error {err['code']}[/bold red]")
        console.print(f"[red]{err['message']}[/red]")

        if err.get("suggestion"):
            console.print(f"\n[yellow]Suggestion:[/yellow] {err['suggestion']}")

        if err.get("details"):
            console.print("\n[dim]Details:[/dim]")
            console.print(Syntax(json.dumps(err["details"], indent=2, default=str), "json"))
    elif isinstance(error, AdapterError):
        console.print(f"\n[bold red]{error.engine} error[/bold red]")
        console.print(f"[red]{error}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")

    sys.exit(1)


# =============================================================================
# MAIN CLI GROUP
# =============================================================================

@click.group()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Log compiled statements")
@click.version_option(version=__version__, prog_name="resultset")
@click.pass_context
def cli(ctx, output_json, verbose):
    """
    resultset CLI - compile query specifications to SQL and run them.

    \b
    Quick Start:
        resultset dialects
        resultset compile query.yaml --dialect postgres
        resultset run query.yaml --database sqlite:///music.db
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = output_json
    configure_logging("DEBUG" if verbose else None)


# =============================================================================
# COMPILE
# =============================================================================

@cli.command("compile")
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dialect", "-d", default=None, help="Target SQL dialect (default: settings)")
@click.option("--paramstyle", "-p", type=click.Choice(PARAMSTYLES), default=None,
              help="Placeholder style (default: the dialect's usual one)")
@click.option("--schema", "schema_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="YAML schema with tables and relationships")
@click.option("--count", is_flag=True, help="Compile SELECT COUNT(*) instead")
@click.pass_context
def compile_query(ctx, spec_file, dialect, paramstyle, schema_file, count):
    """Compile a query spec file to SQL plus bind parameters."""
    try:
        schema = load_schema(schema_file) if schema_file else None
        rs = build_resultset(load_query_file(spec_file), schema, dialect, paramstyle)
        compiled = rs.compiler.compile_count(rs.spec) if count else rs.as_sql()
    except ResultSetError as e:
        handle_error(e)
        return

    if ctx.obj["json"]:
        click.echo(json.dumps({
            "sql": compiled.sql,
            "params": list(compiled.params),
            "dialect": compiled.dialect,
            "paramstyle": compiled.paramstyle,
        }, indent=2, default=str))
        return

    console.print(f"\n[bold]{compiled.kind.upper()}[/bold] [dim]({compiled.dialect}, {compiled.paramstyle})[/dim]\n")
    console.print(Syntax(compiled.sql, "sql", word_wrap=True))

    if compiled.params:
        table = Table(title="Bind parameters", show_header=True)
        table.add_column("#", style="dim")
        table.add_column("Value", style="green")
        table.add_column("Type", style="cyan")
        for position, value in enumerate(compiled.params, start=1):
            table.add_row(str(position), repr(value), type(value).__name__)
        console.print(table)


# =============================================================================
# RUN
# =============================================================================

@cli.command("run")
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--database", "--db", "database_url", envvar="RESULTSET_DATABASE_URL", required=True,
              help="Database URL, e.g. sqlite:///music.db or duckdb:///warehouse.duckdb")
@click.option("--schema", "schema_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="YAML schema with tables and relationships")
@click.option("--count", is_flag=True, help="Print the row count only")
@click.pass_context
def run_query(ctx, spec_file, database_url, schema_file, count):
    """Execute a query spec file and print the rows."""
    adapter = None
    try:
        schema = load_schema(schema_file) if schema_file else None
        adapter = adapter_from_url(database_url)
        rs = build_resultset(load_query_file(spec_file), schema, adapter=adapter)

        if count:
            total = rs.count()
            if ctx.obj["json"]:
                click.echo(json.dumps({"count": total}))
            else:
                console.print(f"[bold]{total}[/bold] row(s)")
            return

        rows = rs.all()
    except (ResultSetError, AdapterError) as e:
        handle_error(e)
        return
    finally:
        if adapter is not None:
            adapter.disconnect()

    if ctx.obj["json"]:
        click.echo(json.dumps(rows, indent=2, default=str))
        return

    if not rows:
        console.print("[yellow]No rows[/yellow]")
        return

    table = Table(title=rs.source, show_header=True)
    for column in rows[0]:
        table.add_column(str(column), style="cyan")
    for row in rows:
        table.add_row(*["" if v is None else str(v) for v in row.values()])
    console.print(table)
    console.print(f"[dim]{len(rows)} row(s)[/dim]")


# =============================================================================
# DIALECTS
# =============================================================================

@cli.command()
@click.pass_context
def dialects(ctx):
    """List supported SQL dialects and their default paramstyles."""
    entries = []
    for name in QueryCompiler.supported_dialects():
        target = QueryCompiler.DIALECT_MAP[name]
        entries.append({
            "dialect": name,
            "sqlglot": target,
            "paramstyle": QueryCompiler.DEFAULT_PARAMSTYLES.get(target, "qmark"),
        })

    if ctx.obj["json"]:
        click.echo(json.dumps(entries, indent=2))
        return

    table = Table(title="SQL dialects", show_header=True)
    table.add_column("Dialect", style="cyan")
    table.add_column("Renders as", style="green")
    table.add_column("Paramstyle", style="dim")
    for entry in entries:
        table.add_row(entry["dialect"], entry["sqlglot"], entry["paramstyle"])
    console.print(table)


# =============================================================================
# CONFIG
# =============================================================================

@cli.group("config")
def config_group():
    """Inspect library settings."""
    pass


@config_group.command("show")
@click.pass_context
def config_show(ctx):
    """Show current settings and where each value comes from."""
    settings = config.get_settings()
    values = settings.model_dump()

    if ctx.obj["json"]:
        click.echo(json.dumps(values, indent=2, default=str))
        return

    table = Table(title="Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="dim")

    for name, value in values.items():
        env_name = f"RESULTSET_{name.upper()}"
        source = "env" if env_name in os.environ else "default"
        table.add_row(name, "(not set)" if value is None else str(value), source)

    console.print(table)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
