"""Recograph CLI: command-line interface for product graph operations."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from recograph.client import Recograph
from recograph.errors import RecographError
from recograph.shell import CommandShell

DATABASE_ENVVAR = "RECOGRAPH_DATABASE"


def _get_client(ctx: click.Context) -> Recograph:
    try:
        return Recograph(ctx.obj["database"])
    except (RecographError, OSError) as exc:
        raise click.ClickException(f"Cannot load database: {exc}") from exc


@click.group()
@click.option(
    "--database",
    default=None,
    envvar=DATABASE_ENVVAR,
    type=click.Path(dir_okay=False),
    help=f"Database file to load (or set {DATABASE_ENVVAR}).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, database: str | None, verbose: bool) -> None:
    """Recograph CLI: product recommendations from a category graph."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["database"] = database


@cli.command()
@click.pass_context
def shell(ctx: click.Context) -> None:
    """Read commands from standard input until 'quit'."""
    CommandShell(_get_client(ctx)).run(sys.stdin)


@cli.command()
@click.argument("query")
@click.pass_context
def recommend(ctx: click.Context, query: str) -> None:
    """Recommend products, e.g. 'UNION(S1 4, S2 7)'."""
    client = _get_client(ctx)
    try:
        products = client.recommend(query)
    except RecographError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(" ".join(str(p) for p in products))


@cli.command()
@click.pass_context
def nodes(ctx: click.Context) -> None:
    """List all nodes, sorted by name."""
    click.echo(" ".join(str(n) for n in _get_client(ctx).nodes()))


@cli.command()
@click.pass_context
def edges(ctx: click.Context) -> None:
    """List all edges, including inverses."""
    for e in _get_client(ctx).edges():
        click.echo(str(e))


@cli.command()
@click.argument("output", required=False, type=click.Path(dir_okay=False))
@click.pass_context
def export(ctx: click.Context, output: str | None) -> None:
    """Export the graph in DOT format to OUTPUT or standard output."""
    dot = _get_client(ctx).export_dot()
    if output is None:
        click.echo(dot)
        return
    Path(output).write_text(dot + "\n", encoding="utf-8")
    click.echo(f"Exported DOT to {output}")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show graph statistics."""
    s = _get_client(ctx).stats()
    click.echo(f"Nodes: {s.node_count}  Edges: {s.edge_count}")
    click.echo(f"Products: {s.product_count}  Categories: {s.category_count}")
    used = {rel: count for rel, count in s.edges_by_relationship.items() if count}
    if used:
        click.echo("Edges by relationship:")
        for rel, count in used.items():
            click.echo(f"  {rel}: {count}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate internal consistency of the graph."""
    result = _get_client(ctx).validate()
    if result.valid:
        click.echo("Graph is valid.")
    else:
        click.echo("Validation errors:")
        for err in result.errors:
            click.echo(f"  ERROR: {err}")
    for warn in result.warnings:
        click.echo(f"  WARNING: {warn}")


@cli.command()
@click.pass_context
def mcp(ctx: click.Context) -> None:
    """Start the MCP server for AI agent integration."""
    import os

    if ctx.obj["database"]:
        os.environ[DATABASE_ENVVAR] = ctx.obj["database"]
    from recograph.mcp.server import run_server

    run_server()


if __name__ == "__main__":
    cli()
