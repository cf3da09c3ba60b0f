"""
Markstash v1 - Bookmarks CLI

Command-line interface for resolving favicons and converting bookmark files.

Usage:
    python -m bookmarks.cli resolve github.com https://example.com/page
    python -m bookmarks.cli import --file ~/bookmarks.html --output bookmarks.json
    python -m bookmarks.cli export --input bookmarks.json --output bookmarks.html
"""

import asyncio
import base64
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from config import configure_logging
from favicon_service import __version__
from favicon_service.batch import resolve_many
from favicon_service.cache import create_cache
from favicon_service.normalizer import normalize_origin
from favicon_service.resolver import FaviconResolver
from .netscape import BookmarkRecord, export_bookmarks, export_bookmarks_html, import_bookmarks

console = Console()


async def _resolve_urls(urls: tuple[str, ...]) -> list:
    cache = create_cache()
    try:
        async with FaviconResolver(cache=cache) as resolver:
            return await resolve_many(urls, resolver)
    finally:
        await cache.close()


async def _import_file(data: str, keep_icons: bool) -> list[BookmarkRecord]:
    cache = create_cache()
    try:
        async with FaviconResolver(cache=cache) as resolver:
            return await import_bookmarks(data, resolver, keep_existing_icons=keep_icons)
    finally:
        await cache.close()


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
def cli(log_level):
    """Markstash - Bookmark Favicon Tool"""
    configure_logging(log_level)


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON including data URIs")
def resolve(urls: tuple[str, ...], as_json: bool):
    """
    Resolve the favicon of one or more URLs.
    """
    results = asyncio.run(_resolve_urls(urls))

    if as_json:
        payload = [
            {"url": url, "favicon": result.data_uri or "", "source": result.source, "error": result.error}
            for url, result in zip(urls, results)
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="Favicons")
    table.add_column("URL", style="cyan")
    table.add_column("Origin")
    table.add_column("Source", style="green")
    table.add_column("Size", justify="right")

    for url, result in zip(urls, results):
        if result.ok:
            table.add_row(url, normalize_origin(url), result.source or "-", f"{len(result.data_uri)} chars")
        else:
            table.add_row(url, normalize_origin(url), "[red]not found[/red]", "-")

    console.print(table)


@cli.command("import")
@click.option(
    "--file", "-f",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to a Netscape bookmarks HTML file"
)
@click.option("--base64", "is_base64", is_flag=True, help="The file is base64-encoded")
@click.option("--keep-icons", is_flag=True, help="Keep ICON_URI values from the file")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write imported bookmarks as JSON"
)
def import_(file: Path, is_base64: bool, keep_icons: bool, output: Path | None):
    """
    Import a bookmarks file and resolve a favicon for every bookmark.
    """
    console.print(f"\n[bold blue]Markstash Import[/bold blue]")
    console.print(f"File: {file}")
    console.print()

    if is_base64:
        data = file.read_text(encoding="ascii").strip()
    else:
        data = base64.b64encode(file.read_bytes()).decode("ascii")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Importing bookmarks and resolving favicons...", total=None)

        try:
            records = asyncio.run(_import_file(data, keep_icons))
        except ValueError as e:
            console.print(f"[red]Error reading file:[/red] {e}")
            sys.exit(1)

        progress.update(task, completed=True)

    with_icon = sum(1 for record in records if record.favicon)

    results_table = Table(title="Results")
    results_table.add_column("Metric", style="cyan")
    results_table.add_column("Count", justify="right", style="green")
    results_table.add_row("Bookmarks", str(len(records)))
    results_table.add_row("With favicon", str(with_icon))
    results_table.add_row("Without favicon", str(len(records) - with_icon))
    console.print(results_table)

    if output:
        output.write_text(
            json.dumps([record.to_dict() for record in records], indent=2),
            encoding="utf-8",
        )
        console.print(f"Wrote {len(records)} bookmarks to {output}")


@cli.command()
@click.option(
    "--input", "-i", "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with a list of bookmarks"
)
@click.option(
    "--output", "-o",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the bookmarks file"
)
@click.option("--base64", "as_base64", is_flag=True, help="Write the file base64-encoded")
def export(input_file: Path, output: Path, as_base64: bool):
    """
    Export bookmarks from JSON to a Netscape bookmarks file.
    """
    try:
        records = [
            BookmarkRecord.from_dict(item)
            for item in json.loads(input_file.read_text(encoding="utf-8"))
        ]
    except (ValueError, TypeError, AttributeError) as e:
        console.print(f"[red]Error reading bookmarks:[/red] {e}")
        sys.exit(1)

    if as_base64:
        output.write_text(export_bookmarks(records), encoding="ascii")
    else:
        output.write_text(export_bookmarks_html(records), encoding="utf-8")

    console.print(f"[green]Exported {len(records)} bookmarks to {output}[/green]")


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
