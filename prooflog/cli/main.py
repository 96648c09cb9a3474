# prooflog/cli/main.py
"""
CLI for certifying files and inspecting, exporting and importing the local proof ledger.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from prooflog.codec.document import export_document, import_document, suggest_export_filename
from prooflog.config import FeedSettings, get_store_uri
from prooflog.core.digest import digest_file
from prooflog.core.errors import DecodeError, DigestUnavailable, FeedTransportError
from prooflog.ledger.certify import certify_paths
from prooflog.ledger.store import LedgerStore

app = typer.Typer(
    name="prooflog",
    help="Certify files locally and manage the proof-of-existence ledger",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

STORE_HELP = "Storage URI or SQLite path (overrides PROOFLOG_STORE env var)"


def format_bytes(size_bytes: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB"]
    size = float(size_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.2f} {units[unit_index]}"


def local_time(timestamp_iso: str) -> str:
    try:
        ts = datetime.fromisoformat(timestamp_iso.replace("Z", "+00:00"))
    except ValueError:
        return timestamp_iso
    return ts.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def open_store(store: Optional[str]) -> LedgerStore:
    uri = get_store_uri(store)
    try:
        return LedgerStore(uri)
    except Exception as e:
        console.print(f"[red]Failed to open storage {uri}: {escape(str(e))}[/]")
        console.print("[yellow]Check the --store value or the PROOFLOG_STORE env var.[/]")
        raise typer.Exit(1)


def warn_if_unsaved(ledger: LedgerStore) -> None:
    if ledger.write_warning is not None:
        console.print(f"[yellow]Warning: {ledger.write_warning}[/]")
        console.print("  The ledger was updated in memory but may not survive a restart.")


def proofs_table(title: str, records) -> Table:
    table = Table(title=title)
    table.add_column("SHA-256", overflow="fold")
    table.add_column("File", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Certified", no_wrap=True)
    for r in records:
        table.add_row(r.digest_hex, escape(r.filename), format_bytes(r.size_bytes), local_time(r.timestamp_iso))
    return table


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Local proof-of-existence ledger."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def certify(
    files: List[Path] = typer.Argument(..., help="Files to fingerprint"),
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
):
    """Hash files with SHA-256 and record a timestamped proof for each."""
    ledger = open_store(store)
    try:
        report = asyncio.run(certify_paths(files, ledger))
    finally:
        ledger.close()

    if report.records:
        console.print(proofs_table("New Proofs", report.records))
    warn_if_unsaved(ledger)

    for failure in report.failures:
        console.print(f"[red]✗ {escape(failure.filename)}: {escape(failure.message)}[/]")
    if report.failures:
        raise typer.Exit(1)


@app.command()
def history(
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of recent proofs to show"),
):
    """Show the most recent proofs, newest first."""
    ledger = open_store(store)
    records = ledger.records
    ledger.close()

    if not records:
        console.print("[yellow]No proofs recorded yet.[/]")
        console.print("  Run: prooflog certify <file>")
        return

    console.print(proofs_table(f"Local History ({len(records)} proofs)", records[:limit]))


@app.command()
def last(
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the proof summary as JSON"),
):
    """Show the latest certification."""
    ledger = open_store(store)
    record = ledger.latest()
    ledger.close()

    if record is None:
        console.print("[yellow]No proofs recorded yet.[/]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(record.summary(), indent=2, ensure_ascii=False))
        return

    console.print(f"[bold cyan]{record.digest_hex}[/]")
    console.print(f"  {escape(record.filename)} · {format_bytes(record.size_bytes)} · {local_time(record.timestamp_iso)}")


@app.command()
def verify(
    file: Path = typer.Argument(..., help="File to check against the ledger"),
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
):
    """Re-hash a file and list the proofs recorded for its content."""
    try:
        hex_digest, _ = asyncio.run(digest_file(file))
    except (DigestUnavailable, OSError) as e:
        console.print(f"[red]Could not hash {file}: {escape(str(e))}[/]")
        raise typer.Exit(1)

    ledger = open_store(store)
    matches = ledger.find_by_digest(hex_digest)
    ledger.close()

    if not matches:
        console.print(f"[red]✗ No proof recorded for {escape(file.name)}[/]")
        console.print(f"  SHA-256: {hex_digest}")
        raise typer.Exit(1)

    console.print(f"[green]✓ {escape(file.name)} matches {len(matches)} recorded proof(s)[/]")
    console.print(proofs_table("Matching Proofs", matches))


@app.command()
def clear(
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Erase the local history."""
    ledger = open_store(store)
    count = ledger.length
    if not yes and not typer.confirm(f"Delete {count} proofs?"):
        ledger.close()
        raise typer.Abort()

    ledger.clear()
    ledger.close()
    console.print(f"[green]Cleared {count} proofs[/]")
    warn_if_unsaved(ledger)


@app.command()
def export(
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: prooflog-proofs-<timestamp>.json)"),
):
    """Export the full ledger as a pretty-printed JSON array."""
    ledger = open_store(store)
    records = ledger.records
    ledger.close()

    out_path = output or Path(suggest_export_filename())
    out_path.write_bytes(export_document(records))

    console.print(f"[green]Exported {len(records)} proofs to {out_path}[/]")


@app.command("import")
def import_(
    file: Path = typer.Argument(..., help="JSON document produced by export"),
    store: Optional[str] = typer.Option(None, "--store", help=STORE_HELP),
):
    """Replace the ledger with the proofs in an export document."""
    try:
        records = import_document(file.read_bytes())
    except OSError as e:
        console.print(f"[red]Could not read {file}: {escape(str(e))}[/]")
        raise typer.Exit(1)
    except DecodeError as e:
        console.print(f"[red]Invalid proof document: {escape(str(e))}[/]")
        console.print("  The ledger was left unchanged.")
        raise typer.Exit(1)

    ledger = open_store(store)
    ledger.replace(records)
    ledger.close()

    console.print(f"[green]Imported {ledger.length} proofs from {file}[/]")
    warn_if_unsaved(ledger)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the synthetic certification ticker server."""
    import uvicorn
    from prooflog.feed.server import create_app

    uvicorn.run(create_app(FeedSettings.from_env()), host=host, port=port)


@app.command()
def ticker(
    url: Optional[str] = typer.Option(None, "--url", help="Ticker endpoint (overrides PROOFLOG_FEED_URL)"),
    limit: int = typer.Option(0, "--limit", "-n", help="Stop after N events (0 = until the server closes)"),
):
    """Subscribe to the ticker and print events as they arrive."""
    from prooflog.feed.client import FeedClient

    client = FeedClient(url or FeedSettings.from_env().url)
    count = 0
    try:
        for event in client.events():
            console.print(f"[bold magenta]Tick[/] {escape(event.render())}")
            count += 1
            if limit and count >= limit:
                break
    except FeedTransportError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)
    finally:
        client.close()

    console.print(f"[dim]Received {count} events[/]")


if __name__ == "__main__":
    app()
