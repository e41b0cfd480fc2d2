"""
Overnote: Command-line interface.

Commands:
    overnote watch      Track the active context in the foreground
    overnote probe      Inspect the frontmost window once
    overnote resolve    Resolve a hand-written window signal
    overnote notes      Show the notes stored for a context
    overnote save       Replace the notes of a context
    overnote forget     Delete a context and its notes
    overnote gallery    List every saved context
    overnote status     Show the last daemon status
    overnote version    Show version
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from overnote import __version__, config
from overnote.async_client import AsyncNotesClient
from overnote.client import NotesClient
from overnote.context.probe import default_source
from overnote.context.resolver import ContextResolver
from overnote.context.rules import DEFAULT_IGNORED_TITLES, AppTable
from overnote.context.signals import WindowSignal
from overnote.context.tracker import ContextTracker
from overnote.daemon import PERMISSION_HINT, ContextDaemon
from overnote.exceptions import NotesBackendError, PermissionDenied, ProbeError
from overnote.notes import NoteSession, filter_contexts, is_blank

console = Console()
logger = logging.getLogger("overnote.cli")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def build_resolver(file_config: dict | None = None) -> ContextResolver:
    """Resolver using the tables from ~/.overnote/config.json."""
    if file_config is None:
        file_config = config.load_file_config()
    return ContextResolver(AppTable.from_config(file_config))


def build_tracker() -> ContextTracker:
    file_config = config.load_file_config()
    ignored = file_config.get("ignored_titles") or DEFAULT_IGNORED_TITLES
    return ContextTracker(resolver=build_resolver(file_config), ignored_titles=ignored)


# ─── Click Group ────────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--backend-url", default=None, help="Notes backend URL (default: OVERNOTE_BACKEND_URL)")
@click.option("--interval", type=int, default=None, help="Poll interval in ms (default: 500)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, backend_url: str | None, interval: int | None) -> None:
    """Overnote: sticky notes that follow what you are doing."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["backend_url"] = backend_url or config.BACKEND_BASE_URL
    ctx.obj["interval"] = interval or config.POLL_INTERVAL_MS

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _build_daemon(ctx: click.Context, notify: bool = True) -> ContextDaemon:
    """Construct a ContextDaemon from Click context."""
    return ContextDaemon(
        source=default_source(),
        tracker=build_tracker(),
        interval_ms=ctx.obj["interval"],
        notify=notify,
        status_file=config.STATUS_FILE,
    )


def _signal_table(signal: WindowSignal) -> Table:
    table = Table(title="▸ Window", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Owner", signal.owner_name or "[dim]-[/]")
    table.add_row("Title", signal.title or "[dim]-[/]")
    table.add_row("URL", signal.url or "[dim]-[/]")
    return table


def _print_resolution(signal: WindowSignal) -> None:
    resolved = build_resolver().resolve(signal)
    console.print(_signal_table(signal))
    console.print(
        Panel(
            f"[bold]{escape(resolved.label)}[/]\n[dim]{resolved.kind.value}[/]",
            title="Context",
            border_style="cyan",
        )
    )
    src = resolved.source
    if src.query:
        console.print(f"  [dim]query:[/] {escape(src.query)}  [dim]site:[/] {src.site_name}")


def _delete_if_stored(client: NotesClient, context: str) -> None:
    """Delete a context; a context the backend never stored counts as deleted."""
    try:
        client.delete_context(context)
    except NotesBackendError as e:
        if e.status_code != 404:
            raise
        logger.debug("Context %r was not stored", context)


# ─── Commands ─────────────────────────────────────────────────────────


@cli.command()
@click.option("--with-notes", is_flag=True, help="Load the notes of every new context")
@click.option("--no-notify", is_flag=True, help="Disable macOS notifications")
@click.pass_context
def watch(ctx: click.Context, with_notes: bool, no_notify: bool) -> None:
    """Track the active context in the foreground."""
    daemon = _build_daemon(ctx, notify=not no_notify)

    def _announce(context: str) -> None:
        console.print(f"[bold cyan]▸[/] {escape(context)}")

    daemon.add_handler(_announce)

    async def _main() -> None:
        client = AsyncNotesClient(ctx.obj["backend_url"]) if with_notes else None
        if client is not None:
            session = NoteSession(client)

            async def _show_notes(context: str) -> None:
                notes = await session.load(context)
                console.print(f"  [dim]{len(notes)} note(s)[/]")

            daemon.add_handler(_show_notes)
        try:
            await daemon.run()
        finally:
            if client is not None:
                await client.close()

    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        daemon.stop()
        console.print("[dim]Stopped.[/]")


@cli.command()
def probe() -> None:
    """Inspect the frontmost window once."""
    source = default_source()
    try:
        signal = asyncio.run(source.probe())
    except PermissionDenied as e:
        console.print(f"[red]❌ Window access denied:[/] {e}")
        console.print(f"[yellow]{PERMISSION_HINT}[/]")
        sys.exit(1)
    except ProbeError as e:
        console.print(f"[red]❌ Probe failed:[/] {e}")
        sys.exit(1)
    _print_resolution(signal)


@cli.command()
@click.option("--title", default=None, help="Window title")
@click.option("--url", default=None, help="Active tab URL")
@click.option("--owner", default=None, help="Owning process name")
def resolve(title: str | None, url: str | None, owner: str | None) -> None:
    """Resolve a hand-written window signal."""
    _print_resolution(WindowSignal(title=title, url=url, owner_name=owner))


@cli.command()
@click.argument("context")
@click.pass_context
def notes(ctx: click.Context, context: str) -> None:
    """Show the notes stored for CONTEXT."""
    try:
        with NotesClient(ctx.obj["backend_url"]) as client:
            stored = client.get_notes(context)
    except NotesBackendError as e:
        console.print(f"[red]❌ {e}[/]")
        sys.exit(1)

    if not stored:
        console.print(f"[dim]No notes yet for[/] {escape(context)}")
        return
    table = Table(title=f"▸ {escape(context)}", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Content")
    for note in stored:
        table.add_row(note.id, escape(note.content))
    console.print(table)


@cli.command()
@click.argument("context")
@click.argument("text", required=False, default="")
@click.pass_context
def save(ctx: click.Context, context: str, text: str) -> None:
    """Replace the notes of CONTEXT with TEXT (empty TEXT deletes it)."""
    try:
        with NotesClient(ctx.obj["backend_url"]) as client:
            if is_blank(text):
                _delete_if_stored(client, context)
                console.print(f"[yellow]🗑  Deleted[/] {escape(context)}")
            else:
                client.save_notes(context, [text])
                console.print(f"[green]✅ Saved[/] {escape(context)}")
    except NotesBackendError as e:
        console.print(f"[red]❌ {e}[/]")
        sys.exit(1)


@cli.command()
@click.argument("context")
@click.pass_context
def forget(ctx: click.Context, context: str) -> None:
    """Delete CONTEXT and all of its notes."""
    try:
        with NotesClient(ctx.obj["backend_url"]) as client:
            client.delete_context(context)
    except NotesBackendError as e:
        console.print(f"[red]❌ {e}[/]")
        sys.exit(1)
    console.print(f"[yellow]🗑  Deleted[/] {escape(context)}")


@cli.command()
@click.option("--search", default="", help="Only show contexts containing this text")
@click.pass_context
def gallery(ctx: click.Context, search: str) -> None:
    """List every saved context."""
    try:
        with NotesClient(ctx.obj["backend_url"]) as client:
            contexts = filter_contexts(client.all_notes(), search)
    except NotesBackendError as e:
        console.print(f"[red]❌ {e}[/]")
        sys.exit(1)

    if not contexts:
        console.print("[dim]No saved contexts.[/]")
        return
    table = Table(title="▸ All Notes", show_header=True, header_style="bold")
    table.add_column("Context", style="cyan")
    table.add_column("Notes", justify="right")
    table.add_column("Preview")
    for c in contexts:
        preview = " ".join(n.content for n in c.notes)[:60]
        table.add_row(escape(c.context), str(len(c.notes)), escape(preview))
    console.print(table)


@cli.command()
def status() -> None:
    """Show the last daemon status."""
    last = ContextDaemon.load_status()
    if not last:
        console.print("[yellow]No daemon status found. Run 'overnote watch' first.[/]")
        sys.exit(1)

    table = Table(title="Overnote: Last Status", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Updated at", last.get("updated_at", "unknown"))
    table.add_row("Context", last.get("current_context", "?"))
    table.add_row("Previous", last.get("previous_context", "?"))
    locked = last.get("locked_context") if last.get("locked") else None
    table.add_row("Locked", f"🔒 {locked}" if locked else "No")
    table.add_row("Healthy", "✅ Yes" if last.get("healthy") else "❌ No")
    if last.get("permission_denied"):
        table.add_row("  ⚠️  Permission", PERMISSION_HINT)
    for e in last.get("errors", []):
        table.add_row("  ❌ Error", str(e))
    console.print(table)


@cli.command()
def version() -> None:
    """Show Overnote version."""
    console.print(f"[bold cyan]Overnote[/] v{__version__}")


if __name__ == "__main__":
    cli()
