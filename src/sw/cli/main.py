"""
CLI for the offline cache controller.

Commands:
    sw version - Print version
    sw config - Show current configuration
    sw route URL - Show which strategy a request would be routed to
    sw install - Prime the shell cache against a running dev server
    sw check-update - Install, then check the dev server for a changed config
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sw import __version__
from sw.cache.memory import InMemoryCacheStorage
from sw.config import Settings, clear_settings_cache, get_settings
from sw.context import RuntimeContext
from sw.exceptions import InstallFailure
from sw.logging import setup_logging
from sw.network import HttpxFetcher
from sw.router import decide_route
from sw.types import UPDATE_CHECK_TAG, Request, RequestDestination, RequestMode
from sw.worker import ActivateEvent, InstallEvent, PeriodicSyncEvent, ServiceWorker

app = typer.Typer(
    name="sw",
    help="Wedding site offline cache controller",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def _load_settings(origin: str | None = None) -> Settings:
    """Load settings, exiting with a readable error if they are invalid."""
    try:
        clear_settings_cache()
        settings = Settings(ORIGIN=origin) if origin else get_settings()
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] Configuration is invalid.\n{e}")
        raise typer.Exit(1)
    setup_logging(log_level=settings.LOG_LEVEL)
    return settings


def _build_worker(settings: Settings) -> tuple[ServiceWorker, InMemoryCacheStorage]:
    storage = InMemoryCacheStorage()
    ctx = RuntimeContext(
        settings=settings,
        storage=storage,
        fetcher=HttpxFetcher(timeout=settings.REQUEST_TIMEOUT),
    )
    return ServiceWorker(ctx), storage


def _print_storage(storage: InMemoryCacheStorage) -> None:
    table = Table(title="Cache Storage")
    table.add_column("Namespace", style="cyan")
    table.add_column("URL")
    table.add_column("Status", justify="right")
    table.add_column("Size", justify="right")

    for name, entries in storage.snapshot().items():
        for entry in entries:
            table.add_row(name, entry["url"], str(entry["status"]), str(entry["size"]))

    console.print(table)


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"wedding-sw {__version__}")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key, value in settings.redacted_display().items():
        table.add_row(key, str(value))

    console.print(table)

    namespaces = ", ".join(ns.name for ns in (
        settings.static_namespace,
        settings.dynamic_namespace,
        settings.image_namespace,
    ))
    console.print(f"\n[dim]Namespaces:[/dim] {namespaces}")


@app.command()
def route(
    url: Annotated[str, typer.Argument(help="Absolute request URL")],
    method: Annotated[str, typer.Option("--method", "-m", help="HTTP method")] = "GET",
    mode: Annotated[
        RequestMode, typer.Option("--mode", help="Request mode")
    ] = RequestMode.NO_CORS,
    destination: Annotated[
        RequestDestination, typer.Option("--destination", "-d", help="Request destination")
    ] = RequestDestination.EMPTY,
) -> None:
    """Show which strategy a request would be routed to."""
    settings = _load_settings()
    request = Request(url=url, method=method, mode=mode, destination=destination)
    kind = decide_route(request, settings)
    console.print(f"{request.method} {request.url} -> [bold]{kind.value}[/bold]")


@app.command()
def install(
    origin: Annotated[
        Optional[str],
        typer.Option("--origin", help="Dev server origin (defaults to ORIGIN)"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the cache snapshot as JSON"),
    ] = None,
) -> None:
    """Prime the shell cache against a running dev server."""
    settings = _load_settings(origin)
    worker, storage = _build_worker(settings)

    async def run() -> None:
        try:
            await worker.dispatch(InstallEvent())
            await worker.dispatch(ActivateEvent())
        finally:
            await worker.ctx.fetcher.close()

    try:
        asyncio.run(run())
    except InstallFailure as e:
        error_console.print(f"[red]Install failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold]Version:[/bold] {settings.CACHE_VERSION}\n"
            f"[bold]Origin:[/bold] {settings.ORIGIN}\n"
            f"[bold]State:[/bold] {worker.state.value}",
            title="[bold cyan]Service Worker Install[/bold cyan]",
            border_style="cyan",
        )
    )
    _print_storage(storage)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(orjson.dumps(storage.snapshot(), option=orjson.OPT_INDENT_2))
        console.print(f"[dim]Snapshot:[/dim] {output}")


@app.command("check-update")
def check_update(
    origin: Annotated[
        Optional[str],
        typer.Option("--origin", help="Dev server origin (defaults to ORIGIN)"),
    ] = None,
    wait: Annotated[
        float,
        typer.Option("--wait", "-w", help="Seconds to wait between install and check"),
    ] = 0.0,
) -> None:
    """Install, then check the dev server for a changed config file."""
    settings = _load_settings(origin)
    worker, _ = _build_worker(settings)
    page = worker.ctx.clients.open(settings.resolve("/"))

    async def run() -> bool:
        try:
            await worker.dispatch(InstallEvent())
            await worker.dispatch(ActivateEvent())
            if wait > 0:
                console.print(f"[dim]Waiting {wait:.0f}s - edit the config now[/dim]")
                await asyncio.sleep(wait)
            return await worker.dispatch(PeriodicSyncEvent(tag=UPDATE_CHECK_TAG))
        finally:
            await worker.ctx.fetcher.close()

    try:
        changed = asyncio.run(run())
    except InstallFailure as e:
        error_console.print(f"[red]Install failed:[/red] {e}")
        raise typer.Exit(1)

    if changed:
        for message in page.messages:
            console.print(f"[yellow]{message['type']}[/yellow]: {message['message']}")
    else:
        console.print("[green]Config unchanged.[/green]")


if __name__ == "__main__":
    app()
