"""
Main CLI application
"""
import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

import typer
from rich.table import Table

from ...core.exceptions import WorkbenchError, ShellStartError, SurfaceNotReadyError
from ...core.logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from ...core.paths import normalize_remote_path, parent_remote, basename_remote, is_root
from ...domain.channels import ParamikoChannelFactory
from ...domain.session import SessionRecord
from ...domain.transfer import ArchiveFormat
from ...domain.workbench import ConnectionState, Tab, Workbench
from ...infrastructure.state import JsonSessionStore
from ..config import ConfigLoader, WorkbenchConfig
from .notices import RichNoticePrinter

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

app = typer.Typer(
    name="sshbench",
    add_completion=False,
    help="Remote session workbench: shells, listings and folder transfers over SSH",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

TabAction = Callable[[Tab], Awaitable[Any]]


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (TOML)",
    ),
):
    """
    sshbench - remote session workbench

    Every command opens the named saved session, performs one operation
    and disconnects. Saved sessions live in ~/.config/sshbench/sessions.json.
    """
    try:
        config = ConfigLoader().load(toml_path=config_file, cli_overrides={"log_level": log_level})
    except WorkbenchError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(level=config.log_level, log_file=log_file)
    ctx.obj = config


def _load_sessions(config: WorkbenchConfig) -> List[SessionRecord]:
    return JsonSessionStore(Path(config.sessions_file)).load()


def _run_tab(config: WorkbenchConfig, name: str, action: TabAction, attach_shell: bool = False) -> Any:
    """Connect ``name``, run ``action`` on its tab and always shut down"""
    printer = RichNoticePrinter()

    async def runner() -> Any:
        settings = config.to_tab_settings()
        settings.attach_shell = attach_shell
        workbench = Workbench(
            _load_sessions(config),
            channel_factory=ParamikoChannelFactory(timeout=config.connect_timeout),
            settings=settings,
            listener=printer,
            workers=config.workers,
        )
        try:
            tab = workbench.tab(name)
            if not await tab.connect():
                return False
            return await action(tab)
        finally:
            await workbench.shutdown()

    try:
        result = asyncio.run(runner())
    except WorkbenchError as e:
        if not printer.errors:
            printer.error(str(e))
        raise typer.Exit(1)

    if result is False:
        raise typer.Exit(1)
    return result


async def _enter_parent(tab: Tab, remote_path: str) -> Optional[str]:
    """Navigate to the parent of ``remote_path`` and return its entry name"""
    remote_path = normalize_remote_path(remote_path)
    if is_root(remote_path):
        return None
    if not await tab.navigate(parent_remote(remote_path)):
        return None
    return basename_remote(remote_path)


@app.command("sessions")
def sessions_list(ctx: typer.Context):
    """List saved sessions"""
    try:
        sessions = _load_sessions(ctx.obj)
    except WorkbenchError as e:
        stderr_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Saved Sessions", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Target", style="green")
    table.add_column("Port", style="yellow")
    table.add_column("Auth", style="magenta")
    table.add_column("Path", style="dim")

    for session in sessions:
        if session.has_private_key:
            auth = "key"
        elif session.has_password:
            auth = "password"
        else:
            auth = "[red]none[/red]"
        table.add_row(session.name, session.target, str(session.port), auth, session.remote_path)

    stdout_console.print(table)


@app.command("ls")
def list_dir(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    path: Optional[str] = typer.Argument(None, help="Remote directory, ~ for home (default: session path)"),
):
    """List a remote directory"""

    async def action(tab: Tab) -> bool:
        if path == "~":
            loaded = await tab.navigate_home()
        else:
            loaded = await tab.navigate(path or tab.session.remote_path)
        if not loaded:
            return False
        table = Table(title=f"{tab.session.target}:{tab.current_path}", show_header=True, header_style="bold cyan")
        table.add_column("Name")
        table.add_column("Size", justify="right", style="yellow")
        table.add_column("Modified", style="dim")
        for entry in tab.listing:
            label = f"[bold blue]{entry.name}/[/bold blue]" if entry.is_directory and not entry.is_parent else entry.name
            table.add_row(label, entry.size_text, entry.modified_text)
        stdout_console.print(table)
        return True

    _run_tab(ctx.obj, name, action)


@app.command("pwd")
def print_working_dir(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
):
    """Print the remote login working directory"""

    async def action(tab: Tab) -> bool:
        if not await tab.sync():
            return False
        stdout_console.print(tab.current_path)
        return True

    _run_tab(ctx.obj, name, action)


@app.command("get")
def download(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    remote: str = typer.Argument(..., help="Remote file or directory"),
    local: Path = typer.Argument(Path("."), help="Local destination"),
):
    """Download a remote file or directory tree"""

    async def action(tab: Tab) -> bool:
        entry = await _enter_parent(tab, remote)
        if entry is None:
            return False
        if not await tab.download(entry, local):
            return False
        RichNoticePrinter().success(f"Downloaded {remote} to {local}")
        return True

    _run_tab(ctx.obj, name, action)


@app.command("put")
def upload(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    local: Path = typer.Argument(..., help="Local file or directory", exists=True),
    remote: Optional[str] = typer.Argument(None, help="Remote directory (default: session path)"),
):
    """Upload a local file or directory tree into a remote directory"""

    async def action(tab: Tab) -> bool:
        if not await tab.navigate(remote or tab.session.remote_path):
            return False
        if local.is_dir():
            ok = await tab.upload_folder(local)
        else:
            ok = await tab.upload_file(local)
        if ok:
            RichNoticePrinter().success(f"Uploaded {local} to {tab.current_path}")
        return ok

    _run_tab(ctx.obj, name, action)


@app.command("compress")
def compress(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    path: str = typer.Argument(..., help="Remote file or directory"),
    fmt: str = typer.Option(
        ArchiveFormat.ZIP.value,
        "--format",
        "-f",
        help="Archive format (zip or tar.gz)",
    ),
):
    """Compress a remote entry next to itself"""

    async def action(tab: Tab) -> bool:
        entry = await _enter_parent(tab, path)
        return entry is not None and await tab.compress(entry, fmt)

    _run_tab(ctx.obj, name, action)


@app.command("extract")
def extract(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    path: str = typer.Argument(..., help="Remote archive (.zip, .tar.gz, .tgz, .tar)"),
):
    """Extract a remote archive into its own directory"""

    async def action(tab: Tab) -> bool:
        entry = await _enter_parent(tab, path)
        return entry is not None and await tab.extract(entry)

    _run_tab(ctx.obj, name, action)


@app.command("rm")
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    path: str = typer.Argument(..., help="Remote file or directory"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Recursively delete a remote entry"""
    if not yes and not RichNoticePrinter().confirm(f"Delete {path} on '{name}' recursively?"):
        raise typer.Exit(1)

    async def action(tab: Tab) -> bool:
        entry = await _enter_parent(tab, path)
        return entry is not None and await tab.delete(entry)

    _run_tab(ctx.obj, name, action)


@app.command("mv")
def rename(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
    path: str = typer.Argument(..., help="Remote file or directory"),
    new_name: str = typer.Argument(..., help="New name within the same directory"),
):
    """Rename a remote entry in place"""

    async def action(tab: Tab) -> bool:
        entry = await _enter_parent(tab, path)
        return entry is not None and await tab.rename(entry, new_name)

    _run_tab(ctx.obj, name, action)


@app.command("shell")
def shell(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Saved session name"),
):
    """Open an interactive shell in its own terminal window and wait for it to exit"""

    async def action(tab: Tab) -> bool:
        try:
            pid = await tab.attach
        except (SurfaceNotReadyError, ShellStartError):
            return False

        printer = RichNoticePrinter()
        printer.success(f"Shell for '{tab.name}' running (pid {pid})")

        closed = asyncio.Event()
        tab.on_change = lambda t: closed.set() if t.state is ConnectionState.IDLE else None
        if tab.state is ConnectionState.CONNECTED:
            await closed.wait()
        return True

    _run_tab(ctx.obj, name, action, attach_shell=True)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
