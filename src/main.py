"""File Scavenger CLI - find files nothing else in the project refers to."""
import asyncio
import json
import signal
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from src.analyzer.cancellation import CancellationToken
from src.analyzer.deletion_watcher import DeletionWatcher
from src.analyzer.orchestrator import ScanOrchestrator, ScanProgress, ScanResult
from src.analyzer.overrides import OverrideStore
from src.analyzer.project_config import ScanConfiguration, resolve_configuration
from src.analyzer.reference_engine import base_name, stem
from src.config import CONFIG_FILE_NAME, __version__, get_settings
from src.errors import ProjectRootError, RestoreError
from src.reaper.safe_delete import SafeDeleter
from src.utils.logger import setup_logging
from src.utils.safe_console import SafeConsole

app = typer.Typer(
    name="scavenger",
    help="Find files in a project that no other file refers to",
    add_completion=False
)
console = SafeConsole()

# Overrides live for the lifetime of this process only
session_overrides = OverrideStore()


def _resolve_root(project_path: str) -> Path:
    root = Path(project_path).resolve()
    if not root.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project path does not exist: {escape(str(root))}")
        raise typer.Exit(1)
    return root


def _trash_dir(root: Path) -> Path:
    trash = Path(get_settings().trash_path)
    return trash if trash.is_absolute() else root / trash


def _config_resolver(root: Path) -> Callable[[Path], ScanConfiguration]:
    """Resolver that also hides the trash directory from scans."""
    trash = _trash_dir(root)

    def resolve(project_root: Path) -> ScanConfiguration:
        config = resolve_configuration(project_root)
        if trash.parent == Path(project_root):
            config = config.with_ignored_folders(trash.name)
        return config

    return resolve


def _build_orchestrator(root: Path, batch_size: Optional[int] = None) -> ScanOrchestrator:
    settings = get_settings()
    return ScanOrchestrator(
        session_overrides,
        batch_size=batch_size or settings.batch_size,
        settle_delay=settings.settle_delay,
        read_concurrency=settings.read_concurrency,
        resolve_config=_config_resolver(root),
    )


def _display_path(file_path: str, root: Path) -> str:
    try:
        return str(Path(file_path).relative_to(root))
    except ValueError:
        return file_path


def _to_project_path(file_path: str, root: Path) -> str:
    path = Path(file_path)
    if not path.is_absolute():
        path = root / path
    return str(path.resolve())


@contextmanager
def _sigint_cancels(token: CancellationToken) -> Iterator[None]:
    """Turn Ctrl-C into a cooperative cancellation while a scan runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


async def _run_scan(orchestrator: ScanOrchestrator, root: Path, show_progress: bool = True) -> ScanResult:
    token = CancellationToken()

    if show_progress:
        progress_ctx = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True
        )
    else:
        progress_ctx = nullcontext()

    with _sigint_cancels(token), progress_ctx as progress:
        report = None
        if show_progress:
            task = progress.add_task("Scanning for unused files...", total=None)

            def report(update: ScanProgress):
                progress.update(task, completed=update.processed, total=update.total,
                                description=update.message)

        try:
            return await orchestrator.scan(root, progress=report, cancel_token=token)
        except ProjectRootError as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            raise typer.Exit(1)


def _print_unused_table(files: List[str], root: Path, title: str = "Unused Files"):
    table = Table(title=title)
    table.add_column("File Path", style="cyan", no_wrap=False)
    table.add_column("Reason", style="magenta")
    for file_path in files:
        table.add_row(escape(_display_path(file_path, root)), "No references found")
    console.print(table)


def _print_scan_summary(orchestrator: ScanOrchestrator, result: ScanResult, visible: List[str]):
    if result.cancelled:
        console.print("[bold yellow]Scan canceled by user.[/bold yellow] "
                      "Showing results from completed batches only.")
    console.print("\n[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Tracked files: {len(orchestrator.tracked)}")
    console.print(f"  Unused files: {len(visible)}")
    marked = [f for f in orchestrator.tracked if orchestrator.is_marked_used(f)]
    if marked:
        console.print(f"  Marked as used: {len(marked)}")


@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Project root path to scan"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", min=1, help="Candidate files per batch (default: SCAVENGER_BATCH_SIZE or 100)"),
    mark_used: Optional[List[str]] = typer.Option(None, "--mark-used", "-k", help="Treat this file as used for this run (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Scan project and list files no other file refers to."""
    setup_logging(verbose)
    root = _resolve_root(project_path)
    orchestrator = _build_orchestrator(root, batch_size)

    for file_path in mark_used or []:
        session_overrides.set(_to_project_path(file_path, root), True)

    if not as_json:
        console.print(f"[bold blue]Scanning project:[/bold blue] {escape(str(root))}\n")
    result = asyncio.run(_run_scan(orchestrator, root, show_progress=not as_json))
    visible = orchestrator.visible_unused_files()

    if as_json:
        typer.echo(json.dumps({"unusedFiles": visible, "cancelled": result.cancelled}, indent=2))
        return

    if visible:
        _print_unused_table(visible, root)
    else:
        console.print("[bold green]No unused files found![/bold green]")
    _print_scan_summary(orchestrator, result, visible)

    if visible and not result.cancelled:
        console.print("\n[dim]Use 'scavenger clean' to move unused files to the trash[/dim]")


@app.command("config")
def show_config(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Show the configuration a scan of this project would use."""
    root = _resolve_root(project_path)
    config = resolve_configuration(root)
    source = root / CONFIG_FILE_NAME

    console.print(f"[bold blue]Config file:[/bold blue] "
                  f"{escape(str(source)) if source.is_file() else '(defaults)'}\n")

    table = Table(title="Scan Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Values", style="green", no_wrap=False)
    table.add_row("fileTypes", escape(" ".join(sorted(config.file_types))))
    table.add_row("ignoreFolders", escape(" ".join(sorted(config.ignore_folders))))
    table.add_row("ignoreRootFiles", escape(" ".join(sorted(config.ignore_root_files))))
    console.print(table)


@app.command()
def why(
    file_path: str = typer.Argument(..., help="File to explain"),
    project_path: str = typer.Option(".", "--project", "-p", help="Project root path"),
):
    """Explain why a file is or is not reported as unused."""
    root = _resolve_root(project_path)
    target = _to_project_path(file_path, root)
    orchestrator = _build_orchestrator(root)
    asyncio.run(_run_scan(orchestrator, root, show_progress=False))
    shown = escape(_display_path(target, root))

    if target not in orchestrator.tracked:
        console.print(f"{shown} is not tracked (ignored folder, ignored file name, or untracked extension).")
        return
    if target in orchestrator.unused_files:
        console.print(f"{shown} is unused: no tracked file mentions "
                      f"'{escape(base_name(target))}' or '{escape(stem(target))}'.")
        return

    for referrer in orchestrator.reference_graph.referrers(target):
        match = orchestrator.reference_graph.match_kind(referrer, target)
        console.print(f"{shown} is used: {escape(_display_path(referrer, root))} mentions its {match}.")


@app.command()
def review(
    project_path: str = typer.Argument(".", help="Project root path to review"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", "-b", min=1, help="Candidate files per batch"),
):
    """Scan, then decide file by file which unused files to keep."""
    root = _resolve_root(project_path)
    orchestrator = _build_orchestrator(root, batch_size)

    async def run():
        refreshes = []
        result = await _run_scan(orchestrator, root)
        orchestrator.on_refresh = refreshes.append

        kept = 0
        for file_path in list(orchestrator.visible_unused_files()):
            keep = await asyncio.to_thread(
                typer.confirm, f"Keep {_display_path(file_path, root)}?", default=False)
            if keep:
                orchestrator.toggle(file_path)
                kept += 1

        while orchestrator.refresh_pending:
            await asyncio.sleep(0.05)
        return result, kept

    result, kept = asyncio.run(run())
    visible = orchestrator.visible_unused_files()

    if kept:
        console.print(f"\n[green]Marked {kept} file(s) as used for this session.[/green]")
    if visible:
        _print_unused_table(visible, root, title="Remaining Unused Files")
    else:
        console.print("[bold green]No unused files left.[/bold green]")
    _print_scan_summary(orchestrator, result, visible)


@app.command()
def watch(
    project_path: str = typer.Argument(".", help="Project root path to watch"),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", min=0.05, help="Seconds between deletion checks"),
    duration: float = typer.Option(0.0, "--duration", min=0.0, help="Stop after this many seconds (0 = until Ctrl-C)"),
):
    """Scan once, then keep the unused list current as files get deleted."""
    root = _resolve_root(project_path)
    orchestrator = _build_orchestrator(root)
    poll_interval = interval or get_settings().watch_interval

    async def run():
        result = await _run_scan(orchestrator, root)
        if result.cancelled:
            return result
        visible = orchestrator.visible_unused_files()
        if visible:
            _print_unused_table(visible, root)
        console.print(f"[dim]Watching {len(visible)} unused file(s) for deletion. Press Ctrl-C to stop.[/dim]")

        def on_poll(deleted: List[str]):
            for file_path in deleted:
                console.print(f"[yellow]Removed[/yellow] {escape(_display_path(file_path, root))} (deleted)")
            console.print(f"  Unused files: {len(orchestrator.visible_unused_files())}")

        stop = asyncio.Event()
        watcher = DeletionWatcher(lambda: list(orchestrator.unused_files), orchestrator.on_delete,
                                  interval=poll_interval)
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, stop.set)
        except (NotImplementedError, RuntimeError, ValueError):
            pass
        if duration > 0:
            loop.call_later(duration, stop.set)
        try:
            await watcher.run(stop, on_poll)
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError, ValueError):
                pass
        return result

    result = asyncio.run(run())
    _print_scan_summary(orchestrator, result, orchestrator.visible_unused_files())


@app.command()
def clean(
    project_path: str = typer.Argument(".", help="Project root path to clean"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed without touching anything"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    mark_used: Optional[List[str]] = typer.Option(None, "--mark-used", "-k", help="Keep this file (repeatable)"),
):
    """Move unused files to the trash (restorable with 'scavenger restore')."""
    root = _resolve_root(project_path)
    orchestrator = _build_orchestrator(root)
    for file_path in mark_used or []:
        session_overrides.set(_to_project_path(file_path, root), True)

    console.print(f"[bold blue]Scanning project:[/bold blue] {escape(str(root))}\n")
    result = asyncio.run(_run_scan(orchestrator, root))
    if result.cancelled:
        console.print("[bold yellow]Scan canceled by user.[/bold yellow] Nothing was removed.")
        raise typer.Exit(1)

    unused = orchestrator.visible_unused_files()
    if not unused:
        console.print("[bold green]Project is clean. No unused files found.[/bold green]")
        return

    _print_unused_table(unused, root, title="Files to Remove")

    if dry_run:
        console.print("\n[bold blue]DRY RUN - No changes were made[/bold blue]")
        return

    if not yes:
        console.print("\n[bold yellow]Warning:[/bold yellow] This will move the files above to the trash.")
        if not typer.confirm("Proceed with cleanup?", default=False):
            console.print("[red]Aborted[/red]")
            return

    deleter = SafeDeleter(_trash_dir(root))
    deletion_ids = deleter.delete_unused(orchestrator)
    removed = sum(1 for d in deletion_ids if d is not None)
    failed = len(deletion_ids) - removed

    console.print(f"[bold green]Moved {removed} file(s) to {escape(str(deleter.trash_dir))}[/bold green]")
    if failed:
        console.print(f"[bold red]{failed} file(s) could not be removed[/bold red]")
    console.print("[dim]Use 'scavenger restore --all' to undo[/dim]")


@app.command()
def restore(
    project_path: str = typer.Argument(".", help="Project root path"),
    deletion_id: Optional[str] = typer.Option(None, "--id", help="Deletion ID to restore"),
    restore_all: bool = typer.Option(False, "--all", help="Restore every file still in the trash"),
):
    """Restore files moved to the trash by 'scavenger clean'."""
    root = _resolve_root(project_path)
    trash = _trash_dir(root)
    if not trash.is_dir():
        console.print("[yellow]Trash is empty.[/yellow]")
        return

    deleter = SafeDeleter(trash)
    if not deletion_id and not restore_all:
        console.print("[bold red]Error:[/bold red] Pass --id DELETION_ID or --all.")
        raise typer.Exit(1)

    try:
        if restore_all:
            restored = deleter.restore_all()
        else:
            restored = [deleter.restore(deletion_id)]
    except RestoreError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Restored {len(restored)} file(s)[/green]")
    for record in restored:
        console.print(f"  {escape(_display_path(record.original_path, root))} "
                      f"[dim](trashed because {escape(record.describe())})[/dim]")


@app.command()
def trash(
    project_path: str = typer.Argument(".", help="Project root path"),
):
    """Show what is currently in the trash."""
    root = _resolve_root(project_path)
    trash_dir = _trash_dir(root)
    if not trash_dir.is_dir():
        console.print("[yellow]Trash is empty.[/yellow]")
        return

    info = SafeDeleter(trash_dir).get_trash_info()
    table = Table(title=f"Trash: {escape(info['trash_dir'])}", show_header=True, header_style="bold cyan")
    table.add_column("Deletion ID", style="cyan")
    table.add_column("Original Path", style="magenta", no_wrap=False)
    table.add_column("Deleted At", style="green")
    table.add_column("Why", style="dim")
    for record in info["unrestored"]:
        table.add_row(record.id, escape(_display_path(record.original_path, root)),
                      record.deleted_at, escape(record.describe()))
    console.print(table)
    console.print(f"  Total deletions: {info['total_deletions']}")
    console.print(f"  Restorable: {info['unrestored_count']}")
    console.print(f"  Restored: {info['restored_count']}")


def _version_callback(value: bool):
    if value:
        typer.echo(f"scavenger {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
):
    """File Scavenger - find and remove files nothing refers to."""
    session_overrides.reset_all()


if __name__ == "__main__":
    app()
