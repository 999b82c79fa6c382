"""Staticizer CLI - mark false instance methods of Java classes static."""
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import typer
from rich.markup import escape
from rich.table import Table

from staticizer.analyzer.eligibility import AnalysisOptions
from staticizer.analyzer.parser import JavaParser
from staticizer.analyzer.staticize_pass import PassResult, StaticizePass
from staticizer.config import __version__, get_config
from staticizer.errors import BackupError, SourceReadError
from staticizer.reaper.backup import Backup
from staticizer.utils.console import SafeConsole
from staticizer.utils.logger import configure_logging

app = typer.Typer(
    name="staticize",
    help="Find private/final instance methods that never touch instance state and make them static",
    add_completion=False
)
console = SafeConsole()


def discover_sources(project_path: Path, pattern: str, excluded_dirs: List[str],
                     skip_paths: Iterable[Path] = ()) -> List[Path]:
    """Find Java sources under a path.

    Args:
        project_path: A .java file or a directory
        pattern: Glob pattern relative to the directory
        excluded_dirs: Directory names that are never entered
        skip_paths: Directories whose contents are never returned, whatever
            excluded_dirs says (the backup directory)

    Returns:
        Sorted list of source files
    """
    if project_path.is_file():
        return [project_path] if JavaParser.supports(project_path) else []

    excluded = set(excluded_dirs)
    skipped = [Path(p).resolve() for p in skip_paths]
    files = set()
    for file_path in project_path.glob(pattern):
        relative_parts = file_path.relative_to(project_path).parts
        if any(part in excluded for part in relative_parts[:-1]):
            continue
        resolved = file_path.resolve()
        if any(resolved.is_relative_to(skip) for skip in skipped):
            continue
        if file_path.is_file() and JavaParser.supports(file_path):
            files.add(file_path)
    return sorted(files)


def run_pass(project_path: Path) -> Tuple[List[PassResult], List[Tuple[Path, str]]]:
    """Shared analysis logic for audit and apply.

    Returns:
        (results per readable file, [(path, error)] for unreadable files)
    """
    config = get_config()
    staticize = StaticizePass(AnalysisOptions.from_config(config))
    results: List[PassResult] = []
    unreadable: List[Tuple[Path, str]] = []

    sources = discover_sources(
        project_path, config.source_glob, config.excluded_dirs,
        skip_paths=[_trash_dir(project_path, config.trash_path)],
    )
    with console.status(f"Analyzing {len(sources)} Java file(s)..."):
        for file_path in sources:
            try:
                results.append(staticize.run_file(file_path, config.encoding))
            except SourceReadError as e:
                unreadable.append((file_path, str(e)))
    return results, unreadable


def _display_path(file_path: str, project_path: Path) -> str:
    try:
        return str(Path(file_path).relative_to(project_path))
    except ValueError:
        return file_path


def _print_changes(results: List[PassResult], project_path: Path, title: str):
    table = Table(title=title)
    table.add_column("Class", style="cyan")
    table.add_column("Method", style="yellow")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Line", style="green")

    base = project_path if project_path.is_dir() else project_path.parent
    for result in results:
        for change in result.changes:
            table.add_row(
                change.class_name,
                change.signature,
                _display_path(result.file_path, base),
                str(change.line),
            )
    console.print(table)


def _print_explanations(results: List[PassResult]):
    table = Table(title="Instance-Dependent Candidates")
    table.add_column("Class", style="cyan")
    table.add_column("Method", style="yellow")
    table.add_column("Reason", style="magenta")
    table.add_column("Chain", style="dim")

    rows = 0
    for result in results:
        for report in result.reports:
            if report.result is None:
                continue
            for method in report.result.rejected_candidates:
                chain = report.result.dependency_chain(method)
                table.add_row(
                    report.class_name,
                    method.signature,
                    report.result.reasons.get(method.signature, ""),
                    " -> ".join(chain),
                )
                rows += 1
    if rows:
        console.print(table)
    else:
        console.print("[dim]No candidate was rejected.[/dim]")


def _print_problems(results: List[PassResult], unreadable: List[Tuple[Path, str]]):
    for file_path, error in unreadable:
        console.print(f"[bold red]Unreadable:[/bold red] {escape(str(file_path))}: {escape(error)}")
    for result in results:
        for report in result.failed_classes:
            console.print(
                f"[yellow]Skipped[/yellow] {escape(report.class_name)} "
                f"in {escape(result.file_path)}: {escape(report.error)}"
            )


def _resolve_project(project_path: str) -> Path:
    path = Path(project_path).resolve()
    if not path.exists():
        console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(path))}")
        raise typer.Exit(1)
    return path


@app.command()
def audit(
    project_path: str = typer.Argument(".", help="Java file or project root to analyze"),
    explain: bool = typer.Option(False, "--explain", "-e", help="Show why rejected candidates must stay instance methods"),
):
    """Report methods that can be made static, without changing any file."""
    path = _resolve_project(project_path)
    results, unreadable = run_pass(path)

    total = sum(len(r.changes) for r in results)
    if total:
        _print_changes(results, path, "Methods That Can Be Static")
    else:
        console.print("[bold green]No false instance methods found![/bold green]")

    if explain:
        _print_explanations(results)
    _print_problems(results, unreadable)

    console.print("\n[bold yellow]Summary:[/bold yellow]")
    console.print(f"  Files analyzed: {len(results)}")
    console.print(f"  Classes analyzed: {sum(len(r.reports) for r in results)}")
    console.print(f"  Methods that can be static: {total}")
    if total:
        console.print("[dim]Use 'staticize apply' to rewrite the sources[/dim]")


@app.command()
def apply(
    project_path: str = typer.Argument(".", help="Java file or project root to rewrite"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without writing"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Mark false instance methods static, backing up every rewritten file."""
    path = _resolve_project(project_path)
    config = get_config()
    results, unreadable = run_pass(path)
    changed = [r for r in results if r.changed]

    _print_problems(results, unreadable)
    if not changed:
        console.print("[bold green]Nothing to change.[/bold green]")
        return

    _print_changes(changed, path, "Methods To Mark Static")

    if dry_run:
        console.print("\n[bold blue]DRY RUN - No changes were made[/bold blue]")
        return

    if not yes:
        confirm = typer.confirm(f"Rewrite {len(changed)} file(s)?", default=False)
        if not confirm:
            console.print("[red]Aborted[/red]")
            return

    backup = Backup(_trash_dir(path, config.trash_path))
    written = 0
    for result in changed:
        file_path = Path(result.file_path)
        try:
            backup_id = backup.backup(
                file_path,
                reason="staticize",
                changes=[str(change) for change in result.changes],
            )
        except BackupError as e:
            console.print(f"[red]Not rewritten (backup failed): {escape(str(e))}[/red]")
            continue
        file_path.write_text(result.source, encoding=config.encoding, newline='')
        written += 1
        console.print(f"[green]✓ Rewrote[/green] {escape(str(file_path))} [dim](backup {backup_id})[/dim]")

    console.print(f"\n[bold green]Rewrote {written} file(s), "
                  f"{sum(len(r.changes) for r in changed)} method(s) marked static[/bold green]")


@app.command()
def restore(
    backup_id: str = typer.Argument(..., help="Backup ID printed by 'staticize apply'"),
    project_path: str = typer.Option(".", "--project", "-p", help="Project root the backup was taken in"),
):
    """Put a rewritten file back to its original content."""
    path = _resolve_project(project_path)
    backup = Backup(_trash_dir(path, get_config().trash_path))
    try:
        backup.restore(backup_id)
    except BackupError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    console.print(f"[bold green]Restored backup {escape(backup_id)}[/bold green]")


@app.command("backups")
def list_backups(
    project_path: str = typer.Option(".", "--project", "-p", help="Project root"),
):
    """List backups taken by 'staticize apply'."""
    path = _resolve_project(project_path)
    backup = Backup(_trash_dir(path, get_config().trash_path))
    records = backup.manifest.list_backups()
    if not records:
        console.print("[dim]No backups.[/dim]")
        return

    table = Table(title="Backups")
    table.add_column("ID", style="cyan")
    table.add_column("File", style="magenta", no_wrap=False)
    table.add_column("Methods", style="yellow")
    table.add_column("Restored", style="green")
    for record in records:
        table.add_row(
            record["id"],
            record["original_path"],
            str(len(record.get("changes", []))),
            "yes" if record.get("restored") else "no",
        )
    console.print(table)

    info = backup.get_trash_info()
    console.print(
        f"  Backups: {info['total_backups']} "
        f"({info['unrestored_count']} pending, {info['restored_count']} restored)"
    )


def _trash_dir(project_path: Path, trash_path: str) -> Path:
    base = project_path if project_path.is_dir() else project_path.parent
    trash = Path(trash_path)
    return trash if trash.is_absolute() else base / trash


def _version_callback(value: bool):
    if value:
        console.print(f"staticize {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit",
    ),
):
    """Staticizer - make false instance methods static."""
    try:
        config = get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(2)
    configure_logging(config.log_level)


if __name__ == "__main__":
    app()
