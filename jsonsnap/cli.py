import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jsonsnap import __version__
from jsonsnap.catalog import format_size, group_snapshots, restorable
from jsonsnap.colors import convert_article_colors
from jsonsnap.config import find_config, init_config, load_config
from jsonsnap.errors import JsonsnapError, NotFoundError
from jsonsnap.gateway import MutationGateway
from jsonsnap.log import read_logs
from jsonsnap.restore import restore_snapshot
from jsonsnap.snapshot import create_snapshot_store
from jsonsnap.tracked import TrackedFiles


@click.group()
@click.version_option(version=__version__)
def main():
    """jsonsnap: snapshots, retention and safe restore for JSON data files."""


def _open(console):
    """Load config and build (config, tracked, store). Exits on bad config."""
    try:
        config = load_config()
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)
    tracked = TrackedFiles.from_config(config)
    return config, tracked, create_snapshot_store(config, tracked)


@main.command()
@click.option("--data-dir", default=None, help="Directory holding the JSON data files.")
def init(data_dir):
    """Create .jsonsnapconfig in the current directory."""
    if find_config():
        click.echo(".jsonsnapconfig already exists.")
        return
    config_path = init_config(data_dir=data_dir)
    click.echo(f"Created {config_path}")


@main.command()
@click.argument("names", nargs=-1)
def backup(names):
    """Snapshot tracked files (default: the configured backup_defaults).

    Example: jsonsnap backup articles brandInfo
    """
    console = Console()
    config, tracked, store = _open(console)
    names = names or tuple(config["backup_defaults"])

    failed = 0
    for name in names:
        try:
            path = store.create(tracked.path(name))
        except JsonsnapError as e:
            console.print(f"  [red]✗[/red] {name}: {escape(str(e))}")
            failed += 1
            continue
        console.print(f"  [green]✓[/green] {name} -> [cyan]{path.name}[/cyan]")

    if failed:
        console.print(f"[bold red]{failed} of {len(names)} backup(s) failed.[/bold red]")
        raise SystemExit(1)
    console.print(f"[bold green]Done. {len(names)} file(s) backed up.[/bold green]")


def _snapshot_table(title, snapshots, numbered=True):
    table = Table(title=title)
    if numbered:
        table.add_column("#", justify="right", style="bold")
    table.add_column("Created", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Snapshot", style="cyan")
    for i, s in enumerate(snapshots, 1):
        row = [s["displayDate"], format_size(s["size"]), s["filename"]]
        table.add_row(*([str(i)] + row if numbered else row))
    return table


@main.command("list")
@click.option("--file", "tracked_name", default=None, help="Only snapshots of this tracked file.")
def list_cmd(tracked_name):
    """List snapshots grouped by tracked file, newest first."""
    console = Console()
    _, tracked, store = _open(console)

    if tracked_name and tracked_name not in tracked:
        console.print(f"[red]Unknown tracked file {tracked_name!r}.[/red]")
        raise SystemExit(1)

    snapshots = store.list(tracked_name)
    if not snapshots:
        console.print("[dim]No snapshots found.[/dim]")
        return

    for category, items in group_snapshots(snapshots, tracked).items():
        title = f"Other files ({len(items)})" if category == "other" else f"{category} ({len(items)})"
        console.print(_snapshot_table(title, items))


@main.command()
@click.argument("snapshot", required=False)
@click.option("--to", "target", default=None, help="Tracked file to restore into (inferred by default).")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt.")
def restore(snapshot, target, yes):
    """Restore a snapshot over its tracked file.

    Without SNAPSHOT, pick one from a numbered list.
    """
    console = Console()
    _, tracked, store = _open(console)

    if snapshot is None:
        candidates = restorable(store.list())
        if not candidates:
            console.print("[dim]No restorable snapshots found.[/dim]")
            return
        console.print(_snapshot_table("Snapshots", candidates))
        answer = click.prompt(
            f"Snapshot to restore (1-{len(candidates)}, q to quit)", default="q", show_default=False
        ).strip().lower()
        if answer == "q":
            console.print("[dim]Cancelled.[/dim]")
            return
        if not answer.isdigit() or not 1 <= int(answer) <= len(candidates):
            console.print("[red]Invalid snapshot number.[/red]")
            raise SystemExit(1)
        snapshot = candidates[int(answer) - 1]["filename"]

    try:
        if not store.path(snapshot).is_file():
            raise NotFoundError(f"Snapshot {snapshot} not found")
        destination = target or tracked.resolve(snapshot)
        target_path = tracked.path(destination)
    except (JsonsnapError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)

    if not yes and not click.confirm(f"Restore {snapshot} over {target_path.name}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    try:
        result = restore_snapshot(store, tracked, snapshot, target=destination)
    except (JsonsnapError, ValueError) as e:
        console.print(f"[red]Restore failed: {escape(str(e))}[/red]")
        raise SystemExit(1)

    if result["backupCreated"]:
        console.print(f"  Previous content saved as [cyan]{result['backupCreated']}[/cyan]")
    elif result["backupError"]:
        console.print(f"  [yellow]No pre-restore snapshot: {escape(result['backupError'])}[/yellow]")
    console.print(f"[bold green]Restored {snapshot} -> {result['target']}[/bold green]")


@main.command()
@click.argument("snapshot")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation prompt.")
def delete(snapshot, yes):
    """Delete one snapshot."""
    console = Console()
    _, _, store = _open(console)

    if not yes and not click.confirm(f"Delete {snapshot}?", default=False):
        console.print("[dim]Cancelled.[/dim]")
        return

    try:
        store.delete(snapshot)
    except (JsonsnapError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)
    console.print(f"  [red]Deleted[/red] {snapshot}")


@main.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", type=int, default=None, help="Port (default from config).")
def serve(host, port):
    """Run the backup HTTP API."""
    from jsonsnap.server import BackupServer

    console = Console()
    config, tracked, store = _open(console)
    server = BackupServer(store, tracked, host=host or config["host"], port=port or config["port"])
    console.print(f"[bold]Serving on {server.url}[/bold]  [dim]snapshots: {store.root}[/dim]")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")


@main.command("convert-colors")
def convert_colors():
    """Rewrite articles' availableColors as name:code (articles.json is backed up first)."""
    console = Console()
    _, tracked, store = _open(console)
    try:
        changed = convert_article_colors(MutationGateway(store, tracked))
    except (JsonsnapError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)
    console.print(f"[bold green]Conversion done. Articles updated: {changed}.[/bold green]")


@main.command()
@click.option("-n", "--limit", default=20, help="Number of log entries to show.")
def logs(limit):
    """Show the audit log."""
    console = Console()
    entries = read_logs(limit)
    if not entries:
        console.print("[dim]No logs yet.[/dim]")
        return

    table = Table(title="Audit Log")
    table.add_column("Time", style="dim")
    table.add_column("Event", style="bold")
    table.add_column("Snapshot", style="cyan")
    table.add_column("Target")
    for entry in entries:
        table.add_row(
            entry.get("timestamp", "")[:19].replace("T", " "),
            entry.get("event", ""),
            str(entry.get("snapshot") or entry.get("backup") or entry.get("pre_restore") or ""),
            str(entry.get("target") or entry.get("source") or entry.get("file") or ""),
        )
    console.print(table)
