"""File browser command-line interface."""

import json
import sys
from pathlib import Path
from typing import BinaryIO, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.api.app import build_file_manager, create_app
from src.core.config import Settings, load_settings
from src.core.errors import ConfigurationError, FileBrowserError
from src.core.files import FileManager
from src.infrastructure.logging import setup_logging

__version__ = "0.1.0"

app = typer.Typer(
    name="filebrowser",
    help="File browser - serve or manage files under a base directory",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=False,
)

console = Console()


class LocalFileSink:
    """Writes served bytes into a local file, remembering the headers

    The file is only created once the first byte (or final flush) arrives,
    so a rejected path leaves nothing behind.
    """

    def __init__(self, path: Path):
        self.path = path
        self.headers: Dict[str, str] = {}
        self._fp: Optional[BinaryIO] = None

    def _file(self) -> BinaryIO:
        if self._fp is None:
            self._fp = open(self.path, "wb")
        return self._fp

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def write(self, data: bytes) -> int:
        return self._file().write(data)

    def flush(self) -> None:
        self._file().flush()

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        console.print(f"filebrowser v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML configuration file",
        envvar="FILEBROWSER_CONFIG",
    ),
):
    """
    File browser CLI

    Every command applies the same path checks as the web interface.
    """
    try:
        ctx.obj = load_settings(config_file)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(1)

    setup_logging(ctx.obj, stream=sys.stderr)


def _file_manager(ctx: typer.Context) -> FileManager:
    settings: Settings = ctx.obj
    return build_file_manager(settings)


def _fail(error: FileBrowserError) -> None:
    kind = getattr(error, "kind", None)
    label = kind.value if kind is not None else "error"
    console.print(f"[red]Error ({label}):[/red] {error.message}")
    raise typer.Exit(1)


@app.command("serve")
def serve_command(ctx: typer.Context):
    """Run the web server."""
    import uvicorn

    settings: Settings = ctx.obj
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


@app.command("ls")
def list_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Folder path"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON"),
):
    """List a folder."""
    try:
        entries = _file_manager(ctx).list(path)
    except FileBrowserError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps([{"name": e.name, "is_dir": e.is_dir} for e in entries]))
        return

    table = Table(title=f"/{path}")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    for entry in entries:
        table.add_row(entry.name, "folder" if entry.is_dir else "file")
    console.print(table)


@app.command("mkdir")
def mkdir_command(ctx: typer.Context, path: str = typer.Argument(..., help="Folder path")):
    """Create a folder and missing parents."""
    try:
        created = _file_manager(ctx).create_folder(path)
    except FileBrowserError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Created {created}")


@app.command("put")
def put_command(
    ctx: typer.Context,
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file"),
    path: str = typer.Argument(..., help="Destination path"),
):
    """Upload a local file."""
    try:
        with open(source, "rb") as f:
            stored = _file_manager(ctx).upload_file(path, f)
    except FileBrowserError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Uploaded {source} to {stored}")


@app.command("rm")
def remove_command(ctx: typer.Context, path: str = typer.Argument(..., help="Path")):
    """Delete a file or folder recursively."""
    try:
        deleted = _file_manager(ctx).delete(path)
    except FileBrowserError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Deleted {deleted}")


@app.command("mv")
def move_command(
    ctx: typer.Context,
    old_path: str = typer.Argument(..., help="Current path"),
    new_path: str = typer.Argument(..., help="New path"),
):
    """Rename or move an entry."""
    try:
        renamed = _file_manager(ctx).rename(old_path, new_path)
    except FileBrowserError as e:
        _fail(e)
    console.print(f"[green]✓[/green] Renamed {old_path} to {renamed}")


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File path"),
    output: Path = typer.Option(..., "--output", "-o", help="Local destination"),
):
    """Download a file."""
    sink = LocalFileSink(output)
    try:
        size = _file_manager(ctx).serve_file(sink, path)
    except FileBrowserError as e:
        _fail(e)
    finally:
        sink.close()
    console.print(f"[green]✓[/green] Wrote {size} bytes to {output}")


@app.command("zip")
def zip_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Folder path"),
    output: Path = typer.Option(..., "--output", "-o", help="Local zip file"),
):
    """Download a folder as a zip archive, leaving out hidden entries."""
    sink = LocalFileSink(output)
    try:
        count = _file_manager(ctx).serve_folder_as_zip(sink, path)
    except FileBrowserError as e:
        _fail(e)
    finally:
        sink.close()
    console.print(f"[green]✓[/green] Archived {count} files to {output}")


if __name__ == "__main__":
    app()
