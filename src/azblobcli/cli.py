"""
Blobstore CLI for Azure Blob Storage.

Usage: azblobcli -c CONFIG <command> [args]

Commands:
- put <src> <dest>: upload a file, verified by MD5
- get <key> <dst>: download a blob into a file
- delete <key>: delete a blob (missing blobs are not an error)
- delete-recursive [prefix]: delete every blob under a prefix
- exists <key>: exit 0 if the blob exists, 3 if it does not
- sign <key> <get|put> <duration>: print a signed URL
- list [prefix]: print blob names, one per line
- copy <src-key> <dst-key>: server-side copy
- properties <key>: print blob properties as JSON
- ensure-bucket-exists: create the container if needed
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer

from . import __version__
from .azure_blob_adapter import AzureBlobAdapter
from .client import BlobstoreClient, ExistenceState, SignAction
from .config import StorageConfig, load_config
from .durations import parse_duration
from .errors import ExistenceUnknownError
from .storage_protocols import StorageBackend

T = TypeVar("T")

EXIT_FAILURE = 1
EXIT_NOT_EXISTS = 3  # 1 and 2 already mean failure and usage error

app = typer.Typer(
    name="azblobcli",
    help="Blobstore CLI for Azure Blob Storage",
    add_completion=False,
    no_args_is_help=True,
)


def build_backend(config: StorageConfig) -> StorageBackend:
    """Create the storage backend for a loaded configuration."""
    return AzureBlobAdapter.from_config(config)


def _fail(message: str) -> typer.Exit:
    typer.echo(message, err=True)
    return typer.Exit(code=EXIT_FAILURE)


def _client(ctx: typer.Context) -> BlobstoreClient:
    config_path: Optional[Path] = ctx.obj
    if config_path is None:
        raise _fail("configuration path is required (-c)")
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        raise _fail(f"loading configuration {config_path}: {e}")

    client = BlobstoreClient(
        build_backend(config),
        get_timeout=config.get_timeout_seconds,
        put_timeout=config.put_timeout_seconds,
    )
    ctx.call_on_close(client.close)
    return client


def run_and_exit(command: str, func: Callable[[], T]) -> T:
    """
    Run a command body, reporting any error on stderr with exit status 1.
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        raise _fail(f"performing operation {command}: {e}") from e


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Configuration file path"
    ),
    version: bool = typer.Option(
        False,
        "-v",
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Blobstore CLI for Azure Blob Storage."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # The SDK logs request and response headers at INFO
    logging.getLogger("azure").setLevel(logging.DEBUG if debug else logging.WARNING)
    ctx.obj = config


@app.command()
def put(
    ctx: typer.Context,
    source: Path = typer.Argument(..., help="Local file to upload"),
    dest: str = typer.Argument(..., help="Destination blob name"),
) -> None:
    """Upload a file, verified by MD5."""
    if not source.is_file():
        raise _fail(f"source file {source} does not exist")
    client = _client(ctx)
    run_and_exit("put", lambda: client.put(source, dest))


@app.command()
def get(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Blob name to download"),
    dest: Path = typer.Argument(..., help="Local destination file"),
) -> None:
    """Download a blob into a file."""
    client = _client(ctx)

    def _get() -> None:
        with open(dest, "wb") as f:
            client.get(source, f)

    run_and_exit("get", _get)


@app.command()
def delete(
    ctx: typer.Context,
    blob: str = typer.Argument(..., help="Blob name to delete"),
) -> None:
    """Delete a blob. Deleting a missing blob succeeds."""
    client = _client(ctx)
    run_and_exit("delete", lambda: client.delete(blob))


@app.command("delete-recursive")
def delete_recursive(
    ctx: typer.Context,
    prefix: str = typer.Argument("", help="Prefix of the blobs to delete"),
) -> None:
    """Delete every blob under a prefix (the whole container if empty)."""
    client = _client(ctx)
    run_and_exit("delete-recursive", lambda: client.delete_recursive(prefix))


@app.command()
def exists(
    ctx: typer.Context,
    blob: str = typer.Argument(..., help="Blob name to check"),
) -> None:
    """Exit 0 if the blob exists, 3 if it does not, 1 if unknown."""
    client = _client(ctx)
    try:
        state = client.exists(blob)
    except ExistenceUnknownError as e:
        raise _fail(f"performing operation exists: {e}: {e.__cause__}")

    if state is ExistenceState.DOES_NOT_EXIST:
        raise typer.Exit(code=EXIT_NOT_EXISTS)


@app.command()
def sign(
    ctx: typer.Context,
    blob: str = typer.Argument(..., help="Blob name to sign"),
    action: str = typer.Argument(..., help="'get' or 'put'"),
    expiration: str = typer.Argument(..., help="Validity, e.g. 1h, 60m, 3600s"),
) -> None:
    """Print a signed URL for reading or writing a blob."""
    run_and_exit("sign", lambda: SignAction.parse(action))
    try:
        validity = parse_duration(expiration)
    except ValueError:
        raise _fail(
            "Expiration should be in the format of a duration i.e. 1h, 60m, 3600s. "
            f"Got: {expiration}"
        )

    client = _client(ctx)
    url = run_and_exit("sign", lambda: client.sign(blob, action, validity))
    typer.echo(url, nl=False)


@app.command("list")
def list_blobs(
    ctx: typer.Context,
    prefix: str = typer.Argument("", help="Only list blobs starting with this"),
) -> None:
    """Print blob names, one per line."""
    client = _client(ctx)
    for name in run_and_exit("list", lambda: client.list(prefix)):
        typer.echo(name)


@app.command()
def copy(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Source blob name"),
    dest: str = typer.Argument(..., help="Destination blob name"),
) -> None:
    """Copy a blob server-side."""
    client = _client(ctx)
    run_and_exit("copy", lambda: client.copy(source, dest))


@app.command()
def properties(
    ctx: typer.Context,
    blob: str = typer.Argument(..., help="Blob name"),
) -> None:
    """Print blob properties as JSON, or {} if the blob does not exist."""
    client = _client(ctx)
    metadata = run_and_exit("properties", lambda: client.properties(blob))
    payload = metadata.to_dict() if metadata is not None else {}
    typer.echo(json.dumps(payload, indent=2))


@app.command("ensure-bucket-exists")
def ensure_bucket_exists(ctx: typer.Context) -> None:
    """Create the container if it does not exist."""
    client = _client(ctx)
    run_and_exit("ensure-bucket-exists", client.ensure_container)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
