"""Command-line interface for the key store.

Example:
    >>> # From terminal:
    >>> # keyledger rotate                  # create or rotate the signing key
    >>> # keyledger list                    # show every stored version
    >>> # keyledger show --key-version 1    # print an archived public key
    >>> # keyledger --keys-dir /srv/keys list
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from keyledger import __version__
from keyledger.config import KeyStoreConfig
from keyledger.errors import KeyLedgerError
from keyledger.store.manager import KeyStoreManager, format_versions

app = typer.Typer(help="Ed25519 signing key rotation and listing.")

USAGE = """Usage:
  keyledger rotate                  # Rotate keys (keeps old ones)
  keyledger list                    # List all stored keys
  keyledger show [--key-version N]  # Print a public key (current by default)

Options:
  --keys-dir PATH  Key directory (default: $KEYLEDGER_KEYS_DIR or .keys)
  --version        Show version and exit"""

# Exit code of usage errors (unknown command, bad option); no keyledger
# command exits with 2 itself.
USAGE_ERROR_EXIT_CODE = 2


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show keyledger version and exit.",
    callback=_version_callback,
    is_eager=True,
)

KEYS_DIR_OPTION = typer.Option(
    None,
    "--keys-dir",
    "-d",
    help="Directory holding keystore.json and the PEM files (default: $KEYLEDGER_KEYS_DIR or .keys).",
)


def _manager(ctx: typer.Context) -> KeyStoreManager:
    manager: KeyStoreManager = ctx.obj
    return manager


def _fail(exc: KeyLedgerError) -> typer.Exit:
    typer.echo(f"Error: {exc.message}", err=True)
    return typer.Exit(1)


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    version: bool = VERSION_OPTION,
    keys_dir: Optional[Path] = KEYS_DIR_OPTION,
) -> None:
    """Keyledger CLI entrypoint."""
    try:
        config = KeyStoreConfig.from_env(keys_dir)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors(include_url=False, include_input=False)
        )
        typer.echo(f"Error: Invalid configuration: {problems}", err=True)
        raise typer.Exit(1) from exc
    ctx.obj = KeyStoreManager(config)
    if ctx.invoked_subcommand is None:
        typer.echo(USAGE)


@app.command("rotate")
def rotate(ctx: typer.Context) -> None:
    """Generate a new current key pair, keeping all previous ones."""
    manager = _manager(ctx)
    typer.echo(f"Rotating Ed25519 keys in {manager.config.keys_dir} ...")
    try:
        store = manager.rotate()
    except KeyLedgerError as exc:
        raise _fail(exc) from exc
    typer.echo("Key rotation complete:")
    typer.echo(f"  - Current version: {store.current_version}")
    typer.echo(f"  - Total keys stored: {len(store.keys)}")
    typer.echo(f"  - Previous versions: {format_versions(store.keys[:-1])}")


@app.command("list")
def list_keys(ctx: typer.Context) -> None:
    """List stored key versions with creation time and current marker."""
    manager = _manager(ctx)
    try:
        typer.echo(manager.list_keys())
        manager.check_key_age()
    except KeyLedgerError as exc:
        raise _fail(exc) from exc


@app.command("show")
def show(
    ctx: typer.Context,
    key_version: Annotated[
        Optional[int],
        typer.Option("--key-version", "-k", min=1, help="Version to print (default: current)."),
    ] = None,
) -> None:
    """Print the public key PEM of the current (or given) version."""
    manager = _manager(ctx)
    try:
        if key_version is None:
            key = manager.get_current_key()
        else:
            key = manager.get_key(key_version)
    except KeyLedgerError as exc:
        raise _fail(exc) from exc
    typer.echo(key.public_key, nl=False)


def main(argv: list[str] | None = None) -> int:
    """Run the keyledger CLI; unknown commands print usage and exit 0."""
    try:
        app(args=argv, prog_name="keyledger")
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else (0 if exc.code is None else 1)
        if code == USAGE_ERROR_EXIT_CODE:
            typer.echo(USAGE)
            return 0
        return code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
