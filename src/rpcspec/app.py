"""Typer application and CLI entry point for rpcspec.

Read-only commands for looking at an RPC spec document:

* ``methods`` -- list the methods with their params and result types.
* ``types`` -- list the named types in the registry.
* ``resolve`` -- resolve one type name into a descriptor (or a tree).
* ``show`` -- expand the params and result types of one method.

Every command loads the document through a
:class:`~rpcspec.repository.SpecRepository` using the URL resolved by
:func:`~rpcspec.config.resolve_config`. The :func:`main` function is the
console-script entry point declared in ``pyproject.toml``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from rpcspec import __version__
from rpcspec.exit_codes import EXIT_CONNECTION_ERROR, EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from rpcspec.models import GlobalConfig
from rpcspec.output import (
    debug,
    error,
    format_response,
    get_output,
    info,
    print_tree,
    suggest,
)
from rpcspec.repository import SpecRepository
from rpcspec.resolver import expand_type


app = typer.Typer(
    name="rpcspec",
    help="Inspect RPC API specs and resolve their type names.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"rpcspec {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route library logging to stderr through Rich when --verbose is given."""
    root = logging.getLogger("rpcspec")
    root.handlers.clear()
    if verbose:
        root.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
        root.setLevel(logging.DEBUG)
    else:
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.WARNING)
    root.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    spec_url: Optional[str] = typer.Option(
        None, "--spec", "-s", help="URL of the spec document."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Base URL for relative spec URLs."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Resolves the effective configuration, installs the global
    :class:`~rpcspec.output.OutputManager`, and stores the configuration in
    ``ctx.obj`` for the sub-commands.
    """
    from rpcspec.config import resolve_config
    from rpcspec.exceptions import ConfigError
    from rpcspec.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    try:
        config = resolve_config(
            cli_spec_url=spec_url, cli_base_url=base_url, cli_format=cli_format
        )
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    try:
        fmt = OutputFormat(config.output.format)
    except ValueError:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _make_fetcher(config: GlobalConfig) -> Any:
    """Create the transport used by the CLI's repository."""
    from rpcspec.client import SpecFetcher

    return SpecFetcher(config.request, base_url=config.base_url)


def _load_repository(ctx: typer.Context) -> SpecRepository:
    """Load the configured spec, exiting with an error message if that fails.

    Raises:
        typer.Exit: With :data:`~rpcspec.exit_codes.EXIT_CONNECTION_ERROR`
            when the spec could not be loaded.
    """
    config: GlobalConfig = ctx.obj["config"]
    repo = SpecRepository(config.spec_url, _make_fetcher(config))

    debug(f"Loading spec from {config.spec_url}")
    asyncio.run(repo.load_spec())
    if repo.error:
        error(repo.error)
        suggest("Check the URL with --spec or set RPCSPEC_SPEC_URL")
        raise typer.Exit(code=EXIT_CONNECTION_ERROR)
    debug(f"{len(repo.methods)} methods, {len(repo.types)} types")
    return repo


def _type_cell(value: Any) -> str:
    if not value:
        return "-"
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


@app.command("methods")
def list_methods(ctx: typer.Context) -> None:
    """List all RPC methods with their params and result types.

    Example::

        rpcspec --spec http://localhost:8080/spec.json methods
    """
    repo = _load_repository(ctx)
    if not repo.methods:
        info("No methods defined in this spec.")
        return

    rows = [[m.name, _type_cell(m.params), _type_cell(m.result)] for m in repo.methods]
    get_output().print_table(
        ["Method", "Params", "Result"], rows, title=f"Methods ({len(rows)})"
    )


@app.command("types")
def list_types(ctx: typer.Context) -> None:
    """List all named types in the spec's type registry."""
    repo = _load_repository(ctx)
    if not repo.types:
        info("No types defined in this spec.")
        return

    rows: list[list[str]] = []
    for name, entry in sorted(repo.types.items()):
        kind = entry.kind or "-"
        if entry.is_pointer:
            kind = f"*{kind}"
        if entry.is_array:
            kind = f"[]{kind}"
        rows.append([name, entry.package or "-", kind, str(len(entry.fields))])
    get_output().print_table(
        ["Type", "Package", "Kind", "Fields"], rows, title=f"Types ({len(rows)})"
    )


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    type_name: str = typer.Argument(..., help="Type name, e.g. '[]*api.User'."),
    tree: bool = typer.Option(
        False, "--tree", "-t", help="Expand fields recursively."
    ),
    max_depth: int = typer.Option(
        8, "--max-depth", help="Maximum nesting depth with --tree."
    ),
) -> None:
    """Resolve a type name against the spec's type registry."""
    if not type_name:
        error("Type name must not be empty")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    repo = _load_repository(ctx)

    if tree:
        node = expand_type(type_name, repo.types, max_depth=max_depth)
        assert node is not None
        print_tree(node)
        return

    descriptor = repo.resolve(type_name)
    assert descriptor is not None
    if descriptor.is_unknown:
        get_output().warning(f"Type '{descriptor.name}' is not defined in this spec")

    data = descriptor.model_dump(mode="json", by_alias=True, exclude={"fields"})
    data["fields"] = [f.json_name or f.name for f in descriptor.fields]
    format_response(data)


@app.command("show")
def show_method(
    ctx: typer.Context,
    method_name: str = typer.Argument(..., help="Method name, e.g. 'user.get'."),
    max_depth: int = typer.Option(
        8, "--max-depth", help="Maximum nesting depth of expanded types."
    ),
) -> None:
    """Show the params and result types of one method, fully expanded."""
    repo = _load_repository(ctx)

    method = repo.find_method(method_name)
    if method is None:
        error(f"Unknown method: {method_name}")
        suggest("Run: rpcspec methods")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    repo.select_method(method)

    for label, type_name in (("Params", method.params), ("Result", method.result)):
        info(f"{label}:")
        if type_name and not isinstance(type_name, str):
            format_response(type_name)
            continue
        node = expand_type(type_name, repo.types, max_depth=max_depth)
        if node is None:
            info("  (none)")
            continue
        print_tree(node)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from rpcspec.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``rpcspec`` console script.

    :class:`~rpcspec.exceptions.RpcSpecError` instances cause a clean exit
    with the error's ``exit_code``. All other exceptions produce a crash log
    and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from rpcspec.exceptions import RpcSpecError

        if isinstance(exc, RpcSpecError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
