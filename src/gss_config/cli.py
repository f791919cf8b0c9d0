"""CLI adapter for ``gss_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators check a configuration before deploying it: show the decoded
values, see which layer supplied each key, and scaffold example files.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_env_prefix` – prints the active prefix and the file variable name.
* :func:`cli_show` – decodes the configuration and prints it as JSON.
* :func:`cli_check` – decodes the configuration and reports success or the
  failing field.
* :func:`cli_example` – writes ``config.yaml`` and ``config.env.example``.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The CLI lives in the outermost layer. It calls the composition root
(:func:`gss_config.core.build_config`) and never reaches into the decoders
directly. ``lib_cli_exit_tools`` centralises the exit code strategy.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.env.default import config_path_variable, env_prefix
from .core import build_config, read_config_raw
from .domain.errors import ConfigError
from .examples import generate_example

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_DISTRIBUTION: Final[str] = "gss-config"
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` when unavailable."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Typed configuration decoder for the gss static file server",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="gss-config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_env_prefix() -> None:
    """Print the active variable prefix and the config-file variable name.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["env-prefix"], env={"GSS_ENV_PREFIX": "gss"})
    >>> result.output.splitlines()
    ['prefix: GSS_', 'config file variable: GSS_CONFIG_PATH']
    """

    prefix = env_prefix()
    click.echo(f"prefix: {prefix or '(none)'}")
    click.echo(f"config file variable: {config_path_variable(prefix)}")


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--indent",
    type=int,
    default=None,
    help="Pretty-print JSON output with the provided indent size",
)
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the layer that supplied each key",
)
def cli_show(indent: Optional[int], provenance: bool) -> None:
    """Decode the configuration from the environment and print it as JSON.

    Key material is summarised (subject, fingerprint, algorithm) and never
    printed.
    """

    config = build_config()
    if not provenance:
        click.echo(json.dumps(config.to_dict(), indent=indent))
        return
    _, meta = read_config_raw()
    payload = {"config": config.to_dict(), "provenance": {key: meta[key] for key in sorted(meta)}}
    click.echo(json.dumps(payload, indent=indent))


@cli.command("check", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_check() -> None:
    """Validate the configuration; exit non-zero naming the failing field."""

    try:
        config = build_config()
    except ConfigError as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc
    mode = "https" if config.tls.enabled else "http"
    click.echo(f"configuration OK ({mode} on port {config.port}, root {config.root})")


@cli.command("example", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--destination",
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True, resolve_path=True),
    default=Path("."),
    show_default=True,
    help="Directory that will receive config.yaml and config.env.example",
)
@click.option(
    "--force/--no-force",
    default=False,
    help="Overwrite existing example files if set",
    show_default=True,
)
def cli_example(destination: Path, force: bool) -> None:
    """Write example configuration files using the active prefix."""

    created = generate_example(destination, prefix=env_prefix(), force=force)
    click.echo(json.dumps([str(path) for path in created], indent=2))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
