"""CLI adapter for ``lib_layered_env`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect how keys resolve across the layered sources (process
environment, ``.env``, structured files) without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command that wires global traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata for quick diagnostics.
* :func:`cli_get` / :func:`cli_resolve` / :func:`cli_validate` – key lookup,
  placeholder expansion and required-key checks.
* :func:`cli_sources` – chain names in precedence order.
* :func:`cli_profiles` – evaluate profile expressions.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
The outermost layer. Every command builds its environment through
:func:`lib_layered_env.core.build_environment` and never touches adapters
directly. ``lib_cli_exit_tools`` owns the exit code strategy.
"""

from __future__ import annotations

import json
import sys
from decimal import Decimal
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence, TypeVar

import lib_cli_exit_tools
import rich_click as click

from .application.environment import Environment
from .core import build_environment
from .domain.errors import MissingRequiredPropertiesError

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

TYPE_CHOICES: Final[dict[str, type]] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "decimal": Decimal,
    "path": Path,
    "list": list,
}

F = TypeVar("F", bound=Callable[..., Any])


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for uninstalled checkouts."""

    try:
        return metadata.version("lib_layered_env")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _source_options(func: F) -> F:
    """Attach the options that select which sources join the chain."""

    options = (
        click.option(
            "--file",
            "files",
            multiple=True,
            type=click.Path(path_type=Path, dir_okay=False),
            help="Structured configuration file (.toml/.json/.yaml); later files win (repeatable)",
        ),
        click.option(
            "--dotenv-dir",
            type=click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True),
            default=None,
            help="Search for a .env file upwards from this directory",
        ),
        click.option("--env-prefix", default=None, help="Only read environment variables starting with PREFIX_"),
        click.option(
            "--env/--no-env",
            "include_env",
            default=True,
            show_default=True,
            help="Include process environment variables as the highest-precedence source",
        ),
    )
    for option in reversed(options):
        func = option(func)
    return func


def _environment(
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> Environment:
    return build_environment(
        files,
        dotenv_dir=str(dotenv_dir) if dotenv_dir is not None else None,
        env_prefix=env_prefix,
        include_env=include_env,
    )


def _render(value: Any) -> str:
    """Format a resolved value for terminal output.

    Examples
    --------
    >>> _render(True), _render(8080), _render(["a", "b"]), _render(Path("/tmp"))
    ('true', '8080', '["a", "b"]', '/tmp')
    """

    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float, list, tuple)):
        return json.dumps(value if not isinstance(value, tuple) else list(value))
    return str(value)


@click.group(
    help="Layered environment resolver with ${placeholder} expansion",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_layered_env",
    message="lib_layered_env version %(version)s",
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
        meta = metadata.metadata("lib_layered_env")
    except metadata.PackageNotFoundError:
        click.echo("lib_layered_env (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_layered_env')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option(
    "--type",
    "type_name",
    type=click.Choice(tuple(TYPE_CHOICES), case_sensitive=False),
    default="str",
    show_default=True,
    help="Convert the resolved value to this type",
)
@click.option("--default", "default", default=None, help="Value printed when KEY is absent")
@click.option("--required", is_flag=True, default=False, help="Fail when KEY is absent")
@_source_options
@click.pass_context
def cli_get(
    ctx: click.Context,
    key: str,
    type_name: str,
    default: Optional[str],
    required: bool,
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> None:
    """Print the value of KEY after placeholder expansion and conversion.

    Exits with status 1 and no output when KEY is absent and neither
    ``--default`` nor ``--required`` was given.
    """

    environment = _environment(files, dotenv_dir, env_prefix, include_env)
    target_type = TYPE_CHOICES[type_name.lower()]
    if required:
        value = environment.get_required(key, target_type)
    else:
        value = environment.get_value(key, target_type)
        if value is None and default is not None:
            value = environment.resolver.converter.convert(default, target_type)
    if value is None:
        ctx.exit(1)
    click.echo(_render(value))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("text")
@click.option(
    "--strict/--lenient",
    default=False,
    show_default=True,
    help="Fail on placeholders that have neither a value nor a default",
)
@_source_options
def cli_resolve(
    text: str,
    strict: bool,
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> None:
    """Expand ${key:default} placeholders in TEXT and print the result."""

    environment = _environment(files, dotenv_dir, env_prefix, include_env)
    if strict:
        click.echo(environment.resolve_required_placeholders(text))
    else:
        click.echo(environment.resolve_placeholders(text))


@cli.command("validate", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("keys", nargs=-1, required=True)
@_source_options
@click.pass_context
def cli_validate(
    ctx: click.Context,
    keys: Sequence[str],
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> None:
    """Check that every KEY resolves, reporting all missing keys at once.

    Missing keys are printed to stderr, one ``missing: KEY`` line each, and the
    command exits with status 1.
    """

    environment = _environment(files, dotenv_dir, env_prefix, include_env)
    environment.set_required_keys(*keys)
    try:
        environment.validate_required()
    except MissingRequiredPropertiesError as exc:
        for key in exc.missing_keys:
            click.echo(f"missing: {key}", err=True)
        ctx.exit(1)
    click.echo(f"All {len(keys)} required keys resolved")


@cli.command("sources", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@_source_options
def cli_sources(
    indent: Optional[int],
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> None:
    """Print source names as JSON, highest precedence first."""

    environment = _environment(files, dotenv_dir, env_prefix, include_env)
    click.echo(json.dumps(list(environment.chain.names()), indent=indent))


@cli.command("profiles", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("expressions", nargs=-1, required=True)
@click.option(
    "--active",
    "active",
    multiple=True,
    help="Profile to activate (repeatable); defaults to the configured active profiles",
)
@_source_options
def cli_profiles(
    expressions: Sequence[str],
    active: Sequence[str],
    files: Sequence[Path],
    dotenv_dir: Optional[Path],
    env_prefix: Optional[str],
    include_env: bool,
) -> None:
    """Print ``true`` when any of the profile EXPRESSIONS matches, else ``false``.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["profiles", "prod & !eu", "--active", "prod", "--no-env"])
    >>> result.output.strip()
    'true'
    """

    environment = _environment(files, dotenv_dir, env_prefix, include_env)
    if active:
        environment.set_active_profiles(*active)
    click.echo("true" if environment.accepts_profiles(*expressions) else "false")


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_layered_env",
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
