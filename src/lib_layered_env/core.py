"""Composition root for ``lib_layered_env``.

Purpose
-------
Wire the adapters (process environment, ``.env`` file, structured files) into a
:class:`~lib_layered_env.domain.chain.SourceChain` owned by an
:class:`~lib_layered_env.application.environment.Environment`, in the
documented precedence order, and surface adapter failures through the domain
error taxonomy.

Contents
--------
* :class:`LayerLoadError` – raised when a requested source cannot be built.
* :func:`load_file_source` – one structured file as a ``file:<path>`` source.
* :func:`build_environment` – the full chain, highest precedence first:
  ``system_environment`` -> ``dotenv`` -> files (later files win).
* :func:`standard_environment` – environment variables only.

System Role
-----------
The canonical place for adjusting precedence rules or wiring new adapters. The
CLI and library consumers both start here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from .adapters.dotenv.default import DefaultDotEnvLoader
from .adapters.env.default import DefaultEnvLoader, default_env_prefix
from .adapters.file_loaders.structured import loader_for
from .application.environment import Environment
from .application.ports import TypeConverter
from .domain.errors import ConfigError, InvalidFormat, NotFound
from .domain.source import MapSource
from .observability import bind_trace_id, log_debug, log_error, log_info, make_event


class LayerLoadError(ConfigError):
    """Raised when a configuration source cannot be materialised.

    Why
    ----
    Callers should catch a single exception family no matter which adapter
    failed; the adapter's :class:`InvalidFormat` or :class:`NotFound` stays
    available as ``__cause__``.
    """


def load_file_source(path: str | Path) -> MapSource:
    """Return the structured file at *path* as a ``file:<path>`` source.

    Raises
    ------
    LayerLoadError
        When the file is missing, has an unsupported suffix, or fails to parse.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "app.json"
    >>> _ = target.write_text('{"db": {"port": 5432}}', encoding="utf-8")
    >>> source = load_file_source(target)
    >>> source.name == f"file:{target}", source.get_value("db.port")
    (True, 5432)
    >>> tmp.cleanup()
    """

    location = str(path)
    try:
        data = loader_for(location).load(location)
    except (InvalidFormat, NotFound) as exc:
        log_error("layer_error", layer="file", path=location, error=str(exc))
        raise LayerLoadError(f"Failed to load configuration file {location}: {exc}") from exc
    return MapSource(f"file:{location}", data)


def build_environment(
    files: Iterable[str | Path] = (),
    *,
    dotenv_dir: str | None = None,
    env_prefix: str | None = None,
    environ: Mapping[str, str] | None = None,
    include_env: bool = True,
    include_dotenv: bool = False,
    converter: TypeConverter | None = None,
) -> Environment:
    """Return an :class:`Environment` whose chain reflects the layered precedence.

    What
    ----
    Sources are appended lowest-index-first, so the resulting precedence is:

    1. ``system_environment`` – a snapshot of *environ* (``os.environ`` by
       default), optionally narrowed to ``env_prefix`` (see
       :func:`~lib_layered_env.adapters.env.default.default_env_prefix`).
    2. ``dotenv`` – the nearest ``.env`` found upwards from *dotenv_dir*; only
       searched when ``include_dotenv`` is true or *dotenv_dir* is given.
    3. ``file:<path>`` – each entry of *files*; later files override earlier
       ones and a path listed twice counts at its last position.

    Side Effects
    ------------
    Clears the active trace identifier via :func:`bind_trace_id` and emits
    ``layer_loaded`` / ``environment_built`` events.

    Examples
    --------
    >>> env = build_environment(environ={"APP_DB_HOST": "env-host"}, env_prefix="APP")
    >>> env.chain.names()
    ('system_environment',)
    >>> env.get_value("db.host")
    'env-host'
    """

    bind_trace_id(None)
    environment = Environment(converter=converter)
    chain = environment.chain

    if include_env:
        env_source = DefaultEnvLoader(environ=environ).load(env_prefix)
        chain.add_last(env_source)
        log_debug("layer_loaded", **make_event(env_source.name, None, {"keys": len(env_source.key_names())}))

    if include_dotenv or dotenv_dir is not None:
        loader = DefaultDotEnvLoader()
        try:
            dotenv_source = loader.load(dotenv_dir)
        except InvalidFormat as exc:
            log_error("layer_error", layer="dotenv", path=loader.last_loaded_path, error=str(exc))
            raise LayerLoadError(f"Failed to load dotenv file {loader.last_loaded_path}: {exc}") from exc
        if dotenv_source is not None:
            chain.add_last(dotenv_source)
            event = make_event(dotenv_source.name, loader.last_loaded_path, {"keys": len(dotenv_source.key_names())})
            log_debug("layer_loaded", **event)

    for path in dict.fromkeys(str(entry) for entry in reversed(list(files))):
        file_source = load_file_source(path)
        chain.add_last(file_source)
        log_debug("layer_loaded", **make_event(file_source.name, path, {"keys": len(file_source.key_names())}))

    log_info("environment_built", layer="chain", path=None, sources=list(chain.names()))
    return environment


def standard_environment(environ: Mapping[str, str] | None = None) -> Environment:
    """Return an :class:`Environment` holding only the ``system_environment`` source.

    Examples
    --------
    >>> standard_environment({"HOME": "/home/demo"}).get_value("home")
    '/home/demo'
    """

    return build_environment(environ=environ)


__all__ = [
    "LayerLoadError",
    "build_environment",
    "default_env_prefix",
    "load_file_source",
    "standard_environment",
]
