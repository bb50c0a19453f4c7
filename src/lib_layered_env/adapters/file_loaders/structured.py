"""Structured configuration file loaders.

Purpose
-------
Turn TOML, JSON and YAML documents into flat mappings keyed by dotted names so
they can back a :class:`~lib_layered_env.domain.source.MapSource`. Parsing,
error translation and logging for every format live here.

Contents
--------
* :class:`BaseFileLoader` – reads bytes, validates the top-level mapping and
  flattens it.
* :class:`TOMLFileLoader` / :class:`JSONFileLoader` / :class:`YAMLFileLoader` –
  one loader per format.
* :func:`flatten_mapping` – ``{"db": {"host": "x"}}`` -> ``{"db.host": "x"}``.
* :func:`loader_for` – pick the loader registered for a file suffix.

System Role
-----------
Used by :func:`lib_layered_env.core.load_file_source` when the composition root
adds ``file:<path>`` sources to a chain.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Final, Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[assignment]

import yaml

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error


def flatten_mapping(data: Mapping[str, Any], parent: str = "") -> dict[str, Any]:
    """Return *data* with nested mappings folded into dotted keys.

    Lists and scalars are kept as values; ``None`` entries are dropped because
    a source never reports ``None`` as a present value.

    Examples
    --------
    >>> flatten_mapping({"db": {"host": "x", "port": 5432}, "tags": ["a", "b"], "off": None})
    {'db.host': 'x', 'db.port': 5432, 'tags': ['a', 'b']}
    """

    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_mapping(value, name))
        elif value is not None:
            flat[name] = value
    return flat


class BaseFileLoader:
    """Common utilities shared by the structured file loaders."""

    format_name: str = "file"

    def load(self, path: str) -> Mapping[str, object]:
        """Return the flattened document stored at *path*.

        Raises
        ------
        NotFound
            When *path* is not a regular file.
        InvalidFormat
            When the document cannot be parsed or is not a table at top level.
        """

        payload = self._read(path)
        try:
            data = self._parse(payload)
        except ValueError as exc:
            log_error("config_file_invalid", layer="file", path=path, format=self.format_name, error=str(exc))
            raise InvalidFormat(f"Invalid {self.format_name.upper()} in {path}: {exc}") from exc
        result = flatten_mapping(self._ensure_mapping(data, path=path))
        log_debug("config_file_loaded", layer="file", path=path, format=self.format_name, keys=len(result))
        return result

    def _parse(self, payload: bytes) -> object:
        raise NotImplementedError

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"key = 'value'")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:3]
        b'key'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", layer="file", path=path, size=len(payload))
        return payload

    def _ensure_mapping(self, data: object, *, path: str) -> Mapping[str, object]:
        """Reject documents whose top level is not a table.

        Examples
        --------
        >>> JSONFileLoader()._ensure_mapping([1, 2], path="demo.json")
        Traceback (most recent call last):
        ...
        lib_layered_env.domain.errors.InvalidFormat: File demo.json did not produce a mapping
        """

        if not isinstance(data, Mapping):
            log_error("config_file_invalid", layer="file", path=path, format=self.format_name, error="not a mapping")
            raise InvalidFormat(f"File {path} did not produce a mapping")
        return data


class TOMLFileLoader(BaseFileLoader):
    """Load TOML documents with ``tomllib`` (``tomli`` on older interpreters).

    Examples
    --------
    >>> from tempfile import NamedTemporaryFile
    >>> tmp = NamedTemporaryFile('w', suffix='.toml', delete=False, encoding='utf-8')
    >>> _ = tmp.write('[db]\\nhost = "localhost"')
    >>> tmp.close()
    >>> TOMLFileLoader().load(tmp.name)
    {'db.host': 'localhost'}
    >>> Path(tmp.name).unlink()
    """

    format_name = "toml"

    def _parse(self, payload: bytes) -> object:
        # TOMLDecodeError and UnicodeDecodeError are both ValueError subclasses.
        return tomllib.loads(payload.decode("utf-8"))


class JSONFileLoader(BaseFileLoader):
    """Load JSON documents."""

    format_name = "json"

    def _parse(self, payload: bytes) -> object:
        return json.loads(payload)


class YAMLFileLoader(BaseFileLoader):
    """Load YAML documents through ``yaml.safe_load``; an empty document is an empty table."""

    format_name = "yaml"

    def _parse(self, payload: bytes) -> object:
        try:
            data = yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc
        return {} if data is None else data


_LOADERS: Final[dict[str, BaseFileLoader]] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
}


def loader_for(path: str) -> BaseFileLoader:
    """Return the loader registered for the suffix of *path*.

    Examples
    --------
    >>> type(loader_for("settings.YML")).__name__
    'YAMLFileLoader'
    >>> loader_for("settings.ini")
    Traceback (most recent call last):
    ...
    lib_layered_env.domain.errors.InvalidFormat: Unsupported configuration file type '.ini': settings.ini
    """

    suffix = Path(path).suffix.lower()
    loader = _LOADERS.get(suffix)
    if loader is None:
        raise InvalidFormat(f"Unsupported configuration file type '{suffix}': {path}")
    return loader
