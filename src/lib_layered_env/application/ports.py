"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the resolver and the composition root rely on
so concrete adapters (environment snapshot, dotenv, structured files) and
converters stay replaceable.

Contents
--------
* :class:`TypeConverter` – converts resolved values to requested types.
* :class:`FileLoader` – parses a structured configuration file.
* :class:`DotEnvLoader` – materialises a ``.env`` file as a source.
* :class:`EnvLoader` – snapshots process environment variables as a source.

System Role
-----------
These protocols enforce Dependency Inversion. Each adapter implements one
protocol so the application layer can request behaviour via abstraction.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from ..domain.source import Source


@runtime_checkable
class TypeConverter(Protocol):
    """Convert values to target types, raising ``ConversionError`` on failure."""

    def can_convert(self, source_type: type, target_type: type) -> bool:
        """Return whether values of *source_type* can become *target_type*."""

    def convert(self, value: Any, target_type: type) -> Any:
        """Return *value* converted to *target_type*."""


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured configuration file into a mapping.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from orchestration logic.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""


@runtime_checkable
class DotEnvLoader(Protocol):
    """Materialise a ``.env`` file into a source."""

    def load(self, start_dir: str | None = None) -> Source[Any] | None:
        """Search from *start_dir* upwards and return the first parsed file, if any."""


@runtime_checkable
class EnvLoader(Protocol):
    """Snapshot process environment variables into a source."""

    def load(self, prefix: str | None = None) -> Source[Any]:
        """Return a source over variables that match *prefix* (all when ``None``)."""
