"""Environment variable adapter.

Purpose
-------
Expose process environment variables as a :class:`~lib_layered_env.domain.source.Source`.
The environment is injected (``environ=``) and snapshotted at load time so the
resolver never reads global state ad hoc.

Key behaviours
--------------
* Optional prefix filtering (``default_env_prefix``) so only relevant variables
  are captured; the prefix and its trailing ``_`` are stripped from names.
* Relaxed name matching: a lookup for ``db.host`` also tries ``db_host``,
  ``DB.HOST``, ``DB_HOST`` and ``DB__HOST`` because most shells cannot export
  dotted or dashed names.
* Emits structured logging via :mod:`lib_layered_env.observability`.
"""

from __future__ import annotations

import os
from typing import Final, Mapping

from ...domain.source import MapSource
from ...observability import log_debug

SYSTEM_ENVIRONMENT_SOURCE_NAME: Final[str] = "system_environment"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-layered-env')
    'LIB_LAYERED_ENV'
    """

    return slug.replace("-", "_").upper()


class EnvironmentSource(MapSource):
    """Source over environment variables with relaxed name matching.

    Examples
    --------
    >>> source = EnvironmentSource("env", {"DB_HOST": "db.local", "app.name": "demo"})
    >>> source.get_value("db.host")
    'db.local'
    >>> source.get_value("app.name")
    'demo'
    >>> source.resolve_name("db-host")
    'DB_HOST'
    >>> source.resolve_name("missing") is None
    True
    """

    __slots__ = ()

    def get_value(self, key: str) -> str | None:
        actual = self.resolve_name(key)
        return self._backing.get(actual) if actual is not None else None

    def contains_key(self, key: str) -> bool:
        return self.resolve_name(key) is not None

    def resolve_name(self, key: str) -> str | None:
        """Return the variable name that satisfies *key*, or ``None``."""

        for candidate in _name_variants(key):
            if candidate in self._backing:
                return candidate
        return None


def _name_variants(key: str) -> tuple[str, ...]:
    """Return *key* and its underscore / upper-case spellings, without duplicates."""

    variants: dict[str, None] = {}
    for base in (key, key.upper()):
        variants[base] = None
        variants[base.replace(".", "_")] = None
        variants[base.replace("-", "_")] = None
        variants[base.replace(".", "_").replace("-", "_")] = None
        variants[base.replace(".", "__").replace("-", "_")] = None
    return tuple(variants)


class DefaultEnvLoader:
    """Snapshot environment variables into an :class:`EnvironmentSource`."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = environ if environ is not None else os.environ

    def load(self, prefix: str | None = None, *, name: str = SYSTEM_ENVIRONMENT_SOURCE_NAME) -> EnvironmentSource:
        """Return a source over variables carrying *prefix* (all when ``None``).

        Side Effects
        ------------
        Emits ``env_variables_loaded`` debug events with the captured key count.

        Examples
        --------
        >>> env = {'DEMO_SERVICE_RETRIES': '3', 'OTHER': 'x'}
        >>> source = DefaultEnvLoader(environ=env).load('DEMO')
        >>> source.get_value('service.retries')
        '3'
        >>> source.get_value('other') is None
        True
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, str] = {}
        for key, value in self._environ.items():
            if prefix and not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :] if prefix else key
            if stripped:
                collected[stripped] = value
        log_debug("env_variables_loaded", layer=name, path=None, keys=len(collected))
        return EnvironmentSource(name, collected)
