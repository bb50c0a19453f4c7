"""`.env` adapter.

Purpose
-------
Implement the :class:`lib_layered_env.application.ports.DotEnvLoader` protocol
by searching upwards for a `.env` file and exposing its pairs as a source.

Contents
--------
* :class:`DefaultDotEnvLoader` – entry point with optional extra search paths.
* Helper functions (`_iter_candidates`, `_parse_dotenv`, `_strip_quotes`,
  `dotted_key`) that perform discovery, parsing and key normalisation.

System Role
-----------
Supplies the ``dotenv`` source that sits between the system environment and
structured files in the chain assembled by :mod:`lib_layered_env.core`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final, Iterable

from ...domain.errors import InvalidFormat
from ...domain.source import MapSource
from ...observability import log_debug, log_error

DOTENV_SOURCE_NAME: Final[str] = "dotenv"


class DefaultDotEnvLoader:
    """Load the nearest dotenv file into a :class:`MapSource`.

    Why
    ----
    `.env` files supply secrets and developer overrides. They need deterministic
    discovery and key names that line up with dotted configuration keys.
    """

    def __init__(self, *, extras: Iterable[str] | None = None) -> None:
        """Initialise the loader with optional *extras* searched after the upward walk.

        Parameters
        ----------
        extras:
            Additional `.env` file paths appended to the search order.
        """

        self._extras = [Path(p) for p in extras or []]
        self.last_loaded_path: str | None = None

    def load(self, start_dir: str | None = None) -> MapSource | None:
        """Return the first dotenv file discovered in the search order, or ``None``.

        Parameters
        ----------
        start_dir:
            Directory that seeds the upward search (the working directory when
            omitted).

        Side Effects
        ------------
        Sets :attr:`last_loaded_path` and emits ``dotenv_loaded`` or
        ``dotenv_not_found`` events.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> path = Path(tmp.name) / '.env'
        >>> _ = path.write_text('SERVICE__TOKEN=secret', encoding='utf-8')
        >>> loader = DefaultDotEnvLoader()
        >>> loader.load(tmp.name).get_value("service.token")
        'secret'
        >>> loader.last_loaded_path == str(path)
        True
        >>> tmp.cleanup()
        """

        candidates = list(_iter_candidates(start_dir)) + self._extras
        self.last_loaded_path = None
        for candidate in candidates:
            if candidate.is_file():
                self.last_loaded_path = str(candidate)
                data = _parse_dotenv(candidate)
                log_debug("dotenv_loaded", layer=DOTENV_SOURCE_NAME, path=self.last_loaded_path, keys=sorted(data))
                return MapSource(DOTENV_SOURCE_NAME, data)
        log_debug("dotenv_not_found", layer=DOTENV_SOURCE_NAME, path=None)
        return None


def _iter_candidates(start_dir: str | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root.

    Examples
    --------
    >>> next(_iter_candidates('.')).name
    '.env'
    """

    base = Path(start_dir) if start_dir else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``path`` into dotted keys, raising ``InvalidFormat`` on malformed lines.

    Examples
    --------
    >>> import os
    >>> tmp = Path('example.env')
    >>> body = os.linesep.join(['FEATURE=true', 'export SERVICE__TIMEOUT=10']) + os.linesep
    >>> _ = tmp.write_text(body, encoding='utf-8')
    >>> _parse_dotenv(tmp)
    {'feature': 'true', 'service.timeout': '10'}
    >>> tmp.unlink()
    """

    result: dict[str, str] = {}
    with path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if "=" not in line:
                log_error("dotenv_invalid_line", layer=DOTENV_SOURCE_NAME, path=str(path), line=line_number)
                raise InvalidFormat(f"Malformed line {line_number} in {path}")
            key, value = line.split("=", 1)
            key = key.strip()
            if not key:
                log_error("dotenv_invalid_line", layer=DOTENV_SOURCE_NAME, path=str(path), line=line_number)
                raise InvalidFormat(f"Missing key on line {line_number} in {path}")
            result[dotted_key(key)] = _strip_quotes(value.strip())
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value


def dotted_key(name: str) -> str:
    """Translate a dotenv variable name into a lower-case dotted key.

    Examples
    --------
    >>> dotted_key('DB__HOST')
    'db.host'
    >>> dotted_key('FEATURE_FLAG')
    'feature_flag'
    """

    return ".".join(part.lower() for part in name.split("__"))
