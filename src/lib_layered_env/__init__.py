"""Public package surface for ``lib_layered_env``.

Layered key resolution over named sources, with recursive ``${key:default}``
placeholder expansion, type conversion, required-key validation and boolean
profile expressions. Start with :func:`build_environment` or assemble a
:class:`SourceChain` and :class:`ValueResolver` by hand.
"""

from __future__ import annotations

from .application.conversion import DefaultTypeConverter
from .application.environment import (
    ACTIVE_PROFILES_KEY,
    DEFAULT_PROFILES_KEY,
    RESERVED_DEFAULT_PROFILE,
    Environment,
)
from .application.placeholders import PlaceholderExpander
from .application.resolver import ValueResolver
from .core import LayerLoadError, build_environment, default_env_prefix, load_file_source, standard_environment
from .domain.chain import SourceChain
from .domain.errors import (
    CircularPlaceholderError,
    ConfigError,
    ConversionError,
    InvalidArgumentError,
    InvalidFormat,
    MalformedExpressionError,
    MissingKeyError,
    MissingRequiredPropertiesError,
    NotFound,
    NotFoundError,
    PlaceholderError,
    UnresolvedPlaceholderError,
)
from .domain.profiles import Profiles
from .domain.source import EnumerableSource, MapSource, Source, StubSource
from .observability import bind_trace_id, get_logger

__all__ = [
    "ACTIVE_PROFILES_KEY",
    "DEFAULT_PROFILES_KEY",
    "RESERVED_DEFAULT_PROFILE",
    "CircularPlaceholderError",
    "ConfigError",
    "ConversionError",
    "DefaultTypeConverter",
    "EnumerableSource",
    "Environment",
    "InvalidArgumentError",
    "InvalidFormat",
    "LayerLoadError",
    "MalformedExpressionError",
    "MapSource",
    "MissingKeyError",
    "MissingRequiredPropertiesError",
    "NotFound",
    "NotFoundError",
    "PlaceholderError",
    "PlaceholderExpander",
    "Profiles",
    "Source",
    "SourceChain",
    "StubSource",
    "UnresolvedPlaceholderError",
    "ValueResolver",
    "bind_trace_id",
    "build_environment",
    "default_env_prefix",
    "get_logger",
    "load_file_source",
    "standard_environment",
]
