"""Environment: a source chain, its resolver, and active/default profiles.

Purpose
-------
Bundle the pieces an application bootstraps with: the mutable
:class:`SourceChain`, a :class:`ValueResolver` over it, and the set of active
profiles used to evaluate :class:`~lib_layered_env.domain.profiles.Profiles`
expressions.

Contents
--------
* :data:`ACTIVE_PROFILES_KEY` / :data:`DEFAULT_PROFILES_KEY` – configuration
  keys read when no profiles were set explicitly.
* :data:`RESERVED_DEFAULT_PROFILE` – the profile active when nothing else is.
* :func:`validate_profile` – enforce profile naming rules.
* :class:`Environment` – facade delegating lookups to its resolver.

System Role
-----------
Built by :func:`lib_layered_env.core.build_environment` and used by the CLI.
"""

from __future__ import annotations

import threading
from typing import Any, Final

from ..domain.chain import SourceChain
from ..domain.errors import InvalidArgumentError
from ..domain.profiles import Profiles
from ..observability import log_debug
from .conversion import split_delimited
from .ports import TypeConverter
from .resolver import ValueResolver

ACTIVE_PROFILES_KEY: Final[str] = "layered.profiles.active"
DEFAULT_PROFILES_KEY: Final[str] = "layered.profiles.default"
RESERVED_DEFAULT_PROFILE: Final[str] = "default"


def validate_profile(profile: str) -> None:
    """Raise :class:`InvalidArgumentError` unless *profile* is a usable name.

    Examples
    --------
    >>> validate_profile("prod")
    >>> validate_profile("!prod")
    Traceback (most recent call last):
    ...
    lib_layered_env.domain.errors.InvalidArgumentError: Invalid profile [!prod]: must not begin with ! operator
    """

    if not isinstance(profile, str) or not profile.strip():
        raise InvalidArgumentError(f"Invalid profile [{profile}]: must contain text")
    if profile.startswith("!"):
        raise InvalidArgumentError(f"Invalid profile [{profile}]: must not begin with ! operator")


class Environment:
    """Source chain + resolver + profiles.

    Why
    ----
    Conditional configuration ("only in ``prod & eu``") needs the same object
    that answers key lookups to know which profiles are active, including
    profiles activated through configuration itself.

    What
    ----
    Active profiles come from :meth:`set_active_profiles` /
    :meth:`add_active_profile`, or, while none were set, from the
    comma-delimited :data:`ACTIVE_PROFILES_KEY`. Default profiles start as
    ``("default",)`` and can be overridden the same way through
    :data:`DEFAULT_PROFILES_KEY`. Default profiles count as active only while
    no profile is active.

    Examples
    --------
    >>> from lib_layered_env.domain.source import MapSource
    >>> env = Environment()
    >>> env.chain.add_last(MapSource("app", {"layered.profiles.active": "prod, eu"}))
    >>> env.active_profiles
    ('prod', 'eu')
    >>> env.accepts_profiles("prod & (eu | us)")
    True
    >>> env.accepts_profiles("default")
    False
    """

    def __init__(self, chain: SourceChain | None = None, *, converter: TypeConverter | None = None) -> None:
        self._chain = chain if chain is not None else SourceChain()
        self._resolver = ValueResolver(self._chain, converter=converter)
        self._active: dict[str, None] = {}
        self._defaults: dict[str, None] = {RESERVED_DEFAULT_PROFILE: None}
        self._profiles_lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Environment(active_profiles={list(self._active)!r}, "
            f"default_profiles={list(self._defaults)!r}, sources={list(self._chain.names())!r})"
        )

    @property
    def chain(self) -> SourceChain:
        return self._chain

    @property
    def resolver(self) -> ValueResolver:
        return self._resolver

    @property
    def active_profiles(self) -> tuple[str, ...]:
        """Explicitly activated profiles, or those named by :data:`ACTIVE_PROFILES_KEY`."""

        with self._profiles_lock:
            self._seed_active_profiles()
            return tuple(self._active)

    def set_active_profiles(self, *profiles: str) -> None:
        """Replace the active profiles with *profiles*."""

        for profile in profiles:
            validate_profile(profile)
        log_debug("profiles_activated", layer="profiles", path=None, profiles=list(profiles))
        with self._profiles_lock:
            self._active = dict.fromkeys(profiles)

    def add_active_profile(self, profile: str) -> None:
        """Activate *profile* in addition to the current active profiles."""

        validate_profile(profile)
        log_debug("profiles_activated", layer="profiles", path=None, profiles=[profile])
        with self._profiles_lock:
            self._seed_active_profiles()
            self._active = {**self._active, profile: None}

    @property
    def default_profiles(self) -> tuple[str, ...]:
        """Profiles treated as active while no profile is active."""

        with self._profiles_lock:
            if list(self._defaults) == [RESERVED_DEFAULT_PROFILE]:
                configured = self._configured_profiles(DEFAULT_PROFILES_KEY)
                if configured:
                    self.set_default_profiles(*configured)
            return tuple(self._defaults)

    def set_default_profiles(self, *profiles: str) -> None:
        """Replace the default profiles with *profiles*."""

        for profile in profiles:
            validate_profile(profile)
        with self._profiles_lock:
            self._defaults = dict.fromkeys(profiles)

    def is_profile_active(self, profile: str) -> bool:
        """Return whether *profile* is active (or a default while none is active)."""

        validate_profile(profile)
        with self._profiles_lock:
            active = self.active_profiles
            return profile in active or (not active and profile in self.default_profiles)

    def accepts_profiles(self, profiles: Profiles | str, *more: str) -> bool:
        """Evaluate a parsed :class:`Profiles` or expression strings against this environment."""

        if isinstance(profiles, Profiles):
            if more:
                raise InvalidArgumentError("Pass either a Profiles object or expression strings, not both")
            return profiles.matches(self.is_profile_active)
        return Profiles.of(profiles, *more).matches(self.is_profile_active)

    def merge(self, parent: Environment) -> None:
        """Append the parent's missing sources and inherit its profiles."""

        for source in parent.chain:
            if source.name not in self._chain:
                self._chain.add_last(source)
        parent_active = parent.active_profiles
        parent_defaults = parent.default_profiles
        with self._profiles_lock:
            if parent_active:
                self._active = {**self._active, **dict.fromkeys(parent_active)}
            if parent_defaults:
                defaults = {name: None for name in self._defaults if name != RESERVED_DEFAULT_PROFILE}
                self._defaults = {**defaults, **dict.fromkeys(parent_defaults)}

    def _seed_active_profiles(self) -> None:
        if not self._active:
            configured = self._configured_profiles(ACTIVE_PROFILES_KEY)
            if configured:
                self.set_active_profiles(*configured)

    def _configured_profiles(self, key: str) -> list[str]:
        configured = self._resolver.get_value(key)
        return split_delimited(configured) if configured else []

    # Resolver facade -----------------------------------------------------

    def contains_key(self, key: str) -> bool:
        return self._resolver.contains_key(key)

    def get_value(self, key: str, target_type: type[Any] | None = str, *, default: Any = None) -> Any:
        return self._resolver.get_value(key, target_type, default=default)

    def get_required(self, key: str, target_type: type[Any] | None = str) -> Any:
        return self._resolver.get_required(key, target_type)

    def resolve_placeholders(self, text: str) -> str:
        return self._resolver.resolve_placeholders(text)

    def resolve_required_placeholders(self, text: str) -> str:
        return self._resolver.resolve_required_placeholders(text)

    def set_required_keys(self, *keys: str) -> None:
        self._resolver.set_required_keys(*keys)

    def validate_required(self) -> None:
        self._resolver.validate_required()

