"""Package manifests, dependency aliases and override keys."""

from __future__ import annotations

import string
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Any, TypeVar, Union

from pesde.engine import EngineKind, EngineKindError
from pesde.names import PackageName, PackageNames, parse_package_names
from pesde.target import RobloxPlaceKind, Target
from pesde.versions import Version, VersionReq

_ALIAS_CHARS = frozenset(string.ascii_letters + string.digits + "-_")

T = TypeVar("T")


class AliasError(ValueError):
    """Raised when a string is not a valid dependency alias."""

    def __init__(self, message: str, value: str) -> None:
        super().__init__(message)
        self.value = value


class OverrideKeyError(ValueError):
    """Raised when a string is not a valid override key."""


class AliasConflictError(ValueError):
    """Raised when two dependency tables use the same alias."""

    def __init__(self, alias: Alias) -> None:
        super().__init__(f"another specifier is already using the alias {alias}")
        self.alias = alias


class ManifestError(ValueError):
    """Raised when a manifest is malformed."""


@total_ordering
class Alias:
    """An alias of a dependency; compared and hashed case-insensitively."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        if not value:
            raise AliasError("the alias is empty", value)
        if not all(c in _ALIAS_CHARS for c in value):
            raise AliasError(
                f"alias `{value}` contains characters outside a-z, A-Z, 0-9, -, and _", value
            )
        try:
            EngineKind.parse(value)
        except EngineKindError:
            pass
        else:
            raise AliasError(f"alias `{value}` is an engine name", value)
        self._value = value

    @classmethod
    def parse(cls, s: str) -> Alias:
        """Parse and validate an alias."""
        return cls(s)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Alias({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Alias):
            return NotImplemented
        return self._value.lower() == other._value.lower()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Alias):
            return NotImplemented
        return self._value.lower() < other._value.lower()

    def __hash__(self) -> int:
        return hash(self._value.lower())


class DependencyType(Enum):
    """A dependency type."""

    STANDARD = "standard"
    PEER = "peer"
    DEV = "dev"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class OverrideKey:
    """A set of alias paths, such as `a>b,c>d`, whose last element is overridden."""

    paths: tuple[tuple[Alias, ...], ...]

    @classmethod
    def parse(cls, s: str) -> OverrideKey:
        """Parse comma-separated paths of `>`-separated aliases."""
        try:
            paths = tuple(
                tuple(Alias.parse(part) for part in path.split(">")) for path in s.split(",")
            )
        except AliasError as e:
            raise OverrideKeyError("invalid alias in override key") from e
        if not paths:
            raise OverrideKeyError("empty override key")
        return cls(paths)

    def __str__(self) -> str:
        return ",".join(">".join(str(alias) for alias in path) for path in self.paths)


# Dependency specifiers are kept in their table form.
DependencySpecifier = dict[str, Any]
OverrideSpecifier = Union[Alias, DependencySpecifier]


def _mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ManifestError(f"field `{key}` must be a table")
    return value


def _string(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ManifestError(f"field `{key}` must be a string")
    return value


def _string_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestError(f"field `{key}` must be a list of strings")
    return list(value)


def _string_map(value: Any, key: str) -> dict[str, str]:
    return {k: _string(v, key) for k, v in _mapping(value, key).items()}


def _dependencies(value: Any, key: str) -> dict[Alias, DependencySpecifier]:
    out: dict[Alias, DependencySpecifier] = {}
    for name, spec in _mapping(value, key).items():
        alias = Alias.parse(name)
        if alias in out:
            raise ManifestError(f"duplicate key `{name}` in `{key}`")
        out[alias] = dict(_mapping(spec, key))
    return out


def _overrides(value: Any, key: str) -> dict[OverrideKey, OverrideSpecifier]:
    out: dict[OverrideKey, OverrideSpecifier] = {}
    for name, spec in _mapping(value, key).items():
        override_key = OverrideKey.parse(name)
        if isinstance(spec, Mapping):
            out[override_key] = dict(spec)
        elif isinstance(spec, str):
            out[override_key] = Alias.parse(spec)
        else:
            raise ManifestError(f"override `{name}` must be a table or an alias")
    return out


def _patches(value: Any, key: str) -> dict[PackageNames, dict[str, str]]:
    return {
        parse_package_names(name): _string_map(versions, key)
        for name, versions in _mapping(value, key).items()
    }


def _place(value: Any, key: str) -> dict[RobloxPlaceKind, str]:
    return {RobloxPlaceKind(k): _string(v, key) for k, v in _mapping(value, key).items()}


def _engines(value: Any, key: str) -> dict[EngineKind, VersionReq]:
    return {
        EngineKind.parse(k): VersionReq.parse(_string(v, key))
        for k, v in _mapping(value, key).items()
    }


_KNOWN_FIELDS = frozenset(
    {
        "name", "version", "description", "license", "authors", "repository", "target",
        "private", "scripts", "indices", "wally_indices", "overrides", "includes",
        "patches", "workspace_members", "place", "engines", "dependencies",
        "peer_dependencies", "dev_dependencies",
    }
)


@dataclass
class Manifest:
    """A package manifest."""

    name: PackageName
    version: Version
    target: Target
    description: str | None = None
    license: str | None = None
    authors: list[str] = field(default_factory=list)
    repository: str | None = None
    private: bool = False
    scripts: dict[str, str] = field(default_factory=dict)
    indices: dict[str, str] = field(default_factory=dict)
    wally_indices: dict[str, str] = field(default_factory=dict)
    overrides: dict[OverrideKey, OverrideSpecifier] = field(default_factory=dict)
    includes: list[str] = field(default_factory=list)
    patches: dict[PackageNames, dict[str, str]] = field(default_factory=dict)
    workspace_members: list[str] = field(default_factory=list)
    place: dict[RobloxPlaceKind, str] = field(default_factory=dict)
    engines: dict[EngineKind, VersionReq] = field(default_factory=dict)
    dependencies: dict[Alias, DependencySpecifier] = field(default_factory=dict)
    peer_dependencies: dict[Alias, DependencySpecifier] = field(default_factory=dict)
    dev_dependencies: dict[Alias, DependencySpecifier] = field(default_factory=dict)
    user_defined_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Manifest:
        """Build a manifest from its table form; unknown keys become user-defined fields."""
        if not isinstance(data, Mapping):
            raise ManifestError("manifest must be a table")

        def get(key: str, convert: Callable[[Any, str], T], default: Callable[[], T]) -> T:
            if key not in data:
                return default()
            try:
                return convert(data[key], key)
            except ManifestError:
                raise
            except (ValueError, TypeError) as e:
                raise ManifestError(f"invalid field `{key}`: {e}") from e

        def required(key: str) -> Any:
            if key not in data:
                raise ManifestError(f"missing field `{key}`")
            return data[key]

        def optional_string(key: str) -> str | None:
            return get(key, _string, lambda: None)

        def private(value: Any, key: str) -> bool:
            if not isinstance(value, bool):
                raise ManifestError(f"field `{key}` must be a boolean")
            return value

        required("name")
        required("version")
        required("target")

        return cls(
            name=get("name", lambda v, k: PackageName.parse(_string(v, k)), lambda: None),
            version=get("version", lambda v, k: Version.parse(_string(v, k)), lambda: None),
            target=get("target", lambda v, k: Target.from_dict(_mapping(v, k)), lambda: None),
            description=optional_string("description"),
            license=optional_string("license"),
            authors=get("authors", _string_list, list),
            repository=optional_string("repository"),
            private=get("private", private, lambda: False),
            scripts=get("scripts", _string_map, dict),
            indices=get("indices", _string_map, dict),
            wally_indices=get("wally_indices", _string_map, dict),
            overrides=get("overrides", _overrides, dict),
            includes=get("includes", _string_list, list),
            patches=get("patches", _patches, dict),
            workspace_members=get("workspace_members", _string_list, list),
            place=get("place", _place, dict),
            engines=get("engines", _engines, dict),
            dependencies=get("dependencies", _dependencies, dict),
            peer_dependencies=get("peer_dependencies", _dependencies, dict),
            dev_dependencies=get("dev_dependencies", _dependencies, dict),
            user_defined_fields={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    @classmethod
    def from_toml(cls, text: str) -> Manifest:
        """Parse a manifest from TOML text."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"invalid TOML: {e}") from e
        return cls.from_dict(data)

    def all_dependencies(self) -> dict[Alias, tuple[DependencySpecifier, DependencyType]]:
        """All dependencies with their types, ordered by alias.

        Raises AliasConflictError if an alias appears in more than one table.
        """
        result: dict[Alias, tuple[DependencySpecifier, DependencyType]] = {}
        for deps, ty in (
            (self.dependencies, DependencyType.STANDARD),
            (self.peer_dependencies, DependencyType.PEER),
            (self.dev_dependencies, DependencyType.DEV),
        ):
            for alias, spec in deps.items():
                if alias in result:
                    raise AliasConflictError(alias)
                result[alias] = (spec, ty)
        return dict(sorted(result.items(), key=lambda item: item[0]))