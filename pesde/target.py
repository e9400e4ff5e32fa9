"""Package targets and their kinds."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class TargetKindError(ValueError):
    """Raised when a string does not name a known target kind."""

    def __init__(self, value: str) -> None:
        super().__init__(f"unknown target kind {value}")
        self.value = value


class RobloxPlaceKind(Enum):
    """The kind of a Roblox place property."""

    SHARED = "shared"
    SERVER = "server"

    def __str__(self) -> str:
        return self.value


class TargetKind(Enum):
    """A kind of target."""

    ROBLOX = "roblox"
    ROBLOX_SERVER = "roblox_server"
    LUNE = "lune"
    LUAU = "luau"

    @classmethod
    def parse(cls, s: str) -> TargetKind:
        """Parse a target kind name (case-sensitive)."""
        try:
            return cls(s)
        except ValueError:
            raise TargetKindError(s) from None

    def packages_folder(self, dependency: TargetKind) -> str:
        """The folder holding packages of the `dependency` target inside a project of this target."""
        # Deliberately independent of self: a shared folder name would break
        # imports between targets when build scripts are used.
        return f"{dependency}_packages"

    def is_roblox(self) -> bool:
        """Whether this is a Roblox target."""
        return self in (TargetKind.ROBLOX, TargetKind.ROBLOX_SERVER)

    def to_place_kind(self) -> RobloxPlaceKind | None:
        """The Roblox place kind for this target, or None for non-Roblox targets."""
        if self is TargetKind.ROBLOX:
            return RobloxPlaceKind.SHARED
        if self is TargetKind.ROBLOX_SERVER:
            return RobloxPlaceKind.SERVER
        return None

    def __str__(self) -> str:
        return self.value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _str_set(value: Any, key: str) -> frozenset[str]:
    if not isinstance(value, Iterable) or isinstance(value, (str, bytes, Mapping)):
        raise ValueError(f"field `{key}` must be a list of strings")
    items = list(value)
    if not all(isinstance(item, str) for item in items):
        raise ValueError(f"field `{key}` must be a list of strings")
    return frozenset(items)


def _str_map(value: Any, key: str) -> dict[str, str]:
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"field `{key}` must be a table of strings")
    return dict(value)


@dataclass
class Target:
    """A target of a package.

    Roblox targets carry `build_files` and never `bin` or `scripts`; Lune and
    Luau targets carry `bin` and `scripts` and never `build_files`.
    """

    kind: TargetKind
    lib: str | None = None
    bin: str | None = None
    build_files: frozenset[str] | None = None
    scripts: dict[str, str] | None = None

    def __post_init__(self) -> None:
        if self.kind.is_roblox():
            if self.bin is not None or self.scripts is not None:
                raise ValueError(f"{self.kind} targets have no bin or scripts")
            self.build_files = frozenset(self.build_files or ())
        else:
            if self.build_files is not None:
                raise ValueError(f"{self.kind} targets have no build files")
            self.scripts = dict(self.scripts or {})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Target:
        """Build a target from its table form, tagged by `environment`."""
        if not isinstance(data, Mapping):
            raise ValueError("target must be a table")
        environment = data.get("environment")
        if environment is None:
            raise ValueError("missing field `environment`")
        if not isinstance(environment, str):
            raise ValueError("field `environment` must be a string")
        kind = TargetKind.parse(environment)
        lib = _optional_str(data, "lib")
        if kind.is_roblox():
            return cls(
                kind,
                lib=lib,
                build_files=_str_set(data.get("build_files", ()), "build_files"),
            )
        return cls(
            kind,
            lib=lib,
            bin=_optional_str(data, "bin"),
            scripts=_str_map(data.get("scripts", {}), "scripts"),
        )

    def to_dict(self) -> dict[str, Any]:
        """The table form of this target."""
        out: dict[str, Any] = {"environment": str(self.kind)}
        if self.lib is not None:
            out["lib"] = self.lib
        if self.kind.is_roblox():
            out["build_files"] = sorted(self.build_files or ())
        else:
            if self.bin is not None:
                out["bin"] = self.bin
            if self.scripts:
                out["scripts"] = dict(sorted(self.scripts.items()))
        return out

    def __str__(self) -> str:
        return str(self.kind)