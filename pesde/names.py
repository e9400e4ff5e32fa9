"""Package names: pesde names and Wally names."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

_DIGITS = frozenset("0123456789")
_LOWER = frozenset("abcdefghijklmnopqrstuvwxyz")
_PESDE_CHARS = _LOWER | _DIGITS | {"_"}
_WALLY_CHARS = _LOWER | _DIGITS | {"-"}
_WALLY_PREFIX = "wally#"


class ErrorReason(Enum):
    """The invalid part of a package name."""

    SCOPE = "scope"
    NAME = "name"

    def __str__(self) -> str:
        return self.value


class PackageNameError(ValueError):
    """Raised when a string is not a valid pesde package name."""

    def __init__(self, message: str, value: str, reason: ErrorReason | None = None) -> None:
        super().__init__(message)
        self.value = value
        self.reason = reason


class WallyPackageNameError(ValueError):
    """Raised when a string is not a valid Wally package name."""

    def __init__(self, message: str, value: str, reason: ErrorReason | None = None) -> None:
        super().__init__(message)
        self.value = value
        self.reason = reason


class PackageNamesError(ValueError):
    """Raised when a string is neither a pesde nor a Wally package name."""

    def __init__(self, value: str) -> None:
        super().__init__(f"invalid package name {value}")
        self.value = value


@dataclass(frozen=True, order=True)
class PackageName:
    """A pesde package name, `scope/name`."""

    scope: str
    name: str

    @classmethod
    def parse(cls, s: str) -> PackageName:
        """Parse and validate a `scope/name` string."""
        scope, sep, name = s.partition("/")
        if not sep:
            raise PackageNameError(
                f"package name `{s}` is not in the format `scope/name`", s
            )

        for reason, part in ((ErrorReason.SCOPE, scope), (ErrorReason.NAME, name)):
            min_len = 3 if reason is ErrorReason.SCOPE else 1
            if not min_len <= len(part.encode()) <= 32:
                if reason is ErrorReason.SCOPE:
                    message = f"package scope `{part}` is not within 3-32 characters long"
                else:
                    message = f"package name `{part}` is not within 1-32 characters long"
                raise PackageNameError(message, part, reason)

            if all(c in _DIGITS for c in part):
                raise PackageNameError(
                    f"package {reason} `{part}` contains only digits", part, reason
                )

            if part.startswith("_") or part.endswith("_"):
                raise PackageNameError(
                    f"package {reason} `{part}` starts or ends with an underscore",
                    part,
                    reason,
                )

            if not all(c in _PESDE_CHARS for c in part):
                raise PackageNameError(
                    f"package {reason} `{part}` contains characters outside a-z, 0-9, and _",
                    part,
                    reason,
                )

        return cls(scope, name)

    def escaped(self) -> str:
        """The name in a form usable in the filesystem."""
        return f"{self.scope}+{self.name}"

    def __str__(self) -> str:
        return f"{self.scope}/{self.name}"


@dataclass(frozen=True, order=True)
class WallyPackageName:
    """A Wally package name, displayed as `wally#scope/name`."""

    scope: str
    name: str

    @classmethod
    def parse(cls, s: str) -> WallyPackageName:
        """Parse a `scope/name` string, with or without the `wally#` prefix."""
        body = s.removeprefix(_WALLY_PREFIX)
        scope, sep, name = body.partition("/")
        if not sep:
            raise WallyPackageNameError(
                f"wally package name `{s}` is not in the format `scope/name`", s
            )

        for reason, part in ((ErrorReason.SCOPE, scope), (ErrorReason.NAME, name)):
            if not part or len(part.encode()) > 64:
                raise WallyPackageNameError(
                    f"wally package {reason} `{part}` is not within 1-64 characters long",
                    part,
                    reason,
                )

            if not all(c in _WALLY_CHARS for c in part):
                raise WallyPackageNameError(
                    f"wally package {reason} `{part}` contains characters outside a-z, 0-9, and -",
                    part,
                    reason,
                )

        return cls(scope, name)

    def escaped(self) -> str:
        """The name in a form usable in the filesystem."""
        return f"{_WALLY_PREFIX}{self.scope}+{self.name}"

    def __str__(self) -> str:
        return f"{_WALLY_PREFIX}{self.scope}/{self.name}"


PackageNames = Union[PackageName, WallyPackageName]


def parse_package_names(s: str) -> PackageNames:
    """Parse either kind of package name.

    A string is tried as a Wally name if it carries the `wally#` prefix or
    contains a dash; otherwise, or if that fails, as a pesde name.
    """
    if s.startswith(_WALLY_PREFIX):
        candidate: str | None = s[len(_WALLY_PREFIX):]
    elif "-" in s:
        candidate = s
    else:
        candidate = None

    if candidate is not None:
        try:
            return WallyPackageName.parse(candidate)
        except WallyPackageNameError:
            pass

    try:
        return PackageName.parse(s)
    except PackageNameError:
        raise PackageNamesError(s) from None


def from_escaped(s: str) -> PackageNames:
    """The reverse of `escaped`."""
    return parse_package_names(s.replace("+", "/", 1))