"""Semantic versions and version requirements."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

_NUMERIC = re.compile(r"0|[1-9][0-9]*")
_DIGITS = re.compile(r"[0-9]+")
_IDENTIFIER = re.compile(r"[0-9A-Za-z-]+")
_OPERATOR = re.compile(r"(>=|<=|=|>|<|~|\^)?\s*(.*)", re.DOTALL)
_WILDCARDS = frozenset({"*", "x", "X"})


class VersionError(ValueError):
    """Raised when a version or a version requirement cannot be parsed."""


def _parse_number(text: str, what: str, source: str) -> int:
    if not _NUMERIC.fullmatch(text):
        raise VersionError(f"invalid {what} number `{text}` in `{source}`")
    return int(text)


def _check_pre(pre: str, source: str) -> None:
    for ident in pre.split("."):
        if not _IDENTIFIER.fullmatch(ident):
            raise VersionError(f"invalid pre-release identifier `{ident}` in `{source}`")
        if _DIGITS.fullmatch(ident) and not _NUMERIC.fullmatch(ident):
            raise VersionError(f"invalid leading zero in pre-release identifier in `{source}`")


def _check_build(build: str, source: str) -> None:
    for ident in build.split("."):
        if not _IDENTIFIER.fullmatch(ident):
            raise VersionError(f"invalid build metadata identifier `{ident}` in `{source}`")


def _pre_key(pre: str) -> tuple:
    # A version without a pre-release sorts after every pre-release of it.
    if not pre:
        return (1, ())
    return (
        0,
        tuple(
            (0, int(ident), "") if _DIGITS.fullmatch(ident) else (1, 0, ident)
            for ident in pre.split(".")
        ),
    )


def _build_key(build: str) -> tuple:
    if not build:
        return (0, ())
    return (
        1,
        tuple(
            (0, int(ident), ident) if _DIGITS.fullmatch(ident) else (1, 0, ident)
            for ident in build.split(".")
        ),
    )


@total_ordering
@dataclass(frozen=True)
class Version:
    """A semantic version."""

    major: int
    minor: int
    patch: int
    pre: str = ""
    build: str = ""

    @classmethod
    def parse(cls, s: str) -> Version:
        """Parse `major.minor.patch[-pre][+build]`."""
        rest, plus, build = s.partition("+")
        core, dash, pre = rest.partition("-")
        parts = core.split(".")
        if len(parts) != 3:
            raise VersionError(f"`{s}` is not of the form major.minor.patch")
        major, minor, patch = (
            _parse_number(part, what, s)
            for part, what in zip(parts, ("major", "minor", "patch"))
        )
        if dash:
            _check_pre(pre, s)
        if plus:
            _check_build(build, s)
        return cls(major, minor, patch, pre, build)

    def without_build(self) -> Version:
        """This version with its build metadata removed."""
        return Version(self.major, self.minor, self.patch, self.pre)

    def _key(self) -> tuple:
        return (self.major, self.minor, self.patch, _pre_key(self.pre), _build_key(self.build))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        if self.build:
            text += f"+{self.build}"
        return text


class _Op(Enum):
    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


@dataclass(frozen=True)
class _Comparator:
    op: _Op
    major: int
    minor: int | None
    patch: int | None
    pre: str

    @classmethod
    def parse(cls, text: str, source: str) -> _Comparator:
        match = _OPERATOR.fullmatch(text)
        assert match is not None
        op_text, rest = match.group(1), match.group(2)
        op = _Op(op_text) if op_text else _Op.CARET
        if not rest:
            raise VersionError(f"expected a version in `{source}`")

        body, plus, build = rest.partition("+")
        if plus:
            _check_build(build, source)  # build metadata is accepted and ignored
        core, dash, pre = body.partition("-")
        parts = core.split(".")
        if len(parts) > 3:
            raise VersionError(f"too many version components in `{source}`")
        if parts[0] in _WILDCARDS:
            raise VersionError(f"wildcard req (*) must be the only comparator in `{source}`")

        major = _parse_number(parts[0], "major", source)
        minor: int | None = None
        patch: int | None = None
        wildcard = False
        if len(parts) > 1:
            if parts[1] in _WILDCARDS:
                wildcard = True
            else:
                minor = _parse_number(parts[1], "minor", source)
        if len(parts) > 2:
            if parts[2] in _WILDCARDS:
                wildcard = True
            elif wildcard:
                raise VersionError(f"unexpected version component after wildcard in `{source}`")
            else:
                patch = _parse_number(parts[2], "patch", source)

        if dash:
            if wildcard or patch is None:
                raise VersionError(f"unexpected pre-release in `{source}`")
            _check_pre(pre, source)

        if wildcard and not op_text:
            op = _Op.WILDCARD
        return cls(op, major, minor, patch, pre if dash else "")

    def _exact(self, v: Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return False
        return v.pre == self.pre

    def _greater(self, v: Version) -> bool:
        if v.major != self.major:
            return v.major > self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor > self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch > self.patch
        return _pre_key(v.pre) > _pre_key(self.pre)

    def _less(self, v: Version) -> bool:
        if v.major != self.major:
            return v.major < self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor < self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch < self.patch
        return _pre_key(v.pre) < _pre_key(self.pre)

    def _tilde(self, v: Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return v.patch > self.patch
        return _pre_key(v.pre) >= _pre_key(self.pre)

    def _caret(self, v: Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is None:
            return True
        if self.patch is None:
            return v.minor >= self.minor if self.major > 0 else v.minor == self.minor
        if self.major > 0:
            if v.minor != self.minor:
                return v.minor > self.minor
            if v.patch != self.patch:
                return v.patch > self.patch
        elif self.minor > 0:
            if v.minor != self.minor:
                return False
            if v.patch != self.patch:
                return v.patch > self.patch
        elif v.minor != self.minor or v.patch != self.patch:
            return False
        return _pre_key(v.pre) >= _pre_key(self.pre)

    def _wildcard(self, v: Version) -> bool:
        if v.major != self.major:
            return False
        return self.minor is None or v.minor == self.minor

    def matches(self, v: Version) -> bool:
        match self.op:
            case _Op.EXACT:
                return self._exact(v)
            case _Op.GREATER:
                return self._greater(v)
            case _Op.GREATER_EQ:
                return self._exact(v) or self._greater(v)
            case _Op.LESS:
                return self._less(v)
            case _Op.LESS_EQ:
                return self._exact(v) or self._less(v)
            case _Op.TILDE:
                return self._tilde(v)
            case _Op.CARET:
                return self._caret(v)
            case _Op.WILDCARD:
                return self._wildcard(v)

    def allows_pre_of(self, v: Version) -> bool:
        return (
            self.major == v.major
            and self.minor == v.minor
            and self.patch == v.patch
            and bool(self.pre)
        )

    def __str__(self) -> str:
        if self.op is _Op.WILDCARD:
            if self.minor is None:
                return f"{self.major}.*"
            return f"{self.major}.{self.minor}.*"
        text = f"{self.op.value}{self.major}"
        if self.minor is not None:
            text += f".{self.minor}"
        if self.patch is not None:
            text += f".{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        return text


@dataclass(frozen=True)
class VersionReq:
    """A version requirement: a set of comparators that must all match.

    A requirement with no comparators is `*`.
    """

    comparators: tuple[_Comparator, ...] = ()

    @classmethod
    def parse(cls, s: str) -> VersionReq:
        """Parse a comma-separated list of comparators, or `*`."""
        text = s.strip()
        if text in _WILDCARDS:
            return cls()
        if not text:
            raise VersionError("empty string, expected a version requirement")
        parts = [part.strip() for part in text.split(",")]
        if any(not part for part in parts):
            raise VersionError(f"empty comparator in `{s}`")
        return cls(tuple(_Comparator.parse(part, s) for part in parts))

    def is_star(self) -> bool:
        """Whether this is the `*` requirement."""
        return not self.comparators

    def matches(self, version: Version) -> bool:
        """Whether the version satisfies every comparator.

        Pre-releases only match if some comparator names the same
        major.minor.patch with a pre-release of its own.
        """
        if not all(c.matches(version) for c in self.comparators):
            return False
        if not version.pre:
            return True
        return any(c.allows_pre_of(version) for c in self.comparators)

    def __str__(self) -> str:
        if self.is_star():
            return "*"
        return ", ".join(str(c) for c in self.comparators)


def version_matches(req: VersionReq, version: Version) -> bool:
    """Whether a version matches a requirement; every version matches `*`."""
    return req.is_star() or req.matches(version)