"""Path globs: `*`, `**`, `?`, character classes and `{a,b}` alternatives."""

from __future__ import annotations

import re
from collections.abc import Iterable
from os import PathLike
from pathlib import PurePath

_BEFORE_TREE = (None, "/", "{", ",")
_AFTER_TREE = (None, "/", "}", ",")


class GlobError(ValueError):
    """Raised when a glob pattern cannot be built."""

    def __init__(self, message: str, pattern: str) -> None:
        super().__init__(f"{message} in glob `{pattern}`")
        self.pattern = pattern


class _Parser:
    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.pos = 0

    def error(self, message: str) -> GlobError:
        return GlobError(message, self.pattern)

    def parse(self) -> str:
        return "".join(self._sequence(0))

    def _sequence(self, depth: int) -> list[str]:
        p = self.pattern
        out: list[str] = []
        while self.pos < len(p):
            c = p[self.pos]
            if depth and c in ",}":
                break
            if c == "}":
                raise self.error(f"unmatched `}}` at position {self.pos}")
            if c == "*":
                if self.pos + 1 < len(p) and p[self.pos + 1] == "*":
                    self._tree(out)
                else:
                    out.append("[^/]*")
                    self.pos += 1
            elif c == "?":
                out.append("[^/]")
                self.pos += 1
            elif c == "[":
                out.append(self._class())
            elif c == "{":
                out.append(self._alternatives(depth))
            elif c == "\\":
                if self.pos + 1 >= len(p):
                    raise self.error("dangling escape")
                out.append(re.escape(p[self.pos + 1]))
                self.pos += 2
            else:
                out.append(re.escape(c))
                self.pos += 1
        return out

    def _tree(self, out: list[str]) -> None:
        p = self.pattern
        start = self.pos
        end = start + 2
        if end < len(p) and p[end] == "*":
            raise self.error("more than two adjacent asterisks")
        before = p[start - 1] if start > 0 else None
        after = p[end] if end < len(p) else None
        if before not in _BEFORE_TREE or after not in _AFTER_TREE:
            raise self.error("`**` must be a whole path component")
        if after == "/":
            out.append("(?:.*/)?")
            self.pos = end + 1
            return
        if out and out[-1] == "/":
            out.pop()
            out.append("(?:/.*)?")
        else:
            out.append(".*")
        self.pos = end

    def _class(self) -> str:
        p = self.pattern
        j = self.pos + 1
        negate = j < len(p) and p[j] in "!^"
        if negate:
            j += 1
        chars: list[str] = []
        if j < len(p) and p[j] == "]":
            chars.append("\\]")
            j += 1
        while j < len(p) and p[j] != "]":
            ch = p[j]
            if ch == "-" and chars and j + 1 < len(p) and p[j + 1] != "]":
                chars.append("-")
            else:
                chars.append(re.escape(ch))
            j += 1
        if j >= len(p):
            raise self.error("unclosed character class")
        if not chars:
            raise self.error("empty character class")
        self.pos = j + 1
        body = "".join(chars)
        if negate:
            return f"[^/{body}]"
        return f"(?!/)[{body}]"

    def _alternatives(self, depth: int) -> str:
        p = self.pattern
        self.pos += 1
        branches: list[str] = []
        while True:
            branches.append("".join(self._sequence(depth + 1)))
            if self.pos >= len(p):
                raise self.error("unclosed alternative")
            closer = p[self.pos]
            self.pos += 1
            if closer == "}":
                break
        return "(?:" + "|".join(branches) + ")"


class Glob:
    """A compiled glob matched against `/`-separated relative paths."""

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._regex = re.compile(_Parser(pattern).parse(), re.DOTALL)

    def matches(self, path: str | PathLike[str]) -> bool:
        """Whether the whole path matches this glob."""
        if isinstance(path, PurePath):
            text = path.as_posix()
        else:
            text = str(path)
        return self._regex.fullmatch(text) is not None

    def __repr__(self) -> str:
        return f"Glob({self.pattern!r})"


def any_match(globs: Iterable[Glob], path: str | PathLike[str]) -> bool:
    """Whether any of the globs matches the path; no globs match nothing."""
    return any(glob.matches(path) for glob in globs)