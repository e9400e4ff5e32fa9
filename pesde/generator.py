"""Generation of the linking modules that expose installed packages."""

from __future__ import annotations

import logging
import os
import unicodedata
from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple

from pesde.manifest import Manifest
from pesde.target import RobloxPlaceKind, TargetKind

logger = logging.getLogger(__name__)

_INIT_FILES = frozenset({"init.lua", "init.luau"})
_SIMPLE_ESCAPES = {"\t": "\\t", "\r": "\\r", "\n": "\\n", "\\": "\\\\", '"': '\\"', "\0": "\\0"}
_ESCAPED_CATEGORIES = frozenset({"Cc", "Cf", "Cn", "Co", "Cs", "Zl", "Zp"})


class RobloxPlaceKindPathNotFound(LookupError):
    """Raised when the manifest has no place path for a Roblox place kind."""

    def __init__(self, place_kind: RobloxPlaceKind) -> None:
        super().__init__(f"could not find the path for the RobloxPlaceKind {place_kind}")
        self.place_kind = place_kind


class _Kind(Enum):
    ANCHOR = "anchor"
    CUR = "cur"
    PARENT = "parent"
    NORMAL = "normal"


class _Component(NamedTuple):
    kind: _Kind
    text: str


_CUR = _Component(_Kind.CUR, ".")
_PARENT = _Component(_Kind.PARENT, "..")

PathArg = str | os.PathLike[str]


def _components(path: PathArg) -> list[_Component]:
    text = os.fspath(path)
    if os.sep != "/":
        text = text.replace(os.sep, "/")
    drive, rest = os.path.splitdrive(text)
    comps: list[_Component] = []
    if rest.startswith("/"):
        comps.append(_Component(_Kind.ANCHOR, drive + "/"))
        rest = rest.lstrip("/")
    elif drive:
        comps.append(_Component(_Kind.ANCHOR, drive))

    for position, part in enumerate(rest.split("/")):
        if not part:
            continue
        if part == ".":
            if position == 0 and not comps:
                comps.append(_CUR)
            continue
        comps.append(_PARENT if part == ".." else _Component(_Kind.NORMAL, part))
    return comps


def _is_absolute(comps: list[_Component]) -> bool:
    return bool(comps) and comps[0].kind is _Kind.ANCHOR and comps[0].text.endswith("/")


def _diff_paths(path: PathArg, base: PathArg) -> list[_Component]:
    """The components leading from `base` to `path`."""
    path_comps = _components(path)
    base_comps = _components(base)
    if _is_absolute(path_comps) != _is_absolute(base_comps):
        if _is_absolute(path_comps):
            return path_comps
        raise ValueError(f"cannot make {os.fspath(path)} relative to {os.fspath(base)}")

    ita = iter(path_comps)
    itb = iter(base_comps)
    out: list[_Component] = []
    while True:
        a = next(ita, None)
        b = next(itb, None)
        if a is None and b is None:
            break
        if b is None:
            out.append(a)
            out.extend(ita)
            break
        if a is None:
            out.append(_PARENT)
            continue
        if not out and a == b:
            continue
        if b.kind is _Kind.CUR:
            out.append(a)
            continue
        if b.kind is _Kind.PARENT:
            raise ValueError(f"cannot make {os.fspath(path)} relative to {os.fspath(base)}")
        out.append(_PARENT)
        out.extend(_PARENT for _ in itb)
        out.append(a)
        out.extend(ita)
        break
    return out


def _join_relative(base: list[_Component], relative: PathArg) -> list[_Component]:
    out = list(base)
    for part in os.fspath(relative).split("/"):
        if not part:
            continue
        if part == ".":
            if not out:
                out.append(_CUR)
            continue
        out.append(_PARENT if part == ".." else _Component(_Kind.NORMAL, part))
    return out


def _strip_extension(name: str) -> str:
    if name.endswith(".luau"):
        return name[: -len(".luau")]
    if name.endswith(".lua"):
        return name[: -len(".lua")]
    return name


def _debug_str(text: str) -> str:
    """Quote a string the way the generated modules expect string literals."""
    out = []
    for ch in text:
        if ch in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[ch])
        elif unicodedata.category(ch) in _ESCAPED_CATEGORIES:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _with_last(comps: list[_Component]) -> Iterable[tuple[_Component, bool]]:
    last = len(comps) - 1
    return ((comp, position == last) for position, comp in enumerate(comps))


def _luau_style_path(comps: list[_Component]) -> str:
    parts: list[str] = []
    for comp, is_last in _with_last(comps):
        if comp.kind is _Kind.CUR:
            parts.append(".")
        elif comp.kind is _Kind.PARENT:
            parts.append("..")
        elif comp.kind is _Kind.NORMAL:
            parts.append(_strip_extension(comp.text) if is_last else comp.text)
    return _debug_str("./" + "/".join(parts))


def _roblox_path(comps: list[_Component]) -> str:
    parts: list[str] = []
    for comp, is_last in _with_last(comps):
        if comp.kind is _Kind.PARENT:
            parts.append(".Parent")
        elif comp.kind is _Kind.NORMAL and comp.text not in _INIT_FILES:
            name = _strip_extension(comp.text) if is_last else comp.text
            parts.append(f"[{_debug_str(name)}]")
    return "".join(parts)


def generate_lib_linking_module(path: str, types: Iterable[str]) -> str:
    """A module re-exporting a library and its exported types."""
    return f"local module = require({path})\n" + "".join(types) + "return module"


def get_lib_require_path(
    target: TargetKind,
    base_dir: PathArg,
    lib_file: PathArg,
    destination_dir: PathArg,
    use_new_structure: bool,
    root_container_dir: PathArg,
    container_dir: PathArg,
    project_manifest: Manifest,
) -> str:
    """The require path of a library, as seen from `base_dir`.

    Raises RobloxPlaceKindPathNotFound if a Roblox package outside the root
    container needs a place the manifest does not define.
    """
    path = _diff_paths(destination_dir, base_dir)
    logger.debug("diffed lib path: %s", "/".join(c.text for c in path))
    if use_new_structure:
        path = _join_relative(path, lib_file)

    if target.is_roblox():
        place_kind = target.to_place_kind()
        destination = _components(destination_dir)
        root = _components(root_container_dir)
        if place_kind is not None and destination[: len(root)] != root:
            prefix = project_manifest.place.get(place_kind)
            if prefix is None:
                raise RobloxPlaceKindPathNotFound(place_kind)
            container = _components(container_dir)
            path = _join_relative(container, lib_file) if use_new_structure else container
        else:
            prefix = "script.Parent"
        return prefix + _roblox_path(path)

    return _luau_style_path(path)


def generate_bin_linking_module(package_root: PathArg, require_path: str) -> str:
    """A module running a binary with the package root made known to it."""
    return f"_G.PESDE_ROOT = {_debug_str(os.fspath(package_root))}\nreturn require({require_path})"


def get_bin_require_path(base_dir: PathArg, bin_file: PathArg, destination_dir: PathArg) -> str:
    """The require path of a binary, as seen from `base_dir`."""
    path = _diff_paths(destination_dir, base_dir)
    logger.debug("diffed bin path: %s", "/".join(c.text for c in path))
    return _luau_style_path(_join_relative(path, bin_file))


def generate_script_linking_module(require_path: str) -> str:
    """A module running a script."""
    return f"return require({require_path})"


def get_script_require_path(
    base_dir: PathArg, script_file: PathArg, destination_dir: PathArg
) -> str:
    """The require path of a script, as seen from `base_dir`."""
    path = _diff_paths(destination_dir, base_dir)
    logger.debug("diffed script path: %s", "/".join(c.text for c in path))
    return _luau_style_path(_join_relative(path, script_file))