"""Projects: their directories, manifests, workspaces and roots."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from pesde.globs import Glob, any_match
from pesde.manifest import Manifest
from pesde.target import TargetKind

MANIFEST_FILE_NAME = "pesde.toml"
LOCKFILE_FILE_NAME = "pesde.lock"
DEFAULT_INDEX_NAME = "default"
PACKAGES_CONTAINER_NAME = ".pesde"
SCRIPTS_LINK_FOLDER = ".pesde"


class ManifestReadError(Exception):
    """Raised when a manifest cannot be read or deserialized."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path

    @property
    def is_not_found(self) -> bool:
        """Whether the manifest file does not exist."""
        return isinstance(self.__cause__, FileNotFoundError)


@dataclass(frozen=True)
class AuthConfig:
    """Authentication configuration: index tokens and git credentials."""

    tokens: Mapping[str, str] = field(default_factory=dict)
    git_credentials: tuple[str, str] | None = None

    def with_tokens(self, tokens: Iterable[tuple[str, str]] | Mapping[str, str]) -> AuthConfig:
        """A copy of this configuration with the given tokens."""
        items = tokens.items() if isinstance(tokens, Mapping) else tokens
        return replace(self, tokens={url: str(token) for url, token in items})

    def with_git_credentials(self, git_credentials: tuple[str, str] | None) -> AuthConfig:
        """A copy of this configuration with the given git credentials."""
        return replace(self, git_credentials=git_credentials)


def _read_manifest_text(directory: Path) -> str:
    try:
        return (directory / MANIFEST_FILE_NAME).read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestReadError("io error reading manifest file", directory) from e


def _parse_manifest(text: str, directory: Path) -> Manifest:
    try:
        return Manifest.from_toml(text)
    except ValueError as e:
        raise ManifestReadError(
            f"error deserializing manifest file at {directory}", directory
        ) from e


def _deser_manifest(directory: Path) -> Manifest:
    return _parse_manifest(_read_manifest_text(directory), directory)


@dataclass(frozen=True)
class Project:
    """A project and the directories it works with."""

    package_dir: Path
    workspace_dir: Path | None
    data_dir: Path
    cas_dir: Path
    auth_config: AuthConfig = field(default_factory=AuthConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "package_dir", Path(self.package_dir))
        if self.workspace_dir is not None:
            object.__setattr__(self, "workspace_dir", Path(self.workspace_dir))
        object.__setattr__(self, "data_dir", Path(self.data_dir))
        object.__setattr__(self, "cas_dir", Path(self.cas_dir))

    def read_manifest(self) -> str:
        """The manifest file's text."""
        return _read_manifest_text(self.package_dir)

    def deser_manifest(self) -> Manifest:
        """The deserialized manifest."""
        return _deser_manifest(self.package_dir)

    def deser_workspace_manifest(self) -> Manifest | None:
        """The workspace root's manifest, or None outside a workspace."""
        if self.workspace_dir is None:
            return None
        return _deser_manifest(self.workspace_dir)

    def write_manifest(self, manifest: str | bytes) -> None:
        """Overwrite the manifest file."""
        data = manifest.encode("utf-8") if isinstance(manifest, str) else manifest
        (self.package_dir / MANIFEST_FILE_NAME).write_bytes(data)

    def workspace_members(self, can_ref_self: bool) -> Iterator[tuple[Path, Manifest]]:
        """The workspace members' directories and manifests.

        The workspace root's manifest is read and its globs matched at once;
        member manifests are read as the result is iterated.
        """
        directory = self.workspace_dir if self.workspace_dir is not None else self.package_dir
        manifest = _deser_manifest(directory)
        members = matching_globs(directory, manifest.workspace_members, False, can_ref_self)
        return ((path, _deser_manifest(path)) for path in sorted(members))


def _walk(directory: Path) -> Iterator[Path]:
    """Every path below `directory`; errors reading a directory propagate."""
    pending = [directory]
    while pending:
        with os.scandir(pending.pop()) as entries:
            for entry in entries:
                path = Path(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    pending.append(path)
                yield path


def matching_globs(
    directory: str | os.PathLike[str],
    globs: Iterable[str],
    relative: bool,
    can_ref_self: bool,
) -> set[Path]:
    """All paths below `directory` matching the globs.

    Globs starting with `!` exclude paths. A `.` glob includes the directory
    itself, but only if `can_ref_self` is set.
    """
    directory = Path(directory)
    negative: set[str] = set()
    positive: set[str] = set()
    for glob in globs:
        (negative if glob.startswith("!") else positive).add(glob)

    include_self = "." in positive and can_ref_self
    positive.discard(".")

    negative_globs = [Glob(glob[1:]) for glob in negative]
    positive_globs = [Glob(glob) for glob in positive]

    paths: set[Path] = set()
    if include_self:
        paths.add(Path() if relative else directory)

    for path in _walk(directory):
        relative_path = path.relative_to(directory)
        if any_match(positive_globs, relative_path) and not any_match(
            negative_globs, relative_path
        ):
            paths.add(relative_path if relative else path)

    return paths


def _workspace_members_of(text: str, directory: Path) -> set[Path]:
    manifest = _parse_manifest(text, directory)
    if not manifest.workspace_members:
        return set()
    return matching_globs(directory, manifest.workspace_members, False, False)


def find_roots(cwd: str | os.PathLike[str]) -> tuple[Path, Path | None]:
    """Find the project root and the workspace root, if any, starting from `cwd`.

    If no project is found, `cwd` is the project root so that commands can
    run outside a project.
    """
    cwd = Path(cwd)
    project_root: Path | None = None

    for path in (cwd, *cwd.parents):
        try:
            text = (path / MANIFEST_FILE_NAME).read_text(encoding="utf-8")
        except FileNotFoundError:
            continue
        except OSError as e:
            raise ManifestReadError("io error reading manifest file", path) from e

        if project_root is not None:
            if project_root in _workspace_members_of(text, path):
                return project_root, path
        else:
            if cwd in _workspace_members_of(text, path):
                # initializing a new member of a workspace
                return cwd, path
            project_root = path

    return (project_root if project_root is not None else cwd), None


def all_packages_dirs() -> set[str]:
    """Every packages folder name any pair of targets can use."""
    return {a.packages_folder(b) for a in TargetKind for b in TargetKind}