"""Engine release archives and finding the executable inside them."""

from __future__ import annotations

import io
import sys
import tarfile
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

EXE_EXTENSION = "exe" if sys.platform == "win32" else ""
_UNIX_SYSTEM = 3


class ArchiveKind(Enum):
    """The kind of archive."""

    TAR = "tar"
    ZIP = "zip"

    def __str__(self) -> str:
        return self.value


class EncodingKind(Enum):
    """The encoding applied on top of an archive."""

    GZIP = "gzip"

    def __str__(self) -> str:
        return self.value


class ArchiveInfoError(ValueError):
    """Raised when a file name does not describe a known archive."""


class UnsupportedArchiveError(ArchiveInfoError):
    """Raised when an archive kind is recognised but its encoding is not supported."""

    def __init__(self, kind: ArchiveKind, encoding: EncodingKind | None) -> None:
        super().__init__(f"archive type {kind} with encoding {encoding} is not supported")
        self.kind = kind
        self.encoding = encoding


class ExecutableNotFoundError(LookupError):
    """Raised when no executable can be found in an archive."""

    def __init__(self) -> None:
        super().__init__("failed to find executable in archive")


@dataclass(frozen=True)
class ArchiveInfo:
    """The kind and encoding of an archive."""

    kind: ArchiveKind
    encoding: EncodingKind | None = None

    @classmethod
    def parse(cls, s: str) -> ArchiveInfo:
        """Derive the archive kind and encoding from a file name such as `name.tar.gz`."""
        parts = s.split(".")
        tail = parts[-2:]
        if tail == ["tar", "gz"]:
            return cls(ArchiveKind.TAR, EncodingKind.GZIP)
        if parts[-1] == "tar":
            return cls(ArchiveKind.TAR)
        if tail == ["zip", "gz"]:
            raise UnsupportedArchiveError(ArchiveKind.ZIP, EncodingKind.GZIP)
        if parts[-1] == "zip":
            return cls(ArchiveKind.ZIP)
        raise ArchiveInfoError(f"string `{s}` is not a valid archive descriptor")


def _file_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def _extension(name: str) -> str | None:
    dot = name.rfind(".")
    if dot <= 0:
        return None
    return name[dot + 1:]


@dataclass(frozen=True)
class _Candidate:
    path: str
    file_name_matches: bool
    extension_matches: bool
    has_permissions: bool

    @classmethod
    def of(cls, path: str, mode: int, expected_file_name: str) -> _Candidate:
        name = _file_name(path)
        extension = _extension(name)
        return cls(
            path=path,
            file_name_matches=name == expected_file_name,
            extension_matches=(
                extension == EXE_EXTENSION if extension is not None else not EXE_EXTENSION
            ),
            has_permissions=mode & 0o111 != 0,
        )

    @property
    def key(self) -> tuple[bool, bool, bool]:
        return (self.file_name_matches, self.extension_matches, self.has_permissions)

    def should_be_considered(self) -> bool:
        # a file matching none of the criteria is most likely not the executable
        return any(self.key)


def _best_candidate(entries: Iterable[tuple[str, int]], expected_file_name: str) -> str:
    candidates = [
        candidate
        for candidate in (_Candidate.of(path, mode, expected_file_name) for path, mode in entries)
        if candidate.should_be_considered()
    ]
    if not candidates:
        raise ExecutableNotFoundError()
    # max() keeps the first of equally ranked candidates
    return max(candidates, key=lambda candidate: candidate.key).path


def _find_in_tar(data: bytes, encoding: EncodingKind | None, expected_file_name: str) -> BinaryIO:
    mode = "r:gz" if encoding is EncodingKind.GZIP else "r:"
    with tarfile.open(fileobj=io.BytesIO(data), mode=mode) as tar:
        members = [member for member in tar.getmembers() if not member.isdir()]
        path = _best_candidate(((m.name, m.mode) for m in members), expected_file_name)
        member = next(m for m in members if m.name == path)
        extracted = tar.extractfile(member)
        if extracted is None:
            raise ExecutableNotFoundError()
        return io.BytesIO(extracted.read())


def _zip_permissions(info: zipfile.ZipInfo) -> int:
    if info.create_system != _UNIX_SYSTEM:
        return 0
    return (info.external_attr >> 16) & 0xFFFF


def _find_in_zip(data: bytes, expected_file_name: str) -> BinaryIO:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        infos = [info for info in archive.infolist() if not info.is_dir()]
        path = _best_candidate(
            ((info.filename, _zip_permissions(info)) for info in infos), expected_file_name
        )
        info = next(i for i in infos if i.filename == path)
        return io.BytesIO(archive.read(info))


@dataclass
class Archive:
    """An archive together with a binary stream of its contents."""

    info: ArchiveInfo
    reader: BinaryIO

    def find_executable(self, expected_file_name: str) -> BinaryIO:
        """A stream of the file most likely to be the executable.

        Files are ranked by whether their name is `expected_file_name`, then
        whether their extension is the platform's executable extension, then
        whether they carry execute permissions. Raises ExecutableNotFoundError
        if no file meets any of these.
        """
        data = self.reader.read()
        if self.info.kind is ArchiveKind.TAR:
            return _find_in_tar(data, self.info.encoding, expected_file_name)
        return _find_in_zip(data, expected_file_name)