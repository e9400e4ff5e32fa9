"""Sources that engines are resolved and downloaded from: GitHub releases."""

from __future__ import annotations

import io
import platform
import string
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from pesde.archive import Archive, ArchiveInfo
from pesde.engine import EngineKind
from pesde.reporters import DownloadProgressReporter, track_download
from pesde.versions import Version, VersionError, VersionReq, version_matches

GITHUB_API_URL = "https://api.github.com"
_CHUNK_SIZE = 64 * 1024
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

_PESDE_OWNER = "pesde-pkg"
_PESDE_REPO = "pesde"
_LUNE_OWNER = "lune-org"
_LUNE_REPO = "lune"

_OS_NAMES = {"darwin": "macos"}
_ARCH_NAMES = {
    "amd64": "x86_64",
    "x86_64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "armv7l": "arm",
}


class AssetNotFoundError(LookupError):
    """Raised when a release has no asset for the current platform."""

    def __init__(self) -> None:
        super().__init__("failed to find asset for current platform")


@dataclass(frozen=True)
class Asset:
    """An asset of a release."""

    name: str
    url: str


@dataclass(frozen=True)
class Release:
    """A release and its assets."""

    tag_name: str
    assets: tuple[Asset, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Release:
        """Build a release from its API form."""
        if not isinstance(data, Mapping):
            raise ValueError("release must be an object")
        try:
            tag_name = data["tag_name"]
            raw_assets = data["assets"]
        except KeyError as e:
            raise ValueError(f"missing field `{e.args[0]}`") from None
        if not isinstance(tag_name, str) or not isinstance(raw_assets, list):
            raise ValueError("invalid release")
        assets = []
        for raw in raw_assets:
            if not isinstance(raw, Mapping):
                raise ValueError("asset must be an object")
            name, url = raw.get("name"), raw.get("url")
            if not isinstance(name, str) or not isinstance(url, str):
                raise ValueError("asset must have a string `name` and `url`")
            assets.append(Asset(name, url))
        return cls(tag_name, tuple(assets))


class _ChunkReader(io.RawIOBase):
    """A readable binary stream over an iterator of byte chunks."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        super().__init__()
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending = memoryview(b"")

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        while not self._pending:
            chunk = next(self._chunks, None)
            if chunk is None:
                return 0
            self._pending = memoryview(chunk)
        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count


def _default_session() -> requests.Session:
    session = requests.Session()
    session.headers["Accept"] = "application/json"
    session.headers["User-Agent"] = "pesde"
    return session


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


@dataclass(frozen=True)
class GitHubEngineSource:
    """Engine releases published on GitHub.

    `{VERSION}` in `asset_template` is replaced by the version to download.
    """

    owner: str
    repo: str
    asset_template: str

    def directory(self) -> Path:
        """The folder to store this engine's versions in."""
        return Path("github") / self.owner / self.repo

    def expected_file_name(self) -> str:
        """The expected file name of the engine within its archive."""
        return self.repo

    def resolve(
        self, requirement: VersionReq, session: requests.Session | None = None
    ) -> dict[Version, Release]:
        """The releases matching the requirement, ordered by version.

        Releases whose tag is not a version are ignored.
        """
        session = session or _default_session()
        url = (
            f"{GITHUB_API_URL}/repos/{quote(self.owner, safe='')}"
            f"/{quote(self.repo, safe='')}/releases"
        )
        response = session.get(url)
        response.raise_for_status()
        found: dict[Version, Release] = {}
        for item in response.json():
            release = Release.from_dict(item)
            try:
                version = Version.parse(release.tag_name.lstrip("v"))
            except VersionError:
                continue
            if version_matches(requirement, version):
                found[version] = release
        return dict(sorted(found.items()))

    def download(
        self,
        release: Release,
        version: Version,
        session: requests.Session | None = None,
        reporter: DownloadProgressReporter | None = None,
    ) -> Archive:
        """Start downloading this platform's asset of a release.

        The asset name is matched without regard to ASCII case, with and
        without the version's build metadata. The returned archive streams
        the download, reporting progress as it is read.
        """
        reporter = reporter or DownloadProgressReporter()
        desired = {
            _ascii_lower(self.asset_template.replace("{VERSION}", str(v)))
            for v in (version, version.without_build())
        }
        asset = next((a for a in release.assets if _ascii_lower(a.name) in desired), None)
        if asset is None:
            raise AssetNotFoundError()

        reporter.report_start()

        session = session or _default_session()
        response = session.get(
            asset.url, headers={"Accept": "application/octet-stream"}, stream=True
        )
        response.raise_for_status()

        info = ArchiveInfo.parse(asset.name)
        length = response.headers.get("Content-Length")
        total = int(length) if length and length.isdigit() else None
        chunks = track_download(response.iter_content(chunk_size=_CHUNK_SIZE), total, reporter)
        return Archive(info, io.BufferedReader(_ChunkReader(chunks)))


def _os_name() -> str:
    system = platform.system().lower()
    return _OS_NAMES.get(system, system)


def _arch_name() -> str:
    machine = platform.machine().lower()
    return _ARCH_NAMES.get(machine, machine)


def _template(prefix: str) -> str:
    return f"{prefix}-{{VERSION}}-{_os_name()}-{_arch_name()}.zip"


def pesde_source() -> GitHubEngineSource:
    """The source of the package manager's own releases."""
    return GitHubEngineSource(_PESDE_OWNER, _PESDE_REPO, _template("pesde"))


def lune_source() -> GitHubEngineSource:
    """The source of the Lune runtime's releases."""
    return GitHubEngineSource(_LUNE_OWNER, _LUNE_REPO, _template("lune"))


def engine_source(kind: EngineKind) -> GitHubEngineSource:
    """The source to get an engine from."""
    if kind is EngineKind.PESDE:
        return pesde_source()
    return lune_source()