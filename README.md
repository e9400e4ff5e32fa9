# pesde

A Python library with the core pieces of a package manager for the Luau
programming language. It works with projects that target Roblox, Lune and
plain Luau.

## Modules

- `pesde.names`: `PackageName` and `WallyPackageName` check and parse names
  such as `scope/name` and `wally#scope/name`. `parse_package_names` picks
  the right kind for a given string, and `from_escaped` reverses the
  filesystem form produced by `escaped()` (for example `scope+name`).
  Invalid names raise `PackageNameError`, `WallyPackageNameError` or
  `PackageNamesError`.
- `pesde.manifest`: `Manifest.from_toml` and `Manifest.from_dict` read a
  `pesde.toml` manifest. Keys that the manifest does not know are kept in
  `user_defined_fields`. `Manifest.all_dependencies` merges standard, peer
  and dev dependencies, orders them by alias and raises `AliasConflictError`
  when one alias appears in two tables. `Alias` compares case-insensitively
  and rejects engine names. `OverrideKey` parses keys such as `a>b,c>d`.
  `DependencyType` names the dependency kinds.
- `pesde.target`: `TargetKind` (`roblox`, `roblox_server`, `lune`, `luau`)
  and `Target`, which is built from the manifest's `target` table.
  `TargetKind.packages_folder` gives the folder name for a dependency's
  target, such as `lune_packages`.
- `pesde.engine`: `EngineKind` names the supported engines, `pesde` and
  `lune`. Names are parsed without regard to case.
- `pesde.versions`: `Version`, `VersionReq` and `version_matches`. They
  implement semantic versions and requirements written with `=`, `>`, `>=`,
  `<`, `<=`, `~`, `^` or wildcards. `version_matches` accepts every version
  for `*`, pre-releases included.
- `pesde.globs`: `Glob` matches `/`-separated paths. It supports `*`, `**`,
  `?`, character classes and `{a,b}` alternatives. Use `any_match` to test a
  path against several globs.
- `pesde.project`: `Project` holds a project's directories and an
  `AuthConfig`. It reads and writes the manifest and iterates workspace
  members. `matching_globs` lists the paths under a directory that match
  workspace globs; a leading `!` excludes paths, and `.` stands for the
  directory itself. `find_roots` walks up from a directory to find the
  project root and the workspace root. `all_packages_dirs` lists every
  packages folder name.
- `pesde.generator`: builds the text of the Luau modules that re-export a
  dependency's library, binary or scripts, and computes their require paths.
  Roblox targets get `script.Parent`-style paths, or the place path from the
  manifest's `place` table.
- `pesde.scripts`: `find_script` looks up a script declared in the package's
  manifest, or failing that in the workspace's manifest. `execute_script`
  runs it with `lune run` in the package directory. Lune must be on `PATH`;
  if it is missing, a warning is logged and nothing is returned.
- `pesde.engine_source`: `GitHubEngineSource` resolves releases from the
  GitHub API into a `{Version: Release}` mapping and downloads the asset for
  the current platform as an `Archive`. `engine_source`, `pesde_source` and
  `lune_source` give the sources for each engine.
- `pesde.archive`: `ArchiveInfo.parse` works out the archive kind from a file
  name: `.tar`, `.tar.gz` or `.zip`. `Archive.find_executable` returns a
  stream of the file that is most likely the engine binary.
- `pesde.reporters`: `DownloadsReporter`, `DownloadProgressReporter`,
  `PatchesReporter` and `PatchProgressReporter` receive progress updates.
  The base classes only record the latest state; subclass them to show
  progress. `track_download` wraps an iterable of chunks and reports bytes
  as they pass.

## Installation

```
pip install .
```

## Example

```python
from pathlib import Path

from pesde.names import PackageName
from pesde.project import Project, find_roots
from pesde.versions import Version, VersionReq, version_matches

name = PackageName.parse("acme/widgets")
print(name.escaped())  # acme+widgets

assert version_matches(VersionReq.parse("^1.2"), Version.parse("1.4.0"))

package_dir, workspace_dir = find_roots(Path.cwd())
project = Project(package_dir, workspace_dir, Path("data"), Path("cas"))
manifest = project.deser_manifest()
for alias, (spec, kind) in manifest.all_dependencies().items():
    print(alias, kind)
```

## What it does not do

This is a library, not a full package manager:

- It provides no command-line tool.
- It does not resolve dependency graphs, and it does not read or write
  lockfiles.
- It does not download packages from registries or git repositories.
- It does not write linking modules to disk. `pesde.generator` only returns
  their text.
- It does not apply or remove patches.
- Engines can be resolved and their archives downloaded and searched, but
  nothing here installs an engine or starts one.

## Running the tests

```
pip install ".[test]"
pytest
```