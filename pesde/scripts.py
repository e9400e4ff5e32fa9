"""Finding and running the scripts a project declares."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path
from typing import IO

from pesde.project import Project

logger = logging.getLogger(__name__)


class ScriptName(Enum):
    """Script names with a meaning to the package manager."""

    ROBLOX_SYNC_CONFIG_GENERATOR = "roblox_sync_config_generator"
    SOURCEMAP_GENERATOR = "sourcemap_generator"

    def __str__(self) -> str:
        return self.value


def _resolve(directory: Path, relative: str) -> Path:
    return directory.joinpath(*(part for part in relative.split("/") if part))


def find_script(project: Project, script_name: ScriptName) -> Path | None:
    """The path of a script from the package's manifest, else from its workspace's."""
    key = str(script_name)
    script = project.deser_manifest().scripts.get(key)
    if script is not None:
        return _resolve(project.package_dir, script)

    workspace_manifest = project.deser_workspace_manifest()
    if workspace_manifest is not None and project.workspace_dir is not None:
        script = workspace_manifest.scripts.get(key)
        if script is not None:
            return _resolve(project.workspace_dir, script)
    return None


def _strip_newline(line: str) -> str:
    line = line.removesuffix("\n")
    return line.removesuffix("\r")


def _log_stderr(stream: IO[str], script_name: ScriptName) -> None:
    for line in stream:
        logger.error("[%s]: %s", script_name, _strip_newline(line))


def execute_script(
    script_name: ScriptName,
    project: Project,
    args: Iterable[str | os.PathLike[str]] = (),
    return_stdout: bool = False,
    not_found: Callable[[ScriptName], None] | None = None,
) -> str | None:
    """Run a script with Lune in the package directory.

    Returns the script's standard output if `return_stdout` is set, otherwise
    logs it and returns None. Returns None if the script is not declared
    (after calling `not_found`) or if Lune is not installed.
    """
    script_path = find_script(project, script_name)
    if script_path is None:
        if not_found is not None:
            not_found(script_name)
        return None

    command = ["lune", "run", os.fspath(script_path), "--", *map(os.fspath, args)]
    try:
        process = subprocess.Popen(
            command,
            cwd=project.package_dir,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as e:
        logger.warning("Lune could not be found in PATH: %s", e)
        return None

    assert process.stdout is not None and process.stderr is not None
    stderr_thread = threading.Thread(
        target=_log_stderr, args=(process.stderr, script_name), daemon=True
    )
    stderr_thread.start()

    collected: list[str] = []
    with process:
        for line in process.stdout:
            line = _strip_newline(line)
            if return_stdout:
                collected.append(line + "\n")
            else:
                logger.info("[%s]: %s", script_name, line)
        stderr_thread.join()

    return "".join(collected) if return_stdout else None