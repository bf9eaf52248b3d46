import os
import stat
from pathlib import Path
from typing import Optional

from ipainspect.logger import get_console
from ipainspect.src.core.errors import (
    AmbiguousBundleError,
    InvalidPackageStructureError,
    NoBundleFoundError,
)
from ipainspect.src.core.models import ApplicationBundle

PAYLOAD_DIR = "Payload"
APP_EXTENSION = ".app"
EXECUTABLE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def locate_bundle(extraction_root: Path) -> ApplicationBundle:
    """Find the single .app bundle under Payload"""
    payload_dir = Path(extraction_root) / PAYLOAD_DIR
    if not payload_dir.is_dir():
        raise InvalidPackageStructureError("Invalid IPA: No Payload directory found")

    candidates = sorted(
        entry
        for entry in payload_dir.iterdir()
        if entry.name.endswith(APP_EXTENSION)
        and entry.is_dir()
        and not entry.is_symlink()
    )

    if not candidates:
        raise NoBundleFoundError("No .app bundle found in IPA")
    if len(candidates) > 1:
        raise AmbiguousBundleError(entry.name for entry in candidates)

    bundle_path = candidates[0]
    get_console().log(f"[green]Found app bundle:[/] {bundle_path.name}")
    return ApplicationBundle(name=bundle_path.name[: -len(APP_EXTENSION)], path=bundle_path)


def _is_regular_file(path: Path) -> bool:
    try:
        return stat.S_ISREG(os.lstat(path).st_mode)
    except FileNotFoundError:
        return False


def _is_executable(path: Path) -> bool:
    return bool(os.lstat(path).st_mode & EXECUTABLE_BITS)


def find_executable(bundle_path: Path, base_name: str) -> Optional[Path]:
    """Find the main executable of a bundle.

    Only the top level of the bundle is searched. A file named after the
    bundle wins, otherwise the first file with an execute bit is used.
    Returns None when neither exists.
    """
    bundle_path = Path(bundle_path)
    named = bundle_path / base_name
    if base_name and _is_regular_file(named):
        return named

    for entry in sorted(bundle_path.iterdir()):
        if _is_regular_file(entry) and _is_executable(entry):
            return entry

    get_console().log(f"[yellow]No main executable found in {bundle_path.name}")
    return None
