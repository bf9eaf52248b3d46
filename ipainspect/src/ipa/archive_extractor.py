import io
import os
import shutil
import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO, List, Union

from ipainspect.logger import get_console
from ipainspect.src.core.errors import (
    ArchiveFormatError,
    ResourceLimitExceededError,
    UnsafeEntryPathError,
)
from ipainspect.src.utils.config_loader import AnalysisLimits

PackageSource = Union[str, os.PathLike, bytes, bytearray, BinaryIO]

SUPPORTED_COMPRESSION = {
    zipfile.ZIP_STORED,
    zipfile.ZIP_DEFLATED,
    zipfile.ZIP_BZIP2,
    zipfile.ZIP_LZMA,
}
CHUNK_SIZE = 64 * 1024


def open_package(source: PackageSource) -> zipfile.ZipFile:
    """Open a package from a path, raw bytes or a binary file object"""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))
    elif isinstance(source, os.PathLike):
        source = os.fspath(source)
    try:
        return zipfile.ZipFile(source)
    except (zipfile.BadZipFile, EOFError) as e:
        raise ArchiveFormatError(f"Not a valid ZIP archive: {e}") from e


def resolve_entry_path(destination: Path, entry_name: str) -> Path:
    """Map an entry name to a path inside destination or raise"""
    if (
        not entry_name
        or entry_name.startswith(("/", "\\"))
        or PureWindowsPath(entry_name).drive
        or PurePosixPath(entry_name).is_absolute()
    ):
        raise UnsafeEntryPathError(entry_name)

    root = destination.resolve()
    target = (root / entry_name).resolve()
    if target != root and root not in target.parents:
        raise UnsafeEntryPathError(entry_name)
    return target


def _check_entries(
    entries: List[zipfile.ZipInfo], destination: Path, limits: AnalysisLimits
) -> List[Path]:
    """Validate every entry up front so nothing is written for a bad archive"""
    if len(entries) > limits.max_entries:
        raise ResourceLimitExceededError(
            f"Archive has {len(entries)} entries, limit is {limits.max_entries}"
        )

    declared_size = sum(info.file_size for info in entries)
    if declared_size > limits.max_total_size:
        raise ResourceLimitExceededError(
            f"Archive expands to {declared_size} bytes, limit is {limits.max_total_size}"
        )

    targets = []
    for info in entries:
        if info.compress_type not in SUPPORTED_COMPRESSION:
            raise ArchiveFormatError(
                f"Unsupported compression method {info.compress_type} for {info.filename}"
            )
        if info.flag_bits & 0x1:
            raise ArchiveFormatError(f"Encrypted entry not supported: {info.filename}")
        targets.append(resolve_entry_path(destination, info.filename))
    return targets


def _copy_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    # ZipExtFile stops at the declared size and checks the CRC, so the
    # declared total checked up front bounds what gets written
    with archive.open(info) as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst, CHUNK_SIZE)

    mode = (info.external_attr >> 16) & 0o777
    if mode:
        os.chmod(target, mode | 0o600)


def extract_archive(
    source: PackageSource, destination: Path, limits: AnalysisLimits = None
) -> int:
    """Extract all entries of a package into destination.

    Returns the number of entries extracted.
    """
    limits = limits or AnalysisLimits()
    destination = Path(destination)
    console = get_console()

    with open_package(source) as archive:
        entries = archive.infolist()
        targets = _check_entries(entries, destination, limits)

        try:
            for info, target in zip(entries, targets):
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                _copy_entry(archive, info, target)
        except (zipfile.BadZipFile, EOFError, zipfile.LargeZipFile) as e:
            raise ArchiveFormatError(f"Corrupt archive data: {e}") from e
        except NotImplementedError as e:
            raise ArchiveFormatError(f"Unsupported archive feature: {e}") from e

    console.log(f"[blue]Extracted {len(entries)} entries[/] to {destination}")
    return len(entries)
