"""Assemble in-memory IPA archives for tests."""

import io
import stat
import zipfile
from typing import Dict, Iterable, Tuple, Union

FileEntry = Union[bytes, Tuple[bytes, int]]


def build_zip(
    files: Dict[str, FileEntry],
    directories: Iterable[str] = (),
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    """Zip `name -> data` or `name -> (data, mode)` entries, keeping modes"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as zf:
        for directory in directories:
            info = zipfile.ZipInfo(directory.rstrip("/") + "/")
            info.external_attr = (stat.S_IFDIR | 0o755) << 16
            zf.writestr(info, b"")
        for name, entry in files.items():
            data, mode = entry if isinstance(entry, tuple) else (entry, 0o644)
            info = zipfile.ZipInfo(name)
            info.external_attr = (stat.S_IFREG | mode) << 16
            info.compress_type = compression
            zf.writestr(info, data)
    return buffer.getvalue()


def build_ipa(
    app_name: str = "Demo",
    executable: bytes = b"",
    extra_files: Dict[str, FileEntry] = None,
    info_plist: bytes = b"<?xml version=\"1.0\"?><plist version=\"1.0\"><dict/></plist>",
) -> bytes:
    """An IPA with Payload/<app_name>.app holding an executable and Info.plist"""
    root = f"Payload/{app_name}.app"
    files: Dict[str, FileEntry] = {
        f"{root}/{app_name}": (executable, 0o755),
        f"{root}/Info.plist": info_plist,
    }
    for name, entry in (extra_files or {}).items():
        files[f"{root}/{name}"] = entry
    return build_zip(files, directories=["Payload", root])


__all__ = ["build_ipa", "build_zip"]
