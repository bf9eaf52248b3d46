import os
import stat
from pathlib import Path

from ipainspect.logger import get_console
from ipainspect.src.core.models import BundleMetadata

FRAMEWORK_EXTENSION = ".framework"
PLUGIN_EXTENSION = ".appex"
INFO_PLIST = "Info.plist"


def read_bundle_metadata(bundle_path: Path) -> BundleMetadata:
    """Collect size and nested component counts for a bundle.

    Symlinks are neither followed nor counted. Directories that cannot be
    read are logged and left out of the totals.
    """
    console = get_console()

    def log_walk_error(error: OSError) -> None:
        console.log(f"[yellow]Warning: could not read {error.filename}: {error.strerror}")

    bundle_path = Path(bundle_path)
    total_size = 0
    frameworks = 0
    plugins = 0

    for root, dirs, files in os.walk(bundle_path, onerror=log_walk_error, followlinks=False):
        for name in dirs:
            if os.path.islink(os.path.join(root, name)):
                continue
            if name.endswith(FRAMEWORK_EXTENSION):
                frameworks += 1
            elif name.endswith(PLUGIN_EXTENSION):
                plugins += 1

        for name in files:
            st = os.lstat(os.path.join(root, name))
            if stat.S_ISREG(st.st_mode):
                total_size += st.st_size

    info_plist = bundle_path / INFO_PLIST
    has_info_plist = info_plist.is_file() and not info_plist.is_symlink()

    return BundleMetadata(
        file_size=total_size,
        embedded_framework_count=frameworks,
        plugin_count=plugins,
        has_info_plist=has_info_plist,
        info_plist_size=info_plist.stat().st_size if has_info_plist else None,
    )
