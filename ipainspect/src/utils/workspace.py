import shutil
import tempfile
from pathlib import Path
from typing import Optional

from ipainspect.logger import get_console

WORKSPACE_PREFIX = "ipainspect-"


class ScratchWorkspace:
    """Temporary directory owned by a single analysis run.

    The directory is created on enter and removed recursively on exit,
    whether or not the body raised. A failed removal is logged and never
    replaces the original exception.
    """

    def __init__(self, parent: Optional[Path] = None):
        self.parent = parent
        self.path: Optional[Path] = None
        self.console = get_console()

    def __enter__(self) -> "ScratchWorkspace":
        if self.parent is not None:
            self.parent.mkdir(parents=True, exist_ok=True)
        # mkdtemp adds a random suffix so concurrent runs never collide
        self.path = Path(
            tempfile.mkdtemp(
                prefix=WORKSPACE_PREFIX,
                dir=str(self.parent) if self.parent is not None else None,
            )
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def cleanup(self) -> None:
        if self.path is None:
            return
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.console.log(f"[yellow]Warning: failed to remove workspace {self.path}: {e}")
        self.path = None
