import os
from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=1)
def get_console() -> Console:
    """Get or create the shared Console instance"""
    # stderr keeps --json output on stdout clean
    return Console(stderr=True, quiet=os.getenv("IPAINSPECT_QUIET") == "1")
