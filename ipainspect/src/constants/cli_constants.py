from rich.text import Text

__version__ = "0.1.0"

APP_DESCRIPTION = "Inspect IPA packages for code signing details"


def get_banner_text() -> Text:
    """Return the ASCII banner shown above the help text."""
    banner = r"""
 _             _                           _
(_)_ __   __ _(_)_ __  ___ _ __   ___  ___| |_
| | '_ \ / _` | | '_ \/ __| '_ \ / _ \/ __| __|
| | |_) | (_| | | | | \__ \ |_) |  __/ (__| |_
|_| .__/ \__,_|_|_| |_|___/ .__/ \___|\___|\__|
  |_|                     |_|
"""
    return Text(banner.strip("\n"), style="bold cyan")
