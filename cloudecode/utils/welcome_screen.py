"""
Welcome screen for CloudDecode interactive mode.
"""

from rich.align import Align
from rich.console import Console
from rich.text import Text

from cloudecode.config.settings import settings
from cloudecode.utils import platform_utils

BANNER_ASCII = r"""
  ___ _    ___  _   _ ___     ___  ___ ___ ___  ___  ___
 / __| |  / _ \| | | |   \ __|   \| __/ __/ _ \|   \| __|
| (__| |_| (_) | |_| | |) |__| |) | _| (_| (_) | |) | _|
 \___|____\___/ \___/|___/   |___/|___\___\___/|___/|___|
"""


def should_show_welcome() -> bool:
    """Check the ui.show_welcome_screen setting."""
    return bool(settings.get("ui", "show_welcome_screen", True))


def display_welcome_screen(console: Console) -> None:
    """
    Display the CloudDecode banner.

    Args:
        console (Console): Rich console instance for output.
    """
    if not should_show_welcome():
        return

    style = "bold blue" if platform_utils.supports_ansi_colors() else None

    console.print()
    console.print(Align.center(Text(BANNER_ASCII, style=style)))
    console.print(
        Align.center(
            Text("Mastering Shell, AWS, Azure, & GCP Infrastructure", style="dim")
        )
    )
    console.print()
