"""
Platform helpers for CloudDecode.

Only the small amount of host detection the application needs: the config
directory location and whether the terminal can render ANSI colours.
"""

import os
import platform
import sys
from typing import Dict


def get_platform_info() -> Dict[str, str]:
    """
    Get basic information about the host platform.

    Returns:
        Dict[str, str]: OS name, OS version and Python version.
    """
    return {
        "os_name": platform.system() or "Unknown",
        "os_version": platform.release() or "Unknown",
        "python_version": platform.python_version(),
    }


def is_windows() -> bool:
    """
    Check if the current platform is Windows.

    Returns:
        bool: True if Windows, False otherwise.
    """
    return platform.system().lower() == "windows"


def is_macos() -> bool:
    """
    Check if the current platform is macOS.

    Returns:
        bool: True if macOS, False otherwise.
    """
    return platform.system().lower() == "darwin"


def supports_ansi_colors() -> bool:  # pragma: no cover - terminal capability check
    """
    Check if the terminal supports ANSI colors.

    Returns:
        bool: True if ANSI colors are supported, False otherwise.
    """
    if os.environ.get("NO_COLOR"):
        return False

    if is_windows():
        # Windows Terminal and ANSICON both understand escape sequences
        if os.environ.get("WT_SESSION") or os.environ.get("ANSICON"):
            return True

        try:
            if hasattr(sys, "getwindowsversion"):
                return sys.getwindowsversion().major >= 10
        except AttributeError:
            pass
        return False

    term_env = os.environ.get("TERM")
    if term_env and term_env != "dumb":
        return True

    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
