"""
AutoSync Path Helpers.

Canonical path identity, depth and display helpers.
Requires Python 3.11+.
"""

import os
from pathlib import Path


def canonical(path: Path | str) -> Path:
    """
    Return the identity used for a path in pending sets.

    Makes the path absolute and collapses ``.``/``..`` segments and
    duplicate separators without touching the filesystem, so deleted
    paths canonicalize the same way as existing ones.
    """
    return Path(os.path.normpath(os.path.abspath(os.fspath(path))))


def depth(path: Path | str) -> int:
    """Count separator-delimited segments in a path."""
    return len(Path(path).parts)


def basename(path: Path | str) -> str:
    """Final path component."""
    return Path(path).name


def display(path: Path | str) -> str:
    """
    Human friendly rendering of a path.

    The user's home directory is shortened to ``~``.
    """
    text = os.fspath(path)
    home = os.path.expanduser("~")
    if home and home != os.sep and (text == home or text.startswith(home + os.sep)):
        return "~" + text[len(home):]
    return text
