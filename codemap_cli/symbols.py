"""Extract the symbol under a cursor position."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

SYMBOL_PATTERN = re.compile(r"[\w$.]+")


def symbol_at(text: str, line: int, column: int) -> Optional[str]:
    """Return the identifier (dotted names included) at ``line``/``column``.

    ``line`` is 1-based, ``column`` 0-based, matching editor conventions.
    A cursor right after the last character of a word still selects it.
    """
    lines = text.splitlines()
    if line < 1 or line > len(lines) or column < 0:
        return None
    current = lines[line - 1]
    for match in SYMBOL_PATTERN.finditer(current):
        if match.start() <= column <= match.end():
            symbol = match.group().strip(".")
            return symbol or None
    return None


def symbol_in_file(path: Path, line: int, column: int) -> Optional[str]:
    return symbol_at(path.read_text(encoding="utf-8", errors="replace"), line, column)
