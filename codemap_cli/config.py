"""Configuration paths and engine defaults for CodeMap."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(os.environ.get("CODEMAP_HOME", str(Path.home() / ".codemap"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

ENGINE_JAR_NAME = "codemap-core-1.0.0-SNAPSHOT.jar"
INSTALLED_JAR_NAME = "codemap-core.jar"
DEFAULT_DEPTH = 5

# Queries the engine understands; all but circular-deps need a target symbol.
COMMANDS = ("callgraph", "incoming-calls", "dependencies", "impact", "circular-deps")
UNTARGETED_COMMANDS = frozenset({"circular-deps"})


def ensure_base_dirs() -> None:
    """Create the CodeMap home directory if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
