"""Locate the engine artifact, the runtime that runs it, and the project source root.

Each lookup walks a prioritised list of candidates; the first one that exists wins.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from . import config
from .errors import EngineNotFoundError, NoSourceRootError

logger = logging.getLogger(__name__)

SOURCE_ROOT_SUFFIXES = ("src/main/java", "src", "")


def jar_candidates(project_base: Path) -> List[Path]:
    jar = Path("codemap-core") / "target" / config.ENGINE_JAR_NAME
    return [
        project_base / jar,
        project_base.parent / jar,
        config.BASE_DIR / config.INSTALLED_JAR_NAME,
    ]


def first_existing(candidates: Sequence[Path]) -> Optional[Path]:
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def resolve_jar_path(project_base: Path, override: Optional[Path] = None) -> Path:
    """Return the engine JAR, preferring an explicit override."""
    if override is not None:
        if override.is_file():
            return override
        raise EngineNotFoundError(
            f"Configured engine JAR not found: {override}. "
            "Fix engine.jar_path or unset it to use the default locations.",
            [str(override)],
        )

    candidates = jar_candidates(project_base)
    found = first_existing(candidates)
    if found is None:
        raise EngineNotFoundError(
            "codemap-core JAR not found. Build the core engine with 'mvn package' "
            "or point engine.jar_path at an existing JAR.",
            candidates,
        )
    logger.debug("Using engine JAR %s", found)
    return found


def resolve_java_path(java_home: Optional[Path] = None) -> Path:
    """Return the java executable: configured home, then $JAVA_HOME, then PATH."""
    candidates: List[Path] = []
    if java_home is not None:
        candidates.append(java_home / "bin" / "java")
    env_home = os.environ.get("JAVA_HOME")
    if env_home:
        candidates.append(Path(env_home) / "bin" / "java")

    found = first_existing(candidates)
    if found is not None:
        return found

    on_path = shutil.which("java")
    if on_path:
        return Path(on_path)

    raise EngineNotFoundError(
        "Java runtime not found. Install a JDK, set JAVA_HOME, or configure engine.java_home.",
        [*(str(c) for c in candidates), "java (PATH)"],
    )


def resolve_source_root(base_path: Path) -> Path:
    """Pick the most specific readable source directory under ``base_path``."""
    candidates = [base_path / suffix if suffix else base_path for suffix in SOURCE_ROOT_SUFFIXES]
    for candidate in candidates:
        if candidate.is_dir() and os.access(candidate, os.R_OK | os.X_OK):
            return candidate.resolve()
    raise NoSourceRootError(str(base_path), candidates)
