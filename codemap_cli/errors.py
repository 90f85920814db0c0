"""Error taxonomy for engine queries and graph installation."""

from __future__ import annotations

from typing import Iterable, List, Optional


class CodeMapError(Exception):
    """Base class for every failure surfaced to the user."""


class InvalidQueryError(CodeMapError):
    """The query itself is malformed (unknown command, missing target, bad depth)."""


class EngineNotFoundError(CodeMapError):
    """The engine artifact or the runtime that executes it could not be located."""

    def __init__(self, message: str, candidates: Iterable[str] = ()):
        self.candidates: List[str] = [str(c) for c in candidates]
        super().__init__(message)


class NoSourceRootError(CodeMapError):
    """No plausible project source root exists under the base path."""

    def __init__(self, base_path: str, candidates: Iterable[str] = ()):
        self.base_path = base_path
        self.candidates: List[str] = [str(c) for c in candidates]
        tried = ", ".join(self.candidates) or base_path
        super().__init__(f"No source root found under '{base_path}' (tried: {tried})")


class EngineExecutionError(CodeMapError):
    """The engine ran but exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str, message: Optional[str] = None):
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.strip() or "no diagnostic output"
        super().__init__(message or f"Engine exited with code {exit_code}: {detail}")


class DecodeError(CodeMapError):
    """Engine output did not match the AnalysisResult contract."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class GraphIntegrityError(CodeMapError):
    """A graph references node ids it does not contain, or repeats an id."""

    def __init__(self, message: str, missing: Iterable[str] = ()):
        self.missing: List[str] = sorted(set(missing))
        super().__init__(message)
