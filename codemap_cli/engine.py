"""Bridge to the CodeMap analysis engine.

The engine is a Java program run as a subprocess. Every query spawns one
process with discrete arguments; stdout carries exactly one JSON document
on success, stderr carries diagnostics.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from . import config
from .config_manager import EngineConfig, load_engine_config
from .errors import DecodeError, EngineExecutionError, EngineNotFoundError, InvalidQueryError
from .models import AnalysisResult
from .resolver import resolve_jar_path, resolve_java_path

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Exit code reported when the engine is abandoned after a timeout.
TIMEOUT_EXIT_CODE = -1


def _decode(data: Optional[bytes]) -> str:
    # Engine output is UTF-8; undecodable bytes are replaced.
    return data.decode("utf-8", errors="replace") if data else ""


def decode_result(text: str) -> AnalysisResult:
    """Parse engine stdout into an ``AnalysisResult``.

    Raises ``DecodeError`` for non-JSON or schema-mismatched output and lets
    ``GraphIntegrityError`` through for graphs with dangling edges.
    """
    body = text.strip()
    if not body:
        raise DecodeError("Engine produced no output", text)
    try:
        result = AnalysisResult.model_validate_json(body)
    except ValidationError as exc:
        # Non-JSON input also surfaces as a ValidationError (json_invalid).
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            raise DecodeError(f"Failed to parse engine output: {exc.errors()[0].get('msg')}", text) from exc
        raise DecodeError(f"Engine output does not match the result schema: {exc}", text) from exc

    mismatch = result.stats_mismatch()
    if mismatch:
        logger.warning("Engine stats disagree with graph: %s", mismatch)
    return result


def validate_query(command: str, target: Optional[str], depth: Optional[int]) -> None:
    if command not in config.COMMANDS:
        raise InvalidQueryError(
            f"Unknown command '{command}'. Available: {', '.join(config.COMMANDS)}"
        )
    if command not in config.UNTARGETED_COMMANDS and not target:
        raise InvalidQueryError(f"A target symbol is required for command: {command}")
    if depth is not None and (isinstance(depth, bool) or not isinstance(depth, int) or depth < 1):
        raise InvalidQueryError(f"Depth must be a positive integer, got {depth!r}")


class EngineBridge:
    """Runs engine queries and decodes their results."""

    def __init__(
        self,
        jar_path: PathLike,
        java_path: PathLike = "java",
        default_depth: int = config.DEFAULT_DEPTH,
        timeout: Optional[float] = None,
    ):
        self.jar_path = Path(jar_path)
        self.java_path = Path(java_path)
        self.default_depth = default_depth
        self.timeout = timeout

    @classmethod
    def from_config(cls, project_base: Path, engine_config: Optional[EngineConfig] = None) -> "EngineBridge":
        """Resolve engine locations for ``project_base`` from config and probing."""
        cfg = engine_config or load_engine_config()
        return cls(
            jar_path=resolve_jar_path(project_base, cfg.jar_path),
            java_path=resolve_java_path(cfg.java_home),
            default_depth=cfg.default_depth,
            timeout=cfg.timeout,
        )

    # ── command line ──────────────────────────────────────────

    def build_command(
        self,
        command: str,
        project_path: PathLike,
        target: Optional[str] = None,
        depth: Optional[int] = None,
    ) -> List[str]:
        validate_query(command, target, depth)
        args = [
            str(self.java_path), "-jar", str(self.jar_path),
            "--project", str(project_path),
            "--command", command,
        ]
        if target:
            args += ["--target", target]
        if command == "callgraph":
            args += ["--depth", str(depth if depth is not None else self.default_depth)]
        return args

    def _check_project(self, project_path: PathLike) -> Path:
        path = Path(project_path)
        if not path.is_dir():
            raise InvalidQueryError(f"Project path is not a directory: {path}")
        return path

    def _finish(self, returncode: int, stdout: str, stderr: str) -> AnalysisResult:
        if returncode != 0:
            logger.error("Engine failed (code %s): %s", returncode, stderr.strip())
            raise EngineExecutionError(returncode, stderr)
        if stderr.strip():
            logger.info("Engine logs: %s", stderr.strip())
        return decode_result(stdout)

    def _not_found(self, exc: OSError) -> EngineNotFoundError:
        return EngineNotFoundError(
            f"Failed to start engine: {exc}. Ensure Java is installed and the "
            f"codemap-core JAR path is configured (currently {self.jar_path}).",
            [str(self.java_path), str(self.jar_path)],
        )

    # ── execution ─────────────────────────────────────────────

    def execute(
        self,
        command: str,
        project_path: PathLike,
        target: Optional[str] = None,
        depth: Optional[int] = None,
    ) -> AnalysisResult:
        """Run one query and block until the engine exits."""
        path = self._check_project(project_path)
        args = self.build_command(command, path, target, depth)
        logger.debug("Executing: %s", args)

        try:
            proc = subprocess.run(
                args,
                cwd=str(path),
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = _decode(exc.stderr)
            raise EngineExecutionError(
                TIMEOUT_EXIT_CODE,
                stderr,
                f"Engine did not finish within {self.timeout:g}s",
            ) from exc
        except OSError as exc:
            raise self._not_found(exc) from exc

        return self._finish(proc.returncode, _decode(proc.stdout), _decode(proc.stderr))

    async def execute_async(
        self,
        command: str,
        project_path: PathLike,
        target: Optional[str] = None,
        depth: Optional[int] = None,
    ) -> AnalysisResult:
        """Run one query without blocking the event loop."""
        path = self._check_project(project_path)
        args = self.build_command(command, path, target, depth)
        logger.debug("Executing (async): %s", args)

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                cwd=str(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise self._not_found(exc) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            if proc.returncode is None:
                proc.kill()
            await proc.wait()
            raise EngineExecutionError(
                TIMEOUT_EXIT_CODE,
                "",
                f"Engine did not finish within {self.timeout:g}s",
            ) from exc

        return self._finish(proc.returncode, _decode(stdout), _decode(stderr))

    # ── query shortcuts ───────────────────────────────────────

    def get_call_graph(self, project_path: PathLike, method: str, depth: Optional[int] = None) -> AnalysisResult:
        return self.execute("callgraph", project_path, method, depth)

    def get_incoming_calls(self, project_path: PathLike, method: str) -> AnalysisResult:
        return self.execute("incoming-calls", project_path, method)

    def get_class_dependencies(self, project_path: PathLike, class_name: str) -> AnalysisResult:
        return self.execute("dependencies", project_path, class_name)

    def get_impact_analysis(self, project_path: PathLike, class_name: str) -> AnalysisResult:
        return self.execute("impact", project_path, class_name)

    def detect_circular_dependencies(self, project_path: PathLike) -> AnalysisResult:
        return self.execute("circular-deps", project_path)
