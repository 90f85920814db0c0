"""Pytest configuration and fixtures for CodeMap CLI tests."""

import copy
import json
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from codemap_cli.models import AnalysisResult


SAMPLE_RESULT = {
    "command": "callgraph",
    "target": "com.example.OrderService.placeOrder",
    "timestamp": "2026-01-05T10:00:00Z",
    "analysisTimeMs": 42,
    "stats": {
        "totalClassesParsed": 2,
        "totalMethodsParsed": 3,
        "graphNodes": 5,
        "graphEdges": 4,
    },
    "graph": {
        "nodes": [
            {
                "id": "A",
                "name": "OrderService",
                "qualifiedName": "com.example.OrderService",
                "type": "CLASS",
                "filePath": "/src/com/example/OrderService.java",
                "lineNumber": 3,
                "metadata": {"visibility": "public"},
            },
            {
                "id": "B",
                "name": "placeOrder",
                "qualifiedName": "com.example.OrderService.placeOrder(Order)",
                "type": "METHOD",
                "filePath": "/src/com/example/OrderService.java",
                "lineNumber": 12,
                "metadata": None,
            },
            {
                "id": "C",
                "name": "validate",
                "qualifiedName": "com.example.Validator.validate(Order)",
                "type": "METHOD",
                "filePath": None,
                "lineNumber": None,
            },
            {
                "id": "D",
                "name": "Service",
                "qualifiedName": "com.example.Service",
                "type": "INTERFACE",
            },
            {
                "id": "E",
                "name": "OrderService",
                "qualifiedName": "com.example.OrderService.<init>()",
                "type": "CONSTRUCTOR",
                "filePath": "/src/com/example/OrderService.java",
                "lineNumber": 8,
            },
        ],
        "edges": [
            {"id": "e1", "source": "A", "target": "B", "type": "CONTAINS"},
            {"id": "e2", "source": "B", "target": "C", "type": "CALLS"},
            {"id": "e3", "source": "A", "target": "D", "type": "IMPLEMENTS", "metadata": None},
            {"id": "e4", "source": "A", "target": "E", "type": "CONTAINS"},
        ],
    },
}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch) -> Path:
    """Point CodeMap's home directory and config file at a temp location."""
    home = temp_dir / "codemap_home"
    monkeypatch.setattr("codemap_cli.config.BASE_DIR", home)
    monkeypatch.setattr("codemap_cli.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.delenv("CODEMAP_JAR", raising=False)
    monkeypatch.delenv("JAVA_HOME", raising=False)
    return home


@pytest.fixture
def sample_result_dict() -> dict:
    """Engine output as a Python dict (fresh copy per test)."""
    return copy.deepcopy(SAMPLE_RESULT)


@pytest.fixture
def sample_result_json(sample_result_dict: dict) -> str:
    return json.dumps(sample_result_dict)


@pytest.fixture
def sample_result(sample_result_dict: dict) -> AnalysisResult:
    return AnalysisResult.model_validate(sample_result_dict)


@pytest.fixture
def make_result() -> Callable[..., AnalysisResult]:
    """Build small results: ``make_result(nodes=[...], edges=[...], target="X")``."""

    def _make(nodes=(), edges=(), command="callgraph", target="T", stats=None, analysis_time_ms=1):
        return AnalysisResult.model_validate({
            "command": command,
            "target": target,
            "analysisTimeMs": analysis_time_ms,
            "stats": stats,
            "graph": {"nodes": list(nodes), "edges": list(edges)},
        })

    return _make


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """A Maven-style project with a source root and a built engine JAR."""
    root = temp_dir / "shop"
    (root / "src" / "main" / "java").mkdir(parents=True)
    jar = root / "codemap-core" / "target" / "codemap-core-1.0.0-SNAPSHOT.jar"
    jar.parent.mkdir(parents=True)
    jar.write_bytes(b"PK")
    return root


def _bytes(data) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


@pytest.fixture
def fake_run(monkeypatch) -> Callable[..., list]:
    """Replace ``subprocess.run`` in the engine with a canned completed process.

    Returns a function ``configure(returncode, stdout, stderr)`` (text or raw bytes)
    that yields the list where every invocation's argv and kwargs are recorded.
    """

    def configure(returncode: int = 0, stdout=b"", stderr=b"", raises: BaseException = None):
        calls = []

        def _run(args, **kwargs):
            calls.append((list(args), kwargs))
            if raises is not None:
                raise raises
            return subprocess.CompletedProcess(args, returncode, stdout=_bytes(stdout), stderr=_bytes(stderr))

        monkeypatch.setattr("codemap_cli.engine.subprocess.run", _run)
        return calls

    return configure


class FakeProcess:
    """Stand-in for ``asyncio.subprocess.Process``."""

    def __init__(self, returncode: int, stdout, stderr):
        self.returncode = returncode
        self._stdout = _bytes(stdout)
        self._stderr = _bytes(stderr)

    async def communicate(self):
        return self._stdout, self._stderr


@pytest.fixture
def fake_exec(monkeypatch) -> Callable[..., list]:
    """Replace ``asyncio.create_subprocess_exec`` in the engine with a fake process."""

    def configure(returncode: int = 0, stdout=b"", stderr=b"", raises: BaseException = None):
        calls = []

        async def _exec(*args, **kwargs):
            calls.append((list(args), kwargs))
            if raises is not None:
                raise raises
            return FakeProcess(returncode, stdout, stderr)

        monkeypatch.setattr("codemap_cli.engine.asyncio.create_subprocess_exec", _exec)
        return calls

    return configure
