"""Visualization surfaces: one render engine plus its in-flight query slot.

Queries on a surface follow last-request-wins: every query takes a
generation token when issued, and a result is only applied if no newer
query was issued in the meantime. Superseded engine runs are not killed;
their results are dropped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from .engine import EngineBridge
from .errors import CodeMapError
from .layout import LayoutAlgorithm
from .models import AnalysisResult
from .render import RenderEngine

logger = logging.getLogger(__name__)


class Surface:
    """A single graph view and the queries that feed it."""

    def __init__(
        self,
        surface_id: str,
        bridge: Optional[EngineBridge] = None,
        layout: LayoutAlgorithm = LayoutAlgorithm.HIERARCHICAL,
        collapsed: bool = False,
    ):
        self.surface_id = surface_id
        self.bridge = bridge
        self.renderer = RenderEngine(layout=layout, collapsed=collapsed)
        self.title = surface_id
        self.last_error: Optional[CodeMapError] = None
        self._pending: Optional[int] = None

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def begin_query(self) -> int:
        token = self.renderer.next_generation()
        self._pending = token
        return token

    def is_current(self, token: int) -> bool:
        return token == self.renderer.latest_generation

    def complete(self, token: int, result: AnalysisResult) -> bool:
        """Apply ``result`` if ``token`` is still the latest query."""
        if not self.is_current(token):
            logger.debug("[%s] discarding superseded result (token %d)", self.surface_id, token)
            return False
        self._pending = None
        applied = self.renderer.replace_graph(result, generation=token)
        if applied:
            self.last_error = None
        return applied

    def fail(self, token: int, error: CodeMapError) -> bool:
        """Record ``error`` for the latest query; the displayed graph is kept."""
        if not self.is_current(token):
            logger.debug("[%s] ignoring failure of superseded query: %s", self.surface_id, error)
            return False
        self._pending = None
        self.last_error = error
        return True

    async def run_query(
        self,
        command: str,
        project_path: Union[str, Path],
        target: Optional[str] = None,
        depth: Optional[int] = None,
    ) -> Optional[AnalysisResult]:
        """Run a query and apply its result unless a newer query superseded it.

        Returns the applied result, or None when the result was stale. Errors
        of the latest query are re-raised; errors of stale queries are only
        logged.
        """
        if self.bridge is None:
            raise RuntimeError(f"Surface '{self.surface_id}' has no engine bridge")

        token = self.begin_query()
        try:
            result = await self.bridge.execute_async(command, project_path, target, depth)
            if not self.complete(token, result):
                return None
        except CodeMapError as exc:
            if self.fail(token, exc):
                raise
            return None
        return result


class SurfaceRegistry:
    """Explicit ownership map from surface id to its ``Surface``."""

    def __init__(self, bridge: Optional[EngineBridge] = None):
        self.bridge = bridge
        self._surfaces: Dict[str, Surface] = {}

    def get_or_create(self, surface_id: str, **kwargs) -> Surface:
        surface = self._surfaces.get(surface_id)
        if surface is None:
            kwargs.setdefault("bridge", self.bridge)
            surface = Surface(surface_id, **kwargs)
            self._surfaces[surface_id] = surface
        return surface

    def get(self, surface_id: str) -> Optional[Surface]:
        return self._surfaces.get(surface_id)

    def close(self, surface_id: str) -> bool:
        return self._surfaces.pop(surface_id, None) is not None

    def __contains__(self, surface_id: object) -> bool:
        return surface_id in self._surfaces

    def __iter__(self) -> Iterator[Surface]:
        return iter(list(self._surfaces.values()))

    def __len__(self) -> int:
        return len(self._surfaces)
