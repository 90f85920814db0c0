"""Command hierarchy groups for the CodeMap CLI.

Provides logical grouping of commands under:
  codemap analyze  — Engine queries rendered as graphs
  codemap config   — Engine configuration
"""

from __future__ import annotations

import typer

# ── Analysis group ───────────────────────────────────────────
analyze_grp = typer.Typer(
    help="🔍 Analysis — call graphs, callers, dependencies, impact and cycles.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_grp = typer.Typer(
    help="⚙️  Configuration — engine JAR, Java runtime and query defaults.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
