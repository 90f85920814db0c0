"""CodeMap CLI: call graph and dependency views over an external analysis engine."""

__version__ = "0.3.0"
