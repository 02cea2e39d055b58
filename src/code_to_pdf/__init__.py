"""Render a source tree into paginated, syntax-highlighted PDF or LaTeX documents."""

__version__ = "1.0.0"
