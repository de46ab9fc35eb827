# blueprint_coach/export/__init__.py
"""Blueprint export renderers."""

from .markdown import render_blueprint_markdown

__all__ = ["render_blueprint_markdown"]
