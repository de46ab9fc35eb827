# blueprint_coach/tools/__init__.py
"""Tool layer returning plain-dict responses for the CLI and embedding UIs."""

from .get_blueprint import get_blueprint
from .list_blueprints import list_blueprints

__all__ = ["get_blueprint", "list_blueprints"]
