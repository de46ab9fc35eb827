# blueprint_coach/__init__.py
"""Conversational coach for designing project-based-learning blueprints."""

__version__ = "0.3.0"
