# blueprint_coach/__main__.py
"""Entry point for `python -m blueprint_coach`."""

from blueprint_coach.cli import app

if __name__ == "__main__":
    app()
