# blueprint_coach/validation/sanitize.py
"""
Input sanitization utilities.

Normalizes raw user utterances and validates identifiers coming from the CLI
or tool layer.
"""

import logging
import re

from blueprint_coach.errors import InvalidInput

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_utterance(text: str | None, max_length: int = 10_000) -> str:
    """
    Sanitize a user utterance before validation.

    Strips control characters and surrounding whitespace and truncates to
    max_length. Never raises; None becomes an empty string.

    Args:
        text: Raw text typed by the educator
        max_length: Maximum allowed length (default 10000)

    Returns:
        Cleaned utterance (possibly empty)
    """
    if not text:
        return ""

    cleaned = _CONTROL_CHARS.sub("", text).replace("\r\n", "\n").strip()

    if len(cleaned) > max_length:
        logger.warning(
            f"Utterance truncated from {len(cleaned)} to {max_length} characters"
        )
        cleaned = cleaned[:max_length]

    return cleaned


def sanitize_blueprint_id(blueprint_id: str) -> str:
    """
    Sanitize and validate a blueprint ID.

    Blueprint IDs are 12 lowercase hex characters.

    Args:
        blueprint_id: User-provided blueprint ID

    Returns:
        Validated blueprint ID

    Raises:
        InvalidInput: If the ID format is invalid
    """
    candidate = (blueprint_id or "").strip().lower()
    if not re.fullmatch(r"[0-9a-f]{12}", candidate):
        raise InvalidInput(
            f"Invalid blueprint ID '{blueprint_id}': must be 12 hexadecimal characters"
        )
    return candidate
