# blueprint_coach/validation/heuristics.py
"""
Shape heuristics for step answers.

Cheap lexical checks that tell a conceptual statement from a task, an open
question from a closed one, and a list from a single item. They never reject
input on their own; a failed check only adds a refinement hint.
"""

import re
from collections.abc import Callable

STOPWORDS = frozenset(
    """
    a an the and or but if then so to of in on at by for with from into onto about as is are was
    were be been being am do does did have has had it its this that these those i me my we our
    you your he she they them their there here what which who whom when where why how not no
    yes just very really also too can could would should will shall may might must ok okay
    """.split()
)

QUESTION_WORDS = (
    "how",
    "why",
    "what",
    "who",
    "when",
    "where",
    "which",
    "to what extent",
    "in what ways",
    "should",
    "could",
    "would",
    "can",
    "is",
    "are",
    "do",
    "does",
)

CLOSED_QUESTION_STARTS = ("is", "are", "do", "does", "did", "can", "will", "was", "were", "has", "have")

ACTION_VERBS = (
    "create",
    "design",
    "solve",
    "build",
    "develop",
    "improve",
    "make",
    "plan",
    "propose",
    "produce",
    "write",
    "launch",
    "organize",
    "present",
    "prototype",
    "investigate",
    "redesign",
    "curate",
    "host",
    "teach",
)

TASK_STARTS = ("create", "build", "make", "design", "write", "students will", "have students", "do ")

_WORD_RE = re.compile(r"[A-Za-z][A-Za-z'\-]*")
_LIST_LINE_RE = re.compile(r"^\s*(?:[-*•+]|\d+[.)]|phase\s*\d+|week\s*\d+|[A-Za-z ]{2,30}:)\s*", re.IGNORECASE)


def words(text: str) -> list[str]:
    return [w.lower() for w in _WORD_RE.findall(text)]


def meaningful_words(text: str) -> list[str]:
    """Alphabetic, non-stopword tokens of two letters or more."""
    return [w for w in words(text) if len(w) >= 2 and w not in STOPWORDS]


def is_conceptual(text: str) -> bool:
    """A short declarative concept: no question, not phrased as a task."""
    lower = text.strip().lower()
    if "?" in lower:
        return False
    if lower.startswith(TASK_STARTS):
        return False
    return len(words(lower)) <= 20


def is_open_question(text: str) -> bool:
    """Question mark or question word, and not a yes/no question."""
    lower = text.strip().lower()
    starts_with_question_word = any(
        lower == qw or lower.startswith(qw + " ") for qw in QUESTION_WORDS
    )
    if "?" not in lower and not starts_with_question_word:
        return False
    first = words(lower)[:1]
    return not (first and first[0] in CLOSED_QUESTION_STARTS)


def is_actionable(text: str) -> bool:
    """Contains an action verb and at least five words."""
    tokens = words(text)
    if len(tokens) < 5:
        return False
    return any(token in ACTION_VERBS or token.rstrip("s") in ACTION_VERBS for token in tokens)


def count_list_items(text: str) -> int:
    """Number of list-like items: marked lines, plain lines, or inline separators."""
    lines = [line for line in text.splitlines() if line.strip()]
    marked = [line for line in lines if _LIST_LINE_RE.match(line)]
    if len(marked) >= 2:
        return len(marked)
    if len(lines) >= 2:
        return len(lines)
    parts = re.split(r",|;|\s+(?:and|then)\s+|->|→|\s>\s", text)
    return len([p for p in parts if p.strip()])


def is_list(text: str) -> bool:
    return count_list_items(text) >= 2


SHAPE_CHECKS: dict[str, Callable[[str], bool]] = {
    "conceptual": is_conceptual,
    "question": is_open_question,
    "actionable": is_actionable,
    "list": is_list,
    "none": lambda text: True,
}


def check_shape(shape: str, text: str) -> bool:
    """Run a named shape check. Unknown names pass."""
    return SHAPE_CHECKS.get(shape, SHAPE_CHECKS["none"])(text)
