# blueprint_coach/conversation/context.py
"""
Rolling conversation context.

Keeps a bounded message history and selects the slice worth sending to the
model: pinned messages, the most recent exchanges, and older messages that
match the current stage or action. Everything extracted here is best-effort
and degrades to empty fields.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from blueprint_coach.config.schema import ContextConfig
from blueprint_coach.models.conversation import Message, Role
from blueprint_coach.validation.heuristics import STOPWORDS

logger = logging.getLogger(__name__)

# preference name -> (value when detected, keyword patterns)
PREFERENCE_KEYWORDS: dict[str, tuple[Any, tuple[str, ...]]] = {
    "teaching_style": ("interactive", (r"hands[- ]on", r"interactive", r"experiential")),
    "collaboration": ("collaborative", (r"collaborat\w*", r"teams?", r"groups?", r"partners?")),
    "emphasis": ("creativity", (r"creative", r"creativity", r"art", r"arts", r"music")),
    "tech_integration": (True, (r"technology", r"digital", r"coding", r"apps?", r"online")),
    "community_focus": (True, (r"community", r"local", r"neighbou?rhood", r"civic")),
    "outdoor_learning": (True, (r"outdoors?", r"outside", r"field trips?", r"nature", r"garden")),
}

COMMON_WORDS = frozenset(
    """
    about after again before being could people should students student teacher their there
    these think those would really project projects learning things something because
    """.split()
)


@dataclass
class ContextSummary:
    """Condensed view of the conversation for prompts."""

    key_points: list[str] = field(default_factory=list)
    user_preferences: dict[str, Any] = field(default_factory=dict)
    important_selections: dict[str, str] = field(default_factory=dict)
    conversation_tone: str = "professional"


@dataclass
class RelevantContext:
    """Messages and summary selected for one model request."""

    messages: list[Message]
    summary: ContextSummary
    captured: dict[str, Any] = field(default_factory=dict)


class ContextManager:
    """
    Bounded message history with relevance filtering.

    Example:
        context = ContextManager()
        context.add_message(message)
        relevant = context.get_relevant_context("ideas", "ideation")
    """

    def __init__(self, config: ContextConfig | None = None):
        self.config = config or ContextConfig()
        self._history: list[Message] = []
        self._key_decisions: dict[str, str] = {}
        self._preferences: dict[str, Any] = {}

    @property
    def history(self) -> list[Message]:
        return list(self._history)

    @property
    def key_decisions(self) -> dict[str, str]:
        return dict(self._key_decisions)

    @property
    def preferences(self) -> dict[str, Any]:
        return dict(self._preferences)

    def add_message(self, message: Message) -> None:
        """Append a message, record decisions and preferences, trim if needed."""
        self._history.append(message)
        self._extract(message)
        if len(self._history) > self.config.max_history:
            self._trim()

    def _trim(self) -> None:
        overflow = len(self._history) - self.config.max_history
        if overflow <= 0:
            return
        kept: list[Message] = []
        for message in self._history:
            if overflow > 0 and not message.pinned:
                overflow -= 1
                continue
            kept.append(message)
        logger.debug(f"Trimmed context history to {len(kept)} messages")
        self._history = kept

    def _extract(self, message: Message) -> None:
        step = message.metadata.get("step")
        if message.kind == "decision" and step:
            self._key_decisions[step] = str(message.metadata.get("value_text", message.content))

        if message.role is not Role.USER:
            return
        content = message.content.lower()
        for name, (value, patterns) in PREFERENCE_KEYWORDS.items():
            if any(re.search(rf"\b{pattern}\b", content) for pattern in patterns):
                self._preferences[name] = value

    def get_relevant_context(
        self,
        action: str,
        stage: str | None = None,
        captured: dict[str, Any] | None = None,
    ) -> RelevantContext:
        """
        Select messages for a model request.

        Args:
            action: What the caller is doing ("submit", "refine", "ideas", "help", ...)
            stage: Current stage value, e.g. "ideation"
            captured: Captured fields view to pass through

        Returns:
            RelevantContext with messages in original order
        """
        recent_count = self.config.recent_count
        recent = self._history[-recent_count:] if recent_count else []
        older = self._history[: len(self._history) - len(recent)]

        scored: list[tuple[int, int]] = []
        for index, message in enumerate(older):
            score = self._relevance(message, action, stage)
            if score > 0:
                # recency breaks ties
                scored.append((score * 1000 + index, index))
        scored.sort(reverse=True)
        chosen = {index for _, index in scored[: self.config.max_relevant]}

        selected_ids: set[str] = set()
        messages: list[Message] = []
        for index, message in enumerate(self._history):
            include = message.pinned or index in chosen or index >= len(older)
            if include and message.id not in selected_ids:
                selected_ids.add(message.id)
                messages.append(message)

        return RelevantContext(
            messages=messages,
            summary=self.summary(),
            captured=dict(captured or {}),
        )

    def _relevance(self, message: Message, action: str, stage: str | None) -> int:
        score = 0
        if stage and message.metadata.get("stage") == stage:
            score += 20
        if action == "refine" and message.metadata.get("phase") == "step_confirm":
            score += 30
        if action in ("help", "ideas") and message.role is Role.USER:
            score += 15
        if score and message.kind == "decision":
            score += 20
        return score

    def summary(self) -> ContextSummary:
        themes = self.themes()
        user_messages = sum(1 for m in self._history if m.role is Role.USER)
        tone = "professional"
        if user_messages > 5:
            tone = "collaborative"
        if self._preferences.get("emphasis") == "creativity":
            tone = "creative-collaborative"
        return ContextSummary(
            key_points=[f"Focus on {theme}" for theme in themes],
            user_preferences=dict(self._preferences),
            important_selections=dict(self._key_decisions),
            conversation_tone=tone,
        )

    def themes(self, limit: int = 3) -> list[str]:
        """Long, uncommon words that recur in user messages."""
        counts: Counter[str] = Counter()
        for message in self._history:
            if message.role is not Role.USER:
                continue
            for word in re.findall(r"[a-z][a-z'\-]+", message.content.lower()):
                if len(word) > 5 and word not in STOPWORDS and word not in COMMON_WORDS:
                    counts[word] += 1
        return [
            word
            for word, count in counts.most_common(limit)
            if count >= self.config.theme_min_count
        ]

    def get_formatted_context(self) -> str:
        """Plain-text block describing the context, for prompts and debugging."""
        summary = self.summary()
        lines: list[str] = []
        if summary.important_selections:
            lines.append("Key decisions:")
            lines.extend(f"- {step}: {value}" for step, value in summary.important_selections.items())
        if summary.user_preferences:
            prefs = ", ".join(f"{k}={v}" for k, v in summary.user_preferences.items())
            lines.append(f"Preferences: {prefs}")
        if summary.key_points:
            lines.append(f"Themes: {', '.join(summary.key_points)}")
        lines.append(f"Tone: {summary.conversation_tone}")
        recent = self._history[-self.config.recent_count:] if self.config.recent_count else []
        if recent:
            lines.append("Recent:")
            lines.extend(f"{m.role.value}: {m.content[:200]}" for m in recent)
        return "\n".join(lines)

    def get_context_stats(self) -> dict[str, Any]:
        by_role = Counter(m.role.value for m in self._history)
        return {
            "total_messages": len(self._history),
            "by_role": {role.value: by_role.get(role.value, 0) for role in Role},
            "pinned": sum(1 for m in self._history if m.pinned),
            "key_decisions": len(self._key_decisions),
            "preferences": dict(self._preferences),
            "themes": self.themes(),
        }

    def clear(self) -> None:
        self._history.clear()
        self._key_decisions.clear()
        self._preferences.clear()
