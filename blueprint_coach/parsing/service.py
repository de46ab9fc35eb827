# blueprint_coach/parsing/service.py
"""
Content parsing service.

Turns free-form AI or educator text into the structured records a step
expects. Each parse kind has an ordered list of format strategies; the first
one that yields enough items wins. parse() is total: it never raises for any
text input and never returns an empty item list.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from blueprint_coach.parsing.json_extract import extract_json
from blueprint_coach.parsing.records import (
    PLACEHOLDER_PREFIX,
    ActivityItem,
    Confidence,
    ImpactData,
    MilestoneItem,
    ParsedContent,
    ParseKind,
    PhaseItem,
    ResourceItem,
    RubricCriterion,
)

if TYPE_CHECKING:
    from blueprint_coach.config.schema import ParsingConfig

logger = logging.getLogger(__name__)

BULLET_RE = re.compile(r"^\s*[-*•+]\s+(.+)$")
NUMBERED_RE = re.compile(r"^\s*(\d+)[.)]\s+(.+)$")
PHASE_HEADER_RE = re.compile(r"^\s*(?:phase|stage)\s*(\d+)\s*[:.)\-–—]\s*(.+)$", re.IGNORECASE)
WEEK_LABEL_RE = re.compile(
    r"^\s*(?:[-*•+]\s*)?week\s*(\d+)\s*[:.)\-–—]\s*(.+)$", re.IGNORECASE
)
WEEK_MENTION_RE = re.compile(r"\bweek\s*(\d+)\b", re.IGNORECASE)
DURATION_RE = re.compile(
    r"\b(\d+(?:\s*[-–]\s*\d+)?)\s*(minutes?|mins?|hours?|days?|weeks?|months?|sessions?|class periods?)\b",
    re.IGNORECASE,
)
URL_RE = re.compile(r"https?://\S+")
LABEL_RE = re.compile(r"^\s*(?:[-*•+]\s*)?([A-Za-z][A-Za-z /&]{1,30}):\s*(.*)$")
WEIGHT_RE = re.compile(r"\(?\s*(\d{1,3})\s*%\s*\)?")
TITLE_SPLIT_RE = re.compile(r"\s*(?::|\s[-–—]\s)\s*")

_ACTION_VERBS = (
    "explore",
    "create",
    "build",
    "design",
    "research",
    "analyze",
    "present",
    "collaborate",
    "interview",
    "investigate",
    "prototype",
    "test",
    "share",
    "reflect",
)

_DEFAULT_CRITERIA = (
    ("Content Understanding", "Demonstrates knowledge of the subject"),
    ("Inquiry & Critical Thinking", "Investigates questions and weighs evidence"),
    ("Collaboration", "Works productively with others"),
    ("Communication", "Shares ideas clearly with an authentic audience"),
)

_AUDIENCE_RE = re.compile(
    r"\b((?:local |city |town |school |community )?"
    r"(?:council|community|parents|families|school board|board|experts?|leaders|residents|"
    r"officials|museum|public|younger students|peers|stakeholders|business owners))\b",
    re.IGNORECASE,
)


@dataclass
class ParsingOptions:
    """
    Per-call parsing configuration.

    Attributes:
        min_items: Minimum items per kind for a strategy to win
        strip_markdown: Remove markdown syntax before strategy matching
        max_input_chars: Longer input is truncated before parsing
    """

    min_items: dict[ParseKind, int] = field(default_factory=dict)
    strip_markdown: bool = True
    max_input_chars: int = 10_000

    def min_for(self, kind: ParseKind) -> int:
        return max(1, self.min_items.get(kind, 1))

    @classmethod
    def from_config(cls, config: "ParsingConfig") -> "ParsingOptions":
        return cls(
            min_items={
                ParseKind.PHASES: config.min_phases,
                ParseKind.ACTIVITIES: config.min_activities,
                ParseKind.RESOURCES: config.min_resources,
                ParseKind.MILESTONES: config.min_milestones,
                ParseKind.RUBRIC_CRITERIA: config.min_rubric_criteria,
                ParseKind.IMPACT_DATA: config.min_impact_data,
            },
            strip_markdown=config.strip_markdown,
            max_input_chars=config.max_input_chars,
        )


# (format name, strategy(cleaned_text, raw_text) -> items, confidence on success)
Strategy = tuple[str, Callable[[str, str], list[BaseModel]], Confidence]


def strip_markdown(text: str) -> str:
    """Remove markdown syntax while keeping list markers and table pipes."""
    lines = []
    for line in text.splitlines():
        if re.match(r"^\s*```", line):
            continue
        # Horizontal rules
        if re.match(r"^\s*([-*_])(\s*\1){2,}\s*$", line):
            continue
        line = re.sub(r"^(\s*)#{1,6}\s*", r"\1", line)
        line = re.sub(r"^(\s*)>\s?", r"\1", line)
        # "* item" bullets become "- item" before emphasis markers are removed
        line = re.sub(r"^(\s*)\*\s+", r"\1- ", line)
        line = re.sub(r"\[([^\]]+)\]\((https?://[^)]+)\)", r"\1 (\2)", line)
        line = line.replace("**", "").replace("__", "")
        line = re.sub(r"(?<![\w*])\*(?!\s)([^*]+?)\*(?!\w)", r"\1", line)
        line = re.sub(r"(?<!\w)_(?!\s)([^_]+?)_(?!\w)", r"\1", line)
        line = line.replace("`", "")
        lines.append(line.rstrip())
    return "\n".join(lines)


def extract_duration(text: str) -> str | None:
    match = DURATION_RE.search(text)
    return match.group(0) if match else None


def title_from(text: str, max_words: int = 6, max_chars: int = 60) -> str:
    """Short title from the first sentence of a longer text."""
    first = re.split(r"(?<=[.!?])\s", text.strip(), maxsplit=1)[0]
    words = first.split()
    title = " ".join(words[:max_words]).rstrip(".,;:")
    if len(title) > max_chars:
        title = title[: max_chars - 3].rstrip() + "..."
    return title


def split_title(text: str) -> tuple[str, str]:
    """Split "Title: description" or "Title - description" into its parts."""
    parts = TITLE_SPLIT_RE.split(text.strip(), maxsplit=1)
    if len(parts) == 2 and parts[0] and len(parts[0]) <= 80:
        return parts[0].strip(), parts[1].strip()
    return title_from(text), text.strip()


def categorize_activity(text: str) -> str:
    lower = text.lower()
    if any(w in lower for w in ("research", "explore", "investigate", "observe", "read")):
        return "exploration"
    if any(w in lower for w in ("create", "build", "design", "prototype", "make", "draft")):
        return "creation"
    if any(w in lower for w in ("collaborate", "team", "group", "partner", "peer")):
        return "collaboration"
    if any(w in lower for w in ("present", "share", "demonstrate", "exhibit", "pitch")):
        return "presentation"
    return "exploration"


def categorize_resource(text: str) -> str:
    lower = text.lower()
    if any(w in lower for w in ("youtube", "video", "documentary", "film", "podcast")):
        return "video"
    if any(w in lower for w in ("expert", "guest", "speaker", "interview", "mentor", "scientist", "engineer", "architect")):
        return "expert"
    if any(w in lower for w in ("museum", "park", "field trip", "site visit", "library", "gallery", "center")):
        return "location"
    if any(w in lower for w in ("article", "book", "reading", "text", "report", "journal", "paper")):
        return "article"
    if any(w in lower for w in ("app", "software", "tool", "kit", "website", "platform", "spreadsheet")):
        return "tool"
    return "other"


def _action_phrases(text: str) -> list[str]:
    words = text.split()
    lowered = [w.lower().strip(".,;:") for w in words]
    phrases = []
    for verb in _ACTION_VERBS:
        if verb in lowered:
            idx = lowered.index(verb)
            phrases.append(" ".join(words[idx : idx + 4]).rstrip(".,;:"))
    return phrases


def _bullet_lines(text: str) -> list[str]:
    return [m.group(1).strip() for line in text.splitlines() if (m := BULLET_RE.match(line))]


def _numbered_lines(text: str) -> list[str]:
    return [m.group(2).strip() for line in text.splitlines() if (m := NUMBERED_RE.match(line))]


def _plain_lines(text: str) -> list[str]:
    """Non-empty lines with any leading bullet or number marker removed."""
    lines = []
    for line in text.splitlines():
        stripped = re.sub(r"^\s*(?:[-*•+]|\d+[.)])\s+", "", line).strip()
        if stripped:
            lines.append(stripped)
    return lines


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for key in ("name", "title", "description", "text"):
            if isinstance(value.get(key), str):
                return value[key].strip()
    return str(value).strip()


def _json_list(raw_text: str, *keys: str) -> list[Any]:
    """Find a JSON list under one of `keys` (possibly nested one level)."""
    if "{" not in raw_text and "[" not in raw_text:
        return []
    data = extract_json(raw_text, keys)
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            for inner in keys:
                if isinstance(value.get(inner), list):
                    return value[inner]
    return []


def _build(model: type[BaseModel], **fields: Any) -> BaseModel | None:
    try:
        return model(**fields)
    except ValidationError as e:
        logger.debug(f"Discarded malformed {model.__name__}: {e.error_count()} error(s)")
        return None


class ContentParsingService:
    """
    Parses semi-structured text into typed records with fallback strategies.

    Example:
        service = ContentParsingService()
        result = service.parse("phases", "Phase 1: Launch\\n- Research\\n- Interview")
        # result.items[0].name == "Launch", result.confidence == "high"
    """

    def __init__(self, options: ParsingOptions | None = None):
        self.options = options or ParsingOptions()
        self._strategies: dict[ParseKind, list[Strategy]] = {
            ParseKind.PHASES: [
                ("json", self._phases_json, "high"),
                ("phase-with-bullets", self._phases_headed, "high"),
                ("numbered-list", self._phases_numbered, "high"),
                ("line-delimited", self._phases_lines, "high"),
                ("paragraph", self._phases_paragraphs, "medium"),
                ("single-phase", self._phases_single, "medium"),
            ],
            ParseKind.ACTIVITIES: [
                ("json", self._activities_json, "high"),
                ("bullet-list", lambda text, raw: self._activities_from(_bullet_lines(text)), "high"),
                ("numbered-list", lambda text, raw: self._activities_from(_numbered_lines(text)), "high"),
                ("sentences", self._activities_sentences, "medium"),
            ],
            ParseKind.RESOURCES: [
                ("json", self._resources_json, "high"),
                ("bullet-list", lambda text, raw: self._resources_from(_bullet_lines(text)), "high"),
                ("numbered-list", lambda text, raw: self._resources_from(_numbered_lines(text)), "high"),
                ("comma-separated", self._resources_delimited, "medium"),
            ],
            ParseKind.MILESTONES: [
                ("json", self._milestones_json, "high"),
                ("week-labeled", self._milestones_weeks, "high"),
                ("bullet-list", lambda text, raw: self._milestones_from(_bullet_lines(text)), "high"),
                ("numbered-list", lambda text, raw: self._milestones_from(_numbered_lines(text)), "high"),
                ("line-delimited", self._milestones_lines, "medium"),
            ],
            ParseKind.RUBRIC_CRITERIA: [
                ("json", self._rubric_json, "high"),
                ("table", self._rubric_table, "high"),
                ("bullet-list", lambda text, raw: self._criteria_from(_bullet_lines(text)), "high"),
                ("numbered-list", lambda text, raw: self._criteria_from(_numbered_lines(text)), "high"),
            ],
            ParseKind.IMPACT_DATA: [
                ("json", self._impact_json, "high"),
                ("labeled-fields", self._impact_labeled, "high"),
                ("prose", self._impact_prose, "medium"),
            ],
        }

    def parse(
        self,
        kind: ParseKind | str,
        raw_text: str,
        options: ParsingOptions | None = None,
    ) -> ParsedContent:
        """
        Parse text into records of the given kind.

        Args:
            kind: ParseKind or its string value ("phases", "rubric-criteria", ...)
            raw_text: AI or user text
            options: Overrides the service's default options

        Returns:
            ParsedContent with at least one item

        Raises:
            ValueError: If kind is not a known parse kind
        """
        kind = ParseKind(kind)
        options = options or self.options
        warnings: list[str] = []

        text = raw_text if isinstance(raw_text, str) else ("" if raw_text is None else str(raw_text))
        if len(text) > options.max_input_chars:
            warnings.append(
                f"Input truncated from {len(text)} to {options.max_input_chars} characters"
            )
            text = text[: options.max_input_chars]

        cleaned = (strip_markdown(text) if options.strip_markdown else text).strip()
        minimum = options.min_for(kind)

        if not cleaned:
            warnings.append("No content to parse; added an editable placeholder")
            return ParsedContent(
                items=[self._placeholder(kind, 1)],
                confidence="low",
                format="placeholder",
                warnings=warnings,
            )

        best: list[BaseModel] = []
        best_format: str | None = None
        for name, strategy, confidence in self._strategies[kind]:
            try:
                items = [item for item in strategy(cleaned, text) if item is not None]
            except Exception as e:
                logger.debug(f"{kind.value} strategy '{name}' failed: {e}")
                continue

            if len(items) >= minimum:
                logger.debug(f"Parsed {len(items)} {kind.value} via '{name}' ({confidence})")
                return ParsedContent(items=items, confidence=confidence, format=name, warnings=warnings)
            if len(items) > len(best):
                best, best_format = items, name

        padded = list(best)
        while len(padded) < minimum:
            padded.append(self._placeholder(kind, len(padded) + 1))
        warnings.append(
            f"Found {len(best)} of {minimum} expected {kind.value}; added editable placeholders"
        )
        logger.info(f"Low-confidence {kind.value} parse ({len(best)}/{minimum} items)")
        return ParsedContent(
            items=padded,
            confidence="low",
            format=f"{best_format}+placeholder" if best_format else "placeholder",
            warnings=warnings,
        )

    def clean_text(self, text: str) -> str:
        """Markdown-stripped, whitespace-collapsed text for free-text steps."""
        if not text:
            return ""
        text = text[: self.options.max_input_chars]
        cleaned = strip_markdown(text) if self.options.strip_markdown else text
        cleaned = re.sub(r"\s+", " ", cleaned).strip()
        if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
            cleaned = cleaned[1:-1].strip()
        return cleaned

    def parse_options(self, text: str, limit: int = 3) -> list[str]:
        """Extract short options (bullets, numbered items, or lines) from text."""
        if not text:
            return []
        cleaned = strip_markdown(text[: self.options.max_input_chars])
        options = _bullet_lines(cleaned) or _numbered_lines(cleaned)
        if not options:
            options = [line for line in _plain_lines(cleaned) if len(line) <= 200]
        return [o.strip().strip("\"'") for o in options if o.strip()][:limit]

    # ------------------------------------------------------------------
    # Placeholders
    # ------------------------------------------------------------------

    def _placeholder(self, kind: ParseKind, n: int) -> BaseModel:
        if kind is ParseKind.PHASES:
            return PhaseItem(
                name=f"{PLACEHOLDER_PREFIX} Phase {n}",
                goal="Describe what students accomplish in this phase",
            )
        if kind is ParseKind.ACTIVITIES:
            return ActivityItem(
                title=f"{PLACEHOLDER_PREFIX} Activity {n}",
                description="Describe a learning activity",
            )
        if kind is ParseKind.RESOURCES:
            return ResourceItem(
                name=f"{PLACEHOLDER_PREFIX} Resource {n}",
                description="Add an expert, text, tool, or place",
            )
        if kind is ParseKind.MILESTONES:
            return MilestoneItem(
                name=f"{PLACEHOLDER_PREFIX} Milestone {n}",
                description="Describe the evidence of progress",
            )
        if kind is ParseKind.RUBRIC_CRITERIA:
            name, description = _DEFAULT_CRITERIA[(n - 1) % len(_DEFAULT_CRITERIA)]
            return RubricCriterion(
                name=f"{PLACEHOLDER_PREFIX} {name}", description=description, weight=25
            )
        return ImpactData(
            audience=f"{PLACEHOLDER_PREFIX} Authentic audience",
            method="Describe how students share their work",
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _phase_from_json(self, entry: Any) -> BaseModel | None:
        if isinstance(entry, str):
            return _build(PhaseItem, name=entry.strip()) if entry.strip() else None
        if not isinstance(entry, dict):
            return None
        activities = entry.get("activities") or []
        if isinstance(activities, str):
            activities = [a.strip() for a in activities.split(",") if a.strip()]
        return _build(
            PhaseItem,
            name=_as_str(entry.get("name") or entry.get("title")) or "Unnamed Phase",
            goal=_as_str(entry.get("goal") or entry.get("focus") or entry.get("description")),
            activities=[_as_str(a) for a in activities if _as_str(a)],
            duration=_as_str(entry.get("duration") or entry.get("timeframe")) or None,
        )

    def _phases_json(self, text: str, raw: str) -> list[BaseModel]:
        return [self._phase_from_json(e) for e in _json_list(raw, "phases", "journey")]

    def _phases_headed(self, text: str, raw: str) -> list[BaseModel]:
        phases: list[PhaseItem] = []
        current: PhaseItem | None = None
        for line in text.splitlines():
            header = PHASE_HEADER_RE.match(line)
            if header:
                title = header.group(2).strip()
                current = PhaseItem(name=title, duration=extract_duration(title))
                phases.append(current)
                continue
            if current is None or not line.strip():
                continue
            bullet = BULLET_RE.match(line) or NUMBERED_RE.match(line)
            content = (bullet.group(bullet.lastindex) if bullet else line).strip()
            label = LABEL_RE.match(content)
            key = label.group(1).strip().lower() if label else ""
            if key in ("focus", "goal", "goals", "objective", "description", "purpose"):
                current.goal = label.group(2).strip()
            elif key in ("activities", "activity"):
                current.activities.extend(
                    a.strip() for a in label.group(2).split(",") if a.strip()
                )
            elif key in ("duration", "timeframe", "time"):
                current.duration = label.group(2).strip() or current.duration
            elif bullet:
                current.activities.append(content)
            elif not current.goal:
                current.goal = content
            else:
                current.goal = f"{current.goal} {content}"
        return phases

    def _phases_numbered(self, text: str, raw: str) -> list[BaseModel]:
        phases: list[PhaseItem] = []
        for line in text.splitlines():
            numbered = NUMBERED_RE.match(line)
            if numbered:
                title, description = split_title(numbered.group(2))
                if description == numbered.group(2).strip():
                    description = ""
                phases.append(
                    PhaseItem(
                        name=title,
                        goal=description,
                        activities=_action_phrases(description),
                        duration=extract_duration(numbered.group(2)),
                    )
                )
                continue
            bullet = BULLET_RE.match(line)
            if bullet and phases:
                phases[-1].activities.append(bullet.group(1).strip())
        return phases

    def _phases_lines(self, text: str, raw: str) -> list[BaseModel]:
        lines = _plain_lines(text)
        if len(lines) < 2 or any(len(line) > 120 for line in lines):
            return []
        phases = []
        for line in lines:
            title, description = split_title(line)
            goal = "" if description == line else description
            phases.append(PhaseItem(name=title, goal=goal, duration=extract_duration(line)))
        return phases

    def _phases_paragraphs(self, text: str, raw: str) -> list[BaseModel]:
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if len(p.strip()) > 20]
        return [
            PhaseItem(
                name=title_from(p),
                goal=" ".join(p.split()),
                activities=_action_phrases(p),
                duration=extract_duration(p),
            )
            for p in paragraphs
        ]

    def _phases_single(self, text: str, raw: str) -> list[BaseModel]:
        flat = " ".join(text.split())
        return [
            PhaseItem(
                name=title_from(flat) or "Project Phase",
                goal=flat[:500],
                activities=_action_phrases(flat),
                duration=extract_duration(flat),
            )
        ]

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def _activities_json(self, text: str, raw: str) -> list[BaseModel]:
        items = []
        for entry in _json_list(raw, "activities"):
            if isinstance(entry, dict):
                description = _as_str(entry.get("description"))
                title = _as_str(entry.get("title") or entry.get("name")) or title_from(description)
                items.append(
                    _build(
                        ActivityItem,
                        title=title or "Activity",
                        description=description,
                        type=categorize_activity(f"{title} {description}"),
                        duration=_as_str(entry.get("duration")) or None,
                        phase=_as_str(entry.get("phase") or entry.get("phaseId")) or None,
                    )
                )
            elif _as_str(entry):
                items.extend(self._activities_from([_as_str(entry)]))
        return items

    def _activities_from(self, lines: list[str]) -> list[BaseModel]:
        activities = []
        for line in lines:
            if "milestone" in line.lower():
                continue
            title, description = split_title(line)
            activities.append(
                ActivityItem(
                    title=title,
                    description=description,
                    type=categorize_activity(line),
                    duration=extract_duration(line),
                )
            )
        return activities

    def _activities_sentences(self, text: str, raw: str) -> list[BaseModel]:
        sentences = [s.strip() for s in re.split(r"[.!?]+|\n", text) if len(s.strip()) > 10]
        return self._activities_from(sentences[:8])

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _resources_json(self, text: str, raw: str) -> list[BaseModel]:
        items = []
        for entry in _json_list(raw, "resources"):
            if isinstance(entry, dict):
                name = _as_str(entry.get("name") or entry.get("title"))
                description = _as_str(entry.get("description"))
                raw_type = _as_str(entry.get("type")).lower()
                items.append(
                    _build(
                        ResourceItem,
                        name=name or title_from(description) or "Resource",
                        type=raw_type if raw_type in ("article", "video", "tool", "expert", "location", "other")
                        else categorize_resource(f"{name} {description}"),
                        description=description,
                        url=_as_str(entry.get("url")) or None,
                    )
                )
            elif _as_str(entry):
                items.extend(self._resources_from([_as_str(entry)]))
        return items

    def _resources_from(self, lines: list[str]) -> list[BaseModel]:
        resources = []
        for line in lines:
            url_match = URL_RE.search(line)
            url = url_match.group(0).rstrip(").,") if url_match else None
            without_url = URL_RE.sub("", line).replace("()", "").strip(" -–—:")
            name, description = split_title(without_url or line)
            if description == (without_url or line).strip():
                description = ""
            resources.append(
                ResourceItem(
                    name=name or line,
                    type=categorize_resource(line),
                    description=description,
                    url=url,
                )
            )
        return resources

    def _resources_delimited(self, text: str, raw: str) -> list[BaseModel]:
        parts = [p.strip() for p in re.split(r"[,;\n]", text)]
        return self._resources_from([p for p in parts if 3 < len(p) < 120])

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    def _milestones_json(self, text: str, raw: str) -> list[BaseModel]:
        items = []
        for entry in _json_list(raw, "milestones"):
            if isinstance(entry, dict):
                week = entry.get("due_week", entry.get("dueWeek", entry.get("week")))
                items.append(
                    _build(
                        MilestoneItem,
                        name=_as_str(entry.get("name") or entry.get("title")) or "Milestone",
                        description=_as_str(entry.get("description")),
                        due_week=week if isinstance(week, int) else None,
                    )
                )
            elif _as_str(entry):
                items.extend(self._milestones_from([_as_str(entry)]))
        return items

    def _milestones_weeks(self, text: str, raw: str) -> list[BaseModel]:
        milestones = []
        for line in text.splitlines():
            match = WEEK_LABEL_RE.match(line)
            if match:
                name, description = split_title(match.group(2))
                if description == match.group(2).strip():
                    description = ""
                milestones.append(
                    MilestoneItem(name=name, description=description, due_week=int(match.group(1)))
                )
        return milestones

    def _milestones_from(self, lines: list[str]) -> list[BaseModel]:
        milestones = []
        for line in lines:
            cleaned = re.sub(r"^milestone\s*\d*\s*:?\s*", "", line, flags=re.IGNORECASE) or line
            name, description = split_title(cleaned)
            if description == cleaned.strip():
                description = ""
            week = WEEK_MENTION_RE.search(line)
            milestones.append(
                MilestoneItem(
                    name=name,
                    description=description,
                    due_week=int(week.group(1)) if week else None,
                )
            )
        return milestones

    def _milestones_lines(self, text: str, raw: str) -> list[BaseModel]:
        return self._milestones_from([line for line in _plain_lines(text) if len(line) <= 200])

    # ------------------------------------------------------------------
    # Rubric criteria
    # ------------------------------------------------------------------

    def _rubric_json(self, text: str, raw: str) -> list[BaseModel]:
        items = []
        for entry in _json_list(raw, "criteria", "rubric"):
            if isinstance(entry, dict):
                weight = entry.get("weight")
                items.append(
                    _build(
                        RubricCriterion,
                        name=_as_str(entry.get("name") or entry.get("criterion") or entry.get("title"))
                        or "Criterion",
                        description=_as_str(entry.get("description")),
                        weight=int(weight) if isinstance(weight, (int, float)) else None,
                    )
                )
            elif _as_str(entry):
                items.extend(self._criteria_from([_as_str(entry)]))
        return items

    def _rubric_table(self, text: str, raw: str) -> list[BaseModel]:
        criteria = []
        rows = [line for line in text.splitlines() if "|" in line]
        for index, row in enumerate(rows):
            if re.fullmatch(r"[\s|:\-]+", row):
                continue
            cells = [c.strip() for c in row.strip().strip("|").split("|")]
            cells = [c for c in cells if c]
            if len(cells) < 2:
                continue
            if index == 0 or "criteri" in cells[0].lower():
                continue
            weight = WEIGHT_RE.search(" ".join(cells))
            criteria.append(
                RubricCriterion(
                    name=WEIGHT_RE.sub("", cells[0]).strip() or cells[0],
                    description="; ".join(c for c in cells[1:] if not WEIGHT_RE.fullmatch(c)),
                    weight=int(weight.group(1)) if weight else None,
                )
            )
        return criteria

    def _criteria_from(self, lines: list[str]) -> list[BaseModel]:
        criteria = []
        for line in lines:
            weight = WEIGHT_RE.search(line)
            without_weight = WEIGHT_RE.sub("", line).strip()
            name, description = split_title(without_weight)
            if description == without_weight:
                description = ""
            criteria.append(
                RubricCriterion(
                    name=name,
                    description=description,
                    weight=int(weight.group(1)) if weight else None,
                )
            )
        return criteria

    # ------------------------------------------------------------------
    # Impact
    # ------------------------------------------------------------------

    def _impact_json(self, text: str, raw: str) -> list[BaseModel]:
        if "{" not in raw:
            return []
        data = extract_json(raw, keys=("impact", "audience", "method"))
        if isinstance(data, dict) and isinstance(data.get("impact"), dict):
            data = data["impact"]
        if not isinstance(data, dict) or not (data.get("audience") or data.get("method")):
            return []
        outcomes = data.get("outcomes") or data.get("measurableOutcomes") or []
        if isinstance(outcomes, str):
            outcomes = [outcomes]
        return [
            _build(
                ImpactData,
                audience=_as_str(data.get("audience")),
                method=_as_str(data.get("method")),
                timeline=_as_str(data.get("timeline")) or None,
                outcomes=[_as_str(o) for o in outcomes if _as_str(o)],
            )
        ]

    def _impact_labeled(self, text: str, raw: str) -> list[BaseModel]:
        fields: dict[str, Any] = {"audience": "", "method": "", "timeline": None, "outcomes": []}
        collecting_outcomes = False
        for line in text.splitlines():
            label = LABEL_RE.match(line)
            key = label.group(1).strip().lower() if label else ""
            if key in ("audience", "who", "authentic audience"):
                fields["audience"] = label.group(2).strip()
                collecting_outcomes = False
            elif key in ("method", "format", "showcase", "how", "sharing"):
                fields["method"] = label.group(2).strip()
                collecting_outcomes = False
            elif key in ("timeline", "when", "date"):
                fields["timeline"] = label.group(2).strip() or None
                collecting_outcomes = False
            elif key in ("outcomes", "success measures", "measures", "impact"):
                value = label.group(2).strip()
                fields["outcomes"].extend(o.strip() for o in value.split(",") if o.strip())
                collecting_outcomes = True
            elif collecting_outcomes and (bullet := BULLET_RE.match(line)):
                fields["outcomes"].append(bullet.group(1).strip())
        if not (fields["audience"] or fields["method"]):
            return []
        return [ImpactData(**fields)]

    def _impact_prose(self, text: str, raw: str) -> list[BaseModel]:
        flat = " ".join(text.split())
        audience = _AUDIENCE_RE.search(flat)
        return [
            ImpactData(
                audience=audience.group(1) if audience else "",
                method=flat[:500],
                timeline=extract_duration(flat),
            )
        ]


# Shared default instance
content_parsing_service = ContentParsingService()
