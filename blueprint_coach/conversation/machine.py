# blueprint_coach/conversation/machine.py
"""
Conversation state machine.

Drives an educator through the nine blueprint steps. Every operation is a pure
in-memory transition: no I/O, no model calls. Captured fields change only in
confirm(), a pending value exists only while the sub-phase is step_confirm,
and a stage is entered only once the previous one is fully captured.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from blueprint_coach.config.schema import CoachConfig
from blueprint_coach.errors import InvalidTransition
from blueprint_coach.llm.types import CompletionRequest, GenerationConfig, HistoryTurn
from blueprint_coach.models.blueprints import TOTAL_STEPS, generate_blueprint_id
from blueprint_coach.models.conversation import (
    ConversationState,
    Message,
    PendingValue,
    Role,
    Stage,
    SubPhase,
)
from blueprint_coach.models.handoff import WizardHandoff, validate_handoff
from blueprint_coach.models.steps import (
    GRADE_BAND_GUIDANCE,
    STAGE_PURPOSES,
    STEP_KEYS,
    STEPS,
    StepSpec,
    get_step,
    next_stage,
    render,
    steps_for,
)
from blueprint_coach.parsing.service import ContentParsingService, ParsingOptions
from blueprint_coach.prompts import load_prompt
from blueprint_coach.validation.acceptance import AcceptanceValidator, Decision, Evaluation
from blueprint_coach.validation.sanitize import sanitize_utterance

from .context import ContextManager
from .suggestions import SUGGESTION_KINDS, default_suggestions, format_suggestions

logger = logging.getLogger(__name__)

_CHOICE_RE = re.compile(r"^\s*(?:option\s*)?#?(\d)\s*[.)]?\s*$", re.IGNORECASE)


@dataclass
class TurnResult:
    """
    Outcome of one operation.

    Attributes:
        messages: Messages appended by the operation (or the existing
            suggestion message for a deduplicated request)
        evaluation: Validator result, set by submit()
        duplicate: True when a suggestion request was deduplicated
    """

    messages: list[Message] = field(default_factory=list)
    evaluation: Evaluation | None = None
    duplicate: bool = False


def format_value(value: Any) -> str:
    """Human-readable rendering of a captured or pending value."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        lines = []
        for item in value:
            if isinstance(item, dict):
                name = item.get("name") or item.get("title") or item.get("audience") or ""
                detail = item.get("goal") or item.get("description") or item.get("method") or ""
                lines.append(f"- {name}: {detail}" if detail else f"- {name}")
            else:
                lines.append(f"- {item}")
        return "\n".join(lines)
    return str(value)


class ConversationStateMachine:
    """
    Stage/step/sub-phase state machine for one blueprint.

    Example:
        machine = ConversationStateMachine({"subject": "Urban Planning",
                                            "gradeLevel": "9-12",
                                            "duration": "4 weeks"})
        machine.enter()
        machine.submit("Culture shapes cities")
        machine.confirm()
    """

    def __init__(
        self,
        handoff: WizardHandoff | dict[str, Any],
        *,
        blueprint_id: str | None = None,
        validator: AcceptanceValidator | None = None,
        parser: ContentParsingService | None = None,
        context: ContextManager | None = None,
        config: CoachConfig | None = None,
        state: ConversationState | None = None,
    ):
        """
        Initialize the machine.

        Args:
            handoff: Wizard handoff record or raw mapping
            blueprint_id: ID for a new blueprint (generated when omitted)
            validator: Acceptance policy (built from config when omitted)
            parser: Content parser (built from config when omitted)
            context: Context manager (built from config when omitted)
            config: Root configuration; defaults apply when omitted
            state: Existing state to restore (used by from_document)

        Raises:
            HandoffError: If the handoff is missing required fields
        """
        self.config = config or CoachConfig()
        self.handoff = validate_handoff(handoff)
        self.validator = validator or AcceptanceValidator(self.config.validator)
        self.parser = parser or ContentParsingService(ParsingOptions.from_config(self.config.parsing))
        self.context = context or ContextManager(self.config.context)
        self._state = state or ConversationState(
            blueprint_id=blueprint_id or generate_blueprint_id(),
            handoff=self.handoff,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def blueprint_id(self) -> str:
        return self._state.blueprint_id

    @property
    def stage(self) -> Stage:
        return self._state.stage

    @property
    def sub_phase(self) -> SubPhase | None:
        return self._state.sub_phase

    @property
    def current_step(self) -> StepSpec | None:
        if self._state.stage in (Stage.ONBOARDING, Stage.COMPLETE):
            return None
        return STEPS[self._state.step_index]

    @property
    def messages(self) -> list[Message]:
        return list(self._state.messages)

    def get_state(self) -> ConversationState:
        """Deep copy of the current state; mutating it has no effect."""
        return self._state.model_copy(deep=True)

    def progress(self) -> dict[str, Any]:
        completed = sum(1 for key in STEP_KEYS if key in self._state.captured)
        step = self.current_step
        return {
            "completed": completed,
            "total": TOTAL_STEPS,
            "percentage": round(completed / TOTAL_STEPS * 100),
            "current_step": step.key if step else None,
        }

    def stage_summary(self, stage: Stage | str) -> dict[str, Any]:
        """Captured values for every captured step of a stage."""
        stage = Stage(stage)
        return {
            spec.key: self._state.captured[spec.key]
            for spec in steps_for(stage)
            if spec.key in self._state.captured
        }

    def has_suggestions(self, kind: str) -> bool:
        step = self.current_step
        return step is not None and f"{step.key}:{kind}" in self._state.suggestion_keys

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def enter(self) -> TurnResult:
        """Leave onboarding and open the first ideation step."""
        if self._state.stage is not Stage.ONBOARDING:
            raise InvalidTransition("enter", self._phase_name(), "session already started")

        start = len(self._state.messages)
        self._append(
            Role.SYSTEM,
            f"Class context: {self.handoff.describe()}",
            kind="handoff",
            pinned=True,
        )
        self._enter_stage(Stage.IDEATION)
        logger.info(f"Blueprint {self.blueprint_id} entered ideation")
        return TurnResult(messages=self._state.messages[start:])

    def submit(self, text: str) -> TurnResult:
        """
        Submit an answer for the current step.

        Args:
            text: Educator's utterance; a bare number picks an offered option

        Returns:
            TurnResult with the evaluation and appended messages

        Raises:
            InvalidTransition: Outside step_entry/step_confirm
        """
        self._require("submit", SubPhase.STEP_ENTRY, SubPhase.STEP_CONFIRM)
        spec = self.current_step
        start = len(self._state.messages)

        utterance = self._resolve_choice(sanitize_utterance(text))
        if utterance:
            self._append(Role.USER, utterance, kind="answer")

        self._state.turn_count_in_step += 1
        attempt = self._state.turn_count_in_step
        evaluation = self.validator.evaluate(spec.key, utterance, attempt, self.handoff)
        self._clear_suggestions(spec.key)

        if evaluation.decision is Decision.REJECT:
            self._state.pending_value = None
            self._state.sub_phase = SubPhase.STEP_ENTRY
            self._append(
                Role.ASSISTANT,
                self._clarification_text(spec, evaluation.recovery_options),
                kind="clarification",
                options=evaluation.recovery_options,
            )
            logger.info(f"Rejected input for {spec.key} on attempt {attempt} ({evaluation.reason})")
            return TurnResult(messages=self._state.messages[start:], evaluation=evaluation)

        warnings: list[str] = []
        if spec.structured:
            parsed = self.parser.parse(spec.parse_kind, utterance)
            pending = PendingValue(
                value=parsed.to_value(),
                raw_text=utterance,
                confidence=parsed.confidence,
                format=parsed.format,
            )
            warnings = parsed.warnings
        else:
            pending = PendingValue(value=self.parser.clean_text(utterance) or utterance, raw_text=utterance)

        self._state.pending_value = pending
        self._state.sub_phase = SubPhase.STEP_CONFIRM
        self._append(
            Role.ASSISTANT,
            self._confirmation_text(spec, pending, evaluation, warnings),
            kind="confirmation",
            decision=evaluation.decision.value,
        )
        logger.info(f"Pending value for {spec.key} ({evaluation.decision.value}, {pending.confidence})")
        return TurnResult(messages=self._state.messages[start:], evaluation=evaluation)

    def confirm(self) -> TurnResult:
        """Capture the pending value and advance."""
        self._require("confirm", SubPhase.STEP_CONFIRM)
        pending = self._state.pending_value
        if pending is None:
            raise InvalidTransition("confirm", self._phase_name(), "no pending value")

        spec = self.current_step
        start = len(self._state.messages)

        self._state.captured[spec.key] = pending.value
        self._state.pending_value = None
        self._state.draft_seed = None
        self._state.turn_count_in_step = 0
        self._clear_suggestions(spec.key)
        self._append(
            Role.SYSTEM,
            f"{spec.label} confirmed.",
            kind="decision",
            value_text=format_value(pending.value)[:500],
        )
        logger.info(f"Captured {spec.key} for blueprint {self.blueprint_id}")

        if self._state.edit_return_stage is not None:
            return_stage = self._state.edit_return_stage
            self._state.edit_return_stage = None
            self._open_stage_clarify(return_stage)
        else:
            stage_steps = steps_for(spec.stage)
            if spec is not stage_steps[-1]:
                self._state.step_index += 1
                self._enter_step()
            else:
                self._open_stage_clarify(spec.stage)

        return TurnResult(messages=self._state.messages[start:])

    def refine(self) -> TurnResult:
        """Discard the pending value, keeping its text as a draft seed."""
        self._require("refine", SubPhase.STEP_CONFIRM)
        spec = self.current_step
        start = len(self._state.messages)

        pending = self._state.pending_value
        self._state.draft_seed = pending.raw_text if pending else None
        self._state.pending_value = None
        self._state.sub_phase = SubPhase.STEP_ENTRY

        content = f"Let's rework the {spec.label}."
        if self._state.draft_seed:
            content += f" Your draft was:\n{self._state.draft_seed}\nSend a revised version."
        self._append(Role.ASSISTANT, content, kind="refine")
        return TurnResult(messages=self._state.messages[start:])

    def request_ideas(self, options: list[str] | None = None) -> TurnResult:
        return self._suggest("ideas", options)

    def request_examples(self, options: list[str] | None = None) -> TurnResult:
        return self._suggest("examples", options)

    def request_what_if(self, options: list[str] | None = None) -> TurnResult:
        return self._suggest("whatif", options)

    def proceed(self) -> TurnResult:
        """Move from a completed stage into the next stage (or completion)."""
        self._require("proceed", SubPhase.STAGE_CLARIFY)
        stage = self._state.stage
        missing = [s.key for s in steps_for(stage) if s.key not in self._state.captured]
        if missing:
            raise InvalidTransition(
                "proceed", self._phase_name(), f"uncaptured steps: {', '.join(missing)}"
            )

        start = len(self._state.messages)
        following = next_stage(stage)
        if following is Stage.COMPLETE:
            self._state.stage = Stage.COMPLETE
            self._state.sub_phase = SubPhase.COMPLETE
            self._append(
                Role.ASSISTANT,
                "Your blueprint is complete. Export it any time to share with colleagues.",
                kind="complete",
            )
            logger.info(f"Blueprint {self.blueprint_id} complete")
        else:
            self._enter_stage(following)
            logger.info(f"Blueprint {self.blueprint_id} entered {following.value}")
        return TurnResult(messages=self._state.messages[start:])

    def go_back_to(self, step_key: str) -> TurnResult:
        """
        Re-open a captured step for editing.

        Other captured fields are preserved; confirming the edit returns to
        the current stage's review.

        Raises:
            InvalidTransition: Outside stage_clarify, or for an unknown or
                not-yet-captured step
        """
        self._require("go_back_to", SubPhase.STAGE_CLARIFY)
        try:
            spec = get_step(step_key)
        except KeyError:
            raise InvalidTransition("go_back_to", self._phase_name(), f"unknown step '{step_key}'") from None
        if spec.key not in self._state.captured:
            raise InvalidTransition("go_back_to", self._phase_name(), f"step '{step_key}' not captured yet")

        start = len(self._state.messages)
        current = self._state.captured[spec.key]
        self._state.edit_return_stage = self._state.stage
        self._state.stage = spec.stage
        self._state.step_index = STEP_KEYS.index(spec.key)
        self._state.sub_phase = SubPhase.STEP_ENTRY
        self._state.turn_count_in_step = 0
        self._state.pending_value = None
        self._state.draft_seed = format_value(current)
        self._append(
            Role.ASSISTANT,
            f"Let's revisit the {spec.label}. Current version:\n{self._state.draft_seed}\n"
            "Send an updated version.",
            kind="edit",
        )
        logger.info(f"Editing {spec.key} for blueprint {self.blueprint_id}")
        return TurnResult(messages=self._state.messages[start:])

    def record_assistant(self, text: str, kind: str = "coaching") -> Message:
        """Append an assistant message. Never touches captured data."""
        return self._append(Role.ASSISTANT, text, kind=kind)

    # ------------------------------------------------------------------
    # Model requests
    # ------------------------------------------------------------------

    def build_request(self, action: str, prompt: str | None = None) -> CompletionRequest:
        """
        Build a completion request from the relevant context.

        Args:
            action: Caller intent, e.g. "coach", "clarify", "ideas"
            prompt: Instruction for this request; defaults to the current
                step's entry prompt

        Returns:
            CompletionRequest without model or generation overrides beyond
            the configured defaults
        """
        step = self.current_step
        stage_value = self._state.stage.value
        relevant = self.context.get_relevant_context(action, stage_value, self._state.captured)

        history = []
        for message in relevant.messages:
            if message.role is Role.SYSTEM:
                continue
            role = "user" if message.role is Role.USER else "model"
            history.append(HistoryTurn(role=role, text=message.content))

        system_prompt = load_prompt("system").format(
            subject=self.handoff.subject,
            grade_level=self.handoff.grade_level,
            duration=self.handoff.duration,
            location=self.handoff.location or "not specified",
            grade_guidance=GRADE_BAND_GUIDANCE[self.handoff.grade_band],
            stage=stage_value,
            stage_purpose=STAGE_PURPOSES.get(self._state.stage, "Wrap up the blueprint."),
            step_label=step.label if step else "none",
            step_objective=step.objective if step else "none",
            context=self.context.get_formatted_context() or "(none yet)",
        )
        if prompt is None:
            prompt = render(step.entry_prompt, self.handoff) if step else "Summarize the blueprint."

        return CompletionRequest(
            prompt=prompt,
            history=history,
            system_prompt=system_prompt,
            model=self.config.relay.model,
            generation_config=GenerationConfig.from_settings(self.config.generation),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        return self._state.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: dict[str, Any], **kwargs: Any) -> "ConversationStateMachine":
        """
        Restore a machine from a persisted document.

        Args:
            document: Output of to_document()
            **kwargs: validator, parser, context or config overrides

        Returns:
            Machine whose context manager has replayed the message log
        """
        state = ConversationState.model_validate(document)
        machine = cls(state.handoff, state=state, **kwargs)
        for message in state.messages:
            machine.context.add_message(message)
        return machine

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _phase_name(self) -> str | None:
        return self._state.sub_phase.value if self._state.sub_phase else None

    def _require(self, operation: str, *allowed: SubPhase) -> None:
        if self._state.sub_phase not in allowed:
            raise InvalidTransition(operation, self._phase_name())

    def _append(self, role: Role, content: str, **metadata: Any) -> Message:
        step = self.current_step
        metadata = {
            "stage": self._state.stage.value,
            "step": step.key if step else None,
            "phase": self._phase_name(),
            **metadata,
        }
        message = Message(role=role, content=content, metadata=metadata)
        self._state.messages.append(message)
        self.context.add_message(message)
        self._state.touch()
        return message

    def _enter_stage(self, stage: Stage) -> None:
        self._state.stage = stage
        self._state.step_index = STEP_KEYS.index(steps_for(stage)[0].key)
        self._state.turn_count_in_step = 0
        self._state.sub_phase = SubPhase.STEP_ENTRY
        self._append(Role.ASSISTANT, STAGE_PURPOSES[stage], kind="stage_intro")
        self._append(Role.ASSISTANT, render(self.current_step.entry_prompt, self.handoff), kind="entry")

    def _enter_step(self) -> None:
        self._state.sub_phase = SubPhase.STEP_ENTRY
        self._state.turn_count_in_step = 0
        self._append(Role.ASSISTANT, render(self.current_step.entry_prompt, self.handoff), kind="entry")

    def _open_stage_clarify(self, stage: Stage) -> None:
        self._state.stage = stage
        self._state.step_index = STEP_KEYS.index(steps_for(stage)[-1].key)
        self._state.sub_phase = SubPhase.STAGE_CLARIFY
        self._state.turn_count_in_step = 0
        summary = self.stage_summary(stage)
        lines = [f"Here's your {stage.value} so far:"]
        for key, value in summary.items():
            lines.append(f"{get_step(key).label}:\n{format_value(value)}")
        lines.append("Proceed to the next stage, or go back and edit any step.")
        self._append(Role.ASSISTANT, "\n".join(lines), kind="stage_summary")

    def _clear_suggestions(self, step_key: str) -> None:
        prefix = f"{step_key}:"
        for key in [k for k in self._state.suggestion_keys if k.startswith(prefix)]:
            del self._state.suggestion_keys[key]

    def _suggest(self, kind: str, options: list[str] | None) -> TurnResult:
        operation = {"ideas": "request_ideas", "examples": "request_examples"}.get(kind, "request_what_if")
        self._require(operation, SubPhase.STEP_ENTRY, SubPhase.STEP_CONFIRM)
        if kind not in SUGGESTION_KINDS:
            raise ValueError(f"Unknown suggestion kind '{kind}'")
        spec = self.current_step
        key = f"{spec.key}:{kind}"

        existing_id = self._state.suggestion_keys.get(key)
        if existing_id is not None:
            existing = next((m for m in self._state.messages if m.id == existing_id), None)
            if existing is not None:
                logger.debug(f"Suggestion {key} already offered")
                return TurnResult(messages=[existing], duplicate=True)

        options = [o for o in (options or []) if o and o.strip()]
        if not options:
            options = default_suggestions(kind, spec, self.handoff, self._state.captured)
        message = self._append(
            Role.ASSISTANT,
            format_suggestions(kind, spec, options),
            kind="suggestion",
            suggestion_kind=kind,
            options=options,
        )
        self._state.suggestion_keys[key] = message.id
        return TurnResult(messages=[message])

    def _resolve_choice(self, text: str) -> str:
        """Map a bare option number to the most recently offered option in this step."""
        match = _CHOICE_RE.match(text)
        step = self.current_step
        if not match or step is None:
            return text
        choice = int(match.group(1))
        for message in reversed(self._state.messages):
            if message.metadata.get("step") != step.key:
                break
            options = message.metadata.get("options")
            if options:
                if 1 <= choice <= len(options):
                    return options[choice - 1]
                return text
        return text

    def _clarification_text(self, spec: StepSpec, options: list[str]) -> str:
        lines = [f"Here are a few directions that could work for the {spec.label}:"]
        lines.extend(f"{i}. {option}" for i, option in enumerate(options, 1))
        lines.append("Reply with a number to use one, or adapt it in your own words.")
        return "\n".join(lines)

    def _confirmation_text(
        self,
        spec: StepSpec,
        pending: PendingValue,
        evaluation: Evaluation,
        warnings: list[str],
    ) -> str:
        lines = [f"Here's what I captured for the {spec.label}:", format_value(pending.value)]
        if evaluation.refinement_hint:
            lines.append(f"Tip: {evaluation.refinement_hint}")
        if pending.confidence == "low" and warnings:
            lines.append(f"Note: {warnings[-1]}")
        lines.append("Confirm to lock it in, or refine it.")
        return "\n".join(lines)
