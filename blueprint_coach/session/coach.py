# blueprint_coach/session/coach.py
"""
Coaching session orchestration.

CoachSession is the only component that performs I/O. It wraps a
ConversationStateMachine with model calls (timeout-bounded, with template
fallback) and persistence after every mutation. The machine never sees a
model or storage failure.
"""

import asyncio
import json
import logging
from typing import Any

from blueprint_coach.config.schema import CoachConfig
from blueprint_coach.conversation.machine import ConversationStateMachine, TurnResult
from blueprint_coach.errors import BlueprintNotFound, PersistenceUnavailable, UpstreamUnavailable
from blueprint_coach.llm.client import RelayClient
from blueprint_coach.llm.fallback import FallbackResponder
from blueprint_coach.models.blueprints import InMemoryBlueprintStore
from blueprint_coach.models.conversation import Message, Stage, SubPhase
from blueprint_coach.models.handoff import WizardHandoff
from blueprint_coach.models.store import BlueprintStore
from blueprint_coach.parsing.json_extract import extract_json
from blueprint_coach.prompts import load_prompt
from blueprint_coach.validation.acceptance import (
    Decision,
    is_progress_signal,
    is_refinement_signal,
)

from .connection import ConnectionMonitor

logger = logging.getLogger(__name__)


class CoachSession:
    """
    One educator's coaching session for one blueprint.

    Every public method returns the messages appended during the call.
    """

    def __init__(
        self,
        machine: ConversationStateMachine,
        store: BlueprintStore,
        client: RelayClient | None = None,
        connection: ConnectionMonitor | None = None,
        fallback: FallbackResponder | None = None,
        fallback_store: BlueprintStore | None = None,
        config: CoachConfig | None = None,
        coaching: bool = True,
    ):
        """
        Initialize a session.

        Args:
            machine: State machine for the blueprint
            store: Primary blueprint store
            client: Relay client; None runs fully offline
            connection: Shared connection monitor (created when omitted)
            fallback: Offline responder (created when omitted)
            fallback_store: Local store used when the primary store fails
            config: Root configuration
            coaching: Request a model coaching note when a step opens
        """
        self.machine = machine
        self.store = store
        self.client = client
        self.config = config or machine.config
        self.connection = connection or ConnectionMonitor(
            failure_threshold=self.config.relay.failure_threshold,
            offline=client is None,
            recovery_cooldown=self.config.relay.recovery_cooldown,
        )
        self.fallback = fallback or FallbackResponder(machine.handoff)
        self.fallback_store = fallback_store or InMemoryBlueprintStore()
        self.coaching = coaching
        self.synced = True

    @classmethod
    async def create(
        cls,
        handoff: WizardHandoff | dict[str, Any],
        store: BlueprintStore,
        client: RelayClient | None = None,
        config: CoachConfig | None = None,
        **kwargs: Any,
    ) -> "CoachSession":
        """
        Start a new blueprint.

        Raises:
            HandoffError: If the handoff is missing required fields
        """
        machine = ConversationStateMachine(handoff, config=config)
        return cls(machine, store, client=client, config=config, **kwargs)

    @classmethod
    async def resume(
        cls,
        blueprint_id: str,
        store: BlueprintStore,
        client: RelayClient | None = None,
        config: CoachConfig | None = None,
        **kwargs: Any,
    ) -> "CoachSession":
        """
        Restore a stored blueprint.

        Raises:
            BlueprintNotFound: If the store has no such blueprint
            PersistenceUnavailable: If the store cannot be read
        """
        document = await store.load(blueprint_id)
        if document is None:
            raise BlueprintNotFound(f"Blueprint not found: {blueprint_id}")
        machine = ConversationStateMachine.from_document(document, config=config)
        logger.info(f"Resumed blueprint {blueprint_id} at {machine.stage.value}")
        return cls(machine, store, client=client, config=config, **kwargs)

    @property
    def blueprint_id(self) -> str:
        return self.machine.blueprint_id

    # ------------------------------------------------------------------
    # Conversation operations
    # ------------------------------------------------------------------

    async def start(self) -> list[Message]:
        """Enter the first step (no-op for a resumed session already past onboarding)."""
        start = len(self.machine.messages)
        if self.machine.stage is Stage.ONBOARDING:
            self.machine.enter()
            await self._coach_step()
        await self.persist()
        return self.machine.messages[start:]

    async def send(self, text: str) -> list[Message]:
        """
        Handle free text from the educator.

        In step_confirm, short affirmations confirm and short change requests
        refine; in stage_clarify an affirmation proceeds. Anything else is
        submitted as an answer.
        """
        sub_phase = self.machine.sub_phase
        if sub_phase is SubPhase.STEP_CONFIRM:
            if is_progress_signal(text):
                return await self.confirm()
            if is_refinement_signal(text) and len(text.split()) <= 3:
                return await self.refine()
        elif sub_phase is SubPhase.STAGE_CLARIFY:
            if is_progress_signal(text):
                return await self.proceed()
            return await self._guide(
                "Reply 'continue' to move on, or edit a step before moving on."
            )
        elif sub_phase is SubPhase.COMPLETE:
            return await self._guide("Your blueprint is complete. Export it to share it.")

        start = len(self.machine.messages)
        result = self.machine.submit(text)
        if result.evaluation and result.evaluation.decision is Decision.REJECT:
            await self._coach_clarification(text, result)
        await self.persist()
        return self.machine.messages[start:]

    async def confirm(self) -> list[Message]:
        start = len(self.machine.messages)
        self.machine.confirm()
        if self.machine.sub_phase is SubPhase.STEP_ENTRY:
            await self._coach_step()
        await self.persist()
        return self.machine.messages[start:]

    async def refine(self) -> list[Message]:
        result = self.machine.refine()
        await self.persist()
        return result.messages

    async def proceed(self) -> list[Message]:
        start = len(self.machine.messages)
        self.machine.proceed()
        if self.machine.sub_phase is SubPhase.STEP_ENTRY:
            await self._coach_step()
        await self.persist()
        return self.machine.messages[start:]

    async def go_back_to(self, step_key: str) -> list[Message]:
        result = self.machine.go_back_to(step_key)
        await self.persist()
        return result.messages

    async def request_suggestions(self, kind: str) -> list[Message]:
        """
        Offer ideas, examples or what-if scenarios for the current step.

        Model output is used when available; repeated requests return the
        existing suggestion message without another model call.
        """
        if self.machine.has_suggestions(kind):
            result = self._suggest(kind, None)
            return result.messages

        options = await self._generate_options(kind)
        result = self._suggest(kind, options)
        await self.persist()
        return result.messages

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def persist(self) -> bool:
        """
        Save the state document.

        Returns:
            True if the primary store accepted it; False if it was written to
            the local fallback store instead (retried on the next persist)
        """
        document = self.machine.to_document()
        try:
            await self.store.save(self.blueprint_id, document)
        except PersistenceUnavailable as e:
            logger.error(f"Persisting blueprint {self.blueprint_id} failed, keeping local copy: {e}")
            self.connection.report_storage_error(e)
            await self.fallback_store.save(self.blueprint_id, document)
            self.synced = False
            return False

        if not self.synced:
            logger.info(f"Blueprint {self.blueprint_id} synced after earlier failure")
        self.synced = True
        self.connection.report_storage_success()
        return True

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    async def _relay_recovered(self) -> bool:
        """Health-check the relay once its cooldown has passed."""
        logger.info("Checking whether the relay is reachable again")
        try:
            healthy = await asyncio.wait_for(
                self.client.health_check(), timeout=self.config.relay.timeout
            )
        except asyncio.TimeoutError:
            healthy = False
        if not healthy:
            self.connection.report_llm_error("health check failed")
        return healthy

    async def _generate(self, action: str, prompt: str | None = None) -> str | None:
        """Model text for an action, or None when the relay is unavailable."""
        if self.client is None or not self.connection.should_try_llm():
            return None
        if not self.connection.llm_available and not await self._relay_recovered():
            return None

        request = self.machine.build_request(action, prompt)
        try:
            response = await asyncio.wait_for(
                self.client.complete(request), timeout=self.config.relay.timeout
            )
        except asyncio.TimeoutError:
            self.connection.report_llm_error("timed out")
            return None
        except UpstreamUnavailable as e:
            self.connection.report_llm_error(e)
            return None

        if not response.ok:
            self.connection.report_llm_error(response.error or "empty response")
            return None

        self.connection.report_llm_success()
        step = self.machine.current_step
        self.fallback.remember(action, step.key if step else None, response.text)
        return response.text

    def _format_prompt(self, name: str, **values: Any) -> str:
        step = self.machine.current_step
        handoff = self.machine.handoff
        return load_prompt(name).format(
            step_label=step.label if step else "blueprint",
            step_objective=step.objective if step else "",
            subject=handoff.subject,
            grade_level=handoff.grade_level,
            duration=handoff.duration,
            **values,
        )

    async def _coach_step(self) -> None:
        if not self.coaching:
            return
        step = self.machine.current_step
        text = await self._generate("coach", self._format_prompt("step_coaching"))
        if text is None:
            text = self.fallback.respond("coach", step.key if step else None)
        self._record_constructive(text, "coaching")

    async def _coach_clarification(self, answer: str, result: TurnResult) -> None:
        if not self.coaching:
            return
        options = result.evaluation.recovery_options if result.evaluation else []
        prompt = self._format_prompt(
            "clarification",
            answer=answer.strip()[:200],
            options="\n".join(f"- {o}" for o in options),
        )
        text = await self._generate("clarify", prompt)
        if text is None:
            step = self.machine.current_step
            text = self.fallback.respond("clarify", step.key if step else None)
        self._record_constructive(text, "coaching")

    def _record_constructive(self, text: str, kind: str) -> None:
        # The multiple-choice clarification already in the log stands in for
        # any reply that re-asks open-endedly.
        if not self.machine.validator.is_constructive(text):
            logger.info("Dropped non-constructive model reply")
            return
        self.machine.record_assistant(text.strip(), kind)

    async def _generate_options(self, kind: str) -> list[str] | None:
        prompt = self._format_prompt("suggestions", count=3, kind=kind.replace("whatif", "what-if scenarios"))
        text = await self._generate(kind, prompt)
        if text is None:
            return None
        try:
            data = extract_json(text, keys=("options", "suggestions", kind))
        except ValueError:
            data = None
        if isinstance(data, dict):
            data = next(
                (data[k] for k in ("options", "suggestions", kind) if isinstance(data.get(k), list)),
                None,
            )
        if isinstance(data, list):
            options = [item if isinstance(item, str) else json.dumps(item) for item in data]
        else:
            options = self.machine.parser.parse_options(text, limit=3)
        options = [o.strip() for o in options if o and o.strip()][:3]
        return options or None

    def _suggest(self, kind: str, options: list[str] | None) -> TurnResult:
        if kind == "ideas":
            return self.machine.request_ideas(options)
        if kind == "examples":
            return self.machine.request_examples(options)
        if kind == "whatif":
            return self.machine.request_what_if(options)
        raise ValueError(f"Unknown suggestion kind '{kind}'")

    async def _guide(self, text: str) -> list[Message]:
        message = self.machine.record_assistant(text, "guidance")
        await self.persist()
        return [message]
