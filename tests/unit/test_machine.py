# tests/unit/test_machine.py
"""
Tests for ConversationStateMachine.

Walks blueprints through the nine steps and checks the transition rules:
captured fields change only on confirm, a pending value exists only in
step_confirm, stages complete in order, and edits leave other fields alone.
"""

import pytest

from blueprint_coach.errors import HandoffError, InvalidTransition
from blueprint_coach.conversation import ConversationStateMachine
from blueprint_coach.models.conversation import Role, Stage, SubPhase
from blueprint_coach.validation import Decision

HANDOFF = {
    "subject": "Urban Planning",
    "gradeLevel": "7th grade",
    "duration": "4 weeks",
    "location": "Chicago",
}

ANSWERS = {
    "ideation.bigIdea": "Culture shapes cities",
    "ideation.essentialQuestion": "How does culture shape the places we live?",
    "ideation.challenge": "Design a walking tour for our neighborhood",
    "journey.phases": "Phase 1: Launch\n- Research\n- Interview\nPhase 2: Build\n- Prototype",
    "journey.activities": "- Research neighborhoods\n- Build a model",
    "journey.resources": "- City historian\n- Archive photos",
    "deliverables.milestones": "Week 1: Research plan\nWeek 3: Prototype",
    "deliverables.rubric": "- Research (50%)\n- Design (50%)",
    "deliverables.impact": "Audience: city council\nMethod: public presentation",
}


@pytest.fixture
def machine():
    m = ConversationStateMachine(HANDOFF)
    m.enter()
    return m


def _answer_current(machine):
    result = machine.submit(ANSWERS[machine.current_step.key])
    assert result.evaluation.accepted
    machine.confirm()


def _complete_stage(machine):
    stage = machine.stage
    while machine.sub_phase is not SubPhase.STAGE_CLARIFY:
        assert machine.stage is stage
        _answer_current(machine)


class TestConstruction:
    """Handoff validation and entering the first step."""

    def test_missing_handoff_fields_raise(self):
        with pytest.raises(HandoffError):
            ConversationStateMachine({"subject": "Science"})

    def test_starts_in_onboarding(self):
        machine = ConversationStateMachine(HANDOFF)

        assert machine.stage is Stage.ONBOARDING
        assert machine.current_step is None
        assert len(machine.blueprint_id) == 12

    def test_enter_opens_big_idea(self, machine):
        assert machine.stage is Stage.IDEATION
        assert machine.sub_phase is SubPhase.STEP_ENTRY
        assert machine.current_step.key == "ideation.bigIdea"

        handoff_message = machine.messages[0]
        assert handoff_message.role is Role.SYSTEM
        assert handoff_message.pinned
        assert "Urban Planning" in handoff_message.content

    def test_enter_twice_raises(self, machine):
        with pytest.raises(InvalidTransition):
            machine.enter()


class TestSubmit:
    """Evaluating answers in step_entry."""

    def test_accepted_answer_becomes_pending(self, machine):
        result = machine.submit("Culture shapes cities")

        assert result.evaluation.decision is Decision.ACCEPT
        assert machine.sub_phase is SubPhase.STEP_CONFIRM
        state = machine.get_state()
        assert state.pending_value.value == "Culture shapes cities"
        assert "ideation.bigIdea" not in state.captured

    def test_non_answer_is_rejected_then_forced(self, machine):
        first = machine.submit("?")

        assert first.evaluation.decision is Decision.REJECT
        assert 2 <= len(first.evaluation.recovery_options) <= 3
        assert machine.sub_phase is SubPhase.STEP_ENTRY
        assert machine.get_state().pending_value is None
        assert first.messages[-1].kind == "clarification"

        machine.submit("?")
        third = machine.submit("?")

        assert third.evaluation.decision is Decision.ACCEPT
        assert third.evaluation.reason == "forced"
        assert machine.sub_phase is SubPhase.STEP_CONFIRM

    def test_number_picks_offered_option(self, machine):
        rejected = machine.submit("?")
        options = rejected.evaluation.recovery_options

        machine.submit("2")

        assert machine.get_state().pending_value.value == options[1]

    def test_structured_step_stores_parsed_records(self, machine):
        _complete_stage(machine)
        machine.proceed()

        machine.submit(ANSWERS["journey.phases"])
        pending = machine.get_state().pending_value

        assert pending.format == "phase-with-bullets"
        assert [p["name"] for p in pending.value] == ["Launch", "Build"]

    def test_submit_in_stage_clarify_raises(self, machine):
        _complete_stage(machine)

        with pytest.raises(InvalidTransition):
            machine.submit("Another answer")


class TestConfirmAndRefine:
    """Capturing and reworking pending values."""

    def test_confirm_captures_and_advances(self, machine):
        machine.submit("Culture shapes cities")
        result = machine.confirm()

        state = machine.get_state()
        assert state.captured["ideation.bigIdea"] == "Culture shapes cities"
        assert state.pending_value is None
        assert machine.current_step.key == "ideation.essentialQuestion"
        assert result.messages[0].role is Role.SYSTEM
        assert result.messages[0].kind == "decision"

    def test_confirm_without_pending_raises(self, machine):
        with pytest.raises(InvalidTransition):
            machine.confirm()

    def test_refine_returns_to_entry_with_draft(self, machine):
        machine.submit("Culture shapes cities")
        machine.refine()

        state = machine.get_state()
        assert machine.sub_phase is SubPhase.STEP_ENTRY
        assert state.pending_value is None
        assert state.draft_seed == "Culture shapes cities"
        assert "ideation.bigIdea" not in state.captured

    def test_last_step_of_stage_opens_review(self, machine):
        _complete_stage(machine)

        assert machine.sub_phase is SubPhase.STAGE_CLARIFY
        assert machine.messages[-1].kind == "stage_summary"
        assert set(machine.stage_summary("ideation")) == {
            "ideation.bigIdea",
            "ideation.essentialQuestion",
            "ideation.challenge",
        }


class TestProceed:
    """Stage gating."""

    def test_proceed_requires_stage_clarify(self, machine):
        with pytest.raises(InvalidTransition):
            machine.proceed()

    def test_full_walk_completes_and_keeps_big_idea(self, machine):
        completed = []
        for _ in range(3):
            while machine.sub_phase is not SubPhase.STAGE_CLARIFY:
                assert (machine.get_state().pending_value is None) == (
                    machine.sub_phase is not SubPhase.STEP_CONFIRM
                )
                _answer_current(machine)
                completed.append(machine.progress()["completed"])
            machine.proceed()

        assert machine.stage is Stage.COMPLETE
        assert machine.sub_phase is SubPhase.COMPLETE
        assert machine.current_step is None
        assert completed == sorted(completed)
        assert machine.progress()["percentage"] == 100
        assert machine.get_state().captured["ideation.bigIdea"] == "Culture shapes cities"
        assert machine.messages[-1].kind == "complete"

    def test_stages_are_entered_in_order(self, machine):
        seen = [machine.stage]
        for _ in range(2):
            _complete_stage(machine)
            machine.proceed()
            seen.append(machine.stage)

        assert seen == [Stage.IDEATION, Stage.JOURNEY, Stage.DELIVERABLES]


class TestGoBack:
    """Editing a confirmed step."""

    def test_edit_leaves_other_fields_untouched(self, machine):
        _complete_stage(machine)
        before = machine.get_state().captured

        machine.go_back_to("ideation.bigIdea")
        assert machine.sub_phase is SubPhase.STEP_ENTRY
        assert machine.get_state().draft_seed == "Culture shapes cities"

        machine.submit("Stories preserve identity")
        machine.confirm()

        after = machine.get_state().captured
        assert after["ideation.bigIdea"] == "Stories preserve identity"
        assert after["ideation.essentialQuestion"] == before["ideation.essentialQuestion"]
        assert after["ideation.challenge"] == before["ideation.challenge"]
        assert machine.sub_phase is SubPhase.STAGE_CLARIFY
        assert machine.stage is Stage.IDEATION

    def test_edit_from_later_stage_returns_there(self, machine):
        _complete_stage(machine)
        machine.proceed()
        _complete_stage(machine)

        machine.go_back_to("ideation.bigIdea")
        assert machine.stage is Stage.IDEATION
        machine.submit("Stories preserve identity")
        machine.confirm()

        assert machine.stage is Stage.JOURNEY
        assert machine.sub_phase is SubPhase.STAGE_CLARIFY

    def test_unknown_step_raises(self, machine):
        _complete_stage(machine)

        with pytest.raises(InvalidTransition):
            machine.go_back_to("ideation.nope")

    def test_uncaptured_step_raises(self, machine):
        _complete_stage(machine)

        with pytest.raises(InvalidTransition):
            machine.go_back_to("deliverables.impact")

    def test_go_back_outside_review_raises(self, machine):
        with pytest.raises(InvalidTransition):
            machine.go_back_to("ideation.bigIdea")


class TestSuggestions:
    """Ideas, examples and what-if requests."""

    def test_repeated_request_is_deduplicated(self, machine):
        first = machine.request_ideas()
        second = machine.request_ideas()

        assert second.duplicate
        assert second.messages[0].id == first.messages[0].id
        assert sum(1 for m in machine.messages if m.kind == "suggestion") == 1
        assert machine.has_suggestions("ideas")

    def test_submit_clears_dedupe_key(self, machine):
        machine.request_ideas()
        machine.submit("?")

        assert not machine.has_suggestions("ideas")
        assert not machine.request_ideas().duplicate

    def test_supplied_options_are_used(self, machine):
        result = machine.request_examples(["Energy flows", "  ", "Water connects us"])

        assert result.messages[0].metadata["options"] == ["Energy flows", "Water connects us"]

    def test_what_if_uses_captured_big_idea(self, machine):
        _answer_current(machine)

        options = machine.request_what_if().messages[0].metadata["options"]

        assert "Culture shapes cities" in options[0]
        assert len(options) == 3

    def test_suggestions_do_not_touch_captured(self, machine):
        machine.request_ideas()
        machine.request_examples()

        assert machine.get_state().captured == {}


class TestRequestsAndPersistence:
    """Model request building and document round trips."""

    def test_build_request_maps_roles(self, machine):
        machine.submit("Culture shapes cities")

        request = machine.build_request("coach")

        assert {turn.role for turn in request.history} <= {"user", "model"}
        assert "Urban Planning" in request.system_prompt
        assert request.model == machine.config.relay.model
        assert request.generation_config is not None
        assert not any("Class context" in turn.text for turn in request.history)

    def test_document_round_trip(self, machine):
        _answer_current(machine)
        machine.submit(ANSWERS["ideation.essentialQuestion"])

        restored = ConversationStateMachine.from_document(machine.to_document())

        assert restored.blueprint_id == machine.blueprint_id
        assert restored.sub_phase is SubPhase.STEP_CONFIRM
        assert restored.get_state().captured == machine.get_state().captured
        assert len(restored.messages) == len(machine.messages)
        assert restored.context.key_decisions == machine.context.key_decisions

    def test_get_state_returns_copy(self, machine):
        state = machine.get_state()
        state.captured["ideation.bigIdea"] = "tampered"

        assert "ideation.bigIdea" not in machine.get_state().captured
