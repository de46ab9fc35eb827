# tests/unit/test_fallback.py
"""Tests for the offline responder and connection monitor."""

from blueprint_coach.llm.fallback import FallbackResponder
from blueprint_coach.models.handoff import WizardHandoff
from blueprint_coach.session.connection import ConnectionMonitor, ConnectionStatus
from blueprint_coach.validation import is_constructive

HANDOFF = WizardHandoff(subject="Science", grade_level="3rd grade", duration="2 weeks")


class TestFallbackResponder:
    """Template and cached responses."""

    def test_template_filled_from_step_and_handoff(self):
        responder = FallbackResponder(HANDOFF)

        text = responder.respond("coach", "ideation.bigIdea")

        assert "Big Idea" in text
        assert "Science" in text
        assert "3rd grade" in text
        assert "{" not in text

    def test_cached_model_text_served_first(self):
        responder = FallbackResponder(HANDOFF)
        responder.remember("coach", "ideation.bigIdea", "Earlier model advice")

        assert responder.respond("coach", "ideation.bigIdea") == "Earlier model advice"
        assert responder.respond("coach", "ideation.challenge") != "Earlier model advice"

    def test_blank_text_not_cached(self):
        responder = FallbackResponder(HANDOFF)
        responder.remember("ideas", None, "   ")

        assert responder.cached("ideas", None) is None

    def test_unknown_action_uses_default(self):
        text = FallbackResponder(HANDOFF).respond("summarize")

        assert "offline" in text

    def test_templates_never_reask(self):
        responder = FallbackResponder()
        for action in ("coach", "clarify", "ideas", "examples", "whatif", "other"):
            assert is_constructive(responder.respond(action, "journey.phases"))


class TestConnectionMonitor:
    """Status transitions."""

    def test_degrades_after_threshold(self):
        monitor = ConnectionMonitor(failure_threshold=2)
        changes = []
        monitor.on_change(changes.append)

        monitor.report_llm_error("timeout")
        assert monitor.status is ConnectionStatus.ONLINE
        monitor.report_llm_error(RuntimeError("boom"))

        assert monitor.status is ConnectionStatus.DEGRADED
        assert not monitor.llm_available
        assert monitor.last_error == "boom"
        assert changes == [ConnectionStatus.DEGRADED]

    def test_success_resets(self):
        monitor = ConnectionMonitor(failure_threshold=1)
        monitor.report_llm_error("x")
        monitor.report_llm_success()

        assert monitor.status is ConnectionStatus.ONLINE

    def test_offline_when_both_fail(self):
        monitor = ConnectionMonitor(offline=True)
        assert monitor.status is ConnectionStatus.DEGRADED

        monitor.report_storage_error("disk full")

        assert monitor.status is ConnectionStatus.OFFLINE

    def test_unsubscribe(self):
        monitor = ConnectionMonitor(failure_threshold=1)
        changes = []
        unsubscribe = monitor.on_change(changes.append)
        unsubscribe()

        monitor.report_llm_error("x")

        assert changes == []

    def test_reset(self):
        monitor = ConnectionMonitor(failure_threshold=1)
        monitor.report_llm_error("x")
        monitor.report_storage_error("y")
        monitor.reset()

        assert monitor.status is ConnectionStatus.ONLINE
        assert monitor.last_error is None

    def test_recovery_check_allowed_after_cooldown(self):
        now = [100.0]
        monitor = ConnectionMonitor(failure_threshold=1, recovery_cooldown=30.0, clock=lambda: now[0])
        monitor.report_llm_error("down")

        assert not monitor.should_try_llm()
        now[0] = 130.0
        assert monitor.should_try_llm()

        monitor.report_llm_success()
        assert monitor.llm_available
        assert monitor.status is ConnectionStatus.ONLINE

    def test_forced_offline_never_tries(self):
        monitor = ConnectionMonitor(offline=True, recovery_cooldown=0.0)

        assert not monitor.should_try_llm()
