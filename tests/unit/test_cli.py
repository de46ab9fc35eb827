# tests/unit/test_cli.py
"""
CLI unit tests.

Tests each command via typer's CliRunner, using an in-memory blueprint store
to avoid filesystem side effects.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from blueprint_coach.cli import app
from blueprint_coach.config.schema import CoachConfig
from blueprint_coach.conversation import ConversationStateMachine
from blueprint_coach.errors import PersistenceUnavailable
from blueprint_coach.models.blueprints import InMemoryBlueprintStore

runner = CliRunner()

START_ARGS = ["start", "-s", "Science", "-g", "3rd grade", "-d", "2 weeks", "--offline"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store():
    return InMemoryBlueprintStore()


@pytest.fixture
def cli_env(store):
    """Patch config loading and store creation for every command."""
    with patch("blueprint_coach.cli._get_store", new=AsyncMock(return_value=store)), patch(
        "blueprint_coach.config.loader.load_config", return_value=CoachConfig()
    ):
        yield store


def _saved_blueprint(store, answers=("Culture shapes cities",)):
    machine = ConversationStateMachine(
        {"subject": "Urban Planning", "gradeLevel": "9-12", "duration": "4 weeks"}
    )
    machine.enter()
    for answer in answers:
        machine.submit(answer)
        machine.confirm()
    asyncio.run(store.save(machine.blueprint_id, machine.to_document()))
    return machine.blueprint_id


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestHelp:
    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("start", "resume", "list", "show", "delete"):
            assert command in result.output


class TestStart:
    def test_start_and_quit(self, cli_env):
        """start opens the Big Idea step and saves the blueprint."""
        result = runner.invoke(app, START_ARGS, input="/quit\n")

        assert result.exit_code == 0
        assert "Big Idea" in result.output
        assert "Resume with: blueprint-coach resume" in result.output
        assert len(asyncio.run(cli_env.list_all())) == 1

    def test_answer_confirm_and_progress(self, cli_env):
        """An answer, /yes and /progress move through the first step."""
        result = runner.invoke(
            app, START_ARGS, input="Energy is never lost\n/yes\n/progress\n/quit\n"
        )

        assert result.exit_code == 0
        assert "Big Idea confirmed." in result.output
        assert "1/9 steps" in result.output

    def test_invalid_command_in_phase_is_reported(self, cli_env):
        """/proceed outside a stage review prints the transition error."""
        result = runner.invoke(app, START_ARGS, input="/proceed\n/quit\n")

        assert result.exit_code == 0
        assert "Cannot proceed()" in result.output

    def test_suggestions_command(self, cli_env):
        result = runner.invoke(app, START_ARGS, input="/ideas\n/quit\n")

        assert result.exit_code == 0
        assert "Here are a few ideas for the Big Idea" in result.output

    def test_end_of_input_exits_cleanly(self, cli_env):
        result = runner.invoke(app, START_ARGS, input="")

        assert result.exit_code == 0

    def test_blank_subject_is_rejected(self, cli_env):
        result = runner.invoke(
            app, ["start", "-s", " ", "-g", "3rd grade", "-d", "2 weeks", "--offline"]
        )

        assert result.exit_code == 1

    def test_unavailable_store_is_reported_without_traceback(self):
        with patch(
            "blueprint_coach.cli._get_store",
            new=AsyncMock(side_effect=PersistenceUnavailable("unable to open database file")),
        ), patch("blueprint_coach.config.loader.load_config", return_value=CoachConfig()):
            result = runner.invoke(app, START_ARGS)

        assert result.exit_code == 1
        assert not isinstance(result.exception, PersistenceUnavailable)
        assert "unable to open database file" in result.output


class TestResume:
    def test_resume_unknown_blueprint(self, cli_env):
        result = runner.invoke(app, ["resume", "abc123def456", "--offline"])

        assert result.exit_code == 1

    def test_resume_invalid_id(self, cli_env):
        result = runner.invoke(app, ["resume", "not-an-id", "--offline"])

        assert result.exit_code == 1

    def test_resume_existing(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["resume", blueprint_id, "--offline"], input="/progress\n/quit\n")

        assert result.exit_code == 0
        assert "1/9 steps" in result.output


class TestList:
    def test_list_empty(self, cli_env):
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No blueprints found." in result.output

    def test_list_shows_blueprints(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "BLUEPRINT ID" in result.output
        assert blueprint_id in result.output
        assert "Urban Planning (9-12)" in result.output


class TestShow:
    def test_show_markdown(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["show", blueprint_id])

        assert result.exit_code == 0
        assert "# Urban Planning (9-12)" in result.output
        assert "Culture shapes cities" in result.output

    def test_show_json(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["show", blueprint_id, "--format", "json"])

        assert result.exit_code == 0
        assert f'"blueprint_id": "{blueprint_id}"' in result.output

    def test_show_missing(self, cli_env):
        result = runner.invoke(app, ["show", "abc123def456"])

        assert result.exit_code == 1

    def test_show_bad_format(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["show", blueprint_id, "-f", "pdf"])

        assert result.exit_code == 1


class TestDelete:
    def test_delete_with_yes(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["delete", blueprint_id, "--yes"])

        assert result.exit_code == 0
        assert f"Deleted blueprint {blueprint_id}." in result.output
        assert asyncio.run(cli_env.load(blueprint_id)) is None

    def test_delete_missing(self, cli_env):
        result = runner.invoke(app, ["delete", "abc123def456", "--yes"])

        assert result.exit_code == 1

    def test_delete_declined(self, cli_env):
        blueprint_id = _saved_blueprint(cli_env)

        result = runner.invoke(app, ["delete", blueprint_id], input="n\n")

        assert result.exit_code == 1
        assert asyncio.run(cli_env.load(blueprint_id)) is not None
