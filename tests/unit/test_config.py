# tests/unit/test_config.py
"""Tests for configuration loading and wizard handoff validation."""

from pathlib import Path

import pytest
import yaml

from blueprint_coach.config.loader import get_db_path, load_config
from blueprint_coach.config.schema import CoachConfig
from blueprint_coach.errors import HandoffError
from blueprint_coach.models.handoff import GradeBand, WizardHandoff, grade_band, validate_handoff


class TestLoadConfig:
    """YAML config loading."""

    def test_creates_default_file_when_missing(self, tmp_path: Path):
        path = tmp_path / "nested" / "config.yaml"

        config = load_config(path)

        assert path.exists()
        assert config == CoachConfig()
        written = yaml.safe_load(path.read_text())
        assert written["relay"]["timeout"] == 30.0

    def test_overrides_and_ignores_unknown_keys(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("relay:\n  timeout: 5\nvalidator:\n  force_accept_after: 2\nunknown: 1\n")

        config = load_config(path)

        assert config.relay.timeout == 5.0
        assert config.validator.force_accept_after == 2
        assert config.context.max_history == 50

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path) == CoachConfig()

    def test_db_path_from_config(self):
        config = CoachConfig(storage={"db_path": "/tmp/custom.db"})

        assert get_db_path(config) == "/tmp/custom.db"


class TestHandoff:
    """Wizard handoff validation."""

    def test_camel_case_alias_and_material_split(self):
        handoff = validate_handoff(
            {
                "subject": " Science ",
                "gradeLevel": "3rd grade",
                "duration": "2 weeks",
                "materials": "clay, cardboard, ",
            }
        )

        assert handoff.subject == "Science"
        assert handoff.grade_level == "3rd grade"
        assert handoff.materials == ["clay", "cardboard"]
        assert handoff.grade_band is GradeBand.ELEMENTARY

    def test_missing_field_raises_handoff_error(self):
        with pytest.raises(HandoffError, match="duration"):
            validate_handoff({"subject": "Science", "gradeLevel": "3rd grade"})

    def test_blank_field_raises_handoff_error(self):
        with pytest.raises(HandoffError):
            validate_handoff({"subject": "   ", "gradeLevel": "3rd grade", "duration": "2 weeks"})

    def test_non_mapping_raises_handoff_error(self):
        with pytest.raises(HandoffError):
            validate_handoff(["Science"])

    def test_describe_includes_optional_fields(self):
        handoff = WizardHandoff(
            subject="Art", grade_level="K", duration="1 week", location="Oakland", materials=["paint"]
        )

        description = handoff.describe()

        assert "Location: Oakland" in description
        assert "Materials: paint" in description

    @pytest.mark.parametrize(
        "text, band",
        [
            ("Kindergarten", GradeBand.EARLY),
            ("K", GradeBand.EARLY),
            ("3rd grade", GradeBand.ELEMENTARY),
            ("Grades 6-8", GradeBand.MIDDLE),
            ("9-12", GradeBand.HIGH),
            ("High school", GradeBand.HIGH),
            ("University seminar", GradeBand.HIGHER_ED),
            ("mixed ages", GradeBand.MIDDLE),
        ],
    )
    def test_grade_band(self, text, band):
        assert grade_band(text) is band
