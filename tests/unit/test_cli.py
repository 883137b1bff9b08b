"""Test CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from dreamplayground import __version__
from dreamplayground.cli import _parse_selection, app
from dreamplayground.models import ClarifyingQuestion, DreamAnalysis, DreamTheme, QAEntry
from dreamplayground.pipeline import DreamGenerationError
from tests.fixtures.fake_providers import PNG_SIGNATURE, ControlledClient

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> ControlledClient:
    fake = ControlledClient()
    monkeypatch.setattr("dreamplayground.cli._build_client", lambda config: fake)
    return fake


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"v{__version__}" in result.stdout


def test_no_args_shows_help() -> None:
    result = runner.invoke(app, [])
    # no_args_is_help=True returns exit code 2 (not 0 like --help)
    assert result.exit_code == 2
    assert "Dream Playground" in result.stdout


class TestParseSelection:
    """Test mapping numbered picks to choices."""

    def test_single(self) -> None:
        assert _parse_selection("2", ["a", "b"]) == ["b"]

    def test_multiple_deduped(self) -> None:
        assert _parse_selection("1, 3 1", ["a", "b", "c"]) == ["a", "c"]

    @pytest.mark.parametrize("raw", ["4", "0", "a lot", "1 x", ""])
    def test_not_a_selection(self, raw: str) -> None:
        assert _parse_selection(raw, ["a", "b", "c"]) is None


class TestDreamCommand:
    """Test the dream command end to end with a fake client."""

    def test_skip_questions(self, client: ControlledClient) -> None:
        result = runner.invoke(app, ["dream", "I was flying", "--skip-questions"])

        assert result.exit_code == 0, result.stdout
        assert "Glass Ocean" in result.stdout
        assert "A calm reflection." in result.stdout
        assert client.calls == ["analyze", "dreamscape"]

    def test_answers_questions(self, client: ControlledClient) -> None:
        client.questions = [
            ClarifyingQuestion(id="q1", question="What color was the door?"),
            ClarifyingQuestion(
                id="q2", question="How did you feel?", choices=["calm", "afraid", "curious"], multi=True
            ),
            ClarifyingQuestion(id="q3", question="Were you alone?", choices=["yes", "no"]),
        ]

        result = runner.invoke(app, ["dream", "A door in the sea"], input="blue\n1,3\n\n")

        assert result.exit_code == 0, result.stdout
        assert "How did you feel?" in result.stdout
        assert client.transcripts == [
            [
                QAEntry(question="What color was the door?", answer="blue"),
                QAEntry(question="How did you feel?", answer="calm, curious"),
            ]
        ]

    def test_single_choice_and_free_text(self, client: ControlledClient) -> None:
        client.questions = [
            ClarifyingQuestion(id="q1", question="Were you alone?", choices=["yes", "no"]),
            ClarifyingQuestion(id="q2", question="Time of day?", choices=["day", "night"]),
        ]

        result = runner.invoke(app, ["dream", "A door"], input="2\ndusk\n")

        assert result.exit_code == 0, result.stdout
        assert [e.answer for e in client.transcripts[0]] == ["no", "dusk"]

    def test_prompts_for_description(self, client: ControlledClient) -> None:
        result = runner.invoke(app, ["dream", "--skip-questions"], input="I was flying\n")
        assert result.exit_code == 0, result.stdout

    def test_blank_description(self, client: ControlledClient) -> None:
        result = runner.invoke(app, ["dream", "   "])

        assert result.exit_code == 1
        assert "Please describe your dream first." in result.stdout
        assert client.calls == []

    def test_renders_analysis_sections(self, client: ControlledClient) -> None:
        client.analysis = DreamAnalysis(
            summary="Water and doors.",
            emotions=["wonder"],
            themes=[DreamTheme(name="threshold", strength=0.8)],
            suggestions=["Keep a dream journal"],
            sleep_stage="REM",
            narrative="You stood at the door.",
        )

        result = runner.invoke(app, ["dream", "A door", "--skip-questions"])

        assert result.exit_code == 0, result.stdout
        for text in ("wonder", "threshold", "Keep a dream journal", "REM", "You stood at the door."):
            assert text in result.stdout

    def test_analysis_failure_still_visualizes(self, client: ControlledClient) -> None:
        client.analysis = RuntimeError("analyst offline")

        result = runner.invoke(app, ["dream", "A door", "--skip-questions"])

        assert result.exit_code == 0, result.stdout
        assert "Analysis failed" in result.stdout
        assert "Glass Ocean" in result.stdout

    def test_visualization_failure_exits_1(self, client: ControlledClient) -> None:
        client.dream = DreamGenerationError()

        result = runner.invoke(app, ["dream", "A door", "--skip-questions"])

        assert result.exit_code == 1
        assert "Failed to bring your dream" in result.stdout

    def test_save_image(self, client: ControlledClient, tmp_path: Path) -> None:
        target = tmp_path / "out" / "dream.png"

        result = runner.invoke(
            app, ["dream", "A door", "--skip-questions", "--save-image", str(target)]
        )

        assert result.exit_code == 0, result.stdout
        assert target.read_bytes().startswith(PNG_SIGNATURE)


class TestDreamCommandSetup:
    """Test configuration errors surfaced before any request."""

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["dream", "A door", "--config", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_unknown_image_provider(self) -> None:
        result = runner.invoke(app, ["dream", "A door", "--image-provider", "dalle"])

        assert result.exit_code == 1
        assert "Unknown image provider" in result.stdout

    def test_log_dir_writes_jsonl(self, client: ControlledClient, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"

        result = runner.invoke(
            app, ["--log-dir", str(log_dir), "dream", "A door", "--skip-questions"]
        )

        assert result.exit_code == 0, result.stdout
        entries = [
            json.loads(line) for line in (log_dir / "debug.jsonl").read_text().splitlines()
        ]
        started = [e for e in entries if e["message"] == "file_logging_enabled"]
        assert started[0]["path"] == str(log_dir)
