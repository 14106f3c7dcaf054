"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

All commands run against the throwaway SQLite database configured in
tests/conftest.py. Nothing here needs Ollama: the quiz and status tests
swap in a scripted client.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from loguru import logger
from typer.testing import CliRunner

from conftest import FakeGenerator
from recall.cli.main import app

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

runner = CliRunner()


def run_cli_command(command: str, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command in a subprocess and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m recall.cli.main')
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    full_command = f"{sys.executable} -m recall.cli.main {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture(scope="module", autouse=True)
def initialized_db():
    """Create tables in the test database once for this module."""
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0, result.output


@pytest.fixture(autouse=True)
def detach_log_sinks():
    """CliRunner streams are closed after each invoke; drop sinks bound to them."""
    yield
    logger.remove()


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "quiz" in stdout
        assert "memories" in stdout

    @pytest.mark.parametrize("command", ["serve", "db", "memories", "quiz", "progress", "feedback", "status"])
    def test_subcommand_help(self, command):
        """Every command group should have working help."""
        result = runner.invoke(app, [command, "--help"])

        assert result.exit_code == 0, result.output


class TestCLIDatabase:
    """Test db commands."""

    def test_db_init_is_idempotent(self):
        result = runner.invoke(app, ["db", "init"])

        assert result.exit_code == 0
        assert "Database initialized" in result.output


class TestCLIMemories:
    """Test memories commands."""

    def test_add_and_list(self):
        added = runner.invoke(
            app,
            ["memories", "add", "Kayak trip", "-d", "Paddled to the island", "-c", "travel", "-t", "water,summer"],
        )
        assert added.exit_code == 0, added.output
        assert "logged" in added.output

        listed = runner.invoke(app, ["memories", "list", "--category", "travel"])
        assert listed.exit_code == 0, listed.output
        assert "Kayak trip" in listed.output

    def test_add_blank_title_fails(self):
        result = runner.invoke(app, ["memories", "add", "   "])

        assert result.exit_code == 1
        assert "Title is required" in result.output

    def test_list_no_matches(self):
        result = runner.invoke(app, ["memories", "list", "--search", "no-such-memory-xyz"])

        assert result.exit_code == 0
        assert "No memories found" in result.output

    def test_stats(self):
        runner.invoke(app, ["memories", "add", "Vet visit", "-c", "pets"])

        result = runner.invoke(app, ["memories", "stats"])

        assert result.exit_code == 0
        assert "pets" in result.output


class TestCLIQuiz:
    """Test the interactive quiz with Ollama unavailable."""

    def test_quiz_saves_score(self):
        runner.invoke(app, ["memories", "add", "Puppy", "-d", "Our dog name is Max", "-c", "pets"])

        with patch("recall.llm.OllamaClient", return_value=FakeGenerator()):
            result = runner.invoke(app, ["quiz", "--count", "1", "--category", "pets"], input="Max\n")

        assert result.exit_code == 0, result.output
        assert "Q1." in result.output
        assert "Saved as test" in result.output

    def test_quiz_without_memories(self):
        with patch("recall.llm.OllamaClient", return_value=FakeGenerator()):
            result = runner.invoke(app, ["quiz", "--category", "no-such-category"])

        assert result.exit_code == 1
        assert "No memories to quiz on" in result.output


class TestCLIProgress:
    """Test progress and feedback commands."""

    def test_progress_after_a_test(self):
        from recall.db.database import session_scope
        from recall.db.memory_store import MemoryStore

        with session_scope() as session:
            MemoryStore(session).create_test_score(total_questions=4, correct_answers=3, final_score=3)

        result = runner.invoke(app, ["progress"])

        assert result.exit_code == 0, result.output
        assert "Tests taken" in result.output
        assert "%" in result.output

    def test_feedback_with_model_down(self):
        with patch("recall.llm.OllamaClient", return_value=FakeGenerator()):
            result = runner.invoke(app, ["feedback"])

        assert result.exit_code == 0, result.output
        assert "coach" in result.output.lower()


class TestCLIStatus:
    """Test status command."""

    def test_status_running(self):
        with patch("recall.llm.OllamaClient", return_value=FakeGenerator()):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "Ollama running" in result.output

    def test_status_down(self):
        with patch("recall.llm.OllamaClient", return_value=FakeGenerator(error=ConnectionError("refused"))):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "not reachable" in result.output
