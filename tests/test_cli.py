"""
Test suite for the main CLI interface.
"""

from datetime import date
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from asana_sorter import __version__
from asana_sorter.asana_api.data_models import AssigneeSection, Task
from asana_sorter.sorter import app

from .fakes import FakeAsanaClient

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_env_files():
    with patch('asana_sorter.sorter.load_env_vars') as mock_load_env:
        yield mock_load_env


class TestCLI:
    """Test cases for the main CLI application."""

    def test_cli_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Asana Tasks Sorter" in result.output
        for command in ("sort", "sections", "section-tasks"):
            assert command in result.output

    def test_cli_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"asana-tasks-sorter {__version__}" in result.output

    def test_env_loading(self, no_env_files):
        runner.invoke(app, ["sort", "--help"])
        no_env_files.assert_called_once()

    def test_sort_help_lists_options(self):
        result = runner.invoke(app, ["sort", "--help"])
        assert result.exit_code == 0
        for option in ("--config", "--dry-run", "--timeout", "--no-color"):
            assert option in result.output


class TestSortCommand:
    @patch('asana_sorter.sorter.handle_sort', return_value=0)
    def test_arguments_are_passed_through(self, mock_handle):
        result = runner.invoke(app, ["sort", "-c", "sections.json", "--dry-run", "-t", "1m30s", "--no-color"])

        assert result.exit_code == 0
        args = mock_handle.call_args[0][0]
        assert args.config == "sections.json"
        assert args.dry_run is True
        assert args.timeout == 90.0
        assert args.no_color is True

    @patch('asana_sorter.sorter.handle_sort', return_value=0)
    def test_default_timeout(self, mock_handle):
        runner.invoke(app, ["sort", "--config", "default"])
        assert mock_handle.call_args[0][0].timeout == 30.0

    @patch('asana_sorter.sorter.handle_sort', return_value=1)
    def test_failure_exit_code(self, mock_handle):
        result = runner.invoke(app, ["sort", "--config", "default"])
        assert result.exit_code == 1

    def test_config_is_required(self):
        result = runner.invoke(app, ["sort"])
        assert result.exit_code == 2
        assert "Missing option" in result.output

    @pytest.mark.parametrize("timeout", ["soon", "0s", "1x"])
    def test_invalid_timeout(self, timeout):
        result = runner.invoke(app, ["sort", "--config", "default", "--timeout", timeout])
        assert result.exit_code == 2
        assert "Invalid value" in result.output

    def test_dry_run_end_to_end(self):
        client = FakeAsanaClient(tasks=[
            Task(gid="1", name="Renew passport", due_on=date(2000, 1, 1), assignee_section=AssigneeSection("x", "Inbox")),
        ])
        with patch('asana_sorter.commands.sort_command.build_client', return_value=client):
            result = runner.invoke(app, ["sort", "--config", "default", "--dry-run", "--no-color"])

        assert result.exit_code == 0
        assert "My Asana Tasks:" in result.output
        assert "## Overdue (1 tasks)" in result.output
        assert "1. Renew passport (2000-01-01)" in result.output
        assert "This was a dry run" in result.output
        assert client.moves == []
        assert client.created_sections == []

    def test_missing_token(self, monkeypatch):
        monkeypatch.setenv("ASANA_ACCESS_TOKEN", "")
        result = runner.invoke(app, ["sort", "--config", "default"])
        assert result.exit_code == 1
        assert "ASANA_ACCESS_TOKEN" in result.output


class TestCLIErrors:
    """Test error handling in CLI commands."""

    def test_invalid_command(self):
        result = runner.invoke(app, ["nonexistent-command"])
        assert result.exit_code != 0
        assert "No such command" in result.output

    @patch('asana_sorter.sorter.handle_section_tasks', return_value=1)
    def test_section_tasks_failure(self, mock_handle):
        result = runner.invoke(app, ["section-tasks", "Waiting For"])
        assert result.exit_code == 1
        assert mock_handle.call_args[0][0].section == "Waiting For"

    @patch('asana_sorter.sorter.handle_list_sections', return_value=0)
    def test_sections_defaults(self, mock_handle):
        result = runner.invoke(app, ["sections"])
        assert result.exit_code == 0
        args = mock_handle.call_args[0][0]
        assert args.config == "default"
        assert args.timeout == 30.0
