"""
Unit tests for the terminal chat interface.
"""

import pytest
from unittest.mock import MagicMock

from fitcoach.models import CoachResponse, ResponseMetadata, ResponseSource
from fitcoach.pipeline import CoachPipeline
from fitcoach.provider_client import ProviderClient
from fitcoach.provider_registry import ProviderRegistry
from fitcoach.terminal_ui import TerminalUI


@pytest.fixture
def pipeline():
    """Create a local-only pipeline."""
    return CoachPipeline(
        registry=ProviderRegistry([]),
        provider_client=MagicMock(spec=ProviderClient)
    )


def scripted_input(lines):
    """Build an input function that replays lines, then EOF."""
    remaining = list(lines)

    def read(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read


class TestTerminalUI:
    """Test cases for TerminalUI."""

    @pytest.mark.asyncio
    async def test_run_processes_messages_until_quit(self, pipeline, capsys):
        """Test the REPL forwards messages and stops on /quit."""
        ui = TerminalUI(
            pipeline,
            log_dir=None,
            input_func=scripted_input(["How do I do a proper squat?", "", "/quit", "never read"])
        )

        await ui.run()

        output = capsys.readouterr().out
        assert "Coach:" in output
        assert "Goodbye!" in output
        assert pipeline.get_analytics().total_requests == 1
        assert ui.running is False

    @pytest.mark.asyncio
    async def test_run_stops_on_eof(self, pipeline):
        """Test end of input ends the session."""
        ui = TerminalUI(pipeline, log_dir=None, input_func=scripted_input([]))

        await ui.run()

        assert ui.running is False

    def test_stats_command(self, pipeline, capsys):
        """Test /stats prints the analytics snapshot."""
        ui = TerminalUI(pipeline, log_dir=None)

        assert ui.handle_command("/stats") is True
        assert "totalRequests: 0" in capsys.readouterr().out

    def test_providers_command(self, pipeline, capsys):
        """Test /providers explains local-only mode."""
        ui = TerminalUI(pipeline, log_dir=None)

        ui.handle_command("/providers")

        assert "local knowledge only" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_clear_command(self, pipeline):
        """Test /clear empties the response cache."""
        ui = TerminalUI(pipeline, log_dir=None)
        await pipeline.process_message("How do I do a proper squat?")

        ui.handle_command("/clear")

        assert pipeline.get_analytics().cache_size == 0

    def test_debug_toggle(self, pipeline):
        """Test /debug toggles routing details."""
        ui = TerminalUI(pipeline, log_dir=None)

        ui.handle_command("/debug")
        assert ui.debug_mode is True
        ui.handle_command("/DEBUG")
        assert ui.debug_mode is False

    def test_export_and_import_commands(self, pipeline, tmp_path, capsys):
        """Test /export and /import round-trip through a file."""
        ui = TerminalUI(pipeline, log_dir=None)
        path = tmp_path / "kb.json"

        ui.handle_command(f"/export {path}")
        ui.handle_command(f"/import {path}")

        output = capsys.readouterr().out
        assert f"Exported {len(pipeline.knowledge_store)} entries" in output
        assert "Imported 0 entries" in output

    def test_import_missing_file_reports_error(self, pipeline, tmp_path, capsys):
        """Test import failures are reported, not raised."""
        ui = TerminalUI(pipeline, log_dir=None)

        assert ui.handle_command(f"/import {tmp_path / 'missing.json'}") is True
        assert "Import failed" in capsys.readouterr().out

    def test_export_requires_path(self, pipeline, capsys):
        """Test usage hint when the path is missing."""
        ui = TerminalUI(pipeline, log_dir=None)

        ui.handle_command("/export")

        assert "Usage: /export <path>" in capsys.readouterr().out

    def test_unknown_command(self, pipeline, capsys):
        """Test unknown commands are reported."""
        ui = TerminalUI(pipeline, log_dir=None)

        assert ui.handle_command("/dance") is True
        assert "Unknown command: /dance" in capsys.readouterr().out

    def test_format_response_debug(self, pipeline):
        """Test debug mode shows routing details."""
        ui = TerminalUI(pipeline, log_dir=None, debug_mode=True)
        response = CoachResponse(
            content="Rest well.",
            source=ResponseSource.AI_API,
            confidence=0.9,
            provider="Groq",
            metadata=ResponseMetadata(processing_time_ms=42)
        )

        text = ui.format_response(response)

        assert text.startswith("Coach: Rest well.")
        assert "Groq" in text
        assert "42ms" in text
        assert "0.90" in text

    def test_format_response_plain(self, pipeline):
        """Test routing details are hidden outside debug mode."""
        ui = TerminalUI(pipeline, log_dir=None)
        response = CoachResponse(content="Rest well.", source=ResponseSource.CACHE, confidence=0.9)

        assert ui.format_response(response) == "Coach: Rest well.\n"

    @pytest.mark.asyncio
    async def test_session_transcript(self, pipeline, tmp_path):
        """Test turns are written to the conversation log."""
        ui = TerminalUI(pipeline, log_dir=str(tmp_path))

        await ui._process_message("How do I do a proper squat?")
        for handler in ui.session_logger.handlers:
            handler.flush()

        transcripts = list(tmp_path.glob("conversation_*.txt"))
        assert len(transcripts) == 1
        content = transcripts[0].read_text(encoding="utf-8")
        assert "USER: How do I do a proper squat?" in content
        assert "Source: local_knowledge" in content
