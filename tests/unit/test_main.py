"""
Unit tests for main application entry point.
"""

import logging

import pytest
from unittest.mock import AsyncMock, patch

from fitcoach.config import ConfigurationError, ProviderSettings, SystemConfig
from fitcoach.main import async_main, describe_providers, main, setup_logging
from fitcoach.pipeline import CoachPipeline
from fitcoach.provider_registry import ProviderRegistry


@pytest.fixture
def restore_logging():
    """Restore root logger handlers after setup_logging replaces them."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestMainApplication:
    """Test cases for main application functions."""

    def test_setup_logging_creates_log_file(self, tmp_path, restore_logging):
        """Test that setup_logging creates the log directory and file."""
        config = SystemConfig(log_dir=str(tmp_path / "logs"), log_level="DEBUG")

        log_file = setup_logging(config)

        assert log_file == tmp_path / "logs" / "fitcoach.log"
        assert log_file.exists()
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_describe_providers_local_only(self):
        """Test the startup summary without providers."""
        pipeline = CoachPipeline(registry=ProviderRegistry([]))

        assert "local knowledge only" in describe_providers(pipeline)

    def test_describe_providers_with_provider(self):
        """Test the startup summary lists available providers."""
        config = SystemConfig(providers=[
            ProviderSettings("Groq", "https://api.groq.com/openai/v1", "m", "gsk-live", 10)
        ])

        assert "Groq" in describe_providers(CoachPipeline(config))

    def test_main_exits_on_configuration_error(self, capsys):
        """Test configuration errors exit with status 1."""
        with patch('fitcoach.main.ConfigManager.load', side_effect=ConfigurationError("bad value")):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "Configuration Error: bad value" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_async_main_closes_pipeline(self, tmp_path):
        """Test the pipeline is closed after the terminal exits."""
        config = SystemConfig(log_dir=str(tmp_path))

        with patch('fitcoach.main.run_terminal_interface', new_callable=AsyncMock) as mock_run, \
                patch.object(CoachPipeline, 'aclose', new_callable=AsyncMock) as mock_close, \
                patch('fitcoach.main.signal.signal'):
            await async_main(config)

        mock_run.assert_awaited_once()
        assert mock_run.call_args.kwargs['log_dir'] == str(tmp_path)
        mock_close.assert_awaited_once()
