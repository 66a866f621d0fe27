"""
Terminal-based chat interface for the fitness coach.

This module provides a simple command-line interface that forwards each
line to the CoachPipeline and prints the routed response, plus a handful
of slash commands for analytics, provider status and knowledge tooling.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .models import CoachResponse
from .pipeline import CoachPipeline

logger = logging.getLogger(__name__)


SOURCE_LABELS = {
    "local_knowledge": "📚 local knowledge",
    "cache": "⚡ cache",
    "ai_api": "🌐 AI",
    "local_fallback": "🏠 local fallback",
    "error": "⚠️ error fallback",
    "safety_protocol": "🚨 safety protocol",
}


class TerminalUI:
    """
    Terminal-based chat interface for the fitness coach.

    Provides a simple REPL (Read-Eval-Print Loop) for text-based conversations.
    """

    def __init__(
        self,
        pipeline: CoachPipeline,
        debug_mode: bool = False,
        user_id: str = "terminal",
        log_dir: Optional[str] = "logs",
        input_func: Callable[[str], str] = input
    ):
        """
        Initialize the Terminal UI with a coach pipeline.

        Args:
            pipeline: The CoachPipeline instance to use for processing.
            debug_mode: If True, show routing info after each message.
            user_id: Identifier forwarded with every message.
            log_dir: Directory for the conversation transcript; None disables it.
            input_func: Line reader, injectable for tests.
        """
        self.pipeline = pipeline
        self.debug_mode = debug_mode
        self.user_id = user_id
        self.running = False
        self._input = input_func
        self.session_logger: Optional[logging.Logger] = None

        if log_dir:
            self._setup_session_logger(Path(log_dir))

        logger.info("TerminalUI initialized")

    def _setup_session_logger(self, log_dir: Path) -> None:
        """Setup a dedicated logger for this session's conversation history."""
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"conversation_{timestamp}.txt"

        self.session_logger = logging.getLogger(f"session_{timestamp}")
        self.session_logger.setLevel(logging.INFO)

        # File handler only
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(message)s'))
        self.session_logger.addHandler(handler)
        self.session_logger.propagate = False  # Don't bubble up to root logger

        print(f"\n📝 Conversation logging to: {log_file}")

    async def _process_message(self, message: str) -> CoachResponse:
        """
        Process a user message through the pipeline.

        Args:
            message: User input text.

        Returns:
            The routed response.
        """
        response = await self.pipeline.process_message(message, self.user_id)
        self._log_turn(message, response)
        return response

    def _log_turn(self, user_text: str, response: CoachResponse) -> None:
        """Log a full turn to the session file."""
        if self.session_logger is None:
            return

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.session_logger.info(f"[{timestamp}] USER: {user_text}")
        self.session_logger.info(f"[{timestamp}] COACH: {response.content}")
        self.session_logger.info(
            f"[ROUTE] Source: {response.source.value} | "
            f"Confidence: {response.confidence:.2f} | "
            f"Provider: {response.provider or '-'}"
        )
        self.session_logger.info("-" * 40)

    def format_response(self, response: CoachResponse) -> str:
        """Render a response for the terminal, with routing info in debug mode."""
        text = f"Coach: {response.content}\n"
        if self.debug_mode:
            label = SOURCE_LABELS.get(response.source.value, response.source.value)
            details = [label, f"confidence {response.confidence:.2f}"]
            if response.provider:
                details.append(response.provider)
            if response.metadata.processing_time_ms is not None:
                details.append(f"{response.metadata.processing_time_ms}ms")
            if response.metadata.error_code:
                details.append(f"error: {response.metadata.error_code}")
            text += f"  [{' | '.join(details)}]\n"
        return text

    def _print_help(self) -> None:
        """Print help information."""
        print("\n📖 Available Commands:")
        print("  /help                     - Show this help message")
        print("  /stats                    - Show routing analytics")
        print("  /providers                - Show external provider status")
        print("  /clear                    - Clear the response cache")
        print("  /export <path>            - Export knowledge entries to JSON")
        print("  /import <path>            - Import knowledge entries from JSON")
        print("  /debug                    - Toggle routing details")
        print("  /quit                     - Exit the application")
        print()

    def _print_stats(self) -> None:
        """Print analytics snapshot."""
        stats = self.pipeline.get_analytics().to_dict()
        print("\n📊 Analytics:")
        for key, value in stats.items():
            print(f"  {key}: {value}")
        print()

    def _print_providers(self) -> None:
        """Print provider availability."""
        status = self.pipeline.get_provider_status()
        print("\n🌐 Providers:")
        for provider in status['providers']:
            key_state = "key set" if provider['api_key_present'] else "no key"
            print(
                f"  {provider['name']}: {key_state}, "
                f"{provider['current_usage']}/{provider['quota_per_day']} today, "
                f"{provider['error_count']} errors"
            )
        for error in status['errors']:
            print(f"  ⚠️ {error}")
        print()

    def handle_command(self, line: str) -> bool:
        """
        Execute a slash command.

        Args:
            line: Raw command line, starting with '/'.

        Returns:
            False when the REPL should stop, True otherwise.
        """
        parts = line.split(maxsplit=1)
        command = parts[0].lower()
        argument = parts[1].strip() if len(parts) > 1 else ""

        if command in ['/quit', '/exit']:
            print("Goodbye!")
            return False
        elif command == '/help':
            self._print_help()
        elif command == '/stats':
            self._print_stats()
        elif command == '/providers':
            self._print_providers()
        elif command == '/clear':
            self.pipeline.clear_cache()
            print("Response cache cleared.\n")
        elif command == '/debug':
            self.debug_mode = not self.debug_mode
            print(f"Debug mode: {self.debug_mode}")
        elif command in ['/export', '/import']:
            if not argument:
                print(f"Usage: {command} <path>\n")
                return True
            try:
                if command == '/export':
                    count = self.pipeline.export_knowledge(argument)
                    print(f"✅ Exported {count} entries to {argument}\n")
                else:
                    count = self.pipeline.import_knowledge(argument)
                    print(f"✅ Imported {count} entries from {argument}\n")
            except (OSError, ValueError) as e:
                logger.error(f"{command} failed: {e}")
                print(f"❌ {command[1:].capitalize()} failed: {e}\n")
        else:
            print(f"Unknown command: {command}")
        return True

    async def run(self) -> None:
        """
        Run the terminal chat interface.
        """
        self.running = True
        print("\n💪 Fitness Coach Ready")
        print("Type /help for commands. Type /quit to exit.\n")

        try:
            while self.running:
                # Get user input
                try:
                    user_input = (await asyncio.to_thread(self._input, "You: ")).strip()
                except (EOFError, KeyboardInterrupt):
                    print("\nGoodbye!")
                    break

                # Skip empty input
                if not user_input:
                    continue

                if user_input.startswith('/'):
                    if not self.handle_command(user_input):
                        break
                    continue

                response = await self._process_message(user_input)
                print(self.format_response(response))

        finally:
            self.running = False
            logger.info("Terminal UI stopped")

    def stop(self) -> None:
        self.running = False


async def run_terminal_interface(pipeline: CoachPipeline, log_dir: Optional[str] = "logs") -> None:
    """
    Run the terminal-based chat interface.

    Args:
        pipeline: Initialized CoachPipeline instance.
        log_dir: Directory for the conversation transcript.
    """
    ui = TerminalUI(pipeline, log_dir=log_dir)
    await ui.run()
