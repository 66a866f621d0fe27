"""
Main application entry point for the fitness coach.

This module provides the main entry point for starting the fitness coach
application. It handles configuration loading, component initialization, error
handling, and launches the terminal-based chat interface.

The application follows this startup sequence:
1. Load and validate configuration from .env file
2. Set up logging based on configuration
3. Initialize the CoachPipeline with all components
4. Launch the terminal chat interface
5. Release HTTP resources on exit

All configuration errors are handled with clear error messages to help users
identify and fix configuration issues.
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path

from .config import ConfigManager, ConfigurationError, SystemConfig
from .pipeline import CoachPipeline, create_pipeline
from .terminal_ui import run_terminal_interface


def setup_logging(config: SystemConfig) -> Path:
    """
    Set up logging configuration based on system config.

    Args:
        config: System configuration containing log level and directory.

    Returns:
        Path: The log file in use.
    """
    # Create logs directory if it doesn't exist
    logs_dir = Path(config.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "fitcoach.log"

    # Configure logging format
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    # Set up file handler only (no console output to keep UI clean)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        handlers=[file_handler],
        force=True
    )

    # Set specific logger levels to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized at level: {config.log_level}")
    return log_file


def describe_providers(pipeline: CoachPipeline) -> str:
    """One-line startup summary of external provider availability."""
    status = pipeline.get_provider_status()
    if status['has_external_apis']:
        return f"🌐 External AI: {', '.join(status['available_providers'])}"
    return "🏠 No external AI configured, answering from local knowledge only"


async def async_main(config: SystemConfig) -> None:
    """
    Run the coach until the terminal interface exits.

    Args:
        config: Loaded system configuration.
    """
    logger = logging.getLogger(__name__)

    pipeline = create_pipeline(config)
    logger.info("Pipeline initialized successfully")
    print(describe_providers(pipeline))

    # Set up signal handlers for graceful shutdown
    def signal_handler(signum, frame):
        logger.info("Shutting down...")
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, signal_handler)

    try:
        # Run the terminal interface (this blocks until exit)
        await run_terminal_interface(pipeline, log_dir=config.log_dir)
        logger.info("Terminal interface closed, cleaning up...")
    finally:
        stats = pipeline.get_analytics().to_dict()
        logger.info(f"Session analytics: {stats}")
        await pipeline.aclose()


def main() -> None:
    """
    Main application entry point.

    This function orchestrates the entire application startup:
    1. Load configuration
    2. Set up logging
    3. Initialize pipeline and launch terminal interface
    4. Handle errors gracefully
    """
    # Step 1: Load configuration
    try:
        config = ConfigManager.load()
    except ConfigurationError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    # Step 2: Set up logging
    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.info("=== Fitness Coach Starting ===")

    # Step 3: Run the async main function
    try:
        asyncio.run(async_main(config))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        print("\n👋 Goodbye!")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error in main loop: {e}", exc_info=True)
        print(f"❌ Fatal Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
