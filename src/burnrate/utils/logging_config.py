"""
Logging configuration for the command-line interface.

Library modules only create loggers; handlers are installed here.
"""
import logging
import sys


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Configure logging with appropriate format and level."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ],
        force=True,
    )

    logging.getLogger("burnrate").setLevel(log_level)

    return logging.getLogger("burnrate")
