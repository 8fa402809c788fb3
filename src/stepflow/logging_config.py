"""
Logging Configuration for stepflow.

The extraction pipeline takes its logger as a parameter and defaults to
NULL_LOGGER, so library use stays silent. The CLI (or any host application)
asks for the diagnostics logger, which writes to stderr and, unless disabled,
to debug_trace.log in the log directory.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

DIAGNOSTICS_LOGGER_NAME = "stepflow.diagnostics"

_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# Log directory priority:
# 1. STEPFLOW_LOG_DIR (explicit)
# 2. STEPFLOW_PROJECT_ROOT/.stepflow (if set)
# 3. CWD/.stepflow (fallback)
def _get_log_directory() -> Path:
    """Get the log directory path."""
    log_dir = os.getenv("STEPFLOW_LOG_DIR")
    if not log_dir:
        project_root = os.getenv("STEPFLOW_PROJECT_ROOT")
        if project_root:
            log_dir = str(Path(project_root) / ".stepflow")
        else:
            log_dir = str(Path.cwd() / ".stepflow")
    return Path(log_dir)


def _debug_log_enabled() -> bool:
    # Set STEPFLOW_DEBUG_LOG="" to disable the file handler
    value = os.getenv("STEPFLOW_DEBUG_LOG")
    return value is None or value != ""


def _create_file_handler(log_filename: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    Args:
        log_filename: Name of the log file (e.g., 'debug_trace.log')

    Returns:
        Configured FileHandler, or None if file logging is disabled or the
        directory cannot be created
    """
    if not _debug_log_enabled():
        return None

    try:
        log_dir = _get_log_directory()
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / log_filename, mode='a', encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler.stepflow_owned = True
        return handler
    except OSError:
        return None


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_stderr_handler() -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.stepflow_owned = True
    return handler


def _owned_handlers(logger: logging.Logger) -> List[logging.Handler]:
    """Handlers this module installed, ignoring any a host attached."""
    return [h for h in logger.handlers if getattr(h, "stepflow_owned", False)]


def _create_null_logger() -> logging.Logger:
    logger = logging.getLogger("stepflow.null")
    if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


# Default for the extraction pipeline: discards everything
NULL_LOGGER = _create_null_logger()


def get_diagnostic_logger() -> logging.Logger:
    """
    Get the diagnostics logger for extraction traces.

    Output goes to stderr (warnings and above) and to
    .stepflow/debug_trace.log (everything).

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)

    # Only configure once
    if not _owned_handlers(logger):
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        file_handler = _create_file_handler("debug_trace.log")
        if file_handler:
            logger.addHandler(file_handler)

        logger.addHandler(_create_stderr_handler())

    return logger


def configure_cli_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure the diagnostics logger for command-line use.

    Args:
        verbose: Also show debug and info records on stderr

    Returns:
        The diagnostics logger
    """
    logger = get_diagnostic_logger()
    stderr_level = logging.DEBUG if verbose else logging.WARNING
    for handler in _owned_handlers(logger):
        if isinstance(handler, FlushingStreamHandler):
            handler.setLevel(stderr_level)
    return logger


def reset_diagnostic_logger() -> None:
    """Close and drop the diagnostics handlers so the next call reconfigures."""
    logger = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)
    for handler in _owned_handlers(logger):
        handler.close()
        logger.removeHandler(handler)
