"""
Consolidated Utilities

Sections:
- Logging and timing utilities
- Filesystem helpers
- Configuration helpers
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

CONSOLE_LOGGER = "frtopojson.console"

# =============================================================================
# Logging and Timing Utilities
# =============================================================================

def setup_logging(
    verbose: bool,
    command: Optional[str] = None,
    enable_file_logging: bool = False
) -> Optional[Path]:
    """
    Configure logging with optional timestamped file output.

    Args:
        verbose: Enable debug-level logging if True
        command: Command name used for log file naming
        enable_file_logging: Create timestamped log files when True

    Returns:
        Path of the log file when file logging is enabled
    """
    console_level = logging.DEBUG if verbose else logging.WARNING

    # Console status lines are already printed by ConsoleReporter
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(console_level)
    stream_handler.addFilter(lambda record: not record.name.startswith(CONSOLE_LOGGER))
    handlers: list[logging.Handler] = [stream_handler]
    log_file = None

    if enable_file_logging and command:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"{command}_{timestamp}.log"

        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if (verbose or log_file) else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True
    )
    return log_file


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m {secs:.1f}s"


# =============================================================================
# Filesystem Helpers
# =============================================================================

def format_size(size_bytes: int) -> str:
    """
    Format a byte count as B, KB or MB.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size, one decimal above a kilobyte
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def file_size(path: Path) -> str:
    """Human-readable size of a file on disk."""
    return format_size(path.stat().st_size)


def remove_quietly(path: Path) -> None:
    """Delete a file if it exists, logging instead of raising on failure."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logging.warning(f"Could not remove {path}: {e}")


# =============================================================================
# Configuration Helpers
# =============================================================================

def load_yaml_file(file_path: Path) -> Any:
    """
    Load YAML configuration file with error handling.

    JSON documents are accepted as well, JSON being a subset of YAML.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed YAML content

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file is not valid YAML
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
