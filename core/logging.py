"""Linux-native logging setup.

This module provides structured logging that integrates with the XDG data
directory, with a rotating log file and console output for problems.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

# ============================================================================
# Third-Party Imports (alphabetical, with version requirements)
# ============================================================================
# None

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
# None

ROOT_LOGGER_NAME = "dirplayer"
DEBUG_ENV_VAR = "DIRPLAYER_DEBUG"


class LinuxLogger:
    """
    Linux-native logger with file and console output.

    Supports:
    - File logging to XDG data directory
    - Console output for warnings and errors
    - Environment variable control (DIRPLAYER_DEBUG)
    """

    _instance: Optional["LinuxLogger"] = None
    _initialized: bool = False

    def __init__(self, log_dir: Optional[Path] = None, level: int = logging.INFO):
        """
        Initialize the logger.

        Args:
            log_dir: Directory for log files (defaults to XDG data dir)
            level: Level used when DIRPLAYER_DEBUG is not set
        """
        self.logger = logging.getLogger(ROOT_LOGGER_NAME)
        if LinuxLogger._initialized:
            return

        self.logger.setLevel(logging.DEBUG if os.getenv(DEBUG_ENV_VAR) else level)

        # Prevent duplicate handlers
        if self.logger.handlers:
            LinuxLogger._initialized = True
            return

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # Console handler (stderr)
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_dir is None:
            xdg_data = os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share")
            log_dir = Path(xdg_data) / ROOT_LOGGER_NAME / "logs"

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / "dirplayer.log", maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
            )
        except OSError as e:
            self.logger.warning("File logging disabled (%s): %s", log_dir, e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        LinuxLogger._instance = self
        LinuxLogger._initialized = True

    @classmethod
    def get_logger(cls, name: str = ROOT_LOGGER_NAME) -> logging.Logger:
        """
        Get a logger instance.

        Module names are attached below the application logger, so
        ``get_logger("core.catalog")`` yields ``dirplayer.core.catalog``.
        Handlers are only attached once ``LinuxLogger`` has been constructed.
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if name == ROOT_LOGGER_NAME:
            return root
        return root.getChild(name)

    @classmethod
    def set_level(cls, level: int) -> None:
        """Set logging level for the application logger."""
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance."""
    return LinuxLogger.get_logger(name)


def parse_level(name: str, fallback: int = logging.INFO) -> int:
    """Map a level name from the config file to a logging level."""
    level = logging.getLevelName(name.strip().upper()) if name else None
    return level if isinstance(level, int) else fallback
