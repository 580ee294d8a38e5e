"""
Runtime settings for the France TopoJSON pipeline.

Layer definitions live in the YAML configuration document (see config_loader).
This module covers everything that depends on the machine running the pipeline:
where the external tools are installed and how long network and subprocess
operations may take.

Usage:
    from frtopojson.config.settings import Config
    config = Config()
    mapshaper = config.tools.mapshaper_bin

Environment Variables:
    MAPSHAPER_BIN: Path to the mapshaper executable
    ARCHIVER_BIN: Path to the 7-Zip executable (7zz, 7z or 7za)
    TOOL_TIMEOUT_S: Timeout for each external tool run in seconds (0 = none)
    HTTP_TIMEOUT_S: Connect/read timeout for downloads in seconds
    HTTP_MAX_REDIRECTS: Redirect hops allowed per download
    DOWNLOAD_CHUNK_SIZE: Bytes per streamed download chunk
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ARCHIVER_CANDIDATES = ("7zz", "7z", "7za")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class ToolConfig:
    """External tool locations and limits."""
    mapshaper_bin: str
    archiver_bin: Optional[str] = None
    timeout_s: Optional[float] = None

    def __post_init__(self):
        """Validate tool configuration."""
        if not self.mapshaper_bin:
            raise ValueError("Mapshaper executable cannot be empty")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("Tool timeout must be positive")


@dataclass
class NetworkConfig:
    """HTTP download configuration."""
    timeout_s: float = 300
    max_redirects: int = 10
    chunk_size: int = 1024 * 1024

    def __post_init__(self):
        """Validate network configuration."""
        if self.timeout_s <= 0:
            raise ValueError("HTTP timeout must be positive")
        if self.max_redirects < 0:
            raise ValueError("Redirect limit must be non-negative")
        if self.chunk_size < 1:
            raise ValueError("Chunk size must be positive")


class Config:
    """
    Machine-level configuration for the pipeline.

    Environment variables loaded (in order of preference):
    1. Explicit environment file passed to constructor
    2. .env.{ENVIRONMENT} (where ENVIRONMENT=development|production)
    3. .env file in project root
    4. System environment variables

    Example:
        config = Config()
        config = Config(env_file=Path("/opt/frtopojson/production.env"))
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None):
        """
        Initialize configuration from the environment.

        Args:
            environment: Target environment (development|production)
            env_file: Explicit path to environment file
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = self._find_project_root()

        self._load_environment_variables(env_file)

        self._load_tool_config()
        self._load_network_config()

    def _find_project_root(self) -> Path:
        """The nearest folder above this package holding pyproject.toml, else the working directory."""
        for parent in Path(__file__).resolve().parents:
            if (parent / "pyproject.toml").exists():
                return parent
        return Path.cwd()

    def _load_environment_variables(self, env_file: Optional[Path]) -> None:
        """Load an explicit env file, or .env.{environment} then .env from the project root."""
        if env_file:
            if not env_file.exists():
                raise ConfigurationError(f"Specified env file not found: {env_file}")
            candidates = [env_file]
        else:
            candidates = [self.project_root / f".env.{self.environment}", self.project_root / ".env"]

        for path in candidates:
            if path.exists():
                load_dotenv(path)
                logger.debug(f"Loaded env file: {path}")

    def _default_mapshaper(self) -> str:
        """Prefer a project-local npm install, fall back to PATH lookup."""
        local_bin = self.project_root / "node_modules" / ".bin" / "mapshaper"
        if local_bin.exists():
            return str(local_bin)
        return "mapshaper"

    def _default_archiver(self) -> Optional[str]:
        for candidate in ARCHIVER_CANDIDATES:
            found = shutil.which(candidate)
            if found:
                return found
        return None

    def _load_tool_config(self) -> None:
        """Load external tool locations."""
        mapshaper_bin = os.getenv("MAPSHAPER_BIN") or self._default_mapshaper()
        archiver_bin = os.getenv("ARCHIVER_BIN") or self._default_archiver()

        try:
            timeout = _read_float("TOOL_TIMEOUT_S", 0)
            self.tools = ToolConfig(
                mapshaper_bin=mapshaper_bin,
                archiver_bin=archiver_bin,
                timeout_s=timeout or None
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid tool configuration: {e}")

    def _load_network_config(self) -> None:
        """Load download settings with sensible defaults."""
        try:
            self.network = NetworkConfig(
                timeout_s=_read_float("HTTP_TIMEOUT_S", 300),
                max_redirects=int(_read_float("HTTP_MAX_REDIRECTS", 10)),
                chunk_size=int(_read_float("DOWNLOAD_CHUNK_SIZE", 1024 * 1024))
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid network configuration: {e}")

    def get_tool_settings(self) -> dict[str, Any]:
        """
        Get tool settings as dictionary.

        Returns:
            Dictionary of tool locations and timeout
        """
        return {
            'mapshaper_bin': self.tools.mapshaper_bin,
            'archiver_bin': self.tools.archiver_bin,
            'timeout_s': self.tools.timeout_s,
        }

    def __repr__(self) -> str:
        return (
            f"Config(environment={self.environment}, "
            f"mapshaper={self.tools.mapshaper_bin}, "
            f"archiver={self.tools.archiver_bin})"
        )


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value
