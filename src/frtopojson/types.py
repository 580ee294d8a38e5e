"""
Error kinds for the France TopoJSON pipeline.

Every kind below fails one unit of work only (a layer, or a single output
variant for ToolInvocationError). Fatal problems raise ConfigurationError
from frtopojson.config.settings instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence


class PipelineError(Exception):
    """Base exception for per-layer pipeline failures."""
    pass


class ResolutionError(PipelineError):
    """A required file name, URL or setting cannot be derived from the layer config."""
    pass


class NetworkError(PipelineError):
    """Download failure: unexpected HTTP status or transport error."""
    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ExtractionError(PipelineError):
    """The archiver could not extract an archive."""
    def __init__(self, archive: Path, message: str, stderr: Optional[str] = None):
        self.archive = archive
        self.stderr = stderr
        super().__init__(f"Extraction of {archive.name} failed: {message}")


class LocateError(PipelineError):
    """The geometry file was not found in the extracted tree."""
    def __init__(self, file_name: str, search_root: Path):
        self.file_name = file_name
        self.search_root = search_root
        super().__init__(f"Shapefile not found: {file_name} (searched {search_root})")


class ToolInvocationError(PipelineError):
    """The geometry tool exited with an error or could not be started."""
    def __init__(
        self,
        message: str,
        args: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


@dataclass(frozen=True)
class OutputHandle:
    """A file written by the geometry tool."""
    path: Path
    size_bytes: int

    @classmethod
    def from_path(cls, path: Path) -> OutputHandle:
        return cls(path=path, size_bytes=path.stat().st_size)
