"""
Geometry tool adapter

The conversion logic talks to a GeometryTool; MapshaperTool implements it by
running the mapshaper command line. Argument lists are built by plain
functions so they can be checked without running anything.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional, Protocol, Sequence

from ..domain.enums import OutputFormat
from ..domain.models import (
    GlobalOptions,
    LayerConfig,
    SimplificationProfile,
    effective_precision,
    effective_properties,
)
from ..types import OutputHandle, ResolutionError, ToolInvocationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoTransform:
    """Everything stage one applies to the source geometry."""
    projection: str
    precision: Optional[float] = None
    properties: tuple[str, ...] = field(default_factory=tuple)
    level: float = 100
    snap: bool = False
    method: Optional[str] = None
    keep_shapes: bool = False

    @property
    def simplified(self) -> bool:
        return self.level < 100

    @classmethod
    def for_profile(
        cls,
        layer: LayerConfig,
        profile: SimplificationProfile,
        options: GlobalOptions,
    ) -> GeoTransform:
        """
        Combine layer defaults, profile overrides and global options.

        Raises:
            ResolutionError: If the layer has no projection
        """
        if not layer.projection:
            raise ResolutionError(f"No projection configured for layer {layer.name}.")
        return cls(
            projection=layer.projection,
            precision=effective_precision(profile, layer),
            properties=tuple(effective_properties(profile, layer)),
            level=profile.level,
            snap=options.snap,
            method=options.method,
            keep_shapes=options.keep_shapes,
        )


class GeometryTool(Protocol):
    """Operations the convert stage needs from a geometry tool."""

    def version(self) -> str:
        ...

    def to_geo_format(self, input_path: Path, output_path: Path, transform: GeoTransform) -> OutputHandle:
        ...

    def to_topology_format(self, input_path: Path, output_path: Path) -> OutputHandle:
        ...


def format_number(value: float) -> str:
    """Plain decimal notation, without exponent or trailing zeros."""
    if float(value).is_integer():
        return str(int(value))
    return format(Decimal(repr(float(value))).normalize(), "f")


def build_geojson_args(input_path: Path, output_path: Path, transform: GeoTransform) -> list[str]:
    """mapshaper arguments for stage one (source geometry to GeoJSON)."""
    args = ["-i", str(input_path)]
    if transform.snap:
        args.append("snap")
    args += ["-proj", transform.projection]

    if transform.properties:
        args += ["-filter-fields", ",".join(transform.properties)]

    if transform.simplified:
        args += ["-simplify", f"{format_number(transform.level)}%"]
        if transform.method:
            args.append(transform.method)
        if transform.keep_shapes:
            args.append("keep-shapes")

    args += ["-o", f"format={OutputFormat.GEOJSON.value}"]
    if transform.precision is not None:
        args.append(f"precision={format_number(transform.precision)}")
    args.append(str(output_path))
    return args


def build_topojson_args(input_path: Path, output_path: Path) -> list[str]:
    """mapshaper arguments for stage two (GeoJSON to TopoJSON)."""
    return ["-i", str(input_path), "-o", f"format={OutputFormat.TOPOJSON.value}", str(output_path)]


class MapshaperTool:
    """GeometryTool backed by the mapshaper command line."""

    def __init__(self, binary: str = "mapshaper", timeout_s: Optional[float] = None):
        self.binary = binary
        self.timeout_s = timeout_s

    def run(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        """
        Run mapshaper with ``args``.

        Raises:
            ToolInvocationError: If mapshaper cannot start, times out or fails
        """
        command = [self.binary, *args]
        logger.debug(f"Running: {' '.join(command)}")
        try:
            return subprocess.run(
                command,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=True,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise ToolInvocationError(f"Mapshaper not found: {self.binary}", command) from e
        except OSError as e:
            raise ToolInvocationError(f"Cannot run {self.binary}: {e}", command) from e
        except subprocess.TimeoutExpired as e:
            raise ToolInvocationError(
                f"Mapshaper timed out after {self.timeout_s}s", command
            ) from e
        except subprocess.CalledProcessError as e:
            raise ToolInvocationError(
                f"Mapshaper exited with code {e.returncode}",
                command, returncode=e.returncode, stderr=e.stderr
            ) from e

    def version(self) -> str:
        result = self.run(["--version"])
        return (result.stdout or result.stderr).strip()

    def to_geo_format(self, input_path: Path, output_path: Path, transform: GeoTransform) -> OutputHandle:
        self.run(build_geojson_args(input_path, output_path, transform))
        return _output(output_path)

    def to_topology_format(self, input_path: Path, output_path: Path) -> OutputHandle:
        self.run(build_topojson_args(input_path, output_path))
        return _output(output_path)


def _output(path: Path) -> OutputHandle:
    if not path.exists():
        raise ToolInvocationError(f"Mapshaper reported success but wrote no file: {path}")
    return OutputHandle.from_path(path)
