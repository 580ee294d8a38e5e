"""
Convert stage - Shapefile to GeoJSON to TopoJSON

For each layer, locate its geometry file in the extracted sources, then for
each simplification profile write an intermediate GeoJSON file and convert
it to TopoJSON. A failing profile does not stop the next one; a failing
layer does not stop the next layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..domain.enums import Outcome
from ..domain.models import LayerConfig, ProjectConfig, SimplificationProfile
from ..reporter import ConsoleReporter, RunSummary
from ..types import LocateError, PipelineError, ResolutionError
from ..utils import file_size, format_size
from .locate import ListDir, find_shapefile, list_directory
from .tools import GeometryTool, GeoTransform

logger = logging.getLogger(__name__)


def compression_ratio(intermediate_bytes: int, final_bytes: int) -> float:
    """Size reduction from GeoJSON to TopoJSON: 1 - final / intermediate."""
    if intermediate_bytes <= 0:
        return 0.0
    return 1 - (final_bytes / intermediate_bytes)


@dataclass(frozen=True)
class OutputPaths:
    """Where one output variant is written."""
    name: str
    geojson: Path
    topojson: Path


@dataclass
class ProfileResult:
    """Outcome of one output variant."""
    name: str
    outcome: Outcome
    geojson_bytes: int = 0
    topojson_bytes: int = 0
    error: Optional[str] = None

    @property
    def ratio(self) -> float:
        return compression_ratio(self.geojson_bytes, self.topojson_bytes)


@dataclass
class LayerResult:
    """Outcome of one layer and its variants."""
    name: str
    outcome: Outcome
    shapefile: Optional[Path] = None
    profiles: list[ProfileResult] = field(default_factory=list)

    @property
    def failed_profiles(self) -> list[ProfileResult]:
        return [p for p in self.profiles if p.outcome is Outcome.FAILED]


class Converter:
    """Conversion of extracted layers into GeoJSON and TopoJSON outputs."""

    def __init__(
        self,
        project: ProjectConfig,
        tool: GeometryTool,
        reporter: Optional[ConsoleReporter] = None,
        list_dir: ListDir = list_directory,
    ):
        self.project = project
        self.options = project.options
        self.dirs = project.working_directories()
        self.tool = tool
        self.reporter = reporter or ConsoleReporter()
        self.list_dir = list_dir

    def output_paths(self, layer: LayerConfig, profile: SimplificationProfile) -> OutputPaths:
        name = layer.output_name(profile)
        return OutputPaths(
            name=name,
            geojson=self.dirs.geojson / f"{name}.json",
            topojson=self.dirs.topojson / f"{name}.json",
        )

    def locate_source(self, layer: LayerConfig) -> Path:
        """
        Find the layer's geometry file beneath sources/<layer name>/.

        Raises:
            ResolutionError: If the layer names no geometry file
            LocateError: If the file is not in the extracted tree
        """
        if not layer.source.shapefile:
            raise ResolutionError(f"No shapefile name configured for layer {layer.name}.")
        search_root = self.dirs.sources / layer.name
        found = find_shapefile(search_root, layer.source.shapefile, self.list_dir)
        if found is None:
            raise LocateError(layer.source.shapefile, search_root)
        return found

    def convert_layer(self, layer: LayerConfig, force: bool = False) -> LayerResult:
        """
        Convert one layer at every simplification level.

        Args:
            layer: Layer to convert
            force: Convert even if the layer is disabled (explicit selection)

        Raises:
            ResolutionError, LocateError: The layer cannot be converted at all
        """
        if not layer.enabled and not force:
            self.reporter.skip(f"⊘ Layer disabled: {layer.name}")
            return LayerResult(layer.name, Outcome.SKIPPED)

        self.reporter.heading(f"Converting: {layer.display_name} ({layer.name})")
        self.dirs.ensure()

        shapefile = self.locate_source(layer)
        self.reporter.success(f"[OK] Shapefile found: {shapefile}")
        self.reporter.detail(f"  Size: {file_size(shapefile)}")

        result = LayerResult(layer.name, Outcome.DONE, shapefile=shapefile)
        for profile in layer.simplifications:
            result.profiles.append(self.convert_profile(layer, profile, shapefile))

        if result.failed_profiles:
            self.reporter.notice(
                f"\n[!] Layer finished with {len(result.failed_profiles)} failed output(s): {layer.name}"
            )
        else:
            self.reporter.success(f"\n[OK] Layer finished: {layer.name}")
        return result

    def convert_profile(self, layer: LayerConfig, profile: SimplificationProfile, shapefile: Path) -> ProfileResult:
        """Write one output variant. Tool failures are reported, not raised."""
        paths = self.output_paths(layer, profile)
        label = profile.description or paths.name
        self.reporter.action(f"\n  -> {label} ({profile.level:g}%)")

        try:
            transform = GeoTransform.for_profile(layer, profile, self.options)

            self.reporter.detail("    Generating GeoJSON...")
            geojson = self.tool.to_geo_format(shapefile, paths.geojson, transform)
            self.reporter.success(f"    [OK] GeoJSON created: {format_size(geojson.size_bytes)}")

            self.reporter.detail("    Converting to TopoJSON...")
            topojson = self.tool.to_topology_format(geojson.path, paths.topojson)
            self.reporter.success(f"    [OK] TopoJSON created: {format_size(topojson.size_bytes)}")
        except PipelineError as e:
            self.reporter.failure(f"    [ERROR] {e}")
            stderr = getattr(e, "stderr", None)
            if stderr:
                self.reporter.failure(f"    Details: {stderr.strip()}")
            return ProfileResult(paths.name, Outcome.FAILED, error=str(e))

        result = ProfileResult(
            paths.name, Outcome.DONE,
            geojson_bytes=geojson.size_bytes, topojson_bytes=topojson.size_bytes
        )
        self.reporter.detail(
            f"    Compression: {result.ratio * 100:.1f}% "
            f"({format_size(topojson.size_bytes)} vs {format_size(geojson.size_bytes)})"
        )
        return result

    def run(self, layers: Iterable[LayerConfig], force: bool = False) -> RunSummary:
        """
        Convert layers one after the other.

        Args:
            layers: Layers to convert, already selected
            force: Convert disabled layers too (explicit --layer selection)
        """
        summary = RunSummary()
        for layer in layers:
            try:
                result = self.convert_layer(layer, force=force)
            except Exception as e:
                self.reporter.failure(f"Error while processing {layer.name}: {e}")
                if isinstance(e, LocateError):
                    self.reporter.notice(f"   Check the folder: {e.search_root}")
                logger.debug("Layer failure", exc_info=True)
                summary.record(layer.name, Outcome.FAILED)
                continue

            summary.record(layer.name, result.outcome)
            summary.failed_outputs.extend(p.name for p in result.failed_profiles)
        return summary
