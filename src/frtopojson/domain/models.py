"""
Pipeline Domain Models

Pydantic models for the layer configuration document. Field aliases follow the
camelCase keys of the document; Python code uses the snake_case names.

Structural parsing only: fields a stage needs (URLs, projection, shapefile name)
are checked by that stage, so one incomplete layer never prevents the others
from loading.
"""

from dataclasses import dataclass
from pathlib import Path
from posixpath import basename
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field


class SourceConfig(BaseModel):
    """Where a layer's data comes from and what to look for once extracted."""
    urls: Optional[list[str]] = Field(None, description="Candidate download URLs, first success wins")
    url: Optional[str] = Field(None, description="Legacy single download URL")
    file_name: Optional[str] = Field(None, alias="fileName", description="Archive file name under the sources directory")
    archive: bool = Field(default=False, description="Whether the download must be extracted")
    shapefile: Optional[str] = Field(None, description="Geometry file to locate in the extracted tree")

    class Config:
        """Pydantic configuration."""
        frozen = True
        populate_by_name = True


class SimplificationProfile(BaseModel):
    """One output variant of a layer."""
    level: float = Field(default=100, description="Percentage of detail retained (100 = unsimplified)")
    suffix: str = Field(default="", description="Appended to the layer name to form the output stem")
    precision: Optional[float] = Field(None, description="Coordinate precision, overrides the layer default")
    properties: Optional[list[str]] = Field(None, description="Attributes to keep, overrides the layer default")
    description: Optional[str] = Field(None, description="Human-readable variant name")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def simplified(self) -> bool:
        return self.level < 100


class LayerConfig(BaseModel):
    """One administrative boundary dataset."""
    name: str = Field(..., description="Unique identifier, used as directory and file stem")
    label: Optional[str] = Field(None, description="Human-readable display name")
    enabled: bool = Field(default=True, description="Whether default runs include this layer")
    source: SourceConfig = Field(default_factory=SourceConfig)
    projection: Optional[str] = Field(None, description="Target CRS passed to the geometry tool")
    precision: Optional[float] = Field(None, description="Default coordinate precision")
    properties: Optional[list[str]] = Field(None, description="Default attributes to keep (empty = all)")
    simplifications: list[SimplificationProfile] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def output_name(self, profile: SimplificationProfile) -> str:
        return f"{self.name}{profile.suffix}"


class GlobalOptions(BaseModel):
    """Options applied to every conversion."""
    snap: bool = Field(default=False, description="Snap vertices before simplifying")
    method: Optional[str] = Field(None, description="Simplification method (dp, visvalingam, weighted)")
    keep_shapes: bool = Field(default=False, alias="keepShapes", description="Never drop a feature while simplifying")

    class Config:
        """Pydantic configuration."""
        frozen = True
        populate_by_name = True


class Directories(BaseModel):
    """Working directories, relative to the configuration document."""
    sources: str = "sources"
    geojson: str = "geojson"
    topojson: str = "topojson"

    class Config:
        """Pydantic configuration."""
        frozen = True


@dataclass(frozen=True)
class WorkingDirectories:
    """Absolute working directories for one run."""
    sources: Path
    geojson: Path
    topojson: Path

    def all(self) -> tuple[Path, Path, Path]:
        return (self.sources, self.geojson, self.topojson)

    def ensure(self) -> list[Path]:
        """Create missing directories. Returns the ones that were created."""
        created = []
        for path in self.all():
            if not path.exists():
                path.mkdir(parents=True, exist_ok=True)
                created.append(path)
        return created


class ProjectConfig(BaseModel):
    """Parsed configuration document."""
    directories: Directories = Field(default_factory=Directories)
    options: GlobalOptions = Field(default_factory=GlobalOptions)
    layers: list[LayerConfig] = Field(default_factory=list)
    base_dir: Path = Field(default=Path("."), exclude=True, description="Directory relative paths resolve against")

    class Config:
        """Pydantic configuration."""
        frozen = True
        arbitrary_types_allowed = True  # Allow Path types

    def working_directories(self) -> WorkingDirectories:
        return WorkingDirectories(
            sources=self.base_dir / self.directories.sources,
            geojson=self.base_dir / self.directories.geojson,
            topojson=self.base_dir / self.directories.topojson,
        )

    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]

    def get_layer(self, name: str) -> Optional[LayerConfig]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None


# =============================================================================
# Resolution rules
# =============================================================================

def effective_precision(profile: SimplificationProfile, layer: LayerConfig) -> Optional[float]:
    """
    Coordinate precision for an output variant.

    Precedence: profile precision, then layer precision, then None (the
    geometry tool's own default applies).
    """
    if profile.precision is not None:
        return profile.precision
    return layer.precision


def effective_properties(profile: SimplificationProfile, layer: LayerConfig) -> list[str]:
    """
    Attributes to keep for an output variant.

    A profile list replaces the layer list, even when empty. An empty result
    means every attribute is kept.
    """
    if profile.properties is not None:
        return list(profile.properties)
    if layer.properties is not None:
        return list(layer.properties)
    return []


def resolve_urls(source: SourceConfig) -> list[str]:
    """Candidate URLs: explicit list, else the legacy single URL, else none."""
    if source.urls is not None:
        return list(source.urls)
    if source.url:
        return [source.url]
    return []


def resolve_archive_name(source: SourceConfig) -> Optional[str]:
    """Archive file name: explicit name, else the base name of the first URL path."""
    if source.file_name:
        return source.file_name
    urls = resolve_urls(source)
    if not urls:
        return None
    return basename(urlparse(urls[0]).path) or None
