"""
Domain Models and Types

This module contains the configuration models and enumerations used throughout the pipeline.

Models:
- LayerConfig: One administrative boundary dataset and its output variants
- SourceConfig: Download URLs and archive layout for a layer
- SimplificationProfile: One output variant (detail level, precision, attributes)
- GlobalOptions: Options shared by every conversion
- ProjectConfig: The whole configuration document

Enums:
- OutputFormat: Formats requested from the geometry tool (geojson, topojson)
- Outcome: Result of one unit of work (done, skipped, failed)
"""

from .enums import Outcome, OutputFormat
from .models import (
    Directories,
    GlobalOptions,
    LayerConfig,
    ProjectConfig,
    SimplificationProfile,
    SourceConfig,
    WorkingDirectories,
    effective_precision,
    effective_properties,
    resolve_archive_name,
    resolve_urls,
)

__all__ = [
    "LayerConfig", "SourceConfig", "SimplificationProfile", "GlobalOptions",
    "Directories", "ProjectConfig", "WorkingDirectories",
    "effective_precision", "effective_properties", "resolve_urls", "resolve_archive_name",
    "Outcome", "OutputFormat"
]
