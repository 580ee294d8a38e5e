"""
Pipeline Enumerations

Core enums shared by the fetch and convert stages.
"""

from enum import Enum


class OutputFormat(str, Enum):
    """Output formats requested from the geometry tool."""
    GEOJSON = "geojson"     # Intermediate interchange format
    TOPOJSON = "topojson"   # Final topology-encoded format


class Outcome(str, Enum):
    """Result of processing one unit of work (layer or output variant)."""
    DONE = "done"
    SKIPPED = "skipped"     # Disabled layer, not an error
    FAILED = "failed"
