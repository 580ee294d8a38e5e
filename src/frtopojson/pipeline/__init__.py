"""
France TopoJSON Pipeline Components

Two independent stages following a Fetch → Convert pattern.

Components:
- fetch: Downloader and Fetcher for source archives (HTTP mirrors + extraction)
- archive: Archiver wrapping the 7-Zip command line
- locate: Depth-first search for a geometry file in an extracted tree
- tools: GeometryTool interface and its mapshaper implementation
- convert: Converter producing GeoJSON and TopoJSON outputs
"""

from .archive import Archiver
from .convert import Converter
from .fetch import Downloader, Fetcher
from .locate import find_shapefile, iter_files
from .tools import GeometryTool, GeoTransform, MapshaperTool

__all__ = [
    "Archiver", "Converter", "Downloader", "Fetcher",
    "find_shapefile", "iter_files",
    "GeometryTool", "GeoTransform", "MapshaperTool",
]
