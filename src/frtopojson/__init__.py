"""France administrative boundaries to TopoJSON."""

__version__ = "1.0.0"
