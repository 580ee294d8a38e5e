"""
Configuration module for the France TopoJSON pipeline.
Machine-level settings loaded from the environment.
"""

from .settings import (
    Config,
    ConfigurationError,
    NetworkConfig,
    ToolConfig,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'NetworkConfig',
    'ToolConfig',
]
