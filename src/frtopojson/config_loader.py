"""
Configuration document loading for the France TopoJSON pipeline.

The document declares the working directories, the global conversion options
and the list of layers. It is read once per run; relative directories are
resolved against the folder holding the document.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .config.settings import ConfigurationError
from .domain.models import LayerConfig, ProjectConfig
from .utils import load_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"


def load_project_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> ProjectConfig:
    """
    Parse the configuration document.

    Args:
        config_path: Path to the YAML (or JSON) document

    Returns:
        Immutable ProjectConfig with base_dir set to the document's folder

    Raises:
        ConfigurationError: If the document is missing, unreadable or malformed
    """
    path = Path(config_path)

    try:
        raw = load_yaml_file(path)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Configuration root must be a mapping, got {type(raw).__name__}: {path}"
        )

    try:
        project = ProjectConfig(**raw, base_dir=path.resolve().parent)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}:\n{e}") from e
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    logger.debug(f"Loaded {len(project.layers)} layers from {path}")
    return project


def select_layers(project: ProjectConfig, layer_name: Optional[str] = None) -> list[LayerConfig]:
    """
    Pick the layers a run should process.

    Without a name, every enabled layer. With a name, exactly that layer,
    whether enabled or not.

    Raises:
        ConfigurationError: If the named layer does not exist
    """
    if layer_name is None:
        return [layer for layer in project.layers if layer.enabled]

    layer = project.get_layer(layer_name)
    if layer is None:
        available = ", ".join(project.layer_names()) or "(none)"
        raise ConfigurationError(f"Layer not found: {layer_name}. Available layers: {available}")
    return [layer]
