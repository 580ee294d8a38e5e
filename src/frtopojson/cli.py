import logging
import time
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

# Load environment variables BEFORE importing local modules that use them
load_dotenv()

from .cleanup import register_cleanup_handlers
from .config.settings import Config, ConfigurationError
from .config_loader import DEFAULT_CONFIG_PATH, load_project_config, select_layers
from .domain.models import ProjectConfig
from .pipeline.archive import Archiver
from .pipeline.convert import Converter
from .pipeline.fetch import Downloader, Fetcher
from .pipeline.tools import GeometryTool, MapshaperTool
from .reporter import ConsoleReporter, RunSummary
from .types import ToolInvocationError
from .utils import format_duration, setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="France TopoJSON: download IGN Admin Express -> GeoJSON -> TopoJSON")

ConfigOption = Annotated[str, typer.Option("--config", "-c", help="Path to the layer configuration file (YAML or JSON)")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")]
LogFileOption = Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")]
StrictOption = Annotated[bool, typer.Option("--strict", help="Exit with code 1 when any layer or output failed")]


def load_or_exit(config: str, reporter: ConsoleReporter) -> tuple[ProjectConfig, Config]:
    """Load the layer document and machine settings, exiting on failure."""
    try:
        project = load_project_config(config)
        settings = Config()
    except ConfigurationError as e:
        reporter.fatal(f"\nFatal error: {e}")
        raise typer.Exit(1)
    logger.debug(f"Tool settings: {settings.get_tool_settings()}")
    return project, settings


def create_geometry_tool(settings: Config) -> GeometryTool:
    return MapshaperTool(settings.tools.mapshaper_bin, timeout_s=settings.tools.timeout_s)


def check_geometry_tool(tool: GeometryTool, reporter: ConsoleReporter) -> bool:
    """
    Verify the geometry tool runs.

    Returns:
        True if the tool answered its version query
    """
    try:
        version = tool.version()
    except ToolInvocationError as e:
        reporter.failure(f"Cannot use mapshaper: {e}")
        if e.stderr:
            reporter.failure(f"Details: {e.stderr.strip()}")
        reporter.notice("Hint: run `npm install mapshaper` in the project folder or set MAPSHAPER_BIN.")
        return False
    reporter.success(f"✓ Mapshaper detected: {version}")
    return True


def finish(summary: RunSummary, reporter: ConsoleReporter, started: float, strict: bool) -> None:
    """Report the aggregate outcome; only --strict turns failures into an exit code."""
    reporter.detail(f"{summary.describe()} in {format_duration(time.time() - started)}")
    if summary.failed:
        reporter.failure(f"Failed layers: {', '.join(summary.failed)}")
    if summary.failed_outputs:
        reporter.failure(f"Failed outputs: {', '.join(summary.failed_outputs)}")
    if strict and summary.failure_count:
        raise typer.Exit(1)


@app.command("download")
def download(
    config: ConfigOption = DEFAULT_CONFIG_PATH,
    verbose: VerboseOption = False,
    log_to_file: LogFileOption = False,
    strict: StrictOption = False,
):
    """
    Download and extract the source archives of every enabled layer.

    Archives already on disk are not downloaded again, and archives already
    extracted are not extracted again.

    Examples:
        frtopojson download
        frtopojson download --config config.yml --verbose
    """
    setup_logging(verbose, "download", log_to_file)
    reporter = ConsoleReporter()
    reporter.title("France TopoJSON - Downloading data")

    project, settings = load_or_exit(config, reporter)
    register_cleanup_handlers()
    started = time.time()

    downloader = Downloader(network=settings.network, reporter=reporter)
    archiver = Archiver(settings.tools.archiver_bin, timeout_s=settings.tools.timeout_s)
    summary = Fetcher(project, downloader, archiver, reporter).run()

    reporter.success("\nDownload complete!")
    reporter.notice("\nNext step: frtopojson convert")
    finish(summary, reporter, started, strict)


@app.command("convert")
def convert(
    layer: Annotated[Optional[str], typer.Option("--layer", "-l", help="Convert only this layer, even if disabled")] = None,
    config: ConfigOption = DEFAULT_CONFIG_PATH,
    verbose: VerboseOption = False,
    log_to_file: LogFileOption = False,
    strict: StrictOption = False,
):
    """
    Convert extracted shapefiles to GeoJSON and TopoJSON at every simplification level.

    Examples:
        frtopojson convert
        frtopojson convert --layer=regions
    """
    setup_logging(verbose, "convert", log_to_file)
    reporter = ConsoleReporter()
    reporter.title("France TopoJSON - Converting data")

    project, settings = load_or_exit(config, reporter)

    try:
        layers = select_layers(project, layer)
    except ConfigurationError as e:
        reporter.fatal(str(e))
        raise typer.Exit(1)

    tool = create_geometry_tool(settings)
    if not check_geometry_tool(tool, reporter):
        raise typer.Exit(1)

    started = time.time()
    summary = Converter(project, tool, reporter).run(layers, force=layer is not None)

    reporter.success("\nConversion complete!")
    reporter.notice(f"\nFiles generated in: {project.directories.topojson}/")
    finish(summary, reporter, started, strict)


@app.command("list-layers")
def list_layers(
    config: ConfigOption = DEFAULT_CONFIG_PATH,
):
    """
    List the layers declared in the configuration file.

    Shows each layer's label, whether default runs include it, and the output
    files its simplification levels produce.

    Examples:
        frtopojson list-layers
    """
    reporter = ConsoleReporter()
    try:
        project = load_project_config(config)
    except ConfigurationError as e:
        reporter.fatal(f"ERROR: {e}")
        raise typer.Exit(1)

    typer.echo("Configured layers")
    typer.echo("=" * 50)

    for item in project.layers:
        status = "enabled" if item.enabled else "disabled"
        typer.echo(f"\n* {item.name} ({status})")
        typer.echo(f"   Label: {item.display_name}")
        if item.projection:
            typer.echo(f"   Projection: {item.projection}")
        for profile in item.simplifications:
            typer.echo(f"   Output: {item.output_name(profile)}.json ({profile.level:g}%)")

    typer.echo(f"\nFound {len(project.layers)} layers")


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"frtopojson version: {__version__}")


if __name__ == "__main__":
    app()
