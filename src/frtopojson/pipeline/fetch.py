"""
Fetch stage - Download and extract source archives

For each layer: resolve candidate URLs, download the archive unless it is
already on disk, then extract it into sources/<layer name>/ unless that
directory already exists. Files on disk act as a resume cache between runs.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urljoin

import requests
import typer

from ..cleanup import track_partial
from ..config.settings import NetworkConfig
from ..domain.enums import Outcome
from ..domain.models import LayerConfig, ProjectConfig, resolve_archive_name, resolve_urls
from ..reporter import ConsoleReporter, RunSummary
from ..types import NetworkError, ResolutionError
from ..utils import file_size, remove_quietly

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 307, 308)


class Downloader:
    """
    HTTP downloader with mirror fallback.

    Redirects are followed by hand so the display name stays the archive name
    whatever host the file is finally served from.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        network: Optional[NetworkConfig] = None,
        reporter: Optional[ConsoleReporter] = None,
    ):
        self.session = session or requests.Session()
        self.network = network or NetworkConfig()
        self.reporter = reporter or ConsoleReporter()

    def download_file(self, url: str, dest: Path, display_name: Optional[str] = None, _hops: int = 0) -> None:
        """
        Download ``url`` to ``dest``.

        Args:
            url: Source URL
            dest: Destination file
            display_name: Name shown in progress output (default: dest name)

        Raises:
            NetworkError: On non-200 status, too many redirects or transport error
        """
        name = display_name or dest.name
        if _hops == 0:
            self.reporter.action(f"Downloading: {name}")
        logger.debug(f"GET {url}")

        try:
            response = self.session.get(
                url, stream=True, allow_redirects=False, timeout=self.network.timeout_s
            )
        except requests.RequestException as e:
            remove_quietly(dest)
            raise NetworkError(f"Download of {name} failed: {e}", url=url) from e

        try:
            if response.status_code in REDIRECT_STATUSES:
                location = response.headers.get("Location")
                if not location:
                    raise NetworkError(
                        f"Redirect without Location header ({response.status_code})",
                        url=url, status_code=response.status_code
                    )
                if _hops >= self.network.max_redirects:
                    raise NetworkError(
                        f"Too many redirects ({_hops}) while downloading {name}", url=url
                    )
                target = urljoin(url, location)
                logger.debug(f"Redirect {response.status_code}: {url} -> {target}")
                return self.download_file(target, dest, display_name=name, _hops=_hops + 1)

            if response.status_code != 200:
                raise NetworkError(
                    f"Download failed ({response.status_code})",
                    url=url, status_code=response.status_code
                )

            self._write_body(response, url, dest)
        finally:
            response.close()

        self.reporter.success(f"✓ Downloaded: {dest.name} ({file_size(dest)})")

    def _write_body(self, response: requests.Response, url: str, dest: Path) -> None:
        total = int(response.headers.get("Content-Length") or 0)
        chunks = response.iter_content(chunk_size=self.network.chunk_size)

        with track_partial(dest):
            try:
                with open(dest, "wb") as f:
                    if total and not self.reporter.quiet:
                        with typer.progressbar(length=total, label="  Progress") as bar:
                            for chunk in chunks:
                                f.write(chunk)
                                bar.update(len(chunk))
                    else:
                        for chunk in chunks:
                            if chunk:
                                f.write(chunk)
            except (requests.RequestException, OSError) as e:
                remove_quietly(dest)
                raise NetworkError(f"Download interrupted: {e}", url=url) from e

    def download_with_fallback(self, urls: Iterable[str], dest: Path, display_name: Optional[str] = None) -> str:
        """
        Try each URL in order until one succeeds.

        Returns:
            The URL the file was downloaded from

        Raises:
            ResolutionError: If no URL is given
            NetworkError: The last error when every URL failed
        """
        urls = list(urls)
        if not urls:
            raise ResolutionError("No download URL defined.")

        last_error: Optional[NetworkError] = None
        for i, url in enumerate(urls):
            try:
                self.download_file(url, dest, display_name=display_name)
                return url
            except NetworkError as e:
                last_error = e
                self.reporter.failure(f"Failed from {url}: {e}")
                if i < len(urls) - 1:
                    self.reporter.notice("↻ Trying an alternative URL...")

        raise last_error


class Fetcher:
    """Download and extraction of every layer's source archive."""

    def __init__(
        self,
        project: ProjectConfig,
        downloader: Downloader,
        archiver,
        reporter: Optional[ConsoleReporter] = None,
    ):
        """
        Args:
            project: Parsed configuration document
            downloader: HTTP downloader
            archiver: Object with ``extract(archive, dest_dir)`` (see pipeline.archive)
            reporter: Console output
        """
        self.project = project
        self.dirs = project.working_directories()
        self.downloader = downloader
        self.archiver = archiver
        self.reporter = reporter or downloader.reporter

    def ensure_directories(self) -> None:
        for path in self.dirs.ensure():
            self.reporter.success(f"[OK] Directory created: {path}")

    def process_layer(self, layer: LayerConfig) -> Outcome:
        """
        Download and prepare the data for one layer.

        Returns:
            Outcome.SKIPPED for a disabled layer, Outcome.DONE otherwise

        Raises:
            PipelineError: ResolutionError, NetworkError or ExtractionError
        """
        if not layer.enabled:
            self.reporter.skip(f"⊘ Layer disabled: {layer.name}")
            return Outcome.SKIPPED

        self.reporter.heading(f"Processing: {layer.display_name} ({layer.name})", width=50)

        urls = resolve_urls(layer.source)
        archive_name = resolve_archive_name(layer.source)
        if not archive_name:
            raise ResolutionError(
                f"Cannot determine file name for layer {layer.name}. Add \"fileName\" or a valid URL."
            )
        if not urls:
            raise ResolutionError(f"No download URL configured for {layer.name}.")

        archive_path = self.dirs.sources / archive_name
        if archive_path.exists():
            self.reporter.success(f"✓ Archive already downloaded: {archive_name}")
        else:
            self.dirs.sources.mkdir(parents=True, exist_ok=True)
            self.downloader.download_with_fallback(urls, archive_path, archive_name)

        if layer.source.archive:
            extract_dir = self.dirs.sources / layer.name
            if extract_dir.exists():
                self.reporter.success(f"✓ Archive already extracted in: {layer.name}/")
            else:
                self.extract(archive_path, extract_dir)

        self.reporter.success(f"✓ Layer ready: {layer.name}")
        return Outcome.DONE

    def extract(self, archive_path: Path, extract_dir: Path) -> None:
        self.reporter.action(f"Extracting: {archive_path.name}")
        extract_dir.mkdir(parents=True, exist_ok=True)
        try:
            self.archiver.extract(archive_path, extract_dir)
        except BaseException:
            # Interrupts included: a half-filled directory would be taken as extracted on the next run
            shutil.rmtree(extract_dir, ignore_errors=True)
            raise
        self.reporter.success(f"✓ Extracted: {archive_path.name}")

    def run(self, layers: Optional[Iterable[LayerConfig]] = None) -> RunSummary:
        """
        Process layers one after the other.

        A failing layer is reported and the next one is still attempted.
        """
        summary = RunSummary()
        self.ensure_directories()

        for layer in (self.project.layers if layers is None else layers):
            try:
                outcome = self.process_layer(layer)
            except Exception as e:
                self.reporter.failure(f"Error while processing {layer.name}: {e}")
                stderr = getattr(e, "stderr", None)
                if stderr:
                    self.reporter.failure(f"Details: {stderr.strip()}")
                logger.debug("Layer failure", exc_info=True)
                outcome = Outcome.FAILED
            summary.record(layer.name, outcome)

        return summary
