import json
from pathlib import Path
from typing import Optional

import pytest
import requests

from frtopojson.domain.models import LayerConfig, ProjectConfig
from frtopojson.reporter import ConsoleReporter
from frtopojson.types import ExtractionError, OutputHandle, ToolInvocationError


class FakeResponse:
    """Streaming HTTP response stand-in."""

    def __init__(self, status_code: int = 200, body: bytes = b"", headers: Optional[dict] = None,
                 fail_after_first_chunk: bool = False):
        self.status_code = status_code
        self.body = body
        self.headers = headers or {}
        self.fail_after_first_chunk = fail_after_first_chunk
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start:start + chunk_size]
            if self.fail_after_first_chunk:
                raise requests.ConnectionError("connection reset by peer")

    def close(self):
        self.closed = True


class FakeSession:
    """Records every GET and answers from a URL -> response (or exception) map."""

    def __init__(self, routes: Optional[dict] = None):
        self.routes = routes or {}
        self.calls: list[str] = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        answer = self.routes.get(url)
        if answer is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeArchiver:
    """Records extractions and drops the expected files into the destination."""

    def __init__(self, files: tuple[str, ...] = ("ADMIN-EXPRESS/1_DONNEES/REGION.shp",), fail: bool = False):
        self.files = files
        self.fail = fail
        self.calls: list[tuple[Path, Path]] = []

    def extract(self, archive: Path, dest_dir: Path) -> None:
        self.calls.append((archive, dest_dir))
        if self.fail:
            (dest_dir / "partial.shp").write_bytes(b"x")
            raise ExtractionError(archive, "7z exited with code 2", stderr="Data Error")
        for rel in self.files:
            target = dest_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"shape")


class RecordingTool:
    """GeometryTool that writes small JSON files and records each call."""

    def __init__(self, fail_on: tuple[str, ...] = (), version_error: bool = False):
        self.fail_on = fail_on
        self.version_error = version_error
        self.calls: list[tuple] = []

    def version(self) -> str:
        self.calls.append(("version",))
        if self.version_error:
            raise ToolInvocationError("Mapshaper not found: mapshaper", ["mapshaper", "--version"])
        return "0.6.0"

    def to_geo_format(self, input_path, output_path, transform):
        self.calls.append(("geo", Path(input_path), Path(output_path), transform))
        if Path(output_path).stem in self.fail_on:
            raise ToolInvocationError("Mapshaper exited with code 1", stderr="Error: boom")
        Path(output_path).write_text(json.dumps({"type": "FeatureCollection", "features": []}) + " " * 200)
        return OutputHandle.from_path(Path(output_path))

    def to_topology_format(self, input_path, output_path):
        self.calls.append(("topo", Path(input_path), Path(output_path)))
        Path(output_path).write_text(json.dumps({"type": "Topology", "objects": {}}))
        return OutputHandle.from_path(Path(output_path))


@pytest.fixture
def reporter():
    return ConsoleReporter(quiet=True)


@pytest.fixture
def make_layer():
    def _make(name: str = "regions", **overrides) -> LayerConfig:
        data = {
            "name": name,
            "label": name.title(),
            "enabled": True,
            "source": {
                "urls": [f"https://example.org/{name}.7z"],
                "archive": True,
                "shapefile": "REGION.shp",
            },
            "projection": "wgs84",
            "precision": 0.0001,
            "simplifications": [{"level": 100, "suffix": ""}],
        }
        data.update(overrides)
        return LayerConfig(**data)
    return _make


@pytest.fixture
def make_project(tmp_path):
    def _make(layers: list[LayerConfig], **options) -> ProjectConfig:
        return ProjectConfig(layers=layers, options=options, base_dir=tmp_path)
    return _make


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML configuration document and return its path."""
    import yaml

    def _write(document: dict, name: str = "config.yml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(document, allow_unicode=True), encoding="utf-8")
        return path
    return _write
