import sys

import pytest
from typer.testing import CliRunner

from frtopojson import cli

from conftest import RecordingTool

runner = CliRunner()


@pytest.fixture
def project_file(write_config, tmp_path):
    shp = tmp_path / "sources" / "regions" / "ADMIN" / "REGION.shp"
    shp.parent.mkdir(parents=True)
    shp.write_bytes(b"shape")
    return write_config({
        "options": {"snap": True, "method": "weighted", "keepShapes": True},
        "layers": [
            {
                "name": "regions",
                "label": "Régions",
                "source": {"urls": ["https://example.org/admin.7z"], "archive": True, "shapefile": "REGION.shp"},
                "projection": "wgs84",
                "simplifications": [{"level": 100, "suffix": ""}, {"level": 2, "suffix": "-2"}],
            },
            {
                "name": "departements",
                "source": {"urls": ["https://example.org/admin.7z"], "archive": True, "shapefile": "DEPARTEMENT.shp"},
                "projection": "wgs84",
                "simplifications": [{"level": 100, "suffix": ""}],
            },
            {
                "name": "communes",
                "enabled": False,
                "source": {"urls": ["https://example.org/admin.7z"], "archive": True, "shapefile": "COMMUNE.shp"},
                "projection": "wgs84",
                "simplifications": [{"level": 5, "suffix": "-5"}],
            },
        ],
    })


@pytest.fixture
def fake_tool(monkeypatch):
    tools = []

    def factory(settings):
        tool = RecordingTool()
        tools.append(tool)
        return tool

    monkeypatch.setattr(cli, "create_geometry_tool", factory)
    return tools


def test_unknown_layer_exits_without_running_the_tool(project_file, fake_tool):
    result = runner.invoke(cli.app, ["convert", "--layer=cantons", "--config", str(project_file)])

    assert result.exit_code == 1
    assert fake_tool == []


def test_missing_config_exits_1(tmp_path, fake_tool):
    result = runner.invoke(cli.app, ["convert", "--config", str(tmp_path / "nope.yml")])

    assert result.exit_code == 1
    assert fake_tool == []


def test_unavailable_tool_exits_1(project_file, monkeypatch):
    monkeypatch.setattr(cli, "create_geometry_tool", lambda settings: RecordingTool(version_error=True))

    result = runner.invoke(cli.app, ["convert", "--config", str(project_file)])

    assert result.exit_code == 1
    assert "Cannot use mapshaper" in result.output


def test_layer_failures_keep_exit_code_zero(project_file, fake_tool, tmp_path):
    result = runner.invoke(cli.app, ["convert", "--config", str(project_file)])

    assert result.exit_code == 0, result.output
    assert "Conversion complete!" in result.output
    assert "1 failure(s)" in result.output
    assert "Failed layers: departements" in result.output
    assert (tmp_path / "topojson" / "regions-2.json").exists()

    converted = [c[2].name for c in fake_tool[0].calls if c[0] == "geo"]
    assert converted == ["regions.json", "regions-2.json"]


def test_strict_turns_failures_into_exit_1(project_file, fake_tool):
    result = runner.invoke(cli.app, ["convert", "--strict", "--config", str(project_file)])

    assert result.exit_code == 1
    assert "Conversion complete!" in result.output


def test_layer_option_selects_disabled_layer(project_file, fake_tool, tmp_path):
    shp = tmp_path / "sources" / "communes" / "COMMUNE.shp"
    shp.parent.mkdir(parents=True)
    shp.write_bytes(b"shape")

    result = runner.invoke(cli.app, ["convert", "--layer=communes", "--config", str(project_file)])

    assert result.exit_code == 0, result.output
    outputs = [c[2].name for c in fake_tool[0].calls if c[0] == "geo"]
    assert outputs == ["communes-5.json"]


def test_download_skips_disabled_layers(write_config, tmp_path):
    config = write_config({
        "directories": {"sources": "src-data", "geojson": "gj", "topojson": "tj"},
        "layers": [{"name": "communes", "enabled": False, "source": {"url": "https://example.org/c.7z"}}],
    })

    result = runner.invoke(cli.app, ["download", "--config", str(config)])

    assert result.exit_code == 0, result.output
    assert "Layer disabled: communes" in result.output
    assert "Download complete!" in result.output
    assert (tmp_path / "src-data").is_dir()
    assert (tmp_path / "tj").is_dir()


def test_download_with_bad_config_exits_1(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("layers: {name: [", encoding="utf-8")

    result = runner.invoke(cli.app, ["download", "--config", str(path)])

    assert result.exit_code == 1


def test_list_layers(project_file):
    result = runner.invoke(cli.app, ["list-layers", "--config", str(project_file)])

    assert result.exit_code == 0
    assert "* communes (disabled)" in result.output
    assert "Output: regions-2.json (2%)" in result.output
    assert "Found 3 layers" in result.output


def test_version():
    result = runner.invoke(cli.app, ["version"])

    assert result.exit_code == 0
    assert "frtopojson version" in result.output


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX permissions")
def test_non_executable_mapshaper_exits_cleanly(project_file, monkeypatch, tmp_path):
    binary = tmp_path / "mapshaper"
    binary.write_text("#!/bin/sh\necho 0.6.0\n")
    binary.chmod(0o644)
    monkeypatch.setenv("MAPSHAPER_BIN", str(binary))

    result = runner.invoke(cli.app, ["convert", "--config", str(project_file)])

    assert result.exit_code == 1
    assert "Cannot use mapshaper" in result.output
