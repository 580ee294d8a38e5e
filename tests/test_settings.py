import pytest

from frtopojson.config.settings import Config, ConfigurationError, NetworkConfig, ToolConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MAPSHAPER_BIN", "ARCHIVER_BIN", "TOOL_TIMEOUT_S",
                 "HTTP_TIMEOUT_S", "HTTP_MAX_REDIRECTS", "DOWNLOAD_CHUNK_SIZE"):
        monkeypatch.delenv(name, raising=False)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MAPSHAPER_BIN", "/opt/mapshaper/bin/mapshaper")
    monkeypatch.setenv("ARCHIVER_BIN", "/usr/local/bin/7zz")
    monkeypatch.setenv("TOOL_TIMEOUT_S", "600")
    monkeypatch.setenv("HTTP_MAX_REDIRECTS", "3")

    config = Config()

    assert config.get_tool_settings() == {
        "mapshaper_bin": "/opt/mapshaper/bin/mapshaper",
        "archiver_bin": "/usr/local/bin/7zz",
        "timeout_s": 600.0,
    }
    assert config.network.max_redirects == 3
    assert config.network.timeout_s == 300


def test_zero_tool_timeout_means_none(monkeypatch):
    monkeypatch.setenv("TOOL_TIMEOUT_S", "0")

    assert Config().tools.timeout_s is None


@pytest.mark.parametrize("name,value", [
    ("HTTP_TIMEOUT_S", "soon"),
    ("HTTP_TIMEOUT_S", "0"),
    ("DOWNLOAD_CHUNK_SIZE", "-1"),
    ("TOOL_TIMEOUT_S", "fast"),
])
def test_invalid_values_are_configuration_errors(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        Config()


def test_missing_env_file(tmp_path):
    with pytest.raises(ConfigurationError, match="env file not found"):
        Config(env_file=tmp_path / "missing.env")


def test_dataclass_validation():
    with pytest.raises(ValueError):
        ToolConfig(mapshaper_bin="")
    with pytest.raises(ValueError):
        NetworkConfig(max_redirects=-1)
