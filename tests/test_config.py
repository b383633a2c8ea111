"""Test configuration loading"""

import os

import pytest

from tunefetch.core.config import (
    DEFAULT_REGION,
    DEFAULT_REQUEST_PER_SERVER,
    SERVERS_ENV_VAR,
    Config,
    load_config,
    parse_config,
)
from tunefetch.core.exceptions import ConfigError


@pytest.fixture
def isolated_env(monkeypatch, temp_dir):
    """Run in an empty directory with no servers in the environment"""
    monkeypatch.chdir(temp_dir)
    monkeypatch.delenv(SERVERS_ENV_VAR, raising=False)
    return temp_dir


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test config.yaml loading"""

    def test_minimal_config(self, isolated_env):
        path = _write(isolated_env / "config.yaml", 'servers:\n  - "https://a.test/api/v1"\n')

        config = load_config(path)

        assert config == Config(servers=("https://a.test/api/v1",))
        assert config.region == DEFAULT_REGION
        assert config.request_per_server == DEFAULT_REQUEST_PER_SERVER
        assert config.logging.directory is None
        assert config.logging.level == "INFO"

    def test_full_config(self, isolated_env):
        path = _write(isolated_env / "config.yaml", (
            "servers:\n"
            "  - https://a.test/api/v1\n"
            "  - http://b.test/api/v1\n"
            "region: US\n"
            "request_per_server: 5\n"
            "logging:\n"
            f"  directory: {isolated_env / 'logs'}\n"
            "  level: debug\n"
        ))

        config = load_config(path)

        assert config.servers == ("https://a.test/api/v1", "http://b.test/api/v1")
        assert config.region == "US"
        assert config.request_per_server == 5
        assert config.logging.directory == (isolated_env / "logs").resolve()
        assert config.logging.level == "DEBUG"

    def test_default_path_is_cwd(self, isolated_env):
        _write(isolated_env / "config.yaml", "servers: [https://a.test]\n")
        assert load_config().servers == ("https://a.test",)

    def test_missing_file_raises(self, isolated_env):
        with pytest.raises(ConfigError) as excinfo:
            load_config(isolated_env / "nope.yaml")
        assert "nope.yaml" in excinfo.value.details["file_path"]

    def test_invalid_yaml_raises(self, isolated_env):
        path = _write(isolated_env / "config.yaml", "servers: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_empty_file_has_no_servers(self, isolated_env):
        path = _write(isolated_env / "config.yaml", "")
        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert excinfo.value.details["missing_section"] == "servers"

    def test_non_mapping_raises(self, isolated_env):
        path = _write(isolated_env / "config.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestServersFromEnvironment:
    """Test TUNEFETCH_SERVERS handling"""

    def test_env_replaces_file_servers(self, isolated_env, monkeypatch):
        monkeypatch.setenv(SERVERS_ENV_VAR, "https://env-a.test, ,https://env-b.test")
        path = _write(isolated_env / "config.yaml", "servers: [https://file.test]\nregion: IN\n")

        config = load_config(path)

        assert config.servers == ("https://env-a.test", "https://env-b.test")
        assert config.region == "IN"

    def test_env_without_file(self, isolated_env, monkeypatch):
        monkeypatch.setenv(SERVERS_ENV_VAR, "https://env.test")
        assert load_config().servers == ("https://env.test",)

    def test_dotenv_file_is_read(self, isolated_env):
        _write(isolated_env / ".env", f"{SERVERS_ENV_VAR}=https://dotenv.test\n")
        try:
            assert load_config().servers == ("https://dotenv.test",)
        finally:
            # load_dotenv() writes straight into os.environ
            os.environ.pop(SERVERS_ENV_VAR, None)


class TestParseConfig:
    """Test validation of individual fields"""

    @pytest.mark.parametrize("servers", [[], "https://a.test", [""], [42], ["ftp://a.test"]])
    def test_invalid_servers(self, servers):
        with pytest.raises(ConfigError):
            parse_config({"servers": servers})

    def test_servers_are_stripped(self):
        assert parse_config({"servers": ["  https://a.test  "]}).servers == ("https://a.test",)

    @pytest.mark.parametrize("value", [0, -1, "10", 2.5, True])
    def test_invalid_request_per_server(self, value):
        with pytest.raises(ConfigError) as excinfo:
            parse_config({"servers": ["https://a.test"], "request_per_server": value})
        assert excinfo.value.details["field"] == "request_per_server"

    @pytest.mark.parametrize("region", ["", "   ", 977])
    def test_invalid_region(self, region):
        with pytest.raises(ConfigError):
            parse_config({"servers": ["https://a.test"], "region": region})

    @pytest.mark.parametrize("logging_section", [
        "verbose",
        {"level": "LOUD"},
        {"directory": ""},
        {"directory": 5},
    ])
    def test_invalid_logging(self, logging_section):
        with pytest.raises(ConfigError):
            parse_config({"servers": ["https://a.test"], "logging": logging_section})

    def test_config_is_frozen(self):
        config = parse_config({"servers": ["https://a.test"]})
        with pytest.raises(AttributeError):
            config.region = "US"
