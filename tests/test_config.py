"""Tests for config module"""

import pytest
import yaml

from sense_ingest.config import (
    CONFIG_ENV_VAR,
    Co2Config,
    Config,
    MeterConfig,
    RemoConfig,
    build_descriptors,
    find_config_file,
    load_config,
    read_token,
)
from sense_ingest.errors import StartupError


class TestConfigDataclasses:
    """Test configuration dataclasses"""

    def test_remo_config_defaults(self):
        config = RemoConfig()
        assert config.endpoint == "https://api.nature.global/1/devices"
        assert config.interval == 300

    def test_meter_config_defaults(self):
        config = MeterConfig()
        assert config.address == "E1:EC:E9:82:8F:60"
        assert config.scan_timeout == 10.0

    def test_co2_url_from_ip(self):
        assert Co2Config(ip="192.168.0.116").url == "http://192.168.0.116/co2"

    def test_co2_endpoint_overrides_ip(self):
        config = Co2Config(ip="192.168.0.116", endpoint="http://co2.local/api")
        assert config.url == "http://co2.local/api"


class TestLoadConfig:
    """Test YAML loading"""

    def test_load_full_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "remo": {"token_file": "/run/secrets/remo", "interval": 60},
                    "co2": {"ip": "10.0.0.5"},
                    "meter": {"address": "aa:bb:cc:dd:ee:ff", "scan_timeout": 5},
                    "redis": {"url": "redis://db:6379/1"},
                    "logging": {"level": "DEBUG"},
                }
            )
        )

        config = load_config(str(path))

        assert config.remo.token_file == "/run/secrets/remo"
        assert config.remo.interval == 60
        assert config.co2.ip == "10.0.0.5"
        assert config.meter.scan_timeout == 5
        assert config.redis.url == "redis://db:6379/1"
        assert config.logging.level == "DEBUG"
        assert config.http.timeout == 10.0

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == Config()

    def test_missing_explicit_path_is_fatal(self, tmp_path):
        with pytest.raises(StartupError, match="not found"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_malformed_yaml_is_fatal(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("remo: [unclosed")
        with pytest.raises(StartupError):
            load_config(str(path))

    def test_unknown_key_is_fatal(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"co2": {"address": "10.0.0.5"}}))
        with pytest.raises(StartupError, match="Invalid config"):
            load_config(str(path))

    def test_non_mapping_is_fatal(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(StartupError):
            load_config(str(path))

    def test_no_config_found_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.setattr("sense_ingest.config.CONFIG_PATHS", [tmp_path / "missing.yaml"])
        assert load_config() == Config()

    def test_env_var_points_at_config(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({"co2": {"ip": "10.1.1.1"}}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert find_config_file() == path
        assert load_config().co2.ip == "10.1.1.1"


class TestReadToken:
    """Test token file reading"""

    def test_last_non_empty_line_wins(self, tmp_path):
        path = tmp_path / "token.txt"
        path.write_text("old-token\nnew-token\n\n   \n")
        assert read_token(str(path)) == "new-token"

    def test_single_line_without_newline(self, tmp_path):
        path = tmp_path / "token.txt"
        path.write_text("abc123")
        assert read_token(str(path)) == "abc123"

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(StartupError, match="token file"):
            read_token(str(tmp_path / "missing.txt"))

    def test_empty_file_is_fatal(self, tmp_path):
        path = tmp_path / "token.txt"
        path.write_text("\n\n")
        with pytest.raises(StartupError, match="empty"):
            read_token(str(path))


class TestBuildDescriptors:
    """Test SourceDescriptor construction"""

    def test_all_sources(self, tmp_path):
        token = tmp_path / "token.txt"
        token.write_text("secret\n")
        config = Config(
            remo=RemoConfig(token_file=str(token), interval=120),
            co2=Co2Config(ip="192.168.0.116"),
            meter=MeterConfig(address="e1:ec:e9:82:8f:60"),
        )

        descriptors = {d.source_id: d for d in build_descriptors(config)}

        assert descriptors["remo"].credential == "secret"
        assert descriptors["remo"].poll_interval == 120
        assert descriptors["co2"].endpoint == "http://192.168.0.116/co2"
        assert descriptors["co2"].credential is None
        assert descriptors["meter"].endpoint == "E1:EC:E9:82:8F:60"

    def test_credential_hidden_from_repr(self, tmp_path):
        token = tmp_path / "token.txt"
        token.write_text("super-secret\n")
        config = Config(
            remo=RemoConfig(token_file=str(token)),
            co2=Co2Config(enabled=False),
            meter=MeterConfig(enabled=False),
        )

        (descriptor,) = build_descriptors(config)
        assert "super-secret" not in repr(descriptor)

    def test_missing_token_is_fatal(self, tmp_path):
        config = Config(remo=RemoConfig(token_file=str(tmp_path / "missing.txt")))
        with pytest.raises(StartupError):
            build_descriptors(config)

    def test_co2_without_address_is_fatal(self):
        config = Config(remo=RemoConfig(enabled=False), co2=Co2Config(ip=""))
        with pytest.raises(StartupError, match="co2"):
            build_descriptors(config)

    def test_disabled_sources_are_skipped(self):
        config = Config(
            remo=RemoConfig(enabled=False),
            co2=Co2Config(enabled=False),
            meter=MeterConfig(enabled=False),
        )
        assert build_descriptors(config) == []

    def test_default_sources_are_buildable(self, tmp_path, monkeypatch):
        """Built-in defaults start as long as the token file exists"""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "nature_remo_token.txt").write_text("secret\n")

        descriptors = {d.source_id: d for d in build_descriptors(Config())}

        assert descriptors["co2"].endpoint == "http://192.168.0.116/co2"
        assert descriptors["remo"].credential == "secret"
        assert descriptors["meter"].endpoint == "E1:EC:E9:82:8F:60"

    @pytest.mark.parametrize("section", ["remo", "co2", "meter"])
    def test_non_positive_interval_is_fatal(self, section):
        config = Config(
            remo=RemoConfig(enabled=section == "remo"),
            co2=Co2Config(enabled=section == "co2"),
            meter=MeterConfig(enabled=section == "meter"),
        )
        getattr(config, section).interval = 0

        with pytest.raises(StartupError, match=f"{section}.interval"):
            build_descriptors(config)

    def test_disabled_section_interval_is_not_checked(self):
        config = Config(
            remo=RemoConfig(enabled=False),
            co2=Co2Config(interval=0, enabled=False),
            meter=MeterConfig(enabled=False),
        )
        assert build_descriptors(config) == []
