"""Tests for cdn_ips_updater settings module."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from cdn_ips_updater.exceptions import ConfigurationError
from cdn_ips_updater.extractors import ExtractionStrategy
from cdn_ips_updater.providers import Provider, build_providers
from cdn_ips_updater.settings import (
    UpdaterSettings,
    get_settings,
    load_config,
    parse_service_list,
    reset_settings,
)


class TestUpdaterSettings:
    """Test suite for UpdaterSettings."""

    def test_default_values(self):
        """Test default configuration values."""
        settings = UpdaterSettings()

        assert settings.target_dir == Path("/opt/cdn-ips")
        assert settings.cloudflare_file == "cloudflare_ips.lst"
        assert settings.gcore_file == "gcore_ips.lst"
        assert settings.services == ["haproxy", "fail2ban"]
        assert settings.cloudflare_ipv4_url == "https://www.cloudflare.com/ips-v4"
        assert settings.cloudflare_ipv6_url == "https://www.cloudflare.com/ips-v6"
        assert settings.gcore_api_url == "https://api.gcore.com/cdn/public-ip-list"
        assert settings.gcore_strategy == ExtractionStrategy.STRUCTURED
        assert settings.directory_mode == 0o755
        assert settings.file_mode == 0o644
        assert settings.request_timeout == 30.0
        assert settings.log_tag == "cdn-ips-updater"

    def test_environment_overrides(self, monkeypatch):
        """Test values are read from CDN_IPS_* variables."""
        monkeypatch.setenv("CDN_IPS_TARGET_DIR", "/etc/haproxy/cdn")
        monkeypatch.setenv("CDN_IPS_CLOUDFLARE_FILE", "cf.lst")
        monkeypatch.setenv("CDN_IPS_GCORE_STRATEGY", "pattern")
        monkeypatch.setenv("CDN_IPS_REQUEST_TIMEOUT", "5")

        settings = UpdaterSettings()

        assert settings.target_dir == Path("/etc/haproxy/cdn")
        assert settings.cloudflare_file == "cf.lst"
        assert settings.gcore_strategy == ExtractionStrategy.PATTERN
        assert settings.request_timeout == 5.0

    def test_services_from_comma_list(self, monkeypatch):
        """Test services accept a comma-separated string."""
        monkeypatch.setenv("CDN_IPS_SERVICES", "haproxy, nginx,,fail2ban ")

        assert UpdaterSettings().services == ["haproxy", "nginx", "fail2ban"]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("750", 0o750), ("0755", 0o755), ("0o700", 0o700)],
    )
    def test_octal_modes(self, monkeypatch, value, expected):
        """Test string modes are read as octal."""
        monkeypatch.setenv("CDN_IPS_DIRECTORY_MODE", value)

        assert UpdaterSettings().directory_mode == expected

    def test_integer_mode_kept(self):
        """Test integer modes are used as given."""
        assert UpdaterSettings(file_mode=0o600).file_mode == 0o600

    @pytest.mark.parametrize("value", ["999", "rwx", "77777"])
    def test_invalid_modes(self, monkeypatch, value):
        """Test invalid modes raise ValidationError."""
        monkeypatch.setenv("CDN_IPS_DIRECTORY_MODE", value)

        with pytest.raises(ValidationError):
            UpdaterSettings()

    @pytest.mark.parametrize("name", ["", "a/b.lst", ".."])
    def test_invalid_file_names(self, name):
        """Test list file names must be plain names."""
        with pytest.raises(ValidationError):
            UpdaterSettings(gcore_file=name)

    def test_invalid_strategy(self, monkeypatch):
        """Test an unknown strategy raises ValidationError."""
        monkeypatch.setenv("CDN_IPS_GCORE_STRATEGY", "jq")

        with pytest.raises(ValidationError):
            UpdaterSettings()


class TestParseServiceList:
    """Tests for parse_service_list."""

    def test_splits_and_strips(self):
        """Test whitespace and empty entries are dropped."""
        assert parse_service_list(" haproxy , nginx,") == ["haproxy", "nginx"]

    def test_empty(self):
        """Test an empty string gives no services."""
        assert parse_service_list("") == []


class TestLoadConfig:
    """Tests for configuration loading."""

    def test_load_valid_config(self, tmp_path):
        """Test loading a valid configuration file."""
        path = tmp_path / "updater.yaml"
        path.write_text(yaml.safe_dump({
            "target_dir": "/srv/cdn",
            "services": ["nginx"],
            "directory_mode": "750",
            "gcore_strategy": "pattern",
        }))

        settings = load_config(path)

        assert settings.target_dir == Path("/srv/cdn")
        assert settings.services == ["nginx"]
        assert settings.directory_mode == 0o750
        assert settings.gcore_strategy == ExtractionStrategy.PATTERN

    def test_yaml_octal_literal(self, tmp_path):
        """Test a YAML 1.1 octal literal is accepted."""
        path = tmp_path / "updater.yaml"
        path.write_text("directory_mode: 0750\n")

        assert load_config(path).directory_mode == 0o750

    def test_unquoted_modes_are_octal(self, tmp_path):
        """Test bare numeric modes are read as octal, not decimal."""
        path = tmp_path / "updater.yaml"
        path.write_text("directory_mode: 755\nfile_mode: 644\nrequest_timeout: 5\n")

        settings = load_config(path)

        assert settings.directory_mode == 0o755
        assert settings.file_mode == 0o644
        assert settings.request_timeout == 5.0

    def test_unquoted_invalid_mode(self, tmp_path):
        """Test a bare mode with non-octal digits is rejected."""
        path = tmp_path / "updater.yaml"
        path.write_text("file_mode: 689\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        """Test an empty file falls back to defaults."""
        path = tmp_path / "updater.yaml"
        path.write_text("")

        assert load_config(path).gcore_file == "gcore_ips.lst"

    def test_load_missing_file(self):
        """Test loading a missing file raises error."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_config("/nonexistent/path.yaml")

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "updater.yaml"
        path.write_text("- haproxy\n- nginx\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML is rejected."""
        path = tmp_path / "updater.yaml"
        path.write_text("services: [haproxy\n")

        with pytest.raises(ConfigurationError, match="not valid YAML"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        """Test validation errors become ConfigurationError."""
        path = tmp_path / "updater.yaml"
        path.write_text("cloudflare_file: ../escape.lst\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(path)


class TestSettingsSingleton:
    """Tests for get_settings/reset_settings."""

    def test_singleton(self):
        """Test the same instance is returned until reset."""
        first = get_settings()

        assert get_settings() is first

        reset_settings()
        assert get_settings() is not first


class TestBuildProviders:
    """Tests for provider descriptors."""

    def test_descriptors_follow_settings(self, settings):
        """Test endpoints, strategies and file names come from settings."""
        providers = build_providers(settings)

        cloudflare = providers[Provider.CLOUDFLARE]
        assert cloudflare.urls == [settings.cloudflare_ipv4_url, settings.cloudflare_ipv6_url]
        assert cloudflare.strategy == ExtractionStrategy.LINES
        assert cloudflare.filename == "cloudflare_ips.lst"

        gcore = providers[Provider.GCORE]
        assert gcore.urls == [settings.gcore_api_url]
        assert gcore.strategy == ExtractionStrategy.STRUCTURED
        assert gcore.json_field == "addresses"

    def test_processing_order(self, settings):
        """Test CloudFlare is processed before Gcore."""
        assert list(build_providers(settings)) == [Provider.CLOUDFLARE, Provider.GCORE]
