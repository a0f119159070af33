"""Updater configuration settings.

Environment-based configuration with an optional YAML config file. Values
given on the command line are applied on top by the CLI.
"""

from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from cdn_ips_updater.exceptions import ConfigurationError
from cdn_ips_updater.extractors import ExtractionStrategy

DEFAULT_TARGET_DIR = Path("/opt/cdn-ips")
DEFAULT_SERVICES = ["haproxy", "fail2ban"]
DEFAULT_LOG_TAG = "cdn-ips-updater"


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that keeps integer scalars as strings.

    Permission modes such as `directory_mode: 755` must be read as octal,
    which the mode validator only does for strings.
    """


_ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:int"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class UpdaterSettings(BaseSettings):
    """Configuration for the CDN IP updater.

    All settings can be configured via environment variables, a .env file,
    or a YAML file passed to load_config().

    Attributes:
        target_dir: Directory the IP list files are written to
        cloudflare_file: File name of the Cloudflare list
        gcore_file: File name of the Gcore list
        services: Services to reload after the lists are updated
        cloudflare_ipv4_url: Cloudflare IPv4 list endpoint
        cloudflare_ipv6_url: Cloudflare IPv6 list endpoint
        gcore_api_url: Gcore public IP list API endpoint
        gcore_strategy: How the Gcore response is parsed
        directory_mode: Permission mode applied to target_dir on every run
        file_mode: Permission mode of the written list files
        request_timeout: HTTP request timeout in seconds
        systemctl_path: Service manager executable
        log_tag: Identifier attached to syslog messages
        syslog_enabled: Whether to log to the system log
        syslog_address: Path of the syslog socket
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Output locations
    target_dir: Path = Field(
        default=DEFAULT_TARGET_DIR,
        alias="CDN_IPS_TARGET_DIR",
        description="Directory the IP list files are written to",
    )
    cloudflare_file: str = Field(
        default="cloudflare_ips.lst",
        alias="CDN_IPS_CLOUDFLARE_FILE",
        description="File name of the Cloudflare IP list",
    )
    gcore_file: str = Field(
        default="gcore_ips.lst",
        alias="CDN_IPS_GCORE_FILE",
        description="File name of the Gcore IP list",
    )

    # Services reloaded after an update
    services: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SERVICES),
        alias="CDN_IPS_SERVICES",
        description="Comma-separated services to reload",
    )

    # Provider endpoints
    cloudflare_ipv4_url: str = Field(
        default="https://www.cloudflare.com/ips-v4",
        alias="CDN_IPS_CLOUDFLARE_IPV4_URL",
        description="Cloudflare IPv4 list endpoint",
    )
    cloudflare_ipv6_url: str = Field(
        default="https://www.cloudflare.com/ips-v6",
        alias="CDN_IPS_CLOUDFLARE_IPV6_URL",
        description="Cloudflare IPv6 list endpoint",
    )
    gcore_api_url: str = Field(
        default="https://api.gcore.com/cdn/public-ip-list",
        alias="CDN_IPS_GCORE_API_URL",
        description="Gcore public IP list API endpoint",
    )
    gcore_strategy: ExtractionStrategy = Field(
        default=ExtractionStrategy.STRUCTURED,
        alias="CDN_IPS_GCORE_STRATEGY",
        description="Extraction strategy for the Gcore response",
    )

    # Filesystem
    directory_mode: int = Field(
        default=0o755,
        alias="CDN_IPS_DIRECTORY_MODE",
        description="Permission mode applied to the target directory",
    )
    file_mode: int = Field(
        default=0o644,
        alias="CDN_IPS_FILE_MODE",
        description="Permission mode of the written list files",
    )

    # Runtime
    request_timeout: float = Field(
        default=30.0,
        alias="CDN_IPS_REQUEST_TIMEOUT",
        description="HTTP request timeout in seconds",
    )
    systemctl_path: str = Field(
        default="systemctl",
        alias="CDN_IPS_SYSTEMCTL",
        description="Service manager executable",
    )

    # Logging
    log_tag: str = Field(
        default=DEFAULT_LOG_TAG,
        alias="CDN_IPS_LOG_TAG",
        description="Identifier attached to syslog messages",
    )
    syslog_enabled: bool = Field(
        default=True,
        alias="CDN_IPS_SYSLOG",
        description="Whether to log to the system log",
    )
    syslog_address: str = Field(
        default="/dev/log",
        alias="CDN_IPS_SYSLOG_ADDRESS",
        description="Path of the syslog socket",
    )

    @field_validator("services", mode="before")
    @classmethod
    def split_services(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return parse_service_list(v)
        return v

    @field_validator("directory_mode", "file_mode", mode="before")
    @classmethod
    def parse_mode(cls, v: Any) -> Any:
        """Read string modes such as "755" or "0o644" as octal."""
        if isinstance(v, str):
            try:
                return int(v.strip(), 8)
            except ValueError:
                msg = f"Invalid permission mode: {v}"
                raise ValueError(msg) from None
        return v

    @field_validator("directory_mode", "file_mode")
    @classmethod
    def validate_mode(cls, v: int) -> int:
        """Validate the mode fits in permission bits."""
        if not 0 <= v <= 0o7777:
            msg = f"Permission mode out of range: {oct(v)}"
            raise ValueError(msg)
        return v

    @field_validator("cloudflare_file", "gcore_file")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Validate a list file name is a bare file name."""
        if not v or "/" in v or v in (".", ".."):
            msg = f"Invalid file name: {v!r}"
            raise ValueError(msg)
        return v


def parse_service_list(value: str) -> list[str]:
    """Split a comma-separated service list, dropping empty entries.

    Args:
        value: String such as "haproxy,nginx".

    Returns:
        List of service names.
    """
    return [name.strip() for name in value.split(",") if name.strip()]


def load_config(path: str | Path) -> UpdaterSettings:
    """Load updater settings from a YAML file.

    Keys use the field names of UpdaterSettings. Environment variables fill
    in anything the file leaves out.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Parsed settings.

    Raises:
        ConfigurationError: If the file is missing or invalid.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise ConfigurationError(msg, details={"path": str(path)})

    with path.open(encoding="utf-8") as f:
        try:
            data: dict[str, Any] | None = yaml.load(f, Loader=_ConfigLoader)  # noqa: S506
        except yaml.YAMLError as e:
            msg = f"Config file {path} is not valid YAML: {e}"
            raise ConfigurationError(msg, details={"path": str(path)}) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping"
        raise ConfigurationError(msg, details={"path": str(path)})

    try:
        return UpdaterSettings(**data)
    except ValidationError as e:
        msg = f"Invalid configuration in {path}: {e}"
        raise ConfigurationError(msg, details={"path": str(path)}) from e


_settings_instance: UpdaterSettings | None = None


def get_settings() -> UpdaterSettings:
    """Get default settings (singleton, reads from environment).

    Returns:
        UpdaterSettings instance.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = UpdaterSettings()
    return _settings_instance


def reset_settings() -> None:
    """Reset singleton (for testing)."""
    global _settings_instance
    _settings_instance = None
