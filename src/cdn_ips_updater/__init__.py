"""CDN IP updater.

Downloads the published IP ranges of CDN providers (CloudFlare, Gcore),
writes them to list files for firewalls and proxies, and reloads the
services that read them.

Example:
    ```python
    from cdn_ips_updater import CDNIPUpdater, resolve_intents

    updater = CDNIPUpdater()
    updater.run(resolve_intents(["cloudflare", "reload"]))
    ```
"""

from cdn_ips_updater.exceptions import (
    ConfigurationError,
    EmptyResultError,
    FetchError,
    ServiceReloadError,
    UpdaterError,
    WriteError,
)
from cdn_ips_updater.extractors import ExtractionStrategy, extract_addresses
from cdn_ips_updater.fetchers import IPListFetcher
from cdn_ips_updater.providers import Provider, ProviderConfig, build_providers
from cdn_ips_updater.reloader import ReloadResult, ReloadStatus, ServiceReloader
from cdn_ips_updater.settings import (
    UpdaterSettings,
    get_settings,
    load_config,
    reset_settings,
)
from cdn_ips_updater.updater import CDNIPUpdater, RunIntents, RunResult, resolve_intents
from cdn_ips_updater.writer import prepare_directory, write_ip_list

__all__ = [
    "CDNIPUpdater",
    "ConfigurationError",
    "EmptyResultError",
    "ExtractionStrategy",
    "FetchError",
    "IPListFetcher",
    "Provider",
    "ProviderConfig",
    "ReloadResult",
    "ReloadStatus",
    "RunIntents",
    "RunResult",
    "ServiceReloadError",
    "ServiceReloader",
    "UpdaterError",
    "UpdaterSettings",
    "WriteError",
    "build_providers",
    "extract_addresses",
    "get_settings",
    "load_config",
    "prepare_directory",
    "reset_settings",
    "resolve_intents",
    "write_ip_list",
]

__version__ = "0.1.0"
