"""CDN IP updater.

Orchestrates fetching provider IP lists, writing them to the target
directory, and reloading the services that read them.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cdn_ips_updater.exceptions import ConfigurationError
from cdn_ips_updater.fetchers import IPListFetcher
from cdn_ips_updater.providers import Provider, ProviderConfig, build_providers
from cdn_ips_updater.reloader import ReloadResult, ReloadStatus, ServiceReloader
from cdn_ips_updater.settings import UpdaterSettings, get_settings
from cdn_ips_updater.utils.logging import log_success
from cdn_ips_updater.writer import prepare_directory, write_ip_list

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 42

SELECTOR_ALL = "all"
SELECTOR_CLOUDFLARE = "cloudflare"
SELECTOR_GCORE = "gcore"
SELECTOR_RELOAD = "reload"
SELECTORS = (SELECTOR_ALL, SELECTOR_CLOUDFLARE, SELECTOR_GCORE, SELECTOR_RELOAD)


@dataclass
class RunIntents:
    """What a run should do.

    Attributes:
        fetch_cloudflare: Update the Cloudflare list
        fetch_gcore: Update the Gcore list
        reload_services: Reload the configured services
    """

    fetch_cloudflare: bool = False
    fetch_gcore: bool = False
    reload_services: bool = False

    @classmethod
    def everything(cls) -> "RunIntents":
        """Return intents with every action enabled."""
        return cls(fetch_cloudflare=True, fetch_gcore=True, reload_services=True)

    @property
    def any_fetch(self) -> bool:
        """Whether any provider list is requested."""
        return self.fetch_cloudflare or self.fetch_gcore

    @property
    def any(self) -> bool:
        """Whether any action is requested."""
        return self.any_fetch or self.reload_services

    def providers(self) -> list[Provider]:
        """Return the requested providers in processing order."""
        requested = []
        if self.fetch_cloudflare:
            requested.append(Provider.CLOUDFLARE)
        if self.fetch_gcore:
            requested.append(Provider.GCORE)
        return requested


def resolve_intents(selectors: Sequence[str], *, implicit_all: bool = False) -> RunIntents:
    """Turn selector tokens into run intents.

    Args:
        selectors: Tokens such as "cloudflare" or "reload".
        implicit_all: Treat an empty selector list as "all". Only set when
            the command line had no arguments at all.

    Returns:
        The combined intents.

    Raises:
        ConfigurationError: On an unknown selector or when nothing is selected.
    """
    if not selectors and implicit_all:
        return RunIntents.everything()

    intents = RunIntents()
    for selector in selectors:
        if selector == SELECTOR_ALL:
            logger.info("Command: update everything")
            intents = RunIntents.everything()
        elif selector == SELECTOR_CLOUDFLARE:
            logger.info("Command: update CloudFlare only")
            intents.fetch_cloudflare = True
        elif selector == SELECTOR_GCORE:
            logger.info("Command: update Gcore only")
            intents.fetch_gcore = True
        elif selector == SELECTOR_RELOAD:
            logger.info("Command: reload services only")
            intents.reload_services = True
        else:
            msg = f"Unknown option or command: {selector}"
            raise ConfigurationError(msg, details={"argument": selector})

    if not intents.any:
        msg = "No action selected"
        raise ConfigurationError(msg)

    return intents


@dataclass
class ProviderResult:
    """Result of updating one provider list.

    Attributes:
        provider: Provider that was updated
        path: File the list was written to
        count: Number of addresses written
    """

    provider: Provider
    path: Path
    count: int


@dataclass
class RunResult:
    """Result of a complete run."""

    providers: list[ProviderResult] = field(default_factory=list)
    reloads: list[ReloadResult] = field(default_factory=list)

    @property
    def failed_reloads(self) -> list[ReloadResult]:
        """Services whose reload failed."""
        return [r for r in self.reloads if r.status == ReloadStatus.FAILED]


class CDNIPUpdater:
    """Updater for CDN provider IP lists.

    Example:
        ```python
        updater = CDNIPUpdater(UpdaterSettings())
        result = updater.run(resolve_intents(["cloudflare", "reload"]))
        ```
    """

    def __init__(
        self,
        settings: UpdaterSettings | None = None,
        fetcher: IPListFetcher | None = None,
        reloader: ServiceReloader | None = None,
    ) -> None:
        """Initialize the updater.

        Args:
            settings: Optional settings. If not provided, reads from environment.
            fetcher: Optional fetcher. If not provided, creates one.
            reloader: Optional service reloader. If not provided, creates one.
        """
        self.settings = settings or get_settings()
        self.providers = build_providers(self.settings)
        self.fetcher = fetcher or IPListFetcher(timeout=self.settings.request_timeout)
        self.reloader = reloader or ServiceReloader(systemctl=self.settings.systemctl_path)

    def log_settings(self) -> None:
        """Log the effective settings."""
        logger.info("Current settings:")
        logger.info("  - Target directory: %s", self.settings.target_dir)
        logger.info("  - CloudFlare file: %s", self.settings.cloudflare_file)
        logger.info("  - Gcore file: %s", self.settings.gcore_file)
        logger.info("  - Services to reload: %s", " ".join(self.settings.services))

    def update_provider(self, provider: Provider) -> ProviderResult:
        """Fetch, extract and write one provider list.

        Args:
            provider: Provider to update.

        Returns:
            Where the list was written and how many entries it holds.

        Raises:
            FetchError: If an endpoint cannot be fetched.
            EmptyResultError: If an endpoint yields no addresses.
            WriteError: If the list cannot be written.
        """
        config: ProviderConfig = self.providers[provider]
        logger.info(SEPARATOR)
        logger.info("Processing %s IP addresses", config.name)
        logger.info(SEPARATOR)

        ips = self.fetcher.fetch_provider(config)
        log_success(logger, "%s IP addresses fetched", config.name)

        count = write_ip_list(
            self.settings.target_dir,
            config.filename,
            ips,
            file_mode=self.settings.file_mode,
        )
        return ProviderResult(
            provider=provider,
            path=Path(self.settings.target_dir) / config.filename,
            count=count,
        )

    def reload_services(self) -> list[ReloadResult]:
        """Reload every configured service that is running."""
        logger.info(SEPARATOR)
        logger.info("Reloading services")
        logger.info(SEPARATOR)
        return self.reloader.reload_all(self.settings.services)

    def run(self, intents: RunIntents) -> RunResult:
        """Run the requested actions, stopping at the first fatal error.

        Args:
            intents: Actions to perform.

        Returns:
            Results of the provider updates and service reloads.

        Raises:
            ConfigurationError: If no action is requested.
            FetchError: If a provider endpoint cannot be fetched.
            EmptyResultError: If a provider response has no addresses.
            WriteError: If the directory or a list file cannot be written.
        """
        if not intents.any:
            msg = "No action selected"
            raise ConfigurationError(msg)

        self.log_settings()
        result = RunResult()

        if intents.any_fetch:
            prepare_directory(self.settings.target_dir, self.settings.directory_mode)
            log_success(logger, "Directory prepared")

        for provider in intents.providers():
            result.providers.append(self.update_provider(provider))

        if intents.reload_services:
            result.reloads = self.reload_services()

        return result
