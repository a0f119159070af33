"""IP list fetchers.

Fetchers download provider endpoints over HTTP and hand the bodies to the
extractors.
"""

import logging

import httpx

from cdn_ips_updater.exceptions import FetchError
from cdn_ips_updater.extractors import extract_addresses
from cdn_ips_updater.providers import ProviderConfig
from cdn_ips_updater.utils.logging import log_success

logger = logging.getLogger(__name__)


class IPListFetcher:
    """Fetcher for provider IP lists.

    Example:
        ```python
        fetcher = IPListFetcher(timeout=30.0)
        ips = fetcher.fetch_provider(providers[Provider.CLOUDFLARE])
        ```
    """

    def __init__(
        self,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout: HTTP request timeout in seconds.
            client: Optional HTTP client. If not provided, one is created
                per request.
        """
        self.timeout = timeout
        self._client = client

    def _get(self, client: httpx.Client, url: str) -> httpx.Response:
        response = client.get(url)
        response.raise_for_status()
        return response

    def fetch_text(self, url: str) -> str:
        """Fetch a URL and return the response body.

        Args:
            url: URL to fetch.

        Returns:
            Response body as text.

        Raises:
            FetchError: On a non-success status or a transport error.
        """
        try:
            if self._client is not None:
                response = self._get(self._client, url)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = self._get(client, url)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            msg = f"HTTP {status} from {url}"
            raise FetchError(msg, url=url, status_code=status) from e
        except httpx.HTTPError as e:
            msg = f"Request to {url} failed: {e}"
            raise FetchError(msg, url=url) from e

        return response.text

    def fetch_provider(self, provider: ProviderConfig) -> list[str]:
        """Fetch and extract every endpoint of a provider.

        Args:
            provider: Provider descriptor.

        Returns:
            Addresses of all endpoints, concatenated in endpoint order.

        Raises:
            FetchError: If any endpoint cannot be fetched.
            EmptyResultError: If any endpoint yields no addresses.
        """
        logger.info("Fetching %s IP addresses", provider.name)
        ips: list[str] = []

        for url in provider.urls:
            logger.info("Downloading %s addresses from %s", provider.name, url)
            text = self.fetch_text(url)
            found = extract_addresses(
                text,
                provider.strategy,
                json_field=provider.json_field,
                source=url,
            )
            log_success(logger, "Got %d %s addresses from %s", len(found), provider.name, url)
            ips.extend(found)

        return ips
