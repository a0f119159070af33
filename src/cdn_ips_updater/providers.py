"""Provider descriptors.

Describes where each CDN publishes its ranges, how the response is parsed,
and which file the result lands in.
"""

from enum import Enum

from pydantic import BaseModel, Field

from cdn_ips_updater.extractors import DEFAULT_JSON_FIELD, ExtractionStrategy
from cdn_ips_updater.settings import UpdaterSettings


class Provider(str, Enum):
    """Supported CDN providers."""

    CLOUDFLARE = "cloudflare"
    GCORE = "gcore"


class ProviderConfig(BaseModel):
    """Configuration for a single CDN provider.

    Attributes:
        name: Display name of the provider
        urls: Endpoints fetched in order; results are concatenated
        strategy: Extraction strategy for every endpoint
        filename: Output file name inside the target directory
        json_field: Field holding the address array (structured strategy)
    """

    name: str = Field(description="Display name")
    urls: list[str] = Field(min_length=1, description="Source endpoints")
    strategy: ExtractionStrategy = Field(description="Extraction strategy")
    filename: str = Field(description="Output file name")
    json_field: str = Field(
        default=DEFAULT_JSON_FIELD, description="Field holding the address array"
    )


def build_providers(settings: UpdaterSettings) -> dict[Provider, ProviderConfig]:
    """Build the provider descriptors from settings.

    Args:
        settings: Updater settings.

    Returns:
        Mapping of provider to its descriptor, in processing order.
    """
    return {
        Provider.CLOUDFLARE: ProviderConfig(
            name="CloudFlare",
            urls=[settings.cloudflare_ipv4_url, settings.cloudflare_ipv6_url],
            strategy=ExtractionStrategy.LINES,
            filename=settings.cloudflare_file,
        ),
        Provider.GCORE: ProviderConfig(
            name="Gcore",
            urls=[settings.gcore_api_url],
            strategy=settings.gcore_strategy,
            filename=settings.gcore_file,
        ),
    }
