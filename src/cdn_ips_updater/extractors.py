"""Address extraction from provider responses.

Turns the raw body of a provider endpoint into an ordered list of IP/CIDR
strings. Plain-text endpoints are read line by line; JSON endpoints are read
from a known field, falling back to pattern matching when the body cannot be
read that way.
"""

import ipaddress
import json
import logging
import re
from enum import Enum
from typing import Any

from cdn_ips_updater.exceptions import EmptyResultError

logger = logging.getLogger(__name__)

# IPv4 with optional prefix, or IPv6 with prefix
ADDRESS_PATTERN = re.compile(
    r"([0-9]{1,3}\.){3}[0-9]{1,3}(/[0-9]{1,2})?|([0-9a-fA-F:]+)/[0-9]{1,3}"
)

DEFAULT_JSON_FIELD = "addresses"


class ExtractionStrategy(str, Enum):
    """How a provider response is turned into addresses."""

    LINES = "lines"  # One entry per line
    STRUCTURED = "structured"  # JSON array field, pattern fallback
    PATTERN = "pattern"  # Regex scan of the raw text


def validate_ip(ip: str) -> bool:
    """Validate an IP address or CIDR range.

    Args:
        ip: IP address or CIDR to validate.

    Returns:
        True if valid, False otherwise.
    """
    try:
        ipaddress.ip_network(ip, strict=False)
        return True
    except ValueError:
        try:
            ipaddress.ip_address(ip)
            return True
        except ValueError:
            return False


def extract_lines(text: str) -> list[str]:
    """Read one address per line, skipping blanks and comments.

    Args:
        text: Plain text response.

    Returns:
        List of addresses in response order.
    """
    ips = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if validate_ip(line):
            ips.append(line)
        else:
            logger.warning("Skipping invalid address: %s", line)
    return ips


def extract_pattern(text: str) -> list[str]:
    """Scan text for IPv4/IPv6 address shapes.

    Args:
        text: Any text, typically a JSON body.

    Returns:
        Matched substrings in order of appearance.
    """
    return [match.group(0) for match in ADDRESS_PATTERN.finditer(text)]


def extract_structured(text: str, json_field: str = DEFAULT_JSON_FIELD) -> list[str] | None:
    """Read the address array from a JSON body.

    Args:
        text: JSON response text.
        json_field: Top-level field holding the array of strings.

    Returns:
        Addresses in array order, or None if the body is not a JSON object
        with an array under ``json_field``.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None
    values = data.get(json_field)
    if not isinstance(values, list):
        return None

    ips = []
    for item in values:
        if isinstance(item, str) and validate_ip(item.strip()):
            ips.append(item.strip())
        else:
            logger.warning("Skipping invalid %s entry: %r", json_field, item)
    return ips


def extract_addresses(
    text: str,
    strategy: ExtractionStrategy,
    json_field: str = DEFAULT_JSON_FIELD,
    source: str | None = None,
) -> list[str]:
    """Extract addresses from a response body.

    Args:
        text: Raw response body.
        strategy: Extraction strategy to apply.
        json_field: Field name used by the structured strategy.
        source: URL or provider name, used in log and error messages.

    Returns:
        Non-empty, ordered list of addresses.

    Raises:
        EmptyResultError: If no addresses were found.
    """
    label = source or "response"

    if strategy == ExtractionStrategy.LINES:
        ips = extract_lines(text)
    elif strategy == ExtractionStrategy.STRUCTURED:
        structured = extract_structured(text, json_field)
        if structured is None:
            logger.info(
                "No '%s' array in %s, falling back to pattern extraction",
                json_field,
                label,
            )
            ips = extract_pattern(text)
        else:
            logger.info("Parsed '%s' field of %s", json_field, label)
            ips = structured
    else:
        ips = extract_pattern(text)
        logger.info("Used pattern extraction for %s", label)

    if not ips:
        msg = f"No IP addresses could be extracted from {label}"
        raise EmptyResultError(msg, source=source)

    return ips
