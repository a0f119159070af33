"""Pytest configuration for cdn-ips-updater tests."""

import json
import logging
import os
import subprocess
from collections.abc import Callable

import httpx
import pytest

from cdn_ips_updater.settings import UpdaterSettings, reset_settings
from cdn_ips_updater.utils.logging import PACKAGE_LOGGER

# Test constants
CLOUDFLARE_IPV4_URL = "https://cf.test/ips-v4"
CLOUDFLARE_IPV6_URL = "https://cf.test/ips-v6"
GCORE_API_URL = "https://gcore.test/cdn/public-ip-list"

# Cloudflare serves its lists without a trailing newline
CLOUDFLARE_IPV4_BODY = "173.245.48.0/20\n103.21.244.0/22\n103.22.200.0/22"
CLOUDFLARE_IPV6_BODY = "2400:cb00::/32\n2606:4700::/32\n"
GCORE_ADDRESSES = ["92.223.84.0/24", "5.188.7.0/24", "2a03:90c0::/32"]
GCORE_BODY = json.dumps({"addresses": GCORE_ADDRESSES})


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep host configuration out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("CDN_IPS_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("CDN_IPS_SYSLOG", "false")
    monkeypatch.chdir(tmp_path)
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by setup_logging."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def target_dir(tmp_path):
    """Directory the lists are written to (not created yet)."""
    return tmp_path / "cdn-ips"


@pytest.fixture
def settings(target_dir):
    """Settings pointing at test endpoints and a temporary directory."""
    return UpdaterSettings(
        target_dir=target_dir,
        cloudflare_ipv4_url=CLOUDFLARE_IPV4_URL,
        cloudflare_ipv6_url=CLOUDFLARE_IPV6_URL,
        gcore_api_url=GCORE_API_URL,
        services=["haproxy", "fail2ban"],
        syslog_enabled=False,
    )


@pytest.fixture
def routes():
    """Responses served by the mock transport, keyed by URL."""
    return {
        CLOUDFLARE_IPV4_URL: (200, CLOUDFLARE_IPV4_BODY),
        CLOUDFLARE_IPV6_URL: (200, CLOUDFLARE_IPV6_BODY),
        GCORE_API_URL: (200, GCORE_BODY),
    }


@pytest.fixture
def requested_urls():
    """URLs requested through the mock transport, in order."""
    return []


@pytest.fixture
def http_client(routes, requested_urls):
    """HTTP client backed by httpx.MockTransport."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requested_urls.append(url)
        if url not in routes:
            return httpx.Response(404, text="not found")
        status, body = routes[url]
        return httpx.Response(status, text=body)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def systemctl_calls():
    """Commands passed to the fake systemctl runner."""
    return []


@pytest.fixture
def make_runner(systemctl_calls) -> Callable[..., Callable[..., subprocess.CompletedProcess]]:
    """Build a fake subprocess.run for systemctl.

    Args (of the returned factory):
        active: Services reported as active.
        failing: Services whose reload exits non-zero.
    """

    def factory(active=(), failing=()):
        def runner(cmd, **kwargs):
            systemctl_calls.append(list(cmd))
            action, service = cmd[1], cmd[-1]
            if action == "is-active":
                return subprocess.CompletedProcess(cmd, 0 if service in active else 3)
            if action == "reload":
                return subprocess.CompletedProcess(cmd, 1 if service in failing else 0)
            return subprocess.CompletedProcess(cmd, 2)

        return runner

    return factory
