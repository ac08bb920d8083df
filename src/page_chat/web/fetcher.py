"""SSRF-safe page fetcher used by the relay's fetch-page endpoint."""

from __future__ import annotations

import ipaddress
import logging
import socket
from urllib.parse import urlparse

import httpx

from page_chat.exceptions import BlockedURLError, WebFetchError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}

_BLOCKED_HOSTS = {"localhost", "0.0.0.0", "127.0.0.1", "::1"}

# Matched against the start of the hostname, never as a substring.
_BLOCKED_HOST_PREFIXES = (
    "127.",
    "10.",
    "192.168.",
    "169.254.",
    *(f"172.{n}." for n in range(16, 32)),
)

_BLOCKED_HOST_SUFFIXES = (".localhost", ".local", ".internal")

_BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def _validate_url(url: str) -> tuple[bool, str | None, str | None]:
    """Validate a URL for safety. Returns (is_safe, error_message, resolved_ip).

    The static host block-list is checked before any DNS lookup, so a
    rejected private address never touches the network.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False, "Invalid URL format", None

    if parsed.scheme not in _ALLOWED_SCHEMES:
        return False, "Only HTTP and HTTPS URLs are supported", None

    if not hostname:
        return False, "URL has no hostname", None

    hostname = hostname.lower()
    if (
        hostname in _BLOCKED_HOSTS
        or hostname.startswith(_BLOCKED_HOST_PREFIXES)
        or hostname.endswith(_BLOCKED_HOST_SUFFIXES)
    ):
        return False, "Access to this domain is not allowed", None

    try:
        literal = ipaddress.ip_address(hostname)
    except ValueError:
        literal = None
    if literal is not None:
        if _is_blocked_ip(literal):
            return False, f"Blocked: URL points to private/internal IP ({literal})", None
        return True, None, str(literal)

    resolved_ip = None
    try:
        addr_infos = socket.getaddrinfo(hostname, None)
        for addr_info in addr_infos:
            ip = ipaddress.ip_address(addr_info[4][0])
            if _is_blocked_ip(ip):
                return False, f"Blocked: URL resolves to private/internal IP ({ip})", None
            if resolved_ip is None:
                resolved_ip = str(ip)
    except socket.gaierror:
        return False, f"Cannot resolve hostname: {hostname}", None

    return True, None, resolved_ip


def _is_blocked_ip(ip: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return any(ip in network for network in _BLOCKED_NETWORKS)


def is_html(content_type: str) -> bool:
    lowered = (content_type or "").lower()
    return "text/html" in lowered or "application/xhtml" in lowered


class WebFetcher:
    """SSRF-safe fetcher for public HTML pages.

    Every redirect hop is re-validated before it is followed.

    Args:
        max_response_bytes: Maximum response size in bytes (default 5MB).
        max_redirects: Maximum number of redirects to follow (default 5).
        timeout: Seconds to wait for the remote page (default 15).
        transport: Optional httpx transport, used to stub the network in tests.
    """

    def __init__(
        self,
        max_response_bytes: int = 5 * 1_048_576,
        max_redirects: int = 5,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.max_response_bytes = max_response_bytes
        self.max_redirects = max_redirects
        self.timeout = timeout
        self._transport = transport

    async def fetch_html(self, url: str) -> dict:
        """Fetch ``url`` and return its raw body.

        Returns:
            Dict with url, content, status_code, content_type.

        Raises:
            BlockedURLError: If the URL or a redirect target is not allowed.
            WebFetchError: If the page could not be retrieved.
        """
        is_safe, error, _resolved_ip = _validate_url(url)
        if not is_safe:
            raise BlockedURLError(error)

        logger.info("Fetching page content from domain: %s", urlparse(url).hostname)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                current_url = url
                response = None
                for _ in range(self.max_redirects + 1):
                    response = await client.get(current_url, headers=_BROWSER_HEADERS)
                    if response.is_redirect and response.next_request is not None:
                        redirect_url = str(response.next_request.url)
                        redir_safe, redir_err, _ = _validate_url(redirect_url)
                        if not redir_safe:
                            raise BlockedURLError(f"Redirect blocked: {redir_err}")
                        current_url = redirect_url
                    else:
                        break

                if response is None:
                    raise WebFetchError("No response received")
                if response.is_redirect:
                    raise WebFetchError("Too many redirects")
                if len(response.content) > self.max_response_bytes:
                    raise WebFetchError(
                        f"Response too large (>{self.max_response_bytes} bytes)"
                    )
                response.raise_for_status()
        except (BlockedURLError, WebFetchError):
            raise
        except httpx.TimeoutException as e:
            raise WebFetchError("Request timed out") from e
        except httpx.HTTPStatusError as e:
            raise WebFetchError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
            ) from e
        except httpx.ConnectError as e:
            raise WebFetchError(f"Connection failed: {e}") from e
        except Exception as e:
            raise WebFetchError(f"Failed to fetch page: {e}") from e

        return {
            "url": str(response.url),
            "content": response.text,
            "status_code": response.status_code,
            "content_type": response.headers.get("content-type", ""),
        }
