"""HTML fetching and URL validation utilities."""

import ipaddress
import json
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import httpx

from larder_recipes.app.core.config import get_settings
from larder_recipes.app.core.errors import FetchError
from larder_recipes.app.services.url_parsing.models import FetchedPage

logger = logging.getLogger(__name__)


def is_private_host(host: str) -> bool:
    """Check if a host is private/localhost."""
    hostname = host.split(":")[0]
    try:
        ip = ipaddress.ip_address(hostname)
        return ip.is_private or ip.is_loopback
    except ValueError:
        return hostname.lower() in {"localhost"}


def validate_url(url: str) -> None:
    """Raise FetchError(error_code="invalid_url") for URLs we refuse to fetch."""
    parsed = urlparse(url or "")
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise FetchError(url, "URL must start with http or https.", error_code="invalid_url")
    if is_private_host(parsed.hostname or ""):
        raise FetchError(url, "Host is blocked (localhost/private).", error_code="invalid_url")


def _build_headers() -> dict:
    settings = get_settings()
    return {
        "User-Agent": settings.scraper_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Connection": "keep-alive",
    }


def _load_cookies() -> dict:
    settings = get_settings()
    if not settings.scraper_cookies:
        return {}
    try:
        cookies = json.loads(settings.scraper_cookies)
    except json.JSONDecodeError:
        logger.warning("SCRAPER_COOKIES is not valid JSON; ignoring")
        return {}
    return cookies if isinstance(cookies, dict) else {}


def _decode(response: httpx.Response) -> str:
    """Decode the body using the declared charset, then a <meta charset>, then utf-8."""
    content_type = response.headers.get("content-type", "")
    content_bytes = response.content
    encoding = None
    if "charset=" in content_type.lower():
        encoding = content_type.lower().split("charset=")[1].split(";")[0].strip().strip("\"'")
    try:
        return content_bytes.decode(encoding or "utf-8")
    except (UnicodeDecodeError, LookupError):
        text = content_bytes.decode("utf-8", errors="replace")
        meta = re.search(r'<meta[^>]+charset=["\']?([^"\'>\s]+)', text, re.I)
        if meta:
            try:
                return content_bytes.decode(meta.group(1).lower())
            except (UnicodeDecodeError, LookupError):
                pass
        return text


async def fetch_page(url: str, timeout: Optional[float] = None) -> FetchedPage:
    """Fetch a page and return its HTML plus the URL after redirects.

    Non-2xx responses, network errors and non-HTML content raise FetchError.
    """
    validate_url(url)
    settings = get_settings()
    seconds = timeout if timeout is not None else settings.scraper_timeout_seconds

    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(seconds, connect=min(seconds, 5.0)),
        headers=_build_headers(),
        cookies=_load_cookies(),
    ) as client:
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Timed out fetching %s: %s", url, exc)
            raise FetchError(url, "Timed out fetching the page.") from exc
        except httpx.HTTPError as exc:
            logger.warning("Network error fetching %s: %s", url, exc)
            raise FetchError(url, f"Network error: {exc}") from exc

    if response.status_code >= 400:
        logger.info("Fetch of %s returned status %s", url, response.status_code)
        raise FetchError(
            url,
            f"Site returned status {response.status_code}.",
            status_code=response.status_code,
        )

    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type and "text/plain" not in content_type:
        raise FetchError(
            url,
            f"Unsupported content type: {content_type}",
            status_code=response.status_code,
        )

    final_url = str(response.url) if response.url else url
    html = _decode(response)
    logger.info("Fetched %s (%d chars, final url %s)", url, len(html), final_url)
    return FetchedPage(html=html, final_url=final_url)
