"""Fetch job posting pages and reduce them to visible text."""

import ipaddress
import logging
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup, Comment

from core.config import get_settings
from services.ai.exceptions import FetchFailed


logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

_BLOCKED_HOST_SUFFIXES = (".localhost", ".local", ".internal")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def html_to_text(html: str) -> str:
    """Visible text of an HTML document or fragment.

    Scripts, styles and page chrome are dropped; whitespace is collapsed.
    Plain strings without markup pass through unchanged apart from
    whitespace normalization.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag_name in HTMLExtractionService.UNWANTED_TAGS:
        for tag in soup.find_all(tag_name):
            tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    return normalize_whitespace(soup.get_text(" "))


class HTMLExtractionService:
    """Service for fetching job posting pages as plain text.

    One fetch per call with a bounded timeout; retries are the caller's
    business (and the resolver deliberately makes none).
    """

    # Tags whose content is never part of the posting text
    UNWANTED_TAGS = {
        "script",
        "style",
        "nav",
        "header",
        "footer",
        "aside",
        "iframe",
        "embed",
        "object",
        "form",
        "button",
        "select",
        "noscript",
        "svg",
        "template",
    }

    USER_AGENT = "JobFinderBot/1.0"

    def __init__(self, timeout: float | None = None, max_size: int = 5 * 1024 * 1024):
        """Initialize the page fetcher.

        Args:
            timeout: Request timeout in seconds (defaults to
                URL_FETCH_TIMEOUT_SECONDS)
            max_size: Maximum response size in bytes (5MB default)
        """
        self.timeout = (
            timeout if timeout is not None else get_settings().URL_FETCH_TIMEOUT_SECONDS
        )
        self.max_size = max_size

    async def fetch_text(self, url: str) -> str:
        """Fetch `url` and return its visible text.

        Raises:
            FetchFailed: invalid or private URL, network error, HTTP error
                status, non-HTML content, oversize body, or no text.
        """
        self._validate_url(url)
        html = await self._fetch_html(url)
        text = html_to_text(html)
        if not text:
            raise FetchFailed("No text content found at URL")
        return text

    def _validate_url(self, url: str) -> None:
        """Validate that the URL is safe to fetch.

        Raises:
            FetchFailed: If the URL is malformed, not http(s), or points at a
                loopback, private or link-local host.
        """
        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise FetchFailed(f"Invalid URL format: {e}") from e

        if not parsed.scheme or not parsed.netloc:
            raise FetchFailed("URL must include scheme and domain")

        if parsed.scheme not in ("http", "https"):
            raise FetchFailed("URL must use HTTP or HTTPS protocol")

        host = (parsed.hostname or "").lower()
        if not host:
            raise FetchFailed("URL must include scheme and domain")
        if host == "localhost" or host.endswith(_BLOCKED_HOST_SUFFIXES):
            raise FetchFailed("Cannot fetch from localhost or private IP addresses")

        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            return
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_reserved
            or ip.is_unspecified
        ):
            raise FetchFailed("Cannot fetch from localhost or private IP addresses")

    async def _fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": self.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True
            ) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchFailed(
                f"Failed to fetch URL: {e.response.status_code} "
                f"{e.response.reason_phrase}"
            ) from e
        except httpx.TimeoutException as e:
            raise FetchFailed("Timed out fetching URL") from e
        except httpx.RequestError as e:
            raise FetchFailed(f"Network error: {e}") from e

        if len(response.content) > self.max_size:
            raise FetchFailed(f"Response too large: {len(response.content)} bytes")

        content_type = response.headers.get("content-type", "").lower()
        if "html" not in content_type:
            raise FetchFailed(f"Expected HTML content, got: {content_type or 'none'}")

        logger.debug("Fetched %d bytes from %s", len(response.content), url)
        return response.text
