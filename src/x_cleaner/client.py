"""Load feed page snapshots from disk or over HTTP.

X renders its timeline client-side, so fetching x.com directly returns
no feed items. Sources are expected to be rendered snapshots: a page
saved from the browser, or one served by a local fixture server.
"""

import logging
from pathlib import Path

import httpx

from .dom import DEFAULT_URL, FeedDocument

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class PageClient:
    """HTTP client for fetching page snapshots."""

    def __init__(self, timeout: float = 30.0, cookies: dict[str, str] | None = None):
        self._client = httpx.Client(
            headers={"User-Agent": USER_AGENT, "accept": "text/html"},
            cookies=cookies,
            timeout=timeout,
            follow_redirects=True,
        )

    def fetch(self, url: str) -> str:
        """Fetch a page and return its HTML."""
        logger.info("Fetching %s", url)
        response = self._client.get(url)

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            wait_msg = f" Retry in {retry_after}s." if retry_after else ""
            raise RuntimeError(f"Rate limited by {response.url.host}.{wait_msg}")

        if response.status_code in (401, 403):
            raise RuntimeError(
                f"Access denied ({response.status_code}) for {url}. "
                "Save the page from a logged-in browser and load the file instead."
            )

        if response.status_code == 404:
            raise RuntimeError(f"Page not found (404): {url}")

        response.raise_for_status()
        return response.text

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_document(source: str, url: str | None = None) -> FeedDocument:
    """Build a FeedDocument from a URL or an HTML file path.

    url overrides the page URL the document reports (it decides, among
    other things, whether the page is a single-post view).
    """
    if is_url(source):
        with PageClient() as client:
            html = client.fetch(source)
        return FeedDocument(html, url=url or source)

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")
    return FeedDocument(path.read_text(encoding="utf-8"), url=url or DEFAULT_URL)
