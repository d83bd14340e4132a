from __future__ import annotations

import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from logger import get_logger

logger = get_logger(__name__)

HEADERS = {
    "User-Agent": "bible-notion-loader/1.0",
    "Accept-Language": "en-US,en;q=0.9",
}


@retry(reraise=True, stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=8))
def fetch_page_html(url: str, *, timeout: int = 30) -> str:
    """GET a page and return its HTML, retrying transient failures."""
    logger.debug("GET %s", url)
    resp = requests.get(url, headers=HEADERS, timeout=timeout)
    resp.raise_for_status()
    return resp.text
