import logging
import mimetypes
from functools import lru_cache
from pathlib import Path
from typing import Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from scroll.config import get_settings

logger = logging.getLogger(__name__)

USER_AGENT = "scroll-citations/0.1"


@lru_cache
def get_session() -> requests.Session:
    settings = get_settings()
    retries = Retry(
        total=max(settings.http_max_retries, 0),
        backoff_factor=max(settings.http_retry_backoff_seconds, 0.0),
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=frozenset(["GET", "HEAD"]),
    )
    adapter = HTTPAdapter(max_retries=retries)
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return (content_type or "").lower()


def fetch_source(url: str) -> Tuple[bytes, str]:
    settings = get_settings()
    response = get_session().get(url, timeout=settings.http_timeout_seconds)
    response.raise_for_status()
    content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        content_type = guess_content_type(urlparse(url).path)
    logger.info("source_fetched:%s bytes=%s type=%s", url, len(response.content), content_type or "-")
    return response.content, content_type


def read_file(path: Path) -> Tuple[bytes, str]:
    if not path.is_file():
        raise FileNotFoundError(f"source_file_not_found:{path}")
    return path.read_bytes(), guess_content_type(path.name)
