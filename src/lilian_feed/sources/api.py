from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import REQUEST_HEADERS, FeedSettings
from ..errors import HTTPStatusError, MalformedResponseError, NetworkError
from .base import ContentSource

logger = logging.getLogger("lilian")


class ApiSource(ContentSource):
    """Client for the content endpoints of the REST backend."""

    def __init__(self, settings: FeedSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.base_url = settings.api_base_url.rstrip("/")
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        retries = Retry(
            total=self.settings.retries,
            backoff_factor=0.3,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _get(self, url: str) -> requests.Response:
        try:
            logger.debug("Fetching %s", url)
            resp = self.session.get(url, timeout=self.settings.http_timeout)
        except requests.Timeout as e:
            raise NetworkError(f"Timed out after {self.settings.http_timeout}s: {e}", url=url) from e
        except requests.RequestException as e:
            raise NetworkError(f"Request failed: {e}", url=url) from e
        if not 200 <= resp.status_code < 300:
            raise HTTPStatusError(resp.status_code, url=url)
        logger.debug("Fetched %s -> %d", url, resp.status_code)
        return resp

    def _get_json(self, url: str) -> Any:
        resp = self._get(url)
        content_type = resp.headers.get("Content-Type", "")
        if "json" not in content_type.lower():
            raise MalformedResponseError(
                f"Expected JSON from {url}, got content-type {content_type!r}", url=url
            )
        try:
            return resp.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise MalformedResponseError(f"Invalid JSON body from {url}: {e}", url=url) from e

    def _get_json_list(self, url: str) -> List[Dict[str, Any]]:
        data = self._get_json(url)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a JSON array from {url}, got {type(data).__name__}", url=url
            )
        return data

    def get_section(self, section: str) -> List[Dict[str, Any]]:
        return self._get_json_list(self._url(f"/api/content/section/{quote(section)}"))

    def get_single(self, section: str) -> Optional[Dict[str, Any]]:
        url = self._url(f"/api/content/single/{quote(section)}")
        resp = self._get(url)
        # 204 means the section has no published record
        if resp.status_code == 204 or not resp.content:
            return None
        content_type = resp.headers.get("Content-Type", "")
        if "json" not in content_type.lower():
            raise MalformedResponseError(
                f"Expected JSON from {url}, got content-type {content_type!r}", url=url
            )
        try:
            data = resp.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise MalformedResponseError(f"Invalid JSON body from {url}: {e}", url=url) from e
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object from {url}, got {type(data).__name__}", url=url
            )
        return data

    def get_upcoming(self) -> List[Dict[str, Any]]:
        return self._get_json_list(self._url("/api/content/upcoming"))

    def get_published(self) -> List[Dict[str, Any]]:
        return self._get_json_list(self._url("/api/content/published"))

    def get_image(self, content_id: int) -> Optional[bytes]:
        url = self._url(f"/api/content/image/{int(content_id)}")
        try:
            resp = self._get(url)
        except (NetworkError, HTTPStatusError) as e:
            logger.warning("No image for content %s: %s", content_id, e)
            return None
        if not resp.headers.get("Content-Type", "").lower().startswith("image/"):
            logger.warning("Content %s image endpoint returned a non-image response", content_id)
            return None
        return resp.content
