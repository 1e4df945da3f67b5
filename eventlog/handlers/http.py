"""Handler posting JSON event records to an HTTP collector."""

from __future__ import annotations

import logging
import threading
from typing import Mapping, Optional
from urllib.parse import urlparse

import requests

from ..errors import HandlerConfigError
from ..event import Event
from ..formatter import dumps, to_record

logger = logging.getLogger(__name__)


class HttpHandler:
    """POST one JSON document per event; non-2xx responses raise."""

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise HandlerConfigError(f"invalid collector URL: {url!r}")

        self.url = url
        self.timeout = timeout
        self._headers = {"Content-Type": "application/json"}
        self._headers.update(headers or {})
        self._session = session or requests.Session()
        self._lock = threading.Lock()

    def event(self, log_event: Event) -> None:
        body = dumps(to_record(log_event))

        with self._lock:
            response = self._session.post(
                self.url,
                data=body.encode("utf-8"),
                headers=self._headers,
                timeout=self.timeout,
            )
        if not response.ok:
            logger.debug("collector rejected event %s: %s", log_event.id, response.status_code)
        response.raise_for_status()

    def close(self) -> None:
        self._session.close()
