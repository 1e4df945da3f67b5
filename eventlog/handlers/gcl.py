"""Google Cloud Logging API handler."""

from __future__ import annotations

import json
import sys
from typing import Mapping, Optional

from ..errors import HandlerConfigError
from ..event import Event
from ..formatter import json_default, to_record

try:  # pragma: no cover - optional dependency
    from google.cloud import logging as gcl_logging
    from google.api_core.exceptions import GoogleAPICallError
except Exception as exc:  # pragma: no cover - optional dependency
    gcl_logging = None
    GoogleAPICallError = Exception
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


class GoogleCloudLoggingHandler:
    """Send events as structured entries to Google Cloud Logging."""

    def __init__(
        self,
        project: Optional[str] = None,
        log_name: str = "eventlog",
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize the handler with a given project, log name and labels."""

        if gcl_logging is None:
            raise HandlerConfigError(
                "google-cloud-logging is required for GoogleCloudLoggingHandler"
            ) from _IMPORT_ERROR

        self._client = gcl_logging.Client(project=project) # The API client
        self._logger = self._client.logger(log_name) # The target log
        self._project = project or self._client.project # The project entries land in
        self._labels = dict(labels or {}) # Labels attached to every entry
        self._resource = {
            "type": "global",
            "labels": {"project_id": self._project},
        }

    def event(self, log_event: Event) -> None:
        """Write an event to Cloud Logging; the eight severities map by name."""

        # round-trip so bytes, decimals and the like become JSON values
        payload = json.loads(json.dumps(to_record(log_event), default=json_default))

        try:
            self._logger.log_struct(
                payload,
                severity=log_event.level.name,
                resource=self._resource,
                labels=self._labels,
            )
        except GoogleAPICallError:  # pragma: no cover - network error
            print(
                f"google cloud logging emission failed: event={log_event.id}",
                file=sys.stderr,
            )
            raise
