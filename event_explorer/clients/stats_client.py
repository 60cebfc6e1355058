"""Popularity provider: view counts from the external stats (hit counting) service.

View counts are decoration only. Every call here is advisory: transport errors,
timeouts and malformed payloads are logged and absorbed, never raised to the
caller.
"""
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Optional

import httpx

from event_explorer.timeutils import format_for_stats, utcnow

logger = logging.getLogger(__name__)

EVENTS_URI = "/events"
_EVENT_URI_RE = re.compile(r"^/events/(\d+)$")


def event_uri(event_id: int) -> str:
    return f"{EVENTS_URI}/{event_id}"


class PopularityProvider(ABC):
    """Read/record page views for events."""

    @abstractmethod
    def record_view(self, uri: str, ip: str) -> None:
        """Record one hit for ``uri`` from ``ip``. Fire-and-forget."""
        ...

    @abstractmethod
    def get_view_counts(
        self, event_ids: Iterable[int], start: datetime, end: datetime
    ) -> dict[int, int]:
        """Return hits per event id in [start, end]; ids without hits map to 0."""
        ...


class NullPopularityProvider(PopularityProvider):
    """Used when the stats service is disabled: records nothing, reports zero."""

    def record_view(self, uri: str, ip: str) -> None:
        logger.debug("Stats disabled, dropping hit for %s", uri)

    def get_view_counts(self, event_ids, start, end) -> dict[int, int]:
        return {event_id: 0 for event_id in event_ids}


class StatsClient(PopularityProvider):
    """HTTP client for the stats service (``POST /hit``, ``GET /stats``)."""

    def __init__(
        self,
        base_url: str,
        app_name: str,
        timeout: float = 2.0,
        unique: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._app_name = app_name
        self._unique = unique
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def record_view(self, uri: str, ip: str) -> None:
        payload = {
            "app": self._app_name,
            "uri": uri,
            "ip": ip,
            "timestamp": format_for_stats(utcnow()),
        }
        try:
            response = self._client.post("/hit", json=payload)
            response.raise_for_status()
            logger.debug("Hit recorded: uri=%s ip=%s", uri, ip)
        except httpx.HTTPError as e:
            logger.warning("Failed to record hit for %s: %s", uri, e)

    def get_view_counts(self, event_ids, start, end) -> dict[int, int]:
        ids = list(dict.fromkeys(event_ids))
        counts = {event_id: 0 for event_id in ids}
        if not ids:
            return counts

        params = {
            "start": format_for_stats(start),
            "end": format_for_stats(end),
            "uris": [event_uri(event_id) for event_id in ids],
            "unique": "true" if self._unique else "false",
        }
        try:
            response = self._client.get("/stats", params=params)
            response.raise_for_status()
            rows = response.json()
            for row in rows:
                match = _EVENT_URI_RE.match(str(row.get("uri", "")))
                if not match:
                    continue
                event_id = int(match.group(1))
                if event_id in counts:
                    counts[event_id] = int(row.get("hits") or 0)
        except httpx.HTTPError as e:
            logger.warning("Failed to fetch view counts for %d events: %s", len(ids), e)
            return {event_id: 0 for event_id in ids}
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Malformed stats response: %s", e)
            return {event_id: 0 for event_id in ids}
        return counts
