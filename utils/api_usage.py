import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import Request, Response

logger = logging.getLogger(__name__)


class ApiUsageTracker:
    """
    Counts API calls per route. Lives on ``app.state.api_usage``; nothing
    global.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._errors: Counter = Counter()
        self.started_at = datetime.now(timezone.utc)

    def track(self, method: str, path: str, status_code: Optional[int] = None) -> None:
        key = f"{method.upper()} {path}"
        with self._lock:
            self._counts[key] += 1
            if status_code is not None and status_code >= 500:
                self._errors[key] += 1
        logger.debug("API call: %s", key)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def summary(self) -> dict:
        with self._lock:
            return {
                "since": self.started_at.isoformat(),
                "total": sum(self._counts.values()),
                "calls": dict(self._counts.most_common()),
                "server_errors": dict(self._errors),
            }

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._errors.clear()
            self.started_at = datetime.now(timezone.utc)


def _route_path(request: Request) -> str:
    # templated path keeps /api/bids/1 and /api/bids/2 under one key
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


async def track_api_usage(request: Request, call_next) -> Response:
    tracker: Optional[ApiUsageTracker] = getattr(request.app.state, "api_usage", None)
    response: Response = await call_next(request)
    if tracker is not None and request.url.path.startswith("/api/"):
        tracker.track(request.method, _route_path(request), response.status_code)
    return response
