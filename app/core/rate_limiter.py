import threading
import time

from app.config import settings

WINDOW_SECONDS = 60

AUTH_PATHS = frozenset({"/auth/login", "/auth/register"})
SCRAPE_PATHS = frozenset({"/applications/scrape"})
AI_PATHS = frozenset({"/applications/analyze-match", "/insights"})
RESEARCH_PATHS = frozenset({"/research/company", "/companies/research"})


def limit_for_path(path: str) -> int | None:
    """Per-minute request budget for a path, or None when the path is not limited."""
    if path in AUTH_PATHS:
        return settings.rate_limit_auth_per_min
    if path in SCRAPE_PATHS:
        return settings.rate_limit_scrape_per_min
    if path in AI_PATHS or path.endswith("/interview-prep") or path.endswith("/interview-feedback"):
        return settings.rate_limit_ai_per_min
    if path in RESEARCH_PATHS:
        return settings.rate_limit_research_per_min
    return None


class InMemoryRateLimiter:
    """
    Fixed-window counter keyed by "<client ip>:<path>".
    State lives in this process only; each API worker counts separately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[int, float]] = {}

    def allow(self, key: str, limit: int, window_seconds: int = WINDOW_SECONDS) -> tuple[bool, int]:
        """Count one request against `key`. Returns (allowed, retry_after_seconds)."""
        now = time.time()
        with self._lock:
            count, started = self._windows.get(key, (0, now))
            if now - started >= window_seconds:
                count, started = 0, now
            if count >= limit:
                return False, max(1, int(window_seconds - (now - started)))
            self._windows[key] = (count + 1, started)
            return True, 0

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


rate_limiter = InMemoryRateLimiter()
