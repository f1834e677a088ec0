import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are chatty at INFO (HTTP clients, AWS SDK, Stripe SDK)
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "botocore", "urllib3", "stripe")


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        try:
            from app.config import settings
            level = settings.log_level
        except Exception:
            return logging.INFO
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logging(level: int | str | None = None) -> None:
    """Configure the root logger once for the API process and its background tasks."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    if root.handlers:
        root.handlers.clear()
    root.addHandler(handler)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
