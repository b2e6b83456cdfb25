import logging
import sys
from pathlib import Path
from typing import Optional

from .config import BASE_DIR, Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Per-request INFO lines from the storage and HTTP clients.
NOISY_LOGGERS = ("httpx", "urllib3", "cloudinary")


def _log_file(settings: Settings) -> Optional[Path]:
    if not settings.LOG_FILE_PATH:
        return None
    path = Path(settings.LOG_FILE_PATH)
    return path if path.is_absolute() else BASE_DIR / path


def build_handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = _log_file(settings)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT, handlers=build_handlers(settings))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
