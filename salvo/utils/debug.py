import logging
import os
from typing import Optional

# -----------------------------
# Debug helpers (enable with --debug or env SALVO_DEBUG=1)
# -----------------------------
DEBUG_ENABLED = os.getenv("SALVO_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}
DEBUG_LOG_PATH = "salvo_debug.log"

LOGGER_NAME = "salvo"
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

logger = logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    """Child logger under the ``salvo`` hierarchy."""
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logger.getChild(name)


def configure_logging(level: Optional[str] = None, path: Optional[str] = None) -> logging.Handler:
    """Attach a single handler to the ``salvo`` logger.

    Writes to ``path`` when given, otherwise to stderr. Calling again
    replaces the previously attached handler.
    """
    if level is None:
        level = "debug" if DEBUG_ENABLED else "info"
    handler: logging.Handler
    if path:
        handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s | %(message)s", "%Y-%m-%d %H:%M:%S"))

    for old in list(logger.handlers):
        if getattr(old, "_salvo_handler", False):
            logger.removeHandler(old)
            old.close()
    handler._salvo_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(_LEVELS.get(level.lower(), logging.INFO))
    return handler


def debug_event(
    title: str,
    message: str,
    details: str = "",
    *,
    level: str = "info",
    source: Optional[logging.Logger] = None,
) -> None:
    """Log a headline plus indented detail lines."""
    log = source or logger
    lvl = _LEVELS.get(level.lower(), logging.INFO)
    if not log.isEnabledFor(lvl):
        return
    log.log(lvl, "%s | %s", title, message)
    if details:
        for ln in details.splitlines():
            log.log(lvl, "    %s", ln)
