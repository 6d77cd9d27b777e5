"""
Shared utilities.
"""
import logging

from clinic_dashboard.config import settings

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger("clinic_dashboard")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.debug else settings.log_level.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a module logger under the clinic_dashboard hierarchy."""
    _configure_root()
    return logging.getLogger(name)
