import logging
import os

LOG_LEVEL = os.getenv("BULLETIN_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str | None = None):
    """Configure process-wide logging once.

    Uses a simple format including time, level, logger name and message.
    A second call is a no-op so uvicorn reloads and Streamlit reruns do not
    stack handlers.
    """
    if logging.getLogger().handlers:
        return
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=fmt)


def get_logger(name: str):
    return logging.getLogger(name)
