import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route every `logging.getLogger(__name__)` in the app to stdout."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # The Gemini SDK logs every HTTP request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
