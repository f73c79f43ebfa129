"""
Idempotent logging configuration for the app and CLI.
"""
import logging

_configured = False


def setup_logging(app) -> None:
    """
    Configure the root logger from app config.

    Safe to call more than once (tests build several apps).
    """
    global _configured

    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = logging.DEBUG if app.debug else getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    if _configured:
        return

    formatter = logging.Formatter(
        app.config.get("LOG_FORMAT"),
        datefmt=app.config.get("LOG_DATEFMT"),
    )

    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    # SQL echo is too noisy below WARNING outside of debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True
