# File: blockpuzzle/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that flood INFO output
NOISY_LOGGERS = ("mlflow", "urllib3", "git", "alembic")


def setup_logging(log_level_str: str = "INFO") -> int:
    """Configures the root logger for console output. Returns the numeric level."""
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
    logging.getLogger(__name__).debug(
        f"Logging configured at level {logging.getLevelName(log_level)}"
    )
    return log_level
