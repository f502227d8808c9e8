import logging

from rich.logging import RichHandler


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configures root logging with Rich formatting and returns the package logger.

    Args:
        level: Log level name for the root logger.

    Returns:
        The ``stepwise`` logger.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    return logging.getLogger("stepwise")
