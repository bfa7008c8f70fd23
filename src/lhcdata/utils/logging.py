"""
Logging utilities for the lhcdata reformatter.

Library code uses logging.getLogger(__name__) and never print().
"""

import logging


def setup_logging(level: str = "INFO", format_style: str = "default") -> None:
    """
    Configure logging for a reformatting run.

    Call this at the application entry point (CLI or notebook),
    not inside library modules.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_style: "default" for timestamped lines, "minimal" for compact

    Example:
        >>> from lhcdata.utils.logging import setup_logging
        >>> setup_logging(level="DEBUG")
    """
    if format_style == "minimal":
        fmt = "%(levelname)s | %(message)s"
    else:
        fmt = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


class LoggerMixin:
    """
    Mixin class that provides a logger property.

    Usage:
        class OutputDataset(LoggerMixin):
            def add_series(self, series):
                self.logger.debug("Adding %s", series.name)
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        return logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
