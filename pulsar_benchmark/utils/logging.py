"""Logging utilities for the Pulsar benchmark driver."""

import logging
import sys
from pathlib import Path
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console

LOGGER_ROOT = "pulsar-omb"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    component: Optional[str] = None,
    enable_rich: bool = True
) -> logging.Logger:
    """Setup logging configuration.

    Handlers are installed on the ``pulsar-omb`` root so every driver
    component logger inherits them.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        component: Component name for the returned logger
        enable_rich: Enable rich console output

    Returns:
        Configured logger instance
    """
    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    root.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if enable_rich:
        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True
        )
        console_handler.setFormatter(logging.Formatter('%(name)s - %(message)s'))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)

    root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Prevent propagation to the root logger
    root.propagate = False

    return get_logger(component) if component else root


def get_logger(component: str) -> logging.Logger:
    """Get logger for component."""
    return logging.getLogger(f"{LOGGER_ROOT}.{component}")


class LoggerMixin:
    """Mixin class that provides logging capabilities."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._logger = None

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this component."""
        if getattr(self, '_logger', None) is None:
            component_name = self.__class__.__name__.lower()
            self._logger = get_logger(component_name)
        return self._logger
