"""
Logging configuration for PyOrgan.

All modules log through the standard library ``logging`` package under the
``pyorgan`` namespace. ``setup_logging`` attaches a rich console handler (and
optionally a plain file handler) to that namespace; library code never
configures handlers on its own.
"""
import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from rich.logging import RichHandler

if TYPE_CHECKING:
    from .parameters import OrganInstance

__all__ = [
    'LOGGER_NAME',
    'setup_logging',
    'get_logger',
    'log_realization',
    'log_configuration_warning',
]

LOGGER_NAME = 'pyorgan'

_FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    rich: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Calling this more than once replaces the handlers installed by the
    previous call.

    Args:
        level: Logging level for the package logger
        log_file: Optional path of a file that receives all records
        rich: Use a rich console handler; otherwise a plain stream handler

    Returns:
        The configured ``pyorgan`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if rich:
        console_handler = RichHandler(show_path=False, rich_tracebacks=True)
        console_handler.setFormatter(logging.Formatter('%(message)s'))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger named ``pyorgan.<name>`` unless already namespaced
    """
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def log_realization(logger: logging.Logger, instance: 'OrganInstance') -> None:
    """Log a freshly realized organ instance at debug level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "Realized subtype %d: lb=%.4g la=%.4g nob=%d lmax=%.4g r=%.4g",
        instance.subtype,
        instance.basal_length,
        instance.apical_length,
        instance.branch_count,
        instance.maximal_length(),
        instance.growth_rate,
    )


def log_configuration_warning(logger: logging.Logger, subtype: int,
                              parameter: str, message: str) -> None:
    """Log a configuration value that was normalized instead of rejected."""
    logger.warning("Subtype %d, parameter '%s': %s", subtype, parameter, message)
