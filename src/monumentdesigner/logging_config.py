"""
Logging Configuration
=====================
One call sets up the 'monumentdesigner' logger for a design session.

Pillow and pyvista log chatty DEBUG records (PNG chunk parsing, VTK plumbing);
those stay at WARNING unless `verbose_libraries` is set.
"""
import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "monumentdesigner"
LIBRARY_LOGGERS = ("PIL", "pyvista")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    verbose_libraries: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level, as a number or a name like "DEBUG".
        log_file: Optional path; the file is overwritten for each session.
        verbose_libraries: Let Pillow and pyvista log at `level` as well.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown logging level '{level}'.")
        level = resolved

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    # Calling this twice must not print every record twice
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    library_level = level if verbose_libraries else max(level, logging.WARNING)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
