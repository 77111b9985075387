"""
Logging Configuration
Sets up the ``labsim`` logger used by the engines and the CLI.

Engines only log at DEBUG (resets, finished episodes, convergence) and at
WARNING (steps skipped because of an unusable configuration), so the CLI
maps ``--verbose`` to DEBUG and otherwise shows warnings only.
"""
import logging
import sys
from typing import Optional, Union

LOGGER_NAME = "labsim"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def resolve_level(level: Union[int, str, None] = None, verbose: bool = False) -> int:
    """
    Turn a level given as a number or a name ("debug", "WARNING") into a
    logging level. ``verbose`` wins over ``level``; with neither the
    default is WARNING.
    """
    if verbose:
        return logging.DEBUG
    if level is None:
        return logging.WARNING
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        return resolved
    return int(level)


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[str] = None,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configures the logger for the 'labsim' namespace.

    Args:
        level: Logging level as a number or a name (default WARNING).
        log_file: Optional path to also save logs to a file.
        verbose: Shortcut for DEBUG, as passed by the CLI ``--verbose`` flag.
    """
    resolved = resolve_level(level, verbose)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    # Calling twice (e.g. repeated CLI invocations in one process) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s.", logging.getLevelName(resolved))
    return logger
