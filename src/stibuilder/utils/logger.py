import logging
import os
import sys

import colorlog

from .. import constants

CONSOLE_FORMAT = '[%(levelname).4s] %(name)s: %(message)s'
COLOR_FORMAT = '%(log_color)s[%(levelname).4s]%(reset)s %(cyan)s%(name)s%(reset)s: %(message)s'
FILE_FORMAT = '%(asctime)s [%(levelname).4s] %(name)s: %(message)s'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

# Third-party loggers that flood DEBUG output with transport chatter
NOISY_LOGGERS = ("urllib3", "docker", "git")


def setup_logger(debug: bool = False, module_levels: dict | None = None, log_file: str | None = None):
    """
    Configure the root logger for stibuilder.

    Console output goes to stderr so that build logs streamed to stdout stay
    clean. Calling this again only adjusts levels.

    Args:
        debug: Enable debug logging level
        module_levels: Per-module log levels, e.g. {"bld": "DEBUG"}
        log_file: Optional path of a file receiving every record
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    if not root.handlers:
        root.addHandler(_console_handler())
        if log_file:
            _attach_file_handler(root, log_file)
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _apply_module_levels(module_levels)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    # Respect NO_COLOR (https://no-color.org/)
    if sys.stderr.isatty() and not os.environ.get("NO_COLOR"):
        handler.setFormatter(colorlog.ColoredFormatter(COLOR_FORMAT, log_colors=LOG_COLORS, reset=True))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _attach_file_handler(root: logging.Logger, log_file: str):
    try:
        handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    except OSError as e:
        logging.error(f"Failed to create log file handler for '{log_file}': {e}")
        return
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(handler)
    logging.info(f"Logging to file: {log_file}")


def parse_module_levels(spec: str | None) -> dict:
    """Parse 'name=LEVEL,name2=LEVEL' into a mapping, skipping malformed pairs."""
    levels = {}
    if not spec:
        return levels
    for pair in spec.split(','):
        name, sep, lvl = pair.strip().partition('=')
        if not sep or not name.strip():
            continue
        levels[name.strip()] = lvl.strip().upper()
    return levels


def _apply_module_levels(module_levels: dict | None):
    """
    Apply per-module logger levels, falling back to the STIB_LOG_LEVELS env var.

    Example: STIB_LOG_LEVELS="bld=DEBUG,engine=WARNING"
    """
    if module_levels is None:
        module_levels = parse_module_levels(os.environ.get(constants.LOG_LEVELS_ENV))

    for name, lvl_str in (module_levels or {}).items():
        lvl = logging.getLevelName(lvl_str.upper())
        if not isinstance(lvl, int):
            logging.warning(f"Ignoring unknown log level '{lvl_str}' for '{name}'")
            continue
        logging.getLogger(_normalize_module_name(name)).setLevel(lvl)


def _normalize_module_name(name: str) -> str:
    """
    Expand aliases ('bld'), strip a trailing '.*' and prefix 'stibuilder.' onto
    names that start with a known top-level module.
    """
    if name in constants.LOG_ALIAS_MAP:
        return constants.LOG_ALIAS_MAP[name]
    name = name.removesuffix('.*')
    if name.split('.', 1)[0] in constants.KNOWN_TOP_MODULES:
        return f'stibuilder.{name}'
    return name
