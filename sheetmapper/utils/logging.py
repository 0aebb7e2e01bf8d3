"""Coloured console logging shared by all sheetmapper modules.

A single colorlog handler sits on the 'sheetmapper' package logger; module
loggers are its children and reach it by propagation, so the host application
(or pytest's caplog) still sees every record on the root logger.
"""
from __future__ import annotations

import logging

import colorlog

PACKAGE_LOGGER_NAME = 'sheetmapper'
LOG_FORMAT = '%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'bold_red',
}


def _colored_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(colorlog.ColoredFormatter(LOG_FORMAT, log_colors=LOG_COLORS))
    return handler


_package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
if not _package_logger.handlers:
    _package_logger.addHandler(_colored_handler())
    _package_logger.setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; names outside the package are nested under 'sheetmapper'."""
    if name != PACKAGE_LOGGER_NAME and not name.startswith(f'{PACKAGE_LOGGER_NAME}.'):
        name = f'{PACKAGE_LOGGER_NAME}.{name}'
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """Change the verbosity of every sheetmapper logger at once, e.g. set_log_level('DEBUG')."""
    _package_logger.setLevel(level)
