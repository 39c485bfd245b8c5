# jsi/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from .formatters import DevFormatter, JsonFormatter

__all__ = ["configureLogging"]



def configureLogging(*, devMode: bool | None = None, logFile: str | None = None, level: str | None = None) -> logging.Logger:
    """
    Configures the "jsi" logger hierarchy. Arguments left as None come from settings.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG) when a log file is configured

    Prod:
      - Console at the configured level (WARNING by default)
      - JSON file log with rotation when a log file is configured

    Only the "jsi" logger is touched; the host application's root logger is left alone.
    """
    from jsi.config.settings import loadSettings
    settings = loadSettings()
    if devMode is None:
        devMode = settings.devMode
    if logFile is None:
        logFile = settings.logFile
    levelName = (level or settings.logLevel).upper()
    lvl = logging.DEBUG if devMode else getattr(logging, levelName, logging.WARNING)

    logger = logging.getLogger("jsi")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(lvl)
    logger.propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(lvl)
    consoleHandler.setFormatter(DevFormatter())
    logger.addHandler(consoleHandler)

    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            logFile,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        fileHandler.setLevel(lvl)
        fileHandler.setFormatter(JsonFormatter())
        logger.addHandler(fileHandler)

    return logger
