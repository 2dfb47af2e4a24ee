import logging
import logging.config
import os
import sys
from datetime import datetime

from pytz import timezone

LOGGER_NAME = "code_indexer"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ANSI_RESET = "\033[0m"
_ANSI_COLORS: dict[str, str] = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
}
_LEVEL_PREFIXES: dict[int, str] = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}


class TimezoneFormatter(logging.Formatter):
    """Renders timestamps in a pytz time zone and prefixes warnings and errors with a marker."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, self.tz)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()

    def format(self, record):
        # work on a copy, the same record also reaches the other handler
        record = logging.makeLogRecord(record.__dict__)
        record.msg = _LEVEL_PREFIXES.get(record.levelno, "") + record.getMessage()
        record.args = ()
        return super().format(record)


class ConsoleFormatter(TimezoneFormatter):
    """Adds the ANSI color named by a record's ``color`` attribute, if coloring is enabled."""

    def __init__(self, tz_name: str, *args, use_color: bool = True, **kwargs):
        super().__init__(tz_name, *args, **kwargs)
        self.use_color = use_color

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _ANSI_COLORS.get(getattr(record, "color", None) or "") if self.use_color else None
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Logger facade whose methods take an optional ``color=`` keyword.

    The color only affects the console; the log file stays plain::

        logger.info("Indexing complete for '%s'", collection, color="green")
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        # point caller info (funcName, lineno) at the code that called the facade
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        # setLevel, handlers, isEnabledFor, ...
        return getattr(self._logger, name)


def _log_level() -> int:
    return logging.DEBUG if os.getenv("LOG_LEVEL", "info").lower() == "debug" else logging.INFO


def _log_dir() -> str:
    if os.getenv("LOG_DIR"):
        return os.environ["LOG_DIR"]
    return os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")


def setup_logging() -> ColorLogger:
    """Configure console and file logging and return the indexer's logger.

    Environment:
        LOG_LEVEL: "debug" enables debug output (default "info").
        LOG_DIR:   Directory of indexer.log (default <ROOT_DIR or cwd>/logs).
        LOG_COLOR: "false" disables ANSI colors (default: on when stdout is a terminal).
        TIMEZONE:  pytz zone for timestamps (default Europe/Berlin).
    """
    level = _log_level()
    log_dir = _log_dir()
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    use_color = os.getenv("LOG_COLOR", "true" if sys.stdout.isatty() else "false").lower() == "true"
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "()": TimezoneFormatter,
                "format": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
                "tz_name": tz_name,
            },
            "console": {
                "()": ConsoleFormatter,
                "format": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
                "tz_name": tz_name,
                "use_color": use_color,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "level": level,
                "filename": os.path.join(log_dir, "indexer.log"),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
