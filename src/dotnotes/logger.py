import json
import logging
import os
import sys

LEVEL_ENV_VAR = "DOTNOTES_LOG_LEVEL"

_DATEFMT = "%Y-%m-%d %H:%M:%S"
_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"


class JsonFormatter(logging.Formatter):
    """Render each record as one line of JSON.

    Keys: ``ts``, ``level``, ``logger`` and ``msg``; ``exc`` holds the
    formatted traceback when the record carries one.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = dict(
            ts=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            msg=record.getMessage(),
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _formatter(debug_format: str, fmt: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    return logging.Formatter(fmt, datefmt=_DATEFMT)


def _resolve_level(debug: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    name = os.getenv(LEVEL_ENV_VAR) or level or "INFO"
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure root logging for dotnotes.

    Records go to stderr so stdout stays free for reports; with
    ``log_file`` they are appended to that file as well.

    Args:
        debug: Force DEBUG regardless of any other level setting.
        log_file: Optional file to append records to.
        debug_format: "text" (default) or "json".
        level: Level name from the config file, used when
            ``DOTNOTES_LOG_LEVEL`` is unset.

    Environment variables:
        DOTNOTES_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. Default: INFO.
    """
    log_level = _resolve_level(debug, level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(debug_format, _TEXT_FORMAT))
    handlers: list[logging.Handler] = [console]

    if log_file:
        to_file = logging.FileHandler(log_file, mode="a")
        to_file.setFormatter(_formatter(debug_format, _FILE_FORMAT))
        handlers.append(to_file)

    logging.basicConfig(level=log_level, handlers=handlers)

    # charset detection is noisy below WARNING
    if log_level != logging.DEBUG:
        logging.getLogger("charset_normalizer").setLevel(logging.WARNING)
