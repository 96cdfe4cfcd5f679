import json
import logging
import os
import sys

DEFAULT_LOG_FILE = "/tmp/revolver-sync.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP stack loggers that are only interesting when debugging
_QUIET_LOGGERS = ("urllib3", "requests")


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object on a single line.

    Keys: ts, level, logger, msg, plus exc when the record carries a
    traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _make_formatter(debug_format: str, with_name: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    name_part = " %(name)s" if with_name else ""
    return logging.Formatter(
        f"[%(asctime)s] [%(levelname)s]{name_part} %(message)s",
        datefmt=DATE_FORMAT,
    )


def _resolve_level(mode: str, debug: bool, configured: str | None) -> int:
    if debug:
        return logging.DEBUG
    fallback = "WARNING" if mode == "mcp" else "INFO"
    name = (os.getenv("LOG_LEVEL") or configured or fallback).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Install root handlers for the given entry point.

    Args:
        mode: "mcp" writes to a file only, since stdout belongs to the
            JSON-RPC stream. "cli" writes to stderr.
        debug: Force DEBUG regardless of LOG_LEVEL.
        log_file: In MCP mode, the log file (beats LOG_FILE). In CLI
            mode, an extra file handler next to stderr.
        debug_format: "text" or "json".
        level: Level name from the config file, used when LOG_LEVEL is
            unset.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. MCP mode defaults to
                   WARNING, CLI mode to INFO. Beats the level argument.
        LOG_FILE: MCP log file when log_file is not given.
                  Default: /tmp/revolver-sync.log
    """
    root_level = _resolve_level(mode, debug, level)

    if mode == "mcp":
        logging.basicConfig(
            level=root_level,
            format="[%(asctime)s] [%(levelname)s] %(message)s",
            datefmt=DATE_FORMAT,
            filename=log_file or os.getenv("LOG_FILE", DEFAULT_LOG_FILE),
            filemode="a",
        )
    else:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_make_formatter(debug_format, with_name=False))
        handlers: list[logging.Handler] = [console]

        if log_file:
            to_file = logging.FileHandler(log_file, mode="a")
            to_file.setFormatter(_make_formatter(debug_format, with_name=True))
            handlers.append(to_file)

        logging.basicConfig(level=root_level, handlers=handlers)

    if root_level != logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
