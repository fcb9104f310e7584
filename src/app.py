"""Application entry point for the shopdesk admin console."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import settings

NAME = "shopdesk"


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: Optional[dict] = None) -> None:
    config = settings.LOGGING if config is None else config
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # The console is a full-screen TUI, so stderr logging stays off unless asked for.
    if config.get("console", False):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/shopdesk.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request at INFO; keep it for debugging sessions only.
    if level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _console(route: str) -> None:
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting %s console against %s", NAME, settings.API.base_url)

    from frontend.app import AdminConsoleApp

    AdminConsoleApp(settings.API, settings.LISTS, settings.FORMS, route=route).run()
    logger.info("Console closed")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog=NAME)
    subparsers = parser.add_subparsers(dest="command")

    console = subparsers.add_parser("console", help="Launch the admin console TUI")
    for target in (parser, console):
        target.add_argument(
            "--route",
            default=argparse.SUPPRESS,
            help="Page and query to open, e.g. '/products?search=shoe&page=2'",
        )

    args = parser.parse_args(argv)
    _console(getattr(args, "route", ""))


if __name__ == "__main__":
    main()
