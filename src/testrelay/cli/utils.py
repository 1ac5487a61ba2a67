# src/testrelay/cli/utils.py

import logging
from typing import Any

import click
import structlog
from attrs import define
from rich.console import Console

from testrelay.telemetry.logger import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)


def print_error(message: str) -> None:
    """Prints a red message on stderr; empty messages print nothing."""
    if message:
        Console(stderr=True, highlight=False).print(message, style="red", markup=False, soft_wrap=True)


def logging_options(f):
    """Adds --log-level, --log-file and --json-logs; accepted on the group and on each command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="TESTRELAY_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="TESTRELAY_LOG_FILE",
        help="Also write JSON logs to this file.",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="TESTRELAY_JSON_LOGS",
        help="Render console logs as JSON.",
    )(f)
    return f


@define(frozen=True, slots=True)
class LogSettings:
    """Logging settings after the command line, environment and config file are merged."""

    level: str
    log_file: str | None
    json_logs: bool

    @property
    def numeric_level(self) -> int:
        return logging.getLevelName(self.level.upper())

    @classmethod
    def resolve(
        cls,
        config_log_level: str,
        *option_sources: dict[str, Any],
    ) -> "LogSettings":
        """
        Merges option sources, most specific first, over the config file's level.

        Each source is a mapping of click parameters (a command's, then its
        group's). The first source that sets a level or a file wins; JSON
        output is on if any source asks for it.
        """
        level = next((s["log_level"] for s in option_sources if s.get("log_level")), config_log_level)
        log_file = next((s["log_file"] for s in option_sources if s.get("log_file")), None)
        json_logs = any(s.get("json_logs") for s in option_sources)
        return cls(level=level, log_file=log_file, json_logs=json_logs)


def configure_command_logging(ctx: click.Context, config_log_level: str) -> LogSettings:
    """Sets up logging once for the running command."""
    sources = [ctx.params]
    if ctx.find_root() is not ctx:
        sources.append(ctx.find_root().params)
    settings = LogSettings.resolve(config_log_level, *sources)

    core_setup_logging(
        level=settings.numeric_level,
        json_logs=settings.json_logs,
        log_file=settings.log_file,
    )
    log.debug(
        "CLI logging initialized",
        level=settings.level,
        file=settings.log_file or "console",
        json=settings.json_logs,
    )
    return settings

# ⚙️🛠️
