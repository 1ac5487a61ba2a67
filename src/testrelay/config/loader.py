#
# config/loader.py
#
"""
Loads the optional TOML configuration file into testrelay config models.
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import attrs
import structlog

from testrelay.config.models import (
    ClientConfig,
    GlobalConfig,
    RetryPolicy,
    RunnerConfig,
    TestRelayConfig,
)
from testrelay.exceptions import ConfigurationError

log = structlog.get_logger("config.loader")

_RETRY_KEYS = ("max_attempts", "initial_delay", "max_delay")


def _table(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Section '[{name}]' must be a table, got {type(value).__name__}.")
    return value


def _reject_unknown(section: str, values: Mapping[str, Any], allowed: tuple[str, ...]) -> None:
    unknown = sorted(set(values) - set(allowed))
    if unknown:
        raise ConfigurationError(f"Unknown key(s) in '[{section}]': {', '.join(unknown)}")


def _retry_policy(section: str, values: Mapping[str, Any], default: RetryPolicy) -> RetryPolicy:
    _reject_unknown(section, values, _RETRY_KEYS)
    return attrs.evolve(default, **values)


def _build_config(data: Mapping[str, Any]) -> TestRelayConfig:
    global_values = _table(data, "global")
    _reject_unknown("global", global_values, ("log_level",))

    client_values = _table(data, "client")
    _reject_unknown("client", client_values, ("server_url", "request_timeout"))

    runner_values = dict(_table(data, "runner"))
    defaults = RunnerConfig()
    build_retry = _retry_policy(
        "runner.build_retry", _table(runner_values, "build_retry"), defaults.build_retry
    )
    run_retry = _retry_policy(
        "runner.run_retry", _table(runner_values, "run_retry"), defaults.run_retry
    )
    runner_values.pop("build_retry", None)
    runner_values.pop("run_retry", None)
    _reject_unknown("runner", runner_values, ("build_settle_delay", "support_contact"))

    return TestRelayConfig(
        client=ClientConfig(**client_values),
        runner=RunnerConfig(build_retry=build_retry, run_retry=run_retry, **runner_values),
        global_config=GlobalConfig(**global_values),
    )


def load_config(config_path: Path | None = None) -> TestRelayConfig:
    """
    Loads configuration from a TOML file, or returns defaults when no path is given.

    Raises:
        ConfigurationError: If the file cannot be read, parsed, or validated.
    """
    if config_path is None:
        log.debug("No config file given, using defaults")
        return TestRelayConfig()

    load_log = log.bind(config_path=str(config_path))
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        load_log.error("Failed to read config file", error=str(e))
        raise ConfigurationError(f"Cannot read config file '{config_path}': {e}") from e
    except tomllib.TOMLDecodeError as e:
        load_log.error("Invalid TOML in config file", error=str(e))
        raise ConfigurationError(f"Invalid TOML in '{config_path}': {e}") from e

    try:
        config = _build_config(data)
    except (TypeError, ValueError) as e:
        load_log.error("Invalid configuration values", error=str(e))
        raise ConfigurationError(f"Invalid configuration in '{config_path}': {e}") from e

    load_log.debug("Configuration loaded", server_url=config.client.server_url)
    return config


# 🔼⚙️
