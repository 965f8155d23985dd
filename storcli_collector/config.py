from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import configparser

from storcli_collector.errors import ConfigurationError

DEFAULT_STORCLI_PATH = "/opt/MegaRAID/storcli/storcli64"

STATUS_CHECK_FIRST = "first"
STATUS_CHECK_ALL = "all"
STATUS_CHECKS = (STATUS_CHECK_FIRST, STATUS_CHECK_ALL)

FORMAT_PROMETHEUS = "prometheus"
FORMAT_OPENMETRICS = "openmetrics"
OUTPUT_FORMATS = (FORMAT_PROMETHEUS, FORMAT_OPENMETRICS)


@dataclass(frozen=True)
class StorcliConfig:
    path: str
    dont_failover: bool
    # Which controllers must report "Success" before the run proceeds.
    status_check: str


@dataclass(frozen=True)
class OutputConfig:
    outfile: str | None
    format: str


@dataclass(frozen=True)
class LoggingConfig:
    level: str


@dataclass(frozen=True)
class AppConfig:
    storcli: StorcliConfig
    output: OutputConfig
    logging: LoggingConfig


def _get_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _get_choice(value: str, choices: tuple[str, ...], option: str) -> str:
    value = value.strip().lower()
    if value not in choices:
        raise ConfigurationError(
            f"Invalid value for {option}: {value!r} (expected one of {', '.join(choices)})",
            context={"option": option},
        )
    return value


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from a CFG file, or the defaults when no path is given."""
    parser = configparser.ConfigParser()
    if path is not None:
        try:
            read_files = parser.read(path)
        except configparser.Error as exc:
            raise ConfigurationError(
                f"Config file is not valid: {path}: {exc}", context={"path": str(path)}
            ) from exc
        if not read_files:
            raise ConfigurationError(
                f"Config file not found: {path}", context={"path": str(path)}
            )

    try:
        storcli = StorcliConfig(
            path=parser.get("storcli", "path", fallback=DEFAULT_STORCLI_PATH).strip(),
            dont_failover=parser.getboolean("storcli", "dontfailover", fallback=False),
            status_check=_get_choice(
                parser.get("storcli", "status_check", fallback=STATUS_CHECK_FIRST),
                STATUS_CHECKS,
                "storcli.status_check",
            ),
        )
        output = OutputConfig(
            outfile=_get_optional(parser.get("output", "outfile", fallback=None)),
            format=_get_choice(
                parser.get("output", "format", fallback=FORMAT_PROMETHEUS),
                OUTPUT_FORMATS,
                "output.format",
            ),
        )
    except ValueError as exc:
        # getboolean() on a value like "maybe"
        raise ConfigurationError(f"Invalid config value: {exc}") from exc

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="WARNING").strip(),
    )

    return AppConfig(storcli=storcli, output=output, logging=logging_config)
