"""Logging setup for junosconf.

The optional ``logging`` section of ``config/local.yml`` chooses the log
directory, file name and level. Records always carry a ``device`` field and
pass through a scrubber that masks credentials before they are written. An
unwritable directory falls back to ``./logs``.

When ``rpc_trace`` is set, raw NETCONF requests and replies logged by the
transport go to that file only, through the ``junosconf.rpc`` logger.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "local.yml"
DEFAULT_DIRECTORY = Path("/var/log/junosconf")
FALLBACK_DIRECTORY = Path("./logs")
DEFAULT_FILENAME = "junosconf.log"
DEFAULT_LEVEL = logging.INFO
RPC_LOGGER_NAME = "junosconf.rpc"

LOG_FORMAT = "%(asctime)s | %(levelname)s | device=%(device)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(slots=True)
class LoggingConfig:
    directory: Path = DEFAULT_DIRECTORY
    filename: str = DEFAULT_FILENAME
    level: int = DEFAULT_LEVEL
    rpc_trace: Path | None = None

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "LoggingConfig":
        config = cls()
        if section.get("directory"):
            config.directory = Path(str(section["directory"])).expanduser()
        if section.get("filename"):
            config.filename = str(section["filename"])
        config.level = _parse_level(section.get("level"))
        if section.get("rpc_trace"):
            config.rpc_trace = Path(str(section["rpc_trace"])).expanduser()
        return config


class DeviceContextFilter(logging.Filter):
    """Default the ``device`` field so the format string never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "device", None):
            record.device = "-"
        return True


class SecretScrubberFilter(logging.Filter):
    """Mask ``key=value`` credentials and Junos ``encrypted-password`` values."""

    KEY_VALUE = re.compile(r"(password|passphrase|keypass|secret|token)=(\S+)", re.IGNORECASE)
    ENCRYPTED_PASSWORD = re.compile(r"(encrypted-password\s+)(\"[^\"]*\"|[^\s<]+)")

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover - malformed record
            return True

        masked = self.KEY_VALUE.sub(r"\1=***", message)
        masked = self.ENCRYPTED_PASSWORD.sub(r"\1***", masked)
        if masked != message:
            record.msg, record.args = masked, ()
        return True


def _parse_level(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return DEFAULT_LEVEL


def _read_section(config_file: Path) -> Mapping[str, Any]:
    """The ``logging`` mapping of ``config_file``; empty when absent or unreadable."""

    try:
        with config_file.open("r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError):
        return {}

    section = document.get("logging") if isinstance(document, Mapping) else None
    return section if isinstance(section, Mapping) else {}


def _first_writable(candidates: Iterable[Path]) -> Path:
    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            marker = candidate / ".write-test"
            marker.touch()
            marker.unlink(missing_ok=True)
        except OSError:
            continue
        return candidate
    raise OSError("Unable to create a writable logging directory.")


def _decorate(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(DeviceContextFilter())
    handler.addFilter(SecretScrubberFilter())
    return handler


def _configure_rpc_trace(trace_path: Path | None) -> None:
    rpc_logger = logging.getLogger(RPC_LOGGER_NAME)
    for handler in list(rpc_logger.handlers):
        rpc_logger.removeHandler(handler)
        handler.close()

    if trace_path is None:
        rpc_logger.setLevel(logging.NOTSET)
        rpc_logger.propagate = True
        return

    trace_path.parent.mkdir(parents=True, exist_ok=True)
    rpc_logger.addHandler(_decorate(logging.FileHandler(trace_path, encoding="utf-8")))
    rpc_logger.setLevel(logging.DEBUG)
    rpc_logger.propagate = False


def setup_logging(config_path: str | Path = "config/local.yml", cli_level: int | None = None) -> logging.Logger:
    """Install the file and stderr handlers on the root logger.

    Parameters
    ----------
    config_path:
        Path to ``local.yml``; relative paths are resolved against the
        project root.
    cli_level:
        Level forced from the command line; overrides ``logging.level``.
    """

    config_file = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not config_file.is_absolute():
        config_file = PROJECT_ROOT / config_file

    config = LoggingConfig.from_mapping(_read_section(config_file))
    if cli_level is not None:
        config.level = cli_level

    log_directory = _first_writable((config.directory, FALLBACK_DIRECTORY))
    log_path = log_directory / config.filename

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(config.level)
    root_logger.addHandler(_decorate(logging.FileHandler(log_path, encoding="utf-8")))
    root_logger.addHandler(_decorate(logging.StreamHandler(sys.stderr)))

    # paramiko logs every packet; ncclient logs every rpc at INFO
    for name in ("paramiko", "ncclient"):
        logging.getLogger(name).setLevel(max(config.level, logging.WARNING))
    _configure_rpc_trace(config.rpc_trace)

    logger = logging.getLogger("junosconf")
    logger.setLevel(config.level)

    if not config_file.exists():
        logger.info("Logging configuration file '%s' not found, using defaults.", config_file)
    if log_directory != config.directory:
        logger.warning(
            "Logging directory '%s' is not writable. Falling back to '%s'.", config.directory, log_directory
        )
    if config.rpc_trace is not None:
        logger.info("NETCONF rpc trace written to %s", config.rpc_trace)
    logger.info("Logging initialized at %s", log_path)
    return logger
