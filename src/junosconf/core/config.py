"""Client configuration loading.

Settings come from the ``junos`` section of ``config/local.yml`` when the file
exists; ``JUNOS_*`` environment variables override individual values. A bad
value in the file is an error, a bad value in the environment is logged and
ignored.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from junosconf.core.models import ClientConfig

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "local.yml"


class ClientConfigError(ValueError):
    """Raised when the client configuration cannot be parsed or validated."""


@dataclass(frozen=True, slots=True)
class _Setting:
    """How one configuration key maps onto :class:`ClientConfig`."""

    attribute: str
    env: str
    parse: Callable[[Any, str], Any]


def _require_string(mapping: Mapping[str, Any], field: str, context: str) -> str:
    value = mapping.get(field)
    if value is None or value == "":
        raise ClientConfigError(f"{context}: missing required field '{field}'.")
    if not isinstance(value, str):
        raise ClientConfigError(f"{context}: field '{field}' must be a string.")
    return value


def _string(value: Any, context: str) -> str:
    if not isinstance(value, str):
        raise ClientConfigError(f"{context} must be a string.")
    return value


def _path(value: Any, context: str) -> Path:
    return Path(_string(value, context)).expanduser()


def _integer(minimum: int, maximum: int | None = None) -> Callable[[Any, str], int]:
    def parse(value: Any, context: str) -> int:
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError as exc:
                raise ClientConfigError(f"{context} must be an integer.") from exc
        if isinstance(value, bool) or not isinstance(value, int):
            raise ClientConfigError(f"{context} must be an integer.")
        if value < minimum or (maximum is not None and value > maximum):
            upper = maximum if maximum is not None else "inf"
            raise ClientConfigError(f"{context} must be between {minimum} and {upper}.")
        return value

    return parse


def _optional_seconds(value: Any, context: str) -> float | None:
    if value is None or (isinstance(value, str) and value.strip().lower() in ("", "none", "null")):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as exc:
            raise ClientConfigError(f"{context} must be a number of seconds.") from exc
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ClientConfigError(f"{context} must be a positive number of seconds.")
    return float(value)


def _ciphers(value: Any, context: str) -> tuple[str, ...] | None:
    if isinstance(value, str):
        value = [item.strip() for item in value.split(",") if item.strip()]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ClientConfigError(f"{context} must be a list of cipher names.")
    return tuple(value) or None


SETTINGS: dict[str, _Setting] = {
    "host": _Setting("host", "JUNOS_HOST", _string),
    "port": _Setting("port", "JUNOS_PORT", _integer(1, 65535)),
    "username": _Setting("username", "JUNOS_USERNAME", _string),
    "password": _Setting("password", "JUNOS_PASSWORD", _string),
    "sshkey_pem": _Setting("key_pem", "JUNOS_KEYPEM", _string),
    "sshkeyfile": _Setting("key_file", "JUNOS_KEYFILE", _path),
    "keypass": _Setting("key_pass", "JUNOS_KEYPASS", _string),
    "cmd_sleep_short": _Setting("sleep_short", "JUNOS_SLEEP_SHORT", _integer(0)),
    "cmd_sleep_lock": _Setting("sleep_lock", "JUNOS_SLEEP_LOCK", _integer(0)),
    "ssh_sleep_closed": _Setting("sleep_ssh_closed", "JUNOS_SLEEP_SSH_CLOSED", _integer(0)),
    "commit_confirmed": _Setting("commit_confirmed", "JUNOS_COMMIT_CONFIRMED", _integer(0, 65535)),
    "commit_confirmed_wait_percent": _Setting(
        "commit_confirmed_wait_percent", "JUNOS_COMMIT_CONFIRMED_WAIT_PERCENT", _integer(0, 99)
    ),
    "ssh_ciphers": _Setting("ssh_ciphers", "JUNOS_SSH_CIPHERS", _ciphers),
    "ssh_timeout_to_establish": _Setting(
        "ssh_timeout_to_establish", "JUNOS_SSH_TIMEOUT_TO_ESTABLISH", _integer(0)
    ),
    "ssh_retry_to_establish": _Setting("ssh_retry_to_establish", "JUNOS_SSH_RETRY_TO_ESTABLISH", _integer(1, 10)),
    "lock_timeout": _Setting("lock_timeout", "JUNOS_LOCK_TIMEOUT", _optional_seconds),
}


def _load_junos_section(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ClientConfigError(f"Unable to read configuration file: {path}") from exc

    if not isinstance(raw_data, Mapping):
        raise ClientConfigError("Top-level local.yml structure must be a mapping.")

    section = raw_data.get("junos", {})
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ClientConfigError("Field 'junos' must be a mapping.")
    return section


def load_client_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    logger: logging.Logger | None = None,
) -> ClientConfig:
    """Build a :class:`ClientConfig` from ``local.yml`` and the environment."""

    logger = logger or logging.getLogger(__name__)
    environ = os.environ if environ is None else environ
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH

    section = _load_junos_section(config_path)
    unknown = sorted(set(section) - set(SETTINGS))
    if unknown:
        raise ClientConfigError(f"junos: unknown field(s) {', '.join(unknown)}.")

    values: dict[str, Any] = {}
    for key, setting in SETTINGS.items():
        if key in section and section[key] is not None:
            values[setting.attribute] = setting.parse(section[key], f"junos.{key}")

        raw_env = environ.get(setting.env)
        if raw_env is None or raw_env == "":
            continue
        try:
            values[setting.attribute] = setting.parse(raw_env, setting.env)
        except ClientConfigError as exc:
            logger.warning("%s, so the variable is not used", exc, extra={"device": "-"})

    _require_string(values, "host", "junos")
    config = ClientConfig(**values)
    logger.debug(
        "client config loaded host=%s port=%s username=%s source=%s",
        config.host,
        config.port,
        config.username,
        config_path if config_path.exists() else "environment",
        extra={"device": config.host},
    )
    return config
