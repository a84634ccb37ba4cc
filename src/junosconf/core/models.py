"""Data models for the client configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from junosconf.junos.constants import NETCONF_PORT


@dataclass(slots=True)
class ClientConfig:
    """Connection and pacing settings for one Junos device.

    Sleep values keep the units of the provider settings they mirror:
    ``sleep_short`` is in milliseconds, the others in seconds.
    ``commit_confirmed`` is in minutes, ``0`` disables confirmed commits.
    """

    host: str
    username: str = "netconf"
    port: int = NETCONF_PORT
    password: str | None = None
    key_pem: str | None = None
    key_file: Path | None = None
    key_pass: str | None = None
    sleep_short: int = 100
    sleep_lock: int = 10
    sleep_ssh_closed: int = 0
    commit_confirmed: int = 0
    commit_confirmed_wait_percent: int = 90
    ssh_ciphers: tuple[str, ...] | None = None
    ssh_timeout_to_establish: int = 0
    ssh_retry_to_establish: int = 1
    lock_timeout: float | None = 300.0
