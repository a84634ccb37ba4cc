"""``system ntp server <address>`` resource."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from junosconf.junos.session import Session
from junosconf.resources.base import config_exists, read_set_relative


@dataclass(slots=True)
class NtsOptions:
    remote_identity_distinguished_name_container: str | None = None
    remote_identity_distinguished_name_wildcard: str | None = None
    remote_identity_hostname: str | None = None


@dataclass(slots=True)
class SystemNtpServer:
    type_name: ClassVar[str] = "junos_system_ntp_server"

    address: str
    key: int | None = None
    prefer: bool = False
    routing_instance: str | None = None
    version: int | None = None
    nts: NtsOptions | None = None

    @property
    def config_path(self) -> str:
        return f"system ntp server {self.address}"

    def set_lines(self) -> list[str]:
        prefix = f"set {self.config_path} "
        lines = [prefix.rstrip()]

        if self.key is not None:
            lines.append(prefix + f"key {self.key}")
        if self.prefer:
            lines.append(prefix + "prefer")
        if self.routing_instance:
            lines.append(prefix + f"routing-instance {self.routing_instance}")
        if self.version is not None:
            lines.append(prefix + f"version {self.version}")
        if self.nts is not None:
            lines.append(prefix + "nts")
            if value := self.nts.remote_identity_distinguished_name_container:
                lines.append(prefix + f'nts remote-identity distinguished-name container "{value}"')
            if value := self.nts.remote_identity_distinguished_name_wildcard:
                lines.append(prefix + f'nts remote-identity distinguished-name wildcard "{value}"')
            if value := self.nts.remote_identity_hostname:
                lines.append(prefix + f'nts remote-identity hostname "{value}"')

        return lines

    def delete_lines(self) -> list[str]:
        return [f"delete {self.config_path}"]

    @classmethod
    def exists(cls, session: Session, address: str) -> bool:
        return config_exists(session, f"system ntp server {address}")

    @classmethod
    def read(cls, session: Session, address: str) -> "SystemNtpServer | None":
        lines = read_set_relative(session, f"system ntp server {address}")
        if lines is None:
            return None

        data = cls(address=address)
        for item in lines:
            if item.startswith("key "):
                data.key = int(item.removeprefix("key "))
            elif item.startswith("nts"):
                if data.nts is None:
                    data.nts = NtsOptions()
                rest = item.removeprefix("nts").removeprefix(" ")
                if rest.startswith("remote-identity distinguished-name container "):
                    data.nts.remote_identity_distinguished_name_container = rest.split(" ", 3)[3].strip('"')
                elif rest.startswith("remote-identity distinguished-name wildcard "):
                    data.nts.remote_identity_distinguished_name_wildcard = rest.split(" ", 3)[3].strip('"')
                elif rest.startswith("remote-identity hostname "):
                    data.nts.remote_identity_hostname = rest.split(" ", 2)[2].strip('"')
            elif item == "prefer":
                data.prefer = True
            elif item.startswith("routing-instance "):
                data.routing_instance = item.removeprefix("routing-instance ")
            elif item.startswith("version "):
                data.version = int(item.removeprefix("version "))
        return data
