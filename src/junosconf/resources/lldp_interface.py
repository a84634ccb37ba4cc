"""``protocols lldp interface <name>`` resource."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from junosconf.junos.session import Session
from junosconf.resources.base import config_exists, read_set_relative


@dataclass(slots=True)
class PowerNegotiation:
    disable: bool = False
    enable: bool = False


@dataclass(slots=True)
class LldpInterface:
    type_name: ClassVar[str] = "junos_lldp_interface"

    name: str
    disable: bool = False
    enable: bool = False
    trap_notification_disable: bool = False
    trap_notification_enable: bool = False
    power_negotiation: PowerNegotiation | None = None

    @property
    def config_path(self) -> str:
        return f"protocols lldp interface {self.name}"

    def set_lines(self) -> list[str]:
        prefix = f"set {self.config_path} "
        lines = [prefix.rstrip()]

        if self.disable:
            lines.append(prefix + "disable")
        if self.enable:
            lines.append(prefix + "enable")
        if self.trap_notification_disable:
            lines.append(prefix + "trap-notification disable")
        if self.trap_notification_enable:
            lines.append(prefix + "trap-notification enable")
        if self.power_negotiation is not None:
            lines.append(prefix + "power-negotiation")
            if self.power_negotiation.disable:
                lines.append(prefix + "power-negotiation disable")
            if self.power_negotiation.enable:
                lines.append(prefix + "power-negotiation enable")

        return lines

    def delete_lines(self) -> list[str]:
        return [f"delete {self.config_path}"]

    @classmethod
    def exists(cls, session: Session, name: str) -> bool:
        return config_exists(session, f"protocols lldp interface {name}")

    @classmethod
    def read(cls, session: Session, name: str) -> "LldpInterface | None":
        """Read the interface back from the device, ``None`` when it is not configured."""

        lines = read_set_relative(session, f"protocols lldp interface {name}")
        if lines is None:
            return None

        data = cls(name=name)
        for item in lines:
            if item == "disable":
                data.disable = True
            elif item == "enable":
                data.enable = True
            elif item.startswith("power-negotiation"):
                if data.power_negotiation is None:
                    data.power_negotiation = PowerNegotiation()
                rest = item.removeprefix("power-negotiation")
                if rest == " disable":
                    data.power_negotiation.disable = True
                elif rest == " enable":
                    data.power_negotiation.enable = True
            elif item == "trap-notification disable":
                data.trap_notification_disable = True
            elif item == "trap-notification enable":
                data.trap_notification_enable = True
        return data
