"""Typed values decoded from device replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from junosconf.junos.constants import SEVERITY_WARNING


class Severity(str, Enum):
    """Severity of an rpc-error entry; anything but ``warning`` is fatal."""

    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_text(cls, value: str | None) -> "Severity":
        if (value or "").strip() == SEVERITY_WARNING:
            return cls.WARNING
        return cls.ERROR


@dataclass(frozen=True, slots=True)
class RPCError:
    """One ``rpc-error`` entry of a reply or of a commit-results document."""

    message: str
    severity: Severity = Severity.ERROR
    error_type: str = ""
    tag: str = ""
    path: str = ""
    bad_element: str = ""

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    def commit_text(self) -> str:
        """Render the entry the way commit failures are reported."""

        label = "Warning" if self.is_warning else "Error"
        return f"[{self.path.strip()}]\n    {self.bad_element.strip()}\n{label}: {self.message.strip()}"

    def __str__(self) -> str:
        return self.message.strip()


@dataclass(slots=True)
class RPCReply:
    """A decoded ``rpc-reply``.

    ``data`` is the inner content of the envelope exactly as received.
    """

    raw: str
    data: str
    errors: list[RPCError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [str(error) for error in self.errors]


@dataclass(frozen=True, slots=True)
class DeviceFacts:
    """Device identity captured once when a session opens."""

    hardware_model: str = ""
    os_name: str = ""
    os_version: str = ""
    serial_number: str = ""
    host_name: str = ""
    cluster_node: bool = False

    def supports_security(self) -> bool:
        """Return True for the SRX / vSRX / J-series families."""

        model = self.hardware_model.lower()
        return model.startswith(("srx", "vsrx", "j"))
