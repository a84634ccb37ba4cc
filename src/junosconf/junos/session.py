"""NETCONF session bound to one Junos device."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Protocol
from xml.sax.saxutils import escape

from junosconf.junos.constants import (
    CONFIG_FORMATS,
    EMPTY_OUTPUT,
    LOAD_ACTIONS,
    LOAD_FORMATS,
    RPC_CLOSE_SESSION,
    RPC_COMMAND_TEXT,
    RPC_GET_CONFIGURATION_COMMITTED,
    RPC_GET_SYSTEM_INFORMATION,
    RPC_LOAD_CONFIG_JSON,
    RPC_LOAD_CONFIG_SET,
    RPC_LOAD_CONFIG_TEXT,
    RPC_LOAD_CONFIG_XML,
)
from junosconf.junos.errors import (
    CloseError,
    CommandError,
    ConfigSetError,
    FactsError,
    JunosError,
)
from junosconf.junos.models import DeviceFacts, RPCReply
from junosconf.junos.parser import (
    inner_content,
    is_degenerate,
    parse_rpc_reply,
    parse_system_information,
)

logger = logging.getLogger(__name__)


class RPCTransport(Protocol):
    """What a session needs from its transport."""

    host: str

    def exec_rpc(self, method: str) -> str: ...

    def close(self) -> None: ...


class Session:
    """One management session; owns its transport exclusively.

    Not safe for concurrent use: callers serialize access themselves.
    """

    def __init__(
        self,
        transport: RPCTransport,
        facts: DeviceFacts,
        *,
        sleep_short: float = 0.0,
        sleep_closed: float = 0.0,
    ) -> None:
        self._transport = transport
        self._facts = facts
        self.sleep_short = sleep_short
        self.sleep_closed = sleep_closed
        self.host = getattr(transport, "host", "-")
        self._log_extra = {"device": self.host}

    @classmethod
    def open(cls, transport: RPCTransport, **options: float) -> "Session":
        """Bind ``transport`` to a session and gather device facts.

        The transport is closed when fact gathering fails.
        """

        try:
            facts = cls._gather_facts(transport)
        except JunosError:
            transport.close()
            raise
        session = cls(transport, facts, **options)
        logger.info(
            "session opened model=%s version=%s hostname=%s",
            facts.hardware_model,
            facts.os_version,
            facts.host_name,
            extra=session._log_extra,
        )
        return session

    @staticmethod
    def _gather_facts(transport: RPCTransport) -> DeviceFacts:
        reply = parse_rpc_reply(transport.exec_rpc(RPC_GET_SYSTEM_INFORMATION))
        if reply.errors:
            raise FactsError("\n".join(reply.messages))
        return parse_system_information(reply.raw)

    @property
    def facts(self) -> DeviceFacts:
        return self._facts

    def exec(self, method: str) -> RPCReply:
        """Send one RPC method and decode the reply envelope."""

        logger.debug("executing rpc=%s", method.split(">", 1)[0] + ">", extra=self._log_extra)
        return parse_rpc_reply(self._transport.exec_rpc(method))

    def command(self, text: str) -> str:
        """Run a CLI command in text format and return its output.

        Returns :data:`EMPTY_OUTPUT` when the device answered with nothing.
        """

        reply = self.exec(RPC_COMMAND_TEXT % escape(text))
        if reply.errors:
            raise CommandError(reply.messages[0])
        if is_degenerate(reply.data):
            logger.debug("no output for command='%s'", text, extra=self._log_extra)
            return EMPTY_OUTPUT
        return inner_content(reply.data)

    def command_xml(self, xml_text: str) -> str:
        """Send a caller-built RPC and return the reply body untouched."""

        reply = self.exec(xml_text)
        if reply.errors:
            raise CommandError(reply.messages[0])
        return reply.data

    def load_config_set(self, lines: Iterable[str]) -> str:
        """Load set/delete statements into the candidate configuration.

        Device messages do not raise: all of them are concatenated and
        returned, an empty string meaning a clean load.
        """

        lines = list(lines)
        reply = self.exec(RPC_LOAD_CONFIG_SET % escape("\n".join(lines)))
        message = "".join(error.message for error in reply.errors)
        for error in reply.errors:
            logger.warning("load-configuration message=%s", str(error), extra=self._log_extra)
        logger.debug("configuration set loaded lines=%d", len(lines), extra=self._log_extra)
        return message

    def config_set(self, lines: Iterable[str]) -> None:
        """Like :meth:`load_config_set` but raise on any device message."""

        message = self.load_config_set(lines)
        time.sleep(self.sleep_short)
        if message:
            raise ConfigSetError(message.strip())

    def load_config(self, config: str, action: str = "merge", fmt: str = "text") -> str:
        """Load a whole configuration document; returns device messages, one per line."""

        if action not in LOAD_ACTIONS:
            raise ValueError(f"unsupported load action '{action}'. Allowed: {', '.join(LOAD_ACTIONS)}.")
        if fmt not in LOAD_FORMATS:
            raise ValueError(f"unsupported load format '{fmt}'. Allowed: {', '.join(LOAD_FORMATS)}.")

        if action == "set":
            method = RPC_LOAD_CONFIG_SET % escape(config)
        elif fmt == "json":
            method = RPC_LOAD_CONFIG_JSON % (action, escape(config))
        elif fmt == "text":
            method = RPC_LOAD_CONFIG_TEXT % (action, escape(config))
        else:
            method = RPC_LOAD_CONFIG_XML % (action, config)

        reply = self.exec(method)
        return "".join(error.message + "\n" for error in reply.errors)

    def get_config(self, fmt: str = "text") -> str:
        """Return the committed configuration rendered in ``fmt``."""

        if fmt not in CONFIG_FORMATS:
            raise ValueError(f"unsupported configuration format '{fmt}'. Allowed: {', '.join(CONFIG_FORMATS)}.")

        reply = self.exec(RPC_GET_CONFIGURATION_COMMITTED % fmt)
        if reply.errors:
            raise CommandError(reply.messages[0])

        body = reply.data.removeprefix("\n")
        if fmt == "json-minified" and body.startswith("<configuration"):
            raise CommandError(f"format {fmt} appears unsupported, device responds in xml")
        if fmt == "xml-minified" and body.startswith("<configuration") and ">\n" in body:
            raise CommandError(f"format {fmt} appears unsupported, device responds in xml but not minified")

        if fmt in ("json", "json-minified", "xml", "xml-minified"):
            return body
        return inner_content(reply.data).removeprefix("\n")

    def close(self, drain_delay: float | None = None) -> None:
        """Close the session, then the transport, then wait ``drain_delay`` seconds.

        The transport is closed and the delay observed whether or not the
        close-session RPC succeeds. Call at most once.
        """

        delay = self.sleep_closed if drain_delay is None else drain_delay
        try:
            reply = self.exec(RPC_CLOSE_SESSION)
        except JunosError as exc:
            raise CloseError(f"closing netconf session: {exc}") from exc
        else:
            if reply.errors:
                raise CloseError(f"closing netconf session: {reply.messages[0]}")
        finally:
            try:
                self._transport.close()
            except Exception as exc:
                logger.warning("error closing transport: %s", exc, extra=self._log_extra)
            time.sleep(delay)
            logger.debug("session closed drain_delay=%s", delay, extra=self._log_extra)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            self.close()
        except CloseError as exc:
            if exc_type is None:
                raise
            logger.warning("%s", exc, extra=self._log_extra)
        return False
