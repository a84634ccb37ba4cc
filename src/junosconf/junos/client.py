"""Provider-level client: configuration in, sessions and transactions out."""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from junosconf.core.models import ClientConfig
from junosconf.core.secrets import resolve_auth
from junosconf.junos.errors import ConnectError
from junosconf.junos.session import Session
from junosconf.junos.transaction import TransactionController
from junosconf.junos.transport import AuthMethod, dial

logger = logging.getLogger(__name__)


class JunosClient:
    """Opens sessions against the device described by ``config``.

    ``read_lock`` is the mutex that serializes whole cycles (open session,
    lock, mutate, commit or clear, unlock, close) against the device's single
    candidate buffer. Callers may share one lock between clients; every
    workflow takes it for the full cycle.
    """

    def __init__(self, config: ClientConfig, read_lock: threading.Lock | None = None) -> None:
        self.config = config
        self.read_lock = read_lock or threading.Lock()
        self._log_extra = {"device": config.host}

    def _dial(self, auth: AuthMethod):
        return dial(
            self.config.host,
            auth,
            port=self.config.port,
            ciphers=self.config.ssh_ciphers,
            timeout=self.config.ssh_timeout_to_establish or None,
        )

    def start_new_session(self) -> Session:
        """Dial the device (retrying connection failures) and open a session."""

        auth = resolve_auth(self.config)
        retrying = Retrying(
            stop=stop_after_attempt(self.config.ssh_retry_to_establish),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(ConnectError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        transport = retrying(self._dial, auth)
        return Session.open(
            transport,
            sleep_short=self.config.sleep_short / 1000,
            sleep_closed=float(self.config.sleep_ssh_closed),
        )

    def transaction(self, session: Session) -> TransactionController:
        return TransactionController(
            session,
            sleep_short=self.config.sleep_short / 1000,
            sleep_lock=float(self.config.sleep_lock),
        )

    def commit_options(self) -> dict[str, object]:
        """Keyword arguments for :meth:`TransactionController.run`."""

        return {
            "lock_timeout": self.config.lock_timeout,
            "confirmed_minutes": self.config.commit_confirmed,
            "wait_percent": self.config.commit_confirmed_wait_percent,
        }

    def apply_config_set(
        self, lines: Iterable[str], log_message: str, lock: threading.Lock | None = None
    ) -> list[str]:
        """Load ``lines`` and commit them in one transaction; returns commit warnings.

        ``lock`` (default :attr:`read_lock`) is held from session open to close.
        """

        lines = list(lines)
        with lock or self.read_lock:
            with self.start_new_session() as session:
                controller = self.transaction(session)
                warnings = controller.run(lambda sess: sess.config_set(lines), log_message, **self.commit_options())
        logger.info("applied lines=%d warnings=%d", len(lines), len(warnings), extra=self._log_extra)
        return warnings
