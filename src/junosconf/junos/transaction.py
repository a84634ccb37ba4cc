"""Lock / load / commit-or-clear / unlock discipline over a :class:`Session`.

The error policies differ per RPC and must stay that way:

* commit fails fast on the first fatal entry but keeps every warning
  reported before it;
* clear and unlock report only the first device message;
* lock never raises, it answers True or False.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Callable
from xml.sax.saxutils import escape

from junosconf.junos.constants import (
    COMMIT_OK,
    RPC_CLEAR_CANDIDATE,
    RPC_COMMIT,
    RPC_COMMIT_CHECK,
    RPC_COMMIT_CONFIRMED,
    RPC_LOCK_CANDIDATE,
    RPC_UNLOCK_CANDIDATE,
)
from junosconf.junos.errors import (
    ClearError,
    CommitError,
    DecodeError,
    JunosError,
    LockError,
    UnlockError,
)
from junosconf.junos.models import RPCError, RPCReply
from junosconf.junos.parser import is_ok_reply, parse_commit_results
from junosconf.junos.session import Session

logger = logging.getLogger(__name__)


class TransactionState(str, enum.Enum):
    IDLE = "idle"
    LOCKED = "locked"
    COMMITTED = "committed"
    CLEARED = "cleared"


def _collect(entries: list[RPCError], render: Callable[[RPCError], str], warnings: list[str]) -> None:
    """Append warnings in order; raise on the first fatal entry."""

    for entry in entries:
        if not entry.is_warning:
            raise CommitError(render(entry), warnings)
        warnings.append(render(entry))


def read_commit_reply(reply: RPCReply, commit_type: str, warnings: list[str]) -> list[str]:
    """Apply the commit decision tree to ``reply``, extending ``warnings``."""

    _collect(reply.errors, str, warnings)

    if reply.data == COMMIT_OK or is_ok_reply(reply.data):
        return warnings

    try:
        entries = parse_commit_results(reply.data)
    except DecodeError as exc:
        raise DecodeError(f"unmarshaling reply of {commit_type}: {exc}") from exc

    _collect(entries, RPCError.commit_text, warnings)
    return warnings


class TransactionController:
    """Drive one candidate-configuration transaction on a borrowed session.

    The controller never closes the session.
    """

    def __init__(self, session: Session, *, sleep_short: float = 0.0, sleep_lock: float = 10.0) -> None:
        self._session = session
        self.sleep_short = sleep_short
        self.sleep_lock = sleep_lock
        self.state = TransactionState.IDLE
        self._locked = False
        self._log_extra = {"device": session.host}

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> bool:
        """Try once to lock the candidate configuration."""

        try:
            reply = self._session.exec(RPC_LOCK_CANDIDATE)
        except JunosError as exc:
            logger.debug("candidate lock rpc failed: %s", exc, extra=self._log_extra)
            return False
        if reply.errors:
            logger.debug("candidate lock refused: %s", reply.messages[0], extra=self._log_extra)
            return False

        self._locked = True
        self.state = TransactionState.LOCKED
        return True

    def acquire(self, timeout: float | None = None) -> None:
        """Retry :meth:`lock` every ``sleep_lock`` seconds until ``timeout`` elapses."""

        deadline = None if timeout is None else time.monotonic() + timeout
        attempts = 0
        while not self.lock():
            attempts += 1
            logger.info(
                "candidate configuration lock attempt failed attempts=%d", attempts, extra=self._log_extra
            )
            if deadline is not None and time.monotonic() + self.sleep_lock > deadline:
                raise LockError(f"candidate configuration lock not acquired after {attempts} attempt(s)")
            time.sleep(self.sleep_lock)
        logger.debug("candidate configuration locked", extra=self._log_extra)

    def commit(self, log_message: str) -> list[str]:
        """Commit the candidate; returns warnings, raises :class:`CommitError` on a fatal entry."""

        reply = self._session.exec(RPC_COMMIT % escape(log_message))
        warnings = read_commit_reply(reply, "commit-configuration", [])
        time.sleep(self.sleep_short)
        self._committed(warnings)
        return warnings

    def commit_confirmed(self, log_message: str, minutes: int, wait_percent: int = 90) -> list[str]:
        """Commit with automatic rollback after ``minutes``, then confirm it.

        The confirmation (a commit check) is sent after ``wait_percent`` of
        the rollback timer has elapsed.
        """

        warnings: list[str] = []
        reply = self._session.exec(RPC_COMMIT_CONFIRMED % (minutes, escape(log_message)))
        read_commit_reply(reply, "commit-configuration(confirmed)", warnings)

        wait = minutes * 60 * wait_percent / 100
        logger.info("waiting %ss before confirming commit", wait, extra=self._log_extra)
        time.sleep(wait)

        reply = self._session.exec(RPC_COMMIT_CHECK)
        read_commit_reply(reply, "commit-configuration(check)", warnings)
        self._committed(warnings)
        return warnings

    def _committed(self, warnings: list[str]) -> None:
        for warning in warnings:
            logger.warning("commit warning: %s", warning, extra=self._log_extra)
        self.state = TransactionState.COMMITTED
        logger.info("commit ok warnings=%d", len(warnings), extra=self._log_extra)

    def clear(self) -> None:
        """Discard the candidate changes; a no-op when no lock is held."""

        if not self._locked:
            logger.debug("nothing to clear, candidate not locked", extra=self._log_extra)
            return

        try:
            reply = self._session.exec(RPC_CLEAR_CANDIDATE)
        except JunosError as exc:
            raise ClearError(f"config clear: {exc}") from exc
        if reply.errors:
            raise ClearError(f"config clear: {reply.messages[0]}")

        time.sleep(self.sleep_short)
        self.state = TransactionState.CLEARED

    def unlock(self) -> None:
        """Release the candidate lock; a no-op when no lock is held."""

        if not self._locked:
            return

        try:
            reply = self._session.exec(RPC_UNLOCK_CANDIDATE)
        except JunosError as exc:
            raise UnlockError(f"config unlock: {exc}") from exc
        if reply.errors:
            raise UnlockError(f"config unlock: {reply.messages[0]}")

        self._locked = False
        if self.state is TransactionState.LOCKED:
            self.state = TransactionState.IDLE
        time.sleep(self.sleep_short)

    def run(
        self,
        mutate: Callable[[Session], None],
        log_message: str,
        *,
        lock_timeout: float | None = None,
        confirmed_minutes: int = 0,
        wait_percent: int = 90,
    ) -> list[str]:
        """Lock, apply ``mutate``, commit, unlock.

        Any failure after the lock clears the candidate before the original
        exception propagates; a failing clear is logged and attached to it as
        a note. Unlock problems after a successful commit are returned as
        warnings.
        """

        self.acquire(lock_timeout)
        try:
            mutate(self._session)
            if confirmed_minutes > 0:
                warnings = self.commit_confirmed(log_message, confirmed_minutes, wait_percent)
            else:
                warnings = self.commit(log_message)
        except Exception as exc:
            self._cleanup_after_failure(exc)
            raise

        try:
            self.unlock()
        except UnlockError as exc:
            logger.warning("%s", exc, extra=self._log_extra)
            warnings.append(str(exc))
        return warnings

    def _cleanup_after_failure(self, exc: Exception) -> None:
        for step in (self.clear, self.unlock):
            try:
                step()
            except JunosError as cleanup_exc:
                logger.error("%s after failure: %s", cleanup_exc, exc, extra=self._log_extra)
                exc.add_note(str(cleanup_exc))
