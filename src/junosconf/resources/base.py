"""Calling contract between resource adapters and the session core.

Adapters build ordered ``set``/``delete`` lines and decode ``display set
relative`` dumps; everything device-facing goes through the workflows below.
Each one holds the caller-owned lock (default ``client.read_lock``) from
session open to session close, holds the candidate lock for mutations and
clears the candidate when anything fails after the lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, ClassVar, Protocol, TypeVar

from junosconf.junos.client import JunosClient
from junosconf.junos.constants import (
    CMD_SHOW_CONFIG,
    EMPTY_OUTPUT,
    PIPE_DISPLAY_SET,
    PIPE_DISPLAY_SET_RELATIVE,
)
from junosconf.junos.errors import JunosError
from junosconf.junos.parser import split_set_relative
from junosconf.junos.session import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceExistsError(JunosError):
    """Raised when creating a resource whose configuration is already present."""


class ResourceData(Protocol):
    type_name: ClassVar[str]

    def set_lines(self) -> list[str]: ...

    def delete_lines(self) -> list[str]: ...


def read_set_relative(session: Session, config_path: str) -> list[str] | None:
    """Statements under ``config_path`` with the ``set`` prefix removed, ``None`` if absent."""

    dump = session.command(CMD_SHOW_CONFIG + config_path + PIPE_DISPLAY_SET_RELATIVE)
    return split_set_relative(dump)


def config_exists(session: Session, config_path: str) -> bool:
    dump = session.command(CMD_SHOW_CONFIG + config_path + PIPE_DISPLAY_SET)
    return dump != EMPTY_OUTPUT


def _mutate(
    client: JunosClient,
    mutate: Callable[[Session], None],
    log_message: str,
    lock: threading.Lock | None,
) -> list[str]:
    with lock or client.read_lock:
        with client.start_new_session() as session:
            controller = client.transaction(session)
            return controller.run(mutate, log_message, **client.commit_options())


def create_resource(
    client: JunosClient,
    data: ResourceData,
    exists: Callable[[Session], bool] | None = None,
    lock: threading.Lock | None = None,
) -> list[str]:
    """Push ``data`` inside a transaction; returns commit warnings."""

    def mutate(session: Session) -> None:
        if exists is not None and exists(session):
            raise ResourceExistsError(f"{data.type_name} already exists")
        session.config_set(data.set_lines())

    return _mutate(client, mutate, f"create resource {data.type_name}", lock)


def update_resource(
    client: JunosClient,
    state: ResourceData,
    plan: ResourceData,
    lock: threading.Lock | None = None,
) -> list[str]:
    """Delete the old statements and push the new ones in a single commit."""

    def mutate(session: Session) -> None:
        session.config_set(state.delete_lines())
        session.config_set(plan.set_lines())

    return _mutate(client, mutate, f"update resource {plan.type_name}", lock)


def delete_resource(client: JunosClient, state: ResourceData, lock: threading.Lock | None = None) -> list[str]:
    return _mutate(
        client,
        lambda session: session.config_set(state.delete_lines()),
        f"delete resource {state.type_name}",
        lock,
    )


def read_resource(client: JunosClient, reader: Callable[[Session], T], lock: threading.Lock | None = None) -> T:
    """Run ``reader`` on a fresh session while holding ``lock`` for the whole cycle.

    ``lock`` defaults to the client's ``read_lock``.
    """

    with lock or client.read_lock:
        with client.start_new_session() as session:
            return reader(session)
