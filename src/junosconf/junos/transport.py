"""SSH transport and authentication for Junos NETCONF sessions.

ncclient owns the NETCONF 1.0 protocol (hello exchange, framing, message ids).
This module picks exactly one credential, opens the ncclient manager and hands
raw reply text to the session layer. Replies are never raised by ncclient:
rpc-error handling stays with the session and transaction code.

Host keys are not verified: any key presented by the device is accepted.
This keeps lab and internal automation usable against devices whose keys
change on every reimage, at the cost of no protection against an active
man-in-the-middle. Do not point this at untrusted networks.
"""

from __future__ import annotations

import io
import logging
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Union

import paramiko
from lxml import etree
from ncclient import manager
from ncclient.operations import RaiseMode
from ncclient.operations.errors import OperationError
from ncclient.transport.errors import AuthenticationError, TransportError
from ncclient.xml_ import to_ele

from junosconf.junos.constants import DEFAULT_SSH_CIPHERS, NETCONF_PORT, RPC_TIMEOUT
from junosconf.junos.errors import AuthError, CommandError, ConnectError

logger = logging.getLogger(__name__)
rpc_logger = logging.getLogger("junosconf.rpc")

_KEY_CLASSES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)
# the default handler leaves reply text untouched; the junos handler rewrites it
_DEVICE_PARAMS = {"name": "default"}


@dataclass(frozen=True, slots=True)
class PasswordAuth:
    username: str
    password: str


@dataclass(frozen=True, slots=True)
class KeyAuth:
    """Private key material held in memory (PEM / OpenSSH format)."""

    username: str
    private_key: bytes
    passphrase: str | None = None


@dataclass(frozen=True, slots=True)
class KeyFileAuth:
    username: str
    key_file: Path
    passphrase: str | None = None


AuthMethod = Union[PasswordAuth, KeyAuth, KeyFileAuth]


def build_auth_method(
    username: str,
    *,
    password: str | None = None,
    private_key: bytes | str | None = None,
    key_file: str | Path | None = None,
    passphrase: str | None = None,
) -> AuthMethod:
    """Pick exactly one credential form.

    Precedence: in-memory key > key file > password. Forms with lower
    precedence are ignored once a higher one is populated.
    """

    if private_key:
        material = private_key.encode("utf-8") if isinstance(private_key, str) else private_key
        return KeyAuth(username=username, private_key=material, passphrase=passphrase or None)
    if key_file:
        return KeyFileAuth(username=username, key_file=Path(key_file), passphrase=passphrase or None)
    if password:
        return PasswordAuth(username=username, password=password)
    raise AuthError("no credentials available")


def load_private_key(material: str, passphrase: str | None = None) -> paramiko.PKey:
    """Parse ``material`` with every supported key type, decrypting with ``passphrase``."""

    last_error: Exception | None = None
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(material), password=passphrase or None)
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc
    raise AuthError(f"unable to parse private key: {last_error}") from last_error


def resolve_private_key(auth: AuthMethod) -> paramiko.PKey | None:
    """Return the parsed key for key-based auth methods, ``None`` for passwords."""

    if isinstance(auth, KeyAuth):
        return load_private_key(auth.private_key.decode("utf-8", errors="replace"), auth.passphrase)
    if isinstance(auth, KeyFileAuth):
        path = auth.key_file.expanduser()
        try:
            material = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AuthError(f"unable to read ssh key file {path}: {exc}") from exc
        return load_private_key(material, auth.passphrase)
    return None


def negotiated_ciphers(defaults: Iterable[str], extra: Iterable[str] | None = None) -> tuple[str, ...]:
    """Library defaults followed by the allow-list, limited to what paramiko implements."""

    supported = paramiko.Transport._cipher_info
    ordered: list[str] = []
    for name in list(defaults) + list(extra if extra is not None else DEFAULT_SSH_CIPHERS):
        if name in ordered:
            continue
        if name not in supported:
            logger.debug("ssh cipher not available cipher=%s", name)
            continue
        ordered.append(name)
    return tuple(ordered)


def check_cipher_offer(host: str, extra: Iterable[str] | None = None) -> tuple[str, ...]:
    """Return the cipher list for ``host`` and warn about entries paramiko will not offer.

    ncclient builds its own ``paramiko.Transport``, which offers
    ``Transport._preferred_ciphers``; allow-list entries outside that tuple
    cannot be negotiated.
    """

    defaults = paramiko.Transport._preferred_ciphers
    wanted = negotiated_ciphers(defaults, extra)
    absent = [name for name in wanted if name not in defaults]
    if absent:
        logger.warning("ssh ciphers not offered by paramiko: %s", ", ".join(absent), extra={"device": host})
    logger.debug("ssh ciphers offered=%s", ",".join(defaults), extra={"device": host})
    return wanted


class NetconfTransport:
    """Raw-text RPC exchange over one ncclient manager."""

    def __init__(self, host: str, nc_manager: Any) -> None:
        self.host = host
        self.session_id = getattr(nc_manager, "session_id", None)
        self._manager = nc_manager
        self._log_extra = {"device": host}

    def exec_rpc(self, method: str) -> str:
        """Send ``method`` inside an ``<rpc>`` element and return the raw reply."""

        try:
            request = to_ele(method)
        except etree.XMLSyntaxError as exc:
            raise CommandError(f"malformed rpc: {exc}") from exc

        rpc_logger.debug("send %s", method, extra=self._log_extra)
        try:
            reply = self._manager.rpc(request)
        except (TransportError, OperationError) as exc:
            raise ConnectError(self.host, exc) from exc
        raw = reply.xml
        rpc_logger.debug("recv %s", raw, extra=self._log_extra)
        return raw

    def close(self) -> None:
        if not self._manager.connected:
            return
        try:
            self._manager.close_session()
        except (TransportError, OperationError) as exc:
            logger.debug("netconf session already gone: %s", exc, extra=self._log_extra)


@contextmanager
def _key_filename(auth: AuthMethod) -> Iterator[str | None]:
    """Yield a key file path for ncclient; in-memory keys live in a private temp dir."""

    if isinstance(auth, KeyAuth):
        with tempfile.TemporaryDirectory(prefix="junosconf-") as tmp_dir:
            path = Path(tmp_dir) / "id_key"
            path.touch(mode=0o600)
            path.write_bytes(auth.private_key)
            yield str(path)
    elif isinstance(auth, KeyFileAuth):
        yield str(auth.key_file.expanduser())
    else:
        yield None


def dial(
    host: str,
    auth: AuthMethod,
    *,
    port: int = NETCONF_PORT,
    ciphers: Iterable[str] | None = None,
    timeout: float | None = None,
) -> NetconfTransport:
    """Open an authenticated NETCONF transport to ``host``."""

    log_extra = {"device": host}
    try:
        resolve_private_key(auth)
    except AuthError as exc:
        raise AuthError(f"authenticating to {host}: {exc}") from exc
    check_cipher_offer(host, ciphers)

    params: dict[str, Any] = {
        "host": host,
        "port": port,
        "username": auth.username,
        "hostkey_verify": False,
        "allow_agent": False,
        "look_for_keys": False,
        "device_params": _DEVICE_PARAMS,
    }
    if timeout:
        params["timeout"] = timeout

    logger.debug("opening netconf session host=%s port=%s", host, port, extra=log_extra)
    with _key_filename(auth) as key_filename:
        if key_filename is None:
            params["password"] = auth.password
        else:
            # ncclient unlocks key files with ``password``
            params["key_filename"] = key_filename
            params["password"] = auth.passphrase
        try:
            nc_manager = manager.connect(**params)
        except AuthenticationError as exc:
            raise AuthError(f"authentication failed on {host}: {exc}") from exc
        except (TransportError, paramiko.SSHException, OSError) as exc:
            raise ConnectError(host, exc, port=port) from exc

    nc_manager.raise_mode = RaiseMode.NONE
    nc_manager.huge_tree = True
    nc_manager.timeout = RPC_TIMEOUT
    transport = NetconfTransport(host, nc_manager)
    logger.info("netconf ok host=%s port=%s session_id=%s", host, port, transport.session_id, extra=log_extra)
    return transport
