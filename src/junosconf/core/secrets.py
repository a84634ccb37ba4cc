"""Credential resolution.

The credential fields of :class:`ClientConfig` are turned into exactly one
:data:`AuthMethod`. Precedence follows the order the fields are checked in:
in-memory PEM key, then key file, then password.
"""

from __future__ import annotations

import logging

from junosconf.core.models import ClientConfig
from junosconf.junos.transport import AuthMethod, KeyAuth, KeyFileAuth, build_auth_method

logger = logging.getLogger(__name__)


def resolve_auth(config: ClientConfig) -> AuthMethod:
    """Return the single auth method configured for ``config.host``.

    Raises :class:`~junosconf.junos.errors.AuthError` when no credential is set.
    """

    auth = build_auth_method(
        config.username,
        password=config.password,
        private_key=config.key_pem,
        key_file=config.key_file.expanduser() if config.key_file else None,
        passphrase=config.key_pass,
    )

    if isinstance(auth, KeyAuth):
        method = "sshkey_pem"
    elif isinstance(auth, KeyFileAuth):
        method = f"sshkeyfile path={auth.key_file}"
    else:
        method = "password"
    logger.debug("ssh auth resolved username=%s method=%s", auth.username, method, extra={"device": config.host})
    return auth
