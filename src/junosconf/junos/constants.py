"""Wire-level constants for the Junos NETCONF dialect."""

from __future__ import annotations

NETCONF_PORT = 830
# ncclient waits this long for each reply; commits on large configurations are slow.
RPC_TIMEOUT = 120

RPC_COMMAND_TEXT = '<command format="text">%s</command>'
RPC_GET_SYSTEM_INFORMATION = "<get-system-information/>"
RPC_LOAD_CONFIG_SET = (
    '<load-configuration action="set" format="text">'
    "<configuration-set>%s</configuration-set>"
    "</load-configuration>"
)
RPC_LOAD_CONFIG_TEXT = (
    '<load-configuration action="%s" format="text">'
    "<configuration-text>%s</configuration-text>"
    "</load-configuration>"
)
RPC_LOAD_CONFIG_XML = '<load-configuration action="%s" format="xml">%s</load-configuration>'
RPC_LOAD_CONFIG_JSON = (
    '<load-configuration action="%s" format="json">'
    "<configuration-json>%s</configuration-json>"
    "</load-configuration>"
)
RPC_GET_CONFIGURATION_COMMITTED = '<get-configuration database="committed" format="%s"/>'
RPC_COMMIT = "<commit-configuration><log>%s</log></commit-configuration>"
RPC_COMMIT_CONFIRMED = (
    "<commit-configuration><confirmed/>"
    "<confirm-timeout>%d</confirm-timeout>"
    "<log>%s</log></commit-configuration>"
)
RPC_COMMIT_CHECK = "<commit-configuration><check/></commit-configuration>"
RPC_LOCK_CANDIDATE = "<lock><target><candidate/></target></lock>"
RPC_UNLOCK_CANDIDATE = "<unlock><target><candidate/></target></unlock>"
RPC_CLEAR_CANDIDATE = "<delete-config><target><candidate/></target></delete-config>"
RPC_CLOSE_SESSION = "<close-session/>"

COMMIT_OK = "\n<ok/>\n"
SEVERITY_WARNING = "warning"

XML_START_TAG_CONFIG_OUT = "<configuration-output>"
XML_END_TAG_CONFIG_OUT = "</configuration-output>"
SET_LINE_START = "set "

# Returned by Session.command in place of real output when the device replied
# with nothing.
EMPTY_OUTPUT = "empty"

CMD_SHOW_CONFIG = "show configuration "
PIPE_DISPLAY_SET = " | display set"
PIPE_DISPLAY_SET_RELATIVE = " | display set relative"

LOAD_ACTIONS = ("merge", "override", "replace", "update", "set")
LOAD_FORMATS = ("text", "xml", "json")
CONFIG_FORMATS = ("text", "set", "xml", "xml-minified", "json", "json-minified")

# Appended after paramiko's own preferences; older Junos releases only offer
# the CBC/CTR entries.
DEFAULT_SSH_CIPHERS = (
    "aes128-gcm@openssh.com",
    "aes256-gcm@openssh.com",
    "chacha20-poly1305@openssh.com",
    "aes128-ctr",
    "aes192-ctr",
    "aes256-ctr",
    "aes128-cbc",
)
