"""Decoding of Junos NETCONF replies.

Junos wraps free-text command output and configuration bodies verbatim inside
its reply elements, so only the outer envelope is parsed structurally (with a
recovering lxml parser). Bodies are sliced out of the raw text to keep their
whitespace and quoting byte-for-byte.
"""

from __future__ import annotations

import re

from lxml import etree

from junosconf.junos.constants import (
    EMPTY_OUTPUT,
    SET_LINE_START,
    XML_END_TAG_CONFIG_OUT,
    XML_START_TAG_CONFIG_OUT,
)
from junosconf.junos.errors import DecodeError
from junosconf.junos.models import DeviceFacts, RPCError, RPCReply, Severity

_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_REPLY_OPEN = re.compile(r"<(?:[\w.-]+:)?rpc-reply\b[^>]*?(/?)>")
_REPLY_CLOSE = re.compile(r"</(?:[\w.-]+:)?rpc-reply\s*>")
_FIRST_ELEMENT = re.compile(r"\s*<([\w:.-]+)(?:\s[^>]*?)?(/?)>")
_SELF_CLOSED = re.compile(r"^<[\w:.-]+(?:\s[^>]*?)?/>$")
_EMPTY_PAIR = re.compile(r"^<([\w:.-]+)(?:\s[^>]*?)?>\s*</\1\s*>$")
_RPC_ERROR_BLOCK = re.compile(r"<(?:[\w.-]+:)?rpc-error\b.*?</(?:[\w.-]+:)?rpc-error\s*>", re.S)
_OK = re.compile(r"^<(?:[\w.-]+:)?ok\s*/>$")


def _parser() -> etree.XMLParser:
    return etree.XMLParser(recover=True, huge_tree=True, remove_blank_text=False)


def _localname(element: etree._Element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def _parse_tree(text: str) -> etree._Element | None:
    text = _DECLARATION.sub("", text, count=1)
    if not text.strip():
        return None
    try:
        return etree.fromstring(text.encode("utf-8"), _parser())
    except etree.XMLSyntaxError:
        return None


def _find_text(element: etree._Element, name: str) -> str:
    for child in element.iter():
        if _localname(child) == name:
            return child.text or ""
    return ""


def _rpc_error(element: etree._Element) -> RPCError:
    return RPCError(
        message=_find_text(element, "error-message"),
        severity=Severity.from_text(_find_text(element, "error-severity")),
        error_type=_find_text(element, "error-type").strip(),
        tag=_find_text(element, "error-tag").strip(),
        path=_find_text(element, "error-path"),
        bad_element=_find_text(element, "bad-element"),
    )


def parse_rpc_reply(raw: str) -> RPCReply:
    """Split a raw ``rpc-reply`` into its inner data and rpc-error entries."""

    opening = _REPLY_OPEN.search(raw)
    if opening is None:
        raise DecodeError(f"reply is not an rpc-reply ({len(raw)} bytes)")

    if opening.group(1):
        data = ""
    else:
        closings = list(_REPLY_CLOSE.finditer(raw, opening.end()))
        if not closings:
            raise DecodeError(f"unterminated rpc-reply ({len(raw)} bytes)")
        data = raw[opening.end() : closings[-1].start()]

    root = _parse_tree(raw)
    errors: list[RPCError] = []
    if root is not None:
        errors = [_rpc_error(child) for child in root if _localname(child) == "rpc-error"]

    return RPCReply(raw=raw, data=data, errors=errors)


def is_degenerate(data: str) -> bool:
    """True when ``data`` carries no output: blank, ``<x/>`` or ``<x></x>``."""

    body = data.strip()
    if not body:
        return True
    return bool(_SELF_CLOSED.match(body) or _EMPTY_PAIR.match(body))


def is_ok_reply(data: str) -> bool:
    """True when ``data`` holds nothing but rpc-error elements and one ``<ok/>``."""

    return bool(_OK.match(_RPC_ERROR_BLOCK.sub("", data).strip()))


def inner_content(data: str) -> str:
    """Return the raw inner content of the first top-level element of ``data``."""

    text = _DECLARATION.sub("", data, count=1)
    opening = _FIRST_ELEMENT.match(text)
    if opening is None:
        raise DecodeError(f"reply body has no element ({len(data)} bytes)")
    if opening.group(2):
        return ""

    name = opening.group(1)
    end = text.rfind(f"</{name}")
    if end < opening.end():
        raise DecodeError(f"unterminated <{name}> in reply body ({len(data)} bytes)")
    return text[opening.end() : end]


def parse_system_information(raw: str) -> DeviceFacts:
    """Decode a get-system-information reply into :class:`DeviceFacts`."""

    root = _parse_tree(raw)
    if root is None or _localname(root) != "rpc-reply":
        raise DecodeError(f"unable to decode get-system-information reply ({len(raw)} bytes)")

    info = next((el for el in root.iter() if _localname(el) == "system-information"), None)
    if info is None:
        raise DecodeError(f"get-system-information reply without system-information ({len(raw)} bytes)")

    return DeviceFacts(
        hardware_model=_find_text(info, "hardware-model").strip(),
        os_name=_find_text(info, "os-name").strip(),
        os_version=_find_text(info, "os-version").strip(),
        serial_number=_find_text(info, "serial-number").strip(),
        host_name=_find_text(info, "host-name").strip(),
        cluster_node=any(_localname(el) == "cluster-node" for el in info.iter()),
    )


def parse_commit_results(data: str) -> list[RPCError]:
    """Return the rpc-error entries of a ``commit-results`` document in order."""

    root = _parse_tree(f"<commit-reply>{data}</commit-reply>")
    results = None
    if root is not None:
        results = next((el for el in root.iter() if _localname(el) == "commit-results"), None)
    if results is None:
        raise DecodeError(f"unable to decode commit-results ({len(data)} bytes)")

    return [_rpc_error(el) for el in results.iter() if _localname(el) == "rpc-error"]


def split_set_relative(dump: str) -> list[str] | None:
    """Decode a ``display set relative`` dump into statement lines.

    Returns ``None`` when ``dump`` is the empty-output sentinel, i.e. the
    configuration section does not exist.
    """

    if dump == EMPTY_OUTPUT:
        return None

    lines: list[str] = []
    for item in dump.split("\n"):
        if XML_START_TAG_CONFIG_OUT in item:
            continue
        if XML_END_TAG_CONFIG_OUT in item:
            break
        if not item.strip():
            continue
        lines.append(item.removeprefix(SET_LINE_START))
    return lines
