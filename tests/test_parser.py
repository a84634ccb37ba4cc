import sys
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from netconf_stub import REPLY_CLOSE, REPLY_OPEN, SYSTEM_INFORMATION_REPLY, config_output, rpc_error, rpc_reply

from junosconf.junos.constants import EMPTY_OUTPUT
from junosconf.junos.errors import DecodeError
from junosconf.junos.models import Severity
from junosconf.junos.parser import (
    inner_content,
    is_degenerate,
    is_ok_reply,
    parse_commit_results,
    parse_rpc_reply,
    parse_system_information,
    split_set_relative,
)


class ParseRpcReplyTests(unittest.TestCase):
    def test_keeps_inner_content_byte_for_byte(self) -> None:
        body = '\n<output>\n  description "uplink  to core" &amp; more\n\t</output>\n'
        reply = parse_rpc_reply(REPLY_OPEN + body + REPLY_CLOSE)

        self.assertEqual(body, reply.data)
        self.assertEqual([], reply.errors)

    def test_collects_errors_in_order(self) -> None:
        raw = rpc_reply(
            "",
            rpc_error("first problem", severity="warning", path="edit system", element="ntp"),
            rpc_error("\nsecond problem\n"),
        )

        reply = parse_rpc_reply(raw)

        self.assertEqual(["first problem", "second problem"], reply.messages)
        first, second = reply.errors
        self.assertIs(Severity.WARNING, first.severity)
        self.assertTrue(first.is_warning)
        self.assertEqual("edit system", first.path)
        self.assertEqual("ntp", first.bad_element)
        self.assertEqual("application", first.error_type)
        self.assertIs(Severity.ERROR, second.severity)
        self.assertEqual("\nsecond problem\n", second.message)

    def test_self_closed_reply_has_empty_data(self) -> None:
        reply = parse_rpc_reply('<?xml version="1.0"?>\n<rpc-reply message-id="7"/>')

        self.assertEqual("", reply.data)

    def test_rejects_non_reply(self) -> None:
        with self.assertRaises(DecodeError):
            parse_rpc_reply("<hello><capabilities/></hello>")


class InnerContentTests(unittest.TestCase):
    def test_returns_raw_inner_content(self) -> None:
        self.assertEqual(
            "\n<configuration-output>\nset disable\n</configuration-output>\n",
            inner_content(config_output("set disable")),
        )

    def test_self_closed_element_is_empty(self) -> None:
        self.assertEqual("", inner_content('\n<output format="text"/>\n'))

    def test_unterminated_element_raises(self) -> None:
        with self.assertRaises(DecodeError):
            inner_content("<output>never closed")

    def test_ok_reply_allows_only_errors_and_ok(self) -> None:
        self.assertTrue(is_ok_reply("\n<ok/>\n"))
        self.assertTrue(is_ok_reply(rpc_error("ignored", severity="warning") + "\n<ok/>\n"))
        self.assertFalse(is_ok_reply("<load-success/>\n<ok/>"))
        self.assertFalse(is_ok_reply(rpc_error("ignored", severity="warning")))

    def test_degenerate_bodies(self) -> None:
        for body in ("", "\n", "  \n ", "<output/>", "\n<output></output>\n"):
            with self.subTest(body=body):
                self.assertTrue(is_degenerate(body))
        self.assertFalse(is_degenerate("<output>text</output>"))


class SplitSetRelativeTests(unittest.TestCase):
    def test_strips_prefix_and_keeps_order(self) -> None:
        lines = ["set disable", "set power-negotiation enable", "set trap-notification disable"]
        dump = inner_content(config_output(*lines))

        self.assertEqual(
            ["disable", "power-negotiation enable", "trap-notification disable"],
            split_set_relative(dump),
        )

    def test_stops_at_close_marker(self) -> None:
        dump = "<configuration-output>\nset a\n</configuration-output>\nset b\n"

        self.assertEqual(["a"], split_set_relative(dump))

    def test_empty_sentinel_differs_from_single_line(self) -> None:
        self.assertIsNone(split_set_relative(EMPTY_OUTPUT))
        self.assertEqual(["disable"], split_set_relative("<configuration-output>\nset disable\n</configuration-output>"))

    def test_lines_without_prefix_are_kept(self) -> None:
        dump = "<configuration-output>\ndeactivate disable\n</configuration-output>"

        self.assertEqual(["deactivate disable"], split_set_relative(dump))


class SystemInformationTests(unittest.TestCase):
    def test_decodes_facts(self) -> None:
        facts = parse_system_information(SYSTEM_INFORMATION_REPLY)

        self.assertEqual("vsrx", facts.hardware_model)
        self.assertEqual("junos", facts.os_name)
        self.assertEqual("21.4R3-S5.4", facts.os_version)
        self.assertEqual("A1B2C3", facts.serial_number)
        self.assertEqual("edge-fw1", facts.host_name)
        self.assertFalse(facts.cluster_node)
        self.assertTrue(facts.supports_security())

    def test_cluster_node_flag(self) -> None:
        raw = rpc_reply(
            "<system-information><hardware-model>srx345</hardware-model>"
            "<cluster-node>primary</cluster-node></system-information>"
        )

        self.assertTrue(parse_system_information(raw).cluster_node)

    def test_decode_error_reports_size_only(self) -> None:
        raw = rpc_reply("<unexpected>" + "x" * 500 + "</unexpected>")

        with self.assertRaises(DecodeError) as ctx:
            parse_system_information(raw)

        self.assertIn(f"{len(raw)} bytes", str(ctx.exception))
        self.assertNotIn("xxxx", str(ctx.exception))


class CommitResultsTests(unittest.TestCase):
    def test_entries_in_document_order(self) -> None:
        data = (
            "\n<commit-results>\n"
            '<routing-engine junos:style="normal">\n<name>re0</name>\n'
            + rpc_error("w1", severity="warning", path="edit system", element="ntp")
            + rpc_error("e1", path="edit interfaces ge-0/0/0", element="mtu")
            + rpc_error("w2", severity="warning")
            + "\n</routing-engine>\n</commit-results>\n"
        )

        entries = parse_commit_results(data)

        self.assertEqual(["w1", "e1", "w2"], [entry.message for entry in entries])
        self.assertEqual(
            "[edit interfaces ge-0/0/0]\n    mtu\nError: e1",
            entries[1].commit_text(),
        )

    def test_missing_document_raises(self) -> None:
        with self.assertRaises(DecodeError):
            parse_commit_results("\n<something-else/>\n")


if __name__ == "__main__":
    unittest.main()
