import sys
import unittest
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from netconf_stub import SYSTEM_INFORMATION_REPLY, StubTransport, ok_reply

from junosconf.core.models import ClientConfig
from junosconf.junos.client import JunosClient
from junosconf.junos.errors import ConnectError
from junosconf.junos.transport import PasswordAuth


class StartNewSessionTests(unittest.TestCase):
    def test_retries_connection_failures(self) -> None:
        config = ClientConfig(host="edge-fw1", password="secret", ssh_retry_to_establish=2, sleep_short=250)
        transport = StubTransport([SYSTEM_INFORMATION_REPLY])

        with mock.patch("time.sleep"), mock.patch(
            "junosconf.junos.client.dial",
            side_effect=[ConnectError("edge-fw1", "timed out", port=830), transport],
        ) as dial:
            session = JunosClient(config).start_new_session()

        self.assertEqual(2, dial.call_count)
        args, kwargs = dial.call_args
        self.assertEqual(("edge-fw1", PasswordAuth(username="netconf", password="secret")), args)
        self.assertEqual({"port": 830, "ciphers": None, "timeout": None}, kwargs)
        self.assertEqual("vsrx", session.facts.hardware_model)
        self.assertEqual(0.25, session.sleep_short)

    def test_gives_up_after_configured_attempts(self) -> None:
        config = ClientConfig(host="edge-fw1", password="secret")

        with mock.patch("junosconf.junos.client.dial", side_effect=ConnectError("edge-fw1", "refused", port=830)) as dial:
            with self.assertRaises(ConnectError):
                JunosClient(config).start_new_session()

        self.assertEqual(1, dial.call_count)

    def test_apply_config_set(self) -> None:
        config = ClientConfig(host="edge-fw1", password="secret", sleep_short=0)
        transport = StubTransport([SYSTEM_INFORMATION_REPLY] + [ok_reply()] * 5)

        with mock.patch("junosconf.junos.client.dial", return_value=transport), mock.patch("time.sleep"):
            warnings = JunosClient(config).apply_config_set(["set system host-name r1"], "rename")

        self.assertEqual([], warnings)
        self.assertIn("<log>rename</log>", transport.sent[3])
        self.assertTrue(transport.closed)

    def test_apply_config_set_dials_under_read_lock(self) -> None:
        config = ClientConfig(host="edge-fw1", password="secret", sleep_short=0)
        client = JunosClient(config)
        transport = StubTransport([SYSTEM_INFORMATION_REPLY] + [ok_reply()] * 5)
        held = []

        def dial(*args, **kwargs):
            held.append(client.read_lock.locked())
            return transport

        with mock.patch("junosconf.junos.client.dial", side_effect=dial), mock.patch("time.sleep"):
            client.apply_config_set(["set system host-name r1"], "rename")

        self.assertEqual([True], held)
        self.assertFalse(client.read_lock.locked())


if __name__ == "__main__":
    unittest.main()
