import logging
import sys
import tempfile
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

import netconf_stub  # noqa: F401  (puts src/ on sys.path)

from junosconf.core.logging import RPC_LOGGER_NAME, SecretScrubberFilter, setup_logging


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("junosconf", logging.INFO, __file__, 1, msg, args, None)


class SecretScrubberTests(unittest.TestCase):
    def test_scrubs_key_value_secrets(self) -> None:
        record = _record("login user=netconf password=%s keypass=abc", "hunter2")

        SecretScrubberFilter().filter(record)

        self.assertEqual("login user=netconf password=*** keypass=***", record.getMessage())

    def test_scrubs_encrypted_password_in_rpc(self) -> None:
        record = _record(
            "send <configuration-set>set system root-authentication encrypted-password \"$6$abc\"</configuration-set>"
        )

        SecretScrubberFilter().filter(record)

        self.assertIn("encrypted-password ***<", record.getMessage())
        self.assertNotIn("$6$abc", record.getMessage())

    def test_leaves_clean_messages_alone(self) -> None:
        record = _record("commit ok warnings=%d", 0)

        SecretScrubberFilter().filter(record)

        self.assertEqual((0,), record.args)


class SetupLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        rpc_logger = logging.getLogger(RPC_LOGGER_NAME)
        saved = (list(root.handlers), root.level, rpc_logger.propagate)

        def restore() -> None:
            for handler in root.handlers + rpc_logger.handlers:
                handler.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
            rpc_logger.handlers.clear()
            rpc_logger.propagate = saved[2]

        self.addCleanup(restore)

    def test_writes_log_and_rpc_trace(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp = Path(tmp_dir)
            config_path = tmp / "local.yml"
            config_path.write_text(
                "logging:\n"
                f"  directory: {tmp / 'logs'}\n"
                "  filename: test.log\n"
                "  level: DEBUG\n"
                f"  rpc_trace: {tmp / 'logs' / 'rpc.log'}\n",
                encoding="utf-8",
            )

            logger = setup_logging(config_path)
            logging.getLogger(RPC_LOGGER_NAME).debug("send <lock/>", extra={"device": "edge-fw1"})
            for handler in logging.getLogger().handlers + logging.getLogger(RPC_LOGGER_NAME).handlers:
                handler.flush()

            self.assertEqual(logging.DEBUG, logger.level)
            main_log = (tmp / "logs" / "test.log").read_text(encoding="utf-8")
            trace_log = (tmp / "logs" / "rpc.log").read_text(encoding="utf-8")
            self.assertIn("Logging initialized", main_log)
            self.assertIn("device=edge-fw1 | send <lock/>", trace_log)
            self.assertNotIn("send <lock/>", main_log)
            self.assertEqual(logging.WARNING, logging.getLogger("paramiko").level)
            self.assertEqual(logging.WARNING, logging.getLogger("ncclient").level)


if __name__ == "__main__":
    unittest.main()
