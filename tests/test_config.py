import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from clanledger.config import DEFAULT_DB_PATH, VERBOSE_MODULES, AppConfig, default_config
from clanledger.logging import Logger, LoggingConfig, format_duration_s


ENV_KEYS = ("CLANLEDGER_DB_PATH", "CLANLEDGER_VERBOSE", "CLANLEDGER_WAL")


class ConfigTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.missing_env = Path(self.temp_dir.name) / "none.env"
        cleared = {k: v for k, v in os.environ.items() if k not in ENV_KEYS}
        patcher = mock.patch.dict(os.environ, cleared, clear=True)
        self.addCleanup(patcher.stop)
        patcher.start()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_defaults(self):
        cfg = default_config(self.missing_env)

        self.assertEqual(cfg.db_path, DEFAULT_DB_PATH)
        self.assertTrue(cfg.enable_wal)
        self.assertEqual(cfg.groups(), ["A", "B", "C", "D"])
        self.assertFalse(cfg.logging.is_verbose("ensure_schema"))

    def test_environment_overrides(self):
        os.environ["CLANLEDGER_DB_PATH"] = "/tmp/x/ledger.db"
        os.environ["CLANLEDGER_VERBOSE"] = "yes"
        os.environ["CLANLEDGER_WAL"] = "0"

        cfg = default_config(self.missing_env)

        self.assertEqual(cfg.db_path, Path("/tmp/x/ledger.db"))
        self.assertFalse(cfg.enable_wal)
        for name in VERBOSE_MODULES:
            self.assertTrue(cfg.logging.is_verbose(name))

    def test_env_file_does_not_override_process_env(self):
        env_file = Path(self.temp_dir.name) / ".env"
        env_file.write_text("CLANLEDGER_DB_PATH=from_file.db\nCLANLEDGER_WAL=false\n")
        os.environ["CLANLEDGER_DB_PATH"] = "from_env.db"

        cfg = default_config(env_file)

        self.assertEqual(cfg.db_path, Path("from_env.db"))
        self.assertFalse(cfg.enable_wal)

    def test_group_switches(self):
        cfg = AppConfig()
        cfg.enabled_groups["C"] = False
        self.assertTrue(cfg.is_group_enabled("a"))
        self.assertFalse(cfg.is_group_enabled("C"))
        self.assertFalse(cfg.is_group_enabled("Z"))
        self.assertEqual(cfg.groups(), ["A", "B", "D"])


class LoggerTests(unittest.TestCase):
    def test_format_duration(self):
        self.assertIsNone(format_duration_s(None))
        self.assertEqual(format_duration_s(0.0424), "42ms")
        self.assertEqual(format_duration_s(2.5), "2.50s")
        self.assertEqual(format_duration_s(12.34), "12.3s")

    def test_disabled_logger_prints_nothing(self):
        logger = Logger(LoggingConfig(enabled=False))
        buf = io.StringIO()
        with redirect_stdout(buf):
            logger.log_info("init_db", "hello")
            logger.log_failure("ensure_schema", "Foo", action="create_table", reason="boom")
        self.assertEqual(buf.getvalue(), "")

    def test_failure_and_verbose_fields(self):
        logger = Logger(LoggingConfig(module_verbosity={"ensure_schema": True}))
        buf = io.StringIO()
        with redirect_stdout(buf):
            logger.log_failure("ensure_schema", "Foo.bar", action="add_column", reason="boom")
            logger.log_table_summary(
                "ensure_schema",
                "Foo",
                columns_declared=3,
                columns_added=1,
                indexes_declared=1,
                indexes_created=0,
                failed=1,
                status="PARTIAL",
                duration_s=0.004,
                verbose_fields={"columns_added": ["bar"], "table_created": False},
            )
        out = buf.getvalue()

        self.assertIn("target: Foo.bar", out)
        self.assertIn("FAILED | action=add_column | reason=boom", out)
        self.assertIn("1/3 columns added | 0/1 indexes created | 1 failed | PARTIAL | 4ms", out)
        self.assertIn("    columns_added:\n      bar\n", out)
        self.assertIn("    table_created=False", out)


if __name__ == "__main__":
    unittest.main()
