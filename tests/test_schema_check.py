import csv
import io
import json
import sqlite3
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from clanledger.config import AppConfig
from clanledger.init_db import init_db
from clanledger.schema import get_table_spec
from clanledger.schema_check import check_database, check_table, main


class SchemaCheckTests(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.db_path = self.root / "clanledger.db"
        self.out_json = self.root / "out" / "result.json"
        self.out_csv = self.root / "out" / "issues.csv"

    def tearDown(self):
        self.temp_dir.cleanup()

    def _init(self, groups=None):
        init_db(groups=groups, cfg=AppConfig(db_path=self.db_path, enable_wal=False))

    def _main(self, *extra):
        argv = ["--db", str(self.db_path), "--out", str(self.out_json), *extra]
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(argv)
        return code, buf.getvalue()

    def test_fresh_database_passes(self):
        self._init()

        checks = check_database(self.db_path)

        self.assertEqual(len(checks), 22)
        self.assertTrue(all(c.passed for c in checks))

        code, out = self._main()
        self.assertEqual(code, 0)
        self.assertIn("status=PASS", out)
        result = json.loads(self.out_json.read_text())
        self.assertEqual(result["status"], "PASS")
        self.assertEqual(result["tables_failed"], 0)
        self.assertFalse(self.out_csv.exists())

    def test_older_table_fails_with_missing_column(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute("CREATE TABLE D01_Achievements (id INTEGER PRIMARY KEY AUTOINCREMENT, legacy TEXT)")
        conn.commit()
        conn.row_factory = sqlite3.Row
        res = check_table(conn, get_table_spec("D01_Achievements"))
        conn.close()

        self.assertFalse(res.passed)
        self.assertIn("dateLogged", res.missing_columns)
        self.assertIn("idx_D01_Achievements_dateLogged", res.missing_indexes)
        self.assertEqual(res.extra_columns, ["legacy"])
        self.assertIn(("missing_column", "dateLogged"), res.issues())

    def test_column_names_compare_case_insensitively(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            "CREATE TABLE D01_Achievements (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "DateLogged TEXT, achievementName TEXT, achievementInt INTEGER)"
        )
        conn.commit()
        conn.row_factory = sqlite3.Row
        res = check_table(conn, get_table_spec("D01_Achievements"))
        conn.close()

        self.assertEqual(res.missing_columns, [])
        self.assertEqual(res.extra_columns, [])

    def test_main_fail_writes_csv(self):
        self._init(groups=["A"])

        code, out = self._main("--group", "A", "--group", "D", "--csv", str(self.out_csv), "-of")

        self.assertEqual(code, 2)
        self.assertIn("FAIL  D01_Achievements", out)
        self.assertNotIn("PASS  A01_ClanInfo", out)
        result = json.loads(self.out_json.read_text())
        self.assertEqual(result["status"], "FAIL")
        self.assertEqual(result["tables_checked"], 11)
        with self.out_csv.open(newline="") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0], ["table", "issue", "detail"])
        self.assertEqual(rows[1], ["D01_Achievements", "missing_table", "D01_Achievements"])

    def test_type_drift_fails(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute("CREATE TABLE B02_ClanGamesLog (id TEXT PRIMARY KEY)")
        conn.commit()
        conn.close()
        self._init(groups=["B"])

        checks = {c.table: c for c in check_database(self.db_path, [get_table_spec("B02_ClanGamesLog")])}
        res = checks["B02_ClanGamesLog"]

        self.assertEqual(res.missing_columns, [])
        self.assertEqual(res.type_drift, [{"column": "id", "declared": "INTEGER", "live": "TEXT"}])
        self.assertEqual(res.status, "FAIL")

    def test_missing_database_is_error(self):
        code, out = self._main()

        self.assertEqual(code, 1)
        self.assertFalse(self.db_path.exists())
        self.assertIn("ERROR", out)
        self.assertEqual(json.loads(self.out_json.read_text())["status"], "ERROR")

    def test_unknown_group_is_error(self):
        self._init(groups=["D"])
        code, _ = self._main("--group", "Q")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
