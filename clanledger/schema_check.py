#!/usr/bin/env python3
# clanledger/schema_check.py
#
# Conformance check: compare a live database with the table catalog.
# - missing tables / columns / indexes -> FAIL
# - type or primary-key drift on existing columns -> FAIL (never auto-fixed)
# - undeclared extra columns -> informational only
# - Outputs:
#     * JSON results (always)
#     * CSV issues (on FAIL, or if --csv provided)
# - Exit codes:
#     0 PASS
#     2 FAIL
#     1 ERROR
#
# Run:
#   python3 -m clanledger.schema_check --db database/core/clanledger.db

from __future__ import annotations

import argparse
import csv
import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from clanledger.config import default_config
from clanledger.database import index_exists, table_exists, table_info
from clanledger.schema import ALL_TABLE_SPECS, specs_for_groups
from clanledger.table_spec import TableSpec, index_name


TEST_NAME = "schema_check"


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _connect_existing(db_path: Path) -> sqlite3.Connection:
    # Checking must never create the file.
    if not db_path.exists():
        raise FileNotFoundError(f"database file not found: {db_path}")
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


@dataclass
class TableCheck:
    table: str
    exists: bool = True
    missing_columns: List[str] = field(default_factory=list)
    missing_indexes: List[str] = field(default_factory=list)
    type_drift: List[Dict[str, str]] = field(default_factory=list)
    pk_drift: List[Dict[str, Any]] = field(default_factory=list)
    extra_columns: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return (
            self.exists
            and not self.missing_columns
            and not self.missing_indexes
            and not self.type_drift
            and not self.pk_drift
        )

    @property
    def status(self) -> str:
        return "PASS" if self.passed else "FAIL"

    def issues(self) -> List[Tuple[str, str]]:
        """
        (issue, detail) pairs for the CSV / terminal output.
        """
        if not self.exists:
            return [("missing_table", self.table)]
        out: List[Tuple[str, str]] = []
        out.extend(("missing_column", c) for c in self.missing_columns)
        out.extend(("missing_index", i) for i in self.missing_indexes)
        out.extend(
            ("type_drift", f"{d['column']} declared={d['declared']} live={d['live']}")
            for d in self.type_drift
        )
        out.extend(
            ("pk_drift", f"{d['column']} declared={int(d['declared'])} live={int(d['live'])}")
            for d in self.pk_drift
        )
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "status": self.status,
            "exists": self.exists,
            "missing_columns": self.missing_columns,
            "missing_indexes": self.missing_indexes,
            "type_drift": self.type_drift,
            "pk_drift": self.pk_drift,
            "extra_columns": self.extra_columns,
        }


def check_table(conn: sqlite3.Connection, spec: TableSpec) -> TableCheck:
    res = TableCheck(table=spec.name)

    if not table_exists(conn, spec.name):
        res.exists = False
        return res

    # SQLite column names are case-insensitive.
    live = {str(r["name"]).lower(): r for r in table_info(conn, spec.name)}
    declared = {n.lower() for n in spec.column_names}

    for c in spec.columns:
        row = live.get(c.name.lower())
        if row is None:
            res.missing_columns.append(c.name)
            continue
        live_type = str(row["type"] or "").strip().upper()
        if live_type != c.type:
            res.type_drift.append({"column": c.name, "declared": c.type, "live": live_type})
        live_pk = int(row["pk"] or 0) > 0
        if live_pk != c.primary_key:
            res.pk_drift.append({"column": c.name, "declared": c.primary_key, "live": live_pk})

    res.extra_columns = [str(r["name"]) for key, r in live.items() if key not in declared]

    res.missing_indexes = [
        index_name(spec.name, ic)
        for ic in spec.index_columns
        if not index_exists(conn, index_name(spec.name, ic))
    ]
    return res


def check_database(
    db_path: Path, specs: Optional[Iterable[TableSpec]] = None
) -> List[TableCheck]:
    conn = _connect_existing(db_path)
    try:
        return [check_table(conn, s) for s in (specs if specs is not None else ALL_TABLE_SPECS)]
    finally:
        conn.close()


def _make_output_paths(args: argparse.Namespace) -> Tuple[Path, Path]:
    """
    Returns (out_json, out_csv).
    Default location: data/schema_checks/test_results_<stamp>/
    """
    stamp = _utc_stamp()
    run_dir = Path("data") / "schema_checks" / f"test_results_{stamp}"

    out_json = Path(args.out) if args.out.strip() else run_dir / f"{TEST_NAME}_{stamp}.json"
    out_csv = Path(args.csv) if args.csv.strip() else run_dir / f"{TEST_NAME}_issues_{stamp}.csv"
    out_json.parent.mkdir(parents=True, exist_ok=True)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    return out_json, out_csv


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Compare a clanledger database with the table catalog.")
    ap.add_argument("--db", type=str, default="", help="Path to SQLite DB (default: config)")
    ap.add_argument("--group", action="append", help="Only check this prefix group (repeatable)")
    ap.add_argument("--out", type=str, default="", help="Output JSON path (blank = auto)")
    ap.add_argument("--csv", type=str, default="", help="Issues CSV path (blank = auto on FAIL only)")
    ap.add_argument("-of", "--only-failures", action="store_true", help="Only print failing tables")
    args = ap.parse_args(argv)

    db_path = Path(args.db) if args.db.strip() else default_config().db_path
    out_json, out_csv = _make_output_paths(args)

    try:
        specs = specs_for_groups(args.group)
        checks = check_database(db_path, specs)
    except (sqlite3.Error, OSError, ValueError) as e:
        result = {
            "test": TEST_NAME,
            "status": "ERROR",
            "db_path": str(db_path),
            "error": f"{type(e).__name__}:{e}",
        }
        out_json.write_text(json.dumps(result, indent=2))
        print(f"[{TEST_NAME}] ERROR: {e}")
        print(f"[{TEST_NAME}] wrote_json={out_json}")
        return 1

    failing = [c for c in checks if not c.passed]
    status = "PASS" if not failing else "FAIL"

    result: Dict[str, Any] = {
        "test": TEST_NAME,
        "status": status,
        "db_path": str(db_path),
        "tables_checked": len(checks),
        "tables_failed": len(failing),
        "tables": [c.to_dict() for c in checks],
    }
    out_json.write_text(json.dumps(result, indent=2))

    write_csv = (status == "FAIL") or bool(args.csv.strip())
    if write_csv:
        with out_csv.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["table", "issue", "detail"])
            for c in checks:
                for issue, detail in c.issues():
                    w.writerow([c.table, issue, detail])

    for c in checks:
        if args.only_failures and c.passed:
            continue
        print(f"{c.status:<5} {c.table}")
        for issue, detail in c.issues():
            print(f"  {issue}: {detail}")
        if c.extra_columns:
            print(f"  info: {len(c.extra_columns)} undeclared column(s): {', '.join(c.extra_columns)}")

    print(f"[{TEST_NAME}] status={status} tables={len(checks)} failed={len(failing)}")
    print(f"[{TEST_NAME}] wrote_json={out_json}")
    if write_csv:
        print(f"[{TEST_NAME}] wrote_csv={out_csv}")

    return 0 if status == "PASS" else 2


if __name__ == "__main__":
    raise SystemExit(main())
