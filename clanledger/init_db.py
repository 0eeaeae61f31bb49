# clanledger/init_db.py
#
# Create / patch the clanledger database so every catalog table exists with at
# least its declared columns and indexes. Safe to run on every start.
#
# Run:
#   python3 -m clanledger.init_db
#   python3 -m clanledger.init_db --db database/core/clanledger.db --group A --group C
#   python3 -m clanledger.init_db --strict        # exit 2 if anything failed
#
# Exit codes:
#   0 done (failures are reported but tolerated unless --strict)
#   2 --strict and at least one schema operation failed
#   1 ERROR (database could not be opened)

from __future__ import annotations

import argparse
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from clanledger.config import AppConfig, default_config
from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.schema import GROUP_LABELS, specs_for_groups


MODULE = "init_db"


def init_db(
    db_path: Optional[Path] = None,
    *,
    groups: Optional[Iterable[str]] = None,
    logger: Optional[Logger] = None,
    cfg: Optional[AppConfig] = None,
) -> SchemaEnsureReport:
    """
    Ensure the catalog tables (optionally only some prefix groups) in db_path.
    The database file is created blank first if it does not exist.
    """
    if cfg is None:
        cfg = default_config()
    if db_path is None:
        db_path = cfg.db_path
    if groups is None:
        groups = cfg.groups()

    specs = specs_for_groups(groups)
    db_cfg = DbConfig(
        db_path=Path(db_path),
        busy_timeout_ms=cfg.busy_timeout_ms,
        enable_wal=cfg.enable_wal,
    )
    report = ensure_tables(db_cfg, specs, logger=logger)

    if logger is not None:
        logger.log_info(MODULE, f"DB ensured: {Path(db_path).resolve()} | {report.summary_line()}")
        if report.failures:
            logger.log_verbose_fields(
                MODULE,
                {"failures": [f"{t}: {o.step} {o.target} -> {o.reason}" for t, o in report.failures]},
            )
    return report


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Create or patch the clanledger database schema.")
    ap.add_argument(
        "--db",
        type=str,
        default="",
        help="Path to the sqlite database file (default: config / CLANLEDGER_DB_PATH).",
    )
    ap.add_argument(
        "--group",
        action="append",
        choices=sorted(GROUP_LABELS),
        help="Only ensure tables of this prefix group (repeatable). Default: all enabled groups.",
    )
    ap.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 2 when any schema operation failed.",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Print per-table details.")
    args = ap.parse_args(argv)

    cfg = default_config()
    if args.verbose:
        cfg.set_verbose(True)
    logger = Logger(cfg.logging)

    db_path = Path(args.db) if args.db.strip() else cfg.db_path

    try:
        report = init_db(db_path, groups=args.group, logger=logger, cfg=cfg)
    except (sqlite3.Error, OSError) as e:
        logger.log_failure(MODULE, str(db_path), action="open_db", reason=f"{type(e).__name__}: {e}")
        return 1

    print(f"[{MODULE}] {report.summary_line()}")
    if args.strict and not report.ok:
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
