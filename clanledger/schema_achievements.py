from __future__ import annotations

from pathlib import Path
from typing import Optional

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import TableSpec, autoinc_id, col


ACHIEVEMENTS = TableSpec.build(
    "D01_Achievements",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        col("achievementName", "TEXT"),
        col("achievementInt", "INTEGER"),
    ],
    ["dateLogged", "achievementName"],
    source="A01_ClanInfo",
    cadence="one row whenever a clan achievement is reached",
    ordering="achievement order",
)


ACHIEVEMENT_TABLES = [ACHIEVEMENTS]


def ensure_achievements_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    return ensure_tables(DbConfig(db_path=db_path), ACHIEVEMENT_TABLES, logger=logger)
