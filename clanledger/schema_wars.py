from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import ColumnSpec, TableSpec, autoinc_id, col


# A04.warTag -> A03.warTag is a convention only; no FOREIGN KEY is declared.

CWL_WAR_DETAILS = TableSpec.build(
    "A03_CWLWarDetails",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        # CWL season
        col("season", "TEXT"),
        col("seasonWarState", "TEXT"),
        col("teamSize", "INTEGER"),
        # War
        col("warNum", "INTEGER"),
        col("warTag", "TEXT"),
        col("warState", "TEXT"),
        col("prepStartTime", "TEXT"),
        col("startTime", "TEXT"),
        col("endTime", "TEXT"),
        # Clans
        col("clanTag", "TEXT"),
        col("clanName", "TEXT"),
        col("clanLevel", "INTEGER"),
        col("clanAttacks", "INTEGER"),
        col("clanStars", "INTEGER"),
        col("clanDestructionPercent", "REAL"),
        col("opponentTag", "TEXT"),
        col("opponentName", "TEXT"),
        col("opponentLevel", "INTEGER"),
        col("opponentAttacks", "INTEGER"),
        col("opponentStars", "INTEGER"),
        col("opponentDestructionPercent", "REAL"),
        col("winningClanTag", "TEXT"),
    ],
    ["season", "seasonWarState"],
    source="GET /v1/clans/{clanTag}/currentwar/leaguegroup + GET /v1/clanwarleagues/wars/{warTag}",
    cadence="one row per war (4 per day, 28 per CWL)",
    ordering="season > warNum > warTag",
)


CWL_ATTACK_DETAILS = TableSpec.build(
    "A04_CWLAttackDetails",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        col("season", "TEXT"),
        col("warTag", "TEXT"),
        col("clanTag", "TEXT"),
        col("opponentTag", "TEXT"),
        # Attacker
        col("attackerTag", "TEXT"),
        col("attackerName", "TEXT"),
        col("attackerThLevel", "INTEGER"),
        col("attackerMapPosition", "INTEGER"),
        # Defender
        col("defenderTag", "TEXT"),
        col("defenderName", "TEXT"),
        col("defenderThLevel", "INTEGER"),
        col("defenderMapPosition", "INTEGER"),
        # Attack
        col("stars", "INTEGER"),
        col("destructionPercentage", "INTEGER"),
        col("attackOrder", "INTEGER"),
        col("duration", "INTEGER"),
    ],
    ["season", "warTag", "clanTag", "opponentTag", "attackerTag"],
    source="A03_CWLWarDetails warTags + GET /v1/clanwarleagues/wars/{warTag}",
    cadence="every attack of every CWL war",
    ordering="warTag > attacker map position (team 1 then team 2)",
)


CLAN_WAR_LOG = TableSpec.build(
    "A05_ClanWarLog",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        col("cwSeason", "TEXT"),
        # War
        col("result", "TEXT"),
        col("teamsize", "INTEGER"),
        col("attacksPerMember", "INTEGER"),
        col("battleModifier", "TEXT"),
        col("endTime", "TEXT"),
        # Our clan
        col("clanTag", "TEXT"),
        col("clanName", "TEXT"),
        col("clanLevel", "INTEGER"),
        col("clanAttacks", "INTEGER"),
        col("clanStars", "INTEGER"),
        col("clanDestructionPercent", "REAL"),
        col("clanXPGained", "INTEGER"),
        # Opponent
        col("opponentTag", "TEXT"),
        col("opponentName", "TEXT"),
        col("opponentLevel", "INTEGER"),
        col("opponentStars", "INTEGER"),
        col("opponentDestructionPercent", "REAL"),
    ],
    ["cwSeason", "result"],
    source="GET /v1/clans/{clanTag}/warlog",
    cadence="one row per finished war",
    ordering="first to last war",
)


def _war_attack_columns(n: int) -> List[ColumnSpec]:
    return [
        col(f"defender{n}Tag", "TEXT"),
        col(f"defender{n}Name", "TEXT"),
        col(f"defender{n}ThLevel", "INTEGER"),
        col(f"defender{n}MapPosition", "INTEGER"),
        col(f"attack{n}Stars", "INTEGER"),
        col(f"attack{n}DestructionPercentage", "INTEGER"),
        col(f"attack{n}Order", "INTEGER"),
        col(f"attack{n}Duration", "INTEGER"),
        col(f"attack{n}Score", "REAL"),
        col(f"attack{n}ThModifier", "REAL"),
    ]


CLAN_WAR_ATTACK_DETAILS = TableSpec.build(
    "A06_ClanWarAttackDetails",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        col("cwSeason", "TEXT"),
        # Attacker
        col("attackerTag", "TEXT"),
        col("attackerName", "TEXT"),
        col("attackerThLevel", "INTEGER"),
        col("attackerMapPosition", "INTEGER"),
        *_war_attack_columns(1),
        *_war_attack_columns(2),
        # Best defense
        col("defenseAttackerTag", "TEXT"),
        col("defenseStars", "INTEGER"),
        col("defenseDestructionPercentage", "INTEGER"),
        col("defenseOrder", "INTEGER"),
        col("defenseDuration", "INTEGER"),
        # Scores (precomputed elsewhere)
        col("attacksUsed", "REAL"),
        col("totalWarScore", "REAL"),
    ],
    ["dateLogged", "cwSeason", "attackerTag"],
    source="GET /v1/clans/{clanTag}/currentwar",
    cadence="one row per member per regular war (CWL excluded)",
    ordering="first to last war > attacker map position",
)


WAR_TABLES = [CWL_WAR_DETAILS, CWL_ATTACK_DETAILS, CLAN_WAR_LOG, CLAN_WAR_ATTACK_DETAILS]


def ensure_wars_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    """
    Add the CWL / clan war tables if missing.
    Safe to call repeatedly.
    """
    return ensure_tables(DbConfig(db_path=db_path), WAR_TABLES, logger=logger)
