from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import ColumnSpec, TableSpec, autoinc_id, col


RAID_SEASONS_ENDPOINT = "GET /v1/clans/{clanTag}/capitalraidseasons"


CAPITAL_LOG = TableSpec.build(
    "A07_ClanCapitalLog",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        # Raid identifiers
        col("ccSeason", "TEXT"),
        col("state", "TEXT"),
        col("startTime", "TEXT"),
        col("endTime", "TEXT"),
        # Raid
        col("raidsCompleted", "INTEGER"),
        col("totalAttacks", "INTEGER"),
        col("enemyDistrictsDestroyed", "INTEGER"),
        # Rewards
        col("capitalGoldEarned", "INTEGER"),
        col("raidMedalsOffensive", "INTEGER"),
        col("raidMedalsDefensive", "INTEGER"),
        # Trophies
        col("trophyCount", "INTEGER"),
        col("clanXp", "INTEGER"),
    ],
    ["ccSeason", "state"],
    source=RAID_SEASONS_ENDPOINT,
    cadence="one row per raid weekend",
    ordering="first to last raid",
)


CAPITAL_ATTACKS = TableSpec.build(
    "A08_ClanCapitalAttacks",
    [
        autoinc_id(),
        col("ccSeason", "TEXT"),
        col("dateLogged", "TEXT"),
        # Player
        col("playerTag", "TEXT"),
        col("playerName", "TEXT"),
        # Attacks used
        col("attacksUsed", "INTEGER"),
        col("attackLimit", "INTEGER"),
        col("bonusAttacksGained", "INTEGER"),
        col("attacksUsedScore", "REAL"),
        # Capital gold obtained
        col("capitalGoldLooted", "INTEGER"),
        col("goldObtainedScore", "REAL"),
        # Capital gold donated
        col("mostValuableClanmatePoints", "INTEGER"),
        col("increaseFromPrevious", "INTEGER"),
        col("goldDonationScore", "REAL"),
        col("clanCapitalScore", "REAL"),
    ],
    ["ccSeason", "playerTag", "attacksUsed"],
    source=RAID_SEASONS_ENDPOINT,
    cadence="one row per member per raid weekend",
    ordering="earliest to latest raid > highest resources earned",
)


def _raid_clan_columns() -> List[ColumnSpec]:
    return [
        autoinc_id(),
        col("ccSeason", "TEXT"),
        col("dateLogged", "TEXT"),
        col("playerTag", "TEXT"),
        col("playerName", "TEXT"),
        col("attacksUsed", "INTEGER"),
        col("attackLimit", "INTEGER"),
        col("bonusAttacksGained", "INTEGER"),
        col("capitalGoldLooted", "INTEGER"),
    ]


CAPITAL_CLAN_ATTACKS = TableSpec.build(
    "A09_ClanCapitalClanAttacks",
    _raid_clan_columns(),
    ["ccSeason"],
    source=RAID_SEASONS_ENDPOINT,
    cadence="one row per clan attacked",
    ordering="earliest to latest raid > earliest to finish",
)


CAPITAL_CLAN_DEFENSES = TableSpec.build(
    "A10_ClanCapitalClanDefenses",
    _raid_clan_columns(),
    ["ccSeason"],
    source=RAID_SEASONS_ENDPOINT,
    cadence="one row per clan defended against",
    ordering="earliest to latest raid > highest resources earned",
)


CAPITAL_TABLES = [CAPITAL_LOG, CAPITAL_ATTACKS, CAPITAL_CLAN_ATTACKS, CAPITAL_CLAN_DEFENSES]


def ensure_capital_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    """
    Add the clan capital raid tables if missing.
    Safe to call repeatedly.
    """
    return ensure_tables(DbConfig(db_path=db_path), CAPITAL_TABLES, logger=logger)
