from __future__ import annotations

from pathlib import Path
from typing import Optional

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import TableSpec, autoinc_id, col, numbered


# Score columns hold values computed by the scoring jobs; nothing here fills them.

PLAYER_LOG = TableSpec.build(
    "B01_PlayerLog",
    [
        autoinc_id(),
        col("rankedSeason", "TEXT"),
        col("playerTag", "TEXT"),
        # TH league + position
        col("thLevel", "INTEGER"),
        col("leagueInt", "INTEGER"),
        col("thLeagueScore", "REAL"),
        col("trophies", "INTEGER"),
        col("trophiesLeagueScore", "REAL"),
        # War stars
        col("warStars", "INTEGER"),
        col("warStarsScore", "REAL"),
        # Hero levels
        col("lvlHeroBarbarianKing", "INTEGER"),
        col("lvlHeroArcherQueen", "INTEGER"),
        col("lvlHeroMinionPrince", "INTEGER"),
        col("lvlHeroGrandWarden", "INTEGER"),
        col("lvlHeroRoyalChampion", "INTEGER"),
        col("heroLevelsScore", "REAL"),
        # Lab
        col("labUpgrades", "INTEGER"),
        col("labUpgradesThMax", "INTEGER"),
        col("labLevelsScore", "REAL"),
        # Pets
        col("petUpgrades", "INTEGER"),
        col("petUpgradesThMax", "INTEGER"),
        col("petLevelsScore", "REAL"),
        # Equipment
        col("equipmentUpgrades", "INTEGER"),
        col("equipmentUpgradesThMax", "INTEGER"),
        col("equipmentLevelsScore", "REAL"),
        col("playerQualityScore", "REAL"),
    ],
    ["rankedSeason", "playerTag"],
    source="A02_ClanMembers",
    cadence="weekly, before the ranked league ends",
    ordering="rankedSeason > player rank in clan",
)


CLAN_GAMES_LOG = TableSpec.build(
    "B02_ClanGamesLog",
    [
        autoinc_id(),
        col("season", "TEXT"),
        col("playerTag", "TEXT"),
        col("gamesChampionPoints", "INTEGER"),
        col("increaseFromPrevious", "INTEGER"),
        col("clanGamesScore", "REAL"),
    ],
    ["season", "playerTag"],
    source="A02_ClanMembers",
    cadence="once per clan games",
    ordering="season > playerTag",
)


CWL_WARS_PER_SEASON = 7

CWL_PLAYER_LOG = TableSpec.build(
    "B03_CWLPlayerLog",
    [
        autoinc_id(),
        col("season", "TEXT"),
        col("playerTag", "TEXT"),
        col("thLevel", "INTEGER"),
        col("mirrorRule", "BOOLEAN"),
        *numbered("war{n}Stars", CWL_WARS_PER_SEASON, "INTEGER"),
        *numbered("war{n}Percentage", CWL_WARS_PER_SEASON, "INTEGER"),
        *numbered("war{n}AttackScore", CWL_WARS_PER_SEASON, "REAL"),
        *numbered("war{n}OppThLevel", CWL_WARS_PER_SEASON, "INTEGER"),
        *numbered("war{n}OppThLevelModifier", CWL_WARS_PER_SEASON, "REAL"),
        *numbered("war{n}MapPosition", CWL_WARS_PER_SEASON, "INTEGER"),
        *numbered("war{n}OppMapPosition", CWL_WARS_PER_SEASON, "INTEGER"),
        *numbered("war{n}MirrorModifier", CWL_WARS_PER_SEASON, "REAL"),
        *numbered("war{n}Score", CWL_WARS_PER_SEASON, "REAL"),
        # Attacks used
        col("attacksUsed", "INTEGER"),
        col("maxAttacks", "INTEGER"),
        col("attackModifier", "REAL"),
        col("cwlPerformanceScore", "REAL"),
    ],
    ["season", "playerTag"],
    source="A04_CWLAttackDetails",
    cadence="once per CWL",
    ordering="season > highest performing player",
)


PLAYER_LOG_TABLES = [PLAYER_LOG, CLAN_GAMES_LOG, CWL_PLAYER_LOG]


def ensure_player_logs_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    """
    Add the derived per-player log tables if missing.
    Safe to call repeatedly.
    """
    return ensure_tables(DbConfig(db_path=db_path), PLAYER_LOG_TABLES, logger=logger)
