from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import ColumnSpec, TableSpec, col, numbered, pk


# Every season table is keyed by season and carries the same leading columns.
SEASON_INDEX = ["season", "teamSeason"]


def _season_key() -> List[ColumnSpec]:
    return [pk("season", "TEXT"), col("teamSeason", "INTEGER"), col("clanLevel", "INTEGER")]


CLAN_SEASON_STATS = TableSpec.build(
    "C01_ClanSeasonStats",
    [
        *_season_key(),
        # Overview
        col("estClanXpGain", "INTEGER"),
        col("thClanPoints", "INTEGER"),
        col("bhClanPoints", "INTEGER"),
        col("playerCount", "INTEGER"),
        # Entrance requirements
        col("thLeagueRequirement", "INTEGER"),
        col("bhTrophyRequirement", "INTEGER"),
        col("minThRequirement", "INTEGER"),
        # Players
        col("avgPlayerLvl", "INTEGER"),
        col("avgThLeague", "REAL"),
        col("avgBhTrophies", "REAL"),
        col("avgThLevel", "REAL"),
        col("avgBhLevel", "REAL"),
        col("avgWarStars", "REAL"),
        # Clan wars
        col("warsWon", "INTEGER"),
        col("warsLost", "INTEGER"),
        col("warsTied", "INTEGER"),
        # Clan games
        col("CgTotalPoints", "INTEGER"),
        col("CgActivePlayers", "INTEGER"),
        col("CgMaxPlayers", "INTEGER"),
        col("CgAvgPoints", "REAL"),
        # Clan capital
        col("ccCapitalHallLvl", "INTEGER"),
        col("ccUpgrades", "INTEGER"),
        col("ccTrophies", "INTEGER"),
        col("ccAvgGoldDonated", "REAL"),
    ],
    SEASON_INDEX,
    source="A01_ClanInfo, A02_ClanMembers",
    cadence="monthly, right after CWL signup ends",
    ordering="season",
)


CWL_SEASON_STATS = TableSpec.build(
    "C02_CwlSeasonStats",
    [
        *_season_key(),
        # Overview
        col("cwlLeague", "TEXT"),
        col("cwlPosition", "INTEGER"),
        col("cwlPromotion", "BOOLEAN"),
        col("cwlWarSize", "INTEGER"),
        col("cwlWarsWon", "INTEGER"),
        col("cwlTotalWars", "INTEGER"),
        # Our performance
        col("cwlStarsEarned", "INTEGER"),
        col("cwlStarsMax", "INTEGER"),
        col("cwlStarsPercentage", "REAL"),
        col("cwlDamageEarned", "INTEGER"),
        col("cwlDamageMax", "INTEGER"),
        col("cwlDamagePercentage", "REAL"),
        col("cwlXpEarned", "INTEGER"),
        col("cwlAttacksUsed", "INTEGER"),
        col("cwlAttacksMax", "INTEGER"),
        col("cwlAttacksPercentage", "REAL"),
        col("cwlAvgStarsPerAttack", "REAL"),
        col("cwlAvgTeamThLevel", "REAL"),
        # Opponents
        col("cwlTotalAvgAttacks", "REAL"),
        col("cwlOpponentAttacks", "INTEGER"),
        col("cwlOpponentAttacksMax", "INTEGER"),
        col("cwlOpponentAttacksPercentage", "REAL"),
        col("cwlOpponentAvgStars", "REAL"),
        col("cwlOpponentAvgStarsMax", "INTEGER"),
        col("cwlOpponentAvgStarsPercentage", "REAL"),
        col("cwlTotalAvgStarsPerAttack", "REAL"),
        col("cwlTotalAvgDamage", "REAL"),
        col("cwlTotalAvgDamageMax", "REAL"),
        col("cwlTotalAvgDamagePercentage", "REAL"),
        col("cwlTotalAvgThLevel", "REAL"),
    ],
    SEASON_INDEX,
    source="A03_CWLWarDetails, A04_CWLAttackDetails",
    cadence="monthly, right after CWL ends",
    ordering="season",
)


CLAN_WAR_SEASON_STATS = TableSpec.build(
    "C03_ClanWarSeasonStats",
    [
        *_season_key(),
        # Overview
        col("totalWars", "INTEGER"),
        col("seasonWarsWon", "INTEGER"),
        col("seasonWarsLost", "INTEGER"),
        col("seasonWarsTied", "INTEGER"),
        # Our performance
        col("totalStarsEarned", "INTEGER"),
        col("totalStarsMax", "INTEGER"),
        col("starsPercentage", "REAL"),
        col("totalAttacksUsed", "INTEGER"),
        col("totalAttacksMax", "INTEGER"),
        col("attacksPercentage", "REAL"),
        col("avgStarsPerAttack", "REAL"),
        col("avgNewStarsPerAttack", "REAL"),
        col("avgDamagePercentage", "REAL"),
        col("estXpEarned", "INTEGER"),
        col("avgXpPerWar", "REAL"),
        # Opponents
        col("opponentStarsEarned", "INTEGER"),
        col("opponentStarsMax", "INTEGER"),
        col("opponentStarsPercentage", "REAL"),
        col("opponentAttacksUsed", "INTEGER"),
        col("opponentAttacksMax", "INTEGER"),
        col("opponentAttacksPercentage", "REAL"),
        col("avgOpponentStarsPerAttack", "REAL"),
        # Spelling kept: existing databases already carry this column name.
        col("avgOpponrntNewStarsPerAttack", "REAL"),
        col("avgOpponentDamagePercentage", "REAL"),
    ],
    SEASON_INDEX,
    source="A05_ClanWarLog, A06_ClanWarAttackDetails",
    cadence="monthly, right before CWL signup ends",
    ordering="season",
)


WEEKEND_RAID_SEASON_STATS = TableSpec.build(
    "C04_WeekendRaidSeasonStats",
    [
        *_season_key(),
        # Overview
        col("clanCapitalHallLvl", "INTEGER"),
        col("clanCapitalUpgrades", "INTEGER"),
        col("clanCapitalTrophies", "INTEGER"),
        col("seasonRaidsCompleted", "INTEGER"),
        # Participation
        col("seasonClanMembers", "INTEGER"),
        col("totalPlayers", "INTEGER"),
        col("avgPlayersPerRaid", "REAL"),
        col("totalMaxPlayers", "INTEGER"),
        col("percentagePlayersPerRaid", "REAL"),
        # Raids
        col("trophiesGained", "INTEGER"),
        col("avgTrophiesGained", "REAL"),
        col("goldLootedTotal", "INTEGER"),
        col("goldLootedAvg", "INTEGER"),
        col("goldLootedAvgPerPlayer", "REAL"),
        col("goldLootedAvgPerAttack", "REAL"),
        col("attacksTotal", "INTEGER"),
        col("attacksTotalPerRaid", "REAL"),
        col("attacksAvgPerPlayer", "REAL"),
        col("attacksAvgPerPlayerPercentage", "REAL"),
        col("raidMedalsAttackTotal", "INTEGER"),
        col("raidMedalsDefenseTotal", "INTEGER"),
        col("raidMedalsTotal", "INTEGER"),
        col("raidMedalsAvg", "REAL"),
        # Clans
        col("clansAttackedTotal", "INTEGER"),
        col("clansAttackedAvg", "REAL"),
        col("avgAttacksPerClan", "REAL"),
        col("clansDefendedTotal", "INTEGER"),
        col("clansDefendedAttacks", "INTEGER"),
        col("clansDefendedAttacksAvg", "REAL"),
        # Performance
        col("attackPerformanceRatio", "REAL"),
        col("clansAttackDefenseRatio", "REAL"),
    ],
    SEASON_INDEX,
    source="A07_ClanCapitalLog .. A10_ClanCapitalClanDefenses",
    cadence="monthly, right before CWL signup ends",
    ordering="season",
)


# leagueCount0 = unranked; 1..33 are Skeleton I .. Electro Dragon III in threes;
# 34 = Legend.
TH_LEAGUE_COUNT = 35

TH_LEAGUE_SEASON_STATS = TableSpec.build(
    "C05_ThLeagueSeasonStats",
    [
        *_season_key(),
        col("avgThLeague", "REAL"),
        *numbered("leagueCount{n}", TH_LEAGUE_COUNT, "INTEGER", start=0),
    ],
    SEASON_INDEX + ["avgThLeague"],
    source="A02_ClanMembers",
    cadence="weekly, right before ranked signup ends",
    ordering="season",
)


# (league, divisions high -> low)
BH_LEAGUES = [
    ("Wood", 5),
    ("Clay", 5),
    ("Stone", 5),
    ("Copper", 5),
    ("Brass", 3),
    ("Iron", 3),
    ("Steel", 3),
    ("Titanium", 3),
    ("Platinum", 3),
    ("Emerald", 3),
    ("Ruby", 3),
]

BH_LEAGUE_SEASON_STATS = TableSpec.build(
    "C06_BhLeagueSeasonStats",
    [
        *_season_key(),
        col("avgBhLeague", "REAL"),
        col("leagueCount0", "INTEGER"),
        *[
            col(f"leagueCount{league}{division}", "INTEGER")
            for league, divisions in BH_LEAGUES
            for division in range(divisions, 0, -1)
        ],
        col("leagueCountDiamond", "INTEGER"),
    ],
    SEASON_INDEX + ["avgBhLeague"],
    source="A02_ClanMembers",
    cadence="monthly, right before CWL signup ends",
    ordering="season",
)


MAX_TH_LEVEL = 18
MAX_BH_LEVEL = 10

TH_COUNT_SEASON_STATS = TableSpec.build(
    "C07_ThCountSeasonStats",
    [
        *_season_key(),
        col("avgThLevel", "REAL"),
        *numbered("countTh{n}", MAX_TH_LEVEL, "INTEGER"),
    ],
    SEASON_INDEX + ["avgThLevel"],
    source="A02_ClanMembers",
    cadence="monthly, right before CWL signup ends",
    ordering="season",
)


BH_COUNT_SEASON_STATS = TableSpec.build(
    "C08_BhCountSeasonStats",
    [
        *_season_key(),
        col("avgBhLevel", "REAL"),
        *numbered("countBh{n}", MAX_BH_LEVEL, "INTEGER"),
    ],
    SEASON_INDEX + ["avgBhLevel"],
    source="A02_ClanMembers",
    cadence="monthly, right before CWL signup ends",
    ordering="season",
)


SEASON_STATS_TABLES = [
    CLAN_SEASON_STATS,
    CWL_SEASON_STATS,
    CLAN_WAR_SEASON_STATS,
    WEEKEND_RAID_SEASON_STATS,
    TH_LEAGUE_SEASON_STATS,
    BH_LEAGUE_SEASON_STATS,
    TH_COUNT_SEASON_STATS,
    BH_COUNT_SEASON_STATS,
]


def ensure_season_stats_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    """
    Add the season aggregate tables if missing.
    Safe to call repeatedly.
    """
    return ensure_tables(DbConfig(db_path=db_path), SEASON_STATS_TABLES, logger=logger)
