from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from clanledger.database import DbConfig
from clanledger.ensure_schema import SchemaEnsureReport, ensure_tables
from clanledger.logging import Logger
from clanledger.table_spec import TableSpec, autoinc_id, col, pk


CLAN_INFO = TableSpec.build(
    "A01_ClanInfo",
    [
        autoinc_id(),
        col("dateLogged", "TEXT"),
        col("season", "TEXT"),
        # Clan info
        col("name", "TEXT"),
        col("type", "TEXT"),
        col("description", "TEXT"),
        col("memberCount", "INTEGER"),
        col("clanLevel", "INTEGER"),
        col("clanPoints", "INTEGER"),
        col("clanBbPoints", "INTEGER"),
        col("locationName", "TEXT"),
        col("isFamilyFriendly", "BOOLEAN"),
        col("chatLanguage", "TEXT"),
        # Entrance requirements
        col("requiredTrophies", "INTEGER"),
        col("requiredBbTrophies", "INTEGER"),
        col("requiredThLevel", "INTEGER"),
        # Clan war
        col("warFrequency", "TEXT"),
        col("isWarLogPublic", "BOOLEAN"),
        col("warWinStreak", "INTEGER"),
        col("warWins", "INTEGER"),
        col("warTies", "INTEGER"),
        col("warLosses", "INTEGER"),
        col("CWLLeagueName", "TEXT"),
        # Clan capital
        col("capitalHallLevel", "INTEGER"),
        col("capitalPoints", "INTEGER"),
        # Capital districts
        col("lvlCapitalPeak", "INTEGER"),
        col("lvlBarbarianCamp", "INTEGER"),
        col("lvlWizardValley", "INTEGER"),
        col("lvlBalloonLagoon", "INTEGER"),
        col("lvlBuildersWorkshop", "INTEGER"),
        col("lvlDragonCliffs", "INTEGER"),
        col("lvlGolemQuarry", "INTEGER"),
        col("lvlSkeletonPark", "INTEGER"),
        col("lvlGoblinMines", "INTEGER"),
    ],
    ["season"],
    source="GET /v1/clans/{clanTag}",
    cadence="new row daily",
    ordering="dateLogged ascending",
)


PLAYER_ACHIEVEMENTS = [
    "BiggerCoffers",
    "GetThoseGoblins",
    "BiggerBetter",
    "NiceAndTidy",
    "DiscoverNewTroops",
    "GoldGrab",
    "ElixirEscapade",
    "SweetVictory",
    "EmpireBuilder",
    "WallBuster",
    "Humiliator",
    "UnionBuster",
    "Conqueror",
    "Unbreakable",
    "FriendInNeed",
    "MortarMauler",
    "HeroicHeist",
    "LeagueAllStar",
    "XBowExterminator",
    "Firefighter",
    "WarHero",
    "ClanWarWealth",
    "AntiArtillery",
    "SharingIsCaring",
    "KeepYourAccountSafe",
    "MasterEngineering",
    "NextGenerationModel",
    "UnBuildIt",
    "ChampionBuilder",
    "HighGear",
    "HiddenTreasures",
    "GamesChampion",
    "DragonSlayer",
    "WarLeagueLegend",
    "WellSeasoned",
    "ShatteredAndScattered",
    "NotSoEasyThisTime",
    "BustThis",
    "SuperbWork",
    "SiegeSharer",
    "AggressiveCapitalism",
    "MostValuableClanmate",
    "Counterspell",
    "MonolithMasher",
    "UngratefulChild",
    "Supercharger",
    "MultiArcherTowerTerminator",
    "RicochetCannonCrusher",
    "FirespitterFinisher",
    "MultiGearTowerTrampler",
    "CraftingConnoisseur",
    "CraftersNightmare",
    "LeagueFollower",
]

# (column prefix, unit names) in API order
UNIT_LEVELS: List[Tuple[str, List[str]]] = [
    (
        "lvlTroopElixir",
        [
            "Barbarian",
            "Archer",
            "Giant",
            "Goblin",
            "WallBreaker",
            "Balloon",
            "Wizard",
            "Healer",
            "Dragon",
            "PEKKA",
            "BabyDragon",
            "Miner",
            "ElectroDragon",
            "Yeti",
            "DragonRider",
            "ElectroTitan",
            "RootRider",
            "Thrower",
        ],
    ),
    (
        "lvlTroopDarkElixir",
        [
            "Minion",
            "HogRider",
            "Valkyrie",
            "Golem",
            "Witch",
            "LavaHound",
            "Bowler",
            "IceGolem",
            "Headhunter",
            "ApprenticeWarden",
            "Druid",
            "Furnace",
        ],
    ),
    (
        "lvlSpell",
        [
            "Lightning",
            "Healing",
            "Rage",
            "Jump",
            "Freeze",
            "Clone",
            "Invisibility",
            "Recall",
            "Revive",
        ],
    ),
    (
        "lvlDarkSpell",
        ["Poison", "Earthquake", "Haste", "Skeleton", "Bat", "Overgrowth", "IceBlock"],
    ),
    (
        "lvlTroopBuilderBase",
        [
            "RagedBarbarian",
            "SneakyArcher",
            "BoxerGiant",
            "BetaMinion",
            "Bomber",
            "BabyDragon",
            "CannonCart",
            "NightWitch",
            "DropShip",
            "PowerPekka",
            "HogGlider",
            "ElectrofireWizard",
        ],
    ),
    (
        "lvlSiege",
        [
            "WallWrecker",
            "BattleBlimp",
            "StoneSlammer",
            "SiegeBarracks",
            "LogLauncher",
            "FlameFlinger",
            "BattleDrill",
            "TroopLauncher",
        ],
    ),
    (
        "lvlPet",
        [
            "LASSI",
            "MightyYak",
            "ElectroOwl",
            "Unicorn",
            "Phoenix",
            "PoisonLizard",
            "Diggy",
            "Frosty",
            "SpiritFox",
            "AngryJelly",
            "Sneezy",
        ],
    ),
    (
        "lvlHero",
        [
            "BarbarianKing",
            "ArcherQueen",
            "MinionPrince",
            "GrandWarden",
            "RoyalChampion",
            "BattleMachine",
            "BattleCopter",
        ],
    ),
    (
        "lvlHeroEquipment",
        [
            # Barbarian King
            "BarbarianPuppet",
            "RageVial",
            "EarthquakeBoots",
            "Vampstache",
            "GiantGauntlet",
            "SpikyBall",
            "SnakeBracelet",
            "StickHorse",
            # Archer Queen
            "ArcherPuppet",
            "InvisibilityVial",
            "GiantArrow",
            "HealerPuppet",
            "FrozenArrow",
            "MagicMirror",
            "ActionFigure",
            # Minion Prince
            "HenchmenPuppet",
            "DarkOrb",
            "MetalPants",
            "NobleIron",
            "DarkCrown",
            "MeteorStaff",
            # Grand Warden
            "EternalTome",
            "LifeGem",
            "RageGem",
            "HealingTome",
            "Fireball",
            "LavaloonPuppet",
            "HeroicTorch",
            # Royal Champion
            "RoyalGem",
            "SeekingShield",
            "HogRiderPuppet",
            "HasteVial",
            "RocketSpear",
            "ElectroBoots",
            "FrostFlake",
        ],
    ),
]


CLAN_MEMBERS = TableSpec.build(
    "A02_ClanMembers",
    [
        # Main player info
        pk("playerTag", "TEXT"),
        col("name", "TEXT"),
        col("lastUpdated", "TEXT"),
        col("dateJoin", "TEXT"),
        col("dateLeft", "TEXT"),
        col("lastActive", "TEXT"),
        col("thLevel", "INTEGER"),
        col("bhLevel", "INTEGER"),
        col("xpLevel", "INTEGER"),
        col("trophies", "INTEGER"),
        col("bestTrophies", "INTEGER"),
        col("legendTrophies", "INTEGER"),
        col("bbTrophies", "INTEGER"),
        col("bestBbTrophies", "INTEGER"),
        col("warStars", "INTEGER"),
        col("attackWins", "INTEGER"),
        col("defenseWins", "INTEGER"),
        col("clanRole", "TEXT"),
        col("warPreference", "BOOLEAN"),
        col("donations", "INTEGER"),
        col("donationsReceived", "INTEGER"),
        col("clanCapitalContributions", "INTEGER"),
        col("legacyLeagueName", "TEXT"),
        col("leagueInt", "INTEGER"),
        col("bbLeagueName", "TEXT"),
        *[col(f"achievement{a}", "INTEGER") for a in PLAYER_ACHIEVEMENTS],
        *[col(f"{prefix}{unit}", "INTEGER") for prefix, units in UNIT_LEVELS for unit in units],
    ],
    ["playerTag"],
    source="GET /v1/clans/{clanTag}/members + GET /v1/players/{playerTag}",
    cadence="insert new members, update existing; daily or when member count changes",
    ordering="dateJoin",
)


CLAN_TABLES = [CLAN_INFO, CLAN_MEMBERS]


def ensure_clan_schema(db_path: Path, logger: Optional[Logger] = None) -> SchemaEnsureReport:
    """
    Add the clan info / member roster tables if missing.
    Safe to call repeatedly.
    """
    return ensure_tables(DbConfig(db_path=db_path), CLAN_TABLES, logger=logger)
