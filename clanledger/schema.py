from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from clanledger.schema_achievements import ACHIEVEMENT_TABLES
from clanledger.schema_capital import CAPITAL_TABLES
from clanledger.schema_clan import CLAN_TABLES
from clanledger.schema_player_logs import PLAYER_LOG_TABLES
from clanledger.schema_season_stats import SEASON_STATS_TABLES
from clanledger.schema_wars import WAR_TABLES
from clanledger.table_spec import TableSpec


# Table name prefixes:
#   A = raw API mirrors
#   B = derived per-player logs
#   C = season-level aggregates
#   D = misc / achievements
GROUP_LABELS: Dict[str, str] = {
    "A": "raw API mirrors",
    "B": "per-player logs",
    "C": "season aggregates",
    "D": "achievements",
}

# Order matters: ensure runs top to bottom.
ALL_TABLE_SPECS: List[TableSpec] = [
    *CLAN_TABLES,
    *WAR_TABLES,
    *CAPITAL_TABLES,
    *PLAYER_LOG_TABLES,
    *SEASON_STATS_TABLES,
    *ACHIEVEMENT_TABLES,
]


def _by_group(specs: Iterable[TableSpec]) -> Dict[str, List[TableSpec]]:
    out: Dict[str, List[TableSpec]] = {g: [] for g in GROUP_LABELS}
    for spec in specs:
        out.setdefault(spec.group, []).append(spec)
    return out


TABLE_GROUPS: Dict[str, List[TableSpec]] = _by_group(ALL_TABLE_SPECS)


def get_table_spec(name: str) -> Optional[TableSpec]:
    for spec in ALL_TABLE_SPECS:
        if spec.name == name:
            return spec
    return None


def specs_for_groups(groups: Optional[Iterable[str]] = None) -> List[TableSpec]:
    """
    Catalog specs restricted to the given prefix letters, in catalog order.
    None means every table.
    """
    if groups is None:
        return list(ALL_TABLE_SPECS)
    wanted = {g.strip().upper() for g in groups if g and g.strip()}
    unknown = wanted - set(GROUP_LABELS)
    if unknown:
        raise ValueError(f"unknown table group(s): {sorted(unknown)}; expected one of {sorted(GROUP_LABELS)}")
    return [s for s in ALL_TABLE_SPECS if s.group in wanted]
