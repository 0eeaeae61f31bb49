from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from clanledger.logging import LoggingConfig


DEFAULT_DB_PATH = Path("database") / "core" / "clanledger.db"

# Names of the logger modules that accept verbose output.
VERBOSE_MODULES = ("ensure_schema", "init_db", "schema_check")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    """
    Central configuration for clanledger.
    Code-defined defaults, overridable from the environment / a .env file.
    """

    # Database
    db_path: Path = DEFAULT_DB_PATH
    busy_timeout_ms: int = 5000
    enable_wal: bool = True

    # Logging
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Table groups (by name prefix letter) ensured by init_db
    enabled_groups: Dict[str, bool] = field(
        default_factory=lambda: {
            # Raw API mirrors
            "A": True,
            # Derived per-player logs
            "B": True,
            # Season aggregates
            "C": True,
            # Achievements / misc
            "D": True,
        }
    )

    def is_group_enabled(self, group: str) -> bool:
        return self.enabled_groups.get(group.upper(), False)

    def groups(self) -> List[str]:
        return [g for g, on in self.enabled_groups.items() if on]

    def set_verbose(self, verbose: bool = True) -> None:
        for name in VERBOSE_MODULES:
            self.logging.module_verbosity[name] = verbose


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUTHY


def default_config(env_file: Optional[Path] = None) -> AppConfig:
    """
    Build the config from defaults, then apply environment overrides.

    Recognised variables (a .env file in the working directory is loaded
    first; already-set process variables win):
      CLANLEDGER_DB_PATH   database file path
      CLANLEDGER_VERBOSE   1/true to print per-table verbose fields
      CLANLEDGER_WAL       0/false to disable WAL journal mode
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    else:
        load_dotenv(override=False)

    cfg = AppConfig()

    db_path = os.getenv("CLANLEDGER_DB_PATH")
    if db_path and db_path.strip():
        cfg.db_path = Path(db_path.strip()).expanduser()

    verbose = _env_flag("CLANLEDGER_VERBOSE")
    if verbose:
        cfg.set_verbose(True)

    wal = _env_flag("CLANLEDGER_WAL")
    if wal is not None:
        cfg.enable_wal = wal

    return cfg
