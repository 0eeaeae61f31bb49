from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Literal, Optional, Sequence, Tuple


ColumnType = Literal["TEXT", "INTEGER", "REAL", "BOOLEAN"]

SUPPORTED_TYPES: Tuple[str, ...] = ("TEXT", "INTEGER", "REAL", "BOOLEAN")

# Names are interpolated straight into DDL, so only plain identifiers pass.
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SchemaSpecError(ValueError):
    """
    A TableSpec / ColumnSpec that cannot be turned into DDL.
    """

    def __init__(self, table: str, problems: Sequence[str]) -> None:
        self.table = table
        self.problems = list(problems)
        super().__init__(f"invalid spec for {table!r}: {'; '.join(self.problems)}")


def is_valid_identifier(name: object) -> bool:
    return isinstance(name, str) and bool(IDENTIFIER_RE.match(name))


def index_name(table: str, column: str) -> str:
    return f"idx_{table}_{column}"


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type: str
    primary_key: bool = False
    autoincrement: bool = False

    def __post_init__(self) -> None:
        # SQL type names are case-insensitive; keep the canonical upper form.
        if isinstance(self.type, str):
            object.__setattr__(self, "type", self.type.strip().upper())

    def declaration(self) -> str:
        """
        Full column definition used by CREATE TABLE.
        """
        decl = f"{self.name} {self.type}"
        if self.primary_key:
            decl += " PRIMARY KEY"
            if self.autoincrement:
                decl += " AUTOINCREMENT"
        return decl

    def add_column_sql(self, table: str) -> str:
        # ALTER TABLE only ever carries the bare type.
        return f"ALTER TABLE {table} ADD COLUMN {self.name} {self.type}"

    def problems(self) -> List[str]:
        out: List[str] = []
        if not is_valid_identifier(self.name):
            out.append(f"invalid_column_name:{self.name!r}")
        if self.type not in SUPPORTED_TYPES:
            out.append(f"unsupported_type:{self.name}:{self.type!r}")
        if self.autoincrement and not (self.primary_key and self.type == "INTEGER"):
            out.append(f"autoincrement_requires_integer_primary_key:{self.name}")
        return out


def col(name: str, type_: str = "TEXT") -> ColumnSpec:
    return ColumnSpec(name=name, type=type_)


def pk(name: str, type_: str = "TEXT") -> ColumnSpec:
    return ColumnSpec(name=name, type=type_, primary_key=True)


def autoinc_id(name: str = "id") -> ColumnSpec:
    return ColumnSpec(name=name, type="INTEGER", primary_key=True, autoincrement=True)


def numbered(template: str, count: int, type_: str, start: int = 1) -> List[ColumnSpec]:
    """
    Expand a "{n}" template into consecutive columns, e.g.
    numbered("war{n}Stars", 7, "INTEGER") -> war1Stars .. war7Stars.
    """
    return [col(template.format(n=n), type_) for n in range(start, start + count)]


@dataclass(frozen=True)
class TableSpec:
    """
    Declared target schema for one table.

    source / cadence / ordering document where rows come from and how they are
    written; they never reach SQL.
    """

    name: str
    columns: Tuple[ColumnSpec, ...]
    index_columns: Tuple[str, ...] = ()
    source: str = ""
    cadence: str = ""
    ordering: str = ""

    @classmethod
    def build(
        cls,
        name: str,
        columns: Iterable[ColumnSpec],
        index_columns: Optional[Iterable[str]] = None,
        **docs: str,
    ) -> "TableSpec":
        return cls(
            name=name,
            columns=tuple(columns),
            index_columns=tuple(index_columns or ()),
            **docs,
        )

    @property
    def group(self) -> str:
        return self.name[:1].upper()

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key_columns(self) -> List[str]:
        return [c.name for c in self.columns if c.primary_key]

    def column(self, name: str) -> Optional[ColumnSpec]:
        for c in self.columns:
            if c.name == name:
                return c
        return None

    def create_table_sql(self) -> str:
        body = ",\n  ".join(c.declaration() for c in self.columns)
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n  {body}\n)"

    def create_index_sql(self, column: str) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {index_name(self.name, column)} "
            f"ON {self.name}({column})"
        )

    def problems(self) -> List[str]:
        out: List[str] = []
        if not is_valid_identifier(self.name):
            out.append(f"invalid_table_name:{self.name!r}")
        if not self.columns:
            out.append("no_columns")
            return out

        seen = set()
        for c in self.columns:
            out.extend(c.problems())
            if c.name in seen:
                out.append(f"duplicate_column:{c.name}")
            seen.add(c.name)

        for ic in self.index_columns:
            if not is_valid_identifier(ic):
                out.append(f"invalid_index_column:{ic!r}")
            elif ic not in seen:
                out.append(f"index_column_not_declared:{ic}")
        return out

    def require_valid(self) -> "TableSpec":
        problems = self.problems()
        if problems:
            raise SchemaSpecError(str(self.name), problems)
        return self
