"""
Idempotent, additive-only schema ensure for clanledger tables.

For one table:
  1. CREATE TABLE IF NOT EXISTS with the full declaration
  2. ALTER TABLE ... ADD COLUMN for every declared column the live table lacks
  3. CREATE INDEX IF NOT EXISTS idx_<table>_<column> for each index column

Nothing is ever dropped, renamed or retyped. Existing columns whose live type
or primary-key flag differs from the declaration are reported as drift and
left alone.
"""

from __future__ import annotations

import sqlite3
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

from clanledger.database import DbConfig
from clanledger.logging import Logger
from clanledger.run_timer import time_run_ns, timing_from_ns
from clanledger.statement_runner import StatementRunner
from clanledger.table_spec import ColumnSpec, TableSpec, index_name


MODULE = "ensure_schema"

EnsureStep = Literal["validate", "create", "introspect", "column", "index"]
OutcomeStatus = Literal["created", "added", "unchanged", "skipped", "failed"]

ColumnInput = Union[ColumnSpec, Tuple[str, str]]


@dataclass(frozen=True)
class EnsureOutcome:
    step: EnsureStep
    target: str
    status: OutcomeStatus
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass(frozen=True)
class ColumnDrift:
    table: str
    column: str
    declared_type: str
    live_type: str
    declared_pk: bool
    live_pk: bool
    live_name: str = ""

    def describe(self) -> str:
        parts = []
        if self.live_name and self.live_name != self.column:
            parts.append(f"name declared={self.column} live={self.live_name}")
        if self.declared_type != self.live_type:
            parts.append(f"type declared={self.declared_type} live={self.live_type or '(none)'}")
        if self.declared_pk != self.live_pk:
            parts.append(f"primary_key declared={int(self.declared_pk)} live={int(self.live_pk)}")
        return f"{self.table}.{self.column}: " + ", ".join(parts)


class SchemaEnsureError(RuntimeError):
    def __init__(self, failures: Sequence[Tuple[str, EnsureOutcome]]) -> None:
        self.failures = list(failures)
        lines = [
            f"{table}: {o.step} {o.target} -> {o.reason}" for table, o in self.failures
        ]
        super().__init__(f"{len(self.failures)} schema operation(s) failed: " + "; ".join(lines))


@dataclass
class TableEnsureResult:
    table: str
    outcomes: List[EnsureOutcome] = field(default_factory=list)
    drift: List[ColumnDrift] = field(default_factory=list)
    duration_us: int = 0

    @property
    def failures(self) -> List[EnsureOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def rejected(self) -> bool:
        return any(o.step == "validate" and o.failed for o in self.outcomes)

    @property
    def table_created(self) -> bool:
        return any(o.step == "create" and o.status == "created" for o in self.outcomes)

    @property
    def columns_added(self) -> List[str]:
        return [o.target for o in self.outcomes if o.step == "column" and o.status == "added"]

    @property
    def indexes_created(self) -> List[str]:
        return [o.target for o in self.outcomes if o.step == "index" and o.status == "created"]

    @property
    def status(self) -> str:
        if self.rejected:
            return "REJECTED"
        if self.ok:
            return "OK"
        if any(o.status in ("added", "created", "unchanged") for o in self.outcomes):
            return "PARTIAL"
        return "FAILED"

    def raise_for_failures(self) -> "TableEnsureResult":
        if not self.ok:
            raise SchemaEnsureError([(self.table, o) for o in self.failures])
        return self


@dataclass
class SchemaEnsureReport:
    db_path: Path
    results: List[TableEnsureResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> List[Tuple[str, EnsureOutcome]]:
        return [(r.table, o) for r in self.results for o in r.failures]

    @property
    def tables_created(self) -> List[str]:
        return [r.table for r in self.results if r.table_created]

    @property
    def columns_added(self) -> int:
        return sum(len(r.columns_added) for r in self.results)

    @property
    def indexes_created(self) -> int:
        return sum(len(r.indexes_created) for r in self.results)

    @property
    def drift(self) -> List[ColumnDrift]:
        return [d for r in self.results for d in r.drift]

    def result_for(self, table: str) -> Optional[TableEnsureResult]:
        for r in self.results:
            if r.table == table:
                return r
        return None

    def summary_line(self) -> str:
        return (
            f"{len(self.results)} tables | "
            f"{len(self.tables_created)} created | "
            f"{self.columns_added} columns added | "
            f"{self.indexes_created} indexes created | "
            f"{len(self.failures)} failed | "
            f"{len(self.drift)} drift"
        )

    def raise_for_failures(self) -> "SchemaEnsureReport":
        if not self.ok:
            raise SchemaEnsureError(self.failures)
        return self


def _coerce_column(c: ColumnInput) -> ColumnSpec:
    if isinstance(c, ColumnSpec):
        return c
    name, type_ = c
    return ColumnSpec(name=name, type=type_)


def _error_reason(fut: "Future") -> Optional[str]:
    exc = fut.exception()
    if exc is None:
        return None
    return f"{type(exc).__name__}: {exc}"


def _live_type(row: sqlite3.Row) -> str:
    return str(row["type"] or "").strip().upper()


def _column_drift(table: str, spec: ColumnSpec, row: sqlite3.Row) -> Optional[ColumnDrift]:
    live_type = _live_type(row)
    live_pk = int(row["pk"] or 0) > 0
    live_name = str(row["name"])
    if live_type == spec.type and live_pk == spec.primary_key and live_name == spec.name:
        return None
    return ColumnDrift(
        table=table,
        column=spec.name,
        declared_type=spec.type,
        live_type=live_type,
        declared_pk=spec.primary_key,
        live_pk=live_pk,
        live_name=live_name,
    )


def _fail(
    result: TableEnsureResult,
    logger: Optional[Logger],
    step: EnsureStep,
    target: str,
    action: str,
    reason: str,
) -> None:
    result.outcomes.append(EnsureOutcome(step, target, "failed", reason))
    if logger is not None:
        logger.log_failure(MODULE, target, action=action, reason=reason)


def _log_summary(result: TableEnsureResult, spec: TableSpec, logger: Optional[Logger]) -> None:
    if logger is None:
        return
    logger.log_table_summary(
        MODULE,
        result.table,
        columns_declared=len(spec.columns),
        columns_added=len(result.columns_added),
        indexes_declared=len(spec.index_columns),
        indexes_created=len(result.indexes_created),
        failed=len(result.failures),
        status=result.status,
        duration_s=result.duration_us / 1_000_000.0,
        verbose_fields={
            "table_created": result.table_created,
            "columns_added": result.columns_added,
            "indexes_created": result.indexes_created,
            "drift": [d.describe() for d in result.drift],
        },
    )


def ensure_table(
    runner: StatementRunner,
    table_name: str,
    columns: Optional[Iterable[ColumnInput]],
    index_columns: Optional[Iterable[str]] = None,
    *,
    logger: Optional[Logger] = None,
) -> TableEnsureResult:
    """
    Make the live schema of `table_name` a superset of the declaration.

    Every statement error is captured into the returned result; this function
    only raises for a runner that is not started. Call raise_for_failures()
    on the result to turn partial failure into an exception.
    """
    start_ns = time_run_ns()
    spec = TableSpec.build(
        table_name,
        (_coerce_column(c) for c in (columns or ())),
        index_columns,
    )
    result = TableEnsureResult(table=str(table_name))

    problems = spec.problems()
    if problems:
        for p in problems:
            result.outcomes.append(EnsureOutcome("validate", str(table_name), "failed", p))
        if logger is not None:
            logger.log_failure(
                MODULE, str(table_name), action="validate", reason="; ".join(problems)
            )
        result.duration_us = timing_from_ns(start_ns, time_run_ns()).duration_us
        return result

    name = spec.name

    # Step 1: create (existence checked first to tell created from unchanged)
    existed_fut = runner.table_exists(name)
    create_fut = runner.execute(spec.create_table_sql())
    StatementRunner.wait_all([existed_fut, create_fut])

    existed = existed_fut.exception() is None and bool(existed_fut.result())
    create_err = _error_reason(create_fut)
    if create_err is not None:
        _fail(result, logger, "create", name, "create_table", create_err)
    else:
        result.outcomes.append(
            EnsureOutcome("create", name, "unchanged" if existed else "created")
        )

    # Step 2: introspect live columns and indexes
    cols_fut = runner.table_columns(name)
    idx_fut = runner.query(
        "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name=?", (name,)
    )
    StatementRunner.wait_all([cols_fut, idx_fut])

    introspect_err = _error_reason(cols_fut) or _error_reason(idx_fut)
    if introspect_err is not None:
        _fail(result, logger, "introspect", name, "table_info", introspect_err)
        _skip_remaining(result, spec, "introspect_failed")
        result.duration_us = timing_from_ns(start_ns, time_run_ns()).duration_us
        _log_summary(result, spec, logger)
        return result

    # Keyed by lower-cased name: SQLite column names are case-insensitive.
    live_rows: Dict[str, sqlite3.Row] = {
        str(r["name"]).lower(): r for r in cols_fut.result()
    }
    live_indexes = {str(r["name"]) for r in idx_fut.result()}

    if not live_rows:
        # Creation failed and nothing is there to patch.
        _skip_remaining(result, spec, "table_missing")
        result.duration_us = timing_from_ns(start_ns, time_run_ns()).duration_us
        _log_summary(result, spec, logger)
        return result

    # Step 3: dispatch one ALTER per missing column and one CREATE INDEX per
    # index column, then join them all.
    column_futs: List[Tuple[ColumnSpec, Optional["Future[None]"]]] = []
    for c in spec.columns:
        row = live_rows.get(c.name.lower())
        if row is not None:
            column_futs.append((c, None))
            drift = _column_drift(name, c, row)
            if drift is not None:
                result.drift.append(drift)
            continue
        if c.primary_key:
            column_futs.append((c, None))
            continue
        column_futs.append((c, runner.execute(c.add_column_sql(name))))

    index_futs: List[Tuple[str, str, "Future[None]"]] = []
    for ic in spec.index_columns:
        idx = index_name(name, ic)
        index_futs.append((ic, idx, runner.execute(spec.create_index_sql(ic))))

    StatementRunner.wait_all(
        [f for _, f in column_futs if f is not None] + [f for _, _, f in index_futs]
    )

    for c, fut in column_futs:
        target = f"{name}.{c.name}"
        if fut is None:
            if c.name.lower() in live_rows:
                result.outcomes.append(EnsureOutcome("column", c.name, "unchanged"))
            else:
                _fail(
                    result,
                    logger,
                    "column",
                    c.name,
                    "add_column",
                    "primary_key_not_addable: SQLite cannot ADD COLUMN a PRIMARY KEY",
                )
            continue
        err = _error_reason(fut)
        if err is not None:
            result.outcomes.append(EnsureOutcome("column", c.name, "failed", err))
            if logger is not None:
                logger.log_failure(MODULE, target, action="add_column", reason=err)
        else:
            result.outcomes.append(EnsureOutcome("column", c.name, "added"))

    for ic, idx, fut in index_futs:
        err = _error_reason(fut)
        if err is not None:
            result.outcomes.append(EnsureOutcome("index", idx, "failed", err))
            if logger is not None:
                logger.log_failure(MODULE, f"{name}({ic})", action="create_index", reason=err)
        else:
            status: OutcomeStatus = "unchanged" if idx in live_indexes else "created"
            result.outcomes.append(EnsureOutcome("index", idx, status))

    if logger is not None:
        for d in result.drift:
            logger.log_warning(
                MODULE,
                f"{d.table}.{d.column}",
                reason=f"drift (not reconciled) {d.describe()}",
            )

    result.duration_us = timing_from_ns(start_ns, time_run_ns()).duration_us
    _log_summary(result, spec, logger)
    return result


def _skip_remaining(result: TableEnsureResult, spec: TableSpec, reason: str) -> None:
    for c in spec.columns:
        result.outcomes.append(EnsureOutcome("column", c.name, "skipped", reason))
    for ic in spec.index_columns:
        result.outcomes.append(
            EnsureOutcome("index", index_name(spec.name, ic), "skipped", reason)
        )


def ensure_table_spec(
    runner: StatementRunner, spec: TableSpec, *, logger: Optional[Logger] = None
) -> TableEnsureResult:
    return ensure_table(runner, spec.name, spec.columns, spec.index_columns, logger=logger)


def ensure_tables(
    config: DbConfig,
    specs: Iterable[TableSpec],
    *,
    logger: Optional[Logger] = None,
) -> SchemaEnsureReport:
    """
    Open the database, ensure each spec in order, and close only after every
    dispatched statement has finished.
    """
    report = SchemaEnsureReport(db_path=config.db_path)
    with StatementRunner.open(config, logger) as runner:
        for spec in specs:
            report.results.append(ensure_table_spec(runner, spec, logger=logger))
    return report
