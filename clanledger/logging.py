from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import threading


def log_ts() -> str:
    return datetime.now(tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def format_duration_s(duration_s: Optional[float]) -> Optional[str]:
    """
      - < 1s  ->  "###ms"
      - >= 1s ->  "#.##s" (under 10s), "#.#s" (10s+)
    """
    if duration_s is None:
        return None

    if duration_s < 0:
        return f"{duration_s:.2f}s"

    if duration_s < 1.0:
        ms = int(round(duration_s * 1000.0))
        return f"{ms}ms"

    if duration_s < 10.0:
        return f"{duration_s:.2f}s"

    return f"{duration_s:.1f}s"


@dataclass
class LoggingConfig:
    """
    Configuration for logging behavior.
    """

    enabled: bool = True
    module_verbosity: Dict[str, bool] = field(default_factory=dict)

    def is_verbose(self, module_name: str) -> bool:
        return self.module_verbosity.get(module_name, False)


class Logger:
    """
    Structured, thread-safe console logger for clanledger.

    Statements complete on the runner's writer thread, so every print block
    is taken under one lock to keep a table's lines together.
    """

    def __init__(self, config: Optional[LoggingConfig] = None) -> None:
        self._config = config if config is not None else LoggingConfig()
        self._lock = threading.Lock()

    @property
    def config(self) -> LoggingConfig:
        return self._config

    def _print_header(self, module: str, target: Optional[str]) -> None:
        ts = log_ts()
        print(f"[{ts}] {module}")
        if target:
            print(f"  target: {target}")

    def log_info(self, module: str, message: str) -> None:
        if not self._config.enabled:
            return

        with self._lock:
            print(f"[{log_ts()}] {module} | {message}")

    def log_table_summary(
        self,
        module: str,
        table: str,
        *,
        columns_declared: int,
        columns_added: int,
        indexes_declared: int,
        indexes_created: int,
        failed: int,
        status: str,
        duration_s: Optional[float] = None,
        verbose_fields: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not self._config.enabled:
            return

        with self._lock:
            self._print_header(module, table)

            line = (
                f"  {columns_added}/{columns_declared} columns added | "
                f"{indexes_created}/{indexes_declared} indexes created | "
                f"{failed} failed | "
                f"{status}"
            )

            dur_txt = format_duration_s(duration_s)
            if dur_txt is not None:
                line += f" | {dur_txt}"
            print(line)

            if verbose_fields is not None and self._config.is_verbose(module):
                self._print_verbose_fields(verbose_fields)

            print()

    def log_failure(
        self,
        module: str,
        target: str,
        *,
        action: str,
        reason: str,
        duration_s: Optional[float] = None,
    ) -> None:
        if not self._config.enabled:
            return

        with self._lock:
            self._print_header(module, target)

            line = f"  FAILED | action={action} | reason={reason}"

            dur_txt = format_duration_s(duration_s)
            if dur_txt is not None:
                line += f" | {dur_txt}"

            print(line)
            print()

    def log_warning(self, module: str, target: str, *, reason: str) -> None:
        if not self._config.enabled:
            return

        with self._lock:
            self._print_header(module, target)
            print(f"  WARN | {reason}")
            print()

    def log_verbose_fields(self, module: str, fields: Dict[str, Any]) -> None:
        if not self._config.is_verbose(module):
            return
        if not self._config.enabled:
            return

        with self._lock:
            self._print_verbose_fields(fields)
            print()

    def _print_verbose_fields(self, fields: Dict[str, Any]) -> None:
        for key, value in fields.items():
            if isinstance(value, (list, tuple)):
                print(f"    {key}:")
                for item in value:
                    print(f"      {item}")
            else:
                print(f"    {key}={value}")
