"""
Statement executor: run one statement and shape its result.

Every record operation ends in :meth:`StatementExecutor.execute`. A call
resets the last-operation state, runs prepare + execute through the
adapter, captures the insert id and affected-row count, then shapes the
result according to the execution flags.

Manifesto:
    - **Fail loud by default:** a driver failure raises ``QueryError``
    - **Opt-in suppression:** DEBUG_MODE, RETURN_BOOL or NO_THROW_ON_ERROR
      turn a driver failure into ``False`` plus ``last_exec_error``
    - **Validation is never suppressed:** parameter-bag errors raise before
      anything reaches the driver
    - **State is per call:** last_insert_id / rows_affected / last_exec_error
      always describe the most recent statement

Architecture:
    ::

        execute(sql, params, flags)
          1. reset last-operation state
          2. DEBUG_MODE → DebugRecord(sql, params, flag names)
          3. try_result(prepare + execute + capture + shape)
               Err → QueryError → last_exec_error
                     suppressing flags ? return False : raise
          4. last_insert_id / rows_affected (int)
          5. DEBUG_MODE → append ids, duration
          6. shape: BOOL > ROWS_AFFECTED > LAST_INSERT_ID > rows
               rows: single set | row sets | merged row sets
               FIRST_RESULT_ONLY → first element or None

Examples:
    >>> executor = StatementExecutor(adapter, instance="main")
    >>> executor.execute("SELECT 1 AS one")
    [{'one': 1}]
    >>> executor.execute("SELECT 1 AS one", flags=ExecFlag.RETURN_FIRST_RESULT_ONLY)
    {'one': 1}
    >>> executor.execute("SELECT nope FROM missing", flags=ExecFlag.NO_THROW_ON_ERROR)
    False

Tags:
    executor, statement, result-shape, error-suppression, debug, record-spine

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from recordspine.core.errors import ErrorContext, QueryError, ValidationError
from recordspine.core.flags import ExecFlag, as_flags, decode_flags, suppresses_errors
from recordspine.core.logging import get_logger
from recordspine.core.protocols import Params, Statement, StatementDriver
from recordspine.core.result import Err, Ok, try_result

logger = get_logger(__name__)

ROW_SET_FLAGS = ExecFlag.USE_ROW_SETS | ExecFlag.MERGED_ROW_SETS


@dataclass
class DebugRecord:
    """Snapshot of one statement call made with DEBUG_MODE."""

    sql: str
    params: Params | None
    flags: list[str]
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: float | None = None
    last_insert_id: int | None = None
    rows_affected: int | None = None
    error_code: str | int | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "params": self.params,
            "flags": self.flags,
            "started_at": self.started_at.isoformat(),
            "duration_ms": self.duration_ms,
            "last_insert_id": self.last_insert_id,
            "rows_affected": self.rows_affected,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


@dataclass(frozen=True, slots=True)
class _Outcome:
    value: Any
    last_insert_id: int
    rows_affected: int


class StatementExecutor:
    """
    Executes statements for one engine instance and owns its
    last-operation state.

    Not thread-safe: callers sharing an instance across threads must
    serialize access.
    """

    def __init__(self, driver: StatementDriver, *, instance: str = "main"):
        self._driver = driver
        self.instance = instance
        self.last_insert_id = 0
        self.rows_affected = 0
        self.last_exec_error: QueryError | None = None
        self.debug_data: DebugRecord | None = None

    def execute(
        self,
        sql: str,
        params: Params | None = None,
        flags: ExecFlag | int | None = ExecFlag.NONE,
    ) -> Any:
        """
        Run ``sql`` with ``params`` and return the shaped result.

        Raises:
            ValidationError: Parameters supplied with DISABLE_PLACEHOLDERS
            QueryError: Driver failure without a suppressing flag
        """
        flags = as_flags(flags)

        self.last_insert_id = 0
        self.rows_affected = 0
        self.last_exec_error = None
        self.debug_data = None

        bound = self._bind(params, flags)
        debug = ExecFlag.DEBUG_MODE in flags
        if debug:
            self.debug_data = DebugRecord(sql=sql, params=bound, flags=decode_flags(flags))

        started = time.perf_counter()
        result = try_result(
            lambda: self._run(sql, bound, flags),
            catch=self._driver.driver_errors,
        )
        duration_ms = (time.perf_counter() - started) * 1000
        if self.debug_data is not None:
            self.debug_data.duration_ms = duration_ms

        match result:
            case Err(error):
                return self._fail(sql, error, flags)
            case Ok(outcome):
                self.last_insert_id = outcome.last_insert_id
                self.rows_affected = outcome.rows_affected
                if self.debug_data is not None:
                    self.debug_data.last_insert_id = outcome.last_insert_id
                    self.debug_data.rows_affected = outcome.rows_affected
                logger.debug(
                    "statement_executed",
                    instance=self.instance,
                    sql=sql,
                    flags=decode_flags(flags),
                    rows_affected=outcome.rows_affected,
                    duration_ms=round(duration_ms, 3),
                )
                return outcome.value

    # -- internals -----------------------------------------------------------

    @staticmethod
    def _bind(params: Params | None, flags: ExecFlag) -> Params | None:
        if ExecFlag.DISABLE_PLACEHOLDERS in flags:
            if params:
                raise ValidationError(
                    "Parameters cannot be bound when placeholders are disabled",
                    field="params",
                )
            return None
        if params is None:
            return {}
        if isinstance(params, Mapping):
            return {str(key).lstrip(":"): value for key, value in params.items()}
        return list(params)

    def _run(self, sql: str, params: Params | None, flags: ExecFlag) -> _Outcome:
        statement = self._driver.prepare(sql)
        try:
            statement.execute(params)
            last_insert_id = int(statement.last_insert_id() or 0)
            rows_affected = max(int(statement.rows_affected() or 0), 0)
            value = self._shape(statement, flags, last_insert_id, rows_affected)
        finally:
            statement.close()
        return _Outcome(value, last_insert_id, rows_affected)

    @staticmethod
    def _shape(
        statement: Statement,
        flags: ExecFlag,
        last_insert_id: int,
        rows_affected: int,
    ) -> Any:
        if ExecFlag.RETURN_BOOL in flags:
            return True
        if ExecFlag.RETURN_ROWS_AFFECTED in flags:
            return rows_affected
        if ExecFlag.RETURN_LAST_INSERT_ID in flags:
            return last_insert_id

        rows: list[Any]
        if flags & ROW_SET_FLAGS:
            row_sets = [statement.fetch_all()]
            while statement.next_row_set():
                row_sets.append(statement.fetch_all())
            if ExecFlag.MERGED_ROW_SETS in flags:
                rows = [row for row_set in row_sets for row in row_set]
            else:
                rows = row_sets
        else:
            rows = statement.fetch_all()

        if ExecFlag.RETURN_FIRST_RESULT_ONLY in flags:
            return rows[0] if rows else None
        return rows

    def _fail(self, sql: str, error: Exception, flags: ExecFlag) -> bool:
        query_error = QueryError(
            self._driver.error_message(error),
            code=self._driver.error_code(error),
            context=ErrorContext(instance=self.instance, driver=self._driver.driver, sql=sql),
            cause=error,
        )
        self.last_exec_error = query_error
        if self.debug_data is not None:
            self.debug_data.error_code = query_error.code
            self.debug_data.error_message = query_error.message

        if not suppresses_errors(flags):
            raise query_error

        logger.warning(
            "statement_failed",
            instance=self.instance,
            sql=sql,
            code=query_error.code,
            message=query_error.message,
        )
        return False


__all__ = [
    "DebugRecord",
    "StatementExecutor",
]
