"""Execute bound procedure calls and collect every result set."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from app.core.errors import ExecutionError

from .normalizer import cause_chain, describe
from .params import BoundCall

logger = logging.getLogger(__name__)

Row = dict[str, Any]


@dataclasses.dataclass
class ProcedureResult:
    result_sets: list[list[Row]]
    rows_affected: list[int]

    @property
    def recordset(self) -> list[Row]:
        return self.result_sets[0] if self.result_sets else []

    @property
    def total_rows(self) -> int:
        return sum(len(rows) for rows in self.result_sets)


def execution_error(exc: BaseException) -> ExecutionError:
    """Wrap a driver failure, keeping its code, message, line and causes."""

    entry = describe(exc)
    return ExecutionError(
        entry.message if entry else type(exc).__name__,
        code=entry.code if entry else None,
        line=entry.line if entry else None,
        preceding_errors=cause_chain(exc),
    )


async def _drain(cursor: Any) -> tuple[list[list[Row]], list[int]]:
    result_sets: list[list[Row]] = []
    rows_affected: list[int] = []
    while True:
        rows = await cursor.fetchall() if cursor.description is not None else []
        result_sets.append(list(rows))
        rows_affected.append(cursor.rowcount)
        if not cursor.nextset():
            break
    return result_sets, rows_affected


async def _fetch_cursors(
    cursor: Any, names: tuple[str, ...], first_set: list[Row]
) -> tuple[list[list[Row]], list[int]]:
    handles = first_set[0] if first_set else {}
    result_sets: list[list[Row]] = []
    rows_affected: list[int] = []
    for name in names:
        portal = handles.get(name)
        if not portal:
            result_sets.append([])
            rows_affected.append(0)
            continue
        await cursor.execute(sql.SQL("FETCH ALL FROM {}").format(sql.Identifier(portal)))
        result_sets.append(list(await cursor.fetchall()))
        rows_affected.append(cursor.rowcount)
    return result_sets, rows_affected


async def _rollback(conn: Any) -> None:
    try:
        await conn.rollback()
    except psycopg.Error:
        logger.warning("Rollback after failed call did not complete", exc_info=True)


async def invoke(
    conn: Any, call: BoundCall, *, schema: str | None = None
) -> ProcedureResult:
    """Run ``call`` once on ``conn`` and return its rows.

    Procedures can have side effects, so a failed call is never retried. The
    driver error is re-raised as :class:`ExecutionError` for the caller to
    normalize.
    """

    operation = call.operation
    try:
        async with conn.cursor(row_factory=dict_row) as cursor:
            await cursor.execute(call.statement(schema), call.params or None)
            result_sets, rows_affected = await _drain(cursor)
            if operation.cursors:
                result_sets, rows_affected = await _fetch_cursors(
                    cursor, operation.cursors, result_sets[0]
                )
        await conn.commit()
    except psycopg.Error as exc:
        await _rollback(conn)
        raise execution_error(exc) from exc

    logger.debug(
        "Executed %s: %d result set(s), %d row(s)",
        call.procedure,
        len(result_sets),
        sum(len(rows) for rows in result_sets),
    )
    return ProcedureResult(result_sets, rows_affected)


__all__ = ["ProcedureResult", "execution_error", "invoke"]
