"""Typed procedure parameters and the binder that fills them from requests.

Each operation declares an ordered tuple of :class:`Param`. :func:`bind`
walks that tuple against the raw request mapping and either returns a
:class:`BoundCall` ready for execution or raises a single
:class:`~app.core.errors.ValidationError` describing every offending field.

Binding rules:

- A value is *missing* when the key is absent, ``None`` or ``""``.
- Missing required values are all collected before failing.
- Missing optional values take the explicit ``default`` of the parameter.
  ``OMIT`` leaves the argument out of the call so the procedure's own default
  applies.
- Bounded text longer than ``length`` is rejected. Truncating a key such as a
  phone number would silently address another record.
- Values are checked and converted by pydantic adapters, one per SQL type.
  Integers must fit a 32-bit ``integer`` and floats are not accepted as text.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Any

from psycopg import sql
from pydantic import (
    BeforeValidator,
    Field,
    StringConstraints,
    TypeAdapter,
    condecimal,
)
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .catalog import Operation


class _Omit:
    def __repr__(self) -> str:
        return "OMIT"


OMIT: Any = _Omit()


class SqlType(str, enum.Enum):
    TEXT = "text"
    LONG_TEXT = "long_text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATETIME = "datetime"


class CallKind(str, enum.Enum):
    FUNCTION = "function"
    PROCEDURE = "procedure"
    QUERY = "query"


@dataclasses.dataclass(frozen=True)
class Param:
    """One typed argument of a stored procedure."""

    field: str
    name: str
    type: SqlType = SqlType.TEXT
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    required: bool = False
    default: Any = ""
    aliases: tuple[str, ...] = ()

    @property
    def cast(self) -> str:
        if self.type is SqlType.TEXT:
            return f"varchar({self.length})" if self.length else "varchar"
        if self.type is SqlType.LONG_TEXT:
            return "text"
        if self.type is SqlType.INTEGER:
            return "integer"
        if self.type is SqlType.DECIMAL:
            return f"numeric({self.precision},{self.scale})"
        return "timestamp"

    def lookup(self, payload: Mapping[str, Any]) -> Any:
        for key in (self.field, *self.aliases):
            if payload.get(key) is not None:
                return payload[key]
        return None


def text(field: str, name: str, length: int | None, **kwargs: Any) -> Param:
    return Param(field, name, SqlType.TEXT, length=length, **kwargs)


def long_text(field: str, name: str, **kwargs: Any) -> Param:
    return Param(field, name, SqlType.LONG_TEXT, **kwargs)


def integer(field: str, name: str, **kwargs: Any) -> Param:
    kwargs.setdefault("default", 0)
    return Param(field, name, SqlType.INTEGER, **kwargs)


def decimal(field: str, name: str, precision: int, scale: int, **kwargs: Any) -> Param:
    kwargs.setdefault("default", None)
    return Param(
        field, name, SqlType.DECIMAL, precision=precision, scale=scale, **kwargs
    )


def timestamp(field: str, name: str, **kwargs: Any) -> Param:
    kwargs.setdefault("default", None)
    return Param(field, name, SqlType.DATETIME, **kwargs)


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

_DEFAULT_REASONS = {
    SqlType.TEXT: "deve ser um texto",
    SqlType.LONG_TEXT: "deve ser um texto",
    SqlType.INTEGER: "deve ser um número inteiro",
    SqlType.DECIMAL: "deve ser um número decimal",
    SqlType.DATETIME: "deve ser uma data no formato ISO 8601",
}

_PRECISION_ERRORS = frozenset(
    {"decimal_max_digits", "decimal_max_places", "decimal_whole_digits"}
)


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("booleans are not accepted")
    return value


def _integer_as_text(value: Any) -> Any:
    # Exact integers become text; floats stay floats and are rejected.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


@lru_cache(maxsize=None)
def _adapter(
    type_: SqlType,
    length: int | None = None,
    precision: int | None = None,
    scale: int | None = None,
) -> TypeAdapter:
    if type_ in (SqlType.TEXT, SqlType.LONG_TEXT):
        return TypeAdapter(
            Annotated[
                str,
                StringConstraints(strict=True, max_length=length),
                BeforeValidator(_integer_as_text),
            ]
        )
    if type_ is SqlType.INTEGER:
        return TypeAdapter(
            Annotated[int, Field(ge=INT_MIN, le=INT_MAX), BeforeValidator(_reject_bool)]
        )
    if type_ is SqlType.DECIMAL:
        if precision is None:
            return TypeAdapter(
                Annotated[
                    Decimal, Field(allow_inf_nan=False), BeforeValidator(_reject_bool)
                ]
            )
        return TypeAdapter(condecimal(max_digits=precision, decimal_places=scale))
    return TypeAdapter(Annotated[datetime, BeforeValidator(_reject_bool)])


def coerce(param: Param, value: Any) -> Any:
    """Convert ``value`` to the Python type matching ``param``'s SQL type.

    Raises :class:`pydantic.ValidationError` when the value does not fit.
    Decimals are rounded half-up to the declared scale before the precision
    check.
    """

    if param.type is SqlType.TEXT:
        return _adapter(param.type, param.length).validate_python(value)
    if param.type is not SqlType.DECIMAL:
        return _adapter(param.type).validate_python(value)

    number = _adapter(SqlType.DECIMAL).validate_python(value)
    if param.precision is None:
        return number
    scale = param.scale or 0
    try:
        number = number.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        pass  # too many digits to round; the precision check below rejects it
    return _adapter(SqlType.DECIMAL, None, param.precision, scale).validate_python(number)


def describe_invalid(param: Param, exc: PydanticValidationError) -> str:
    """Portuguese reason for a value rejected by :func:`coerce`."""

    kind = exc.errors()[0]["type"]
    if kind == "string_too_long":
        return f"excede o tamanho máximo de {param.length} caracteres"
    if kind in {"greater_than_equal", "less_than_equal"}:
        return f"deve estar entre {INT_MIN} e {INT_MAX}"
    if kind in _PRECISION_ERRORS:
        return f"excede a precisão numérica ({param.precision},{param.scale or 0})"
    return _DEFAULT_REASONS[param.type]


@dataclasses.dataclass(frozen=True)
class BoundCall:
    """A procedure call with named, typed values attached."""

    operation: Operation
    params: dict[str, Any]

    @property
    def procedure(self) -> str:
        return self.operation.procedure

    def statement(self, schema: str | None = None) -> sql.Composable:
        """Render the SQL statement executed for this call."""

        op = self.operation
        if op.kind is CallKind.QUERY:
            return sql.SQL(op.procedure)

        by_name = {param.name: param for param in op.params}
        arguments: list[sql.Composable] = [
            sql.SQL("{} => {}::{}").format(
                sql.Identifier(name),
                sql.Placeholder(name),
                sql.SQL(by_name[name].cast),
            )
            for name in self.params
        ]
        arguments.extend(
            sql.SQL("{} => NULL::refcursor").format(sql.Identifier(cursor))
            for cursor in op.cursors
        )
        target = (
            sql.Identifier(schema, op.procedure) if schema else sql.Identifier(op.procedure)
        )
        template = "SELECT * FROM {}({})" if op.kind is CallKind.FUNCTION else "CALL {}({})"
        return sql.SQL(template).format(target, sql.SQL(", ").join(arguments))


def bind(operation: Operation, payload: Mapping[str, Any] | None) -> BoundCall:
    """Validate ``payload`` against ``operation`` and bind its parameters."""

    payload = payload or {}
    missing: list[str] = []
    invalid: dict[str, str] = {}
    bound: dict[str, Any] = {}

    for param in operation.params:
        raw = param.lookup(payload)
        if is_missing(raw):
            if param.required:
                missing.append(param.field)
            elif param.default is not OMIT:
                bound[param.name] = param.default
            continue
        try:
            bound[param.name] = coerce(param, raw)
        except PydanticValidationError as exc:
            invalid[param.field] = describe_invalid(param, exc)

    if missing or invalid:
        raise ValidationError(missing, invalid, operation=operation)
    return BoundCall(operation, bound)


__all__ = [
    "OMIT",
    "BoundCall",
    "CallKind",
    "Param",
    "SqlType",
    "bind",
    "coerce",
    "decimal",
    "describe_invalid",
    "integer",
    "is_missing",
    "long_text",
    "text",
    "timestamp",
]
