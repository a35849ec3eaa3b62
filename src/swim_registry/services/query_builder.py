"""Positional predicate builder for parameterized listing queries.

Conditions are collected as ``Clause`` objects whose SQL uses ``?``
placeholders, each paired with its bound values in the same order. Values are
never interpolated into SQL text: ``render`` converts the placeholders into
numbered SQLAlchemy bind parameters (``:p0``, ``:p1``, ...) at execution time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Sequence

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from swim_registry.services.errors import StoreError

PLACEHOLDER = "?"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COMPARISON_OPERATORS = {"=", "<>", "<", "<=", ">", ">="}

# Case-insensitive substring operator per dialect
LIKE_OPERATORS = {
    "sqlite": "LIKE",
    "postgresql": "ILIKE",
}

# Fractional years between a bound reference date and date_naissance.
# Empty or unparseable birth dates evaluate to age 0.
AGE_EXPRESSIONS = {
    "sqlite": "COALESCE((julianday(?) - julianday(date_naissance)) / 365.25, 0)",
    "postgresql": (
        "COALESCE((CAST(? AS date) - CAST(CASE WHEN date_naissance ~ "
        "'^[0-9]{4}-[0-9]{2}-[0-9]{2}$' THEN date_naissance END AS date))"
        " / 365.25, 0)"
    ),
}


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid column name: {name!r}")
    return name


@dataclass(frozen=True)
class Clause:
    """A single SQL condition and the values bound to its placeholders"""

    sql: str
    params: tuple = field(default_factory=tuple)

    def __post_init__(self):
        expected = self.sql.count(PLACEHOLDER)
        if expected != len(self.params):
            raise ValueError(
                f"Clause has {expected} placeholder(s) but {len(self.params)} "
                f"parameter(s): {self.sql}"
            )


class PredicateBuilder:
    """Ordered AND-combination of clauses"""

    def __init__(self):
        self._clauses: List[Clause] = []

    def __len__(self) -> int:
        return len(self._clauses)

    @property
    def clauses(self) -> List[Clause]:
        return list(self._clauses)

    def add(self, sql: str, *params: Any) -> "PredicateBuilder":
        """Append a raw condition with its positional parameters"""
        self._clauses.append(Clause(sql, tuple(params)))
        return self

    def contains_any(
        self, columns: Sequence[str], term: str, operator: str = "LIKE"
    ) -> "PredicateBuilder":
        """Match rows where any of ``columns`` contains ``term`` as a substring"""
        if operator not in LIKE_OPERATORS.values():
            raise ValueError(f"Unsupported pattern operator: {operator}")
        if not columns:
            raise ValueError("contains_any needs at least one column")

        pattern = f"%{term}%"
        conditions = " OR ".join(
            f"{_check_identifier(column)} {operator} {PLACEHOLDER}"
            for column in columns
        )
        return self.add(f"({conditions})", *([pattern] * len(columns)))

    def equals(self, column: str, value: Any) -> "PredicateBuilder":
        return self.add(f"{_check_identifier(column)} = {PLACEHOLDER}", value)

    def compare(
        self, expression: Clause, operator: str, value: Any
    ) -> "PredicateBuilder":
        """Compare a parameterized expression against a bound value.

        The expression's own parameters precede ``value`` in the bound order.
        """
        if operator not in _COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {operator}")
        return self.add(
            f"{expression.sql} {operator} {PLACEHOLDER}", *expression.params, value
        )

    def where_sql(self) -> str:
        """WHERE clause text, or an empty string when no clause is active"""
        if not self._clauses:
            return ""
        return "WHERE " + " AND ".join(clause.sql for clause in self._clauses)

    def params(self) -> list:
        """Bound values in placeholder order"""
        values: list = []
        for clause in self._clauses:
            values.extend(clause.params)
        return values


def like_operator(dialect_name: str) -> str:
    try:
        return LIKE_OPERATORS[dialect_name]
    except KeyError:
        raise StoreError(f"Unsupported database dialect: {dialect_name}")


def age_expression(dialect_name: str, today: date) -> Clause:
    """Derived fractional-age expression bound to the reference date"""
    try:
        sql = AGE_EXPRESSIONS[dialect_name]
    except KeyError:
        raise StoreError(f"Unsupported database dialect: {dialect_name}")
    return Clause(sql, (today.isoformat(),))


def render(sql: str, params: Iterable[Any]) -> TextClause:
    """
    Convert ``?`` placeholders into numbered bind parameters.

    Args:
        sql: Statement text with positional placeholders
        params: Values in placeholder order

    Returns:
        A TextClause with every value bound

    Raises:
        ValueError: If the number of placeholders and values differ
    """
    values = list(params)
    parts = sql.split(PLACEHOLDER)
    if len(parts) - 1 != len(values):
        raise ValueError(
            f"Statement has {len(parts) - 1} placeholder(s) but "
            f"{len(values)} parameter(s)"
        )

    names = [f"p{index}" for index in range(len(values))]
    rendered = parts[0] + "".join(
        f":{name}{part}" for name, part in zip(names, parts[1:])
    )
    return text(rendered).bindparams(**dict(zip(names, values)))
