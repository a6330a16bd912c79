# eeglst/core/expr.py
"""
Column expressions.

An Expr is an ordinary value that knows which columns it reads and how to
compute itself from a DataFrame holding (at least) those columns:

    (col("Fz") > 10) & col("condition").isin(["faces"])

Verbs classify an Expr by its `columns` before evaluating it, so the choice
between sample-level and segment-level behaviour never depends on the
caller's scope.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import numpy as np
import pandas as pd


@dataclass(frozen=True, slots=True)
class EvalContext:
    """Container-wide values an expression may need besides its columns."""
    sampling_rate: float


ExprFunc = Callable[[pd.DataFrame, EvalContext], Any]


def _unique(columns: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(columns))


class Expr:
    """A lazily evaluated column expression."""

    __slots__ = ("func", "columns", "label")

    def __init__(self, func: ExprFunc, columns: Iterable[str] = (), label: str | None = None):
        if not callable(func):
            raise TypeError("Expr.func must be callable.")
        self.func = func
        self.columns = _unique(columns)
        self.label = label

    def evaluate(self, frame: pd.DataFrame, ctx: EvalContext) -> Any:
        return self.func(frame, ctx)

    def __repr__(self) -> str:
        return f"Expr({self.label or '<fn>'}, columns={list(self.columns)})"

    def __bool__(self) -> bool:
        raise TypeError("Expr has no truth value; combine expressions with &, | and ~.")

    __hash__ = None  # type: ignore[assignment]

    # ---- combinators ----
    def _binary(self, other: Any, op: Callable[[Any, Any], Any], symbol: str, *, reverse: bool = False) -> "Expr":
        other = other if isinstance(other, Expr) else lit(other)
        left, right = (other, self) if reverse else (self, other)

        def _apply(frame: pd.DataFrame, ctx: EvalContext) -> Any:
            return op(left.evaluate(frame, ctx), right.evaluate(frame, ctx))

        return Expr(_apply, left.columns + right.columns, f"({left.label} {symbol} {right.label})")

    def _unary(self, func: Callable[[Any], Any], label: str) -> "Expr":
        return Expr(lambda frame, ctx: func(self.evaluate(frame, ctx)), self.columns, label)

    def __add__(self, other): return self._binary(other, operator.add, "+")
    def __radd__(self, other): return self._binary(other, operator.add, "+", reverse=True)
    def __sub__(self, other): return self._binary(other, operator.sub, "-")
    def __rsub__(self, other): return self._binary(other, operator.sub, "-", reverse=True)
    def __mul__(self, other): return self._binary(other, operator.mul, "*")
    def __rmul__(self, other): return self._binary(other, operator.mul, "*", reverse=True)
    def __truediv__(self, other): return self._binary(other, operator.truediv, "/")
    def __rtruediv__(self, other): return self._binary(other, operator.truediv, "/", reverse=True)
    def __pow__(self, other): return self._binary(other, operator.pow, "**")
    def __mod__(self, other): return self._binary(other, operator.mod, "%")

    def __lt__(self, other): return self._binary(other, operator.lt, "<")
    def __le__(self, other): return self._binary(other, operator.le, "<=")
    def __gt__(self, other): return self._binary(other, operator.gt, ">")
    def __ge__(self, other): return self._binary(other, operator.ge, ">=")
    def __eq__(self, other): return self._binary(other, operator.eq, "==")  # type: ignore[override]
    def __ne__(self, other): return self._binary(other, operator.ne, "!=")  # type: ignore[override]

    def __and__(self, other): return self._binary(other, operator.and_, "&")
    def __rand__(self, other): return self._binary(other, operator.and_, "&", reverse=True)
    def __or__(self, other): return self._binary(other, operator.or_, "|")
    def __ror__(self, other): return self._binary(other, operator.or_, "|", reverse=True)

    def __invert__(self): return self._unary(operator.invert, f"~{self.label}")
    def __neg__(self): return self._unary(operator.neg, f"-{self.label}")
    def __abs__(self): return self._unary(abs, f"abs({self.label})")

    # ---- element-wise helpers ----
    def abs(self) -> "Expr":
        return abs(self)

    def isin(self, values: Iterable[Any]) -> "Expr":
        values = list(values)
        return self._unary(lambda s: pd.Series(s).isin(values), f"{self.label}.isin(...)")

    def between(self, lower: Any, upper: Any, inclusive: str = "both") -> "Expr":
        return self._unary(
            lambda s: pd.Series(s).between(lower, upper, inclusive=inclusive),
            f"{self.label}.between({lower}, {upper})",
        )

    def isna(self) -> "Expr":
        return self._unary(pd.isna, f"{self.label}.isna()")

    def notna(self) -> "Expr":
        return self._unary(pd.notna, f"{self.label}.notna()")

    # ---- reductions (scoped to the current group when the container is grouped) ----
    def _reduce(self, how: str, **kwargs: Any) -> "Expr":
        return self._unary(lambda s: getattr(pd.Series(s), how)(**kwargs), f"{self.label}.{how}()")

    def mean(self, skipna: bool = True) -> "Expr":
        return self._reduce("mean", skipna=skipna)

    def median(self, skipna: bool = True) -> "Expr":
        return self._reduce("median", skipna=skipna)

    def sum(self, skipna: bool = True) -> "Expr":
        return self._reduce("sum", skipna=skipna)

    def min(self, skipna: bool = True) -> "Expr":
        return self._reduce("min", skipna=skipna)

    def max(self, skipna: bool = True) -> "Expr":
        return self._reduce("max", skipna=skipna)

    def std(self, ddof: int = 1, skipna: bool = True) -> "Expr":
        return self._reduce("std", ddof=ddof, skipna=skipna)

    def count(self) -> "Expr":
        return self._reduce("count")


def col(name: str) -> Expr:
    """Reference a column of the signal, segments or events table (or `.time`)."""
    if not isinstance(name, str) or not name:
        raise TypeError("col() expects a non-empty column name.")
    return Expr(lambda frame, ctx: frame[name], (name,), name)


def lit(value: Any) -> Expr:
    """A constant; it references no column."""
    return Expr(lambda frame, ctx: value, (), repr(value))


def all_of(*exprs: Expr) -> Expr:
    """AND of several predicates."""
    if not exprs:
        return lit(True)
    out = exprs[0]
    for e in exprs[1:]:
        out = out & e
    return out


def evaluate(
    expr: Expr,
    frame: pd.DataFrame,
    ctx: EvalContext,
    groups: Iterable[str] = (),
) -> Any:
    """
    Evaluate `expr` on `frame`, once per group when `groups` is given.

    Scalars produced inside a group are broadcast to the group's rows, so the
    result of a grouped evaluation is always a Series aligned with `frame`.
    """
    groups = [g for g in groups if g in frame.columns]
    if not groups:
        return expr.evaluate(frame, ctx)

    pieces: list[pd.Series] = []
    for _, sub in frame.groupby(groups, sort=False, dropna=False):
        value = expr.evaluate(sub, ctx)
        if isinstance(value, pd.Series):
            value = value.set_axis(sub.index)
        else:
            value = pd.Series(value, index=sub.index)
        pieces.append(value)
    if not pieces:
        return pd.Series(index=frame.index, dtype=float)
    return pd.concat(pieces).reindex(frame.index)


def as_mask(result: Any, n: int) -> np.ndarray:
    """Turn a predicate result into a boolean array; missing values count as False."""
    if not isinstance(result, (pd.Series, np.ndarray, list)):
        if result is None or result is pd.NA:
            return np.zeros(n, dtype=bool)
        return np.full(n, bool(result))
    series = result if isinstance(result, pd.Series) else pd.Series(np.asarray(result))
    if len(series) != n:
        raise ValueError(f"predicate produced {len(series)} values for {n} rows")
    if series.dtype != bool:
        series = series.astype("boolean")
    return series.fillna(False).to_numpy(dtype=bool)
