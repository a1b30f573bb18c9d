"""
Survival formulas: ``Surv(time, status) ~ x1 + x2``.

The left-hand side names the time and event columns. The right-hand side
is a Wilkinson formula evaluated by formulaic: interactions (``a:b``,
``a*b``), removals (``. - x``), categorical coding (``C(arm)``),
stateful transforms (``center(age)``) and ``np`` functions all work.
``.`` stands for every column other than the outcome columns, ``1`` for
no covariates. The intercept column is always dropped: the Cox baseline
hazard absorbs it.

Tables are any column mapping: a dict of arrays, a pandas DataFrame or a
numpy structured array.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
import pandas as pd
from formulaic import Formula, ModelSpec
from formulaic.errors import FormulaicError
from numpy.typing import NDArray

from survstats.core.exceptions import InvalidInputError
from survstats.core.validation import check_array, check_finite

_FORMULA_RE = re.compile(
    r"^\s*Surv\s*\(\s*(?P<time>[A-Za-z_][\w.]*)\s*,"
    r"\s*(?P<event>[A-Za-z_][\w.]*)\s*\)\s*~(?P<rhs>.*)$",
    re.DOTALL,
)
_DOT_RE = re.compile(r"(?<![\w.`])\.(?![\w.`])")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_]\w*$")

_INTERCEPT = "Intercept"
_CONTEXT = {"np": np}


@dataclass(frozen=True)
class SurvivalFormula:
    """Parsed survival formula.

    Attributes
    ----------
    time : str
        Name of the time column.
    event : str
        Name of the event indicator column.
    rhs : str
        Right-hand side as written.
    covariates : tuple[str, ...] or None
        Design-matrix column names once the formula is bound to a table
        (``age``, ``age:sex``, ``arm[T.b]``, ...); None before that.
    model_spec : formulaic.ModelSpec or None
        The spec fitted on the training table. New data is encoded with
        it, so categorical levels and transform state (centring means,
        spline knots) come from training.
    """

    time: str
    event: str
    rhs: str
    covariates: tuple[str, ...] | None = None
    model_spec: ModelSpec | None = field(default=None, compare=False, repr=False)

    @property
    def is_bound(self) -> bool:
        return self.model_spec is not None

    def bind(
        self, data, *, exclude: tuple[str, ...] = ()
    ) -> tuple[SurvivalFormula, NDArray | None]:
        """Bind the formula to a training table.

        Returns the bound formula and the (n, p) covariate matrix (None for
        a covariate-free formula). Columns in ``exclude`` are left out of
        ``.`` and may not appear in any term.

        Raises
        ------
        InvalidInputError
            If an outcome column is missing, a term cannot be evaluated,
            or a term uses the outcome or an excluded column.
        """
        columns = table_columns(data)
        missing = [
            name for name in (self.time, self.event) if name not in columns
        ]
        if missing:
            raise InvalidInputError(
                f"formula references columns not in data: {missing}; "
                f"available: {list(columns)}"
            )
        spec, names, X = self._materialize(data, columns, exclude)

        used = set(spec.required_variables)
        outcome = sorted(used & {self.time, self.event})
        if outcome:
            raise InvalidInputError(
                f"outcome columns cannot also be covariates: {outcome} in {self}"
            )
        reserved = sorted(used & set(exclude))
        if reserved:
            raise InvalidInputError(
                f"columns {reserved} cannot be used as covariates in {self}"
            )

        bound = replace(self, covariates=names, model_spec=spec)
        return bound, X

    def resolve(self, data, *, exclude: tuple[str, ...] = ()) -> SurvivalFormula:
        """Bound copy of the formula; see :meth:`bind`."""
        return self.bind(data, exclude=exclude)[0]

    def covariate_matrix(self, data) -> NDArray | None:
        """Build the (n, p) covariate matrix for ``data``.

        A bound formula encodes ``data`` with its training spec; an unbound
        one is evaluated against ``data`` directly. Returns None for a
        covariate-free formula (``~ 1``).
        """
        if self.model_spec is None:
            return self._materialize(data, table_columns(data), ())[2]
        if not self.covariates:
            return None
        frame = as_frame(data)
        try:
            matrix = self.model_spec.get_model_matrix(frame, context=_CONTEXT)
        except (FormulaicError, ValueError) as exc:
            raise InvalidInputError(
                f"cannot build covariates for {self}: {exc}"
            ) from exc
        return _to_array(matrix, self.covariates)

    def _materialize(
        self, data, columns: tuple[str, ...], exclude: tuple[str, ...]
    ) -> tuple[ModelSpec, tuple[str, ...], NDArray | None]:
        skip = {self.time, self.event, *exclude}
        rhs = expand_dot(self.rhs, [c for c in columns if c not in skip])
        frame = as_frame(data)
        try:
            matrix = Formula(rhs).get_model_matrix(
                frame, context=_CONTEXT, na_action="ignore"
            )
        except (FormulaicError, ValueError) as exc:
            raise InvalidInputError(
                f"cannot build covariates for {self}: {exc}"
            ) from exc
        names = tuple(c for c in matrix.columns if c != _INTERCEPT)
        X = _to_array(matrix, names) if names else None
        return matrix.model_spec, names, X

    def __str__(self) -> str:
        return f"Surv({self.time}, {self.event}) ~ {self.rhs}"


def parse_formula(formula: str | SurvivalFormula) -> SurvivalFormula:
    """Parse ``Surv(time, event) ~ rhs``.

    Only the left-hand side and the right-hand side's grammar are checked
    here; column names are checked when the formula is bound to a table.

    Raises
    ------
    InvalidInputError
        If the formula is not of this form, names the same column as time
        and event, or its right-hand side is not a valid formula.
    """
    if isinstance(formula, SurvivalFormula):
        return formula
    if not isinstance(formula, str):
        raise InvalidInputError(
            f"formula must be a string, got {type(formula).__name__}"
        )

    match = _FORMULA_RE.match(formula)
    if match is None:
        raise InvalidInputError(
            f"formula must look like 'Surv(time, status) ~ x1 + x2', "
            f"got {formula!r}"
        )

    time_col = match.group("time")
    event_col = match.group("event")
    rhs = match.group("rhs").strip()

    if time_col == event_col:
        raise InvalidInputError(
            f"time and event must be different columns, got {time_col!r} twice"
        )
    if not rhs or "~" in rhs:
        raise InvalidInputError(
            f"formula needs one right-hand side after '~', got {formula!r}"
        )
    try:
        Formula(expand_dot(rhs, ["x"]))
    except (FormulaicError, ValueError) as exc:
        raise InvalidInputError(f"malformed formula {formula!r}: {exc}") from exc

    return SurvivalFormula(time_col, event_col, rhs)


def expand_dot(rhs: str, columns) -> str:
    """Replace a bare ``.`` term with the sum of ``columns``."""
    if not _DOT_RE.search(rhs):
        return rhs
    terms = [c if _IDENTIFIER_RE.match(c) else f"`{c}`" for c in columns]
    expansion = f"({' + '.join(terms)})" if terms else "1"
    return _DOT_RE.sub(lambda _: expansion, rhs)


def table_columns(data) -> tuple[str, ...]:
    """Column names of a dict, DataFrame or structured array."""
    names: Any
    dtype = getattr(data, "dtype", None)
    if dtype is not None and getattr(dtype, "names", None):
        names = dtype.names
    elif hasattr(data, "columns"):
        names = data.columns
    elif hasattr(data, "keys"):
        names = data.keys()
    else:
        raise InvalidInputError(
            f"data must be a column mapping (dict, DataFrame or structured "
            f"array), got {type(data).__name__}"
        )
    return tuple(str(c) for c in names)


def table_length(data) -> int:
    """Number of rows of a column table."""
    columns = table_columns(data)
    if len(columns) == 0:
        raise InvalidInputError("data has no columns")
    return len(np.asarray(data[columns[0]]))


def as_frame(data) -> pd.DataFrame:
    """Column table as a DataFrame, the input formulaic evaluates."""
    if isinstance(data, pd.DataFrame):
        return data
    columns = table_columns(data)
    try:
        return pd.DataFrame(
            {name: np.asarray(data[name]).ravel() for name in columns}
        )
    except ValueError as exc:
        raise InvalidInputError(f"data columns do not form a table: {exc}") from exc


def _to_array(matrix, names: tuple[str, ...]) -> NDArray:
    X = np.asarray(matrix[list(names)], dtype=np.float64)
    check_finite(X, "covariates")
    return X


def _column(data, name: str) -> NDArray:
    return check_array(np.asarray(data[name]), name).ravel()


def outcome_columns(data, formula: SurvivalFormula) -> tuple[NDArray, NDArray]:
    """Extract the (time, event) columns named by ``formula``."""
    return _column(data, formula.time), _column(data, formula.event)
