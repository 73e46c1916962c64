# -*- coding: utf-8 -*-
"""
Regression modeling
===================
Ordinary least squares of energy per mile (or its paired difference) on
temperature, optionally joined by the season-day index.

The fit is explanatory: we report coefficients, their standard errors and
p-values, the overall F-test and R². When temperature and the season index
enter together they are strongly correlated (winter is cold), so the model
is read for overall significance and variance explained only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.stats.outliers_influence import variance_inflation_factor

from .errors import InsufficientDataError

COLLINEARITY_CAVEAT = (
    "The predictors are correlated with each other. The model's F-test and R² "
    "remain valid, but the individual coefficients are not isolated effects "
    "of each predictor and should not be interpreted on their own."
)

EXACT_FIT_NOTE = (
    "The model has as many parameters as observations, so the fitted line passes "
    "through every point. Standard errors, p-values, the F-test and R² are "
    "undefined and are not reported."
)


@dataclass
class RegressionSummary:
    """What the narrative reports about one fitted model."""
    formula: str
    n_obs: int
    coefficients: pd.DataFrame
    f_statistic: float
    f_pvalue: float
    r_squared: float
    adj_r_squared: float
    predictor_corr: Optional[pd.DataFrame] = None
    vif: Optional[pd.DataFrame] = None
    caveats: List[str] = field(default_factory=list)
    exactly_determined: bool = False
    model: object = None

    def slope(self, name: str) -> float:
        return float(self.coefficients.loc[name, "estimate"])


def build_formula(dependent: str, predictors: Sequence[str]) -> str:
    return f"{dependent} ~ {' + '.join(predictors)}"


def _vif_table(X: pd.DataFrame) -> pd.DataFrame:
    X = sm.add_constant(X, has_constant="add")
    rows = []
    for i, col in enumerate(X.columns):
        if col == "const":
            continue
        rows.append({"feature": col, "VIF": variance_inflation_factor(X.values, i)})
    return pd.DataFrame(rows).set_index("feature")


def fit_ols(data: pd.DataFrame, dependent: str, predictors: Sequence[str]) -> RegressionSummary:
    """Fit `dependent ~ predictors` by OLS.

    Rows with a missing value in any model column are dropped first. Raises
    InsufficientDataError when fewer rows remain than model parameters
    (predictors + intercept). With exactly as many rows as parameters the
    summary is flagged `exactly_determined` and carries estimates only.
    """
    predictors = list(predictors)
    formula = build_formula(dependent, predictors)
    required = len(predictors) + 1

    if data.empty:
        raise InsufficientDataError(0, required, formula)

    frame = data[[dependent] + predictors].apply(pd.to_numeric, errors="coerce").dropna()
    n_obs = len(frame)
    if n_obs < required:
        raise InsufficientDataError(n_obs, required, formula)

    model = smf.ols(formula, data=frame).fit()

    if n_obs == required:
        # Zero residual degrees of freedom: only the estimates exist
        nan = float("nan")
        coefficients = pd.DataFrame({"estimate": model.params, "std_error": nan,
                                     "t_value": nan, "p_value": nan})
        return RegressionSummary(
            formula=formula, n_obs=n_obs, coefficients=coefficients,
            f_statistic=nan, f_pvalue=nan, r_squared=nan, adj_r_squared=nan,
            caveats=[EXACT_FIT_NOTE], exactly_determined=True, model=model,
        )

    coefficients = pd.DataFrame({
        "estimate": model.params,
        "std_error": model.bse,
        "t_value": model.tvalues,
        "p_value": model.pvalues,
    })

    summary = RegressionSummary(
        formula=formula,
        n_obs=int(model.nobs),
        coefficients=coefficients,
        f_statistic=float(model.fvalue),
        f_pvalue=float(model.f_pvalue),
        r_squared=float(model.rsquared),
        adj_r_squared=float(model.rsquared_adj),
        model=model,
    )

    if len(predictors) > 1:
        summary.predictor_corr = frame[predictors].corr()
        # VIF needs residual degrees of freedom to be meaningful
        if n_obs > required:
            with np.errstate(divide="ignore"):
                summary.vif = _vif_table(frame[predictors])
        summary.caveats.append(COLLINEARITY_CAVEAT)

    return summary


def _fmt_p(p: float) -> str:
    if not np.isfinite(p):
        return "nan"
    return f"{p:.2e}" if p < 1e-3 else f"{p:.4f}"


def format_summary(summary: RegressionSummary) -> str:
    """Plain-text rendering of a fitted model for the narrative report."""
    lines = [f"Model: {summary.formula}", f"Observations: {summary.n_obs}", ""]
    if summary.exactly_determined:
        lines.append(f"{'term':<14}{'estimate':>12}")
        for term, row in summary.coefficients.iterrows():
            lines.append(f"{term:<14}{row['estimate']:>12.4f}")
        lines.append("")
        lines.append(f"Exactly determined: {summary.n_obs} observations for "
                     f"{len(summary.coefficients)} parameters.")
        lines.extend(["", f"Note: {EXACT_FIT_NOTE}"])
        return "\n".join(lines)

    lines.append(f"{'term':<14}{'estimate':>12}{'std.error':>12}{'t':>9}{'p':>11}")
    for term, row in summary.coefficients.iterrows():
        lines.append(
            f"{term:<14}{row['estimate']:>12.4f}{row['std_error']:>12.4f}"
            f"{row['t_value']:>9.3f}{_fmt_p(row['p_value']):>11}"
        )
    lines.append("")
    lines.append(f"R-squared: {summary.r_squared:.4f}   Adj. R-squared: {summary.adj_r_squared:.4f}")
    lines.append(f"F-statistic: {summary.f_statistic:.3f}   p-value: {_fmt_p(summary.f_pvalue)}")

    if summary.predictor_corr is not None:
        lines.append("")
        lines.append("Predictor correlation:")
        lines.append(summary.predictor_corr.round(3).to_string())
    if summary.vif is not None:
        lines.append("")
        lines.append("Variance inflation factors:")
        lines.append(summary.vif.round(2).to_string())
    for caveat in summary.caveats:
        lines.append("")
        lines.append(f"Note: {caveat}")
    return "\n".join(lines)
