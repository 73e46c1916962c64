"""Error taxonomy shared by both report pipelines."""

from __future__ import annotations


class CommuteDataError(Exception):
    """Base class for errors raised by this package."""


class DataAccessError(CommuteDataError):
    """The trip store could not be read. Fatal for a report run."""


class InsufficientDataError(CommuteDataError, ValueError):
    """Fewer observations than model parameters."""

    def __init__(self, n_obs: int, required: int, formula: str = ""):
        self.n_obs = n_obs
        self.required = required
        self.formula = formula
        target = f" for '{formula}'" if formula else ""
        super().__init__(
            f"Insufficient data{target}: {n_obs} usable rows, "
            f"at least {required} required"
        )
