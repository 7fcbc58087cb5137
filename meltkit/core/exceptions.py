"""
Typed failures raised by the melting engine.

Every error is terminal for the request that triggered it: the engine never
retries and never substitutes a default for missing data.
"""
from typing import Optional


class MeltingError(Exception):
    """Base class for every engine failure"""


class InvalidEnvironment(MeltingError, ValueError):
    """Malformed or out-of-range request, caught before method selection"""


class InvalidConcentration(InvalidEnvironment):
    """A non-positive concentration feeds a logarithm"""


class NoApplicableMethod(MeltingError):
    """No registered method accepts the environment"""


class AmbiguousMethod(MeltingError):
    """More than one registered method accepts the environment (registry bug)"""


class TableLoadError(MeltingError):
    """Parameter tables could not be loaded; fatal for the process"""


class DivisionByZero(MeltingError, ZeroDivisionError):
    """The melting-temperature equation has a zero denominator"""


class UnknownMotif(MeltingError, KeyError):
    """
    A motif is missing from a parameter table

    Attributes:
        motif: lookup key that was not found
        table: name of the table that was searched
        stage: pipeline stage (or method) performing the lookup
    """

    def __init__(self, motif: str, table: str, stage: Optional[str] = None):
        self.motif = motif
        self.table = table
        self.stage = stage
        super().__init__(motif)

    def __str__(self):
        where = f" during {self.stage}" if self.stage else ""
        return f"Motif '{self.motif}' not found in table '{self.table}'{where}"
