"""
Error Taxonomy
==============

Every failure the engine can report derives from ``YieldCliError`` so the
CLI can catch one type at the command boundary.

  InvalidInput      — malformed or out-of-domain arguments
  InvalidState      — well-formed input hitting an undefined numeric case
  CalculationError  — any failure inside calculate_optimal_strategy()
  CatalogError      — the yield data provider could not deliver a catalog
"""


class YieldCliError(Exception):
    """Base class for all DeFi Yield CLI errors."""


class InvalidInput(YieldCliError, ValueError):
    """Argument outside its documented domain (never partially computed)."""


class InvalidState(YieldCliError, ArithmeticError):
    """Computation would produce NaN/Infinity (e.g. all scores are zero)."""


class CatalogError(YieldCliError):
    """Yield catalog could not be fetched or parsed."""


class CalculationError(YieldCliError):
    """
    Wraps a failure from the strategy pipeline.

    ``stage`` names the step that failed (rank, allocate, project) and the
    original exception is kept as ``__cause__``.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
