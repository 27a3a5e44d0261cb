"""Exception hierarchy for the grid simulator.

Only fatal preconditions and accounting defects are exceptions. A buy that
cannot be funded is a normal market outcome and is reported as a
``RejectedTrade`` event instead.
"""


class GridSimulatorError(Exception):
    """Base class for all grid simulator errors."""


class ConfigError(GridSimulatorError, ValueError):
    """Run parameters are invalid. Raised before any simulation starts."""


class DataError(GridSimulatorError, ValueError):
    """Price data is empty, unsorted, non-finite or too short."""


class ReconciliationMismatch(GridSimulatorError):
    """Realized plus holding profit does not add up to total profit."""

    def __init__(self, total_profit: float, components_sum: float, tolerance: float) -> None:
        self.total_profit = total_profit
        self.components_sum = components_sum
        self.residual = total_profit - components_sum
        self.tolerance = tolerance
        super().__init__(
            f"profit breakdown does not reconcile: total={total_profit:.6f}, "
            f"grid+holding={components_sum:.6f}, residual={self.residual:.6f} "
            f"exceeds tolerance {tolerance}"
        )
