"""
Custom exception types for the splinetime parameterization pipeline.
Keep this focused and non-redundant; prefer built-ins where appropriate.
"""


class TrajectoryPlanningError(RuntimeError):
    """Time parameterization failure (invalid input, infeasible bounds, no convergence)."""

    def __init__(self, message: str, status: str | None = None):
        self.original_message = message
        self.status = status
        super().__init__(f"Trajectory Planning Error: {message}")

    def __str__(self):
        return f"Trajectory Planning Error: {self.original_message}"
