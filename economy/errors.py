"""Error types raised by the economy engine."""

from typing import Any, Optional


class EconomyError(Exception):
    """Base class for engine errors."""
    pass


class InvalidRateConfig(EconomyError, ValueError):
    """Raised when the global rate configuration is unusable."""
    pass


class InvalidCostBasis(EconomyError, ValueError):
    """Raised when a cost, rate or hour figure is negative or non-finite."""
    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid cost basis: {field}={value!r}")


class UnrecognizedConfigShape(EconomyError):
    """Raised when a config-driven item has no key the formula understands."""
    def __init__(self, config: Any):
        self.config = config
        super().__init__(f"No pricing key recognized in config: {config!r}")


class ApprovedHoursLookupFailure(EconomyError):
    """Raised when approved hours for a project cannot be obtained."""
    def __init__(self, user_id: str, project_id: Optional[str] = None, reason: str = ""):
        self.user_id = user_id
        self.project_id = project_id
        message = f"Approved hours lookup failed for user '{user_id}'"
        if project_id is not None:
            message += f" (project '{project_id}')"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PersistenceFailure(EconomyError):
    """Raised when a recalculated price could not be stored."""
    def __init__(self, item_id: str, reason: str = ""):
        self.item_id = item_id
        super().__init__(f"Failed to persist price for item '{item_id}': {reason}")
