# projections/errors.py


class ProjectionError(Exception):
    """Base class for errors raised by the projection engine."""


class InvariantViolation(ProjectionError, ValueError):
    """
    Raised before any simulation work when a ProjectionInput breaks one of
    its invariants. `field` names the offending input so API handlers can
    map it to a 400-level response.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


ValidationError = InvariantViolation
