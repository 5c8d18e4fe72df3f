"""Error taxonomy for the transaction pipeline."""


class FraudscopeError(Exception):
    """Base class for pipeline errors reported to the operator."""


class DecodeError(FraudscopeError):
    """The uploaded file is not valid tabular data. No records are produced."""


class ValidationFailure(FraudscopeError):
    """A manually entered record broke one or more business rules."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ScoringError(FraudscopeError):
    """The scoring service call failed as a whole. Nothing is reconciled."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
