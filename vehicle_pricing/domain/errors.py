"""Exceptions raised by the pipeline components."""


class NonPositiveValueError(ValueError):
    """A log transform received zero or negative input."""

    def __init__(self, column: str, n_rows: int) -> None:
        self.column = column
        self.n_rows = n_rows
        super().__init__(
            f"Column '{column}' has {n_rows} non-positive value(s); "
            f"filter them out before the log transform"
        )


class SearchFailedError(RuntimeError):
    """No grid point of a model family could be fitted."""


class SearchTimeoutError(TimeoutError):
    """A model family's search exceeded its time budget."""
