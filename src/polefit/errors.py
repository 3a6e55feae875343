"""Custom exceptions for polefit fitting stages."""


class InvalidInputError(ValueError):
    """Raised when samples, poles, weights or options are invalid."""


class OptionsFileError(InvalidInputError):
    """Raised when an options file cannot be parsed into fit options."""


class BrokenInvariantError(RuntimeError):
    """Raised when an internal pole/residue invariant no longer holds."""


class UnpairedPoleError(BrokenInvariantError):
    """Raised when a complex pole is not followed by its conjugate."""

    def __init__(self, message: str, index: int | None = None, pole: complex | None = None):
        super().__init__(message)
        self.index = index
        self.pole = pole


class UnsupportedConfigurationError(NotImplementedError):
    """Raised when a fit requires a formulation that is not implemented."""


class FitNotComputedError(RuntimeError):
    """Raised when a fitted model is requested before fit() was run."""
