"""
Stepflow Exception Hierarchy

The lenient pipeline (parse_steps) never lets these escape; they are raised
by the strict entry points only.
"""


class StepflowError(Exception):
    """Base exception for all stepflow operations."""
    pass


class StepParsingError(StepflowError):
    """
    Raised by the strict exported-steps parser when the source does not
    follow the canonical ``export const steps = [...]`` format.

    The underlying exception, if any, is kept on ``cause``.
    """

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(StepflowError):
    """Raised when stepflow.json cannot be read in strict mode."""
    pass


__all__ = [
    "StepflowError",
    "StepParsingError",
    "ConfigError",
]
