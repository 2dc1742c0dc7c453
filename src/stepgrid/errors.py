"""Exception types raised by the odds model and simulation engine.

Both subclass ValueError so callers that already guard bad inputs with
``except ValueError`` keep working.
"""


class ConfigurationError(ValueError):
    """Unknown grid identifier, invalid grid geometry, or house edge out of range."""


class InvalidParameterError(ValueError):
    """Malformed simulation parameters, rejected before any simulation work."""
