"""
Exceptions Module
=================

Failure kinds raised by the modeling stages.

All errors derive from MovieBMAError, which is a ValueError so callers that
already catch ValueError keep working.
"""


class MovieBMAError(ValueError):
    """Base class for all movie_bma errors."""


class SchemaError(MovieBMAError):
    """A referenced column is absent from the observation table."""


class DataSufficiencyError(MovieBMAError):
    """Too few usable rows, or a degenerate design matrix."""


class ConfigurationError(MovieBMAError):
    """Invalid modeling configuration (priors, caps, iteration counts)."""


class PredictionInputError(MovieBMAError):
    """The new input row lacks a value the selected model requires."""
