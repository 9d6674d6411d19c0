"""
multistrat custom exceptions.
"""


class MultistratError(Exception):
    """Base exception for multistrat."""

    pass


class ConfigurationError(MultistratError):
    """Invalid run configuration, rejected before a run starts."""

    pass


class DataError(MultistratError):
    """Input bar series unusable (empty, too short, out of order)."""

    pass
