"""
Exception types raised by the distribution services.
"""


class DistributionConfigError(ValueError):
    """Configuration-shape error the caller controls (duplicate team ids, undeclared rule column, ...)."""


class AdvisoryError(RuntimeError):
    """The external advisory model could not be called or returned an unusable reply."""
