"""Exceptions raised by provisioning_library."""


class ProvisioningError(Exception):
    """Base class for provisioning profile errors."""

    pass


class ProfileFormatError(ProvisioningError):
    """Raised when a provisioning profile cannot be decoded."""

    pass


class IndexFormatError(ProvisioningError):
    """Raised when a persisted index file is truncated or malformed."""

    pass


class InvalidQueryError(ProvisioningError, ValueError):
    """Raised when a profile query is missing a required argument."""

    pass
