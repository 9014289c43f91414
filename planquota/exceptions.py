"""Exception hierarchy for planquota."""


class PlanQuotaError(Exception):
    """Base exception for all planquota errors."""


class NotFoundError(PlanQuotaError):
    """Raised when a tenant quota record or plan template does not exist."""


class InvalidStateError(PlanQuotaError):
    """Raised when an operation cannot be applied to the current state.

    Examples: switching a tenant to an unrecognized plan id, or routing a
    contact-sales price to the payment processor.
    """


class UnauthorizedError(PlanQuotaError):
    """Raised by the external authorization layer. The engine never raises it."""


class TransientStoreError(PlanQuotaError):
    """Raised when the backing store fails in a way that may succeed on retry."""


class ConfigError(PlanQuotaError):
    """Raised when configuration is invalid."""
