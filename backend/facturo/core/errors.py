"""Domain exceptions raised by services and translated to HTTP errors by the routers."""


class FacturoError(Exception):
    """Base class for business-rule failures."""


class InvalidTokenError(FacturoError):
    """Token missing, forged, expired, idle too long or already rotated."""


class AccessBlocked(FacturoError):
    """Account has access_count set to 0."""


class SessionLimitReached(FacturoError):
    """Login from a new IP while the account already holds access_count sessions."""


class PaymentRejected(FacturoError):
    """Payment amount is not positive or exceeds the remaining balance."""


class ConcurrentUpdateError(FacturoError):
    """Optimistic lock kept failing after the allowed number of retries."""


class InvoiceUpdateRejected(FacturoError):
    """Invoice total would be negative or below what has already been paid."""


class ContactNotFound(FacturoError):
    """Referenced contact does not exist for the current owner."""
