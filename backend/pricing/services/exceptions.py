"""Batch-level failures of a pricing run.

Line-level problems (unknown service, bad currency, no rate card...) never
raise; they are reported on the priced line itself.
"""


class PricingError(Exception):
    """Base exception for errors that abort a whole pricing request"""
    error_code = "UNKNOWN"


class InvalidPricingRequest(PricingError):
    """Raised when the case id or the service line list is missing or malformed"""
    error_code = "VALIDATION_FAILED"


class CaseAccessDenied(PricingError):
    """Raised when the case does not exist or the caller may not act on it"""
    error_code = "FORBIDDEN_OWNER"


class CatalogUnavailable(PricingError):
    """Raised when the case facts or rule tables cannot be loaded"""
    error_code = "UPSTREAM_DB_ERROR"
