class ADLookupError(Exception):
    """Base exception for AD lookup errors."""
    pass

class InvalidArgumentError(ADLookupError, ValueError):
    """Raised when a query or configuration argument fails validation."""
    pass
