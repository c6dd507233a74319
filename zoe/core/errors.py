class DomainError(Exception):
    """Base class for business-rule errors (expected, not database failures)."""
