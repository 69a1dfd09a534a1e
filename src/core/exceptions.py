class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class DraftNotReadyError(DomainError):
    """Exception raised when a draft has nothing that can be committed."""

    pass
