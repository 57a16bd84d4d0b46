class DomainError(Exception):
    """Base class for all domain-level errors."""

    pass


class StoreUnavailable(DomainError):
    """The shared key-value store failed (network, timeout or corrupt payload).

    Retryable. Must never be reported to users as an invalid passcode.
    """

    pass


class RateLimitExceeded(DomainError):
    """A fixed-window request ceiling was hit for an IP or a user."""

    def __init__(self, scope: str, limit_key: str) -> None:
        super().__init__(f"rate limit exceeded for {limit_key}")
        self.scope = scope
        self.limit_key = limit_key
