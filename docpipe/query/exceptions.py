class QueryError(Exception):
    """Raised when a document query fails."""


class QueryNotConfiguredError(QueryError):
    """Raised when the provider API key is missing."""


class StoreNotFoundError(QueryError):
    """Raised when the document store is missing or unknown to the provider."""


class QueryNetworkError(QueryError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class QueryRateLimitedError(QueryError):
    """Raised when the provider rejects the call for exceeding its rate limit."""
