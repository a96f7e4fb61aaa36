class OrchestratorError(Exception):
    """Base exception for pipeline orchestration errors."""


class QueryFailedError(OrchestratorError):
    """Raised when a quick action could not be materialized by the query service."""

    def __init__(self, message: str, *, action: str | None = None) -> None:
        self.action = action
        super().__init__(message)
