"""Base exception for failures the client cannot remediate (database, session store)."""


class InfrastructureError(Exception):
    """Raised when a backing service (persistence, session transport) is unavailable.

    Converted to a generic 500 at the HTTP boundary; `message` is for logs only.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
