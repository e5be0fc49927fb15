"""Custom exceptions for Mindstore.

This module defines the exception hierarchy used by the library client.
Everything raised while talking to the content API inherits from
MindstoreError, which lets callers decide between retrying, surfacing a
message, or giving up without inspecting transport details.
"""


class MindstoreError(Exception):
    """Base class for recoverable client errors."""

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None):
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable


class ApiError(MindstoreError):
    """Request to the content API failed.

    Attributes:
        status: HTTP status code of the response, or 0 when no response
            arrived at all (DNS failure, refused connection, timeout).
        data: Parsed response body, if any.
    """

    def __init__(self, message: str, status: int, data: dict | None = None):
        super().__init__(message, retryable=status == 0 or status >= 500)
        self.status = status
        self.data = data

    @property
    def is_network_error(self) -> bool:
        """True when the server never answered."""
        return self.status == 0

    @property
    def is_conflict(self) -> bool:
        """True for 409 responses (content already saved)."""
        return self.status == 409


class BatchDeleteError(MindstoreError):
    """One or more deletes in a batch failed.

    The batch is reported as failed even when some deletes went through.

    Attributes:
        failures: Mapping of content hash to the error that item raised.
    """

    def __init__(self, failures: dict[str, Exception], total: int):
        self.failures = failures
        self.total = total
        ids = ", ".join(failures)
        super().__init__(f"Failed to delete {len(failures)} of {total} items: {ids}")

    @property
    def failed_ids(self) -> list[str]:
        return list(self.failures)


class ConfigurationError(Exception):
    """Invalid configuration.

    This is NOT a MindstoreError - configuration issues should be fixed
    before the client runs, not retried automatically.
    """

    pass
