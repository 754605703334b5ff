"""Exception hierarchy for ingestcheck."""


class IngestCheckError(Exception):
    """Base class for all ingestcheck errors."""


class MissingConfigurationError(IngestCheckError):
    """Raised when required environment variables are absent."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing configuration: {', '.join(self.missing)}")


class QueryError(IngestCheckError):
    """A query the service rejected. Not worth retrying."""


class TransientQueryError(QueryError):
    """A query that failed for a reason expected to clear up (network, throttling, 5xx)."""


class StatusWaitTimeoutError(IngestCheckError):
    """Raised when neither status queue received a message before the deadline."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"No ingestion status message within {timeout:.0f}s")


class RowCountMismatchError(IngestCheckError, AssertionError):
    """Raised when the confirmed row delta differs from the expected one.

    Subclasses AssertionError so test runners report it as a failure, not an error.
    """

    def __init__(
        self,
        description: str,
        expected: int,
        observed: int,
        last_error: Exception | None = None,
    ):
        self.description = description
        self.expected = expected
        self.observed = observed
        self.last_error = last_error
        message = f"Failed to ingest {description}: expected {expected} rows, observed {observed}"
        if last_error is not None:
            message += f" (last query error: {last_error})"
        super().__init__(message)
