"""Abstract QueryService interface."""

from abc import ABC, abstractmethod

from ingestcheck.errors import QueryError
from ingestcheck.query.types import QueryResult


class QueryService(ABC):
    """Backend-agnostic interface for running queries and control commands.

    Design principles:
    - Blocking: callers on an event loop hand calls to a worker thread
    - Classified errors: backends raise TransientQueryError for failures worth
      retrying and QueryError for everything else, never raw client exceptions
    """

    @abstractmethod
    def connect(self) -> None:
        """Create the underlying client."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying client."""

    @abstractmethod
    def execute(self, database: str, query: str) -> QueryResult:
        """Run a query and return its primary result tables as lists of row dicts."""

    @abstractmethod
    def execute_command(self, database: str, command: str) -> QueryResult:
        """Run a control command (table creation, mappings, drops)."""

    def count(self, database: str, table: str) -> int:
        """Return the number of rows currently visible in ``table``."""
        results = self.execute(database, f"{table} | count")
        try:
            return int(results[0][0]["Count"])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise QueryError(f"Unexpected count result for {table}: {results!r}") from e
