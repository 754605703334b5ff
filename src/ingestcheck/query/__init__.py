"""Query service: abstract interface and Kusto backend."""

from ingestcheck.query.service import QueryService
from ingestcheck.query.types import QueryResult, Row, Table

__all__ = ["QueryService", "QueryResult", "Row", "Table"]
