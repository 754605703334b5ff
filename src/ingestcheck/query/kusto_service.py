"""Kusto implementation of QueryService."""

import logging

import requests
from azure.kusto.data import KustoClient, KustoConnectionStringBuilder
from azure.kusto.data.exceptions import (
    KustoError,
    KustoNetworkError,
    KustoServiceError,
    KustoThrottlingError,
)

from ingestcheck.errors import QueryError, TransientQueryError
from ingestcheck.query.service import QueryService
from ingestcheck.query.types import QueryResult

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def _status_code(error: KustoServiceError) -> int | None:
    response = getattr(error, "http_response", None)
    if response is None:
        return None
    # requests exposes status_code, aiohttp exposes status
    return getattr(response, "status_code", None) or getattr(response, "status", None)


def classify_error(error: Exception) -> QueryError:
    """Translate a client exception into TransientQueryError or QueryError."""
    # KustoNetworkError is a KustoServiceError without an HTTP response.
    if isinstance(error, (KustoNetworkError, requests.ConnectionError, requests.Timeout)):
        return TransientQueryError(f"Network error: {error}")
    if isinstance(error, KustoThrottlingError):
        return TransientQueryError(f"Throttled: {error}")
    if isinstance(error, KustoServiceError):
        status = _status_code(error)
        if status in TRANSIENT_STATUS_CODES:
            return TransientQueryError(f"Service error {status}: {error}")
        return QueryError(f"Service rejected request ({status}): {error}")
    return QueryError(str(error))


class KustoQueryService(QueryService):
    """Kusto backend using azure-kusto-data.

    One KustoClient per service; the client pools its own HTTP connections.
    """

    def __init__(self, kcsb: KustoConnectionStringBuilder):
        self._kcsb = kcsb
        self._client: KustoClient | None = None

    def connect(self) -> None:
        self._client = KustoClient(self._kcsb)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _get_client(self) -> KustoClient:
        if self._client is None:
            raise RuntimeError("Service is not connected. Call connect() first.")
        return self._client

    def _run(self, method, database: str, text: str) -> QueryResult:
        try:
            response = method(database, text)
        except (KustoError, requests.RequestException) as e:
            logger.debug("Request failed on %s: %s", database, e)
            raise classify_error(e) from e
        return [[row.to_dict() for row in table] for table in response.primary_results]

    def execute(self, database: str, query: str) -> QueryResult:
        return self._run(self._get_client().execute_query, database, query)

    def execute_command(self, database: str, command: str) -> QueryResult:
        return self._run(self._get_client().execute_mgmt, database, command)
