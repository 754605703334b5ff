"""End-to-end verification kit for queued and streaming ingestion: factory and public API."""

from dataclasses import dataclass
from typing import Any

from ingestcheck.config import E2EConfig
from ingestcheck.errors import (
    IngestCheckError,
    MissingConfigurationError,
    QueryError,
    RowCountMismatchError,
    StatusWaitTimeoutError,
    TransientQueryError,
)
from ingestcheck.query.service import QueryService
from ingestcheck.status import StatusSnapshot, wait_for_status
from ingestcheck.verifier import BaselineCounter, RowCountVerifier, VerificationPolicy


@dataclass
class IngestClients:
    """Everything a suite run talks to. Close with close()."""

    query: QueryService
    queued: Any
    streaming: Any
    status_queues: Any

    def close(self) -> None:
        self.query.close()
        for client in (self.queued, self.streaming):
            close = getattr(client, "close", None)
            if close is not None:
                close()


def create_clients(config: E2EConfig) -> IngestClients:
    """Create and connect the query service, ingest clients and status queues.

    Queued ingestion and the status queues go through the data management
    endpoint; queries and streaming ingestion go straight to the engine.
    """
    from azure.kusto.ingest import KustoStreamingIngestClient, QueuedIngestClient
    from azure.kusto.ingest.status import KustoIngestStatusQueues

    from ingestcheck.query.kusto_service import KustoQueryService

    query = KustoQueryService(config.engine_kcsb())
    query.connect()
    queued = QueuedIngestClient(config.dm_kcsb())
    return IngestClients(
        query=query,
        queued=queued,
        streaming=KustoStreamingIngestClient(config.engine_kcsb()),
        status_queues=KustoIngestStatusQueues(queued),
    )


__all__ = [
    "BaselineCounter",
    "E2EConfig",
    "IngestCheckError",
    "IngestClients",
    "MissingConfigurationError",
    "QueryError",
    "QueryService",
    "RowCountMismatchError",
    "RowCountVerifier",
    "StatusSnapshot",
    "StatusWaitTimeoutError",
    "TransientQueryError",
    "VerificationPolicy",
    "create_clients",
    "wait_for_status",
]
