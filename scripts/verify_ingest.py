"""CLI entry point for a single ingest-and-verify round trip.

Usage:
    python -m scripts.verify_ingest --file data.csv --rows 10 [--format csv|json]
        [--mapping-reference NAME] [--streaming] [--from-stream] [--table NAME]

Connection settings come from the environment (TEST_DATABASE, APP_ID, APP_KEY,
TENANT_ID, ENGINE_CONNECTION_STRING, optional DM_CONNECTION_STRING).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from azure.kusto.data.data_format import DataFormat

from ingestcheck import (
    BaselineCounter,
    E2EConfig,
    MissingConfigurationError,
    RowCountMismatchError,
    RowCountVerifier,
    create_clients,
)
from ingestcheck.dataset import IngestionCase, IngestionProfile, ingest_case
from ingestcheck.table import create_table, drop_table, unique_table_name

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

FORMATS = {"csv": DataFormat.CSV, "json": DataFormat.JSON}


async def run(args: argparse.Namespace, config: E2EConfig) -> int:
    clients = create_clients(config)
    table = args.table or unique_table_name()
    owns_table = args.table is None
    try:
        if owns_table:
            create_table(clients.query, config.database, table)

        case = IngestionCase(
            description=Path(args.file).name,
            path=Path(args.file),
            rows=args.rows,
            profile=IngestionProfile(
                data_format=FORMATS[args.format], mapping_reference=args.mapping_reference
            ),
        )
        baseline = BaselineCounter(table)
        if not owns_table:
            baseline.confirmed = clients.query.count(config.database, table)

        client = clients.streaming if args.streaming else clients.queued
        ingest_case(client, case, config.database, table, from_stream=args.from_stream)

        verifier = RowCountVerifier(clients.query, config.database, config.verification_policy())
        try:
            await verifier.verify(case.rows, baseline, case.description)
        except RowCountMismatchError as e:
            logger.error("%s", e)
            return 1
        logger.info("Done. %d rows confirmed in %s.", case.rows, table)
        return 0
    finally:
        if owns_table:
            drop_table(clients.query, config.database, table)
        clients.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Ingest a file and wait until its rows are visible")
    parser.add_argument("--file", required=True, help="Path to the data file (.gz is ingested compressed)")
    parser.add_argument("--rows", type=int, required=True, help="Number of rows the file should add")
    parser.add_argument("--format", choices=sorted(FORMATS), default="csv", help="Data format")
    parser.add_argument("--mapping-reference", help="Name of a mapping already defined on the table")
    parser.add_argument("--streaming", action="store_true", help="Use streaming instead of queued ingestion")
    parser.add_argument("--from-stream", action="store_true", help="Submit as a stream instead of a file")
    parser.add_argument("--table", help="Existing table to ingest into (default: a scratch table)")
    args = parser.parse_args()

    try:
        config = E2EConfig.from_env()
    except MissingConfigurationError as e:
        logger.error("%s", e)
        sys.exit(2)

    sys.exit(asyncio.run(run(args, config)))


if __name__ == "__main__":
    main()
