"""Scratch table lifecycle: create, map, drop."""

import logging
import random
import time

from ingestcheck.query.service import QueryService
from ingestcheck.schema import TABLE_PREFIX, TEST_TABLE_SCHEMA

logger = logging.getLogger(__name__)


def unique_table_name(prefix: str = TABLE_PREFIX) -> str:
    """Table names only allow letters, digits and underscores."""
    return f"{prefix}_{int(time.time())}_{random.randint(1, 100000)}"


def create_table(
    service: QueryService, database: str, table: str, schema: str = TEST_TABLE_SCHEMA
) -> None:
    service.execute_command(database, f".create table {table} {schema}")
    logger.info("Created table %s.%s", database, table)


def create_json_mapping(
    service: QueryService, database: str, table: str, mapping_name: str, mapping_json: str
) -> None:
    """Create or replace a JSON ingestion mapping on ``table``.

    ``mapping_json`` is the raw mapping document; single quotes inside it are
    not allowed by the command syntax.
    """
    if "'" in mapping_json:
        raise ValueError("Mapping document must not contain single quotes")
    command = (
        f".create-or-alter table {table} ingestion json mapping "
        f"'{mapping_name}' '{mapping_json}'"
    )
    service.execute_command(database, command)
    logger.info("Created JSON mapping %s on %s", mapping_name, table)


def drop_table(service: QueryService, database: str, table: str) -> None:
    service.execute_command(database, f".drop table {table} ifexists")
    logger.info("Dropped table %s.%s", database, table)
