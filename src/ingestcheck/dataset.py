"""Fixture dataset, ingestion profiles and ingestion helpers."""

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator

from azure.kusto.data.data_format import DataFormat
from azure.kusto.ingest import (
    BaseIngestClient,
    ColumnMapping,
    IngestionProperties,
    ReportLevel,
    StreamDescriptor,
)

from ingestcheck.schema import MAPPING_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionProfile:
    """How a file is ingested, independent of the target database and table."""

    data_format: DataFormat = DataFormat.CSV
    mapping_reference: str | None = None
    column_mappings: tuple[ColumnMapping, ...] = ()
    flush_immediately: bool = True
    report_level: ReportLevel = ReportLevel.FailuresOnly

    def to_properties(self, database: str, table: str) -> IngestionProperties:
        """The mapping kind is derived from the data format by the SDK."""
        return IngestionProperties(
            database=database,
            table=table,
            data_format=self.data_format,
            column_mappings=list(self.column_mappings) or None,
            ingestion_mapping_reference=self.mapping_reference,
            flush_immediately=self.flush_immediately,
            report_level=self.report_level,
        )

    def reporting(self, report_level: ReportLevel) -> "IngestionProfile":
        return replace(self, report_level=report_level)


@dataclass(frozen=True)
class IngestionCase:
    """One fixture file and the number of rows it must add to the table."""

    description: str
    path: Path
    rows: int
    profile: IngestionProfile
    test_on_streaming: bool = True

    @property
    def is_compressed(self) -> bool:
        return self.path.suffix == ".gz"


def load_mapping_document(path: str | Path) -> str:
    """Read a JSON mapping file and return it as a compact single-line document."""
    with open(path, encoding="utf-8") as f:
        return json.dumps(json.load(f), separators=(",", ":"))


def load_column_mappings(path: str | Path) -> tuple[ColumnMapping, ...]:
    """Parse a JSON mapping document into SDK column mappings.

    Each entry looks like {"column": "x", "datatype": "int", "Properties": {"Path": "$.x"}}.
    """
    with open(path, encoding="utf-8") as f:
        entries = json.load(f)
    return tuple(
        ColumnMapping(
            column_name=entry["column"],
            column_type=entry["datatype"],
            path=entry["Properties"]["Path"],
        )
        for entry in entries
    )


def build_cases(data_dir: str | Path) -> list[IngestionCase]:
    """The fixture files exercised by the end-to-end suite."""
    data_dir = Path(data_dir)
    without_mapping = IngestionProfile(data_format=DataFormat.CSV)
    with_mapping_reference = IngestionProfile(
        data_format=DataFormat.JSON, mapping_reference=MAPPING_NAME
    )
    with_column_mapping = IngestionProfile(
        data_format=DataFormat.JSON,
        column_mappings=load_column_mappings(data_dir / "dataset_mapping.json"),
    )

    return [
        IngestionCase("csv", data_dir / "dataset.csv", 10, without_mapping),
        IngestionCase("csv.gz", data_dir / "dataset_gzip.csv.gz", 10, without_mapping),
        IngestionCase("json with mapping ref", data_dir / "dataset.json", 2, with_mapping_reference),
        IngestionCase(
            "json.gz with mapping ref", data_dir / "dataset_gzip.json.gz", 2, with_mapping_reference
        ),
        # Streaming ingestion only accepts pre-created mapping references.
        IngestionCase(
            "json with mapping", data_dir / "dataset.json", 2, with_column_mapping, False
        ),
        IngestionCase(
            "json.gz with mapping", data_dir / "dataset_gzip.json.gz", 2, with_column_mapping, False
        ),
    ]


@contextmanager
def open_stream(case: IngestionCase) -> Iterator[StreamDescriptor]:
    """Open the fixture file as a stream, flagged compressed for .gz files."""
    with open(case.path, "rb") as f:
        yield StreamDescriptor(f, is_compressed=case.is_compressed)


def ingest_case(
    client: BaseIngestClient,
    case: IngestionCase,
    database: str,
    table: str,
    from_stream: bool = False,
    profile: IngestionProfile | None = None,
):
    """Submit ``case`` through ``client`` as a file or as a stream.

    ``profile`` overrides the case's own profile. Submission errors propagate.
    """
    properties = (profile or case.profile).to_properties(database, table)
    if from_stream:
        with open_stream(case) as stream:
            result = client.ingest_from_stream(stream, ingestion_properties=properties)
    else:
        result = client.ingest_from_file(str(case.path), ingestion_properties=properties)
    logger.info(
        "Submitted %s to %s.%s via %s (%s)",
        case.description,
        database,
        table,
        type(client).__name__,
        "stream" if from_stream else "file",
    )
    return result
