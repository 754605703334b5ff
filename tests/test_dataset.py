"""Tests for the fixture dataset and ingestion helpers."""

import gzip
from unittest.mock import MagicMock

import pytest
from azure.kusto.data.data_format import DataFormat
from azure.kusto.ingest import IngestionMappingKind, ReportLevel, StreamDescriptor

from conftest import DATA_DIR
from ingestcheck.dataset import (
    IngestionProfile,
    build_cases,
    ingest_case,
    load_column_mappings,
    load_mapping_document,
    open_stream,
)


@pytest.fixture
def cases():
    return build_cases(DATA_DIR)


class TestFixtures:
    def test_row_counts_match_files(self, cases):
        by_name = {case.description: case for case in cases}
        with open(DATA_DIR / "dataset.csv", encoding="utf-8") as f:
            assert sum(1 for _ in f) == by_name["csv"].rows
        with gzip.open(DATA_DIR / "dataset_gzip.json.gz", "rt", encoding="utf-8") as f:
            assert sum(1 for line in f if line.strip()) == by_name["json.gz with mapping ref"].rows

    def test_all_fixture_files_exist(self, cases):
        assert all(case.path.exists() for case in cases)


class TestBuildCases:
    def test_cases(self, cases):
        assert [c.description for c in cases] == [
            "csv",
            "csv.gz",
            "json with mapping ref",
            "json.gz with mapping ref",
            "json with mapping",
            "json.gz with mapping",
        ]
        assert [c.rows for c in cases] == [10, 10, 2, 2, 2, 2]

    def test_inline_mappings_skip_streaming(self, cases):
        streaming = [c.description for c in cases if c.test_on_streaming]
        assert streaming == ["csv", "csv.gz", "json with mapping ref", "json.gz with mapping ref"]

    def test_compression_detected_from_suffix(self, cases):
        assert [c.is_compressed for c in cases] == [False, True, False, True, False, True]


class TestMappings:
    def test_load_column_mappings(self):
        mappings = load_column_mappings(DATA_DIR / "dataset_mapping.json")
        assert len(mappings) == 19
        assert mappings[0].column == "rownumber"
        assert mappings[0].datatype == "int"
        assert mappings[0].properties["Path"] == "$.rownumber"

    def test_mapping_document_is_single_line(self):
        document = load_mapping_document(DATA_DIR / "dataset_mapping.json")
        assert "\n" not in document
        assert document.startswith('[{"column":"rownumber"')


class TestIngestionProfile:
    def test_csv_without_mapping(self):
        props = IngestionProfile().to_properties("db", "T1")
        assert props.database == "db"
        assert props.table == "T1"
        assert props.format == DataFormat.CSV
        assert props.ingestion_mapping_reference is None
        assert props.flush_immediately is True

    def test_json_with_mapping_reference(self):
        profile = IngestionProfile(data_format=DataFormat.JSON, mapping_reference="mappingRef")
        props = profile.to_properties("db", "T1")
        assert props.ingestion_mapping_reference == "mappingRef"
        assert props.ingestion_mapping_type == IngestionMappingKind.JSON

    def test_csv_with_mapping_reference(self):
        profile = IngestionProfile(data_format=DataFormat.CSV, mapping_reference="csvMap")
        props = profile.to_properties("db", "T1")
        assert props.ingestion_mapping_reference == "csvMap"
        assert props.ingestion_mapping_type == IngestionMappingKind.CSV

    def test_json_with_column_mappings(self):
        profile = IngestionProfile(
            data_format=DataFormat.JSON,
            column_mappings=load_column_mappings(DATA_DIR / "dataset_mapping.json"),
        )
        props = profile.to_properties("db", "T1")
        assert len(props.column_mappings) == 19
        assert props.ingestion_mapping_type == IngestionMappingKind.JSON

    def test_reporting_returns_a_copy(self):
        profile = IngestionProfile()
        reporting = profile.reporting(ReportLevel.FailuresAndSuccesses)
        assert reporting.report_level == ReportLevel.FailuresAndSuccesses
        assert profile.report_level == ReportLevel.FailuresOnly
        assert reporting.to_properties("db", "T1").report_level == ReportLevel.FailuresAndSuccesses


class TestIngestCase:
    def test_open_stream_flags_gzip(self, cases):
        with open_stream(cases[1]) as stream:
            assert isinstance(stream, StreamDescriptor)
            assert stream.is_compressed is True
        with open_stream(cases[0]) as stream:
            assert stream.is_compressed is False

    def test_ingest_from_file(self, cases):
        client = MagicMock()
        ingest_case(client, cases[0], "db", "T1")

        client.ingest_from_file.assert_called_once()
        args, kwargs = client.ingest_from_file.call_args
        assert args == (str(cases[0].path),)
        assert kwargs["ingestion_properties"].table == "T1"
        client.ingest_from_stream.assert_not_called()

    def test_ingest_from_stream(self, cases):
        client = MagicMock()
        ingest_case(client, cases[3], "db", "T1", from_stream=True)

        client.ingest_from_stream.assert_called_once()
        (stream,), kwargs = client.ingest_from_stream.call_args
        assert stream.is_compressed is True
        assert kwargs["ingestion_properties"].ingestion_mapping_reference == "mappingRef"

    def test_profile_override_targets_other_database(self, cases):
        client = MagicMock()
        profile = cases[0].profile.reporting(ReportLevel.FailuresAndSuccesses)
        ingest_case(client, cases[0], "invalid", "T1", profile=profile)

        props = client.ingest_from_file.call_args.kwargs["ingestion_properties"]
        assert props.database == "invalid"
        assert props.report_level == ReportLevel.FailuresAndSuccesses

    def test_submission_errors_propagate(self, cases):
        client = MagicMock()
        client.ingest_from_file.side_effect = RuntimeError("upload failed")
        with pytest.raises(RuntimeError, match="upload failed"):
            ingest_case(client, cases[0], "db", "T1")
