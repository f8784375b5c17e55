"""
End-to-end tests for the DSX parser over the CustomerLoad sample job.
"""

import json
import re
from dataclasses import replace

import pytest

from dsx_extractor.datastage import DSXParser, extract_job_info
from dsx_extractor.datastage.dsx_parser import FORMAT_VERSION
from dsx_extractor.exceptions import DocumentReadError
from tests import find_by_name


@pytest.mark.e2e
class TestCustomerLoad:
    """Full extraction of the CustomerLoad sample export."""

    def test_header(self, customer_job):
        assert customer_job.name == "CustomerLoad"
        assert customer_job.type == "Parallel Job"
        assert customer_job.description == (
            "Loads active customers from the CRM database into the warehouse customer dimension."
        )

    def test_parameters(self, customer_job):
        params = {p.name: p for p in customer_job.parameters}
        assert list(params) == ["SourceDB", "BatchSize", "RunMode"]
        assert params["SourceDB"].type == "String"
        assert params["SourceDB"].help == "Connection name of the CRM database"
        assert params["BatchSize"].type == "Integer"
        assert params["RunMode"].type == "Unknown (99)"

    def test_source(self, customer_job):
        assert len(customer_job.sources) == 1
        source = customer_job.sources[0]
        assert source.name == "CRM_Customers"
        assert source.type == "OracleConnectorPX"
        assert source.sql == (
            "SELECT CUSTOMER_ID, CUSTOMER_NAME, REGION_CODE FROM CRM.CUSTOMERS "
            "WHERE STATUS = 'A' AND REGION_CODE IS NOT NULL ORDER BY CUSTOMER_ID"
        )
        assert source.where_clauses == ("STATUS = 'A' AND REGION_CODE IS NOT NULL",)
        assert source.table is None
        assert source.connection == "[PARAM]"
        assert source.database == "CRM"
        assert [c.name for c in source.columns] == ["CUSTOMER_ID", "CUSTOMER_NAME", "REGION_CODE"]

    def test_target(self, customer_job):
        assert len(customer_job.targets) == 1
        target = customer_job.targets[0]
        assert target.name == "DW_Customer"
        assert target.type == "DB2ConnectorPX"
        assert target.table == "DW.DIM_CUSTOMER"
        assert target.mode == "Truncate"
        assert target.connection == "DWPROD"
        assert target.database == "DWH"

    def test_sql_scripts(self, customer_job):
        scripts = [(s.stage, s.type) for s in customer_job.sql_scripts]
        assert scripts == [("CRM_Customers", "SelectStatement"), ("DW_Customer", "BeforeSQL")]
        assert customer_job.sql_scripts[1].sql == "DELETE FROM DW.DIM_CUSTOMER\nWHERE LOAD_DATE = CURRENT DATE"

    def test_transform(self, customer_job):
        assert len(customer_job.transforms) == 1
        transform = customer_job.transforms[0]
        assert transform.name == "Xfm_Clean"
        assert "Lnk_Clean.CUSTOMER_NAME = trim(Lnk_Src.CUSTOMER_NAME);" in transform.rules
        assert "Lnk_Clean.REGION_CODE = upcase(Lnk_Src.REGION_CODE);" in transform.rules
        assert transform.input == "Lnk_Src"
        assert transform.output == "Lnk_Clean"
        assert transform.reject_conditions == ("Lnk_Src.CUSTOMER_ID == 0",)

    def test_lookup(self, customer_job):
        lookup = find_by_name(customer_job.lookups, "Lkp_Region")
        assert lookup is not None
        assert lookup.inputs == ("Lnk_Clean",)
        assert lookup.output == "Lnk_Enriched"
        assert lookup.key_columns == ("REGION_CODE",)
        assert lookup.fail_mode == "Continue"
        assert lookup.lookup_type == "Normal"

    def test_specialized_stage(self, customer_job):
        sort = find_by_name(customer_job.specialized_stages, "Srt_Customers")
        assert sort.type == "Sort"
        assert sort.properties["key"] == "CUSTOMER_ID"

    def test_flow(self, customer_job):
        assert [(c.link, c.from_stage, c.to_stage) for c in customer_job.flow] == [
            ("Lnk_Src", "CRM_Customers", "Xfm_Clean"),
            ("Lnk_Clean", "Xfm_Clean", "Lkp_Region"),
            ("Lnk_Enriched", "Lkp_Region", "Srt_Customers"),
            ("Lnk_Sorted", "Srt_Customers", "DW_Customer"),
        ]

    def test_flow_columns(self, customer_job):
        clean = customer_job.flow[1].columns
        by_name = {c.name: c for c in clean}
        assert by_name["CUSTOMER_ID"].type == "INTEGER"
        assert by_name["CUSTOMER_ID"].nullable is False
        assert by_name["CUSTOMER_NAME"].derivation == "Trim( Lnk_Src.CUSTOMER_NAME)"
        assert by_name["CREDIT_LIMIT"].type == "DECIMAL(12,2)"
        assert customer_job.flow[2].columns is None

    def test_no_system_columns(self, customer_job):
        for connection in customer_job.flow:
            for col in connection.columns or ():
                assert not col.name.startswith(("APT_", "DSLink"))

    def test_metadata(self, customer_job):
        assert customer_job.metadata.version == FORMAT_VERSION
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", customer_job.metadata.extracted_at)
        assert customer_job.metadata.token_count is None

    def test_to_dict_is_json_serializable(self, customer_job):
        data = json.loads(json.dumps(customer_job.to_dict()))
        assert data["name"] == "CustomerLoad"
        assert data["flow"][0]["from"] == "CRM_Customers"
        assert data["flow"][0]["to"] == "Xfm_Clean"
        assert "tokenCount" not in data["metadata"]
        assert set(data) >= set(customer_job.SECTIONS)

    def test_summary(self, customer_dsx_path):
        summary = DSXParser.from_file(customer_dsx_path).get_summary()
        assert summary["name"] == "CustomerLoad"
        assert summary["links"] == 4
        assert summary["parameter_names"] == ["SourceDB", "BatchSize", "RunMode"]

    def test_structured_context(self, customer_dsx_text, customer_job):
        context = DSXParser(customer_dsx_text).build_structured_context(customer_job)
        assert context.startswith("## DataStage Job: CustomerLoad (Parallel Job)")
        assert "**Data Flow:**" in context
        assert "WHERE STATUS = 'A' AND REGION_CODE IS NOT NULL" in context


class TestExtractJobInfo:

    def test_empty_document(self):
        job = extract_job_info("")
        assert job.name == ""
        assert job.description == ""
        assert job.type == ""
        for section in job.SECTIONS:
            assert getattr(job, section) == ()
        assert job.metadata.extracted_at

    def test_garbage_document(self):
        job = extract_job_info("not a dsx export\nBEGIN DSRECORD\nIdentifier \"x\n")
        assert job.sources == ()
        assert job.flow == ()

    def test_parsing_is_idempotent(self, customer_dsx_text):
        first = extract_job_info(customer_dsx_text)
        second = extract_job_info(customer_dsx_text)
        metadata = replace(first.metadata, extracted_at="")
        assert replace(first, metadata=metadata) == replace(second, metadata=replace(second.metadata, extracted_at=""))

    def test_token_count(self, orders_dsx_text):
        job = extract_job_info(orders_dsx_text, include_token_count=True)
        assert job.metadata.token_count > 0
        assert job.to_dict()["metadata"]["tokenCount"] == job.metadata.token_count

    def test_orders_job_columns_on_source_and_target(self, orders_dsx_text):
        job = extract_job_info(orders_dsx_text)
        assert job.sources[0].table == "SALES.ORDERS"
        assert [c.type for c in job.sources[0].columns] == ["INTEGER", "DECIMAL(10,2)"]
        assert job.targets[0].columns == job.sources[0].columns
        assert job.targets[0].mode == "Append"


class TestFromFile:

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentReadError) as exc_info:
            DSXParser.from_file(tmp_path / "missing.dsx")
        assert exc_info.value.source == "missing.dsx"

    def test_undecodable_bytes_are_replaced(self, tmp_path, orders_dsx_text):
        path = tmp_path / "orders.dsx"
        path.write_bytes(orders_dsx_text.encode("utf-8") + b"\xff\xfe")
        job = DSXParser.from_file(path).parse()
        assert job.name == "OrdersCopy"
