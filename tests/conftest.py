"""
Shared test fixtures for the DSX extractor.

Provides the parsed sample job and small synthetic documents reused across
test modules.
"""

import sys
from pathlib import Path

import pytest

# Ensure the project root is importable
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dsx_extractor.datastage import DSXParser, JobInfo
from tests import column, dsx_job, output_pin, root_record, stage, xml_properties

# Path to sample DataStage job
CUSTOMER_DSX = PROJECT_ROOT / "samples" / "datastage" / "CustomerLoad.dsx"


@pytest.fixture(scope="session")
def customer_dsx_path() -> Path:
    """Path to the CustomerLoad sample export."""
    assert CUSTOMER_DSX.exists(), f"Sample DSX not found at {CUSTOMER_DSX}"
    return CUSTOMER_DSX


@pytest.fixture(scope="session")
def customer_dsx_text(customer_dsx_path) -> str:
    return customer_dsx_path.read_text(encoding="utf-8")


@pytest.fixture(scope="session")
def customer_job(customer_dsx_text) -> JobInfo:
    """Parse the CustomerLoad sample (session-scoped for speed)."""
    return DSXParser(customer_dsx_text, source_name=CUSTOMER_DSX.name).parse()


def build_orders_job(name="OrdersCopy"):
    """A two-stage table-to-table job with one link carrying two columns."""
    return dsx_job(
        root_record(
            name,
            stages=[("V0S1", "Src_Orders"), ("V0S2", "Tgt_Orders")],
            links=[("Lnk_Orders", "V0S1P1", "V0S2")],
        ),
        stage("V0S1", "Src_Orders", "OracleConnectorPX", xml_properties(1, TableName="SALES.ORDERS")),
        output_pin(
            "V0S1P1",
            "Lnk_Orders",
            column("ORDER_ID", sql_type="4", nullable="0"),
            column("AMOUNT", sql_type="3", precision="10", scale="2"),
        ),
        stage("V0S2", "Tgt_Orders", "DB2ConnectorPX", xml_properties(2, TableName="DW.ORDERS", WriteMode="0")),
        identifier=name,
    )


@pytest.fixture
def orders_dsx_text() -> str:
    return build_orders_job()
