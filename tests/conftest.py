"""
Shared fixtures: an in-memory SQLite store with the full schema applied,
plus a couple of ledgers and a receipt to build on.
"""

import pytest

from textile.db import connect, ensure_schema
from textile.models import QualityDetail
from textile.services.ledgers import LedgerInput, create_ledger
from textile.services.weaver_challans import WeaverChallanInput, create_weaver_challan


@pytest.fixture
def conn():
    c = connect(":memory:")
    ensure_schema(c)
    yield c
    c.close()


@pytest.fixture
def weaver(conn) -> str:
    return create_ledger(conn, LedgerInput(business_name="Shree Ganesh Weaving", city="Surat"), ledger_id="L001")


@pytest.fixture
def stitcher(conn) -> str:
    return create_ledger(conn, LedgerInput(business_name="Sai Stitching House"), ledger_id="L002")


@pytest.fixture
def receipt(conn, weaver):
    """500 m of Cotton 60x60, billed 1000 + 9% SGST + 9% CGST, transport 100."""
    return create_weaver_challan(
        conn,
        WeaverChallanInput(
            challan_date="2025-01-01",
            ledger_id=weaver,
            quality_details=[QualityDetail("Cotton 60x60", 500.0, 45.0)],
            taka=5,
            transport_charge=100.0,
            vendor_amount=1000.0,
            sgst="9%",
            cgst="9%",
        ),
    )
