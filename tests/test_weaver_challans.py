"""
Tests for weaver challan (grey cloth receipt) booking
"""

import pytest

from textile.models import QualityDetail
from textile.services.audit import edit_history
from textile.services.weaver_challans import (
    WeaverChallanInput,
    create_weaver_challan,
    list_weaver_challans,
    update_weaver_challan,
    vendor_bill,
)


def _input(owner, **kw):
    data = dict(
        challan_date="2025-01-01",
        ledger_id=owner,
        quality_details=[QualityDetail("Cotton 60x60", 300.0, 40.0), QualityDetail("Rayon", 120.0, 55.0)],
    )
    data.update(kw)
    return WeaverChallanInput(**data)


class TestCreateWeaverChallan:
    def test_numbers_party_and_total(self, conn, weaver):
        wc = create_weaver_challan(conn, _input(weaver))
        assert wc.batch_number == "BN20250101001"
        assert wc.challan_no == "BNG-CH-20250101-001"
        assert wc.ms_party_name == "Shree Ganesh Weaving"
        assert wc.quantity == 420.0
        assert [d.quality_name for d in wc.quality_details] == ["Cotton 60x60", "Rayon"]

    def test_sequences_restart_each_day(self, conn, weaver):
        create_weaver_challan(conn, _input(weaver))
        second = create_weaver_challan(conn, _input(weaver))
        next_day = create_weaver_challan(conn, _input(weaver, challan_date="2025-01-02"))
        assert (second.batch_number, second.challan_no) == ("BN20250101002", "BNG-CH-20250101-002")
        assert (next_day.batch_number, next_day.challan_no) == ("BN20250102001", "BNG-CH-20250102-001")

    def test_explicit_total(self, conn, weaver):
        assert create_weaver_challan(conn, _input(weaver, total_grey_mtr=410)).quantity == 410.0

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"ledger_id": "NOPE"}, "ledger"),
            ({"quality_details": []}, "quality line"),
            ({"total_grey_mtr": 0}, "greater than 0"),
            ({"taka": 0}, "Taka"),
            ({"transport_charge": -5}, "Transport charge"),
            ({"igst": "20%"}, "IGST"),
            ({"challan_date": "yesterday"}, "date"),
        ],
    )
    def test_validation(self, conn, weaver, kwargs, message):
        with pytest.raises(ValueError, match=message):
            create_weaver_challan(conn, _input(weaver, **kwargs))

    def test_vendor_bill(self, receipt):
        bill = vendor_bill(receipt)
        assert bill["total_gst"] == pytest.approx(180.0)
        assert bill["total_amount"] == pytest.approx(1180.0)


class TestUpdateWeaverChallan:
    def test_update_logs_changes(self, conn, receipt):
        changes = update_weaver_challan(conn, receipt.id, transport_charge=150, sgst="6%")
        assert changes["transport_charge"] == {"old": 100.0, "new": 150.0}
        assert changes["sgst"] == {"old": "9%", "new": "6%"}
        assert len(edit_history(conn, "weaver_challan", receipt.id)) == 1

    @pytest.mark.parametrize("field", ["batch_number", "challan_no"])
    def test_numbers_are_immutable(self, conn, receipt, field):
        with pytest.raises(ValueError, match="cannot be edited"):
            update_weaver_challan(conn, receipt.id, **{field: "X"})

    def test_list_by_ledger(self, conn, receipt, stitcher):
        assert len(list_weaver_challans(conn)) == 1
        assert list_weaver_challans(conn, ledger_id=stitcher) == []
