"""
Tests for expense booking and GST arithmetic
"""

import pytest

from textile.services.expenses import ExpenseInput, create_expense, expenses_for_batch, gst_breakdown, list_expenses


class TestGstBreakdown:
    def test_split(self):
        bd = gst_breakdown(1000, "9%", "9%", "Not Applicable")
        assert bd["sgst_amount"] == pytest.approx(90.0)
        assert bd["cgst_amount"] == pytest.approx(90.0)
        assert bd["igst_amount"] == 0
        assert bd["total_gst"] == pytest.approx(180.0)
        assert bd["total_amount"] == pytest.approx(1180.0)

    def test_no_rates(self):
        assert gst_breakdown(250, None, None, None)["total_amount"] == 250


class TestCreateExpense:
    def test_cost_includes_gst_and_ledger_is_detected(self, conn, receipt):
        eid = create_expense(
            conn,
            ExpenseInput(
                challan_no=receipt.batch_number,
                expense_for=["Transport", "Washing"],
                amount_before_gst=1000,
                igst="18%",
            ),
        )
        row = conn.execute("SELECT * FROM expenses WHERE id=?", (eid,)).fetchone()
        assert row["cost"] == pytest.approx(1180.0)
        assert row["ledger_id"] == "L001"
        assert row["manual_ledger_id"] is None

    def test_manual_ledger_override(self, conn, receipt, stitcher):
        eid = create_expense(
            conn,
            ExpenseInput(
                challan_no=receipt.batch_number, expense_for=["Iron"], amount_before_gst=100, manual_ledger_id=stitcher
            ),
        )
        row = conn.execute("SELECT ledger_id FROM expenses WHERE id=?", (eid,)).fetchone()
        assert row["ledger_id"] == stitcher

    @pytest.mark.parametrize(
        "data, message",
        [
            (ExpenseInput(challan_no="", expense_for=["Iron"], amount_before_gst=10), "required"),
            (ExpenseInput(challan_no="BN1", expense_for=[], amount_before_gst=10), "category"),
            (ExpenseInput(challan_no="BN1", expense_for=["Catering"], amount_before_gst=10), "Unknown expense category"),
            (ExpenseInput(challan_no="BN1", expense_for=["Other"], amount_before_gst=10), "Other"),
            (ExpenseInput(challan_no="BN1", expense_for=["Iron"], amount_before_gst=0), "greater than 0"),
            (ExpenseInput(challan_no="BN1", expense_for=["Iron"], amount_before_gst=10, sgst="7%"), "SGST"),
        ],
    )
    def test_validation(self, conn, data, message):
        with pytest.raises(ValueError, match=message):
            create_expense(conn, data)

    def test_other_with_description(self, conn, receipt):
        create_expense(
            conn,
            ExpenseInput(
                challan_no=receipt.batch_number,
                expense_for=["Other"],
                amount_before_gst=75,
                other_expense_description="Courier",
            ),
        )
        [expense] = expenses_for_batch(conn, receipt.batch_number)
        assert expense.reason == "Other (Courier)"
        assert expense.amount == 75

    def test_search(self, conn, receipt):
        create_expense(conn, ExpenseInput(challan_no=receipt.batch_number, expense_for=["Dyeing"], amount_before_gst=10))
        assert len(list_expenses(conn, "Dyeing")) == 1
        assert list_expenses(conn, "Embroidery") == []
