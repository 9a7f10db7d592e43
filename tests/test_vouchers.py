"""
Tests for payment vouchers
"""

import pytest

from textile.services.vouchers import (
    create_payment_voucher,
    delete_payment_voucher,
    get_payment_voucher,
    list_payment_vouchers,
    update_payment_voucher,
    voucher_history,
)


@pytest.fixture
def voucher_id(conn, weaver):
    return create_payment_voucher(
        conn, date="2025-01-05", ledger_id=weaver, payment_for="Advance", payment_type="Debit", amount=500
    )


class TestPaymentVouchers:
    def test_create(self, conn, voucher_id):
        v = get_payment_voucher(conn, voucher_id)
        assert v.payment_type == "Debit"
        assert v.amount == 500
        assert v.ledger_id == "L001"

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"amount": 0}, "greater than 0"),
            ({"amount": "abc"}, "number"),
            ({"payment_type": "Refund"}, "Credit or Debit"),
            ({"payment_for": "  "}, "Payment for"),
            ({"date": "05/01/2025"}, "valid date"),
        ],
    )
    def test_validation(self, conn, weaver, kwargs, message):
        args = {"date": "2025-01-05", "ledger_id": weaver, "payment_for": "Advance", "payment_type": "Credit", "amount": 10}
        args.update(kwargs)
        with pytest.raises(ValueError, match=message):
            create_payment_voucher(conn, **args)

    def test_unknown_ledger(self, conn):
        with pytest.raises(ValueError, match="Ledger not found"):
            create_payment_voucher(
                conn, date="2025-01-05", ledger_id="NOPE", payment_for="X", payment_type="Credit", amount=1
            )

    def test_update_records_history(self, conn, weaver, voucher_id):
        changes = update_payment_voucher(
            conn, voucher_id, date="2025-01-05", ledger_id=weaver, payment_for="Advance", payment_type="Debit", amount=650
        )
        assert changes == {"amount": {"old": 500.0, "new": 650.0}}
        history = voucher_history(conn, voucher_id)
        assert len(history) == 1
        assert history[0].changes["amount"]["new"] == 650.0

    def test_unchanged_update_logs_nothing(self, conn, weaver, voucher_id):
        update_payment_voucher(
            conn, voucher_id, date="2025-01-05", ledger_id=weaver, payment_for="Advance", payment_type="Debit", amount=500
        )
        assert voucher_history(conn, voucher_id) == []

    def test_delete(self, conn, voucher_id):
        delete_payment_voucher(conn, voucher_id)
        assert get_payment_voucher(conn, voucher_id) is None
        with pytest.raises(ValueError, match="not found"):
            delete_payment_voucher(conn, voucher_id)

    def test_list_filters(self, conn, weaver, voucher_id):
        create_payment_voucher(conn, date="2025-01-06", ledger_id=weaver, payment_for="Rate diff", payment_type="Credit", amount=20)
        assert len(list_payment_vouchers(conn)) == 2
        assert [r["payment_for"] for r in list_payment_vouchers(conn, payment_type="Credit")] == ["Rate diff"]
        assert len(list_payment_vouchers(conn, "Shree")) == 2
