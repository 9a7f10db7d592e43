from __future__ import annotations

import logging
from typing import Optional

from textile.db import q, x
from textile.models import PAYMENT_TYPES, EditLogEntry, PaymentVoucher
from textile.services.audit import edit_history, record_changes
from textile.utils import clean_text, iso_now, parse_date

logger = logging.getLogger(__name__)

ENTITY = "payment_voucher"


def _validate(date, ledger_id, payment_for, payment_type, amount) -> dict:
    try:
        d = parse_date(date).isoformat()
    except ValueError:
        raise ValueError("Date must be a valid date (YYYY-MM-DD).")
    purpose = clean_text(payment_for)
    if not purpose:
        raise ValueError("Payment for is required.")
    if payment_type not in PAYMENT_TYPES:
        raise ValueError("Payment type must be Credit or Debit.")
    try:
        amt = float(amount)
    except (TypeError, ValueError):
        raise ValueError("Amount must be a number.")
    if amt <= 0:
        raise ValueError("Amount must be greater than 0.")
    return {
        "date": d,
        "ledger_id": clean_text(ledger_id),
        "payment_for": purpose,
        "payment_type": payment_type,
        "amount": amt,
    }


def create_payment_voucher(
    conn,
    *,
    date,
    ledger_id: Optional[str],
    payment_for: str,
    payment_type: str,
    amount: float,
) -> int:
    v = _validate(date, ledger_id, payment_for, payment_type, amount)
    if v["ledger_id"] and not q(conn, "SELECT 1 FROM ledgers WHERE ledger_id=?", (v["ledger_id"],)):
        raise ValueError("Ledger not found.")
    now = iso_now()
    voucher_id = x(
        conn,
        """
        INSERT INTO payment_vouchers (date, ledger_id, payment_for, payment_type, amount, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (v["date"], v["ledger_id"], v["payment_for"], v["payment_type"], v["amount"], now, now),
    )
    logger.info("%s voucher %d: %.2f for %s", payment_type, voucher_id, v["amount"], v["payment_for"])
    return voucher_id


def get_payment_voucher(conn, voucher_id: int) -> Optional[PaymentVoucher]:
    rows = q(conn, "SELECT * FROM payment_vouchers WHERE id=?", (int(voucher_id),))
    return PaymentVoucher.from_row(rows[0]) if rows else None


def update_payment_voucher(
    conn,
    voucher_id: int,
    *,
    date,
    ledger_id: Optional[str],
    payment_for: str,
    payment_type: str,
    amount: float,
) -> dict:
    rows = q(conn, "SELECT * FROM payment_vouchers WHERE id=?", (int(voucher_id),))
    if not rows:
        raise ValueError("Payment voucher not found.")
    v = _validate(date, ledger_id, payment_for, payment_type, amount)
    x(
        conn,
        """
        UPDATE payment_vouchers
        SET date=?, ledger_id=?, payment_for=?, payment_type=?, amount=?, updated_at=?
        WHERE id=?
        """,
        (v["date"], v["ledger_id"], v["payment_for"], v["payment_type"], v["amount"], iso_now(), int(voucher_id)),
    )
    return record_changes(conn, ENTITY, voucher_id, rows[0], v)


def delete_payment_voucher(conn, voucher_id: int) -> None:
    if get_payment_voucher(conn, voucher_id) is None:
        raise ValueError("Payment voucher not found.")
    x(conn, "DELETE FROM payment_vouchers WHERE id=?", (int(voucher_id),))
    logger.info("Payment voucher %s deleted", voucher_id)


def list_payment_vouchers(conn, search: str = "", payment_type: Optional[str] = None):
    s = f"%{search.strip()}%"
    sql = """
        SELECT v.*, l.business_name
        FROM payment_vouchers v
        LEFT JOIN ledgers l ON l.ledger_id = v.ledger_id
        WHERE (v.payment_for LIKE ? OR COALESCE(l.business_name,'') LIKE ? OR COALESCE(v.ledger_id,'') LIKE ?)
    """
    params: list = [s, s, s]
    if payment_type and payment_type != "All":
        sql += " AND v.payment_type=?"
        params.append(payment_type)
    sql += " ORDER BY v.date DESC, v.id DESC"
    return q(conn, sql, params)


def voucher_history(conn, voucher_id: int) -> list[EditLogEntry]:
    return edit_history(conn, ENTITY, voucher_id)
