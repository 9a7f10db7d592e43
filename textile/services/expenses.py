from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from textile.db import q, x
from textile.models import Expense
from textile.utils import (
    NOT_APPLICABLE,
    clean_text,
    dump_json,
    gst_amount,
    iso_now,
    iso_today,
    validate_gst_rate,
)

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES = (
    "Transport", "Washing", "Iron", "Stitching", "Packing", "Printing",
    "Dyeing", "Embroidery", "Labeling", "Trimming", "Thread / Accessories",
    "Finishing / Touch Up", "Packaging Material", "Barcode / Tag Printing",
    "Fusing / Interlining", "Other",
)


@dataclass
class ExpenseInput:
    challan_no: str
    expense_for: list[str]
    amount_before_gst: float
    expense_date: str = field(default_factory=iso_today)
    sgst: str = NOT_APPLICABLE
    cgst: str = NOT_APPLICABLE
    igst: str = NOT_APPLICABLE
    other_expense_description: Optional[str] = None
    manual_ledger_id: Optional[str] = None


def gst_breakdown(amount: float, sgst: Optional[str], cgst: Optional[str], igst: Optional[str]) -> dict:
    base = float(amount or 0)
    s = gst_amount(sgst, base)
    c = gst_amount(cgst, base)
    i = gst_amount(igst, base)
    return {
        "base_amount": base,
        "sgst_amount": s,
        "cgst_amount": c,
        "igst_amount": i,
        "total_gst": s + c + i,
        "total_amount": base + s + c + i,
    }


def ledger_for_challan(conn, challan_no: str) -> Optional[str]:
    """Ledger behind a stitching challan number or a batch number, if any."""
    r = q(conn, "SELECT ledger_id FROM isteaching_challans WHERE challan_no=?", (challan_no,))
    if r and r[0]["ledger_id"]:
        return str(r[0]["ledger_id"])
    r = q(conn, "SELECT ledger_id FROM weaver_challans WHERE batch_number=?", (challan_no,))
    if r and r[0]["ledger_id"]:
        return str(r[0]["ledger_id"])
    return None


def create_expense(conn, data: ExpenseInput) -> int:
    challan_no = (data.challan_no or "").strip()
    if not challan_no:
        raise ValueError("Challan/Batch Number is required.")

    categories = [c for c in data.expense_for if c]
    if not categories:
        raise ValueError("At least one expense category is required.")
    bad = [c for c in categories if c not in EXPENSE_CATEGORIES]
    if bad:
        raise ValueError(f"Unknown expense category: {', '.join(bad)}.")
    other = clean_text(data.other_expense_description)
    if "Other" in categories and not other:
        raise ValueError("Describe the expense when 'Other' is selected.")

    try:
        amount = float(data.amount_before_gst)
    except (TypeError, ValueError):
        raise ValueError("Amount must be a number.")
    if amount <= 0:
        raise ValueError("Amount must be greater than 0.")

    sgst = validate_gst_rate(data.sgst, "SGST")
    cgst = validate_gst_rate(data.cgst, "CGST")
    igst = validate_gst_rate(data.igst, "IGST")
    total = gst_breakdown(amount, sgst, cgst, igst)["total_amount"]

    manual = clean_text(data.manual_ledger_id)
    ledger_id = manual or ledger_for_challan(conn, challan_no)

    expense_id = x(
        conn,
        """
        INSERT INTO expenses (
            expense_date, challan_no, ledger_id, manual_ledger_id, expense_for,
            other_expense_description, amount_before_gst, sgst, cgst, igst, cost, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            str(data.expense_date),
            challan_no,
            ledger_id,
            manual,
            dump_json(categories),
            other,
            amount,
            sgst,
            cgst,
            igst,
            float(total),
            iso_now(),
        ),
    )
    logger.info("Expense %.2f recorded against %s", total, challan_no)
    return expense_id


def list_expenses(conn, search: str = ""):
    s = f"%{search.strip()}%"
    return q(
        conn,
        """
        SELECT e.*, l.business_name
        FROM expenses e
        LEFT JOIN ledgers l ON l.ledger_id = e.ledger_id
        WHERE e.challan_no LIKE ? OR e.expense_for LIKE ? OR COALESCE(l.business_name,'') LIKE ?
        ORDER BY e.expense_date DESC, e.id DESC
        """,
        (s, s, s),
    )


def expenses_for_batch(conn, batch_number: str) -> list[Expense]:
    """Expenses booked against the batch number or any stitching challan drawn from it."""
    rows = q(
        conn,
        """
        SELECT e.* FROM expenses e
        WHERE e.challan_no = ?
           OR e.challan_no IN (
                SELECT ic.challan_no
                FROM isteaching_challans ic
                JOIN isteaching_challan_batches icb ON icb.challan_id = ic.id
                WHERE icb.batch_number = ?
           )
        ORDER BY e.expense_date, e.id
        """,
        (batch_number, batch_number),
    )
    return [Expense.from_row(r) for r in rows]
