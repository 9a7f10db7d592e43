from __future__ import annotations

import logging
import random
import re
import string
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

from textile.db import q, x
from textile.models import CREDIT, DEBIT, Ledger, PaymentVoucher, WeaverChallan
from textile.services.audit import record_changes
from textile.utils import clean_text, gst_amount, iso_now, parse_date, to_float

logger = logging.getLogger(__name__)

LEDGER_ID_PREFIX = "BNG-LGR-"
RECEIPT_DETAIL = "Weaver Challan"

_MOBILE_RE = re.compile(r"^\d{10}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_GST_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


# -------------------------
# Statement engine
# -------------------------

@dataclass(frozen=True)
class StatementLine:
    date: str
    detail: str
    remark: str
    credit: float
    debit: float
    balance: float = 0.0


@dataclass(frozen=True)
class StatementSummary:
    total_credit: float = 0.0
    total_debit: float = 0.0
    balance: float = 0.0


@dataclass(frozen=True)
class LedgerStatement:
    lines: tuple[StatementLine, ...]  # most recent first
    summary: StatementSummary
    ledger: Optional[Ledger] = None


def receipt_credit(receipt: WeaverChallan) -> float:
    """transport charge + vendor amount + SGST + CGST + IGST on the vendor amount."""
    base = to_float(receipt.vendor_amount)
    with_gst = (
        base
        + gst_amount(receipt.sgst, base)
        + gst_amount(receipt.cgst, base)
        + gst_amount(receipt.igst, base)
    )
    return to_float(receipt.transport_charge) + with_gst


def _date_key(value) -> datetime:
    try:
        return datetime.fromisoformat(str(value).strip()).replace(tzinfo=None)
    except ValueError:
        d = parse_date(value)
        return datetime(d.year, d.month, d.day)


def voucher_references(vouchers: Iterable[PaymentVoucher]) -> list[str]:
    """
    VCH-{C|D}-{YYYY}{MM}-{NNN} per voucher, in input order.

    NNN comes from two counters (Credit, Debit) run over the vouchers in date
    order, so numbering is fixed by the ledger's full voucher set.
    """
    vouchers = list(vouchers)
    order = sorted(range(len(vouchers)), key=lambda i: _date_key(vouchers[i].date))
    seq: dict[int, int] = {}
    counters = {CREDIT: 0, DEBIT: 0}
    for i in order:
        kind = CREDIT if vouchers[i].payment_type == CREDIT else DEBIT
        counters[kind] += 1
        seq[i] = counters[kind]

    refs = []
    for i, v in enumerate(vouchers):
        d = parse_date(v.date)
        letter = "C" if v.payment_type == CREDIT else "D"
        refs.append(f"VCH-{letter}-{d.year}{d.month:02d}-{seq[i]:03d}")
    return refs


def build_ledger_statement(
    receipts: Iterable[WeaverChallan],
    vouchers: Iterable[PaymentVoucher],
    ledger: Optional[Ledger] = None,
) -> LedgerStatement:
    receipts = list(receipts or ())
    vouchers = list(vouchers or ())

    receipt_lines = [
        StatementLine(
            date=r.challan_date,
            detail=RECEIPT_DETAIL,
            remark=r.challan_no,
            credit=receipt_credit(r),
            debit=0.0,
        )
        for r in receipts
    ]
    voucher_lines = [
        StatementLine(
            date=v.date,
            detail=v.payment_for,
            remark=ref,
            credit=to_float(v.amount) if v.payment_type == CREDIT else 0.0,
            debit=to_float(v.amount) if v.payment_type == DEBIT else 0.0,
        )
        for v, ref in zip(vouchers, voucher_references(vouchers))
    ]

    # Receipts first, then vouchers: same-day ties keep that order (sorted() is stable).
    chronological = sorted(receipt_lines + voucher_lines, key=lambda ln: _date_key(ln.date))

    running = 0.0
    with_balance = []
    for ln in chronological:
        running += ln.credit - ln.debit
        with_balance.append(StatementLine(**{**asdict(ln), "balance": running}))
    with_balance.reverse()

    total_credit = sum(ln.credit for ln in receipt_lines) + sum(ln.credit for ln in voucher_lines)
    total_debit = sum(ln.debit for ln in voucher_lines)
    # the last running balance; equals total_credit - total_debit up to float rounding
    summary = StatementSummary(
        total_credit=total_credit,
        total_debit=total_debit,
        balance=running,
    )
    return LedgerStatement(lines=tuple(with_balance), summary=summary, ledger=ledger)


def load_ledger_statement(conn, ledger_id: str) -> Optional[LedgerStatement]:
    ledger = get_ledger(conn, ledger_id)
    if ledger is None:
        logger.info("Ledger %s not found", ledger_id)
        return None
    receipts = [
        WeaverChallan.from_row(r)
        for r in q(conn, "SELECT * FROM weaver_challans WHERE ledger_id=? ORDER BY id", (ledger.ledger_id,))
    ]
    vouchers = [
        PaymentVoucher.from_row(r)
        for r in q(conn, "SELECT * FROM payment_vouchers WHERE ledger_id=? ORDER BY id", (ledger.ledger_id,))
    ]
    return build_ledger_statement(receipts, vouchers, ledger)


def statement_frame(statement: LedgerStatement) -> pd.DataFrame:
    """Passbook table, 2-decimal rounded for display/CSV."""
    df = pd.DataFrame(
        [asdict(ln) for ln in statement.lines],
        columns=["date", "detail", "remark", "credit", "debit", "balance"],
    )
    df.insert(0, "s_no", range(1, len(df) + 1))
    for col in ("credit", "debit", "balance"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).round(2)
    return df.rename(
        columns={
            "s_no": "S.No",
            "date": "Date",
            "detail": "Detail",
            "remark": "Remark",
            "credit": "Credit",
            "debit": "Debit",
            "balance": "Balance",
        }
    )


# -------------------------
# Ledger directory
# -------------------------

@dataclass
class LedgerInput:
    business_name: str
    contact_person_name: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = "India"
    zip_code: Optional[str] = None
    gst_number: Optional[str] = None


def generate_ledger_id() -> str:
    stamp = str(int(time.time() * 1000))[-6:]
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=3))
    return f"{LEDGER_ID_PREFIX}{stamp}{suffix}"


def _clean_ledger(data: LedgerInput) -> dict:
    name = clean_text(data.business_name)
    if not name:
        raise ValueError("Business name is required.")

    mobile = clean_text(data.mobile_number)
    if mobile and not _MOBILE_RE.match(mobile):
        raise ValueError("Mobile number must be 10 digits.")
    email = clean_text(data.email)
    if email and not _EMAIL_RE.match(email):
        raise ValueError("Invalid email.")
    gst = clean_text(data.gst_number)
    if gst:
        gst = gst.upper()
        if not _GST_RE.match(gst):
            raise ValueError("Invalid GST number format.")

    return {
        "business_name": name,
        "contact_person_name": clean_text(data.contact_person_name),
        "mobile_number": mobile,
        "email": email,
        "address": clean_text(data.address),
        "city": clean_text(data.city),
        "district": clean_text(data.district),
        "state": clean_text(data.state),
        "country": clean_text(data.country),
        "zip_code": clean_text(data.zip_code),
        "gst_number": gst,
    }


def create_ledger(conn, data: LedgerInput, *, ledger_id: Optional[str] = None) -> str:
    fields = _clean_ledger(data)
    ledger_id = ledger_id or generate_ledger_id()
    if get_ledger(conn, ledger_id) is not None:
        raise ValueError(f"Ledger {ledger_id} already exists.")

    now = iso_now()
    cols = ", ".join(fields)
    marks = ", ".join("?" for _ in fields)
    x(
        conn,
        f"INSERT INTO ledgers (ledger_id, {cols}, created_at, updated_at) VALUES (?, {marks}, ?, ?)",
        (ledger_id, *fields.values(), now, now),
    )
    logger.info("Ledger %s created for %s", ledger_id, fields["business_name"])
    return ledger_id


def update_ledger(conn, ledger_id: str, data: LedgerInput) -> dict:
    rows = q(conn, "SELECT * FROM ledgers WHERE ledger_id=?", (ledger_id,))
    if not rows:
        raise ValueError("Ledger not found.")
    fields = _clean_ledger(data)
    sets = ", ".join(f"{k}=?" for k in fields)
    x(conn, f"UPDATE ledgers SET {sets}, updated_at=? WHERE ledger_id=?", (*fields.values(), iso_now(), ledger_id))
    return record_changes(conn, "ledger", ledger_id, rows[0], fields)


def get_ledger(conn, ledger_id: str) -> Optional[Ledger]:
    rows = q(conn, "SELECT * FROM ledgers WHERE ledger_id=?", (str(ledger_id).strip(),))
    return Ledger.from_row(rows[0]) if rows else None


def list_ledgers(conn, search: str = "") -> list[Ledger]:
    s = f"%{search.strip()}%"
    rows = q(
        conn,
        """
        SELECT * FROM ledgers
        WHERE business_name LIKE ? OR COALESCE(contact_person_name,'') LIKE ?
           OR COALESCE(city,'') LIKE ? OR ledger_id LIKE ?
        ORDER BY business_name
        """,
        (s, s, s, s),
    )
    return [Ledger.from_row(r) for r in rows]


def delete_ledger(conn, ledger_id: str) -> None:
    if get_ledger(conn, ledger_id) is None:
        raise ValueError("Ledger not found.")
    used = q(
        conn,
        """
        SELECT (SELECT COUNT(1) FROM weaver_challans WHERE ledger_id=?)
             + (SELECT COUNT(1) FROM payment_vouchers WHERE ledger_id=?) AS n
        """,
        (ledger_id, ledger_id),
    )[0]
    if int(used["n"]) > 0:
        raise ValueError("Ledger has challans or payment vouchers and cannot be deleted.")
    x(conn, "DELETE FROM ledgers WHERE ledger_id=?", (ledger_id,))
    logger.info("Ledger %s deleted", ledger_id)
