from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from textile.db import q, x
from textile.models import QualityDetail, WeaverChallan
from textile.services.audit import record_changes
from textile.services.batches import next_batch_number
from textile.services.expenses import gst_breakdown
from textile.services.ledgers import get_ledger
from textile.utils import (
    NOT_APPLICABLE,
    clean_text,
    dump_json,
    iso_now,
    next_code,
    parse_date,
    validate_gst_rate,
)

logger = logging.getLogger(__name__)

WEAVER_CHALLAN_PREFIX = "BNG-CH-"


@dataclass
class WeaverChallanInput:
    challan_date: str
    ledger_id: str
    quality_details: list[QualityDetail]
    total_grey_mtr: Optional[float] = None
    taka: int = 1
    taka_details: list[dict] = field(default_factory=list)
    delivery_at: Optional[str] = None
    bill_no: Optional[str] = None
    fold_cm: Optional[float] = None
    width_inch: Optional[float] = None
    transport_name: Optional[str] = None
    lr_number: Optional[str] = None
    transport_charge: Optional[float] = None
    vendor_ledger_id: Optional[str] = None
    vendor_invoice_number: Optional[str] = None
    vendor_amount: Optional[float] = None
    sgst: str = NOT_APPLICABLE
    cgst: str = NOT_APPLICABLE
    igst: str = NOT_APPLICABLE


def next_weaver_challan_no(conn, on_date) -> str:
    prefix = f"{WEAVER_CHALLAN_PREFIX}{parse_date(on_date).strftime('%Y%m%d')}-"
    r = q(
        conn,
        "SELECT challan_no FROM weaver_challans WHERE challan_no LIKE ? ORDER BY LENGTH(challan_no) DESC, challan_no DESC LIMIT 1",
        (prefix + "%",),
    )
    return next_code(prefix, r[0]["challan_no"] if r else None)


def _non_negative(label: str, v) -> Optional[float]:
    if v is None or v == "":
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number.")
    if f < 0:
        raise ValueError(f"{label} must be non-negative.")
    return f


def create_weaver_challan(conn, data: WeaverChallanInput) -> WeaverChallan:
    try:
        challan_date = parse_date(data.challan_date).isoformat()
    except ValueError:
        raise ValueError("Challan date must be a valid date (YYYY-MM-DD).")

    ledger = get_ledger(conn, data.ledger_id or "")
    if ledger is None:
        raise ValueError("Select an existing ledger.")

    qualities = [d for d in data.quality_details if d.quality_name and d.quality_name.strip()]
    if not qualities:
        raise ValueError("At least one quality line is required.")
    for d in qualities:
        if d.quantity < 0 or d.rate < 0:
            raise ValueError(f"Quality {d.quality_name}: quantity and rate must be non-negative.")

    total = data.total_grey_mtr
    if total is None or total == "":
        total = sum(d.quantity for d in qualities)
    total = float(total)
    if total <= 0:
        raise ValueError("Total grey metres must be greater than 0.")
    if int(data.taka) < 1:
        raise ValueError("Taka must be at least 1.")

    transport_charge = _non_negative("Transport charge", data.transport_charge)
    vendor_amount = _non_negative("Vendor amount", data.vendor_amount)
    fold_cm = _non_negative("Fold", data.fold_cm)
    width_inch = _non_negative("Width", data.width_inch)
    sgst = validate_gst_rate(data.sgst, "SGST")
    cgst = validate_gst_rate(data.cgst, "CGST")
    igst = validate_gst_rate(data.igst, "IGST")

    batch_number = next_batch_number(conn, challan_date)
    challan_no = next_weaver_challan_no(conn, challan_date)
    now = iso_now()

    challan_id = x(
        conn,
        """
        INSERT INTO weaver_challans (
            challan_date, batch_number, challan_no, ms_party_name, ledger_id,
            delivery_at, bill_no, total_grey_mtr, fold_cm, width_inch, taka, taka_details,
            transport_name, lr_number, transport_charge, quality_details,
            vendor_ledger_id, vendor_invoice_number, vendor_amount, sgst, cgst, igst,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            challan_date,
            batch_number,
            challan_no,
            ledger.business_name,
            ledger.ledger_id,
            clean_text(data.delivery_at),
            clean_text(data.bill_no),
            total,
            fold_cm,
            width_inch,
            int(data.taka),
            dump_json(list(data.taka_details)) if data.taka_details else None,
            clean_text(data.transport_name),
            clean_text(data.lr_number),
            transport_charge,
            dump_json([{"quality_name": d.quality_name.strip(), "quantity": d.quantity, "rate": d.rate} for d in qualities]),
            clean_text(data.vendor_ledger_id),
            clean_text(data.vendor_invoice_number),
            vendor_amount,
            sgst,
            cgst,
            igst,
            now,
            now,
        ),
    )
    logger.info("Weaver challan %s received: batch %s, %.2f m from %s", challan_no, batch_number, total, ledger.business_name)
    return get_weaver_challan(conn, challan_id)


def get_weaver_challan(conn, challan_id: int) -> Optional[WeaverChallan]:
    rows = q(conn, "SELECT * FROM weaver_challans WHERE id=?", (int(challan_id),))
    return WeaverChallan.from_row(rows[0]) if rows else None


def list_weaver_challans(conn, search: str = "", ledger_id: Optional[str] = None):
    s = f"%{search.strip()}%"
    sql = """
        SELECT * FROM weaver_challans
        WHERE (batch_number LIKE ? OR challan_no LIKE ? OR ms_party_name LIKE ?)
    """
    params: list = [s, s, s]
    if ledger_id:
        sql += " AND ledger_id=?"
        params.append(ledger_id)
    sql += " ORDER BY challan_date DESC, id DESC"
    return q(conn, sql, params)


_EDITABLE_FIELDS = (
    "challan_date", "delivery_at", "bill_no", "total_grey_mtr", "fold_cm", "width_inch", "taka",
    "transport_name", "lr_number", "transport_charge",
    "vendor_invoice_number", "vendor_amount", "sgst", "cgst", "igst",
)


def update_weaver_challan(conn, challan_id: int, **changes) -> dict:
    """Edit a receipt in place; batch number and challan number never change."""
    rows = q(conn, "SELECT * FROM weaver_challans WHERE id=?", (int(challan_id),))
    if not rows:
        raise ValueError("Weaver challan not found.")
    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}.")

    clean = dict(changes)
    if "challan_date" in clean:
        clean["challan_date"] = parse_date(clean["challan_date"]).isoformat()
    if "total_grey_mtr" in clean and float(clean["total_grey_mtr"] or 0) <= 0:
        raise ValueError("Total grey metres must be greater than 0.")
    if "taka" in clean and int(clean["taka"] or 0) < 1:
        raise ValueError("Taka must be at least 1.")
    for k, label in (
        ("transport_charge", "Transport charge"),
        ("vendor_amount", "Vendor amount"),
        ("fold_cm", "Fold"),
        ("width_inch", "Width"),
    ):
        if k in clean:
            clean[k] = _non_negative(label, clean[k])
    for k in ("sgst", "cgst", "igst"):
        if k in clean:
            clean[k] = validate_gst_rate(clean[k], k.upper())
    if not clean:
        return {}

    sets = ", ".join(f"{k}=?" for k in clean)
    x(
        conn,
        f"UPDATE weaver_challans SET {sets}, updated_at=? WHERE id=?",
        (*clean.values(), iso_now(), int(challan_id)),
    )
    return record_changes(conn, "weaver_challan", challan_id, rows[0], clean)


def vendor_bill(challan: WeaverChallan) -> dict:
    """Vendor amount with its SGST/CGST/IGST split, as credited to the ledger."""
    return gst_breakdown(challan.vendor_amount, challan.sgst, challan.cgst, challan.igst)
