from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from textile.db import q, x
from textile.models import (
    CLASSIFICATIONS,
    IsteachingChallan,
    ShortingEntry,
    SizeQuantity,
    WeaverChallan,
    parse_sizes,
)
from textile.services.audit import record_changes
from textile.utils import clean_text, dump_json, iso_now, iso_today, next_code, parse_date, to_float

logger = logging.getLogger(__name__)

STITCHING_CHALLAN_PREFIX = "SVH-CH-"


# -------------------------
# Piece / meterage arithmetic
# -------------------------

def stitched_meterage(c: IsteachingChallan) -> tuple[float, float]:
    """(top, bottom) metres: the both_* fields when "both" is set, else top/bottom."""
    if c.both_selected:
        return to_float(c.both_top_qty), to_float(c.both_bottom_qty)
    return to_float(c.top_qty), to_float(c.bottom_qty)


def _floor_div(n: Optional[float], d: Optional[float]) -> int:
    n, d = to_float(n), to_float(d)
    if n <= 0 or d <= 0:
        return 0
    return int(math.floor(n / d))


def pieces_created(c: IsteachingChallan) -> tuple[int, int]:
    """
    (top, bottom) pieces cut from a challan.

    Separate: top_qty / top_pcs_qty and bottom_qty / bottom_pcs_qty, floored.
    Both (top + bottom sets): those two counts are added, divided by the
    combined per-set metres (both_top_qty + both_bottom_qty) and halved, floored;
    each side gets that many.
    """
    top = _floor_div(c.top_qty, c.top_pcs_qty)
    bottom = _floor_div(c.bottom_qty, c.bottom_pcs_qty)
    if not c.both_selected:
        return top, bottom
    per_set = to_float(c.both_top_qty) + to_float(c.both_bottom_qty)
    if top + bottom <= 0 or per_set <= 0:
        return 0, 0
    each = int(math.floor((top + bottom) / per_set / 2))
    return each, each


# -------------------------
# Shorting
# -------------------------

_SHORTING_SELECT = """
    SELECT s.*, w.batch_number, w.challan_no AS weaver_challan_no
    FROM shorting_entries s
    JOIN weaver_challans w ON w.id = s.weaver_challan_id
"""


def shorting_entries_for_batch(conn, batch_number: str) -> list[ShortingEntry]:
    rows = q(conn, _SHORTING_SELECT + " WHERE w.batch_number=? ORDER BY s.entry_date, s.id", (batch_number,))
    return [ShortingEntry.from_row(r) for r in rows]


def list_shorting_entries(conn):
    return q(conn, _SHORTING_SELECT + " ORDER BY s.id DESC")


def challans_available_for_shorting(conn, ledger_id: str) -> list[WeaverChallan]:
    # A weaver challan takes at most one shorting entry.
    rows = q(
        conn,
        """
        SELECT w.* FROM weaver_challans w
        WHERE w.ledger_id=?
          AND NOT EXISTS (SELECT 1 FROM shorting_entries s WHERE s.weaver_challan_id = w.id)
        ORDER BY w.challan_date DESC, w.id DESC
        """,
        (ledger_id,),
    )
    return [WeaverChallan.from_row(r) for r in rows]


def shorting_basis(challan: WeaverChallan) -> tuple[str, float]:
    """Quality name and quantity a shorting entry is measured against (first quality line)."""
    if challan.quality_details:
        first = challan.quality_details[0]
        return first.quality_name, float(first.quantity)
    return "", float(challan.quantity)


def create_shorting_entry(
    conn,
    *,
    weaver_challan_id: int,
    shorting_qty: float,
    entry_date: Optional[str] = None,
    ledger_id: Optional[str] = None,
) -> int:
    rows = q(conn, "SELECT * FROM weaver_challans WHERE id=?", (int(weaver_challan_id),))
    if not rows:
        raise ValueError("Weaver challan not found.")
    challan = WeaverChallan.from_row(rows[0])

    used = q(conn, "SELECT 1 FROM shorting_entries WHERE weaver_challan_id=?", (challan.id,))
    if used:
        raise ValueError(f"Weaver challan {challan.challan_no} already has a shorting entry.")

    try:
        qty = float(shorting_qty)
    except (TypeError, ValueError):
        raise ValueError("Shorting quantity must be a number.")
    if qty <= 0:
        raise ValueError("Shorting quantity must be greater than 0.")

    quality_name, available = shorting_basis(challan)
    if qty >= available:
        raise ValueError(f"Shorting quantity must be less than the available quantity of {available:g}.")

    entry_id = x(
        conn,
        """
        INSERT INTO shorting_entries (
            entry_date, ledger_id, weaver_challan_id, quality_name,
            shorting_qty, weaver_challan_qty, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            entry_date or iso_today(),
            ledger_id or challan.ledger_id,
            challan.id,
            quality_name or "Unspecified",
            qty,
            available,
            iso_now(),
        ),
    )
    logger.info("Shorting %.2f m recorded for batch %s", qty, challan.batch_number)
    return entry_id


def available_quantity_for_quality(conn, quality: str) -> float:
    """
    Metres of a quality still free for stitching:
      Σ weaver_challan_qty − Σ shorting_qty − Σ stitched quantity
    """
    sh = q(
        conn,
        """
        SELECT COALESCE(SUM(weaver_challan_qty),0) AS received,
               COALESCE(SUM(shorting_qty),0) AS shorted
        FROM shorting_entries WHERE quality_name=?
        """,
        (quality,),
    )[0]
    st = q(conn, "SELECT COALESCE(SUM(quantity),0) AS used FROM isteaching_challans WHERE quality=?", (quality,))[0]
    return float(sh["received"]) - float(sh["shorted"]) - float(st["used"])


def batches_for_quality(conn, quality: str) -> list[dict]:
    rows = q(conn, _SHORTING_SELECT + " WHERE s.quality_name=? ORDER BY w.batch_number", (quality,))
    return [
        {
            "batch_number": str(r["batch_number"]),
            "available_qty": float(r["weaver_challan_qty"]) - float(r["shorting_qty"]),
        }
        for r in rows
    ]


def shorted_qualities(conn) -> list[str]:
    return [str(r["quality_name"]) for r in q(conn, "SELECT DISTINCT quality_name FROM shorting_entries ORDER BY 1")]


# -------------------------
# Stitching (isteaching) challans
# -------------------------

@dataclass
class IsteachingChallanInput:
    date: str
    quality: str
    batch_numbers: list[str]
    quantity: int
    ledger_id: Optional[str] = None
    selected_product_id: Optional[int] = None
    selected_sizes: list[SizeQuantity] = field(default_factory=list)
    transport_name: Optional[str] = None
    lr_number: Optional[str] = None
    transport_charge: Optional[float] = None
    cloth_type: list[str] = field(default_factory=list)
    top_qty: Optional[float] = None
    top_pcs_qty: Optional[float] = None
    bottom_qty: Optional[float] = None
    bottom_pcs_qty: Optional[float] = None
    both_selected: bool = False
    both_top_qty: Optional[float] = None
    both_bottom_qty: Optional[float] = None


def _batches_by_challan(conn, challan_ids: list[int]) -> dict[int, tuple[str, ...]]:
    if not challan_ids:
        return {}
    marks = ",".join("?" for _ in challan_ids)
    rows = q(
        conn,
        f"SELECT challan_id, batch_number FROM isteaching_challan_batches WHERE challan_id IN ({marks}) ORDER BY id",
        challan_ids,
    )
    out: dict[int, list[str]] = {}
    for r in rows:
        out.setdefault(int(r["challan_id"]), []).append(str(r["batch_number"]))
    return {k: tuple(v) for k, v in out.items()}


def _load_challans(conn, where: str = "", params: tuple = ()) -> list[IsteachingChallan]:
    rows = q(conn, f"SELECT ic.* FROM isteaching_challans ic {where}", params)
    links = _batches_by_challan(conn, [int(r["id"]) for r in rows])
    return [IsteachingChallan.from_row(r, links.get(int(r["id"]), ())) for r in rows]


def isteaching_challans_for_batch(conn, batch_number: str) -> list[IsteachingChallan]:
    return _load_challans(
        conn,
        """
        WHERE ic.id IN (SELECT challan_id FROM isteaching_challan_batches WHERE batch_number=?)
        ORDER BY ic.date, ic.id
        """,
        (batch_number,),
    )


def get_isteaching_challan(conn, challan_id: int) -> Optional[IsteachingChallan]:
    found = _load_challans(conn, "WHERE ic.id=?", (int(challan_id),))
    return found[0] if found else None


def list_isteaching_challans(conn, search: str = "") -> list[IsteachingChallan]:
    s = f"%{search.strip()}%"
    return _load_challans(
        conn,
        """
        WHERE ic.challan_no LIKE ? OR ic.quality LIKE ? OR COALESCE(ic.product_name,'') LIKE ?
        ORDER BY ic.id DESC
        """,
        (s, s, s),
    )


def inventory_by_classification(conn, classification: str) -> list[IsteachingChallan]:
    if classification not in CLASSIFICATIONS:
        raise ValueError(f"Unknown inventory classification: {classification}.")
    return _load_challans(
        conn,
        "WHERE COALESCE(ic.inventory_classification,'unclassified')=? ORDER BY ic.date DESC, ic.id DESC",
        (classification,),
    )


def next_isteaching_challan_no(conn, on_date) -> str:
    prefix = f"{STITCHING_CHALLAN_PREFIX}{parse_date(on_date).strftime('%Y%m%d')}-"
    r = q(
        conn,
        "SELECT challan_no FROM isteaching_challans WHERE challan_no LIKE ? ORDER BY LENGTH(challan_no) DESC, challan_no DESC LIMIT 1",
        (prefix + "%",),
    )
    return next_code(prefix, r[0]["challan_no"] if r else None)


def _validate_sizes(conn, product_id: Optional[int], sizes: list[SizeQuantity]) -> tuple[Optional[dict], list[SizeQuantity]]:
    if product_id is None:
        return None, []
    rows = q(conn, "SELECT * FROM products WHERE id=?", (int(product_id),))
    if not rows:
        raise ValueError("Selected product not found.")
    product = dict(rows[0])
    available = {s.size: s.quantity for s in parse_sizes(product.get("product_size"))}
    chosen = [s for s in sizes if s.quantity > 0]
    if available and chosen:
        total = sum(s.quantity for s in chosen)
        stock = sum(available.values())
        if total > stock:
            raise ValueError(f"Selected quantities ({total}) cannot exceed available stock ({stock}).")
        for s in chosen:
            if s.size in available and s.quantity > available[s.size]:
                raise ValueError(
                    f"Quantity for size {s.size} ({s.quantity}) cannot exceed available stock ({available[s.size]})."
                )
    return product, chosen


def create_isteaching_challan(conn, data: IsteachingChallanInput) -> int:
    quality = (data.quality or "").strip()
    if not quality:
        raise ValueError("Quality is required.")
    batch_numbers = [b.strip() for b in data.batch_numbers if b and b.strip()]
    if not batch_numbers:
        raise ValueError("At least one batch number is required.")
    if int(data.quantity) < 1:
        raise ValueError("Quantity must be at least 1.")

    available = available_quantity_for_quality(conn, quality)
    if data.quantity > available:
        raise ValueError(f"Quantity cannot exceed the available stock of {available:g}.")

    for label, v in (
        ("Transport charge", data.transport_charge),
        ("Top quantity", data.top_qty),
        ("Top 1pc quantity", data.top_pcs_qty),
        ("Bottom quantity", data.bottom_qty),
        ("Bottom 1pc quantity", data.bottom_pcs_qty),
        ("Both top quantity", data.both_top_qty),
        ("Both bottom quantity", data.both_bottom_qty),
    ):
        if v is not None and float(v) < 0:
            raise ValueError(f"{label} must be non-negative.")

    top_qty = data.top_qty
    if top_qty is not None and float(top_qty) > data.quantity:
        top_qty = float(data.quantity)

    product, sizes = _validate_sizes(conn, data.selected_product_id, data.selected_sizes)
    challan_no = next_isteaching_challan_no(conn, data.date)
    now = iso_now()

    challan_id = x(
        conn,
        """
        INSERT INTO isteaching_challans (
            date, challan_no, ledger_id, quality, quantity,
            selected_product_id, product_name, product_sku, product_size,
            transport_name, lr_number, transport_charge, cloth_type,
            top_qty, top_pcs_qty, bottom_qty, bottom_pcs_qty,
            both_selected, both_top_qty, both_bottom_qty,
            inventory_classification, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'unclassified', ?, ?)
        """,
        (
            str(data.date),
            challan_no,
            clean_text(data.ledger_id),
            quality,
            int(data.quantity),
            int(product["id"]) if product else None,
            product["product_name"] if product else None,
            product["product_sku"] if product else None,
            dump_json([{"size": s.size, "quantity": s.quantity} for s in sizes]) if sizes else None,
            clean_text(data.transport_name),
            clean_text(data.lr_number),
            float(data.transport_charge) if data.transport_charge else None,
            dump_json(list(data.cloth_type)) if data.cloth_type else None,
            top_qty,
            data.top_pcs_qty,
            data.bottom_qty,
            data.bottom_pcs_qty,
            1 if data.both_selected else 0,
            data.both_top_qty if data.both_selected else None,
            data.both_bottom_qty if data.both_selected else None,
            now,
            now,
        ),
    )
    for bn in dict.fromkeys(batch_numbers):
        x(conn, "INSERT INTO isteaching_challan_batches (challan_id, batch_number) VALUES (?, ?)", (challan_id, bn))

    logger.info("Stitching challan %s created: %d pcs from %s", challan_no, data.quantity, ", ".join(batch_numbers))
    return challan_id


_EDITABLE_CHALLAN_FIELDS = (
    "date", "transport_name", "lr_number", "transport_charge",
    "top_qty", "top_pcs_qty", "bottom_qty", "bottom_pcs_qty",
    "both_top_qty", "both_bottom_qty",
)
_NUMERIC_CHALLAN_FIELDS = set(_EDITABLE_CHALLAN_FIELDS) - {"date", "transport_name", "lr_number"}


def update_isteaching_challan(conn, challan_id: int, **changes) -> dict:
    rows = q(conn, "SELECT * FROM isteaching_challans WHERE id=?", (int(challan_id),))
    if not rows:
        raise ValueError("Stitching challan not found.")
    unknown = set(changes) - set(_EDITABLE_CHALLAN_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be edited: {', '.join(sorted(unknown))}.")
    for k, v in changes.items():
        if k in _NUMERIC_CHALLAN_FIELDS and v is not None and float(v) < 0:
            raise ValueError(f"{k} must be non-negative.")
    if not changes:
        return {}

    sets = ", ".join(f"{k}=?" for k in changes)
    x(
        conn,
        f"UPDATE isteaching_challans SET {sets}, updated_at=? WHERE id=?",
        (*changes.values(), iso_now(), int(challan_id)),
    )
    return record_changes(conn, "isteaching_challan", challan_id, rows[0], changes)


def classify_challan(conn, challan_id: int, classification: str) -> None:
    tag = str(classification).strip().lower()
    if tag not in CLASSIFICATIONS:
        raise ValueError(f"Classification must be one of: {', '.join(CLASSIFICATIONS)}.")
    rows = q(conn, "SELECT * FROM isteaching_challans WHERE id=?", (int(challan_id),))
    if not rows:
        raise ValueError("Stitching challan not found.")
    x(
        conn,
        "UPDATE isteaching_challans SET inventory_classification=?, updated_at=? WHERE id=?",
        (tag, iso_now(), int(challan_id)),
    )
    record_changes(conn, "isteaching_challan", challan_id, rows[0], {"inventory_classification": tag})
