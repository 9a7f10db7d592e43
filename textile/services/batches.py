from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from textile.db import q
from textile.models import Expense, IsteachingChallan, ShortingEntry, WeaverChallan
from textile.services.expenses import expenses_for_batch
from textile.services.production import (
    isteaching_challans_for_batch,
    shorting_entries_for_batch,
    stitched_meterage,
)
from textile.utils import parse_date, safe_div, to_float, to_int, next_code

logger = logging.getLogger(__name__)

BATCH_PREFIX = "BN"


@dataclass(frozen=True)
class BatchReport:
    batch_number: str
    weaver_challan: WeaverChallan
    shorting_entries: tuple[ShortingEntry, ...]
    isteaching_challans: tuple[IsteachingChallan, ...]
    expenses: tuple[Expense, ...]

    total_shorting: float
    remaining_quantity: float
    total_stitching: int
    total_expenses: float

    good_count: int
    bad_count: int
    wastage_count: int
    shorting_count: int
    unclassified_count: int
    # None when there are no good pieces to spread the cost over
    manufacturing_cost_per_unit: Optional[float]

    total_top_qty: float
    total_bottom_qty: float
    total_top_pcs: float
    total_bottom_pcs: float
    avg_per_challan: float
    utilization_rate: float


def build_batch_report(
    receipt: Optional[WeaverChallan],
    shortings: Optional[Iterable[ShortingEntry]] = None,
    challans: Optional[Iterable[IsteachingChallan]] = None,
    expenses: Optional[Iterable[Expense]] = None,
) -> Optional[BatchReport]:
    """
    Reconcile one batch: received vs. shorted vs. stitched vs. classified,
    plus the manufacturing cost per good piece.

    Returns None when there is no receipt for the batch. Pure: all rows are
    passed in already fetched.
    """
    if receipt is None:
        return None

    shortings = tuple(shortings or ())
    challans = tuple(challans or ())
    expenses = tuple(expenses or ())

    received = to_float(receipt.quantity)
    total_shorting = sum(to_float(s.quantity) for s in shortings)
    total_stitching = sum(to_int(c.quantity) for c in challans)
    total_expenses = sum(to_float(e.amount) for e in expenses)

    by_class = {"good": 0, "bad": 0, "wastage": 0, "shorting": 0, "unclassified": 0}
    for c in challans:
        tag = c.inventory_classification if c.inventory_classification in by_class else "unclassified"
        by_class[tag] += to_int(c.quantity)

    good = by_class["good"]
    cost_per_unit = total_expenses / good if good > 0 else None

    top_qty = bottom_qty = 0.0
    for c in challans:
        t, b = stitched_meterage(c)
        top_qty += t
        bottom_qty += b
    # per-piece figures as recorded on each challan
    top_pcs = sum(to_float(c.top_pcs_qty) for c in challans)
    bottom_pcs = sum(to_float(c.bottom_pcs_qty) for c in challans)

    return BatchReport(
        batch_number=receipt.batch_number,
        weaver_challan=receipt,
        shorting_entries=shortings,
        isteaching_challans=challans,
        expenses=expenses,
        total_shorting=total_shorting,
        remaining_quantity=received - total_shorting,
        total_stitching=total_stitching,
        total_expenses=total_expenses,
        good_count=good,
        bad_count=by_class["bad"],
        wastage_count=by_class["wastage"],
        shorting_count=by_class["shorting"],
        unclassified_count=by_class["unclassified"],
        manufacturing_cost_per_unit=cost_per_unit,
        total_top_qty=top_qty,
        total_bottom_qty=bottom_qty,
        total_top_pcs=top_pcs,
        total_bottom_pcs=bottom_pcs,
        avg_per_challan=safe_div(total_stitching, len(challans)),
        utilization_rate=safe_div(total_stitching, received) * 100.0,
    )


def get_receipt_for_batch(conn, batch_number: str) -> Optional[WeaverChallan]:
    rows = q(conn, "SELECT * FROM weaver_challans WHERE batch_number=?", (str(batch_number).strip(),))
    return WeaverChallan.from_row(rows[0]) if rows else None


def load_batch_history(conn, batch_number: str) -> Optional[BatchReport]:
    receipt = get_receipt_for_batch(conn, batch_number)
    if receipt is None:
        logger.info("No weaver challan for batch %s", batch_number)
        return None

    return build_batch_report(
        receipt,
        shorting_entries_for_batch(conn, receipt.batch_number),
        isteaching_challans_for_batch(conn, receipt.batch_number),
        expenses_for_batch(conn, receipt.batch_number),
    )


def next_batch_number(conn, on_date) -> str:
    """
    Batch numbers are BN{YYYYMMDD}{NNN}, counting per receipt date:
      BN20250101001, BN20250101002, ...
    """
    prefix = f"{BATCH_PREFIX}{parse_date(on_date).strftime('%Y%m%d')}"
    r = q(
        conn,
        "SELECT batch_number FROM weaver_challans WHERE batch_number LIKE ? ORDER BY LENGTH(batch_number) DESC, batch_number DESC LIMIT 1",
        (prefix + "%",),
    )
    return next_code(prefix, r[0]["batch_number"] if r else None)


def list_batches(conn):
    return q(
        conn,
        """
        WITH sh AS (
          SELECT weaver_challan_id, COALESCE(SUM(shorting_qty),0) AS shorting
          FROM shorting_entries
          GROUP BY weaver_challan_id
        ),
        st AS (
          SELECT icb.batch_number, COALESCE(SUM(ic.quantity),0) AS stitched
          FROM isteaching_challan_batches icb
          JOIN isteaching_challans ic ON ic.id = icb.challan_id
          GROUP BY icb.batch_number
        )
        SELECT
          w.batch_number,
          w.challan_date,
          w.ms_party_name AS party,
          ROUND(w.total_grey_mtr, 2) AS received_mtr,
          ROUND(COALESCE(sh.shorting,0), 2) AS shorting_mtr,
          ROUND(w.total_grey_mtr - COALESCE(sh.shorting,0), 2) AS remaining_mtr,
          COALESCE(st.stitched,0) AS stitched_pcs
        FROM weaver_challans w
        LEFT JOIN sh ON sh.weaver_challan_id = w.id
        LEFT JOIN st ON st.batch_number = w.batch_number
        ORDER BY w.challan_date DESC, w.id DESC
        """,
    )
