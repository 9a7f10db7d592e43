from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from textile.db import ensure_schema, q, x
from textile.models import QualityDetail, SizeQuantity
from textile.services.catalog import (
    ProductInput,
    PurchaseOrderInput,
    PurchaseOrderItem,
    create_product,
    create_purchase_order,
)
from textile.services.expenses import ExpenseInput, create_expense
from textile.services.production import (
    IsteachingChallanInput,
    classify_challan,
    create_isteaching_challan,
    create_shorting_entry,
)
from textile.services.vouchers import create_payment_voucher
from textile.services.weaver_challans import WeaverChallanInput, create_weaver_challan
from textile.utils import iso_now

logger = logging.getLogger(__name__)

# (ledger_id, business_name, contact, city, state)
DEFAULT_LEDGERS = [
    ("BNG-LGR-100001W01", "Shree Ganesh Weaving Mills", "Ramesh Patel", "Surat", "Gujarat"),
    ("BNG-LGR-100002W02", "Laxmi Tex Fab", "Suresh Shah", "Bhiwandi", "Maharashtra"),
    ("BNG-LGR-100003S01", "Sai Stitching House", "Anil Kumar", "Surat", "Gujarat"),
]
DEFAULT_PRODUCTS = [
    ("Cotton Kurti Set", "KRT-001", "Women", ["S", "M", "L", "XL"]),
    ("Rayon Night Suit", "NST-002", "Women", ["M", "L", "XL"]),
]
QUALITIES = ["Cotton 60x60", "Rayon 14kg", "Poly Crepe"]
TABLES = [
    "edit_logs",
    "purchase_orders",
    "payment_vouchers",
    "expenses",
    "isteaching_challan_batches",
    "isteaching_challans",
    "shorting_entries",
    "weaver_challans",
    "products",
    "ledgers",
]


def upsert_reference_data(conn) -> None:
    ensure_schema(conn)

    now = iso_now()
    for ledger_id, name, contact, city, state in DEFAULT_LEDGERS:
        x(
            conn,
            """
            INSERT OR IGNORE INTO ledgers (
                ledger_id, business_name, contact_person_name, city, state, country, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, 'India', ?, ?)
            """,
            (ledger_id, name, contact, city, state, now, now),
        )

    for name, sku, category, sizes in DEFAULT_PRODUCTS:
        if q(conn, "SELECT 1 FROM products WHERE product_sku=?", (sku,)):
            continue
        create_product(
            conn,
            ProductInput(
                product_name=name,
                product_sku=sku,
                product_category=category,
                sizes=[SizeQuantity(size=s, quantity=50) for s in sizes],
                product_material="Cotton",
                product_country="India",
            ),
        )


def wipe_all(conn) -> None:
    # Keep schema, delete data (children before parents).
    for t in TABLES:
        conn.execute(f"DELETE FROM {t};")
    conn.commit()
    logger.info("All data wiped")


def table_counts(conn) -> list[dict]:
    """Row count per table, parents first."""
    sql = " UNION ALL ".join(f"SELECT '{t}' AS table_name, COUNT(*) AS n FROM {t}" for t in reversed(TABLES))
    return [dict(r) for r in q(conn, sql)]


def load_demo_data(conn, *, seed: int = 7) -> None:
    random.seed(seed)
    upsert_reference_data(conn)

    weavers = [lid for lid, *_ in DEFAULT_LEDGERS[:2]]
    stitcher = DEFAULT_LEDGERS[2][0]
    product = q(conn, "SELECT * FROM products ORDER BY id LIMIT 1")[0]

    # Six receipts across the last few days
    base_date = date.today() - timedelta(days=10)
    receipts = []
    for i in range(6):
        on = (base_date + timedelta(days=i % 3)).isoformat()
        quality = QUALITIES[i % len(QUALITIES)]
        mtr = float(random.randint(400, 900))
        receipts.append(
            create_weaver_challan(
                conn,
                WeaverChallanInput(
                    challan_date=on,
                    ledger_id=random.choice(weavers),
                    quality_details=[QualityDetail(quality, mtr, round(random.uniform(38, 72), 2))],
                    taka=random.randint(4, 12),
                    transport_name="Local Transport",
                    transport_charge=float(random.choice([0, 250, 400])),
                    vendor_amount=round(mtr * 45, 2),
                    sgst="2.5%",
                    cgst="2.5%",
                ),
            )
        )

    for r in receipts[:5]:
        create_shorting_entry(
            conn,
            weaver_challan_id=r.id,
            shorting_qty=round(r.quantity * random.uniform(0.02, 0.08), 1),
            entry_date=(date.fromisoformat(r.challan_date) + timedelta(days=1)).isoformat(),
        )

    # Stitching from the shorted batches
    challan_ids = []
    for r in receipts[:4]:
        quality = r.quality_details[0].quality_name
        pcs = random.randint(80, 200)
        challan_ids.append(
            create_isteaching_challan(
                conn,
                IsteachingChallanInput(
                    date=(date.fromisoformat(r.challan_date) + timedelta(days=3)).isoformat(),
                    quality=quality,
                    batch_numbers=[r.batch_number],
                    quantity=pcs,
                    ledger_id=stitcher,
                    selected_product_id=int(product["id"]),
                    selected_sizes=[SizeQuantity("M", 20), SizeQuantity("L", 20)],
                    cloth_type=["TOP", "BOTTOM"],
                    top_qty=float(pcs),
                    top_pcs_qty=2.5,
                    bottom_qty=float(pcs),
                    bottom_pcs_qty=2.0,
                ),
            )
        )
        create_expense(
            conn,
            ExpenseInput(
                challan_no=r.batch_number,
                expense_for=["Stitching", "Washing"],
                amount_before_gst=float(random.randint(1500, 4000)),
                expense_date=r.challan_date,
                sgst="9%",
                cgst="9%",
            ),
        )

    for cid, tag in zip(challan_ids, ["good", "bad", "good"]):
        classify_challan(conn, cid, tag)

    for i, r in enumerate(receipts):
        create_payment_voucher(
            conn,
            date=(date.fromisoformat(r.challan_date) + timedelta(days=5)).isoformat(),
            ledger_id=r.ledger_id,
            payment_for="Payment against " + r.challan_no,
            payment_type="Debit",
            amount=round(r.vendor_amount * 0.5, 2),
        )
        if i % 2 == 0:
            create_payment_voucher(
                conn,
                date=(date.fromisoformat(r.challan_date) + timedelta(days=6)).isoformat(),
                ledger_id=r.ledger_id,
                payment_for="Rate difference",
                payment_type="Credit",
                amount=float(random.randint(200, 900)),
            )

    create_purchase_order(
        conn,
        PurchaseOrderInput(
            po_number=f"PO-{date.today():%Y%m%d}-001",
            po_date=date.today().isoformat(),
            supplier_name="Shree Ganesh Weaving Mills",
            ledger_id=weavers[0],
            items=[
                PurchaseOrderItem("Cotton 60x60 grey", 1000, 44.0),
                PurchaseOrderItem("Rayon 14kg grey", 600, 52.5),
            ],
            status="Sent",
        ),
    )
    logger.info("Demo data loaded (seed=%d)", seed)
