from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from textile.db import q, x
from textile.models import SizeQuantity, parse_sizes
from textile.services.audit import record_changes
from textile.utils import clean_text, dump_json, iso_now, parse_date, parse_json_list, to_float

logger = logging.getLogger(__name__)

PRODUCT_STATUSES = ("Active", "Inactive")
PO_STATUSES = ("Draft", "Sent", "Confirmed", "Partial", "Completed", "Cancelled")


# -------------------------
# Products
# -------------------------

@dataclass
class ProductInput:
    product_name: str
    product_sku: str
    product_category: str
    product_sub_category: Optional[str] = None
    sizes: list[SizeQuantity] = field(default_factory=list)
    product_color: Optional[str] = None
    product_description: Optional[str] = None
    product_material: Optional[str] = None
    product_brand: Optional[str] = None
    product_country: Optional[str] = None
    product_status: str = "Active"
    wash_care: Optional[str] = None


def _product_fields(data: ProductInput) -> dict:
    name = clean_text(data.product_name)
    sku = clean_text(data.product_sku)
    category = clean_text(data.product_category)
    if not name:
        raise ValueError("Product name is required.")
    if not sku:
        raise ValueError("SKU is required.")
    if not category:
        raise ValueError("Category is required.")
    if data.product_status not in PRODUCT_STATUSES:
        raise ValueError("Status must be Active or Inactive.")

    sizes = [s for s in data.sizes if s.size and str(s.size).strip()]
    for s in sizes:
        if int(s.quantity) < 0:
            raise ValueError(f"Quantity for size {s.size} must be non-negative.")

    return {
        "product_name": name,
        "product_sku": sku.upper(),
        "product_category": category,
        "product_sub_category": clean_text(data.product_sub_category),
        "product_size": dump_json([{"size": str(s.size).strip(), "quantity": int(s.quantity)} for s in sizes]),
        "product_color": clean_text(data.product_color),
        "product_description": clean_text(data.product_description),
        "product_material": clean_text(data.product_material),
        "product_brand": clean_text(data.product_brand),
        "product_country": clean_text(data.product_country),
        "product_status": data.product_status,
        "product_qty": sum(int(s.quantity) for s in sizes),
        "wash_care": clean_text(data.wash_care),
    }


def _sku_taken(conn, sku: str, exclude_id: Optional[int] = None) -> bool:
    rows = q(conn, "SELECT id FROM products WHERE product_sku=?", (sku,))
    return any(int(r["id"]) != exclude_id for r in rows)


def create_product(conn, data: ProductInput) -> int:
    fields = _product_fields(data)
    if _sku_taken(conn, fields["product_sku"]):
        raise ValueError(f"SKU {fields['product_sku']} already exists.")
    now = iso_now()
    cols = ", ".join(fields)
    marks = ", ".join("?" for _ in fields)
    product_id = x(
        conn,
        f"INSERT INTO products ({cols}, created_at, updated_at) VALUES ({marks}, ?, ?)",
        (*fields.values(), now, now),
    )
    logger.info("Product %s (%s) created", fields["product_name"], fields["product_sku"])
    return product_id


def update_product(conn, product_id: int, data: ProductInput) -> dict:
    rows = q(conn, "SELECT * FROM products WHERE id=?", (int(product_id),))
    if not rows:
        raise ValueError("Product not found.")
    fields = _product_fields(data)
    if _sku_taken(conn, fields["product_sku"], exclude_id=int(product_id)):
        raise ValueError(f"SKU {fields['product_sku']} already exists.")
    sets = ", ".join(f"{k}=?" for k in fields)
    x(conn, f"UPDATE products SET {sets}, updated_at=? WHERE id=?", (*fields.values(), iso_now(), int(product_id)))
    return record_changes(conn, "product", product_id, rows[0], fields)


def get_product(conn, product_id: int):
    rows = q(conn, "SELECT * FROM products WHERE id=?", (int(product_id),))
    return rows[0] if rows else None


def list_products(conn, search: str = "", status: Optional[str] = None):
    s = f"%{search.strip()}%"
    sql = """
        SELECT * FROM products
        WHERE (product_name LIKE ? OR product_sku LIKE ? OR product_category LIKE ?)
    """
    params: list = [s, s, s]
    if status:
        sql += " AND product_status=?"
        params.append(status)
    sql += " ORDER BY product_name"
    return q(conn, sql, params)


def product_sizes(product: Optional[Mapping[str, Any]]) -> list[SizeQuantity]:
    if product is None:
        return []
    return parse_sizes(product["product_size"])


# -------------------------
# Purchase orders
# -------------------------

@dataclass
class PurchaseOrderItem:
    item_name: str
    quantity: float
    unit_price: float

    @property
    def total_price(self) -> float:
        return float(self.quantity) * float(self.unit_price)


@dataclass
class PurchaseOrderInput:
    po_number: str
    po_date: str
    supplier_name: str
    items: list[PurchaseOrderItem]
    ledger_id: Optional[str] = None
    status: str = "Draft"
    description: Optional[str] = None
    delivery_date: Optional[str] = None
    terms_conditions: Optional[str] = None


def order_items(raw: Any) -> list[PurchaseOrderItem]:
    items = parse_json_list(raw, required_keys=("item_name", "quantity", "unit_price"), field="items")
    return [
        PurchaseOrderItem(str(i["item_name"]), to_float(i["quantity"]), to_float(i["unit_price"]))
        for i in items
    ]


def _po_fields(data: PurchaseOrderInput) -> dict:
    po_number = clean_text(data.po_number)
    supplier = clean_text(data.supplier_name)
    if not po_number:
        raise ValueError("PO number is required.")
    if not supplier:
        raise ValueError("Supplier name is required.")
    if data.status not in PO_STATUSES:
        raise ValueError(f"Status must be one of: {', '.join(PO_STATUSES)}.")
    try:
        po_date = parse_date(data.po_date).isoformat()
        delivery = parse_date(data.delivery_date).isoformat() if data.delivery_date else None
    except ValueError:
        raise ValueError("Dates must be valid (YYYY-MM-DD).")

    items = [i for i in data.items if clean_text(i.item_name)]
    if not items:
        raise ValueError("At least one item is required.")
    for i in items:
        if float(i.quantity) <= 0:
            raise ValueError(f"Quantity for {i.item_name} must be greater than 0.")
        if float(i.unit_price) < 0:
            raise ValueError(f"Unit price for {i.item_name} must be non-negative.")

    lines = [
        {
            "item_name": i.item_name.strip(),
            "quantity": float(i.quantity),
            "unit_price": float(i.unit_price),
            "total_price": i.total_price,
        }
        for i in items
    ]
    return {
        "po_number": po_number,
        "po_date": po_date,
        "supplier_name": supplier,
        "ledger_id": clean_text(data.ledger_id),
        "items": dump_json(lines),
        "total_amount": sum(ln["total_price"] for ln in lines),
        "status": data.status,
        "description": clean_text(data.description),
        "delivery_date": delivery,
        "terms_conditions": clean_text(data.terms_conditions),
    }


def create_purchase_order(conn, data: PurchaseOrderInput) -> int:
    fields = _po_fields(data)
    if q(conn, "SELECT 1 FROM purchase_orders WHERE po_number=?", (fields["po_number"],)):
        raise ValueError(f"PO number {fields['po_number']} already exists.")
    now = iso_now()
    cols = ", ".join(fields)
    marks = ", ".join("?" for _ in fields)
    po_id = x(
        conn,
        f"INSERT INTO purchase_orders ({cols}, created_at, updated_at) VALUES ({marks}, ?, ?)",
        (*fields.values(), now, now),
    )
    logger.info("Purchase order %s created: %.2f", fields["po_number"], fields["total_amount"])
    return po_id


def update_purchase_order(conn, po_id: int, data: PurchaseOrderInput) -> dict:
    rows = q(conn, "SELECT * FROM purchase_orders WHERE id=?", (int(po_id),))
    if not rows:
        raise ValueError("Purchase order not found.")
    fields = _po_fields(data)
    clash = q(conn, "SELECT id FROM purchase_orders WHERE po_number=? AND id<>?", (fields["po_number"], int(po_id)))
    if clash:
        raise ValueError(f"PO number {fields['po_number']} already exists.")
    sets = ", ".join(f"{k}=?" for k in fields)
    x(conn, f"UPDATE purchase_orders SET {sets}, updated_at=? WHERE id=?", (*fields.values(), iso_now(), int(po_id)))
    return record_changes(conn, "purchase_order", po_id, rows[0], fields)


def list_purchase_orders(conn, search: str = "", status: Optional[str] = None):
    s = f"%{search.strip()}%"
    sql = "SELECT * FROM purchase_orders WHERE (po_number LIKE ? OR supplier_name LIKE ?)"
    params: list = [s, s]
    if status and status != "All":
        sql += " AND status=?"
        params.append(status)
    sql += " ORDER BY po_date DESC, id DESC"
    return q(conn, sql, params)


def purchase_order_totals(orders: Iterable[Mapping[str, Any]]) -> dict:
    by_status = {s: 0 for s in PO_STATUSES}
    total = 0.0
    count = 0
    for o in orders:
        count += 1
        total += to_float(o["total_amount"])
        if o["status"] in by_status:
            by_status[o["status"]] += 1
    return {"count": count, "total_value": total, "by_status": by_status}
