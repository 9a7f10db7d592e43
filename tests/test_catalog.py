"""
Tests for products and purchase orders
"""

import pytest

from textile.models import SizeQuantity
from textile.services.catalog import (
    ProductInput,
    PurchaseOrderInput,
    PurchaseOrderItem,
    create_product,
    create_purchase_order,
    get_product,
    list_products,
    list_purchase_orders,
    order_items,
    product_sizes,
    purchase_order_totals,
    update_product,
    update_purchase_order,
)


def _product(**kw):
    data = dict(
        product_name="Cotton Kurti",
        product_sku="krt-001",
        product_category="Women",
        sizes=[SizeQuantity("M", 10), SizeQuantity("L", 5)],
    )
    data.update(kw)
    return ProductInput(**data)


def _order(**kw):
    data = dict(
        po_number="PO-1",
        po_date="2025-01-10",
        supplier_name="Shree Ganesh Weaving",
        items=[PurchaseOrderItem("Grey cotton", 10, 5), PurchaseOrderItem("Thread", 3, 2.5)],
    )
    data.update(kw)
    return PurchaseOrderInput(**data)


class TestProducts:
    def test_create_and_sizes(self, conn):
        pid = create_product(conn, _product())
        product = get_product(conn, pid)
        assert product["product_sku"] == "KRT-001"
        assert product["product_qty"] == 15
        assert product_sizes(product) == [SizeQuantity("M", 10), SizeQuantity("L", 5)]

    def test_sku_unique(self, conn):
        create_product(conn, _product())
        with pytest.raises(ValueError, match="already exists"):
            create_product(conn, _product(product_sku="KRT-001", product_name="Other"))

    def test_update_keeps_own_sku(self, conn):
        pid = create_product(conn, _product())
        changes = update_product(conn, pid, _product(product_status="Inactive"))
        assert changes == {"product_status": {"old": "Active", "new": "Inactive"}}
        assert list_products(conn, status="Active") == []

    def test_required_fields(self, conn):
        with pytest.raises(ValueError, match="SKU"):
            create_product(conn, _product(product_sku=" "))

    @pytest.mark.parametrize("raw", ["not json", '{"size": "M"}', '[{"size": "M"}]', "[1, 2]"])
    def test_malformed_sizes_fall_back_to_empty(self, raw):
        assert product_sizes({"product_size": raw}) == []

    def test_missing_product(self):
        assert product_sizes(None) == []


class TestPurchaseOrders:
    def test_totals_from_lines(self, conn):
        po_id = create_purchase_order(conn, _order())
        row = conn.execute("SELECT * FROM purchase_orders WHERE id=?", (po_id,)).fetchone()
        assert row["total_amount"] == pytest.approx(57.5)
        assert [i.total_price for i in order_items(row["items"])] == [50.0, 7.5]

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"status": "Shipped"}, "Status must be one of"),
            ({"items": []}, "At least one item"),
            ({"items": [PurchaseOrderItem("Thread", 0, 1)]}, "greater than 0"),
            ({"supplier_name": ""}, "Supplier"),
        ],
    )
    def test_validation(self, conn, kwargs, message):
        with pytest.raises(ValueError, match=message):
            create_purchase_order(conn, _order(**kwargs))

    def test_duplicate_number(self, conn):
        create_purchase_order(conn, _order())
        with pytest.raises(ValueError, match="already exists"):
            create_purchase_order(conn, _order())

    def test_update_recomputes_total(self, conn):
        po_id = create_purchase_order(conn, _order())
        changes = update_purchase_order(conn, po_id, _order(items=[PurchaseOrderItem("Grey cotton", 20, 5)], status="Sent"))
        assert changes["total_amount"] == {"old": 57.5, "new": 100.0}
        assert changes["status"] == {"old": "Draft", "new": "Sent"}

    def test_order_totals(self, conn):
        create_purchase_order(conn, _order())
        create_purchase_order(conn, _order(po_number="PO-2", status="Confirmed", items=[PurchaseOrderItem("Lace", 4, 10)]))
        totals = purchase_order_totals(list_purchase_orders(conn))
        assert totals["count"] == 2
        assert totals["total_value"] == pytest.approx(97.5)
        assert totals["by_status"]["Draft"] == 1
        assert totals["by_status"]["Confirmed"] == 1
        assert totals["by_status"]["Cancelled"] == 0
