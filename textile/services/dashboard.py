from __future__ import annotations

from textile.db import q


def dashboard_stats(conn) -> dict:
    r = q(
        conn,
        """
        SELECT
          (SELECT COUNT(1) FROM ledgers) AS ledgers,
          (SELECT COUNT(1) FROM weaver_challans) AS weaver_challans,
          (SELECT COALESCE(SUM(total_grey_mtr),0) FROM weaver_challans) AS metres_received,
          (SELECT COUNT(1) FROM isteaching_challans) AS stitching_challans,
          (SELECT COUNT(1) FROM isteaching_challans
            WHERE COALESCE(inventory_classification,'unclassified')='unclassified') AS unclassified_challans,
          (SELECT COALESCE(SUM(cost),0) FROM expenses) AS expense_total,
          (SELECT COALESCE(SUM(amount),0) FROM payment_vouchers WHERE payment_type='Credit') AS credit_total,
          (SELECT COALESCE(SUM(amount),0) FROM payment_vouchers WHERE payment_type='Debit') AS debit_total
        """,
    )[0]
    return {
        "ledgers": int(r["ledgers"]),
        "weaver_challans": int(r["weaver_challans"]),
        "metres_received": float(r["metres_received"]),
        "stitching_challans": int(r["stitching_challans"]),
        "unclassified_challans": int(r["unclassified_challans"]),
        "expense_total": float(r["expense_total"]),
        "credit_total": float(r["credit_total"]),
        "debit_total": float(r["debit_total"]),
    }
