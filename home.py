from __future__ import annotations

import streamlit as st

from textile.config import get_settings, setup_logging
from textile.db import get_conn, ensure_schema
from textile.services.dashboard import dashboard_stats
from textile.utils import format_inr

st.set_page_config(page_title="Textile ERP", page_icon="🧵", layout="wide")

settings = get_settings()
setup_logging(settings.log_level)
conn = get_conn(settings.db_path)
ensure_schema(conn)

st.title(f"🧵 {settings.company_name} — Textile ERP")
st.caption("Grey cloth receipts, shorting, stitching, expenses and ledger accounts, tracked per batch.")

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")

stats = dashboard_stats(conn)

c1, c2, c3, c4 = st.columns(4)
c1.metric("Ledgers", stats["ledgers"])
c2.metric("Weaver challans", stats["weaver_challans"])
c3.metric("Metres received", f"{stats['metres_received']:,.2f}")
c4.metric("Stitching challans", stats["stitching_challans"])

c5, c6, c7, c8 = st.columns(4)
c5.metric("Awaiting classification", stats["unclassified_challans"])
c6.metric("Expenses", format_inr(stats["expense_total"]))
c7.metric("Credit vouchers", format_inr(stats["credit_total"]))
c8.metric("Debit vouchers", format_inr(stats["debit_total"]))

st.info(
    "Use the left sidebar navigation. Start with **🧪 Data Management** to load demo data, then follow a batch "
    "through **Weaver Challans**, **Shorting**, **Stitching Challans** and **Batch History**.",
    icon="ℹ️",
)
