from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="Textile ERP", page_icon="🧵", layout="wide")

pages = [
    st.Page("home.py", title="Dashboard", icon="🏠"),
    st.Page("pages/1_📒_Ledgers.py", title="Ledgers", icon="📒"),
    st.Page("pages/2_🧵_Weaver_Challans.py", title="Weaver Challans", icon="🧵"),
    st.Page("pages/3_📏_Shorting.py", title="Shorting", icon="📏"),
    st.Page("pages/4_🪡_Stitching_Challans.py", title="Stitching Challans", icon="🪡"),
    st.Page("pages/5_📦_Inventory.py", title="Inventory", icon="📦"),
    st.Page("pages/6_💸_Expenses.py", title="Expenses", icon="💸"),
    st.Page("pages/7_🧾_Payment_Vouchers.py", title="Payment Vouchers", icon="🧾"),
    st.Page("pages/8_🔍_Batch_History.py", title="Batch History", icon="🔍"),
    st.Page("pages/9_📘_Ledger_Statement.py", title="Ledger Statement", icon="📘"),
    st.Page("pages/10_👕_Products.py", title="Products", icon="👕"),
    st.Page("pages/11_🛒_Purchase_Orders.py", title="Purchase Orders", icon="🛒"),
    st.Page("pages/12_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
