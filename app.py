from __future__ import annotations

import logging

import streamlit as st

from warehouse.config import get_settings

st.set_page_config(page_title="Warehouse Analytics", page_icon="🏬", layout="wide")

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_📊_Reports.py", title="Reports", icon="📊"),
    st.Page("pages/2_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
