from __future__ import annotations

import streamlit as st

from warehouse.config import get_settings
from warehouse.db import get_conn, ensure_schema

st.title("🏬 Warehouse Analytics")
st.caption("Reconciliation, supplier ranking, running totals, turnover and expiry risk over deliveries and issuances.")

settings = get_settings()
conn = get_conn(settings.db_path)
ensure_schema(conn)

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")
    st.write(
        f"**Windows:** recent {settings.recent_issue_days}d • census {settings.census_days}d • "
        f"expiry {settings.expiry_horizon_days}d • moving avg {settings.moving_average_rows} rows"
    )

st.info(
    "Use the left sidebar navigation. Start with **🧪 Data Management** to load demo data, then open **📊 Reports**.",
    icon="ℹ️",
)
