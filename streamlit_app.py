from __future__ import annotations

import os
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import streamlit as st

import readiness_tracking
from readiness_tracking.data.db import connect, init_db, table_count
from readiness_tracking.data.seed import seed_from_csv
from readiness_tracking.app.pages import performance, teams

st.set_page_config(page_title="readiness-tracking", layout="wide")

# --- DB init (once per app start) ---
DATA_DIR = Path(os.getenv("READINESS_TRACKING_DATA_DIR", "./data"))
DB_PATH = Path(os.getenv("READINESS_TRACKING_DB_PATH", DATA_DIR / "app.db"))
SAMPLE_DIR = os.getenv("READINESS_TRACKING_SAMPLE_DIR")

con = connect(DB_PATH)
init_db(con)
if SAMPLE_DIR and table_count(con, "work_readiness_assignments") == 0:
    seed_from_csv(con, Path(SAMPLE_DIR))

# --- Sidebar navigation ---
st.sidebar.title("Work readiness")

build_number = (
    os.getenv("APP_BUILD")
    or os.getenv("BUILD_NUMBER")
    or readiness_tracking.__version__
)
st.sidebar.caption(f"Build: {build_number}")

PAGES = {
    "Performance": lambda: performance.render(con),
    "Teams": lambda: teams.render(con),
}

page_param = st.query_params.get("page")
page_labels = list(PAGES.keys())
default_index = page_labels.index(page_param) if page_param in PAGES else 0

selected = st.sidebar.radio("Pages", page_labels, index=default_index, key="sidebar_page")

# --- Render selected page ---
PAGES[selected]()
