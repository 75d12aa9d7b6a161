# cabinet_project_root/app.py
# APPLICATION ENTRY POINT

import html
import logging
import sys
from pathlib import Path

try:
    _project_root = Path(__file__).resolve().parent
    if str(_project_root) not in sys.path:
        sys.path.insert(0, str(_project_root))

    import streamlit as st
    from config import settings
    from data_processing import get_record_store
    from visualization import load_and_inject_css, set_plotly_theme

except ImportError as e:
    print("FATAL ERROR in app.py: A core module failed to import.", file=sys.stderr)
    print("1. Ensure the project is installed: `pip install -e .`", file=sys.stderr)
    print("2. Run the app from the project root: `streamlit run app.py`", file=sys.stderr)
    print(f"\nPython Path: {sys.path}\nOriginal ImportError: {e}", file=sys.stderr)
    sys.exit(1)

# --- Global Configuration ---
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format=settings.LOG_FORMAT,
    datefmt=settings.LOG_DATE_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True
)
logger = logging.getLogger(__name__)

# SQL echo goes through DATABASE_ECHO, not the root log level.
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


st.set_page_config(
    page_title=f"{settings.APP_NAME} - Overview",
    page_icon="🩺",
    layout="wide", initial_sidebar_state="expanded",
    menu_items={
        "Get Help": f"mailto:{settings.SUPPORT_CONTACT_INFO}",
        "Report a bug": f"mailto:{settings.SUPPORT_CONTACT_INFO}?subject=Bug Report - {settings.APP_NAME} v{settings.APP_VERSION}",
        "About": f"### {settings.APP_NAME} (v{settings.APP_VERSION})\n{settings.APP_FOOTER_TEXT}"
    }
)

load_and_inject_css(settings.STYLE_CSS_PATH)
set_plotly_theme()
get_record_store()

# --- Application Header and Body ---
st.title(settings.APP_NAME)
st.subheader("Patient records, practice dashboard & pharmacy stock")
st.divider()

st.markdown(f"### Welcome to the {html.escape(settings.APP_NAME)}")
st.info("""
**💡 How to use:** register patients and their specialties on the **Patients** page, follow
practice-wide indicators on the **Dashboard**, and manage stock and prescriptions on the **Pharmacy** page.
Every change is saved immediately and reflected on the other pages.
""", icon="ℹ️")
st.divider()

pages_dir = _project_root / "pages"
if pages_dir.is_dir():
    page_files = sorted(pages_dir.glob("[0-9]*.py"))

    nav_cols = st.columns(max(1, min(len(page_files), 3)))
    for col_idx, page_path in enumerate(page_files):
        page_name = page_path.stem[3:].replace("_", " ")
        with nav_cols[col_idx % len(nav_cols)]:
            with st.container(border=True):
                st.subheader(page_name)
                st.page_link(str(page_path.relative_to(_project_root)), label=f"Open {page_name}", use_container_width=True, icon="➡️")
else:
    st.warning("`pages` directory not found. Cannot display navigation links.")

st.divider()

with st.sidebar:
    st.header(f"{settings.APP_NAME}")
    st.caption(f"v{settings.APP_VERSION}")
    st.divider()
    st.markdown(f"**{html.escape(settings.ORGANIZATION_NAME)}**")
    st.markdown(f"Contact: <a href='mailto:{settings.SUPPORT_CONTACT_INFO}'>{settings.SUPPORT_CONTACT_INFO}</a>", unsafe_allow_html=True)
    st.caption(settings.APP_FOOTER_TEXT)

logger.info("Main application page loaded successfully.")
