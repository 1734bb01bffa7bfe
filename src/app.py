"""
PDP Link Mapper: Streamlit UI

Flow:
    Step 1: Upload a phrase catalog (CSV/XLSX with PDP Phrase, PLP URL, Anchor Text)
    Step 2: Paste a PDP title → matched phrases are highlighted and the
            related PLP links are listed, ready to download

Run with:
    streamlit run src/app.py
"""

import pandas as pd
import streamlit as st

from link_report import (
    EXPORT_HTML_FILENAME,
    EXPORT_JSON_FILENAME,
    export_payloads,
    render_link_list,
    serialize_debug_record,
)
from logging_setup import configure_logging
from phrase_catalog import REQUIRED_HEADERS, load_catalog_into_session
from phrase_matcher import (
    DEFAULT_STRATEGY,
    MATCH_STRATEGIES,
    STRATEGY_LABELS,
    match_title,
)
from phrase_normalize import MAX_WINDOW

configure_logging()

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="PDP Link Mapper",
    page_icon="🔗",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
    <style>
    .highlight { background-color: #fff3cd; color: #856404; border-radius: 3px; padding: 0 2px; }
    .pdp-title { font-size: 1.4rem; font-weight: 600; }
    </style>
    """,
    unsafe_allow_html=True,
)

st.title("🔗 PDP Related Collections Linker")

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.header("⚙️ Settings")
strategy_names = list(MATCH_STRATEGIES)
strategy = st.sidebar.selectbox(
    "Matching strategy",
    options=strategy_names,
    index=strategy_names.index(DEFAULT_STRATEGY),
    format_func=lambda name: STRATEGY_LABELS[name],
    help="Exact: phrase words must appear together in the title. "
         "Scattered: all phrase words must appear anywhere in the title.",
)
max_window = st.sidebar.slider(
    "Longest phrase (words)",
    min_value=1, max_value=8, value=MAX_WINDOW, step=1,
    help="Longest word window looked up as an exact phrase. Default 4.",
    disabled=(strategy != DEFAULT_STRATEGY),
)

st.sidebar.markdown("---")
st.sidebar.markdown("**Match Types:**")
st.sidebar.markdown("🟢 **exact**: phrase found as-is in the title")
st.sidebar.markdown("🟡 **fallback**: one-word phrase found as a title word")
st.sidebar.markdown("🔵 **scattered**: every phrase word found, any order")

# =========================================================================
# STEP 1: Phrase catalog
# =========================================================================
st.header("Step 1: Phrase Catalog")
st.markdown(
    "Upload a CSV or Excel file with the columns "
    + ", ".join(f"**{h}**" for h in REQUIRED_HEADERS)
    + " (header names are case-insensitive)."
)

catalog_upload = st.file_uploader("Upload catalog (.csv, .xlsx)", type=["csv", "xlsx"], key="catalog_upload")

if catalog_upload is not None:
    load_error = load_catalog_into_session(
        st.session_state, catalog_upload, catalog_upload.name,
        source_key=(catalog_upload.name, catalog_upload.size),
    )
    if load_error:
        # Previous catalog (if any) stays active
        st.error(f"Failed to load catalog: {load_error}")

if 'catalog' in st.session_state:
    stats = st.session_state['catalog_stats']
    st.success(
        f"Catalog loaded: **{stats['final']:,}** phrases "
        f"(from {stats['original']:,} rows, {stats['dropped']:,} dropped for an empty phrase, URL or anchor)"
    )
    with st.expander("Preview Catalog (first 20 rows)"):
        preview = st.session_state['catalog_df'].head(20).copy()
        preview['keywords'] = preview['keywords'].apply(' | '.join)
        st.dataframe(preview, use_container_width=True, hide_index=True)
else:
    st.info("No catalog loaded yet.")

# =========================================================================
# STEP 2: Match a PDP title
# =========================================================================
st.divider()
st.header("Step 2: Match a PDP Title")

title_input = st.text_input("PDP title (H1)", value="", key="pdp_title",
                            placeholder="e.g. Soft Cotton Dupatta in Pink")

if st.button("🚀 Find Related Links", type="primary", use_container_width=True):
    run = match_title(title_input, st.session_state.get('catalog'), strategy, max_window)
    if 'error' in run:
        st.warning(run['error'])
    else:
        st.session_state['last_run'] = run

run = st.session_state.get('last_run')

if run is not None:
    st.subheader("📝 Highlighted Title")
    st.markdown(f'<div class="pdp-title">{run["highlighted"]}</div>', unsafe_allow_html=True)
    st.caption(f"Normalized: `{run['normalized']}` | Strategy: `{run['strategy']}`")

    st.subheader(f"🔗 Related Collections ({len(run['matches'])})")
    if run['matches']:
        st.markdown(render_link_list(run['matches']), unsafe_allow_html=True)

        match_df = pd.DataFrame(run['matches'])[['phrase', 'anchor', 'url', 'match_type', 'score']]
        st.dataframe(match_df, use_container_width=True, hide_index=True)

        with st.expander("Debug: match record (JSON)"):
            st.code(serialize_debug_record(run['matches']), language="json")
    else:
        st.info("No catalog phrases found in this title.")

    # ------------------------------------------------------------------
    # Exports (only when the last run matched something)
    # ------------------------------------------------------------------
    payloads = export_payloads(run)
    if payloads:
        dc1, dc2 = st.columns(2)
        html_content, html_mime = payloads[EXPORT_HTML_FILENAME]
        json_content, json_mime = payloads[EXPORT_JSON_FILENAME]
        dc1.download_button(
            label="📥 Download Links (HTML)",
            data=html_content,
            file_name=EXPORT_HTML_FILENAME,
            mime=html_mime,
            use_container_width=True,
        )
        dc2.download_button(
            label="📥 Download Match Record (JSON)",
            data=json_content,
            file_name=EXPORT_JSON_FILENAME,
            mime=json_mime,
            use_container_width=True,
        )

# ---------------------------------------------------------------------------
# Footer
# ---------------------------------------------------------------------------
st.divider()
st.caption(
    "PDP Link Mapper: longest-phrase-first matching against your catalog. "
    "The catalog lives only in this browser session."
)
