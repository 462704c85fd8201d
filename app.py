import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager

from ev_dashboard import query as tq
from ev_dashboard.charts import bar_chart, model_year_chart, pie_chart, postal_code_chart, range_histogram_chart
from ev_dashboard.data import load_dataset, reload_dataset
from ev_dashboard.metrics_overview import compute_overview
from ev_dashboard.records import CANONICAL_COLUMNS
from ev_dashboard.session import TableSession
from ev_dashboard.settings import (
    HISTOGRAM_BIN_WIDTH,
    MAKE_TOP_N,
    MODEL_YEAR_MAX,
    MODEL_YEAR_MIN,
    POSTAL_CODE_TOP_N,
    DashboardSettings,
    normalize_settings,
)

alt.data_transformers.disable_max_rows()

COLUMN_LABELS = {
    "VIN": "VIN",
    "County": "County",
    "City": "City",
    "State": "State",
    "PostalCode": "Postal Code",
    "ModelYear": "Year",
    "Make": "Make",
    "Model": "Model",
    "ElectricVehicleType": "Type",
    "Eligibility": "Eligibility",
    "ElectricRange": "Range",
    "MSRP": "MSRP",
    "LegislativeDistrict": "District",
    "DOLVehicleID": "DOL ID",
    "VehicleLocation": "Location",
    "ElectricUtility": "Utility",
    "CensusTract": "Census",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_chips(query: tq.TableQuery) -> str:
    chips = [f"{COLUMN_LABELS.get(col, col)}: {val}" for col, val in query.filters.items()]
    if query.search:
        chips.append(f"Search: {query.search}")
    if query.sort is not None:
        chips.append(f"Sort: {COLUMN_LABELS.get(query.sort.column, query.sort.column)} {query.sort.direction}")
    return "".join(f"<span class='chip'>{txt}</span>" for txt in chips)


def get_session(records, settings: DashboardSettings) -> TableSession:
    session = st.session_state.get("table_session")
    # Chart-only settings changes keep the table state.
    if session is None or session.records != records or session.settings.page_sizes != settings.page_sizes:
        if session is not None:
            session.close()
        session = TableSession(records, settings)
        st.session_state["table_session"] = session
    return session


# ---------- UI setup ----------
st.set_page_config(page_title="Electric Vehicle Population Dashboard", layout="wide")
inject_base_styles()
st.title("Electric Vehicle Population Dashboard")

with st.sidebar:
    with st.expander("Advanced settings", expanded=False):
        bin_width = st.slider("Range bin width (miles)", min_value=10, max_value=200, value=HISTOGRAM_BIN_WIDTH, step=10)
        make_top_n = st.slider("Top manufacturers", min_value=3, max_value=20, value=MAKE_TOP_N)
        postal_code_top_n = st.slider("Top postal codes", min_value=5, max_value=30, value=POSTAL_CODE_TOP_N)
        year_min, year_max = st.slider(
            "Model years",
            min_value=1990,
            max_value=2030,
            value=(MODEL_YEAR_MIN, MODEL_YEAR_MAX),
        )

settings = normalize_settings(
    {
        "bin_width": bin_width,
        "make_top_n": make_top_n,
        "postal_code_top_n": postal_code_top_n,
        "model_year_min": year_min,
        "model_year_max": year_max,
    }
)
state = load_dataset(settings.data_path)
if not state.ready:
    st.error(f"The vehicle dataset could not be loaded. {state.error}")
    if st.button("Retry"):
        reload_dataset(settings.data_path)
        st.rerun()
    st.stop()

records = state.records
overview = compute_overview(records, settings)
kpis = overview["kpis"]
series = overview["distributions"]

# ----- KPI cards -----
k1, k2, k3, k4, k5 = st.columns(5)
k1.metric("Total Vehicles", f"{kpis['total_vehicles']:,}")
k2.metric("Average Range", kpis["average_range_display"])
k3.metric("Most Common Location", kpis["most_common_city"] or "N/A")
k4.metric("Average MSRP", kpis["average_msrp_display"])
k5.metric("Total Cities", f"{kpis['total_cities']:,}")

# ----- Charts -----
left, right = st.columns(2)
with left:
    with card("Manufacturer Distribution"):
        st.altair_chart(bar_chart(series["make"], x_title="Manufacturer"), use_container_width=True)
    with card("Vehicles by Postal Code"):
        st.altair_chart(postal_code_chart(series["postal_codes"]), use_container_width=True)
with right:
    with card("Electric Vehicle Types"):
        st.altair_chart(pie_chart(series["vehicle_types"], title="Vehicle Type"), use_container_width=True)
    with card("Manufacturer Share"):
        st.altair_chart(pie_chart(series["make"], title="Manufacturer"), use_container_width=True)

with card("Electric Range Distribution"):
    st.altair_chart(range_histogram_chart(series["electric_range"]), use_container_width=True)

with card("Model Year Distribution"):
    st.altair_chart(model_year_chart(series["model_years"]), use_container_width=True)

# ----- Detailed table -----
with card("Detailed Vehicle Information"):
    session = get_session(records, settings)
    before = session.query
    columns = [c for c in CANONICAL_COLUMNS if c in records.columns]

    c1, c2, c3 = st.columns([4, 3, 2])
    with c1:
        search = st.text_input("Search all columns...", value=session.search_text)
        if search != session.search_text:
            # text_input hands over the settled value on submit, so commit at once.
            session.type_search(search)
            session.flush_search()
    with c2:
        sort_col = st.selectbox("Sort column", options=columns, format_func=lambda c: COLUMN_LABELS.get(c, c))
        if st.button("Toggle sort"):
            session.sort_by(sort_col)
    with c3:
        page_sizes = list(settings.page_sizes)
        size = st.selectbox("Items per page", options=page_sizes, index=page_sizes.index(session.query.page_size))
        if size != session.query.page_size:
            session.set_page_size(size)

    with st.expander("Column filters", expanded=False):
        filter_cols = st.columns(3)
        for i, col in enumerate(columns):
            options = [""] + list(session.filter_options(col))
            current = session.query.filters.get(col, "")
            picked = filter_cols[i % 3].selectbox(
                COLUMN_LABELS.get(col, col),
                options=options,
                index=options.index(current) if current in options else 0,
                key=f"filter_{col}",
            )
            if picked != current:
                if picked:
                    session.filter_by(col, picked)
                else:
                    session.clear_filter(col)

    page = session.view()
    st.markdown(f"<div class='chip-row'>{format_filter_chips(session.query)}</div>", unsafe_allow_html=True)
    st.caption(f"Showing {page.filtered_count} of {page.total_count} entries")
    st.dataframe(
        pd.DataFrame(page.display_rows(), columns=columns).rename(columns=COLUMN_LABELS),
        use_container_width=True,
        hide_index=True,
    )

    n1, n2, n3 = st.columns([1, 2, 1])
    if n1.button("Previous", disabled=not page.has_previous):
        session.previous_page()
    n2.markdown(f"Page {page.current_page} of {page.total_pages}")
    if n3.button("Next", disabled=not page.has_next):
        session.next_page()

    if session.query != before:
        st.rerun()
