"""
Zakat Collection Dashboard — Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from dataclasses import replace
from datetime import date
from io import BytesIO
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from zakat_dashboard.admin import (
    add_category,
    decode_logo,
    encode_logo,
    remove_category,
    save_admin,
    sync_form,
    verify_pin,
)
from zakat_dashboard.config import DATA_SOURCE_MANUAL, DATA_SOURCE_SHEETS, DEFAULT_COLOR
from zakat_dashboard.dashboard import (
    FilterSelection,
    get_available_categories,
    get_category_breakdown,
    get_filtered_view,
)
from zakat_dashboard.errors import ValidationError
from zakat_dashboard.insights import InsightContext, build_insight_provider, parse_narrative
from zakat_dashboard.models import Category
from zakat_dashboard.store import DashboardStore
from zakat_dashboard.sync import AutoSync, SyncOrchestrator
from zakat_dashboard.template import build_template_workbook, template_filename

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Dashboard Penghimpunan Zakat",
    page_icon="🕌",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Long-lived services (one per Streamlit process)
# ---------------------------------------------------------------------------
@st.cache_resource
def get_services():
    store = DashboardStore.open()
    orchestrator = SyncOrchestrator(store)
    auto_sync = AutoSync(store, orchestrator).start()
    return store, orchestrator, auto_sync


@st.cache_resource
def get_insights():
    return build_insight_provider()


store, orchestrator, auto_sync = get_services()
insights = get_insights()
state = store.state


def fmt_rp(value: int) -> str:
    return "Rp " + f"{value:,}".replace(",", ".")


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
sidebar_logo = decode_logo(state.institution_logo)
if sidebar_logo:
    st.sidebar.image(sidebar_logo, width=80)
st.sidebar.title(state.institution_name)
st.sidebar.caption(f"Tahun Anggaran {state.period_year}")
st.sidebar.divider()

page = st.sidebar.radio("Navigate", ["Dashboard", "Admin Control"])

if "selection" not in st.session_state:
    st.session_state.selection = FilterSelection()
selection: FilterSelection = st.session_state.selection

st.sidebar.divider()
categories = get_available_categories(state)
category = st.sidebar.selectbox(
    "Kategori",
    categories,
    index=categories.index(selection.category) if selection.category in categories else 0,
)
window = st.sidebar.date_input(
    "Periode",
    (date.fromisoformat(selection.start_date), date.fromisoformat(selection.end_date)),
)
# a half-picked range comes back as a single date
if len(window) == 2:
    selection = FilterSelection(window[0].isoformat(), window[1].isoformat(), category)
else:
    selection = replace(selection, category=category)
if st.sidebar.button("Reset Filter"):
    selection = selection.reset()
st.session_state.selection = selection

st.sidebar.divider()
auto = st.sidebar.toggle("Auto-sync", value=auto_sync.enabled)
if auto != auto_sync.enabled:
    auto_sync.set_enabled(auto)
if orchestrator.last_error:
    st.sidebar.warning("Sinkronisasi terakhir gagal.")
st.sidebar.caption(f"Sumber: {state.data_source} | Update: {state.last_update}")


# ===========================================================================
# PAGE: Dashboard
# ===========================================================================
if page == "Dashboard":
    st.title("Dashboard Penghimpunan")

    if state.data_source == DATA_SOURCE_SHEETS:
        if st.button("Refresh", disabled=orchestrator.is_busy):
            with st.spinner("Sinkronisasi..."):
                orchestrator.sync(state.spreadsheet_id)
            st.rerun()

    view = get_filtered_view(state, selection)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Target", fmt_rp(view["target"]))
    with col2:
        st.metric("Terhimpun", fmt_rp(view["collected"]), delta=f"{view['percentage']}%")
    with col3:
        st.metric("Muzaki", f"{view['muzaki']:,}".replace(",", "."))
    with col4:
        st.metric("Periode Terpilih", fmt_rp(view["filtered_collected"]))
    st.progress(view["percentage"] / 100)

    st.subheader("Tren Bulanan")
    if view["monthly"]:
        monthly_df = pd.DataFrame([h.to_dict() for h in view["monthly"]])
        fig = go.Figure(go.Bar(x=monthly_df["month"], y=monthly_df["amount"], marker_color="#059669"))
        fig.update_layout(height=350, plot_bgcolor="rgba(0,0,0,0)", margin=dict(l=10, r=10, t=10, b=40))
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("Tidak ada data bulanan pada periode ini.")

    st.subheader("Penghimpunan Harian")
    if view["daily"]:
        daily_df = pd.DataFrame([d.to_dict() for d in view["daily"]]).sort_values("date")
        fig = go.Figure(go.Scatter(
            x=daily_df["label"], y=daily_df["amount"], mode="lines+markers",
            line=dict(color="#0891b2", width=2), fill="tozeroy",
        ))
        fig.update_layout(height=300, plot_bgcolor="rgba(0,0,0,0)", margin=dict(l=10, r=10, t=10, b=40))
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("Tidak ada transaksi harian pada periode ini.")

    st.subheader("Rincian Kategori")
    breakdown = get_category_breakdown(state)
    if not breakdown.empty:
        col1, col2 = st.columns([2, 1])
        with col1:
            st.dataframe(breakdown.drop(columns=["color"]), use_container_width=True, hide_index=True)
        with col2:
            fig = go.Figure(go.Pie(
                labels=breakdown["name"], values=breakdown["collected"],
                marker=dict(colors=breakdown["color"].tolist()), hole=0.5,
            ))
            fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10), showlegend=False)
            st.plotly_chart(fig, use_container_width=True)

    if insights.enabled:
        st.subheader("AI Strategic Insights")
        context = InsightContext.from_state(state)
        if st.button("Generate Analisis"):
            with st.spinner("Sedang Menganalisis..."):
                st.session_state.narrative = insights.narrate(context)
                st.session_state.predictions = insights.predict(list(state.monthly_history), context)

        for kind, text in parse_narrative(st.session_state.get("narrative", "")):
            if kind == "heading":
                st.markdown(f"#### {text}")
            elif kind == "bold":
                st.markdown(f"**{text}**")
            elif kind == "bullet":
                st.markdown(f"- {text}")
            elif kind == "text":
                st.write(text)

        predictions = st.session_state.get("predictions") or []
        if predictions:
            pred_df = pd.DataFrame([p.to_dict() for p in predictions])
            fig = go.Figure()
            for kind, color in (("actual", "#059669"), ("predicted", "#d97706")):
                part = pred_df[pred_df["type"] == kind]
                fig.add_trace(go.Bar(x=part["month"], y=part["amount"], name=kind, marker_color=color))
            fig.update_layout(height=300, plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Admin Control
# ===========================================================================
elif page == "Admin Control":
    st.title("Admin Control")

    if not st.session_state.get("admin_ok"):
        pin = st.text_input("PIN Admin", type="password")
        if st.button("Masuk"):
            if verify_pin(state, pin):
                st.session_state.admin_ok = True
                st.rerun()
            else:
                st.error("PIN salah.")
        st.stop()

    if "admin_form" not in st.session_state:
        st.session_state.admin_form = state
    form_state = st.session_state.admin_form

    tab_general, tab_sync, tab_categories, tab_security = st.tabs(
        ["Umum", "Sinkronisasi", "Kategori", "Keamanan"]
    )

    with tab_general:
        logo = decode_logo(form_state.institution_logo)
        if logo:
            st.image(logo, width=96)
            if st.button("Hapus Logo"):
                form_state = replace(form_state, institution_logo="")
        upload = st.file_uploader("Logo Lembaga (Rasio 1:1)", type=["png", "jpg", "jpeg", "webp"])
        # the uploader keeps its file across reruns; apply each upload once
        if upload is not None and st.session_state.get("logo_file_id") != upload.file_id:
            st.session_state.logo_file_id = upload.file_id
            try:
                form_state = replace(
                    form_state, institution_logo=encode_logo(upload.getvalue(), upload.type)
                )
            except ValidationError as e:
                st.error(str(e))
        name = st.text_input("Nama Lembaga", form_state.institution_name)
        year = st.text_input("Tahun Anggaran", form_state.period_year)
        form_state = replace(form_state, institution_name=name, period_year=year)

    with tab_sync:
        sheet_id = st.text_input("Spreadsheet ID", state.spreadsheet_id)
        if st.button("Sinkronkan Sekarang", disabled=orchestrator.is_busy or not sheet_id.strip()):
            with st.spinner("Sinkronisasi..."):
                ok, form_state = sync_form(orchestrator, form_state, sheet_id)
            if ok:
                # the source radio below follows the synced state
                st.session_state.admin_data_source = form_state.data_source
                st.success("Sinkronisasi berhasil.")
            else:
                st.error(f"Sinkronisasi gagal: {orchestrator.last_error}")

        source_labels = {DATA_SOURCE_MANUAL: "Manual", DATA_SOURCE_SHEETS: "Google Sheets"}
        if "admin_data_source" not in st.session_state:
            st.session_state.admin_data_source = form_state.data_source
        data_source = st.radio(
            "Sumber Data",
            list(source_labels),
            format_func=source_labels.get,
            horizontal=True,
            key="admin_data_source",
        )
        form_state = replace(form_state, data_source=data_source)

        wb = build_template_workbook()
        buffer = BytesIO()
        wb.save(buffer)
        st.download_button(
            "Download Template Excel",
            buffer.getvalue(),
            file_name=template_filename(form_state.institution_name),
        )

    with tab_categories:
        sheets_mode = form_state.data_source == DATA_SOURCE_SHEETS
        if sheets_mode:
            st.caption("Nilai terhimpun, target dan muzaki diambil dari Google Sheets.")
        edited = st.data_editor(
            pd.DataFrame([c.to_dict() for c in form_state.categories]),
            num_rows="fixed",
            disabled=["collected", "target", "muzaki"] if sheets_mode else False,
            use_container_width=True,
        )
        form_state = form_state.with_categories(
            Category.from_dict(row) for row in edited.to_dict("records")
        )
        with st.form("new_category"):
            new_name = st.text_input("Nama Kategori Baru")
            new_target = st.number_input("Target", min_value=0, step=1_000_000)
            new_color = st.color_picker("Warna", DEFAULT_COLOR)
            if st.form_submit_button("Tambah"):
                try:
                    form_state = form_state.with_categories(
                        add_category(form_state.categories, new_name, int(new_target), new_color)
                    )
                except ValidationError as e:
                    st.error(str(e))
        names = [c.name for c in form_state.categories]
        to_remove = st.selectbox("Hapus kategori", ["-"] + names)
        if to_remove != "-" and st.button("Hapus"):
            form_state = form_state.with_categories(
                remove_category(form_state.categories, names.index(to_remove))
            )

    with tab_security:
        new_pin = st.text_input("PIN Baru", form_state.admin_pin, type="password")
        confirm_pin = st.text_input("Konfirmasi PIN", form_state.admin_pin, type="password")

    st.session_state.admin_form = form_state

    if st.button("Simpan Konfigurasi", type="primary"):
        try:
            saved = save_admin(
                store,
                form_state,
                new_pin,
                confirm_pin,
                spreadsheet_id=sheet_id,
                data_source=form_state.data_source,
            )
        except ValidationError as e:
            st.error(str(e))
        else:
            st.session_state.admin_form = saved
            st.success("Konfigurasi berhasil disimpan!")
