"""
Zakat Collection Dashboard — data layer

Turns a live Google Sheets export (or manually entered state) into the
totals, per-category breakdowns and time series a fundraising dashboard
renders.

To sync from a spreadsheet:
    Build a SyncOrchestrator over a DashboardStore and call
    sync(spreadsheet_id). Wrap it in AutoSync to poll every minute.

To connect to Streamlit:
    Call dashboard.get_filtered_view(store.state, selection) to get the
    stat tiles, monthly series and daily series for the current filter.

To accept a new column spelling from the sheet:
    Add the alias to config.FIELD_ALIASES under its canonical field.
"""
