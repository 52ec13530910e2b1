import streamlit as st
import pandas as pd

from columns import ADDRESS, PARTY_NAME, SALES_PHONE
from reconcile import report_summary
from session import RouteSession, WizardStep
from tabular import report_frame


# ---------- Page Config ----------
st.set_page_config(page_title="Excel Route Manager", layout="wide")

STEP_LABELS = {
    WizardStep.UPLOAD_INITIAL: "Upload",
    WizardStep.VERIFY_MISSING: "Verify",
    WizardStep.UPLOAD_TEMPLATE: "Report",
    WizardStep.COMPLETE: "Done",
}


def get_session() -> RouteSession:
    """One RouteSession per browser session."""
    if "route_session" not in st.session_state:
        st.session_state.route_session = RouteSession()
    return st.session_state.route_session


def render_progress(session: RouteSession) -> None:
    st.caption(f"STEP {int(session.step)} OF {len(WizardStep)}")
    st.progress(int(session.step) / len(WizardStep))
    st.markdown(
        "  ›  ".join(
            f"**{label}**" if session.step >= step else label
            for step, label in STEP_LABELS.items()
        )
    )


def render_error(session: RouteSession) -> None:
    if session.error:
        st.error(session.error)
        if session.error_detail:
            with st.expander("Details"):
                st.code(session.error_detail, language="text")


# ==============================
#  Step 1: Upload master + sales
# ==============================

def render_upload_step(session: RouteSession) -> None:
    col_left, col_right = st.columns(2)

    with col_left:
        st.subheader("Master Database")
        st.caption("Party Name, Number, Address")
        master_file = st.file_uploader(
            "Master file",
            type=["csv", "xlsx", "xls"],
            key="upload_master",
        )
        if master_file is not None and not session.has_loaded("master", master_file.getvalue()):
            session.load_file("master", master_file.getvalue(), master_file.name)
        if session.master_file_name:
            st.success(f"{session.master_file_name} ({len(session.master):,} rows)")

    with col_right:
        st.subheader("Current Sales File")
        st.caption("Party Name, Phone No.")
        sales_file = st.file_uploader(
            "Sales file",
            type=["csv", "xlsx", "xls"],
            key="upload_sales",
        )
        if sales_file is not None and not session.has_loaded("sales", sales_file.getvalue()):
            session.load_file("sales", sales_file.getvalue(), sales_file.name)
        if session.sales_file_name:
            st.success(f"{session.sales_file_name} ({len(session.sales):,} rows)")

    render_error(session)

    if st.button("Analyze Data ›", type="primary", disabled=not session.ready_to_analyze):
        with st.spinner("Looking for parties missing from master..."):
            session.analyze()
        st.rerun()


# ==============================
#  Step 2: Verify missing parties
# ==============================

def render_verify_step(session: RouteSession) -> None:
    st.subheader("Missing Parties Detected")
    st.write(
        f"Found {len(session.missing)} parties in sales that are not in the master file."
    )

    editor_df = pd.DataFrame([party.as_row() for party in session.missing])
    edited = st.data_editor(
        editor_df,
        key="missing_editor",
        hide_index=True,
        use_container_width=True,
        disabled=[PARTY_NAME],
        column_config={
            SALES_PHONE: st.column_config.TextColumn("Phone Number", help="e.g. 0300-XXXXXXX"),
            ADDRESS: st.column_config.TextColumn(
                "Address (Include GPS for Map)", help="e.g. Main St, City (31.5 74.2)"
            ),
        },
    )

    for idx, row in edited.iterrows():
        party = session.missing[idx]
        phone = row[SALES_PHONE] or ""
        address = row[ADDRESS] or ""
        if phone != party.phone:
            session.edit_missing(idx, "phone", phone)
        if address != party.address:
            session.edit_missing(idx, "address", address)

    collisions = session.name_collisions()
    if collisions:
        st.warning(
            "These names already exist in master and will be duplicated: "
            + ", ".join(p.name for p in collisions)
        )

    col_back, col_next = st.columns([1, 3])
    if col_back.button("Back"):
        session.back()
        st.rerun()
    if col_next.button("Update Master & Continue ›", type="primary"):
        session.finalize_missing()
        st.rerun()


# ==============================
#  Step 3: Template + report
# ==============================

def render_template_step(session: RouteSession) -> None:
    st.subheader("Final Step: Upload Template")
    st.write(
        "Upload the route report template. The system will map all processed data "
        "and extract GPS coordinates from addresses to generate your final file."
    )

    template_file = st.file_uploader(
        "Choose Template File",
        type=["csv", "xlsx", "xls"],
        key="upload_template",
        help="XLSX or CSV supported",
    )

    render_error(session)

    if template_file is None:
        return

    if st.button("Generate Report", type="primary"):
        with st.spinner("Generating Report..."):
            session.generate_report(template_file.getvalue(), template_file.name)
        st.rerun()


# ==============================
#  Step 4: Complete
# ==============================

def render_complete_step(session: RouteSession) -> None:
    st.success("Report Generated Successfully!")
    st.write(
        "All addresses were scanned for GPS coordinates and missing parties were integrated."
    )

    counts = report_summary(session.report_rows)
    col1, col2, col3 = st.columns(3)
    col1.metric("Report Rows", f"{counts['rows']:,}")
    col2.metric("Rows With Address", f"{counts['with_address']:,}")
    col3.metric("Rows With GPS", f"{counts['with_coordinates']:,}")

    st.download_button(
        label="📥 Download " + session.report_file_name,
        data=session.report_bytes,
        file_name=session.report_file_name,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    with st.expander("Preview"):
        st.dataframe(report_frame(session.report_rows), use_container_width=True, hide_index=True)

    if st.button("Start Over"):
        session.reset()
        for key in ("upload_master", "upload_sales", "upload_template", "missing_editor"):
            st.session_state.pop(key, None)
        st.rerun()


# ==============================
#  Main entrypoint
# ==============================
def main():
    st.title("📍 Excel Route Manager")

    session = get_session()
    render_progress(session)
    st.divider()

    if session.step == WizardStep.UPLOAD_INITIAL:
        render_upload_step(session)
    elif session.step == WizardStep.VERIFY_MISSING:
        render_verify_step(session)
    elif session.step == WizardStep.UPLOAD_TEMPLATE:
        render_template_step(session)
    else:
        render_complete_step(session)


if __name__ == "__main__":
    main()
