import streamlit as st
import pandas as pd
import os
import base64

import config
from billing import build_statements, grand_total
from bs_calendar import BSCalendar, format_display
from daily_entry import save_daily_row
from database import DairyDatabase
from models import Advance, Farmer, MORNING, EVENING
from report_generator import DairyReportGenerator, ReportError, format_range, statement_to_dataframe
from validation import ValidationError, validate_advance, validate_date, validate_farmer

config.configure_logging()

# Set page title and favicon
st.set_page_config(
    page_title=f"{config.DAIRY_NAME} - Milk Collection",
    page_icon="🐄",
    layout="wide"
)


# Initialize database
@st.cache_resource
def get_database():
    return DairyDatabase(config.DB_PATH)


db = get_database()


# Initialize report generator
@st.cache_resource
def get_report_generator():
    return DairyReportGenerator()


report_gen = get_report_generator()
calendar = BSCalendar()

ALL_FARMERS = "all"


def get_download_link(file_path, link_text):
    """Generate a download link for a file."""
    with open(file_path, "rb") as f:
        data = f.read()
    b64 = base64.b64encode(data).decode()
    href = f'<a href="data:application/octet-stream;base64,{b64}" download="{os.path.basename(file_path)}">{link_text}</a>'
    return href


def farmer_label(farmer: Farmer) -> str:
    return f"#{farmer.farmer_no} - {farmer.name}"


# Main app structure
def main():
    st.title(f"🐄 {config.DAIRY_NAME}")
    st.caption(f"{config.DAIRY_ADDRESS} | Today: {format_display(calendar.today())}")

    page = st.sidebar.radio(
        "Navigate",
        options=["Daily Entry", "Farmers", "Advances", "Report"]
    )

    if page == "Daily Entry":
        show_daily_entry_page()
    elif page == "Farmers":
        show_farmers_page()
    elif page == "Advances":
        show_advances_page()
    elif page == "Report":
        show_report_page()


# Daily entry page
def show_daily_entry_page():
    st.header("Daily Entry")

    farmers = db.list_farmers()
    if not farmers:
        st.warning("No farmers found. Please add a farmer first.")
        return

    entry_date = st.text_input("Date (BS, YYYY-MM-DD)", value=calendar.today(), key="entry_date")
    try:
        entry_date = validate_date(entry_date)
    except ValidationError as e:
        st.error(str(e))
        return
    st.write(f"**{format_display(entry_date)}**")

    logs = db.list_logs_by_date(entry_date)
    logged = {(log.farmer_id, log.shift): log for log in logs}

    header = st.columns([2, 1, 1, 1, 1, 1, 1])
    for col, title in zip(header, ["Farmer", "Morning Milk", "Morning Fat",
                                   "Evening Milk", "Evening Fat", "Advance", ""]):
        col.markdown(f"**{title}**")

    for farmer in farmers:
        morning = logged.get((farmer.id, MORNING))
        evening = logged.get((farmer.id, EVENING))

        with st.form(f"entry_{farmer.id}_{entry_date}"):
            cols = st.columns([2, 1, 1, 1, 1, 1, 1])
            with cols[0]:
                saved_marker = " ✓" if (morning or evening) else ""
                st.write(f"{farmer_label(farmer)}{saved_marker}")
                if farmer.advance_balance > 0:
                    st.caption(f"Advance: Rs. {farmer.advance_balance:.2f}")
            key = f"{farmer.id}_{entry_date}"
            morning_milk = cols[1].text_input("Morning Milk", value=str(morning.milk) if morning else "",
                                              label_visibility="collapsed", key=f"mm_{key}")
            morning_fat = cols[2].text_input("Morning Fat", value=str(morning.fat) if morning else "",
                                             label_visibility="collapsed", key=f"mf_{key}")
            evening_milk = cols[3].text_input("Evening Milk", value=str(evening.milk) if evening else "",
                                              label_visibility="collapsed", key=f"em_{key}")
            evening_fat = cols[4].text_input("Evening Fat", value=str(evening.fat) if evening else "",
                                             label_visibility="collapsed", key=f"ef_{key}")
            advance = cols[5].text_input("Advance", value="", label_visibility="collapsed",
                                         key=f"adv_{key}")
            submit = cols[6].form_submit_button("Save")

            if submit:
                try:
                    success = save_daily_row(
                        db, farmer, entry_date,
                        morning_milk, morning_fat, evening_milk, evening_fat, advance
                    )
                except ValidationError as e:
                    st.error(str(e))
                else:
                    if success:
                        st.success(f"Saved entry for #{farmer.farmer_no}")
                    else:
                        st.error("Failed to save entry")

    # Day summary
    logs = db.list_logs_by_date(entry_date)
    if logs:
        st.subheader("Today's Collection")
        statements = build_statements(farmers, logs, entry_date, entry_date, calendar)
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Total Milk (L)", f"{sum(log.milk for log in logs):.2f}")
        with col2:
            st.metric("Total Fat Units", f"{sum(s.total_fat_units for s in statements):.2f}")
        with col3:
            st.metric("Total Amount", f"Rs. {grand_total(statements):.2f}")


# Farmers page
def show_farmers_page():
    st.header("Farmer Management")

    tab1, tab2 = st.tabs(["View Farmers", "Add Farmer"])

    with tab1:
        show_farmers_list()

    with tab2:
        show_add_farmer_form()


def show_farmers_list():
    farmers = db.list_farmers()

    if not farmers:
        st.info("No farmers found. Add a farmer to get started.")
        return

    farmer_df = pd.DataFrame([
        {
            "Farmer No": f.farmer_no,
            "Name": f.name,
            "Fixed Rate": f"{f.fixed_rate:.2f}",
            "Advance Balance": f"{f.advance_balance:.2f}",
        }
        for f in farmers
    ])
    st.dataframe(farmer_df, hide_index=True)

    st.subheader("Farmer Actions")
    col1, col2 = st.columns(2)
    with col1:
        farmer_id = st.selectbox(
            "Select Farmer",
            options=[f.id for f in farmers],
            format_func=lambda x: next((farmer_label(f) for f in farmers if f.id == x), "")
        )
    with col2:
        action = st.selectbox("Action", options=["Edit", "Delete"])

    farmer = next(f for f in farmers if f.id == farmer_id)
    if action == "Edit":
        show_edit_farmer_form(farmer)
    elif action == "Delete":
        if st.button(f"Delete farmer #{farmer.farmer_no} - {farmer.name}"):
            if db.delete_farmer(farmer.id):
                st.success("Farmer deleted")
                st.rerun()
            else:
                st.error("Failed to delete farmer.")


def show_add_farmer_form():
    st.subheader("Add New Farmer")

    with st.form("add_farmer_form"):
        farmer_no = st.number_input("Farmer No", min_value=1, step=1, value=db.next_farmer_no())
        name = st.text_input("Farmer Name")
        fixed_rate = st.number_input("Fixed Rate (Rs per fat unit)", min_value=0.0, step=0.5,
                                     value=config.DEFAULT_FIXED_RATE)

        submit = st.form_submit_button("Add Farmer")

        if submit:
            try:
                number, clean_name, rate = validate_farmer(farmer_no, name, fixed_rate)
            except ValidationError as e:
                st.error(str(e))
                return
            farmer = db.add_farmer(Farmer(farmer_no=number, name=clean_name, fixed_rate=rate))
            if farmer:
                st.success("Farmer added successfully")
            else:
                st.error(f"Failed to add farmer. Is farmer number {number} already taken?")


def show_edit_farmer_form(farmer: Farmer):
    with st.form(f"edit_farmer_form_{farmer.id}"):
        farmer_no = st.number_input("Farmer No", min_value=1, step=1, value=farmer.farmer_no)
        name = st.text_input("Farmer Name", value=farmer.name)
        fixed_rate = st.number_input("Fixed Rate (Rs per fat unit)", min_value=0.0, step=0.5,
                                     value=farmer.fixed_rate)

        submit = st.form_submit_button("Update Farmer")

        if submit:
            try:
                number, clean_name, rate = validate_farmer(farmer_no, name, fixed_rate)
            except ValidationError as e:
                st.error(str(e))
                return
            updated = Farmer(
                id=farmer.id,
                farmer_no=number,
                name=clean_name,
                fixed_rate=rate,
                advance_balance=farmer.advance_balance,
                created_at=farmer.created_at
            )
            if db.update_farmer(updated):
                st.success("Farmer updated successfully")
                st.rerun()
            else:
                st.error("Failed to update farmer.")


# Advances page
def show_advances_page():
    st.header("Advance Tracker")

    farmers = db.list_farmers()
    if not farmers:
        st.warning("No farmers found. Please add a farmer first.")
        return

    total_outstanding = sum(f.advance_balance for f in farmers)
    st.metric("Total Outstanding Advances", f"Rs. {total_outstanding:.2f}")

    if st.button("Recalculate Balances"):
        count = db.reconcile_all_advance_balances()
        st.success(f"Recalculated advance balance for {count} of {len(farmers)} farmers")

    with st.form("add_advance_form", clear_on_submit=True):
        st.subheader("Record Advance")
        col1, col2, col3 = st.columns(3)
        with col1:
            farmer_id = st.selectbox(
                "Farmer",
                options=[f.id for f in farmers],
                format_func=lambda x: next((farmer_label(f) for f in farmers if f.id == x), ""),
                index=None,
                placeholder="Select a farmer"
            )
        with col2:
            advance_date = st.text_input("Date (BS)", value=calendar.today())
        with col3:
            amount = st.text_input("Amount (Rs)")
        remarks = st.text_input("Remarks")

        submit = st.form_submit_button("Save Advance")

        if submit:
            try:
                advance_date, value = validate_advance(farmer_id, advance_date, amount)
            except ValidationError as e:
                st.error(str(e))
            else:
                farmer = next(f for f in farmers if f.id == farmer_id)
                saved = db.add_advance(Advance(
                    farmer_id=farmer.id,
                    farmer_no=farmer.farmer_no,
                    date=advance_date,
                    amount=value,
                    remarks=remarks
                ))
                if saved:
                    st.success("Advance recorded successfully")
                    st.rerun()
                else:
                    st.error("Failed to record advance")

    st.subheader("Advance History")
    advances = db.list_advances()
    if not advances:
        st.info("No advances recorded.")
        return

    names = {f.id: f.name for f in farmers}
    for advance in advances:
        col1, col2, col3, col4, col5 = st.columns([2, 2, 1, 2, 1])
        col1.write(format_display(advance.date))
        col2.write(f"#{advance.farmer_no} - {names.get(advance.farmer_id, 'Unknown')}")
        col3.write(f"{advance.amount:.2f}")
        col4.write(advance.remarks)
        if col5.button("Delete", key=f"delete_advance_{advance.id}"):
            if db.delete_advance(advance.id, advance.farmer_id):
                st.success("Advance deleted")
                st.rerun()
            else:
                st.error("Failed to delete advance")


# Report page
def show_report_page():
    st.header("Farmer Statement")

    farmers = db.list_farmers()

    col1, col2, col3 = st.columns(3)
    with col1:
        start_date = st.text_input("From (BS)", value=config.REPORT_DEFAULT_START)
    with col2:
        end_date = st.text_input("To (BS)", value=config.REPORT_DEFAULT_END)
    with col3:
        selected = st.selectbox(
            "Farmer",
            options=[ALL_FARMERS] + [f.id for f in farmers],
            format_func=lambda x: "All Farmers" if x == ALL_FARMERS else next(
                (farmer_label(f) for f in farmers if f.id == x), "")
        )

    try:
        start_date = validate_date(start_date)
        end_date = validate_date(end_date)
    except ValidationError as e:
        st.error(str(e))
        return

    if selected == ALL_FARMERS:
        report_farmers = farmers
    else:
        report_farmers = [f for f in farmers if f.id == selected]

    statements = build_statements(report_farmers, db.list_logs(), start_date, end_date, calendar)

    if not statements:
        st.info("No farmers found. Add farmers to generate reports.")
        return

    for statement in statements:
        st.markdown(f"### {config.DAIRY_NAME}")
        st.caption(config.DAIRY_ADDRESS)
        info_col1, info_col2 = st.columns(2)
        info_col1.write(f"**Farmer Name:** {statement.farmer.name}")
        info_col2.write(f"**Farmer No:** {statement.farmer.farmer_no}")
        st.write(f"**{format_range(statement.start_date, statement.end_date)}**")
        st.dataframe(statement_to_dataframe(statement), hide_index=True, use_container_width=True)
        st.markdown("---")

    show_grand_total = selected == ALL_FARMERS and len(statements) > 1
    if show_grand_total:
        st.metric("Grand Total (All Farmers)", f"Rs. {grand_total(statements):.2f}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Generate PDF Statement"):
            try:
                pdf_path = report_gen.create_statement_pdf(statements, show_grand_total=show_grand_total)
            except ReportError as e:
                st.error(str(e))
            else:
                st.markdown(
                    get_download_link(pdf_path, "Download PDF Statement"),
                    unsafe_allow_html=True
                )
    with col2:
        if st.button("Export to Excel"):
            excel_path = report_gen.export_statements_to_excel(statements)
            st.markdown(
                get_download_link(excel_path, "Download Excel Statement"),
                unsafe_allow_html=True
            )


if __name__ == "__main__":
    main()
