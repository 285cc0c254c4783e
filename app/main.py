"""
Streamlit Frontend for ResiboKo

This is the user interface that field sales agents use to log receipts
and prepare their liquidation reports.

DESIGN PRINCIPLES:
1. Simple, clear interface (works on a phone browser)
2. Explicit confirmation before anything is saved
3. Clear error messages with a way to try again
4. No hidden actions

The UI enforces the human-in-the-loop principle:
- User sees what Gemini extracted
- User confirms or edits
- Nothing is saved without an explicit "Save" action
"""

import asyncio
import html
from decimal import Decimal

import streamlit as st

from resiboko.agents import AnalysisError, ExtractionError, render_analysis, to_html
from resiboko.audit import create_correlation_id
from resiboko.config import get_settings
from resiboko.models.transaction import CaptureSource, TransactionCategory, TransactionRecord
from resiboko.orchestrator import (
    InsightsFlow,
    ReceiptCaptureFlow,
    ReportFlow,
    create_app_components,
)
from resiboko.queries import Period
from resiboko.reports import format_currency
from resiboko.services.sync import SyncError
from resiboko.validation import IncompleteRecordError, UploadTooLargeError, YearMismatchError


EXTRACTION_FAILED_MESSAGE = "Failed to analyze the receipt. Please try again."
ANALYSIS_FAILED_MESSAGE = "Failed to get insights. Please try again."
SYNC_FAILED_MESSAGE = "Syncing failed. Check the logs for more details."

EXAMPLE_PROMPTS = [
    "Are my claims ready for submission?",
    "How much did I spend on gas and toll?",
    "Show all expenses for client meetings.",
    "Find any issues that might get my claims rejected.",
]


# Page configuration
st.set_page_config(
    page_title="ResiboKo",
    page_icon="🧾",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .answer-box {
        padding: 20px;
        background-color: #f4f8fb;
        border-radius: 10px;
        border-left: 5px solid #2980b9;
        margin: 10px 0;
    }
    .missing-purpose {
        display: inline-block;
        padding: 2px 8px;
        background-color: #ffebee;
        color: #c62828;
        border-radius: 8px;
        font-size: 0.8em;
        font-weight: bold;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def init_session_state(capture_flow: ReceiptCaptureFlow):
    """Load the record list once per session."""
    if "records" not in st.session_state:
        st.session_state.records = capture_flow.load()
    defaults = {
        "capture_state": "idle",  # idle, reviewing, error, saved
        "draft": None,
        "capture_error": None,
        "correlation_id": None,
        "sync_status": "idle",  # idle, syncing, synced
        "answer": None,
        "query_text": "",
        "csv_file": None,
        "pdf_result": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def main():
    """Main application entry point."""
    capture_flow, insights_flow, report_flow, _ = get_components()
    init_session_state(capture_flow)

    # Sidebar navigation
    st.sidebar.title("🧾 ResiboKo")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["➕ Add Receipt", "📊 History", "💬 Ask Kuya Claims", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Snap, upload or describe your receipt
        2. Review the extracted details
        3. Save, then export your liquidation report
        """
    )

    # Route to appropriate page
    if page == "➕ Add Receipt":
        render_capture_page(capture_flow)
    elif page == "📊 History":
        render_history_page(capture_flow, report_flow)
    elif page == "💬 Ask Kuya Claims":
        render_insights_page(insights_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def reset_capture():
    st.session_state.capture_state = "idle"
    st.session_state.draft = None
    st.session_state.capture_error = None
    st.session_state.correlation_id = None


def analyze(capture_flow: ReceiptCaptureFlow, uploaded, source: CaptureSource):
    """Send a captured file to Gemini and move to review or error."""
    st.session_state.correlation_id = create_correlation_id()
    with st.spinner("Analyzing your receipt..."):
        try:
            if source == CaptureSource.AUDIO:
                draft = run_async(capture_flow.analyze_audio(
                    uploaded.getvalue(),
                    uploaded.type or "audio/wav",
                    correlation_id=st.session_state.correlation_id,
                ))
            else:
                draft = run_async(capture_flow.analyze_image(
                    uploaded.getvalue(),
                    uploaded.type or "image/jpeg",
                    source=source,
                    correlation_id=st.session_state.correlation_id,
                ))
        except (YearMismatchError, UploadTooLargeError) as e:
            st.session_state.capture_state = "error"
            st.session_state.capture_error = str(e)
            return
        except ExtractionError:
            st.session_state.capture_state = "error"
            st.session_state.capture_error = EXTRACTION_FAILED_MESSAGE
            return

    st.session_state.draft = draft
    st.session_state.capture_state = "reviewing"


def render_capture_page(capture_flow: ReceiptCaptureFlow):
    """Render the receipt capture page."""
    st.title("➕ Add Receipt")

    state = st.session_state.capture_state

    if state == "error":
        st.markdown(f"""
        <div class="error-box">
            <h4>❌ Something went wrong</h4>
            <p>{html.escape(st.session_state.capture_error)}</p>
        </div>
        """, unsafe_allow_html=True)
        if st.button("🔄 Try Again", type="primary"):
            reset_capture()
            st.rerun()
        return

    if state == "reviewing":
        render_review_form(capture_flow)
        return

    if state == "saved":
        st.success("✅ Receipt saved!")
        if st.button("➕ Add Another Receipt"):
            reset_capture()
            st.rerun()
        return

    app_settings = get_settings().app
    image_types = app_settings.supported_image_formats_list

    upload_tab, camera_tab, voice_tab, manual_tab = st.tabs(
        ["📁 Upload", "📷 Camera", "🎙️ Voice", "✍️ Manual"]
    )

    with upload_tab:
        uploaded_file = st.file_uploader(
            "Choose a receipt photo",
            type=image_types,
            help="Take a clear, well-lit photo of the whole receipt",
        )
        if uploaded_file and st.button("🔍 Analyze Receipt", type="primary", key="analyze_upload"):
            analyze(capture_flow, uploaded_file, CaptureSource.IMAGE)
            st.rerun()

    with camera_tab:
        photo = st.camera_input("Snap the receipt")
        if photo and st.button("🔍 Analyze Photo", type="primary", key="analyze_camera"):
            analyze(capture_flow, photo, CaptureSource.CAMERA)
            st.rerun()

    with voice_tab:
        st.markdown(
            "*Describe the expense, e.g. \"Shell gas 500 pesos kanina, "
            "site tripping for Ayala\"*"
        )
        recording = st.audio_input("Record a voice note")
        if recording and st.button("🔍 Analyze Voice Note", type="primary", key="analyze_voice"):
            analyze(capture_flow, recording, CaptureSource.AUDIO)
            st.rerun()
        voice_file = st.file_uploader(
            "...or upload a voice note",
            type=app_settings.supported_audio_formats_list,
            key="voice_upload",
        )
        if voice_file and st.button("🔍 Analyze Voice File", type="primary", key="analyze_voice_file"):
            analyze(capture_flow, voice_file, CaptureSource.AUDIO)
            st.rerun()

    with manual_tab:
        st.markdown("Type the receipt details yourself.")
        if st.button("✍️ Enter Manually", key="manual_entry"):
            st.session_state.correlation_id = create_correlation_id()
            st.session_state.draft = TransactionRecord()
            st.session_state.capture_state = "reviewing"
            st.rerun()


def render_review_form(capture_flow: ReceiptCaptureFlow):
    """Editable review form for the current draft."""
    draft: TransactionRecord = st.session_state.draft
    categories = list(TransactionCategory)

    st.subheader("📋 Review Receipt")
    st.markdown("*You can edit any field before saving*")

    with st.form("review_form"):
        name = st.text_input("Transaction *", value=draft.name or "", max_chars=200)
        amount = st.number_input(
            "Amount (₱) *",
            value=float(draft.amount) if draft.amount is not None else None,
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        txn_date = st.date_input("Date *", value=draft.date)
        category = st.selectbox(
            "Category *",
            options=categories,
            index=categories.index(draft.category) if draft.category else None,
            format_func=lambda c: c.value,
        )
        counterparty = st.text_input("Client/Prospect", value=draft.counterparty or "", max_chars=200)
        purpose = st.text_input(
            "Purpose",
            value=draft.purpose or "",
            max_chars=500,
            help="Claims without a purpose are often flagged by managers",
        )

        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("✅ Save", type="primary")
        with col2:
            discard = st.form_submit_button("🗑️ Discard")

    if discard:
        run_async(capture_flow.discard(st.session_state.correlation_id))
        reset_capture()
        st.rerun()

    if save:
        edited = TransactionRecord(
            name=name,
            amount=Decimal(str(amount)) if amount is not None else None,
            date=txn_date,
            category=category,
            counterparty=counterparty,
            purpose=purpose,
        )
        try:
            st.session_state.records = run_async(capture_flow.save(
                st.session_state.records,
                edited,
                correlation_id=st.session_state.correlation_id,
            ))
        except IncompleteRecordError as e:
            st.error(str(e))
            return
        st.session_state.csv_file = None
        st.session_state.pdf_result = None
        reset_capture()
        st.session_state.capture_state = "saved"
        st.rerun()


def render_record(
    capture_flow: ReceiptCaptureFlow,
    record: TransactionRecord,
    index: int,
    currency: str,
):
    col1, col2, col3 = st.columns([4, 2, 1])
    with col1:
        st.markdown(f"**{record.name}**")
        details = [record.date.isoformat() if record.date else "No date"]
        details.append(record.category.value if record.category else "Uncategorized")
        if record.counterparty:
            details.append(f"👥 {record.counterparty}")
        st.caption(" · ".join(details))
        if record.has_purpose:
            st.caption(f"📄 {record.purpose}")
        else:
            st.markdown('<span class="missing-purpose">Missing Purpose</span>', unsafe_allow_html=True)
    with col2:
        st.markdown(f"**{format_currency(record.amount, currency)}**")
    with col3:
        if st.button("🗑️", key=f"delete_{record.id}_{index}", help="Delete this receipt"):
            st.session_state.records = run_async(
                capture_flow.delete(st.session_state.records, record.id)
            )
            st.session_state.csv_file = None
            st.session_state.pdf_result = None
            st.rerun()


def render_history_page(capture_flow: ReceiptCaptureFlow, report_flow: ReportFlow):
    """Render the saved receipts and reports page."""
    st.title("📊 History")

    period = st.radio(
        "Period",
        options=list(Period),
        index=list(Period).index(Period.ALL),
        format_func=lambda p: p.value,
        horizontal=True,
    )
    if st.session_state.get("history_period") != period:
        st.session_state.history_period = period
        st.session_state.csv_file = None
        st.session_state.pdf_result = None

    summary = report_flow.summarize(st.session_state.records, period)
    currency = get_settings().app.currency_symbol
    st.subheader(summary.title)

    if summary.is_empty:
        st.info("📋 No receipts for this period yet. Use 'Add Receipt' to log one.")
    elif summary.is_all:
        for i, record in enumerate(summary.records):
            render_record(capture_flow, record, i, currency)
            st.markdown("---")
    else:
        for total in summary.totals:
            col1, col2 = st.columns([3, 2])
            col1.markdown(total.category)
            col2.markdown(f"**{format_currency(total.total, currency)}**")

    st.markdown(
        f'Total: <span class="big-number">{format_currency(summary.grand_total, currency)}</span>',
        unsafe_allow_html=True,
    )

    st.markdown("---")
    st.subheader("📤 Export")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("📄 Prepare CSV"):
            st.session_state.csv_file = run_async(report_flow.export_csv(summary))
        csv_file = st.session_state.csv_file
        if csv_file:
            st.download_button(
                "⬇️ Download CSV",
                data=csv_file.content,
                file_name=csv_file.file_name,
                mime=csv_file.mime_type,
            )
    with col2:
        if st.button("🧾 Prepare PDF Report"):
            st.session_state.pdf_result = run_async(report_flow.export_pdf(summary))
        pdf_result = st.session_state.pdf_result
        if pdf_result and pdf_result.ok:
            st.download_button(
                "⬇️ Download PDF",
                data=pdf_result.file.content,
                file_name=pdf_result.file.file_name,
                mime=pdf_result.file.mime_type,
            )
        elif pdf_result:
            st.info(pdf_result.notice)

    render_sync_section(report_flow)


def render_sync_section(report_flow: ReportFlow):
    st.markdown("---")
    st.subheader("☁️ Sync to Google Sheets")

    if not report_flow.can_sync:
        st.caption("Sync is not configured. See the Settings page.")
        return

    # idle -> syncing -> synced -> idle, one script run per step
    status = st.session_state.sync_status
    if st.button("☁️ Sync Now", key="sync_now", disabled=status == "syncing"):
        st.session_state.sync_status = "syncing"
        st.rerun()

    if status == "syncing":
        with st.spinner("Syncing..."):
            try:
                run_async(report_flow.sync(st.session_state.records))
            except SyncError:
                st.session_state.sync_status = "idle"
                st.error(SYNC_FAILED_MESSAGE)
                return
        st.session_state.sync_status = "synced"
        st.rerun()

    if status == "synced":
        st.success("✅ Synced")
        st.session_state.sync_status = "idle"


def set_query(prompt: str):
    st.session_state.query_text = prompt


def render_insights_page(insights_flow: InsightsFlow):
    """Render the Ask Kuya Claims page."""
    st.title("💬 Ask Kuya Claims")
    st.markdown("Ask anything about your receipts, and check if your claims are ready.")

    records = st.session_state.records
    if not records:
        st.info("📋 Save a few receipts first, then Kuya Claims can review them.")
        return

    st.markdown("**Try asking:**")
    cols = st.columns(2)
    for i, prompt in enumerate(EXAMPLE_PROMPTS):
        cols[i % 2].button(prompt, key=f"example_{i}", on_click=set_query, args=(prompt,))

    query = st.text_area(
        "Your question:",
        key="query_text",
        placeholder="e.g., Are my claims ready for submission?",
    )

    if st.button("🔍 Ask", type="primary", disabled=not query.strip()):
        with st.spinner("Kuya Claims is checking your receipts..."):
            try:
                st.session_state.answer = run_async(insights_flow.ask(records, query))
            except AnalysisError:
                st.session_state.answer = None
                st.error(ANALYSIS_FAILED_MESSAGE)

    if st.session_state.answer:
        st.markdown(
            f'<div class="answer-box">{to_html(render_analysis(st.session_state.answer))}</div>',
            unsafe_allow_html=True,
        )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    # Check services
    from resiboko.config import validate_all_settings

    status = validate_all_settings()

    services = [
        ("Gemini (AI)", "gemini"),
        ("Local Storage", "storage"),
        ("Spreadsheet Sync", "sync"),
        ("App Settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown(f"**Saved receipts:** {len(st.session_state.records)}")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
