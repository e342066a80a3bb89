"""
Streamlit Frontend for SubTrack

Three pages:
1. Subscriptions - the list, with edit and delete
2. Add / Edit - the subscription form
3. Totals - monthly-equivalent spend per currency

The form is driven by an immutable draft held in session state. Every
widget change goes through the draft reducer, so derived values (the
renewal date after a frequency change, the suggested icon) stay
consistent with what the user typed.
"""

import asyncio

import streamlit as st

from subtrack.audit import create_correlation_id
from subtrack.config import get_settings, validate_all_settings
from subtrack.core import format_amount
from subtrack.forms import FieldChange, SubscriptionDraft, draft_from_record, new_draft, reduce
from subtrack.models import CURRENCY_SYMBOLS, FREQUENCY_LABELS, Frequency, SubscriptionRecord
from subtrack.orchestrator import SubscriptionFlow, TotalsFlow, create_app_components
from subtrack.services.storage import StorageError
from subtrack.validation import RecordValidationError, SubscriptionValidator


LIST_PAGE = "📋 Subscriptions"
FORM_PAGE = "➕ Add / Edit"
TOTALS_PAGE = "📊 Totals"
SETTINGS_PAGE = "⚙️ Settings"

# Session-state keys of the form widgets, by draft field
FORM_WIDGETS = {
    "name": "form_name",
    "price_text": "form_price_text",
    "frequency": "form_frequency",
    "include_tax": "form_include_tax",
    "is_free_trial": "form_is_free_trial",
    "is_cancelled": "form_is_cancelled",
    "renewal_date": "form_renewal_date",
}


# Page configuration
st.set_page_config(
    page_title="SubTrack",
    page_icon="💳",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .summary-card {
        padding: 16px;
        background-color: #ffffff;
        border-radius: 10px;
        border-left: 5px solid #2c3e50;
        margin: 6px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
    .badge-trial {
        color: #28a745;
        font-weight: bold;
    }
    .badge-cancelled {
        color: #dc3545;
        font-weight: bold;
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
def get_components() -> tuple[SubscriptionFlow, TotalsFlow]:
    """Get or create application components (cached)."""
    return create_app_components()


# =============================================================================
# FORM STATE
# =============================================================================

def _sync_widgets(draft: SubscriptionDraft) -> None:
    """Push draft values back into the form widgets."""
    for field, key in FORM_WIDGETS.items():
        st.session_state[key] = getattr(draft, field)


def _set_draft(draft: SubscriptionDraft) -> None:
    st.session_state.draft = draft
    _sync_widgets(draft)


def _on_field_change(field: str) -> None:
    value = st.session_state[FORM_WIDGETS[field]]
    _set_draft(reduce(st.session_state.draft, FieldChange(field=field, value=value)))


def _on_cycle_currency() -> None:
    _set_draft(reduce(st.session_state.draft, FieldChange(field="cycle_currency")))


def _start_new() -> None:
    default_currency = get_settings().app.default_currency
    _set_draft(new_draft(currency=default_currency))
    st.session_state.correlation_id = create_correlation_id()
    st.session_state.page = FORM_PAGE


def _start_edit(record: SubscriptionRecord) -> None:
    _set_draft(draft_from_record(record))
    st.session_state.correlation_id = create_correlation_id()
    st.session_state.page = FORM_PAGE


def _cancel() -> None:
    _start_new()
    st.session_state.page = LIST_PAGE


def _delete(subscription_flow: SubscriptionFlow, record: SubscriptionRecord) -> None:
    try:
        run_async(subscription_flow.delete_subscription(
            record.id,
            correlation_id=create_correlation_id(),
        ))
        st.session_state.flash = ("success", f"Deleted {record.name}")
    except StorageError as e:
        st.session_state.flash = ("error", f"Could not delete {record.name}: {e}")


def _save(subscription_flow: SubscriptionFlow) -> None:
    draft = st.session_state.draft
    try:
        record = run_async(subscription_flow.save_draft(
            draft,
            correlation_id=st.session_state.get("correlation_id"),
        ))
    except RecordValidationError as e:
        st.session_state.flash = ("error", f"Please fix the form: {e}")
        return
    except StorageError as e:
        st.session_state.flash = ("error", f"Failed to save: {e}")
        return

    verb = "Updated" if draft.is_existing else "Added"
    st.session_state.flash = ("success", f"{verb} {record.name}")
    _start_new()
    st.session_state.page = LIST_PAGE


def _find_icon(subscription_flow: SubscriptionFlow) -> None:
    draft = st.session_state.draft
    result = run_async(subscription_flow.find_icon(
        draft.name,
        correlation_id=st.session_state.get("correlation_id"),
    ))
    if result is None:
        st.session_state.flash = ("info", f"No icon found for {draft.name or 'this name'}")
        return
    _set_draft(reduce(draft, FieldChange(field="icon_url", value=result.url)))


def _show_flash() -> None:
    flash = st.session_state.pop("flash", None)
    if flash is None:
        return
    kind, message = flash
    if kind == "success":
        st.success(message)
    elif kind == "error":
        st.error(message)
    else:
        st.info(message)


# =============================================================================
# PAGES
# =============================================================================

def main():
    """Main application entry point."""
    subscription_flow, totals_flow = get_components()

    if "draft" not in st.session_state:
        _start_new()
        st.session_state.page = LIST_PAGE

    # Sidebar navigation
    st.sidebar.title("💳 SubTrack")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [LIST_PAGE, FORM_PAGE, TOTALS_PAGE, SETTINGS_PAGE],
        key="page",
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Add the services you pay for
        2. Pick how often each one bills
        3. Check your monthly totals
        """
    )

    _show_flash()

    # Route to appropriate page
    if page == LIST_PAGE:
        render_list_page(subscription_flow)
    elif page == FORM_PAGE:
        render_form_page(subscription_flow)
    elif page == TOTALS_PAGE:
        render_totals_page(totals_flow)
    elif page == SETTINGS_PAGE:
        render_settings_page()


def render_list_page(subscription_flow: SubscriptionFlow):
    """Render the subscription list."""
    st.title("📋 Subscriptions")

    st.button("➕ Add Subscription", type="primary", on_click=_start_new)

    try:
        records = run_async(subscription_flow.list_subscriptions())
    except StorageError as e:
        st.error(f"Could not load subscriptions: {e}")
        return

    if not records:
        st.info("No subscriptions yet. Tap 'Add Subscription' to add your first one.")
        return

    for record in records:
        with st.container(border=True):
            icon_col, info_col, edit_col, delete_col = st.columns([1, 6, 2, 1])

            with icon_col:
                if record.icon_url:
                    st.image(record.icon_url, width=40)

            with info_col:
                price = format_amount(record.price, record.currency)
                tax = " (incl. tax)" if record.include_tax else ""
                st.markdown(
                    f"**{record.name}**  \n"
                    f"{price}{tax} · {FREQUENCY_LABELS[record.frequency]}"
                )
                badges = []
                if record.is_free_trial:
                    badges.append('<span class="badge-trial">Free Trial</span>')
                if record.is_cancelled:
                    badges.append('<span class="badge-cancelled">Cancelled</span>')
                badges.append(
                    f"{record.date_label} on {record.renewal_date.strftime('%b %d, %Y')}"
                )
                st.markdown(" · ".join(badges), unsafe_allow_html=True)

            with edit_col:
                st.button(
                    "✏️ Edit",
                    key=f"edit_{record.id}",
                    on_click=_start_edit,
                    args=(record,),
                )

            with delete_col:
                st.button(
                    "×",
                    key=f"delete_{record.id}",
                    on_click=_delete,
                    args=(subscription_flow, record),
                )

    with st.expander("📅 Upcoming renewals"):
        for record, renewal in run_async(subscription_flow.upcoming_renewals()):
            st.markdown(f"- **{record.name}**: {renewal.strftime('%b %d, %Y')}")


def render_form_page(subscription_flow: SubscriptionFlow):
    """Render the add/edit form."""
    draft: SubscriptionDraft = st.session_state.draft
    # Streamlit drops widget state while the form is off screen
    _sync_widgets(draft)

    st.title("✏️ Edit Subscription" if draft.is_existing else "➕ Add Subscription")

    st.text_input(
        "Service Name *",
        key=FORM_WIDGETS["name"],
        placeholder="Enter service name",
        on_change=_on_field_change,
        args=("name",),
    )

    icon_col, button_col = st.columns([1, 3])
    with icon_col:
        icon = draft.icon_url or draft.suggested_icon_url
        if icon:
            st.image(icon, width=64)
    with button_col:
        st.button(
            "🔍 Find Icon",
            disabled=not draft.name.strip(),
            on_click=_find_icon,
            args=(subscription_flow,),
        )

    price_col, currency_col = st.columns([3, 1])
    with price_col:
        st.text_input(
            "Price *",
            key=FORM_WIDGETS["price_text"],
            placeholder="0.00",
            on_change=_on_field_change,
            args=("price_text",),
        )
    with currency_col:
        st.button(
            f"{CURRENCY_SYMBOLS[draft.currency]} {draft.currency.value}",
            help="Tap to change currency",
            on_click=_on_cycle_currency,
        )

    st.checkbox(
        "Include Tax (13%)",
        key=FORM_WIDGETS["include_tax"],
        on_change=_on_field_change,
        args=("include_tax",),
    )

    st.selectbox(
        "Billing Frequency",
        options=list(Frequency),
        format_func=lambda f: FREQUENCY_LABELS[f],
        key=FORM_WIDGETS["frequency"],
        on_change=_on_field_change,
        args=("frequency",),
    )

    st.date_input(
        draft.date_label,
        key=FORM_WIDGETS["renewal_date"],
        min_value=min(draft.today, draft.renewal_date),
        on_change=_on_field_change,
        args=("renewal_date",),
    )

    trial_col, cancelled_col = st.columns(2)
    with trial_col:
        st.checkbox(
            "Free Trial",
            key=FORM_WIDGETS["is_free_trial"],
            on_change=_on_field_change,
            args=("is_free_trial",),
        )
    with cancelled_col:
        st.checkbox(
            "Cancelled",
            key=FORM_WIDGETS["is_cancelled"],
            on_change=_on_field_change,
            args=("is_cancelled",),
        )

    validator = SubscriptionValidator()
    result = validator.validate_draft(draft)
    if result.issues:
        summary = validator.get_user_friendly_summary(result)
        if result.has_errors:
            st.error(summary)
        else:
            st.warning(summary)

    st.markdown("---")

    save_col, cancel_col = st.columns(2)
    with save_col:
        st.button(
            "💾 Save",
            type="primary",
            disabled=not result.is_valid,
            on_click=_save,
            args=(subscription_flow,),
        )
    with cancel_col:
        st.button("Cancel", on_click=_cancel)


def render_totals_page(totals_flow: TotalsFlow):
    """Render the monthly totals."""
    st.title("📊 Monthly Totals")

    try:
        summary = run_async(totals_flow.compute_totals(
            correlation_id=create_correlation_id(),
        ))
    except (StorageError, RecordValidationError) as e:
        st.error(f"Could not compute totals: {e}")
        return

    count_col, trial_col = st.columns(2)
    with count_col:
        st.markdown(f"""
        <div class="summary-card">
            <p>Total Subscriptions</p>
            <p class="big-number">{summary.record_count}</p>
        </div>
        """, unsafe_allow_html=True)
    with trial_col:
        st.markdown(f"""
        <div class="summary-card">
            <p>Free Trials</p>
            <p class="big-number">{summary.free_trial_count}</p>
        </div>
        """, unsafe_allow_html=True)

    if summary.is_empty:
        st.info("No subscriptions yet. Add some subscriptions to see your monthly totals!")
        return

    st.subheader("Monthly Totals")
    st.caption("All subscription costs converted to monthly equivalent")
    render_currency_breakdown(summary.total, "Total Monthly Cost")

    st.subheader("Active Subscriptions")
    render_currency_breakdown(summary.active, "Active Monthly Cost")

    if summary.cancelled:
        st.subheader("Cancelled Subscriptions")
        render_currency_breakdown(summary.cancelled, "Cancelled Monthly Cost")


def render_currency_breakdown(bucket, title: str):
    """One row per currency present in the bucket."""
    if not bucket:
        return
    st.markdown(f"**{title}**")
    for currency, amount in bucket.items():
        label_col, amount_col = st.columns([1, 2])
        label_col.markdown(currency.value)
        amount_col.markdown(f"**{format_amount(amount, currency)}**")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()
    sections = [
        ("Storage", "storage"),
        ("Google Sheets (optional backend)", "google_sheets"),
        ("Icon lookup", "icons"),
        ("Application", "app"),
    ]
    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.warning(f"⚠️ {name} - {error}")

    st.markdown("---")
    app_settings = get_settings().app
    st.markdown(f"**Environment:** `{app_settings.app_environment}`")
    st.markdown(f"**Storage backend:** `{get_settings().storage.backend}`")
    if app_settings.debug_mode:
        st.json(status)
    st.markdown(
        "To configure the application, create a `.env` file. "
        "Variables use the `SUBTRACK_` prefix (e.g. `SUBTRACK_STORAGE_BACKEND`)."
    )


if __name__ == "__main__":
    main()
