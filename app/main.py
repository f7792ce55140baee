import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, time as dtime

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from fintrack.achievements import goal_milestones
from fintrack.advisor import AdvisorClient, AdvisorSession
from fintrack.auth import GuestAuthProvider
from fintrack.config import Settings, configure_logging
from fintrack.domain import EXPENSE_CATEGORIES, GOAL_CATEGORIES, INCOME_CATEGORIES, goal_category
from fintrack.errors import ExternalServiceError, FintrackError, ValidationError
from fintrack.events import STORAGE_WARNING
from fintrack.ledger import days_remaining, goal_progress, goal_status
from fintrack.money import format_money, format_percent
from fintrack.periods import PERIOD_LABELS, PERIODS
from fintrack.services import FinanceTracker
from fintrack.snapshot import advisor_summary
from fintrack.storage import JsonFileStore
from fintrack.transforms import load_seed

SEED_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "seed.json")

settings = Settings.from_env()
configure_logging(settings.log_level)

st.set_page_config(page_title="FinTrack", layout="centered")


def seed_if_empty(tracker: FinanceTracker) -> None:
    if tracker.transactions() or tracker.goals():
        return
    transactions, goals = load_seed(SEED_PATH)
    tracker.transaction_repo.save(transactions)
    tracker.goal_repo.save(goals)
    tracker.reload()


if "auth" not in st.session_state:
    st.session_state.auth = GuestAuthProvider()
    st.session_state.user = st.session_state.auth.guest_sign_in()

if "tracker" not in st.session_state:
    tracker = FinanceTracker(JsonFileStore(settings.data_dir), settings=settings, user_id=st.session_state.user.uid)
    st.session_state.storage_warnings = []
    tracker.bus.subscribe(STORAGE_WARNING, lambda e, p: st.session_state.storage_warnings.append(p["message"]))
    seed_if_empty(tracker)
    st.session_state.tracker = tracker

if "advisor" not in st.session_state:
    st.session_state.advisor = AdvisorSession(AdvisorClient(settings.gemini_api_key, settings.advisor_timeout))

tracker: FinanceTracker = st.session_state.tracker

for warning in st.session_state.storage_warnings:
    st.warning(f"Changes could not be saved: {warning}. They stay available for this session.")
st.session_state.storage_warnings.clear()


def tx_to_df(tx_list):
    rows = [
        {
            "date": t.timestamp,
            "description": t.description,
            "category": t.category,
            "type": t.type.value,
            "amount": float(t.amount),
            "signed": float(t.signed_amount),
        }
        for t in tx_list
    ]
    return pd.DataFrame(rows, columns=["date", "description", "category", "type", "amount", "signed"])


st.sidebar.markdown("### 👤 Profile")
nickname = st.sidebar.text_input("Nickname", value=tracker.profile().name)
if nickname != tracker.profile().name:
    tracker.update_profile(name=nickname)
if nickname:
    st.sidebar.caption(f"Hello, {nickname}!")

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "➕ Add Transaction", "📊 Analytics", "🎯 Goals", "💬 Advisor"]
)

if menu == "🏠 Dashboard":
    snap = tracker.snapshot()

    st.title("🏠 Dashboard")
    c1, c2, c3 = st.columns(3)
    c1.metric("Balance", format_money(snap.balance))
    c2.metric("Level", snap.level)
    c3.metric("🔥 Streak", f"{snap.streak} days")

    k1, k2, k3 = st.columns(3)
    k1.metric("Income (this month)", format_money(snap.monthly_income))
    k2.metric("Expenses (this month)", format_money(snap.monthly_expenses))
    k3.metric("Savings rate", format_percent(snap.savings_rate))

    st.subheader("Monthly budget")
    spending = snap.spending
    st.write(f"**{spending.message}**: {spending.description}")
    st.progress(min(spending.spent_percentage, 100) / 100)
    remaining = "remaining" if spending.remaining >= 0 else "over budget"
    st.caption(
        f"{format_money(snap.monthly_expenses)} of {format_money(snap.monthly_budget)} · "
        f"{format_money(abs(spending.remaining))} {remaining} · daily average {format_money(snap.daily_average)}"
    )

    st.subheader("Recent transactions")
    if snap.recent_transactions:
        df_recent = tx_to_df(snap.recent_transactions)
        df_recent["date"] = df_recent["date"].dt.strftime("%Y-%m-%d")
        df_recent["amount"] = df_recent["signed"].map(format_money)
        st.table(df_recent[["date", "description", "category", "amount"]])
    else:
        st.info("No transactions yet. Add your first one!")

    st.subheader("🏆 Achievements")
    for a in snap.achievements:
        icon = "✅" if a.unlocked else "🔒"
        st.write(f"{icon} **{a.title}**: {a.description} ({a.progress:,.0f}/{a.max_progress:,.0f})")
        st.progress(a.fraction)

elif menu == "➕ Add Transaction":
    st.title("➕ Add Transaction")
    kind = st.radio("Type", ["expense", "income"], horizontal=True)
    categories = EXPENSE_CATEGORIES if kind == "expense" else INCOME_CATEGORIES

    with st.form("add_transaction", clear_on_submit=True):
        amount = st.text_input("Amount", placeholder="0.00")
        description = st.text_input("Description")
        category = st.selectbox("Category", categories)
        submitted = st.form_submit_button("Add Transaction")

    if submitted:
        try:
            t = tracker.add_transaction(amount, description, category, kind)
        except ValidationError as e:
            for field, message in e.errors.items():
                st.error(f"{field.capitalize()}: {message}")
        else:
            st.success(f"Added {t.type.value} of {format_money(t.amount)} ({t.category})")

elif menu == "📊 Analytics":
    st.title("📊 Financial Analytics")
    period = st.radio("Time period", PERIODS, format_func=PERIOD_LABELS.get, index=1, horizontal=True)
    report = tracker.analytics(period)

    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Income", format_money(report.totals.income))
    k2.metric("Expenses", format_money(report.totals.expense))
    k3.metric("Net", format_money(report.totals.net))
    k4.metric("Savings rate", format_percent(report.savings_rate))

    st.subheader("Spending breakdown")
    if report.category_breakdown:
        df_cat = pd.DataFrame(
            [
                {"Category": c.category, "Amount": float(c.amount), "Share": round(c.percentage, 1), "Transactions": c.transactions}
                for c in report.category_breakdown
            ]
        )
        fig_cat = px.pie(df_cat, values="Amount", names="Category", title="Category Distribution")
        st.plotly_chart(fig_cat, use_container_width=True)
        st.table(df_cat)
    else:
        st.info("No expenses in this period")

    st.subheader("Monthly trends")
    if report.monthly_trends:
        labels = [m.month for m in report.monthly_trends]
        fig_ts = go.Figure()
        fig_ts.add_trace(go.Bar(x=labels, y=[float(m.income) for m in report.monthly_trends], name="Income"))
        fig_ts.add_trace(go.Bar(x=labels, y=[float(m.expense) for m in report.monthly_trends], name="Expense"))
        fig_ts.add_trace(go.Scatter(x=labels, y=[float(m.savings) for m in report.monthly_trends], mode="lines+markers", name="Savings"))
        fig_ts.update_layout(barmode="group", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_ts, use_container_width=True)
    else:
        st.info("No transactions in this period")

    df = tx_to_df(tracker.transactions())
    if not df.empty:
        csv = df.drop(columns=["signed"]).to_csv(index=False)
        st.download_button("⬇ Download CSV", csv, file_name="transactions.csv")

elif menu == "🎯 Goals":
    st.title("🎯 Your Goals")
    now = datetime.now()
    g1, g2 = st.columns(2)
    g1.metric("Active Goals", tracker.get_active_goals_count())
    g2.metric("Total Saved", format_money(tracker.get_total_saved()))

    with st.expander("New goal"):
        with st.form("new_goal", clear_on_submit=False):
            title = st.text_input("Title")
            description = st.text_area("Description")
            target = st.text_input("Target amount")
            category = st.selectbox(
                "Category", list(GOAL_CATEGORIES), format_func=lambda v: GOAL_CATEGORIES[v].label
            )
            deadline = st.date_input("Target date")
            create = st.form_submit_button("Create goal")
        if create:
            try:
                tracker.create_goal(
                    {
                        "title": title,
                        "description": description,
                        "target": target,
                        "category": category,
                        "deadline": datetime.combine(deadline, dtime.max),
                    }
                )
            except ValidationError as e:
                for field, message in e.errors.items():
                    st.error(f"{field.capitalize()}: {message}")
            else:
                st.success("Goal created")

    for goal in tracker.goals():
        progress = goal_progress(goal)
        st.markdown(f"#### {goal.title}")
        st.caption(f"{goal.description} · {goal_category(goal.category).label}")
        st.progress(min(progress, 100) / 100)
        badges = " ".join(f"🏅{m.threshold}%" for m in goal_milestones(goal) if m.reached)
        status = goal_status(goal, now)
        days = days_remaining(goal, now)
        st.write(
            f"{format_money(goal.current)} / {format_money(goal.target)} ({progress:.0f}%) · "
            f"{status} · {days} days left {badges}"
        )
        a, b, c = st.columns([2, 1, 1])
        deposit = a.text_input("Amount", key=f"deposit_{goal.id}", label_visibility="collapsed", placeholder="Add money")
        if b.button("Add", key=f"add_{goal.id}"):
            try:
                tracker.add_money_to_goal(goal.id, deposit)
                st.rerun()
            except FintrackError as e:
                st.error(str(e))
        if not goal.is_achieved and c.button("Done", key=f"done_{goal.id}"):
            tracker.mark_goal_achieved(goal.id)
            st.rerun()
        if st.button("Delete", key=f"delete_{goal.id}"):
            tracker.delete_goal(goal.id)
            st.rerun()

elif menu == "💬 Advisor":
    st.title("💬 AI Financial Advisor")
    session: AdvisorSession = st.session_state.advisor
    st.info(session.client.get_quick_tip())

    for message in session.history:
        with st.chat_message(message.role):
            st.write(message.content)

    if st.button("Get personalised advice"):
        summary = advisor_summary(tracker.snapshot(), tracker.goals())
        try:
            with st.spinner("Thinking..."):
                advice = asyncio.run(session.client.get_personalized_advice(summary))
            st.write(advice)
        except ExternalServiceError as e:
            st.error(e.user_message)

    prompt = st.chat_input("Ask about budgeting, saving, goals...")
    if prompt:
        try:
            with st.spinner("Thinking..."):
                reply = asyncio.run(session.ask(prompt))
        except ExternalServiceError as e:
            st.error(e.user_message)
        else:
            if reply is not None:
                st.rerun()

