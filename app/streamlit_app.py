"""
BonusPilot Dashboard
--------------------
✅ Values every live signup offer with the user's currency settings
✅ Search with aliases (csr, amex, ur) and household eligibility filters
✅ Shows which issuer rules block each player
"""

import os
from datetime import datetime, timezone

import streamlit as st

from bonuspilot import catalog as catalog_io
from bonuspilot import settings
from bonuspilot.insights import generate_insights
from bonuspilot.models import CURRENCY_TYPES
from bonuspilot.offers import (
    build_offer_rows,
    filter_offer_rows,
    issuer_eligibility_frame,
    offers_frame,
    sort_offer_rows,
    spectrum_band,
    value_stats,
)
from visuals.charts import bonus_value_chart
from visuals.ui_sections import render_eligibility_snapshot

settings.configure_logging()

# ==========================================================
# STREAMLIT CONFIG
# ==========================================================
st.set_page_config(page_title="BonusPilot", layout="wide", page_icon="💳")

BAND_COLORS = {
    "emerald": "#047857",
    "green": "#15803d",
    "yellow": "#a16207",
    "orange": "#c2410c",
    "red": "#b91c1c",
    "neutral": "#000000",
}

# ==========================================================
# LOAD DATA
# ==========================================================
if not os.path.exists(settings.catalog_path()):
    st.error(f"❌ No catalog found. Please place catalog.yaml in {settings.data_dir()}.")
    st.stop()

catalog = catalog_io.load_catalog()
user = catalog_io.load_user_settings()
wallet = catalog_io.load_wallet()

now = datetime.now(timezone.utc)
players = catalog_io.wallet_players(wallet, user)
approvals = catalog_io.wallet_approvals(wallet, catalog.cards)

rows = build_offer_rows(
    catalog.cards,
    catalog.offers,
    catalog_io.value_context(catalog, user),
    wallet=wallet,
    approvals=approvals,
    player_currencies=catalog_io.player_currencies(wallet, catalog.cards),
    players=players,
    now=now,
)

# ==========================================================
# SIDEBAR FILTERS
# ==========================================================
st.sidebar.title("💳 BonusPilot")
st.sidebar.markdown("**Compare signup bonuses and know when you can apply.**")

search = st.sidebar.text_input("🔍 Search", placeholder="csr, amex, ur, hilton...")
product_type = st.sidebar.selectbox("Product type", ["", "personal", "business"])
brands = sorted({r.card.brand_name for r in rows if r.card.brand_name})
brand_name = st.sidebar.selectbox("Brand", [""] + brands)
currency_type = st.sidebar.selectbox("Currency type", [""] + list(CURRENCY_TYPES))
currency_names = sorted({r.currency_name for r in rows})
currency_name = st.sidebar.selectbox("Currency", [""] + currency_names)

player_labels = {user.player_name(p): p for p in players}
missing_label = st.sidebar.selectbox("Cards this player doesn't have", [""] + list(player_labels))
eligible_label = st.sidebar.selectbox("Eligible for player", [""] + list(player_labels))

sort_key = st.sidebar.selectbox("Sort by", ["bonus_value", "return_on_spend", "annual_fee", "name"])
sort_direction = st.sidebar.radio("Order", ["Descending", "Ascending"], index=1 if sort_key == "name" else 0, horizontal=True)

filtered = filter_offer_rows(
    rows,
    search=search,
    product_type=product_type or None,
    brand_name=brand_name or None,
    currency_type=currency_type or None,
    currency_name=currency_name or None,
    missing_for_player=player_labels.get(missing_label),
    eligible_for_player=player_labels.get(eligible_label),
)
filtered = sort_offer_rows(filtered, key=sort_key, descending=sort_direction == "Descending")
df = offers_frame(filtered)

# ==========================================================
# MAIN DASHBOARD
# ==========================================================
st.title("💳 Card Offers")
st.markdown("Signup bonuses valued with your point values, plus the issuer rules in your way.")

if df.empty:
    st.warning("No offers match the selected filters.")
    st.stop()

# ==========================================================
# KPI SECTION
# ==========================================================
stats = value_stats(filtered)
col1, col2, col3 = st.columns(3)
col1.metric("Offers", f"{len(df):,}")
col2.metric("Top Bonus Value", f"${df['bonus_value'].max():,.0f}")
col3.metric("Median Bonus Value", f"${df['bonus_value'].median():,.0f}")

# ==========================================================
# OFFER TABLE
# ==========================================================
st.subheader("📋 Offers")

display_df = df[[
    "card_name", "badges", "issuer_name", "bonus_terms", "elevated_earnings", "intro_apr", "af_waived",
    "offer_description", "bonus_value", "spend_requirement", "ros_display", "annual_fee", "owners",
    "blocked_reasons", "application_url",
]].rename(columns={
    "card_name": "Card",
    "badges": "Badges",
    "issuer_name": "Issuer",
    "bonus_terms": "Bonus",
    "elevated_earnings": "Elevated Earning",
    "intro_apr": "Intro APR",
    "af_waived": "Fee",
    "offer_description": "Details",
    "bonus_value": "Value ($)",
    "spend_requirement": "Spend ($)",
    "ros_display": "ROS",
    "annual_fee": "Annual Fee ($)",
    "owners": "Held By",
    "blocked_reasons": "Blocked",
    "application_url": "Apply",
})


def color_value(val):
    return f"color: {BAND_COLORS[spectrum_band(val, stats['min_value'], stats['max_value'])]}"


st.dataframe(
    display_df.style.format({
        "Value ($)": "${:,.0f}",
        "Spend ($)": "${:,.0f}",
        "Annual Fee ($)": "${:,.0f}",
    }).map(color_value, subset=["Value ($)"]),
    height=520,
    use_container_width=True,
    column_config={"Apply": st.column_config.LinkColumn("Apply", display_text="Apply")},
)

with st.expander("🧮 How each value was calculated"):
    for _, row in df.iterrows():
        st.markdown(f"**{row['card_name']}**")
        st.text(row["value_detail"] or "No valued bonus")
        st.text(row["ros_detail"])

# ==========================================================
# CHART + INSIGHTS
# ==========================================================
fig = bonus_value_chart(df)
if fig is not None:
    st.plotly_chart(fig, use_container_width=True)

st.subheader("💡 Insights")
for item in generate_insights(df):
    st.markdown(f"- {item['insight']}")

# ==========================================================
# ELIGIBILITY
# ==========================================================
render_eligibility_snapshot(
    issuer_eligibility_frame(catalog.cards, players, approvals, now, user.players)
)
