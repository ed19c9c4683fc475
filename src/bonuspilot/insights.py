"""
BonusPilot - Insights
---------------------
✅ Headline offers, no-spend offers and the rules blocking the household
"""

import math

import pandas as pd


def generate_insights(offers_df: pd.DataFrame) -> list[dict]:
    """
    Generates three layers of insights from an offers frame:
      1. Headline offers (highest value, best finite return on spend)
      2. No-spend offers whose return is unbounded
      3. Household eligibility: which rules block the most offers
    """
    insights = []
    if offers_df.empty:
        return insights

    # -----------------------------
    # 1️⃣ Headline offers
    # -----------------------------
    top_value = offers_df.loc[offers_df["bonus_value"].idxmax()]
    if top_value["bonus_value"] > 0:
        insights.append({
            "card": top_value["card_name"],
            "insight": (
                f"**{top_value['card_name']}** has the richest bonus right now: "
                f"about ${top_value['bonus_value']:,.0f} ({top_value['bonus']})."
            ),
            "type": "value",
        })

    finite = offers_df[offers_df["return_on_spend"].apply(lambda v: not math.isinf(v)) & (offers_df["return_on_spend"] > 0)]
    if not finite.empty:
        best_ros = finite.loc[finite["return_on_spend"].idxmax()]
        insights.append({
            "card": best_ros["card_name"],
            "insight": (
                f"Best return on spend: **{best_ros['card_name']}** at {best_ros['ros_display']} "
                f"on ${best_ros['spend_requirement']:,.0f} of required spend."
            ),
            "type": "ros",
        })

    # -----------------------------
    # 2️⃣ No-spend offers
    # -----------------------------
    unbounded = offers_df[offers_df["return_on_spend"].apply(math.isinf)]
    for _, row in unbounded.iterrows():
        insights.append({
            "card": row["card_name"],
            "insight": f"{row['card_name']} pays ${row['bonus_value']:,.0f} with little or no spend required.",
            "type": "no_spend",
        })

    # -----------------------------
    # 3️⃣ Blocking rules across the household
    # -----------------------------
    blocked = offers_df["blocked_reasons"].fillna("")
    reasons = (
        blocked[blocked != ""]
        .str.split("; ")
        .explode()
        .str.split(": ", n=1)
        .str[1]
        .value_counts()
    )
    if not reasons.empty:
        reason, count = reasons.index[0], int(reasons.iloc[0])
        insights.append({
            "card": None,
            "insight": f"**{reason}** is blocking {count} offer(s) for your household.",
            "type": "eligibility",
        })

    return insights
