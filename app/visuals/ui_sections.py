import streamlit as st
import pandas as pd

def render_eligibility_snapshot(eligibility_df: pd.DataFrame):
    """
    Render one tile per household player with the issuers they can apply to
    today and the rules holding the others back.
    Expects df with columns: ['player', 'issuer_name', 'eligible', 'reason']
    """
    st.subheader("🚦 Eligibility by Player")

    if eligibility_df.empty:
        st.warning("No wallet data available.")
        return

    players = list(eligibility_df["player"].drop_duplicates())
    cols = st.columns(min(len(players), 4))

    for i, player in enumerate(players):
        rows = eligibility_df[eligibility_df["player"] == player]
        open_issuers = ", ".join(sorted(rows.loc[rows["eligible"], "issuer_name"])) or "None"
        blocked = rows[~rows["eligible"]]
        blocked_html = "".join(
            f"<div style='font-size: 0.8rem; color: #b3261e;'>{r['issuer_name']}: {r['reason']}</div>"
            for _, r in blocked.iterrows()
        )
        with cols[i % len(cols)]:
            st.markdown(
                f"""
                <div style="
                    background-color: #f8f9fa;
                    border-radius: 12px;
                    padding: 10px 14px;
                    margin-bottom: 10px;
                    box-shadow: 0px 1px 2px rgba(0,0,0,0.1);
                ">
                    <div style="font-size: 1rem; font-weight: 700; color: #000;">
                        {player}
                    </div>
                    <div style="font-size: 0.85rem; color: #1b7e3b; font-weight: 600;">
                        Open: {open_issuers}
                    </div>
                    {blocked_html}
                </div>
                """,
                unsafe_allow_html=True
            )
