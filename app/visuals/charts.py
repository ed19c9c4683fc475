import math

import pandas as pd
import plotly.express as px

## Bonus Value Per Offer

def bonus_value_chart(df: pd.DataFrame, top_n: int = 15):
    """
    Visualize the most valuable offers, coloured by return on spend.
    Expects df with columns: ['card_name', 'bonus_value', 'return_on_spend', 'spend_requirement']
    """
    if df.empty:
        return None

    chart_df = df.sort_values("bonus_value", ascending=False).head(top_n).copy()

    # colour scale tops out at the largest finite return (100% max)
    finite = chart_df.loc[~chart_df["return_on_spend"].apply(math.isinf), "return_on_spend"]
    ceiling = finite.max() if not finite.empty else 100
    chart_df["ros_scale"] = chart_df["return_on_spend"].clip(upper=min(ceiling, 100))

    fig = px.bar(
        chart_df,
        y="card_name",
        x="bonus_value",
        color="ros_scale",
        orientation="h",
        title="💳 Signup Bonus Value per Offer",
        labels={
            "card_name": "Card",
            "bonus_value": "Bonus Value ($)",
            "ros_scale": "Return on Spend %",
        },
        hover_data=["spend_requirement", "ros_display"] if "ros_display" in chart_df.columns else ["spend_requirement"],
        color_continuous_scale="RdYlGn",
    )

    fig.update_layout(
        yaxis_title="",
        yaxis={"categoryorder": "total ascending"},
        xaxis_title="Dollars",
        height=max(300, 32 * len(chart_df)),
        coloraxis_colorbar=dict(title="ROS %"),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
    )

    return fig
