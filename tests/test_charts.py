import math

import pandas as pd

from visuals.charts import bonus_value_chart


def test_empty_frame_has_no_chart():
    assert bonus_value_chart(pd.DataFrame(columns=["card_name", "bonus_value", "return_on_spend", "spend_requirement"])) is None


def test_chart_caps_infinite_returns():
    df = pd.DataFrame({
        "card_name": ["A", "B", "C"],
        "bonus_value": [900.0, 420.0, 300.0],
        "return_on_spend": [24.0, math.inf, 61.5],
        "spend_requirement": [4000, 0, 500],
        "ros_display": ["24.0%", "∞", "61.5%"],
    })
    fig = bonus_value_chart(df, top_n=2)
    assert fig is not None
    assert list(fig.data[0].y) == ["A", "B"]
    assert max(fig.data[0].marker.color) == 24.0
