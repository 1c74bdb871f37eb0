import pandas as pd
import pytest

from ace_dashboard.charts import UnknownPlotTypeError, render_chart, to_vega_spec
from ace_dashboard.filters import Selection, filter_rows


@pytest.fixture
def california(number_table):
    sel = Selection(location_type="State", location="California")
    return sel, filter_rows(number_table, sel)


def test_empty_rows_render_nothing():
    empty = pd.DataFrame(columns=["Location", "LocationType", "Race", "TimeFrame", "Data", "DataFormat"])
    assert render_chart(empty, "Line", Selection(location="Nowhere")) is None


def test_undefined_values_are_dropped(california):
    sel, rows = california
    chart = render_chart(rows, "Line", sel)
    assert len(rows) == 4
    assert len(chart.data) == 3
    assert chart.data["Data"].notna().all()


def test_only_undefined_values_render_nothing():
    rows = pd.DataFrame(
        {"Location": ["Ohio"], "LocationType": ["State"], "Race": ["White"], "TimeFrame": ["2019"], "Data": ["N/A"], "DataFormat": ["Number"]}
    )
    assert render_chart(rows, "Bar", Selection(location="Ohio")) is None


def test_line_chart(california):
    sel, rows = california
    spec = to_vega_spec(render_chart(rows, "Line", sel))
    assert spec["mark"]["type"] == "line"
    assert spec["mark"]["point"] is True
    assert spec["encoding"]["x"]["field"] == "TimeFrame"
    assert spec["encoding"]["x"]["sort"] == ["2018", "2019"]
    assert spec["encoding"]["color"]["field"] == "Race"
    assert spec["title"] == "All races in California"


def test_bar_chart_grouped_by_race():
    rows = pd.DataFrame(
        {
            "Location": ["CA", "CA"],
            "LocationType": ["State", "State"],
            "Race": ["White", "Black"],
            "TimeFrame": ["2019", "2019"],
            "Data": [5.0, 7.0],
            "DataFormat": ["Number", "Number"],
        }
    )
    sel = Selection(location_type="State", location="CA", plot_type="Bar")
    chart = render_chart(filter_rows(rows, sel), "Bar", sel)
    spec = to_vega_spec(chart)
    assert spec["mark"]["type"] == "bar"
    assert spec["encoding"]["xOffset"]["field"] == "Race"
    assert spec["encoding"]["y"]["field"] == "Data"
    heights = dict(zip(chart.data["Race"], chart.data["Data"]))
    assert heights == {"White": 5.0, "Black": 7.0}
    assert set(chart.data["TimeFrame"]) == {"2019"}


def test_heatmap_title_has_location_only(california):
    _, rows = california
    sel = Selection(location_type="State", location="California", race="White")
    spec = to_vega_spec(render_chart(rows, "Heatmap", sel))
    assert spec["mark"]["type"] == "rect"
    assert spec["encoding"]["y"]["field"] == "Race"
    assert spec["encoding"]["color"]["field"] == "Data"
    assert spec["encoding"]["color"]["type"] == "quantitative"
    assert spec["title"] == "California"


def test_percent_axis_title(tables):
    sel = Selection(dataset_kind="Percent", location_type="Nation", location="United States")
    rows = filter_rows(tables["Percent"], sel)
    spec = to_vega_spec(render_chart(rows, "Line", sel))
    assert spec["encoding"]["y"]["title"] == "Percent"


def test_unknown_plot_type_raises(california):
    sel, rows = california
    with pytest.raises(UnknownPlotTypeError):
        render_chart(rows, "Pie", sel)
