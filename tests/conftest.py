import pandas as pd
import pytest

from ace_dashboard.data import build_tables


RAW_ROWS = [
    # Location, LocationType, Race, TimeFrame, Data, DataFormat
    ("California", "State", "White", "2019", "5", "Number"),
    ("California", "State", "Black", "2019", "7", "Number"),
    ("California", "State", "White", "2018", "4", "Number"),
    ("California", "State", "Black", "2018", "N/A", "Number"),
    ("Texas", "State", "Hispanic", "2019", "1,234", "Number"),
    ("Texas", "State", "White", "2019", "900", "Number"),
    ("United States", "Nation", "White", "2019", "2,500,000", "Number"),
    ("California", "State", "White", "2019", "12.3%", "Percent"),
    ("California", "State", "Black", "2019", "-", "Percent"),
    ("United States", "Nation", "Black", "2019", "25%", "Percent"),
]


@pytest.fixture
def raw_table() -> pd.DataFrame:
    return pd.DataFrame(RAW_ROWS, columns=["Location", "LocationType", "Race", "TimeFrame", "Data", "DataFormat"])


@pytest.fixture
def tables(raw_table):
    return build_tables(raw_table)


@pytest.fixture
def number_table(tables):
    return tables["Number"]
