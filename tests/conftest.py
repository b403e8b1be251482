"""
Test Suite Configuration
"""
from datetime import datetime

import matplotlib

matplotlib.use("Agg")

import pytest
import polars as pl

from retail_eda.config.settings import DataSettings, Settings
from retail_eda.data.generators import TransactionGenerator


SHEET_1 = "Year 2009-2010"
SHEET_2 = "Year 2010-2011"


@pytest.fixture
def raw_transactions_df() -> pl.DataFrame:
    """Raw transaction lines using the export's column names"""
    return pl.DataFrame(
        {
            "Invoice": ["489434", "489434", "489434", "489435", "C489436", "536365", "536365", "536366"],
            "StockCode": ["85048", "79323P", "85048", "22350", "22350", "85123A", "71053", "22633"],
            "Description": [
                "15CM CHRISTMAS GLASS BALL 20 LIGHTS",
                "PINK CHERRY LIGHTS",
                "15CM CHRISTMAS GLASS BALL 20 LIGHTS",
                "CAT BOWL",
                "CAT BOWL",
                "WHITE HANGING HEART T-LIGHT HOLDER",
                None,
                "HAND WARMER UNION JACK",
            ],
            "Quantity": [12, 12, 12, 24, -6, 6, 6, 10],
            "InvoiceDate": [
                datetime(2009, 12, 1, 7, 45),
                datetime(2009, 12, 1, 7, 45),
                datetime(2009, 12, 1, 7, 46),
                datetime(2009, 12, 15, 9, 0),
                datetime(2009, 12, 20, 10, 30),
                datetime(2010, 12, 1, 8, 26),
                datetime(2010, 12, 1, 8, 26),
                datetime(2010, 12, 31, 11, 0),
            ],
            "Price": [6.95, 6.75, 6.95, 2.55, 2.55, 2.55, 3.39, 1.85],
            "Customer ID": [13085.0, 13085.0, 13085.0, None, 13085.0, 17850.0, 17850.0, 12583.0],
            "Country": ["United Kingdom"] * 3 + ["France"] + ["United Kingdom"] * 3 + ["Germany"],
            "excel_sheet": [SHEET_1] * 5 + [SHEET_2] * 3,
            "Notes": [None] * 8,
        },
        schema_overrides={"Notes": pl.String},
    )


@pytest.fixture
def generated_transactions_df() -> pl.DataFrame:
    """Small synthetic dataset"""
    return TransactionGenerator(seed=7, n_products=150, n_customers=40).generate(n_invoices=80)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings writing every output under tmp_path"""
    return Settings(
        data=DataSettings(
            raw_path=str(tmp_path / "raw" / "online_retail.parquet"),
            curated_path=str(tmp_path / "curated"),
            figures_path=str(tmp_path / "figures"),
        ),
    )
