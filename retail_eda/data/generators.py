"""
Synthetic Data Generator

Generates online-retail style transaction lines for demos and tests.
Includes:
- Invoices with several lines each, spread over two workbook sheets
- Cancellation invoices (C prefix, negative quantities)
- Lines without a customer id
- Repeated lines on the deduplication key
"""

import random
from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np
import polars as pl
from faker import Faker

COUNTRIES = [
    ("United Kingdom", 0.82),
    ("Germany", 0.04),
    ("France", 0.04),
    ("EIRE", 0.03),
    ("Netherlands", 0.03),
    ("Spain", 0.02),
    ("Australia", 0.02),
]

SHEETS = [
    ("Year 2009-2010", datetime(2009, 12, 1, 7, 0)),
    ("Year 2010-2011", datetime(2010, 12, 1, 7, 0)),
]

RAW_COLUMNS = [
    "Invoice",
    "StockCode",
    "Description",
    "Quantity",
    "InvoiceDate",
    "Price",
    "Customer ID",
    "Country",
    "excel_sheet",
]


class TransactionGenerator:
    """
    Generate raw transaction lines in the export's column naming.

    Example:
        df = TransactionGenerator(seed=7).generate(n_invoices=500)
    """

    def __init__(
        self,
        seed: int = 42,
        n_products: int = 300,
        n_customers: int = 400,
        cancellation_rate: float = 0.03,
        missing_customer_rate: float = 0.2,
        duplicate_rate: float = 0.01,
    ):
        self.seed = seed
        self.cancellation_rate = cancellation_rate
        self.missing_customer_rate = missing_customer_rate
        self.duplicate_rate = duplicate_rate

        self.fake = Faker("en_GB")
        self.fake.seed_instance(seed)
        self.rng = np.random.default_rng(seed)
        self.random = random.Random(seed)

        self.products = self._build_products(n_products)
        self.customers = [12346.0 + i for i in range(n_customers)]

    def _build_products(self, n: int) -> List[dict]:
        products = []
        for i in range(n):
            code = f"{20000 + i}" + (self.random.choice("ABCDEFG") if self.random.random() < 0.3 else "")
            products.append({
                "stock_code": code,
                "description": " ".join(self.fake.words(nb=self.random.randint(2, 4))).upper(),
                # heavy-ish tail of unit prices
                "price": round(float(self.rng.lognormal(mean=1.0, sigma=0.8)), 2),
            })
        return products

    def _invoice_time(self, sheet_start: datetime) -> datetime:
        offset = timedelta(
            days=int(self.rng.integers(0, 365)),
            hours=int(self.rng.integers(0, 11)),
            minutes=int(self.rng.integers(0, 60)),
        )
        return sheet_start + offset

    def generate(self, n_invoices: int = 1000, start_invoice: int = 489434) -> pl.DataFrame:
        """Generate lines for n_invoices invoices"""
        rows = []
        countries = [c for c, _ in COUNTRIES]
        weights = [w for _, w in COUNTRIES]

        for i in range(n_invoices):
            sheet, sheet_start = SHEETS[0] if i < n_invoices // 2 else SHEETS[1]
            cancelled = self.random.random() < self.cancellation_rate
            invoice = f"{'C' if cancelled else ''}{start_invoice + i}"
            timestamp = self._invoice_time(sheet_start)
            customer: Optional[float] = (
                None if self.random.random() < self.missing_customer_rate
                else self.random.choice(self.customers)
            )
            country = self.random.choices(countries, weights=weights)[0]

            for _ in range(int(self.rng.integers(1, 12))):
                product = self.random.choice(self.products)
                quantity = int(self.rng.geometric(0.15))
                rows.append({
                    "Invoice": invoice,
                    "StockCode": product["stock_code"],
                    "Description": product["description"] if self.random.random() > 0.005 else None,
                    "Quantity": -quantity if cancelled else quantity,
                    "InvoiceDate": timestamp,
                    "Price": product["price"],
                    "Customer ID": customer,
                    "Country": country,
                    "excel_sheet": sheet,
                })

        # repeat some lines right after the original with a later log time
        with_duplicates = []
        for row in rows:
            with_duplicates.append(row)
            if self.random.random() < self.duplicate_rate:
                repeat = dict(row)
                repeat["InvoiceDate"] = row["InvoiceDate"] + timedelta(minutes=1)
                with_duplicates.append(repeat)

        return pl.DataFrame(
            with_duplicates,
            schema={
                "Invoice": pl.String,
                "StockCode": pl.String,
                "Description": pl.String,
                "Quantity": pl.Int64,
                "InvoiceDate": pl.Datetime("us"),
                "Price": pl.Float64,
                "Customer ID": pl.Float64,
                "Country": pl.String,
                "excel_sheet": pl.String,
            },
        )
