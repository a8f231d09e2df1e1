"""Daily totals of an exported rewards CSV."""

from __future__ import annotations

import pandas as pd

DATE_COLUMN = "Date"
AMOUNT_COLUMN = "Received Quantity"
CURRENCY_COLUMN = "Received Currency"


def daily_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Sum received quantity per UTC day and currency.

    Rows without a parsable amount are dropped.
    """
    df = df.copy()
    df.columns = df.columns.str.strip()

    df[DATE_COLUMN] = pd.to_datetime(df[DATE_COLUMN], utc=True)
    df["day"] = df[DATE_COLUMN].dt.date
    df[AMOUNT_COLUMN] = pd.to_numeric(df[AMOUNT_COLUMN], errors="coerce")
    df = df.dropna(subset=[AMOUNT_COLUMN])

    if CURRENCY_COLUMN not in df.columns:
        df[CURRENCY_COLUMN] = ""
    df[CURRENCY_COLUMN] = df[CURRENCY_COLUMN].fillna("")

    grouped = df.groupby(["day", CURRENCY_COLUMN], as_index=False).agg(
        amount=(AMOUNT_COLUMN, "sum"),
        rewards=(AMOUNT_COLUMN, "size"),
    )
    grouped["amount"] = grouped["amount"].round(8)
    return grouped.sort_values("day").reset_index(drop=True)


def daily_totals_csv(input_file: str, output_file: str) -> pd.DataFrame:
    totals = daily_totals(pd.read_csv(input_file))
    totals.to_csv(output_file, index=False, float_format="%.8f")
    return totals
